"""
Tests for the flashcard review session
"""

from datetime import timedelta

import pytest

from langtrainer.core.database.database_manager import DatabaseManager
from langtrainer.core.session.review_session import ReviewSession
from langtrainer.spaced_repetition import Rating, ReviewScheduler, SpacedRepetitionSystem


class TestReviewSession:
    """Test reviewing due vocabulary"""

    @pytest.fixture
    def scheduler(self, clock):
        return ReviewScheduler(
            DatabaseManager.in_memory().review_repo,
            SpacedRepetitionSystem(default_easiness=2.5, min_easiness=1.3),
            clock=clock,
        )

    def test_new_words_are_tracked_and_due(self, scheduler, vocabulary):
        session = ReviewSession(scheduler, vocabulary)

        assert session.has_cards
        assert len(session.queue) == 3
        assert len(scheduler.store.load()) == 3

    def test_rate_advances_and_resets_flip(self, scheduler, vocabulary):
        session = ReviewSession(scheduler, vocabulary)
        session.flip()
        assert session.is_flipped is True

        record = session.rate(Rating.GOOD)

        assert record.key == "Hello"
        assert record.interval_days == 1
        assert session.is_flipped is False
        assert session.current_card.headword == "Goodbye"

    def test_finished_session(self, scheduler, vocabulary):
        session = ReviewSession(scheduler, vocabulary)
        for rating in ("good", "hard", 4):
            session.rate(rating)

        assert session.is_finished
        assert session.current_card is None
        assert session.rate("good") is None
        assert [rating for _, rating in session.reviewed] == [Rating.GOOD, Rating.HARD, Rating.EASY]

    def test_reviewed_words_are_not_due_until_tomorrow(self, scheduler, vocabulary, clock):
        session = ReviewSession(scheduler, vocabulary)
        for _ in vocabulary:
            session.rate(Rating.GOOD)

        assert ReviewSession(scheduler, vocabulary).has_cards is False

        clock.today = clock.today + timedelta(days=1)
        assert len(ReviewSession(scheduler, vocabulary).queue) == 3

    def test_again_keeps_word_due_today(self, scheduler, vocabulary):
        session = ReviewSession(scheduler, vocabulary)
        session.rate(Rating.AGAIN)
        session.rate(Rating.GOOD)
        session.rate(Rating.GOOD)

        again = ReviewSession(scheduler, vocabulary)
        assert [card.headword for card in again.queue] == ["Hello"]
