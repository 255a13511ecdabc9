"""
Vocabulary review session driven by the spaced-repetition scheduler
"""

import logging

from ...spaced_repetition import Rating, ReviewRecord, ReviewScheduler
from ..content.models import Vocabulary

logger = logging.getLogger(__name__)


class ReviewSession:
    """Flashcard pass over a lesson's due vocabulary"""

    def __init__(self, scheduler: ReviewScheduler, vocabulary: list[Vocabulary]):
        self.scheduler = scheduler
        self.scheduler.ensure_tracked(vocabulary)
        self.queue = self.scheduler.due_items(vocabulary)
        self.current_index = 0
        self.is_flipped = False
        self.reviewed: list[tuple[str, Rating]] = []
        logger.info(f"Review session started with {len(self.queue)} due of {len(vocabulary)} words")

    @property
    def has_cards(self) -> bool:
        return bool(self.queue)

    @property
    def current_card(self) -> Vocabulary | None:
        if self.current_index < len(self.queue):
            return self.queue[self.current_index]
        return None

    @property
    def is_finished(self) -> bool:
        return self.current_index >= len(self.queue)

    def flip(self) -> None:
        self.is_flipped = not self.is_flipped

    def rate(self, rating: Rating | str | int) -> ReviewRecord | None:
        """Record a rating for the current card and move to the next one"""
        card = self.current_card
        if card is None:
            return None

        record = self.scheduler.review(card.headword, rating)
        self.reviewed.append((card.headword, Rating.parse(rating)))
        self.current_index += 1
        self.is_flipped = False
        return record
