"""
Tests for the practice session state machine
"""

import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from langtrainer.conversation import AiResponse, FailureKind
from langtrainer.core.session.practice_session import PracticeSession, SessionStateError, SlotState
from langtrainer.evaluator import MatchClick
from langtrainer.speech import SilentSpeech, SpeechResult


def make_session(exercises, **kwargs):
    kwargs.setdefault("rng", random.Random(7))
    kwargs.setdefault("points_per_exercise", 10)
    return PracticeSession(exercises, lesson_id="l1", lesson_title="Greetings", **kwargs)


class TestSessionFlow:
    """Test checking and advancing through exercises"""

    def test_full_session_scores_each_correct_answer(self, choice_exercise, translate_exercise):
        session = make_session([choice_exercise, translate_exercise])
        assert session.progress == 0.0

        session.select_option("Hello")
        assert session.check() is True
        assert session.score == 10
        assert session.state == SlotState.CHECKED
        assert session.feedback == "Great! Well done."
        assert session.advance() is None
        assert session.progress == 0.5

        session.set_text("AN")
        assert session.check() is True
        assert session.advance() == 20
        assert session.is_complete
        assert session.current_exercise is None
        assert session.progress == 1.0

    def test_choice_and_fill_blank_session(self, choice_exercise, fill_blank_exercise):
        """Multiple choice 'Hello' then fill blank ['a', 'an'] answered 'AN'"""
        session = make_session([choice_exercise, fill_blank_exercise])

        session.select_option("Hello")
        assert session.check() is True
        session.advance()

        session.set_text("AN")
        assert session.check() is True
        assert session.advance() == 20
        assert [result.correct for result in session.results] == [True, True]

    def test_wrong_answer_scores_nothing(self, choice_exercise):
        session = make_session([choice_exercise])
        session.select_option("Goodbye")

        assert session.check() is False
        assert session.score == 0
        assert session.feedback == "Incorrect. Correct answer: Hello"
        assert session.advance() == 0

    def test_empty_session_completes_immediately(self):
        session = make_session([])

        assert session.is_complete
        assert session.current_exercise is None
        assert session.progress == 1.0
        assert session.summary().score == 0

    def test_advance_requires_check(self, choice_exercise):
        session = make_session([choice_exercise])
        with pytest.raises(SessionStateError):
            session.advance()

    def test_input_after_check_is_rejected(self, choice_exercise):
        session = make_session([choice_exercise])
        session.select_option("Hello")
        session.check()

        with pytest.raises(SessionStateError):
            session.select_option("Goodbye")
        with pytest.raises(SessionStateError):
            session.check()

    def test_advance_after_completion(self, choice_exercise):
        session = make_session([choice_exercise])
        session.select_option("Hello")
        session.check()
        session.advance()

        with pytest.raises(SessionStateError):
            session.advance()

    def test_transient_state_resets_between_exercises(self, choice_exercise, translate_exercise):
        session = make_session([choice_exercise, translate_exercise])
        session.select_option("Goodbye")
        session.check()
        session.advance()

        assert session.input.selected_option is None
        assert session.feedback == ""
        assert session.last_correct is None
        assert session.state == SlotState.UNANSWERED

    def test_spoken_feedback(self, choice_exercise):
        tts = SilentSpeech()
        session = make_session([choice_exercise], tts=tts)
        session.select_option("Hello")
        session.check()

        assert tts.spoken == [("Correct!", "en-US")]

    def test_summary(self, choice_exercise, translate_exercise):
        session = make_session([choice_exercise, translate_exercise])
        session.select_option("Hello")
        session.check()
        session.advance()
        session.set_text("the")
        session.check()
        session.advance()

        summary = session.summary()
        assert summary.score == 10
        assert summary.correct == 1
        assert summary.checked == 2
        assert summary.accuracy == 50.0
        assert [result.exercise_id for result in summary.results] == ["ex_choice", "ex_translate"]


class TestReorderExercise:
    """Test the word bank"""

    def test_word_bank_is_shuffled_copy_of_options(self, reorder_exercise):
        session = make_session([reorder_exercise])
        assert sorted(session.word_bank) == sorted(reorder_exercise.options)

    def test_build_sentence(self, reorder_exercise):
        session = make_session([reorder_exercise])
        for word in ["Nice", "to", "meet", "you."]:
            session.pick_word(session.word_bank.index(word))

        assert session.word_bank == []
        assert session.check() is True

    def test_return_and_reset_words(self, reorder_exercise):
        session = make_session([reorder_exercise])
        session.pick_word(0)
        session.pick_word(0)

        returned = session.return_word(0)
        assert returned in session.word_bank
        assert len(session.input.constructed) == 1

        session.reset_words()
        assert session.input.constructed == []
        assert sorted(session.word_bank) == sorted(reorder_exercise.options)


class TestMatchPairsExercise:
    """Test match pairs inside a session"""

    def test_columns_are_shuffled_keys_and_values(self, match_exercise):
        session = make_session([match_exercise])
        assert sorted(session.match_left) == ["Bye", "Hello"]
        assert sorted(session.match_right) == ["Cześć", "Pa"]

    def test_matching_speaks_left_token(self, match_exercise):
        tts = SilentSpeech()
        session = make_session([match_exercise], tts=tts)

        session.click_match_token("Cześć")
        assert session.click_match_token("Hello") == MatchClick.MATCHED
        assert tts.spoken == [("Hello", "en-US")]

    def test_all_pairs_required(self, match_exercise):
        session = make_session([match_exercise])
        session.click_match_token("Hello")
        session.click_match_token("Cześć")

        assert session.check() is False
        assert session.feedback == "You need to match all the pairs."

    def test_all_pairs_matched(self, match_exercise):
        session = make_session([match_exercise])
        for token in ["Hello", "Cześć", "Pa", "Bye"]:
            session.click_match_token(token)

        assert session.check() is True


class TestSpeechInput:
    """Test speech results feeding the text input"""

    def test_transcripts_are_appended(self, pronunciation_exercise):
        session = make_session([pronunciation_exercise])

        assert session.apply_speech_result(SpeechResult(transcript="thank")) is None
        session.apply_speech_result(SpeechResult(transcript=" you "))

        assert session.input.text == "thank you"
        assert session.check() is True

    def test_permission_error_offers_manual_input(self, pronunciation_exercise):
        session = make_session([pronunciation_exercise])

        message = session.apply_speech_result(SpeechResult(error_code="not-allowed"))

        assert message == session.speech_error
        assert session.offer_manual_input is True
        assert session.input.text == ""

    def test_no_speech_does_not_offer_manual_input(self, pronunciation_exercise):
        session = make_session([pronunciation_exercise])
        session.apply_speech_result(SpeechResult(error_code="no-speech"))
        assert session.offer_manual_input is False


class TestConversationExercise:
    """Test conversation slots with a mocked partner"""

    @pytest.fixture
    def partner(self):
        partner = MagicMock()
        partner.respond = AsyncMock(
            return_value=AiResponse(text="Nice to meet you, Anna!", correction="Powiedz: I am Anna.")
        )
        return partner

    @pytest.mark.asyncio
    async def test_send_message_records_both_turns(self, conversation_exercise, partner):
        tts = SilentSpeech()
        session = make_session([conversation_exercise], partner=partner, tts=tts)

        reply = await session.send_message("I Anna")

        assert reply.text == "Nice to meet you, Anna!"
        assert [(turn.role, turn.text) for turn in session.chat_history] == [
            ("user", "I Anna"),
            ("model", "Nice to meet you, Anna!"),
        ]
        assert session.correction == "Powiedz: I am Anna."
        assert tts.spoken == [("Nice to meet you, Anna!", "en-US")]
        history, message, context = partner.respond.call_args.args
        assert history == []
        assert message == "I Anna"
        assert context == "Greetings"

    @pytest.mark.asyncio
    async def test_blank_message_is_ignored(self, conversation_exercise, partner):
        session = make_session([conversation_exercise], partner=partner)

        assert await session.send_message("   ") is None
        assert session.chat_history == []
        partner.respond.assert_not_called()

    @pytest.mark.asyncio
    async def test_error_reply_is_shown_but_not_spoken(self, conversation_exercise, partner):
        partner.respond.return_value = AiResponse.from_failure(FailureKind.NETWORK)
        tts = SilentSpeech()
        session = make_session([conversation_exercise], partner=partner, tts=tts)

        await session.send_message("Hello")

        assert session.chat_history[-1].is_error is True
        assert tts.spoken == []

    @pytest.mark.asyncio
    async def test_pending_reply_blocks_send_and_advance(self, conversation_exercise):
        gate = asyncio.Event()

        async def slow_respond(history, message, context):
            await gate.wait()
            return AiResponse(text="Hi there!")

        partner = MagicMock()
        partner.respond = slow_respond
        session = make_session([conversation_exercise], partner=partner)

        assert session.submit_message("Hello") is True
        assert session.is_waiting_for_reply
        assert session.collect_reply() is None
        with pytest.raises(SessionStateError):
            session.submit_message("Hello again")
        with pytest.raises(SessionStateError):
            session.advance()

        gate.set()
        await session.pending.wait()
        assert session.collect_reply().text == "Hi there!"
        assert not session.is_waiting_for_reply
        assert session.advance() == 0

    def test_conversation_can_be_skipped(self, conversation_exercise, choice_exercise, partner):
        session = make_session([conversation_exercise, choice_exercise], partner=partner)

        assert session.can_check is False
        with pytest.raises(SessionStateError):
            session.check()
        assert session.advance() is None
        assert session.current_exercise == choice_exercise
        assert session.results[0].correct is None

    def test_message_outside_conversation(self, choice_exercise, partner):
        session = make_session([choice_exercise], partner=partner)
        with pytest.raises(SessionStateError):
            session.submit_message("Hello")

    def test_message_without_partner(self, conversation_exercise):
        session = make_session([conversation_exercise])
        with pytest.raises(SessionStateError):
            session.submit_message("Hello")
