"""
Practice session orchestration for a lesson's exercises
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum

from ...config import get_settings
from ...conversation import AiResponse, ChatTurn, ConversationPartner, PendingReply
from ...evaluator import ExerciseInput, MatchClick, feedback_for, grade
from ...speech import SpeechResult, TextToSpeech, describe_speech_error, speak_safely
from ...utils import Timer, calculate_success_rate, shuffled
from ..content.models import Exercise, ExerciseType, PairMapAnswer

logger = logging.getLogger(__name__)


class SlotState(str, Enum):
    UNANSWERED = "unanswered"
    CHECKED = "checked"
    COMPLETE = "complete"


class SessionStateError(RuntimeError):
    """An operation was attempted in a state that does not allow it"""


@dataclass
class ExerciseResult:
    exercise_id: str
    correct: bool | None  # None for conversation exercises
    points: int = 0


@dataclass
class SessionSummary:
    """Outcome of a finished practice session"""

    lesson_id: str
    score: int
    correct: int
    checked: int
    total: int
    duration_seconds: float
    results: list[ExerciseResult] = field(default_factory=list)

    @property
    def accuracy(self) -> float:
        return calculate_success_rate(self.correct, self.checked)


class PracticeSession:
    """Runs one pass through a lesson's exercises.

    Slot states: Unanswered -> Checked -> (advance) -> next Unanswered, or
    Complete after the last slot. Conversation exercises skip Checked and
    may be advanced at any time. Nothing is persisted here; the final score
    is handed to the caller on completion.
    """

    def __init__(
        self,
        exercises: list[Exercise],
        lesson_id: str = "",
        lesson_title: str = "",
        partner: ConversationPartner | None = None,
        rng: random.Random | None = None,
        tts: TextToSpeech | None = None,
        points_per_exercise: int | None = None,
    ):
        settings = get_settings()
        self.exercises = list(exercises)
        self.lesson_id = lesson_id
        self.lesson_title = lesson_title
        self.partner = partner
        self.rng = rng or random.Random()
        self.tts = tts
        self.locale = settings.speech_locale
        self.points_per_exercise = (
            points_per_exercise if points_per_exercise is not None else settings.points_per_exercise
        )

        self.current_index = 0
        self.score = 0
        self.results: list[ExerciseResult] = []
        self.timer = Timer()
        self.timer.start()

        # Per-exercise transient state
        self.state = SlotState.UNANSWERED
        self.input = ExerciseInput()
        self.last_correct: bool | None = None
        self.feedback = ""
        self.word_bank: list[str] = []
        self.match_left: list[str] = []
        self.match_right: list[str] = []
        self.chat_history: list[ChatTurn] = []
        self.correction: str | None = None
        self.speech_error: str | None = None
        self.offer_manual_input = False
        self.pending = PendingReply()

        if not self.exercises:
            self._complete()
        else:
            self._prepare_slot()

    # Progress

    @property
    def total(self) -> int:
        return len(self.exercises)

    @property
    def current_exercise(self) -> Exercise | None:
        if self.state == SlotState.COMPLETE:
            return None
        return self.exercises[self.current_index]

    @property
    def progress(self) -> float:
        """Fraction of exercises passed, before advancing"""
        if not self.exercises:
            return 1.0
        return self.current_index / self.total

    @property
    def is_complete(self) -> bool:
        return self.state == SlotState.COMPLETE

    @property
    def is_waiting_for_reply(self) -> bool:
        return self.pending.is_pending

    def _prepare_slot(self) -> None:
        """Reset transient state for the current exercise"""
        exercise = self.exercises[self.current_index]
        self.state = SlotState.UNANSWERED
        self.input = ExerciseInput()
        self.last_correct = None
        self.feedback = ""
        self.word_bank = []
        self.match_left = []
        self.match_right = []
        self.chat_history = []
        self.correction = None
        self.speech_error = None
        self.offer_manual_input = False
        self.pending = PendingReply()

        if exercise.type == ExerciseType.REORDER_WORDS:
            self.word_bank = shuffled(list(exercise.options), self.rng)
        elif exercise.type == ExerciseType.MATCH_PAIRS and isinstance(
            exercise.correct_answer, PairMapAnswer
        ):
            self.match_left = shuffled(list(exercise.correct_answer.pairs.keys()), self.rng)
            self.match_right = shuffled(list(exercise.correct_answer.pairs.values()), self.rng)

    def _require_input_allowed(self) -> Exercise:
        exercise = self.current_exercise
        if exercise is None:
            raise SessionStateError("Session is complete")
        if self.state != SlotState.UNANSWERED:
            raise SessionStateError("Exercise was already checked")
        return exercise

    # Transient input

    def select_option(self, option: str) -> None:
        self._require_input_allowed()
        self.input.selected_option = option

    def set_text(self, text: str) -> None:
        self._require_input_allowed()
        self.input.text = text

    def pick_word(self, index: int) -> str:
        """Move a word from the bank to the end of the sentence"""
        self._require_input_allowed()
        word = self.word_bank.pop(index)
        self.input.constructed.append(word)
        return word

    def return_word(self, index: int) -> str:
        """Move a word from the sentence back to the bank"""
        self._require_input_allowed()
        word = self.input.constructed.pop(index)
        self.word_bank.append(word)
        return word

    def reset_words(self) -> None:
        self._require_input_allowed()
        self.word_bank.extend(self.input.constructed)
        self.input.constructed = []

    def click_match_token(self, token: str) -> MatchClick:
        exercise = self._require_input_allowed()
        if not isinstance(exercise.correct_answer, PairMapAnswer):
            return MatchClick.IGNORED
        outcome = self.input.match_state.click(token, exercise.correct_answer)
        if outcome == MatchClick.MATCHED:
            speak_safely(self.tts, self.input.match_state.last_matched, self.locale)
        return outcome

    def apply_speech_result(self, result: SpeechResult) -> str | None:
        """Append a transcript to the input; returns an error message on failure"""
        self._require_input_allowed()
        if result.ok:
            transcript = result.transcript.strip()
            self.input.text = f"{self.input.text} {transcript}" if self.input.text else transcript
            self.speech_error = None
            return None

        info = describe_speech_error(result.error_code or "unknown")
        self.speech_error = info.message
        self.offer_manual_input = self.offer_manual_input or info.offer_manual_input
        logger.info(f"Speech capture failed: {result.error_code}")
        return info.message

    # State transitions

    @property
    def can_check(self) -> bool:
        exercise = self.current_exercise
        return (
            exercise is not None
            and self.state == SlotState.UNANSWERED
            and not exercise.is_conversation
        )

    def check(self) -> bool:
        """Grade the current exercise and move it to Checked"""
        exercise = self._require_input_allowed()
        if exercise.is_conversation:
            raise SessionStateError("Conversation exercises are not checked")

        correct = grade(exercise, self.input)
        points = self.points_per_exercise if correct else 0
        self.score += points
        self.last_correct = correct
        self.feedback = feedback_for(exercise, correct)
        self.state = SlotState.CHECKED
        self.results.append(ExerciseResult(exercise.id, correct, points))

        speak_safely(self.tts, "Correct!" if correct else "Incorrect.", self.locale)
        logger.info(
            f"Exercise {exercise.id} checked: correct={correct}, score={self.score}"
        )
        return correct

    def advance(self) -> int | None:
        """Move to the next exercise; returns the final score once complete"""
        exercise = self.current_exercise
        if exercise is None:
            raise SessionStateError("Session is already complete")

        if exercise.is_conversation:
            if self.pending.is_pending:
                raise SessionStateError("Wait for the conversation reply before moving on")
            self.results.append(ExerciseResult(exercise.id, None))
        elif self.state != SlotState.CHECKED:
            raise SessionStateError("Check the exercise before moving on")

        if self.current_index + 1 < self.total:
            self.current_index += 1
            self._prepare_slot()
            return None

        self._complete()
        return self.score

    def _complete(self) -> None:
        self.state = SlotState.COMPLETE
        self.current_index = self.total
        self.timer.stop()
        logger.info(f"Practice session for lesson '{self.lesson_id}' complete: score={self.score}")

    # Conversation

    def submit_message(self, text: str) -> bool:
        """Start a partner request for the learner's message; needs a running loop"""
        exercise = self.current_exercise
        if exercise is None or not exercise.is_conversation:
            raise SessionStateError("Current exercise is not a conversation")
        if self.pending.is_pending:
            raise SessionStateError("A reply is already pending")
        if self.partner is None:
            raise SessionStateError("No conversation partner configured")
        if not text or not text.strip():
            return False

        history = list(self.chat_history)
        self.chat_history.append(ChatTurn(role="user", text=text))
        self.input.text = ""
        self.pending.start(self.partner.respond(history, text, self.lesson_title))
        return True

    def collect_reply(self) -> AiResponse | None:
        """Record a resolved reply in the chat; None while still pending"""
        response = self.pending.result()
        if response is None:
            return None
        self.pending.clear()
        self.chat_history.append(ChatTurn(role="model", text=response.text, is_error=response.is_error))
        self.correction = response.correction
        if not response.is_error:
            speak_safely(self.tts, response.text, self.locale)
        return response

    async def send_message(self, text: str) -> AiResponse | None:
        """Send a message and wait for the partner's reply"""
        if not self.submit_message(text):
            return None
        await self.pending.wait()
        return self.collect_reply()

    def summary(self) -> SessionSummary:
        checked = [result for result in self.results if result.correct is not None]
        return SessionSummary(
            lesson_id=self.lesson_id,
            score=self.score,
            correct=sum(1 for result in checked if result.correct),
            checked=len(checked),
            total=self.total,
            duration_seconds=self.timer.elapsed() or 0.0,
            results=list(self.results),
        )
