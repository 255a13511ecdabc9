"""
Answer evaluation for every exercise variant
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .core.content.models import (
    CHOICE_TYPES,
    FREE_TEXT_TYPES,
    Exercise,
    ExerciseType,
    PairMapAnswer,
    TextAnswer,
    TextListAnswer,
)
from .utils import SENTENCE_PUNCTUATION, normalize_answer, strip_punctuation

logger = logging.getLogger(__name__)


class MatchClick(str, Enum):
    """Outcome of clicking a token in a match-pairs exercise"""

    IGNORED = "ignored"
    SELECTED = "selected"
    MATCHED = "matched"
    DESELECTED = "deselected"
    SWITCHED = "switched"


@dataclass
class MatchPairsState:
    """Pending pick and solved keys of one match-pairs exercise"""

    selection: str | None = None
    solved_keys: set[str] = field(default_factory=set)
    last_matched: str | None = None

    def click(self, token: str, answer: PairMapAnswer) -> MatchClick:
        """Apply a click on a displayed token from either column"""
        if answer.is_solved_token(token, self.solved_keys):
            return MatchClick.IGNORED

        if self.selection is None:
            self.selection = token
            return MatchClick.SELECTED

        pending = self.selection
        key = answer.key_for(pending, token)
        if key is not None:
            self.solved_keys.add(key)
            self.last_matched = key
            self.selection = None
            return MatchClick.MATCHED

        # Mismatches carry no penalty
        if token == pending:
            self.selection = None
            return MatchClick.DESELECTED
        self.selection = token
        return MatchClick.SWITCHED

    def is_complete(self, answer: PairMapAnswer) -> bool:
        return len(self.solved_keys) == len(answer.pairs)


@dataclass
class ExerciseInput:
    """Learner input collected for the current exercise"""

    selected_option: str | None = None
    text: str = ""
    constructed: list[str] = field(default_factory=list)
    match_state: MatchPairsState = field(default_factory=MatchPairsState)


def grade_choice(exercise: Exercise, selected: Any) -> bool:
    """Selected option must equal the expected value exactly"""
    answer = exercise.correct_answer
    if not isinstance(answer, TextAnswer):
        return False
    return selected == answer.value


def grade_free_text(exercise: Exercise, text: Any) -> bool:
    """Normalized input must equal the answer or any acceptable answer"""
    answer = exercise.correct_answer
    cleaned = normalize_answer(text)
    if isinstance(answer, TextListAnswer):
        return any(normalize_answer(candidate) == cleaned for candidate in answer.values)
    if isinstance(answer, TextAnswer):
        return normalize_answer(answer.value) == cleaned
    return False


def grade_reorder(exercise: Exercise, words: Any) -> bool:
    """Constructed sentence must match the target, tolerating . , ? ! differences"""
    answer = exercise.correct_answer
    if not isinstance(answer, TextAnswer) or not isinstance(words, list | tuple):
        return False
    sentence = " ".join(str(word) for word in words)
    target = answer.value
    if sentence.strip() == target.strip():
        return True
    return strip_punctuation(sentence, SENTENCE_PUNCTUATION) == strip_punctuation(
        target, SENTENCE_PUNCTUATION
    )


def grade_pronunciation(exercise: Exercise, transcript: Any) -> bool:
    """Loose spoken-answer match.

    Accepts when either normalized string contains the other. Otherwise
    falls back to a length heuristic: the transcript must be longer than 3
    characters and differ in length from the target by less than 5. This is
    not a phonetic comparison.
    """
    answer = exercise.correct_answer
    if not isinstance(answer, TextAnswer):
        return False
    spoken = normalize_answer(transcript)
    target = normalize_answer(answer.value)
    if spoken in target or target in spoken:
        return True
    return len(spoken) > 3 and abs(len(spoken) - len(target)) < 5


def grade_match_pairs(exercise: Exercise, state: MatchPairsState) -> bool:
    """Every pair must be solved; early submission is incorrect"""
    answer = exercise.correct_answer
    if not isinstance(answer, PairMapAnswer):
        return False
    return state.is_complete(answer)


def grade(exercise: Exercise, submission: ExerciseInput) -> bool:
    """Grade the learner's input for an exercise"""
    exercise_type = exercise.type

    if exercise_type in CHOICE_TYPES:
        correct = grade_choice(exercise, submission.selected_option)
    elif exercise_type in FREE_TEXT_TYPES:
        correct = grade_free_text(exercise, submission.text)
    elif exercise_type == ExerciseType.REORDER_WORDS:
        correct = grade_reorder(exercise, submission.constructed)
    elif exercise_type == ExerciseType.PRONUNCIATION:
        correct = grade_pronunciation(exercise, submission.text)
    elif exercise_type == ExerciseType.MATCH_PAIRS:
        correct = grade_match_pairs(exercise, submission.match_state)
    else:
        raise ValueError(f"Exercise type {exercise_type.value} is not graded locally")

    logger.debug(f"Graded exercise {exercise.id} ({exercise_type.value}): correct={correct}")
    return correct


def expected_answer_text(exercise: Exercise) -> str:
    """Human-readable expected answer, the first one when several are accepted"""
    answer = exercise.correct_answer
    if isinstance(answer, TextListAnswer):
        return answer.values[0]
    if isinstance(answer, PairMapAnswer):
        return ", ".join(f"{left} = {right}" for left, right in answer.pairs.items())
    return answer.value


def feedback_for(exercise: Exercise, correct: bool) -> str:
    """Inline feedback shown after checking an answer"""
    if correct:
        return "Great! Well done."
    if exercise.type == ExerciseType.MATCH_PAIRS:
        return "You need to match all the pairs."
    return f"Incorrect. Correct answer: {expected_answer_text(exercise)}"
