"""
Content models for lessons, vocabulary and exercises
"""

from dataclasses import dataclass, field
from enum import Enum


class ExerciseType(str, Enum):
    """Exercise variants understood by the evaluator"""

    FILL_BLANK = "FILL_BLANK"
    TRANSLATE_EN_PL = "TRANSLATE_EN_PL"
    TRANSLATE_PL_EN = "TRANSLATE_PL_EN"
    REORDER_WORDS = "REORDER_WORDS"
    MATCH_PAIRS = "MATCH_PAIRS"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    LISTENING_CHOOSE = "LISTENING_CHOOSE"
    PRONUNCIATION = "PRONUNCIATION"
    AI_CONVERSATION = "AI_CONVERSATION"


CHOICE_TYPES = frozenset(
    {ExerciseType.MULTIPLE_CHOICE, ExerciseType.LISTENING_CHOOSE, ExerciseType.TRUE_FALSE}
)
FREE_TEXT_TYPES = frozenset(
    {ExerciseType.TRANSLATE_EN_PL, ExerciseType.TRANSLATE_PL_EN, ExerciseType.FILL_BLANK}
)


@dataclass(frozen=True)
class TextAnswer:
    """Single expected string"""

    value: str


@dataclass(frozen=True)
class TextListAnswer:
    """Any of several acceptable strings"""

    values: tuple[str, ...]


@dataclass(frozen=True)
class PairMapAnswer:
    """Left token -> right token mapping, unique on both sides"""

    pairs: dict[str, str] = field(default_factory=dict)

    def key_for(self, first: str, second: str) -> str | None:
        """Return the left key if the two tokens form a pair in either order"""
        if first in self.pairs and self.pairs[first] == second:
            return first
        if second in self.pairs and self.pairs[second] == first:
            return second
        return None

    def is_solved_token(self, token: str, solved_keys: set[str]) -> bool:
        """Check whether token belongs to an already solved pair"""
        return any(key == token or self.pairs[key] == token for key in solved_keys)


Answer = TextAnswer | TextListAnswer | PairMapAnswer


@dataclass(frozen=True)
class Vocabulary:
    """Vocabulary item, identified by its headword"""

    headword: str
    translation: str
    phonetic: str = ""
    example: str = ""
    example_translation: str = ""


@dataclass(frozen=True)
class Phrase:
    """Useful phrase with its translation"""

    text: str
    translation: str


@dataclass(frozen=True)
class GrammarRule:
    rule: str
    example: str


@dataclass(frozen=True)
class GrammarSection:
    """Grammar notes attached to a lesson"""

    topic: str
    explanation: str
    rules: tuple[GrammarRule, ...] = ()


@dataclass(frozen=True)
class DialogLine:
    speaker: str
    text: str
    translation: str


@dataclass(frozen=True)
class Exercise:
    """One practice exercise"""

    id: str
    type: ExerciseType
    question: str
    correct_answer: Answer
    audio_text: str | None = None
    options: tuple[str, ...] = ()
    explanation: str | None = None

    @property
    def is_conversation(self) -> bool:
        return self.type == ExerciseType.AI_CONVERSATION


@dataclass
class Lesson:
    """Lesson with study content, practice exercises and progress flags"""

    id: str
    level: str
    title: str
    description: str = ""
    is_locked: bool = True
    is_completed: bool = False
    stars: int = 0
    vocabulary: list[Vocabulary] = field(default_factory=list)
    phrases: list[Phrase] = field(default_factory=list)
    grammar: GrammarSection | None = None
    dialogs: list[list[DialogLine]] = field(default_factory=list)
    exercises: list[Exercise] = field(default_factory=list)


@dataclass
class Section:
    """Ordered group of lessons, the unit of cross-section unlocking"""

    id: str
    title: str
    description: str = ""
    lessons: list[Lesson] = field(default_factory=list)
