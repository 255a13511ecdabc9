"""
Shared fixtures for language trainer tests
"""

from datetime import date

import pytest

from langtrainer.core.content.models import (
    Exercise,
    ExerciseType,
    Lesson,
    PairMapAnswer,
    Section,
    TextAnswer,
    TextListAnswer,
    Vocabulary,
)


class FakeClock:
    """Callable clock whose day can be moved by tests"""

    def __init__(self, today: date):
        self.today = today

    def __call__(self):
        return self.today


@pytest.fixture
def clock():
    return FakeClock(date(2024, 3, 1))


@pytest.fixture
def vocabulary():
    """Vocabulary of a greetings lesson"""
    return [
        Vocabulary("Hello", "Cześć", "/həˈləʊ/", "Hello, Tom!", "Cześć, Tom!"),
        Vocabulary("Goodbye", "Do widzenia"),
        Vocabulary("Thank you", "Dziękuję"),
    ]


@pytest.fixture
def choice_exercise():
    return Exercise(
        id="ex_choice",
        type=ExerciseType.MULTIPLE_CHOICE,
        question="How do you say 'Cześć'?",
        correct_answer=TextAnswer("Hello"),
        options=("Hello", "Goodbye", "Thanks"),
    )


@pytest.fixture
def translate_exercise():
    return Exercise(
        id="ex_translate",
        type=ExerciseType.TRANSLATE_PL_EN,
        question="Translate: jabłko (rodzajnik)",
        correct_answer=TextListAnswer(("a", "an")),
    )


@pytest.fixture
def fill_blank_exercise():
    return Exercise(
        id="ex_fill",
        type=ExerciseType.FILL_BLANK,
        question="I eat ___ apple.",
        correct_answer=TextListAnswer(("a", "an")),
    )


@pytest.fixture
def reorder_exercise():
    return Exercise(
        id="ex_reorder",
        type=ExerciseType.REORDER_WORDS,
        question="Build the sentence",
        correct_answer=TextAnswer("Nice to meet you."),
        options=("meet", "Nice", "you.", "to"),
    )


@pytest.fixture
def match_exercise():
    return Exercise(
        id="ex_match",
        type=ExerciseType.MATCH_PAIRS,
        question="Match the pairs",
        correct_answer=PairMapAnswer({"Hello": "Cześć", "Bye": "Pa"}),
    )


@pytest.fixture
def pronunciation_exercise():
    return Exercise(
        id="ex_say",
        type=ExerciseType.PRONUNCIATION,
        question="Say: Thank you",
        correct_answer=TextAnswer("Thank you"),
    )


@pytest.fixture
def conversation_exercise():
    return Exercise(
        id="ex_chat",
        type=ExerciseType.AI_CONVERSATION,
        question="Introduce yourself",
        correct_answer=TextAnswer(""),
    )


def _make_lesson(lesson_id: str, locked: bool = True, exercises=None, vocabulary=None) -> Lesson:
    return Lesson(
        id=lesson_id,
        level="A1",
        title=f"Lesson {lesson_id}",
        is_locked=locked,
        exercises=list(exercises or []),
        vocabulary=list(vocabulary or []),
    )


@pytest.fixture
def sections(choice_exercise, translate_exercise, vocabulary):
    """Two sections: s1 with two lessons, s2 with one"""
    return [
        Section(
            id="s1",
            title="Basics",
            lessons=[
                _make_lesson(
                    "l1",
                    locked=False,
                    exercises=[choice_exercise, translate_exercise],
                    vocabulary=vocabulary,
                ),
                _make_lesson("l2"),
            ],
        ),
        Section(id="s2", title="Travel", lessons=[_make_lesson("l3")]),
    ]


@pytest.fixture
def make_lesson():
    """Factory for bare lessons"""
    return _make_lesson
