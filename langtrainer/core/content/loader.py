"""
Course content loading from authored JSON files
"""

import json
import logging
from pathlib import Path
from typing import Any

from .models import (
    CHOICE_TYPES,
    FREE_TEXT_TYPES,
    Answer,
    DialogLine,
    Exercise,
    ExerciseType,
    GrammarRule,
    GrammarSection,
    Lesson,
    PairMapAnswer,
    Phrase,
    Section,
    TextAnswer,
    TextListAnswer,
    Vocabulary,
)

logger = logging.getLogger(__name__)


class ContentError(ValueError):
    """Raised when authored course content is malformed"""


def _answer_from_raw(exercise_id: str, exercise_type: ExerciseType, raw: Any) -> Answer:
    """Build the tagged answer variant for an exercise"""
    if exercise_type == ExerciseType.MATCH_PAIRS:
        if not isinstance(raw, dict) or not raw:
            raise ContentError(f"Exercise '{exercise_id}' needs a non-empty pair mapping")
        pairs = {str(key): str(value) for key, value in raw.items()}
        if len(set(pairs.values())) != len(pairs):
            raise ContentError(f"Exercise '{exercise_id}' has duplicate right-hand tokens")
        return PairMapAnswer(pairs=pairs)

    if exercise_type == ExerciseType.AI_CONVERSATION:
        return TextAnswer(value=str(raw or ""))

    if isinstance(raw, list):
        if exercise_type not in FREE_TEXT_TYPES:
            raise ContentError(
                f"Exercise '{exercise_id}' of type {exercise_type.value} cannot list answers"
            )
        values = tuple(str(value) for value in raw)
        if not values:
            raise ContentError(f"Exercise '{exercise_id}' has no acceptable answers")
        return TextListAnswer(values=values)

    if isinstance(raw, str):
        return TextAnswer(value=raw)

    raise ContentError(f"Exercise '{exercise_id}' has an unsupported answer shape")


def _exercise_from_dict(raw: dict[str, Any]) -> Exercise:
    """Build an exercise from raw JSON content"""
    exercise_id = str(raw["id"])
    try:
        exercise_type = ExerciseType(raw["type"])
    except ValueError:
        raise ContentError(f"Exercise '{exercise_id}' has unknown type {raw['type']!r}") from None

    options = tuple(str(option) for option in raw.get("options") or [])
    if exercise_type in CHOICE_TYPES and not options:
        raise ContentError(f"Exercise '{exercise_id}' needs options")

    return Exercise(
        id=exercise_id,
        type=exercise_type,
        question=str(raw.get("question", "")),
        correct_answer=_answer_from_raw(exercise_id, exercise_type, raw.get("correctAnswer")),
        audio_text=raw.get("audioText"),
        options=options,
        explanation=raw.get("explanation"),
    )


def _vocabulary_from_dict(raw: dict[str, Any]) -> Vocabulary:
    return Vocabulary(
        headword=str(raw["en"]),
        translation=str(raw["pl"]),
        phonetic=str(raw.get("phonetic", "")),
        example=str(raw.get("example_en", "")),
        example_translation=str(raw.get("example_pl", "")),
    )


def _grammar_from_dict(raw: dict[str, Any] | None) -> GrammarSection | None:
    if not raw:
        return None
    return GrammarSection(
        topic=str(raw.get("topic", "")),
        explanation=str(raw.get("explanation", "")),
        rules=tuple(
            GrammarRule(rule=str(item["rule"]), example=str(item.get("example", "")))
            for item in raw.get("rules", [])
        ),
    )


def _lesson_from_dict(raw: dict[str, Any]) -> Lesson:
    """Build a lesson from raw JSON content"""
    return Lesson(
        id=str(raw["id"]),
        level=str(raw.get("level", "A1")),
        title=str(raw.get("title", "")),
        description=str(raw.get("description", "")),
        is_locked=bool(raw.get("isLocked", True)),
        is_completed=bool(raw.get("isCompleted", False)),
        stars=max(0, min(3, int(raw.get("stars", 0)))),
        vocabulary=[_vocabulary_from_dict(item) for item in raw.get("vocabulary", [])],
        phrases=[
            Phrase(text=str(item["en"]), translation=str(item["pl"]))
            for item in raw.get("phrases", [])
        ],
        grammar=_grammar_from_dict(raw.get("grammar")),
        dialogs=[
            [
                DialogLine(
                    speaker=str(line.get("speaker", "")),
                    text=str(line.get("text", "")),
                    translation=str(line.get("translation", "")),
                )
                for line in dialog
            ]
            for dialog in raw.get("dialogs", [])
        ],
        exercises=[_exercise_from_dict(item) for item in raw.get("exercises", [])],
    )


def sections_from_data(data: list[dict[str, Any]]) -> list[Section]:
    """Build the ordered section list from decoded JSON"""
    try:
        sections = [
            Section(
                id=str(raw["id"]),
                title=str(raw.get("title", "")),
                description=str(raw.get("description", "")),
                lessons=[_lesson_from_dict(lesson) for lesson in raw.get("lessons", [])],
            )
            for raw in data
        ]
    except (KeyError, TypeError, AttributeError) as e:
        raise ContentError(f"Malformed course content: {e!r}") from e

    _validate_unique_ids(sections)
    return sections


def load_sections(path: Path | str) -> list[Section]:
    """Load the course section list from a JSON file"""
    file_path = Path(path)
    logger.info(f"Loading course content from {file_path}")
    try:
        data = json.loads(file_path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise ContentError(f"Course file {file_path} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise ContentError(f"Course file {file_path} must contain a list of sections")

    sections = sections_from_data(data)
    lesson_count = sum(len(section.lessons) for section in sections)
    logger.info(f"Loaded {len(sections)} sections with {lesson_count} lessons")
    return sections


def _validate_unique_ids(sections: list[Section]) -> None:
    """Lesson ids must be unique across the whole course"""
    seen: set[str] = set()
    for section in sections:
        for lesson in section.lessons:
            if lesson.id in seen:
                raise ContentError(f"Duplicate lesson id: {lesson.id}")
            seen.add(lesson.id)
