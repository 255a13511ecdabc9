"""
Lesson completion, stars and unlocking across the course graph
"""

import logging
from typing import Any, Protocol

from ...config import get_settings
from ..content.models import Exercise, Lesson, Section

logger = logging.getLogger(__name__)


class CourseProgressStore(Protocol):
    def load(self) -> dict[str, dict[str, Any]]: ...

    def save(self, snapshot: dict[str, dict[str, Any]]) -> None: ...


class CourseProgress:
    """Applies finished practice sessions to the ordered section list"""

    def __init__(
        self,
        sections: list[Section],
        store: CourseProgressStore | None = None,
        three_star_threshold: int | None = None,
    ):
        self.sections = sections
        self.store = store
        self.three_star_threshold = (
            three_star_threshold
            if three_star_threshold is not None
            else get_settings().three_star_threshold
        )

    def find_position(self, lesson_id: str) -> tuple[int, int] | None:
        """(section index, lesson index) of a lesson, or None"""
        for section_index, section in enumerate(self.sections):
            for lesson_index, lesson in enumerate(section.lessons):
                if lesson.id == lesson_id:
                    return section_index, lesson_index
        return None

    def find_lesson(self, lesson_id: str) -> Lesson | None:
        position = self.find_position(lesson_id)
        if position is None:
            return None
        section_index, lesson_index = position
        return self.sections[section_index].lessons[lesson_index]

    def levels(self) -> list[str]:
        """Levels present in the course, in order of first appearance"""
        seen: list[str] = []
        for section in self.sections:
            for lesson in section.lessons:
                if lesson.level not in seen:
                    seen.append(lesson.level)
        return seen

    def sections_for_level(self, level: str) -> list[Section]:
        """Sections holding lessons of a level; empty when the level has no content.

        The returned sections share their lesson objects with the course, so
        progress shown through them stays current.
        """
        result = []
        for section in self.sections:
            lessons = [lesson for lesson in section.lessons if lesson.level == level]
            if lessons:
                result.append(
                    Section(
                        id=section.id,
                        title=section.title,
                        description=section.description,
                        lessons=lessons,
                    )
                )
        return result

    def open_lesson(self, lesson_id: str) -> Lesson | None:
        """The lesson if it exists and is unlocked"""
        lesson = self.find_lesson(lesson_id)
        if lesson is None or lesson.is_locked:
            return None
        return lesson

    def exercises_for(self, lesson_id: str) -> list[Exercise]:
        """Exercises of an unlocked lesson; empty for locked or unknown ones"""
        lesson = self.open_lesson(lesson_id)
        return list(lesson.exercises) if lesson else []

    def stars_for_score(self, score: int) -> int:
        return 3 if score > self.three_star_threshold else 1

    def apply_completion(self, lesson_id: str, score: int) -> Lesson | None:
        """Mark a lesson completed, award stars and unlock its successor.

        Unknown lesson ids are ignored without changing anything.
        """
        position = self.find_position(lesson_id)
        if position is None:
            logger.warning(f"Completion for unknown lesson '{lesson_id}' ignored")
            return None

        section_index, lesson_index = position
        section = self.sections[section_index]
        lesson = section.lessons[lesson_index]

        lesson.is_completed = True
        lesson.stars = max(lesson.stars, self.stars_for_score(score))

        unlocked = None
        if lesson_index + 1 < len(section.lessons):
            unlocked = section.lessons[lesson_index + 1]
        elif section_index + 1 < len(self.sections) and self.sections[section_index + 1].lessons:
            unlocked = self.sections[section_index + 1].lessons[0]

        if unlocked is not None:
            unlocked.is_locked = False
            logger.info(f"Lesson '{lesson_id}' completed, unlocked '{unlocked.id}'")
        else:
            logger.info(f"Lesson '{lesson_id}' completed, end of course reached")

        self.save()
        return lesson

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Progress flags of every lesson keyed by id"""
        return {
            lesson.id: {
                "completed": lesson.is_completed,
                "stars": lesson.stars,
                "locked": lesson.is_locked,
            }
            for section in self.sections
            for lesson in section.lessons
        }

    def restore(self, snapshot: dict[str, dict[str, Any]]) -> int:
        """Apply stored flags to known lessons; returns how many were restored"""
        restored = 0
        for lesson_id, entry in snapshot.items():
            lesson = self.find_lesson(lesson_id)
            if lesson is None or not isinstance(entry, dict):
                continue
            try:
                stars = int(entry.get("stars", lesson.stars))
            except (TypeError, ValueError):
                stars = lesson.stars
            lesson.is_completed = bool(entry.get("completed", lesson.is_completed))
            lesson.stars = max(lesson.stars, min(3, max(0, stars)))
            lesson.is_locked = bool(entry.get("locked", lesson.is_locked))
            restored += 1
        return restored

    def load(self) -> int:
        if self.store is None:
            return 0
        restored = self.restore(self.store.load())
        logger.info(f"Restored progress for {restored} lessons")
        return restored

    def save(self) -> None:
        if self.store is not None:
            self.store.save(self.snapshot())
