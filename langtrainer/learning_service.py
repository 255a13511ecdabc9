"""
Learning service wiring content, sessions, scheduling and persistence
"""

import logging
import random
from collections.abc import Callable
from datetime import date, datetime

from .config import Settings, get_settings
from .conversation import ConversationPartner
from .core.content.models import Lesson, Section
from .core.database.database_manager import DatabaseManager
from .core.progress.course_progress import CourseProgress
from .core.session.practice_session import PracticeSession, SessionSummary
from .core.session.review_session import ReviewSession
from .spaced_repetition import ReviewScheduler, ReviewSummary, SpacedRepetitionSystem
from .speech import TextToSpeech

logger = logging.getLogger(__name__)


class LearningService:
    """Entry point for a host application driving one learner's progress.

    Assumes a single active session per persisted store.
    """

    def __init__(
        self,
        sections: list[Section],
        db_manager: DatabaseManager,
        settings: Settings | None = None,
        partner: ConversationPartner | None = None,
        tts: TextToSpeech | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], date | datetime] = date.today,
    ):
        self.settings = settings or get_settings()
        self.db_manager = db_manager
        self.partner = partner
        self.tts = tts
        self.rng = rng or random.Random()

        self.course = CourseProgress(
            sections,
            store=db_manager.course_repo,
            three_star_threshold=self.settings.three_star_threshold,
        )
        self.course.load()

        self.scheduler = ReviewScheduler(
            db_manager.review_repo,
            SpacedRepetitionSystem(
                default_easiness=self.settings.default_easiness_factor,
                min_easiness=self.settings.min_easiness_factor,
            ),
            clock=clock,
        )
        self.active_session: PracticeSession | None = None

    @property
    def experience(self) -> int:
        return self.db_manager.get_experience()

    def open_lesson(self, lesson_id: str) -> Lesson | None:
        """Unlocked lesson by id, or None"""
        lesson = self.course.open_lesson(lesson_id)
        if lesson is None:
            logger.info(f"Lesson '{lesson_id}' is locked or unknown")
        return lesson

    def start_practice(self, lesson_id: str) -> PracticeSession | None:
        """Begin a practice session; replaces any session already running"""
        lesson = self.open_lesson(lesson_id)
        if lesson is None:
            return None

        self.active_session = PracticeSession(
            lesson.exercises,
            lesson_id=lesson.id,
            lesson_title=lesson.title,
            partner=self.partner,
            rng=self.rng,
            tts=self.tts,
            points_per_exercise=self.settings.points_per_exercise,
        )
        logger.info(f"Started practice for lesson '{lesson_id}' with {len(lesson.exercises)} exercises")
        return self.active_session

    def exit_practice(self) -> None:
        """Drop the running session without recording anything"""
        if self.active_session is not None:
            logger.info(f"Practice for lesson '{self.active_session.lesson_id}' exited early")
        self.active_session = None

    def finish_practice(self) -> SessionSummary | None:
        """Record a completed session: award XP and update the course graph"""
        session = self.active_session
        if session is None or not session.is_complete:
            return None

        summary = session.summary()
        self.db_manager.add_experience(summary.score)
        self.course.apply_completion(summary.lesson_id, summary.score)
        self.active_session = None
        return summary

    def start_review(self, lesson_id: str) -> ReviewSession | None:
        """Begin a flashcard review of an unlocked lesson's vocabulary"""
        lesson = self.open_lesson(lesson_id)
        if lesson is None:
            return None
        return ReviewSession(self.scheduler, lesson.vocabulary)

    def review_summary(self, lesson_id: str) -> ReviewSummary | None:
        lesson = self.course.find_lesson(lesson_id)
        if lesson is None:
            return None
        return self.scheduler.summary(lesson.vocabulary)
