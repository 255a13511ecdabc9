"""
Spaced Repetition System implementation using a simplified SuperMemo 2 algorithm
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Protocol

from .config import get_settings
from .core.content.models import Vocabulary
from .utils import date_to_day_number, day_number_to_date, round_half_away_from_zero

logger = logging.getLogger(__name__)


class Rating(str, Enum):
    """Learner's self-assessment after revealing a card"""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: "Rating | str | int") -> "Rating":
        """Accept a Rating, its name, or the 1-4 button number"""
        if isinstance(value, Rating):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            numbered = {1: cls.AGAIN, 2: cls.HARD, 3: cls.GOOD, 4: cls.EASY}
            if value not in numbered:
                raise ValueError(f"Rating must be between 1 and 4, got {value}")
            return numbered[value]
        return cls(str(value).strip().lower())


class ReviewStage(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"


@dataclass(frozen=True)
class ReviewRecord:
    """Review state of one headword"""

    key: str
    interval_days: int
    repetition_count: int
    easiness_factor: float
    next_due_date: date
    is_new: bool = True

    @property
    def stage(self) -> ReviewStage:
        """New until first review, Learning for reps 0-1, Review afterwards"""
        if self.is_new:
            return ReviewStage.NEW
        if self.repetition_count >= 2:
            return ReviewStage.REVIEW
        return ReviewStage.LEARNING

    def is_due(self, today: date) -> bool:
        return self.next_due_date <= today

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted record shape"""
        return {
            "key": self.key,
            "intervalDays": self.interval_days,
            "repetitionCount": self.repetition_count,
            "easinessFactor": self.easiness_factor,
            "nextDueDate": date_to_day_number(self.next_due_date),
            "isNew": self.is_new,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReviewRecord":
        """Parse a persisted record, raising ValueError on invalid data"""
        if not isinstance(data, dict):
            raise ValueError(f"Review record must be an object, got {type(data).__name__}")
        try:
            record = cls(
                key=str(data["key"]),
                interval_days=int(data["intervalDays"]),
                repetition_count=int(data["repetitionCount"]),
                easiness_factor=float(data["easinessFactor"]),
                next_due_date=day_number_to_date(int(data["nextDueDate"])),
                is_new=data["isNew"],
            )
        except (KeyError, TypeError, OverflowError) as e:
            raise ValueError(f"Invalid review record: {e!r}") from e

        if record.interval_days < 0 or record.repetition_count < 0:
            raise ValueError(f"Negative counters in review record for '{record.key}'")
        if not math.isfinite(record.easiness_factor) or record.easiness_factor < 1.3:
            raise ValueError(f"Invalid easiness factor for '{record.key}'")
        if not isinstance(record.is_new, bool):
            raise ValueError(f"isNew must be a boolean for '{record.key}'")
        return record


class ReviewStore(Protocol):
    """Persistence port for the whole headword -> record mapping"""

    def load(self) -> dict[str, ReviewRecord]: ...

    def save(self, records: dict[str, ReviewRecord]) -> None: ...


@dataclass
class ReviewSummary:
    """Counts of a lesson's vocabulary by review stage"""

    total: int = 0
    new: int = 0
    learning: int = 0
    review: int = 0
    due: int = 0


class SpacedRepetitionSystem:
    """Simplified SuperMemo 2 update rules"""

    def __init__(self, default_easiness: float | None = None, min_easiness: float | None = None):
        settings = get_settings()
        self.default_easiness = (
            default_easiness if default_easiness is not None else settings.default_easiness_factor
        )
        self.min_easiness = min_easiness if min_easiness is not None else settings.min_easiness_factor

    def new_record(self, headword: str, today: date) -> ReviewRecord:
        """Fresh record for a headword, due immediately"""
        return ReviewRecord(
            key=headword,
            interval_days=0,
            repetition_count=0,
            easiness_factor=self.default_easiness,
            next_due_date=today,
            is_new=True,
        )

    def calculate_review(self, record: ReviewRecord, rating: Rating, review_date: date) -> ReviewRecord:
        """
        Calculate the record after one review

        Args:
            record: Current review state
            rating: Learner rating (again, hard, good, easy)
            review_date: Day the review happens

        Returns:
            New ReviewRecord; the input is left untouched
        """
        rating = Rating.parse(rating)
        logger.debug(
            f"Calculating review for '{record.key}': rating={rating.value}, "
            f"reps={record.repetition_count}, interval={record.interval_days}, "
            f"ef={record.easiness_factor}"
        )

        if rating == Rating.AGAIN:
            interval = 0
            repetitions = 0
            easiness = record.easiness_factor
        else:
            easiness = self._calculate_new_easiness(rating, record.easiness_factor)
            interval = self._calculate_new_interval(
                record.repetition_count, record.interval_days, easiness
            )
            repetitions = record.repetition_count + 1

        return replace(
            record,
            interval_days=interval,
            repetition_count=repetitions,
            easiness_factor=easiness,
            next_due_date=review_date + timedelta(days=interval),
            is_new=False,
        )

    def _calculate_new_easiness(self, rating: Rating, current_easiness: float) -> float:
        """Adjust easiness factor for a passing rating"""
        if rating == Rating.HARD:
            return max(self.min_easiness, current_easiness - 0.2)
        if rating == Rating.EASY:
            return current_easiness + 0.15
        return current_easiness

    def _calculate_new_interval(self, repetitions: int, current_interval: int, easiness: float) -> int:
        """Interval from the pre-update interval and the adjusted easiness"""
        if repetitions == 0:
            return 1
        if repetitions == 1:
            return 6
        return max(0, round_half_away_from_zero(current_interval * easiness))


class ReviewScheduler:
    """Tracks vocabulary review state through a ReviewStore"""

    def __init__(
        self,
        store: ReviewStore,
        srs_system: SpacedRepetitionSystem | None = None,
        clock: Callable[[], date | datetime] = date.today,
    ):
        self.store = store
        self.srs_system = srs_system or get_srs_system()
        self._clock = clock

    def today(self) -> date:
        """Current calendar day, time of day discarded"""
        now = self._clock()
        if isinstance(now, datetime):
            return now.date()
        return now

    def ensure_tracked(self, vocabulary: list[Vocabulary]) -> int:
        """Create records for unseen headwords; returns how many were added"""
        records = self.store.load()
        today = self.today()
        added = 0

        for item in vocabulary:
            if item.headword not in records:
                records[item.headword] = self.srs_system.new_record(item.headword, today)
                added += 1

        if added:
            self.store.save(records)
            logger.info(f"Started tracking {added} new words")
        return added

    def due_items(self, vocabulary: list[Vocabulary]) -> list[Vocabulary]:
        """Items whose record is due today, in the given order"""
        records = self.store.load()
        today = self.today()
        due = []
        for item in vocabulary:
            record = records.get(item.headword)
            if record is None or record.is_due(today):
                due.append(item)
        return due

    def review(self, headword: str, rating: Rating | str | int) -> ReviewRecord:
        """Apply one review outcome and persist the full mapping"""
        rating = Rating.parse(rating)
        records = self.store.load()
        today = self.today()

        current = records.get(headword)
        if current is None:
            logger.info(f"No review record for '{headword}', starting a new one")
            current = self.srs_system.new_record(headword, today)

        updated = self.srs_system.calculate_review(current, rating, today)
        records[headword] = updated
        self.store.save(records)

        logger.info(
            f"Reviewed '{headword}' as {rating.value}: interval={updated.interval_days}, "
            f"ef={updated.easiness_factor:.2f}, next={updated.next_due_date}"
        )
        return updated

    def get_record(self, headword: str) -> ReviewRecord | None:
        return self.store.load().get(headword)

    def summary(self, vocabulary: list[Vocabulary]) -> ReviewSummary:
        """Count a lesson's words by stage and due-ness"""
        records = self.store.load()
        today = self.today()
        result = ReviewSummary(total=len(vocabulary))

        for item in vocabulary:
            record = records.get(item.headword)
            if record is None:
                result.new += 1
                result.due += 1
                continue
            if record.stage == ReviewStage.NEW:
                result.new += 1
            elif record.stage == ReviewStage.LEARNING:
                result.learning += 1
            else:
                result.review += 1
            if record.is_due(today):
                result.due += 1

        return result


# Global instance
_srs_system = None


def get_srs_system() -> SpacedRepetitionSystem:
    """Get global SRS system instance"""
    global _srs_system
    if _srs_system is None:
        _srs_system = SpacedRepetitionSystem()
    return _srs_system
