"""
Utility functions for the language trainer
"""

import inspect
import logging
import math
import random
import re
import time
from datetime import date, timedelta
from functools import wraps
from typing import Any

logger = logging.getLogger(__name__)

# Punctuation removed from free-text and spoken answers before comparison
ANSWER_PUNCTUATION = r"[.,/#!$%^&*;:{}=\-_`~()]"

# Punctuation tolerated when comparing reordered sentences
SENTENCE_PUNCTUATION = r"[.,?!]"

EPOCH = date(1970, 1, 1)


def strip_punctuation(text: str, pattern: str = ANSWER_PUNCTUATION) -> str:
    """Remove every character matched by pattern"""
    return re.sub(pattern, "", text)


def normalize_answer(text: Any) -> str:
    """Lower-case, strip answer punctuation and trim surrounding whitespace"""
    if not isinstance(text, str):
        return ""
    return strip_punctuation(text.lower()).strip()


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, halves away from zero"""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def shuffled(items: list[Any], rng: random.Random | None = None) -> list[Any]:
    """Return a shuffled copy of items using the given random source"""
    result = list(items)
    (rng or random).shuffle(result)
    return result


def date_to_day_number(day: date) -> int:
    """Convert a calendar day to days since 1970-01-01"""
    return (day - EPOCH).days


def day_number_to_date(day_number: int) -> date:
    """Convert days since 1970-01-01 back to a calendar day"""
    return EPOCH + timedelta(days=day_number)


def calculate_success_rate(correct: int, total: int) -> float:
    """Calculate success rate percentage"""
    if total == 0:
        return 0.0
    return (correct / total) * 100


class Timer:
    """Simple timer for measuring duration"""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start the timer"""
        self.start_time = time.time()
        self.end_time = None

    def stop(self):
        """Stop the timer"""
        if self.start_time is not None:
            self.end_time = time.time()

    def elapsed(self) -> float | None:
        """Get elapsed time in seconds"""
        if self.start_time is None:
            return None

        end = self.end_time or time.time()
        return end - self.start_time


def log_execution_time(func):
    """Decorator to log function execution time"""

    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = await func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.error(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.error(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    else:
        return sync_wrapper
