"""
Unit tests for utility functions
"""

import random
from datetime import date

import pytest

from langtrainer.utils import (
    SENTENCE_PUNCTUATION,
    Timer,
    calculate_success_rate,
    date_to_day_number,
    day_number_to_date,
    log_execution_time,
    normalize_answer,
    round_half_away_from_zero,
    shuffled,
    strip_punctuation,
)


class TestTextNormalization:
    """Test answer normalization"""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("  Hello! ", "hello"),
            ("It's (fine).", "it's fine"),
            ("a-b_c", "abc"),
            ("Why?", "why?"),
            (None, ""),
            (42, ""),
        ],
    )
    def test_normalize_answer(self, text, expected):
        assert normalize_answer(text) == expected

    def test_sentence_punctuation(self):
        assert strip_punctuation("Nice, to meet you?!", SENTENCE_PUNCTUATION) == "Nice to meet you"


class TestRounding:
    """Test rounding of scheduled intervals"""

    @pytest.mark.parametrize(
        "value, expected",
        [(4.5, 5), (2.5, 3), (15.9, 16), (7.4, 7), (-2.5, -3), (0.0, 0)],
    )
    def test_round_half_away_from_zero(self, value, expected):
        assert round_half_away_from_zero(value) == expected


class TestDayNumbers:
    """Test persisted day numbers"""

    def test_epoch(self):
        assert date_to_day_number(date(1970, 1, 1)) == 0

    def test_round_trip(self):
        day = date(2024, 2, 29)
        assert day_number_to_date(date_to_day_number(day)) == day


class TestHelpers:
    """Test small helpers"""

    def test_shuffled_returns_copy(self):
        items = [1, 2, 3, 4, 5]
        result = shuffled(items, random.Random(0))

        assert sorted(result) == items
        assert items == [1, 2, 3, 4, 5]

    def test_shuffled_is_deterministic_with_seed(self):
        assert shuffled(list(range(10)), random.Random(5)) == shuffled(list(range(10)), random.Random(5))

    def test_calculate_success_rate(self):
        assert calculate_success_rate(3, 4) == 75.0
        assert calculate_success_rate(0, 0) == 0.0


class TestTimer:
    """Test Timer class"""

    def test_not_started(self):
        timer = Timer()
        assert timer.elapsed() is None

    def test_stopped_timer(self):
        timer = Timer()
        timer.start()
        timer.stop()

        assert timer.elapsed() >= 0
        assert timer.elapsed() == timer.elapsed()


class TestLogExecutionTime:
    """Test the timing decorator"""

    def test_sync_function(self):
        @log_execution_time
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"

    @pytest.mark.asyncio
    async def test_async_function(self):
        @log_execution_time
        async def fetch():
            return "done"

        assert await fetch() == "done"

    def test_errors_propagate(self):
        @log_execution_time
        def fail():
            raise ValueError("boom")

        with pytest.raises(ValueError):
            fail()
