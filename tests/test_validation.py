"""Tests for field-level validation helpers."""

import pytest
from datetime import date, datetime

from ganttdeck.errors import ValidationError
from ganttdeck.models.task import TaskStatus
from ganttdeck.engine.validation import (
    coerce_date,
    coerce_enum,
    normalize_progress,
    validate_date_order,
    validate_duration,
    validate_lag_time,
    validate_not_self_dependency,
    validate_not_self_parent,
    validate_progress,
    validate_title,
)


class TestDates:
    def test_coerce_date_accepts_common_forms(self):
        assert coerce_date(None, "start_date") is None
        assert coerce_date(date(2026, 1, 2), "start_date") == date(2026, 1, 2)
        assert coerce_date(datetime(2026, 1, 2, 15, 30), "start_date") == date(2026, 1, 2)
        assert coerce_date("2026-01-02", "start_date") == date(2026, 1, 2)
        assert coerce_date("2026-01-02 08:00", "start_date") == date(2026, 1, 2)

    def test_coerce_date_rejects_garbage(self):
        with pytest.raises(ValidationError, match="start_date"):
            coerce_date("next tuesday", "start_date")
        with pytest.raises(ValidationError):
            coerce_date(20260102, "start_date")

    def test_date_order(self):
        validate_date_order(date(2026, 1, 1), date(2026, 1, 1))
        validate_date_order(None, date(2026, 1, 1))
        validate_date_order(date(2026, 1, 1), None)
        with pytest.raises(ValidationError):
            validate_date_order(date(2026, 1, 2), date(2026, 1, 1))


class TestProgress:
    def test_bounds(self):
        assert validate_progress(0) == 0
        assert validate_progress(100) == 100
        assert validate_progress(33.4) == 33
        for bad in (-0.5, 100.5, True, "10"):
            with pytest.raises(ValidationError):
                validate_progress(bad)

    def test_normalize_only_rescales_fractions(self):
        assert normalize_progress(0.25) == 25
        assert normalize_progress(0.005) == 0
        assert normalize_progress(1) == 1
        assert normalize_progress(0) == 0
        assert normalize_progress(1.0) == 1.0
        assert normalize_progress(150) == 150


class TestOtherFields:
    def test_title(self):
        assert validate_title(" Plan ") == "Plan"
        for bad in (None, "", "   ", 5, "x" * 501):
            with pytest.raises(ValidationError):
                validate_title(bad)

    def test_enum(self):
        assert coerce_enum("blocked", TaskStatus, "task status") == "blocked"
        assert coerce_enum(TaskStatus.CANCELLED, TaskStatus, "task status") == "cancelled"
        with pytest.raises(ValidationError, match="Invalid task status"):
            coerce_enum("paused", TaskStatus, "task status")

    def test_duration(self):
        assert validate_duration(None) is None
        assert validate_duration(0) == 0
        for bad in (-1, 2.5, "3", False):
            with pytest.raises(ValidationError):
                validate_duration(bad)

    def test_lag_time_is_signed_integer(self):
        assert validate_lag_time(-3) == -3
        with pytest.raises(ValidationError):
            validate_lag_time(0.5)

    def test_self_references(self):
        validate_not_self_parent(1, None)
        validate_not_self_parent(1, 2)
        with pytest.raises(ValidationError):
            validate_not_self_parent(1, 1)
        validate_not_self_dependency(1, 2)
        with pytest.raises(ValidationError):
            validate_not_self_dependency(3, 3)
