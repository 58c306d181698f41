"""
Tests for the core clock and exception hierarchy.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.clock import MockClock, SystemClock, from_iso8601, to_iso8601
from core.exceptions import (
    AlertServiceException,
    ConfigurationError,
    DeliveryError,
    IngestionError,
    IngestionSourceUnavailable,
    Severity,
)


START = datetime(2025, 6, 2, tzinfo=timezone.utc)


# ============================================================
# CLOCK
# ============================================================

class TestMockClock:
    """Tests for the deterministic clock."""

    def test_now_ms_is_exact(self):
        clock = MockClock(START)

        assert clock.now_ms() == 1748736000000
        clock.advance(milliseconds=1)
        assert clock.now_ms() == 1748736000001

    def test_advance(self):
        clock = MockClock(START)

        clock.advance(seconds=30)
        clock.advance(minutes=1)

        assert clock.now() == START + timedelta(seconds=90)

    def test_naive_start_is_utc(self):
        clock = MockClock(datetime(2025, 6, 2))
        assert clock.now().tzinfo is timezone.utc

    def test_freeze(self):
        clock = MockClock(START)
        later = START + timedelta(hours=1)

        with clock.freeze(later):
            assert clock.now() == later
        assert clock.now() == START

    def test_system_clock_is_utc(self):
        assert SystemClock().now().tzinfo is timezone.utc


class TestIso8601:
    """Tests for timestamp parsing."""

    def test_trailing_z(self):
        dt = from_iso8601("2025-06-02T04:20:14.162Z")

        assert dt == datetime(2025, 6, 2, 4, 20, 14, 162000, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        dt = from_iso8601("2025-06-02T06:20:14+02:00")
        assert dt.hour == 4
        assert dt.utcoffset() == timedelta(0)

    def test_invalid(self):
        with pytest.raises(ValueError):
            from_iso8601("not a date")

    def test_to_iso8601_naive(self):
        assert to_iso8601(datetime(2025, 6, 2)) == "2025-06-02T00:00:00+00:00"


# ============================================================
# EXCEPTIONS
# ============================================================

class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_configuration_error_is_fatal(self):
        error = ConfigurationError("bad", config_key="X", actual_value="y" * 200)

        assert error.is_fatal
        assert error.context["config_key"] == "X"
        assert len(error.context["actual_value"]) == 100

    def test_ingestion_errors(self):
        assert not IngestionError("read failed").is_fatal

        error = IngestionSourceUnavailable("missing", path="/var/log/x.log")
        assert error.is_fatal
        assert isinstance(error, IngestionError)
        assert error.context["path"] == "/var/log/x.log"

    def test_delivery_error_is_recoverable(self):
        error = DeliveryError("rejected", status=400, description="chat not found")

        assert error.recoverable
        assert error.severity == Severity.MEDIUM
        assert "status=400" in error.to_log_format()

    def test_cause_recorded(self):
        error = AlertServiceException("wrapped", cause=OSError("disk"))

        data = error.to_dict()

        assert data["type"] == "AlertServiceException"
        assert data["context"]["cause_type"] == "OSError"
        assert data["cause"] == "disk"
