"""
Tests for rate-limited unavailable-entity diagnostics.

CHANGELOG:
- 2026-10-13: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

import logging

import pytest
from engine.src.diagnostics import DiagnosticLimiter


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock() -> _FakeClock:
    return _FakeClock()


class TestDiagnosticLimiter:
    """One warning per entity per interval."""

    def test_first_report_logs(self, clock: _FakeClock, caplog: pytest.LogCaptureFixture) -> None:
        limiter = DiagnosticLimiter(60.0, clock)
        with caplog.at_level(logging.WARNING, logger="engine.src.diagnostics"):
            assert limiter.report_unavailable("sensor.solar") is True
        assert 'Entity "sensor.solar" is not available or misconfigured' in caplog.text

    def test_repeat_within_interval_is_suppressed(
        self, clock: _FakeClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        limiter = DiagnosticLimiter(60.0, clock)
        with caplog.at_level(logging.WARNING, logger="engine.src.diagnostics"):
            limiter.report_unavailable("sensor.solar")
            clock.now += 59.0
            assert limiter.report_unavailable("sensor.solar") is False
        assert len(caplog.records) == 1

    def test_logs_again_after_interval(self, clock: _FakeClock) -> None:
        limiter = DiagnosticLimiter(60.0, clock)
        limiter.report_unavailable("sensor.solar")
        clock.now += 60.0
        assert limiter.report_unavailable("sensor.solar") is True

    def test_entities_are_limited_independently(self, clock: _FakeClock) -> None:
        limiter = DiagnosticLimiter(60.0, clock)
        assert limiter.report_unavailable("sensor.solar") is True
        assert limiter.report_unavailable("sensor.grid") is True

    def test_missing_id_is_reported_as_unknown(
        self, clock: _FakeClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        limiter = DiagnosticLimiter(60.0, clock)
        with caplog.at_level(logging.WARNING, logger="engine.src.diagnostics"):
            limiter.report_unavailable(None)
            assert limiter.report_unavailable("") is False
        assert 'Entity "Unknown"' in caplog.text

    def test_zero_interval_never_suppresses(self, clock: _FakeClock) -> None:
        limiter = DiagnosticLimiter(0.0, clock)
        assert limiter.report_unavailable("sensor.solar") is True
        assert limiter.report_unavailable("sensor.solar") is True

    def test_reset(self, clock: _FakeClock) -> None:
        limiter = DiagnosticLimiter(60.0, clock)
        limiter.report_unavailable("sensor.solar")
        limiter.reset()
        assert limiter.report_unavailable("sensor.solar") is True
