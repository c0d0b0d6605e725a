"""
Shared pytest fixtures for jogger tests.

This module provides:
- Logging configuration reset for test isolation
- A fake monotonic clock for deterministic span durations

Usage:
    def test_slow_span(fake_clock):
        span, _ = start_span(BACKGROUND, "op")
        fake_clock.advance(1.5)
        span.finish()
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

# Ensure jogger package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import jogger.config as log_config
from jogger.context import BACKGROUND, use_carrier
from jogger.settings import JoggerSettings, get_settings


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch):
    """Configure logging from clean settings before each test."""
    for name in ("JOGGER_LOG_LEVEL", "JOGGER_LOG_FORMAT", "JOGGER_COLORS", "JOGGER_SLOW_THRESHOLD"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    log_config._active = None
    log_config.configure_logging(JoggerSettings(_env_file=None, colors=False), force=True)
    token = use_carrier(BACKGROUND)
    yield
    token.restore()
    log_config._active = None
    get_settings.cache_clear()


class FakeClock:
    """Stand-in for time.perf_counter that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    clock = FakeClock()
    with patch("jogger.span._clock", clock):
        yield clock
