from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Protocol

from flask import Flask, current_app, request


logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Source of the current instant for request handling."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class RequestHeaderClock:
    """
    Clock that lets the current request pin "now".

    The header carries milliseconds since the Unix epoch. Requests without
    the header, or with a value that is not an in-range integer, get the wrapped
    clock's time. Only installed when the app runs with ``TEST_MODE``.
    """

    def __init__(self, header_name: str, fallback: Clock | None = None) -> None:
        self.header_name = header_name
        self.fallback = fallback or SystemClock()

    def now(self) -> datetime:
        raw = request.headers.get(self.header_name)
        if raw is None:
            return self.fallback.now()
        try:
            return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)
        except (OverflowError, ValueError, OSError):
            logger.warning(
                "Ignoring malformed test clock header",
                extra={"event": "test_clock_header_invalid"},
            )
            return self.fallback.now()


class ManualClock:
    """Clock that only moves when told to; used by tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> datetime:
        self._now = self._now + timedelta(seconds=seconds)
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value


CLOCK_EXTENSION_KEY = "pastelite.clock"


def build_clock(config: dict) -> Clock:
    """Pick the clock for an app from its configuration."""
    if config.get("TEST_MODE", False):
        return RequestHeaderClock(config.get("TEST_NOW_HEADER", "x-test-now-ms"))
    return SystemClock()


def init_clock(app: Flask, clock: Clock | None = None) -> Clock:
    clock = clock or build_clock(app.config)
    app.extensions[CLOCK_EXTENSION_KEY] = clock
    return clock


def get_clock() -> Clock:
    """Return the clock installed on the current app."""
    return current_app.extensions[CLOCK_EXTENSION_KEY]
