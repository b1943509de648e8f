"""Shared fixtures: a fixed local zone and tiny ICS builders.

All tests pass the zone explicitly so results never depend on the TZ of
the machine running them.
"""

from __future__ import annotations

from datetime import datetime

import pytest
from dateutil import tz as dateutil_tz

from famcal.ics_parser import extract_events, unfold
from famcal.normalize import normalize_event

NEW_YORK = dateutil_tz.gettz("America/New_York")


def _ts(year, month, day, hour=0, minute=0, second=0, tz=NEW_YORK) -> int:
    return int(datetime(year, month, day, hour, minute, second, tzinfo=tz).timestamp())


def _make_ics(*events: str) -> str:
    body = "".join(
        "BEGIN:VEVENT\r\n" + "\r\n".join(line.strip() for line in ev.strip().splitlines()) + "\r\nEND:VEVENT\r\n"
        for ev in events
    )
    return "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//famcal//tests//EN\r\n" + body + "END:VCALENDAR\r\n"


@pytest.fixture
def ny():
    return NEW_YORK


@pytest.fixture
def ts():
    """Epoch seconds for a New York wall-clock time."""
    return _ts


@pytest.fixture
def make_ics():
    return _make_ics


@pytest.fixture
def parse_event():
    """Normalize the single VEVENT described by `body` in New York time."""
    def _parse(body: str):
        raw = extract_events(unfold(_make_ics(body)))
        assert len(raw) == 1
        return normalize_event(raw[0], NEW_YORK)
    return _parse
