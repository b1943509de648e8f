import dataclasses
from datetime import tzinfo

import requests
from loguru import logger

import famcal.settings as settings
from famcal.event_processing import expand_events_in_range
from famcal.models import Occurrence


def download_calendar(source: str) -> str:
    """
    Fetch an ICS calendar from a URL or file path.
    """
    if source.startswith("http"):
        resp = requests.get(
            source,
            timeout=settings.HTTP_TIMEOUT,
            headers={"User-Agent": settings.USER_AGENT},
            allow_redirects=True,
        )
        resp.raise_for_status()
        return resp.content.decode("utf-8", errors="replace")
    else:
        with open(source, "rb") as f:
            return f.read().decode("utf-8", errors="replace")


def load_calendar(entry: dict, window_start: int, window_end: int, tz: tzinfo) -> list[Occurrence]:
    """Fetch one configured calendar and expand it over the window."""
    name = entry.get("name")
    source = entry.get("source")
    logger.debug("Fetching calendar {} from {}...", name, source)
    raw = download_calendar(source)
    occurrences = expand_events_in_range(raw, window_start, window_end, tz)
    color = entry.get("color")
    return [
        dataclasses.replace(occ, calendar_name=name, color=occ.color or color)
        for occ in occurrences
    ]


def load_occurrences(
    calendars: list[dict],
    window_start: int,
    window_end: int,
    tz: tzinfo,
    holiday_source: str | None = None,
) -> list[Occurrence]:
    """
    Expand every configured calendar (and the optional holiday feed) over
    the window. A calendar that cannot be fetched is logged and skipped.
    """
    all_occurrences = []
    names = [entry.get("name", "<unknown>") for entry in calendars]
    logger.debug("Loading {} calendars: {}", len(names), names)
    for entry in calendars:
        try:
            all_occurrences.extend(load_calendar(entry, window_start, window_end, tz))
        except (requests.RequestException, OSError) as e:
            logger.error("Failed to load calendar {}: {}", entry.get("name"), e)

    if holiday_source:
        try:
            holidays = load_calendar({"name": None, "source": holiday_source}, window_start, window_end, tz)
        except (requests.RequestException, OSError) as e:
            logger.warning("Failed to load holidays from {}: {}", holiday_source, e)
            holidays = []
        all_occurrences.extend(
            dataclasses.replace(occ, is_holiday=True, all_day=True) for occ in holidays
        )

    return sorted(all_occurrences, key=lambda o: o.start.ts)
