"""
Turn raw VEVENT property maps into typed NormalizedEvent values.

Every parser here is best-effort: a value that does not match the expected
shape yields None (or an Instant with a null timestamp) instead of raising,
so one bad line never costs the rest of the feed.
"""
import re
from datetime import datetime, tzinfo

import pytz
from dateutil import tz as dateutil_tz
from loguru import logger

import famcal.settings as settings
from famcal.ics_parser import extract_events, unfold
from famcal.models import Instant, NormalizedEvent, RawEvent, RRule

DATE_RE      = re.compile(r"^\d{8}$")
DATETIME_RE  = re.compile(r"^\d{8}T\d{6}$")
UTC_RE       = re.compile(r"^\d{8}T\d{6}Z$")
DURATION_RE  = re.compile(
    r"^(?P<sign>[+-])?P(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)
COLOR_LONG_RE  = re.compile(r"^#?([0-9A-F]{6})$")
COLOR_SHORT_RE = re.compile(r"^#?([0-9A-F]{3})$")

RRULE_LIST_KEYS = ("BYDAY", "BYMONTHDAY", "BYMONTH", "BYHOUR", "BYMINUTE", "BYSECOND")

DATE_DISPLAY     = "%Y-%m-%d"
DATETIME_DISPLAY = "%Y-%m-%d %H:%M"


def unescape_text(value: str) -> str:
    """RFC 5545 TEXT unescaping. The order matters: `\\\\` goes last."""
    return (
        value.replace("\\n", "\n")
        .replace("\\N", "\n")
        .replace("\\,", ",")
        .replace("\\;", ";")
        .replace("\\\\", "\\")
    )


def resolve_tz(tzid: str | None, fallback: tzinfo) -> tzinfo:
    """Look a TZID up in the system zone database, else use `fallback`."""
    if not tzid:
        return fallback
    name = tzid.strip().strip('"')
    if not name:
        return fallback
    try:
        zone = dateutil_tz.gettz(name)
    except (ValueError, OSError):
        zone = None
    if zone is None:
        logger.debug("Unknown TZID {!r}, using local zone", tzid)
        return fallback
    return zone


def localize(naive: datetime, zone: tzinfo) -> datetime:
    """Attach `zone` to a wall-clock time; pytz zones need `localize`."""
    if hasattr(zone, "localize"):
        return zone.localize(naive)
    return naive.replace(tzinfo=zone)


def _instant(dt: datetime, tz_local: tzinfo, fmt: str) -> Instant:
    return Instant(int(dt.timestamp()), dt.astimezone(tz_local).strftime(fmt))


def parse_dt_with_tz(value: str, tzid: str | None, tz_local: tzinfo | None = None) -> Instant:
    """
    Parse a DATE or DATE-TIME value.

    Bare dates are local midnight, `Z` values are UTC, and naive date-times
    are read in the zone named by `tzid` (or the local zone). The display
    string is always rendered in the local zone.
    """
    tz_local = tz_local or settings.TZ_LOCAL
    s = value.strip()
    if not s:
        return Instant(None, "")
    try:
        if UTC_RE.match(s):
            dt = datetime.strptime(s, "%Y%m%dT%H%M%SZ").replace(tzinfo=pytz.UTC)
            return _instant(dt, tz_local, DATETIME_DISPLAY)
        if DATETIME_RE.match(s):
            zone = resolve_tz(tzid, tz_local)
            dt = localize(datetime.strptime(s, "%Y%m%dT%H%M%S"), zone)
            return _instant(dt, tz_local, DATETIME_DISPLAY)
        if DATE_RE.match(s):
            dt = localize(datetime.strptime(s, "%Y%m%d"), tz_local)
            return _instant(dt, tz_local, DATE_DISPLAY)
    except (ValueError, OverflowError, OSError):
        # e.g. 20250230: right shape, impossible date
        pass
    return Instant(None, s)


def parse_dt(value: str, tz_local: tzinfo | None = None) -> Instant:
    return parse_dt_with_tz(value, None, tz_local)


def parse_duration(value: str) -> int | None:
    """`[+-]P[nW][nD][T[nH][nM][nS]]` to signed seconds, or None."""
    m = DURATION_RE.match(value.strip().upper())
    if not m:
        return None
    parts = m.groupdict()
    units = (("weeks", 604800), ("days", 86400), ("hours", 3600), ("minutes", 60), ("seconds", 1))
    if all(parts[name] is None for name, _ in units):
        return None
    total = sum(int(parts[name] or 0) * size for name, size in units)
    return -total if parts["sign"] == "-" else total


def sanitize_color(value: str | None) -> str | None:
    if not value:
        return None
    s = value.strip().upper()
    m = COLOR_LONG_RE.match(s)
    if m:
        return "#" + m.group(1)
    m = COLOR_SHORT_RE.match(s)
    if m:
        return "#" + "".join(ch * 2 for ch in m.group(1))
    return None


def parse_rrule(value: str) -> dict[str, str | list[str]]:
    """
    Split an RRULE value into its clauses.

    BY* list clauses become lists; everything else (UNTIL included) stays
    an uppercased string.
    """
    clauses: dict[str, str | list[str]] = {}
    for part in value.split(";"):
        if "=" not in part:
            continue
        key, val = part.split("=", 1)
        key = key.strip().upper()
        if not key:
            continue
        if key in RRULE_LIST_KEYS:
            clauses[key] = [v.strip().upper() for v in val.split(",") if v.strip()]
        else:
            clauses[key] = val.strip().upper()
    return clauses


def rrule_from_clauses(clauses: dict[str, str | list[str]]) -> RRule:
    def as_list(key):
        v = clauses.get(key, [])
        return tuple(v) if isinstance(v, list) else (v,)

    try:
        interval = int(clauses.get("INTERVAL", 1))
    except (TypeError, ValueError):
        interval = 1
    return RRule(
        freq=clauses.get("FREQ") or None,
        interval=max(1, interval),
        until=clauses.get("UNTIL") or None,
        wkst=clauses.get("WKST") or "MO",
        by_day=as_list("BYDAY"),
        by_month_day=as_list("BYMONTHDAY"),
        by_month=as_list("BYMONTH"),
    )


def parse_exdates(raw: RawEvent, tz_local: tzinfo) -> tuple[int, ...]:
    stamps = []
    for line in raw.exdate_lines:
        tzid = line.params.get("TZID")
        for item in line.value.split(","):
            ts = parse_dt_with_tz(item, tzid, tz_local).ts
            if ts is not None:
                stamps.append(ts)
    return tuple(stamps)


def normalize_event(raw: RawEvent, tz_local: tzinfo | None = None) -> NormalizedEvent:
    tz_local = tz_local or settings.TZ_LOCAL
    start_raw = raw.value("DTSTART").strip()
    end_raw = raw.value("DTEND").strip()

    duration = None
    if "DURATION" in raw.properties:
        duration = parse_duration(raw.value("DURATION"))

    rrule = None
    if raw.value("RRULE").strip():
        rrule = rrule_from_clauses(parse_rrule(raw.value("RRULE")))

    return NormalizedEvent(
        summary=unescape_text(raw.value("SUMMARY")),
        uid=raw.value("UID").strip(),
        description=unescape_text(raw.value("DESCRIPTION")),
        location=unescape_text(raw.value("LOCATION")),
        start_raw=start_raw,
        end_raw=end_raw,
        start=parse_dt_with_tz(start_raw, raw.params("DTSTART").get("TZID"), tz_local),
        end=parse_dt_with_tz(end_raw, raw.params("DTEND").get("TZID"), tz_local),
        duration_seconds=duration,
        rrule=rrule,
        exdates=parse_exdates(raw, tz_local),
        color=sanitize_color(raw.value("COLOR")),
    )


def parse_events(ics: str | bytes, tz_local: tzinfo | None = None) -> list[NormalizedEvent]:
    """All VEVENTs of a feed, normalized, ordered by start (undated last)."""
    events = [normalize_event(raw, tz_local) for raw in extract_events(unfold(ics))]
    logger.debug("Parsed {} events", len(events))
    return sorted(events, key=lambda ev: (ev.start.ts is None, ev.start.ts or 0))
