from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo

from loguru import logger

from famcal.hidden import hidden_key
from famcal.models import Occurrence
from famcal.normalize import localize, parse_events
from famcal.recurrence import expand


def expand_events_in_range(ics: str | bytes, window_start: int, window_end: int, tz: tzinfo) -> list[Occurrence]:
    """
    Parse a raw ICS feed and expand it into occurrences starting within
    [window_start, window_end], sorted by start.

    Malformed input never raises: a broken event is logged and skipped.
    """
    occurrences: list[Occurrence] = []
    events = parse_events(ics, tz)
    for event in events:
        try:
            occurrences.extend(expand(event, window_start, window_end, tz))
        except (ValueError, OverflowError, OSError) as e:
            logger.warning("Skipping event {!r}: {}", event.summary, e)
    logger.debug("Expanded {} events into {} occurrences", len(events), len(occurrences))
    return sorted(occurrences, key=lambda o: o.start.ts)


def week_start_for(day: date) -> date:
    """The Sunday on or before `day`."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_window(week_start: date, tz: tzinfo) -> tuple[int, int]:
    """Sunday 00:00:00 through Saturday 23:59:59, local, as epoch seconds."""
    start = localize(datetime.combine(week_start, time.min), tz)
    end = localize(datetime.combine(week_start + timedelta(days=6), time(23, 59, 59)), tz)
    return int(start.timestamp()), int(end.timestamp())


@dataclass
class DayBucket:
    day: date
    all_day: list[Occurrence] = field(default_factory=list)
    timed: list[Occurrence] = field(default_factory=list)


def bucket_by_day(occurrences: list[Occurrence], week_start: date, tz: tzinfo) -> dict[date, DayBucket]:
    days = {}
    for i in range(7):
        d = week_start + timedelta(days=i)
        days[d] = DayBucket(d)
    for occ in occurrences:
        if occ.start.ts is None:
            continue
        key = datetime.fromtimestamp(occ.start.ts, tz).date()
        bucket = days.get(key)
        if bucket is None:
            continue
        if occ.all_day:
            bucket.all_day.append(occ)
        else:
            bucket.timed.append(occ)
    for bucket in days.values():
        bucket.timed.sort(key=lambda o: o.start.ts)
    return days


def filter_hidden(occurrences: list[Occurrence], hidden: dict[str, set[str]]) -> list[Occurrence]:
    """Drop occurrences the user hid from print, per calendar."""
    if not hidden:
        return occurrences
    kept = []
    for occ in occurrences:
        keys = hidden.get(occ.calendar_name or "", set())
        if hidden_key(occ.start.ts or 0, occ.summary) in keys:
            logger.debug("Hidden: {} ({})", occ.summary, occ.start.display)
            continue
        kept.append(occ)
    return kept


def assign_columns(items: list[tuple]) -> list[dict]:
    """
    Side-by-side layout for overlapping (start, end, payload) intervals.

    Overlapping intervals are clustered transitively; inside a cluster each
    item takes the first column whose last interval has ended.
    """
    def overlaps(a, b):
        return a[0] < b[1] and b[0] < a[1]

    n = len(items)
    parent = list(range(n))

    def find(x):
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    for i in range(n):
        for j in range(i + 1, n):
            if overlaps(items[i], items[j]):
                ri, rj = find(i), find(j)
                if ri != rj:
                    parent[rj] = ri

    clusters: dict[int, list[int]] = {}
    for i in range(n):
        clusters.setdefault(find(i), []).append(i)

    result = [None] * n
    for members in clusters.values():
        members.sort(key=lambda i: items[i][0])
        col_ends: list = []
        assignment = {}
        for i in members:
            start, end = items[i][0], items[i][1]
            for col, last_end in enumerate(col_ends):
                if last_end <= start:
                    col_ends[col] = end
                    assignment[i] = col
                    break
            else:
                col_ends.append(end)
                assignment[i] = len(col_ends) - 1
        for i in members:
            result[i] = {
                "start": items[i][0],
                "end": items[i][1],
                "item": items[i][2],
                "col_index": assignment[i],
                "col_count": len(col_ends),
            }
    return result
