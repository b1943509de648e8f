"""
RRULE expansion for DAILY, WEEKLY and YEARLY rules.

Occurrences are found by walking the calendar days of the window in the
local zone and testing each day against the rule, so dates that do not
exist in a given year (Feb 29) simply never match.
"""
import re
from datetime import date, datetime, time, timedelta, tzinfo

from loguru import logger

from famcal.logger import EVENTS
from famcal.models import Instant, NormalizedEvent, Occurrence
from famcal.normalize import DATE_DISPLAY, DATETIME_DISPLAY, localize, parse_dt

DAY_SECONDS = 86400
HOUR_SECONDS = 3600

# Sunday=0 .. Saturday=6
ICS_WEEKDAYS = {"SU": 0, "MO": 1, "TU": 2, "WE": 3, "TH": 4, "FR": 5, "SA": 6}

ALL_DAY_RE = re.compile(r"^\d{8}$")


def ics_weekday(d: date) -> int:
    return (d.weekday() + 1) % 7


def week_start_of(d: date, wkst: int) -> date:
    return d - timedelta(days=(ics_weekday(d) - wkst) % 7)


def window_days(window_start: int, window_end: int, tz: tzinfo):
    """Yield every local calendar day touched by [window_start, window_end]."""
    if window_end < window_start:
        return
    day = datetime.fromtimestamp(window_start, tz).date()
    last = datetime.fromtimestamp(window_end, tz).date()
    while day <= last:
        yield day
        if day == date.max:
            return
        day += timedelta(days=1)


def occurrence_duration(event: NormalizedEvent, all_day: bool) -> int:
    if event.end.ts is not None:
        return event.end.ts - event.start.ts
    if event.duration_seconds is not None:
        return event.duration_seconds
    return DAY_SECONDS if all_day else HOUR_SECONDS


def _local_ts(day: date, tod: time, tz: tzinfo) -> int:
    return int(localize(datetime.combine(day, tod), tz).timestamp())


def _make(event, start_ts, end_ts, all_day, tz) -> Occurrence:
    fmt = DATE_DISPLAY if all_day else DATETIME_DISPLAY

    def instant(ts):
        return Instant(ts, datetime.fromtimestamp(ts, tz).strftime(fmt))

    return Occurrence.from_event(event, instant(start_ts), instant(end_ts), all_day)


class _Expansion:
    """Per-call state shared by the frequency handlers."""

    def __init__(self, event: NormalizedEvent, window_start: int, window_end: int, tz: tzinfo):
        self.event = event
        self.rule = event.rrule
        self.window_start = window_start
        self.window_end = window_end
        self.tz = tz
        self.all_day = bool(ALL_DAY_RE.match(event.start_raw or ""))
        self.duration = occurrence_duration(event, self.all_day)
        self.start_ts = event.start.ts
        self.dtstart = datetime.fromtimestamp(self.start_ts, tz)
        self.tod = time.min if self.all_day else self.dtstart.time()
        self.until = None
        if self.rule is not None and self.rule.until:
            self.until = parse_dt(self.rule.until, tz).ts
        self.exdates = set(event.exdates)
        self.exdate_days = {datetime.fromtimestamp(ts, tz).date() for ts in event.exdates}

    def in_window(self, ts: int) -> bool:
        return self.window_start <= ts <= self.window_end

    def in_rule_bounds(self, ts: int) -> bool:
        if ts < self.start_ts:
            return False
        return self.until is None or ts <= self.until

    def excluded(self, ts: int, day: date, same_day: bool = True) -> bool:
        if ts in self.exdates:
            return True
        return same_day and day in self.exdate_days

    def emit(self, ts: int) -> Occurrence:
        end = ts + (DAY_SECONDS if self.all_day else self.duration)
        return _make(self.event, ts, end, self.all_day, self.tz)

    def single(self) -> list[Occurrence]:
        if not self.in_window(self.start_ts):
            return []
        return [_make(self.event, self.start_ts, self.start_ts + self.duration, self.all_day, self.tz)]

    def weekly(self) -> list[Occurrence]:
        weekdays = {ICS_WEEKDAYS[tok[-2:]] for tok in self.rule.by_day if tok[-2:] in ICS_WEEKDAYS}
        if not weekdays:
            weekdays = {ics_weekday(self.dtstart.date())}
        wkst = ICS_WEEKDAYS.get(self.rule.wkst[-2:], ICS_WEEKDAYS["MO"])
        anchor = week_start_of(self.dtstart.date(), wkst)

        out = []
        for day in window_days(self.window_start, self.window_end, self.tz):
            if ics_weekday(day) not in weekdays:
                continue
            weeks = (week_start_of(day, wkst) - anchor).days // 7
            if weeks < 0 or weeks % self.rule.interval:
                continue
            ts = _local_ts(day, self.tod, self.tz)
            if not self.in_rule_bounds(ts) or not self.in_window(ts):
                continue
            if self.excluded(ts, day):
                continue
            out.append(self.emit(ts))
        return out

    def daily(self) -> list[Occurrence]:
        interval = self.rule.interval
        first = self.dtstart.date()
        window_first = datetime.fromtimestamp(self.window_start, self.tz).date()
        offset = (max(first, window_first) - first).days
        steps = -(-offset // interval)
        day = first + timedelta(days=steps * interval)

        out = []
        while True:
            ts = _local_ts(day, self.tod, self.tz)
            if ts > self.window_end or (self.until is not None and ts > self.until):
                break
            if self.in_rule_bounds(ts) and self.in_window(ts) and not self.excluded(ts, day, same_day=False):
                out.append(self.emit(ts))
            if (date.max - day).days < interval:
                break
            day += timedelta(days=interval)
        return out

    def yearly(self) -> list[Occurrence]:
        months = _int_set(self.rule.by_month) or {self.dtstart.month}
        monthdays = _int_set(self.rule.by_month_day) or {self.dtstart.day}
        first_year = self.dtstart.year

        out = []
        for day in window_days(self.window_start, self.window_end, self.tz):
            if day.month not in months or day.day not in monthdays:
                continue
            offset = day.year - first_year
            if offset < 0 or offset % self.rule.interval:
                continue
            ts = _local_ts(day, self.tod, self.tz)
            if not self.in_rule_bounds(ts) or not self.in_window(ts):
                continue
            if self.excluded(ts, day):
                continue
            out.append(self.emit(ts))
        return out


def _int_set(values) -> set[int]:
    out = set()
    for v in values:
        try:
            out.add(int(v))
        except ValueError:
            continue
    return out


def expand(event: NormalizedEvent, window_start: int, window_end: int, tz: tzinfo) -> list[Occurrence]:
    """
    Concrete occurrences of `event` whose start lies in [window_start, window_end].

    Unsupported frequencies (MONTHLY included) behave like a one-off event.
    """
    if event.start.ts is None:
        return []
    run = _Expansion(event, window_start, window_end, tz)
    freq = run.rule.freq if run.rule is not None else None
    handler = {
        "WEEKLY": run.weekly,
        "DAILY": run.daily,
        "YEARLY": run.yearly,
    }.get(freq, run.single)
    if freq and handler == run.single:
        logger.debug("Unsupported FREQ={} for {!r}, treating as single event", freq, event.summary)

    occurrences = sorted(handler(), key=lambda o: o.start.ts)
    for occ in occurrences:
        logger.log(EVENTS, "{} @ {}", occ.summary, occ.start.display)
    return occurrences
