"""Tests for RRULE expansion.

Every scenario is evaluated in America/New_York so wall-clock times and
DST transitions are deterministic.
"""

from __future__ import annotations

from datetime import datetime

from famcal.models import NormalizedEvent
from famcal.recurrence import expand


def _days(occurrences, tz):
    return [datetime.fromtimestamp(o.start.ts, tz).strftime("%m-%d") for o in occurrences]


def _expand(event, ts, ny, start, end):
    return expand(event, ts(*start), ts(*end, 23, 59, 59), ny)


WEEKLY_MO_WE = """
SUMMARY:Swim
DTSTART:20250106T090000
DTEND:20250106T100000
RRULE:FREQ=WEEKLY;BYDAY=MO,WE;INTERVAL=1
"""


# ---------------------------------------------------------------------------
#  Single events
# ---------------------------------------------------------------------------

def test_no_start_produces_nothing(ny):
    assert expand(NormalizedEvent(summary="x"), 0, 2**31, ny) == []


def test_single_event_inside_window(parse_event, ts, ny):
    ev = parse_event("SUMMARY:Dentist\nDTSTART:20250107T140000\nDTEND:20250107T150000")
    occ = _expand(ev, ts, ny, (2025, 1, 5), (2025, 1, 11))
    assert len(occ) == 1
    assert occ[0].start.ts == ts(2025, 1, 7, 14)
    assert occ[0].end.ts == ts(2025, 1, 7, 15)
    assert occ[0].start.display == "2025-01-07 14:00"
    assert occ[0].all_day is False
    assert occ[0].summary == "Dentist"


def test_single_event_window_is_inclusive(parse_event, ts, ny):
    ev = parse_event("SUMMARY:Edge\nDTSTART:20250107T140000")
    start = ts(2025, 1, 7, 14)
    assert len(expand(ev, start, start, ny)) == 1
    assert expand(ev, start + 1, start + 100, ny) == []


def test_single_event_default_durations(parse_event, ts, ny):
    timed = parse_event("SUMMARY:t\nDTSTART:20250107T140000")
    all_day = parse_event("SUMMARY:a\nDTSTART;VALUE=DATE:20250107")
    window = (ts(2025, 1, 1), ts(2025, 1, 31))
    t = expand(timed, *window, ny)[0]
    a = expand(all_day, *window, ny)[0]
    assert t.end.ts - t.start.ts == 3600
    assert a.end.ts - a.start.ts == 86400
    assert a.all_day is True
    assert a.start.display == "2025-01-07"


def test_duration_used_when_dtend_missing(parse_event, ts, ny):
    ev = parse_event("SUMMARY:d\nDTSTART:20250107T140000\nDURATION:PT45M")
    occ = expand(ev, ts(2025, 1, 1), ts(2025, 1, 31), ny)[0]
    assert occ.end.ts - occ.start.ts == 2700


def test_unparseable_duration_uses_defaults(parse_event, ts, ny):
    timed = parse_event("SUMMARY:t\nDTSTART:20250107T140000\nDURATION:soon")
    all_day = parse_event("SUMMARY:a\nDTSTART;VALUE=DATE:20250107\nDURATION:P1X")
    assert timed.duration_seconds is None
    window = (ts(2025, 1, 1), ts(2025, 1, 31))
    t = expand(timed, *window, ny)[0]
    a = expand(all_day, *window, ny)[0]
    assert t.end.ts - t.start.ts == 3600
    assert a.end.ts - a.start.ts == 86400


def test_multi_day_all_day_single_keeps_length(parse_event, ts, ny):
    ev = parse_event("SUMMARY:Trip\nDTSTART;VALUE=DATE:20250107\nDTEND;VALUE=DATE:20250110")
    occ = expand(ev, ts(2025, 1, 1), ts(2025, 1, 31), ny)[0]
    assert occ.end.ts - occ.start.ts == 3 * 86400


# ---------------------------------------------------------------------------
#  WEEKLY
# ---------------------------------------------------------------------------

def test_weekly_mo_we(parse_event, ts, ny):
    occ = _expand(parse_event(WEEKLY_MO_WE), ts, ny, (2025, 1, 6), (2025, 1, 20))
    assert _days(occ, ny) == ["01-06", "01-08", "01-13", "01-15", "01-20"]
    assert all(datetime.fromtimestamp(o.start.ts, ny).hour == 9 for o in occ)
    assert all(o.end.ts - o.start.ts == 3600 for o in occ)


def test_weekly_exdate_exact(parse_event, ts, ny):
    ev = parse_event(WEEKLY_MO_WE + "EXDATE:20250113T090000")
    occ = _expand(ev, ts, ny, (2025, 1, 6), (2025, 1, 20))
    assert _days(occ, ny) == ["01-06", "01-08", "01-15", "01-20"]


def test_weekly_bare_date_exdate_cancels_the_day(parse_event, ts, ny):
    ev = parse_event(WEEKLY_MO_WE + "EXDATE;VALUE=DATE:20250115")
    occ = _expand(ev, ts, ny, (2025, 1, 6), (2025, 1, 20))
    assert _days(occ, ny) == ["01-06", "01-08", "01-13", "01-20"]


def test_weekly_nothing_before_dtstart(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250108T090000\nRRULE:FREQ=WEEKLY;BYDAY=MO,WE")
    occ = _expand(ev, ts, ny, (2025, 1, 1), (2025, 1, 20))
    assert _days(occ, ny) == ["01-08", "01-13", "01-15", "01-20"]


def test_weekly_interval_two(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250106T090000\nRRULE:FREQ=WEEKLY;BYDAY=MO;INTERVAL=2")
    occ = _expand(ev, ts, ny, (2025, 1, 6), (2025, 1, 26))
    assert _days(occ, ny) == ["01-06", "01-20"]


def test_weekly_wkst_changes_week_boundaries(parse_event, ts, ny):
    base = "SUMMARY:x\nDTSTART:20250106T090000\nRRULE:FREQ=WEEKLY;BYDAY=MO,SU;INTERVAL=2"
    monday = parse_event(base)
    sunday = parse_event(base + ";WKST=SU")
    assert _days(_expand(monday, ts, ny, (2025, 1, 6), (2025, 1, 26)), ny) == ["01-06", "01-12", "01-20", "01-26"]
    assert _days(_expand(sunday, ts, ny, (2025, 1, 6), (2025, 1, 26)), ny) == ["01-06", "01-19", "01-20"]


def test_weekly_ordinal_byday_matches_weekday(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250106T090000\nRRULE:FREQ=WEEKLY;BYDAY=2MO")
    occ = _expand(ev, ts, ny, (2025, 1, 6), (2025, 1, 20))
    assert _days(occ, ny) == ["01-06", "01-13", "01-20"]


def test_weekly_defaults_to_dtstart_weekday(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250109T183000\nRRULE:FREQ=WEEKLY")
    occ = _expand(ev, ts, ny, (2025, 1, 1), (2025, 1, 31))
    assert _days(occ, ny) == ["01-09", "01-16", "01-23", "01-30"]


def test_weekly_until(parse_event, ts, ny):
    ev = parse_event(WEEKLY_MO_WE.replace("INTERVAL=1", "UNTIL=20250114T000000Z"))
    occ = _expand(ev, ts, ny, (2025, 1, 6), (2025, 1, 20))
    assert _days(occ, ny) == ["01-06", "01-08", "01-13"]


def test_weekly_keeps_wall_clock_across_dst(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250303T090000\nRRULE:FREQ=WEEKLY;BYDAY=MO")
    occ = _expand(ev, ts, ny, (2025, 3, 3), (2025, 3, 10))
    assert [o.start.display for o in occ] == ["2025-03-03 09:00", "2025-03-10 09:00"]
    assert occ[1].start.ts - occ[0].start.ts == 7 * 86400 - 3600


def test_weekly_all_day_instances_last_one_day(parse_event, ts, ny):
    ev = parse_event(
        "SUMMARY:Trash\nDTSTART;VALUE=DATE:20250106\nDTEND;VALUE=DATE:20250108\nRRULE:FREQ=WEEKLY"
    )
    occ = _expand(ev, ts, ny, (2025, 1, 6), (2025, 1, 19))
    assert _days(occ, ny) == ["01-06", "01-13"]
    assert all(o.all_day and o.end.ts - o.start.ts == 86400 for o in occ)


# ---------------------------------------------------------------------------
#  DAILY
# ---------------------------------------------------------------------------

def test_daily_interval_aligned_to_dtstart(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250101T080000\nRRULE:FREQ=DAILY;INTERVAL=3")
    occ = _expand(ev, ts, ny, (2025, 1, 5), (2025, 1, 12))
    assert _days(occ, ny) == ["01-07", "01-10"]


def test_daily_until_and_exact_exdate(parse_event, ts, ny):
    ev = parse_event(
        "SUMMARY:x\nDTSTART:20250101T080000\nRRULE:FREQ=DAILY;UNTIL=20250105T080000\nEXDATE:20250103T080000"
    )
    occ = _expand(ev, ts, ny, (2024, 12, 25), (2025, 1, 31))
    assert _days(occ, ny) == ["01-01", "01-02", "01-04", "01-05"]


def test_daily_ignores_bare_date_exdate(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250101T080000\nRRULE:FREQ=DAILY\nEXDATE;VALUE=DATE:20250103")
    occ = _expand(ev, ts, ny, (2025, 1, 1), (2025, 1, 4))
    assert _days(occ, ny) == ["01-01", "01-02", "01-03", "01-04"]


def test_daily_clips_to_window(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250101T080000\nRRULE:FREQ=DAILY")
    occ = expand(ev, ts(2025, 1, 3, 9), ts(2025, 1, 5, 8), ny)
    assert _days(occ, ny) == ["01-04", "01-05"]


# ---------------------------------------------------------------------------
#  YEARLY
# ---------------------------------------------------------------------------

def test_yearly_leap_day_only_in_leap_years(parse_event, ts, ny):
    ev = parse_event("SUMMARY:Leap\nDTSTART;VALUE=DATE:20200229\nRRULE:FREQ=YEARLY")
    occ = _expand(ev, ts, ny, (2024, 1, 1), (2025, 12, 31))
    assert [o.start.display for o in occ] == ["2024-02-29"]
    assert occ[0].all_day is True
    assert occ[0].end.ts - occ[0].start.ts == 86400


def test_yearly_interval(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART;VALUE=DATE:20210704\nRRULE:FREQ=YEARLY;INTERVAL=2")
    occ = _expand(ev, ts, ny, (2022, 1, 1), (2024, 12, 31))
    assert [o.start.display for o in occ] == ["2023-07-04"]


def test_yearly_bymonth_bymonthday(parse_event, ts, ny):
    ev = parse_event(
        "SUMMARY:x\nDTSTART:20201224T180000\nRRULE:FREQ=YEARLY;BYMONTH=12;BYMONTHDAY=24,25\nEXDATE:20251225"
    )
    occ = _expand(ev, ts, ny, (2024, 12, 1), (2025, 12, 31))
    assert [o.start.display for o in occ] == ["2024-12-24 18:00", "2024-12-25 18:00", "2025-12-24 18:00"]


# ---------------------------------------------------------------------------
#  Unsupported frequencies
# ---------------------------------------------------------------------------

def test_monthly_falls_back_to_single_instance(parse_event, ts, ny):
    ev = parse_event("SUMMARY:Rent\nDTSTART:20250115T100000\nRRULE:FREQ=MONTHLY")
    assert _days(_expand(ev, ts, ny, (2025, 1, 1), (2025, 3, 31)), ny) == ["01-15"]
    assert _expand(ev, ts, ny, (2025, 2, 1), (2025, 2, 28)) == []


def test_yearly_respects_dtstart_and_until(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART;VALUE=DATE:20220704\nRRULE:FREQ=YEARLY;UNTIL=20240101")
    occ = _expand(ev, ts, ny, (2020, 1, 1), (2026, 12, 31))
    assert [o.start.display for o in occ] == ["2022-07-04", "2023-07-04"]


def test_yearly_bymonthday_defaults_to_dtstart_month(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:20250110T170000\nRRULE:FREQ=YEARLY;BYMONTHDAY=10,20")
    occ = _expand(ev, ts, ny, (2025, 1, 1), (2025, 12, 31))
    assert [o.start.display for o in occ] == ["2025-01-10 17:00", "2025-01-20 17:00"]


# ---------------------------------------------------------------------------
#  Calendar limits
# ---------------------------------------------------------------------------

# 9999-12-31 18:46:40 in New York
LAST_INSTANT = 253402300000


def test_weekly_window_ending_on_last_representable_day(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:99991201T090000\nRRULE:FREQ=WEEKLY")
    occ = expand(ev, ts(9999, 12, 1), LAST_INSTANT, ny)
    assert [o.start.display for o in occ] == [f"9999-12-{d:02} 09:00" for d in (1, 8, 15, 22, 29)]


def test_daily_window_ending_on_last_representable_day(parse_event, ts, ny):
    ev = parse_event("SUMMARY:x\nDTSTART:99991229T090000\nRRULE:FREQ=DAILY")
    occ = expand(ev, ts(9999, 12, 1), LAST_INSTANT, ny)
    assert [o.start.display for o in occ] == ["9999-12-29 09:00", "9999-12-30 09:00", "9999-12-31 09:00"]
