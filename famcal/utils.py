from datetime import datetime, timedelta, date
import re
from loguru import logger
import webcolors
from dateutil.relativedelta import relativedelta

from famcal.settings import USE_24H
from famcal.event_processing import week_start_for


def css_color_to_hex(name_or_hex: str) -> str:
    """
    Convert a CSS color name, functional gray(%), or hex code to a 6-digit hex code.

    - Leaves valid hex codes unchanged.
    - Parses CSS4 gray(%) syntax.
    - Grayscale class names gray0–gray15, with aliases for black and white.
    - Falls back to standard CSS color names via webcolors.
    """
    if name_or_hex.startswith("#"):
        return name_or_hex

    lower = name_or_hex.lower().strip()

    m_pct = re.fullmatch(r'gray\(\s*([0-9]+(?:\.[0-9]+)?)%\s*\)', lower)
    if m_pct:
        pct = float(m_pct.group(1))
        level = round(255 * pct / 100)
        return f"#{level:02X}{level:02X}{level:02X}"

    if lower in ('black', 'gray0'):
        return '#000000'
    if lower in ('white', 'gray15'):
        return '#FFFFFF'

    m = re.fullmatch(r'gray([0-9]|1[0-5])', lower)
    if m:
        level = int(m.group(1)) * 17
        return f"#{level:02X}{level:02X}{level:02X}"

    try:
        return webcolors.name_to_hex(lower).upper()
    except ValueError:
        logger.error("Unknown CSS color '{}', passing through.", name_or_hex)
        return name_or_hex


def fmt_time(dt: datetime) -> str:
    """
    Return HH:MM, or 9:30am style when TIME_FORMAT is 12.
    """
    if USE_24H:
        return dt.strftime("%H:%M")
    return dt.strftime("%-I:%M%p").lower()


def fmt_hour(hour: int) -> str:
    if USE_24H:
        return f"{hour % 24:02}:00"
    h12 = hour % 12 or 12
    return f"{h12} {'AM' if hour % 24 < 12 else 'PM'}"


def _parse_day(s: str) -> date:
    return datetime.strptime(s.strip(), "%Y-%m-%d").date()


def parse_week_range(s: str, tzinfo) -> list[date]:
    """
    Turn a TIME_DATE_RANGE string into the Sundays of the weeks to print.

    Accepts "this week", "next week", "last week", "N weeks", "N months",
    "YYYY-MM-DD", and "A:B" / "A/B" / "A to B" ranges.
    """
    s     = s.strip().strip('"').strip("'").lower()
    today = datetime.now(tz=tzinfo).date()

    if s in ("week", "this week", "today"):
        start = end = today
    elif s == "next week":
        start = end = today + timedelta(weeks=1)
    elif s == "last week":
        start = end = today - timedelta(weeks=1)
    elif (m := re.fullmatch(r'(?P<num>\d+)\s*(?P<unit>weeks?|months?)', s)):
        num, unit = int(m.group("num")), m.group("unit")
        if num < 1:
            raise ValueError(f"Empty date range: '{s}'")
        start = today
        if unit.startswith("week"):
            end = today + timedelta(weeks=num - 1)
        else:
            end = today + relativedelta(months=num) - timedelta(days=1)
    elif re.search(r"[:/]", s):
        sep  = ":" if ":" in s else "/"
        a, b = s.split(sep, 1)
        start, end = _parse_day(a), _parse_day(b)
    elif " to " in s:
        a, b = re.split(r"\s+to\s+", s)
        start, end = _parse_day(a), _parse_day(b)
    else:
        start = end = _parse_day(s)

    if start > end:
        logger.error("Start date {} after end date {}", start, end)
        raise ValueError(f"Start date {start} after end date {end}")

    first, last = week_start_for(start), week_start_for(end)
    return [first + timedelta(weeks=i) for i in range((last - first).days // 7 + 1)]
