import os
import re
from dateutil import tz
from datetime import datetime
from pathlib import Path
from loguru import logger


def _parse_hour(raw: str, use_24h: bool) -> int:
    """
    Parse a human–friendly hour string into 0–24.
      - If it ends with AM/PM, A/P, or with dots (e.g. “7 a.m.”), parse as 12-hour.
      - Otherwise, if use_24h, parse as a bare integer hour.
      - "24" (or "12am" as an end bound) is allowed so the grid can run to midnight.
    """
    s = raw.strip()
    s_norm = re.sub(r'\.', '', s).replace(' ', '')
    m = re.search(r'(?i)([ap](?:m)?)$', s_norm)
    if m:
        suffix = m.group(1).lower()
        if suffix in ('a', 'p'):
            suffix += 'm'
        base = s_norm[:m.start(1)]
        candidate = (base + suffix).upper()
        for fmt in ("%I%p", "%I:%M%p"):
            try:
                return datetime.strptime(candidate, fmt).hour
            except ValueError:
                continue
        logger.error("Cannot parse 12h time from '{}'.", raw)
        raise ValueError(f"Cannot parse 12h time from '{raw}'")
    try:
        hour = int(s)
    except ValueError:
        logger.error("Non-integer hour when parsing 24-hour input: {!r}", raw)
        raise ValueError(f"Invalid hour format: '{raw}'")
    if not (0 <= hour <= 24):
        logger.error("24-hour hour out of range [0–24]: {!r}", raw)
        raise ValueError(f"24-h hour out of range: '{raw}'")
    return hour


# Project root
BASE_DIR = Path(__file__).resolve().parent.parent

# File paths
CONFIG_PATH  = Path(os.getenv("APP_CONFIG_PATH", str(BASE_DIR / "config.yaml")))
HIDDEN_FILE  = Path(os.getenv("APP_HIDDEN_FILE_PATH", str(BASE_DIR / "hidden_events.yaml")))
OUTPUT_PDF   = os.getenv("APP_OUTPUT_PDF_PATH", "output/famcal.pdf")

TIMEZONE    = os.getenv("TZ", "UTC")
DATE_RANGE  = os.getenv("TIME_DATE_RANGE", "this week")
TIME_FORMAT = os.getenv("TIME_FORMAT", "12")
USE_24H     = TIME_FORMAT == "24"

_raw_start = os.getenv("TIME_DISPLAY_START", "7")
_raw_end   = os.getenv("TIME_DISPLAY_END",   "24")

TZ_LOCAL   = tz.gettz(TIMEZONE) or tz.tzutc()
START_HOUR = _parse_hour(_raw_start, True)
END_HOUR   = _parse_hour(_raw_end,   True)

# Fetching
HTTP_TIMEOUT = float(os.getenv("APP_HTTP_TIMEOUT", 15))
USER_AGENT   = os.getenv("APP_USER_AGENT", "famcal/1.0")

# Page layout (default is US Letter landscape at 300 dpi)
PDF_PAGE_SIZE = os.getenv("DOC_PAGE_DIMENSIONS", "3300x2550")
PDF_DPI       = float(os.getenv("DOC_PAGE_DPI", "300"))
PDF_MARGIN    = float(os.getenv("DOC_MARGIN", 28.8))
FOOTER        = os.getenv("DOC_FOOTER_TEXT", "disabled")
GRIDLINE_COLOR = os.getenv("DOC_GRID_LINE_COLOR", "gray(63%)")
