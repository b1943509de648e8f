"""
Birthday helpers for all-day badges.

Family calendars often keep the birth date in the event description
("Born 1990-05-14", "DOB: 5/14/1990", "b. May 14, 1990"); the week view
shows the age reached on the day instead of a placeholder.
"""
import re
from datetime import date

_KEYWORD = r"\b(?:born|birth|dob|b\.)"

ISO_RE   = re.compile(_KEYWORD + r"[^\d]{0,10}(\d{4})-(\d{2})-(\d{2})\b", re.IGNORECASE)
US_RE    = re.compile(_KEYWORD + r"[^\d]{0,10}(\d{1,2})/(\d{1,2})/(\d{4})\b", re.IGNORECASE)
NAMED_RE = re.compile(
    _KEYWORD + r"[^A-Za-z]{0,10}((?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*)\s+(\d{1,2}),?\s+(\d{4})",
    re.IGNORECASE,
)
YEAR_RE  = re.compile(_KEYWORD + r"[^\d]{0,10}(\d{4})\b", re.IGNORECASE)

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

PUNCT_MAP = {
    "–": "-",
    "—": "-",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "•": "-",
    "…": "...",
}


def _safe_date(y: int, m: int, d: int) -> date | None:
    try:
        return date(y, m, d)
    except ValueError:
        return None


def parse_birthdate(description: str | None) -> tuple[date | None, int | None]:
    """Return (birth date, birth year); either may be None."""
    desc = description or ""
    if not desc:
        return None, None

    m = ISO_RE.search(desc)
    if m:
        bd = _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        if bd:
            return bd, bd.year

    m = US_RE.search(desc)
    if m:
        bd = _safe_date(int(m.group(3)), int(m.group(1)), int(m.group(2)))
        if bd:
            return bd, bd.year

    m = NAMED_RE.search(desc)
    if m:
        name = m.group(1).lower()
        month = MONTHS.get(name[:4]) or MONTHS.get(name[:3])
        if month:
            bd = _safe_date(int(m.group(3)), month, int(m.group(2)))
            if bd:
                return bd, bd.year

    m = YEAR_RE.search(desc)
    if m:
        year = int(m.group(1))
        if 1900 <= year <= 3000:
            return None, year
    return None, None


def age_on(birth_date: date | None, birth_year: int | None, day: date) -> int | None:
    if birth_date is not None:
        age = day.year - birth_date.year
        if (day.month, day.day) < (birth_date.month, birth_date.day):
            age -= 1
        return age
    if birth_year is not None:
        return max(0, day.year - birth_year)
    return None


def strip_unknown_age(text: str) -> str:
    """Drop "- ??", "(??)" and "?? yrs" placeholders from a title."""
    text = re.sub(r"\s*[-–—]\s*\?\?\s*(?:yrs?|years?)?", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\s*[(\[]\s*\?\?\s*(?:yrs?|years?)?\s*[)\]]", "", text, flags=re.IGNORECASE)
    return text


def sanitize_punct(text: str) -> str:
    """ASCII stand-ins for typographic punctuation the core PDF fonts lack."""
    for src, dst in PUNCT_MAP.items():
        text = text.replace(src, dst)
    return text
