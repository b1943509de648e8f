from pathlib import Path

import yaml
from loguru import logger

import famcal.settings as settings
from famcal.normalize import sanitize_color
from famcal.utils import css_color_to_hex

DEFAULT_COLOR = "#CCCCCC"


def load_config(path: str | Path | None = None) -> dict:
    """Load the calendar list and normalize colors."""
    path = Path(path or settings.CONFIG_PATH)
    with open(path, 'r', encoding='utf-8') as f:
        logger.debug("Loading configuration from {}", path)
        config = yaml.safe_load(f) or {}

    calendars = []
    for cal in config.get("calendars") or []:
        source = cal.get("source") or cal.get("url")
        if not source:
            logger.warning("Calendar {!r} has no source, skipping", cal.get("name"))
            continue
        calendars.append({
            "name": str(cal.get("name") or source),
            "source": source,
            "color": sanitize_color(css_color_to_hex(str(cal.get("color", DEFAULT_COLOR)))) or DEFAULT_COLOR,
        })
    config["calendars"] = calendars
    config["holiday_ics"] = config.get("holiday_ics") or None
    return config
