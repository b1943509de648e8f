import sys
import os
from collections import Counter
from tempfile import NamedTemporaryFile

from PyPDF2 import PdfMerger
from loguru import logger

import famcal.settings as settings
from famcal.config import load_config
from famcal.calendar_loader import load_occurrences
from famcal.event_processing import bucket_by_day, filter_hidden, week_window
from famcal.hidden import hide_event, load_hidden, unhide_event
from famcal.renderers import render_week_pdf
from famcal.utils import parse_week_range
from famcal.logger import configure_logging

USAGE = (
    "usage: main.py                                  render TIME_DATE_RANGE to a PDF\n"
    "       main.py hide|unhide CALENDAR START_TS SUMMARY"
)


def toggle_hidden(action: str, calendar: str, start_ts: str, summary: str) -> int:
    try:
        ts = int(start_ts)
    except ValueError:
        logger.error("START_TS must be epoch seconds, got {!r}", start_ts)
        return 2
    if ts <= 0 or not summary.strip():
        logger.error("START_TS and SUMMARY are required")
        return 2
    if action == "hide":
        hide_event(calendar, ts, summary)
        logger.info("Hidden {!r} at {} in {}", summary, ts, calendar)
    else:
        unhide_event(calendar, ts, summary)
        logger.info("Unhidden {!r} at {} in {}", summary, ts, calendar)
    return 0


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    # 0) Set up logs
    configure_logging()

    if argv:
        if len(argv) == 4 and argv[0] in ("hide", "unhide"):
            return toggle_hidden(*argv)
        print(USAGE, file=sys.stderr)
        return 2

    # 1) Determine local timezone
    tz_local = settings.TZ_LOCAL
    logger.debug("Timezone: {}", settings.TIMEZONE)

    # 2) Build list of weeks to render
    week_starts = parse_week_range(settings.DATE_RANGE, tz_local)

    # 3) Load config and hidden flags
    config = load_config()
    hidden = load_hidden()

    # 4) Per-week expansion & rendering
    merger = PdfMerger()
    temp_files = []
    for week_start in week_starts:
        logger.info("Processing week of {}", week_start)
        window_start, window_end = week_window(week_start, tz_local)
        occurrences = load_occurrences(
            config["calendars"],
            window_start,
            window_end,
            tz_local,
            holiday_source=config.get("holiday_ics"),
        )
        occurrences = filter_hidden(occurrences, hidden)

        counts = Counter(occ.calendar_name or "holidays" for occ in occurrences)
        for cal_name, cnt in counts.items():
            logger.debug("   • {}: {} occurrences", cal_name, cnt)

        days = bucket_by_day(occurrences, week_start, tz_local)
        with NamedTemporaryFile(suffix=".pdf", delete=False) as tf:
            tmp = tf.name
        render_week_pdf(days, tmp, week_start, tz=tz_local)
        merger.append(tmp)
        temp_files.append(tmp)

    # 5) Write merged PDF
    out_path = settings.OUTPUT_PDF
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "wb") as f:
        merger.write(f)
    merger.close()
    logger.info("Wrote PDF to {}", out_path)

    # 6) Clean up
    for fpath in temp_files:
        os.remove(fpath)
    return 0


if __name__ == '__main__':
    sys.exit(main())
