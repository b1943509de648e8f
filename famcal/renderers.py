from datetime import date, datetime, timedelta, tzinfo

from loguru import logger
from reportlab.pdfgen import canvas
from reportlab.lib.colors import HexColor, black, white
from reportlab.pdfbase.pdfmetrics import stringWidth

import famcal.settings as settings
from famcal.birthdays import age_on, parse_birthdate, sanitize_punct, strip_unknown_age
from famcal.event_processing import DayBucket, assign_columns
from famcal.layout import (
    HEADER_CONTENT,
    HEADER_MIN,
    HEADER_PAD,
    day_left,
    get_page_size,
    get_week_layout,
    minutes_to_y,
)
from famcal.logger import VISUAL
from famcal.models import Occurrence
from famcal.utils import css_color_to_hex, fmt_hour, fmt_time

FONT      = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

BADGE_FONT_SIZE = 8
BADGE_LINE_H    = 7.92
BADGE_PAD_X     = 2.88
BADGE_PAD_Y     = 2.88
BADGE_GAP       = 2.88
BADGE_INSET     = 5.76
BADGE_MAX_LINES = 2

EVENT_FONT_SIZE = 6
EVENT_LINE_H    = 7.92
EVENT_SIDE_PAD  = 4.32
EVENT_INNER_PAD = 1.44
MIN_EVENT_MINUTES = 5

THIN_LINE  = 0.576
FRAME_LINE = 1.44
COLOR_BAR  = 2


def _force_ellipsis(text, font, size, max_width):
    ellipsis = "..."
    while text and stringWidth(text + ellipsis, font, size) > max_width:
        text = text[:-1]
    return text.rstrip() + ellipsis


def ellipsize(text: str, font: str, size: float, max_width: float) -> str:
    if stringWidth(text, font, size) <= max_width:
        return text
    return _force_ellipsis(text, font, size, max_width)


def wrap_to_lines(text: str, font: str, size: float, max_width: float, max_lines: int) -> list[str]:
    """
    Word-wrap `text` into at most `max_lines` lines of `max_width` points.
    Words wider than a line are hard-cut; overflow ellipsizes the last line.
    """
    max_lines = max(1, max_lines)
    if stringWidth(text, font, size) <= max_width:
        return [text]
    if max_lines == 1:
        return [_force_ellipsis(text, font, size, max_width)]

    lines: list[str] = []
    current = ""
    for word in text.split():
        trial = f"{current} {word}" if current else word
        if stringWidth(trial, font, size) <= max_width:
            current = trial
            continue
        if current:
            lines.append(current)
        while len(word) > 1 and stringWidth(word, font, size) > max_width:
            cut = word
            while len(cut) > 1 and stringWidth(cut, font, size) > max_width:
                cut = cut[:-1]
            lines.append(cut)
            word = word[len(cut):]
        current = word
    if current:
        lines.append(current)

    if len(lines) > max_lines:
        lines = lines[:max_lines]
        lines[-1] = _force_ellipsis(lines[-1], font, size, max_width)
    return lines


def _badge_font(occ: Occurrence) -> str:
    return FONT_BOLD if occ.is_holiday else FONT


def badge_lines(occ: Occurrence, day: date, inner_w: float) -> list[str]:
    """Badge text for an all-day occurrence; birthdays get an age line."""
    font = _badge_font(occ)
    summary = strip_unknown_age(sanitize_punct(occ.summary)).strip() or "(No title)"
    birth_date, birth_year = parse_birthdate(occ.description)
    age = age_on(birth_date, birth_year, day)
    if age is not None and age >= 0:
        return [ellipsize(summary, font, BADGE_FONT_SIZE, inner_w), f"{age} years old"]
    return wrap_to_lines(summary, font, BADGE_FONT_SIZE, inner_w, BADGE_MAX_LINES)


def badge_height(line_count: int) -> float:
    return 2 * BADGE_PAD_Y + line_count * BADGE_LINE_H


def badge_inner_width(day_w: float) -> float:
    return max(7.2, day_w - 2 * BADGE_INSET) - 2 * BADGE_PAD_X


def header_height_for(days: dict[date, DayBucket], day_w: float) -> float:
    """Header height needed to show every all-day badge of the week."""
    inner_w = badge_inner_width(day_w)
    needed = HEADER_MIN
    for bucket in days.values():
        total = sum(
            badge_height(len(badge_lines(occ, bucket.day, inner_w))) + BADGE_GAP
            for occ in bucket.all_day
        )
        if total:
            total -= BADGE_GAP
        needed = max(needed, HEADER_CONTENT + total + HEADER_PAD)
    return needed


def _fill_hex(c, color: str | None):
    c.setFillColor(HexColor(css_color_to_hex(color)))


def render_frame(c, layout: dict, week_start: date):
    """Outer frame, day columns, hour lines, hour labels and day titles."""
    left, right = layout["frame_left"], layout["frame_right"]
    top, bottom = layout["frame_top"], layout["frame_bottom"]
    grid_color = HexColor(css_color_to_hex(settings.GRIDLINE_COLOR))

    c.setStrokeColor(black)
    c.setLineWidth(FRAME_LINE)
    c.rect(left, bottom, right - left, top - bottom, stroke=1, fill=0)

    c.setStrokeColor(grid_color)
    c.setLineWidth(THIN_LINE)
    for i in range(7):
        x = day_left(i, layout)
        c.line(x, bottom, x, top)
    for i in range(layout["rows"] + 1):
        y = layout["grid_top"] - i * layout["row_h"]
        c.line(left, y, right, y)

    c.setFillColor(black)
    c.setFont(FONT, 10)
    label_x = left + layout["axis_w"] - 3.6
    for i in range(layout["rows"]):
        y = layout["grid_top"] - i * layout["row_h"]
        c.drawRightString(label_x, y - 10, fmt_hour(layout["start_hour"] + i))

    c.setFont(FONT_BOLD, 10)
    for i in range(7):
        d = week_start + timedelta(days=i)
        title = f"{d:%A} ({d.month}/{d.day})"
        c.drawCentredString(day_left(i, layout) + layout["day_w"] / 2, top - 7.2 - 10, title)


def draw_all_day(c, layout: dict, index: int, bucket: DayBucket):
    x = day_left(index, layout) + BADGE_INSET
    bw = max(7.2, layout["day_w"] - 2 * BADGE_INSET)
    inner_w = bw - 2 * BADGE_PAD_X
    y = layout["frame_top"] - HEADER_CONTENT
    bottom = layout["header_bottom"]
    min_h = BADGE_PAD_Y + BADGE_LINE_H

    for idx, occ in enumerate(bucket.all_day):
        remain = y - bottom
        if remain < min_h:
            left_over = len(bucket.all_day) - idx
            if remain > 7.2:
                h = min(remain, 15.84)
                c.setStrokeColor(black)
                c.setFillColor(white)
                c.setLineWidth(THIN_LINE)
                c.rect(x, y - h, bw, h, stroke=1, fill=1)
                c.setFillColor(black)
                c.setFont(FONT, BADGE_FONT_SIZE)
                c.drawCentredString(x + bw / 2, y - h / 2 - 2.5, f"+{left_over} more")
            logger.log(VISUAL, "{}: {} all-day events did not fit", bucket.day, left_over)
            break

        lines = badge_lines(occ, bucket.day, inner_w)
        h = min(badge_height(len(lines)), remain)
        fits = max(1, int((h - 2 * BADGE_PAD_Y) // BADGE_LINE_H))
        if len(lines) > fits:
            lines = lines[:fits]
            lines[-1] = _force_ellipsis(lines[-1], _badge_font(occ), BADGE_FONT_SIZE, inner_w)

        c.setStrokeColor(black)
        c.setFillColor(white)
        c.setLineWidth(THIN_LINE)
        c.rect(x, y - h, bw, h, stroke=1, fill=1)
        if occ.color:
            _fill_hex(c, occ.color)
            c.rect(x, y - h, COLOR_BAR, h, stroke=0, fill=1)

        c.setFillColor(black)
        c.setFont(_badge_font(occ), BADGE_FONT_SIZE)
        for i, line in enumerate(lines):
            baseline = y - BADGE_PAD_Y - (i + 1) * BADGE_LINE_H + 2
            c.drawCentredString(x + bw / 2, baseline, line)

        y -= h + BADGE_GAP
        if y <= bottom:
            break


def timed_items(bucket: DayBucket, layout: dict, tz: tzinfo) -> list[tuple]:
    """(start_min, end_min, (occ, local_start, local_end)) for on-grid events."""
    total = layout["rows"] * 60
    base = layout["start_hour"] * 60
    items = []
    for occ in bucket.timed:
        st = occ.start.ts
        en = occ.end.ts if occ.end.ts is not None else st + 3600
        ls = datetime.fromtimestamp(st, tz)
        le = datetime.fromtimestamp(max(en, st), tz)
        start_min = ls.hour * 60 + ls.minute - base
        if le.date() > ls.date():
            end_min = total
        else:
            end_min = le.hour * 60 + le.minute - base
        if start_min >= total or end_min <= 0:
            logger.log(VISUAL, "Off-grid: {} at {}", occ.summary, occ.start.display)
            continue
        start_min = max(0, start_min)
        end_min = max(start_min + MIN_EVENT_MINUTES, min(total, end_min))
        items.append((start_min, end_min, (occ, ls, le)))
    return items


def draw_timed(c, layout: dict, index: int, bucket: DayBucket, tz: tzinfo):
    usable_w = max(7.2, layout["day_w"] - 2 * EVENT_SIDE_PAD)
    x_left = day_left(index, layout) + EVENT_SIDE_PAD
    nudge = min(5.76, layout["row_h"] * 0.45)

    for placed in assign_columns(timed_items(bucket, layout, tz)):
        occ, ls, le = placed["item"]
        start_min, end_min = placed["start"], placed["end"]
        col_w = usable_w / placed["col_count"]
        bx = x_left + placed["col_index"] * col_w + EVENT_INNER_PAD
        bw = max(1.44, col_w - 2 * EVENT_INNER_PAD)

        # keep boxes off the hour lines they start or end on
        y_top = minutes_to_y(start_min, layout)
        y_bottom = minutes_to_y(end_min, layout)
        if start_min % 60 == 0:
            y_top -= nudge
        if end_min % 60 == 0:
            y_bottom += nudge
        h = max(7.2, y_top - y_bottom)

        c.setStrokeColor(black)
        c.setFillColor(white)
        c.setLineWidth(THIN_LINE)
        c.rect(bx, y_top - h, bw, h, stroke=1, fill=1)
        if occ.color:
            _fill_hex(c, occ.color)
            c.rect(bx, y_top - h, COLOR_BAR, h, stroke=0, fill=1)

        summary = sanitize_punct(occ.summary).strip() or "(No title)"
        label = f"{fmt_time(ls)} - {fmt_time(le)}  {summary}"
        max_lines = max(1, int((h - 2.52) // EVENT_LINE_H))
        lines = wrap_to_lines(label, FONT, EVENT_FONT_SIZE, bw - 3.6, max_lines)
        c.setFillColor(black)
        c.setFont(FONT, EVENT_FONT_SIZE)
        for i, line in enumerate(lines):
            c.drawString(bx + 1.8 + COLOR_BAR, y_top - 2.52 - (i + 1) * EVENT_LINE_H + 2, line)


def render_week_pdf(
    days: dict[date, DayBucket],
    output_path: str,
    week_start: date,
    tz: tzinfo = settings.TZ_LOCAL,
    title: str | None = None,
):
    """
    Draw one landscape week page:
      • day titles and all-day badges in a header sized to its content
      • hour grid from START_HOUR to END_HOUR
      • timed events laid out side by side where they overlap
    """
    width, height = get_page_size()
    c = canvas.Canvas(output_path, pagesize=(width, height))
    c.setTitle(title or f"Week of {week_start:%b} {week_start.day}, {week_start.year}")

    probe = get_week_layout(width, height, HEADER_MIN)
    layout = get_week_layout(width, height, header_height_for(days, probe["day_w"]))
    logger.log(VISUAL, "Page size: {w:.2f}×{h:.2f}", w=width, h=height)
    logger.log(VISUAL, "Header: {h:.2f}, row height: {r:.2f}", h=layout["header_h"], r=layout["row_h"])

    render_frame(c, layout, week_start)
    for i in range(7):
        d = week_start + timedelta(days=i)
        bucket = days.get(d) or DayBucket(d)
        draw_all_day(c, layout, i, bucket)
        draw_timed(c, layout, i, bucket, tz)

    footer = settings.FOOTER
    if footer != "disabled":
        if footer == "updatedat":
            footer = datetime.now(tz).strftime("Updated: %Y-%m-%d %H:%M %Z")
        c.setFont(FONT, 6)
        c.setFillColor(HexColor(css_color_to_hex("gray(60%)")))
        c.drawCentredString(width / 2, layout["frame_bottom"] / 2, footer)

    c.showPage()
    c.save()
    logger.debug("Rendered week of {} to {}", week_start, output_path)
