from reportlab.lib.pagesizes import landscape, letter
from loguru import logger

import famcal.settings as settings

AXIS_WIDTH     = 57.6   # time labels column (0.8in)
TOP_GAP        = 5.76   # between header and first hour line
HEADER_MIN     = 43.2   # header never shrinks below this
HEADER_CONTENT = 23.04  # all-day badges start this far below the frame top
HEADER_PAD     = 5.76   # room kept under the last badge
MIN_ROW_HEIGHT = 17.28  # hour rows never get smaller than this


def pixels_to_points(pixels, dpi):
    return pixels * 72 / dpi


def get_page_size():
    env_size = settings.PDF_PAGE_SIZE
    env_dpi = settings.PDF_DPI
    try:
        px_width, px_height = map(int, env_size.lower().split("x"))
        return pixels_to_points(px_width, dpi=env_dpi), pixels_to_points(px_height, dpi=env_dpi)
    except ValueError as e:
        logger.warning("Invalid DOC_PAGE_DIMENSIONS or DOC_PAGE_DPI: {}. Using landscape letter.", e)
        return landscape(letter)


def max_header_height(height: float, rows: int) -> float:
    inner_h = height - 2 * settings.PDF_MARGIN
    return max(HEADER_MIN, inner_h - TOP_GAP - rows * MIN_ROW_HEIGHT)


def get_week_layout(width, height, header_h, start_hour=None, end_hour=None):
    """
    Geometry of the week page in ReportLab points (origin bottom-left).
    """
    start_hour = settings.START_HOUR if start_hour is None else start_hour
    end_hour = settings.END_HOUR if end_hour is None else end_hour
    margin = settings.PDF_MARGIN

    frame_left   = margin
    frame_right  = width - margin
    frame_top    = height - margin
    frame_bottom = margin

    rows = max(1, end_hour - start_hour)
    header_h = min(max_header_height(height, rows), max(HEADER_MIN, header_h))
    grid_top = frame_top - header_h - TOP_GAP
    grid_h = grid_top - frame_bottom

    return {
        "frame_left":     frame_left,
        "frame_right":    frame_right,
        "frame_top":      frame_top,
        "frame_bottom":   frame_bottom,
        "axis_w":         AXIS_WIDTH,
        "day_w":          (frame_right - frame_left - AXIS_WIDTH) / 7.0,
        "header_h":       header_h,
        "header_bottom":  frame_top - header_h + HEADER_PAD,
        "grid_top":       grid_top,
        "grid_bottom":    frame_bottom,
        "grid_h":         grid_h,
        "rows":           rows,
        "row_h":          grid_h / rows,
        "start_hour":     start_hour,
        "end_hour":       end_hour,
    }


def day_left(index: int, layout: dict) -> float:
    return layout["frame_left"] + layout["axis_w"] + index * layout["day_w"]


def minutes_to_y(minutes: float, layout: dict) -> float:
    """Vertical position of `minutes` after the first grid hour."""
    return layout["grid_top"] - minutes / (layout["rows"] * 60) * layout["grid_h"]
