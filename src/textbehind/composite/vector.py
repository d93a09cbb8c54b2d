"""Vector strokes for selection outlines."""

import logging
from typing import Sequence

import aggdraw  # type: ignore[import-not-found]

from textbehind.composite.surface import Surface
from textbehind.constants import (
    SELECTION_ALPHA,
    SELECTION_COLOR,
    SELECTION_DASH,
    SELECTION_LINE_WIDTH,
    SELECTION_PADDING,
)
from textbehind.geometry import Point, dash_segments, rect_corners

logger = logging.getLogger(__name__)


def draw_selection_rect(
    surface: Surface, x: float, y: float, width: float, height: float
) -> None:
    """
    Stroke the dashed, translucent selection outline around a box given in
    the surface's current (possibly rotated) frame.
    """
    pad = SELECTION_PADDING
    corners = rect_corners(x - pad, y - pad, width + 2 * pad, height + 2 * pad)
    scale = surface.transform.scale_factor
    draw_dashed_polygon(
        surface,
        surface.transform.apply_many(corners),
        color=SELECTION_COLOR,
        width=SELECTION_LINE_WIDTH * scale,
        opacity=SELECTION_ALPHA,
        pattern=[length * scale for length in SELECTION_DASH],
    )


def draw_dashed_polygon(
    surface: Surface,
    points: Sequence[Point],
    color: str,
    width: float,
    opacity: float,
    pattern: Sequence[float],
) -> None:
    """
    Rasterize a closed dashed polygon given in device coordinates using
    aggdraw's anti-aliased pen.
    """
    draw = aggdraw.Draw(surface.image)
    pen = aggdraw.Pen(color, width, int(round(255 * opacity)))
    count = 0
    for (x0, y0), (x1, y1) in dash_segments(points, pattern):
        draw.line((x0, y0, x1, y1), pen)
        count += 1
    draw.flush()
    del draw
    logger.debug("Stroked %d dashes" % count)
