"""
Typesetting module for multi-line text layers.

The renderer and the hit-tester both size text blocks with
:py:func:`measure`, so the selection outline, the drawn glyphs and the
pickable area always agree.

Example::

    from textbehind.api.layers import TextLayer
    from textbehind.typesetting import measure

    layer = TextLayer(text="first\\nsecond line", x=10, y=60, font_size=48)
    metrics = measure(layer)
    print(metrics.max_width, metrics.total_height)
"""

import functools
import logging
from typing import Any, Union

from attrs import define
from PIL import ImageDraw, ImageFont

from textbehind.constants import LINE_HEIGHT_FACTOR

logger = logging.getLogger(__name__)

Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]

# Font file stems to try, per lower-cased family name. Regular and bold
# variants are tried in order; Pillow searches the platform font folders.
_FONT_FILES = {
    "arial": (("arial", "Arial", "LiberationSans-Regular", "DejaVuSans"),
              ("arialbd", "Arial Bold", "LiberationSans-Bold", "DejaVuSans-Bold")),
    "helvetica": (("Helvetica", "LiberationSans-Regular", "DejaVuSans"),
                  ("Helvetica-Bold", "LiberationSans-Bold", "DejaVuSans-Bold")),
    "georgia": (("georgia", "Georgia", "DejaVuSerif"),
                ("georgiab", "Georgia Bold", "DejaVuSerif-Bold")),
    "times": (("times", "Times New Roman", "LiberationSerif-Regular", "DejaVuSerif"),
              ("timesbd", "Times New Roman Bold", "LiberationSerif-Bold", "DejaVuSerif-Bold")),
    "courier": (("cour", "Courier New", "LiberationMono-Regular", "DejaVuSansMono"),
                ("courbd", "Courier New Bold", "LiberationMono-Bold", "DejaVuSansMono-Bold")),
    "impact": (("impact", "Impact", "DejaVuSans-Bold"), ("impact", "Impact", "DejaVuSans-Bold")),
    "comic sans ms": (("comic", "Comic Sans MS", "DejaVuSans"),
                      ("comicbd", "Comic Sans MS Bold", "DejaVuSans-Bold")),
    "trebuchet ms": (("trebuc", "Trebuchet MS", "DejaVuSans"),
                     ("trebucbd", "Trebuchet MS Bold", "DejaVuSans-Bold")),
    "verdana": (("verdana", "Verdana", "DejaVuSans"),
                ("verdanab", "Verdana Bold", "DejaVuSans-Bold")),
    "sans-serif": (("DejaVuSans", "LiberationSans-Regular", "arial"),
                   ("DejaVuSans-Bold", "LiberationSans-Bold", "arialbd")),
    "serif": (("DejaVuSerif", "LiberationSerif-Regular", "times"),
              ("DejaVuSerif-Bold", "LiberationSerif-Bold", "timesbd")),
    "monospace": (("DejaVuSansMono", "LiberationMono-Regular", "cour"),
                  ("DejaVuSansMono-Bold", "LiberationMono-Bold", "courbd")),
    "cursive": (("comic", "DejaVuSans"), ("comicbd", "DejaVuSans-Bold")),
}

_WEIGHT_NAMES = {
    "thin": 100,
    "light": 300,
    "normal": 400,
    "regular": 400,
    "medium": 500,
    "semibold": 600,
    "bold": 700,
    "black": 900,
}


@define(frozen=True)
class TextMetrics:
    """
    Size of a text block in layer (logical) coordinates.

    .. py:attribute:: lines

        Lines of the block, split on line breaks.

    .. py:attribute:: line_height

        Baseline advance, ``font_size * 1.2``.

    .. py:attribute:: line_widths

        Advance width of each line including letter spacing.
    """

    lines: tuple[str, ...]
    line_height: float
    line_widths: tuple[float, ...]

    @property
    def max_width(self) -> float:
        return max(self.line_widths) if self.line_widths else 0.0

    @property
    def total_height(self) -> float:
        return len(self.lines) * self.line_height


def split_lines(text: str) -> tuple[str, ...]:
    return tuple(text.split("\n"))


def is_bold(weight: Union[str, int]) -> bool:
    """Whether a CSS-like weight token selects a bold face."""
    token = str(weight).strip().lower()
    if token.isdigit():
        return int(token) >= 600
    return _WEIGHT_NAMES.get(token, 400) >= 600


def _family_names(family: str) -> list[str]:
    return [name.strip().strip("'\"").lower() for name in family.split(",") if name.strip()]


@functools.lru_cache(maxsize=256)
def resolve_font(family: str, weight: Union[str, int], size: float) -> Font:
    """
    Load a font for a CSS-like family list, weight token and pixel size.

    Families are tried in order; unknown names are tried as font file names.
    When nothing can be loaded the Pillow default font is used at the
    requested size.
    """
    bold = is_bold(weight)
    for name in _family_names(family):
        candidates = _FONT_FILES.get(name)
        stems: Any = candidates[1 if bold else 0] if candidates else (name,)
        for stem in stems:
            for filename in (stem, stem + ".ttf"):
                try:
                    font = ImageFont.truetype(filename, size=size)
                except OSError:
                    continue
                logger.debug("Resolved font %r (%s) to %s", family, weight, filename)
                return font
    logger.debug("No font file for %r, using the default font", family)
    return ImageFont.load_default(size=size)


def line_width(line: str, font: Font, letter_spacing: float = 0.0) -> float:
    """Advance width of a single line with letter spacing applied per glyph."""
    width = float(font.getlength(line))
    if letter_spacing:
        width += letter_spacing * len(line)
    return width


def measure(layer: Any) -> TextMetrics:
    """
    Measure a text layer in logical coordinates.

    :param layer: :py:class:`~textbehind.api.layers.TextLayer`.
    :return: :py:class:`TextMetrics`
    """
    font = resolve_font(layer.font_family, layer.font_weight, layer.font_size)
    lines = split_lines(layer.text)
    widths = tuple(line_width(line, font, layer.letter_spacing) for line in lines)
    return TextMetrics(
        lines=lines,
        line_height=layer.font_size * LINE_HEIGHT_FACTOR,
        line_widths=widths,
    )


def bounding_box(layer: Any) -> tuple[float, float, float, float]:
    """
    Pickable box of a text layer as ``(left, top, right, bottom)``.

    The top edge sits one font size above the first baseline.
    """
    metrics = measure(layer)
    return (
        layer.x,
        layer.y - layer.font_size,
        layer.x + metrics.max_width,
        layer.y + metrics.total_height - layer.font_size,
    )


def draw_line(
    draw: ImageDraw.ImageDraw,
    origin: tuple[float, float],
    line: str,
    font: Font,
    fill: Any,
    letter_spacing: float = 0.0,
    stroke_width: float = 0.0,
    stroke_fill: Any = None,
) -> None:
    """
    Draw one line with its left baseline at ``origin``.

    When ``stroke_width`` is positive the outline is painted first and the
    fill on top of it. ``stroke_width`` is the full canvas line width, half
    of which falls outside the glyph outline.
    """
    stroke = 0
    if stroke_width > 0:
        stroke = max(1, int(round(stroke_width / 2.0)))
    options = {"font": font, "fill": fill}
    if stroke:
        options.update(stroke_width=stroke, stroke_fill=stroke_fill)

    x, y = origin
    if isinstance(font, ImageFont.FreeTypeFont):
        options["anchor"] = "ls"
    else:
        # Bitmap fonts only support top-left anchoring.
        y -= font.getbbox("Ag")[3]
    if not letter_spacing:
        draw.text((x, y), line, **options)
        return
    for char in line:
        draw.text((x, y), char, **options)
        x += float(font.getlength(char)) + letter_spacing
