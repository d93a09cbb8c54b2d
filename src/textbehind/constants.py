"""
Various constants for textbehind
"""
from enum import Enum, IntEnum


class RenderMode(Enum):
    """
    Rendering mode of :py:func:`~textbehind.composite.render`.
    """
    INTERACTIVE = "interactive"
    EXPORT = "export"


class LayerKind(Enum):
    """
    Kind of layer reported by the hit-tester.
    """
    TEXT = "text"
    BACKGROUND = "background"
    NONE = "none"


class ExportProgress(IntEnum):
    """
    Progress milestones reported by the export pipeline.
    """
    STARTED = 0
    ASSETS_RESOLVED = 30
    REDRAW_ISSUED = 50
    DRAWN = 80
    ENCODED = 90
    DONE = 100


class Cursor(Enum):
    """
    Cursor feedback returned by the interaction controller.
    """
    CROSSHAIR = "crosshair"
    GRAB = "grab"
    GRABBING = "grabbing"


# Interactive canvas is fitted within these bounds keeping the aspect ratio.
MAX_CANVAS_WIDTH = 800
MAX_CANVAS_HEIGHT = 600

# Baseline advance between lines, relative to the font size.
LINE_HEIGHT_FACTOR = 1.2

# Selection overlay style.
SELECTION_COLOR = "#3b82f6"
SELECTION_ALPHA = 0.3
SELECTION_LINE_WIDTH = 2
SELECTION_DASH = (5, 5)
SELECTION_PADDING = 5

# Text layer defaults; x defaults to the horizontal canvas center.
DEFAULT_TEXT = "pov"
DEFAULT_TEXT_Y = 60
DEFAULT_FONT_SIZE = 48
DEFAULT_FONT_FAMILY = "Arial, sans-serif"
DEFAULT_FONT_WEIGHT = "400"
DEFAULT_TEXT_COLOR = "#ffffff"
DEFAULT_STROKE_COLOR = "#000000"

# Background image layer defaults.
DEFAULT_BACKGROUND_SIZE = 200

# Uploads larger than this are rejected.
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Export pipeline.
EXPORT_SCALE = 2
EXPORT_IMAGE_TIMEOUT = 5.0
EXPORT_OVERALL_TIMEOUT = 10.0
EXPORT_FILENAME_PREFIX = "text-behind-image"

DELETE_KEYS = ("Delete",)
