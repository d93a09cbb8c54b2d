"""
Layer module.

Layers are plain attrs records. Attribute assignment is validated, so a
property editor that sets ``layer.opacity = 2`` gets a :exc:`ValueError`
and the layer keeps its previous value.

Key classes:

- :py:class:`TextLayer`: multi-line text drawn behind the foreground cutout
- :py:class:`BackgroundImageLayer`: rotated, resizable image drawn above the
  original photo and below all text

Stacking is not a layer property: every background image layer paints
below every text layer regardless of insertion order. Within a kind, later
layers paint on top.
"""

import logging
import uuid
from typing import Any

from attrs import define, evolve, field, fields

from textbehind.constants import (
    DEFAULT_BACKGROUND_SIZE,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_FONT_WEIGHT,
    DEFAULT_STROKE_COLOR,
    DEFAULT_TEXT,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_Y,
    LayerKind,
)
from textbehind.validators import color_, positive, range_

logger = logging.getLogger(__name__)


def new_layer_id() -> str:
    return uuid.uuid4().hex[:12]


def _number(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("Expected a number, got %r" % (value,))
    return float(value)


class Layer(object):
    """Common behavior of scene layers."""

    __slots__ = ()

    kind = LayerKind.NONE

    @property
    def position(self) -> tuple[float, float]:
        """Layer origin ``(x, y)``."""
        return (self.x, self.y)  # type: ignore[attr-defined]

    def move_to(self, x: float, y: float) -> None:
        self.x = x  # type: ignore[attr-defined]
        self.y = y  # type: ignore[attr-defined]

    def update(self, **changes: Any) -> None:
        """
        Set several fields at once.

        Names and values are all checked before anything is assigned, so a
        rejected update leaves the layer unchanged; ``id`` cannot be changed.
        """
        names = {f.name for f in fields(type(self))}  # type: ignore[arg-type]
        for name in changes:
            if name == "id":
                raise ValueError("Layer id is read-only")
            if name not in names:
                raise ValueError(
                    "Unknown %s field: %s" % (type(self).__name__, name)
                )
        candidate = evolve(self, **changes)  # type: ignore[misc]
        for name in changes:
            setattr(self, name, getattr(candidate, name))


@define(eq=False)
class TextLayer(Layer):
    """
    Text layer.

    .. py:attribute:: text

        Content; ``\\n`` separates lines.

    .. py:attribute:: x
    .. py:attribute:: y

        Anchor. ``y`` is the baseline of the first line.

    .. py:attribute:: font_size

        Font size in pixels. Lines advance by ``font_size * 1.2``.

    .. py:attribute:: letter_spacing

        Extra advance after each glyph, in pixels. May be negative.

    .. py:attribute:: stroke_width

        Outline width in pixels; 0 disables the outline.
    """

    kind = LayerKind.TEXT

    text: str = field(default=DEFAULT_TEXT, converter=str)
    x: float = field(default=0.0, converter=_number)
    y: float = field(default=float(DEFAULT_TEXT_Y), converter=_number)
    font_size: float = field(
        default=float(DEFAULT_FONT_SIZE), converter=_number, validator=positive
    )
    font_family: str = field(default=DEFAULT_FONT_FAMILY, converter=str)
    font_weight: str = field(default=DEFAULT_FONT_WEIGHT, converter=str)
    color: str = field(default=DEFAULT_TEXT_COLOR, validator=color_)
    opacity: float = field(default=1.0, converter=_number, validator=range_(0.0, 1.0))
    letter_spacing: float = field(default=0.0, converter=_number)
    stroke_width: float = field(default=0.0, converter=_number, validator=range_(0.0, float("inf")))
    stroke_color: str = field(default=DEFAULT_STROKE_COLOR, validator=color_)
    id: str = field(factory=new_layer_id, kw_only=True)


@define(eq=False)
class BackgroundImageLayer(Layer):
    """
    Background image layer.

    The pixels live in the scene's image cache under the layer ``id``; the
    layer renders nothing until that resource is decoded.

    .. py:attribute:: x
    .. py:attribute:: y

        Top-left corner before rotation.

    .. py:attribute:: width
    .. py:attribute:: height

        Drawn size in pixels, independent of the source aspect ratio.

    .. py:attribute:: rotation

        Degrees around the box center, clockwise positive.
    """

    kind = LayerKind.BACKGROUND

    x: float = field(default=0.0, converter=_number)
    y: float = field(default=0.0, converter=_number)
    width: float = field(
        default=float(DEFAULT_BACKGROUND_SIZE), converter=_number, validator=positive
    )
    height: float = field(
        default=float(DEFAULT_BACKGROUND_SIZE), converter=_number, validator=positive
    )
    opacity: float = field(default=1.0, converter=_number, validator=range_(0.0, 1.0))
    rotation: float = field(default=0.0, converter=_number)
    id: str = field(factory=new_layer_id, kw_only=True)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)
