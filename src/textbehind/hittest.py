"""
Hit-testing of scene layers.

Text layers are tested before background image layers and win when both
contain the point. Within a kind the topmost (last added) layer wins.
"""

import logging
from typing import Optional

from attrs import define

from textbehind import typesetting
from textbehind.api.layers import BackgroundImageLayer, TextLayer
from textbehind.api.scene import Scene
from textbehind.constants import LayerKind
from textbehind.geometry import Point, rect_contains, rotated_rect_contains

logger = logging.getLogger(__name__)


@define(frozen=True)
class Pick:
    """Result of :py:func:`pick_at`; ``id`` is None when nothing was hit."""

    kind: LayerKind = LayerKind.NONE
    id: Optional[str] = None

    def __bool__(self) -> bool:
        return self.kind is not LayerKind.NONE


NOTHING = Pick()


def text_contains(layer: TextLayer, point: Point) -> bool:
    return rect_contains(point, *typesetting.bounding_box(layer))


def background_contains(layer: BackgroundImageLayer, point: Point) -> bool:
    return rotated_rect_contains(
        point, layer.x, layer.y, layer.width, layer.height, layer.rotation
    )


def text_layer_at(scene: Scene, point: Point) -> Optional[TextLayer]:
    """Topmost text layer whose measured box contains ``point``."""
    for layer in reversed(scene.text_layers):
        if text_contains(layer, point):
            return layer
    return None


def background_layer_at(scene: Scene, point: Point) -> Optional[BackgroundImageLayer]:
    """Topmost background image layer whose rotated box contains ``point``."""
    for layer in reversed(scene.background_layers):
        if background_contains(layer, point):
            return layer
    return None


def pick_at(point: Point, scene: Scene) -> Pick:
    """
    Find the layer under a point given in logical canvas coordinates.

    :return: :py:class:`Pick`
    """
    text = text_layer_at(scene, point)
    if text is not None:
        return Pick(LayerKind.TEXT, text.id)
    background = background_layer_at(scene, point)
    if background is not None:
        return Pick(LayerKind.BACKGROUND, background.id)
    return NOTHING
