"""Layered renderer for interactive preview and export."""

import logging
from typing import Callable

from PIL import Image, ImageColor

from textbehind import typesetting
from textbehind.api.layers import BackgroundImageLayer, TextLayer
from textbehind.api.scene import Scene
from textbehind.composite import vector
from textbehind.composite.surface import Surface
from textbehind.constants import RenderMode
from textbehind.exceptions import MissingAssetError

logger = logging.getLogger(__name__)


def render(
    surface: Surface, scene: Scene, mode: RenderMode = RenderMode.INTERACTIVE
) -> Surface:
    """
    Draw the whole scene onto ``surface``.

    Paint order never changes: the original photo, every background image
    layer, every text layer, then the foreground cutout. The cutout being
    last is what puts the subject in front of the text.

    In interactive mode the selected layer gets a dashed outline and draw
    errors propagate. In export mode the surface uses the best resampling,
    outlines are omitted, and a layer that fails to draw is logged and
    skipped.

    :raises MissingAssetError: if either base image is not decoded.
    :return: ``surface``
    """
    original = scene.original_image.image if scene.original_image.ready else None
    cutout = scene.foreground_cutout.image if scene.foreground_cutout.ready else None
    if original is None or cutout is None:
        raise MissingAssetError("Images not loaded")

    export = mode is RenderMode.EXPORT
    if export:
        surface.high_quality = True
    interactive = not export
    width, height = surface.logical_size

    surface.reset_transform()
    surface.clear()
    surface.draw_image(original, 0, 0, width, height)

    selection = scene.selection
    for layer in scene.background_layers:
        selected = interactive and layer.id == selection.background_id
        _draw_layer(
            mode, layer, lambda: draw_background_layer(surface, scene, layer, selected)
        )

    for text_layer in scene.text_layers:
        selected = interactive and text_layer.id == selection.text_id
        _draw_layer(
            mode, text_layer, lambda: draw_text_layer(surface, text_layer, selected)
        )

    surface.draw_image(cutout, 0, 0, width, height)
    return surface


def _draw_layer(mode: RenderMode, layer, draw: Callable[[], None]) -> None:
    if mode is not RenderMode.EXPORT:
        draw()
        return
    try:
        draw()
    except Exception as e:
        logger.warning(
            "Failed to render %s layer %s: %s" % (layer.kind.value, layer.id, e)
        )


def draw_background_layer(
    surface: Surface,
    scene: Scene,
    layer: BackgroundImageLayer,
    selected: bool = False,
) -> bool:
    """
    Draw a background image rotated around its center.

    :return: False if the image is not decoded yet, in which case nothing
        is drawn.
    """
    image = scene.images.ready_image(layer.id)
    if image is None:
        return False
    cx, cy = layer.center
    with surface.saved():
        surface.translate(cx, cy)
        surface.rotate(layer.rotation)
        surface.draw_image(
            image,
            -layer.width / 2.0,
            -layer.height / 2.0,
            layer.width,
            layer.height,
            opacity=layer.opacity,
        )
        if selected:
            vector.draw_selection_rect(
                surface,
                -layer.width / 2.0,
                -layer.height / 2.0,
                layer.width,
                layer.height,
            )
    return True


def draw_text_layer(surface: Surface, layer: TextLayer, selected: bool = False) -> None:
    """
    Draw each line of a text layer, advancing the baseline by
    ``font_size * 1.2``; stroke goes under the fill.
    """
    metrics = typesetting.measure(layer)
    scale = surface.transform.scale_factor
    font = typesetting.resolve_font(
        layer.font_family, layer.font_weight, layer.font_size * scale
    )
    fill = _color(layer.color)
    stroke_fill = _color(layer.stroke_color) if layer.stroke_width > 0 else None

    with surface.layer(opacity=layer.opacity) as draw:
        for index, line in enumerate(metrics.lines):
            origin = surface.to_device(layer.x, layer.y + index * metrics.line_height)
            typesetting.draw_line(
                draw,
                origin,
                line,
                font,
                fill,
                letter_spacing=layer.letter_spacing * scale,
                stroke_width=layer.stroke_width * scale,
                stroke_fill=stroke_fill,
            )

    if selected:
        vector.draw_selection_rect(
            surface,
            layer.x,
            layer.y - layer.font_size,
            metrics.max_width,
            metrics.total_height,
        )


def _color(value: str) -> tuple[int, ...]:
    return ImageColor.getcolor(value, "RGBA")  # type: ignore[return-value]


def render_image(
    scene: Scene, mode: RenderMode = RenderMode.INTERACTIVE, scale: float = 1.0
) -> Image.Image:
    """Render a scene to a new RGBA image at ``scale`` times its canvas size."""
    surface = Surface(scene.width, scene.height, scale=scale)
    render(surface, scene, mode)
    image = surface.image.copy()
    surface.close()
    return image
