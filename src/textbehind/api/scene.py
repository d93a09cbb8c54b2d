"""
Scene module.

A :py:class:`Scene` holds everything the renderer draws: the original photo,
the foreground cutout, the ordered text and background image layers, the
image cache and the current selection.

Example::

    scene = Scene(original, cutout, canvas_size=(800, 533))
    layer = scene.add_text(text="pov")
    scene.update_text(layer.id, font_size=72)
    scene.add_listener(lambda event: print("changed:", event))

Every mutation notifies listeners after it is complete, so a redraw
scheduled from a listener always observes the final state.
"""

import asyncio
import logging
from typing import Any, Callable, Iterator, Optional, Union

from attrs import define

from textbehind.api.layers import BackgroundImageLayer, Layer, TextLayer, new_layer_id
from textbehind.api.resources import ImageCache, ImageResource, Source

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


@define
class Selection:
    """
    Selected layers and open property editors.

    At most one of ``text_id`` and ``background_id`` is set.
    """

    text_id: Optional[str] = None
    background_id: Optional[str] = None
    text_editor_open: bool = False
    background_editor_open: bool = False

    @property
    def empty(self) -> bool:
        return self.text_id is None and self.background_id is None


class Scene(object):
    """
    Layered composition of text and images over a photo.

    :param original_image: Resource or decoded image of the full photo.
    :param foreground_cutout: Resource or decoded image of the subject with
        transparent surroundings.
    :param canvas_size: Logical ``(width, height)`` of the interactive canvas.
    """

    def __init__(
        self,
        original_image: Union[ImageResource, Source],
        foreground_cutout: Union[ImageResource, Source],
        canvas_size: tuple[int, int],
    ):
        self.original_image = _as_resource("original", original_image)
        self.foreground_cutout = _as_resource("foreground", foreground_cutout)
        self.canvas_size = (int(canvas_size[0]), int(canvas_size[1]))
        self.text_layers: list[TextLayer] = []
        self.background_layers: list[BackgroundImageLayer] = []
        self.images = ImageCache()
        self.selection = Selection()
        self._listeners: list[Listener] = []

    def __repr__(self):
        return "%s(size=%dx%d, texts=%d, backgrounds=%d)" % (
            self.__class__.__name__,
            self.canvas_size[0],
            self.canvas_size[1],
            len(self.text_layers),
            len(self.background_layers),
        )

    @property
    def width(self) -> int:
        return self.canvas_size[0]

    @property
    def height(self) -> int:
        return self.canvas_size[1]

    def has_base_images(self) -> bool:
        """True when both the original photo and the cutout are decoded."""
        return self.original_image.ready and self.foreground_cutout.ready

    def layers(self) -> Iterator[Layer]:
        """All layers in paint order, bottom-most first."""
        yield from self.background_layers
        yield from self.text_layers

    # Listeners.

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    # Lookups.

    def get_text(self, layer_id: str) -> TextLayer:
        for layer in self.text_layers:
            if layer.id == layer_id:
                return layer
        raise KeyError("No text layer: %s" % layer_id)

    def get_background(self, layer_id: str) -> BackgroundImageLayer:
        for layer in self.background_layers:
            if layer.id == layer_id:
                return layer
        raise KeyError("No background image layer: %s" % layer_id)

    def find(self, layer_id: str) -> Optional[Layer]:
        for layer in self.layers():
            if layer.id == layer_id:  # type: ignore[attr-defined]
                return layer
        return None

    @property
    def selected_text(self) -> Optional[TextLayer]:
        if self.selection.text_id is None:
            return None
        return self.get_text(self.selection.text_id)

    @property
    def selected_background(self) -> Optional[BackgroundImageLayer]:
        if self.selection.background_id is None:
            return None
        return self.get_background(self.selection.background_id)

    # Text layers.

    def add_text(self, **fields: Any) -> TextLayer:
        """
        Append a text layer with default properties, select it and open the
        text editor. ``x`` defaults to the horizontal canvas center.
        """
        fields.setdefault("x", self.width / 2.0)
        layer = TextLayer(**fields)
        self.text_layers.append(layer)
        self._select(text_id=layer.id)
        self.selection.text_editor_open = True
        logger.debug("Added text layer %s" % layer.id)
        self.notify("text-added")
        return layer

    def update_text(self, layer_id: str, **fields: Any) -> TextLayer:
        layer = self.get_text(layer_id)
        layer.update(**fields)
        self.notify("text-updated")
        return layer

    def move_text(self, layer_id: str, x: float, y: float) -> None:
        self.get_text(layer_id).move_to(x, y)
        self.notify("text-moved")

    def delete_text(self, layer_id: str) -> None:
        """Remove a text layer, clear the text selection and close its editor."""
        layer = self.get_text(layer_id)
        self.text_layers.remove(layer)
        self.selection.text_id = None
        self.selection.text_editor_open = False
        logger.debug("Deleted text layer %s" % layer_id)
        self.notify("text-deleted")

    # Background image layers.

    def add_background_image(
        self, source: Union[ImageResource, Source], **fields: Any
    ) -> BackgroundImageLayer:
        """
        Append a background image layer and select it.

        ``source`` is decoded asynchronously; the layer is interactive right
        away but renders nothing until decoding finishes. A resource passed
        in is re-keyed to the new layer id.
        """
        layer_id = fields.pop("id", None) or new_layer_id()
        if isinstance(source, ImageResource):
            resource = source
            resource.key = layer_id
        else:
            resource = ImageResource.from_source(layer_id, source)
        layer = BackgroundImageLayer(id=layer_id, **fields)
        self.images.add(resource)
        self.background_layers.append(layer)
        _start_if_running(resource)
        self._select(background_id=layer.id)
        logger.debug("Added background image layer %s" % layer.id)
        self.notify("background-added")
        return layer

    def update_background_image(self, layer_id: str, **fields: Any) -> BackgroundImageLayer:
        layer = self.get_background(layer_id)
        layer.update(**fields)
        self.notify("background-updated")
        return layer

    def move_background_image(self, layer_id: str, x: float, y: float) -> None:
        self.get_background(layer_id).move_to(x, y)
        self.notify("background-moved")

    def delete_background_image(self, layer_id: str) -> None:
        """Remove a layer, release its image, clear selection and close its editor."""
        layer = self.get_background(layer_id)
        self.background_layers.remove(layer)
        self.images.release(layer_id)
        self.selection.background_id = None
        self.selection.background_editor_open = False
        logger.debug("Deleted background image layer %s" % layer_id)
        self.notify("background-deleted")

    # Selection and editors.

    def _select(
        self, text_id: Optional[str] = None, background_id: Optional[str] = None
    ) -> None:
        selection = self.selection
        if text_id is not None:
            if selection.text_editor_open and selection.text_id != text_id:
                selection.text_editor_open = False
            selection.text_id = text_id
            selection.background_id = None
            selection.background_editor_open = False
        elif background_id is not None:
            selection.background_id = background_id
            selection.text_id = None
            selection.text_editor_open = False

    def select_text(self, layer_id: str) -> TextLayer:
        """
        Select a text layer. Clears the background selection and closes the
        background editor; the text editor stays open only for the same layer.
        """
        layer = self.get_text(layer_id)
        self._select(text_id=layer.id)
        self.notify("selection-changed")
        return layer

    def select_background(self, layer_id: str) -> BackgroundImageLayer:
        """Select a background image layer, clearing the text selection and editor."""
        layer = self.get_background(layer_id)
        self._select(background_id=layer.id)
        self.notify("selection-changed")
        return layer

    def clear_selection(self) -> None:
        """Clear both selections and close both editors in one transition."""
        self.selection = Selection()
        self.notify("selection-changed")

    def open_text_editor(self) -> bool:
        if self.selection.text_id is None:
            return False
        self.selection.text_editor_open = True
        self.notify("editor-changed")
        return True

    def close_text_editor(self) -> None:
        self.selection.text_editor_open = False
        self.notify("editor-changed")

    def open_background_editor(self) -> bool:
        if self.selection.background_id is None:
            return False
        self.selection.background_editor_open = True
        self.notify("editor-changed")
        return True

    def close_background_editor(self) -> None:
        self.selection.background_editor_open = False
        self.notify("editor-changed")


def _as_resource(key: str, source: Union[ImageResource, Source]) -> ImageResource:
    if isinstance(source, ImageResource):
        return source
    return ImageResource.from_source(key, source)


def _start_if_running(resource: ImageResource) -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return
    resource.start()
