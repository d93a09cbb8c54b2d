"""
Editor module.

:py:class:`Editor` is the entry point for hosts. It owns a
:py:class:`~textbehind.api.scene.Scene`, the interactive
:py:class:`~textbehind.composite.surface.Surface`, an
:py:class:`~textbehind.controller.InteractionController` and an
:py:class:`~textbehind.export.Exporter`.

Example::

    import asyncio
    from textbehind import Editor

    async def main():
        editor = await Editor.open('photo.jpg', 'subject.png')
        layer = editor.add_text(text='pov', font_size=72)
        editor.pointer_down(layer.x + 5, layer.y - 10)
        editor.pointer_move(200, 150)
        editor.pointer_up()
        result = await editor.export()
        result.save('.')

    asyncio.run(main())

Scene changes schedule one redraw on the running event loop, however many
changes happen in the same loop iteration. Without a running loop the
editor only marks itself dirty and :py:meth:`Editor.redraw` must be called.
"""

import asyncio
import logging
from typing import Any, Optional, Union

from PIL import Image

from textbehind.api.layers import BackgroundImageLayer, TextLayer
from textbehind.api.protocols import ProgressCallback, SegmenterProtocol
from textbehind.api.resources import ImageResource, Source
from textbehind.api.scene import Scene
from textbehind.api.upload import validate_upload
from textbehind.composite.renderer import render
from textbehind.composite.surface import Surface
from textbehind.constants import MAX_CANVAS_HEIGHT, MAX_CANVAS_WIDTH, RenderMode
from textbehind.controller import InteractionController, State
from textbehind.exceptions import MissingAssetError, SegmentationError
from textbehind.export import Exporter, ExportOptions, ExportResult

logger = logging.getLogger(__name__)


def fit_canvas(
    width: int,
    height: int,
    max_width: int = MAX_CANVAS_WIDTH,
    max_height: int = MAX_CANVAS_HEIGHT,
) -> tuple[int, int]:
    """
    Shrink ``(width, height)`` to fit within the maximum canvas size keeping
    the aspect ratio. Smaller images are not enlarged.
    """
    aspect = width / float(height)
    w, h = float(width), float(height)
    if w > max_width:
        w = max_width
        h = w / aspect
    if h > max_height:
        h = max_height
        w = h * aspect
    return max(1, int(round(w))), max(1, int(round(h)))


class Editor(object):
    """
    Interactive text-behind-image editor.

    :param scene: :py:class:`~textbehind.api.scene.Scene` to edit.
    :param options: :py:class:`~textbehind.export.ExportOptions`.
    :param on_progress: Export progress callback.
    """

    def __init__(
        self,
        scene: Scene,
        options: Optional[ExportOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.scene = scene
        self.controller = InteractionController(scene)
        self.exporter = Exporter(options, on_progress=on_progress, redraw=self.redraw)
        self._surface: Optional[Surface] = None
        self._dirty = True
        self._handle: Optional[asyncio.Handle] = None
        self.redraw_count = 0
        scene.add_listener(self._on_change)

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.scene)

    @classmethod
    def from_images(
        cls, original: Image.Image, cutout: Image.Image, **kwargs: Any
    ) -> "Editor":
        """Create an editor from already decoded Pillow images."""
        scene = Scene(
            ImageResource.from_image("original", original),
            ImageResource.from_image("foreground", cutout),
            canvas_size=fit_canvas(*original.size),
        )
        return cls(scene, **kwargs)

    @classmethod
    async def open(cls, original: Source, cutout: Source, **kwargs: Any) -> "Editor":
        """
        Decode both base images and create an editor sized to the photo.

        :raises MissingAssetError: if either image cannot be decoded.
        """
        resources = (
            ImageResource.from_source("original", original),
            ImageResource.from_source("foreground", cutout),
        )
        await asyncio.gather(*(r.decode() for r in resources))
        for resource in resources:
            if not resource.ready:
                raise MissingAssetError(
                    "Failed to load %s image: %s" % (resource.key, resource.error)
                ) from resource.error
        original_image = resources[0].image
        assert original_image is not None
        scene = Scene(*resources, canvas_size=fit_canvas(*original_image.size))
        return cls(scene, **kwargs)

    @classmethod
    async def from_photo(
        cls, source: Source, segmenter: SegmenterProtocol, **kwargs: Any
    ) -> "Editor":
        """
        Decode a photo, cut out its subject with ``segmenter`` and create an
        editor.

        :raises SegmentationError: if the segmenter fails.
        """
        resource = ImageResource.from_source("original", source)
        original = await resource.decode()
        if original is None:
            raise MissingAssetError(
                "Failed to load original image: %s" % resource.error
            ) from resource.error
        try:
            cutout = await segmenter.segment(original)
        except SegmentationError:
            raise
        except Exception as e:
            raise SegmentationError("Segmentation failed: %s" % e) from e
        return cls.from_images(original, cutout, **kwargs)

    # Rendering.

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def image(self) -> Optional[Image.Image]:
        """Interactive rendering, redrawn first if the scene changed."""
        if self._dirty or self._surface is None:
            return self.redraw()
        return self._surface.image

    def _on_change(self, event: str) -> None:
        self._dirty = True
        if self._handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._handle = loop.call_soon(self._scheduled_redraw)

    def _scheduled_redraw(self) -> None:
        self._handle = None
        if self._dirty:
            self.redraw()

    def redraw(self) -> Optional[Image.Image]:
        """
        Render the scene in interactive mode.

        :return: The interactive image, or None while the base images are
            not decoded.
        """
        if not self.scene.has_base_images():
            logger.debug("Skipping redraw, images not loaded")
            return None
        if self._surface is None or self._surface.logical_size != self.scene.canvas_size:
            if self._surface is not None:
                self._surface.close()
            self._surface = Surface(self.scene.width, self.scene.height)
        render(self._surface, self.scene, RenderMode.INTERACTIVE)
        self._dirty = False
        self.redraw_count += 1
        return self._surface.image

    # Input.

    def pointer_down(self, x: float, y: float) -> State:
        return self.controller.pointer_down((x, y))

    def pointer_move(self, x: float, y: float) -> str:
        """Returns the cursor name to display."""
        return self.controller.pointer_move((x, y)).value

    def pointer_up(self, x: Optional[float] = None, y: Optional[float] = None) -> State:
        point = None if x is None or y is None else (x, y)
        return self.controller.pointer_up(point)

    def pointer_leave(self) -> State:
        return self.controller.pointer_leave()

    def key_down(self, key: str) -> bool:
        return self.controller.key_down(key)

    def delete_selected(self) -> bool:
        return self.controller.delete_selected()

    # Layers.

    def add_text(self, **fields: Any) -> TextLayer:
        return self.scene.add_text(**fields)

    def upload_background(
        self,
        data: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        **fields: Any,
    ) -> BackgroundImageLayer:
        """
        Validate an uploaded image and add it as a background image layer.

        :raises ~textbehind.exceptions.InvalidUploadError: if the upload is
            not an image or too large; the scene is unchanged.
        """
        validate_upload(data, filename=filename, content_type=content_type)
        resource = ImageResource.from_bytes(filename or "upload", data)
        return self.scene.add_background_image(resource, **fields)

    def add_background_image(
        self, source: Union[ImageResource, Source], **fields: Any
    ) -> BackgroundImageLayer:
        return self.scene.add_background_image(source, **fields)

    # Export.

    async def export(self) -> Optional[ExportResult]:
        """Export the scene; see :py:meth:`textbehind.export.Exporter.export`."""
        return await self.exporter.export(self.scene)

    def close(self) -> None:
        """Release the interactive surface and every cached image."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.scene.remove_listener(self._on_change)
        if self._surface is not None:
            self._surface.close()
            self._surface = None
        self.scene.images.clear()
