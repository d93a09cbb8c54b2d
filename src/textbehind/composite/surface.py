"""
Drawing surface for the renderer.

A :py:class:`Surface` is a Pillow RGBA image plus a canvas-like transform
stack. Layer coordinates are *logical*; the surface maps them to *device*
pixels through its current transform, which starts as a uniform scale so
that a 2x export surface accepts the same coordinates as the interactive
one.
"""

import contextlib
import logging
from typing import Iterator, Optional

import numpy as np
from PIL import Image, ImageDraw

from textbehind.geometry import Affine

logger = logging.getLogger(__name__)


class Surface(object):
    """
    Raster drawing target.

    :param width: Logical width.
    :param height: Logical height.
    :param scale: Device pixels per logical pixel.
    :param high_quality: Use the best resampling filters Pillow offers.
    """

    def __init__(
        self,
        width: int,
        height: int,
        scale: float = 1.0,
        high_quality: bool = False,
    ):
        if width <= 0 or height <= 0:
            raise ValueError("Invalid surface size: %dx%d" % (width, height))
        self.logical_size = (int(width), int(height))
        self.scale = float(scale)
        self.high_quality = high_quality
        self._image: Optional[Image.Image] = Image.new(
            "RGBA",
            (int(round(width * scale)), int(round(height * scale))),
            (0, 0, 0, 0),
        )
        self._base = Affine.scaling(self.scale)
        self._transform = self._base
        self._stack: list[Affine] = []

    def __repr__(self):
        return "%s(logical=%dx%d, scale=%g)" % (
            self.__class__.__name__,
            self.logical_size[0],
            self.logical_size[1],
            self.scale,
        )

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise ValueError("Surface is closed")
        return self._image

    @property
    def size(self) -> tuple[int, int]:
        """Device size in pixels."""
        return self.image.size

    @property
    def transform(self) -> Affine:
        return self._transform

    @property
    def resample(self) -> Image.Resampling:
        """Filter for axis-aligned scaling."""
        if self.high_quality:
            return Image.Resampling.LANCZOS
        return Image.Resampling.BILINEAR

    @property
    def affine_resample(self) -> Image.Resampling:
        """Filter for rotated draws; Pillow's affine transform stops at bicubic."""
        if self.high_quality:
            return Image.Resampling.BICUBIC
        return Image.Resampling.BILINEAR

    # Transform stack.

    def save(self) -> None:
        self._stack.append(self._transform)

    def restore(self) -> None:
        if self._stack:
            self._transform = self._stack.pop()

    @contextlib.contextmanager
    def saved(self) -> Iterator["Surface"]:
        """Save the transform and restore it on exit, even on error."""
        self.save()
        try:
            yield self
        finally:
            self.restore()

    def translate(self, dx: float, dy: float) -> None:
        self._transform = self._transform @ Affine.translation(dx, dy)

    def rotate(self, degrees: float) -> None:
        self._transform = self._transform @ Affine.rotation(degrees)

    def scale_by(self, sx: float, sy: Optional[float] = None) -> None:
        self._transform = self._transform @ Affine.scaling(sx, sy)

    def reset_transform(self) -> None:
        self._stack.clear()
        self._transform = self._base

    # Drawing.

    def clear(self) -> None:
        """Make every pixel fully transparent."""
        self.image.paste((0, 0, 0, 0), (0, 0) + self.size)

    def new_layer(self) -> Image.Image:
        """Transparent scratch image of the device size."""
        return Image.new("RGBA", self.size, (0, 0, 0, 0))

    def composite(self, layer: Image.Image, opacity: float = 1.0) -> None:
        """Alpha-composite a device-sized RGBA image with extra opacity."""
        if opacity <= 0:
            return
        if opacity < 1:
            layer = apply_opacity(layer, opacity)
        self.image.alpha_composite(layer)

    @contextlib.contextmanager
    def layer(self, opacity: float = 1.0) -> Iterator[ImageDraw.ImageDraw]:
        """
        Draw into a scratch layer that is composited with ``opacity`` on exit.

        Nothing reaches the surface if the block raises.
        """
        scratch = self.new_layer()
        yield ImageDraw.Draw(scratch)
        self.composite(scratch, opacity)

    def draw_image(
        self,
        image: Image.Image,
        x: float,
        y: float,
        width: float,
        height: float,
        opacity: float = 1.0,
    ) -> None:
        """
        Draw ``image`` stretched to the logical box ``(x, y, width, height)``
        under the current transform.
        """
        if width <= 0 or height <= 0 or image.width == 0 or image.height == 0:
            return
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        placement = (
            self._transform
            @ Affine.translation(x, y)
            @ Affine.scaling(width / image.width, height / image.height)
        )
        if placement.is_axis_aligned():
            layer = self._draw_scaled(image, placement)
        else:
            layer = self._draw_transformed(image, placement)
        if layer is not None:
            self.composite(layer, opacity)

    def _draw_scaled(self, image: Image.Image, placement: Affine) -> Optional[Image.Image]:
        (x0, y0), (x1, y1) = placement.apply_many([(0, 0), image.size])
        left, right = sorted((x0, x1))
        top, bottom = sorted((y0, y1))
        left, top = int(round(left)), int(round(top))
        size = (int(round(right)) - left, int(round(bottom)) - top)
        if size[0] <= 0 or size[1] <= 0:
            return None
        if x1 < x0:
            image = image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        if y1 < y0:
            image = image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)

        # Only the part of the placement that lands on the surface is resampled.
        clip_left, clip_top = max(left, 0), max(top, 0)
        clip_right = min(left + size[0], self.size[0])
        clip_bottom = min(top + size[1], self.size[1])
        if clip_right <= clip_left or clip_bottom <= clip_top:
            return None
        visible = (clip_right - clip_left, clip_bottom - clip_top)
        if visible != image.size or visible != size:
            sx = image.width / size[0]
            sy = image.height / size[1]
            box = (
                (clip_left - left) * sx,
                (clip_top - top) * sy,
                (clip_right - left) * sx,
                (clip_bottom - top) * sy,
            )
            image = image.resize(visible, self.resample, box=box)
        layer = self.new_layer()
        layer.paste(image, (clip_left, clip_top))
        return layer

    def _draw_transformed(self, image: Image.Image, placement: Affine) -> Image.Image:
        # Premultiplied alpha keeps transparent pixels from bleeding color.
        premultiplied = image.convert("RGBa")
        layer = premultiplied.transform(
            self.size,
            Image.Transform.AFFINE,
            placement.to_pil(),
            resample=self.affine_resample,
        )
        return layer.convert("RGBA")

    def to_device(self, x: float, y: float) -> tuple[float, float]:
        return self._transform.apply(x, y)

    def close(self) -> None:
        """Release the backing pixels."""
        if self._image is not None:
            self._image.close()
            self._image = None


def apply_opacity(image: Image.Image, opacity: float) -> Image.Image:
    """Return a copy of an RGBA image with its alpha scaled by ``opacity``."""
    alpha = np.asarray(image.getchannel("A"), dtype=np.float32) * float(opacity)
    result = image.copy()
    result.putalpha(Image.fromarray(np.clip(alpha + 0.5, 0, 255).astype(np.uint8), "L"))
    return result
