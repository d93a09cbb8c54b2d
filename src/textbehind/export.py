"""
Export pipeline.

:py:class:`Exporter` renders a scene at twice the interactive resolution in
export mode and encodes it as an opaque sRGB PNG. Pending background images
are awaited with a per-image timeout inside an overall bound; images that
time out or fail to decode are left out rather than failing the export.

Example::

    exporter = Exporter(on_progress=print)
    result = await exporter.export(scene)
    if result is not None:
        result.save('.')
"""

import asyncio
import datetime
import io
import logging
import os
from typing import Callable, Optional

from attrs import define, field
from PIL import Image

from textbehind.api.protocols import ProgressCallback
from textbehind.api.resources import ImageResource
from textbehind.api.scene import Scene
from textbehind.composite.renderer import render
from textbehind.composite.surface import Surface
from textbehind.constants import (
    EXPORT_FILENAME_PREFIX,
    EXPORT_IMAGE_TIMEOUT,
    EXPORT_OVERALL_TIMEOUT,
    EXPORT_SCALE,
    ExportProgress,
    RenderMode,
)
from textbehind.exceptions import ExportError
from textbehind.icc_profiles import srgb_bytes
from textbehind.validators import positive

logger = logging.getLogger(__name__)


@define
class ExportOptions:
    """
    Export settings.

    .. py:attribute:: scale

        Output pixels per logical canvas pixel.

    .. py:attribute:: per_image_timeout

        Seconds to wait for each pending image.

    .. py:attribute:: overall_timeout

        Upper bound in seconds for waiting on all pending images.
    """

    scale: float = field(default=float(EXPORT_SCALE), validator=positive)
    per_image_timeout: float = field(default=EXPORT_IMAGE_TIMEOUT, validator=positive)
    overall_timeout: float = field(default=EXPORT_OVERALL_TIMEOUT, validator=positive)
    filename_prefix: str = EXPORT_FILENAME_PREFIX


@define(frozen=True)
class ExportResult:
    """Encoded PNG with its suggested filename and pixel size."""

    data: bytes = field(repr=lambda value: "<%d bytes>" % len(value))
    filename: str
    size: tuple[int, int]

    def save(self, directory: "os.PathLike[str] | str" = ".") -> str:
        """Write the PNG into ``directory`` and return its path."""
        path = os.path.join(os.fspath(directory), self.filename)
        with open(path, "wb") as f:
            f.write(self.data)
        logger.info("Saved %s" % path)
        return path


def export_filename(
    now: Optional[datetime.datetime] = None, prefix: str = EXPORT_FILENAME_PREFIX
) -> str:
    """
    Filename for an export made at ``now`` (UTC), for example
    ``text-behind-image-2024-05-01T12-30-00.png``.
    """
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(datetime.timezone.utc)
    return "%s-%s.png" % (prefix, now.strftime("%Y-%m-%dT%H-%M-%S"))


def encode_png(image: Image.Image) -> bytes:
    """Flatten an RGBA image onto opaque black and encode it as sRGB PNG."""
    if image.mode == "RGBA":
        flat = Image.new("RGBA", image.size, (0, 0, 0, 255))
        flat.alpha_composite(image)
        image = flat
    output = io.BytesIO()
    image.convert("RGB").save(output, format="PNG", icc_profile=srgb_bytes())
    return output.getvalue()


class Exporter(object):
    """
    Single-flight exporter.

    :param options: :py:class:`ExportOptions`.
    :param on_progress: Called with each progress milestone, 0 to 100.
    :param redraw: Called before rendering, so the interactive view shows
        the same state that is exported.
    """

    def __init__(
        self,
        options: Optional[ExportOptions] = None,
        on_progress: Optional[ProgressCallback] = None,
        redraw: Optional[Callable[[], object]] = None,
    ):
        self.options = options or ExportOptions()
        self.on_progress = on_progress
        self.redraw = redraw
        self._progress = 0
        self._in_flight = False

    def __repr__(self):
        return "%s(progress=%d, in_flight=%s)" % (
            self.__class__.__name__,
            self._progress,
            self._in_flight,
        )

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _report(self, progress: int) -> None:
        self._progress = int(progress)
        if self.on_progress is not None:
            self.on_progress(self._progress)

    async def export(self, scene: Scene) -> Optional[ExportResult]:
        """
        Export ``scene`` as a PNG.

        :return: :py:class:`ExportResult`, or None if another export is
            already running.
        :raises ExportError: if the base images are missing or encoding
            fails. Progress goes back to 0 and a new export may be started.
        """
        if self._in_flight:
            logger.info("Export already in progress")
            return None
        self._in_flight = True
        try:
            return await self._export(scene)
        except ExportError:
            self._report(ExportProgress.STARTED)
            raise
        except Exception as e:
            self._report(ExportProgress.STARTED)
            raise ExportError("Export failed: %s" % e) from e
        finally:
            self._in_flight = False

    async def _export(self, scene: Scene) -> ExportResult:
        self._report(ExportProgress.STARTED)
        await self.resolve_assets(scene)
        self._report(ExportProgress.ASSETS_RESOLVED)

        if self.redraw is not None:
            self.redraw()
        await asyncio.sleep(0)
        self._report(ExportProgress.REDRAW_ISSUED)

        if not scene.has_base_images():
            raise ExportError("Images not loaded")

        surface = Surface(scene.width, scene.height, scale=self.options.scale)
        try:
            render(surface, scene, RenderMode.EXPORT)
            self._report(ExportProgress.DRAWN)
            data = encode_png(surface.image)
            size = surface.size
            self._report(ExportProgress.ENCODED)
        finally:
            surface.close()

        result = ExportResult(
            data=data,
            filename=export_filename(prefix=self.options.filename_prefix),
            size=size,
        )
        logger.debug("Exported %s (%dx%d)" % (result.filename, size[0], size[1]))
        self._report(ExportProgress.DONE)
        return result

    async def resolve_assets(self, scene: Scene) -> None:
        """
        Wait for the base images and every pending background image.

        Timeouts and decode failures are logged; decoding goes on in the
        background after a timeout.
        """
        resources = [
            r
            for r in [scene.original_image, scene.foreground_cutout]
            if not r.complete
        ] + scene.images.pending()
        if not resources:
            return
        loop = asyncio.get_running_loop()
        waiters = [loop.create_task(self._wait_for(r)) for r in resources]
        _, pending = await asyncio.wait(waiters, timeout=self.options.overall_timeout)
        for waiter in pending:
            waiter.cancel()
        if pending:
            logger.warning(
                "Gave up waiting for %d image(s) after %gs"
                % (len(pending), self.options.overall_timeout)
            )
            await asyncio.wait(pending)

    async def _wait_for(self, resource: ImageResource) -> None:
        try:
            await asyncio.wait_for(
                asyncio.shield(resource.decode()), self.options.per_image_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out loading image %s after %gs"
                % (resource.key, self.options.per_image_timeout)
            )
            return
        if resource.error is not None:
            logger.warning("Skipping image %s: %s" % (resource.key, resource.error))
