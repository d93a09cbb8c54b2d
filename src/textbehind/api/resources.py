"""
Decoded image resources and the key-to-resource cache.

A :py:class:`ImageResource` starts ``pending`` and becomes ``ready`` or
``failed`` once its loader finishes. Decoding is asynchronous; at most one
decode task exists per resource, and every waiter shares it.

Example::

    resource = ImageResource.from_bytes("bg-1", data)
    await resource.decode()
    if resource.ready:
        print(resource.image.size)
"""

import asyncio
import io
import logging
import os
from enum import Enum
from typing import Awaitable, Callable, Iterator, Optional, Union

from PIL import Image

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Image.Image]]
Source = Union[bytes, str, "os.PathLike[str]", Image.Image]


class ResourceState(Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


def _decode_bytes(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as image:
        image.load()
        return image.convert("RGBA")


def _decode_path(path: str) -> Image.Image:
    with Image.open(path) as image:
        image.load()
        return image.convert("RGBA")


class ImageResource(object):
    """
    One decodable image keyed by identity.

    :param key: Cache key; background layers use their layer id.
    :param loader: Coroutine function producing an RGBA Pillow image.
    """

    def __init__(self, key: str, loader: Optional[Loader] = None):
        self.key = key
        self._loader = loader
        self._image: Optional[Image.Image] = None
        self._error: Optional[BaseException] = None
        self._state = ResourceState.PENDING
        self._task: Optional["asyncio.Task[None]"] = None
        self._done: Optional[asyncio.Event] = None

    def __repr__(self):
        return "%s(key=%r, state=%s)" % (
            self.__class__.__name__,
            self.key,
            self._state.value,
        )

    @classmethod
    def from_image(cls, key: str, image: Image.Image) -> "ImageResource":
        """Wrap an already decoded image; the resource is ready at once."""
        resource = cls(key)
        resource._resolve(image.convert("RGBA") if image.mode != "RGBA" else image)
        return resource

    @classmethod
    def from_bytes(cls, key: str, data: bytes) -> "ImageResource":
        """Decode encoded image bytes in the loop's default executor."""

        async def loader() -> Image.Image:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, _decode_bytes, data)

        return cls(key, loader)

    @classmethod
    def from_path(cls, key: str, path: Union[str, "os.PathLike[str]"]) -> "ImageResource":
        """Decode an image file in the loop's default executor."""
        path = os.fspath(path)

        async def loader() -> Image.Image:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, _decode_path, path)

        return cls(key, loader)

    @classmethod
    def from_source(cls, key: str, source: Source) -> "ImageResource":
        """Dispatch on the source type: image, bytes or path."""
        if isinstance(source, Image.Image):
            return cls.from_image(key, source)
        if isinstance(source, (bytes, bytearray, memoryview)):
            return cls.from_bytes(key, bytes(source))
        return cls.from_path(key, source)

    @property
    def state(self) -> ResourceState:
        return self._state

    @property
    def ready(self) -> bool:
        """True once decoded successfully."""
        return self._state is ResourceState.READY

    @property
    def complete(self) -> bool:
        """True once decoding finished, successfully or not."""
        return self._state is not ResourceState.PENDING

    @property
    def image(self) -> Optional[Image.Image]:
        """Decoded RGBA image, or None unless ready."""
        return self._image

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def _event(self) -> asyncio.Event:
        if self._done is None:
            self._done = asyncio.Event()
            if self.complete:
                self._done.set()
        return self._done

    def _resolve(self, image: Image.Image) -> None:
        self._image = image
        self._state = ResourceState.READY
        if self._done is not None:
            self._done.set()

    def _reject(self, error: BaseException) -> None:
        self._error = error
        self._state = ResourceState.FAILED
        if self._done is not None:
            self._done.set()

    async def _run(self) -> None:
        assert self._loader is not None
        try:
            image = await self._loader()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Failed to decode image %s: %s" % (self.key, e))
            self._reject(e)
            return
        logger.debug("Decoded image %s: %dx%d" % (self.key, image.width, image.height))
        self._resolve(image)

    def start(self) -> Optional["asyncio.Task[None]"]:
        """
        Schedule decoding on the running loop if it has not started yet.

        Returns the decode task, or None when there is nothing to decode.
        """
        if self.complete or self._loader is None:
            return None
        if self._task is None:
            self._event()
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    async def wait(self) -> None:
        """Wait until decoding finished, successfully or not."""
        if self.complete:
            return
        event = self._event()
        await event.wait()

    async def decode(self) -> Optional[Image.Image]:
        """Start decoding if needed, wait for it and return the image."""
        self.start()
        await self.wait()
        return self._image

    def close(self) -> None:
        """Release the decoded pixels and stop a running decode."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._image is not None:
            self._image.close()
            self._image = None
        if self._state is ResourceState.READY:
            self._state = ResourceState.FAILED
            self._error = RuntimeError("Resource released")
        if self._done is not None:
            self._done.set()


class ImageCache(object):
    """
    Explicit key-to-resource store owned by a scene.
    """

    def __init__(self):
        self._resources: dict[str, ImageResource] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def __iter__(self) -> Iterator[str]:
        return iter(self._resources)

    def __getitem__(self, key: str) -> ImageResource:
        return self._resources[key]

    def get(self, key: str) -> Optional[ImageResource]:
        return self._resources.get(key)

    def add(self, resource: ImageResource) -> ImageResource:
        if resource.key in self._resources:
            raise KeyError("Duplicate image key: %s" % resource.key)
        self._resources[resource.key] = resource
        return resource

    def ready_image(self, key: str) -> Optional[Image.Image]:
        """Decoded image for ``key``, or None if missing or not decoded yet."""
        resource = self._resources.get(key)
        if resource is None or not resource.ready:
            return None
        return resource.image

    def pending(self) -> list[ImageResource]:
        return [r for r in self._resources.values() if not r.complete]

    def release(self, key: str) -> None:
        """Drop and close the resource stored under ``key``, if any."""
        resource = self._resources.pop(key, None)
        if resource is not None:
            logger.debug("Released image %s" % key)
            resource.close()

    def clear(self) -> None:
        for key in list(self._resources):
            self.release(key)
