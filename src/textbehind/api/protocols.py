"""
Protocol definitions for external collaborators.

The engine never performs segmentation itself; a host supplies an object
implementing :py:class:`SegmenterProtocol` to
:py:meth:`~textbehind.api.editor.Editor.from_photo`.
"""

from typing import Callable, Protocol

from PIL import Image

ProgressCallback = Callable[[int], None]


class SegmenterProtocol(Protocol):
    """
    Protocol for subject segmentation.

    Implementations receive the decoded photo and return the subject as an
    RGBA image of the same size with transparent surroundings.
    """

    async def segment(self, image: Image.Image) -> Image.Image:
        """Return the foreground cut-out of ``image``."""
        ...
