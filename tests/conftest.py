"""Pytest configuration for text-behind tests."""

import io
import logging
from typing import Callable

import pytest
from PIL import Image

from textbehind.api.scene import Scene

logging.basicConfig(level=logging.DEBUG)

CANVAS = (200, 100)

BLUE = (0, 0, 255, 255)
RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)

# Opaque subject band of the cut-out.
BAND = (90, 110)


@pytest.fixture
def original_image() -> Image.Image:
    return Image.new("RGB", CANVAS, BLUE[:3])


@pytest.fixture
def cutout_image() -> Image.Image:
    """Transparent except for a red vertical band over the full height."""
    image = Image.new("RGBA", CANVAS, (0, 0, 0, 0))
    image.paste(RED, (BAND[0], 0, BAND[1], CANVAS[1]))
    return image


@pytest.fixture
def scene(original_image: Image.Image, cutout_image: Image.Image) -> Scene:
    return Scene(original_image, cutout_image, canvas_size=CANVAS)


@pytest.fixture
def png_bytes() -> Callable[..., bytes]:
    def _encode(color=GREEN, size=(20, 20), format="PNG") -> bytes:
        output = io.BytesIO()
        Image.new("RGBA", size, color).save(output, format=format)
        return output.getvalue()

    return _encode
