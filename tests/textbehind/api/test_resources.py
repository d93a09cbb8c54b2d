import asyncio

import pytest
from PIL import Image

from textbehind.api.resources import ImageCache, ImageResource, ResourceState


def test_from_image_is_ready():
    resource = ImageResource.from_image("a", Image.new("RGB", (4, 3)))
    assert resource.ready
    assert resource.complete
    assert resource.state is ResourceState.READY
    assert resource.image.mode == "RGBA"
    assert resource.image.size == (4, 3)


def test_from_bytes_decodes(png_bytes):
    resource = ImageResource.from_bytes("a", png_bytes(size=(7, 5)))
    assert resource.state is ResourceState.PENDING
    assert resource.image is None

    image = asyncio.run(resource.decode())
    assert resource.ready
    assert image.size == (7, 5)
    assert image.mode == "RGBA"


def test_from_path_decodes(png_bytes, tmp_path):
    path = tmp_path / "image.png"
    path.write_bytes(png_bytes(size=(3, 2)))
    resource = ImageResource.from_source("a", path)
    image = asyncio.run(resource.decode())
    assert image.size == (3, 2)


def test_decode_failure_is_recorded():
    resource = ImageResource.from_bytes("broken", b"not an image")
    assert asyncio.run(resource.decode()) is None
    assert resource.state is ResourceState.FAILED
    assert resource.complete
    assert not resource.ready
    assert resource.error is not None


def test_single_decode_task():
    calls = []

    async def loader():
        calls.append(1)
        await asyncio.sleep(0)
        return Image.new("RGBA", (1, 1))

    async def main():
        resource = ImageResource("a", loader)
        task = resource.start()
        assert resource.start() is task
        images = await asyncio.gather(resource.decode(), resource.decode(), resource.wait())
        return resource, images

    resource, images = asyncio.run(main())
    assert calls == [1]
    assert resource.ready
    assert images[0] is images[1]


def test_close_releases_image():
    resource = ImageResource.from_image("a", Image.new("RGBA", (2, 2)))
    resource.close()
    assert resource.image is None
    assert not resource.ready


class TestImageCache:
    def test_add_and_lookup(self) -> None:
        cache = ImageCache()
        resource = cache.add(ImageResource.from_image("a", Image.new("RGBA", (1, 1))))
        assert "a" in cache
        assert len(cache) == 1
        assert list(cache) == ["a"]
        assert cache["a"] is resource
        assert cache.get("missing") is None
        assert cache.ready_image("a") is resource.image
        assert cache.ready_image("missing") is None

    def test_duplicate_key(self) -> None:
        cache = ImageCache()
        cache.add(ImageResource("a"))
        with pytest.raises(KeyError):
            cache.add(ImageResource("a"))

    def test_pending_is_not_ready(self) -> None:
        cache = ImageCache()
        pending = cache.add(ImageResource("p"))
        cache.add(ImageResource.from_image("r", Image.new("RGBA", (1, 1))))
        assert cache.pending() == [pending]
        assert cache.ready_image("p") is None

    def test_release_and_clear(self) -> None:
        cache = ImageCache()
        resource = cache.add(ImageResource.from_image("a", Image.new("RGBA", (1, 1))))
        cache.add(ImageResource.from_image("b", Image.new("RGBA", (1, 1))))
        cache.release("a")
        cache.release("missing")
        assert "a" not in cache
        assert resource.image is None
        cache.clear()
        assert len(cache) == 0
