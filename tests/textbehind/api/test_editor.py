import asyncio

import pytest
from PIL import Image

from textbehind import Editor
from textbehind.api.editor import fit_canvas
from textbehind.api.resources import ImageResource
from textbehind.api.scene import Scene
from textbehind.exceptions import (
    InvalidUploadError,
    MissingAssetError,
    SegmentationError,
)
from textbehind.export import ExportOptions, ExportResult


@pytest.fixture
def editor(original_image, cutout_image):
    editor = Editor.from_images(original_image, cutout_image)
    yield editor
    editor.close()


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        ((1600, 1200), (800, 600)),
        ((400, 300), (400, 300)),
        ((1000, 2000), (300, 600)),
        ((1200, 600), (800, 400)),
        ((1000, 333), (800, 266)),
    ],
)
def test_fit_canvas(size, expected):
    assert fit_canvas(*size) == expected


def test_from_images(editor):
    assert editor.scene.canvas_size == (200, 100)
    image = editor.redraw()
    assert image.size == (200, 100)
    assert not editor.dirty
    assert editor.image is image


def test_open_fits_canvas(tmp_path):
    original = tmp_path / "photo.jpg"
    cutout = tmp_path / "cutout.png"
    Image.new("RGB", (1600, 900), (0, 0, 255)).save(original)
    Image.new("RGBA", (1600, 900), (0, 0, 0, 0)).save(cutout)

    editor = asyncio.run(Editor.open(original, cutout))
    assert editor.scene.canvas_size == (800, 450)
    assert editor.scene.has_base_images()
    assert editor.redraw().size == (800, 450)


def test_open_failure(tmp_path):
    cutout = tmp_path / "cutout.png"
    Image.new("RGBA", (10, 10)).save(cutout)
    with pytest.raises(MissingAssetError):
        asyncio.run(Editor.open(b"broken", cutout))


class FakeSegmenter(object):
    def __init__(self, fail=False):
        self.fail = fail

    async def segment(self, image):
        if self.fail:
            raise RuntimeError("model unavailable")
        return Image.new("RGBA", image.size, (0, 0, 0, 0))


def test_from_photo(original_image):
    editor = asyncio.run(Editor.from_photo(original_image, FakeSegmenter()))
    assert editor.scene.canvas_size == (200, 100)
    assert editor.scene.foreground_cutout.ready


def test_from_photo_segmentation_failure(original_image):
    with pytest.raises(SegmentationError, match="model unavailable"):
        asyncio.run(Editor.from_photo(original_image, FakeSegmenter(fail=True)))


def test_redraw_without_base_images(cutout_image):
    editor = Editor(Scene(ImageResource("original"), cutout_image, (200, 100)))
    assert editor.redraw() is None
    assert editor.image is None


def test_changes_mark_dirty_without_loop(editor):
    editor.redraw()
    count = editor.redraw_count
    editor.add_text()
    assert editor.dirty
    assert editor.redraw_count == count
    editor.image
    assert editor.redraw_count == count + 1


def test_redraws_are_coalesced(editor):
    async def main():
        start = editor.redraw_count
        layer = editor.add_text()
        editor.scene.update_text(layer.id, font_size=72)
        editor.pointer_down(layer.x + 2, layer.y - 10)
        editor.pointer_move(150, 80)
        editor.pointer_up()
        await asyncio.sleep(0)
        return editor.redraw_count - start

    assert asyncio.run(main()) == 1
    assert not editor.dirty


def test_pointer_handlers(editor):
    layer = editor.add_text(x=10, y=60)
    editor.scene.close_text_editor()
    editor.pointer_down(12, 40)
    assert editor.pointer_move(22, 50) == "grabbing"
    editor.pointer_up(22, 50)
    assert layer.position == (20, 70)
    assert editor.pointer_move(195, 5) == "crosshair"
    editor.pointer_leave()
    assert editor.key_down("Delete")
    assert editor.scene.text_layers == []


def test_upload_background(editor, png_bytes):
    layer = editor.upload_background(png_bytes(), filename="sky.png")
    assert editor.scene.background_layers == [layer]
    assert editor.scene.selection.background_id == layer.id
    assert layer.id in editor.scene.images


@pytest.mark.parametrize(
    ("data", "filename", "content_type"),
    [
        (b"text", "notes.txt", None),
        (b"text", None, "application/octet-stream"),
        (b"x" * (10 * 1024 * 1024 + 1), "huge.png", None),
    ],
)
def test_upload_rejected(editor, data, filename, content_type):
    editor.add_text()
    before = (list(editor.scene.background_layers), editor.scene.selection.text_id)
    with pytest.raises(InvalidUploadError):
        editor.upload_background(data, filename=filename, content_type=content_type)
    after = (list(editor.scene.background_layers), editor.scene.selection.text_id)
    assert after == before
    assert len(editor.scene.images) == 0


def test_delete_selected(editor):
    editor.add_background_image(Image.new("RGBA", (5, 5)))
    assert editor.delete_selected()
    assert editor.scene.background_layers == []


def test_export(original_image, cutout_image):
    progress = []
    editor = Editor.from_images(
        original_image,
        cutout_image,
        options=ExportOptions(scale=2),
        on_progress=progress.append,
    )
    editor.add_text(text="pov", font_size=72)
    count = editor.redraw_count

    result = asyncio.run(editor.export())
    assert isinstance(result, ExportResult)
    assert result.size == (400, 200)
    assert progress == [0, 30, 50, 80, 90, 100]
    assert editor.redraw_count > count
