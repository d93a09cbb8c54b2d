import numpy as np
import pytest
from PIL import Image

from textbehind.composite.surface import Surface, apply_opacity
from textbehind.geometry import Affine


def test_sizes():
    surface = Surface(100, 50, scale=2)
    assert surface.logical_size == (100, 50)
    assert surface.size == (200, 100)
    assert surface.transform == Affine.scaling(2)
    with pytest.raises(ValueError):
        Surface(0, 10)


def test_close():
    surface = Surface(10, 10)
    surface.close()
    with pytest.raises(ValueError):
        surface.image


def test_resampling_quality():
    assert Surface(1, 1).resample == Image.Resampling.BILINEAR
    surface = Surface(1, 1, high_quality=True)
    assert surface.resample == Image.Resampling.LANCZOS
    assert surface.affine_resample == Image.Resampling.BICUBIC


def test_transform_stack():
    surface = Surface(10, 10)
    with surface.saved():
        surface.translate(5, 5)
        surface.rotate(90)
        assert surface.to_device(1, 0) == pytest.approx((5, 6))
    assert surface.to_device(1, 0) == pytest.approx((1, 0))
    surface.restore()
    assert surface.transform == Affine()


def test_transform_restored_on_error():
    surface = Surface(10, 10)
    with pytest.raises(RuntimeError):
        with surface.saved():
            surface.translate(3, 3)
            raise RuntimeError()
    assert surface.transform == Affine()


def test_draw_image_scaled():
    surface = Surface(20, 10, scale=2)
    surface.draw_image(Image.new("RGB", (1, 1), (255, 0, 0)), 5, 0, 5, 5)
    image = surface.image
    assert image.getpixel((12, 2)) == (255, 0, 0, 255)
    assert image.getpixel((8, 2)) == (0, 0, 0, 0)
    assert image.getpixel((12, 12)) == (0, 0, 0, 0)


def test_draw_image_partly_off_surface():
    surface = Surface(10, 10)
    surface.draw_image(Image.new("RGBA", (4, 4), (0, 255, 0, 255)), -2, -2, 4, 4)
    assert surface.image.getpixel((0, 0)) == (0, 255, 0, 255)
    assert surface.image.getpixel((2, 2)) == (0, 0, 0, 0)


def test_draw_image_crops_to_surface():
    source = Image.new("RGBA", (2, 1), (255, 0, 0, 255))
    source.putpixel((1, 0), (0, 255, 0, 255))
    surface = Surface(10, 10)
    # Left half of the image lies off the surface.
    surface.draw_image(source, -10, 0, 20, 10)
    assert surface.image.getpixel((9, 5)) == (0, 255, 0, 255)
    r, g, b, a = surface.image.getpixel((5, 5))
    assert g > r


def test_draw_image_huge_placement_resamples_visible_part(monkeypatch):
    sizes = []
    resize = Image.Image.resize

    def recording_resize(self, size, *args, **kwargs):
        sizes.append(tuple(size))
        return resize(self, size, *args, **kwargs)

    monkeypatch.setattr(Image.Image, "resize", recording_resize)
    surface = Surface(50, 40, scale=2)
    surface.draw_image(
        Image.new("RGBA", (4, 4), (0, 0, 255, 255)), -50000, -50000, 100000, 100000
    )
    assert sizes == [(100, 80)]
    assert surface.image.getpixel((99, 79)) == (0, 0, 255, 255)


def test_draw_image_off_surface_draws_nothing():
    surface = Surface(10, 10)
    surface.draw_image(Image.new("RGBA", (4, 4), (0, 0, 255, 255)), 20, 20, 4, 4)
    assert surface.image.getbbox() is None


def test_draw_image_opacity():
    surface = Surface(4, 4)
    surface.draw_image(Image.new("RGBA", (4, 4), (0, 0, 255, 255)), 0, 0, 4, 4, 0.5)
    r, g, b, a = surface.image.getpixel((1, 1))
    assert (r, g, b) == (0, 0, 255)
    assert a == pytest.approx(128, abs=1)
    surface.clear()
    surface.draw_image(Image.new("RGBA", (4, 4), (0, 0, 255, 255)), 0, 0, 4, 4, 0)
    assert surface.image.getbbox() is None


def test_draw_image_rotated():
    surface = Surface(100, 100)
    with surface.saved():
        surface.translate(50, 50)
        surface.rotate(90)
        # A 60x20 bar centered on the surface turns upright.
        surface.draw_image(Image.new("RGBA", (60, 20), (255, 255, 0, 255)), -30, -10, 60, 20)
    image = surface.image
    assert image.getpixel((50, 30))[3] == 255
    assert image.getpixel((50, 70))[3] == 255
    assert image.getpixel((30, 50))[3] == 0
    assert image.getpixel((70, 50))[3] == 0


def test_layer_context_composites_on_exit():
    surface = Surface(10, 10)
    with surface.layer(opacity=1.0) as draw:
        draw.rectangle((0, 0, 4, 4), fill=(255, 255, 255, 255))
    assert surface.image.getpixel((2, 2)) == (255, 255, 255, 255)
    assert surface.image.getpixel((8, 8)) == (0, 0, 0, 0)


def test_apply_opacity():
    image = Image.new("RGBA", (2, 2), (10, 20, 30, 200))
    result = apply_opacity(image, 0.5)
    assert np.asarray(result.getchannel("A")).tolist() == [[100, 100], [100, 100]]
    assert image.getpixel((0, 0))[3] == 200
