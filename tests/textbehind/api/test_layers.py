import pytest

from textbehind.api.layers import BackgroundImageLayer, TextLayer, new_layer_id
from textbehind.constants import LayerKind


def test_text_layer_defaults():
    layer = TextLayer()
    assert layer.kind is LayerKind.TEXT
    assert layer.text == "pov"
    assert layer.y == 60
    assert layer.font_size == 48
    assert layer.font_family == "Arial, sans-serif"
    assert layer.font_weight == "400"
    assert layer.color == "#ffffff"
    assert layer.opacity == 1
    assert layer.letter_spacing == 0
    assert layer.stroke_width == 0
    assert layer.stroke_color == "#000000"
    assert len(layer.id) == 12


def test_background_layer_defaults():
    layer = BackgroundImageLayer()
    assert layer.kind is LayerKind.BACKGROUND
    assert (layer.x, layer.y, layer.width, layer.height) == (0, 0, 200, 200)
    assert layer.opacity == 1
    assert layer.rotation == 0
    assert layer.center == (100, 100)


def test_ids_are_unique():
    assert len({new_layer_id() for _ in range(100)}) == 100
    assert TextLayer().id != TextLayer().id


def test_layers_compare_by_identity():
    a = TextLayer(id="same")
    b = TextLayer(id="same")
    assert a != b
    assert a == a


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("opacity", 1.5),
        ("opacity", -0.1),
        ("font_size", 0),
        ("font_size", -3),
        ("stroke_width", -1),
    ],
)
def test_text_layer_rejects_out_of_range(field, value):
    with pytest.raises(ValueError):
        TextLayer(**{field: value})
    layer = TextLayer()
    before = getattr(layer, field)
    with pytest.raises(ValueError):
        setattr(layer, field, value)
    assert getattr(layer, field) == before


@pytest.mark.parametrize(
    ("field", "value"),
    [("width", 0), ("height", -5), ("opacity", 2)],
)
def test_background_layer_rejects_out_of_range(field, value):
    with pytest.raises(ValueError):
        BackgroundImageLayer(**{field: value})


def test_numeric_fields_are_converted():
    layer = TextLayer(x="12.5", font_size=30)
    assert layer.x == 12.5
    assert isinstance(layer.font_size, float)
    with pytest.raises(TypeError):
        TextLayer(x=True)


def test_negative_letter_spacing_and_any_rotation_are_allowed():
    assert TextLayer(letter_spacing=-4).letter_spacing == -4
    assert BackgroundImageLayer(rotation=-450).rotation == -450


def test_move_to_and_position():
    layer = BackgroundImageLayer(x=1, y=2)
    layer.move_to(-30, 500)
    assert layer.position == (-30, 500)


class TestUpdate:
    def test_sets_fields(self) -> None:
        layer = TextLayer()
        layer.update(text="hello\nworld", color="#ff0000", font_size=72)
        assert layer.text == "hello\nworld"
        assert layer.color == "#ff0000"
        assert layer.font_size == 72

    def test_rejects_id(self) -> None:
        layer = TextLayer()
        with pytest.raises(ValueError):
            layer.update(id="other")

    def test_unknown_field_changes_nothing(self) -> None:
        layer = TextLayer()
        with pytest.raises(ValueError):
            layer.update(text="changed", bogus=1)
        assert layer.text == "pov"

    def test_invalid_value_changes_nothing(self) -> None:
        layer = TextLayer()
        with pytest.raises(ValueError):
            layer.update(font_size=72, text="changed", opacity=2)
        assert (layer.font_size, layer.text, layer.opacity) == (48, "pov", 1)

    def test_background_invalid_value_changes_nothing(self) -> None:
        layer = BackgroundImageLayer()
        with pytest.raises(ValueError):
            layer.update(rotation=45, width=-1)
        assert (layer.rotation, layer.width) == (0, 200)

    def test_keeps_id(self) -> None:
        layer = TextLayer(id="abc")
        layer.update(font_size=10)
        assert layer.id == "abc"


@pytest.mark.parametrize("value", ["#f00", "#ff000080", "red", "rgb(0, 128, 255)"])
def test_color_fields_accept_css_colors(value):
    layer = TextLayer(color=value, stroke_color=value)
    assert layer.color == value
    assert layer.stroke_color == value


@pytest.mark.parametrize("field", ["color", "stroke_color"])
@pytest.mark.parametrize("value", ["notacolor", "#12", "", None])
def test_color_fields_reject_unparseable(field, value):
    with pytest.raises(ValueError, match=field):
        TextLayer(**{field: value})
    layer = TextLayer()
    before = getattr(layer, field)
    with pytest.raises(ValueError):
        setattr(layer, field, value)
    assert getattr(layer, field) == before
