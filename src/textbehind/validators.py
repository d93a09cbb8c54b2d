"""
Validation functions for attr.
"""
import attr
from PIL import ImageColor

__all__ = ["range_", "positive", "color_"]


@attr.s(repr=False, slots=True, hash=True)
class _RangeValidator(object):
    minimum = attr.ib()
    maximum = attr.ib()

    def __call__(self, inst, attr, value):
        try:
            inside = self.minimum <= value and value <= self.maximum
        except TypeError:
            inside = False

        if not inside:
            raise ValueError(
                "'{name}' must be in range [{minimum!r}, {maximum!r}], got {value!r}".format(
                    name=attr.name,
                    minimum=self.minimum,
                    maximum=self.maximum,
                    value=value,
                )
            )

    def __repr__(self):
        return "<range_ validator with [{minimum!r}, {maximum!r}]>".format(
            minimum=self.minimum, maximum=self.maximum
        )


def range_(minimum, maximum):
    """
    A validator that raises a :exc:`ValueError` if the initializer is called
    with a value that does not belong in the [minimum, maximum] range. The
    check is performed using ``minimum <= value and value <= maximum``
    """
    return _RangeValidator(minimum, maximum)


def positive(inst, attr, value):
    """A validator that rejects zero, negative and non-numeric values."""
    try:
        ok = value > 0
    except TypeError:
        ok = False
    if not ok:
        raise ValueError(
            "'{name}' must be positive, got {value!r}".format(name=attr.name, value=value)
        )


def color_(inst, attr, value):
    """A validator that rejects strings Pillow cannot parse as a color."""
    try:
        ImageColor.getrgb(value)
    except (ValueError, TypeError, AttributeError):
        raise ValueError(
            "'{name}' must be a color, got {value!r}".format(name=attr.name, value=value)
        ) from None
