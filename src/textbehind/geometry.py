"""
Geometry utilities shared by the renderer and the hit-tester.

Coordinates follow the screen convention: ``x`` grows to the right, ``y``
grows downwards, and a positive rotation angle turns clockwise on screen.
"""

import logging
import math
from typing import Iterator, Sequence

import numpy as np

logger = logging.getLogger(__name__)

EPSILON = 1e-9

Point = tuple[float, float]


class Affine(object):
    """
    2D affine transform stored as a 3x3 numpy matrix.

    Composition follows the canvas convention: ``a @ b`` applies ``b`` first
    and ``a`` second, so ``surface.translate(...)`` post-multiplies the
    current matrix.
    """

    __slots__ = ("matrix",)

    def __init__(self, matrix=None):
        if matrix is None:
            matrix = np.identity(3, dtype=np.float64)
        self.matrix = np.asarray(matrix, dtype=np.float64)

    @classmethod
    def identity(cls) -> "Affine":
        return cls()

    @classmethod
    def translation(cls, dx: float, dy: float) -> "Affine":
        return cls([[1.0, 0.0, dx], [0.0, 1.0, dy], [0.0, 0.0, 1.0]])

    @classmethod
    def scaling(cls, sx: float, sy: float = None) -> "Affine":
        if sy is None:
            sy = sx
        return cls([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])

    @classmethod
    def rotation(cls, degrees: float) -> "Affine":
        """Clockwise rotation on screen for positive ``degrees``."""
        theta = math.radians(degrees)
        c, s = math.cos(theta), math.sin(theta)
        return cls([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])

    def __matmul__(self, other: "Affine") -> "Affine":
        return Affine(self.matrix @ other.matrix)

    def __eq__(self, other):
        if not isinstance(other, Affine):
            return NotImplemented
        return bool(np.allclose(self.matrix, other.matrix))

    def __repr__(self):
        a, b, c = self.matrix[0]
        d, e, f = self.matrix[1]
        return "Affine(%g, %g, %g, %g, %g, %g)" % (a, b, c, d, e, f)

    def inverse(self) -> "Affine":
        return Affine(np.linalg.inv(self.matrix))

    def apply(self, x: float, y: float) -> Point:
        px, py, _ = self.matrix @ np.array([x, y, 1.0])
        return float(px), float(py)

    def apply_many(self, points: Sequence[Point]) -> list[Point]:
        if not points:
            return []
        homogeneous = np.column_stack(
            (np.asarray(points, dtype=np.float64), np.ones(len(points)))
        )
        result = homogeneous @ self.matrix.T
        return [(float(x), float(y)) for x, y in result[:, :2]]

    @property
    def scale_factor(self) -> float:
        """Uniform scale of the linear part, assuming no shear."""
        return math.sqrt(abs(float(np.linalg.det(self.matrix[:2, :2]))))

    def is_axis_aligned(self) -> bool:
        """True if the transform has no rotation nor shear."""
        return abs(self.matrix[0, 1]) < EPSILON and abs(self.matrix[1, 0]) < EPSILON

    def to_pil(self) -> tuple[float, float, float, float, float, float]:
        """
        Coefficients for ``Image.transform(..., Image.Transform.AFFINE)``.

        Pillow maps each *output* pixel to an input pixel, so the returned
        data describes the inverse of this transform.
        """
        inverse = np.linalg.inv(self.matrix)
        return tuple(float(v) for v in inverse[:2, :].flatten())  # type: ignore[return-value]


def rotate_point(x: float, y: float, degrees: float) -> Point:
    """Rotate a point around the origin, clockwise on screen."""
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    return x * c - y * s, x * s + y * c


def to_local(point: Point, center: Point, rotation: float) -> Point:
    """
    Map a surface point into the frame of a box centered at ``center`` and
    rotated by ``rotation`` degrees.
    """
    return rotate_point(point[0] - center[0], point[1] - center[1], -rotation)


def to_world(point: Point, center: Point, rotation: float) -> Point:
    """Inverse of :py:func:`to_local`."""
    x, y = rotate_point(point[0], point[1], rotation)
    return x + center[0], y + center[1]


def rect_contains(
    point: Point, left: float, top: float, right: float, bottom: float
) -> bool:
    """Inclusive axis-aligned containment."""
    x, y = point
    return left <= x <= right and top <= y <= bottom


def rotated_rect_contains(
    point: Point,
    x: float,
    y: float,
    width: float,
    height: float,
    rotation: float,
) -> bool:
    """
    Containment test for a box whose pre-rotation top-left corner is
    ``(x, y)``, rotated by ``rotation`` degrees around its center.
    """
    center = (x + width / 2.0, y + height / 2.0)
    lx, ly = to_local(point, center, rotation)
    half_w, half_h = width / 2.0 + EPSILON, height / 2.0 + EPSILON
    return -half_w <= lx <= half_w and -half_h <= ly <= half_h


def rect_corners(x: float, y: float, width: float, height: float) -> list[Point]:
    """Corners of a rectangle, clockwise from the top-left."""
    return [(x, y), (x + width, y), (x + width, y + height), (x, y + height)]


def dash_segments(
    points: Sequence[Point], pattern: Sequence[float], closed: bool = True
) -> Iterator[tuple[Point, Point]]:
    """
    Split a polyline into "on" segments of a dash pattern.

    The pattern phase carries over corners like a canvas dashed stroke.
    """
    if len(points) < 2 or not pattern or sum(pattern) <= 0:
        return
    path = list(points) + ([points[0]] if closed else [])
    index, remaining, on = 0, float(pattern[0]), True
    for (x0, y0), (x1, y1) in zip(path, path[1:]):
        length = math.hypot(x1 - x0, y1 - y0)
        if length == 0:
            continue
        ux, uy = (x1 - x0) / length, (y1 - y0) / length
        travelled = 0.0
        while travelled < length:
            step = min(remaining, length - travelled)
            if on and step > 0:
                yield (
                    (x0 + ux * travelled, y0 + uy * travelled),
                    (x0 + ux * (travelled + step), y0 + uy * (travelled + step)),
                )
            travelled += step
            remaining -= step
            if remaining <= EPSILON:
                index = (index + 1) % len(pattern)
                remaining = float(pattern[index])
                on = not on
