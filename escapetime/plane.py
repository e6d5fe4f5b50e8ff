"""Mapping between image pixels and points on the complex plane."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Viewport:
    """The image size in pixels and the region of the plane it covers."""

    bounds: tuple[int, int]
    upper_left: complex
    lower_right: complex

    @property
    def width(self) -> int:
        return self.bounds[0]

    @property
    def height(self) -> int:
        return self.bounds[1]

    @property
    def pixel_count(self) -> int:
        return self.bounds[0] * self.bounds[1]

    def point_at(self, column: int, row: int) -> complex:
        return pixel_to_point(self.bounds, (column, row), self.upper_left, self.lower_right)


def pixel_to_point(
    bounds: tuple[int, int],
    pixel: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
) -> complex:
    """Return the point on the complex plane under ``pixel``.

    ``bounds`` is the ``(width, height)`` of the image and ``pixel`` a
    ``(column, row)`` pair inside it. The imaginary axis grows upwards
    while rows grow downwards. Pixel ``(0, 0)`` lands exactly on
    ``upper_left``; the last pixel stops one step short of ``lower_right``.
    """

    width = lower_right.real - upper_left.real
    height = upper_left.imag - lower_right.imag
    return complex(
        upper_left.real + pixel[0] * width / bounds[0],
        upper_left.imag - pixel[1] * height / bounds[1],
    )


def plane_grid(
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
) -> tuple[np.ndarray, np.ndarray]:
    """Real and imaginary parts for every pixel, each of shape ``(height, width)``."""

    width = np.float64(lower_right.real - upper_left.real)
    height = np.float64(upper_left.imag - lower_right.imag)
    columns = np.arange(bounds[0], dtype=np.float64)
    rows = np.arange(bounds[1], dtype=np.float64)

    # Same operation order as pixel_to_point so both paths agree exactly.
    x = np.float64(upper_left.real) + columns * width / np.float64(bounds[0])
    y = np.float64(upper_left.imag) - rows * height / np.float64(bounds[1])
    real, imag = np.meshgrid(x, y)
    return real, imag
