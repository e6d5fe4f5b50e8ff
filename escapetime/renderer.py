"""Escape-time classification and the per-pixel rendering loops."""

from __future__ import annotations

import multiprocessing
from concurrent.futures import ProcessPoolExecutor
from typing import Optional

import numpy as np

from .plane import pixel_to_point

LIMIT = 255
HORIZON = 4.0


def escape_time(c: complex, limit: int) -> Optional[int]:
    """Try to decide whether ``c`` is in the Mandelbrot set within ``limit`` iterations.

    Returns the number of iterations it took ``z`` to leave the circle of
    radius two around the origin, or ``None`` if it was still inside after
    ``limit`` iterations (``c`` is presumed, not proven, to be a member).
    """

    x = y = 0.0
    for i in range(limit):
        if x * x + y * y > HORIZON:
            return i
        x, y = x * x - y * y + c.real, 2.0 * x * y + c.imag
    return None


def intensity(count: Optional[int]) -> int:
    """Gray level for an escape count: black inside, brighter the sooner it escaped."""

    if count is None:
        return 0
    return LIMIT - count


def buffer_view(pixels) -> np.ndarray:
    """Writable flat ``uint8`` view onto a ``bytearray`` or numpy buffer."""

    return np.frombuffer(pixels, dtype=np.uint8)


def check_buffer(pixels, bounds: tuple[int, int]) -> None:
    """Assert that ``pixels`` holds exactly one byte per pixel of ``bounds``."""

    assert len(pixels) == bounds[0] * bounds[1], (
        f"buffer holds {len(pixels)} pixels, bounds {bounds[0]}x{bounds[1]} need {bounds[0] * bounds[1]}"
    )


def render(pixels, bounds: tuple[int, int], upper_left: complex, lower_right: complex) -> None:
    """Render the rectangle of the plane into ``pixels``, one byte per pixel, row-major."""

    check_buffer(pixels, bounds)

    width, height = bounds
    for row in range(height):
        for column in range(width):
            point = pixel_to_point(bounds, (column, row), upper_left, lower_right)
            pixels[row * width + column] = intensity(escape_time(point, LIMIT))


def _render_rows(
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    start: int,
    stop: int,
) -> bytes:
    width = bounds[0]
    band = bytearray(width * (stop - start))
    for row in range(start, stop):
        offset = (row - start) * width
        for column in range(width):
            point = pixel_to_point(bounds, (column, row), upper_left, lower_right)
            band[offset + column] = intensity(escape_time(point, LIMIT))
    return bytes(band)


def band_ranges(height: int, bands: int) -> list[tuple[int, int]]:
    """Split ``range(height)`` into at most ``bands`` contiguous ``(start, stop)`` runs."""

    rows_per_band = max(-(-height // max(bands, 1)), 1)
    return [(start, min(start + rows_per_band, height)) for start in range(0, height, rows_per_band)]


def render_bands(
    pixels,
    bounds: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
    workers: Optional[int] = None,
) -> None:
    """Like :func:`render`, with horizontal bands of rows spread over a process pool."""

    check_buffer(pixels, bounds)

    if workers is None:
        workers = multiprocessing.cpu_count()
    width, height = bounds
    view = buffer_view(pixels)
    ranges = band_ranges(height, workers)

    with ProcessPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_render_rows, bounds, upper_left, lower_right, start, stop): (start, stop)
            for start, stop in ranges
        }
        for future, (start, stop) in futures.items():
            view[start * width:stop * width] = np.frombuffer(future.result(), dtype=np.uint8)
