"""Public API for escape-time Mandelbrot rendering."""

from .parsing import parse_complex, parse_pair
from .plane import Viewport, pixel_to_point, plane_grid
from .renderer import (
    LIMIT,
    band_ranges,
    buffer_view,
    check_buffer,
    escape_time,
    intensity,
    render,
    render_bands,
)
from .tensor import render_tensor, select_device

__all__ = [
    "LIMIT",
    "Viewport",
    "band_ranges",
    "buffer_view",
    "check_buffer",
    "escape_time",
    "intensity",
    "parse_complex",
    "parse_pair",
    "pixel_to_point",
    "plane_grid",
    "render",
    "render_bands",
    "render_tensor",
    "select_device",
]
