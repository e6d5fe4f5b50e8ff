import multiprocessing
import os
import re
import sys
import time
import warnings
from dataclasses import dataclass
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np
import tensorflow as tf
import PIL.Image

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

from escapetime import (
    Viewport,
    parse_complex,
    parse_pair,
    render,
    render_bands,
    render_tensor,
    select_device,
)

from argparse import ArgumentParser, RawDescriptionHelpFormatter

BACKENDS = ("serial", "bands", "tensor")


@dataclass
class RenderConfig:
    output_path: Path
    image_format: str
    viewport: Viewport
    backend: str
    workers: int | None


def build_parser():
    parser = ArgumentParser(
        prog="mandel",
        description="Render the Mandelbrot set as a grayscale image.",
        epilog="Example: mandel mandel.png 1000x750 -1.20,0.35 -1,0.20",
        formatter_class=RawDescriptionHelpFormatter,
    )
    # Negative corners like "-1.20,0.35" are positional values.
    parser._negative_number_matcher = re.compile(r"^-\.?\d")

    parser.add_argument('file', metavar='FILE',
                        help='image file to write')

    parser.add_argument('pixels', metavar='PIXELS',
                        help='image size in pixels, as WIDTHxHEIGHT (e.g. 1000x750)')

    parser.add_argument('upper_left', metavar='UPPERLEFT',
                        help='complex point at the upper left corner, as RE,IM (e.g. -1.20,0.35)')

    parser.add_argument('lower_right', metavar='LOWERRIGHT',
                        help='complex point at the lower right corner, as RE,IM (e.g. -1,0.20)')

    parser.add_argument('--backend', choices=BACKENDS, default='serial',
                        help='how to run the render loop: "serial" (one pixel at a time), '
                             '"bands" (rows split across a process pool) or "tensor" (TensorFlow, GPU when available).')

    parser.add_argument('--workers', type=int, dest='workers', metavar='WORKERS',
                        help='number of worker processes for the bands backend. Default: one per CPU.')

    parser.add_argument('--format', type=str,
                        dest='format', help='image file format. Can be any format Pillow can write. '
                                            'Default: taken from the FILE extension, else "png".',
                        metavar='FORMAT')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def _writable_formats() -> set[str]:
    PIL.Image.init()
    return set(PIL.Image.SAVE)


def resolve_render_config(opt, parser: ArgumentParser) -> RenderConfig:
    bounds = parse_pair(opt.pixels, "x")
    if bounds is None:
        parser.error(f"error parsing image dimensions: {opt.pixels!r}")
    if bounds[0] <= 0 or bounds[1] <= 0:
        parser.error(f"image dimensions must be positive: {opt.pixels!r}")

    upper_left = parse_complex(opt.upper_left)
    if upper_left is None:
        parser.error(f"error parsing upper left corner point: {opt.upper_left!r}")

    lower_right = parse_complex(opt.lower_right)
    if lower_right is None:
        parser.error(f"error parsing lower right corner point: {opt.lower_right!r}")

    workers = getattr(opt, "workers", None)
    if workers is not None:
        if opt.backend != "bands":
            parser.error("--workers requires the bands backend.")
        if workers <= 0:
            parser.error(f"--workers must be positive, got {workers}.")

    output_path = Path(opt.file).expanduser()
    suffix = output_path.suffix.lstrip(".")
    image_format = (getattr(opt, "format", None) or "").lower().lstrip(".")

    if image_format:
        if suffix:
            if _pil_format_name(suffix) != _pil_format_name(image_format):
                parser.error(f"FILE extension .{suffix} does not match --format {image_format}.")
        else:
            output_path = output_path.with_suffix(f".{image_format}")
    elif suffix:
        image_format = suffix.lower()
    else:
        image_format = "png"
        output_path = output_path.with_suffix(".png")

    if _pil_format_name(image_format) not in _writable_formats():
        parser.error(f"Pillow cannot write {image_format!r} images.")

    return RenderConfig(
        output_path=output_path.resolve(),
        image_format=image_format,
        viewport=Viewport(bounds=bounds, upper_left=upper_left, lower_right=lower_right),
        backend=opt.backend,
        workers=workers,
    )


def write_image(pixels, bounds: tuple[int, int], output_path: Path, image_format: str) -> None:
    """Encode ``pixels`` as an 8-bit grayscale image of size ``bounds``."""

    image = PIL.Image.frombytes("L", bounds, bytes(pixels))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=_pil_format_name(image_format))


def render_viewport(config: RenderConfig) -> np.ndarray:
    viewport = config.viewport
    pixels = np.zeros(viewport.pixel_count, dtype=np.uint8)
    args = (pixels, viewport.bounds, viewport.upper_left, viewport.lower_right)

    if config.backend == "tensor":
        device = select_device()
        log("Rendering on %s" % device)
        render_tensor(*args, device=device)
    elif config.backend == "bands":
        workers = config.workers if config.workers is not None else multiprocessing.cpu_count()
        log("Rendering in bands with %s workers" % workers)
        render_bands(*args, workers=config.workers)
    else:
        render(*args)
    return pixels


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = resolve_render_config(opt, parser)
    viewport = config.viewport

    log("TensorFlow version: %s" % tf.__version__)
    log("Image %dx%d, upper left %s, lower right %s" % (
        viewport.width, viewport.height, viewport.upper_left, viewport.lower_right))

    start = time.perf_counter()
    pixels = render_viewport(config)
    log("Rendered in %.3f seconds" % (time.perf_counter() - start))

    try:
        write_image(pixels, viewport.bounds, config.output_path, config.image_format)
    except OSError as exc:
        print(f"error writing image file {config.output_path}: {exc}", file=sys.stderr)
        sys.exit(1)

    log("Wrote %s" % config.output_path)


if __name__ == '__main__':
    main()
