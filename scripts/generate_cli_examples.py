from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import PIL.Image

EXAMPLES_ROOT = Path("examples/cli-options")
SIZE = "320x240"


@dataclass
class Expected:
    path: Path
    size: tuple[int, int] = (320, 240)


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return ["python", "mandel.py", *self.args]


EXAMPLES: list[Example] = [
    Example(
        name="whole-set",
        args=[str(EXAMPLES_ROOT / "whole-set" / "whole.png"), SIZE, "-2.2,1.2", "0.8,-1.2"],
        expected=[Expected(EXAMPLES_ROOT / "whole-set" / "whole.png")],
        clean=[EXAMPLES_ROOT / "whole-set"],
    ),
    Example(
        name="seahorse-valley",
        args=[str(EXAMPLES_ROOT / "seahorse-valley" / "seahorse.png"), SIZE, "-1.20,0.35", "-1,0.20"],
        expected=[Expected(EXAMPLES_ROOT / "seahorse-valley" / "seahorse.png")],
        clean=[EXAMPLES_ROOT / "seahorse-valley"],
    ),
    Example(
        name="backend-bands",
        args=[
            "--backend",
            "bands",
            "--workers",
            "4",
            "--",
            str(EXAMPLES_ROOT / "backend-bands" / "bands.png"),
            SIZE,
            "-1.20,0.35",
            "-1,0.20",
        ],
        expected=[Expected(EXAMPLES_ROOT / "backend-bands" / "bands.png")],
        clean=[EXAMPLES_ROOT / "backend-bands"],
    ),
    Example(
        name="backend-tensor",
        args=[
            "--backend",
            "tensor",
            "--",
            str(EXAMPLES_ROOT / "backend-tensor" / "tensor.png"),
            SIZE,
            "-1.20,0.35",
            "-1,0.20",
        ],
        expected=[Expected(EXAMPLES_ROOT / "backend-tensor" / "tensor.png")],
        clean=[EXAMPLES_ROOT / "backend-tensor"],
    ),
    Example(
        name="format",
        args=[
            "--format",
            "webp",
            "--",
            str(EXAMPLES_ROOT / "format" / "custom"),
            "160x120",
            "-2.2,1.2",
            "0.8,-1.2",
        ],
        expected=[Expected(EXAMPLES_ROOT / "format" / "custom.webp", size=(160, 120))],
        clean=[EXAMPLES_ROOT / "format"],
    ),
    Example(
        name="verbose",
        args=["--verbose", "--", str(EXAMPLES_ROOT / "verbose" / "diagnostic.png"), SIZE, "-0.75,0.1", "-0.74,0.09"],
        expected=[Expected(EXAMPLES_ROOT / "verbose" / "diagnostic.png")],
        clean=[EXAMPLES_ROOT / "verbose"],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    _ensure_clean(example.clean or [])


def _verify(example: Example) -> None:
    for expected in example.expected:
        if not expected.path.is_file():
            raise RuntimeError(f"Expected file {expected.path} was not created")
        with PIL.Image.open(expected.path) as image:
            if image.size != expected.size:
                raise RuntimeError(f"{expected.path} is {image.size}, expected {expected.size}")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
