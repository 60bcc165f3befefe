"""Apply each morphological operator to one image and save the results."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image

from fuzzyvessel.kernel import format_element, gaussian_element
from fuzzyvessel.morphology import (
    FuzzyNorm,
    black_hat,
    closing,
    dilate,
    erode,
    opening,
)

SHOWCASE_SIZE = 7
DEFAULT_IMAGE = Path("Entradas") / "01_test.tif"

_LABELS = {
    FuzzyNorm.STANDARD: "STANDARD",
    FuzzyNorm.ALGEBRAIC: "ALGEBRAIC",
    FuzzyNorm.BOUNDED: "BOUNDED",
    FuzzyNorm.DAP: "DaP",
    FuzzyNorm.HAMACHER: "HAMACHER",
    FuzzyNorm.CLASSIC: "CLASSIC",
}


def _element(size: int) -> np.ndarray:
    return gaussian_element(size, size, size / 2.0)


def _to_uint8(values) -> np.ndarray:
    return np.clip(np.rint(np.asarray(values, dtype=float)), 0, 255).astype(np.uint8)


def _green(image) -> np.ndarray:
    arr = np.asarray(image)
    if arr.ndim == 2:
        return arr
    if arr.ndim == 3 and arr.shape[2] >= 2:
        return arr[..., 1]
    raise ValueError("expected a grey image or an image with colour channels")


def operator_images(image, norm: FuzzyNorm, size: int = SHOWCASE_SIZE) -> dict[str, np.ndarray]:
    """Dilation, erosion, closing, opening and black hat of the green channel."""
    src = np.clip(np.asarray(_green(image), dtype=float), 0, 255) / 255.0
    element = _element(size)
    results = {
        "dilate": dilate(src, element, norm, 1),
        "erode": erode(src, element, norm, 1),
        "closing": closing(src, element, norm, 1),
        "opening": opening(src, element, norm, 1),
        "bh": black_hat(src, element, norm, 1),
    }
    return {name: _to_uint8(values * 255.0) for name, values in results.items()}


def save_operator_images(image_path, norm: FuzzyNorm, output_prefix) -> list[Path]:
    """Save every operator image as ``<prefix><operator><METHOD>.tif``."""
    label = _LABELS.get(norm)
    if label is None:
        raise ValueError(f"method not supported by the showcase: {norm.name}")
    with Image.open(image_path) as img:
        rgb = np.asarray(img.convert("RGB"))
    print(format_element(_element(SHOWCASE_SIZE)), end="")
    written = []
    for name, data in operator_images(rgb, norm, SHOWCASE_SIZE).items():
        path = Path(f"{output_prefix}{name}{label}.tif")
        Image.fromarray(data).save(path)
        written.append(path)
    return written


def main(argv: Sequence[str] | None = None) -> int:
    """Save the operator images of one test image."""
    parser = argparse.ArgumentParser(
        prog="fuzzyvessel-showcase",
        description="Save the fuzzy morphological operators applied to an image.",
    )
    parser.add_argument("method", type=int, help="method number: 1, 2, 3, 5, 6 or 9")
    parser.add_argument("size", type=int,
                        help=f"requested element size; the showcase uses {SHOWCASE_SIZE}")
    parser.add_argument("prefix", help="prefix of the saved image paths")
    parser.add_argument("--image", default=str(DEFAULT_IMAGE), help="input image")
    args = parser.parse_args(argv)

    try:
        norm = FuzzyNorm.from_method(args.method)
    except ValueError:
        norm = None
    if norm not in _LABELS:
        print("*** [Error] method not defined")
        return 1

    try:
        save_operator_images(args.image, norm, args.prefix)
    except OSError as exc:
        print(f"*** [Error] {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())