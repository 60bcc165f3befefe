"""Vessel segmentation of retinal images with fuzzy morphology.

The green channel is masked, smoothed and passed through a black-hat
transform; the result is thresholded and cleaned with an opening by
reconstruction before a final binarisation.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from PIL import Image

from fuzzyvessel.kernel import gaussian_element, scaled_gaussian_element
from fuzzyvessel.morphology import (
    FuzzyNorm,
    black_hat,
    erode,
    opening_by_reconstruction,
)

MASK_LEVEL = 20
MASK_EROSIONS = 10

_METHOD_LABELS = {
    FuzzyNorm.STANDARD: "STANDARD",
    FuzzyNorm.ALGEBRAIC: "ALGEBRAIC",
    FuzzyNorm.BOUNDED: "BOUNDED",
    FuzzyNorm.DRASTIC: "DRASTIC",
    FuzzyNorm.DAP: "DUBOIS and PRADE",
    FuzzyNorm.HAMACHER: "HAMACHER",
    FuzzyNorm.GEOMETRIC: "GEOMETRIC",
    FuzzyNorm.ARITHMETIC: "ARITHMETIC",
    FuzzyNorm.CLASSIC: "CLASSIC",
}


@dataclass(frozen=True)
class SegmentationParams:
    """Settings of one segmentation run.

    ``size`` is the structuring element size, ``black_hat`` the number of
    closing iterations, ``window`` and ``value`` the blur window and sigma,
    ``ts`` the 8-bit black-hat threshold and ``final_level`` the threshold
    applied after the reconstruction. When ``divisor`` is given the element
    sigma is ``size / divisor``; otherwise it is derived from the size alone.
    """

    size: int = 3
    black_hat: int = 1
    window: int = 3
    value: float = 1.0
    ts: float = 3.0
    final_level: float = 1.0
    divisor: float | None = None

    def __post_init__(self) -> None:
        if self.black_hat < 0:
            raise ValueError("black-hat iterations must not be negative")
        if self.divisor is not None and self.divisor <= 0:
            raise ValueError("divisor must be positive")


def _element(params: SegmentationParams) -> np.ndarray:
    size = params.size
    if params.divisor is None:
        half = (size - 1) // 2
        return scaled_gaussian_element(size, size, half / (5.0 * size))
    return gaussian_element(size, size, size / params.divisor)


def _to_uint8(values) -> np.ndarray:
    return np.clip(np.rint(np.asarray(values, dtype=float)), 0, 255).astype(np.uint8)


def _gaussian_weights(window: int, sigma: float) -> np.ndarray:
    if sigma <= 0:
        sigma = 0.3 * ((window - 1) * 0.5 - 1) + 0.8
    offsets = np.arange(window, dtype=float) - (window - 1) / 2
    weights = np.exp(-(offsets**2) / (2.0 * sigma**2))
    return weights / weights.sum()


def gaussian_blur(image, window: int, sigma: float) -> np.ndarray:
    """Separable Gaussian blur over the two spatial axes, mirrored borders.

    A non-positive ``sigma`` is derived from the window size.
    """
    if window < 1 or window % 2 == 0:
        raise ValueError("blur window must be a positive odd number")
    result = np.asarray(image, dtype=float)
    if result.ndim < 2:
        raise ValueError("image must have at least two dimensions")
    weights = _gaussian_weights(window, sigma)
    half = window // 2
    for axis in (0, 1):
        pad = [(0, 0)] * result.ndim
        pad[axis] = (half, half)
        padded = np.pad(result, pad, mode="reflect")
        result = sliding_window_view(padded, window, axis=axis) @ weights
    return result


def apply_mask(image, mask) -> np.ndarray:
    """Pixel-wise minimum of an image and a mask."""
    return np.minimum(np.asarray(image), np.asarray(mask))


def threshold(image, level: float) -> np.ndarray:
    """Pixels strictly above ``level`` become 255, the rest 0."""
    return np.where(np.asarray(image) > level, 255, 0).astype(np.uint8)


def _green(image) -> np.ndarray:
    arr = np.asarray(image)
    if arr.ndim == 2:
        return _to_uint8(arr)
    if arr.ndim == 3 and arr.shape[2] >= 2:
        return _to_uint8(arr[..., 1])
    raise ValueError("expected a grey image or an image with colour channels")


def segment(rgb, norm: FuzzyNorm, params: SegmentationParams | None = None) -> np.ndarray:
    """Segment the vessels of an image; returns an 8-bit 0/255 map."""
    params = params or SegmentationParams()
    element = _element(params)

    green = _green(rgb)
    mask = threshold(green, MASK_LEVEL)
    green = apply_mask(green, mask)

    blurred = _to_uint8(gaussian_blur(green, params.window, params.value))
    hat = _to_uint8(black_hat(blurred / 255.0, element, norm, params.black_hat) * 255.0)

    field = erode(mask / 255.0, np.ones((3, 3)), FuzzyNorm.CLASSIC, MASK_EROSIONS)
    hat = apply_mask(hat, _to_uint8(field * 255.0))

    binary = threshold(hat, params.ts)
    opened = opening_by_reconstruction(binary / 255.0, element, norm, 1)
    return threshold(_to_uint8(opened * 255.0), params.final_level)


def read_job(path) -> list[tuple[Path, Path]]:
    """Read a job file: an image count, then input and output path pairs."""
    tokens = Path(path).read_text().split()
    if not tokens:
        raise ValueError("job file must start with the image count")
    try:
        count = int(tokens[0])
    except ValueError as exc:
        raise ValueError("image count must be an integer") from exc
    if count < 0:
        raise ValueError("image count must not be negative")
    paths = tokens[1:]
    if len(paths) < 2 * count:
        raise ValueError(f"job file names {len(paths)} paths, {2 * count} expected")
    pairs = zip(paths[0:2 * count:2], paths[1:2 * count:2])
    return [(Path(source), Path(target)) for source, target in pairs]


def _load_rgb(path: Path) -> np.ndarray:
    try:
        with Image.open(path) as img:
            return np.asarray(img.convert("RGB"))
    except OSError as exc:
        raise FileNotFoundError(f"image not found: {path}") from exc


def run_job(path, norm: FuzzyNorm, params: SegmentationParams | None = None) -> list[Path]:
    """Segment every image named in a job file and save the results."""
    written = []
    for number, (source, target) in enumerate(read_job(path), start=1):
        print(f"Image: {number:02d}")
        result = segment(_load_rgb(source), norm, params)
        Image.fromarray(np.stack([result] * 3, axis=-1)).save(target)
        written.append(target)
    return written


def main(argv: Sequence[str] | None = None) -> int:
    """Run the segmentation over a job file."""
    parser = argparse.ArgumentParser(
        prog="fuzzyvessel",
        description="Segment retinal vessels with fuzzy morphology.",
    )
    parser.add_argument("method", type=int, help="method number from 1 to 9")
    parser.add_argument("job", help="file naming the input and output images")
    parser.add_argument("size", type=int, help="structuring element size")
    parser.add_argument("black_hat", type=int, help="black-hat iterations")
    parser.add_argument("window", type=int, help="blur window size")
    parser.add_argument("value", type=int, help="blur sigma")
    parser.add_argument("ts", type=float, help="black-hat threshold")
    parser.add_argument("--divisor", type=float, default=None,
                        help="element sigma is size divided by this value")
    args = parser.parse_args(argv)

    try:
        read_job(args.job)
    except OSError:
        print("*** [Error] could not open the job file")
        return 1
    except ValueError as exc:
        print(f"*** [Error] {exc}")
        return 1

    try:
        norm = FuzzyNorm.from_method(args.method)
    except ValueError:
        print("*** [Error] method not defined")
        return 1
    print(f"\n[ Metodo {norm.value} ] - {_METHOD_LABELS[norm]}")
    print(
        f" ***Tamanho {args.size}, Jan: {args.window}x{args.window}, "
        f"Val(x,y): {args.value}x{args.value}, TS: {args.ts:f} ***"
    )

    try:
        params = SegmentationParams(
            size=args.size,
            black_hat=args.black_hat,
            window=args.window,
            value=args.value,
            ts=args.ts,
            divisor=args.divisor,
        )
        run_job(args.job, norm, params)
    except (FileNotFoundError, ValueError) as exc:
        print(f"*** [Error] {exc}")
        return 1
    print("Fim do metodo")
    return 0


if __name__ == "__main__":
    sys.exit(main())