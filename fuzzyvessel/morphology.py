"""Grey-level morphology with fuzzy t-norms and s-norms.

Images are float arrays with values in [0, 1], of shape (H, W) or (H, W, C);
operators act on the two spatial axes. Borders repeat the edge pixels.
"""

from __future__ import annotations

from enum import Enum

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

_DAP_ALPHA = 0.5


class FuzzyNorm(Enum):
    """Pair of fuzzy norms used by the operators, numbered by method."""

    STANDARD = 1
    ALGEBRAIC = 2
    BOUNDED = 3
    DRASTIC = 4
    DAP = 5
    HAMACHER = 6
    GEOMETRIC = 7
    ARITHMETIC = 8
    CLASSIC = 9

    @classmethod
    def from_method(cls, number) -> FuzzyNorm:
        """Norm for a method number from 1 to 9."""
        try:
            return cls(int(number))
        except (ValueError, TypeError) as exc:
            raise ValueError(f"unknown method: {number}") from exc

    def tnorm(self, a, b) -> np.ndarray:
        """Fuzzy intersection of ``a`` and ``b``."""
        a, b = np.broadcast_arrays(np.asarray(a, dtype=float), np.asarray(b, dtype=float))
        with np.errstate(divide="ignore", invalid="ignore"):
            if self in (FuzzyNorm.STANDARD, FuzzyNorm.CLASSIC):
                return np.minimum(a, b)
            if self is FuzzyNorm.ALGEBRAIC:
                return a * b
            if self is FuzzyNorm.BOUNDED:
                return np.maximum(0.0, a + b - 1.0)
            if self is FuzzyNorm.DRASTIC:
                return np.where(a == 1.0, b, np.where(b == 1.0, a, 0.0))
            if self is FuzzyNorm.DAP:
                return a * b / np.maximum(np.maximum(a, b), _DAP_ALPHA)
            if self is FuzzyNorm.HAMACHER:
                denom = a + b - a * b
                return np.where(denom == 0, 0.0, a * b / np.where(denom == 0, 1.0, denom))
            if self is FuzzyNorm.GEOMETRIC:
                return np.sqrt(a * b)
            return (a + b) / 2.0

    def snorm(self, a, b) -> np.ndarray:
        """Fuzzy union of ``a`` and ``b``."""
        a, b = np.broadcast_arrays(np.asarray(a, dtype=float), np.asarray(b, dtype=float))
        with np.errstate(divide="ignore", invalid="ignore"):
            if self in (FuzzyNorm.STANDARD, FuzzyNorm.CLASSIC):
                return np.maximum(a, b)
            if self is FuzzyNorm.ALGEBRAIC:
                return a + b - a * b
            if self is FuzzyNorm.BOUNDED:
                return np.minimum(1.0, a + b)
            if self is FuzzyNorm.DRASTIC:
                return np.where(a == 0.0, b, np.where(b == 0.0, a, 1.0))
            if self is FuzzyNorm.DAP:
                na, nb = 1.0 - a, 1.0 - b
                return 1.0 - na * nb / np.maximum(np.maximum(na, nb), _DAP_ALPHA)
            if self is FuzzyNorm.HAMACHER:
                denom = 1.0 - a * b
                safe = np.where(denom == 0, 1.0, denom)
                return np.where(denom == 0, 1.0, (a + b - 2.0 * a * b) / safe)
            if self is FuzzyNorm.GEOMETRIC:
                return 1.0 - np.sqrt((1.0 - a) * (1.0 - b))
            return (a + b) / 2.0


def _as_image(image) -> np.ndarray:
    arr = np.asarray(image, dtype=float)
    if arr.ndim < 2:
        raise ValueError("image must have at least two dimensions")
    return arr


def _as_element(element) -> np.ndarray:
    arr = np.asarray(element, dtype=float)
    if arr.ndim != 2:
        raise ValueError("element must be two-dimensional")
    if arr.shape[0] % 2 == 0 or arr.shape[1] % 2 == 0:
        raise ValueError("element sizes must be odd")
    return arr


def _neighbourhoods(image: np.ndarray, shape: tuple[int, int]) -> np.ndarray:
    kh, kw = shape
    pad = [(kh // 2, kh // 2), (kw // 2, kw // 2)] + [(0, 0)] * (image.ndim - 2)
    padded = np.pad(image, pad, mode="edge")
    return sliding_window_view(padded, (kh, kw), axis=(0, 1))


def _dilate_once(image: np.ndarray, element: np.ndarray, norm: FuzzyNorm) -> np.ndarray:
    windows = _neighbourhoods(image, element.shape)
    if norm is FuzzyNorm.CLASSIC:
        return np.where(element > 0, windows, -np.inf).max(axis=(-2, -1))
    return norm.tnorm(element, windows).max(axis=(-2, -1))


def _erode_once(image: np.ndarray, element: np.ndarray, norm: FuzzyNorm) -> np.ndarray:
    windows = _neighbourhoods(image, element.shape)
    if norm is FuzzyNorm.CLASSIC:
        return np.where(element > 0, windows, np.inf).min(axis=(-2, -1))
    return norm.snorm(1.0 - element, windows).min(axis=(-2, -1))


def dilate(image, element, norm: FuzzyNorm, iterations: int = 1) -> np.ndarray:
    """Dilate ``iterations`` times; no iteration returns a copy."""
    result = _as_image(image).copy()
    kernel = _as_element(element)
    for _ in range(max(iterations, 0)):
        result = _dilate_once(result, kernel, norm)
    return result


def erode(image, element, norm: FuzzyNorm, iterations: int = 1) -> np.ndarray:
    """Erode ``iterations`` times; no iteration returns a copy."""
    result = _as_image(image).copy()
    kernel = _as_element(element)
    for _ in range(max(iterations, 0)):
        result = _erode_once(result, kernel, norm)
    return result


def closing(image, element, norm: FuzzyNorm, iterations: int = 1) -> np.ndarray:
    """Dilation followed by erosion, each repeated ``iterations`` times."""
    return erode(dilate(image, element, norm, iterations), element, norm, iterations)


def opening(image, element, norm: FuzzyNorm, iterations: int = 1) -> np.ndarray:
    """Erosion followed by dilation, each repeated ``iterations`` times."""
    return dilate(erode(image, element, norm, iterations), element, norm, iterations)


def black_hat(image, element, norm: FuzzyNorm, iterations: int = 1) -> np.ndarray:
    """Closing minus the image, saturated at zero."""
    src = _as_image(image)
    return np.clip(closing(src, element, norm, iterations) - src, 0.0, 1.0)


def geodesic_dilation(mask, marker, element, norm: FuzzyNorm) -> np.ndarray:
    """One dilation of ``marker`` limited from above by ``mask``."""
    return np.minimum(_as_image(mask), dilate(marker, element, norm))


def _same_at_8_bits(a: np.ndarray, b: np.ndarray) -> bool:
    return np.array_equal(np.rint(a * 255.0), np.rint(b * 255.0))


def reconstruction_by_dilation(mask, marker, element, norm: FuzzyNorm) -> np.ndarray:
    """Repeat geodesic dilation until no pixel changes at 8-bit precision."""
    mask_arr = _as_image(mask)
    current = _as_image(marker)
    if current.shape != mask_arr.shape:
        raise ValueError("mask and marker shapes differ")
    while True:
        following = geodesic_dilation(mask_arr, current, element, norm)
        if _same_at_8_bits(following, current):
            return following
        current = following


def opening_by_reconstruction(image, element, norm: FuzzyNorm, iterations: int = 1) -> np.ndarray:
    """Erode ``iterations`` times, then reconstruct under the original image."""
    src = _as_image(image)
    eroded = erode(src, element, norm, iterations)
    return reconstruction_by_dilation(src, eroded, element, norm)