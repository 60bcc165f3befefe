"""Gaussian structuring elements for fuzzy morphology."""

from __future__ import annotations

import numpy as np


def _check_sizes(size_x: int, size_y: int) -> None:
    if size_x < 1 or size_y < 1:
        raise ValueError("element sizes must be positive")
    if size_x % 2 == 0 or size_y % 2 == 0:
        raise ValueError("element sizes must be odd")


def gaussian_element(size_x: int, size_y: int, sigma: float) -> np.ndarray:
    """Gaussian weights of shape ``(size_x, size_y)`` normalised to 1 at the centre."""
    _check_sizes(size_x, size_y)
    if sigma <= 0:
        raise ValueError("sigma must be positive")
    lim_x = (size_x - 1) // 2
    lim_y = (size_y - 1) // 2
    x = np.arange(-lim_x, lim_x + 1, dtype=float)[:, None]
    y = np.arange(-lim_y, lim_y + 1, dtype=float)[None, :]
    t = 2.0 * sigma**2
    return np.exp(-(x**2 + y**2) / t)


def scaled_gaussian_element(size_x: int, size_y: int, spread: float) -> np.ndarray:
    """Gaussian element whose sigma is the half-width divided by ``spread``."""
    _check_sizes(size_x, size_y)
    if spread == 0:
        raise ValueError("spread must not be zero")
    sigma = ((size_x - 1) // 2) / spread
    return gaussian_element(size_x, size_y, sigma)


def format_element(element) -> str:
    """Render an element as rows of ``%f`` values followed by a blank line pair."""
    arr = np.asarray(element, dtype=float)
    if arr.ndim != 2:
        raise ValueError("element must be two-dimensional")
    size_x, size_y = arr.shape
    rows = arr.ravel().reshape(size_y, size_x)
    lines = ["".join(f"{value:f} " for value in row) for row in rows]
    return "".join(line + "\n" for line in lines) + "\n\n"