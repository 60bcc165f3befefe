"""Pixel-wise comparison of segmentation results against reference images.

Each generated image is compared with one or more manual references. The
confusion counts are turned into rates (sensitivity, specificity, ...) and
written out as a fixed-width text report.
"""

from __future__ import annotations

import argparse
import math
import re
import sys
from dataclasses import astuple, dataclass
from pathlib import Path
from typing import Sequence

import numpy as np
from PIL import Image

DEFAULT_OUTPUT = Path("Resultados") / "ResultRoc01-40.txt"

METHOD_THRESHOLD = 0
REFERENCE_THRESHOLD = 3

_RATE_HEADER = "  SN(TPR) |  SP(TNR) |   FPR    |   FNR    |   PPV    |   NPV    |   ACC    |"
_COUNT_HEADER = "   TP   |   TN   |   FP   |   FN   |  TP+FP |  TP+FN | Total  |"

Listing = list[tuple[Path, tuple[Path, ...]]]


@dataclass(frozen=True)
class ConfusionCounts:
    """True/false positive and negative pixel counts."""

    tp: int = 0
    tn: int = 0
    fp: int = 0
    fn: int = 0

    def __add__(self, other: ConfusionCounts) -> ConfusionCounts:
        if not isinstance(other, ConfusionCounts):
            return NotImplemented
        return ConfusionCounts(
            self.tp + other.tp,
            self.tn + other.tn,
            self.fp + other.fp,
            self.fn + other.fn,
        )

    def total(self) -> int:
        """Number of pixels counted."""
        return self.tp + self.tn + self.fp + self.fn


@dataclass(frozen=True)
class Rates:
    """Rates derived from confusion counts, in report column order."""

    tpr: float
    tnr: float
    fpr: float
    fnr: float
    ppv: float
    npv: float
    acc: float


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.nan if numerator == 0 else math.inf
    return numerator / denominator


def rates(counts: ConfusionCounts) -> Rates:
    """Compute the seven rates; an empty denominator yields nan."""
    tp, tn, fp, fn = counts.tp, counts.tn, counts.fp, counts.fn
    return Rates(
        tpr=_ratio(tp, tp + fn),
        tnr=_ratio(tn, tn + fp),
        fpr=_ratio(fp, tn + fp),
        fnr=_ratio(fn, tp + fn),
        ppv=_ratio(tp, tp + fp),
        npv=_ratio(tn, tn + fn),
        acc=_ratio(tp + tn, tp + tn + fp + fn),
    )


def binarize(image, threshold: float) -> np.ndarray:
    """Pixels strictly above ``threshold`` become 255, the rest 0."""
    return np.where(np.asarray(image) > threshold, 255, 0).astype(np.uint8)


def compare(method_image, reference_image) -> ConfusionCounts:
    """Count agreement between a generated image and a reference image."""
    method = binarize(method_image, METHOD_THRESHOLD)
    reference = binarize(reference_image, REFERENCE_THRESHOLD)
    if method.shape != reference.shape:
        raise ValueError(
            f"image shapes differ: {method.shape} and {reference.shape}"
        )
    equal = method == reference
    background = method == 0
    return ConfusionCounts(
        tp=int(np.count_nonzero(equal & ~background)),
        tn=int(np.count_nonzero(equal & background)),
        fp=int(np.count_nonzero(~equal & ~background)),
        fn=int(np.count_nonzero(~equal & background)),
    )


def format_rate(value: float) -> str:
    """Format a rate as a percentage cell of the report."""
    prefix = "0" if value < 0.100 else ""
    return f"  {prefix}{value * 100:.2f}%  |"


def read_listing(path) -> Listing:
    """Read a listing: reference count, image count, then per image the
    generated image path followed by one path per reference."""
    tokens = Path(path).read_text().split()
    if len(tokens) < 2:
        raise ValueError("listing must start with the reference and image counts")
    try:
        references, images = int(tokens[0]), int(tokens[1])
    except ValueError as exc:
        raise ValueError("listing counts must be integers") from exc
    if references < 0 or images < 0:
        raise ValueError("listing counts must not be negative")
    paths = tokens[2:]
    per_image = references + 1
    if len(paths) < per_image * images:
        raise ValueError(
            f"listing names {len(paths)} paths, {per_image * images} expected"
        )
    listing: Listing = []
    for start in range(0, per_image * images, per_image):
        group = paths[start:start + per_image]
        listing.append((Path(group[0]), tuple(Path(p) for p in group[1:])))
    return listing


def _load_gray(path: Path, message: str) -> np.ndarray:
    try:
        with Image.open(path) as img:
            return np.asarray(img.convert("L"))
    except OSError as exc:
        raise FileNotFoundError(message) from exc


def evaluate(listing: Listing) -> list[list[ConfusionCounts]]:
    """Compare every generated image with its references.

    The result is indexed by reference first, then by image.
    """
    if not listing:
        return []
    reference_count = len(listing[0][1])
    results: list[list[ConfusionCounts]] = [[] for _ in range(reference_count)]
    for number, (method_path, reference_paths) in enumerate(listing, start=1):
        if len(reference_paths) != reference_count:
            raise ValueError(f"image {number} has a different number of references")
        method = _load_gray(method_path, f"generated image not found: {method_path}")
        for ref_number, reference_path in enumerate(reference_paths, start=1):
            reference = _load_gray(
                reference_path,
                f"image {number} of reference {ref_number} not found: {reference_path}",
            )
            results[ref_number - 1].append(compare(method, reference))
    return results


def _rate_cells(counts: ConfusionCounts) -> str:
    return "".join(format_rate(value) for value in astuple(rates(counts)))


def _reference_totals(results: Sequence[Sequence[ConfusionCounts]]) -> list[ConfusionCounts]:
    # The per-reference totals leave out the first image.
    return [sum(counts[1:], ConfusionCounts()) for counts in results]


def _overall(results: Sequence[Sequence[ConfusionCounts]]) -> ConfusionCounts:
    return sum(_reference_totals(results), ConfusionCounts())


def _joined(cells: Sequence[str]) -> str:
    return "|".join(cells)


def render_report(results: Sequence[Sequence[ConfusionCounts]]) -> str:
    """Render the full text report for ``results[reference][image]``."""
    references = len(results)
    images = len(results[0]) if results else 0
    out: list[str] = []

    for ref in range(1, references + 1):
        if ref == 1:
            out.append("        |" + " " * 32 + "Referencia 1" + " " * 32 + "|")
        else:
            out.append("|" + " " * 32 + f"Referencia {ref}" + " " * 32 + "|")
    out.append("\n Imagem |")
    out.append(_joined([_RATE_HEADER] * references))

    for image in range(images):
        out.append(f"\n   {image + 1:02d}   |")
        out.append(_joined([_rate_cells(results[ref][image]) for ref in range(references)]))

    for ref in range(references):
        if ref == 0:
            out.append("\n" + "-" * 85 + "|")
        else:
            out.append("|" + "-" * 76 + "|")

    out.append("\n Tot(%) |")
    out.append(_joined([_rate_cells(total) for total in _reference_totals(results)]))

    out.append("\n\n\n\n           |" + _RATE_HEADER + "\n")
    out.append(" Geral(%)  |" + _rate_cells(_overall(results)))
    out.append("\n\n\n\n")

    for ref in range(1, references + 1):
        if ref == 1:
            out.append(" " * 35 + "Referencia 1" + " " * 24 + "|")
        else:
            out.append("|" + " " * 25 + f"Referencia {ref}" + " " * 25 + "|")
    out.append("\n Imagem |")
    out.append(_joined([_COUNT_HEADER] * references))

    for image in range(images):
        out.append(f"\n   {image + 1:02d}   |")
        cells = []
        for ref in range(references):
            c = results[ref][image]
            cells.append(
                f" {c.tp:6.0f} | {c.tn:6.0f} |"
                f" {c.fp:6.0f} | {c.fn:6.0f} |"
                f" {c.tp + c.fp:6.0f} |"
                f" {c.tp + c.fn:6.0f} |"
                f" {c.total():6.0f} |"
            )
        out.append(_joined(cells))
    out.append("\n\n\n")
    return "".join(out)


def summary_line(results: Sequence[Sequence[ConfusionCounts]]) -> str:
    """One-line summary of the overall TPR, FPR and accuracy."""
    overall = rates(_overall(results))
    return (
        f"TPR: {overall.tpr * 100:.2f}%, "
        f"FPR: {overall.fpr * 100:.2f}%, "
        f"ACC: {overall.acc * 100:.2f}%\n"
    )


def _leading_int(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def _run_header(args: argparse.Namespace) -> str:
    window = _leading_int(args.window)
    value = _leading_int(args.value)
    return (
        f"Metodo {_leading_int(args.method)} -> Tamanho {_leading_int(args.size)}, "
        f"Jan: {window}x{window}, Val(x,y): {value}x{value}, "
        f"BH: {_leading_int(args.black_hat)}, TS: {_leading_int(args.ts)},  "
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Compare the images named in a listing and write the report."""
    parser = argparse.ArgumentParser(
        prog="fuzzyvessel-roc",
        description="Compare segmented images with reference images.",
    )
    parser.add_argument("listing", help="file naming the images to compare")
    parser.add_argument("method")
    parser.add_argument("size")
    parser.add_argument("black_hat")
    parser.add_argument("window")
    parser.add_argument("value")
    parser.add_argument("ts")
    parser.add_argument("list_file", help="file the summary line is appended to")
    parser.add_argument("--output", default=str(DEFAULT_OUTPUT), help="report path")
    args = parser.parse_args(argv)

    try:
        listing = read_listing(args.listing)
    except OSError:
        print("*** [Error] could not open the input file")
        return 1
    except ValueError as exc:
        print(f"*** [Error] {exc}")
        return 1

    try:
        report_file = open(args.output, "w")
    except OSError:
        print("*** [Error] could not open the output file")
        return 1

    with report_file, open(args.list_file, "a") as list_file:
        list_file.write(_run_header(args))
        list_file.flush()
        try:
            results = evaluate(listing)
        except (FileNotFoundError, ValueError) as exc:
            print(f"*** [Error] {exc}")
            return 1
        report_file.write(render_report(results))
        list_file.write(summary_line(results))
        print("\n" + _RATE_HEADER)
        print(_rate_cells(_overall(results)), end="")
        print("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())