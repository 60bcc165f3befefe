# fuzzyvessel

Segmentation of blood vessels in retinal fundus images with fuzzy
mathematical morphology, and a tool that scores segmentations against
hand-drawn reference images.

The segmentation works on the green channel of a colour image. It masks out
the dark background (green values of 20 or less), smooths the image with a
Gaussian blur, enhances the vessels with a black-hat transform (closing minus
the image) built on a Gaussian structuring element, restricts the result to
the field of view eroded ten times, thresholds it, cleans it with an opening
by reconstruction and binarises it once more. The result is an 8-bit map of
0 and 255.

Dilation and erosion use either flat max/min operators or a fuzzy
t-norm/s-norm pair. They are selected by number through
`FuzzyNorm.from_method`:

| Number | `FuzzyNorm`  | Operators          |
|-------:|--------------|--------------------|
| 1      | `STANDARD`   | min / max          |
| 2      | `ALGEBRAIC`  | product / probabilistic sum |
| 3      | `BOUNDED`    | bounded difference / bounded sum |
| 4      | `DRASTIC`    | drastic product / drastic sum |
| 5      | `DAP`        | Dubois and Prade (alpha 0.5) |
| 6      | `HAMACHER`   | Hamacher product / sum |
| 7      | `GEOMETRIC`  | geometric mean based |
| 8      | `ARITHMETIC` | arithmetic mean    |
| 9      | `CLASSIC`    | flat max / min over the element's support |

Fuzzy dilation takes the maximum over the neighbourhood of
`tnorm(element, pixel)`; fuzzy erosion takes the minimum of
`snorm(1 - element, pixel)`. Image borders repeat the edge pixels.

## Installation

```
pip install .
```

The package needs numpy and Pillow. To run the tests:

```
pip install ".[test]"
pytest
```

## Command-line tools

Three commands are installed. Each prints its usage with `--help`.

### Segmenting a set of images

```
fuzzyvessel-segment METHOD JOB SIZE BLACK_HAT WINDOW VALUE TS [--divisor D]
```

- `METHOD` – operator number, 1 to 9.
- `JOB` – job file, see below.
- `SIZE` – odd size of the square structuring element.
- `BLACK_HAT` – number of dilations and erosions in the black-hat closing.
- `WINDOW`, `VALUE` – odd blur window size and integer blur sigma (0 or
  less derives the sigma from the window).
- `TS` – 8-bit threshold applied to the black-hat result.
- `--divisor D` – use an element sigma of `SIZE / D` instead of the one
  derived from the size alone.

The job file starts with the number of images, followed by one pair of paths
per image: the fundus image to read and the path to write its vessel map to.
The maps are saved as three-channel images.

```
2
images/01_test.tif results/01_vessels.tif
images/02_test.tif results/02_vessels.tif
```

### Scoring segmentations

```
fuzzyvessel-roc LISTING METHOD SIZE BLACK_HAT WINDOW VALUE TS LIST_FILE [--output PATH]
```

The listing starts with the number of reference sets and the number of
images. For each image it then names the segmented image followed by one
reference image from each reference set.

```
2
2
results/01_vessels.tif manual1/01.gif manual2/01.gif
results/02_vessels.tif manual1/02.gif manual2/02.gif
```

Both images are read as grey and binarised before comparison (the
segmentation at values above 0, the reference at values above 3), and every
pixel is counted as a true or false positive or negative. The report,
written to `Resultados/ResultRoc01-40.txt` unless `--output` says otherwise,
gives per image and per reference set the sensitivity SN(TPR), specificity
SP(TNR), FPR, FNR, PPV, NPV and accuracy ACC as percentages, totals per
reference set (these leave out the first image), an overall line, and a
table of the raw TP, TN, FP and FN counts.

`METHOD` to `TS` are only recorded: a line with these run settings and the
overall TPR, FPR and ACC is appended to `LIST_FILE`, which is handy for
collecting results over many parameter runs. The overall rates are also
printed.

### Looking at the operators

```
fuzzyvessel-showcase METHOD SIZE PREFIX [--image PATH]
```

Applies dilation, erosion, closing, opening and the black-hat transform to
the green channel of one image (`Entradas/01_test.tif` by default) and saves
each result as `<PREFIX><operator><METHOD>.tif`, for example
`out/dilateHAMACHER.tif`. Only methods 1, 2, 3, 5, 6 and 9 are accepted. The
showcase always uses a 7×7 Gaussian element with sigma 3.5, whatever `SIZE`
is given, and prints the element before saving.

## Using the library

```python
import numpy as np
from PIL import Image

from fuzzyvessel.kernel import gaussian_element
from fuzzyvessel.morphology import FuzzyNorm, black_hat
from fuzzyvessel.pipeline import SegmentationParams, segment
from fuzzyvessel.roc import compare, rates

norm = FuzzyNorm.from_method(6)          # Hamacher
element = gaussian_element(5, 5, 2.0)    # 5x5 element, 1 at the centre

rgb = np.asarray(Image.open("images/01_test.tif").convert("RGB"))
vessels = segment(rgb, norm, SegmentationParams(size=5, black_hat=2, ts=4.0))

reference = np.asarray(Image.open("manual1/01.gif").convert("L"))
counts = compare(vessels, reference)
print(rates(counts))
```

Modules:

- `fuzzyvessel.kernel` – `gaussian_element`, `scaled_gaussian_element` and
  `format_element`.
- `fuzzyvessel.morphology` – `FuzzyNorm` and the operators `dilate`,
  `erode`, `closing`, `opening`, `black_hat`, `geodesic_dilation`,
  `reconstruction_by_dilation` and `opening_by_reconstruction`, on float
  images with values in [0, 1].
- `fuzzyvessel.pipeline` – `SegmentationParams`, `gaussian_blur`,
  `apply_mask`, `threshold`, `segment`, `read_job` and `run_job`.
- `fuzzyvessel.roc` – `ConfusionCounts`, `Rates`, `rates`, `binarize`,
  `compare`, `format_rate`, `read_listing`, `evaluate`, `render_report` and
  `summary_line`.
- `fuzzyvessel.showcase` – `operator_images` and `save_operator_images`.

## Limitations

All operators run on the CPU with numpy; large elements and many iterations
on full-size fundus images are slow. There is no parameter sweep command:
runs over several settings are to be scripted around the commands above.