import numpy as np
import pytest

from fuzzyvessel.kernel import gaussian_element
from fuzzyvessel.morphology import (
    FuzzyNorm,
    black_hat,
    closing,
    dilate,
    erode,
    geodesic_dilation,
    opening,
    opening_by_reconstruction,
    reconstruction_by_dilation,
)

T_NORMS = [
    FuzzyNorm.STANDARD,
    FuzzyNorm.ALGEBRAIC,
    FuzzyNorm.BOUNDED,
    FuzzyNorm.DRASTIC,
    FuzzyNorm.DAP,
    FuzzyNorm.HAMACHER,
]
DUAL_NORMS = [FuzzyNorm.STANDARD, FuzzyNorm.ALGEBRAIC, FuzzyNorm.BOUNDED, FuzzyNorm.HAMACHER]
ALL_NORMS = list(FuzzyNorm)

TOL = 1e-12


@pytest.fixture
def rng_image():
    rng = np.random.default_rng(7)
    return rng.random((12, 10))


def test_from_method_numbers():
    assert FuzzyNorm.from_method(1) is FuzzyNorm.STANDARD
    assert FuzzyNorm.from_method("6") is FuzzyNorm.HAMACHER
    assert FuzzyNorm.from_method(9) is FuzzyNorm.CLASSIC


@pytest.mark.parametrize("number", [0, 10, "x"])
def test_from_method_unknown(number):
    with pytest.raises(ValueError):
        FuzzyNorm.from_method(number)


@pytest.mark.parametrize("norm", T_NORMS)
def test_tnorm_identity_and_bounds(norm):
    values = np.linspace(0, 1, 11)
    assert np.allclose(FuzzyNorm.tnorm(norm, values, 1.0), values)
    assert np.allclose(FuzzyNorm.snorm(norm, values, 0.0), values)
    grid_a, grid_b = np.meshgrid(values, values)
    t_values = FuzzyNorm.tnorm(norm, grid_a, grid_b)
    s_values = FuzzyNorm.snorm(norm, grid_a, grid_b)
    assert np.count_nonzero(t_values > np.minimum(grid_a, grid_b) + TOL) == 0
    assert np.count_nonzero(s_values < np.maximum(grid_a, grid_b) - TOL) == 0


@pytest.mark.parametrize("norm", ALL_NORMS)
def test_norms_commute(norm):
    a = np.linspace(0, 1, 7)
    b = a[::-1]
    assert np.allclose(FuzzyNorm.tnorm(norm, a, b), FuzzyNorm.tnorm(norm, b, a))
    assert np.allclose(FuzzyNorm.snorm(norm, a, b), FuzzyNorm.snorm(norm, b, a))


@pytest.mark.parametrize("norm", T_NORMS)
def test_dilating_a_point_spreads_the_element(norm):
    image = np.zeros((7, 7))
    image[3, 3] = 1.0
    element = gaussian_element(3, 3, 1.0)
    result = dilate(image, element, norm)
    assert np.allclose(result[2:5, 2:5], element)
    assert np.all(result[:2] == 0)


def test_classic_dilation_is_flat():
    image = np.zeros((7, 7))
    image[3, 3] = 1.0
    result = dilate(image, gaussian_element(3, 3, 1.0), FuzzyNorm.CLASSIC)
    expected = np.zeros((7, 7))
    expected[2:5, 2:5] = 1.0
    assert np.array_equal(result, expected)


@pytest.mark.parametrize("norm", DUAL_NORMS)
def test_erosion_is_dual_of_dilation(norm, rng_image):
    element = gaussian_element(3, 3, 1.0)
    assert np.allclose(erode(1.0 - rng_image, element, norm), 1.0 - dilate(rng_image, element, norm))


@pytest.mark.parametrize("norm", T_NORMS + [FuzzyNorm.CLASSIC])
def test_dilation_extensive_erosion_antiextensive(norm, rng_image):
    element = gaussian_element(5, 5, 1.5)
    dilated = dilate(rng_image, element, norm)
    eroded = erode(rng_image, element, norm)
    assert dilated.shape == rng_image.shape
    assert np.count_nonzero(dilated < rng_image - TOL) == 0
    assert np.count_nonzero(eroded > rng_image + TOL) == 0


def test_zero_iterations_copy(rng_image):
    element = gaussian_element(3, 3, 1.0)
    result = dilate(rng_image, element, FuzzyNorm.STANDARD, 0)
    assert np.array_equal(result, rng_image)
    assert result is not rng_image


def test_iterations_accumulate():
    image = np.zeros((9, 9))
    image[4, 4] = 1.0
    element = np.ones((3, 3))
    twice = dilate(image, element, FuzzyNorm.CLASSIC, 2)
    assert np.array_equal(twice, dilate(dilate(image, element, FuzzyNorm.CLASSIC), element, FuzzyNorm.CLASSIC))
    assert twice[2:7, 2:7].min() == 1.0


@pytest.mark.parametrize("norm", [FuzzyNorm.STANDARD, FuzzyNorm.CLASSIC])
def test_closing_and_opening_order(norm, rng_image):
    element = gaussian_element(3, 3, 1.0)
    closed = closing(rng_image, element, norm)
    opened = opening(rng_image, element, norm)
    assert np.count_nonzero(closed < rng_image - TOL) == 0
    assert np.count_nonzero(opened > rng_image + TOL) == 0


@pytest.mark.parametrize("norm", ALL_NORMS)
def test_black_hat_in_range(norm, rng_image):
    result = black_hat(rng_image, gaussian_element(3, 3, 1.0), norm)
    assert result.shape == rng_image.shape
    assert result.min() >= 0.0
    assert result.max() <= 1.0


def test_black_hat_finds_dark_line():
    image = np.ones((9, 9))
    image[:, 4] = 0.0
    result = black_hat(image, np.ones((3, 3)), FuzzyNorm.CLASSIC)
    assert np.array_equal(result[:, 4], np.ones(9))
    assert np.all(result[:, :4] == 0)


def test_geodesic_dilation_bounded_by_mask(rng_image):
    marker = np.zeros_like(rng_image)
    marker[5, 5] = 1.0
    result = geodesic_dilation(rng_image, marker, gaussian_element(3, 3, 1.0), FuzzyNorm.STANDARD)
    assert result.shape == rng_image.shape
    assert np.count_nonzero(result > rng_image) == 0


def test_reconstruction_fixed_point():
    mask = np.zeros((9, 9))
    mask[1:6, 1:6] = 1.0
    marker = np.zeros_like(mask)
    marker[3, 3] = 1.0
    element = np.ones((3, 3))
    result = reconstruction_by_dilation(mask, marker, element, FuzzyNorm.CLASSIC)
    assert np.array_equal(result, mask)
    assert np.array_equal(geodesic_dilation(mask, result, element, FuzzyNorm.CLASSIC), result)


def test_reconstruction_shape_mismatch():
    with pytest.raises(ValueError):
        reconstruction_by_dilation(np.zeros((4, 4)), np.zeros((5, 5)), np.ones((3, 3)), FuzzyNorm.STANDARD)


def test_opening_by_reconstruction_removes_speck():
    image = np.zeros((9, 9))
    image[1:6, 1:6] = 1.0
    image[7, 7] = 1.0
    result = opening_by_reconstruction(image, np.ones((3, 3)), FuzzyNorm.CLASSIC)
    expected = image.copy()
    expected[7, 7] = 0.0
    assert np.array_equal(result, expected)


@pytest.mark.parametrize("norm", ALL_NORMS)
def test_opening_by_reconstruction_below_image(norm, rng_image):
    result = opening_by_reconstruction(rng_image, gaussian_element(3, 3, 1.0), norm)
    assert result.shape == rng_image.shape
    assert np.count_nonzero(result > rng_image + TOL) == 0


def test_multichannel_shape():
    rng = np.random.default_rng(3)
    image = rng.random((6, 5, 4))
    result = closing(image, gaussian_element(3, 3, 1.0), FuzzyNorm.ALGEBRAIC)
    assert result.shape == (6, 5, 4)
    single = closing(image[..., 2], gaussian_element(3, 3, 1.0), FuzzyNorm.ALGEBRAIC)
    assert np.allclose(result[..., 2], single)


def test_even_element_rejected(rng_image):
    with pytest.raises(ValueError):
        dilate(rng_image, np.ones((2, 3)), FuzzyNorm.STANDARD)


def test_flat_image_rejected():
    with pytest.raises(ValueError):
        erode(np.zeros(5), np.ones((3, 3)), FuzzyNorm.STANDARD)