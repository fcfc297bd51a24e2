"""Tests for the projective 2D (homography) fitter."""

import numpy as np
import pytest

from robustcv.models.homography2d import (
    apply_homography,
    fit_homography_least_squares,
    fit_homography_minimal,
    homography_from_params,
    homography_to_params,
    normalize_homography,
    residuals_transfer,
)
from robustcv.models.homography2d_fitter import ProjectiveTransform2DFitter
from robustcv.ransac import RobustEstimator, RobustMethod, RobustParams

H_TRUE = normalize_homography(np.array([
    [1.1, 0.05, 4.0],
    [-0.08, 0.95, -6.0],
    [1e-4, -2e-4, 1.0],
]))


def test_minimal_fit_exact():
    pts0 = np.array([[0.0, 0.0], [50.0, 0.0], [50.0, 40.0], [0.0, 40.0]])
    H = fit_homography_minimal(pts0, apply_homography(H_TRUE, pts0))
    assert np.allclose(H, H_TRUE, atol=1e-10)


def test_minimal_fit_rejects_collinear_triplet():
    pts0 = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0], [0.0, 5.0]])
    assert fit_homography_minimal(pts0, apply_homography(H_TRUE, pts0)) is None


def test_minimal_fit_requires_four_points():
    with pytest.raises(ValueError):
        fit_homography_minimal(np.zeros((5, 2)), np.zeros((5, 2)))


def test_least_squares_fit():
    rng = np.random.default_rng(0)
    pts0 = rng.uniform(-100.0, 100.0, size=(60, 2))
    pts1 = apply_homography(H_TRUE, pts0)
    H = fit_homography_least_squares(pts0, pts1)
    assert np.allclose(H, H_TRUE, atol=1e-9)
    assert np.allclose(residuals_transfer(H, pts0, pts1), 0.0, atol=1e-6)


def test_params_are_scale_free():
    assert np.allclose(homography_from_params(homography_to_params(-3.0 * H_TRUE)), H_TRUE)


def test_line_at_infinity_maps_to_inf():
    H = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
    out = apply_homography(H, np.array([[0.0, 3.0], [2.0, 3.0]]))
    assert np.isinf(out[0]).all()
    assert np.allclose(out[1], [1.0, 1.5])


@pytest.mark.parametrize("method", [RobustMethod.RANSAC, RobustMethod.MSAC, RobustMethod.LMEDS])
def test_robust_fit_with_outliers(method):
    rng = np.random.default_rng(4)
    pts0 = rng.uniform(-100.0, 100.0, size=(200, 2))
    pts1 = apply_homography(H_TRUE, pts0)
    outliers = rng.random(200) < 0.25
    pts1[outliers] += rng.choice([-1.0, 1.0], size=(outliers.sum(), 2)) * rng.uniform(5.0, 50.0, size=(outliers.sum(), 2))

    estimator = RobustEstimator(
        ProjectiveTransform2DFitter(), method, pts0, pts1,
        params=RobustParams(threshold=1.0, seed=4),
    )
    H = estimator.estimate()

    assert np.allclose(H, H_TRUE, atol=1e-6)
    assert np.array_equal(estimator.inliers_data.inliers, ~outliers)
