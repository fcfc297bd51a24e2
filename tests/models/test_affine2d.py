"""Tests for the affine 2D fitter."""

import numpy as np
import pytest

from robustcv.models.affine2d import (
    affine_from_params,
    apply_T,
    fit_affine_least_squares,
    fit_affine_minimal,
    residuals_L2,
)
from robustcv.models.affine2d_fitter import AffineTransform2DFitter
from robustcv.ransac import RobustEstimator, RobustMethod, RobustParams

T_TRUE = affine_from_params(np.array([1.2, 0.1, 5.0, -0.2, 0.9, -3.0]))


def test_minimal_fit_exact():
    pts0 = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    T = fit_affine_minimal(pts0, apply_T(T_TRUE, pts0))
    assert np.allclose(T, T_TRUE)


def test_minimal_fit_rejects_collinear():
    pts0 = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 2.0]])
    assert fit_affine_minimal(pts0, pts0) is None


def test_minimal_fit_requires_three_points():
    with pytest.raises(ValueError):
        fit_affine_minimal(np.zeros((4, 2)), np.zeros((4, 2)))


def test_least_squares_fit():
    rng = np.random.default_rng(0)
    pts0 = rng.uniform(-50.0, 50.0, size=(40, 2))
    T = fit_affine_least_squares(pts0, apply_T(T_TRUE, pts0))
    assert np.allclose(T, T_TRUE)
    assert np.allclose(residuals_L2(T, pts0, apply_T(T_TRUE, pts0)), 0.0, atol=1e-9)


def test_least_squares_rank_deficient():
    pts0 = np.outer(np.arange(5.0), [1.0, 1.0])
    assert fit_affine_least_squares(pts0, pts0) is None


def test_msac_recovers_affine():
    rng = np.random.default_rng(8)
    pts0 = rng.uniform(-100.0, 100.0, size=(200, 2))
    pts1 = apply_T(T_TRUE, pts0)
    outliers = rng.random(200) < 0.25
    pts1[outliers] += rng.choice([-1.0, 1.0], size=(outliers.sum(), 2)) * rng.uniform(5.0, 50.0, size=(outliers.sum(), 2))

    estimator = RobustEstimator(
        AffineTransform2DFitter(), RobustMethod.MSAC, pts0, pts1,
        params=RobustParams(threshold=1.0, seed=8, keep_covariance=True),
    )
    T = estimator.estimate()
    assert np.allclose(T, T_TRUE, atol=1e-6)
    assert np.array_equal(estimator.inliers_data.inliers, ~outliers)
    assert estimator.covariance.shape == (6, 6)
