"""Tests for the rigid 2D transform fitter and its robust estimation."""

import numpy as np
import pytest

from robustcv.models.euclidean2d import (
    EuclideanTransform2D,
    apply_euclidean2d,
    euclidean2d_from_params,
    euclidean2d_to_params,
    fit_euclidean2d,
)
from robustcv.models.euclidean2d_fitter import EuclideanTransform2DFitter
from robustcv.ransac import RobustEstimator, RobustMethod, RobustParams

ABSOLUTE_ERROR = 1e-6


def test_fit_exact():
    truth = EuclideanTransform2D(theta=-2.5, translation=np.array([4.0, 1.0]))
    pts0 = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 2.0]])
    model = fit_euclidean2d(pts0, apply_euclidean2d(truth, pts0))
    assert np.isclose(model.theta, truth.theta)
    assert np.allclose(model.translation, truth.translation)
    assert np.allclose(model.as_matrix()[:2, :2], truth.rotation)
    assert np.isclose(np.linalg.det(model.rotation), 1.0)


def test_fit_coincident_points_is_degenerate():
    pts = np.ones((3, 2))
    assert fit_euclidean2d(pts, pts + 1.0) is None


def test_two_points_fit_with_weak_minimum():
    fitter = EuclideanTransform2DFitter()
    assert fitter.minimum_size() == 3
    assert fitter.minimum_size(weak=True) == 2

    truth = EuclideanTransform2D(theta=0.3, translation=np.array([1.0, 2.0]))
    pts0 = np.array([[0.0, 0.0], [5.0, 0.0]])
    model = fitter.fit_minimal(pts0, truth.transform(pts0))
    assert np.isclose(model.theta, 0.3)


def test_params_roundtrip_wraps_angle():
    model = euclidean2d_from_params(np.array([2 * np.pi + 0.5, 1.0, 2.0]))
    assert np.isclose(model.theta, 0.5)
    assert np.allclose(euclidean2d_to_params(model), [0.5, 1.0, 2.0])


def test_residuals_shape_mismatch_raises():
    fitter = EuclideanTransform2DFitter()
    model = EuclideanTransform2D(theta=0.0, translation=np.zeros(2))
    with pytest.raises(ValueError):
        fitter.residuals(model, np.zeros((3, 2)), np.zeros((4, 2)))


@pytest.mark.parametrize("method", [RobustMethod.PROSAC, RobustMethod.PROMEDS])
@pytest.mark.parametrize("seed", [0, 1, 2])
def test_progressive_methods_with_quality_scores(method, seed, euclidean2d_data):
    n = 500 + 250 * seed
    truth, pts0, pts1, outliers, quality = euclidean2d_data(n=n, seed=seed)

    estimator = RobustEstimator(
        EuclideanTransform2DFitter(), method, pts0, pts1, quality_scores=quality,
        params=RobustParams(threshold=1.0, stop_threshold=1.0, seed=seed),
    )
    model = estimator.estimate()

    assert abs(model.theta - truth.theta) < ABSOLUTE_ERROR
    assert np.allclose(model.translation, truth.translation, atol=ABSOLUTE_ERROR)
    assert estimator.inliers_data.num_inliers == int((~outliers).sum())
    # best ranked correspondences are inliers, so very few iterations are needed
    assert estimator.last_result.iterations < 20


def test_collinear_points_with_weak_minimum(euclidean2d_data):
    truth, pts0, pts1, outliers, _ = euclidean2d_data(n=200, seed=5, collinear=True)
    estimator = RobustEstimator(
        EuclideanTransform2DFitter(), RobustMethod.RANSAC, pts0, pts1,
        weak_minimum_size_allowed=True, params=RobustParams(threshold=1.0, seed=5),
    )
    assert estimator.minimum_points == 2
    model = estimator.estimate()

    # the line is mapped exactly, whatever the outliers
    inliers = ~outliers
    assert np.allclose(model.transform(pts0[inliers]), pts1[inliers], atol=1e-6)
