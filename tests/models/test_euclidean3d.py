"""Tests for the rigid 3D transform fitter."""

import numpy as np

from robustcv.models.euclidean3d import (
    euclidean3d_from_params,
    euclidean3d_to_params,
    fit_euclidean3d,
)
from robustcv.models.euclidean3d_fitter import EuclideanTransform3DFitter
from robustcv.ransac import RobustEstimator, RobustMethod, RobustParams


def test_fit_exact_is_proper_rotation(rigid3d_data):
    R, t, pts0, pts1, outliers = rigid3d_data(n=20)
    model = fit_euclidean3d(pts0[~outliers], pts1[~outliers])
    assert np.allclose(model.rotation, R, atol=1e-9)
    assert np.allclose(model.translation, t, atol=1e-9)
    assert np.isclose(np.linalg.det(model.rotation), 1.0)


def test_collinear_points_are_degenerate():
    pts0 = np.outer(np.arange(4.0), [1.0, 2.0, 3.0])
    assert fit_euclidean3d(pts0, pts0 + 1.0) is None


def test_params_roundtrip(rigid3d_data):
    R, t, pts0, pts1, outliers = rigid3d_data(n=20)
    model = fit_euclidean3d(pts0[~outliers], pts1[~outliers])
    back = euclidean3d_from_params(euclidean3d_to_params(model))
    assert np.allclose(back.as_matrix(), model.as_matrix(), atol=1e-9)


def test_minimum_sizes():
    fitter = EuclideanTransform3DFitter()
    assert fitter.minimum_size() == 4
    assert fitter.minimum_size(weak=True) == 3


def test_lmeds_recovers_transform(rigid3d_data):
    R, t, pts0, pts1, outliers = rigid3d_data(n=200, seed=4)
    estimator = RobustEstimator(
        EuclideanTransform3DFitter(), RobustMethod.LMEDS, pts0, pts1,
        params=RobustParams(seed=4, keep_covariance=True),
    )
    model = estimator.estimate()
    assert np.allclose(model.rotation, R, atol=1e-6)
    assert np.allclose(model.translation, t, atol=1e-6)
    assert np.array_equal(estimator.inliers_data.inliers, ~outliers)
    assert estimator.covariance.shape == (6, 6)
