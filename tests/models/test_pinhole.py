"""Tests for the DLT and EPnP pinhole camera fitters."""

import numpy as np
import pytest

from robustcv.models.dlt_pinhole_fitter import DLTPinholeCameraFitter
from robustcv.models.epnp_fitter import EPnPPinholeCameraFitter
from robustcv.models.pinhole import (
    CameraPose,
    camera_from_params,
    camera_to_params,
    decompose_camera,
    fit_camera_dlt,
    fit_pose_epnp,
    project_points,
    residuals_reprojection,
)
from robustcv.ransac import RobustEstimator, RobustMethod, RobustParams


def test_dlt_exact_and_decomposition(camera_data):
    K, R, t, pts3d, pts2d, outliers = camera_data(n=30, seed=1)
    inliers = ~outliers

    P = fit_camera_dlt(pts3d[inliers][:6], pts2d[inliers][:6])
    assert P is not None
    assert np.allclose(residuals_reprojection(P, pts3d[inliers], pts2d[inliers]), 0.0, atol=1e-6)

    K_est, R_est, C_est = decompose_camera(P)
    assert np.allclose(K_est, K, rtol=1e-5, atol=1e-4)
    assert np.allclose(R_est, R, atol=1e-6)
    assert np.allclose(C_est, -R.T @ t, atol=1e-6)


def test_dlt_rejects_coplanar_points():
    rng = np.random.default_rng(0)
    pts3d = np.column_stack([rng.uniform(-1, 1, size=(8, 2)), np.full(8, 5.0)])
    pts2d = rng.uniform(0, 100, size=(8, 2))
    assert fit_camera_dlt(pts3d, pts2d) is None


def test_camera_params_are_normalized():
    P = np.arange(1.0, 13.0).reshape(3, 4)
    P[:, :3] += np.eye(3) * 10.0
    params = camera_to_params(7.0 * P)
    assert params.shape == (12,)
    assert np.isclose(np.linalg.norm(params), 1.0)
    assert np.allclose(camera_from_params(params), camera_from_params(camera_to_params(P)))


def test_points_at_infinity_project_to_inf():
    P = np.hstack([np.eye(3), np.zeros((3, 1))])
    x = project_points(P, np.array([[1.0, 2.0, 0.0], [1.0, 2.0, 2.0]]))
    assert np.all(np.isinf(x[0]))
    assert np.allclose(x[1], [0.5, 1.0])


def test_ransac_dlt_with_outliers(camera_data):
    K, R, t, pts3d, pts2d, outliers = camera_data(n=150, seed=2)
    estimator = RobustEstimator(
        DLTPinholeCameraFitter(), RobustMethod.RANSAC, pts3d, pts2d,
        params=RobustParams(threshold=1.0, seed=2),
    )
    P = estimator.estimate()
    assert np.array_equal(estimator.inliers_data.inliers, ~outliers)
    assert np.allclose(residuals_reprojection(P, pts3d[~outliers], pts2d[~outliers]), 0.0, atol=1e-4)


def test_epnp_exact(camera_data):
    K, R, t, pts3d, pts2d, outliers = camera_data(n=40, seed=3)
    pose = fit_pose_epnp(pts3d[~outliers], pts2d[~outliers], K)
    assert isinstance(pose, CameraPose)
    assert np.allclose(pose.rotation, R, atol=1e-4)
    assert np.allclose(pose.translation, t, atol=1e-3)


def test_epnp_fitter_validates_intrinsics():
    with pytest.raises(ValueError):
        EPnPPinholeCameraFitter(K=np.eye(4))
    assert EPnPPinholeCameraFitter(K=np.eye(3)).minimum_size() == 4


@pytest.mark.parametrize("method", [RobustMethod.MSAC, RobustMethod.PROSAC])
def test_robust_epnp_with_outliers(method, camera_data):
    K, R, t, pts3d, pts2d, outliers = camera_data(n=150, seed=4)
    quality = np.where(outliers, 0.1, 0.9) + np.random.default_rng(4).uniform(-0.05, 0.05, size=150)

    estimator = RobustEstimator(
        EPnPPinholeCameraFitter(K=K), method, pts3d, pts2d, quality_scores=quality,
        params=RobustParams(threshold=2.0, seed=4, keep_covariance=True),
    )
    pose = estimator.estimate()

    # the refined pose is exact, the consensus never includes an outlier
    inliers = estimator.inliers_data.inliers
    assert np.allclose(pose.rotation, R, atol=1e-5)
    assert np.allclose(pose.translation, t, atol=1e-4)
    assert not np.any(inliers & outliers)
    assert inliers.sum() >= 0.9 * (~outliers).sum()
    assert estimator.covariance.shape == (6, 6)
