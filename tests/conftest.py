"""Shared synthetic data for the robust estimator tests."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from robustcv.models.euclidean2d import EuclideanTransform2D, apply_euclidean2d

OUTLIER_RATIO = 0.2


def _outlier_mask(rng: np.random.Generator, n: int, ratio: float = OUTLIER_RATIO) -> np.ndarray:
    mask = np.zeros(n, dtype=bool)
    mask[rng.choice(n, size=int(round(ratio * n)), replace=False)] = True
    return mask


def _offsets(rng: np.random.Generator, n: int, dim: int, low: float, high: float) -> np.ndarray:
    # random directions, magnitudes in [low, high]
    d = rng.normal(size=(n, dim))
    d /= np.linalg.norm(d, axis=1, keepdims=True)
    return d * rng.uniform(low, high, size=(n, 1))


@pytest.fixture
def euclidean2d_data():
    """
    Factory: (model, pts0, pts1, outliers, quality_scores).

    Outputs of outliers are displaced by 10..300 units. Quality scores are
    1 / (1 + error) plus uniform noise in [-0.3, 0.3].
    """
    def make(n: int = 500, seed: int = 0, collinear: bool = False, outlier_ratio: float = OUTLIER_RATIO):
        rng = np.random.default_rng(seed)
        model = EuclideanTransform2D(
            theta=float(rng.uniform(-np.pi, np.pi)),
            translation=rng.uniform(-10.0, 10.0, size=2),
        )
        if collinear:
            t = rng.uniform(-100.0, 100.0, size=(n, 1))
            pts0 = t * np.array([[0.6, 0.8]]) + np.array([[3.0, -1.0]])
        else:
            pts0 = rng.uniform(-100.0, 100.0, size=(n, 2))
        pts1 = apply_euclidean2d(model, pts0)

        outliers = _outlier_mask(rng, n, outlier_ratio)
        errors = np.zeros(n)
        offsets = _offsets(rng, int(outliers.sum()), 2, 10.0, 300.0)
        pts1[outliers] += offsets
        errors[outliers] = np.linalg.norm(offsets, axis=1)

        quality = 1.0 / (1.0 + errors) + rng.uniform(-0.3, 0.3, size=n)
        return model, pts0, pts1, outliers, quality

    return make


@pytest.fixture
def rigid3d_data():
    def make(n: int = 200, seed: int = 0):
        rng = np.random.default_rng(seed)
        R = Rotation.from_rotvec(rng.uniform(-1.0, 1.0, size=3)).as_matrix()
        t = rng.uniform(-5.0, 5.0, size=3)
        pts0 = rng.uniform(-10.0, 10.0, size=(n, 3))
        pts1 = pts0 @ R.T + t

        outliers = _outlier_mask(rng, n)
        pts1[outliers] += _offsets(rng, int(outliers.sum()), 3, 5.0, 50.0)
        return R, t, pts0, pts1, outliers

    return make


@pytest.fixture
def sphere_planes():
    """
    Factory: (dual quadric matrix of a sphere, planes, outliers).

    Inlier planes are tangent to the sphere. Outlier planes get Gaussian
    noise (sigma = 1) on their coefficients.
    """
    def make(n: int = 200, seed: int = 0):
        rng = np.random.default_rng(seed)
        center = rng.uniform(-1.0, 1.0, size=3)
        radius = float(rng.uniform(1.0, 3.0))

        # point quadric of the sphere, dual quadric is its inverse
        Q = np.eye(4)
        Q[:3, 3] = -center
        Q[3, :3] = -center
        Q[3, 3] = center @ center - radius * radius
        Q_dual = np.linalg.inv(Q)

        normals = rng.normal(size=(n, 3))
        normals /= np.linalg.norm(normals, axis=1, keepdims=True)
        d = -(normals @ center + radius)
        planes = np.hstack([normals, d[:, None]])

        outliers = _outlier_mask(rng, n)
        planes[outliers] += rng.normal(scale=1.0, size=(int(outliers.sum()), 4))
        return Q_dual, planes, outliers

    return make


@pytest.fixture
def camera_data():
    """
    Factory: (K, R, t, pts3d, pts2d, outliers) for a pinhole camera looking
    at points 4..10 units in front of it. Outlier image points are displaced
    by 20..100 pixels.
    """
    def make(n: int = 150, seed: int = 0):
        rng = np.random.default_rng(seed)
        K = np.array([[800.0, 0.0, 320.0], [0.0, 780.0, 240.0], [0.0, 0.0, 1.0]])
        R = Rotation.from_rotvec(rng.uniform(-0.3, 0.3, size=3)).as_matrix()
        t = rng.uniform(-1.0, 1.0, size=3)

        cam = np.column_stack([
            rng.uniform(-2.0, 2.0, size=n),
            rng.uniform(-1.5, 1.5, size=n),
            rng.uniform(4.0, 10.0, size=n),
        ])
        # camera = R X + t  ->  X = R^T (camera - t)
        pts3d = (cam - t) @ R
        x = cam @ K.T
        pts2d = x[:, :2] / x[:, 2:3]

        outliers = _outlier_mask(rng, n)
        pts2d[outliers] += _offsets(rng, int(outliers.sum()), 2, 20.0, 100.0)
        return K, R, t, pts3d, pts2d, outliers

    return make
