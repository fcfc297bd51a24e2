# Andy Zhao
"""
Euclidean (rigid) 2D transformation: rotation + translation.

    [x', y']^T = R(theta) @ [x, y]^T + t

    R(theta) = [[cos, -sin],
                [sin,  cos]]

Unknowns are 3 parameters: theta, tx, ty.

Two correspondences already determine the transform (weak minimum), three
are required for a robust minimal sample. The closed-form Procrustes
solution below works for any N >= 2, including collinear points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..ransac.types import Points2D, Mat3x3, FloatArray

MINIMUM_SIZE = 3
WEAK_MINIMUM_SIZE = 2
NUM_PARAMS = 3


@dataclass(frozen=True, eq=False)
class EuclideanTransform2D:
    theta: float                # rotation angle in radians
    translation: FloatArray     # shape (2,)

    @property
    def rotation(self) -> FloatArray:
        c, s = math.cos(self.theta), math.sin(self.theta)
        return np.array([[c, -s], [s, c]], dtype=np.float64)

    def as_matrix(self) -> Mat3x3:
        """
        3x3 homogeneous matrix:

            [ R   t ]
            [ 0   1 ]
        """
        T = np.eye(3, dtype=np.float64)
        T[:2, :2] = self.rotation
        T[:2, 2] = self.translation
        return T

    def transform(self, pts: Points2D) -> Points2D:
        return apply_euclidean2d(self, pts)


def _check_pair(pts0: Points2D, pts1: Points2D) -> None:
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    if pts0.ndim != 2 or pts0.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts0.shape}")


def fit_euclidean2d(pts0: Points2D, pts1: Points2D, eps: float = 1e-12) -> Optional[EuclideanTransform2D]:
    """
    Least squares rigid fit (2D Procrustes) from N >= 2 correspondences.

    After removing centroids (q0 = pts0 - c0, q1 = pts1 - c1), the optimal
    angle maximizes sum(q1 . R q0), which has the closed form:

        theta = atan2( sum(x0*y1 - y0*x1), sum(x0*x1 + y0*y1) )

    and the translation follows from the centroids: t = c1 - R c0.

    Returns None if the points are coincident (angle undetermined).
    """
    _check_pair(pts0, pts1)
    if pts0.shape[0] < WEAK_MINIMUM_SIZE:
        return None

    c0 = pts0.mean(axis=0)
    c1 = pts1.mean(axis=0)
    q0 = pts0 - c0
    q1 = pts1 - c1

    sin_sum = float(np.sum(q0[:, 0] * q1[:, 1] - q0[:, 1] * q1[:, 0]))
    cos_sum = float(np.sum(q0[:, 0] * q1[:, 0] + q0[:, 1] * q1[:, 1]))

    # Coincident input (or output) points: no direction to align
    if math.hypot(sin_sum, cos_sum) < eps:
        return None

    theta = math.atan2(sin_sum, cos_sum)
    model = EuclideanTransform2D(theta=theta, translation=np.zeros(2))
    translation = c1 - model.rotation @ c0

    if not np.isfinite(translation).all():
        return None
    return EuclideanTransform2D(theta=theta, translation=translation.astype(np.float64))


def apply_euclidean2d(model: EuclideanTransform2D, pts: Points2D) -> Points2D:
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts.shape}")
    # Each point is a row, so multiply by R^T
    return pts.astype(np.float64) @ model.rotation.T + model.translation


def residuals_euclidean2d(model: EuclideanTransform2D, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    Per-point L2 transfer error:

        e_i = || R pts0[i] + t - pts1[i] ||_2
    """
    _check_pair(pts0, pts1)
    diff = apply_euclidean2d(model, pts0) - pts1
    return np.linalg.norm(diff, axis=1)


def euclidean2d_to_params(model: EuclideanTransform2D) -> FloatArray:
    return np.array([model.theta, model.translation[0], model.translation[1]], dtype=np.float64)


def euclidean2d_from_params(params: FloatArray) -> EuclideanTransform2D:
    # keep theta wrapped to (-pi, pi]
    theta = math.atan2(math.sin(params[0]), math.cos(params[0]))
    return EuclideanTransform2D(theta=theta, translation=np.asarray(params[1:3], dtype=np.float64).copy())
