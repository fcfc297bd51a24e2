# Andy Zhao
"""
Euclidean (rigid) 3D transformation: rotation + translation.

    X' = R @ X + t

R is a proper rotation (det = +1). The refinement parameterizes it as a
rotation vector (axis * angle), so the parameter vector is

    [rx, ry, rz, tx, ty, tz]

Three non-collinear correspondences determine the transform (weak minimum),
four are required for a robust minimal sample.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.spatial.transform import Rotation

from ..ransac.types import Points3D, FloatArray

MINIMUM_SIZE = 4
WEAK_MINIMUM_SIZE = 3
NUM_PARAMS = 6


@dataclass(frozen=True, eq=False)
class EuclideanTransform3D:
    rotation: FloatArray        # shape (3, 3)
    translation: FloatArray     # shape (3,)

    def as_matrix(self) -> FloatArray:
        T = np.eye(4, dtype=np.float64)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def transform(self, pts: Points3D) -> Points3D:
        return apply_euclidean3d(self, pts)


def _check_pair(pts0: Points3D, pts1: Points3D) -> None:
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    if pts0.ndim != 2 or pts0.shape[1] != 3:
        raise ValueError(f"Expected pts shape (N,3), got {pts0.shape}")


def fit_euclidean3d(pts0: Points3D, pts1: Points3D, eps: float = 1e-10) -> Optional[EuclideanTransform3D]:
    """
    Least squares rigid fit (Kabsch / Umeyama without scale), N >= 3.

    1) remove centroids: q0 = pts0 - c0, q1 = pts1 - c1
    2) cross-covariance H = q0^T q1, SVD H = U S V^T
    3) R = V diag(1, 1, d) U^T with d = sign(det(V U^T)) to avoid reflections
    4) t = c1 - R c0

    Collinear (or coincident) points leave the rotation about their common
    line undetermined: the second singular value vanishes, return None.
    """
    _check_pair(pts0, pts1)
    if pts0.shape[0] < WEAK_MINIMUM_SIZE:
        return None

    c0 = pts0.mean(axis=0)
    c1 = pts1.mean(axis=0)
    q0 = pts0 - c0
    q1 = pts1 - c1

    H = q0.T @ q1
    try:
        U, S, Vt = np.linalg.svd(H)
    except np.linalg.LinAlgError:
        return None

    if S[0] < eps or S[1] < eps * S[0]:
        return None

    d = np.sign(np.linalg.det(Vt.T @ U.T))
    if d == 0.0:
        d = 1.0
    D = np.diag([1.0, 1.0, d])
    R = Vt.T @ D @ U.T
    t = c1 - R @ c0

    if not (np.isfinite(R).all() and np.isfinite(t).all()):
        return None
    return EuclideanTransform3D(rotation=R, translation=t)


def apply_euclidean3d(model: EuclideanTransform3D, pts: Points3D) -> Points3D:
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"Expected pts shape (N,3), got {pts.shape}")
    return pts.astype(np.float64) @ model.rotation.T + model.translation


def residuals_euclidean3d(model: EuclideanTransform3D, pts0: Points3D, pts1: Points3D) -> FloatArray:
    _check_pair(pts0, pts1)
    return np.linalg.norm(apply_euclidean3d(model, pts0) - pts1, axis=1)


def euclidean3d_to_params(model: EuclideanTransform3D) -> FloatArray:
    rotvec = Rotation.from_matrix(model.rotation).as_rotvec()
    return np.concatenate([rotvec, model.translation]).astype(np.float64)


def euclidean3d_from_params(params: FloatArray) -> EuclideanTransform3D:
    R = Rotation.from_rotvec(np.asarray(params[:3], dtype=np.float64)).as_matrix()
    return EuclideanTransform3D(rotation=R, translation=np.asarray(params[3:6], dtype=np.float64).copy())
