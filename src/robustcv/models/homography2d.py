# Andy Zhao
"""
Projective 2D transformation (homography), 8 degrees of freedom up to scale.

    [x', y', 1]^T  ~  H @ [x, y, 1]^T

Solved linearly from >= 4 correspondences (normalized DLT). Each
correspondence gives two rows of A h = 0 (h = H flattened):

    [ x^T,  0^T, -x' x^T ]
    [ 0^T,  x^T, -y' x^T ]

H is kept with unit Frobenius norm and H[2, 2] >= 0.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..ransac.types import Points2D, Mat3x3, FloatArray, as_homogeneous
from .pinhole import _normalizing_transform

MINIMUM_SIZE = 4
NUM_PARAMS = 9

_W_EPS = 1e-12
_RANK_EPS = 1e-12
# 2x triangle area, in normalized coordinates, under which 3 points are collinear
_EPS_AREA = 1e-9


def _check_pair(pts0: Points2D, pts1: Points2D) -> None:
    if pts0.ndim != 2 or pts0.shape[1] != 2 or pts1.shape != pts0.shape:
        raise ValueError(f"Expected matching (N,2) point sets, got {pts0.shape} and {pts1.shape}")


def _has_collinear_triplet(pts: Points2D) -> bool:
    """True if any 3 of the (4) points lie on a line."""
    n = pts.shape[0]
    for i in range(n):
        for j in range(i + 1, n):
            for k in range(j + 1, n):
                u = pts[j] - pts[i]
                v = pts[k] - pts[i]
                if abs(u[0] * v[1] - u[1] * v[0]) < _EPS_AREA:
                    return True
    return False


def normalize_homography(H: Mat3x3) -> Mat3x3:
    H = np.asarray(H, dtype=np.float64)
    norm = float(np.linalg.norm(H))
    if norm > 0.0:
        H = H / norm
    if H[2, 2] < 0.0:
        H = -H
    return H


def _fit_dlt(pts0: Points2D, pts1: Points2D) -> Optional[Mat3x3]:
    n = pts0.shape[0]
    T0 = _normalizing_transform(pts0)
    T1 = _normalizing_transform(pts1)
    x0 = as_homogeneous(pts0) @ T0.T
    x1 = as_homogeneous(pts1) @ T1.T

    A = np.zeros((2 * n, 9), dtype=np.float64)
    A[0::2, 0:3] = x0
    A[0::2, 6:9] = -x1[:, 0:1] * x0
    A[1::2, 3:6] = x0
    A[1::2, 6:9] = -x1[:, 1:2] * x0

    try:
        _, S, Vt = np.linalg.svd(A)
    except np.linalg.LinAlgError:
        return None

    # 8 independent constraints needed
    if S[0] <= 0.0 or S[NUM_PARAMS - 2] < _RANK_EPS * S[0]:
        return None

    Hn = Vt[-1].reshape(3, 3)
    try:
        H = np.linalg.inv(T1) @ Hn @ T0
    except np.linalg.LinAlgError:
        return None

    if not np.isfinite(H).all() or abs(np.linalg.det(H)) < _RANK_EPS * np.linalg.norm(H) ** 3:
        return None
    return normalize_homography(H)


def fit_homography_minimal(pts0: Points2D, pts1: Points2D) -> Optional[Mat3x3]:
    """
    Exact homography from 4 correspondences.
    Returns None if 3 of the points are collinear in either image.
    """
    _check_pair(pts0, pts1)
    if pts0.shape[0] != MINIMUM_SIZE:
        raise ValueError(f"Expected {MINIMUM_SIZE} correspondences, got {pts0.shape[0]}")

    # check on normalized coordinates so the area threshold is scale-free
    for pts in (pts0, pts1):
        Tn = _normalizing_transform(pts)
        if _has_collinear_triplet((as_homogeneous(pts) @ Tn.T)[:, :2]):
            return None
    return _fit_dlt(pts0, pts1)


def fit_homography_least_squares(pts0: Points2D, pts1: Points2D) -> Optional[Mat3x3]:
    """Algebraic least squares homography over N >= 4 correspondences."""
    _check_pair(pts0, pts1)
    if pts0.shape[0] < MINIMUM_SIZE:
        return None
    return _fit_dlt(pts0, pts1)


def apply_homography(H: Mat3x3, pts: Points2D) -> Points2D:
    """Map (N,2) points. Points sent to the line at infinity map to inf."""
    x = as_homogeneous(pts) @ H.T
    w = x[:, 2:3]
    out = np.full((pts.shape[0], 2), np.inf, dtype=np.float64)
    ok = np.abs(w[:, 0]) > _W_EPS
    out[ok] = x[ok, :2] / w[ok]
    return out


def residuals_transfer(H: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    One-sided transfer error:

        e_i = || H(x_i) - x'_i ||_2
    """
    _check_pair(pts0, pts1)
    with np.errstate(invalid="ignore"):
        return np.linalg.norm(apply_homography(H, pts0) - pts1, axis=1)


def homography_to_params(H: Mat3x3) -> FloatArray:
    return normalize_homography(H).reshape(-1).copy()


def homography_from_params(params: FloatArray) -> Mat3x3:
    return normalize_homography(np.asarray(params, dtype=np.float64).reshape(3, 3))
