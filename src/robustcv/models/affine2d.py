# Andy Zhao
"""
Affine 2D transformation (3x3 homogeneous form).

We estimate an affine transform T such that:

    [x', y', 1]^T  ≈  T @ [x, y, 1]^T

where:

    T = [[a, b, tx],
         [c, d, ty],
         [0, 0,  1]]

Unknowns are 6 parameters: a, b, tx, c, d, ty.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..ransac.types import (
    Points2D, PointsHomog, Mat3x3, FloatArray,
    as_homogeneous, is_valid_matrix)

MINIMUM_SIZE = 3
NUM_PARAMS = 6


# ---------- Degeneracy Check Helpers ----------
def _triangle_area(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> float:
    """
    Return 2x the triangle area formed by (p1, p2, p3):

        area2 = |(p2 - p1) x (p3 - p1)|

    If area2 is near 0, the three points are collinear (degenerate for affine minimal fit).
    """
    u = p2 - p1
    v = p3 - p1
    return float(abs(u[0] * v[1] - u[1] * v[0]))


def _is_degenerate_triplet(pts: Points2D, eps_area: float = 1e-6) -> bool:
    if pts.shape != (3, 2):
        raise ValueError(f"Expected (3,2) triplet, got {pts.shape}")
    return _triangle_area(pts[0], pts[1], pts[2]) < eps_area


def _design_matrix(pts0: Points2D, pts1: Points2D) -> tuple[FloatArray, FloatArray]:
    """
    Build A theta = b for all correspondences (x, y) -> (x', y'):

        x' = a*x + b*y + tx   ->  row [x, y, 1, 0, 0, 0]
        y' = c*x + d*y + ty   ->  row [0, 0, 0, x, y, 1]

    Rows are interleaved (x' row, then y' row) per point: A is (2N, 6).
    """
    n = pts0.shape[0]
    ph = as_homogeneous(pts0)

    A = np.zeros((2 * n, 6), dtype=np.float64)
    A[0::2, 0:3] = ph
    A[1::2, 3:6] = ph

    b_vec = pts1.astype(np.float64).reshape(-1)
    return A, b_vec


# ---------- Affine Fitting ----------
def affine_from_params(theta: np.ndarray) -> Mat3x3:
    """
    Convert parameter vector theta = [a, b, tx, c, d, ty] into a 3x3 affine matrix.
    """
    T = np.eye(3, dtype=np.float64)
    T[:2, :] = np.asarray(theta, dtype=np.float64).reshape(2, 3)
    return T


def affine_to_params(T: Mat3x3) -> FloatArray:
    return np.asarray(T[:2, :], dtype=np.float64).reshape(-1).copy()


def fit_affine_minimal(pts0: Points2D, pts1: Points2D, eps_area: float = 1e-6) -> Optional[Mat3x3]:
    """
    Fit affine transform from exactly 3 point correspondences.

    Returns:
      3x3 affine matrix, or None if degenerate / solve fails.
    """
    if pts0.shape != (3, 2) or (pts1.shape != (3, 2)):
        raise ValueError(f"fit_affine_minimal expects (3,2) inputs, got {pts0.shape} and {pts1.shape}")

    # If any triplet is collinear, the affine solve is not uniquely determined.
    if _is_degenerate_triplet(pts0, eps_area) or _is_degenerate_triplet(pts1, eps_area=eps_area):
        return None

    # 3 points give 6 equations for 6 unknowns: A is square (6x6).
    A, b_vec = _design_matrix(pts0, pts1)
    try:
        theta = np.linalg.solve(A, b_vec)
    except np.linalg.LinAlgError:
        return None

    T = affine_from_params(theta)
    if not is_valid_matrix(T, (3, 3)):
        return None
    return T


def fit_affine_least_squares(pts0: Points2D, pts1: Points2D) -> Optional[Mat3x3]:
    """
    Fit affine transform from N >= 3 correspondences using least squares
    (np.linalg.lstsq minimizes ||A theta - b||^2).

    Returns None when the data does not constrain all 6 unknowns
    (rank < 6: collinear, repeated or tightly clustered points).
    """
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    if pts0.ndim != 2 or pts0.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts0.shape}")
    if pts0.shape[0] < MINIMUM_SIZE:
        return None

    A, b_vec = _design_matrix(pts0, pts1)
    try:
        theta, _, rank, _ = np.linalg.lstsq(A, b_vec, rcond=None)
    except np.linalg.LinAlgError:
        return None

    if rank < NUM_PARAMS:
        return None

    T = affine_from_params(theta)
    if not is_valid_matrix(T, (3, 3)):
        return None
    return T


# ---------- Apply transform + residuals ----------
def apply_T(T: Mat3x3, pts: Points2D) -> Points2D:
    """
    Apply a 3x3 transform to (N,2) points, returning (N,2) points.
    Divides by w, so projective matrices work too (for affine w is always 1).
    """
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts.shape}")
    if T.shape != (3, 3):
        raise ValueError(f"Expected T shape (3,3), got {T.shape}")

    ph: PointsHomog = as_homogeneous(pts)

    # Each point is a row, so multiply by T^T
    ph_t = ph @ T.T
    return (ph_t[:, :2] / ph_t[:, 2:3]).astype(np.float64)


def residuals_L2(T: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    Per-point L2 residuals:

        e_i = || apply_T(T, pts0[i]) - pts1[i] ||_2
    """
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    diff = apply_T(T, pts0) - pts1.astype(np.float64)
    return np.linalg.norm(diff, axis=1).astype(np.float64)
