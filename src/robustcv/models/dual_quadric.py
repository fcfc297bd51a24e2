# Andy Zhao
"""
Dual quadric fitted to a set of tangent planes.

A dual quadric Q* is a symmetric 4x4 matrix. A plane pi = [a, b, c, d]
is tangent to the quadric (belongs to the dual quadric locus) iff

    pi^T Q* pi = 0

With Q* written from its 10 independent entries

    Q* = [[A, D, F, G],
          [D, B, E, H],
          [F, E, C, I],
          [G, H, I, J]]

the locus equation is linear in [A, B, C, D, E, F, G, H, I, J]:

    A a^2 + B b^2 + C c^2 + 2D ab + 2E bc + 2F ac
          + 2G ad + 2H bd + 2I cd + J d^2 = 0

so 9 planes in general position determine Q* up to scale (null vector of a
9x10 system). Planes and dual quadric are both normalized to unit norm
before evaluating residuals, which makes the residual scale-invariant.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..ransac.types import Planes, FloatArray

MINIMUM_SIZE = 9
NUM_PARAMS = 10

DEFAULT_LOCUS_THRESHOLD = 1e-12

# Relative singular value under which the linear system is rank deficient
_RANK_EPS = 1e-12


@dataclass(frozen=True, eq=False)
class DualQuadric:
    params: FloatArray      # [A, B, C, D, E, F, G, H, I, J], unit norm

    def as_matrix(self) -> FloatArray:
        A, B, C, D, E, F, G, H, I, J = self.params
        return np.array(
            [
                [A, D, F, G],
                [D, B, E, H],
                [F, E, C, I],
                [G, H, I, J],
            ],
            dtype=np.float64,
        )

    def is_locus(self, plane: FloatArray, threshold: float = DEFAULT_LOCUS_THRESHOLD) -> bool:
        """True if `plane` is tangent to the quadric within `threshold`."""
        if threshold < 0.0:
            raise ValueError("threshold must be >= 0")
        plane = np.asarray(plane, dtype=np.float64).reshape(1, 4)
        return bool(residuals_dual_quadric(self, plane)[0] < threshold)


def normalize_planes(planes: Planes) -> Planes:
    """Scale every plane [a, b, c, d] to unit norm."""
    planes = np.asarray(planes, dtype=np.float64)
    if planes.ndim != 2 or planes.shape[1] != 4:
        raise ValueError(f"Expected planes shape (N,4), got {planes.shape}")
    norms = np.linalg.norm(planes, axis=1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return planes / norms


def dual_quadric_from_matrix(Q: FloatArray) -> DualQuadric:
    """Build a normalized DualQuadric from a symmetric 4x4 matrix."""
    Q = np.asarray(Q, dtype=np.float64)
    if Q.shape != (4, 4):
        raise ValueError(f"Expected a (4,4) matrix, got {Q.shape}")
    Q = 0.5 * (Q + Q.T)
    params = np.array(
        [Q[0, 0], Q[1, 1], Q[2, 2], Q[0, 1], Q[1, 2], Q[0, 2], Q[0, 3], Q[1, 3], Q[2, 3], Q[3, 3]],
        dtype=np.float64,
    )
    return dual_quadric_from_params(params)


def dual_quadric_from_params(params: FloatArray) -> DualQuadric:
    """
    Normalize params so that the 4x4 matrix has unit Frobenius norm.
    Off-diagonal entries appear twice in the matrix.
    """
    params = np.asarray(params, dtype=np.float64).reshape(-1).copy()
    weights = np.array([1, 1, 1, 2, 2, 2, 2, 2, 2, 1], dtype=np.float64)
    norm = float(np.sqrt(np.sum(weights * params * params)))
    if norm > 0.0:
        params /= norm
    return DualQuadric(params=params)


def _design_matrix(planes: Planes) -> FloatArray:
    p = normalize_planes(planes)
    a, b, c, d = p[:, 0], p[:, 1], p[:, 2], p[:, 3]
    return np.column_stack(
        [a * a, b * b, c * c, 2 * a * b, 2 * b * c, 2 * a * c, 2 * a * d, 2 * b * d, 2 * c * d, d * d]
    )


def fit_dual_quadric(planes: Planes) -> Optional[DualQuadric]:
    """
    Fit a dual quadric to N >= 9 planes.

    The solution is the right singular vector associated with the smallest
    singular value of the (N, 10) design matrix: the exact null vector for
    9 planes, the total least squares solution for more.

    Returns None when the planes do not determine a unique quadric
    (fewer than 9 independent constraints).
    """
    planes = np.asarray(planes, dtype=np.float64)
    if planes.ndim != 2 or planes.shape[1] != 4:
        raise ValueError(f"Expected planes shape (N,4), got {planes.shape}")
    if planes.shape[0] < MINIMUM_SIZE:
        return None

    A = _design_matrix(planes)
    try:
        _, S, Vt = np.linalg.svd(A)
    except np.linalg.LinAlgError:
        return None

    # The 9th singular value must be non-zero for a one dimensional null space
    if S[0] <= 0.0 or S[MINIMUM_SIZE - 1] < _RANK_EPS * S[0]:
        return None

    params = Vt[-1]
    if not np.isfinite(params).all():
        return None
    return dual_quadric_from_params(params)


def signed_residuals_dual_quadric(model: DualQuadric, planes: Planes) -> FloatArray:
    """pi^T Q* pi for every normalized plane."""
    p = normalize_planes(planes)
    Q = model.as_matrix()
    return np.einsum("ij,jk,ik->i", p, Q, p)


def residuals_dual_quadric(model: DualQuadric, planes: Planes) -> FloatArray:
    """
    Per-plane algebraic distance to the locus:

        e_i = | pi_i^T Q* pi_i |   (pi_i and Q* normalized)
    """
    return np.abs(signed_residuals_dual_quadric(model, planes))


def dual_quadric_to_params(model: DualQuadric) -> FloatArray:
    return np.asarray(model.params, dtype=np.float64).copy()
