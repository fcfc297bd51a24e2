# Andy Zhao
"""
Pinhole camera models estimated from 3D -> 2D correspondences.

Two parameterizations:

1) Full projection matrix (DLT), 11 degrees of freedom up to scale:

       [u, v, 1]^T  ~  P @ [X, Y, Z, 1]^T,    P = K [R | t]   (3x4)

   Solved linearly from >= 6 correspondences with Hartley normalization.

2) Pose with known intrinsics K (EPnP), 6 degrees of freedom:

       x ~ K (R X + t)

   Solved with cv2.solvePnP from >= 4 correspondences.

Residual for both is the reprojection distance in pixels.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from ..ransac.types import Points2D, Points3D, Mat3x3, Mat3x4, FloatArray, as_homogeneous

DLT_MINIMUM_SIZE = 6
DLT_NUM_PARAMS = 12

EPNP_MINIMUM_SIZE = 4
POSE_NUM_PARAMS = 6

# |w| under which a point projects to infinity
_W_EPS = 1e-12
_RANK_EPS = 1e-12


def _check_pair(pts3d: Points3D, pts2d: Points2D) -> None:
    if pts3d.ndim != 2 or pts3d.shape[1] != 3:
        raise ValueError(f"Expected 3D points shape (N,3), got {pts3d.shape}")
    if pts2d.ndim != 2 or pts2d.shape[1] != 2:
        raise ValueError(f"Expected 2D points shape (N,2), got {pts2d.shape}")
    if pts3d.shape[0] != pts2d.shape[0]:
        raise ValueError(f"Point sets must have same length, got {pts3d.shape[0]} vs {pts2d.shape[0]}")


# ---------- Normalization ----------
def _normalizing_transform(pts: FloatArray) -> FloatArray:
    """
    Similarity moving the centroid to the origin and scaling the mean
    distance to sqrt(d) (Hartley). Returns a (d+1, d+1) matrix.
    """
    d = pts.shape[1]
    c = pts.mean(axis=0)
    mean_dist = float(np.mean(np.linalg.norm(pts - c, axis=1)))
    s = np.sqrt(d) / mean_dist if mean_dist > 0.0 else 1.0

    T = np.eye(d + 1, dtype=np.float64)
    T[:d, :d] *= s
    T[:d, d] = -s * c
    return T


# ---------- DLT ----------
def fit_camera_dlt(pts3d: Points3D, pts2d: Points2D) -> Optional[Mat3x4]:
    """
    Linear camera resection from N >= 6 correspondences.

    Each correspondence gives two rows of A p = 0 (p = P flattened):

        [ X^T,  0^T, -u X^T ]
        [ 0^T,  X^T, -v X^T ]

    p is the right singular vector of the smallest singular value. Points are
    normalized first and P is denormalized afterwards:

        P = T2^-1 @ Pn @ T3

    Returns None for degenerate configurations (e.g. coplanar points), where
    the null space has more than one dimension.
    """
    _check_pair(pts3d, pts2d)
    n = pts3d.shape[0]
    if n < DLT_MINIMUM_SIZE:
        return None

    T3 = _normalizing_transform(pts3d)
    T2 = _normalizing_transform(pts2d)
    Xn = as_homogeneous(pts3d) @ T3.T
    xn = as_homogeneous(pts2d) @ T2.T

    A = np.zeros((2 * n, 12), dtype=np.float64)
    A[0::2, 0:4] = Xn
    A[0::2, 8:12] = -xn[:, 0:1] * Xn
    A[1::2, 4:8] = Xn
    A[1::2, 8:12] = -xn[:, 1:2] * Xn

    try:
        _, S, Vt = np.linalg.svd(A)
    except np.linalg.LinAlgError:
        return None

    # 11 independent constraints needed
    if S[0] <= 0.0 or S[DLT_NUM_PARAMS - 2] < _RANK_EPS * S[0]:
        return None

    Pn = Vt[-1].reshape(3, 4)
    try:
        P = np.linalg.inv(T2) @ Pn @ T3
    except np.linalg.LinAlgError:
        return None

    if not np.isfinite(P).all():
        return None
    return normalize_camera(P)


def normalize_camera(P: Mat3x4) -> Mat3x4:
    """Scale P to unit Frobenius norm, sign chosen so that det(P[:, :3]) >= 0."""
    P = np.asarray(P, dtype=np.float64)
    norm = float(np.linalg.norm(P))
    if norm > 0.0:
        P = P / norm
    if np.linalg.det(P[:, :3]) < 0.0:
        P = -P
    return P


def project_points(P: Mat3x4, pts3d: Points3D) -> Points2D:
    """
    Project (N,3) points with a 3x4 camera. Points with w ~ 0 project to inf.
    """
    if pts3d.ndim != 2 or pts3d.shape[1] != 3:
        raise ValueError(f"Expected 3D points shape (N,3), got {pts3d.shape}")
    x = as_homogeneous(pts3d) @ P.T
    w = x[:, 2:3]
    out = np.full((pts3d.shape[0], 2), np.inf, dtype=np.float64)
    ok = np.abs(w[:, 0]) > _W_EPS
    out[ok] = x[ok, :2] / w[ok]
    return out


def residuals_reprojection(P: Mat3x4, pts3d: Points3D, pts2d: Points2D) -> FloatArray:
    """
    Per-point reprojection error:

        e_i = || project(P, X_i) - x_i ||_2
    """
    _check_pair(pts3d, pts2d)
    with np.errstate(invalid="ignore"):
        return np.linalg.norm(project_points(P, pts3d) - pts2d, axis=1)


def camera_to_params(P: Mat3x4) -> FloatArray:
    return normalize_camera(P).reshape(-1).copy()


def camera_from_params(params: FloatArray) -> Mat3x4:
    return normalize_camera(np.asarray(params, dtype=np.float64).reshape(3, 4))


def decompose_camera(P: Mat3x4) -> tuple[Mat3x3, Mat3x3, FloatArray]:
    """
    Split P into intrinsics K (K[2,2] = 1), rotation R and camera center C,
    such that P ~ K R [I | -C].
    """
    P = normalize_camera(P)
    K, R, C_h, *_ = cv2.decomposeProjectionMatrix(P)

    # RQ leaves the signs ambiguous: force a positive diagonal on K
    D = np.diag(np.sign(np.diag(K)))
    D[D == 0.0] = 1.0
    K = K @ D
    R = D @ R

    K = K / K[2, 2]
    C = (C_h[:3, 0] / C_h[3, 0]).astype(np.float64)
    return K, R, C


# ---------- Pose with known intrinsics ----------
@dataclass(frozen=True, eq=False)
class CameraPose:
    rotation: Mat3x3            # world -> camera
    translation: FloatArray     # shape (3,)

    @property
    def rvec(self) -> FloatArray:
        rvec, _ = cv2.Rodrigues(self.rotation)
        return rvec.reshape(3)

    @property
    def center(self) -> FloatArray:
        return -self.rotation.T @ self.translation

    def projection_matrix(self, K: Mat3x3) -> Mat3x4:
        return K @ np.hstack([self.rotation, self.translation.reshape(3, 1)])


def _pose_from_vectors(rvec: FloatArray, tvec: FloatArray) -> CameraPose:
    R, _ = cv2.Rodrigues(np.asarray(rvec, dtype=np.float64).reshape(3, 1))
    return CameraPose(rotation=R, translation=np.asarray(tvec, dtype=np.float64).reshape(3).copy())


def _dist(dist_coeffs: Optional[FloatArray]) -> FloatArray:
    if dist_coeffs is None:
        return np.zeros(5, dtype=np.float64)
    return np.asarray(dist_coeffs, dtype=np.float64)


def fit_pose_epnp(
        pts3d: Points3D,
        pts2d: Points2D,
        K: Mat3x3,
        dist_coeffs: Optional[FloatArray] = None,
) -> Optional[CameraPose]:
    """EPnP pose from N >= 4 correspondences. None if OpenCV fails."""
    _check_pair(pts3d, pts2d)
    if pts3d.shape[0] < EPNP_MINIMUM_SIZE:
        return None
    try:
        ok, rvec, tvec = cv2.solvePnP(
            np.ascontiguousarray(pts3d, dtype=np.float64),
            np.ascontiguousarray(pts2d, dtype=np.float64),
            K, _dist(dist_coeffs),
            flags=cv2.SOLVEPNP_EPNP,
        )
    except cv2.error:
        return None
    if not ok or not (np.isfinite(rvec).all() and np.isfinite(tvec).all()):
        return None
    return _pose_from_vectors(rvec, tvec)


def refine_pose_iterative(
        pts3d: Points3D,
        pts2d: Points2D,
        K: Mat3x3,
        dist_coeffs: Optional[FloatArray] = None,
) -> Optional[CameraPose]:
    """
    Least squares pose over all points: EPnP initial guess, then
    Levenberg-Marquardt (SOLVEPNP_ITERATIVE with extrinsic guess).
    """
    initial = fit_pose_epnp(pts3d, pts2d, K, dist_coeffs)
    if initial is None:
        return None

    rvec = initial.rvec.reshape(3, 1).copy()
    tvec = initial.translation.reshape(3, 1).copy()
    try:
        ok, rvec, tvec = cv2.solvePnP(
            np.ascontiguousarray(pts3d, dtype=np.float64),
            np.ascontiguousarray(pts2d, dtype=np.float64),
            K, _dist(dist_coeffs),
            rvec, tvec,
            useExtrinsicGuess=True,
            flags=cv2.SOLVEPNP_ITERATIVE,
        )
    except cv2.error:
        return initial
    if not ok or not (np.isfinite(rvec).all() and np.isfinite(tvec).all()):
        return initial
    return _pose_from_vectors(rvec, tvec)


def project_pose(
        pose: CameraPose,
        pts3d: Points3D,
        K: Mat3x3,
        dist_coeffs: Optional[FloatArray] = None,
) -> Points2D:
    projected, _ = cv2.projectPoints(
        np.ascontiguousarray(pts3d, dtype=np.float64),
        pose.rvec, pose.translation, K, _dist(dist_coeffs),
    )
    return projected.reshape(-1, 2)


def residuals_pose(
        pose: CameraPose,
        pts3d: Points3D,
        pts2d: Points2D,
        K: Mat3x3,
        dist_coeffs: Optional[FloatArray] = None,
) -> FloatArray:
    _check_pair(pts3d, pts2d)
    return np.linalg.norm(project_pose(pose, pts3d, K, dist_coeffs) - pts2d, axis=1)


def pose_to_params(pose: CameraPose) -> FloatArray:
    return np.concatenate([pose.rvec, pose.translation]).astype(np.float64)


def pose_from_params(params: FloatArray) -> CameraPose:
    params = np.asarray(params, dtype=np.float64)
    return _pose_from_vectors(params[:3], params[3:6])
