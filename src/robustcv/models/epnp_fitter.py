# Andy Zhao
"""
Adapter: camera pose with known intrinsics (OpenCV EPnP) as a ModelFitter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

import numpy as np

from ..ransac.types import Points2D, Points3D, Mat3x3, FloatArray, ModelFitter
from .pinhole import (
    EPNP_MINIMUM_SIZE,
    CameraPose,
    fit_pose_epnp, refine_pose_iterative, project_pose, residuals_pose,
    pose_to_params, pose_from_params,
)


@dataclass(frozen=True, eq=False)
class EPnPPinholeCameraFitter(ModelFitter[CameraPose]):
    """
    K: 3x3 intrinsics, dist_coeffs: OpenCV distortion vector (None = no distortion).
    """
    K: Mat3x3
    dist_coeffs: Optional[FloatArray] = None

    requires_outputs: ClassVar[bool] = True

    def __post_init__(self) -> None:
        K = np.asarray(self.K, dtype=np.float64)
        if K.shape != (3, 3):
            raise ValueError(f"Expected intrinsics shape (3,3), got {K.shape}")
        object.__setattr__(self, "K", K)

    def minimum_size(self, weak: bool = False) -> int:
        return EPNP_MINIMUM_SIZE

    def fit_minimal(self, pts3d: Points3D, pts2d: Points2D) -> Optional[CameraPose]:
        return fit_pose_epnp(pts3d, pts2d, self.K, self.dist_coeffs)

    def fit_least_squares(self, pts3d: Points3D, pts2d: Points2D) -> Optional[CameraPose]:
        return refine_pose_iterative(pts3d, pts2d, self.K, self.dist_coeffs)

    def residuals(self, model: CameraPose, pts3d: Points3D, pts2d: Points2D) -> FloatArray:
        return residuals_pose(model, pts3d, pts2d, self.K, self.dist_coeffs)

    def error_vector(self, model: CameraPose, pts3d: Points3D, pts2d: Points2D) -> FloatArray:
        return (project_pose(model, pts3d, self.K, self.dist_coeffs) - pts2d).ravel()

    def to_params(self, model: CameraPose) -> FloatArray:
        return pose_to_params(model)

    def from_params(self, params: FloatArray) -> CameraPose:
        return pose_from_params(params)
