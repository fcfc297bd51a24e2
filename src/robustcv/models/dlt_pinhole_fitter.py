# Andy Zhao
"""
Adapter: makes DLT camera resection conform to the ModelFitter Protocol.

inputs are (N,3) world points, outputs are (N,2) image points.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..ransac.types import Points2D, Points3D, Mat3x4, FloatArray, ModelFitter
from .pinhole import (
    DLT_MINIMUM_SIZE,
    fit_camera_dlt, project_points, residuals_reprojection,
    camera_to_params, camera_from_params,
)


@dataclass(frozen=True)
class DLTPinholeCameraFitter(ModelFitter[Mat3x4]):
    requires_outputs: ClassVar[bool] = True

    def minimum_size(self, weak: bool = False) -> int:
        return DLT_MINIMUM_SIZE

    def fit_minimal(self, pts3d: Points3D, pts2d: Points2D) -> Optional[Mat3x4]:
        return fit_camera_dlt(pts3d, pts2d)

    def fit_least_squares(self, pts3d: Points3D, pts2d: Points2D) -> Optional[Mat3x4]:
        return fit_camera_dlt(pts3d, pts2d)

    def residuals(self, model: Mat3x4, pts3d: Points3D, pts2d: Points2D) -> FloatArray:
        return residuals_reprojection(model, pts3d, pts2d)

    def error_vector(self, model: Mat3x4, pts3d: Points3D, pts2d: Points2D) -> FloatArray:
        return (project_points(model, pts3d) - pts2d).ravel()

    def to_params(self, model: Mat3x4) -> FloatArray:
        return camera_to_params(model)

    def from_params(self, params: FloatArray) -> Mat3x4:
        return camera_from_params(params)
