# Andy Zhao
"""
Adapter: makes homography functions conform to the ModelFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..ransac.types import Points2D, Mat3x3, FloatArray, ModelFitter
from .homography2d import (
    MINIMUM_SIZE,
    fit_homography_minimal, fit_homography_least_squares, apply_homography, residuals_transfer,
    homography_to_params, homography_from_params,
)


@dataclass(frozen=True)
class ProjectiveTransform2DFitter(ModelFitter[Mat3x3]):
    requires_outputs: ClassVar[bool] = True

    def minimum_size(self, weak: bool = False) -> int:
        return MINIMUM_SIZE

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> Optional[Mat3x3]:
        return fit_homography_minimal(pts0, pts1)

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> Optional[Mat3x3]:
        return fit_homography_least_squares(pts0, pts1)

    def residuals(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return residuals_transfer(model, pts0, pts1)

    def error_vector(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return (apply_homography(model, pts0) - pts1).ravel()

    def to_params(self, model: Mat3x3) -> FloatArray:
        return homography_to_params(model)

    def from_params(self, params: FloatArray) -> Mat3x3:
        return homography_from_params(params)
