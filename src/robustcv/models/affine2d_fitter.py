# Andy Zhao
"""
Adapter: makes affine functions conform to the ModelFitter Protocol.

This keeps ransac/core.py generic and reusable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..ransac.types import Points2D, Mat3x3, FloatArray, ModelFitter
from .affine2d import (
    MINIMUM_SIZE,
    fit_affine_minimal, fit_affine_least_squares, residuals_L2, apply_T,
    affine_to_params, affine_from_params,
)


@dataclass(frozen=True)
class AffineTransform2DFitter(ModelFitter[Mat3x3]):
    requires_outputs: ClassVar[bool] = True
    eps_area: float = 1e-6

    def minimum_size(self, weak: bool = False) -> int:
        # collinear points never determine an affine transform
        return MINIMUM_SIZE

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> Optional[Mat3x3]:
        return fit_affine_minimal(pts0, pts1, eps_area=self.eps_area)

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> Optional[Mat3x3]:
        return fit_affine_least_squares(pts0, pts1)

    def residuals(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return residuals_L2(model, pts0, pts1)

    def error_vector(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return (apply_T(model, pts0) - pts1).ravel()

    def to_params(self, model: Mat3x3) -> FloatArray:
        return affine_to_params(model)

    def from_params(self, params: FloatArray) -> Mat3x3:
        return affine_from_params(params)
