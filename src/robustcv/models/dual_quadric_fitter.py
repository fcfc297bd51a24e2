# Andy Zhao
"""
Adapter: makes dual quadric functions conform to the ModelFitter Protocol.

Single-set model: planes are the inputs, there are no outputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..ransac.types import Planes, FloatArray, ModelFitter
from .dual_quadric import (
    MINIMUM_SIZE,
    DualQuadric,
    fit_dual_quadric, residuals_dual_quadric, signed_residuals_dual_quadric,
    dual_quadric_to_params, dual_quadric_from_params,
)


@dataclass(frozen=True)
class DualQuadricFitter(ModelFitter[DualQuadric]):
    requires_outputs: ClassVar[bool] = False

    def minimum_size(self, weak: bool = False) -> int:
        return MINIMUM_SIZE

    def fit_minimal(self, planes: Planes, _: Optional[FloatArray] = None) -> Optional[DualQuadric]:
        return fit_dual_quadric(planes)

    def fit_least_squares(self, planes: Planes, _: Optional[FloatArray] = None) -> Optional[DualQuadric]:
        return fit_dual_quadric(planes)

    def residuals(self, model: DualQuadric, planes: Planes, _: Optional[FloatArray] = None) -> FloatArray:
        return residuals_dual_quadric(model, planes)

    def error_vector(self, model: DualQuadric, planes: Planes, _: Optional[FloatArray] = None) -> FloatArray:
        return signed_residuals_dual_quadric(model, planes)

    def to_params(self, model: DualQuadric) -> FloatArray:
        return dual_quadric_to_params(model)

    def from_params(self, params: FloatArray) -> DualQuadric:
        return dual_quadric_from_params(params)
