# Andy Zhao
"""
Adapter: makes euclidean 3D functions conform to the ModelFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..ransac.types import Points3D, FloatArray, ModelFitter
from .euclidean3d import (
    MINIMUM_SIZE, WEAK_MINIMUM_SIZE,
    EuclideanTransform3D,
    fit_euclidean3d, apply_euclidean3d, residuals_euclidean3d,
    euclidean3d_to_params, euclidean3d_from_params,
)


@dataclass(frozen=True)
class EuclideanTransform3DFitter(ModelFitter[EuclideanTransform3D]):
    requires_outputs: ClassVar[bool] = True
    eps: float = 1e-10

    def minimum_size(self, weak: bool = False) -> int:
        return WEAK_MINIMUM_SIZE if weak else MINIMUM_SIZE

    def fit_minimal(self, pts0: Points3D, pts1: Points3D) -> Optional[EuclideanTransform3D]:
        return fit_euclidean3d(pts0, pts1, eps=self.eps)

    def fit_least_squares(self, pts0: Points3D, pts1: Points3D) -> Optional[EuclideanTransform3D]:
        return fit_euclidean3d(pts0, pts1, eps=self.eps)

    def residuals(self, model: EuclideanTransform3D, pts0: Points3D, pts1: Points3D) -> FloatArray:
        return residuals_euclidean3d(model, pts0, pts1)

    def error_vector(self, model: EuclideanTransform3D, pts0: Points3D, pts1: Points3D) -> FloatArray:
        return (apply_euclidean3d(model, pts0) - pts1).ravel()

    def to_params(self, model: EuclideanTransform3D) -> FloatArray:
        return euclidean3d_to_params(model)

    def from_params(self, params: FloatArray) -> EuclideanTransform3D:
        return euclidean3d_from_params(params)
