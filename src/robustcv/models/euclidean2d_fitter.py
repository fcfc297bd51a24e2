# Andy Zhao
"""
Adapter: makes euclidean 2D functions conform to the ModelFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..ransac.types import Points2D, FloatArray, ModelFitter
from .euclidean2d import (
    MINIMUM_SIZE, WEAK_MINIMUM_SIZE,
    EuclideanTransform2D,
    fit_euclidean2d, apply_euclidean2d, residuals_euclidean2d,
    euclidean2d_to_params, euclidean2d_from_params,
)


@dataclass(frozen=True)
class EuclideanTransform2DFitter(ModelFitter[EuclideanTransform2D]):
    """
    Rigid 2D transform between two point sets.

    Minimal sample is 3 points, or 2 when the weak minimum is allowed
    (e.g. all points on a line).
    """
    requires_outputs: ClassVar[bool] = True
    eps: float = 1e-12

    def minimum_size(self, weak: bool = False) -> int:
        return WEAK_MINIMUM_SIZE if weak else MINIMUM_SIZE

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> Optional[EuclideanTransform2D]:
        return fit_euclidean2d(pts0, pts1, eps=self.eps)

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> Optional[EuclideanTransform2D]:
        return fit_euclidean2d(pts0, pts1, eps=self.eps)

    def residuals(self, model: EuclideanTransform2D, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return residuals_euclidean2d(model, pts0, pts1)

    def error_vector(self, model: EuclideanTransform2D, pts0: Points2D, pts1: Points2D) -> FloatArray:
        # x and y transfer errors of every point, stacked
        return (apply_euclidean2d(model, pts0) - pts1).ravel()

    def to_params(self, model: EuclideanTransform2D) -> FloatArray:
        return euclidean2d_to_params(model)

    def from_params(self, params: FloatArray) -> EuclideanTransform2D:
        return euclidean2d_from_params(params)
