# Andy Zhao

"""
Shared typed primitives for the robust estimation engine.

Defines:
- Typed NumPy aliases for geometry
    - Points are (N,2) or (N,3) float arrays
    - Planes are (N,4) arrays [a, b, c, d]
    - Transforms are homogeneous matrices
- Generic model protocol consumed by the engine
- Robust method enum
- Structured inliers / result containers
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar, Generic, Optional, TypeAlias

import numpy as np
import numpy.typing as npt

# ---------- Numpy typing aliases ----------
# float64 for geometry / matrices (more stable for linear algebra)
# bool_ for masks

FloatArray: TypeAlias = npt.NDArray[np.float64]
BoolArray: TypeAlias = npt.NDArray[np.bool_]
IndexArray: TypeAlias = npt.NDArray[np.intp]

# Points in 2D image coordinates.
Points2D: TypeAlias = FloatArray      # shape: (N, 2)

# Points in 3D world coordinates.
Points3D: TypeAlias = FloatArray      # shape: (N, 3)

# Homogeneous points [x, y, 1] for 3x3 transforms.
PointsHomog: TypeAlias = FloatArray   # shape: (N, 3)

# Planes as [a, b, c, d] with a*x + b*y + c*z + d = 0.
Planes: TypeAlias = FloatArray        # shape: (N, 4)

# Boolean inlier mask: True as inlier, False as outlier
Mask: TypeAlias = BoolArray           # shape: (N,)

# 3x3 homogeneous transform matrix.
Mat3x3: TypeAlias = FloatArray        # shape: (3, 3)

# 3x4 projection matrix of a pinhole camera.
Mat3x4: TypeAlias = FloatArray        # shape: (3, 4)

# ---------- Generic model typing ----------
M = TypeVar("M")


class RobustMethod(str, Enum):
    """
    Robust estimation methods supported by the engine.

    RANSAC / MSAC / PROSAC score candidates against a fixed threshold,
    LMedS / PROMedS score them by their median residual.
    PROSAC / PROMedS require per-correspondence quality scores.
    """
    RANSAC = "RANSAC"
    MSAC = "MSAC"
    LMEDS = "LMedS"
    PROSAC = "PROSAC"
    PROMEDS = "PROMedS"

    @property
    def uses_quality_scores(self) -> bool:
        return self in (RobustMethod.PROSAC, RobustMethod.PROMEDS)

    @property
    def uses_median(self) -> bool:
        return self in (RobustMethod.LMEDS, RobustMethod.PROMEDS)


class ModelFitter(Protocol[M]):
    """
    Interface that a model must implement to be usable by the robust engine.

    Engine steps:
    1) Fit a model from a minimal sample
    2) Score all correspondences with a per-correspondence residual error
    3) Refine using all inliers, either by a least squares refit or by a
       non-linear solve over the model parameter vector

    Single-set models (e.g. a dual quadric fitted to planes) set
    `requires_outputs = False` and receive `x1=None`.
    """

    requires_outputs: bool

    def minimum_size(self, weak: bool = False) -> int:
        """
        Number of correspondences in a minimal sample.
        `weak=True` returns the relaxed size accepted for degenerate-tolerant fits.
        """
        ...

    def fit_minimal(self, x0: FloatArray, x1: Optional[FloatArray]) -> Optional[M]:
        """
        Fit from a minimal sample.
        Return None if the sample is degenerate (e.g., coincident points).
        """
        ...

    def fit_least_squares(self, x0: FloatArray, x1: Optional[FloatArray]) -> Optional[M]:
        """
        Refit the model using all inliers.
        Return None if the set is degenerate or the solve fails.
        """
        ...

    def residuals(self, model: M, x0: FloatArray, x1: Optional[FloatArray]) -> FloatArray:
        """
        Return a vector of non-negative residual errors, one per correspondence.
        Shape: (N,). Smaller = better.
        """
        ...

    def error_vector(self, model: M, x0: FloatArray, x1: Optional[FloatArray]) -> FloatArray:
        """
        Stacked signed errors minimized by the non-linear refinement.
        Defaults to the scalar residuals.
        """
        return self.residuals(model, x0, x1)

    def to_params(self, model: M) -> FloatArray:
        ...

    def from_params(self, params: FloatArray) -> M:
        ...


# ---------- Output containers ----------
@dataclass(frozen=True)
class InliersData:
    inliers: Optional[Mask]                 # boolean mask, None when not kept
    residuals: Optional[FloatArray]         # per-correspondence residuals, None when not kept
    num_inliers: int                        # count of inliers under the best model
    estimated_threshold: Optional[float] = None  # median-based methods only


@dataclass(frozen=True)
class EstimateResult(Generic[M]):
    model: M                                # final (possibly refined) model
    inliers_data: InliersData               # consensus of the best candidate
    covariance: Optional[FloatArray]        # parameter covariance, when kept
    iterations: int                         # how many iterations were actually run
    method: RobustMethod                    # method that produced the result
    refined: bool                           # True when refinement improved the model


# ---------- Helper Functions ----------
def as_homogeneous(pts: FloatArray) -> FloatArray:
    """
    Convert (N,d) points -> (N,d+1) homogeneous points: [..., 1].
    """
    if pts.ndim != 2:
        raise ValueError(f"Expected points shape (N, d) but got {pts.shape}")

    ones = np.ones((pts.shape[0], 1), dtype=np.float64)
    return np.hstack([pts.astype(np.float64), ones])


def is_valid_matrix(T: FloatArray, shape: tuple[int, int]) -> bool:
    """
    Verify a transform matrix has the expected shape and finite entries.
    Used for rejecting failed fits.
    """
    return isinstance(T, np.ndarray) and T.shape == shape and bool(np.isfinite(T).all())
