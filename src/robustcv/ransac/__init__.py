# Andy Zhao
"""
Robust estimation package

This module provides:
- A reusable generic robust estimator (RANSAC, MSAC, LMedS, PROSAC, PROMedS)
- Typed geometry primitives
- Model interface definitions
- Listener hooks, configuration bounds and error types
"""

from .types import (
    FloatArray, BoolArray, IndexArray, Points2D, Points3D, PointsHomog, Planes, Mask, Mat3x3, Mat3x4,
    RobustMethod, ModelFitter, InliersData, EstimateResult, as_homogeneous, is_valid_matrix,
)

from .errors import RobustCVError, LockedError, NotReadyError, RobustEstimatorError

from .listener import RobustEstimatorListener

from .params import RobustParams

from .stopping import required_iterations

from .sampling import UniformSampler, ProsacSampler

from .scoring import Consensus, RansacScorer, MsacScorer, LMedSScorer

from .refine import RefineOutcome, refine_model

from .core import RobustEstimator, DEFAULT_ROBUST_METHOD, create

__all__ = [
    "FloatArray", "BoolArray", "IndexArray", "Points2D", "Points3D", "PointsHomog", "Planes", "Mask",
    "Mat3x3", "Mat3x4",
    "RobustMethod", "ModelFitter", "InliersData", "EstimateResult", "as_homogeneous", "is_valid_matrix",
    "RobustCVError", "LockedError", "NotReadyError", "RobustEstimatorError",
    "RobustEstimatorListener",
    "RobustParams",
    "required_iterations",
    "UniformSampler", "ProsacSampler",
    "Consensus", "RansacScorer", "MsacScorer", "LMedSScorer",
    "RefineOutcome", "refine_model",
    "RobustEstimator", "DEFAULT_ROBUST_METHOD", "create",
]
