# Andy Zhao
"""
Robust estimator configuration.

RobustParams bundles every tunable of the engine with its default value.
The estimator copies these values at construction time and exposes each one
as a property, so they can still be changed one at a time afterwards (while
the estimator is not locked).

The validate_* helpers are shared by RobustParams and the estimator setters,
so a value is always checked the same way regardless of where it comes from.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# ---------- Bounds ----------
MIN_THRESHOLD = 0.0
MIN_STOP_THRESHOLD = 0.0

MIN_CONFIDENCE = 0.0
MAX_CONFIDENCE = 1.0

MIN_ITERATIONS = 1

MIN_PROGRESS_DELTA = 0.0
MAX_PROGRESS_DELTA = 1.0

# ---------- Defaults ----------
DEFAULT_THRESHOLD = 1.0
DEFAULT_STOP_THRESHOLD = 1e-3
DEFAULT_CONFIDENCE = 0.99
DEFAULT_MAX_ITERATIONS = 5000
DEFAULT_PROGRESS_DELTA = 0.05
DEFAULT_REFINE_RESULT = True
DEFAULT_KEEP_COVARIANCE = False
DEFAULT_USE_FAST_REFINEMENT = False
DEFAULT_COMPUTE_AND_KEEP_INLIERS = False
DEFAULT_COMPUTE_AND_KEEP_RESIDUALS = False

# Factor applied to the robust standard deviation of LMedS / PROMedS residuals
# to obtain the threshold that separates inliers from outliers.
DEFAULT_INLIER_FACTOR = 1.5

# PROSAC: probability that a residual of an incorrect model falls below the
# threshold by chance (used by the non-randomness test).
DEFAULT_PROSAC_BETA = 0.01


def validate_threshold(threshold: float) -> float:
    threshold = float(threshold)
    if threshold <= MIN_THRESHOLD:
        raise ValueError(f"threshold must be > {MIN_THRESHOLD}, got {threshold}")
    return threshold


def validate_stop_threshold(stop_threshold: float) -> float:
    stop_threshold = float(stop_threshold)
    if stop_threshold <= MIN_STOP_THRESHOLD:
        raise ValueError(f"stop_threshold must be > {MIN_STOP_THRESHOLD}, got {stop_threshold}")
    return stop_threshold


def validate_confidence(confidence: float) -> float:
    confidence = float(confidence)
    if not (MIN_CONFIDENCE <= confidence <= MAX_CONFIDENCE):
        raise ValueError(f"confidence must be in [{MIN_CONFIDENCE}, {MAX_CONFIDENCE}], got {confidence}")
    return confidence


def validate_max_iterations(max_iterations: int) -> int:
    if int(max_iterations) != max_iterations:
        raise ValueError(f"max_iterations must be an integer, got {max_iterations}")
    max_iterations = int(max_iterations)
    if max_iterations < MIN_ITERATIONS:
        raise ValueError(f"max_iterations must be >= {MIN_ITERATIONS}, got {max_iterations}")
    return max_iterations


def validate_progress_delta(progress_delta: float) -> float:
    progress_delta = float(progress_delta)
    if not (MIN_PROGRESS_DELTA <= progress_delta <= MAX_PROGRESS_DELTA):
        raise ValueError(
            f"progress_delta must be in [{MIN_PROGRESS_DELTA}, {MAX_PROGRESS_DELTA}], got {progress_delta}"
        )
    return progress_delta


@dataclass
class RobustParams:
    """
    Tunables of a robust estimator.

    - threshold: inlier cutoff on residuals for RANSAC / MSAC / PROSAC.
    - stop_threshold: LMedS / PROMedS stop as soon as the best median residual
      is at or below this value. Residuals under it are always inliers.
    - confidence: probability of drawing at least one all-inlier sample.
    - max_iterations: hard cap on the number of iterations.
    - progress_delta: minimum progress advance between two progress callbacks.
    - refine_result: run the refinement stage on the inliers.
    - keep_covariance: keep the parameter covariance computed by refinement.
    - fast_refinement: refit by linear least squares instead of the non-linear
      solver (cheaper, no covariance).
    - compute_and_keep_inliers / compute_and_keep_residuals: store the inlier
      mask / residuals of the best candidate in InliersData.
    - inlier_factor: LMedS / PROMedS inlier threshold = factor * robust std.
    - prosac_beta: PROSAC non-randomness parameter.
    - seed: RNG seed for reproducible sampling (None = fresh entropy).
    """
    threshold: float = DEFAULT_THRESHOLD
    stop_threshold: float = DEFAULT_STOP_THRESHOLD
    confidence: float = DEFAULT_CONFIDENCE
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    progress_delta: float = DEFAULT_PROGRESS_DELTA

    refine_result: bool = DEFAULT_REFINE_RESULT
    keep_covariance: bool = DEFAULT_KEEP_COVARIANCE
    fast_refinement: bool = DEFAULT_USE_FAST_REFINEMENT

    compute_and_keep_inliers: bool = DEFAULT_COMPUTE_AND_KEEP_INLIERS
    compute_and_keep_residuals: bool = DEFAULT_COMPUTE_AND_KEEP_RESIDUALS

    inlier_factor: float = DEFAULT_INLIER_FACTOR
    prosac_beta: float = DEFAULT_PROSAC_BETA

    seed: Optional[int] = None

    def __post_init__(self) -> None:
        validate_threshold(self.threshold)
        validate_stop_threshold(self.stop_threshold)
        validate_confidence(self.confidence)
        validate_max_iterations(self.max_iterations)
        validate_progress_delta(self.progress_delta)

        if self.inlier_factor <= 0.0:
            raise ValueError("RobustParams.inlier_factor must be > 0")
        if not (0.0 < self.prosac_beta < 1.0):
            raise ValueError("RobustParams.prosac_beta must be in (0, 1)")
