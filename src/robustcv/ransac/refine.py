# Andy Zhao
"""
Refinement stage: re-estimate the consensus model using only its inliers.

Two modes:
- standard: non-linear least squares (scipy.optimize.least_squares) over the
  fitter's parameter vector, seeded with the consensus model. The Jacobian at
  the solution gives a covariance estimate:

      Cov = sigma^2 * (J^T J)^+

  where sigma is the refinement standard deviation (inlier threshold for
  RANSAC-like methods, estimated threshold for median-based methods).
- fast: the fitter's linear least squares refit on the inliers. Cheaper, no
  covariance.

Refinement never fails the estimation: if the solver breaks down, or does not
lower the inlier cost, the consensus model is kept and no covariance is
reported for it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

import numpy as np
from scipy.optimize import least_squares

from ..utils.logger import get_logger
from .types import FloatArray, Mask, ModelFitter

M = TypeVar("M")

logger = get_logger()

_COST_RTOL = 1e-9
_COST_ATOL = 1e-12


@dataclass(frozen=True)
class RefineOutcome(Generic[M]):
    model: M
    covariance: Optional[FloatArray]
    improved: bool


def _cost(fitter: ModelFitter[M], model: M, x0: FloatArray, x1: Optional[FloatArray]) -> float:
    err = np.asarray(fitter.error_vector(model, x0, x1), dtype=np.float64)
    return float(np.sum(err * err))


def _solve(
        fitter: ModelFitter[M],
        model: M,
        x0: FloatArray,
        x1: Optional[FloatArray],
        *,
        standard_deviation: float,
        keep_covariance: bool,
) -> tuple[M, Optional[FloatArray]]:
    p0 = np.asarray(fitter.to_params(model), dtype=np.float64)

    def fun(params: FloatArray) -> FloatArray:
        return np.asarray(fitter.error_vector(fitter.from_params(params), x0, x1), dtype=np.float64)

    solution = least_squares(fun, p0, method="trf", x_scale="jac")
    candidate = fitter.from_params(solution.x)

    covariance = None
    if keep_covariance and solution.jac is not None:
        J = np.asarray(solution.jac, dtype=np.float64)
        covariance = np.linalg.pinv(J.T @ J) * (standard_deviation ** 2)
        if not np.isfinite(covariance).all():
            covariance = None

    return candidate, covariance


def refine_model(
        fitter: ModelFitter[M],
        model: M,
        x0: FloatArray,
        x1: Optional[FloatArray],
        inliers: Mask,
        *,
        standard_deviation: float,
        keep_covariance: bool = False,
        fast: bool = False,
) -> RefineOutcome[M]:
    """
    Refine `model` on the correspondences selected by `inliers`.

    Returns the refined model when it lowers the squared error over the
    inliers, otherwise the input model. The covariance is only computed in
    standard mode with `keep_covariance=True`.
    """
    unrefined = RefineOutcome(model=model, covariance=None, improved=False)

    inliers = np.asarray(inliers, dtype=bool)
    if int(np.count_nonzero(inliers)) < fitter.minimum_size(weak=True):
        logger.debug("Refinement skipped: only %d inliers", int(np.count_nonzero(inliers)))
        return unrefined

    x0_in = x0[inliers]
    x1_in = x1[inliers] if x1 is not None else None

    try:
        initial_cost = _cost(fitter, model, x0_in, x1_in)

        if fast:
            candidate = fitter.fit_least_squares(x0_in, x1_in)
            covariance = None
            if candidate is None:
                logger.debug("Fast refinement failed: degenerate inlier set")
                return unrefined
        else:
            candidate, covariance = _solve(
                fitter, model, x0_in, x1_in,
                standard_deviation=standard_deviation,
                keep_covariance=keep_covariance,
            )

        final_cost = _cost(fitter, candidate, x0_in, x1_in)
    except (np.linalg.LinAlgError, ValueError, FloatingPointError) as e:
        # refinement failed, so we return input value
        logger.debug("Refinement failed: %s", e)
        return unrefined

    # rounding noise on exact data must not reject the refined model
    if not np.isfinite(final_cost) or final_cost > initial_cost * (1.0 + _COST_RTOL) + _COST_ATOL:
        logger.debug("Refinement did not improve cost (%.3e -> %.3e)", initial_cost, final_cost)
        return unrefined

    return RefineOutcome(model=candidate, covariance=covariance, improved=True)
