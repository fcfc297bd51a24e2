# Andy Zhao
"""
Consensus scoring policies.

A scorer turns the residuals of one candidate model into a Consensus:
an inlier mask plus a score tuple. Higher scores are better and tuples
compare lexicographically, so a candidate replaces the current best only
when `candidate.score > best.score` (strict improvement).

- RansacScorer:  (inlier count, -sum of inlier residuals)
                 more inliers wins; on a tie, lower residual sum wins
- MsacScorer:    -sum(min(r^2, t^2))
                 outliers contribute a constant penalty t^2
- LMedSScorer:   -median(r)
                 no threshold needed for scoring; the inlier set is derived
                 from a robust standard deviation of the residuals
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .types import FloatArray, Mask

# Consistency constant making the median absolute residual an unbiased
# estimator of the standard deviation for Gaussian noise.
MAD_TO_STD = 1.4826


@dataclass(frozen=True)
class Consensus:
    score: tuple                    # compared lexicographically, higher is better
    inliers: Mask                   # residual-based inlier mask
    residuals: FloatArray           # per-correspondence residuals
    num_inliers: int
    estimated_threshold: Optional[float] = None


def _clean(residuals: FloatArray) -> FloatArray:
    # NaN residuals (failed projections, etc.) count as infinitely bad
    r = np.asarray(residuals, dtype=np.float64).reshape(-1)
    return np.nan_to_num(r, nan=np.inf, posinf=np.inf)


class RansacScorer:
    def __init__(self, threshold: float) -> None:
        self.threshold = float(threshold)

    def score(self, residuals: FloatArray) -> Consensus:
        r = _clean(residuals)
        inliers: Mask = r <= self.threshold
        num_inliers = int(np.count_nonzero(inliers))
        residual_sum = float(np.sum(r[inliers]))
        return Consensus(
            score=(num_inliers, -residual_sum),
            inliers=inliers,
            residuals=r,
            num_inliers=num_inliers,
        )

    def should_stop(self, best: Consensus) -> bool:
        return False

    def refinement_std(self, best: Consensus) -> float:
        return self.threshold


class MsacScorer:
    def __init__(self, threshold: float) -> None:
        self.threshold = float(threshold)

    def score(self, residuals: FloatArray) -> Consensus:
        r = _clean(residuals)
        inliers: Mask = r <= self.threshold

        # Truncated quadratic loss: inliers pay r^2, outliers a constant t^2
        capped = np.minimum(r * r, self.threshold * self.threshold)
        return Consensus(
            score=(-float(np.sum(capped)),),
            inliers=inliers,
            residuals=r,
            num_inliers=int(np.count_nonzero(inliers)),
        )

    def should_stop(self, best: Consensus) -> bool:
        return False

    def refinement_std(self, best: Consensus) -> float:
        return self.threshold


class LMedSScorer:
    """
    Least median of squares scoring (Rousseeuw, 1984).

    Robust standard deviation (Rousseeuw & Leroy):

        sigma = 1.4826 * (1 + 5 / (N - m)) * median(r)

    Inliers are residuals <= max(inlier_factor * sigma, stop_threshold):
    a median at or below the stop threshold already means "good enough",
    so residuals under it are never rejected.
    """

    def __init__(self, stop_threshold: float, inlier_factor: float, sample_size: int) -> None:
        self.stop_threshold = float(stop_threshold)
        self.inlier_factor = float(inlier_factor)
        self.sample_size = int(sample_size)

    def score(self, residuals: FloatArray) -> Consensus:
        r = _clean(residuals)
        n = r.shape[0]
        median = float(np.median(r))

        dof = max(n - self.sample_size, 1)
        sigma = MAD_TO_STD * (1.0 + 5.0 / dof) * median
        estimated_threshold = max(self.inlier_factor * sigma, self.stop_threshold)

        inliers: Mask = r <= estimated_threshold
        return Consensus(
            score=(-median,),
            inliers=inliers,
            residuals=r,
            num_inliers=int(np.count_nonzero(inliers)),
            estimated_threshold=float(estimated_threshold),
        )

    def should_stop(self, best: Consensus) -> bool:
        return -best.score[0] <= self.stop_threshold

    def refinement_std(self, best: Consensus) -> float:
        return float(best.estimated_threshold)
