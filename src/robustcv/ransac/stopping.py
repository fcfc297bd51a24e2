# Andy Zhao
"""
Adaptive stopping rule shared by the samplers.
"""
from __future__ import annotations

import numpy as np

# Stand-in for "infinitely many iterations"; always capped by max_iterations.
UNBOUNDED_ITERATIONS = int(1e9)


def required_iterations(
        *,
        confidence: float,
        inlier_ratio,
        sample_size: int,
):
    """
    Compute the number of iterations needed so that the probability
    of having drawn at least ONE all-inlier minimal sample is >= confidence.

    inlier ratio w = (# inliers) / N, Minimal sample s = sample_size,
    - P(all-inliers) = w^s
    - P(not-all-inlier-for-k-times) = (1 - w^s)^k
    - P(at-least-once-all-inliers) = 1 - (1 - w^s)^k >= p

    Formula:
       k >= log(1 - p) / log(1 - w^s)

    Edge cases:
     - w == 0  -> impossible, return UNBOUNDED_ITERATIONS (capped elsewhere)
     - w == 1  -> 1 iteration is enough

    `inlier_ratio` may be a scalar or an array; the result has the same shape
    (int for a scalar).
    """
    s = int(sample_size)
    if s <= 0:
        raise ValueError("sample_size must be >= 1")

    # Clamp inputs to avoid log(0)
    p = float(np.clip(confidence, 1e-12, 1.0 - 1e-12))
    w = np.clip(np.asarray(inlier_ratio, dtype=np.float64), 0.0, 1.0)

    # Probability a minimal sample is all inliers.
    # If w^s is extremely tiny, log(1 - w^s) is close to 0
    w_to_s = np.clip(w ** s, 1e-12, 1.0 - 1e-12)

    k = np.ceil(np.log(1.0 - p) / np.log(1.0 - w_to_s))
    k = np.where(w >= 1.0, 1.0, k)
    k = np.where(w <= 0.0, float(UNBOUNDED_ITERATIONS), k)
    k = np.clip(k, 1.0, float(UNBOUNDED_ITERATIONS)).astype(np.int64)

    if k.ndim == 0:
        return int(k)
    return k
