# Andy Zhao
"""
Sample selection policies.

UniformSampler (RANSAC / MSAC / LMedS):
    every iteration draws a minimal subset uniformly without replacement.

ProsacSampler (PROSAC / PROMedS), Chum & Matas, "Matching with PROSAC -
progressive sample consensus", CVPR 2005:
    correspondences are sorted once by descending quality score. Samples are
    drawn from a prefix of the sorted list whose length n grows with the
    iteration count, so the most trusted correspondences are tried first and
    the sampler degrades gracefully to plain RANSAC over the whole set.

Both samplers also own their stopping rule (required_iterations), because
PROSAC's termination depends on the sorted prefix, not only on the global
inlier ratio.
"""
from __future__ import annotations

import math
from typing import Optional

import numpy as np
from scipy import stats

from .stopping import required_iterations
from .types import FloatArray, IndexArray, Mask


class UniformSampler:
    """
    Draw `sample_size` unique indices out of `n` per iteration.
    """

    def __init__(self, n: int, sample_size: int, rng: np.random.Generator) -> None:
        if sample_size < 1:
            raise ValueError("sample_size must be >= 1")
        if n < sample_size:
            raise ValueError(f"Need at least {sample_size} samples, got {n}")

        self.n = int(n)
        self.sample_size = int(sample_size)
        self._rng = rng

        # Pre-allocate an array of indices for fast sampling
        self._all_idx = np.arange(self.n)

    def next_sample(self, iteration: int) -> IndexArray:
        return self._rng.choice(self._all_idx, size=self.sample_size, replace=False)

    def required_iterations(self, inliers: Mask, confidence: float) -> Optional[int]:
        """
        Classic RANSAC bound from the global inlier ratio of the best model.
        """
        w = int(np.count_nonzero(inliers)) / float(self.n)
        return required_iterations(confidence=confidence, inlier_ratio=w, sample_size=self.sample_size)


class ProsacSampler:
    """
    Progressive sampler driven by per-correspondence quality scores.

    Growth function (m = sample_size, N = number of correspondences,
    T_N = max_iterations):

        T_m      = T_N * prod_{i=0}^{m-1} (m - i) / (N - i)
        T_{n+1}  = T_n * (n + 1) / (n + 1 - m)
        T'_{n+1} = T'_n + ceil(T_{n+1} - T_n)

    At iteration t (1-based) the prefix grows while t > T'_n and n < n*.
    If the prefix could not grow any more, m points are drawn uniformly from
    the first n; otherwise the n-th point is always included together with
    m - 1 points drawn from the first n - 1.

    n* starts at N and shrinks to the prefix length chosen by the
    termination criterion once a model has been found.
    """

    def __init__(
            self,
            quality_scores: FloatArray,
            sample_size: int,
            max_iterations: int,
            rng: np.random.Generator,
            *,
            confidence: float,
            beta: float,
    ) -> None:
        scores = np.asarray(quality_scores, dtype=np.float64).reshape(-1)
        n = scores.shape[0]
        if sample_size < 1:
            raise ValueError("sample_size must be >= 1")
        if n < sample_size:
            raise ValueError(f"Need at least {sample_size} samples, got {n}")

        self.n = int(n)
        self.sample_size = int(sample_size)
        self._rng = rng

        # Descending quality; the stable sort keeps original index order on ties.
        self.order: IndexArray = np.argsort(-scores, kind="stable")

        m = self.sample_size
        t_n = float(max_iterations)
        for i in range(m):
            t_n *= (m - i) / float(self.n - i)

        self._t_n = t_n
        self._t_n_prime = 1
        self._prefix = m
        self._n_star = self.n

        self._min_inliers = self._non_random_minimums(confidence=confidence, beta=beta)

    @property
    def prefix_size(self) -> int:
        """Current length of the sorted prefix samples are drawn from."""
        return self._prefix

    def _non_random_minimums(self, *, confidence: float, beta: float) -> np.ndarray:
        """
        Minimum number of inliers I_n^min a prefix of length n must contain so
        that its support is unlikely to come from an incorrect model.

        The support of a wrong model among the n - m points outside the sample
        is modelled as Binomial(n - m, beta); I_n^min is the smallest count whose
        tail probability is below eta0 = 1 - confidence.

        Returned array is indexed by n - m for n in [m, N].
        """
        m = self.sample_size
        eta0 = float(np.clip(1.0 - confidence, 1e-12, 1.0 - 1e-12))
        trials = np.arange(0, self.n - m + 1)
        k = stats.binom.isf(eta0, trials, beta)
        k = np.nan_to_num(k, nan=0.0)
        return m + np.maximum(k, 0.0).astype(np.int64) + 1

    def _grow(self, t: int) -> None:
        m = self.sample_size
        while t > self._t_n_prime and self._prefix < self._n_star:
            n = self._prefix
            t_next = self._t_n * (n + 1) / float(n + 1 - m)
            self._t_n_prime += int(math.ceil(t_next - self._t_n))
            self._t_n = t_next
            self._prefix = n + 1

    def next_sample(self, iteration: int) -> IndexArray:
        t = iteration + 1
        self._grow(t)

        m = self.sample_size
        n = self._prefix
        if t > self._t_n_prime:
            positions = self._rng.choice(n, size=m, replace=False)
        else:
            head = self._rng.choice(n - 1, size=m - 1, replace=False)
            positions = np.append(head, n - 1)

        return self.order[positions]

    def required_iterations(self, inliers: Mask, confidence: float) -> Optional[int]:
        """
        PROSAC termination.

        For every prefix length n the number of inliers I_n inside the prefix is
        checked against I_n^min (non-randomness). Among valid prefixes the one
        needing the fewest iterations (maximality) becomes n*.

        Returns None when no prefix passes the non-randomness test yet.
        """
        m = self.sample_size
        sorted_inliers = np.asarray(inliers, dtype=bool)[self.order]
        counts = np.cumsum(sorted_inliers)

        ns = np.arange(m, self.n + 1)
        i_n = counts[ns - 1]

        valid = i_n >= self._min_inliers
        if not np.any(valid):
            return None

        ks = required_iterations(
            confidence=confidence,
            inlier_ratio=i_n[valid] / ns[valid].astype(np.float64),
            sample_size=m,
        )
        best = int(np.argmin(ks))
        self._n_star = int(ns[valid][best])
        return int(ks[best])
