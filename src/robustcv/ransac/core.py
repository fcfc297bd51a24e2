# Andy Zhao
"""
Generic robust estimation engine (model-agnostic).

Overview:
- Draw a *minimal* subset of correspondences (uniformly, or PROSAC-ordered)
- Fit a candidate model from that subset
- Score all correspondences by computing residual errors
- Keep the candidate with the best consensus score
- Shrink the iteration budget as the best inlier ratio improves
- Optionally refine the best model using all of its inliers

One engine serves every method: the RobustMethod picks a sampler
(UniformSampler / ProsacSampler) and a scorer (RansacScorer / MsacScorer /
LMedSScorer). Models plug in through the ModelFitter protocol.

The estimator is STATEFUL and guarded by a lock:
    Idle -> Estimating -> Idle
While estimating, every setter and estimate() itself raise LockedError.
Getters stay available, so a listener can inspect the estimator from inside
its callbacks.
"""
from __future__ import annotations

from typing import Generic, Optional, TypeVar

import numpy as np

from ..utils.logger import get_logger
from .errors import LockedError, NotReadyError, RobustEstimatorError
from .listener import RobustEstimatorListener
from .params import (
    RobustParams,
    validate_confidence,
    validate_max_iterations,
    validate_progress_delta,
    validate_stop_threshold,
    validate_threshold,
)
from .refine import refine_model
from .sampling import ProsacSampler, UniformSampler
from .scoring import Consensus, LMedSScorer, MsacScorer, RansacScorer
from .types import EstimateResult, FloatArray, InliersData, ModelFitter, RobustMethod

M = TypeVar("M")

DEFAULT_ROBUST_METHOD = RobustMethod.PROMEDS

logger = get_logger()


class RobustEstimator(Generic[M]):
    """
    Robust estimator of a model from correspondences with outliers.

    - fitter: ModelFitter providing minimal solver, residuals and parameter codec
    - method: RobustMethod (RANSAC, MSAC, LMedS, PROSAC, PROMedS)
    - inputs, outputs: (N, d) parallel arrays of correspondences
      (outputs is None for single-set fitters). Arrays are referenced, not
      copied: do not mutate them while estimating.
    - quality_scores: (N,) per-correspondence confidence, PROSAC / PROMedS only
    - listener: RobustEstimatorListener notified during estimate()
    - weak_minimum_size_allowed: draw samples of the fitter's weak minimum size
    - params: RobustParams with the remaining tunables

    Usage:
        estimator = RobustEstimator(EuclideanTransform2DFitter(), RobustMethod.RANSAC, pts0, pts1)
        estimator.threshold = 1.0
        model = estimator.estimate()
    """

    def __init__(
            self,
            fitter: ModelFitter[M],
            method: RobustMethod = DEFAULT_ROBUST_METHOD,
            inputs: Optional[FloatArray] = None,
            outputs: Optional[FloatArray] = None,
            *,
            quality_scores: Optional[FloatArray] = None,
            listener: Optional[RobustEstimatorListener] = None,
            weak_minimum_size_allowed: bool = False,
            params: Optional[RobustParams] = None,
    ) -> None:
        params = params if params is not None else RobustParams()

        self._fitter = fitter
        self._method = RobustMethod(method)
        self._locked = False

        self._listener = listener
        self._weak_minimum_size_allowed = bool(weak_minimum_size_allowed)

        self._threshold = params.threshold
        self._stop_threshold = params.stop_threshold
        self._confidence = params.confidence
        self._max_iterations = params.max_iterations
        self._progress_delta = params.progress_delta

        self._refine_result = params.refine_result
        self._keep_covariance = params.keep_covariance
        self._fast_refinement = params.fast_refinement

        self._compute_and_keep_inliers = params.compute_and_keep_inliers
        self._compute_and_keep_residuals = params.compute_and_keep_residuals

        self._inlier_factor = params.inlier_factor
        self._prosac_beta = params.prosac_beta
        self._seed = params.seed

        self._inputs: Optional[FloatArray] = None
        self._outputs: Optional[FloatArray] = None
        self._quality_scores: Optional[FloatArray] = None

        # ---------- Results of the last successful estimation ----------
        self._inliers_data: Optional[InliersData] = None
        self._covariance: Optional[FloatArray] = None
        self._last_result: Optional[EstimateResult[M]] = None

        if inputs is not None:
            self._internal_set_points(inputs, outputs)

        if quality_scores is not None:
            scores = self._validated_quality_scores(quality_scores)
            if self._inputs is not None and scores.shape[0] != self._inputs.shape[0]:
                raise ValueError(
                    f"quality_scores must have one entry per correspondence; "
                    f"got {scores.shape[0]} vs {self._inputs.shape[0]}"
                )
            self._quality_scores = scores

    # ---------- Locking ----------
    @property
    def is_locked(self) -> bool:
        return self._locked

    def _check_unlocked(self) -> None:
        if self._locked:
            raise LockedError()

    # ---------- Queries ----------
    @property
    def fitter(self) -> ModelFitter[M]:
        return self._fitter

    @property
    def method(self) -> RobustMethod:
        return self._method

    @property
    def minimum_points(self) -> int:
        return self._fitter.minimum_size(weak=self._weak_minimum_size_allowed)

    @property
    def inputs(self) -> Optional[FloatArray]:
        return self._inputs

    @property
    def outputs(self) -> Optional[FloatArray]:
        return self._outputs

    @property
    def inliers_data(self) -> Optional[InliersData]:
        return self._inliers_data

    @property
    def covariance(self) -> Optional[FloatArray]:
        return self._covariance

    @property
    def last_result(self) -> Optional[EstimateResult[M]]:
        return self._last_result

    @property
    def is_listener_available(self) -> bool:
        return self._listener is not None

    @property
    def is_ready(self) -> bool:
        """
        Ready when correspondences are set, have matching lengths, reach the
        minimum size, and (PROSAC / PROMedS) quality scores match their count.
        """
        if self._inputs is None:
            return False
        n = self._inputs.shape[0]
        if self._fitter.requires_outputs and (self._outputs is None or self._outputs.shape[0] != n):
            return False
        if n < self.minimum_points:
            return False
        if self._method.uses_quality_scores:
            return self._quality_scores is not None and self._quality_scores.shape[0] == n
        return True

    # ---------- Correspondences ----------
    def set_points(self, inputs: FloatArray, outputs: Optional[FloatArray] = None) -> None:
        self._check_unlocked()
        self._internal_set_points(inputs, outputs)

    def _internal_set_points(self, inputs: FloatArray, outputs: Optional[FloatArray]) -> None:
        x0 = np.asarray(inputs, dtype=np.float64)
        if x0.ndim != 2:
            raise ValueError(f"Expected inputs shape (N, d), got {x0.shape}")

        x1 = None
        if self._fitter.requires_outputs:
            if outputs is None:
                raise ValueError("outputs are required by this model")
            x1 = np.asarray(outputs, dtype=np.float64)
            if x1.ndim != 2:
                raise ValueError(f"Expected outputs shape (N, d), got {x1.shape}")
            if x1.shape[0] != x0.shape[0]:
                raise ValueError(f"inputs and outputs must have same length, got {x0.shape[0]} vs {x1.shape[0]}")

        if x0.shape[0] < self.minimum_points:
            raise ValueError(f"Need at least {self.minimum_points} correspondences, got {x0.shape[0]}")

        self._inputs = x0
        self._outputs = x1

    # ---------- Quality scores ----------
    @property
    def quality_scores(self) -> Optional[FloatArray]:
        return self._quality_scores

    @quality_scores.setter
    def quality_scores(self, quality_scores: FloatArray) -> None:
        self._check_unlocked()
        self._quality_scores = self._validated_quality_scores(quality_scores)

    def _validated_quality_scores(self, quality_scores: FloatArray) -> FloatArray:
        scores = np.asarray(quality_scores, dtype=np.float64)
        if scores.ndim != 1:
            raise ValueError(f"quality_scores must be 1-D, got shape {scores.shape}")
        if scores.shape[0] < self.minimum_points:
            raise ValueError(f"Need at least {self.minimum_points} quality scores, got {scores.shape[0]}")
        return scores

    # ---------- Configuration ----------
    @property
    def listener(self) -> Optional[RobustEstimatorListener]:
        return self._listener

    @listener.setter
    def listener(self, listener: Optional[RobustEstimatorListener]) -> None:
        self._check_unlocked()
        self._listener = listener

    @property
    def weak_minimum_size_allowed(self) -> bool:
        return self._weak_minimum_size_allowed

    @weak_minimum_size_allowed.setter
    def weak_minimum_size_allowed(self, allowed: bool) -> None:
        self._check_unlocked()
        self._weak_minimum_size_allowed = bool(allowed)

    @property
    def threshold(self) -> float:
        """Inlier cutoff used by RANSAC, MSAC and PROSAC."""
        return self._threshold

    @threshold.setter
    def threshold(self, threshold: float) -> None:
        self._check_unlocked()
        self._threshold = validate_threshold(threshold)

    @property
    def stop_threshold(self) -> float:
        """Median residual at which LMedS and PROMedS stop early."""
        return self._stop_threshold

    @stop_threshold.setter
    def stop_threshold(self, stop_threshold: float) -> None:
        self._check_unlocked()
        self._stop_threshold = validate_stop_threshold(stop_threshold)

    @property
    def confidence(self) -> float:
        return self._confidence

    @confidence.setter
    def confidence(self, confidence: float) -> None:
        self._check_unlocked()
        self._confidence = validate_confidence(confidence)

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @max_iterations.setter
    def max_iterations(self, max_iterations: int) -> None:
        self._check_unlocked()
        self._max_iterations = validate_max_iterations(max_iterations)

    @property
    def progress_delta(self) -> float:
        return self._progress_delta

    @progress_delta.setter
    def progress_delta(self, progress_delta: float) -> None:
        self._check_unlocked()
        self._progress_delta = validate_progress_delta(progress_delta)

    @property
    def refine_result(self) -> bool:
        return self._refine_result

    @refine_result.setter
    def refine_result(self, refine: bool) -> None:
        self._check_unlocked()
        self._refine_result = bool(refine)

    @property
    def keep_covariance(self) -> bool:
        return self._keep_covariance

    @keep_covariance.setter
    def keep_covariance(self, keep: bool) -> None:
        self._check_unlocked()
        self._keep_covariance = bool(keep)

    @property
    def fast_refinement(self) -> bool:
        return self._fast_refinement

    @fast_refinement.setter
    def fast_refinement(self, fast: bool) -> None:
        self._check_unlocked()
        self._fast_refinement = bool(fast)

    @property
    def compute_and_keep_inliers(self) -> bool:
        return self._compute_and_keep_inliers

    @compute_and_keep_inliers.setter
    def compute_and_keep_inliers(self, keep: bool) -> None:
        self._check_unlocked()
        self._compute_and_keep_inliers = bool(keep)

    @property
    def compute_and_keep_residuals(self) -> bool:
        return self._compute_and_keep_residuals

    @compute_and_keep_residuals.setter
    def compute_and_keep_residuals(self, keep: bool) -> None:
        self._check_unlocked()
        self._compute_and_keep_residuals = bool(keep)

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    @seed.setter
    def seed(self, seed: Optional[int]) -> None:
        self._check_unlocked()
        self._seed = seed

    # ---------- Listener notifications ----------
    def _notify_start(self) -> None:
        if self._listener is not None:
            self._listener.on_estimate_start(self)

    def _notify_end(self) -> None:
        if self._listener is not None:
            self._listener.on_estimate_end(self)

    def _notify_next_iteration(self, iteration: int) -> None:
        if self._listener is not None:
            self._listener.on_estimate_next_iteration(self, iteration)

    def _notify_progress(self, progress: float) -> None:
        if self._listener is not None:
            self._listener.on_estimate_progress_change(self, progress)

    # ---------- Strategy selection ----------
    def _make_sampler(self, n: int, sample_size: int, rng: np.random.Generator):
        if self._method.uses_quality_scores:
            return ProsacSampler(
                self._quality_scores,
                sample_size,
                self._max_iterations,
                rng,
                confidence=self._confidence,
                beta=self._prosac_beta,
            )
        return UniformSampler(n, sample_size, rng)

    def _make_scorer(self, sample_size: int):
        if self._method in (RobustMethod.RANSAC, RobustMethod.PROSAC):
            return RansacScorer(self._threshold)
        if self._method == RobustMethod.MSAC:
            return MsacScorer(self._threshold)
        return LMedSScorer(self._stop_threshold, self._inlier_factor, sample_size)

    # ---------- Estimation ----------
    def estimate(self) -> M:
        """
        Run the robust estimation and return the best model.

        Raises:
        - LockedError if an estimation is already running
        - NotReadyError if inputs are missing or inconsistent
        - RobustEstimatorError if no candidate reached minimum consensus

        On success inliers_data, covariance and last_result are replaced.
        On failure they keep their previous values.
        """
        self._check_unlocked()
        if not self.is_ready:
            raise NotReadyError()

        self._locked = True
        try:
            result = self._estimate()
        finally:
            self._locked = False

        self._inliers_data = result.inliers_data
        self._covariance = result.covariance
        self._last_result = result
        return result.model

    def _estimate(self) -> EstimateResult[M]:
        x0 = self._inputs
        x1 = self._outputs
        n = x0.shape[0]

        sample_size = self.minimum_points
        rng = np.random.default_rng(self._seed)
        sampler = self._make_sampler(n, sample_size, rng)
        scorer = self._make_scorer(sample_size)

        logger.debug("[%s] estimating from %d correspondences, sample size %d", self._method.value, n, sample_size)

        self._notify_start()
        best_model, best, iterations = self._search(x0, x1, sampler, scorer, sample_size)
        self._notify_end()

        if best_model is None or best is None:
            logger.warning("[%s] no model reached minimum consensus after %d iterations", self._method.value, iterations)
            raise RobustEstimatorError(
                f"{self._method.value}: no model reached minimum consensus after {iterations} iterations"
            )

        # Refinement needs the inlier mask; median-based methods always keep both
        keep_inliers = self._compute_and_keep_inliers or self._refine_result or self._method.uses_median
        keep_residuals = self._compute_and_keep_residuals or self._method.uses_median

        inliers_data = InliersData(
            inliers=best.inliers if keep_inliers else None,
            residuals=best.residuals if keep_residuals else None,
            num_inliers=best.num_inliers,
            estimated_threshold=best.estimated_threshold,
        )

        model = best_model
        covariance = None
        refined = False
        if self._refine_result:
            outcome = refine_model(
                self._fitter, best_model, x0, x1, best.inliers,
                standard_deviation=scorer.refinement_std(best),
                keep_covariance=self._keep_covariance,
                fast=self._fast_refinement,
            )
            model = outcome.model
            refined = outcome.improved
            if self._keep_covariance:
                covariance = outcome.covariance

        logger.debug(
            "[%s] done: inliers=%d/%d, iterations=%d, refined=%s",
            self._method.value, best.num_inliers, n, iterations, refined,
        )

        return EstimateResult(
            model=model,
            inliers_data=inliers_data,
            covariance=covariance,
            iterations=iterations,
            method=self._method,
            refined=refined,
        )

    def _search(self, x0, x1, sampler, scorer, sample_size: int) -> tuple[Optional[M], Optional[Consensus], int]:
        """
        Main sampling loop. Returns (best model, its consensus, iterations run).
        """
        best_model: Optional[M] = None
        best: Optional[Consensus] = None

        max_iters = self._max_iterations
        target_iters = max_iters
        last_progress = 0.0

        # ---------- Main Loop ----------
        # Keep looping until min(target_iters, max_iters)
        i = 0
        while i < max_iters and i < target_iters:
            sample_idx = sampler.next_sample(i)

            s0 = x0[sample_idx]
            s1 = x1[sample_idx] if x1 is not None else None

            # Fit model from minimal set, None if degenerate
            try:
                model = self._fitter.fit_minimal(s0, s1)
            except np.linalg.LinAlgError:
                model = None

            if model is not None:
                consensus = scorer.score(self._fitter.residuals(model, x0, x1))

                # Not enough inliers to be meaningful, or non-finite score
                meaningful = consensus.num_inliers >= sample_size and np.isfinite(consensus.score[0])

                if meaningful and (best is None or consensus.score > best.score):
                    best_model = model
                    best = consensus

                    iter_needed = sampler.required_iterations(best.inliers, self._confidence)
                    if iter_needed is not None:
                        target_iters = min(target_iters, max(iter_needed, i + 1))

                    logger.debug(
                        "[%s] better model: inliers=%d/%d, score=%s, target_iters=%d",
                        self._method.value, best.num_inliers, x0.shape[0], best.score, target_iters,
                    )

            self._notify_next_iteration(i)
            i += 1

            progress = min(i / float(min(target_iters, max_iters)), 1.0)
            if progress - last_progress >= self._progress_delta:
                last_progress = progress
                self._notify_progress(progress)

            if best is not None and scorer.should_stop(best):
                break

        return best_model, best, i


def create(
        fitter: ModelFitter[M],
        method: RobustMethod = DEFAULT_ROBUST_METHOD,
        inputs: Optional[FloatArray] = None,
        outputs: Optional[FloatArray] = None,
        **kwargs,
) -> RobustEstimator[M]:
    """
    Factory selecting the robust method by its enum value (or its name,
    e.g. "RANSAC", "PROMedS"). Remaining keyword arguments are forwarded to
    RobustEstimator.
    """
    if isinstance(method, str) and not isinstance(method, RobustMethod):
        method = _method_from_name(method)
    return RobustEstimator(fitter, method, inputs, outputs, **kwargs)


def _method_from_name(name: str) -> RobustMethod:
    for candidate in RobustMethod:
        if candidate.value.lower() == name.lower() or candidate.name.lower() == name.lower():
            return candidate
    raise ValueError(f"Unknown robust method: {name}")
