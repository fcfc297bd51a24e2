# Andy Zhao
"""
Listener notified synchronously while a robust estimator runs.

Subclass and override the callbacks you care about. Callbacks run on the
caller's thread while the estimator is locked: getters may be queried from
inside a callback, setters raise LockedError. An exception raised by a
callback aborts the estimation and propagates to the caller.

Event order for one estimate() call:
    start, next_iteration(0), [progress], next_iteration(1), ..., end
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .core import RobustEstimator


class RobustEstimatorListener:

    def on_estimate_start(self, estimator: RobustEstimator) -> None:
        pass

    def on_estimate_end(self, estimator: RobustEstimator) -> None:
        pass

    def on_estimate_next_iteration(self, estimator: RobustEstimator, iteration: int) -> None:
        pass

    def on_estimate_progress_change(self, estimator: RobustEstimator, progress: float) -> None:
        pass
