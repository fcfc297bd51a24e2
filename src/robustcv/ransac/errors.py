# Andy Zhao
"""
Exceptions raised by the robust estimation engine.

Configuration mistakes (bad thresholds, mismatched array sizes) raise plain
ValueError from the setter that received them. The classes below cover the
estimator state machine and the estimation itself.
"""


class RobustCVError(Exception):
    """Base class for robustcv errors."""


class LockedError(RobustCVError):
    """Raised when the estimator is modified or re-entered while estimating."""

    def __init__(self, message: str = "estimator is locked while estimating") -> None:
        super().__init__(message)


class NotReadyError(RobustCVError):
    """Raised by estimate() when correspondences or quality scores are missing."""

    def __init__(self, message: str = "estimator is not ready") -> None:
        super().__init__(message)


class RobustEstimatorError(RobustCVError):
    """Raised when no candidate model reaches the minimum consensus."""
