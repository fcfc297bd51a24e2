"""Tests for estimator configuration defaults and bounds."""

import pytest

from robustcv.ransac import params
from robustcv.ransac.params import RobustParams


def test_defaults():
    p = RobustParams()
    assert p.threshold == params.DEFAULT_THRESHOLD
    assert p.confidence == 0.99
    assert p.max_iterations == 5000
    assert p.progress_delta == 0.05
    assert p.refine_result is True
    assert p.keep_covariance is False
    assert p.fast_refinement is False
    assert p.compute_and_keep_inliers is False
    assert p.compute_and_keep_residuals is False
    assert p.seed is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"threshold": 0.0},
        {"threshold": -1.0},
        {"stop_threshold": 0.0},
        {"confidence": -0.1},
        {"confidence": 1.5},
        {"max_iterations": 0},
        {"max_iterations": 2.5},
        {"progress_delta": -0.01},
        {"progress_delta": 1.01},
        {"inlier_factor": 0.0},
        {"prosac_beta": 1.0},
    ],
)
def test_invalid_values_raise(kwargs):
    with pytest.raises(ValueError):
        RobustParams(**kwargs)


def test_bounds_are_inclusive_where_allowed():
    RobustParams(confidence=0.0, progress_delta=0.0, max_iterations=1)
    RobustParams(confidence=1.0, progress_delta=1.0)


def test_validators_return_normalized_values():
    assert params.validate_max_iterations(10.0) == 10
    assert isinstance(params.validate_threshold(2), float)
