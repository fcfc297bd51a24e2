"""Tests for the adaptive iteration bound."""

import numpy as np
import pytest

from robustcv.ransac.stopping import UNBOUNDED_ITERATIONS, required_iterations


def test_known_value():
    # log(0.01) / log(1 - 0.5^2) = 16.008...
    assert required_iterations(confidence=0.99, inlier_ratio=0.5, sample_size=2) == 17


def test_all_inliers_needs_one_iteration():
    assert required_iterations(confidence=0.99, inlier_ratio=1.0, sample_size=4) == 1


def test_no_inliers_is_unbounded():
    assert required_iterations(confidence=0.99, inlier_ratio=0.0, sample_size=3) == UNBOUNDED_ITERATIONS


def test_more_inliers_needs_fewer_iterations():
    ks = required_iterations(confidence=0.99, inlier_ratio=np.array([0.3, 0.5, 0.8]), sample_size=3)
    assert ks.shape == (3,)
    assert ks[0] > ks[1] > ks[2] >= 1


def test_higher_confidence_needs_more_iterations():
    low = required_iterations(confidence=0.9, inlier_ratio=0.5, sample_size=3)
    high = required_iterations(confidence=0.999, inlier_ratio=0.5, sample_size=3)
    assert high > low


def test_invalid_sample_size():
    with pytest.raises(ValueError):
        required_iterations(confidence=0.99, inlier_ratio=0.5, sample_size=0)
