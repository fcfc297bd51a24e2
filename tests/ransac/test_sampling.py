"""Tests for uniform and PROSAC sampling."""

import numpy as np
import pytest

from robustcv.ransac.sampling import ProsacSampler, UniformSampler


def _prosac(scores, m=3, max_iterations=200, seed=0):
    return ProsacSampler(
        np.asarray(scores, dtype=np.float64), m, max_iterations, np.random.default_rng(seed),
        confidence=0.99, beta=0.01,
    )


def test_uniform_sample_is_unique_and_in_range():
    sampler = UniformSampler(10, 4, np.random.default_rng(0))
    for i in range(50):
        idx = sampler.next_sample(i)
        assert idx.shape == (4,)
        assert len(set(idx.tolist())) == 4
        assert idx.min() >= 0 and idx.max() < 10


def test_uniform_rejects_too_few_points():
    with pytest.raises(ValueError):
        UniformSampler(2, 3, np.random.default_rng(0))


def test_uniform_required_iterations_uses_global_ratio():
    sampler = UniformSampler(10, 2, np.random.default_rng(0))
    inliers = np.array([True] * 5 + [False] * 5)
    assert sampler.required_iterations(inliers, 0.99) == 17


def test_prosac_order_is_descending_and_stable_on_ties():
    sampler = _prosac([1.0, 1.0, 2.0, 0.0, 1.0])
    assert sampler.order.tolist() == [2, 0, 1, 4, 3]


def test_prosac_first_sample_is_best_points():
    scores = np.arange(20, dtype=np.float64)
    sampler = _prosac(scores)
    first = sampler.next_sample(0)
    assert set(first.tolist()) == {19, 18, 17}


def test_prosac_prefix_grows_monotonically():
    sampler = _prosac(np.random.default_rng(1).random(30), max_iterations=500)
    sizes = []
    for i in range(500):
        idx = sampler.next_sample(i)
        assert len(set(idx.tolist())) == 3
        sizes.append(sampler.prefix_size)
    assert all(a <= b for a, b in zip(sizes, sizes[1:]))
    assert sizes[0] == 3
    assert 3 < sizes[-1] <= 30


def test_prosac_samples_come_from_prefix():
    scores = np.random.default_rng(2).random(25)
    sampler = _prosac(scores, max_iterations=300)
    rank = np.empty(25, dtype=int)
    rank[sampler.order] = np.arange(25)
    for i in range(300):
        idx = sampler.next_sample(i)
        assert rank[idx].max() < sampler.prefix_size


def test_prosac_required_iterations():
    sampler = _prosac(np.arange(20, dtype=np.float64))
    assert sampler.required_iterations(np.zeros(20, dtype=bool), 0.99) is None
    assert sampler.required_iterations(np.ones(20, dtype=bool), 0.99) == 1
