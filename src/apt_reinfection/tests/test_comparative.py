import numpy as np
import pytest

from apt_reinfection.compare.comparative import compare_posteriors, paired_difference
from apt_reinfection.matching.posterior_filter import filter_posterior


def make_subset(eps, name):
    eps = np.asarray(eps, dtype=float)
    return filter_posterior(np.zeros(eps.size), (0.0, 1.0), eps, name=name)


def test_truncates_to_shorter_and_pairs_by_position():
    d = paired_difference([0.1, 0.2, 0.3], [0.5, 0.5])
    assert np.allclose(d, [0.4, 0.3])


def test_compare_posteriors():
    control = make_subset([0.2, 0.4, 0.6, 0.8], "control")
    intervention = make_subset([0.3, 0.3, 0.9], "intervention")
    result = compare_posteriors(control, intervention, bins=5)

    assert result.n_paired == 3
    assert np.allclose(result.difference, [0.1, -0.1, 0.3])
    assert result.summary["n"] == 3
    assert result.summary["mean"] == pytest.approx(0.1)
    counts, edges = result.histogram
    assert counts.sum() == 3
    assert edges.size == 6
    assert result.baseline == "control"
    assert result.other == "intervention"


def test_empty_side_is_explicit():
    control = make_subset([0.2, 0.4], "control")
    empty = filter_posterior(np.array([0.5, 0.5]), (0.0, 0.1), np.array([0.1, 0.2]), name="apt")
    result = compare_posteriors(control, empty)
    assert result.is_empty
    assert result.difference.size == 0
    assert result.summary["empty"] is True
    assert result.histogram is None
