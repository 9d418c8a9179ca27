import numpy as np
import pytest

from apt_reinfection import trial_data as td
from apt_reinfection.analysis import AnalysisConfig, compute_reinfection, run_analysis
from apt_reinfection.matching.posterior_filter import clopper_pearson_interval
from apt_reinfection.runner import main
from apt_reinfection.simulate.sample_parameters import SamplerConfig


@pytest.fixture(scope="module")
def full_result():
    """Published configuration: 100000 draws, seed 652156."""
    return run_analysis()


@pytest.fixture(scope="module")
def small_result():
    return run_analysis(AnalysisConfig(sampler=SamplerConfig(l=5000, seed=3)))


def test_control_mean_in_ballpark_of_trial(full_result):
    observed = td.OUTCOME_CONTROL[0] / td.OUTCOME_CONTROL[1]
    mean_c = full_result.reinfection_control.mean()
    # sanity band, not a fit: within a factor of three of 6.7%
    assert observed / 3 < mean_c < observed * 3
    assert not full_result.posteriors["control"].is_empty


def test_outputs_are_probabilities(full_result):
    for arr in (full_result.reinfection_control, full_result.reinfection_intervention):
        assert arr.shape == (td.DEFAULT_SAMPLE_SIZE,)
        assert np.all((arr >= 0.0) & (arr <= 1.0))
    assert np.all(full_result.slope <= 0.0)


def test_three_posteriors_use_their_own_targets(small_result):
    post = small_result.posteriors
    assert set(post) == {"control", "intervention", "apt_accepted"}

    low, high = clopper_pearson_interval(*td.OUTCOME_APT_ACCEPTED)
    apt = post["apt_accepted"]
    assert apt.interval == (low, high)
    assert np.array_equal(apt.reinfection, small_result.reinfection_intervention[apt.indices])
    assert np.array_equal(apt.epsilon, small_result.ensemble.epsilon[apt.indices])

    control = post["control"]
    assert np.array_equal(control.reinfection, small_result.reinfection_control[control.indices])


def test_apt_posterior_favours_effective_treatment(full_result):
    """A lower observed reinfection rate is matched by higher epsilon draws."""
    apt = full_result.posteriors["apt_accepted"]
    control = full_result.posteriors["control"]
    assert apt.epsilon.mean() > control.epsilon.mean()


def test_comparison_pairs_control_and_intervention(small_result):
    c = small_result.posteriors["control"].epsilon
    i = small_result.posteriors["intervention"].epsilon
    n = min(c.size, i.size)
    assert small_result.comparison.n_paired == n
    assert np.array_equal(small_result.comparison.difference, i[:n] - c[:n])


def test_same_seed_reproduces_run():
    cfg = AnalysisConfig(sampler=SamplerConfig(l=1000, seed=5))
    a = run_analysis(cfg)
    b = run_analysis(cfg)
    assert np.array_equal(a.reinfection_control, b.reinfection_control)
    assert np.array_equal(a.sweep.matrix, b.sweep.matrix)
    assert np.array_equal(a.comparison.difference, b.comparison.difference)


def test_compute_reinfection_matches_ensemble(small_result):
    reinf_c, reinf_i, slope = compute_reinfection(small_result.ensemble)
    assert np.array_equal(reinf_c, small_result.reinfection_control)
    assert np.array_equal(reinf_i, small_result.reinfection_intervention)
    # the model is linear in epsilon
    gap = small_result.sweep.column(1.0) - small_result.sweep.column(0.0)
    assert np.allclose(gap, slope)


def test_reporting_views(small_result):
    summaries = small_result.summaries()
    assert "reinfection_control" in summaries
    assert "epsilon_apt_accepted" in summaries
    assert summaries["reinfection_control"]["n"] == 5000

    table = small_result.summary_table()
    assert "epsilon_difference" in table.index
    assert table.loc["reinfection_control", "mean"] == pytest.approx(small_result.reinfection_control.mean())

    slope_q = small_result.slope_quantiles()
    assert list(slope_q) == list(td.SLOPE_PROBS)
    assert slope_q[0.0025] <= slope_q[0.5] <= slope_q[0.975] <= 0.0

    cols = small_result.reported_sweep_columns()
    assert set(cols) == set(td.REPORTED_EPSILON)

    posterior = small_result.posterior_table()
    assert set(posterior["posterior"]) <= {"control", "intervention", "apt_accepted"}
    assert len(posterior) == sum(s.size for s in small_result.posteriors.values())


def test_runner_writes_tables(tmp_path):
    out = tmp_path / "results"
    main(["run", "--samples", "2000", "--seed", "1", "--step", "0.1", "--out", str(out)])
    for name in ("summary.csv", "sweep_quantiles.csv", "posterior_epsilon.csv", "epsilon_difference.csv"):
        assert (out / name).exists()
