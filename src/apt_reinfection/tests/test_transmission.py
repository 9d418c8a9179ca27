import numpy as np
import pytest

from apt_reinfection.analytic.transmission import (
    reinfection_probability,
    reinfection_probability_slope,
    slope_per_step,
)


def random_parameters(rng, size):
    """Valid parameter vectors spanning (and a bit beyond) the prior ranges."""
    return {
        "s": rng.uniform(0.0, 1.0, size),
        "pos": rng.uniform(0.0, 1.0, size),
        "f": 1.0 / rng.uniform(0.5, 10.0, size),
        "beta": rng.uniform(0.0, 1.0, size),
        "gamma": 1.0 / rng.uniform(30.0, 400.0, size),
        "sigma": 1.0 / rng.uniform(1.0, 365.0, size),
        "epsilon": rng.uniform(0.0, 1.0, size),
        "delta": 1.0 / rng.uniform(0.5, 30.0, size),
        "study": 1.0 / rng.uniform(28.0, 365.0, size),
    }


def test_output_is_a_probability():
    rng = np.random.default_rng(1)
    params = random_parameters(rng, 10_000)
    p = reinfection_probability(**params)
    assert p.shape == (10_000,)
    assert np.all(np.isfinite(p))
    assert np.all(p >= 0.0)
    assert np.all(p <= 1.0)


@pytest.mark.parametrize("gate", ["s", "pos"])
def test_zero_gate_gives_zero(gate):
    rng = np.random.default_rng(2)
    params = random_parameters(rng, 500)
    params[gate] = np.zeros(500)
    assert np.all(reinfection_probability(**params) == 0.0)


def test_effective_treatment_leaves_only_direct_transmission():
    """With epsilon = 1 the failed-treatment path vanishes."""
    rng = np.random.default_rng(3)
    params = random_parameters(rng, 1000)
    params["epsilon"] = 1.0
    p = reinfection_probability(**params)

    fb = params["f"] * params["beta"]
    hazard = fb + params["gamma"] + params["sigma"] + params["delta"] + params["study"]
    expected = params["s"] * params["pos"] * fb / hazard
    assert np.allclose(p, expected, rtol=1e-12, atol=0.0)


def test_epsilon_one_is_minimal():
    rng = np.random.default_rng(4)
    params = random_parameters(rng, 1000)
    at_one = reinfection_probability(**{**params, "epsilon": 1.0})
    assert np.all(at_one <= reinfection_probability(**params) + 1e-15)


def test_slope_matches_finite_difference():
    rng = np.random.default_rng(5)
    params = random_parameters(rng, 200)
    h = 1e-4
    up = reinfection_probability(**{**params, "epsilon": params["epsilon"] + h})
    down = reinfection_probability(**{**params, "epsilon": params["epsilon"] - h})
    numeric = (up - down) / (2 * h)

    slope_args = {k: v for k, v in params.items() if k != "epsilon"}
    slope = reinfection_probability_slope(**slope_args)
    assert np.allclose(slope, numeric, rtol=1e-6, atol=1e-10)
    assert np.all(slope <= 0.0)


def test_hand_computed_scenario():
    """
    f = 1/3, beta = 0.1, gamma = 1/200, sigma = 1/100, delta = 1/3.2, study = 1/140,
    epsilon = 0.5. In units of 1/8400 per day the rates are 280, 42, 84, 2625, 60,
    so H = 3091/8400 and H' = 466/8400 and the bracket is
    280/3091 * (1 + 0.5 * 2625/466) = 248990/720203.
    """
    s = 1216 / 2589
    pos = 78 / 120
    p = reinfection_probability(
        s=s, pos=pos, f=1 / 3, beta=0.1, gamma=1 / 200, sigma=1 / 100,
        epsilon=0.5, delta=1 / 3.2, study=1 / 140,
    )
    assert isinstance(p, float)
    assert p == pytest.approx(s * pos * 248990 / 720203, abs=1e-9)


def test_scalars_broadcast_against_arrays():
    p = reinfection_probability(
        s=np.array([0.5, 1.0]), pos=0.65, f=1 / 3, beta=0.1, gamma=1 / 200,
        sigma=1 / 100, epsilon=0.5, delta=1 / 3.2, study=1 / 140,
    )
    assert p.shape == (2,)
    assert p[1] == pytest.approx(2 * p[0])


def test_mismatched_lengths_name_the_inputs():
    with pytest.raises(ValueError, match=r"s=3.*pos=2"):
        reinfection_probability(
            s=np.ones(3), pos=np.ones(2), f=0.3, beta=0.1, gamma=0.005,
            sigma=0.01, epsilon=0.5, delta=0.3125, study=0.007,
        )


def test_slope_per_step_scales():
    assert slope_per_step(-0.2) == pytest.approx(-0.02)
    assert np.allclose(slope_per_step(np.array([-0.1, -0.3]), step=0.5), [-0.05, -0.15])
