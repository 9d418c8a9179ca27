# src/apt_reinfection/simulate/sample_parameters.py
# Draw the Monte Carlo ensemble of epidemiological parameters.
#
# Every stochastic component is drawn l times from one numpy Generator, in a fixed
# order, so that element i of each array belongs to the same partnership.
# delta is a constant and is not sampled.

from dataclasses import dataclass, field, fields
from typing import Dict, Optional, Tuple
import logging

import numpy as np
from numpy.random import Generator, default_rng

from .. import trial_data as td
from ..analytic.transmission import check_lengths

logger = logging.getLogger(__name__)

PROTOCOLS = ("control", "intervention")

# Fields that are probabilities; the rest are rates
PROBABILITY_FIELDS = ("s_c", "s_i", "pos", "beta", "epsilon")
RATE_FIELDS = ("f", "gamma", "sigma", "study")


@dataclass
class SamplerConfig:
    l: int = td.DEFAULT_SAMPLE_SIZE
    seed: Optional[int] = td.DEFAULT_SEED
    partners_control: int = td.PARTNERS_CONTROL
    future_sex_control: float = td.FUTURE_SEX_CONTROL
    partners_intervention: int = td.PARTNERS_INTERVENTION
    future_sex_intervention: float = td.FUTURE_SEX_INTERVENTION
    positive_tests: int = td.POSITIVE_TESTS
    returned_tests: int = td.RETURNED_TESTS
    sex_interval_range: Tuple[float, float] = td.SEX_INTERVAL_RANGE
    beta_range: Tuple[float, float] = td.BETA_RANGE
    infection_duration_range: Tuple[float, float] = td.INFECTION_DURATION_RANGE
    epsilon_range: Tuple[float, float] = td.EPSILON_RANGE
    partnership_duration_range: Tuple[float, float] = td.PARTNERSHIP_DURATION_RANGE
    study_duration_range: Tuple[float, float] = td.STUDY_DURATION_RANGE
    partner_treatment_days: float = td.PARTNER_TREATMENT_DAYS


@dataclass(frozen=True)
class ParameterEnsemble:
    """Aligned parameter draws, one element per simulated partnership.

    Attributes
    ----------
    s_c, s_i : np.ndarray, shape (l,)
        Likelihood of future sex with the partner, control / intervention phase.
    pos : np.ndarray, shape (l,)
        Chlamydia positivity of partners.
    f, beta, gamma, sigma, study : np.ndarray, shape (l,)
        Coital frequency, per-act transmission probability, clearance,
        partnership dissolution and end-of-study rates.
    epsilon : np.ndarray, shape (l,)
        Probability that partner treatment is effective (prior draws).
    delta : float
        Rate of partner treatment.
    """
    s_c: np.ndarray
    s_i: np.ndarray
    pos: np.ndarray
    f: np.ndarray
    beta: np.ndarray
    gamma: np.ndarray
    sigma: np.ndarray
    epsilon: np.ndarray
    study: np.ndarray
    delta: float = field(default=1.0 / td.PARTNER_TREATMENT_DAYS)

    def __post_init__(self):
        arrays = {fld.name: getattr(self, fld.name) for fld in fields(self) if fld.name != "delta"}
        checked = check_lengths(**arrays)
        for name, arr in checked.items():
            if arr.ndim != 1:
                raise ValueError(f"Ensemble component '{name}' must be a 1D array")
            arr = arr.copy()
            arr.setflags(write=False)
            # frozen dataclass: bypass __setattr__
            object.__setattr__(self, name, arr)
        object.__setattr__(self, "delta", float(self.delta))

    def __len__(self):
        return self.s_c.shape[0]

    def parameters(self, protocol: str = "control", epsilon=None) -> Dict[str, object]:
        """Keyword arguments for reinfection_probability under one protocol.

        epsilon overrides the sampled epsilon (e.g. a fixed sweep value).
        """
        if protocol == "control":
            s = self.s_c
        elif protocol == "intervention":
            s = self.s_i
        else:
            raise ValueError(f"Unknown protocol '{protocol}', expected one of {PROTOCOLS}")
        return {
            "s": s,
            "pos": self.pos,
            "f": self.f,
            "beta": self.beta,
            "gamma": self.gamma,
            "sigma": self.sigma,
            "epsilon": self.epsilon if epsilon is None else epsilon,
            "delta": self.delta,
            "study": self.study,
        }

    def slope_parameters(self, protocol: str = "control") -> Dict[str, object]:
        """Keyword arguments for reinfection_probability_slope (no epsilon)."""
        params = self.parameters(protocol)
        params.pop("epsilon")
        return params


def make_rng(seed: Optional[int] = td.DEFAULT_SEED) -> Generator:
    """Owned PCG64 generator; the same seed reproduces the same ensemble."""
    return default_rng(seed)


def _check_range(bounds, name):
    low, high = float(bounds[0]), float(bounds[1])
    if low > high:
        raise ValueError(f"{name} minimum must be <= maximum, got {bounds}")
    return low, high


def binomial_proportion(rng: Generator, n: int, p: float, size: int) -> np.ndarray:
    """Binomial(n, p) counts divided by n."""
    if n < 1:
        raise ValueError("Binomial n must be >= 1")
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"Binomial p must lie in [0, 1], got {p}")
    return rng.binomial(n, p, size=size) / n


def uniform(rng: Generator, bounds, size: int, name: str = "uniform") -> np.ndarray:
    low, high = _check_range(bounds, name)
    return rng.uniform(low, high, size=size)


def reciprocal_uniform(rng: Generator, bounds, size: int, name: str = "duration") -> np.ndarray:
    """Rates from durations drawn uniformly in `bounds`."""
    low, _ = _check_range(bounds, name)
    if low <= 0:
        raise ValueError(f"{name} durations must be > 0, got {bounds}")
    return 1.0 / uniform(rng, bounds, size, name)


def clamp_to_domain(values: np.ndarray, name: str, low: float, high: float) -> np.ndarray:
    """Clip values outside [low, high] (or non-finite) and log how many were touched."""
    bad = ~np.isfinite(values) | (values < low) | (values > high)
    n_bad = int(bad.sum())
    if n_bad == 0:
        return values
    logger.warning("Clamped %d out-of-domain draws of '%s' into [%g, %g]", n_bad, name, low, high)
    fixed = np.nan_to_num(values, nan=low, posinf=high, neginf=low)
    return np.clip(fixed, low, high)


def sample_parameters(cfg: Optional[SamplerConfig] = None, rng: Optional[Generator] = None) -> ParameterEnsemble:
    """Draw the ensemble.

    If rng is None a generator is created from cfg.seed. Draw order is fixed:
    s_c, s_i, pos, f, beta, gamma, epsilon, sigma, study.
    """
    if cfg is None:
        cfg = SamplerConfig()
    if cfg.l < 1:
        raise ValueError("Sample size l must be >= 1")
    if rng is None:
        rng = make_rng(cfg.seed)

    l = int(cfg.l)

    draws = {
        "s_c": binomial_proportion(rng, cfg.partners_control, cfg.future_sex_control / cfg.partners_control, l),
        "s_i": binomial_proportion(rng, cfg.partners_intervention, cfg.future_sex_intervention / cfg.partners_intervention, l),
        "pos": binomial_proportion(rng, cfg.returned_tests, cfg.positive_tests / cfg.returned_tests, l),
        "f": reciprocal_uniform(rng, cfg.sex_interval_range, l, "sex_interval_range"),
        "beta": uniform(rng, cfg.beta_range, l, "beta_range"),
        "gamma": reciprocal_uniform(rng, cfg.infection_duration_range, l, "infection_duration_range"),
        "epsilon": uniform(rng, cfg.epsilon_range, l, "epsilon_range"),
        "sigma": reciprocal_uniform(rng, cfg.partnership_duration_range, l, "partnership_duration_range"),
        "study": reciprocal_uniform(rng, cfg.study_duration_range, l, "study_duration_range"),
    }

    for name in PROBABILITY_FIELDS:
        draws[name] = clamp_to_domain(draws[name], name, 0.0, 1.0)
    for name in RATE_FIELDS:
        draws[name] = clamp_to_domain(draws[name], name, 0.0, np.inf)

    ensemble = ParameterEnsemble(delta=1.0 / cfg.partner_treatment_days, **draws)
    logger.debug("Sampled parameter ensemble (l=%d, seed=%s)", len(ensemble), cfg.seed)
    return ensemble
