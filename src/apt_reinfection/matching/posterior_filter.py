# src/apt_reinfection/matching/posterior_filter.py

from dataclasses import dataclass
from typing import Tuple
import logging

import numpy as np
from scipy.stats import binomtest

from .. import trial_data as td
from ..analytic.transmission import check_lengths

logger = logging.getLogger(__name__)

UNIVERSAL_INTERVAL = (0.0, 1.0)


def clopper_pearson_interval(
    successes: int,
    trials: int,
    confidence_level: float = td.DEFAULT_CONFIDENCE_LEVEL,
) -> Tuple[float, float]:
    """Exact two-sided binomial confidence interval (as R's binom.test)."""
    if trials < 1:
        raise ValueError("trials must be >= 1")
    if not 0 <= successes <= trials:
        raise ValueError(f"successes must lie in [0, trials], got {successes}/{trials}")
    if not 0.0 < confidence_level < 1.0:
        raise ValueError("confidence_level must lie in (0, 1)")

    ci = binomtest(int(successes), int(trials)).proportion_ci(
        confidence_level=confidence_level, method="exact"
    )
    return float(ci.low), float(ci.high)


@dataclass(frozen=True)
class PosteriorSubset:
    """
    Ensemble members whose model output lies inside an acceptance interval.

    indices    : sorted positions in the ensemble that were accepted
    reinfection: model output at those positions
    epsilon    : epsilon draws at those positions (empirical posterior)
    n_total    : size of the ensemble that was filtered
    """
    name: str
    interval: Tuple[float, float]
    indices: np.ndarray
    reinfection: np.ndarray
    epsilon: np.ndarray
    n_total: int

    @property
    def size(self) -> int:
        return int(self.indices.size)

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    @property
    def acceptance_rate(self) -> float:
        return self.size / self.n_total if self.n_total else 0.0

    def restrict(self, values) -> np.ndarray:
        """Sub-vector of any ensemble-aligned array at the accepted indices."""
        arr = np.asarray(values)
        if arr.ndim != 1 or arr.shape[0] != self.n_total:
            raise ValueError(
                f"Array of shape {arr.shape} is not aligned with the filtered ensemble (length {self.n_total})"
            )
        return arr[self.indices]


def filter_posterior(reinfection, interval: Tuple[float, float], epsilon, name: str = "") -> PosteriorSubset:
    """Keep the members with interval[0] <= reinfection <= interval[1].

    The input arrays are not modified; the subset holds copies.
    """
    arrays = check_lengths(reinfection=reinfection, epsilon=epsilon)
    reinf, eps = arrays["reinfection"], arrays["epsilon"]
    if reinf.ndim != 1 or eps.ndim != 1:
        raise ValueError("reinfection and epsilon must be 1D arrays")

    lower, upper = float(interval[0]), float(interval[1])
    if lower > upper:
        raise ValueError(f"Interval lower bound exceeds upper bound: {interval}")

    mask = (reinf >= lower) & (reinf <= upper)
    indices = np.nonzero(mask)[0]

    subset = PosteriorSubset(
        name=name,
        interval=(lower, upper),
        indices=indices,
        reinfection=reinf[indices],
        epsilon=eps[indices],
        n_total=int(reinf.shape[0]),
    )

    if subset.is_empty:
        logger.warning("Posterior '%s' is empty: no output within [%.5f, %.5f]", name, lower, upper)
    else:
        logger.info("Posterior '%s': %d of %d accepted within [%.5f, %.5f]",
                    name, subset.size, subset.n_total, lower, upper)
    return subset


def posterior_from_counts(
    reinfection,
    successes: int,
    trials: int,
    epsilon,
    name: str = "",
    confidence_level: float = td.DEFAULT_CONFIDENCE_LEVEL,
) -> PosteriorSubset:
    """Filter against the exact interval for an observed successes/trials count."""
    interval = clopper_pearson_interval(successes, trials, confidence_level)
    return filter_posterior(reinfection, interval, epsilon, name=name or f"{successes}/{trials}")
