#!/usr/bin/env python3
# src/apt_reinfection/analytic/transmission.py
"""
Competing-risks model for reinfection of an index patient by an untreated partner
"""

# Store type annotations as strings instead of evaluating them immediately.
from __future__ import annotations

from typing import Dict, Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


def check_lengths(**values) -> Dict[str, np.ndarray]:
    """Convert inputs to float arrays and make sure the non-scalar ones line up.

    Scalars (0-d) are allowed and broadcast; every 1-d input must share one length.
    Raises ValueError listing each offending input and its length.
    """
    arrays = {name: np.asarray(v, dtype=float) for name, v in values.items()}

    bad_dims = {name: a.ndim for name, a in arrays.items() if a.ndim > 1}
    if bad_dims:
        raise ValueError(f"Inputs must be scalars or 1D arrays, got ndim {bad_dims}")

    lengths = {name: a.shape[0] for name, a in arrays.items() if a.ndim == 1}
    if len(set(lengths.values())) > 1:
        detail = ", ".join(f"{name}={n}" for name, n in lengths.items())
        raise ValueError(f"Mismatched input lengths: {detail}")

    return arrays


def _as_output(result: np.ndarray) -> ArrayLike:
    # all-scalar inputs give a plain float back
    if result.ndim == 0:
        return float(result)
    return result


def reinfection_probability(s, pos, f, beta, gamma, sigma, epsilon, delta, study) -> ArrayLike:
    """Probability that the partner reinfects the index patient.

    The partner-risk state ends at total rate H = f*beta + gamma + sigma + delta + study.
    Reinfection happens either directly (fraction f*beta/H), or after a partner
    treatment that failed (fraction (1 - epsilon)*delta/H), in which case the
    remaining hazard H' excludes delta and transmission wins with f*beta/H'.
    s and pos gate the whole expression.

    Args:
        s: probability of future sex with the partner
        pos: probability that the partner is infected
        f: coital frequency (acts per day)
        beta: per-act transmission probability, used with f as a hazard rate
        gamma: clearance rate
        sigma: partnership dissolution rate
        epsilon: probability that partner treatment is effective
        delta: rate of partner treatment
        study: rate at which the observation window closes
    Returns:
        float if every input is scalar, otherwise an array of probabilities
    Raises:
        ValueError
    """
    a = check_lengths(
        s=s, pos=pos, f=f, beta=beta, gamma=gamma, sigma=sigma,
        epsilon=epsilon, delta=delta, study=study,
    )

    transmission = a["f"] * a["beta"]
    other = a["gamma"] + a["sigma"] + a["study"]
    hazard = transmission + other + a["delta"]
    hazard_after_treatment = transmission + other

    direct = transmission / hazard
    after_failed_treatment = (1.0 - a["epsilon"]) * a["delta"] / hazard * transmission / hazard_after_treatment

    return _as_output(a["s"] * a["pos"] * (direct + after_failed_treatment))


def reinfection_probability_slope(s, pos, f, beta, gamma, sigma, delta, study) -> ArrayLike:
    """Derivative of reinfection_probability with respect to epsilon.

    The model is linear in epsilon, so epsilon drops out.
    """
    a = check_lengths(
        s=s, pos=pos, f=f, beta=beta, gamma=gamma, sigma=sigma, delta=delta, study=study,
    )

    transmission = a["f"] * a["beta"]
    other = a["gamma"] + a["sigma"] + a["study"]
    hazard = transmission + other + a["delta"]

    slope = -a["s"] * a["pos"] * (a["delta"] / hazard * transmission / (transmission + other))
    return _as_output(slope)


def slope_per_step(slope: ArrayLike, step: float = 0.1) -> ArrayLike:
    """Change in reinfection probability for an increase of `step` in epsilon."""
    return _as_output(step * np.asarray(slope, dtype=float))
