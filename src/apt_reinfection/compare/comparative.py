# src/apt_reinfection/compare/comparative.py
"""
Difference between two posterior epsilon samples.

Both samples are truncated to the shorter length and subtracted position by
position. This pairs independently filtered draws by their order, not by any
matching.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple
import logging

import numpy as np

from ..matching.posterior_filter import PosteriorSubset
from ..summary import DEFAULT_PROBS, summarise

logger = logging.getLogger(__name__)

DEFAULT_BINS = 20


@dataclass(frozen=True)
class ComparisonResult:
    baseline: str
    other: str
    n_paired: int
    difference: np.ndarray
    summary: Dict[str, Any]
    histogram: Optional[Tuple[np.ndarray, np.ndarray]]

    @property
    def is_empty(self) -> bool:
        return self.n_paired == 0


def paired_difference(baseline, other) -> np.ndarray:
    """other[:n] - baseline[:n] with n the shorter length."""
    a = np.asarray(baseline, dtype=float).ravel()
    b = np.asarray(other, dtype=float).ravel()
    n = min(a.size, b.size)
    return b[:n] - a[:n]


def compare_posteriors(
    baseline: PosteriorSubset,
    other: PosteriorSubset,
    bins: int = DEFAULT_BINS,
    probs: Sequence[float] = DEFAULT_PROBS,
) -> ComparisonResult:
    """Compare other.epsilon against baseline.epsilon (e.g. intervention vs control)."""
    diff = paired_difference(baseline.epsilon, other.epsilon)
    if diff.size == 0:
        logger.warning("Cannot compare '%s' with '%s': at least one posterior is empty",
                       other.name, baseline.name)
        histogram = None
    else:
        histogram = np.histogram(diff, bins=bins)

    return ComparisonResult(
        baseline=baseline.name,
        other=other.name,
        n_paired=int(diff.size),
        difference=diff,
        summary=summarise(diff, probs=probs),
        histogram=histogram,
    )
