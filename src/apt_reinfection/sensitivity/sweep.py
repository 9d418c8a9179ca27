# src/apt_reinfection/sensitivity/sweep.py
"""
Reinfection probability as a function of a fixed treatment efficacy.

For every epsilon on a grid the model is re-evaluated over the whole ensemble,
reusing the sampled s, pos, f, beta, gamma, sigma, delta and study. The result is
an (l, g) matrix: row i is ensemble member i, column j is epsilon_grid[j].
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging

import numpy as np
import pandas as pd

from .. import trial_data as td
from ..analytic.transmission import reinfection_probability
from ..simulate.sample_parameters import ParameterEnsemble
from ..summary import DEFAULT_PROBS

logger = logging.getLogger(__name__)

# grid values are rounded so that e.g. 0.6 is found exactly
GRID_DECIMALS = 10


def epsilon_grid(step: float = td.EPSILON_STEP, low: float = 0.0, high: float = 1.0) -> np.ndarray:
    """Inclusive grid low, low + step, ..., high (0, 0.05, ..., 1 by default)."""
    if step <= 0:
        raise ValueError("step must be > 0")
    if low > high:
        raise ValueError("low must be <= high")
    n_steps = int(round((high - low) / step))
    grid = np.round(low + step * np.arange(n_steps + 1), GRID_DECIMALS)
    return grid[grid <= high + 10 ** -GRID_DECIMALS]


@dataclass(frozen=True)
class SensitivityGrid:
    epsilon_grid: np.ndarray
    matrix: np.ndarray
    protocol: str = "control"

    @property
    def shape(self):
        return self.matrix.shape

    def column_index(self, value: float) -> int:
        hits = np.nonzero(np.isclose(self.epsilon_grid, value, rtol=0.0, atol=1e-9))[0]
        if hits.size == 0:
            raise KeyError(f"epsilon={value} is not on the sensitivity grid")
        return int(hits[0])

    def column(self, value: float) -> np.ndarray:
        """Reinfection probabilities of the whole ensemble at one grid value."""
        return self.matrix[:, self.column_index(value)]

    def quantiles(self, probs: Sequence[float] = DEFAULT_PROBS) -> pd.DataFrame:
        """Per-column quantiles, indexed by epsilon (columns are the probabilities)."""
        qs = np.quantile(self.matrix, probs, axis=0)
        df = pd.DataFrame(qs.T, index=pd.Index(self.epsilon_grid, name="epsilon"),
                          columns=[float(p) for p in probs])
        return df

    def mean(self) -> pd.Series:
        return pd.Series(self.matrix.mean(axis=0), index=pd.Index(self.epsilon_grid, name="epsilon"),
                         name="mean")


def sensitivity_sweep(
    ensemble: ParameterEnsemble,
    grid: Optional[Sequence[float]] = None,
    protocol: str = "control",
    chunk_size: Optional[int] = None,
) -> SensitivityGrid:
    """Evaluate the model at each fixed epsilon in `grid`.

    chunk_size evaluates blocks of rows at a time to bound temporaries; the model is
    elementwise so the matrix is identical either way.
    """
    grid_arr = epsilon_grid() if grid is None else np.asarray(grid, dtype=float)
    if grid_arr.ndim != 1 or grid_arr.size == 0:
        raise ValueError("grid must be a non-empty 1D sequence")
    if np.any((grid_arr < 0.0) | (grid_arr > 1.0)):
        raise ValueError("epsilon grid values must lie in [0, 1]")
    if chunk_size is not None and chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")

    l = len(ensemble)
    step = l if chunk_size is None else int(chunk_size)
    matrix = np.empty((l, grid_arr.size), dtype=float)
    logger.debug("Sensitivity sweep matrix %s (%.1f MB)", matrix.shape, matrix.nbytes / 1e6)

    params = ensemble.parameters(protocol)
    for start in range(0, l, step):
        stop = min(start + step, l)
        block = {k: (v[start:stop] if isinstance(v, np.ndarray) else v) for k, v in params.items()}
        for j, eps in enumerate(grid_arr):
            block["epsilon"] = float(eps)
            matrix[start:stop, j] = reinfection_probability(**block)

    matrix.setflags(write=False)
    grid_arr = grid_arr.copy()
    grid_arr.setflags(write=False)
    logger.info("Sensitivity sweep done: %d members x %d epsilon values (%s)", l, grid_arr.size, protocol)
    return SensitivityGrid(epsilon_grid=grid_arr, matrix=matrix, protocol=protocol)
