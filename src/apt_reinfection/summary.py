# src/apt_reinfection/summary.py
"""
Descriptive statistics for result arrays.

An empty array is a valid result (e.g. a posterior subset that nothing fell into).
Its summary has "empty": True and None for every statistic, mirroring how
trajectory matching reports pmo_fraction=None when there are no matches.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

# Same probabilities as R's summary()/quantile() defaults
DEFAULT_PROBS = (0.0, 0.25, 0.5, 0.75, 1.0)


class EmptySubsetError(ValueError):
    """Raised when a statistic is required from an array with no data."""


def summarise(values, probs: Sequence[float] = DEFAULT_PROBS) -> Dict[str, Any]:
    """
    Summary of a 1D array.

    Returns
    -------
    dict with keys:
      - "n": int, number of values
      - "empty": bool, True if n == 0
      - "mean", "min", "max": float or None (None if empty)
      - "quantiles": dict prob -> float, or None if empty. Linear interpolation
        (numpy default, same as R type 7).
    """
    arr = np.asarray(values, dtype=float).ravel()
    n = int(arr.size)

    if n == 0:
        return {"n": 0, "empty": True, "mean": None, "min": None, "max": None, "quantiles": None}

    qs = np.quantile(arr, probs)
    return {
        "n": n,
        "empty": False,
        "mean": float(arr.mean()),
        "min": float(arr.min()),
        "max": float(arr.max()),
        "quantiles": {float(p): float(q) for p, q in zip(probs, qs)},
    }


def require_data(summary: Mapping[str, Any], name: str = "values") -> Mapping[str, Any]:
    """Return the summary, or raise EmptySubsetError if it describes no data."""
    if summary.get("empty", summary.get("n", 0) == 0):
        raise EmptySubsetError(f"No data in '{name}': summary statistics are undefined")
    return summary


def summary_table(named_values: Mapping[str, Any], probs: Sequence[float] = DEFAULT_PROBS) -> pd.DataFrame:
    """One row per named array; empty arrays give NaN statistics with n == 0."""
    rows = []
    for name, values in named_values.items():
        s = summarise(values, probs=probs)
        row: Dict[str, Optional[float]] = {"name": name, "n": s["n"], "mean": s["mean"]}
        for p in probs:
            row[f"q{p:g}"] = None if s["empty"] else s["quantiles"][float(p)]
        rows.append(row)
    columns = ["name", "n", "mean"] + [f"q{p:g}" for p in probs]
    df = pd.DataFrame(rows, columns=columns).set_index("name")
    # None -> NaN for numeric columns
    return df.apply(pd.to_numeric)
