# src/apt_reinfection/analysis.py
"""
End-to-end reinfection analysis.

sample -> reinfection (control, intervention) -> slope -> posterior filters
       -> sensitivity sweep -> posterior comparison

Every result is kept on the returned AnalysisResult so that reporting and
plotting code can pick up the arrays by name.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from . import trial_data as td
from .analytic.transmission import reinfection_probability, reinfection_probability_slope, slope_per_step
from .compare.comparative import DEFAULT_BINS, ComparisonResult, compare_posteriors
from .matching.posterior_filter import PosteriorSubset, posterior_from_counts
from .sensitivity.sweep import SensitivityGrid, epsilon_grid, sensitivity_sweep
from .simulate.sample_parameters import ParameterEnsemble, SamplerConfig, make_rng, sample_parameters
from .summary import DEFAULT_PROBS, summarise, summary_table

logger = logging.getLogger(__name__)


@dataclass
class AnalysisConfig:
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    confidence_level: float = td.DEFAULT_CONFIDENCE_LEVEL
    outcome_control: Tuple[int, int] = td.OUTCOME_CONTROL
    outcome_intervention: Tuple[int, int] = td.OUTCOME_INTERVENTION
    outcome_apt_accepted: Tuple[int, int] = td.OUTCOME_APT_ACCEPTED
    epsilon_step: float = td.EPSILON_STEP
    sweep_protocol: str = "control"
    chunk_size: Optional[int] = None
    slope_step: float = td.SLOPE_STEP
    slope_probs: Tuple[float, ...] = td.SLOPE_PROBS
    reported_epsilon: Tuple[float, ...] = td.REPORTED_EPSILON
    histogram_bins: int = DEFAULT_BINS


@dataclass
class AnalysisResult:
    config: AnalysisConfig
    ensemble: ParameterEnsemble
    reinfection_control: np.ndarray
    reinfection_intervention: np.ndarray
    slope: np.ndarray
    posteriors: Dict[str, PosteriorSubset]
    sweep: SensitivityGrid
    comparison: ComparisonResult

    @property
    def slope_per_step(self) -> np.ndarray:
        return slope_per_step(self.slope, self.config.slope_step)

    def slope_quantiles(self) -> Dict[float, float]:
        """Quantiles of the change in reinfection for one slope_step of epsilon."""
        qs = np.quantile(self.slope_per_step, self.config.slope_probs)
        return {float(p): float(q) for p, q in zip(self.config.slope_probs, qs)}

    def reported_sweep_columns(self) -> Dict[float, Dict[str, Any]]:
        """Summaries of the sweep at config.reported_epsilon; values off the grid are skipped."""
        out = {}
        for eps in self.config.reported_epsilon:
            try:
                out[eps] = summarise(self.sweep.column(eps))
            except KeyError:
                logger.warning("Reported epsilon %g is not on the sweep grid, skipped", eps)
        return out

    def named_arrays(self) -> Dict[str, np.ndarray]:
        """Flat mapping of every reported array."""
        arrays = {
            "reinfection_control": self.reinfection_control,
            "reinfection_intervention": self.reinfection_intervention,
            "slope_per_step": self.slope_per_step,
        }
        for name, subset in self.posteriors.items():
            arrays[f"epsilon_{name}"] = subset.epsilon
            arrays[f"reinfection_{name}_subset"] = subset.reinfection
        arrays["epsilon_difference"] = self.comparison.difference
        return arrays

    def summaries(self, probs: Sequence[float] = DEFAULT_PROBS) -> Dict[str, Dict[str, Any]]:
        return {name: summarise(values, probs=probs) for name, values in self.named_arrays().items()}

    def summary_table(self, probs: Sequence[float] = DEFAULT_PROBS) -> pd.DataFrame:
        return summary_table(self.named_arrays(), probs=probs)

    def posterior_table(self) -> pd.DataFrame:
        """Accepted epsilon values in long format (posterior, index, epsilon, reinfection)."""
        frames = [
            pd.DataFrame({
                "posterior": name,
                "index": subset.indices,
                "epsilon": subset.epsilon,
                "reinfection": subset.reinfection,
            })
            for name, subset in self.posteriors.items()
        ]
        return pd.concat(frames, ignore_index=True)


def compute_reinfection(ensemble: ParameterEnsemble) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Control and intervention reinfection probabilities, and the control slope."""
    reinf_c = reinfection_probability(**ensemble.parameters("control"))
    reinf_i = reinfection_probability(**ensemble.parameters("intervention"))
    slope = reinfection_probability_slope(**ensemble.slope_parameters("control"))
    return reinf_c, reinf_i, slope


def run_analysis(cfg: Optional[AnalysisConfig] = None, rng: Optional[np.random.Generator] = None) -> AnalysisResult:
    """Run the whole analysis. rng defaults to a generator seeded with cfg.sampler.seed."""
    if cfg is None:
        cfg = AnalysisConfig()
    if rng is None:
        rng = make_rng(cfg.sampler.seed)

    ensemble = sample_parameters(cfg.sampler, rng=rng)
    logger.info("Sampled %d parameter vectors (seed=%s)", len(ensemble), cfg.sampler.seed)

    reinf_c, reinf_i, slope = compute_reinfection(ensemble)
    logger.info("Mean reinfection: control %.4f, intervention %.4f", reinf_c.mean(), reinf_i.mean())

    # control output against the control outcome, intervention output against both
    # the intervention outcome and the APT-accepted subgroup
    targets = {
        "control": (reinf_c, cfg.outcome_control),
        "intervention": (reinf_i, cfg.outcome_intervention),
        "apt_accepted": (reinf_i, cfg.outcome_apt_accepted),
    }
    posteriors = {
        name: posterior_from_counts(reinf, k, n, ensemble.epsilon, name=name,
                                    confidence_level=cfg.confidence_level)
        for name, (reinf, (k, n)) in targets.items()
    }

    sweep = sensitivity_sweep(
        ensemble,
        grid=epsilon_grid(cfg.epsilon_step),
        protocol=cfg.sweep_protocol,
        chunk_size=cfg.chunk_size,
    )

    comparison = compare_posteriors(posteriors["control"], posteriors["intervention"], bins=cfg.histogram_bins)

    return AnalysisResult(
        config=cfg,
        ensemble=ensemble,
        reinfection_control=reinf_c,
        reinfection_intervention=reinf_i,
        slope=slope,
        posteriors=posteriors,
        sweep=sweep,
        comparison=comparison,
    )
