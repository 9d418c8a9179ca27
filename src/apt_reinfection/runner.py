#!/usr/bin/env python3
# src/apt_reinfection/runner.py: concise runner
#
#   python -m apt_reinfection.runner run --seed 652156 --samples 100000 --out results

import argparse
import logging
import time
from pathlib import Path
from typing import Optional

import pandas as pd

from . import trial_data as td
from .analysis import AnalysisConfig, AnalysisResult, run_analysis
from .simulate.sample_parameters import SamplerConfig

logger = logging.getLogger(__name__)


def format_summary(name: str, s: dict) -> str:
    if s["empty"]:
        return f"{name}: no data (n=0)"
    qs = ", ".join(f"{p:g}: {v:.4f}" for p, v in s["quantiles"].items())
    return f"{name}: n={s['n']}, mean={s['mean']:.4f}, quantiles [{qs}]"


def log_result(result: AnalysisResult) -> None:
    slope = ", ".join(f"{p:g}: {v:.4f}" for p, v in result.slope_quantiles().items())
    logger.info("Change in reinfection per %g of epsilon: [%s]", result.config.slope_step, slope)

    for name, s in result.summaries().items():
        logger.info(format_summary(name, s))

    for eps, s in result.reported_sweep_columns().items():
        logger.info(format_summary(f"reinfection at epsilon={eps:g}", s))


def write_tables(result: AnalysisResult, out_dir: Path) -> None:
    """Write the summary, sweep quantile, posterior and difference tables as CSV."""
    out_dir.mkdir(parents=True, exist_ok=True)
    result.summary_table().to_csv(out_dir / "summary.csv")
    result.sweep.quantiles().to_csv(out_dir / "sweep_quantiles.csv")
    result.posterior_table().to_csv(out_dir / "posterior_epsilon.csv", index=False)
    pd.DataFrame({"difference": result.comparison.difference}).to_csv(
        out_dir / "epsilon_difference.csv", index=False
    )
    logger.info("Tables written to %s", out_dir)


def main(argv: Optional[list] = None):
    p = argparse.ArgumentParser(description="Reinfection analysis runner")
    sub = p.add_subparsers(dest="cmd", required=True)

    # ---------- run ----------
    run_p = sub.add_parser("run", help="Sample, filter and sweep; log summaries")
    run_p.add_argument("--seed", type=int, default=td.DEFAULT_SEED,
                    metavar="SEED",
                    help=f"RNG seed for reproducibility (default: {td.DEFAULT_SEED})")
    run_p.add_argument("-l", "--samples", dest="l", type=int, default=td.DEFAULT_SAMPLE_SIZE,
                    metavar="L",
                    help=f"Number of parameter vectors (default: {td.DEFAULT_SAMPLE_SIZE})")
    run_p.add_argument("--step", type=float, default=td.EPSILON_STEP,
                    metavar="STEP",
                    help=f"Epsilon grid step of the sensitivity sweep (default: {td.EPSILON_STEP})")
    run_p.add_argument("--confidence", type=float, default=td.DEFAULT_CONFIDENCE_LEVEL,
                    metavar="LEVEL",
                    help=f"Confidence level of the acceptance intervals (default: {td.DEFAULT_CONFIDENCE_LEVEL})")
    run_p.add_argument("--chunk-size", type=int, default=None,
                    metavar="ROWS",
                    help="Evaluate the sweep in blocks of ROWS ensemble members")
    run_p.add_argument("--out", default=None,
                    metavar="DIR",
                    help="Directory for CSV tables (default: do not write)")
    run_p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = p.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")
    t0 = time.perf_counter()

    if args.cmd == "run":
        cfg = AnalysisConfig(
            sampler=SamplerConfig(l=args.l, seed=args.seed),
            confidence_level=args.confidence,
            epsilon_step=args.step,
            chunk_size=args.chunk_size,
        )
        result = run_analysis(cfg)
        log_result(result)
        if args.out:
            write_tables(result, Path(args.out))

    logger.info("Done in %.2fs", time.perf_counter() - t0)


if __name__ == "__main__":
    main()
