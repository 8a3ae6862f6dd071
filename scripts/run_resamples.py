#!/usr/bin/env python
"""
Resample a single model on a CSV dataset and report its performance.

Fits the chosen model with a formula-style preprocessor on every V-fold
split and writes per-split and summarised metrics.

Usage:
    python scripts/run_resamples.py data.csv --outcome y
    python scripts/run_resamples.py data.csv --outcome y --model xgboost --v 5
    python scripts/run_resamples.py data.csv --outcome y --n-jobs 4 --save-predictions

Results saved to resamples/resamples_{timestamp}/.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import numpy as np
import pandas as pd
from joblib import parallel_config
from sklearn.preprocessing import StandardScaler

from foldfit.config import ControlPolicy, ResampleConfig, XGBoostConfig
from foldfit.data import vfold_cv
from foldfit.fit_resamples import fit_resamples
from foldfit.models import (
    LogisticRegressionConfig,
    build_logistic_regression,
    build_xgb_classifier,
)
from foldfit.preprocessing import FeaturePipeline, RecipePreprocessor
from foldfit.resampling import collect_metrics, collect_notes, collect_predictions
from foldfit.utils import configure_logging


def convert_numpy(obj):
    """Convert numpy types to Python types for JSON serialization."""
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, (np.integer, np.floating)):
        return float(obj)
    elif isinstance(obj, dict):
        return {k: convert_numpy(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_numpy(i) for i in obj]
    return obj


def build_model(name: str):
    if name == "logistic":
        return build_logistic_regression(LogisticRegressionConfig())
    if name == "xgboost":
        return build_xgb_classifier(XGBoostConfig.from_yaml())
    raise ValueError(f"Unknown model: {name}")


def main():
    parser = argparse.ArgumentParser(
        description="Fit one model across V-fold resamples"
    )
    parser.add_argument("data", type=Path, help="CSV file with outcome and predictors")
    parser.add_argument("--outcome", type=str, default="y", help="Outcome column")
    parser.add_argument(
        "--model", choices=["logistic", "xgboost"], default="logistic", help="Model to fit"
    )
    parser.add_argument(
        "--scale", action="store_true", help="Standardize predictors on each training fold"
    )
    parser.add_argument("--v", type=int, help="Number of folds (overrides config)")
    parser.add_argument("--repeats", type=int, help="Number of repeats (overrides config)")
    parser.add_argument("--seed", type=int, help="Random seed (overrides config)")
    parser.add_argument(
        "--n-jobs", type=int, default=1, help="Parallel workers made available to the run"
    )
    parser.add_argument(
        "--save-predictions", action="store_true", help="Write per-row validation predictions"
    )
    parser.add_argument(
        "--name", type=str, default="", help="Optional run name suffix"
    )
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args()

    configure_logging(args.log_level)
    log = logging.getLogger("run_resamples")

    # Load configs from YAML
    resample_cfg = ResampleConfig.from_yaml()
    control = ControlPolicy.from_yaml()

    # CLI overrides
    overrides = {}
    if args.v is not None:
        overrides["v"] = args.v
    if args.repeats is not None:
        overrides["repeats"] = args.repeats
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if overrides:
        resample_cfg = ResampleConfig(**{**resample_cfg.model_dump(), **overrides})
    if args.save_predictions:
        control = control.model_copy(update={"save_predictions": True})

    data = pd.read_csv(args.data)
    folds = vfold_cv(
        data,
        v=resample_cfg.v,
        repeats=resample_cfg.repeats,
        strata=resample_cfg.strata,
        random_seed=resample_cfg.random_seed,
    )

    if args.scale:
        preprocessor = RecipePreprocessor(StandardScaler(), outcome=args.outcome)
    else:
        preprocessor = FeaturePipeline(outcome=args.outcome)

    # Create output directory
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_name = f"resamples_{timestamp}"
    if args.name:
        run_name += f"_{args.name}"
    out_dir = PROJECT_ROOT / "resamples" / run_name
    out_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 70)
    print("Resampled model evaluation")
    print("=" * 70)
    print(f"  Data: {args.data} ({len(data)} rows)")
    print(f"  Model: {args.model}")
    print(f"  Resamples: {folds.label}")
    print(f"  Output: {out_dir}")
    print("=" * 70)

    with parallel_config(n_jobs=args.n_jobs):
        result = fit_resamples(
            build_model(args.model),
            folds,
            preprocessor=preprocessor,
            control=control,
        )

    summary = collect_metrics(result)
    print(summary.to_string(index=False))
    if result.n_failed:
        log.warning("Failed splits: %s", result.failed_ids)

    collect_metrics(result, summarize=False).to_csv(out_dir / "metrics.csv", index=False)
    summary.to_csv(out_dir / "summary.csv", index=False)
    collect_notes(result).to_csv(out_dir / "notes.csv", index=False)
    if control.save_predictions:
        collect_predictions(result).to_csv(out_dir / "predictions.csv", index=False)

    # Save config
    config = {
        "data": str(args.data),
        "outcome": args.outcome,
        "model": args.model,
        "scale": args.scale,
        "n_jobs": args.n_jobs,
        "resample_cfg": resample_cfg.model_dump(),
        "control": control.model_dump(exclude={"extract"}),
        "n_failed": result.n_failed,
    }
    with open(out_dir / "config.json", "w") as f:
        json.dump(convert_numpy(config), f, indent=2)

    print(f"\n{'=' * 70}")
    print(f"Results saved to: {out_dir}")
    print(f"{'=' * 70}")


if __name__ == "__main__":
    main()
