"""Hold-out evaluation: fit on part of the training ratings, score the rest."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional

import numpy as np
import pandas as pd
from sklearn import model_selection

from ..config import UserCFConfig, load_config, with_overrides
from ..data import Rating, load_stream
from ..paths import default_config_path, resolve_path
from ..user_cf.recommender import BiasAwareUserCF
from ..utils import setup_logging


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvalConfig:
    test_size: float = 0.1
    random_state: int = 42


@dataclass(frozen=True)
class EvalResult:
    n_train: int
    n_valid: int
    rmse: float
    mae: float
    baseline_rmse: float


def ratings_frame(ratings: list[Rating]) -> pd.DataFrame:
    df = pd.DataFrame(
        {
            "userId": [r.user_id for r in ratings],
            "itemId": [r.item_id for r in ratings],
            "rating": [r.rating for r in ratings],
        }
    )
    return df.astype({"userId": "int64", "itemId": "int64", "rating": "float64"})


def _frame_ratings(df: pd.DataFrame) -> list[Rating]:
    return [
        Rating(user_id=int(u), item_id=int(i), rating=float(r))
        for u, i, r in df[["userId", "itemId", "rating"]].itertuples(index=False, name=None)
    ]


def evaluate_holdout(ratings: pd.DataFrame, *, cfg: UserCFConfig, eval_cfg: EvalConfig) -> EvalResult:
    """RMSE/MAE of the model on a random hold-out split of `ratings`.

    Expected columns: userId, itemId, rating
    """
    required = {"userId", "itemId", "rating"}
    missing = required - set(ratings.columns)
    if missing:
        raise ValueError(f"ratings missing required columns: {sorted(missing)}")
    if len(ratings) < 2:
        raise ValueError(f"need at least 2 ratings to split, got {len(ratings)}")

    df_train, df_valid = model_selection.train_test_split(
        ratings,
        test_size=float(eval_cfg.test_size),
        random_state=int(eval_cfg.random_state),
    )
    # Ingest in stream order so repeated (user, item) records overwrite as in a batch run.
    df_train = df_train.sort_index(kind="mergesort")

    model = BiasAwareUserCF(cfg).fit(_frame_ratings(df_train))
    truth = df_valid["rating"].to_numpy(dtype=np.float64)
    preds = np.array(
        [model.predict(u, i) for u, i in df_valid[["userId", "itemId"]].itertuples(index=False, name=None)],
        dtype=np.float64,
    )
    base = np.full_like(truth, model.params.global_mean)

    err = preds - truth
    result = EvalResult(
        n_train=int(len(df_train)),
        n_valid=int(len(df_valid)),
        rmse=float(np.sqrt(np.mean(err**2))),
        mae=float(np.mean(np.abs(err))),
        baseline_rmse=float(np.sqrt(np.mean((base - truth) ** 2))),
    )
    logger.info(
        "Holdout: train=%d valid=%d rmse=%.4f mae=%.4f global_mean_rmse=%.4f",
        result.n_train,
        result.n_valid,
        result.rmse,
        result.mae,
        result.baseline_rmse,
    )
    return result


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Evaluate bias-aware user-user CF on a hold-out split.")
    p.add_argument("--input", type=Path, default=None, help="Record stream file; default stdin.")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML; default repo config.yaml.")
    p.add_argument("--test-size", type=float, default=0.1, help="Hold-out fraction")
    p.add_argument("--random-state", type=int, default=42, help="Split seed")
    p.add_argument("--neighbors", type=int, default=None, help="Override top-K neighbours per user")
    p.add_argument("--iterations", type=int, default=None, help="Override bias passes")
    p.add_argument("--metrics-out", type=Path, default=None, help="Write metrics JSON here")
    return p


def main(argv: Optional[list[str]] = None) -> None:
    setup_logging("INFO")
    args = build_arg_parser().parse_args(argv)

    config_path = resolve_path(args.config) if args.config is not None else default_config_path()
    cfg = with_overrides(load_config(config_path).user_cf, neighbors=args.neighbors, iterations=args.iterations)

    source: Path | IO[str] = args.input if args.input is not None else sys.stdin
    stream = load_stream(source)
    eval_cfg = EvalConfig(test_size=float(args.test_size), random_state=int(args.random_state))
    result = evaluate_holdout(ratings_frame(stream.ratings), cfg=cfg, eval_cfg=eval_cfg)

    if args.metrics_out is not None:
        args.metrics_out.parent.mkdir(parents=True, exist_ok=True)
        metrics = {
            **result.__dict__,
            "eval_config": eval_cfg.__dict__,
            "user_cf_config": cfg.__dict__,
        }
        args.metrics_out.write_text(json.dumps(metrics, indent=2, sort_keys=True) + "\n")
        logger.info("Wrote metrics to %s", args.metrics_out)


if __name__ == "__main__":
    main()
