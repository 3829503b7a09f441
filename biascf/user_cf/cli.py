from __future__ import annotations

import argparse
import sys
from pathlib import Path

import pandas as pd

from ..config import load_config, with_overrides
from ..data import load_stream
from ..paths import default_config_path, resolve_path
from ..utils import setup_logging
from .recommender import BiasAwareUserCF


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Inspect a user's neighbours and predictions (bias-aware user CF)")
    p.add_argument("--user-id", type=int, required=True, help="userId as it appears in the training stream")
    p.add_argument("--items", type=int, nargs="*", default=[], help="itemIds to predict for the user")
    p.add_argument("--top-similar", type=int, default=10, help="How many similar users to show")
    p.add_argument("--input", type=Path, default=None, help="Record stream file; default stdin")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    p.add_argument("--neighbors", type=int, default=None, help="Override top-K neighbours per user")
    return p


def main(argv: list[str] | None = None) -> None:
    setup_logging("WARNING")
    args = build_arg_parser().parse_args(argv)

    config_path = resolve_path(args.config) if args.config is not None else default_config_path()
    cfg = with_overrides(load_config(config_path).user_cf, neighbors=args.neighbors)
    stream = load_stream(args.input if args.input is not None else sys.stdin)
    rec = BiasAwareUserCF(cfg).fit(stream.ratings)

    uid = int(args.user_id)
    if not rec.has_user(uid):
        print(f"userId={uid} has no training ratings; predictions fall back to the item baseline.")

    sims = rec.similar_users(uid, top_n=int(args.top_similar))
    print("\n=== Similar Users ===")
    if sims:
        df_s = pd.DataFrame([s.__dict__ for s in sims])
        print(df_s.to_string(index=False))
    else:
        print("No similar users found.")

    if args.items:
        preds = [rec.explain(uid, int(i)) for i in args.items]
        print("\n=== Predictions ===")
        df_p = pd.DataFrame([p.__dict__ for p in preds])
        print(df_p.to_string(index=False))


if __name__ == "__main__":
    main()
