from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import IO, Iterable, List, Optional

from ..config import AppConfig, OutputConfig, load_config, with_overrides
from ..data import load_stream
from ..paths import default_config_path, resolve_path
from ..user_cf.recommender import BiasAwareUserCF
from ..utils import StageTimer, setup_logging


logger = logging.getLogger(__name__)


def format_prediction(value: float, output: OutputConfig) -> str:
    if output.clamp is not None:
        lo, hi = output.clamp
        value = min(max(value, lo), hi)
    return f"{value:.{int(output.precision)}g}"


def write_predictions(values: Iterable[float], out: IO[str], output: OutputConfig) -> int:
    n = 0
    for v in values:
        out.write(format_prediction(v, output) + "\n")
        n += 1
    return n


def run_predict(
    *,
    source: Path | IO[str],
    sink: IO[str],
    cfg: AppConfig,
) -> List[float]:
    """Fit on the training part of `source`, answer its queries into `sink`."""
    timer = StageTimer()
    stream = load_stream(source)
    logger.info("Read ratings=%d queries=%d", len(stream.ratings), len(stream.queries))

    model = BiasAwareUserCF(cfg.user_cf).fit(stream.ratings)
    predictions = model.predict_many(stream.queries)
    write_predictions(predictions, sink, cfg.output)
    sink.flush()

    logger.info("Time elapsed: %.3f s", timer.elapsed())
    return predictions


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Predict ratings with bias-aware user-user CF.")
    p.add_argument("--input", type=Path, default=None, help="Record stream file; default stdin.")
    p.add_argument("--output", type=Path, default=None, help="Prediction file; default stdout.")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML; default repo config.yaml.")
    p.add_argument("--neighbors", type=int, default=None, help="Override top-K neighbours per user")
    p.add_argument("--shrink", type=float, default=None, help="Override significance shrinkage")
    p.add_argument("--amp-factor", type=float, default=None, help="Override case amplification exponent")
    p.add_argument("--iterations", type=int, default=None, help="Override bias passes")
    p.add_argument("--learning-rate", type=float, default=None, help="Override bias learning rate")
    p.add_argument("--regularization", type=float, default=None, help="Override bias regularization")
    p.add_argument("--precision", type=int, default=None, help="Significant digits per prediction")
    p.add_argument(
        "--clamp",
        type=float,
        nargs=2,
        metavar=("MIN", "MAX"),
        default=None,
        help="Clamp written predictions to [MIN, MAX].",
    )
    p.add_argument("--log-level", type=str, default="INFO", help="Logging level (stderr).")
    return p


def resolve_config(args: argparse.Namespace) -> AppConfig:
    config_path = resolve_path(args.config) if args.config is not None else default_config_path()
    cfg = load_config(config_path)
    if config_path is not None:
        logger.info("Loaded config from %s", config_path)

    user_cf = with_overrides(
        cfg.user_cf,
        neighbors=args.neighbors,
        shrink=args.shrink,
        amp_factor=args.amp_factor,
        iterations=args.iterations,
        learning_rate=args.learning_rate,
        regularization=args.regularization,
    )
    output = OutputConfig(
        precision=args.precision if args.precision is not None else cfg.output.precision,
        clamp=tuple(args.clamp) if args.clamp is not None else cfg.output.clamp,
    )
    return AppConfig(user_cf=user_cf, output=output)


def main(argv: Optional[list[str]] = None) -> None:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level.upper())
    cfg = resolve_config(args)

    source: Path | IO[str] = args.input if args.input is not None else sys.stdin
    if args.output is None:
        run_predict(source=source, sink=sys.stdout, cfg=cfg)
        return

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with args.output.open("w", encoding="utf-8") as sink:
        run_predict(source=source, sink=sink, cfg=cfg)
    logger.info("Wrote predictions to %s", args.output)


if __name__ == "__main__":
    main()
