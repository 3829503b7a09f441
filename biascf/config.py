"""YAML configuration for the bias-aware user CF pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml


@dataclass(frozen=True)
class UserCFConfig:
    """Hyperparameters of the bias fit, similarity and neighbour stages."""

    neighbors: int = 190
    shrink: float = 10.0
    amp_factor: float = 1.3
    iterations: int = 8
    learning_rate: float = 0.01
    regularization: float = 0.02
    default_mean: float = 3.5

    def __post_init__(self) -> None:
        if int(self.neighbors) < 1:
            raise ValueError(f"neighbors must be >= 1, got {self.neighbors}")
        if int(self.iterations) < 0:
            raise ValueError(f"iterations must be >= 0, got {self.iterations}")
        if float(self.shrink) < 0.0:
            raise ValueError(f"shrink must be >= 0, got {self.shrink}")
        if float(self.amp_factor) <= 0.0:
            raise ValueError(f"amp_factor must be > 0, got {self.amp_factor}")
        for name in ("learning_rate", "regularization", "default_mean"):
            if not math.isfinite(float(getattr(self, name))):
                raise ValueError(f"{name} must be finite, got {getattr(self, name)}")


@dataclass(frozen=True)
class OutputConfig:
    precision: int = 6
    clamp: tuple[float, float] | None = None

    def __post_init__(self) -> None:
        if int(self.precision) < 1:
            raise ValueError(f"precision must be >= 1, got {self.precision}")
        if self.clamp is not None:
            lo, hi = self.clamp
            if float(lo) > float(hi):
                raise ValueError(f"clamp bounds out of order: {lo} > {hi}")


@dataclass(frozen=True)
class AppConfig:
    user_cf: UserCFConfig = field(default_factory=UserCFConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def _section(cfg: Mapping[str, Any], name: str) -> dict[str, Any]:
    raw = cfg.get(name, {})
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"config section {name!r} must be a mapping, got: {type(raw).__name__}")
    return raw


def _known(cls: type, raw: Mapping[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - names)
    if unknown:
        raise ValueError(f"unknown {cls.__name__} keys: {unknown}")
    return dict(raw)


def config_from_mapping(cfg: Mapping[str, Any]) -> AppConfig:
    user_cf_raw = _known(UserCFConfig, _section(cfg, "user_cf"))
    output_raw = _known(OutputConfig, _section(cfg, "output"))

    user_cf = UserCFConfig(
        neighbors=int(user_cf_raw.get("neighbors", 190)),
        shrink=float(user_cf_raw.get("shrink", 10.0)),
        amp_factor=float(user_cf_raw.get("amp_factor", 1.3)),
        iterations=int(user_cf_raw.get("iterations", 8)),
        learning_rate=float(user_cf_raw.get("learning_rate", 0.01)),
        regularization=float(user_cf_raw.get("regularization", 0.02)),
        default_mean=float(user_cf_raw.get("default_mean", 3.5)),
    )

    clamp = output_raw.get("clamp")
    if clamp is not None:
        if not isinstance(clamp, (list, tuple)) or len(clamp) != 2:
            raise ValueError(f"output.clamp must be a [min, max] pair, got: {clamp!r}")
        clamp = (float(clamp[0]), float(clamp[1]))
    output = OutputConfig(precision=int(output_raw.get("precision", 6)), clamp=clamp)
    return AppConfig(user_cf=user_cf, output=output)


def load_config(path: Path | None) -> AppConfig:
    """Load `config.yaml`; `None` means built-in defaults."""
    if path is None:
        return AppConfig()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    cfg = yaml.safe_load(path.read_text())
    if cfg is None:
        return AppConfig()
    if not isinstance(cfg, dict):
        raise ValueError(f"Expected config YAML to be a mapping, got: {type(cfg)}")
    return config_from_mapping(cfg)


def with_overrides(cfg: UserCFConfig, **overrides: Any) -> UserCFConfig:
    """Apply CLI overrides, skipping the ones left unset (None)."""
    changes = {k: v for k, v in overrides.items() if v is not None}
    return replace(cfg, **changes) if changes else cfg
