from __future__ import annotations

from pathlib import Path

import pytest

from biascf.config import AppConfig, UserCFConfig, load_config, with_overrides


def test_defaults_without_a_config_file() -> None:
    cfg = load_config(None)
    assert cfg == AppConfig()
    assert cfg.user_cf.neighbors == 190
    assert cfg.user_cf.shrink == 10.0
    assert cfg.user_cf.amp_factor == 1.3
    assert cfg.user_cf.iterations == 8
    assert cfg.user_cf.learning_rate == 0.01
    assert cfg.user_cf.regularization == 0.02
    assert cfg.output.precision == 6
    assert cfg.output.clamp is None


def test_yaml_sections_are_parsed(tmp_path) -> None:
    p = tmp_path / "config.yaml"
    p.write_text("user_cf:\n  neighbors: 25\n  iterations: 3\noutput:\n  precision: 4\n  clamp: [1, 5]\n")
    cfg = load_config(p)

    assert cfg.user_cf.neighbors == 25
    assert cfg.user_cf.iterations == 3
    assert cfg.user_cf.shrink == 10.0
    assert cfg.output.precision == 4
    assert cfg.output.clamp == (1.0, 5.0)


def test_repository_config_matches_defaults() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    cfg = load_config(repo_root / "config.yaml")
    assert cfg.user_cf == UserCFConfig()


@pytest.mark.parametrize(
    "text",
    [
        "- a\n- b\n",
        "user_cf: 3\n",
        "user_cf:\n  neighbours: 10\n",
        "user_cf:\n  neighbors: 0\n",
        "user_cf:\n  iterations: -1\n",
        "output:\n  clamp: [5, 1]\n",
        "output:\n  clamp: 3\n",
    ],
)
def test_invalid_config_is_rejected(tmp_path, text) -> None:
    p = tmp_path / "config.yaml"
    p.write_text(text)
    with pytest.raises(ValueError):
        load_config(p)


def test_missing_config_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_overrides_skip_unset_values() -> None:
    base = UserCFConfig()
    assert with_overrides(base, neighbors=None, shrink=None) is base

    changed = with_overrides(base, neighbors=5, shrink=None, amp_factor=2.0)
    assert changed.neighbors == 5
    assert changed.amp_factor == 2.0
    assert changed.shrink == base.shrink
