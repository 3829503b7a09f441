from __future__ import annotations

from pathlib import Path
from typing import Optional

_ROOT_MARKERS = ("config.yaml", ".git")


def _find_root_from(start: Path) -> Optional[Path]:
    if start.is_file():
        start = start.parent
    for candidate in (start, *start.parents):
        if (candidate / "config.yaml").is_file() or (candidate / ".git").exists():
            return candidate
    return None


def get_repo_root() -> Path:
    """Return repo root by searching upwards for `config.yaml` or `.git`.

    The working directory is searched first, then the installed package location.
    """
    for start in (Path.cwd().resolve(), Path(__file__).resolve().parent):
        root = _find_root_from(start)
        if root is not None:
            return root
    raise FileNotFoundError(f"Could not locate repo root (expected one of {_ROOT_MARKERS}).")


def default_config_path() -> Optional[Path]:
    """Repository `config.yaml`, or None when running outside a checkout."""
    try:
        path = get_repo_root() / "config.yaml"
    except FileNotFoundError:
        return None
    return path if path.is_file() else None


def resolve_path(path: Path | str) -> Path:
    """Resolve a relative path against the current directory."""
    return Path(path).resolve()
