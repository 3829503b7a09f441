from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure `import biascf...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from biascf.data import Rating  # noqa: E402


def make_ratings(n_users: int, n_items: int, density: float, seed: int) -> list[Rating]:
    """Distinct (user, item) pairs with integer star ratings 1..5."""
    rng = np.random.default_rng(seed)
    out: list[Rating] = []
    for u in range(1, n_users + 1):
        for i in range(1, n_items + 1):
            if rng.random() < density:
                out.append(Rating(user_id=u, item_id=i, rating=float(rng.integers(1, 6))))
    return out


@pytest.fixture(scope="session")
def random_ratings() -> list[Rating]:
    return make_ratings(n_users=30, n_items=20, density=0.4, seed=7)
