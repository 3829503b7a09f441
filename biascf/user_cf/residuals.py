from __future__ import annotations

from typing import Dict, List, Tuple

from .bias import BiasParameters
from .store import RatingStore


ItemResiduals = Dict[int, List[Tuple[int, float]]]


def project_residuals(store: RatingStore, params: BiasParameters) -> ItemResiduals:
    """Group bias-corrected residuals by item: `item_id -> [(user_id, residual)]`.

    Items come out in ascending id order and, because the store is walked
    user by user in ascending order, users are ascending within each item.
    """
    by_item: Dict[int, List[Tuple[int, float]]] = {}
    for u, i, r in store.iter_ratings():
        by_item.setdefault(i, []).append((u, r - params.baseline(u, i)))
    return {i: by_item[i] for i in sorted(by_item)}
