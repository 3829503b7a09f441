from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .bias import BiasParameters
from .neighbors import NeighborSets
from .store import RatingStore


@dataclass(frozen=True)
class Prediction:
    user_id: int
    item_id: int
    baseline: float
    contributors: int
    weight_total: float
    value: float


class Predictor:
    """Baseline plus a similarity-weighted vote of neighbour residuals.

    Unseen users and out-of-range items degrade to the baseline; nothing is
    clamped here.
    """

    def __init__(self, store: RatingStore, params: BiasParameters, neighbors: NeighborSets) -> None:
        self.store = store
        self.params = params
        self.neighbors = neighbors

    def explain(self, user_id: int, item_id: int) -> Prediction:
        baseline = self.params.baseline(user_id, item_id)

        weighted_sum = 0.0
        weight_total = 0.0
        contributors = 0
        for entry in self.neighbors.get(user_id, ()):
            neighbor_rating = self.store.rating_of(entry.neighbor_id, item_id)
            if neighbor_rating is None:
                continue
            residual = neighbor_rating - self.params.baseline(entry.neighbor_id, item_id)
            weighted_sum += residual * entry.similarity
            weight_total += abs(entry.similarity)
            contributors += 1

        value = baseline
        if weight_total > 0.0:
            value += weighted_sum / weight_total
        return Prediction(
            user_id=user_id,
            item_id=item_id,
            baseline=baseline,
            contributors=contributors,
            weight_total=weight_total,
            value=value,
        )

    def predict(self, user_id: int, item_id: int) -> float:
        return self.explain(user_id, item_id).value

    def predict_many(self, queries: Iterable[tuple[int, int]]) -> List[float]:
        return [self.predict(u, i) for u, i in queries]
