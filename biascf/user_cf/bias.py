from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping

import numpy as np

from .store import RatingStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BiasParameters:
    global_mean: float
    user_bias: Mapping[int, float]
    item_bias: np.ndarray

    @property
    def max_item_id(self) -> int:
        return int(self.item_bias.shape[0]) - 1

    def item_bias_of(self, item_id: int) -> float:
        # Out-of-range items carry no bias.
        if 0 <= item_id < self.item_bias.shape[0]:
            return float(self.item_bias[item_id])
        return 0.0

    def baseline(self, user_id: int, item_id: int) -> float:
        """global mean + user bias (0 if unseen) + item bias (0 if out of range)."""
        return self.global_mean + self.user_bias.get(user_id, 0.0) + self.item_bias_of(item_id)


def fit_biases(
    store: RatingStore,
    *,
    iterations: int = 8,
    learning_rate: float = 0.01,
    regularization: float = 0.02,
    default_mean: float = 3.5,
) -> BiasParameters:
    """Fit global mean plus per-user/per-item additive biases.

    Each pass walks every rating in store order (users ascending, items
    ascending) and updates both biases in place, so later ratings in a pass
    see the updates made by earlier ones. The iteration count is fixed.
    """
    global_mean = store.global_mean(default=default_mean)
    ratings = list(store.iter_ratings())

    user_bias: Dict[int, float] = {u: 0.0 for u in store.users()}
    # Plain list for the hot loop; frozen into a numpy array afterwards.
    item_bias = [0.0] * (store.max_item_id + 1)

    alpha = float(learning_rate)
    reg = float(regularization)
    for it in range(int(iterations)):
        sq_err = 0.0
        for u, i, r in ratings:
            bu = user_bias[u]
            bi = item_bias[i]
            err = r - (global_mean + bu + bi)
            user_bias[u] = bu + alpha * (err - reg * bu)
            item_bias[i] = bi + alpha * (err - reg * bi)
            sq_err += err * err

        if ratings and logger.isEnabledFor(logging.DEBUG):
            logger.debug("Bias pass=%d train_rmse=%.6f", it + 1, math.sqrt(sq_err / len(ratings)))

    item_arr = np.asarray(item_bias, dtype=np.float64)
    item_arr.setflags(write=False)
    logger.info(
        "Biases fitted: global_mean=%.4f users=%d items=%d passes=%d",
        global_mean,
        len(user_bias),
        item_arr.shape[0],
        int(iterations),
    )
    return BiasParameters(global_mean=global_mean, user_bias=MappingProxyType(user_bias), item_bias=item_arr)
