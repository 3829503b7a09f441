from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..config import UserCFConfig
from ..data import Query, Rating
from ..utils import StageTimer
from .bias import BiasParameters, fit_biases
from .neighbors import NeighborSets, select_neighbors
from .predictor import Prediction, Predictor
from .residuals import project_residuals
from .similarity import accumulate_pairs, derive_similarities
from .store import RatingStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimilarUser:
    userId: int
    similarity: float
    common_rated: int


class BiasAwareUserCF:
    """Bias-corrected, significance-weighted, case-amplified user-user CF.

    `fit` runs the stages in order, each one finished before the next starts:
    ingest -> bias fit -> residuals -> pair accumulation -> top-K neighbours.
    """

    def __init__(self, cfg: Optional[UserCFConfig] = None) -> None:
        self.cfg = cfg if cfg is not None else UserCFConfig()
        self.store: Optional[RatingStore] = None
        self.params: Optional[BiasParameters] = None
        self.neighbors: Optional[NeighborSets] = None
        self._predictor: Optional[Predictor] = None
        self.timer: Optional[StageTimer] = None

    def fit(self, ratings: Iterable[Rating]) -> "BiasAwareUserCF":
        cfg = self.cfg
        timer = StageTimer()

        with timer.stage("ingest"):
            store = RatingStore()
            for r in ratings:
                store.put(r.user_id, r.item_id, r.rating)
            store.freeze()
        logger.info(
            "UserCF: users=%d ratings=%d max_user_id=%d max_item_id=%d",
            len(store.users()),
            len(store),
            store.max_user_id,
            store.max_item_id,
        )

        with timer.stage("bias"):
            params = fit_biases(
                store,
                iterations=cfg.iterations,
                learning_rate=cfg.learning_rate,
                regularization=cfg.regularization,
                default_mean=cfg.default_mean,
            )

        with timer.stage("similarity"):
            acc = accumulate_pairs(project_residuals(store, params))
            pairs = derive_similarities(acc, shrink=cfg.shrink, amp_factor=cfg.amp_factor)
            neighbors = select_neighbors(pairs, k=cfg.neighbors)

        self.store = store
        self.params = params
        self.neighbors = neighbors
        self._predictor = Predictor(store, params, neighbors)
        self.timer = timer
        logger.info(
            "UserCF fitted in %.3fs (%s)",
            timer.elapsed(),
            " ".join(f"{name}={secs:.3f}s" for name, secs in timer.stages.items()),
        )
        return self

    @property
    def predictor(self) -> Predictor:
        if self._predictor is None:
            raise RuntimeError("BiasAwareUserCF is not fitted; call fit() first")
        return self._predictor

    def has_user(self, userId: int) -> bool:
        return self.store is not None and int(userId) in self.store

    def predict(self, userId: int, itemId: int) -> float:
        return self.predictor.predict(int(userId), int(itemId))

    def explain(self, userId: int, itemId: int) -> Prediction:
        return self.predictor.explain(int(userId), int(itemId))

    def predict_many(self, queries: Iterable[Query]) -> List[float]:
        return self.predictor.predict_many((q.user_id, q.item_id) for q in queries)

    def similar_users(self, userId: int, *, top_n: int = 10) -> list[SimilarUser]:
        """The user's retained neighbours, most similar first. Unknown users have none."""
        predictor = self.predictor
        uid = int(userId)
        rated = set(predictor.store.items_of(uid))

        out: list[SimilarUser] = []
        for entry in predictor.neighbors.get(uid, ())[: int(top_n)]:
            common = len(rated & set(predictor.store.items_of(entry.neighbor_id)))
            out.append(SimilarUser(userId=entry.neighbor_id, similarity=entry.similarity, common_rated=common))
        return out
