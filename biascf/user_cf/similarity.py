"""Residual-based user-user similarity with significance shrinkage and case amplification."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, Tuple

from .residuals import ItemResiduals


logger = logging.getLogger(__name__)

UserPair = Tuple[int, int]


@dataclass
class PairAccumulator:
    """Co-rating statistics keyed by the canonical pair `(min_user, max_user)`."""

    dots: Dict[UserPair, float] = field(default_factory=dict)
    counts: Dict[UserPair, int] = field(default_factory=dict)
    magnitudes: Dict[int, float] = field(default_factory=dict)

    def add(self, user_a: int, res_a: float, user_b: int, res_b: float) -> None:
        key = (user_a, user_b) if user_a < user_b else (user_b, user_a)
        self.dots[key] = self.dots.get(key, 0.0) + res_a * res_b
        self.counts[key] = self.counts.get(key, 0) + 1

    def magnitude(self, user_id: int) -> float:
        return self.magnitudes.get(user_id, 0.0)

    def __len__(self) -> int:
        return len(self.dots)


@dataclass(frozen=True)
class PairSimilarity:
    user_a: int
    user_b: int
    raw_cosine: float
    co_count: int
    similarity: float


def accumulate_pairs(item_residuals: ItemResiduals) -> PairAccumulator:
    """Sum residual products and co-rating counts over every pair of raters per item.

    Quadratic in the number of raters of each item; this is the dominant cost
    of the pipeline. Magnitudes (sum of squared residuals per user) are
    collected in the same walk.
    """
    acc = PairAccumulator()
    mags = acc.magnitudes
    for item_id in sorted(item_residuals):
        raters = item_residuals[item_id]
        for u, res in raters:
            mags[u] = mags.get(u, 0.0) + res * res
        n = len(raters)
        for a in range(n):
            ua, ra = raters[a]
            for b in range(a + 1, n):
                ub, rb = raters[b]
                acc.add(ua, ra, ub, rb)

    logger.info("Accumulated %d co-rating user pairs over %d items", len(acc), len(item_residuals))
    return acc


def cosine_similarity(dot: float, mag_a: float, mag_b: float) -> float:
    """Raw cosine from a dot product and two squared norms; 0 if either norm is 0."""
    if mag_a == 0.0 or mag_b == 0.0:
        return 0.0
    return dot / (math.sqrt(mag_a) * math.sqrt(mag_b))


def significance_weight(co_count: int, shrink: float) -> float:
    """Shrink similarities estimated from few co-ratings toward zero."""
    return float(co_count) / (float(co_count) + float(shrink))


def amplify(value: float, factor: float) -> float:
    """Case amplification: `sign(v) * |v| ** factor`."""
    amp = abs(value) ** float(factor)
    return -amp if value < 0.0 else amp


def derive_similarities(
    acc: PairAccumulator,
    *,
    shrink: float = 10.0,
    amp_factor: float = 1.3,
) -> Iterator[PairSimilarity]:
    """Yield the positively correlated pairs, in ascending pair order.

    Pairs whose raw cosine is not strictly positive are dropped, as are pairs
    whose final (shrunk, amplified) similarity is not strictly positive.
    """
    for key in sorted(acc.dots):
        ua, ub = key
        raw = cosine_similarity(acc.dots[key], acc.magnitude(ua), acc.magnitude(ub))
        if raw <= 0.0:
            continue

        co_count = acc.counts[key]
        final = amplify(raw, amp_factor) * significance_weight(co_count, shrink)
        if final > 0.0:
            yield PairSimilarity(user_a=ua, user_b=ub, raw_cosine=raw, co_count=co_count, similarity=final)
