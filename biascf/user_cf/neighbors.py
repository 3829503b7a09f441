from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .similarity import PairSimilarity


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NeighborEntry:
    neighbor_id: int
    similarity: float


NeighborSets = Dict[int, Tuple[NeighborEntry, ...]]


class BoundedTopK:
    """Keep the K entries with the greatest similarity.

    A min-heap keyed on `(similarity, -neighbor_id)`: the root is the entry
    evicted first, i.e. the lowest similarity and, among equal similarities,
    the highest neighbour id. The retained set does not depend on the order
    of insertion.
    """

    def __init__(self, k: int) -> None:
        if int(k) < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        self.k = int(k)
        self._heap: List[Tuple[float, int]] = []

    def insert(self, neighbor_id: int, similarity: float) -> None:
        heapq.heappush(self._heap, (float(similarity), -int(neighbor_id)))
        if len(self._heap) > self.k:
            heapq.heappop(self._heap)

    def entries(self) -> Tuple[NeighborEntry, ...]:
        """Retained entries, similarity descending then neighbour id ascending."""
        ordered = sorted(self._heap, key=lambda e: (-e[0], -e[1]))
        return tuple(NeighborEntry(neighbor_id=-neg_id, similarity=sim) for sim, neg_id in ordered)

    def __len__(self) -> int:
        return len(self._heap)


def select_neighbors(pairs: Iterable[PairSimilarity], *, k: int = 190) -> NeighborSets:
    """Register each similar pair for both users and keep the top-K per user."""
    heaps: Dict[int, BoundedTopK] = {}
    n_pairs = 0
    for p in pairs:
        heaps.setdefault(p.user_a, BoundedTopK(k)).insert(p.user_b, p.similarity)
        heaps.setdefault(p.user_b, BoundedTopK(k)).insert(p.user_a, p.similarity)
        n_pairs += 1

    out = {u: heaps[u].entries() for u in sorted(heaps)}
    logger.info("Selected neighbours: users=%d similar_pairs=%d k=%d", len(out), n_pairs, int(k))
    return out
