from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple


class RatingStore:
    """Sparse training matrix: `user_id -> {item_id -> rating}`.

    Running totals (sum/count of every ingested rating, max ids) are kept for
    the global mean and for sizing the dense item-bias array. After `freeze()`
    the store is read-only.
    """

    def __init__(self) -> None:
        self._by_user: Dict[int, Dict[int, float]] = {}
        self.rating_sum = 0.0
        self.rating_count = 0
        self.max_user_id = 0
        self.max_item_id = 0
        self._frozen = False

    def put(self, user_id: int, item_id: int, rating: float) -> None:
        if self._frozen:
            raise RuntimeError("RatingStore is frozen; ingestion has already completed")
        user_id = int(user_id)
        item_id = int(item_id)
        if user_id < 0 or item_id < 0:
            raise ValueError(f"ids must be non-negative, got user={user_id} item={item_id}")

        rating = float(rating)
        self._by_user.setdefault(user_id, {})[item_id] = rating
        self.rating_sum += rating
        self.rating_count += 1
        if user_id > self.max_user_id:
            self.max_user_id = user_id
        if item_id > self.max_item_id:
            self.max_item_id = item_id

    def freeze(self) -> "RatingStore":
        self._frozen = True
        return self

    def rating_of(self, user_id: int, item_id: int) -> Optional[float]:
        items = self._by_user.get(user_id)
        if items is None:
            return None
        return items.get(item_id)

    def items_of(self, user_id: int) -> Dict[int, float]:
        return self._by_user.get(user_id, {})

    def users(self) -> list[int]:
        return sorted(self._by_user)

    def global_mean(self, default: float = 3.5) -> float:
        if self.rating_count == 0:
            return float(default)
        return self.rating_sum / float(self.rating_count)

    def iter_ratings(self) -> Iterator[Tuple[int, int, float]]:
        """Yield `(user, item, rating)`: users ascending, items ascending per user."""
        for user_id in sorted(self._by_user):
            items = self._by_user[user_id]
            for item_id in sorted(items):
                yield user_id, item_id, items[item_id]

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._by_user

    def __len__(self) -> int:
        return sum(len(items) for items in self._by_user.values())
