from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Union


TRAIN_SENTINEL = "train dataset"
TEST_SENTINEL = "test dataset"


@dataclass(frozen=True)
class Rating:
    user_id: int
    item_id: int
    rating: float


@dataclass(frozen=True)
class Query:
    user_id: int
    item_id: int


Record = Union[Rating, Query]


@dataclass(frozen=True)
class RecordStream:
    ratings: List[Rating]
    queries: List[Query]


class RecordParseError(ValueError):
    """A training or query line that does not hold the expected numeric fields."""

    def __init__(self, line_no: int, line: str, reason: str) -> None:
        super().__init__(f"line {line_no}: {reason}: {line!r}")
        self.line_no = line_no
        self.line = line


def _parse_id(token: str, line_no: int, line: str, what: str, *, non_negative: bool = False) -> int:
    try:
        value = int(token)
    except ValueError:
        raise RecordParseError(line_no, line, f"{what} is not an integer") from None
    if non_negative and value < 0:
        raise RecordParseError(line_no, line, f"{what} must be non-negative")
    return value


def parse_records(lines: Iterable[str]) -> Iterator[Record]:
    """Parse the sentinel-switched stream into `Rating` then `Query` records.

    The stream starts in training mode. `train dataset` keeps it there,
    `test dataset` switches to query mode for the rest of the stream.
    Blank lines are skipped in both modes. Fields beyond the expected
    ones are ignored.
    """
    in_test = False
    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            continue

        if not in_test:
            if line == TRAIN_SENTINEL:
                continue
            if line == TEST_SENTINEL:
                in_test = True
                continue

            parts = line.split()
            if len(parts) < 3:
                raise RecordParseError(line_no, raw, "expected `userId itemId rating`")
            user_id = _parse_id(parts[0], line_no, raw, "userId", non_negative=True)
            item_id = _parse_id(parts[1], line_no, raw, "itemId", non_negative=True)
            try:
                rating = float(parts[2])
            except ValueError:
                raise RecordParseError(line_no, raw, "rating is not a number") from None
            if not math.isfinite(rating):
                raise RecordParseError(line_no, raw, "rating is not a finite number")
            yield Rating(user_id=user_id, item_id=item_id, rating=rating)
        else:
            parts = line.split()
            if len(parts) < 2:
                raise RecordParseError(line_no, raw, "expected `userId itemId`")
            yield Query(
                user_id=_parse_id(parts[0], line_no, raw, "userId"),
                item_id=_parse_id(parts[1], line_no, raw, "itemId"),
            )


def read_stream(lines: Iterable[str]) -> RecordStream:
    """Split a parsed stream into its training ratings and its queries."""
    ratings: List[Rating] = []
    queries: List[Query] = []
    for rec in parse_records(lines):
        if isinstance(rec, Rating):
            ratings.append(rec)
        else:
            queries.append(rec)
    return RecordStream(ratings=ratings, queries=queries)


def load_stream(source: Path | IO[str]) -> RecordStream:
    """Read a record stream from a path or an open text handle (e.g. stdin)."""
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Input not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            return read_stream(f)
    return read_stream(source)
