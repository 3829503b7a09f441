from __future__ import annotations

import math

import pytest

from biascf.user_cf.bias import fit_biases
from biascf.user_cf.neighbors import select_neighbors
from biascf.user_cf.residuals import project_residuals
from biascf.user_cf.similarity import (
    accumulate_pairs,
    amplify,
    cosine_similarity,
    derive_similarities,
    significance_weight,
)
from biascf.user_cf.store import RatingStore


def _fitted(ratings):
    s = RatingStore()
    for r in ratings:
        s.put(r.user_id, r.item_id, r.rating)
    s.freeze()
    params = fit_biases(s)
    return s, params, accumulate_pairs(project_residuals(s, params))


def test_accumulate_pairs_uses_canonical_keys() -> None:
    acc = accumulate_pairs({7: [(3, 1.0), (1, 2.0), (2, -1.0)], 8: [(2, 0.5), (3, 0.5)]})

    assert set(acc.dots) == {(1, 3), (2, 3), (1, 2)}
    assert acc.dots[(1, 3)] == pytest.approx(2.0)
    assert acc.dots[(1, 2)] == pytest.approx(-2.0)
    assert acc.dots[(2, 3)] == pytest.approx(-1.0 + 0.25)
    assert acc.counts == {(1, 3): 1, (1, 2): 1, (2, 3): 2}
    assert acc.magnitudes == pytest.approx({1: 4.0, 2: 1.25, 3: 1.25})


def test_cosine_is_zero_for_empty_norms() -> None:
    assert cosine_similarity(1.0, 0.0, 4.0) == 0.0
    assert cosine_similarity(1.0, 4.0, 0.0) == 0.0
    assert cosine_similarity(2.0, 4.0, 1.0) == pytest.approx(1.0)


def test_shrinkage_and_amplification() -> None:
    assert significance_weight(10, 10.0) == pytest.approx(0.5)
    assert significance_weight(1, 0.0) == 1.0
    assert amplify(0.5, 1.3) == pytest.approx(0.5**1.3)
    assert amplify(-0.5, 1.3) == pytest.approx(-(0.5**1.3))
    assert amplify(1.0, 1.3) == 1.0
    # Strong similarities shrink less than weak ones under amplification.
    assert amplify(0.9, 1.3) / 0.9 > amplify(0.2, 1.3) / 0.2


def test_derive_similarities_skips_non_positive_cosine() -> None:
    acc = accumulate_pairs({1: [(1, 1.0), (2, 1.0), (3, -1.0)]})
    sims = list(derive_similarities(acc, shrink=10.0, amp_factor=1.3))

    assert [(p.user_a, p.user_b) for p in sims] == [(1, 2)]
    assert sims[0].raw_cosine == pytest.approx(1.0)
    assert sims[0].co_count == 1
    assert sims[0].similarity == pytest.approx(1.0 / 11.0)


def test_cosine_bound_and_final_never_exceeds_raw(random_ratings) -> None:
    _, _, acc = _fitted(random_ratings)
    sims = list(derive_similarities(acc, shrink=10.0, amp_factor=1.3))
    assert sims

    for ua, ub in acc.dots:
        raw = cosine_similarity(acc.dots[(ua, ub)], acc.magnitude(ua), acc.magnitude(ub))
        assert -1.0 - 1e-9 <= raw <= 1.0 + 1e-9
    for p in sims:
        assert p.user_a < p.user_b
        assert 0.0 < p.similarity <= abs(p.raw_cosine)


def test_similarity_registered_symmetrically(random_ratings) -> None:
    _, _, acc = _fitted(random_ratings)
    sims = list(derive_similarities(acc))
    # K above the number of users: nothing is truncated.
    neighbors = select_neighbors(sims, k=1000)

    lookup = {u: {e.neighbor_id: e.similarity for e in entries} for u, entries in neighbors.items()}
    for p in sims:
        assert lookup[p.user_a][p.user_b] == p.similarity
        assert lookup[p.user_b][p.user_a] == p.similarity
    assert sum(len(v) for v in lookup.values()) == 2 * len(sims)


def test_worked_example_accumulator() -> None:
    from biascf.data import Rating

    ratings = [Rating(1, 10, 4.0), Rating(2, 10, 5.0), Rating(1, 11, 3.0)]
    _, params, acc = _fitted(ratings)

    assert list(acc.dots) == [(1, 2)]
    assert acc.counts[(1, 2)] == 1
    assert params.global_mean == pytest.approx(4.0)
    assert acc.magnitude(1) > 0.0
    assert acc.magnitude(2) > 0.0
    assert math.isfinite(acc.dots[(1, 2)])


def test_slightly_asymmetric_example_has_positive_similarity() -> None:
    from biascf.data import Rating

    ratings = [Rating(1, 10, 4.5), Rating(2, 10, 5.0), Rating(1, 11, 3.0)]
    _, _, acc = _fitted(ratings)
    sims = list(derive_similarities(acc))

    assert len(sims) == 1
    assert (sims[0].user_a, sims[0].user_b) == (1, 2)
    assert sims[0].similarity > 0.0
