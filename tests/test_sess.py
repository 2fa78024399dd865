import math

import pytest

from crhs.arena import WDLevel
from crhs.distribution import EndNodeDist, WDCount, WDPresence
from hullsearch.sess import (MAX_CONNECTIONS, OnlyTrivialHullError, alpha_candidates,
                             estimate_best_sess_connections, make_estimate)


def test_alpha_candidates():
    level = WDLevel(4, {
        1: WDPresence(0b00011),
        2: WDPresence(0b00100),
        3: WDPresence(0b10000),
        4: WDPresence(0b00001),
        5: WDPresence(0b00110),
    })
    assert alpha_candidates(level) == (1, [[1, 5], [2], []])


def test_alpha_candidates_only_trivial():
    level = WDLevel(4, {1: WDPresence(1), 2: WDPresence(1)})
    with pytest.raises(OnlyTrivialHullError):
        alpha_candidates(level)


def test_make_estimate():
    ab = EndNodeDist({1: WDCount.from_counts({1: 3, 2: 1})})
    est = make_estimate(1, 10, 1, [2, 3], ab, 2, 2.0)
    assert est.sub_dist == {1: 3, 2: 1}
    assert est.estimate == pytest.approx(3.25)
    assert est.inner_nt_lew() == 1
    assert est.sum_inner_paths() == (4, False)
    assert est.log2_estimate() == pytest.approx(math.log2(3.25))
    assert "alpha node: 1, beta node: 10" in est.log_entry()


def test_make_estimate_without_connection():
    ab = EndNodeDist({1: WDCount.from_counts({1: 3})})
    assert make_estimate(1, 10, 1, [0, 1], ab, 1, 2.0) is None
    assert make_estimate(2, 10, 1, [2], ab, 1, 2.0) is None


def test_connections_are_ranked():
    tau_alpha = WDLevel(4, {1: WDPresence(0b0110), 2: WDPresence(0b1100)})
    tau_beta = WDLevel(8, {10: WDPresence(0b0011), 11: WDPresence(0b0001)})
    alpha_beta = WDLevel(8, {
        10: EndNodeDist({1: WDCount.from_counts({0: 1, 1: 2}), 2: WDCount.from_counts({1: 1, 2: 5})}),
        11: EndNodeDist({1: WDCount.from_counts({1: 7})}),
    })
    level_nt_lew, buckets = alpha_candidates(tau_alpha)
    assert (level_nt_lew, buckets) == (1, [[1], [2], []])

    estimates = estimate_best_sess_connections(tau_alpha, tau_beta, alpha_beta, level_nt_lew, buckets, 2.0)
    # Beta-Knoten 11 hat nur das triviale Gewicht
    assert {(e.start, e.end) for e in estimates} == {(1, 10), (2, 10)}
    best = estimates[0]
    assert (best.start, best.end) == (1, 10)
    assert best.sub_dist == {0: 1, 1: 2}
    assert estimates == sorted(estimates, key=lambda e: -e.estimate)


def test_best_sess_reduces_master(sess_toy):
    _, _, master, meta, best, estimates, paths, _ = sess_toy
    assert list(master.levels[meta.alpha_depth].nodes) == [best.start]
    assert list(master.levels[meta.beta_depth].nodes) == [best.end]
    assert best is estimates[0]
    assert len(estimates) <= MAX_CONNECTIONS
    assert [e.estimate for e in estimates] == sorted((e.estimate for e in estimates), reverse=True)
    assert best.hull_distribution is not None


def test_best_sess_counts_paths(sess_toy):
    _, _, _, _, best, _, paths, _ = sess_toy
    total, overflowed = best.sum_inner_paths()
    assert not overflowed
    assert paths.sum_inner == total
    assert total >= sum(best.sub_dist.values()) > 0
    assert paths.sum_alpha >= 1
    assert paths.sum_beta >= 1


def test_best_sess_traces_every_level(sess_toy):
    entries = sess_toy[-1]
    text = "\n".join(entries)
    for kind in ("SierraAlpha", "TauAlpha", "AlphaCandidates", "TauBeta", "MessConSummary", "AlphaBeta"):
        assert f" {kind} @ depth " in text
    assert "SESS estimate" in text
    assert "SESS paths" in text
