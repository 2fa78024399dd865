import numpy as np

from crhs.arena import WDArena, WDLevel
from crhs.distribution import (MAX_WEIGHT, EndNodeDist, TargetedFactory, TransparentFactory, WDCount,
                               WDPresence)


def test_presence_weights():
    dist = WDPresence.new_trivial(7)
    assert dist.lowest_existing_weight() == 0
    assert dist.lowest_existing_non_trivial_weight() is None
    assert dist.contains_trivial_lew()

    dist += WDPresence.new_trivial(8).incremented().incremented()
    assert dist.existing_weights() == {0, 2}
    assert dist.lowest_existing_non_trivial_weight() == 2
    assert dist.highest_existing_weight() == 2
    assert dist.end_nodes == {7, 8}


def test_presence_drops_highest_weight():
    dist = WDPresence(1 << (MAX_WEIGHT - 1))
    dist.increment_distribution()
    assert dist.is_zeroed()
    assert dist.lowest_existing_weight() is None


def test_count_increment_and_sum():
    dist = WDCount.new_trivial()
    dist += WDCount.from_counts({0: 2}).incremented()
    assert dist.existing_weights_with_counts() == [(0, 1), (1, 2)]
    assert dist.lew_with_paths() == (0, 1)
    assert dist.nt_lew_with_paths() == (1, 2)
    assert dist.paths_for_weight(1) == 2
    assert dist.paths_for_weight(MAX_WEIGHT) == 0
    assert dist.total_number_of_paths_overflowing() == (3, False)


def test_count_drops_weight_127():
    dist = WDCount.from_counts({MAX_WEIGHT - 1: 5, 3: 1})
    dist.increment_distribution()
    assert dist.existing_weights_with_counts() == [(4, 1)]


def test_count_overflow():
    dist = WDCount.from_counts({0: 2 ** 63, 1: 2 ** 63 + 5})
    assert dist.total_number_of_paths_overflowing() == (5, True)


def test_count_uses_uint64():
    assert WDCount.new_zeroed().counts.dtype == np.uint64


def test_end_node_dist():
    dist = EndNodeDist.new_trivial(3)
    dist += EndNodeDist.new_trivial(4).incremented()
    dist += EndNodeDist.new_trivial(4)

    assert dist.end_ids() == [3, 4]
    assert dist.paths_for_weight_in_id(1, 4) == 1
    assert dist.paths_for_weight_in_id(1, 3) == 0
    assert dist.paths_for_weight_in_id(0, 9) is None
    assert dist.paths_for_weight(0) == {3: 1, 4: 1}
    assert dist.paths_for_weight(5) is None
    assert dist.nt_lew_and_e_ids() == (1, [4])
    assert dist.other_node(4).existing_weights() == {0, 1}
    assert dist.total_number_of_paths_overflowing() == (3, False)


def test_factories():
    transparent = TransparentFactory(WDCount)
    assert transparent.new_trivial(1).contains_trivial_lew()

    targeted = TargetedFactory(EndNodeDist, [2])
    assert targeted.new_trivial(2).end_ids() == [2]
    assert targeted.new_trivial(1).is_zeroed()


def test_wd_level():
    level = WDLevel(4)
    level.insert(1, WDPresence(0b0110))
    level.insert(2, WDPresence(0b0011))
    level.insert(3, WDPresence(0b1000))

    assert level.lew() == (0, [2])
    assert level.nt_lew() == (1, [1, 2])
    assert level.highest_lew() == 3
    assert level.count_lews() == {0: 1, 1: 1, 3: 1}
    assert sorted(level.nodes_with_lew_at_least(1)) == [1, 3]
    assert level.nodes_with_lew(1) == [1]
    assert level.existing_weights() == {0, 1, 2, 3}
    assert len(level) == 3


def test_wd_level_connections():
    dist = EndNodeDist.new_trivial(5).incremented()
    dist += EndNodeDist.new_trivial(6)
    level = WDLevel(2, {9: dist})
    assert list(level.iter_nt_lew_connections()) == [(9, 5, 1)]


def test_wd_arena():
    arena = WDArena()
    arena.insert_level(WDLevel(8, {1: WDPresence(1)}))
    arena.insert_level(WDLevel(4, {2: WDPresence(1), 3: WDPresence(2)}))
    assert arena.top().depth == 4
    assert arena.deepest().depth == 8
    assert arena.contains(8) and not arena.contains(6)
    assert arena.depths() == [4, 8]
    assert arena.complexity() == 3
