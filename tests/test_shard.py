import pytest

from crhs.errors import IncompatibleDepthsError, StructuralError, VariableMismatchError
from crhs.shard import Shard, make_master


def paths(shard):
    return set(shard.iter_paths())


def test_swap_twice_is_identity(weight_shard):
    before = paths(weight_shard)
    lhss = weight_shard.lhss()
    weight_shard.swap(2)
    weight_shard.swap(2)
    assert weight_shard.lhss() == lhss
    assert paths(weight_shard) == before


def test_swap_exchanges_bits(weight_shard):
    before = {p[:1] + (p[2], p[1]) + p[3:] for p in paths(weight_shard)}
    weight_shard.swap(1)
    assert weight_shard.lhss()[1:3] == [1 << 2, 1 << 1]
    assert paths(weight_shard) == before


def test_swap_levels_moves_level_down(weight_shard):
    lhss = weight_shard.lhss()
    weight_shard.swap_levels(1, 4)
    assert weight_shard.lhss() == [lhss[0], lhss[2], lhss[3], lhss[4], lhss[1], lhss[5]]
    weight_shard.swap_levels(4, 1)
    assert weight_shard.lhss() == lhss


def test_reduce_merges_equal_nodes(weight_shard):
    # 8 und 10 haben dieselben Kinder
    size = weight_shard.size()
    nr_paths = len(paths(weight_shard))
    weight_shard.reduce()
    assert weight_shard.size() == size - 1
    assert len(paths(weight_shard)) == nr_paths
    for level in weight_shard.levels[:-1]:
        keys = [n.key() for n in level.nodes.values()]
        assert len(keys) == len(set(keys))
        assert all(n.has_edges() for n in level.nodes.values())


def test_add_then_absorb(absorb_shard):
    assert absorb_shard.size() == 5
    absorb_shard.add(0, 1)
    assert absorb_shard.levels[1].lhs == 0
    assert paths(absorb_shard) == {(0, 0, 0), (0, 0, 1), (1, 0, 0), (1, 0, 1)}
    absorb_shard.absorb(1, False)
    assert absorb_shard.size() == 3
    assert absorb_shard.lhss() == [1, 2]
    assert paths(absorb_shard) == {(0, 0), (0, 1), (1, 0), (1, 1)}


def test_add_requires_adjacent_levels(absorb_shard):
    with pytest.raises(IncompatibleDepthsError):
        absorb_shard.add(0, 2)


def test_absorb_requires_constant_level(absorb_shard):
    with pytest.raises(StructuralError):
        absorb_shard.absorb(1)


def test_join_appends_bottom():
    top = make_master(2, 4)
    bottom = make_master(2, 4)
    for i, level in enumerate(bottom.levels[:-1]):
        level.lhs = 1 << (i + 2)
    top.join(bottom)
    assert top.lhss() == [1, 2, 4, 8]
    assert top.sink_depth() == 4
    assert len(paths(top)) == 16
    ids = [i for level in top.levels for i in level.nodes]
    assert len(ids) == len(set(ids))


def test_join_rejects_other_variable_space():
    with pytest.raises(VariableMismatchError):
        make_master(2, 4).join(make_master(2, 5))


def test_make_master():
    master = make_master(4, 10)
    assert master.size() == 5
    assert master.lhss() == [1, 2, 4, 8]
    assert len(paths(master)) == 16


def test_extract_single_path_prefers_zero_edge(weight_shard):
    assert weight_shard.extract_single_path(0, 6) == [0, 0, 0, 0, 0, 0]
    assert weight_shard.extract_single_path(0, 2) == [0, 0]


def test_delete_marked_nodes(weight_shard):
    weight_shard.delete_all_marked_nodes_from_level([8, 9, 10, 11], 3)
    assert set(weight_shard.levels[3].nodes) == {12}
    assert paths(weight_shard) == {(1, 0, 1, 0, 1, 1), (1, 1, 1, 0, 1, 1)}


def test_delete_every_node_of_a_level_fails(weight_shard):
    with pytest.raises(StructuralError):
        weight_shard.delete_all_marked_nodes_from_level([13, 14, 15], 4)


def test_copy_is_independent(weight_shard):
    other = weight_shard.copy()
    other.swap(0)
    assert weight_shard.lhss() != other.lhss()
    assert isinstance(other, Shard)
