import numpy as np

from crhs.algebra import rank
from crhs.bits import int_to_bools
from hullsearch.soc_gen import GenericShard, count_nvar, make_soc


def test_generic_shard_has_one_path_per_entry(toy):
    table = toy.base_table()
    generic = GenericShard(table, 4, 4)
    expected = set()
    for row in range(16):
        for col in range(16):
            if table.entry(row, col):
                expected.add(tuple(int(b) for b in int_to_bools(row, 4) + int_to_bools(col, 4)))
    assert set(generic.shard.iter_paths()) == expected
    assert generic.shard.sink_depth() == 8


def test_into_specific(toy):
    generic = GenericShard(toy.base_table(), 4, 4)
    shard = generic.into_specific([1, 2, 4, 8], [16, 32, 64, 128], 7, 8)
    assert shard.id == 7
    assert shard.nvar == 8
    assert shard.lhss() == [1, 2, 4, 8, 16, 32, 64, 128]
    assert generic.shard.lhss() == [0] * 8


def test_count_nvar(toy):
    assert count_nvar(toy, 2) == 48
    assert count_nvar(toy, 4) == 80


def test_make_soc(toy):
    soc = make_soc(toy, 2)
    assert soc.nvar == 48
    assert soc.block_size == 16
    assert soc.rounds == [[1, 2, 3, 4], [5, 6, 7, 8]]
    assert [s.id for s in soc.shards] == list(range(1, 9))
    assert soc.cohorts[1] == [1 << 16, 1 << 17, 1 << 18, 1 << 19]
    assert soc.sbox_sizes == [[(4, 4)] * 4] * 2
    assert len(soc.lhss) == 64


def test_round_inputs_follow_permutation(toy):
    soc = make_soc(toy, 2)
    outputs = [lhs for sid in soc.rounds[0] for lhs in soc.cohorts[sid]]
    expected = toy.apply_linear_layer(1, outputs)
    inputs = []
    for shard in soc.shards[4:]:
        inputs.extend(shard.lhss()[:4])
    assert inputs == expected


def test_soc_matrix(toy):
    soc = make_soc(toy, 2)
    mat = soc.lhs_matrix()
    assert mat.shape == (64, 48)
    assert rank(mat) == 48
    assert np.all(mat.sum(axis=1) == 1)
