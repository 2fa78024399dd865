import numpy as np
import pytest

from crhs.algebra import rank
from crhs.distribution import TransparentFactory, WDCount
from crhs.errors import StructuralError
from crhs.weights import weight_distributions_for_level
from hullsearch.meta import AbsorbRec, JoinRec
from hullsearch.soc_gen import make_soc
from hullsearch.solver import SimpleSolver


def test_master_is_solved(solved_toy):
    _, soc, result, _ = solved_toy
    master = result.master
    assert master.sink_depth() == soc.nvar
    assert rank(master.lhs_matrix()) == soc.nvar
    assert result.step == 4
    assert result.active_area == (16, 48)
    assert master.size() <= 2 ** 10


def test_master_keeps_protected_levels(solved_toy):
    _, soc, result, _ = solved_toy
    lhss = result.master.lhss()
    assert lhss[:16] == [1 << i for i in range(16)]
    for shard_id, outs in soc.cohorts.items():
        depth = lhss.index(outs[0])
        assert lhss[depth:depth + 4] == outs


def test_history(solved_toy):
    _, _, result, _ = solved_toy
    assert len(result.librarian.joins()) == 8
    assert all(isinstance(r, JoinRec) for r in result.librarian.joins())
    assert len(result.librarian.absorptions()) == 32
    assert all(isinstance(r, AbsorbRec) for r in result.librarian.absorptions())


def test_next_to_resolve():
    deps = np.array([[1, 0, 0, 1, 0], [0, 1, 1, 0, 0], [0, 0, 1, 0, 1]], dtype=np.uint8)
    assert SimpleSolver.next_to_resolve(deps) == [1, 2]


def test_pre_absorb_two_members(toy):
    solver = SimpleSolver(make_soc(toy, 2))
    base, rest, rec = solver.pre_absorb([3, 1])
    assert base == 3
    assert rest == [1]
    assert rec.involved == [1]


def test_pre_absorb_moves_unprotected_member(toy):
    solver = SimpleSolver(make_soc(toy, 2))
    solver.master.levels[1].lhs = 1 << 40
    solver.protected.discard(1 << 40)
    base, rest, rec = solver.pre_absorb([0, 1, 3])
    # Ebene 1 liegt bereits direkt unter der obersten Ebene
    assert base == 1
    assert rest == [0, 3]
    assert rec.ops == []


def test_pre_absorb_moves_to_nearest_bottom(toy):
    solver = SimpleSolver(make_soc(toy, 2))
    solver.master.levels[3].lhs = 1 << 40
    solver.protected.discard(1 << 40)
    base, rest, rec = solver.pre_absorb([0, 3, 4])
    assert base == 4
    assert rest == [3, 0]
    assert solver.master.lhss()[4] == 1 << 40
    assert rec.ops == ["Swap(3, 4)"]


def test_pre_absorb_moves_below_top(toy):
    solver = SimpleSolver(make_soc(toy, 2))
    solver.master.levels[3].lhs = 1 << 40
    solver.protected.discard(1 << 40)
    base, rest, rec = solver.pre_absorb([0, 1, 3, 7])
    assert base == 1
    assert rest == [0, 2, 7]
    assert solver.master.lhss()[:4] == [1, 1 << 40, 2, 4]
    assert rec.ops == ["Swap(3, 1)"]


def test_pre_absorb_prefers_top(toy):
    solver = SimpleSolver(make_soc(toy, 2))
    solver.protected.discard(1)
    base, rest, rec = solver.pre_absorb([0, 1, 2, 3])
    assert base == 0
    assert rest == [1, 2, 3]
    assert rec.ops == []


def test_resolve_dep_from_top(toy):
    solver = SimpleSolver(make_soc(toy, 2))
    master = solver.master
    master.levels[3].lhs = 0b0111
    solver.protected.discard(1)
    solver.protected.add(0b0111)
    size = master.size()
    solver.resolve_dep([0, 1, 2, 3])
    assert master.lhss()[:3] == [0b0010, 0b0100, 0b0111]
    assert master.sink_depth() == 15
    assert master.size() == size - 1
    assert solver.librarian.absorptions()[-1].ops[-1] == "Extract(3)"


def test_resolve_two_member_dependency(toy, absorb_shard):
    solver = SimpleSolver(make_soc(toy, 2))
    solver.master = absorb_shard
    solver.protected = set(absorb_shard.lhss())
    removed = absorb_shard.width(1)
    size = absorb_shard.size()
    solver.resolve_dep([0, 1])
    assert absorb_shard.size() == size - removed
    assert absorb_shard.lhss() == [1, 2]
    assert sorted(absorb_shard.iter_paths()) == [(0, 0), (0, 1), (1, 0), (1, 1)]


def test_pre_absorb_all_protected(toy):
    solver = SimpleSolver(make_soc(toy, 2))
    with pytest.raises(StructuralError):
        solver.pre_absorb([0, 1, 2])


def test_one_round_master_is_exact(toy):
    soc = make_soc(toy, 1)
    solver = SimpleSolver(soc)
    solver.run(2 ** 20)
    master = solver.finalize().master
    table = toy.base_table()
    nonzero = int(np.count_nonzero(table.table))
    level = weight_distributions_for_level(master, 0, (0, master.sink_depth()), 4, TransparentFactory(WDCount))
    assert level.get(master.source_id()).total_number_of_paths_overflowing() == (nonzero ** 4, False)
