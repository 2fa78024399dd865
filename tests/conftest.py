import pytest

from crhs.dump import parse
from hullsearch.meta import SolvedSocMeta
from hullsearch.sess import estimate_best_sess
from hullsearch.soc_gen import make_soc
from hullsearch.solver import SimpleSolver
from hullsearch.trace import TraceLogger
from spn.catalog import make_cipher

DEP_SHARD = '5;0;[("1+2",[(1;2,3)]);("3+2",[(2;4,5);(3;4,0)]);("0+4",[(4;0,6);(5;6,0)]);("",[(6;0,0)])]'

WEIGHT_SHARD = ('6;1;[("0",[(1;2,3)]);("1",[(2;4,5);(3;6,7)]);("2",[(4;8,9);(5;10,11);(6;11,12);(7;0,12)]);'
                '("3",[(8;13,14);(9;14,0);(10;13,14);(11;0,15);(12;15,0)]);("4",[(13;16,0);(14;0,16);(15;0,17)]);'
                '("5",[(16;18,0);(17;0,18)]);("",[(18;0,0)])]')

ABSORB_SHARD = '2;0;[("0",[(1;2,3)]);("0",[(2;4,0);(3;0,4)]);("1",[(4;5,5)]);("",[(5;0,0)])]'

TOY_ROUNDS = 2
TOY_SOFT_LIM = 2 ** 10


@pytest.fixture
def dep_shard():
    return parse(DEP_SHARD)


@pytest.fixture
def weight_shard():
    return parse(WEIGHT_SHARD)


@pytest.fixture
def absorb_shard():
    return parse(ABSORB_SHARD)


@pytest.fixture
def toy():
    return make_cipher('toy', TOY_ROUNDS)


@pytest.fixture(scope="session")
def solved_toy():
    """Gelöster Master der Toy-Chiffre über zwei Runden (differentiell)."""
    cipher = make_cipher('toy', TOY_ROUNDS)
    soc = make_soc(cipher, TOY_ROUNDS)
    solver = SimpleSolver(soc)
    solver.run(TOY_SOFT_LIM)
    result = solver.finalize()
    meta = SolvedSocMeta.from_solved(result.active_area, result.step, cipher, TOY_ROUNDS)
    return cipher, soc, result, meta


@pytest.fixture(scope="session")
def sess_toy(solved_toy):
    """Kopie des gelösten Masters, reduziert auf die beste SESS-Verbindung."""
    cipher, soc, result, meta = solved_toy
    master = result.master.copy()
    trace = TraceLogger()
    best, estimates, paths = estimate_best_sess(master, meta, cipher.base_table().k, trace)
    trace.close()
    return cipher, soc, master, meta, best, estimates, paths, trace.entries
