from crhs.depfinder import DepBoolFinder, DepPathFinder


def test_bool_finder(dep_shard):
    assert list(DepBoolFinder(1, 0, 2, dep_shard)) == [(4, False), (5, True), (4, True)]


def test_bool_finder_single_step(dep_shard):
    assert list(DepBoolFinder(2, 1, 1, dep_shard)) == [(4, False), (5, True)]


def test_path_finder(dep_shard):
    assert list(DepPathFinder(1, 0, 2, dep_shard)) == [(4, [0, 0]), (5, [0, 1]), (4, [1, 0])]


def test_path_finder_to_sink(dep_shard):
    found = list(DepPathFinder(1, 0, 3, dep_shard))
    assert sorted(tuple(edges) for _, edges in found) == [(0, 0, 1), (0, 1, 0), (1, 0, 1)]
    assert {child for child, _ in found} == {6}
