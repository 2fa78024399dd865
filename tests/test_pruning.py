import pytest

from crhs import pruning
from crhs.records import FilePruneLogger, MemoryPruneLogger
from crhs.pruning import (calculate_batch_size, count_at_level, prune_roof, prune_v2, prune_v3,
                          widest_levels)
from crhs.weights import process_range


def test_widest_levels(weight_shard):
    assert widest_levels(weight_shard, (0, 6)) == ((3, 5), (2, 4))


def test_widest_levels_tie_prefers_deeper(weight_shard):
    weight_shard.reduce()
    # Ebenen 2 und 3 haben nun beide vier Knoten
    assert widest_levels(weight_shard, (0, 6)) == ((3, 4), (2, 4))


def test_prune_roof():
    assert prune_roof(10, 6) == 4
    assert prune_roof(20, 20) == 2
    assert prune_roof(3, 3) == 1


def test_batch_size():
    assert calculate_batch_size(100, 200, 4.0, 10) == 5
    assert calculate_batch_size(100, 120, 4.0, 100) == 2
    assert calculate_batch_size(100, 90, 4.0, 1) == 1
    assert calculate_batch_size(100, 200, 0.0, 8) == 4


def test_count_at_member_level(weight_shard):
    level, cohort = count_at_level(weight_shard, 3, (0, 6), 2)
    assert cohort == (2, 4)
    assert set(dict(level.items())) == {8, 9, 10, 11, 12}
    assert level.get(8).lowest_existing_weight() == 0
    assert level.get(9).lowest_existing_weight() == 2


def test_prune_v3_reaches_target(weight_shard):
    before = set(weight_shard.iter_paths())
    logger = MemoryPruneLogger()
    rec = prune_v3(weight_shard, 15, (0, 6), 2, librarian=logger)

    assert weight_shard.size() <= 15
    assert rec.end_complexity == weight_shard.size()
    assert rec.start_complexity == 18
    assert rec.loops
    assert logger.records == [rec]
    after = set(weight_shard.iter_paths())
    assert after and after < before
    # der triviale Pfad hat das tiefste Gewicht und bleibt erhalten
    assert (0, 0, 0, 0, 0, 0) in after


def test_prune_v2_reaches_target(weight_shard):
    rec = prune_v2(weight_shard, 16, (0, 6), 2)
    assert weight_shard.size() <= 16
    assert rec.version == 2


def test_nothing_to_prune(weight_shard):
    rec = prune_v3(weight_shard, 100, (0, 6), 2)
    assert rec.loops == []
    assert weight_shard.size() == 18


def test_file_logger(tmp_path, weight_shard):
    path = tmp_path / "prune.txt"
    prune_v3(weight_shard, 15, (0, 6), 2, librarian=FilePruneLogger(str(path)))
    text = path.read_text()
    assert "Prune (v3)" in text
    assert "loop:" in text


@pytest.mark.parametrize("prune, target", [(prune_v2, 16), (prune_v3, 15)])
def test_deleted_nodes_reach_threshold(weight_shard, monkeypatch, prune, target):
    area = process_range(weight_shard, (0, 6), 2)
    deleting = pruning.delete_nodes_from_level_until
    seen = []

    def checked(shard, complexity_target, delete, depth, step, loop_rec):
        assert depth == widest_levels(shard, area)[0][0]
        level, _ = count_at_level(shard, depth, area, step)
        lews = [level.get(i).lowest_existing_weight() for i in shard.levels[depth].nodes]
        threshold = max(w for w in lews if w is not None)
        assert delete
        assert all(level.get(i).lowest_existing_weight() >= threshold for i in delete)
        seen.append((depth, list(delete)))
        deleting(shard, complexity_target, delete, depth, step, loop_rec)

    monkeypatch.setattr(pruning, "delete_nodes_from_level_until", checked)
    rec = prune(weight_shard, target, (0, 6), 2)
    assert weight_shard.size() <= target
    assert seen == [(loop.widest[0], loop.marked_ids) for loop in rec.loops]
