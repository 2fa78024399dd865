import logging

from crhs.arena import WDLevel
from crhs.distribution import TransparentFactory, WDCount, WDPresence
from crhs.progress import SilentProgressBar
from crhs.records import BatchRecord, DepthDeletionRecord, PruneLoopRecord, PruneRecord, PruneLogger
from crhs.weights import process_range, weight_distributions_for_level, weight_distributions_for_member

"""

Komplexitätsbasiertes Pruning eines Shards. Solange der Shard mehr Knoten
hat als erlaubt, wird die breiteste Ebene der aktiven Zone gesucht und ein
Teil ihrer Knoten mit dem höchsten tiefsten Gewicht (LEW) gelöscht. Danach
wird der Shard reduziert, was oft weitere Knoten entfernt.

Pruning entfernt Pfade: die Resultate sind danach Untergrenzen.

"""

log = logging.getLogger(__name__)

PERCENTAGE = 10


def widest_levels(shard, active_area):
    """
    Liefert ((Tiefe, Breite), (Tiefe, Breite)) der breitesten und der
    zweitbreitesten Ebene in [start, end). Bei Gleichstand gewinnt die
    tiefere Ebene.
    """
    assert len(shard.levels) > 2, "Cannot find the two widest levels if we have less than two levels present."
    start, end = active_area
    all_widths = {}
    for depth in range(start, end):
        all_widths.setdefault(shard.width(depth), []).append(depth)

    widths = sorted(all_widths)
    size = widths[-1]
    candidates = sorted(all_widths[size])
    if len(candidates) > 1:
        return (candidates[-1], size), (candidates[-2], size)
    assert len(widths) > 1, f"Active area {start}..{end} holds only a single level"
    sw_size = widths[-2]
    return (candidates[-1], size), (max(all_widths[sw_size]), sw_size)


def prune_roof(widest, s_widest):
    """Obergrenze der zu markierenden Knoten: Breitendifferenz plus 10% der zweitbreitesten Ebene."""
    part = int(s_widest * PERCENTAGE / 100)
    return max(1, widest - s_widest + part)


def calculate_batch_size(complexity_target, current_complexity, deletion_rate, remaining_marked):
    """
    Anzahl Löschungen bis zur nächsten Reduktion: die Hälfte der fehlenden
    Komplexität geteilt durch die erwartete Löschrate, höchstens die Hälfte
    der verbleibenden Markierungen, mindestens 1.
    """
    if deletion_rate <= 0:
        complexity_based = remaining_marked
    else:
        complexity_based = int(max(0, current_complexity - complexity_target) / (deletion_rate * 2))
    marked_based = int(remaining_marked / 2)
    return max(1, min(complexity_based, marked_based))


def count_at_level(shard, member, active_area, step, factory=None):
    """
    Berechnet die Verteilungen der Ebene member, auch wenn diese keine
    Centurion-Ebene ist.

    Returns:
        (WDLevel, (c_depth, p_depth)) mit dem Bereich der Kohorte von member
    """
    factory = factory or TransparentFactory(WDCount)
    start, end = process_range(shard, active_area, step)

    p_depth = start + step
    while member >= p_depth:
        p_depth += step
        assert p_depth <= end, f"Unable to identify the end bound for the cohort of level {member}"
    c_depth = p_depth - step

    if member == c_depth:
        level = weight_distributions_for_level(shard, c_depth, (c_depth, end), step, factory)
        return level, (c_depth, p_depth)

    if p_depth == end:
        prev = WDLevel(end)
        for node_id in shard.levels[end].nodes:
            prev.insert(node_id, factory.new_trivial(node_id))
    else:
        prev = weight_distributions_for_level(shard, p_depth, (p_depth, end), step, factory)
    level = weight_distributions_for_member(shard, member, c_depth, p_depth, prev, factory)
    return level, (c_depth, p_depth)


def _children_parent_map(shard, parents_depth):
    res = {}
    for parent_id, node in shard.levels[parents_depth].nodes.items():
        if node.e0 is not None:
            res.setdefault(node.e0, set()).add(parent_id)
        if node.e1 is not None:
            res.setdefault(node.e1, set()).add(parent_id)
    return res


def _reduce_around(shard, depth):
    shard.remove_dead_ends(depth - 1)
    shard.remove_orphans(depth + 1)
    shard.merge_equals(depth - 1)


def delete_nodes_from_level_until(shard, complexity_target, delete, depth, step, loop_rec):
    """
    Löscht die Knoten aus delete (in dieser Reihenfolge) von der Ebene depth,
    bis die Komplexität unter complexity_target fällt oder keine markierten
    Knoten mehr übrig sind. Reduziert wird jeweils nach einem Batch, dessen
    Grösse anhand der beobachteten Löschrate geschätzt wird.

    Args:
        shard: der Shard
        complexity_target: angestrebte Anzahl Knoten
        delete: Liste markierter Knoten-IDs
        depth: Tiefe der Ebene
        step: Grösse einer Kohorte, erste Schätzung der Löschrate
        loop_rec: PruneLoopRecord, erhält einen DepthDeletionRecord
    """
    nr_marked = len(delete)
    dd_rec = DepthDeletionRecord(depth, shard.width(depth), nr_marked, shard.size())
    loop_rec.deletions.append(dd_rec)

    if depth == 0 or not delete or shard.size() < complexity_target:
        dd_rec.end_complexity = shard.size()
        return

    parents_of = _children_parent_map(shard, depth - 1)
    level = shard.levels[depth]

    since_last = 0
    complexity_batch_start = shard.size()
    deletion_rate = float(step)
    batch_size = calculate_batch_size(complexity_target, complexity_batch_start, deletion_rate, nr_marked)
    batch = BatchRecord(batch_size, complexity_batch_start, deletion_rate)
    marked_remaining = nr_marked
    missed_removed = 0

    for child_id in delete:
        marked_remaining -= 1
        # may already be gone after an earlier reduce
        if level.nodes.pop(child_id, None) is None:
            missed_removed += 1
            continue
        since_last += 1

        for parent_id in parents_of.get(child_id, ()):
            parent = shard.levels[depth - 1].nodes.get(parent_id)
            if parent is None:
                continue
            if parent.e0 == child_id:
                parent.e0 = None
            if parent.e1 == child_id:
                parent.e1 = None

        if since_last == batch_size:
            _reduce_around(shard, depth)
            deletion_rate = (complexity_batch_start - shard.size()) / batch_size
            complexity_batch_start = shard.size()
            batch.rate, batch.marked_removed, batch.missed_removed = deletion_rate, since_last, missed_removed
            dd_rec.batches.append(batch)
            missed_removed = 0
            if shard.size() < complexity_target:
                dd_rec.end_complexity = shard.size()
                return
            # merges may have replaced parents
            parents_of = _children_parent_map(shard, depth - 1)
            batch_size = calculate_batch_size(complexity_target, complexity_batch_start,
                                              deletion_rate, marked_remaining)
            since_last = 0
            batch = BatchRecord(batch_size, complexity_batch_start, deletion_rate)

    _reduce_around(shard, depth)
    batch.rate = (complexity_batch_start - shard.size()) / batch_size
    batch.marked_removed, batch.missed_removed = since_last, missed_removed
    dd_rec.batches.append(batch)
    dd_rec.end_complexity = shard.size()


def _prune(shard, complexity_target, active_area, step, librarian, progress, version):
    active_area = process_range(shard, active_area, step)
    librarian = librarian or PruneLogger()
    progress = progress or SilentProgressBar()
    record = PruneRecord(step, active_area, shard.size(), complexity_target, version)
    kind = WDCount if version == 3 else WDPresence

    while shard.size() > complexity_target:
        progress.set_message("Pruning")
        widest, s_widest = widest_levels(shard, active_area)
        roof = prune_roof(widest[1], s_widest[1])

        progress.set_message("Pruning: Preparing to delete")
        level, cohort_range = count_at_level(shard, widest[0], active_area, step, TransparentFactory(kind))
        threshold = level.highest_lew()
        marked = level.nodes_with_lew_at_least(threshold)
        if version == 3:
            totals = {i: level.get(i).total_number_of_paths_overflowing()[0] for i in marked}
            marked.sort(key=lambda i: (totals[i], i))
        else:
            marked.sort()
        delete = marked[:roof]

        loop_rec = PruneLoopRecord(widest, s_widest, cohort_range, threshold, roof, len(delete))
        loop_rec.marked_ids = list(delete)
        size_before = shard.size()
        progress.set_message("Pruning: Deleting nodes")
        delete_nodes_from_level_until(shard, complexity_target, delete, widest[0], step, loop_rec)
        size_after = shard.size()
        assert size_after < size_before, "No nodes were deleted, we risk an infinite loop now, aborting!"
        progress.inc(size_before - size_after)
        loop_rec.end_complexity = size_after
        record.loops.append(loop_rec)
        log.debug("Pruned level %d: %d -> %d nodes", widest[0], size_before, size_after)

    progress.println(f"Pruned from {record.start_complexity} to {shard.size()} nodes in {len(record.loops)} loops")
    progress.finish_and_clear()
    record.end_complexity = shard.size()
    librarian.record(record)
    return record


def prune_v2(shard, complexity_target, active_area, step, librarian=None, progress=None):
    """Pruning anhand von Präsenzverteilungen, markierte Knoten in ID-Reihenfolge."""
    return _prune(shard, complexity_target, active_area, step, librarian, progress, 2)


def prune_v3(shard, complexity_target, active_area, step, librarian=None, progress=None):
    """
    Pruning anhand zählender Verteilungen. Unter den markierten Knoten werden
    zuerst jene mit den wenigsten Pfaden gelöscht.

    Args:
        shard: der zu verkleinernde Shard
        complexity_target: Anzahl Knoten, unter welche der Shard fallen soll
        active_area: Tupel (start, end), end darf None sein
        step: Grösse einer Kohorte
        librarian: PruneLogger, erhält am Ende den PruneRecord
        progress: Fortschrittsbalken (inc, set_message, finish_and_clear)
    """
    return _prune(shard, complexity_target, active_area, step, librarian, progress, 3)
