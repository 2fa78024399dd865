import logging

from crhs.arena import WDLevel, WDArena
from crhs.depfinder import DepBoolFinder
from crhs.distribution import TransparentFactory, WDPresence

"""

Berechnung der Gewichtsverteilungen einer Ebene innerhalb einer aktiven
Zone [start, end), welche in Kohorten der Grösse step unterteilt ist. Das
Gewicht eines Pfades ist die Anzahl Kohorten, in denen der Pfad mindestens
eine 1-Kante benutzt, also die Anzahl aktiver S-Boxen.

Die Resultate sind nur korrekt, falls der Shard reduziert ist und jede
Kohorte genau step Ebenen umfasst. Dies liegt in der Verantwortung des
Aufrufers.

"""

log = logging.getLogger(__name__)


def process_range(shard, active_area, step):
    """
    Normalisiert die aktive Zone. Ein fehlendes Ende wird durch die Tiefe der
    Senke ersetzt.

    Args:
        shard: der Shard
        active_area: Tupel (start, end), end darf None sein
        step: Grösse einer Kohorte
    """
    assert step != 0, "step must be non-zero"
    start, end = active_area
    if end is None:
        end = shard.sink_depth()
    assert start <= end, f"Top of active area ({start}) lies below its bottom ({end})"
    assert end - start >= step, f"Active area {start}..{end} is smaller than one cohort ({step})"
    return start, end


def _add_child(entry, dist, flag):
    if flag:
        entry += dist.incremented()
    else:
        entry += dist


def _fill_base_case(shard, base, end, factory, out):
    out.clear(base)
    for node_id in shard.levels[base].nodes:
        dist = factory.new_zeroed()
        for child, flag in DepBoolFinder(node_id, base, end - base, shard):
            _add_child(dist, factory.new_trivial(child), flag)
        out.insert(node_id, dist)


def _fill_centurion(shard, depth, step, prev, factory, out):
    out.clear(depth)
    for node_id in shard.levels[depth].nodes:
        dist = factory.new_zeroed()
        for child, flag in DepBoolFinder(node_id, depth, step, shard):
            _add_child(dist, prev.get(child), flag)
        out.insert(node_id, dist)


def weight_distributions_for_member(shard, member, centurion, below, prev, factory):
    """
    Verteilungen einer Ebene innerhalb einer Kohorte. Die Kanten von der
    Centurion-Ebene bis zum Mitglied und vom Mitglied bis zur nächsten
    Centurion-Ebene werden mit ODER verknüpft.
    """
    out = WDLevel(member)
    for c_id in shard.levels[centurion].nodes:
        for m_id, c_edge in DepBoolFinder(c_id, centurion, member - centurion, shard):
            entry = out.entry(m_id, factory)
            for p_id, m_edge in DepBoolFinder(m_id, member, below - member, shard):
                _add_child(entry, prev.get(p_id), c_edge or m_edge)
    return out


def _centurion_above(depth, base, step):
    cohorts = (base - depth + step - 1) // step
    return base - cohorts * step


def weight_distributions_for_level(shard, depth, active_area, step, factory=None):
    """
    Berechnet die Verteilungen aller Knoten der Ebene depth, von unten
    (Senke der aktiven Zone) nach oben. Es werden nur zwei Ebenen
    gleichzeitig gehalten.

    Liegt depth zwischen der Basis (end - step) und end, wird abgebrochen:
    dieser Fall wird nicht unterstützt.
    """
    factory = factory or TransparentFactory(WDPresence)
    start, end = process_range(shard, active_area, step)
    assert start <= depth < end, f"Depth {depth} lies outside of active area {start}..{end}"
    base = end - step
    assert depth <= base, f"Depth {depth} lies between base case {base} and sink {end}: edge case not supported"

    prev, cur = WDLevel(base), WDLevel(base)
    _fill_base_case(shard, base, end, factory, prev)
    if depth == base:
        return prev

    centurion = _centurion_above(depth, base, step)
    target = depth if centurion == depth else centurion + step

    c_depth = base
    while c_depth > target:
        c_depth -= step
        _fill_centurion(shard, c_depth, step, prev, factory, cur)
        prev, cur = cur, prev
    cur.clear()

    if centurion == depth:
        return prev
    return weight_distributions_for_member(shard, depth, centurion, target, prev, factory)


def weight_distributions_arena(shard, active_area, step, factory=None):
    """
    Wie weight_distributions_for_level, behält aber jede Centurion-Ebene von
    der Basis bis zum Anfang der aktiven Zone in einer WDArena.
    """
    factory = factory or TransparentFactory(WDPresence)
    start, end = process_range(shard, active_area, step)
    base = end - step

    arena = WDArena()
    prev = WDLevel(base)
    _fill_base_case(shard, base, end, factory, prev)
    arena.insert_level(prev)

    c_depth = base - step
    while c_depth >= start:
        cur = WDLevel(c_depth)
        _fill_centurion(shard, c_depth, step, prev, factory, cur)
        arena.insert_level(cur)
        prev = cur
        c_depth -= step
    return arena


def identify_trails_and_weights(shard, active_area, step):
    return weight_distributions_arena(shard, active_area, step, TransparentFactory(WDPresence))


def weight_distributions_for_level_top_down(shard, depth, active_area, step, factory=None, progress=None):
    """
    Berechnet die Verteilungen der Ebene depth von oben nach unten: jede
    Centurion-Ebene ab dem Anfang der aktiven Zone erhält triviale
    Verteilungen (End-ID = Startknoten) und wird Kohorte um Kohorte nach unten
    weitergereicht.

    Args:
        shard: der Shard
        depth: Zielebene
        active_area: Tupel (start, end)
        step: Grösse einer Kohorte
        factory: erstellt die (trivialen) Verteilungen
        progress: optionale PPFactory für eine Fortschrittsanzeige
    """
    factory = factory or TransparentFactory(WDPresence)
    start, end = process_range(shard, active_area, step)
    assert start <= depth < end, f"Depth {depth} lies outside of active area {start}..{end}"

    prev = WDLevel(start)
    for node_id in shard.levels[start].nodes:
        prev.insert(node_id, factory.new_trivial(node_id))
    cur = WDLevel(start)

    pb = progress.new_progress_bar((depth - start) // step + 1) if progress is not None else None
    c_depth = start
    while c_depth < depth:
        jump = min(step, depth - c_depth)
        cur.clear(c_depth + jump)
        for node_id, dist in prev:
            for child, flag in DepBoolFinder(node_id, c_depth, jump, shard):
                _add_child(cur.entry(child, factory), dist, flag)
        prev, cur = cur, prev
        c_depth += jump
        if pb is not None:
            pb.inc(1)
    if pb is not None:
        pb.finish_and_clear()
    return prev
