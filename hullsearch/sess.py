import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

from crhs.distribution import EndNodeDist, TargetedFactory, TransparentFactory, WDCount, WDPresence
from crhs.errors import ShardError
from crhs.weights import weight_distributions_for_level, weight_distributions_for_level_top_down
from hullsearch.trace import AlphaBetaInnerPaths, LevelStats, PreSessEstimateMD

"""

Schätzung der besten SESS-Verbindung (ein Start-Knoten auf der Alpha-Ebene,
ein End-Knoten auf der Beta-Ebene). Für jede Verbindung wird die Anzahl
innerer Pfade pro Gewicht gezählt und mit 2^(-k * (w - L)) gewichtet, wobei
L das NT-LEW der Alpha-Ebene und k der durchschnittliche Exponent einer
aktiven S-Box ist. Danach wird der Master auf die beste Verbindung reduziert.

"""

log = logging.getLogger(__name__)

MAX_CONNECTIONS = 20
NR_BUCKETS = 3


class OnlyTrivialHullError(ShardError):
    """Der Master enthält nur den trivialen Pfad (keine aktive S-Box)."""


@dataclass
class SessEstimate:
    """
    Args:
        start: Knoten-ID auf der Alpha-Ebene
        end: Knoten-ID auf der Beta-Ebene
        estimate: geschätzte relative Wahrscheinlichkeit
        sub_dist: Gewicht der inneren Pfade -> Anzahl Pfade
        beta_w: NT-LEW des Beta-Knotens
        hull_distribution: Verteilung aller inneren Pfade (WDCount), nach der Wahl gesetzt
    """
    start: int
    end: int
    estimate: float
    sub_dist: Dict[int, int]
    beta_w: int
    hull_distribution: Optional[WDCount] = None

    def inner_nt_lew(self):
        return min(self.sub_dist)

    def log2_estimate(self):
        return math.log2(self.estimate) if self.estimate > 0 else float('-inf')

    def sum_inner_paths(self):
        """Anzahl innerer Pfade gemäss Hull-Verteilung, mit Überlauf-Flag."""
        if self.hull_distribution is None:
            return sum(self.sub_dist.values()), False
        return self.hull_distribution.total_number_of_paths_overflowing()

    def log_entry(self):
        return (f"{' SESS estimate ':-^80}\n"
                f"  alpha node: {self.start}, beta node: {self.end}, beta weight: {self.beta_w}\n"
                f"  estimate: {self.estimate:.6g} (log2 {self.log2_estimate():.3f}), "
                f"inner nt-lew: {self.inner_nt_lew()}\n"
                f"  inner paths (weight: count): {dict(sorted(self.sub_dist.items()))}")


def alpha_candidates(tau_alpha):
    """
    Teilt die Knoten der Alpha-Ebene nach ihrem NT-LEW in Stufen L, L+1 und
    L+2 ein, wobei L das NT-LEW der Ebene ist.

    Returns:
        (L, [Knoten mit NT-LEW L, L+1, L+2])
    """
    nt = tau_alpha.nt_lew()
    if nt is None:
        raise OnlyTrivialHullError(f"Only the trivial path exists at depth {tau_alpha.depth}")
    level_nt_lew = nt[0]
    buckets = [[] for _ in range(NR_BUCKETS)]
    for node_id, dist in tau_alpha:
        w = dist.lowest_existing_non_trivial_weight()
        if w is None:
            continue
        idx = w - level_nt_lew
        if 0 <= idx < NR_BUCKETS:
            buckets[idx].append(node_id)
    for bucket in buckets:
        bucket.sort()
    return level_nt_lew, buckets


def make_estimate(alpha, beta, beta_w, weights, alpha_beta_dist, level_nt_lew, k):
    """
    Erstellt die Schätzung für die Verbindung alpha -> beta, oder None, falls
    keine innere Verbindung mit passendem Gewicht existiert.

    Args:
        weights: Gesamtgewichte des Alpha-Knotens, welche berücksichtigt werden
        alpha_beta_dist: EndNodeDist des Beta-Knotens, nach Alpha-Knoten aufgeteilt
    """
    sub_dist = {}
    estimate = 0.0
    for w in weights:
        inner = w - beta_w
        if inner < 0:
            continue
        count = alpha_beta_dist.paths_for_weight_in_id(inner, alpha)
        if not count:
            continue
        sub_dist[inner] = count
        estimate += count * 2.0 ** (-k * (w - level_nt_lew))
    if not sub_dist:
        return None
    return SessEstimate(alpha, beta, estimate, sub_dist, beta_w)


def estimate_best_sess_connections(tau_alpha, tau_beta, alpha_beta, level_nt_lew, buckets, k,
                                   max_connections=MAX_CONNECTIONS):
    """
    Bewertet alle Verbindungen zwischen den Alpha-Kandidaten und den Knoten
    der Beta-Ebene und gibt die besten max_connections Schätzungen absteigend
    sortiert zurück.

    Args:
        tau_alpha: Verteilungen der Alpha-Ebene (bis zur Senke)
        tau_beta: Verteilungen der Beta-Ebene (bis zur Senke)
        alpha_beta: Verteilungen der Beta-Ebene, pro Alpha-Kandidat
        level_nt_lew: NT-LEW der Alpha-Ebene
        buckets: Alpha-Kandidaten aus alpha_candidates
        k: durchschnittlicher Exponent einer aktiven S-Box
    """
    threshold = max(20000, int(1.1 * max_connections))
    estimates = []
    for offset, bucket in enumerate(buckets):
        candidates_nt_lew = level_nt_lew + offset
        for alpha in bucket:
            existing = tau_alpha.get(alpha).existing_weights()
            start_contains = [w for w in range(candidates_nt_lew, candidates_nt_lew + NR_BUCKETS) if w in existing]
            for beta, beta_dist in tau_beta:
                beta_w = beta_dist.lowest_existing_non_trivial_weight()
                ab = alpha_beta.get(beta)
                if beta_w is None or ab is None:
                    continue
                est = make_estimate(alpha, beta, beta_w, start_contains, ab, level_nt_lew, k)
                if est is not None:
                    estimates.append(est)
            if len(estimates) > threshold:
                estimates.sort(key=lambda e: -e.estimate)
                del estimates[threshold:]

    estimates.sort(key=lambda e: -e.estimate)
    return estimates[:max_connections]


def delete_non_sess_estimate_nodes(master, meta, best):
    """Entfernt alle Knoten der Alpha- und Beta-Ebene ausser jenen der Schätzung best."""
    others = [i for i in master.levels[meta.alpha_depth].nodes if i != best.start]
    master.delete_all_marked_nodes_from_level(others, meta.alpha_depth)
    others = [i for i in master.levels[meta.beta_depth].nodes if i != best.end]
    master.delete_all_marked_nodes_from_level(others, meta.beta_depth)
    assert master.width(meta.alpha_depth) == 1 and master.width(meta.beta_depth) == 1, \
        "Master was not reduced to a single alpha and beta node"


def count_alpha_and_beta_paths(master, meta):
    """
    Anzahl Alpha-Pfade (Quelle bis Alpha-Ebene) und Beta-Pfade (Beta-Ebene
    bis Senke). Setzt voraus, dass beide Ebenen nur noch einen Knoten haben.
    """
    count = TransparentFactory(WDCount)
    sierra = weight_distributions_for_level_top_down(master, meta.alpha_depth, (0, meta.alpha_depth + 1),
                                                     meta.step, count)
    tau = weight_distributions_for_level(master, meta.beta_depth, (meta.beta_depth, meta.end), meta.step, count)
    sum_alpha = sum(d.total_number_of_paths_overflowing()[0] for _, d in sierra)
    sum_beta = sum(d.total_number_of_paths_overflowing()[0] for _, d in tau)
    return sum_alpha, sum_beta


def estimate_best_sess(master, meta, k, trace=None, max_connections=MAX_CONNECTIONS, progress=None):
    """
    Wählt die beste SESS-Verbindung und reduziert den Master auf diese.

    Args:
        master: gelöster Master, wird verändert
        meta: SolvedSocMeta
        k: durchschnittlicher Exponent einer aktiven S-Box
        trace: optionaler TraceLogger
        max_connections: Anzahl behaltener Schätzungen
        progress: optionale PPFactory

    Returns:
        (beste Schätzung, alle behaltenen Schätzungen, AlphaBetaInnerPaths)
    """
    def emit(rec):
        if trace is not None:
            trace.record(rec)

    area = tuple(meta.active_area)
    presence = TransparentFactory(WDPresence)

    sierra_alpha = weight_distributions_for_level_top_down(master, meta.alpha_depth, (0, meta.alpha_depth + 1),
                                                           meta.step, TransparentFactory(WDCount), progress)
    emit(PreSessEstimateMD("SierraAlpha", meta.alpha_depth, LevelStats.from_level(sierra_alpha)))

    tau_alpha = weight_distributions_for_level(master, meta.alpha_depth, area, meta.step, presence)
    emit(PreSessEstimateMD("TauAlpha", meta.alpha_depth, LevelStats.from_level(tau_alpha)))

    level_nt_lew, buckets = alpha_candidates(tau_alpha)
    emit(PreSessEstimateMD("AlphaCandidates", meta.alpha_depth, extra={
        "level nt-lew": level_nt_lew, "+0": len(buckets[0]), "+1": len(buckets[1]), "+2": len(buckets[2])}))

    tau_beta = weight_distributions_for_level(master, meta.beta_depth, area, meta.step, presence)
    emit(PreSessEstimateMD("TauBeta", meta.beta_depth, LevelStats.from_level(tau_beta)))

    mess = weight_distributions_for_level_top_down(master, meta.beta_depth, area, meta.step, presence)
    emit(PreSessEstimateMD("MessConSummary", meta.beta_depth, LevelStats.from_level(mess)))

    targets = [i for bucket in buckets for i in bucket]
    alpha_beta = weight_distributions_for_level_top_down(master, meta.beta_depth, area, meta.step,
                                                         TargetedFactory(EndNodeDist, targets), progress)
    emit(PreSessEstimateMD("AlphaBeta", meta.beta_depth, LevelStats.from_level(alpha_beta),
                           extra={"targets": len(targets)}))

    estimates = estimate_best_sess_connections(tau_alpha, tau_beta, alpha_beta, level_nt_lew, buckets, k,
                                               max_connections)
    if not estimates:
        raise OnlyTrivialHullError("No alpha candidate connects to the beta level with a non-trivial weight")

    best = estimates[0]
    best.hull_distribution = alpha_beta.get(best.end).other_node(best.start)
    for est in estimates:
        emit(est)
    log.info("Best SESS estimate: alpha %d -> beta %d, log2 estimate %.3f",
             best.start, best.end, best.log2_estimate())

    delete_non_sess_estimate_nodes(master, meta, best)
    sum_alpha, sum_beta = count_alpha_and_beta_paths(master, meta)
    sum_inner, overflowed = best.sum_inner_paths()
    paths = AlphaBetaInnerPaths(sum_alpha, sum_beta, sum_inner, overflowed)
    emit(paths)
    return best, estimates, paths
