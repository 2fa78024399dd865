import logging
import os
import time
from dataclasses import dataclass, replace
from typing import Optional

from crhs.dump import read_shard, write_shard
from crhs.progress import SilentProgress, TqdmProgress
from crhs.records import FilePruneLogger
from hullsearch.aggregator import HullContext, calculate_hull
from hullsearch.bounds import ActiveSboxBound
from hullsearch.meta import AnalysisMode, SolvedSocMeta
from hullsearch.results import ProcessedResult
from hullsearch.sess import OnlyTrivialHullError, estimate_best_sess
from hullsearch.soc_gen import make_soc
from hullsearch.solver import SimpleSolver
from hullsearch.trace import MasterLayoutMD, TraceLogger
from spn.catalog import batch, make_cipher

"""

Ein vollständiger Lauf: Chiffre erstellen, Gleichungssystem lösen (oder einen
gelösten Master laden), beste SESS-Verbindung schätzen und die Hull
berechnen. Alle Ausgaben landen im Ausgabeverzeichnis unter dem Namen
{cipher}_r{R}_lim{L}_mode{diff|lin}.

"""

log = logging.getLogger(__name__)


@dataclass
class RunOutcome:
    config: object
    rounds: int
    result: Optional[ProcessedResult]
    trivial: bool = False
    solve_time: float = 0.0
    hull_time: float = 0.0
    prune_records: list = None

    def best_probability(self):
        if self.result is None:
            return None
        probs = [s.hull_probability for s in self.result.sections if s.hull_probability is not None]
        return min(probs) if probs else None


def _progress(config):
    return SilentProgress() if config.silent else TqdmProgress()


def solve_master(cipher, soc, config, rounds, progress, trace):
    """
    Löst das Gleichungssystem oder lädt einen bereits gelösten Master aus
    config.in_dir.

    Returns:
        (master, active_area, step, Liste der PruneRecords)
    """
    in_path = config.in_path(rounds)
    step = cipher.sbox_size_out()
    if in_path is not None and os.path.exists(in_path):
        log.info("Loading solved master from %s", in_path)
        trace.text(f"Loaded solved master from {in_path}")
        master = read_shard(in_path)
        end = master.sink_depth()
        return master, (min(soc.block_size, end - soc.block_size), end), step, []

    prune_logger = FilePruneLogger(config.out_path(rounds, "_pruning_logg.txt"))
    solver = SimpleSolver(soc, progress, prune_logger)
    solver.run(config.soft_lim)
    solved = solver.finalize()
    write_shard(solved.master, config.out_path(rounds, ".bdd"))
    for rec in solved.librarian.joins():
        trace.record(rec)
    return solved.master, solved.active_area, solved.step, prune_logger.records


def analyse(config, show_results=True):
    """
    Führt einen Lauf gemäss config aus.

    Args:
        config: RunConfig
        show_results: Zusammenfassung auf stdout ausgeben

    Returns:
        RunOutcome
    """
    mode = AnalysisMode.from_name(config.mode)
    cipher = make_cipher(config.cipher, config.rounds, mode.value)
    rounds = cipher.nr_of_rounds()
    os.makedirs(config.out_dir, exist_ok=True)
    progress = _progress(config)

    with TraceLogger(config.out_path(rounds, "_trace.txt")) as trace:
        trace.text(f"{cipher.name}, {rounds} rounds, {mode.value}, soft limit {config.soft_lim}")

        start = time.time()
        soc = make_soc(cipher, rounds)
        master, active_area, step, prune_records = solve_master(cipher, soc, config, rounds, progress, trace)
        solve_time = time.time() - start

        meta = SolvedSocMeta.from_solved(active_area, step, cipher, rounds)
        trace.record(MasterLayoutMD.from_master(master, meta))

        start = time.time()
        try:
            best, _, paths = estimate_best_sess(master, meta, cipher.base_table().k, trace,
                                                config.max_connections, progress)
        except OnlyTrivialHullError as e:
            log.warning("Only the trivial hull exists: %s", e)
            report = f"{cipher.name}, {rounds} rounds, {mode.value}: only the trivial hull exists ({e})\n"
            trace.text(report.strip())
            with open(config.out_path(rounds, "_pp_results.txt"), "w") as f:
                f.write(report)
            return RunOutcome(config, rounds, None, trivial=True, solve_time=solve_time,
                              prune_records=prune_records)

        ctx = HullContext(master, meta, soc, cipher, linear=(mode is AnalysisMode.LINEAR))
        sections = calculate_hull(ctx, best, config.enumeration, config.upper_limit, progress, trace)

        bound = None
        if config.bound:
            bound = ActiveSboxBound(cipher, rounds).solve()
            trace.record(bound)
        hull_time = time.time() - start

        result = ProcessedResult(cipher.name, rounds, mode.value, best, sections, paths, bound)
        result.write(config.out_path(rounds, "_pp_results.txt"))
        trace.text(f"Solving took {solve_time:.2f}s, hull calculation took {hull_time:.2f}s")

    if config.plot:
        _plot(config, rounds, sections, prune_records)

    if show_results:
        print(result.render())
        print(f"Laufzeit: Lösen {solve_time:.2f}s, Hull {hull_time:.2f}s")

    return RunOutcome(config, rounds, result, solve_time=solve_time, hull_time=hull_time,
                      prune_records=prune_records)


def _plot(config, rounds, sections, prune_records):
    from hullsearch.plotting import plot_bins, plot_prune_history

    for section in sections:
        if section.bins:
            plot_bins(section, config.out_path(rounds, f"_bins_{section.mode.value}.png"))
    if prune_records:
        plot_prune_history(prune_records, config.out_path(rounds, "_pruning.png"))


def analyse_batch(number, config, modes, show_results=True):
    """
    Führt für jede Chiffre des Batches und jeden Modus einen Lauf mit der
    Standardanzahl Runden aus.
    """
    outcomes = []
    for name in batch(number):
        for mode in modes:
            cfg = replace(config, cipher=name, mode=mode, rounds=None)
            log.info("Batch %d: %s (%s)", number, name, mode)
            outcomes.append(analyse(cfg, show_results))
    return outcomes
