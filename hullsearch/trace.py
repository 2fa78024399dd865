import logging
import queue
import statistics
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

"""

Strukturierte Protokolleinträge der Hull-Suche und der TraceLogger, welcher
sie in einem eigenen Thread in die Trace-Datei schreibt. Die Einträge werden
über eine Queue weitergereicht, der Aufrufer wartet also nie auf die Datei.

"""

log = logging.getLogger(__name__)


@dataclass
class LevelStats:
    num_nodes: int
    weights_len_and_count: Dict[int, int]
    weights_seen_and_count: Dict[int, int]
    lowest: Optional[int]
    nt_lew: Optional[int]
    highest: Optional[int]
    median: Optional[float]
    sum: Optional[int]

    @classmethod
    def from_level(cls, level):
        lens, seen, lews = {}, {}, []
        highest = None
        total = 0
        counting = True
        for _, dist in level:
            weights = dist.existing_weights()
            lens[len(weights)] = lens.get(len(weights), 0) + 1
            for w in weights:
                seen[w] = seen.get(w, 0) + 1
            lew = dist.lowest_existing_weight()
            if lew is not None:
                lews.append(lew)
            if weights:
                highest = max(weights) if highest is None else max(highest, max(weights))
            if hasattr(dist, 'total_number_of_paths_overflowing'):
                total += dist.total_number_of_paths_overflowing()[0]
            else:
                counting = False
        nt = level.nt_lew()
        return cls(len(level), dict(sorted(lens.items())), dict(sorted(seen.items())),
                   min(lews) if lews else None, nt[0] if nt else None, highest,
                   statistics.median(lews) if lews else None, total if counting else None)

    def log_entry(self):
        return (f"  nodes: {self.num_nodes}, lowest: {self.lowest}, nt-lew: {self.nt_lew}, "
                f"highest: {self.highest}, median lew: {self.median}, paths: {self.sum}\n"
                f"  weights seen (weight: nodes): {self.weights_seen_and_count}\n"
                f"  weights per node (count: nodes): {self.weights_len_and_count}")


@dataclass
class PreSessEstimateMD:
    """
    Statistik einer Ebene vor der SESS-Schätzung.

    Args:
        kind: SierraAlpha, TauAlpha, TauBeta, AlphaBeta, AlphaCandidates oder MessConSummary
        depth: Tiefe der Ebene
        stats: LevelStats, fehlt bei AlphaCandidates
        extra: zusätzliche Angaben (Anzahl Ziele, Kandidaten pro Stufe, ...)
    """
    kind: str
    depth: int
    stats: Optional[LevelStats] = None
    extra: Dict[str, object] = field(default_factory=dict)

    def log_entry(self):
        head = f"{' ' + self.kind + ' @ depth ' + str(self.depth) + ' ':-^80}"
        lines = [head]
        if self.extra:
            lines.append("  " + ", ".join(f"{k}: {v}" for k, v in self.extra.items()))
        if self.stats is not None:
            lines.append(self.stats.log_entry())
        return "\n".join(lines)


@dataclass
class MasterLayoutMD:
    size: int
    nr_levels: int
    active_area: Tuple[int, int]
    step: int
    alpha_depth: int
    beta_depth: int
    widest: List[Tuple[int, int]]

    @classmethod
    def from_master(cls, master, meta, nr_widest=5):
        widths = sorted(((master.width(d), d) for d in range(len(master.levels))), reverse=True)
        widest = [(d, w) for w, d in widths[:nr_widest]]
        return cls(master.size(), len(master.levels), tuple(meta.active_area), meta.step,
                   meta.alpha_depth, meta.beta_depth, widest)

    def log_entry(self):
        return (f"{' Master layout ':-^80}\n"
                f"  size: {self.size}, levels: {self.nr_levels}, active area: "
                f"{self.active_area[0]}..{self.active_area[1]}, step: {self.step}\n"
                f"  alpha depth: {self.alpha_depth}, beta depth: {self.beta_depth}\n"
                f"  widest levels (depth, width): {self.widest}")


@dataclass
class AlphaBetaInnerPaths:
    sum_alpha: int
    sum_beta: int
    sum_inner: int
    inner_overflowed: bool = False

    def log_entry(self):
        return (f"{' SESS paths ':-^80}\n"
                f"  alpha paths: {self.sum_alpha}, beta paths: {self.sum_beta}, "
                f"inner paths: {self.sum_inner}{' (overflowed)' if self.inner_overflowed else ''}")


@dataclass
class TextRecord:
    text: str

    def log_entry(self):
        return self.text


class TraceLogger:
    """
    Schreibt Einträge (Objekte mit log_entry) in einem Hintergrund-Thread in
    die Datei path. Ohne path werden die Texte nur in entries gesammelt.
    """
    _STOP = object()

    def __init__(self, path=None):
        self.path = path
        self.entries = []
        self._queue = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="trace-logger", daemon=True)
        self._thread.start()

    def _run(self):
        while True:
            rec = self._queue.get()
            if rec is self._STOP:
                break
            text = rec.log_entry()
            self.entries.append(text)
            if self.path is not None:
                with open(self.path, "a") as f:
                    f.write(text + "\n")

    def record(self, rec):
        self._queue.put(rec)

    def text(self, msg):
        self.record(TextRecord(msg))

    def close(self):
        if self._thread.is_alive():
            self._queue.put(self._STOP)
            self._thread.join()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
