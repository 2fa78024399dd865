import enum
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

"""

Metadaten und Protokoll des Lösers. Der SolverLibrarian führt die Historie
aller Operationen (Join, Absorption, Pruning) und zeigt den Fortschritt der
Absorptionen nach einem Join an.

"""

log = logging.getLogger(__name__)


class AnalysisMode(enum.Enum):
    DIFFERENTIAL = 'differential'
    LINEAR = 'linear'

    @property
    def tag(self):
        return 'diff' if self is AnalysisMode.DIFFERENTIAL else 'lin'

    @classmethod
    def from_name(cls, name):
        for mode in cls:
            if name in (mode.value, mode.tag):
                return mode
        raise ValueError(f"Unknown analysis mode '{name}'")


@dataclass
class SolvedSocMeta:
    """
    Lage des gelösten Masters.

    Args:
        active_area: (start, end), end ist die Tiefe der Senke
        step: Grösse einer Kohorte
        alpha_depth: Tiefe der Alpha-Ebene (Anfang der aktiven Zone)
        beta_depth: Tiefe der Beta-Ebene (Anfang der letzten Runde)
    """
    active_area: Tuple[int, int]
    step: int
    alpha_depth: int
    beta_depth: int

    @classmethod
    def from_solved(cls, active_area, step, cipher, nr_rounds):
        start, end = active_area
        assert (end - start) % step == 0, f"Active area {start}..{end} is not a multiple of step {step}"
        beta_depth = end - step * cipher.num_sboxes(nr_rounds - 1)
        assert start < beta_depth, f"Beta depth {beta_depth} does not lie below alpha depth {start}"
        return cls(active_area, step, start, beta_depth)

    @property
    def end(self):
        return self.active_area[1]


@dataclass
class JoinRec:
    bottom: int
    complexity: int
    unresolved_deps: int

    def log_entry(self):
        return f"Join: shard {self.bottom}, complexity {self.complexity}, unresolved dependencies {self.unresolved_deps}"


@dataclass
class AbsorbRec:
    base: int
    involved: List[int]
    ops: List[str] = field(default_factory=list)
    complexity: int = 0

    def record(self, op):
        self.ops.append(op)

    def log_entry(self):
        return (f"Absorb: base {self.base}, involved {self.involved}, "
                f"ops [{', '.join(self.ops)}], complexity {self.complexity}")


class SolverLibrarian:
    def __init__(self, complexity, progress):
        self.history = [f"New: complexity {complexity}"]
        self.progress = progress
        self._absorb_bar = None
        self._absorb_total = 0
        self._absorb_done = 0

    def record(self, rec):
        self.history.append(rec)
        if isinstance(rec, JoinRec) and rec.unresolved_deps:
            self._absorb_bar = self.progress.new_progress_bar(rec.unresolved_deps)
            self._absorb_bar.set_message("Absorbing")
            self._absorb_total = rec.unresolved_deps
            self._absorb_done = 0
        elif isinstance(rec, AbsorbRec) and self._absorb_bar is not None:
            self._absorb_done += 1
            self._absorb_bar.inc(1)
            if self._absorb_done >= self._absorb_total:
                self._absorb_bar.finish_and_clear()
                self._absorb_bar = None
        log.debug(rec if isinstance(rec, str) else rec.log_entry())

    def joins(self):
        return [r for r in self.history if isinstance(r, JoinRec)]

    def absorptions(self):
        return [r for r in self.history if isinstance(r, AbsorbRec)]
