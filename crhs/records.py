from dataclasses import dataclass, field
from typing import List, Optional, Tuple

"""

Protokolleinträge des Pruning. Ein PruneRecord fasst einen Aufruf des
Pruning zusammen und enthält pro Schleifendurchlauf einen PruneLoopRecord,
dieser pro gelöschter Ebene einen DepthDeletionRecord und dieser pro
Lösch-Batch einen BatchRecord.

"""


@dataclass
class BatchRecord:
    batch_size: int
    start_complexity: int
    guessed_rate: float
    rate: float = 0.0
    marked_removed: int = 0
    missed_removed: int = 0

    def log_entry(self):
        return (f"      batch: size {self.batch_size}, start complexity {self.start_complexity}, "
                f"guessed rate {self.guessed_rate:.2f}, rate {self.rate:.2f}, "
                f"removed {self.marked_removed}, already gone {self.missed_removed}")


@dataclass
class DepthDeletionRecord:
    at_depth: int
    nodes_at_level: int
    marked: int
    start_complexity: int
    end_complexity: Optional[int] = None
    batches: List[BatchRecord] = field(default_factory=list)

    def log_entry(self):
        lines = [f"    depth {self.at_depth}: {self.marked} of {self.nodes_at_level} nodes marked, "
                 f"complexity {self.start_complexity} -> {self.end_complexity}"]
        lines.extend(b.log_entry() for b in self.batches)
        return "\n".join(lines)


@dataclass
class PruneLoopRecord:
    widest: Tuple[int, int]
    second_widest: Tuple[int, int]
    cohort_range: Tuple[int, int]
    prune_threshold: int
    roof_marked: int
    nodes_marked: int
    end_complexity: Optional[int] = None
    deletions: List[DepthDeletionRecord] = field(default_factory=list)
    marked_ids: List[int] = field(default_factory=list)

    def log_entry(self):
        lines = [f"  loop: widest (depth {self.widest[0]}, width {self.widest[1]}), "
                 f"second widest (depth {self.second_widest[0]}, width {self.second_widest[1]}), "
                 f"cohort {self.cohort_range[0]}..{self.cohort_range[1]}, threshold LEW {self.prune_threshold}, "
                 f"roof {self.roof_marked}, marked {self.nodes_marked}, complexity after {self.end_complexity}"]
        lines.extend(d.log_entry() for d in self.deletions)
        return "\n".join(lines)


@dataclass
class PruneRecord:
    step: int
    active_area: Tuple[int, int]
    start_complexity: int
    target_complexity: int
    version: int = 3
    end_complexity: Optional[int] = None
    loops: List[PruneLoopRecord] = field(default_factory=list)

    def log_entry(self):
        lines = [f"{' Prune (v' + str(self.version) + ') ':-^100}",
                 f"step {self.step}, active area {self.active_area[0]}..{self.active_area[1]}, "
                 f"complexity {self.start_complexity} -> {self.end_complexity} (target {self.target_complexity}), "
                 f"{len(self.loops)} loops"]
        lines.extend(loop.log_entry() for loop in self.loops)
        return "\n".join(lines)


class PruneLogger:
    """Nimmt PruneRecords entgegen. Diese Basisklasse verwirft sie."""
    def record(self, rec):
        pass


class MemoryPruneLogger(PruneLogger):
    def __init__(self):
        self.records = []

    def record(self, rec):
        self.records.append(rec)


class FilePruneLogger(PruneLogger):
    """Hängt jeden Eintrag als Text an die gegebene Datei an."""
    def __init__(self, path):
        self.path = path
        self.records = []

    def record(self, rec):
        self.records.append(rec)
        with open(self.path, "a") as f:
            f.write(rec.log_entry() + "\n")
