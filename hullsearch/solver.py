import logging
from dataclasses import dataclass
from typing import Tuple

from crhs.algebra import dependency_members, extract_linear_dependencies
from crhs.errors import StructuralError
from crhs.progress import SilentProgress
from crhs.pruning import prune_v3
from crhs.records import PruneLogger
from crhs.shard import Shard, make_master
from hullsearch.meta import AbsorbRec, JoinRec, SolverLibrarian

"""

Der Löser fügt die Shards des Gleichungssystems Runde für Runde in den Master
ein. Nach jedem Join werden alle linearen Abhängigkeiten der LHS absorbiert,
und sobald der Master die weiche Grenze überschreitet, wird er gepruned.

"""

log = logging.getLogger(__name__)


@dataclass
class SolverResult:
    master: Shard
    step: int
    active_area: Tuple[int, int]
    librarian: SolverLibrarian


class SimpleSolver:
    def __init__(self, soc, progress=None, prune_logger=None):
        """
        Initialisiert den Löser und erstellt den Master aus dem ersten Block.

        Args:
            soc: RawSoc aus make_soc
            progress: PPFactory für Fortschrittsbalken
            prune_logger: PruneLogger, erhält einen PruneRecord pro Pruning
        """
        assert soc.rounds, "We cannot check a primitive with no rounds!"
        self.soc = soc
        self.shards = {s.id: s for s in soc.shards}
        self.master = make_master(soc.block_size, soc.nvar)
        self.master_block_size = soc.block_size
        self.cohorts = soc.cohorts

        steps = {len(lhss) for lhss in self.cohorts.values()}
        assert len(steps) == 1, (f"Currently only supports the same number of LHSs to be associated with an "
                                 f"S-box, but got different values: {sorted(steps)}")
        self.step = steps.pop()

        # Eingaben des ersten Blocks und Ausgaben aller S-Boxen
        self.protected = set(self.master.lhss())
        for lhss in self.cohorts.values():
            self.protected.update(lhss)

        self.joined = []
        self.progress = progress or SilentProgress()
        self.prune_logger = prune_logger or PruneLogger()
        self.librarian = SolverLibrarian(soc.size(), self.progress)

    def run(self, soft_lim):
        join_progress = self.progress.new_progress_bar(len(self.shards))
        nr_rounds = len(self.soc.rounds)
        for round_index, shard_ids in enumerate(self.soc.rounds, 1):
            for shard_id in shard_ids:
                self.join_op(shard_id)
                join_progress.inc(1)
                join_progress.set_message(f"In round {round_index} (of {nr_rounds}). Newest joined shard: {shard_id}")
                self.resolve_any_deps()
                self.check_prune(soft_lim)
        join_progress.finish_with_message("All shards are joined into Master")
        log.info("Master solved: %d nodes over %d levels", self.master.size(), len(self.master.levels))

    def finalize(self):
        return SolverResult(self.master, self.step, self.active_area(), self.librarian)

    def dependencies(self):
        return extract_linear_dependencies(self.master.lhs_matrix())

    def join_op(self, bottom):
        self.master.join(self.shards.pop(bottom))
        self.joined.append(bottom)
        deps = self.dependencies()
        self.librarian.record(JoinRec(bottom, self.master.size(), len(deps)))

    def resolve_any_deps(self):
        """
        Absorbiert alle linearen Abhängigkeiten im Master. Eine Absorption kann
        den Master im schlimmsten Fall verdoppeln, zwischen weicher und harter
        Grenze muss also Platz für 2^a bleiben, wobei a die Anzahl Absorptionen
        pro Join ist.
        """
        deps = self.dependencies()
        while len(deps):
            self.resolve_dep(self.next_to_resolve(deps))
            deps = self.dependencies()

    @staticmethod
    def next_to_resolve(deps):
        """Abhängigkeit mit der kleinsten Distanz zwischen oberster und unterster Ebene."""
        best, shortest = None, None
        for row in deps:
            members = dependency_members(row)
            assert len(members) > 1, "We expect a linear dependency to include at least two levels."
            span = members[-1] - members[0]
            if shortest is None or span < shortest:
                best, shortest = members, span
        return best

    def pre_absorb(self, involved):
        """
        Wählt die Ebene base, welche absorbiert wird. Bevorzugt wird die
        unterste beteiligte Ebene, danach die oberste. Sind beide geschützt,
        wird die erste ungeschützte Ebene an den näheren Rand verschoben:
        ganz nach unten oder direkt unter die oberste Ebene. Geschützte LHS
        werden nur bei zwei identischen Ebenen zu base.

        Returns:
            (base, rest, rec), rest in der Reihenfolge, in welcher
            resolve_dep die Ebenen auf base addiert
        """
        involved = sorted(involved)
        if len(involved) == 2:
            base = involved.pop()
            return base, involved, AbsorbRec(base, list(involved))

        top, bottom = involved[0], involved[-1]
        if self.master.levels[bottom].lhs not in self.protected:
            base = involved.pop()
            rest = involved[::-1]
            return base, rest, AbsorbRec(base, list(rest))

        if self.master.levels[top].lhs not in self.protected:
            rest = involved[1:]
            return top, rest, AbsorbRec(top, list(rest))

        for depth in involved[1:-1]:
            if self.master.levels[depth].lhs in self.protected:
                continue
            others = [d for d in involved if d != depth]
            if bottom - depth < depth - top:
                base = bottom
                rest = sorted((d - 1 if d > depth else d for d in others), reverse=True)
            else:
                base = top + 1
                rest = [top] + [d + 1 if top < d < depth else d for d in others[1:]]
            rec = AbsorbRec(base, list(rest))
            if depth != base:
                self.master.swap_levels(depth, base)
                rec.record(f"Swap({depth}, {base})")
            return base, rest, rec

        raise StructuralError(f"Every LHS of the dependency at depths {involved} is protected")

    def resolve_dep(self, involved):
        """
        Addiert die übrigen Ebenen der Abhängigkeit auf base, bis deren LHS
        null ist, und entfernt base. Liegt die nächste Ebene über base, wird
        base direkt unter sie geschoben, sonst an ihre Stelle.
        """
        base, rest, rec = self.pre_absorb(involved)
        for nxt in rest:
            if nxt < base:
                above, below = nxt, nxt + 1
            else:
                above, below = nxt - 1, nxt
            if base != below:
                self.master.swap_levels(base, below)
                rec.record(f"Swap({base}, {below})")
            self.master.add(above, below)
            rec.record(f"Add({above}, {below})")
            base = below
        self.master.absorb(base, False)
        rec.record(f"Extract({base})")
        rec.complexity = self.master.size()
        self.librarian.record(rec)

    def active_area(self):
        """
        Ebenen des Masters, welche den Invarianten des Pruning genügen. Im
        ersten Runde fehlen noch Ausgaben, dort beginnt die Zone früher.
        """
        end = self.master.sink_depth()
        start = min(self.master_block_size, end - self.master_block_size)
        return start, end

    def pre_prune(self):
        """Prüft, dass die Ebenen jeder S-Box benachbart und in der aktiven Zone liegen."""
        start, end = self.active_area()
        lhs_depth = {lhs: depth for depth, lhs in enumerate(self.master.lhss())}
        for shard_id in self.joined:
            try:
                depths = sorted(lhs_depth[lhs] for lhs in self.cohorts[shard_id])
            except KeyError:
                raise StructuralError(f"Lost a protected LHS of S-box {shard_id}") from None
            for prev, depth in zip(depths, depths[1:]):
                assert depth == prev + 1, (f"Level not adjacent to the other levels from the same S-box! "
                                           f"Active range {start}..{end}, S-box {shard_id}, depth {depth}")
            for depth in depths:
                assert start <= depth < end, (f"Depth not within active range! Active range {start}..{end}, "
                                              f"S-box {shard_id}, depth {depth}")

    def check_prune(self, soft_lim):
        if self.master.size() <= soft_lim:
            return
        self.pre_prune()
        bar = self.progress.new_progress_bar(max(1, self.master.size() - soft_lim))
        rec = prune_v3(self.master, soft_lim, self.active_area(), self.step,
                       librarian=self.prune_logger, progress=bar)
        self.librarian.record(rec)
