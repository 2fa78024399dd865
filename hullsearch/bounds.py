from z3 import *
from dataclasses import dataclass
from typing import Optional

from hullsearch.base_table import PROB_FACTOR

"""

Schranken für einzelne Charakteristiken mit dem Z3 Solver von Microsoft Research. Das SPN
wird als Optimierungsproblem beschrieben (Übergänge jeder S-Box gemäss Basistabelle,
Bit-Permutation zwischen den Runden, Eingabe ungleich null), woraus die minimale Anzahl
aktiver S-Boxen und der kleinste Exponent einer einzelnen Charakteristik folgen.
Die Hull-Wahrscheinlichkeit ist mindestens so gross wie die beste Charakteristik.

"""


@dataclass
class TrailBound:
    min_active_sboxes: Optional[int]
    best_weight: Optional[int]
    alpha: Optional[int] = None
    beta: Optional[int] = None
    block_size: int = 0

    def log_entry(self):
        digits = (self.block_size + 3) // 4
        lines = [f"{' Single trail bound (z3) ':-^80}"]
        lines.append(f"  minimum active S-boxes: {self.min_active_sboxes}")
        if self.best_weight is not None:
            lines.append(f"  best trail: 2^(-{self.best_weight / PROB_FACTOR:.4f}), "
                         f"alpha = {self.alpha:0{digits}x}, beta = {self.beta:0{digits}x}")
        return "\n".join(lines)


class ActiveSboxBound:
    """
    Diese Klasse erstellt für ein SPN und eine Anzahl Runden zwei Optimierungsmodelle: eines,
    welches die Anzahl aktiver S-Boxen minimiert und eines, welches die Summe der Exponenten
    (also -log2 der Wahrscheinlichkeit bzw. der quadrierten Korrelation) minimiert.
    """
    def __init__(self, spn, num_rounds: int, timeout_ms: int = None):
        """
        Initialisiert die Suche.

        Args:
            spn: vorgegebene SPN-Instanz
            num_rounds: Anzahl Runden der Charakteristik
            timeout_ms: optionales Zeitlimit pro Optimierung
        """
        self.spn = spn
        self.num_rounds = num_rounds
        self.timeout_ms = timeout_ms
        self.block = spn.block_size()
        self.n = spn.sbox_size_in()
        self.num_sboxes = spn.num_sboxes()
        self.linear = spn.mode == 'linear'
        self.look_up_table = self._compute_look_up_table()

    def _compute_look_up_table(self):
        """
        Exponent jedes möglichen Übergangs (a, b) gemäss Basistabelle, wobei
        Übergänge mit Eintrag null fehlen. Im linearen Fall wird der Exponent
        der Korrelation verdoppelt.
        """
        table = self.spn.base_table()
        factor = 2 if self.linear else 1
        res = {}
        for a in range(table.rows()):
            for b in range(table.cols()):
                e = table.entry(a, b)
                if e != 0:
                    res[(a, b)] = factor * table.prob_exponent_for_entry(e)
        return res

    def _define_variables(self):
        """
        in_masks: Masken/Differenzen der Eingabe jeder Runde
        out_masks: Masken/Differenzen der Ausgabe jeder Runde
        """
        self.in_masks = [BitVec(f"in_{r}", self.block) for r in range(self.num_rounds)]
        self.out_masks = [BitVec(f"out_{r}", self.block) for r in range(self.num_rounds)]

    def _build(self):
        """
        Fügt die Übergänge der S-Boxen, die Permutation und die Bedingung
        alpha != 0 hinzu. Liefert den Solver, die Aktivitäts-Booleans und die
        Exponenten aller S-Boxen.
        """
        self._define_variables()
        solver = Optimize()
        if self.timeout_ms is not None:
            solver.set("timeout", self.timeout_ms)
        active, weights = [], []
        n = self.n
        for r in range(self.num_rounds):
            for i in range(self.num_sboxes):
                in_nib = Extract((i + 1) * n - 1, i * n, self.in_masks[r])
                out_nib = Extract((i + 1) * n - 1, i * n, self.out_masks[r])

                weight = Int(f"w_r{r}_s{i}")
                options = []
                for (a, b), v in self.look_up_table.items():
                    options.append(And(in_nib == a, out_nib == b, weight == v))
                solver.add(Or(*options))
                weights.append(weight)

                is_active = Bool(f"active_r{r}_sbox_{i}")
                solver.add(is_active == (in_nib != 0))
                active.append(is_active)

            if r + 1 < self.num_rounds:
                for i in range(self.block):
                    bit = Extract(i, i, self.out_masks[r])
                    p = self.spn.pbox[i]
                    solver.add(Extract(p, p, self.in_masks[r + 1]) == bit)

        solver.add(self.in_masks[0] != 0)
        return solver, active, weights

    def min_active_sboxes(self):
        solver, active, _ = self._build()
        total = Int("total_active")
        solver.add(total == Sum([If(b, 1, 0) for b in active]))
        solver.minimize(total)
        if solver.check() != sat:
            return None
        return solver.model().evaluate(total).as_long()

    def best_trail(self):
        """
        Sucht die Charakteristik mit dem kleinsten Exponenten.

        Returns:
            (Exponent, alpha, beta) oder None
        """
        solver, _, weights = self._build()
        total = Int("total_weight")
        solver.add(total == Sum(weights))
        solver.minimize(total)
        if solver.check() != sat:
            return None
        model = solver.model()
        alpha = model.evaluate(self.in_masks[0]).as_long()
        beta = model.evaluate(self.out_masks[-1]).as_long()
        return model.evaluate(total).as_long(), alpha, beta

    def solve(self):
        best = self.best_trail()
        if best is None:
            return TrailBound(self.min_active_sboxes(), None, block_size=self.block)
        return TrailBound(self.min_active_sboxes(), best[0], best[1], best[2], self.block)
