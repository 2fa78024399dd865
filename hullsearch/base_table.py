import math

import numpy as np

"""

Basistabellen (DDT oder angepasste LAT) einer S-Box. Die Wahrscheinlichkeit
eines Eintrags e ist e / BT[0][0], gespeichert wird der Exponent
-log2(e / BT[0][0]) skaliert mit PROB_FACTOR.

"""

PROB_FACTOR = 1000


class BaseTable:
    """
    Eine Basistabelle mit den Exponenten aller vorkommenden Einträge und dem
    Wert k, dem durchschnittlichen Exponenten pro aktiver S-Box.
    """
    def __init__(self, table):
        table = np.asarray(table, dtype=np.int64)
        if table.ndim != 2 or table.size == 0:
            raise ValueError("A base table must be a non-empty two dimensional table")
        if table[0, 0] <= 0:
            raise ValueError("Entry (0, 0) of a base table must be positive")
        if (table < 0).any() or (table > table[0, 0]).any():
            raise ValueError(f"Base table entries must lie within 0..{table[0, 0]}")
        self.table = table
        self.prob_exponents = self._compute_prob_exponents()
        self.k = self._compute_k()

    def _compute_prob_exponents(self):
        denom = int(self.table[0, 0])
        exponents = {}
        for e in np.unique(self.table):
            e = int(e)
            if e == 0:
                exponents[e] = None
            else:
                exponents[e] = int(-math.log2(e / denom) * PROB_FACTOR)
        return exponents

    def _compute_k(self):
        inner = self.table[1:, 1:]
        values, counts = np.unique(inner[inner != 0], return_counts=True)
        total = counts.sum()
        if total == 0:
            return 0.0
        k = 0.0
        for e, count in zip(values, counts):
            k += (count / total) * (self.prob_exponents[int(e)] / PROB_FACTOR)
        return float(k)

    def rows(self):
        return self.table.shape[0]

    def cols(self):
        return self.table.shape[1]

    def entry(self, row, col):
        return int(self.table[row, col])

    def row(self, row):
        return [int(e) for e in self.table[row]]

    def column(self, col):
        return [int(e) for e in self.table[:, col]]

    def prob_exponent_for_entry(self, entry):
        if entry not in self.prob_exponents:
            if entry == 0:
                return None
            return int(-math.log2(entry / int(self.table[0, 0])) * PROB_FACTOR)
        return self.prob_exponents[entry]

    def best_row_for_col(self, col):
        """Zeile mit dem grössten Eintrag in Spalte col, bei Gleichstand die kleinste."""
        return int(np.argmax(self.table[:, col]))

    def best_col_for_row(self, row):
        return int(np.argmax(self.table[row]))
