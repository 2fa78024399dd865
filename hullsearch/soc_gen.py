import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from crhs.algebra import to_matrix
from crhs.shard import Level, Node, Shard

"""

Aufbau des Gleichungssystems (SoC) aus einer Chiffre. Pro Runde und S-Box
entsteht ein Shard, dessen obere Ebenen die Eingabebits und dessen untere
Ebenen die Ausgabebits der S-Box tragen. Die Ausgaben erhalten jeweils neue
Variablen, die Eingaben der nächsten Runde entstehen durch die lineare
Schicht aus den Ausgaben der aktuellen Runde.

"""

log = logging.getLogger(__name__)


class GenericShard:
    """
    Shard einer S-Box ohne konkrete LHS. Für jeden Eintrag ungleich null der
    Basistabelle existiert genau ein Pfad: zuerst die Bits der Zeile, dann die
    Bits der Spalte, jeweils mit dem niederwertigsten Bit zuoberst.
    """
    def __init__(self, table, size_in, size_out):
        assert table.rows() == 1 << size_in, f"Base table has {table.rows()} rows, expected {1 << size_in}"
        assert table.cols() == 1 << size_out, f"Base table has {table.cols()} columns, expected {1 << size_out}"
        self.size_in = size_in
        self.size_out = size_out
        self.shard = self._build(table)

    def _build(self, table):
        total = self.size_in + self.size_out
        ids = {}

        def node_id(depth, prefix):
            key = (depth, prefix)
            if key not in ids:
                ids[key] = len(ids) + 1
            return ids[key]

        levels = [Level() for _ in range(total + 1)]
        sink = node_id(total, 0)
        levels[total].nodes[sink] = Node()

        for row in range(table.rows()):
            for col in range(table.cols()):
                if table.entry(row, col) == 0:
                    continue
                value = row | (col << self.size_in)
                for depth in range(total):
                    parent = node_id(depth, value & ((1 << depth) - 1))
                    node = levels[depth].nodes.setdefault(parent, Node())
                    if depth + 1 == total:
                        child = sink
                    else:
                        child = node_id(depth + 1, value & ((1 << (depth + 1)) - 1))
                    node.set_edge((value >> depth) & 1, child)

        shard = Shard(0, levels)
        shard.reduce()
        return shard

    def into_specific(self, in_lhss, out_lhss, shard_id, nvar):
        """
        Kopiert den generischen Shard und setzt die LHS der Ebenen.

        Args:
            in_lhss: LHS der Eingabebits, Bit 0 zuerst
            out_lhss: LHS der Ausgabebits, Bit 0 zuerst
            shard_id: ID des neuen Shards
            nvar: Anzahl Variablen des Systems
        """
        assert len(in_lhss) == self.size_in and len(out_lhss) == self.size_out
        shard = self.shard.copy()
        for level, lhs in zip(shard.levels, list(in_lhss) + list(out_lhss)):
            level.lhs = lhs
        shard.nvar = nvar
        shard.id = shard_id
        return shard


@dataclass
class RawSoc:
    """
    Das Gleichungssystem vor dem Lösen.

    Args:
        shards: alle Shards, nach ID geordnet
        rounds: IDs der Shards pro Runde
        lhss: LHS aller Shards, pro Shard zuerst die Eingaben, dann die Ausgaben
        cohorts: ID -> LHS der Ausgaben (diese Ebenen bleiben im Master)
        nvar: Anzahl Variablen
        block_size: Grösse des Eingabeblocks
        sbox_sizes: (Eingabe, Ausgabe) jeder S-Box pro Runde
    """
    shards: List[Shard]
    rounds: List[List[int]]
    lhss: List[int]
    cohorts: Dict[int, List[int]]
    nvar: int
    block_size: int
    sbox_sizes: List[List[Tuple[int, int]]] = field(default_factory=list)

    def lhs_matrix(self):
        return to_matrix(self.lhss, self.nvar)

    def size(self):
        return sum(s.size() for s in self.shards)


def count_nvar(cipher, nr_rounds):
    n_vars = cipher.block_size(0)
    for r in range(nr_rounds):
        for s in range(cipher.num_sboxes(r)):
            n_vars += cipher.sbox_size_out(r, s)
    return n_vars


def make_soc(cipher, nr_rounds=None):
    """
    Erstellt das Gleichungssystem für nr_rounds Runden der Chiffre. Eingaben,
    welche keine S-Box der Runde erreicht, werden unverändert in den
    Ausgabeblock übernommen. In der letzten Runde wird die lineare Schicht
    nicht mehr angewendet.
    """
    nr_rounds = nr_rounds or cipher.nr_of_rounds()
    assert nr_rounds > 0, "We cannot check a primitive with no rounds!"
    nvar = count_nvar(cipher, nr_rounds)
    block_size = cipher.block_size(0)

    inn = [1 << i for i in range(block_size)]
    shards, rounds, lhss, cohorts, sbox_sizes = [], [], [], {}, []
    generic = {}

    next_var = block_size
    next_shard_id = 1
    for r in range(nr_rounds):
        assert cipher.block_size(r) == len(inn), f"Block size mismatch at round {r}"
        rounds.append([])
        sbox_sizes.append([])
        out = []
        pos = 0
        for s in range(cipher.num_sboxes(r)):
            size_in, size_out = cipher.sbox_size_in(r, s), cipher.sbox_size_out(r, s)
            in_lhss = inn[pos:pos + size_in]
            pos += size_in
            out_lhss = []
            for _ in range(size_out):
                out_lhss.append(1 << next_var)
                next_var += 1
            out.extend(out_lhss)

            table = cipher.base_table(r, s)
            key = (id(table), size_in, size_out)
            if key not in generic:
                generic[key] = GenericShard(table, size_in, size_out)
            shard = generic[key].into_specific(in_lhss, out_lhss, next_shard_id, nvar)

            shards.append(shard)
            rounds[r].append(next_shard_id)
            cohorts[next_shard_id] = out_lhss
            lhss.extend(in_lhss)
            lhss.extend(out_lhss)
            sbox_sizes[r].append((size_in, size_out))
            next_shard_id += 1

        out.extend(inn[pos:])
        if r == nr_rounds - 1:
            break
        inn = cipher.apply_linear_layer(r + 1, out)

    log.debug("Built SoC with %d shards over %d variables", len(shards), nvar)
    return RawSoc(shards, rounds, lhss, cohorts, nvar, block_size, sbox_sizes)
