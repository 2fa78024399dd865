import numpy as np

"""

Gewichtsverteilungen: für einen Knoten eine Abbildung von Gewicht w (Anzahl
aktiver S-Boxen auf einem Pfad bis zur Senke, 0 <= w < 128) auf

    - ein Präsenzbit (WDPresence),
    - eine Anzahl Pfade (WDCount) oder
    - eine Anzahl Pfade pro End-Knoten (EndNodeDist).

Alle drei Varianten teilen dieselbe Schnittstelle: new_zeroed, new_trivial,
increment_distribution, existing_weights, lowest_existing_weight (LEW),
lowest_existing_non_trivial_weight (NT-LEW), contains_trivial_lew und +.
Das triviale Gewicht ist 0 (der Pfad ohne aktive S-Box).

"""

MAX_WEIGHT = 128
_MASK = (1 << MAX_WEIGHT) - 1
_WORD = 1 << 64


class WDPresence:
    """
    Präsenzverteilung als 128-Bit-Maske, Bit w ist gesetzt, falls ein Pfad mit
    Gewicht w existiert. Zusätzlich werden die End-Knoten gemerkt, welche zur
    Verteilung beigetragen haben.
    """
    __slots__ = ("dist", "end_nodes")

    def __init__(self, dist: int = 0, end_nodes=None):
        self.dist = dist & _MASK
        self.end_nodes = set(end_nodes) if end_nodes else set()

    @classmethod
    def new_zeroed(cls):
        return cls(0)

    @classmethod
    def new_trivial(cls, end_id):
        return cls(1, {end_id})

    def copy(self):
        return WDPresence(self.dist, self.end_nodes)

    def increment_distribution(self):
        self.dist = (self.dist << 1) & _MASK

    def incremented(self):
        other = self.copy()
        other.increment_distribution()
        return other

    def existing_weights(self):
        return {w for w in range(self.dist.bit_length()) if (self.dist >> w) & 1}

    def lowest_existing_weight(self):
        if self.dist == 0:
            return None
        return (self.dist & -self.dist).bit_length() - 1

    def lowest_existing_non_trivial_weight(self):
        rest = self.dist & ~1
        if rest == 0:
            return None
        return (rest & -rest).bit_length() - 1

    def highest_existing_weight(self):
        if self.dist == 0:
            return None
        return self.dist.bit_length() - 1

    def contains_trivial_lew(self):
        return bool(self.dist & 1)

    def is_zeroed(self):
        return self.dist == 0

    def __iadd__(self, other):
        self.dist |= other.dist
        self.end_nodes |= other.end_nodes
        return self

    def __add__(self, other):
        res = self.copy()
        res += other
        return res

    def __eq__(self, other):
        return isinstance(other, WDPresence) and self.dist == other.dist and self.end_nodes == other.end_nodes

    def __repr__(self):
        return f"WDPresence({sorted(self.existing_weights())}, ends={sorted(self.end_nodes)})"


class WDCount:
    """
    Zählende Verteilung: 128 vorzeichenlose 64-Bit-Zähler (numpy uint64).
    Summen laufen wie in Maschinenwörtern über.
    """
    __slots__ = ("counts",)

    def __init__(self, counts=None):
        if counts is None:
            counts = np.zeros(MAX_WEIGHT, dtype=np.uint64)
        self.counts = counts

    @classmethod
    def new_zeroed(cls):
        return cls()

    @classmethod
    def new_trivial(cls, end_id=None):
        res = cls()
        res.counts[0] = 1
        return res

    @classmethod
    def from_counts(cls, mapping):
        res = cls()
        for w, c in mapping.items():
            res.counts[w] = c
        return res

    def copy(self):
        return WDCount(self.counts.copy())

    def increment_distribution(self):
        self.counts[1:] = self.counts[:-1].copy()
        self.counts[0] = 0

    def incremented(self):
        other = self.copy()
        other.increment_distribution()
        return other

    def existing_weights(self):
        return {int(w) for w in np.flatnonzero(self.counts)}

    def existing_weights_with_counts(self):
        return [(int(w), int(self.counts[w])) for w in np.flatnonzero(self.counts)]

    def lowest_existing_weight(self):
        nz = np.flatnonzero(self.counts)
        return int(nz[0]) if len(nz) else None

    def lowest_existing_non_trivial_weight(self):
        nz = np.flatnonzero(self.counts[1:])
        return int(nz[0]) + 1 if len(nz) else None

    def highest_existing_weight(self):
        nz = np.flatnonzero(self.counts)
        return int(nz[-1]) if len(nz) else None

    def contains_trivial_lew(self):
        return bool(self.counts[0])

    def is_zeroed(self):
        return not self.counts.any()

    def paths_for_weight(self, weight):
        if not 0 <= weight < MAX_WEIGHT:
            return 0
        return int(self.counts[weight])

    def lew_with_paths(self):
        w = self.lowest_existing_weight()
        return None if w is None else (w, int(self.counts[w]))

    def nt_lew_with_paths(self):
        w = self.lowest_existing_non_trivial_weight()
        return None if w is None else (w, int(self.counts[w]))

    def total_number_of_paths_overflowing(self):
        """Summe aller Pfade modulo 2^64 und ob dabei ein Überlauf geschah."""
        total = sum(int(c) for c in self.counts)
        return total % _WORD, total >= _WORD

    def __iadd__(self, other):
        self.counts += other.counts
        return self

    def __add__(self, other):
        return WDCount(self.counts + other.counts)

    def __eq__(self, other):
        return isinstance(other, WDCount) and np.array_equal(self.counts, other.counts)

    def __repr__(self):
        return f"WDCount({dict(self.existing_weights_with_counts())})"


class EndNodeDist:
    """
    Zählende Verteilung pro End-Knoten: End-ID -> WDCount. Wird benutzt, um
    Pfade zwischen einem bestimmten Start- und End-Knoten zu zählen.
    """
    __slots__ = ("dists",)

    def __init__(self, dists=None):
        self.dists = dists if dists is not None else {}

    @classmethod
    def new_zeroed(cls):
        return cls()

    @classmethod
    def new_trivial(cls, end_id):
        return cls({end_id: WDCount.new_trivial(end_id)})

    def copy(self):
        return EndNodeDist({i: d.copy() for i, d in self.dists.items()})

    def increment_distribution(self):
        for dist in self.dists.values():
            dist.increment_distribution()

    def incremented(self):
        other = self.copy()
        other.increment_distribution()
        return other

    def existing_weights(self):
        res = set()
        for dist in self.dists.values():
            res |= dist.existing_weights()
        return res

    def lowest_existing_weight(self):
        lews = [d.lowest_existing_weight() for d in self.dists.values()]
        lews = [w for w in lews if w is not None]
        return min(lews) if lews else None

    def lowest_existing_non_trivial_weight(self):
        lews = [d.lowest_existing_non_trivial_weight() for d in self.dists.values()]
        lews = [w for w in lews if w is not None]
        return min(lews) if lews else None

    def nt_lew_and_e_ids(self):
        nt_lew = self.lowest_existing_non_trivial_weight()
        if nt_lew is None:
            return None
        ids = [i for i, d in self.dists.items() if d.lowest_existing_non_trivial_weight() == nt_lew]
        return nt_lew, sorted(ids)

    def contains_trivial_lew(self):
        return any(d.contains_trivial_lew() for d in self.dists.values())

    def is_zeroed(self):
        return all(d.is_zeroed() for d in self.dists.values())

    def paths_for_weight_in_id(self, weight, end_id):
        dist = self.dists.get(end_id)
        if dist is None:
            return None
        return dist.paths_for_weight(weight)

    def paths_for_weight(self, weight):
        res = {}
        for end_id, dist in self.dists.items():
            count = dist.paths_for_weight(weight)
            if count:
                res[end_id] = count
        return res or None

    def other_node(self, end_id):
        return self.dists.get(end_id)

    def end_ids(self):
        return sorted(self.dists)

    def total_number_of_paths_overflowing(self):
        total = 0
        overflowed = False
        for dist in self.dists.values():
            part, over = dist.total_number_of_paths_overflowing()
            total += part
            overflowed |= over
        return total % _WORD, overflowed or total >= _WORD

    def __iadd__(self, other):
        for end_id, dist in other.dists.items():
            mine = self.dists.get(end_id)
            if mine is None:
                self.dists[end_id] = dist.copy()
            else:
                mine += dist
        return self

    def __add__(self, other):
        res = self.copy()
        res += other
        return res

    def __eq__(self, other):
        return isinstance(other, EndNodeDist) and self.dists == other.dists

    def __repr__(self):
        return f"EndNodeDist({self.dists})"


class TransparentFactory:
    """Erstellt für jede End-ID eine triviale Verteilung."""
    def __init__(self, kind=WDPresence):
        self.kind = kind

    def new_zeroed(self):
        return self.kind.new_zeroed()

    def new_trivial(self, end_id):
        return self.kind.new_trivial(end_id)


class TargetedFactory(TransparentFactory):
    """Erstellt triviale Verteilungen nur für die gegebenen Ziele, sonst leere."""
    def __init__(self, kind, targets):
        super().__init__(kind)
        self.targets = set(targets)

    def new_trivial(self, end_id):
        if end_id in self.targets:
            return self.kind.new_trivial(end_id)
        return self.kind.new_zeroed()
