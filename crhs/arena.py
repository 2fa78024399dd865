"""

Speicher für Gewichtsverteilungen. Ein WDLevel bildet Knoten-IDs einer
Ebene auf ihre Verteilung ab, eine WDArena bildet Tiefen auf WDLevels ab.
Beide enthalten keine Referenzen in den Shard, nur (Tiefe, Knoten-ID).

"""


class WDLevel:
    def __init__(self, depth: int, dists: dict = None):
        self.depth = depth
        self.dists = dists if dists is not None else {}

    def __len__(self):
        return len(self.dists)

    def __iter__(self):
        return iter(self.dists.items())

    def __contains__(self, node_id):
        return node_id in self.dists

    def insert(self, node_id, dist):
        self.dists[node_id] = dist

    def entry(self, node_id, factory):
        """Liefert die Verteilung von node_id, legt bei Bedarf eine leere an."""
        dist = self.dists.get(node_id)
        if dist is None:
            dist = factory.new_zeroed()
            self.dists[node_id] = dist
        return dist

    def get(self, node_id):
        return self.dists.get(node_id)

    def items(self):
        return self.dists.items()

    def width(self):
        return len(self.dists)

    def clear(self, depth=None):
        self.dists.clear()
        if depth is not None:
            self.depth = depth

    def highest_lew(self):
        lews = [d.lowest_existing_weight() for d in self.dists.values()]
        lews = [w for w in lews if w is not None]
        return max(lews) if lews else None

    def count_lews(self):
        counts = {}
        for dist in self.dists.values():
            w = dist.lowest_existing_weight()
            if w is not None:
                counts[w] = counts.get(w, 0) + 1
        return dict(sorted(counts.items()))

    def nodes_with_lew(self, weight):
        return [i for i, d in self.dists.items() if d.lowest_existing_weight() == weight]

    def nodes_with_lew_at_least(self, weight):
        res = []
        for node_id, dist in self.dists.items():
            w = dist.lowest_existing_weight()
            if w is not None and w >= weight:
                res.append(node_id)
        return res

    def lew(self):
        """Tiefstes Gewicht der Ebene und die Knoten, welche es erreichen."""
        lews = {i: d.lowest_existing_weight() for i, d in self.dists.items()}
        present = [w for w in lews.values() if w is not None]
        if not present:
            return None
        w = min(present)
        return w, sorted(i for i, lw in lews.items() if lw == w)

    def nt_lew(self):
        nt = {i: d.lowest_existing_non_trivial_weight() for i, d in self.dists.items()}
        present = [w for w in nt.values() if w is not None]
        if not present:
            return None
        w = min(present)
        return w, sorted(i for i, lw in nt.items() if lw == w)

    def existing_weights(self):
        res = set()
        for dist in self.dists.values():
            res |= dist.existing_weights()
        return res

    def iter_nt_lew_connections(self):
        """
        Für End-Knoten-Verteilungen: liefert (Knoten-ID, End-ID, NT-LEW) für
        jede Verbindung mit nicht-trivialem Gewicht.
        """
        for node_id, dist in self.dists.items():
            for end_id in dist.end_ids():
                w = dist.other_node(end_id).lowest_existing_non_trivial_weight()
                if w is not None:
                    yield node_id, end_id, w


class WDArena:
    def __init__(self):
        self.levels = {}

    def __len__(self):
        return len(self.levels)

    def insert_level(self, level: WDLevel):
        self.levels[level.depth] = level

    def get(self, depth):
        return self.levels.get(depth)

    def contains(self, depth):
        return depth in self.levels

    def top(self):
        return self.levels[min(self.levels)] if self.levels else None

    def deepest(self):
        return self.levels[max(self.levels)] if self.levels else None

    def depths(self):
        return sorted(self.levels)

    def complexity(self):
        return sum(len(level) for level in self.levels.values())
