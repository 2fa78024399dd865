import logging

from crhs.algebra import to_matrix
from crhs.errors import StructuralError, IncompatibleDepthsError, VariableMismatchError

"""

Dieses Modul beinhaltet den Shard, also einen geschichteten, gerichteten
azyklischen Graphen (CRHS-Gleichung). Jede Ebene (Level) trägt eine linke
Seite (LHS) als Bitvektor über die Variablen des Systems, jeder Knoten hat
höchstens zwei Kanten (0 und 1) zur nächsten Ebene. Die letzte Ebene besteht
aus genau einer Senke ohne Kanten.

Die LHS einer Ebene wird als Ganzzahl gespeichert, wobei Bit i für die
Variable x_i steht.

"""

log = logging.getLogger(__name__)


class Node:
    __slots__ = ("e0", "e1")

    def __init__(self, e0=None, e1=None):
        self.e0 = e0
        self.e1 = e1

    def edge(self, bit):
        return self.e1 if bit else self.e0

    def set_edge(self, bit, child):
        if bit:
            self.e1 = child
        else:
            self.e0 = child

    def key(self):
        return (self.e0, self.e1)

    def has_edges(self):
        return self.e0 is not None or self.e1 is not None

    def __repr__(self):
        return f"Node({self.e0}, {self.e1})"


class Level:
    def __init__(self, lhs: int = 0, nodes: dict = None):
        self.lhs = lhs
        self.nodes = nodes if nodes is not None else {}

    def __len__(self):
        return len(self.nodes)

    def __contains__(self, node_id):
        return node_id in self.nodes

    def get(self, node_id):
        return self.nodes.get(node_id)

    def ids(self):
        return list(self.nodes.keys())

    def copy(self):
        return Level(self.lhs, {i: Node(n.e0, n.e1) for i, n in self.nodes.items()})


class Shard:
    """
    Ein Shard besteht aus einer geordneten Liste von Ebenen, von der Quelle
    (Tiefe 0) bis zur Senke (letzte Tiefe). Nach jeder Operation ist der
    Shard reduziert: keine Sackgassen, keine Waisen und keine isomorphen
    Knoten auf derselben Ebene.

    Knoten-IDs sind positive Ganzzahlen und innerhalb eines Shards eindeutig.
    """
    def __init__(self, nvar: int, levels: list = None, shard_id: int = 0):
        self.nvar = nvar
        self.id = shard_id
        self.levels = levels if levels is not None else []
        self._next_id = 1 + max((i for lvl in self.levels for i in lvl.nodes), default=0)

    @classmethod
    def from_spec(cls, nvar, shard_id, level_specs):
        """
        Erstellt einen Shard aus einer Liste (lhs, [(id, e0, e1), ...]), wobei
        die Kinder-ID 0 (oder None) eine fehlende Kante bedeutet.
        """
        levels = []
        for lhs, nodes in level_specs:
            level = Level(lhs)
            for node_id, e0, e1 in nodes:
                level.nodes[node_id] = Node(e0 or None, e1 or None)
            levels.append(level)
        return cls(nvar, levels, shard_id)

    def new_id(self):
        node_id = self._next_id
        self._next_id += 1
        return node_id

    def copy(self):
        return Shard(self.nvar, [lvl.copy() for lvl in self.levels], self.id)

    # ---------------------------------------------------------------- queries

    def sink_depth(self):
        return len(self.levels) - 1

    def level(self, depth):
        return self.levels[depth]

    def width(self, depth):
        return len(self.levels[depth])

    def size(self):
        return sum(len(lvl) for lvl in self.levels)

    def source_id(self):
        return next(iter(self.levels[0].nodes))

    def sink_id(self):
        return next(iter(self.levels[-1].nodes))

    def lhss(self):
        """LHS aller Ebenen ausser der Senke, geordnet nach Tiefe."""
        return [lvl.lhs for lvl in self.levels[:-1]]

    def lhs_matrix(self):
        return to_matrix(self.lhss(), self.nvar)

    def iter_paths(self, start_depth=0, end_depth=None):
        """
        Liefert alle Pfade (als Tupel von Bits) von jedem Knoten der Ebene
        start_depth bis zur Ebene end_depth. Nur für kleine Shards gedacht.
        """
        if end_depth is None:
            end_depth = self.sink_depth()

        def walk(node_id, depth, prefix):
            if depth == end_depth:
                yield tuple(prefix)
                return
            node = self.levels[depth].nodes[node_id]
            for bit in (0, 1):
                child = node.edge(bit)
                if child is not None:
                    prefix.append(bit)
                    yield from walk(child, depth + 1, prefix)
                    prefix.pop()

        for node_id in list(self.levels[start_depth].nodes):
            yield from walk(node_id, start_depth, [])

    def extract_single_path(self, start_depth, end_depth):
        """
        Extrahiert genau einen Pfad von start_depth bis end_depth, wobei die
        0-Kante bevorzugt wird. Die Startebene muss genau einen Knoten haben.
        """
        start = self.levels[start_depth]
        assert len(start) == 1, f"Expected exactly one node at depth {start_depth}, found {len(start)}"
        node = next(iter(start.nodes.values()))
        path = []
        for depth in range(start_depth, end_depth):
            bit = 0 if node.e0 is not None else 1
            child = node.edge(bit)
            if child is None or child not in self.levels[depth + 1]:
                raise StructuralError(f"Hit an unexpected dead end at depth {depth + 1}")
            path.append(bit)
            node = self.levels[depth + 1].nodes[child]
        return path

    # -------------------------------------------------------------- reduction

    def reduce(self, from_depth=None):
        """
        Reduziert den Shard: zuerst Sackgassen (von unten nach oben), dann
        Waisen (von oben nach unten), zuletzt isomorphe Knoten (von unten
        nach oben). Ohne from_depth wird der ganze Shard bearbeitet.
        """
        if from_depth is None:
            self.remove_dead_ends(self.sink_depth() - 1)
            self.remove_orphans(1)
            self.merge_equals(self.sink_depth() - 1)
        else:
            self.remove_dead_ends(from_depth)
            self.remove_orphans(from_depth + 1)
            self.merge_equals(from_depth)

    def remove_dead_ends(self, start):
        start = min(start, self.sink_depth() - 1)
        for depth in range(start, -1, -1):
            below = self.levels[depth + 1].nodes
            level = self.levels[depth]
            dead = []
            for node_id, node in level.nodes.items():
                if node.e0 is not None and node.e0 not in below:
                    node.e0 = None
                if node.e1 is not None and node.e1 not in below:
                    node.e1 = None
                if not node.has_edges():
                    dead.append(node_id)
            for node_id in dead:
                del level.nodes[node_id]
        if not self.levels[0].nodes:
            raise StructuralError(f"Shard {self.id} has no remaining paths")

    def remove_orphans(self, start):
        for depth in range(max(start, 1), len(self.levels)):
            referenced = set()
            for node in self.levels[depth - 1].nodes.values():
                if node.e0 is not None:
                    referenced.add(node.e0)
                if node.e1 is not None:
                    referenced.add(node.e1)
            level = self.levels[depth]
            for node_id in [i for i in level.nodes if i not in referenced]:
                del level.nodes[node_id]
        if not self.levels[-1].nodes:
            raise StructuralError(f"Shard {self.id} lost its sink")

    def merge_equals(self, start):
        start = min(start, self.sink_depth() - 1)
        for depth in range(start, 0, -1):
            level = self.levels[depth]
            seen = {}
            replace = {}
            for node_id in sorted(level.nodes):
                key = level.nodes[node_id].key()
                if key in seen:
                    replace[node_id] = seen[key]
                else:
                    seen[key] = node_id
            if not replace:
                continue
            for node_id in replace:
                del level.nodes[node_id]
            for parent in self.levels[depth - 1].nodes.values():
                if parent.e0 in replace:
                    parent.e0 = replace[parent.e0]
                if parent.e1 in replace:
                    parent.e1 = replace[parent.e1]

    # ------------------------------------------------------------ operations

    def _check_inner_depth(self, depth, op):
        if depth < 0 or depth >= self.sink_depth():
            raise StructuralError(f"{op}: depth {depth} is not an inner level of shard {self.id}")

    def swap(self, depth):
        """
        Vertauscht die Ebenen depth und depth + 1. Die Knoten der oberen Ebene
        behalten ihre IDs, die untere Ebene wird neu aufgebaut, sodass jeder
        Pfad dieselbe Belegung der beiden LHS behält.
        """
        self._check_inner_depth(depth, "swap")
        self._check_inner_depth(depth + 1, "swap")
        upper = self.levels[depth]
        lower = self.levels[depth + 1]

        new_nodes = {}
        by_key = {}
        for node in upper.nodes.values():
            grand = [[None, None], [None, None]]
            for a in (0, 1):
                child = node.edge(a)
                if child is not None:
                    c = lower.nodes[child]
                    grand[a] = [c.e0, c.e1]
            for b in (0, 1):
                key = (grand[0][b], grand[1][b])
                if key == (None, None):
                    node.set_edge(b, None)
                    continue
                new_id = by_key.get(key)
                if new_id is None:
                    new_id = self.new_id()
                    by_key[key] = new_id
                    new_nodes[new_id] = Node(*key)
                node.set_edge(b, new_id)

        upper.lhs, lower.lhs = lower.lhs, upper.lhs
        lower.nodes = new_nodes
        self.merge_equals(depth)

    def swap_levels(self, frm, to):
        """Bewegt die Ebene frm mit benachbarten Vertauschungen auf die Tiefe to."""
        while frm < to:
            self.swap(frm)
            frm += 1
        while frm > to:
            self.swap(frm - 1)
            frm -= 1

    def add(self, above, below):
        """
        Addiert die LHS der Ebene above zur LHS der direkt darunterliegenden
        Ebene below (XOR). Kinder, welche über eine 1-Kante erreicht werden,
        werden durch ihre gespiegelte Version ersetzt.

        Args:
            above: Tiefe der oberen Ebene
            below: Tiefe der unteren Ebene, muss above + 1 sein
        """
        if below != above + 1:
            raise IncompatibleDepthsError(above, below)
        self._check_inner_depth(above, "add")
        self._check_inner_depth(below, "add")
        upper = self.levels[above]
        lower = self.levels[below]

        by_key = {node.key(): node_id for node_id, node in lower.nodes.items()}
        flipped = {}
        for node in upper.nodes.values():
            if node.e1 is None:
                continue
            target = flipped.get(node.e1)
            if target is None:
                child = lower.nodes[node.e1]
                key = (child.e1, child.e0)
                target = by_key.get(key)
                if target is None:
                    target = self.new_id()
                    by_key[key] = target
                    lower.nodes[target] = Node(*key)
                flipped[node.e1] = target
            node.e1 = target

        lower.lhs ^= upper.lhs
        self.remove_orphans(below)
        self.merge_equals(above)

    def absorb(self, depth, direction=False):
        """
        Entfernt die Ebene depth, deren LHS konstant (null) geworden ist. Jede
        Kante in einen Knoten dieser Ebene wird auf dessen Kind entlang
        direction umgeleitet.
        """
        self._check_inner_depth(depth, "absorb")
        level = self.levels[depth]
        if level.lhs != 0:
            raise StructuralError(f"absorb: level {depth} of shard {self.id} is not constant")
        bit = 1 if direction else 0
        target = {node_id: node.edge(bit) for node_id, node in level.nodes.items()}

        if depth == 0:
            new_source = target[self.source_id()]
            if new_source is None:
                raise StructuralError(f"absorb: source of shard {self.id} has no {bit}-edge")
            del self.levels[0]
            top = self.levels[0]
            top.nodes = {new_source: top.nodes[new_source]}
            self.remove_orphans(1)
            return

        for parent in self.levels[depth - 1].nodes.values():
            if parent.e0 is not None:
                parent.e0 = target[parent.e0]
            if parent.e1 is not None:
                parent.e1 = target[parent.e1]
        del self.levels[depth]
        self.remove_dead_ends(depth - 1)
        self.remove_orphans(depth)
        self.merge_equals(depth - 1)

    def join(self, bottom):
        """
        Hängt den Shard bottom unter diesen Shard, wobei die Senke dieses
        Shards mit der Quelle von bottom identifiziert wird. Die Knoten von
        bottom erhalten neue IDs.
        """
        if bottom.nvar != self.nvar:
            raise VariableMismatchError(self.nvar, bottom.nvar)
        renamed = {}
        for lvl in bottom.levels:
            for node_id in lvl.nodes:
                renamed[node_id] = self.new_id()

        sink = self.sink_id()
        glue = renamed[bottom.source_id()]
        del self.levels[-1]
        if self.levels:
            for node in self.levels[-1].nodes.values():
                if node.e0 == sink:
                    node.e0 = glue
                if node.e1 == sink:
                    node.e1 = glue

        for lvl in bottom.levels:
            nodes = {}
            for node_id, node in lvl.nodes.items():
                nodes[renamed[node_id]] = Node(renamed.get(node.e0), renamed.get(node.e1))
            self.levels.append(Level(lvl.lhs, nodes))

    def delete_all_marked_nodes_from_level(self, marked, depth):
        """
        Löscht die markierten Knoten der Ebene depth, setzt alle Kanten in
        diese Knoten auf "fehlend" und reduziert anschliessend. Die Quelle
        (Tiefe 0) wird nie gelöscht.
        """
        if depth == 0 or not marked:
            return
        level = self.levels[depth]
        present = [node_id for node_id in marked if node_id in level.nodes]
        if not present:
            return
        if len(set(present)) == len(level):
            raise StructuralError(f"Deleting all {len(level)} nodes of level {depth} would empty shard {self.id}")

        removed = set(present)
        for node_id in removed:
            del level.nodes[node_id]
        for parent in self.levels[depth - 1].nodes.values():
            if parent.e0 in removed:
                parent.e0 = None
            if parent.e1 in removed:
                parent.e1 = None
        self.remove_dead_ends(depth - 1)
        self.remove_orphans(depth + 1)
        self.merge_equals(depth - 1)


def make_master(block_size: int, nvar: int, shard_id: int = 0):
    """
    Erstellt den anfänglichen Master: eine Ebene pro Eingabebit des ersten
    Blocks, wobei beide Kanten zum nächsten Knoten führen.
    """
    levels = []
    for i in range(block_size):
        levels.append(Level(1 << i, {i + 1: Node(i + 2, i + 2)}))
    levels.append(Level(0, {block_size + 1: Node()}))
    return Shard(nvar, levels, shard_id)
