"""

Abhängigkeitssuche im Shard: ausgehend von einem Knoten werden alle
Nachfahren gesucht, welche genau step Ebenen tiefer liegen. Beide Varianten
arbeiten mit zwei abwechselnden Puffern (Breitensuche) und setzen einen
reduzierten Shard voraus.

"""


class DepBoolFinder:
    """
    Liefert (Nachfahre, irgendeine 1-Kante benutzt?) für jeden Weg der Länge
    step. Zeigen beide Kanten eines Knotens auf dasselbe Kind, wird dieses
    zweimal geliefert, einmal pro Kante.
    """
    def __init__(self, root, depth, step, shard):
        self.root = root
        self.depth = depth
        self.step = step
        self.shard = shard

    def find(self):
        current = [(self.root, False)]
        upcoming = []
        for offset in range(self.step):
            nodes = self.shard.levels[self.depth + offset].nodes
            for node_id, flag in current:
                node = nodes[node_id]
                if node.e0 is not None:
                    upcoming.append((node.e0, flag))
                if node.e1 is not None:
                    upcoming.append((node.e1, True))
            current, upcoming = upcoming, current
            upcoming.clear()
        return current

    def __iter__(self):
        return iter(self.find())


class DepPathFinder:
    """
    Wie DepBoolFinder, liefert aber die ganze Kantenfolge (Länge step), mit
    welcher der Nachfahre erreicht wurde.
    """
    def __init__(self, root, depth, step, shard):
        self.root = root
        self.depth = depth
        self.step = step
        self.shard = shard

    def find(self):
        current = [(self.root, [])]
        upcoming = []
        for offset in range(self.step):
            nodes = self.shard.levels[self.depth + offset].nodes
            for node_id, edges in current:
                node = nodes[node_id]
                if node.e0 is not None and node.e1 is not None:
                    upcoming.append((node.e0, edges + [0]))
                    edges.append(1)
                    upcoming.append((node.e1, edges))
                elif node.e0 is not None:
                    edges.append(0)
                    upcoming.append((node.e0, edges))
                elif node.e1 is not None:
                    edges.append(1)
                    upcoming.append((node.e1, edges))
            current, upcoming = upcoming, current
            upcoming.clear()
        return current

    def __iter__(self):
        return iter(self.find())
