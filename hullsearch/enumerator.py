import enum
import logging
import queue
import threading

from crhs.depfinder import DepPathFinder
from crhs.distribution import EndNodeDist, TargetedFactory, TransparentFactory, WDCount
from crhs.weights import weight_distributions_arena
from hullsearch.path import Path

"""

Aufzählung der inneren Pfade zwischen Alpha- und Beta-Ebene. Die Pfade werden
in einem eigenen Thread erzeugt und über einen beschränkten Kanal an den
Aufrufer geschickt. Ist der Kanal voll, wartet der Erzeuger. Schliesst der
Empfänger den Kanal, bricht der Erzeuger beim nächsten Senden ab.

"""

log = logging.getLogger(__name__)

CHANNEL_BOUND = 200
UPPER_LIMIT = 2 ** 26


class ChannelClosed(Exception):
    pass


class ExtractionResult(enum.Enum):
    EXHAUSTED = 'exhausted'
    LIMIT_REACHED = 'limit reached'


class PathChannel:
    """
    Beschränkter FIFO-Kanal zwischen genau einem Sender und einem Empfänger.
    recv liefert None, sobald der Sender finish aufgerufen hat und der Kanal
    leer ist.
    """
    _DONE = object()

    def __init__(self, bound=CHANNEL_BOUND):
        self._queue = queue.Queue(maxsize=bound)
        self._closed = threading.Event()

    def _put(self, item):
        if self._closed.is_set():
            raise ChannelClosed()
        self._queue.put(item)

    def send(self, path):
        self._put(path)

    def finish(self):
        try:
            self._put(self._DONE)
        except ChannelClosed:
            pass

    def recv(self):
        item = self._queue.get()
        if item is self._DONE:
            # for further recv calls
            self._queue.put(item)
            return None
        return item

    def close(self):
        """
        Schliesst den Kanal von der Empfängerseite. Der Kanal wird geleert,
        damit ein wartender Sender sein Element ablegen kann und beim
        nächsten Senden ChannelClosed erhält.
        """
        self._closed.set()
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    @property
    def closed(self):
        return self._closed.is_set()

    def __iter__(self):
        while True:
            item = self.recv()
            if item is None:
                return
            yield item


class Extraction:
    """Laufende Aufzählung: Kanal, Thread und (nach Ende) Resultat und Anzahl Pfade."""
    def __init__(self, channel, target):
        self.channel = channel
        self.result = None
        self.count = 0
        self.error = None
        self._target = target
        self.thread = threading.Thread(target=self._run, name="path-extraction", daemon=True)

    def _run(self):
        try:
            self.result = self._target(self)
        except ChannelClosed:
            self.result = ExtractionResult.LIMIT_REACHED
        except Exception as e:
            log.exception("Path extraction failed")
            self.error = e
        finally:
            self.channel.finish()

    def start(self):
        self.thread.start()
        return self

    def join(self):
        self.thread.join()
        if self.error is not None:
            raise self.error
        return self.result


def iter_all_paths(master, start_depth, end_depth):
    """
    Tiefensuche über alle Pfade vom einzigen Knoten der Ebene start_depth bis
    zur Ebene end_depth. Die 0-Kante wird zuerst besucht.
    """
    start = master.levels[start_depth]
    assert len(start) == 1, f"Expected exactly one node at depth {start_depth}, found {len(start)}"
    stack = [(next(iter(start.nodes)), start_depth, [])]
    while stack:
        node_id, depth, bits = stack.pop()
        if depth == end_depth:
            yield bits
            continue
        node = master.levels[depth].nodes[node_id]
        if node.e1 is not None:
            stack.append((node.e1, depth + 1, bits + [True]))
        if node.e0 is not None:
            stack.append((node.e0, depth + 1, bits + [False]))


def extract_all_paths_concurrently(master, start_depth, end_depth, bound=CHANNEL_BOUND, upper_limit=None):
    """
    Schickt jeden Pfad von start_depth bis end_depth genau einmal über den
    Kanal. Der Master darf währenddessen nicht verändert werden.
    """
    def work(extraction):
        for bits in iter_all_paths(master, start_depth, end_depth):
            if upper_limit is not None and extraction.count == upper_limit:
                return ExtractionResult.LIMIT_REACHED
            extraction.channel.send(Path(bits))
            extraction.count += 1
        return ExtractionResult.EXHAUSTED

    return Extraction(PathChannel(bound), work).start()


class TargetedDFE:
    """
    Tiefensuche, welche nur Pfade mit genau dem verlangten Gewicht zum
    Knoten target auf der Ebene target_depth liefert. Die Arena enthält für
    jede Centurion-Ebene die Anzahl Pfade pro Gewicht zum Ziel und erlaubt so,
    aussichtslose Teilbäume zu überspringen.
    """
    def __init__(self, target, target_depth, arena, master, step, channel, upper_limit=UPPER_LIMIT):
        self.target = target
        self.target_depth = target_depth
        self.arena = arena
        self.master = master
        self.step = step
        self.channel = channel
        self.upper_limit = upper_limit
        self.count = 0

    def _reaches(self, child, child_depth, weight):
        dist = self.arena.get(child_depth).get(child)
        if dist is None:
            return False
        return bool(dist.paths_for_weight_in_id(weight, self.target))

    def _at_target(self, child, weight):
        return child == self.target and weight == 0

    def extract_paths(self, start, weight):
        """
        Args:
            start: (Knoten-ID, Tiefe) des Startknotens
            weight: Gewicht der gesuchten Pfade
        """
        node_id, depth = start
        return self._extract(node_id, depth, weight, [])

    def _extract(self, node_id, depth, weight, prefix):
        child_depth = depth + self.step
        for child, edges in DepPathFinder(node_id, depth, self.step, self.master):
            remaining = weight - 1 if any(edges) else weight
            if remaining < 0:
                continue
            if child_depth == self.target_depth:
                if self._at_target(child, remaining):
                    if self.count == self.upper_limit:
                        return ExtractionResult.LIMIT_REACHED
                    self.channel.send(Path(prefix + edges))
                    self.count += 1
                continue
            if not self._reaches(child, child_depth, remaining):
                continue
            res = self._extract(child, child_depth, remaining, prefix + edges)
            if res is ExtractionResult.LIMIT_REACHED:
                return res
        return ExtractionResult.EXHAUSTED


class SemiTargetedDFE(TargetedDFE):
    """Wie TargetedDFE, akzeptiert aber jeden Knoten der Ziel-Ebene."""
    def __init__(self, target_depth, arena, master, step, channel, upper_limit=UPPER_LIMIT):
        super().__init__(None, target_depth, arena, master, step, channel, upper_limit)

    def _reaches(self, child, child_depth, weight):
        dist = self.arena.get(child_depth).get(child)
        return dist is not None and dist.paths_for_weight(weight) > 0

    def _at_target(self, child, weight):
        return weight == 0


def targeted_arena(master, meta, target):
    return weight_distributions_arena(master, (meta.alpha_depth, meta.beta_depth), meta.step,
                                      TargetedFactory(EndNodeDist, [target]))


def semi_targeted_arena(master, meta):
    return weight_distributions_arena(master, (meta.alpha_depth, meta.beta_depth), meta.step,
                                      TransparentFactory(WDCount))


def extract_limited_paths_concurrently(master, meta, best, semi=False, bound=CHANNEL_BOUND,
                                       upper_limit=UPPER_LIMIT):
    """
    Schickt die inneren Pfade der SESS-Schätzung best über den Kanal, Gewicht
    für Gewicht in aufsteigender Reihenfolge, insgesamt höchstens upper_limit.
    Die Arena wird vor dem Start des Threads berechnet.
    """
    if semi:
        arena = semi_targeted_arena(master, meta)
    else:
        arena = targeted_arena(master, meta, best.end)
    weights = sorted(best.sub_dist)

    def work(extraction):
        if semi:
            dfe = SemiTargetedDFE(meta.beta_depth, arena, master, meta.step, extraction.channel, upper_limit)
        else:
            dfe = TargetedDFE(best.end, meta.beta_depth, arena, master, meta.step, extraction.channel,
                              upper_limit)
        res = ExtractionResult.EXHAUSTED
        for w in weights:
            res = dfe.extract_paths((best.start, meta.alpha_depth), w)
            extraction.count = dfe.count
            if res is ExtractionResult.LIMIT_REACHED:
                break
        return res

    return Extraction(PathChannel(bound), work).start()
