import logging

from crhs.bits import bools_to_lt8, int_to_bools
from crhs.progress import SilentProgress
from hullsearch.enumerator import (ExtractionResult, UPPER_LIMIT, extract_all_paths_concurrently,
                                   extract_limited_paths_concurrently)
from hullsearch.path import Path, split_rounds
from hullsearch.results import BuildMode, ResultSection, hull_log2_probability

"""

Berechnung der Hull-Wahrscheinlichkeit. Jeder innere Pfad wird mit einem
Alpha- und einem Beta-Pfad zu einem vollständigen Pfad ergänzt, zu einer
Charakteristik erweitert und mit den Basistabellen bewertet. Die Exponenten
werden gezählt und am Ende zu einer Wahrscheinlichkeit zusammengefasst.

Die Alpha- und Beta-Pfade werden auf zwei Arten gewählt: aus dem Master
extrahiert (jeder innere Pfad ist damit gültig) oder für den ersten inneren
Pfad optimal konstruiert (einzelne Pfade können dann ungültig werden).

"""

log = logging.getLogger(__name__)

ENUMERATION_MODES = ('all', 'targeted', 'semi')


class HullContext:
    """Alles, was zur Bewertung eines Pfades gebraucht wird."""
    def __init__(self, master, meta, soc, cipher, linear=False):
        self.master = master
        self.meta = meta
        self.soc = soc
        self.cipher = cipher
        self.linear = linear
        self.master_matrix = master.lhs_matrix()
        self.block_size = soc.block_size

    def expand(self, path):
        return path.expand_to_full_path(self.master_matrix, self.soc)


def path_influence(full, ctx):
    """
    Summe der Exponenten aller S-Boxen entlang der Charakteristik full, oder
    0, falls ein Eintrag der Basistabellen null ist.
    """
    keys = bools_to_lt8(full, ctx.meta.step)
    total = 0
    pos = 0
    for r, sizes in enumerate(ctx.soc.sbox_sizes):
        n = len(sizes)
        chunk = keys[pos:pos + 2 * n]
        pos += 2 * n
        for j in range(n):
            table = ctx.cipher.base_table(r, j)
            entry = table.entry(chunk[j], chunk[j + n])
            if entry == 0:
                return 0
            total += table.prob_exponent_for_entry(entry)
    return total


def path_influences(first, channel, alpha, beta, ctx, upper_limit=UPPER_LIMIT, bar=None):
    """
    Bewertet first und alle Pfade aus dem Kanal. Bei Erreichen von
    upper_limit wird der Kanal geschlossen.

    Returns:
        (bins, used, truncated)
    """
    bins = {}
    used = 0
    truncated = False
    paths = [first] if first is not None else []
    for inner in _chain(paths, channel):
        if used == upper_limit:
            truncated = True
            channel.close()
            break
        w = path_influence(ctx.expand(alpha + inner + beta), ctx)
        bins[w] = bins.get(w, 0) + 1
        used += 1
        if bar is not None:
            bar.inc(1)
    return bins, used, truncated


def _chain(first, channel):
    yield from first
    yield from channel


def piling_up(bins):
    """Verdoppelt die Exponenten (Korrelation -> quadrierte Korrelation) nach dem Zählen."""
    return {2 * k: v for k, v in bins.items()}


def extract_alpha_beta(ctx):
    alpha = Path(ctx.master.extract_single_path(0, ctx.meta.alpha_depth))
    beta = Path(ctx.master.extract_single_path(ctx.meta.beta_depth, ctx.master.sink_depth()))
    return alpha, beta


def construct_alpha_beta(inner, ctx):
    """
    Konstruiert für den inneren Pfad inner die besten Alpha- und Beta-Pfade:
    pro S-Box der ersten Runde die Eingabe mit dem grössten Eintrag für die
    gegebene Ausgabe, pro S-Box der letzten Runde die Ausgabe mit dem grössten
    Eintrag für die gegebene Eingabe.
    """
    step = ctx.meta.step
    block = ctx.block_size
    last = len(ctx.soc.sbox_sizes) - 1

    alpha = Path()
    for j, col in enumerate(bools_to_lt8(inner[:block], step)):
        table = ctx.cipher.base_table(0, j)
        row = table.best_row_for_col(col)
        if table.entry(row, col) == 0:
            raise ValueError(f"No input to S-box {j} of round 0 produces output {col:#x}")
        alpha.extend(int_to_bools(row, step))

    full = ctx.expand(alpha + inner + Path([False] * block))
    last_in = full[-2 * block:-block]
    beta = Path()
    for j, row in enumerate(bools_to_lt8(last_in, step)):
        table = ctx.cipher.base_table(last, j)
        beta.extend(int_to_bools(table.best_col_for_row(row), step))
    return alpha, beta


def _start_extraction(ctx, best, enumeration, upper_limit):
    if enumeration == 'all':
        return extract_all_paths_concurrently(ctx.master, ctx.meta.alpha_depth, ctx.meta.beta_depth)
    return extract_limited_paths_concurrently(ctx.master, ctx.meta, best, semi=(enumeration == 'semi'),
                                              upper_limit=upper_limit)


def calculate_hull_section(ctx, best, build_mode, enumeration='all', upper_limit=UPPER_LIMIT, progress=None):
    """
    Eine Hull-Berechnung. Setzt voraus, dass die Alpha- und die Beta-Ebene nur
    noch den Knoten der SESS-Schätzung best enthalten.
    """
    assert enumeration in ENUMERATION_MODES, f"Unknown enumeration mode '{enumeration}'"
    progress = progress or SilentProgress()
    section = ResultSection(build_mode, enumeration, linear=ctx.linear)

    total, overflowed = best.sum_inner_paths()
    section.total_paths = total
    if overflowed:
        section.overflowed = True
        log.warning("The number of inner paths exceeds 64 bits, no hull probability is calculated")
        return section

    extraction = _start_extraction(ctx, best, enumeration, upper_limit)
    channel = extraction.channel
    first = channel.recv()
    if first is None:
        extraction.join()
        raise ValueError("No inner paths were generated between the alpha and beta node")

    if build_mode is BuildMode.CONSTRUCTED:
        alpha, beta = construct_alpha_beta(first, ctx)
    else:
        alpha, beta = extract_alpha_beta(ctx)
    section.alpha_path = list(alpha)
    section.beta_path = list(beta)

    example = ctx.expand(alpha + first + beta)
    section.example_rounds = split_rounds(example, ctx.soc)
    section.example_weight = path_influence(example, ctx)

    bar = progress.new_progress_bar(min(total, upper_limit) if total else upper_limit)
    bar.set_message(f"Calculating path probabilities ({build_mode.value})")
    bins, used, truncated = path_influences(first, channel, alpha, beta, ctx, upper_limit, bar)
    bar.finish_and_clear()
    result = extraction.join()

    if ctx.linear:
        bins = piling_up(bins)
        if section.example_weight is not None:
            section.example_weight *= 2
    section.bins = dict(sorted(bins.items()))
    section.paths_used = used
    section.paths_skipped = bins.get(0, 0)
    section.truncated = truncated or result is ExtractionResult.LIMIT_REACHED
    section.hull_probability = hull_log2_probability(bins)
    log.info("Hull (%s): %d paths, %d skipped, probability 2^(-%s)", build_mode.value, used,
             section.paths_skipped, "n/a" if section.hull_probability is None else f"{section.hull_probability:.4f}")
    return section


def calculate_hull(ctx, best, enumeration='all', upper_limit=UPPER_LIMIT, progress=None, trace=None):
    """Berechnet die Hull mit konstruierten und mit extrahierten Alpha-/Beta-Pfaden."""
    sections = []
    for build_mode in (BuildMode.CONSTRUCTED, BuildMode.EXTRACTED):
        section = calculate_hull_section(ctx, best, build_mode, enumeration, upper_limit, progress)
        if trace is not None:
            trace.record(section)
        sections.append(section)
    return sections
