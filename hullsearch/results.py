import enum
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from crhs.bits import bools_to_bin_string, bools_to_hex_string
from hullsearch.base_table import PROB_FACTOR

"""

Resultate der Hull-Berechnung. Eine ResultSection beschreibt eine Berechnung
(Alpha- und Beta-Pfad konstruiert oder extrahiert), ein ProcessedResult fasst
beide Berechnungen eines Laufs zusammen und erzeugt den Text der Datei
..._pp_results.txt.

"""


class BuildMode(enum.Enum):
    CONSTRUCTED = 'constructed'
    EXTRACTED = 'extracted'

    def describe(self):
        if self is BuildMode.CONSTRUCTED:
            return "BuildMode: Alpha and Beta paths were constructed to be optimal"
        return "BuildMode: Alpha and Beta paths were extracted from the graph"


def hull_log2_probability(bins):
    """
    Fasst die Exponenten aller Pfade zu einem Exponenten zusammen. Der Eintrag
    0 (übersprungene Pfade) wird ignoriert.

        2^(-k0) * v0 + 2^(-k1) * v1 + ... = 2^(-k0) * (v0 + 2^(k0 - k1) * v1 + ...)

    Returns:
        p mit Wahrscheinlichkeit 2^(-p), oder None ohne gültige Pfade
    """
    keys = sorted(k for k, v in bins.items() if k != 0 and v)
    if not keys:
        return None
    k0 = keys[0]
    x = 0.0
    for k in keys:
        x += bins[k] / 2.0 ** ((k - k0) / PROB_FACTOR)
    return k0 / PROB_FACTOR - math.log2(x)


@dataclass
class ResultSection:
    mode: BuildMode
    enumeration: str
    alpha_path: Optional[List[bool]] = None
    beta_path: Optional[List[bool]] = None
    example_rounds: Optional[List[tuple]] = None
    example_weight: Optional[int] = None
    hull_probability: Optional[float] = None
    bins: Dict[int, int] = field(default_factory=dict)
    paths_skipped: int = 0
    paths_used: int = 0
    total_paths: int = 0
    truncated: bool = False
    overflowed: bool = False
    linear: bool = False

    def log_entry(self):
        lines = [f"{' Result (' + self.mode.value + ') ':=^100}", self.mode.describe(),
                 f"Path enumeration: {self.enumeration}"]
        if self.hull_probability is not None:
            kind = "correlation^2" if self.linear else "probability"
            lines.append(f"Hull {kind}: 2^(-{self.hull_probability:.4f})")
        else:
            lines.append("Hull probability: not available")
        if self.alpha_path is not None:
            lines.append(f"Alpha: {bools_to_hex_string(self.alpha_path)}")
        if self.beta_path is not None:
            lines.append(f"Beta:  {bools_to_hex_string(self.beta_path)}")
        total = f"{self.total_paths}" + (" (overflowed)" if self.overflowed else "")
        lines.append(f"Total trails in hull: {total}, used: {self.paths_used}, skipped: {self.paths_skipped}"
                     + (", truncated at upper limit" if self.truncated else ""))
        if self.example_rounds:
            ex_w = "" if self.example_weight is None else f" (weight {self.example_weight / PROB_FACTOR:.3f})"
            lines.append(f"Example trail{ex_w}:")
            for r, (ins, outs) in enumerate(self.example_rounds):
                lines.append(f"  Round {r + 1:>2} in : {bools_to_hex_string(ins):>18}  {bools_to_bin_string(ins)}")
                lines.append(f"           out: {bools_to_hex_string(outs):>18}  {bools_to_bin_string(outs)}")
        if self.bins:
            lines.append("Trails per weight:")
            lines.append(f"  {'weight':>10} | {'count':>12}")
            for k in sorted(self.bins):
                lines.append(f"  {k / PROB_FACTOR:>10.3f} | {self.bins[k]:>12}")
        return "\n".join(lines)


@dataclass
class ProcessedResult:
    cipher: str
    rounds: int
    mode: str
    estimate: object
    sections: List[ResultSection]
    paths: object = None
    bound: object = None

    def render(self):
        lines = [f"{' ' + self.cipher + ', ' + str(self.rounds) + ' rounds, ' + self.mode + ' ':#^100}"]
        if self.estimate is not None:
            lines.append(self.estimate.log_entry())
        if self.paths is not None:
            lines.append(self.paths.log_entry())
        if self.bound is not None:
            lines.append(self.bound.log_entry())
        for section in self.sections:
            lines.append(section.log_entry())
        return "\n".join(lines) + "\n"

    def write(self, path):
        with open(path, "w") as f:
            f.write(self.render())
