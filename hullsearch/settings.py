import os
from dataclasses import dataclass
from typing import Optional

from hullsearch.enumerator import UPPER_LIMIT
from hullsearch.sess import MAX_CONNECTIONS


@dataclass
class RunConfig:
    """
    Einstellungen eines Laufs.

    Args:
        cipher: Name im Katalog
        mode: 'differential' oder 'linear'
        soft_lim: weiche Grenze für die Grösse des Masters
        rounds: Anzahl Runden, None für den Standardwert der Chiffre
        out_dir: Ausgabeverzeichnis
        in_dir: optionales Verzeichnis mit bereits gelösten Mastern (.bdd)
        silent: keine Fortschrittsbalken
        upper_limit: höchstens so viele innere Pfade werden bewertet
        max_connections: Anzahl behaltener SESS-Schätzungen
        enumeration: 'all', 'targeted' oder 'semi'
        plot: Diagramme erstellen
        bound: Schranke für einzelne Charakteristiken mit z3 berechnen
    """
    cipher: str
    mode: str = 'differential'
    soft_lim: int = 2 ** 12
    rounds: Optional[int] = None
    out_dir: str = '.'
    in_dir: Optional[str] = None
    silent: bool = False
    upper_limit: int = UPPER_LIMIT
    max_connections: int = MAX_CONNECTIONS
    enumeration: str = 'all'
    plot: bool = False
    bound: bool = False

    @property
    def mode_tag(self):
        return 'diff' if self.mode == 'differential' else 'lin'

    def stem(self, rounds):
        return f"{self.cipher}_r{rounds}_lim{self.soft_lim}_mode{self.mode_tag}"

    def out_path(self, rounds, suffix):
        return os.path.join(self.out_dir, self.stem(rounds) + suffix)

    def in_path(self, rounds):
        if self.in_dir is None:
            return None
        return os.path.join(self.in_dir, self.stem(rounds) + ".bdd")


def soft_limit(value=None, exponent=None):
    """Weiche Grenze aus einem absoluten Wert oder einem Exponenten zur Basis 2."""
    if (value is None) == (exponent is None):
        raise ValueError("Exactly one of soft limit and exponent must be given")
    if exponent is not None:
        if exponent < 0:
            raise ValueError(f"Exponent must be non-negative, got {exponent}")
        return 2 ** exponent
    if value <= 0:
        raise ValueError(f"Soft limit must be positive, got {value}")
    return value
