from crhs.algebra import mul_vec, solve_linear_system
from crhs.bits import bools_to_bin_string, bools_to_u8, u8s_to_hex

"""

Pfade durch den Master. Ein Pfad ist eine Folge von Bits, ein Bit pro Ebene,
von der Quelle bis zur Senke (oder ein Teilstück davon). Zusammen mit den
LHS des Masters ergibt ein vollständiger Pfad eine Belegung aller Variablen,
aus welcher die Ein- und Ausgaben jeder S-Box folgen.

"""


class Path:
    __slots__ = ("bits",)

    def __init__(self, bits=None):
        self.bits = [bool(b) for b in bits] if bits is not None else []

    def append(self, bit):
        self.bits.append(bool(bit))

    def extend(self, bits):
        self.bits.extend(bool(b) for b in bits)

    def copy(self):
        return Path(self.bits)

    def __len__(self):
        return len(self.bits)

    def __iter__(self):
        return iter(self.bits)

    def __getitem__(self, item):
        return self.bits[item]

    def __add__(self, other):
        return Path(self.bits + list(other))

    def __eq__(self, other):
        return isinstance(other, Path) and self.bits == other.bits

    def __hash__(self):
        return hash(tuple(self.bits))

    def __repr__(self):
        return f"Path({self.to_bin()})"

    def to_hex(self):
        return u8s_to_hex(bools_to_u8(self.bits))

    def to_bin(self):
        return bools_to_bin_string(self.bits)

    def expand_to_full_path(self, master_matrix, soc):
        """
        Erweitert einen vollständigen Pfad zu den Ein- und Ausgaben aller
        S-Boxen. Zuerst wird die Belegung x der Variablen aus M * x = Pfad
        bestimmt (M ist die LHS-Matrix des Masters), danach die Werte aller
        LHS des Gleichungssystems.

        Args:
            master_matrix: LHS-Matrix des Masters, nvar x nvar
            soc: RawSoc mit den LHS der S-Boxen

        Returns:
            Liste von bool, pro Runde zuerst alle Eingaben, dann alle Ausgaben
        """
        assert len(self.bits) == soc.nvar, f"Path covers {len(self.bits)} of {soc.nvar} variables"
        x = solve_linear_system(master_matrix, [int(b) for b in self.bits])
        raw = [bool(v) for v in mul_vec(soc.lhs_matrix(), x)]

        full = []
        pos = 0
        for sizes in soc.sbox_sizes:
            ins, outs = [], []
            for size_in, size_out in sizes:
                ins.extend(raw[pos:pos + size_in])
                pos += size_in
                outs.extend(raw[pos:pos + size_out])
                pos += size_out
            full.extend(ins)
            full.extend(outs)
        return full


def split_rounds(full, soc):
    """
    Teilt einen erweiterten Pfad in Runden.

    Returns:
        Liste von (Eingaben, Ausgaben) pro Runde, jeweils als Liste von bool
    """
    res = []
    pos = 0
    for sizes in soc.sbox_sizes:
        n_in = sum(s[0] for s in sizes)
        n_out = sum(s[1] for s in sizes)
        res.append((full[pos:pos + n_in], full[pos + n_in:pos + n_in + n_out]))
        pos += n_in + n_out
    return res
