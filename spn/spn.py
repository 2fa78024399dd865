from hullsearch.base_table import BaseTable

"""

Dieses Modul beinhaltet das Modell eines SPN mit Bit-Permutation als linearer Schicht, welches
mit jeglicher S-Box und P-Box beliebiger Blockgrösse und beliebig vielen Runden benutzt werden kann.
Die Klasse SPN stellt alle Angaben bereit, welche für den Aufbau des Gleichungssystems und die
Berechnung der Hull-Wahrscheinlichkeit benötigt werden: Blockgrösse, Anzahl S-Boxen, Grösse der
S-Boxen, lineare Schicht und Basistabelle (DDT bzw. angepasste LAT).

Zu beachten ist, dass die letzte Runde jeweils keine Permutation beinhaltet, da diese keine
weitere Sicherheit mit sich bringt.

"""


class SPN:
    def __init__(self, sbox, pbox, rounds, mode='differential', name='spn'):
        """
        Initialisiert das SPN. Die Grösse der S-Box wird aus der Länge
        der Tabelle abgeleitet, die Blockgrösse aus der Länge der P-Box.

        Args:
            sbox: Tabelle der S-Box, Länge 2^n
            pbox: Bit-Permutation, Bit i wandert an Position pbox[i]
            rounds: Anzahl Runden (Standardwert für nr_of_rounds)
            mode: 'differential' oder 'linear'
            name: Name im Katalog
        """
        assert mode in ('linear', 'differential')
        n = len(sbox).bit_length() - 1
        assert len(sbox) == 1 << n, "S-box length must be a power of two"
        assert len(pbox) % n == 0, "Block size must be a multiple of the S-box size"
        assert sorted(pbox) == list(range(len(pbox))), "P-box is not a permutation"

        self.sbox = sbox
        self.pbox = pbox
        self.rounds = rounds
        self.mode = mode
        self.name = name
        self.n = n
        self._table = None

    def block_size(self, round=0):
        return len(self.pbox)

    def num_sboxes(self, round=0):
        return len(self.pbox) // self.n

    def sbox_size_in(self, round=0, pos=0):
        return self.n

    def sbox_size_out(self, round=0, pos=0):
        return self.n

    def nr_of_rounds(self):
        return self.rounds

    def with_mode(self, mode):
        return SPN(self.sbox, self.pbox, self.rounds, mode, self.name)

    def apply_linear_layer(self, round, state):
        """
        Führt die Permutation auf einer Liste von LHS (oder Bits) durch,
        wobei Element i gemäss der P-Box Tabelle an Position pbox[i] wandert.
        """
        assert len(state) == len(self.pbox), f"Expected {len(self.pbox)} elements, got {len(state)}"
        permuted = [0] * len(state)
        for i, val in enumerate(state):
            permuted[self.pbox[i]] = val
        return permuted

    def _compute_look_up_table(self):
        """
        Diese Hilfsmethode erstellt den "DDT" bzw. den angepassten "LAT"
        für die S-Box. Beim DDT wird für jede Eingabe- und Ausgabedifferenz
        die Anzahl Paare gezählt, beim LAT der Betrag |2 * count - 2^n|, wobei
        count die Anzahl Eingaben mit übereinstimmender Parität ist.
        """
        size = 1 << self.n
        table = []
        for alpha in range(size):
            row = []
            for beta in range(size):
                count = 0
                for x in range(size):
                    if self.mode == 'linear':
                        in_parity = bin(alpha & x).count("1") % 2
                        out_parity = bin(beta & self.sbox[x]).count("1") % 2
                        if in_parity == out_parity:
                            count += 1
                    if self.mode == 'differential':
                        dy = self.sbox[x] ^ self.sbox[x ^ alpha]
                        if dy == beta:
                            count += 1
                if self.mode == 'linear':
                    row.append(abs(2 * count - size))
                if self.mode == 'differential':
                    row.append(count)
            table.append(row)
        return table

    def base_table(self, round=0, pos=0):
        if self._table is None:
            self._table = BaseTable(self._compute_look_up_table())
        return self._table
