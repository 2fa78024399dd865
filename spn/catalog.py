from spn.spn import SPN

"""

Katalog der unterstützten Chiffren. Jede Chiffre wird über ihren Namen mit
einer Standardanzahl Runden erstellt, die Batches fassen mehrere Chiffren
für den Unterbefehl cg zusammen.

"""

TOY_SBOX = [0xB, 0x1, 0xD, 0x7, 0xC, 0x9, 0x3, 0xF, 0x0, 0xA, 0x8, 0x6, 0x2, 0x5, 0x4, 0xE]
TOY_PBOX = [12, 8, 13, 9, 2, 0, 15, 5, 6, 7, 10, 14, 11, 3, 4, 1]

PRESENT_SBOX = [0xC, 0x5, 0x6, 0xB, 0x9, 0x0, 0xA, 0xD, 0x3, 0xE, 0xF, 0x8, 0x4, 0x7, 0x1, 0x2]
PRESENT_PBOX = [(16 * i) % 63 for i in range(63)] + [63]

CIPHERS = {
    'toy': (TOY_SBOX, TOY_PBOX, 4),
    'present': (PRESENT_SBOX, PRESENT_PBOX, 5),
}

BATCHES = {
    0: ['toy'],
    1: ['toy', 'present'],
}


def cipher_names():
    return sorted(CIPHERS)


def make_cipher(name, rounds=None, mode='differential'):
    """
    Erstellt die Chiffre name. Ohne rounds wird die Standardanzahl Runden
    des Katalogs verwendet.
    """
    try:
        sbox, pbox, default_rounds = CIPHERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown cipher '{name}', expected one of {', '.join(cipher_names())}") from None
    return SPN(sbox, pbox, rounds or default_rounds, mode, name.lower())


def batch(number):
    if number not in BATCHES:
        raise ValueError(f"Unknown batch {number}, expected one of {sorted(BATCHES)}")
    return list(BATCHES[number])
