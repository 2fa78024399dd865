"""

Hilfsfunktionen zur Darstellung von Bitvektoren. Ein Bitvektor ist eine
Liste von bool, das niederwertigste Bit steht an Index 0.

"""


def bools_to_int(bits):
    value = 0
    for idx, bit in enumerate(bits):
        if bit:
            value |= 1 << idx
    return value


def int_to_bools(value, length):
    return [bool((value >> i) & 1) for i in range(length)]


def bools_to_lt8(bits, chunk_size):
    """
    Teilt bits in Blöcke der Grösse chunk_size (höchstens 8) und wandelt jeden
    Block in eine Zahl.
    """
    if chunk_size > 8:
        raise ValueError("Chunk sizes above 8 do not fit in a byte")
    return [bools_to_int(bits[i:i + chunk_size]) for i in range(0, len(bits), chunk_size)]


def bools_to_u8(bits):
    return bools_to_lt8(bits, 8)


def u8s_to_hex(u8s):
    """Bytes als Hex-String, höchstwertiges Byte zuerst, Gruppen zu 4 Bytes."""
    digits = [f"{b:02x}" for b in reversed(u8s)]
    groups = ["".join(digits[i:i + 4]) for i in range(0, len(digits), 4)]
    return " ".join(groups)


def hex_to_bools(text, length):
    return int_to_bools(int(text.replace(" ", ""), 16), length)


def bools_to_hex_string(bits):
    if not bits:
        return ""
    return f"{bools_to_int(bits):0{(len(bits) + 3) // 4}x}"


def bools_to_bin_string(bits):
    if not bits:
        return ""
    return f"{bools_to_int(bits):0{len(bits)}b}"
