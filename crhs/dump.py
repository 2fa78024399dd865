import re

from crhs.errors import DumpFormatError
from crhs.shard import Shard

"""

Textformat für Shards, kompatibel mit bestehenden Werkzeugen:

    {nvar};{shard_id};[("{lhs}",[({id};{e0},{e1});...]);...;("",[({sink};0,0)])]

Die LHS wird als mit "+" verbundene Variablenindizes geschrieben, eine
Kinder-ID 0 bedeutet eine fehlende Kante.

"""

_HEADER = re.compile(r"^\s*(\d+)\s*;\s*(\d+)\s*;\s*\[(.*)\]\s*$", re.S)
_LEVEL = re.compile(r'\(\s*"([^"]*)"\s*,\s*\[(.*?)\]\s*\)', re.S)
_NODE = re.compile(r"\(\s*(\d+)\s*;\s*(\d+)\s*,\s*(\d+)\s*\)")


def lhs_to_expr(lhs: int):
    return "+".join(str(i) for i in range(lhs.bit_length()) if (lhs >> i) & 1)


def expr_to_lhs(expr: str):
    lhs = 0
    for term in expr.split("+"):
        term = term.strip()
        if not term:
            continue
        if not term.isdigit():
            raise DumpFormatError(f"Invalid LHS term '{term}'")
        lhs ^= 1 << int(term)
    return lhs


def emit(shard):
    levels = []
    for lvl in shard.levels:
        nodes = ";".join(f"({i};{n.e0 or 0},{n.e1 or 0})" for i, n in sorted(lvl.nodes.items()))
        levels.append(f'("{lhs_to_expr(lvl.lhs)}",[{nodes}])')
    return f"{shard.nvar};{shard.id};[{';'.join(levels)}]"


def parse(text: str):
    """
    Liest einen Shard aus dem Textformat. Wirft einen DumpFormatError, falls
    der Text nicht dem Format entspricht.
    """
    header = _HEADER.match(text)
    if header is None:
        raise DumpFormatError("Missing '{nvar};{shard_id};[...]' header")
    nvar, shard_id, body = int(header.group(1)), int(header.group(2)), header.group(3)

    specs = []
    for lhs_expr, nodes in _LEVEL.findall(body):
        parsed = [(int(i), int(e0), int(e1)) for i, e0, e1 in _NODE.findall(nodes)]
        if not parsed:
            raise DumpFormatError(f"Level '{lhs_expr}' has no nodes")
        specs.append((expr_to_lhs(lhs_expr), parsed))
    if not specs:
        raise DumpFormatError("Shard has no levels")
    return Shard.from_spec(nvar, shard_id, specs)


def write_shard(shard, path):
    with open(path, "w") as f:
        f.write(emit(shard))


def read_shard(path):
    with open(path) as f:
        return parse(f.read())
