import numpy as np

"""

Lineare Algebra über GF(2). Matrizen sind numpy-Arrays mit dtype uint8,
deren Einträge 0 oder 1 sind. Zeilen aus dem Shard (LHS als Ganzzahl)
werden mit to_matrix umgewandelt, wobei Spalte j dem Bit j entspricht.

"""


def to_matrix(rows, ncols):
    mat = np.zeros((len(rows), ncols), dtype=np.uint8)
    for i, row in enumerate(rows):
        for j in range(ncols):
            if (row >> j) & 1:
                mat[i, j] = 1
    return mat


def from_matrix(mat):
    rows = []
    for row in mat:
        value = 0
        for j in np.flatnonzero(row):
            value |= 1 << int(j)
        rows.append(value)
    return rows


def identity(n):
    return np.eye(n, dtype=np.uint8)


def transpose(mat):
    return np.ascontiguousarray(mat.T)


def left_mul(a, b):
    """Berechnet a * b über GF(2)."""
    return ((a.astype(np.int64) @ b.astype(np.int64)) % 2).astype(np.uint8)


def mul_vec(mat, vec):
    vec = np.asarray(vec, dtype=np.int64)
    return ((mat.astype(np.int64) @ vec) % 2).astype(np.uint8)


def _eliminate(aug, ncols):
    """
    Gauss-Elimination auf den ersten ncols Spalten von aug (in place).
    Gibt die Anzahl Pivot-Zeilen und die Pivot-Spalten zurück.
    """
    rank = 0
    pivots = []
    nrows = aug.shape[0]
    for col in range(ncols):
        if rank == nrows:
            break
        candidates = np.flatnonzero(aug[rank:, col])
        if len(candidates) == 0:
            continue
        p = rank + candidates[0]
        if p != rank:
            aug[[rank, p]] = aug[[p, rank]]
        others = np.flatnonzero(aug[:, col])
        others = others[others != rank]
        aug[others] ^= aug[rank]
        pivots.append(col)
        rank += 1
    return rank, pivots


def rank(mat):
    work = mat.copy()
    r, _ = _eliminate(work, work.shape[1])
    return r


def extract_linear_dependencies(mat):
    """
    Sucht lineare Abhängigkeiten zwischen den Zeilen von mat. Das Resultat
    ist eine Matrix, deren Zeilen jeweils die Zeilenindizes markieren, deren
    Summe null ergibt. Die Basis ist reduziert, damit die einzelnen
    Abhängigkeiten möglichst wenige Zeilen umfassen.

    Args:
        mat: (m x n) Matrix über GF(2)
    """
    m, n = mat.shape
    aug = np.concatenate([mat % 2, identity(m)], axis=1).astype(np.uint8)
    r, _ = _eliminate(aug, n)
    deps = aug[r:, n:].copy()
    if len(deps) == 0:
        return deps
    # Reduzierte Stufenform, Pivot jeweils auf dem höchsten Index
    flipped = deps[:, ::-1].copy()
    k, _ = _eliminate(flipped, m)
    return flipped[:k, ::-1].copy()


def solve_linear_system(mat, rhs):
    """
    Löst mat * x = rhs für eine quadratische, reguläre Matrix mat.
    Wirft einen ValueError, falls mat singulär ist.
    """
    n = mat.shape[0]
    assert mat.shape == (n, n), "Only square systems are supported"
    rhs = np.asarray(rhs, dtype=np.uint8).reshape(n, 1)
    aug = np.concatenate([mat % 2, rhs % 2], axis=1).astype(np.uint8)
    r, _ = _eliminate(aug, n)
    if r != n:
        raise ValueError(f"Matrix is singular: rank {r} < {n}")
    return aug[:, n].copy()


def dependency_members(row):
    """Indizes der Zeilen, die an einer Abhängigkeit beteiligt sind."""
    return [int(i) for i in np.flatnonzero(row)]
