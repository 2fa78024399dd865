import numpy as np
import pytest

from crhs.algebra import (dependency_members, extract_linear_dependencies, from_matrix, identity, left_mul,
                          mul_vec, rank, solve_linear_system, to_matrix, transpose)


def test_matrix_conversion():
    rows = [0b101, 0b010, 0b111]
    mat = to_matrix(rows, 3)
    assert mat.tolist() == [[1, 0, 1], [0, 1, 0], [1, 1, 1]]
    assert from_matrix(mat) == rows


def test_rank():
    assert rank(identity(4)) == 4
    assert rank(to_matrix([0b01, 0b10, 0b11], 2)) == 2


def test_dependencies():
    deps = extract_linear_dependencies(to_matrix([0b001, 0b010, 0b100, 0b011], 3))
    assert deps.shape == (1, 4)
    assert dependency_members(deps[0]) == [0, 1, 3]


def test_no_dependencies():
    assert len(extract_linear_dependencies(identity(5))) == 0


def test_dependency_basis_is_reduced():
    # x0, x0, x0: zwei Abhängigkeiten mit je zwei Zeilen
    deps = extract_linear_dependencies(to_matrix([1, 1, 1], 2))
    assert sorted(len(dependency_members(row)) for row in deps) == [2, 2]


def test_products():
    a = to_matrix([0b11, 0b01], 2)
    assert left_mul(a, identity(2)).tolist() == a.tolist()
    assert left_mul(a, a).tolist() == [[0, 1], [1, 1]]
    assert transpose(a).tolist() == [[1, 1], [1, 0]]
    assert mul_vec(a, [1, 1]).tolist() == [0, 1]


def test_solve():
    mat = to_matrix([0b011, 0b110, 0b100], 3)
    x = solve_linear_system(mat, [1, 0, 1])
    assert mul_vec(mat, x).tolist() == [1, 0, 1]


def test_solve_singular():
    with pytest.raises(ValueError):
        solve_linear_system(to_matrix([0b01, 0b01], 2), [0, 1])


def test_matrices_are_bytes():
    assert to_matrix([1], 1).dtype == np.uint8
