import pytest

from hullsearch.base_table import PROB_FACTOR, BaseTable
from spn.catalog import PRESENT_PBOX, batch, cipher_names, make_cipher
from spn.spn import SPN


def test_ddt_rows_sum_to_block(toy):
    table = toy.base_table()
    assert table.entry(0, 0) == 16
    for a in range(16):
        assert sum(table.row(a)) == 16
    assert table.row(0)[1:] == [0] * 15


def test_lat_first_entry():
    table = make_cipher('toy', 2, 'linear').base_table()
    assert table.entry(0, 0) == 16
    assert table.column(0)[1:] == [0] * 15
    assert all(e % 2 == 0 for e in table.row(3))


def test_prob_exponents(toy):
    table = toy.base_table()
    assert table.prob_exponent_for_entry(16) == 0
    assert table.prob_exponent_for_entry(4) == 2 * PROB_FACTOR
    assert table.prob_exponent_for_entry(2) == 3 * PROB_FACTOR
    assert table.prob_exponent_for_entry(0) is None
    assert 1.0 < table.k < 4.0


def test_best_row_and_col():
    table = BaseTable([[4, 0], [0, 2]])
    assert table.best_row_for_col(1) == 1
    assert table.best_col_for_row(0) == 0


@pytest.mark.parametrize("rows", [
    [[0, 0], [0, 0]],
    [[2, 3], [0, 0]],
    [[2, -1], [0, 0]],
    [],
])
def test_invalid_tables(rows):
    with pytest.raises(ValueError):
        BaseTable(rows)


def test_linear_layer(toy):
    state = list(range(16))
    permuted = toy.apply_linear_layer(1, state)
    for i, p in enumerate(toy.pbox):
        assert permuted[p] == i


def test_spn_shape(toy):
    assert toy.block_size() == 16
    assert toy.num_sboxes() == 4
    assert toy.sbox_size_in() == toy.sbox_size_out() == 4
    assert toy.nr_of_rounds() == 2
    assert toy.with_mode('linear').mode == 'linear'


def test_spn_rejects_bad_pbox():
    with pytest.raises(AssertionError):
        SPN(list(range(16)), [0, 0, 1, 2], 2)


def test_catalog():
    assert cipher_names() == ['present', 'toy']
    assert make_cipher('toy').nr_of_rounds() == 4
    assert make_cipher('PRESENT').block_size() == 64
    assert PRESENT_PBOX[1] == 16 and PRESENT_PBOX[63] == 63
    assert sorted(PRESENT_PBOX) == list(range(64))
    assert batch(1) == ['toy', 'present']
    with pytest.raises(ValueError):
        make_cipher('aes')
    with pytest.raises(ValueError):
        batch(9)
