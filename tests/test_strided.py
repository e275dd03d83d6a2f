import pytest

from cachebench.strided import (
    Matrix2D,
    describe_example,
    main,
    multiply,
    run_comparison,
)


def test_construction_fills_scaled_indices():
    matrix = Matrix2D(2, 3, 0.5)
    assert list(matrix.data) == [0.0, 0.5, 1.0, 1.5, 2.0, 2.5]
    assert (matrix.row_count, matrix.column_count) == (2, 3)
    assert matrix.is_transposed is False


def test_negative_dimension_rejected():
    with pytest.raises(ValueError):
        Matrix2D(-1, 2, 1.0)


def test_getitem_out_of_range():
    with pytest.raises(IndexError):
        Matrix2D(2, 2, 1.0)[2, 0]


@pytest.mark.parametrize("rows,columns", [(3, 3), (2, 4), (5, 1)])
def test_transpose_moves_every_element(rows, columns):
    original = Matrix2D(rows, columns, 1.0)
    transposed = Matrix2D(rows, columns, 1.0)
    transposed.transpose()
    assert transposed.is_transposed
    assert (transposed.row_count, transposed.column_count) == (columns, rows)
    for row in range(rows):
        for column in range(columns):
            assert transposed[column, row] == original[row, column]


def test_second_transpose_is_ignored():
    matrix = Matrix2D(2, 3, 1.0)
    matrix.transpose()
    snapshot = list(matrix.data)
    matrix.transpose()
    assert list(matrix.data) == snapshot
    assert (matrix.row_count, matrix.column_count) == (3, 2)


def test_multiply_worked_example():
    a = Matrix2D(2, 2, 1.0)
    b = Matrix2D(2, 2, 1.0)
    out = Matrix2D(2, 2, 0.0)
    multiply(a, b, out)
    assert list(out.data) == [2.0, 3.0, 6.0, 11.0]


def test_multiply_by_zero_matrix():
    a = Matrix2D(3, 2, 1.0)
    zero = Matrix2D(2, 4, 0.0)
    out = Matrix2D(3, 4, 1.0)
    multiply(a, zero, out)
    assert list(out.data) == [0.0] * 12


def test_transposed_operand_gives_same_product():
    a = Matrix2D(3, 4, 0.1)
    b = Matrix2D(4, 3, 0.2)
    plain = Matrix2D(3, 3, 0.0)
    multiply(a, b, plain)
    b.transpose()
    transposed = Matrix2D(3, 3, 0.0)
    multiply(a, b, transposed)
    assert list(transposed.data) == list(plain.data)


def test_inner_dimension_mismatch():
    with pytest.raises(ValueError):
        multiply(Matrix2D(2, 3, 1.0), Matrix2D(2, 2, 1.0), Matrix2D(2, 2, 0.0))


def test_output_shape_mismatch():
    with pytest.raises(ValueError):
        multiply(Matrix2D(2, 3, 1.0), Matrix2D(3, 2, 1.0), Matrix2D(3, 3, 0.0))


def test_describe_example():
    assert describe_example(10, 8, 5) == "Now running 8x8 = 10x8 x 8x10 example for 5 iterations"


def test_run_comparison_products_match(capsys):
    result = run_comparison(4, 3, 2)
    assert result.non_transposed_product == result.transposed_product
    assert len(result.transposed_product) == 16
    out = capsys.readouterr().out
    assert "ms for non_transposed" in out
    assert "ms for transposed" in out


def test_main_smallest_scale(capsys):
    assert main(["--scales", "1", "--iteration-divisor", "6000000"]) == 0
    assert "example for 1 iterations" in capsys.readouterr().out