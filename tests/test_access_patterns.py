import pytest

from cachebench.access_patterns import (
    VARIANTS,
    flat_column_major,
    flat_elementwise,
    flat_row_major,
    main,
    nested_column_major,
    nested_row_major,
    run_access_test,
)


def test_every_cell_incremented_once_per_iteration():
    results = [
        nested_row_major(3, 2),
        nested_column_major(3, 2),
        flat_row_major(3, 2),
        flat_column_major(3, 2),
        flat_elementwise(3, 2),
    ]
    for result in results:
        assert len(result.values) == 27
        assert set(result.values) == {2}
        assert result.elapsed_ms >= 0


def test_all_variants_agree_on_checksum():
    checksums = {
        nested_row_major(4, 3).checksum,
        nested_column_major(4, 3).checksum,
        flat_row_major(4, 3).checksum,
        flat_column_major(4, 3).checksum,
        flat_elementwise(4, 3).checksum,
    }
    assert len(checksums) == 1


def test_single_cell_checksum():
    assert flat_elementwise(1, 3).checksum == 6


def test_zero_iterations_leave_grid_untouched():
    results = [
        nested_row_major(2, 0),
        nested_column_major(2, 0),
        flat_row_major(2, 0),
        flat_column_major(2, 0),
        flat_elementwise(2, 0),
    ]
    for result in results:
        assert result.checksum == 0
        assert result.values == (0,) * 8


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        nested_row_major(-1, 1)
    with pytest.raises(ValueError):
        nested_column_major(-1, 1)
    with pytest.raises(ValueError):
        flat_row_major(-1, 1)
    with pytest.raises(ValueError):
        flat_column_major(-1, 1)
    with pytest.raises(ValueError):
        flat_elementwise(-1, 1)


def test_negative_iterations_rejected():
    with pytest.raises(ValueError):
        nested_row_major(2, -1)


def test_run_access_test_reports_each_size(capsys):
    results = run_access_test(2, [2, 3])
    assert list(results) == [2, 3]
    assert all(len(section) == len(VARIANTS) for section in results.values())
    assert results[3]["Vec Element-Wise"].values == (2,) * 27
    out = capsys.readouterr().out
    assert "RUNNING ACCESS TESTS WITH 2x2x2 data elements for 2 iterations!" in out
    assert "Multi-Vec Column-Major access:" in out


def test_main_runs_small_grid(capsys):
    assert main(["--iterations", "1", "--sizes", "2"]) == 0
    assert "Vec Element-Wise access:" in capsys.readouterr().out


def test_main_rejects_negative_iterations():
    with pytest.raises(SystemExit):
        main(["--iterations", "-1"])