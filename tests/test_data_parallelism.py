import math
import random

import pytest

from cachebench.data_parallelism import convolve, level_2, level_3, main, map_function


def test_map_function_of_zero_is_nan():
    assert str(map_function(0.0)) == "nan"


def test_map_function_is_increasing_for_positive_inputs():
    assert map_function(1.0) < map_function(2.0) < map_function(3.0)


def test_map_function_grows_by_doubling_loop():
    assert map_function(1.0) > 2.0 ** 62


def test_convolve_identity_kernel():
    data = [0.25, 1.5, -2.0, 4.0]
    assert convolve(data, [1.0]) == data


def test_convolve_worked_example():
    assert convolve([1.0, 2.0, 3.0, 4.0], [1.0, 1.0]) == [3.0, 5.0, 7.0]


def test_convolve_output_length():
    assert len(convolve([0.0] * 10, [1.0, 2.0, 3.0])) == 8


def test_convolve_kernel_longer_than_data():
    assert convolve([1.0, 2.0], [1.0, 1.0, 1.0]) == []


def test_convolve_empty_kernel_rejected():
    with pytest.raises(ValueError):
        convolve([1.0, 2.0], [])


def test_level_2_without_iterations_keeps_data(capsys):
    assert level_2(3, 0) == [0.0, 1.0, 2.0]
    assert "ms for par iterator map_function" in capsys.readouterr().out


def test_level_2_maps_every_element():
    result = level_2(6, 1)
    assert len(result) == 6
    assert math.isnan(result[0])
    assert all(value > 0 for value in result[1:])


def test_level_3_sequential_and_parallel_agree():
    result = level_3(200, 2, 50, 1, [3, 5], random.Random(3))
    assert result.sequential_fraction == result.parallel_fraction
    assert 0.0 <= result.sequential_fraction <= 1.0
    assert sorted(result.convolution_sums) == [3, 5]
    for sequential, parallel in result.convolution_sums.values():
        assert sequential == parallel


def test_level_3_filter_wider_than_signal():
    result = level_3(10, 1, 4, 1, [7], random.Random(1))
    assert result.convolution_sums[7] == (0.0, 0.0)


def test_level_3_rejects_bad_filter_size():
    with pytest.raises(ValueError):
        level_3(10, 1, 10, 1, [0], random.Random(0))


def test_main_level_3(capsys):
    code = main(
        [
            "--level", "3",
            "--element-count", "20",
            "--iterations", "1",
            "--convolution-element-count", "30",
            "--convolution-iterations", "1",
            "--filter-sizes", "3",
            "--seed", "1",
        ]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "RUNNING LEVEL 3 BENCHMARKS!" in out
    assert "Running filter size 3" in out