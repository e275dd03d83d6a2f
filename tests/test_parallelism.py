import math
import random
from array import array

import pytest

from cachebench.parallelism import (
    ParallelismSettings,
    chunk_views,
    double_function,
    fine_double_function,
    fine_map_function,
    main,
    map_function,
    run_parallelism,
)


def _normalise(values):
    return [None if math.isnan(value) else value for value in values]


def _small(**overrides):
    values = dict(
        double_element_count=12,
        map_element_count=12,
        iteration_count=1,
        thread_count=2,
        chunk_size=4,
        complexity=3,
        seed=1,
    )
    values.update(overrides)
    return ParallelismSettings(**values)


def test_double_function_in_place():
    data = array("f", [1.0, 2.0, -3.0])
    double_function(data)
    assert list(data) == [2.0, 4.0, -6.0]


def test_fine_double_function():
    assert fine_double_function(1.5) == 3.0


def test_map_function_matches_fine_map_without_escape():
    data = array("f", [1.0, 2.0, 3.0])
    map_function(5, 0.0, data, random.Random(0))
    assert list(data) == [fine_map_function(5, 0.0, value) for value in (1.0, 2.0, 3.0)]


def test_certain_escape_skips_every_round():
    escaped = array("f", [1.0, 2.0])
    map_function(10, 1.0, escaped, random.Random(0))
    unrounded = array("f", [1.0, 2.0])
    map_function(0, 0.0, unrounded)
    assert list(escaped) == list(unrounded)


def test_fine_map_function_ignores_escape_probability():
    assert fine_map_function(7, 0.7, 2.0, random.Random(3)) == fine_map_function(7, 0.0, 2.0)


def test_fine_map_function_of_zero_is_nan():
    assert str(fine_map_function(4, 0.0, 0.0)) == "nan"


def test_chunk_views_lengths_and_write_through():
    data = array("f", range(7))
    views = chunk_views(data, 3)
    assert [len(view) for view in views] == [3, 3, 1]
    double_function(views[1])
    assert list(data) == [0.0, 1.0, 2.0, 6.0, 8.0, 10.0, 6.0]


def test_chunk_views_rejects_zero_chunk_size():
    with pytest.raises(ValueError):
        chunk_views(array("f", range(3)), 0)


def test_settings_default_chunk_size():
    assert ParallelismSettings().chunk_size == 3906


@pytest.mark.parametrize(
    "overrides",
    [
        {"thread_count": 0},
        {"chunk_size": 0},
        {"escape_probability": 1.5},
        {"complexity": -1},
        {"iteration_count": -1},
    ],
)
def test_settings_reject_invalid_values(overrides):
    with pytest.raises(ValueError):
        _small(**overrides)


def test_run_parallelism_shared_chunks_accumulate(capsys):
    result = run_parallelism(_small())
    # Single thread, coarse pool, thread per chunk and task queue all double the shared data.
    assert result["double"] == [16.0 * index for index in range(12)]
    assert result["double_fine"] == [2.0 * index for index in range(12)]
    assert result["double_atomic"] == [2.0 * index for index in range(12)]
    printed = capsys.readouterr().out
    assert "DOUBLE FUNCTION:" in printed
    assert "MAP FUNCTION:" in printed


def test_run_parallelism_map_sets_agree():
    result = run_parallelism(_small())
    expected = [fine_map_function(3, 0.0, float(index)) for index in range(12)]
    assert _normalise(result["map_fine"]) == _normalise(expected)
    assert _normalise(result["map_atomic"]) == _normalise(expected)


def test_run_parallelism_omits_thread_per_chunk_for_many_chunks(capsys):
    settings = _small(double_element_count=1200, map_element_count=4, chunk_size=1)
    result = run_parallelism(settings)
    assert result["double"] == [8.0 * index for index in range(1200)]
    assert "Omitted thread per chunk" in capsys.readouterr().out


def test_run_parallelism_single_thread_only():
    settings = _small(pool=False, scoped_threads=False, task_queue=False, atomic_chunks=False)
    result = run_parallelism(settings)
    assert result["double"] == [2.0 * index for index in range(12)]
    assert result["double_fine"] == [float(index) for index in range(12)]


def test_map_header_needs_single_thread(capsys):
    run_parallelism(_small(single_thread=False))
    printed = capsys.readouterr().out
    assert "DOUBLE FUNCTION:" in printed
    assert "MAP FUNCTION:" not in printed


def test_main_runs_small_configuration(capsys):
    code = main([
        "--double-element-count", "8",
        "--map-element-count", "8",
        "--iterations", "1",
        "--threads", "2",
        "--complexity", "2",
        "--seed", "5",
    ])
    assert code == 0
    printed = capsys.readouterr().out
    assert "Parallelism:" in printed
    assert "Chunk Size: 1 resulting in 9 chunks" in printed


def test_main_rejects_invalid_probability():
    with pytest.raises(SystemExit):
        main(["--escape-probability", "2.0"])