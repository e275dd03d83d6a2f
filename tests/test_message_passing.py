import random

import pytest

from cachebench import data_parallelism
from cachebench.message_passing import main, map_function, run


def test_map_function_maps_each_value():
    assert map_function([0.1, 0.2]) == [
        data_parallelism.map_function(0.1),
        data_parallelism.map_function(0.2),
    ]


def test_map_function_empty():
    assert map_function([]) == []


def test_map_function_zero_is_nan():
    assert [str(value) for value in map_function([0.0])] == ["nan"]


def test_map_function_leaves_input_alone():
    data = [0.3, 0.4]
    map_function(data)
    assert data == [0.3, 0.4]


def test_run_returns_one_more_result_than_max_work(capsys):
    results = run(3, 1, 1, random.Random(0))
    assert len(results) == 4
    assert "Received result" in capsys.readouterr().out


def test_run_processes_initial_tasks_in_order():
    results = run(4, 1, 1, random.Random(1))
    assert results[0] == map_function([0.1])
    assert results[1] == map_function([0.1, 0.2])
    assert results[2] == map_function([0.1, 0.2, 0.3])
    assert results[3] == map_function([0.1, 0.2, 0.3, 0.4])


def test_generated_tasks_have_one_to_four_values():
    results = run(8, 0, 0, random.Random(2))
    assert len(results) == 9
    assert all(1 <= len(result) <= 4 for result in results[4:])


def test_negative_wait_rejected():
    with pytest.raises(ValueError):
        run(1, -1, 0, random.Random(0))


def test_main_small_run(capsys):
    assert main(["--max-work", "1", "--master-wait", "1", "--worker-wait", "1", "--seed", "3"]) == 0
    assert capsys.readouterr().out.count("Received result") == 2