from collections import Counter

import pytest

from cachebench.threads import (
    basic_threading,
    basic_threading_with_scope,
    basic_threading_with_termination,
    main,
    print_thread,
)


def _names(lines):
    return Counter(line.split()[1] for line in lines)


def test_print_thread_lines():
    lines = []
    print_thread("x", 3, 0, lines.append)
    assert lines == ["Thread x Print 0", "Thread x Print 1", "Thread x Print 2"]


def test_print_thread_rejects_negative_wait():
    with pytest.raises(ValueError):
        print_thread("x", 1, -1, [].append)


def test_print_thread_zero_repetitions():
    lines = []
    print_thread("x", 0, 0, lines.append)
    assert lines == []


def test_basic_threading_returns_started_threads():
    lines = []
    threads = basic_threading(4, 2, 0, lines.append)
    assert len(threads) == 4
    for thread in threads:
        thread.join()
    counts = _names(lines)
    assert counts == Counter({"0": 2, "1": 2, "2": 2, "3": 2, "MAIN": 2})


def test_termination_waits_for_every_thread():
    lines = []
    basic_threading_with_termination(3, 4, 0, lines.append)
    assert len(lines) == 16
    assert all(count == 4 for count in _names(lines).values())
    assert all(not line.endswith("Print 4") for line in lines)


def test_scope_prints_main_last():
    lines = []
    basic_threading_with_scope(5, 2, 0, lines.append)
    assert lines[-2:] == ["Thread MAIN Print 0", "Thread MAIN Print 1"]
    assert sum(1 for line in lines if "MAIN" in line) == 2
    assert len(lines) == 12


def test_termination_rejects_negative_wait():
    with pytest.raises(ValueError):
        basic_threading_with_termination(1, 1, -5, [].append)


def test_main_prints_section_titles(capsys):
    assert main(["--threads", "2", "--repetitions", "1", "--wait", "0"]) == 0
    out = capsys.readouterr().out
    assert "Basic Threading with Scope:" in out
    assert "Thread MAIN Print 0" in out