"""Jagged array layouts, and a benchmark of their sum and random-access speed.

Every layout stores rows whose elements all hold their row index as a
single-precision float. The layouts differ only in how rows are placed in
memory. ``memory_size`` reports the bytes the equivalent native layout would
occupy: 4-byte floats, 8-byte lengths and 24-byte vector headers.
"""

from __future__ import annotations

import argparse
import random
import time
from array import array
from collections.abc import Iterable, Sequence
from itertools import accumulate
from typing import Callable, Protocol

F32_SIZE = 4
USIZE_SIZE = 8
VEC_HEADER_SIZE = 24

# (iterations, row count, max row length, random-access divisor, run expensive tests)
CONFIGURATIONS: tuple[tuple[int, int, int, int, bool], ...] = (
    (1_000_000, 10, 10, 10, True),
    (100_000, 100, 100, 10, True),
    (1_000, 1000, 1000, 10, False),
    (100, 10000, 10000, 100, False),
    (1, 100000, 100000, 1000, False),
)


class _Layout(Protocol):
    def sum(self) -> float: ...

    def random_access(self, row_index: int, column_index: int) -> float | None: ...

    def memory_size(self) -> int: ...


def _check_lengths(row_lengths: Iterable[int]) -> list[int]:
    lengths = [int(length) for length in row_lengths]
    if any(length < 0 for length in lengths):
        raise ValueError("row lengths must not be negative")
    return lengths


def _check_rows(row_count: int, row_lengths: Iterable[int]) -> list[int]:
    lengths = _check_lengths(row_lengths)
    if not lengths:
        raise ValueError("at least one row is required")
    if row_count != len(lengths):
        raise ValueError(
            f"row count {row_count} does not match {len(lengths)} row lengths"
        )
    return lengths


def _row(row_index: int, length: int) -> array:
    return array("f", [float(row_index)]) * length


def _zeros(count: int) -> array:
    return array("f", [0.0]) * count


class NaiveJaggedArray:
    """One separately allocated vector per row."""

    def __init__(self, row_lengths: Iterable[int]) -> None:
        lengths = _check_lengths(row_lengths)
        self.rows: list[array] = [
            _row(row_index, length) for row_index, length in enumerate(lengths)
        ]
        self.total_elements = sum(lengths)

    def sum(self) -> float:
        return sum(sum(row) for row in self.rows)

    def random_access(self, row_index: int, column_index: int) -> float | None:
        if not 0 <= row_index < len(self.rows):
            return None
        row = self.rows[row_index]
        if not 0 <= column_index < len(row):
            return None
        return row[column_index]

    def memory_size(self) -> int:
        return (
            F32_SIZE * self.total_elements
            + VEC_HEADER_SIZE * len(self.rows)
            + VEC_HEADER_SIZE
        )


class JaggedArrayAuxLengths:
    """Rows padded to the longest row, with row lengths kept alongside."""

    def __init__(self, row_count: int, row_lengths: Iterable[int]) -> None:
        lengths = _check_rows(row_count, row_lengths)
        self.max_row_length = max(lengths)
        self.lengths = lengths
        self.data = _zeros(self.max_row_length * row_count)
        for row_index, length in enumerate(lengths):
            start = row_index * self.max_row_length
            self.data[start:start + length] = _row(row_index, length)

    def sum(self) -> float:
        stride = self.max_row_length
        return sum(
            sum(self.data[row_index * stride:row_index * stride + length])
            for row_index, length in enumerate(self.lengths)
        )

    def random_access(self, row_index: int, column_index: int) -> float | None:
        if not 0 <= row_index < len(self.lengths):
            return None
        if not 0 <= column_index < self.lengths[row_index]:
            return None
        return self.data[row_index * self.max_row_length + column_index]

    def memory_size(self) -> int:
        return (
            F32_SIZE * len(self.data)
            + VEC_HEADER_SIZE
            + USIZE_SIZE * len(self.lengths)
            + VEC_HEADER_SIZE
        )


class ConstrainedJaggedArray:
    """Padded rows whose first slot stores the row length."""

    def __init__(self, row_count: int, row_lengths: Iterable[int]) -> None:
        lengths = _check_rows(row_count, row_lengths)
        self.max_row_length = max(lengths) + 1
        self.row_count = row_count
        self.data = _zeros(self.max_row_length * row_count)
        for row_index, length in enumerate(lengths):
            start = row_index * self.max_row_length
            self.data[start] = float(length)
            self.data[start + 1:start + 1 + length] = _row(row_index, length)

    def sum(self) -> float:
        total = 0.0
        for start in range(0, len(self.data), self.max_row_length):
            length = int(self.data[start])
            total += sum(self.data[start + 1:start + 1 + length])
        return total

    def random_access(self, row_index: int, column_index: int) -> float | None:
        if not 0 <= row_index < self.row_count:
            return None
        start = row_index * self.max_row_length
        if not 0 <= column_index < int(self.data[start]):
            return None
        return self.data[start + 1 + column_index]

    def memory_size(self) -> int:
        return F32_SIZE * len(self.data) + VEC_HEADER_SIZE + USIZE_SIZE * 2


class CompactedJaggedArray:
    """Rows packed end to end, each preceded by its length."""

    def __init__(self, row_count: int, row_lengths: Iterable[int]) -> None:
        lengths = _check_rows(row_count, row_lengths)
        self.row_count = len(lengths)
        self.data = array("f")
        for row_index, length in enumerate(lengths):
            self.data.append(float(length))
            self.data.extend(_row(row_index, length))

    def sum(self) -> float:
        total = 0.0
        index = 0
        while index < len(self.data):
            length = int(self.data[index])
            total += sum(self.data[index + 1:index + 1 + length])
            index += length + 1
        return total

    def random_access(self, row_index: int, column_index: int) -> float | None:
        if not 0 <= row_index < self.row_count:
            return None
        index = 0
        for _ in range(row_index):
            index += int(self.data[index]) + 1
        if not 0 <= column_index < int(self.data[index]):
            return None
        return self.data[index + 1 + column_index]

    def memory_size(self) -> int:
        return F32_SIZE * len(self.data) + VEC_HEADER_SIZE


class CompactedJaggedArrayAuxRowStart:
    """Rows packed end to end, with a separate table of row start offsets."""

    def __init__(self, row_count: int, row_lengths: Iterable[int]) -> None:
        lengths = _check_rows(row_count, row_lengths)
        self.row_starts: list[int] = [0, *accumulate(lengths)]
        self.data = array("f")
        for row_index, length in enumerate(lengths):
            self.data.extend(_row(row_index, length))
        # The storage is sized as if every row kept a length slot.
        self.data.extend(_zeros(row_count))

    def sum(self) -> float:
        return sum(self.data)

    def random_access(self, row_index: int, column_index: int) -> float | None:
        if not 0 <= row_index < len(self.row_starts) - 1:
            return None
        start = self.row_starts[row_index]
        if not 0 <= column_index < self.row_starts[row_index + 1] - start:
            return None
        return self.data[start + column_index]

    def memory_size(self) -> int:
        return (
            F32_SIZE * len(self.data)
            + VEC_HEADER_SIZE
            + USIZE_SIZE * len(self.row_starts)
            + VEC_HEADER_SIZE
        )


def _elapsed_ms(seconds: float) -> int:
    return int(seconds * 1000)


def _benchmark_layout(
    name: str,
    layout: _Layout,
    iteration_count: int,
    row_count: int,
    max_row_length: int,
    random_access_count: int,
    run_random_access: bool,
    rng: random.Random,
) -> float:
    total = 0.0
    start = time.perf_counter()
    for _ in range(iteration_count):
        total += layout.sum()
    elapsed = time.perf_counter() - start
    print(
        f"{_elapsed_ms(elapsed)} ms for {name} sum test taking "
        f"{layout.memory_size()} bytes of memory"
    )

    if not run_random_access:
        print(f"Didn't run random access test for {name} because it was too expensive!")
        return total

    access_time = 0.0
    for _ in range(iteration_count):
        # Index generation stays outside the timed section.
        indices = [
            (rng.randrange(row_count), rng.randrange(max_row_length))
            for _ in range(random_access_count)
        ]
        start = time.perf_counter()
        for row_index, column_index in indices:
            value = layout.random_access(row_index, column_index)
            if value is not None:
                total += value
        access_time += time.perf_counter() - start
    print(
        f"{_elapsed_ms(access_time)} ms for {name} random access test taking "
        f"{layout.memory_size()} bytes of memory"
    )
    return total


def execute_test(
    iteration_count: int,
    row_count: int,
    max_row_length: int,
    row_lengths: Sequence[int],
    random_access_count: int,
    run_expensive_tests: bool,
    rng: random.Random | None = None,
) -> float:
    """Benchmark every layout on the same rows and return the accumulated sum."""
    rng = rng if rng is not None else random.Random()
    print(
        f"Running test with {row_count} row count, {max_row_length} max row length, "
        f"{iteration_count} iterations, {random_access_count} random accesses"
    )
    lengths = list(row_lengths)
    builders: list[tuple[str, Callable[[], _Layout], bool]] = [
        ("NaiveJaggedArray", lambda: NaiveJaggedArray(lengths), True),
        ("JaggedArrayAuxLengths", lambda: JaggedArrayAuxLengths(row_count, lengths), True),
        ("ConstrainedJaggedArray", lambda: ConstrainedJaggedArray(row_count, lengths), True),
        (
            "CompactedJaggedArray",
            lambda: CompactedJaggedArray(row_count, lengths),
            run_expensive_tests,
        ),
        (
            "CompactedJaggedArrayAuxRowStart",
            lambda: CompactedJaggedArrayAuxRowStart(row_count, lengths),
            True,
        ),
    ]

    total = 0.0
    for name, build, run_random_access in builders:
        # Each layout is built only when its turn comes and released afterwards.
        total += _benchmark_layout(
            name,
            build(),
            iteration_count,
            row_count,
            max_row_length,
            random_access_count,
            run_random_access,
            rng,
        )
    print()
    print()
    return total


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-jagged",
        description="Compare sum and random-access speed of jagged array layouts.",
    )
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument(
        "--scales",
        type=int,
        default=len(CONFIGURATIONS),
        choices=range(1, len(CONFIGURATIONS) + 1),
        help="how many of the problem sizes to run, smallest first",
    )
    parser.add_argument(
        "--iteration-divisor",
        type=int,
        default=1,
        help="divide every iteration count by this value",
    )
    args = parser.parse_args(argv)
    if args.iteration_divisor < 1:
        parser.error("--iteration-divisor must be at least 1")

    rng = random.Random(args.seed)
    total = 0.0
    for iterations, row_count, max_row_length, divisor, expensive in CONFIGURATIONS[: args.scales]:
        row_lengths = [rng.randrange(max_row_length) for _ in range(row_count)]
        total += execute_test(
            max(1, iterations // args.iteration_divisor),
            row_count,
            max_row_length,
            row_lengths,
            row_count * max_row_length // divisor,
            expensive,
            rng,
        )
    print(f"Sum was: {total}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())