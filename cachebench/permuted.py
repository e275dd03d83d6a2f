"""Summing a float array directly, through a shuffled index table, and by shuffled rows.

``bytes`` figures report what the equivalent native layout would occupy:
4-byte floats, 8-byte indices and 24-byte vector headers.
"""

from __future__ import annotations

import argparse
import random
import time
from array import array
from collections.abc import Sequence

F32_SIZE = 4
USIZE_SIZE = 8
VEC_HEADER_SIZE = 24

_SMALL_ROWS = (1, 10, 100, 1000)
_LARGE_ROWS = (1, 10, 100, 1000, 10000, 100000)

# (iterations, element count, row lengths)
CONFIGURATIONS: tuple[tuple[int, int, tuple[int, ...]], ...] = (
    (100_000, 1000, _SMALL_ROWS),
    (10_000, 10000, _SMALL_ROWS),
    (1_000, 100000, _SMALL_ROWS),
    (100, 1000000, _LARGE_ROWS),
    (10, 10000000, _LARGE_ROWS),
    (1, 100000000, _LARGE_ROWS),
)


def _random_data(count: int, rng: random.Random) -> array:
    return array("f", (rng.random() for _ in range(count)))


def _shuffled_range(count: int, rng: random.Random) -> list[int]:
    indices = list(range(count))
    rng.shuffle(indices)
    return indices


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _check_count(data_count: int) -> None:
    if data_count < 0:
        raise ValueError("data count must not be negative")


def run_permuted(
    iteration_count: int, data_count: int, rng: random.Random | None = None
) -> float:
    """Sum random data in the order given by a shuffled index table."""
    _check_count(data_count)
    rng = rng if rng is not None else random.Random()
    data = _random_data(data_count, rng)
    indices = _shuffled_range(data_count, rng)

    total = 0.0
    start = time.perf_counter()
    for _ in range(iteration_count):
        total += sum(data[index] for index in indices)
    elapsed = _elapsed_ms(start)

    bytes_used = (
        len(data) * F32_SIZE + VEC_HEADER_SIZE + len(indices) * USIZE_SIZE + VEC_HEADER_SIZE
    )
    print(f"{elapsed} ms for permuted test taking {bytes_used} bytes of memory")
    return total


def run_executed_permuted(
    iteration_count: int, data_count: int, rng: random.Random | None = None
) -> float:
    """Apply the shuffle to the data once, then sum it in storage order."""
    _check_count(data_count)
    rng = rng if rng is not None else random.Random()
    data = _random_data(data_count, rng)
    indices = _shuffled_range(data_count, rng)
    permuted = array("f", (data[index] for index in indices))

    total = 0.0
    start = time.perf_counter()
    for _ in range(iteration_count):
        total += sum(permuted)
    elapsed = _elapsed_ms(start)

    bytes_used = len(permuted) * F32_SIZE + VEC_HEADER_SIZE
    print(f"{elapsed} ms for executed permuted test taking {bytes_used} bytes of memory")
    return total


def run_permuted_rows(
    iteration_count: int,
    data_count: int,
    row_length: int,
    rng: random.Random | None = None,
) -> float:
    """Sum whole rows of ``row_length`` elements, visiting rows in shuffled order.

    Elements past the last full row are not visited.
    """
    _check_count(data_count)
    if row_length <= 0:
        raise ValueError("row length must be positive")
    rng = rng if rng is not None else random.Random()
    data = _random_data(data_count, rng)
    rows = _shuffled_range(data_count // row_length, rng)

    total = 0.0
    start = time.perf_counter()
    for _ in range(iteration_count):
        total += sum(
            sum(data[row * row_length:(row + 1) * row_length]) for row in rows
        )
    elapsed = _elapsed_ms(start)

    bytes_used = (
        len(data) * F32_SIZE + VEC_HEADER_SIZE + len(rows) * USIZE_SIZE + VEC_HEADER_SIZE
    )
    print(
        f"{elapsed} ms for permuted rows test taking {bytes_used} bytes of memory "
        f"with row_length {row_length}"
    )
    return total


def run_suite(
    iteration_count: int,
    data_count: int,
    row_lengths: Sequence[int],
    rng: random.Random | None = None,
) -> float:
    """Run every variant for one problem size and return the combined sum."""
    rng = rng if rng is not None else random.Random()
    lengths = list(row_lengths)
    print(
        f"Running tests for {data_count} elements for {iteration_count} iterations "
        f"with row_length {lengths}"
    )
    total = run_permuted(iteration_count, data_count, rng)
    total += run_executed_permuted(iteration_count, data_count, rng)
    for row_length in lengths:
        total += run_permuted_rows(iteration_count, data_count, row_length, rng)
    print(f"Sums were: {total}")
    print()
    return total


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-permuted",
        description="Compare summing data directly and through shuffled indices.",
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
    for iterations, data_count, row_lengths in CONFIGURATIONS[: args.scales]:
        run_suite(max(1, iterations // args.iteration_divisor), data_count, row_lengths, rng)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())