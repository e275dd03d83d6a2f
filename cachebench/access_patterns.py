"""Row-major, column-major and element-wise updates of a cubic grid of integers.

Every variant adds one to each cell per iteration and folds the new cell value
into a checksum. The checksum wraps like a 32-bit signed integer. Only the
traversal order and the storage (nested lists or one flat list) differ.
"""

from __future__ import annotations

import argparse
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

DEFAULT_ITERATION_COUNT = 1000
DEFAULT_DATA_COUNTS: tuple[int, ...] = (16, 32, 64, 128)


@dataclass(frozen=True)
class AccessResult:
    """Timing, wrapped checksum and final cell values of one access run."""

    elapsed_ms: int
    checksum: int
    values: tuple[int, ...]


def _wrap_i32(value: int) -> int:
    return ((value + 2**31) % 2**32) - 2**31


def _check(data_count: int, iteration_count: int) -> None:
    if data_count < 0:
        raise ValueError("data count must not be negative")
    if iteration_count < 0:
        raise ValueError("iteration count must not be negative")


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _nested_grid(data_count: int) -> list[list[list[int]]]:
    return [[[0] * data_count for _ in range(data_count)] for _ in range(data_count)]


def _flatten(grid: list[list[list[int]]]) -> tuple[int, ...]:
    return tuple(value for plane in grid for row in plane for value in row)


def nested_row_major(data_count: int, iteration_count: int) -> AccessResult:
    """Update nested lists with the innermost index varying fastest."""
    _check(data_count, iteration_count)
    grid = _nested_grid(data_count)
    total = 0
    start = time.perf_counter()
    for _ in range(iteration_count):
        for plane in grid:
            for row in plane:
                for z_index, value in enumerate(row):
                    value += 1
                    row[z_index] = value
                    total += value
    elapsed = _elapsed_ms(start)
    return AccessResult(elapsed, _wrap_i32(total), _flatten(grid))


def nested_column_major(data_count: int, iteration_count: int) -> AccessResult:
    """Update nested lists with the outermost index varying fastest."""
    _check(data_count, iteration_count)
    grid = _nested_grid(data_count)
    axis = range(data_count)
    total = 0
    start = time.perf_counter()
    for _ in range(iteration_count):
        for z_index in axis:
            for y_index in axis:
                for x_index in axis:
                    row = grid[x_index][y_index]
                    row[z_index] += 1
                    total += row[z_index]
    elapsed = _elapsed_ms(start)
    return AccessResult(elapsed, _wrap_i32(total), _flatten(grid))


def _flat_traversal(data_count: int, iteration_count: int, column_major: bool) -> AccessResult:
    _check(data_count, iteration_count)
    data = [0] * data_count**3
    plane = data_count * data_count
    axis = range(data_count)
    total = 0
    start = time.perf_counter()
    for _ in range(iteration_count):
        for outer in axis:
            for middle in axis:
                for inner in axis:
                    if column_major:
                        index = inner * plane + middle * data_count + outer
                    else:
                        index = outer * plane + middle * data_count + inner
                    data[index] += 1
                    total += data[index]
    elapsed = _elapsed_ms(start)
    return AccessResult(elapsed, _wrap_i32(total), tuple(data))


def flat_row_major(data_count: int, iteration_count: int) -> AccessResult:
    """Update one flat list through computed 3D indices, innermost index fastest."""
    return _flat_traversal(data_count, iteration_count, column_major=False)


def flat_column_major(data_count: int, iteration_count: int) -> AccessResult:
    """Update one flat list through computed 3D indices, outermost index fastest."""
    return _flat_traversal(data_count, iteration_count, column_major=True)


def flat_elementwise(data_count: int, iteration_count: int) -> AccessResult:
    """Update one flat list in storage order without index arithmetic."""
    _check(data_count, iteration_count)
    data = [0] * data_count**3
    total = 0
    start = time.perf_counter()
    for _ in range(iteration_count):
        for index, value in enumerate(data):
            value += 1
            data[index] = value
            total += value
    elapsed = _elapsed_ms(start)
    return AccessResult(elapsed, _wrap_i32(total), tuple(data))


VARIANTS: tuple[tuple[str, Callable[[int, int], AccessResult]], ...] = (
    ("Multi-Vec Row-Major", nested_row_major),
    ("Multi-Vec Column-Major", nested_column_major),
    ("Vec Row-Major", flat_row_major),
    ("Vec Column-Major", flat_column_major),
    ("Vec Element-Wise", flat_elementwise),
)


def run_access_test(
    iteration_count: int = DEFAULT_ITERATION_COUNT,
    data_counts: Iterable[int] = DEFAULT_DATA_COUNTS,
) -> dict[int, dict[str, AccessResult]]:
    """Run every variant for each grid size, printing timings as they finish."""
    results: dict[int, dict[str, AccessResult]] = {}
    for data_count in data_counts:
        print(
            f"RUNNING ACCESS TESTS WITH {data_count}x{data_count}x{data_count} "
            f"data elements for {iteration_count} iterations!"
        )
        print("=============================================================")
        section: dict[str, AccessResult] = {}
        for label, variant in VARIANTS:
            result = variant(data_count, iteration_count)
            print(f"{label} access: {result.elapsed_ms} ms")
            section[label] = result
        print()
        results[data_count] = section
    return results


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-access",
        description="Compare traversal orders over nested and flat 3D grids.",
    )
    parser.add_argument("--iterations", type=int, default=DEFAULT_ITERATION_COUNT)
    parser.add_argument(
        "--sizes", type=int, nargs="+", default=list(DEFAULT_DATA_COUNTS),
        help="edge lengths of the cubic grids",
    )
    args = parser.parse_args(argv)
    if args.iterations < 0:
        parser.error("--iterations must not be negative")
    if any(size < 0 for size in args.sizes):
        parser.error("--sizes must not be negative")
    run_access_test(args.iterations, args.sizes)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())