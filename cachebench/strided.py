"""Matrix multiplication with a plain and a pre-transposed right-hand operand."""

from __future__ import annotations

import argparse
import time
from array import array
from collections.abc import Sequence
from dataclasses import dataclass

# (iterations, outer dimension, inner dimension)
CONFIGURATIONS: tuple[tuple[int, int, int], ...] = (
    (6_000_000, 10, 8),
    (10_000, 100, 50),
    (20, 500, 500),
    (5, 1_000, 1_000),
    (1, 2_000, 2_000),
    (1, 3_000, 1_000),
)


class Matrix2D:
    """A row-major matrix of single-precision floats."""

    def __init__(self, row_count: int, column_count: int, scale: float) -> None:
        if row_count < 0 or column_count < 0:
            raise ValueError("matrix dimensions must not be negative")
        self.is_transposed = False
        self.row_count = row_count
        self.column_count = column_count
        self.data = array("f", (index * scale for index in range(row_count * column_count)))

    def __getitem__(self, position: tuple[int, int]) -> float:
        row, column = position
        if not (0 <= row < self.row_count and 0 <= column < self.column_count):
            raise IndexError(f"position {position} outside {self.row_count}x{self.column_count}")
        return self.data[row * self.column_count + column]

    def transpose(self) -> None:
        """Transpose in place; a matrix that is already transposed is left alone."""
        if self.is_transposed:
            return
        self.is_transposed = True
        columns = self.column_count
        transposed = array("f")
        for column in range(columns):
            transposed.extend(self.data[column::columns])
        self.data = transposed
        self.row_count, self.column_count = self.column_count, self.row_count


def multiply(input_a: Matrix2D, input_b: Matrix2D, output: Matrix2D) -> None:
    """Write ``input_a`` times ``input_b`` into ``output``.

    A transposed ``input_b`` holds the right-hand operand's columns as rows, so
    both operands are then read contiguously.
    """
    inner = input_a.column_count
    if input_b.is_transposed:
        b_inner, b_outer = input_b.column_count, input_b.row_count
    else:
        b_inner, b_outer = input_b.row_count, input_b.column_count
    if b_inner != inner:
        raise ValueError(f"inner dimensions differ: {inner} and {b_inner}")
    if output.row_count != input_a.row_count or output.column_count != b_outer:
        raise ValueError(
            f"output is {output.row_count}x{output.column_count}, "
            f"expected {input_a.row_count}x{b_outer}"
        )

    a_data, b_data = input_a.data, input_b.data
    b_columns = input_b.column_count
    for row in range(output.row_count):
        a_row = a_data[row * inner:(row + 1) * inner]
        base = row * output.column_count
        for column in range(output.column_count):
            if input_b.is_transposed:
                b_values = b_data[column * b_columns:(column + 1) * b_columns]
            else:
                b_values = b_data[column::b_columns]
            output.data[base + column] = sum(x * y for x, y in zip(a_row, b_values))


def describe_example(outer_dimension: int, inner_dimension: int, iteration_count: int) -> str:
    """The banner printed before a comparison run."""
    return (
        f"Now running {inner_dimension}x{inner_dimension} = "
        f"{outer_dimension}x{inner_dimension} x {inner_dimension}x{outer_dimension} "
        f"example for {iteration_count} iterations"
    )


@dataclass(frozen=True)
class Comparison:
    """Timings and products of one plain/transposed comparison."""

    non_transposed_ms: int
    transposed_ms: int
    non_transposed_product: list[float]
    transposed_product: list[float]


def _timed_multiplications(
    input_a: Matrix2D, input_b: Matrix2D, output: Matrix2D, iteration_count: int
) -> int:
    start = time.perf_counter()
    for _ in range(iteration_count):
        multiply(input_a, input_b, output)
    return int((time.perf_counter() - start) * 1000)


def run_comparison(outer_dimension: int, inner_dimension: int, iteration_count: int) -> Comparison:
    """Time the product with and without transposing the right-hand operand."""
    print(describe_example(outer_dimension, inner_dimension, iteration_count))
    input_a = Matrix2D(outer_dimension, inner_dimension, 0.1)
    input_b = Matrix2D(inner_dimension, outer_dimension, 0.2)
    output = Matrix2D(outer_dimension, outer_dimension, 0.0)

    plain_ms = _timed_multiplications(input_a, input_b, output, iteration_count)
    print(f"{plain_ms} ms for non_transposed")
    plain_product = list(output.data)

    input_b.transpose()
    transposed_ms = _timed_multiplications(input_a, input_b, output, iteration_count)
    print(f"{transposed_ms} ms for transposed")
    print()
    return Comparison(plain_ms, transposed_ms, plain_product, list(output.data))


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-strided",
        description="Compare matrix products with strided and contiguous operand access.",
    )
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

    for iterations, outer, inner in CONFIGURATIONS[: args.scales]:
        run_comparison(outer, inner, max(1, iterations // args.iteration_divisor))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())