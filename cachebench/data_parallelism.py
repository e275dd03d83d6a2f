"""Sequential, iterator and pool-parallel versions of map, filter and convolution."""

from __future__ import annotations

import argparse
import math
import os
import random
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import chain

DEFAULT_FILTER_SIZES: tuple[int, ...] = (3, 5, 7, 9, 11, 13, 15)


def map_function(x: float) -> float:
    """A deliberately heavier element map; zero maps to NaN as ``0/0`` does."""
    quotient = x * x / x if x != 0.0 else math.nan
    x = x * x * x * x + x * x + quotient + x
    for _ in range(62):
        x = x * 2.0 + 4.0 + 12.0 / 59.0
    return x


def convolve(data: Sequence[float], kernel: Sequence[float]) -> list[float]:
    """Dot product of ``kernel`` with every window of ``len(kernel)`` elements."""
    size = len(kernel)
    if size == 0:
        raise ValueError("kernel must not be empty")
    return [
        sum(element * weight for element, weight in zip(data[start:start + size], kernel))
        for start in range(len(data) - size + 1)
    ]


def _workers() -> int:
    return os.cpu_count() or 1


def _chunk_bounds(length: int, parts: int) -> list[tuple[int, int]]:
    size = max(1, -(-length // parts))
    return [(start, min(start + size, length)) for start in range(0, length, size)]


def _parallel_map(
    function: Callable[[float], float], data: Sequence[float], executor: Executor
) -> list[float]:
    chunks = [data[start:end] for start, end in _chunk_bounds(len(data), _workers())]
    mapped = executor.map(lambda chunk: [function(value) for value in chunk], chunks)
    return list(chain.from_iterable(mapped))


def _count_above_half(values: Iterable[float]) -> int:
    return sum(1 for value in values if 0.5 < value)


def _parallel_count(data: Sequence[float], executor: Executor) -> int:
    chunks = [data[start:end] for start, end in _chunk_bounds(len(data), _workers())]
    return sum(executor.map(_count_above_half, chunks))


def _parallel_convolve(
    data: Sequence[float], kernel: Sequence[float], executor: Executor
) -> list[float]:
    size = len(kernel)
    if size == 0:
        raise ValueError("kernel must not be empty")
    window_count = max(0, len(data) - size + 1)
    pieces = [
        data[start:end + size - 1] for start, end in _chunk_bounds(window_count, _workers())
    ]
    results = executor.map(lambda piece: convolve(piece, kernel), pieces)
    return list(chain.from_iterable(results))


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def level_2(element_count: int = 10_000_000, iteration_count: int = 100) -> list[float]:
    """Time in-place, rebuilt and pool-parallel maps; return the final data."""
    data = [float(index) for index in range(element_count)]
    with ThreadPoolExecutor(max_workers=_workers()) as executor:
        start = time.perf_counter()
        for _ in range(iteration_count):
            for index, value in enumerate(data):
                data[index] = value * 3.14
        print(f"{_elapsed_ms(start)} ms for for-loop double map")

        start = time.perf_counter()
        for _ in range(iteration_count):
            data = [value * 3.14 for value in data]
        print(f"{_elapsed_ms(start)} ms for iterator double map")

        start = time.perf_counter()
        for _ in range(iteration_count):
            data = _parallel_map(lambda value: value * 3.14, data, executor)
        print(f"{_elapsed_ms(start)} ms for par iterator double map")

        start = time.perf_counter()
        for _ in range(iteration_count):
            for index, value in enumerate(data):
                data[index] = map_function(value)
        print(f"{_elapsed_ms(start)} ms for for-loop map_function")

        start = time.perf_counter()
        for _ in range(iteration_count):
            data = [map_function(value) for value in data]
        print(f"{_elapsed_ms(start)} ms for iterator map_function")

        start = time.perf_counter()
        for _ in range(iteration_count):
            data = _parallel_map(map_function, data, executor)
        print(f"{_elapsed_ms(start)} ms for par iterator map_function")
    return data


@dataclass(frozen=True)
class Level3Result:
    """Fractions of elements above one half, and convolution sums per filter size."""

    sequential_fraction: float
    parallel_fraction: float
    convolution_sums: dict[int, tuple[float, float]] = field(default_factory=dict)


def level_3(
    element_count: int = 10_000_000,
    iteration_count: int = 100,
    convolution_element_count: int = 1920 * 1080,
    convolution_iteration_count: int = 1000,
    filter_sizes: Sequence[int] = DEFAULT_FILTER_SIZES,
    rng: random.Random | None = None,
) -> Level3Result:
    """Time filter-and-count and one-dimensional convolution, plain and parallel."""
    rng = rng if rng is not None else random.Random()
    sizes = list(filter_sizes)
    if any(size <= 0 for size in sizes):
        raise ValueError("filter sizes must be positive")
    if element_count <= 0 or iteration_count <= 0:
        raise ValueError("element and iteration counts must be positive")

    print(
        f"Running filter and count benchmark for {element_count} elements "
        f"with {iteration_count} iterations!"
    )
    data = [rng.random() for _ in range(element_count)]
    scale = iteration_count * element_count

    with ThreadPoolExecutor(max_workers=_workers()) as executor:
        start = time.perf_counter()
        counted = sum(_count_above_half(data) for _ in range(iteration_count))
        elapsed = _elapsed_ms(start)
        sequential_fraction = counted / scale
        print(f"{sequential_fraction}% of elements were greater than 0.5")
        print(f"{elapsed} ms for filter and sum")
        print()

        start = time.perf_counter()
        counted = sum(_parallel_count(data, executor) for _ in range(iteration_count))
        elapsed = _elapsed_ms(start)
        parallel_fraction = counted / scale
        print(f"{parallel_fraction}% of elements were greater than 0.5")
        print(f"{elapsed} ms for parallel filter and sum")
        print()
        print()

        print(
            f"Running convolution benchmark for {convolution_element_count} elements "
            f"with {convolution_iteration_count} iterations!"
        )
        print(f"Filter sizes are: {sizes}")
        signal = [rng.random() for _ in range(convolution_element_count)]
        filters = [[rng.uniform(-1.0, 1.0) for _ in range(size)] for size in sizes]

        sums: dict[int, tuple[float, float]] = {}
        for size, kernel in zip(sizes, filters):
            print(f"Running filter size {size}")
            sequential_sum = 0.0
            start = time.perf_counter()
            for _ in range(convolution_iteration_count):
                sequential_sum = sum(convolve(signal, kernel))
            print(f"{_elapsed_ms(start)} ms for convolution")

            parallel_sum = 0.0
            start = time.perf_counter()
            for _ in range(convolution_iteration_count):
                parallel_sum = sum(_parallel_convolve(signal, kernel, executor))
            print(f"{_elapsed_ms(start)} ms for parallel convolution")
            print()
            sums[size] = (sequential_sum, parallel_sum)

    return Level3Result(sequential_fraction, parallel_fraction, sums)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-data-parallelism",
        description="Compare sequential and parallel map, filter and convolution.",
    )
    parser.add_argument("--level", type=int, choices=(2, 3), default=2)
    parser.add_argument("--element-count", type=int, default=10_000_000)
    parser.add_argument("--iterations", type=int, default=100)
    parser.add_argument("--convolution-element-count", type=int, default=1920 * 1080)
    parser.add_argument("--convolution-iterations", type=int, default=1000)
    parser.add_argument(
        "--filter-sizes", type=int, nargs="+", default=list(DEFAULT_FILTER_SIZES)
    )
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    args = parser.parse_args(argv)

    if args.level == 3:
        print("RUNNING LEVEL 3 BENCHMARKS!")
        print("===========================")
        level_3(
            args.element_count,
            args.iterations,
            args.convolution_element_count,
            args.convolution_iterations,
            args.filter_sizes,
            random.Random(args.seed),
        )
    else:
        print("RUNNING LEVEL 2 BENCHMARKS!")
        print("===========================")
        level_2(args.element_count, args.iterations)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())