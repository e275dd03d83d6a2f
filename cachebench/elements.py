"""Elements that each carry one of five small functions, executed naively,
after sorting by function, split into per-function buckets, and with one
specific call per bucket.

Values are single-precision floats. The eight-lane variant holds every
coordinate as eight equal float32 lanes.
"""

from __future__ import annotations

import argparse
import random
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Protocol

import numpy as np

LANES = 8
DEFAULT_ELEMENT_COUNT = 300000 * LANES
DEFAULT_TEST_COUNT = 100

_LABELS = ("SquareRoot", "Polynomial", "Swap", "Cos", "Distance")


class ElementFunction(IntEnum):
    """The function an element applies to its coordinates."""

    SQUARE_ROOT = 0
    POLYNOMIAL = 1
    SWAP = 2
    COS = 3
    DISTANCE = 4

    @classmethod
    def from_index(cls, index: int) -> ElementFunction:
        """The function for ``index`` taken modulo the number of functions."""
        return cls(index % len(cls))

    @property
    def label(self) -> str:
        return _LABELS[self.value]

    def __str__(self) -> str:
        return self.label


class _Coordinates(Protocol):
    x: Any
    y: Any
    z: Any


def square_root(element: _Coordinates) -> None:
    """Replace every coordinate by its square root."""
    element.x = np.sqrt(element.x)
    element.y = np.sqrt(element.y)
    element.z = np.sqrt(element.z)


def polynomial(element: _Coordinates) -> None:
    """Set ``z`` to ``x³ - y + y²``."""
    element.z = element.x * element.x * element.x - element.y + element.y * element.y


def swap(element: _Coordinates) -> None:
    """Rotate the coordinates: ``x`` takes ``y``, ``y`` takes ``z``, ``z`` takes ``x``."""
    element.x, element.y, element.z = element.y, element.z, element.x


def cos(element: _Coordinates) -> None:
    """Replace every coordinate by its cosine."""
    element.x = np.cos(element.x)
    element.y = np.cos(element.y)
    element.z = np.cos(element.z)


def distance(element: _Coordinates) -> None:
    """Set ``z`` to the length of ``(x, y)``."""
    element.z = np.sqrt(element.x * element.x + element.y * element.y)


_FUNCTIONS: tuple[Callable[[_Coordinates], None], ...] = (
    square_root,
    polynomial,
    swap,
    cos,
    distance,
)


def _f32(rng: random.Random) -> np.float32:
    return np.float32(rng.random())


@dataclass(slots=True)
class Element:
    """Three float32 coordinates and the function applied to them."""

    function: ElementFunction
    x: np.float32
    y: np.float32
    z: np.float32

    @classmethod
    def random(cls, rng: random.Random) -> Element:
        function = ElementFunction.from_index(rng.getrandbits(32))
        return cls(function, _f32(rng), _f32(rng), _f32(rng))

    def execute(self) -> None:
        _FUNCTIONS[self.function](self)


@dataclass(slots=True)
class ElementNoEnum:
    """Like ``Element``, but the function is a plain integer.

    Integers outside the known functions fall back to the square root.
    """

    function: int
    x: np.float32
    y: np.float32
    z: np.float32

    @classmethod
    def random(cls, rng: random.Random) -> ElementNoEnum:
        return cls(rng.getrandbits(32) % len(_FUNCTIONS), _f32(rng), _f32(rng), _f32(rng))

    def execute(self) -> None:
        if 0 <= self.function < len(_FUNCTIONS):
            _FUNCTIONS[self.function](self)
        else:
            square_root(self)

    def __str__(self) -> str:
        if 0 <= self.function < len(_LABELS):
            return _LABELS[self.function]
        return "Invalid"


@dataclass(slots=True)
class ElementX8:
    """Coordinates of eight lanes each, sharing one function."""

    function: ElementFunction
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray

    @classmethod
    def random(cls, rng: random.Random) -> ElementX8:
        function = ElementFunction.from_index(rng.getrandbits(32))

        def splat() -> np.ndarray:
            return np.full(LANES, rng.random(), dtype=np.float32)

        return cls(function, splat(), splat(), splat())

    def execute(self) -> None:
        _FUNCTIONS[self.function](self)


def split_into_buckets(elements: Iterable[Any]) -> list[list[Any]]:
    """Group elements into one list per function, in function order."""
    buckets: list[list[Any]] = [[] for _ in _FUNCTIONS]
    for element in elements:
        index = int(element.function)
        if not 0 <= index < len(buckets):
            raise ValueError(f"element has unknown function {index}")
        buckets[index].append(element)
    return buckets


def _check_test_count(test_count: int) -> None:
    if test_count < 1:
        raise ValueError("test count must be at least 1")


def _seconds_per_test(start: float, test_count: int) -> float:
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    return elapsed_ms / test_count * 0.001


def run_naive(elements: Sequence[Any], test_count: int) -> float:
    """Execute every element in its given order; return seconds per test."""
    _check_test_count(test_count)
    start = time.perf_counter()
    for _ in range(test_count):
        for element in elements:
            element.execute()
    return _seconds_per_test(start, test_count)


def run_sorted(elements: list[Any], test_count: int) -> float:
    """Sort the elements in place by function, then execute them; return seconds per test."""
    _check_test_count(test_count)
    elements.sort(key=lambda element: int(element.function))
    return run_naive(elements, test_count)


def run_sorted_split(buckets: Sequence[Sequence[Any]], test_count: int) -> float:
    """Execute the elements bucket by bucket; return seconds per test."""
    _check_test_count(test_count)
    start = time.perf_counter()
    for _ in range(test_count):
        for bucket in buckets:
            for element in bucket:
                element.execute()
    return _seconds_per_test(start, test_count)


def run_sorted_split_specific(buckets: Sequence[Sequence[Any]], test_count: int) -> float:
    """Apply bucket ``i``'s function directly to its elements; return seconds per test.

    The function is chosen by bucket position, not by the elements themselves.
    """
    _check_test_count(test_count)
    if len(buckets) != len(_FUNCTIONS):
        raise ValueError(f"expected {len(_FUNCTIONS)} buckets, got {len(buckets)}")
    pairs = list(zip(_FUNCTIONS, buckets))
    start = time.perf_counter()
    for _ in range(test_count):
        for function, bucket in pairs:
            for element in bucket:
                function(element)
    return _seconds_per_test(start, test_count)


def _report(results: dict[str, float], name: str, seconds: float) -> None:
    results[name] = seconds
    print(f"{seconds} seconds elapsed for {name}")


def _run_family(
    results: dict[str, float],
    title: str,
    suffix: str,
    make: Callable[[random.Random], Any],
    count: int,
    test_count: int,
    rng: random.Random,
) -> None:
    print(title)
    _report(results, f"naive implementation{suffix}",
            run_naive([make(rng) for _ in range(count)], test_count))
    _report(results, f"sorted implementation{suffix}",
            run_sorted([make(rng) for _ in range(count)], test_count))
    _report(results, f"sorted and split implementation{suffix}",
            run_sorted_split(split_into_buckets(make(rng) for _ in range(count)), test_count))
    _report(results, f"sorted and split with specific calls implementation{suffix}",
            run_sorted_split_specific(
                split_into_buckets(make(rng) for _ in range(count)), test_count))
    print(" ")


def run_benchmarks(
    element_count: int = DEFAULT_ELEMENT_COUNT,
    test_count: int = DEFAULT_TEST_COUNT,
    rng: random.Random | None = None,
) -> dict[str, float]:
    """Run every layout and strategy; return seconds per test keyed by description."""
    if element_count < 0:
        raise ValueError("element count must not be negative")
    _check_test_count(test_count)
    rng = rng if rng is not None else random.Random()
    wide_count = element_count // LANES
    results: dict[str, float] = {}

    _run_family(results, "== ENUM ==", "", Element.random, element_count, test_count, rng)
    _run_family(results, "== NO ENUM ==", " - no enum", ElementNoEnum.random,
                element_count, test_count, rng)
    _run_family(results, "== SIMD x 8 ==", " - simd x 8", ElementX8.random,
                wide_count, test_count, rng)

    print("== SIMD x 8 Aligned ==")
    buckets: list[list[ElementX8]] = [[] for _ in _FUNCTIONS]
    for _ in range(wide_count):
        element = ElementX8.random(rng)
        buckets[rng.randrange(len(buckets))].append(element)
    _report(results,
            "sorted and split with specific calls implementation - simd x 8 aligned",
            run_sorted_split_specific(buckets, test_count))
    print(" ")
    return results


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-elements",
        description="Compare dispatching per element with sorting and bucketing by function.",
    )
    parser.add_argument("--element-count", type=int, default=DEFAULT_ELEMENT_COUNT)
    parser.add_argument("--test-count", type=int, default=DEFAULT_TEST_COUNT)
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    args = parser.parse_args(argv)
    if args.element_count < 0:
        parser.error("--element-count must not be negative")
    if args.test_count < 1:
        parser.error("--test-count must be at least 1")

    print("=== PERFORMANCE TEST ===")
    print(f"ELEMENT COUNT: {args.element_count}")
    print(f"TEST COUNT: {args.test_count}")
    print(" ")
    run_benchmarks(args.element_count, args.test_count, random.Random(args.seed))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())