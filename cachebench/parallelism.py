"""In-place chunk processing compared across a single thread, a thread pool,
one thread per chunk, a locked task queue and a shared chunk counter.

Values are single-precision floats.
"""

from __future__ import annotations

import argparse
import itertools
import math
import random
import threading
import time
from array import array
from collections.abc import Callable, MutableSequence, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial

from cachebench.locks import round_to_f32, run_all

ChunkWork = Callable[[MutableSequence[float]], None]

# Above this many chunks, starting one thread per chunk is skipped.
_MAX_SCOPED_THREADS = 1000


@dataclass(frozen=True)
class ParallelismSettings:
    """Problem sizes and which strategies to run.

    ``chunk_size`` defaults to ``map_element_count / (thread_count * 32)``.
    """

    double_element_count: int = 100_000_000
    map_element_count: int = 1_000_000
    iteration_count: int = 100
    thread_count: int = 8
    chunk_size: int | None = None
    escape_probability: float = 0.0
    complexity: int = 62
    single_thread: bool = True
    pool: bool = True
    scoped_threads: bool = True
    task_queue: bool = True
    atomic_chunks: bool = True
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.thread_count < 1:
            raise ValueError("thread count must be at least 1")
        if min(self.double_element_count, self.map_element_count, self.iteration_count) < 0:
            raise ValueError("element and iteration counts must not be negative")
        if self.complexity < 0:
            raise ValueError("complexity must not be negative")
        if not 0.0 <= self.escape_probability <= 1.0:
            raise ValueError("escape probability must lie between 0 and 1")
        if self.chunk_size is None:
            chunk_size = max(1, self.map_element_count // (self.thread_count * 32))
            object.__setattr__(self, "chunk_size", chunk_size)
        elif self.chunk_size < 1:
            raise ValueError("chunk size must be at least 1")


def _shape(x: float) -> float:
    quotient = x * x / x if x != 0.0 else math.nan
    return x * x * x * x + x * x + quotient + x


def _step(x: float) -> float:
    return x * 2.0 + 4.0 + 12.0 / 59.0


def map_function(
    complexity: int,
    escape_probability: float,
    data: MutableSequence[float],
    rng: random.Random | None = None,
) -> None:
    """Map every value in place over up to ``complexity`` rounds.

    With a positive escape probability each round may end the value's loop early.
    """
    draw = rng.random if rng is not None else random.random

    def transform(value: float) -> float:
        x = _shape(value)
        for _ in range(complexity):
            if 0.0 < escape_probability and draw() < escape_probability:
                break
            x = _step(x)
        return round_to_f32(x)

    data[:] = array("f", (transform(value) for value in data))


def double_function(data: MutableSequence[float]) -> None:
    """Double every value in place."""
    data[:] = array("f", (fine_double_function(value) for value in data))


def fine_map_function(
    complexity: int,
    escape_probability: float,
    value: float,
    rng: random.Random | None = None,
) -> float:
    """Map one value through all ``complexity`` rounds.

    The element-level map never escapes early; ``escape_probability`` and
    ``rng`` are accepted to match ``map_function``.
    """
    x = _shape(value)
    for _ in range(complexity):
        x = _step(x)
    return round_to_f32(x)


def fine_double_function(value: float) -> float:
    """Twice ``value``."""
    return round_to_f32(2.0 * value)


def chunk_views(data: array, chunk_size: int) -> list[memoryview]:
    """Writable views of consecutive chunks of ``data``."""
    if chunk_size < 1:
        raise ValueError("chunk size must be at least 1")
    view = memoryview(data)
    return [view[start:start + chunk_size] for start in range(0, len(view), chunk_size)]


def _task_queue(chunks: Sequence[memoryview], work: ChunkWork, thread_count: int) -> None:
    tasks = iter(chunks)
    lock = threading.Lock()

    def drain() -> None:
        while True:
            with lock:
                chunk = next(tasks, None)
            if chunk is None:
                return
            work(chunk)

    run_all(drain for _ in range(thread_count))


def _atomic_chunks(data: array, chunk_size: int, work: ChunkWork, thread_count: int) -> None:
    """Threads claim chunk indices from a shared counter until none are left."""
    view = memoryview(data)
    chunk_count = -(-len(view) // chunk_size)
    claims = itertools.count()
    lock = threading.Lock()

    def drain() -> None:
        while True:
            with lock:
                index = next(claims)
            if index >= chunk_count:
                return
            work(view[index * chunk_size:(index + 1) * chunk_size])

    run_all(drain for _ in range(thread_count))


def _elapsed_ms(seconds: float) -> int:
    return int(seconds * 1000)


def _run_section(
    settings: ParallelismSettings,
    executor: Executor,
    element_count: int,
    chunked: array,
    fine: array,
    atomic: array,
    work: ChunkWork,
    fine_work: Callable[[float], float],
    header: str,
    header_with_single_thread: bool,
) -> None:
    chunk_size = settings.chunk_size
    assert chunk_size is not None
    iterations = range(settings.iteration_count)
    chunks = chunk_views(chunked, chunk_size)

    if not header_with_single_thread:
        print(header)
    if settings.single_thread:
        if header_with_single_thread:
            print(header)
        start = time.perf_counter()
        for _ in iterations:
            for chunk in chunks:
                work(chunk)
        print(f"{_elapsed_ms(time.perf_counter() - start)} ms for single threaded")

    if settings.pool:
        start = time.perf_counter()
        for _ in iterations:
            list(executor.map(work, chunks))
        print(f"{_elapsed_ms(time.perf_counter() - start)} ms for coarse-grained thread pool")

        start = time.perf_counter()
        for _ in iterations:
            fine[:] = array("f", executor.map(fine_work, fine))
        print(f"{_elapsed_ms(time.perf_counter() - start)} ms for fine-grained thread pool")

    if settings.scoped_threads:
        if element_count // chunk_size < _MAX_SCOPED_THREADS:
            start = time.perf_counter()
            for _ in iterations:
                run_all(partial(work, chunk) for chunk in chunks)
            print(f"{_elapsed_ms(time.perf_counter() - start)} ms for thread per chunk")
        else:
            print("Omitted thread per chunk due to too many threads to launch.")

    if settings.task_queue:
        queue_time = 0.0
        start = time.perf_counter()
        for _ in iterations:
            iteration_start = time.perf_counter()
            _task_queue(chunks, work, settings.thread_count)
            queue_time += time.perf_counter() - iteration_start
        print(f"{_elapsed_ms(time.perf_counter() - start)} ms for task queue")
        print(f"{_elapsed_ms(queue_time)} ms for task queue when discounting queue creation")

    if settings.atomic_chunks:
        claim_time = 0.0
        start = time.perf_counter()
        for _ in iterations:
            iteration_start = time.perf_counter()
            _atomic_chunks(atomic, chunk_size, work, settings.thread_count)
            claim_time += time.perf_counter() - iteration_start
        print(f"{_elapsed_ms(time.perf_counter() - start)} ms for atomic chunks")
        print(
            f"{_elapsed_ms(claim_time)} ms for atomic chunks when discounting iterator creation"
        )
    print()


def run_parallelism(settings: ParallelismSettings) -> dict[str, list[float]]:
    """Run the enabled strategies and return the final contents of every data set.

    The chunked data sets are shared by the single-threaded, coarse pool,
    thread-per-chunk and task-queue runs; the fine and atomic sets have their own.
    """
    rng = random.Random(settings.seed)
    double_data = array("f", (float(index) for index in range(settings.double_element_count)))
    double_fine = array("f", double_data)
    double_atomic = array("f", double_data)
    map_data = array("f", (float(index) for index in range(settings.map_element_count)))
    map_fine = array("f", map_data)
    map_atomic = array("f", map_data)

    complexity = settings.complexity
    probability = settings.escape_probability

    def heavy(chunk: MutableSequence[float]) -> None:
        map_function(complexity, probability, chunk, rng)

    def fine_heavy(value: float) -> float:
        return fine_map_function(complexity, probability, value, rng)

    with ThreadPoolExecutor(max_workers=settings.thread_count) as executor:
        _run_section(
            settings, executor, settings.double_element_count,
            double_data, double_fine, double_atomic,
            double_function, fine_double_function,
            "DOUBLE FUNCTION:", header_with_single_thread=False,
        )
        _run_section(
            settings, executor, settings.map_element_count,
            map_data, map_fine, map_atomic,
            heavy, fine_heavy,
            "MAP FUNCTION:", header_with_single_thread=True,
        )

    return {
        "double": list(double_data),
        "double_fine": list(double_fine),
        "double_atomic": list(double_atomic),
        "map": list(map_data),
        "map_fine": list(map_fine),
        "map_atomic": list(map_atomic),
    }


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-parallelism",
        description="Compare strategies for processing chunks of data in parallel.",
    )
    defaults = ParallelismSettings()
    parser.add_argument("--double-element-count", type=int, default=defaults.double_element_count)
    parser.add_argument("--map-element-count", type=int, default=defaults.map_element_count)
    parser.add_argument("--iterations", type=int, default=defaults.iteration_count)
    parser.add_argument("--threads", type=int, default=defaults.thread_count)
    parser.add_argument("--chunk-size", type=int, default=None)
    parser.add_argument("--escape-probability", type=float, default=defaults.escape_probability)
    parser.add_argument("--complexity", type=int, default=defaults.complexity)
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    for flag in ("single-thread", "pool", "scoped-threads", "task-queue", "atomic-chunks"):
        parser.add_argument(f"--{flag}", action=argparse.BooleanOptionalAction, default=True)
    args = parser.parse_args(argv)

    try:
        settings = ParallelismSettings(
            double_element_count=args.double_element_count,
            map_element_count=args.map_element_count,
            iteration_count=args.iterations,
            thread_count=args.threads,
            chunk_size=args.chunk_size,
            escape_probability=args.escape_probability,
            complexity=args.complexity,
            single_thread=args.single_thread,
            pool=args.pool,
            scoped_threads=args.scoped_threads,
            task_queue=args.task_queue,
            atomic_chunks=args.atomic_chunks,
            seed=args.seed,
        )
    except ValueError as error:
        parser.error(str(error))

    chunk_size = settings.chunk_size
    assert chunk_size is not None
    print("Parallelism:")
    print("================")
    print(f"Double Element Count: {settings.double_element_count}")
    print(f"Map Element Count: {settings.map_element_count}")
    print(f"Iteration Count: {settings.iteration_count}")
    print(f"Thread Count: {settings.thread_count}")
    print(
        f"Chunk Size: {chunk_size} resulting in "
        f"{settings.map_element_count // chunk_size + 1} chunks"
    )
    print(f"Escape Probability: {settings.escape_probability}")
    print(f"Complexity: {settings.complexity}")
    print()
    run_parallelism(settings)
    print()
    print()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())