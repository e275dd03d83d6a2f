"""Chunked element maps run single-threaded, on a pool, one thread per chunk,
and by worker threads pulling chunks from a lock-guarded task queue.

Values are single-precision floats: results are rounded to the nearest
32-bit float, and magnitudes beyond its range become infinite.
"""

from __future__ import annotations

import argparse
import math
import struct
import threading
import time
from array import array
from collections.abc import Callable, Iterable, MutableSequence, Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import partial

from cachebench.data_parallelism import map_function as _map_value

# Magnitudes from here up round to infinity in single precision.
_F32_OVERFLOW = 2.0**128 - 2.0**103

Pair = tuple[Sequence[float], MutableSequence[float]]
PairWork = Callable[[Sequence[float], MutableSequence[float]], None]


def round_to_f32(value: float) -> float:
    """Round ``value`` to the nearest single-precision float."""
    if math.isfinite(value) and abs(value) >= _F32_OVERFLOW:
        return math.copysign(math.inf, value)
    return struct.unpack("f", struct.pack("f", value))[0]


def fine_map_function(value: float) -> float:
    """The heavy element map applied to a single value."""
    return round_to_f32(_map_value(value))


def fine_double_function(value: float) -> float:
    """Twice ``value``."""
    return round_to_f32(2.0 * value)


def _apply(
    function: Callable[[float], float],
    source: Sequence[float],
    target: MutableSequence[float],
) -> None:
    if len(source) != len(target):
        raise ValueError(f"source has {len(source)} elements, target {len(target)}")
    target[:] = array("f", (function(value) for value in source))


def map_function(source: Sequence[float], target: MutableSequence[float]) -> None:
    """Write the heavy element map of every source value into ``target``."""
    _apply(fine_map_function, source, target)


def double_function(source: Sequence[float], target: MutableSequence[float]) -> None:
    """Write twice every source value into ``target``."""
    _apply(fine_double_function, source, target)


def chunk_pairs(source: array, target: array, chunk_size: int) -> list[tuple[memoryview, memoryview]]:
    """Split two equally long float buffers into matching chunk views.

    Source views are read-only; writes through target views reach ``target``.
    """
    if chunk_size < 1:
        raise ValueError("chunk size must be at least 1")
    if len(source) != len(target):
        raise ValueError(f"source has {len(source)} elements, target {len(target)}")
    source_view = memoryview(source).toreadonly()
    target_view = memoryview(target)
    return [
        (source_view[start:start + chunk_size], target_view[start:start + chunk_size])
        for start in range(0, len(source_view), chunk_size)
    ]


def run_all(jobs: Iterable[Callable[[], object]]) -> None:
    """Run every job on its own thread, wait for all, and re-raise the first failure."""
    errors: list[BaseException] = []

    def guarded(job: Callable[[], object]) -> None:
        try:
            job()
        except BaseException as error:  # re-raised in the calling thread
            errors.append(error)

    threads = [threading.Thread(target=guarded, args=(job,)) for job in jobs]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    if errors:
        raise errors[0]


def run_task_queue(pairs: Iterable[Pair], work: PairWork, thread_count: int) -> int:
    """Let ``thread_count`` threads take chunk pairs from a shared, locked queue.

    Returns how many pairs were processed.
    """
    if thread_count < 1:
        raise ValueError("thread count must be at least 1")
    tasks = iter(pairs)
    lock = threading.Lock()
    handled: list[int] = []

    def drain() -> None:
        count = 0
        while True:
            with lock:
                pair = next(tasks, None)
            if pair is None:
                break
            work(*pair)
            count += 1
        handled.append(count)

    run_all(drain for _ in range(thread_count))
    return sum(handled)


def run_thread_per_chunk(pairs: Iterable[Pair], work: PairWork) -> int:
    """Start one thread per chunk pair and wait for all of them.

    Returns how many threads were started.
    """
    jobs = [partial(work, source, target) for source, target in pairs]
    run_all(jobs)
    return len(jobs)


def _elapsed_ms(seconds: float) -> int:
    return int(seconds * 1000)


def benchmark(
    element_count: int, thread_count: int, chunk_size: int, iteration_count: int
) -> tuple[array, array]:
    """Time every strategy on the double and heavy maps.

    Returns the chunked output and the element-wise output after the last run.
    """
    if element_count < 0 or iteration_count < 0:
        raise ValueError("element and iteration counts must not be negative")
    if thread_count < 1:
        raise ValueError("thread count must be at least 1")

    source = array("f", (float(index) for index in range(element_count)))
    output = array("f", [0.0]) * element_count
    fine_source = array("f", source)
    fine_output = array("f", [0.0]) * element_count
    pairs = chunk_pairs(source, output, chunk_size)

    sections: tuple[tuple[str, PairWork, Callable[[float], float]], ...] = (
        ("DOUBLE FUNCTION:", double_function, fine_double_function),
        ("MAP FUNCTION:", map_function, fine_map_function),
    )
    with ThreadPoolExecutor(max_workers=thread_count) as executor:
        for title, work, fine_work in sections:
            print(title)
            start = time.perf_counter()
            for _ in range(iteration_count):
                for chunk_source, chunk_target in pairs:
                    work(chunk_source, chunk_target)
            print(f"{_elapsed_ms(time.perf_counter() - start)} ms for single threaded")

            start = time.perf_counter()
            for _ in range(iteration_count):
                list(executor.map(lambda pair: work(*pair), pairs))
            print(f"{_elapsed_ms(time.perf_counter() - start)} ms for thread pool")

            start = time.perf_counter()
            for _ in range(iteration_count):
                fine_output[:] = array("f", executor.map(fine_work, fine_source))
            print(f"{_elapsed_ms(time.perf_counter() - start)} ms for fine-grained thread pool")

            start = time.perf_counter()
            for _ in range(iteration_count):
                run_thread_per_chunk(pairs, work)
            print(f"{_elapsed_ms(time.perf_counter() - start)} ms for thread per chunk")

            queue_time = 0.0
            start = time.perf_counter()
            for _ in range(iteration_count):
                iteration_start = time.perf_counter()
                run_task_queue(pairs, work, thread_count)
                queue_time += time.perf_counter() - iteration_start
            print(f"{_elapsed_ms(time.perf_counter() - start)} ms for task queue")
            print(
                f"{_elapsed_ms(queue_time)} ms for task queue when discounting queue creation"
            )
            print()
    return output, fine_output


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-locks",
        description="Compare chunked processing strategies, including a locked task queue.",
    )
    parser.add_argument("--element-count", type=int, default=10_000_000)
    parser.add_argument("--iterations", type=int, default=10)
    parser.add_argument("--threads", type=int, default=8)
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="elements per chunk; defaults to element count / (threads * 32)",
    )
    args = parser.parse_args(argv)
    if args.threads < 1:
        parser.error("--threads must be at least 1")
    if args.element_count < 0 or args.iterations < 0:
        parser.error("counts must not be negative")
    chunk_size = args.chunk_size
    if chunk_size is None:
        chunk_size = max(1, args.element_count // (args.threads * 32))
    if chunk_size < 1:
        parser.error("--chunk-size must be at least 1")

    print("Task Queue:")
    print("================")
    benchmark(args.element_count, args.threads, chunk_size, args.iterations)
    print()
    print()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())