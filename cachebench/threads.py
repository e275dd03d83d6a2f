"""Printing threads: detached, joined, and scoped before the main thread prints."""

from __future__ import annotations

import argparse
import threading
import time
from collections.abc import Callable, Sequence

Output = Callable[[str], object]


def print_thread(
    name: str,
    repetition_count: int,
    wait_time: int,
    output: Output | None = None,
) -> None:
    """Emit ``repetition_count`` numbered lines, pausing ``wait_time`` ms after each."""
    if wait_time < 0:
        raise ValueError("wait time must not be negative")
    emit = output if output is not None else print
    for repetition in range(repetition_count):
        emit(f"Thread {name} Print {repetition}")
        time.sleep(wait_time / 1000)


def _spawn(
    thread_count: int, repetition_count: int, wait_time: int, output: Output | None
) -> list[threading.Thread]:
    if wait_time < 0:
        raise ValueError("wait time must not be negative")
    threads = [
        threading.Thread(
            target=print_thread,
            args=(str(index), repetition_count, wait_time, output),
            daemon=True,
        )
        for index in range(thread_count)
    ]
    for thread in threads:
        thread.start()
    return threads


def basic_threading(
    thread_count: int, repetition_count: int, wait_time: int, output: Output | None = None
) -> list[threading.Thread]:
    """Start detached printing threads, print from the caller, and return the threads.

    The threads are not waited for; they end with the process at the latest.
    """
    threads = _spawn(thread_count, repetition_count, wait_time, output)
    print_thread("MAIN", repetition_count, wait_time, output)
    return threads


def basic_threading_with_termination(
    thread_count: int, repetition_count: int, wait_time: int, output: Output | None = None
) -> None:
    """Start printing threads, print from the caller, then wait for every thread."""
    threads = _spawn(thread_count, repetition_count, wait_time, output)
    print_thread("MAIN", repetition_count, wait_time, output)
    for thread in threads:
        thread.join()


def basic_threading_with_scope(
    thread_count: int, repetition_count: int, wait_time: int, output: Output | None = None
) -> None:
    """Run printing threads to completion, and only then print from the caller."""
    for thread in _spawn(thread_count, repetition_count, wait_time, output):
        thread.join()
    print_thread("MAIN", repetition_count, wait_time, output)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-threads",
        description="Show detached, joined and scoped threads printing side by side.",
    )
    parser.add_argument("--threads", type=int, default=8)
    parser.add_argument("--repetitions", type=int, default=3)
    parser.add_argument("--wait", type=int, default=40, help="milliseconds")
    args = parser.parse_args(argv)
    if args.wait < 0:
        parser.error("--wait must not be negative")

    sections = (
        ("Basic Threading:", basic_threading),
        ("Basic Threading with Termination:", basic_threading_with_termination),
        ("Basic Threading with Scope:", basic_threading_with_scope),
    )
    for title, run in sections:
        print(title)
        print("=" * len(title))
        run(args.threads, args.repetitions, args.wait)
        print()
        print()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())