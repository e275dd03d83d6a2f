"""A worker thread and a master exchanging work and results over queues."""

from __future__ import annotations

import argparse
import queue
import random
import threading
import time
from collections.abc import Iterable, Sequence

from cachebench.data_parallelism import map_function as _map_value

INITIAL_TASKS: tuple[tuple[float, ...], ...] = (
    (0.1,),
    (0.1, 0.2),
    (0.1, 0.2, 0.3),
    (0.1, 0.2, 0.3, 0.4),
)


def map_function(data: Iterable[float]) -> list[float]:
    """Apply the element map to every value and return the mapped list."""
    return [_map_value(value) for value in data]


def _worker(
    work: queue.Queue[list[float]],
    results: queue.Queue[list[float]],
    max_work: int,
    wait_seconds: float,
) -> None:
    performed = 0
    while True:
        try:
            task = work.get_nowait()
        except queue.Empty:
            print("Tried to get some work to do, but none was ready in the channel!")
        else:
            results.put(map_function(task))
            performed += 1
            if max_work < performed:
                return
        # Stands in for the worker doing other work.
        time.sleep(wait_seconds)


def run(
    max_work: int = 100,
    master_wait_time: int = 200,
    worker_wait_time: int = 200,
    rng: random.Random | None = None,
) -> list[list[float]]:
    """Exchange tasks until ``max_work + 1`` results arrived; return the results.

    Wait times are in milliseconds.
    """
    if master_wait_time < 0 or worker_wait_time < 0:
        raise ValueError("wait times must not be negative")
    rng = rng if rng is not None else random.Random()

    work: queue.Queue[list[float]] = queue.Queue()
    results: queue.Queue[list[float]] = queue.Queue()
    for task in INITIAL_TASKS:
        work.put(list(task))

    worker = threading.Thread(
        target=_worker,
        args=(work, results, max_work, worker_wait_time / 1000),
        daemon=True,
    )
    worker.start()

    received: list[list[float]] = []
    try:
        while True:
            try:
                result = results.get_nowait()
            except queue.Empty:
                print("Tried to get results from receiver, but there were none ready.")
            else:
                print(f"Received result {result}")
                received.append(result)
                new_length = rng.randint(1, 4)
                work.put([rng.uniform(-1.0, 1.0) for _ in range(new_length)])
                if max_work < len(received):
                    return received
            # Stands in for the master doing other work.
            time.sleep(master_wait_time / 1000)
    finally:
        worker.join()


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-messages",
        description="Pass work and results between two threads over queues.",
    )
    parser.add_argument("--max-work", type=int, default=100)
    parser.add_argument("--master-wait", type=int, default=200, help="milliseconds")
    parser.add_argument("--worker-wait", type=int, default=200, help="milliseconds")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    args = parser.parse_args(argv)
    if args.master_wait < 0 or args.worker_wait < 0:
        parser.error("wait times must not be negative")
    run(args.max_work, args.master_wait, args.worker_wait, random.Random(args.seed))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())