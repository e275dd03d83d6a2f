"""Ray-sphere intersection: one ray at a time, over arrays of components,
and over fixed-width lane groups.

A miss is reported as the largest single-precision float.
"""

from __future__ import annotations

import argparse
import math
import time
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

ELEMENT_COUNT = 1024
F32_MAX = float(np.finfo(np.float32).max)


def _check_vector(name: str, vector: Sequence[float]) -> None:
    if len(vector) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(vector)}")


def ray_sphere_intersect(
    ray_o: Sequence[float],
    ray_d: Sequence[float],
    sphere_o: Sequence[float],
    sphere_r_sq: float,
) -> float:
    """Distance along the ray to the nearest hit in front of its origin, or ``F32_MAX``."""
    _check_vector("ray origin", ray_o)
    _check_vector("ray direction", ray_d)
    _check_vector("sphere origin", sphere_o)
    oc = [origin - centre for origin, centre in zip(ray_o, sphere_o)]
    b = sum(offset * direction for offset, direction in zip(oc, ray_d))
    c = sum(offset * offset for offset in oc) - sphere_r_sq
    descrim = b * b - c
    if not descrim > 0.0:
        return F32_MAX
    root = math.sqrt(descrim)
    t1 = -b - root
    if t1 > 0.0:
        return t1
    t2 = -b + root
    return t2 if t2 > 0.0 else F32_MAX


class SetOfVector3:
    """``count`` three-component vectors stored as one float32 array per component."""

    def __init__(self, x: float, y: float, z: float, count: int = ELEMENT_COUNT) -> None:
        if count < 0:
            raise ValueError("count must not be negative")
        self.x = np.full(count, x, dtype=np.float32)
        self.y = np.full(count, y, dtype=np.float32)
        self.z = np.full(count, z, dtype=np.float32)

    def __len__(self) -> int:
        return len(self.x)

    def stacked(self) -> np.ndarray:
        """The components as a ``(3, count)`` array."""
        return np.stack((self.x, self.y, self.z))


def _intersect_lanes(oc: np.ndarray, direction: np.ndarray, r_sq: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore"):
        b = (oc * direction).sum(axis=0)
        c = (oc * oc).sum(axis=0) - r_sq
        descrim = b * b - c
        positive = descrim > 0.0
        root = np.sqrt(descrim)
        t1 = -b - root
        t2 = -b + root
        t = np.where((t2 > 0.0) & positive, t2, np.float32(F32_MAX))
        t = np.where((t1 > 0.0) & positive, t1, t)
    return t.astype(np.float32)


def ray_sphere_intersect_soa(
    ray_o: SetOfVector3,
    ray_d: SetOfVector3,
    sphere_o: SetOfVector3,
    sphere_r_sq: Sequence[float],
) -> np.ndarray:
    """Intersect each ray with its sphere; return one float32 distance per element."""
    count = len(ray_o)
    radii = np.asarray(sphere_r_sq, dtype=np.float32)
    if len(ray_d) != count or len(sphere_o) != count or radii.shape != (count,):
        raise ValueError("all inputs must hold the same number of elements")
    oc = ray_o.stacked() - sphere_o.stacked()
    return _intersect_lanes(oc, ray_d.stacked(), radii)


def ray_sphere_intersect_wide(
    sphere_o: Sequence[Sequence[float]],
    sphere_r_sq: Sequence[float],
    ray_o: Sequence[Sequence[float]],
    ray_d: Sequence[Sequence[float]],
) -> np.ndarray:
    """Intersect one lane group: vectors are ``(3, lanes)``, radii ``(lanes,)``."""
    centres = np.asarray(sphere_o, dtype=np.float32)
    radii = np.asarray(sphere_r_sq, dtype=np.float32)
    origins = np.asarray(ray_o, dtype=np.float32)
    directions = np.asarray(ray_d, dtype=np.float32)
    if radii.ndim != 1:
        raise ValueError("squared radii must be one value per lane")
    shape = (3, radii.shape[0])
    if centres.shape != shape or origins.shape != shape or directions.shape != shape:
        raise ValueError(f"vectors must have shape {shape}")
    return _intersect_lanes(origins - centres, directions, radii)


@dataclass(frozen=True)
class IntersectionTiming:
    """Average nanoseconds per pass over all elements, and the last pass's results."""

    nanoseconds_per_test: float
    results: tuple[float, ...]


def _check_test_count(test_count: int) -> None:
    if test_count < 1:
        raise ValueError("test count must be at least 1")


def classic_test(test_count: int) -> IntersectionTiming:
    """Time the one-ray-at-a-time intersection over ``ELEMENT_COUNT`` elements."""
    _check_test_count(test_count)
    sphere_origins = [(1.0, 2.0, 3.0)] * ELEMENT_COUNT
    second_vectors = [(1.0, 2.0, 3.0)] * ELEMENT_COUNT
    ray_origins = [(1.0, 2.0, 3.0)] * ELEMENT_COUNT
    radii = [1.0] * ELEMENT_COUNT
    rows = list(zip(sphere_origins, second_vectors, ray_origins, radii))
    results = [1.0] * ELEMENT_COUNT

    start = time.perf_counter_ns()
    for _ in range(test_count):
        results = [ray_sphere_intersect(a, b, c, r) for a, b, c, r in rows]
    elapsed = time.perf_counter_ns() - start
    return IntersectionTiming(elapsed / test_count, tuple(results))


def soa_test(test_count: int) -> IntersectionTiming:
    """Time the component-array intersection over ``ELEMENT_COUNT`` elements."""
    _check_test_count(test_count)
    sphere_o = SetOfVector3(1.0, 2.0, 3.0)
    radii = [1.0] * ELEMENT_COUNT
    ray_o = SetOfVector3(1.0, 2.0, 3.0)
    ray_d = SetOfVector3(1.0, 2.0, 3.0)
    results = np.ones(ELEMENT_COUNT, dtype=np.float32)

    start = time.perf_counter_ns()
    for _ in range(test_count):
        results = ray_sphere_intersect_soa(ray_o, ray_d, sphere_o, radii)
    elapsed = time.perf_counter_ns() - start
    return IntersectionTiming(elapsed / test_count, tuple(float(v) for v in results))


def wide_test(test_count: int, lanes: int) -> IntersectionTiming:
    """Time the lane-group intersection over ``ELEMENT_COUNT // lanes`` groups."""
    _check_test_count(test_count)
    if not 1 <= lanes <= ELEMENT_COUNT:
        raise ValueError(f"lanes must lie between 1 and {ELEMENT_COUNT}")
    group_count = ELEMENT_COUNT // lanes
    vector = np.repeat(np.array([[1.0], [2.0], [3.0]], dtype=np.float32), lanes, axis=1)
    radii = np.ones(lanes, dtype=np.float32)
    groups = [(vector, radii, vector, vector)] * group_count
    results = [np.ones(lanes, dtype=np.float32)] * group_count

    start = time.perf_counter_ns()
    for _ in range(test_count):
        results = [ray_sphere_intersect_wide(*group) for group in groups]
    elapsed = time.perf_counter_ns() - start
    flat = tuple(float(value) for group in results for value in group)
    return IntersectionTiming(elapsed / test_count, flat)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cachebench-sphere",
        description="Compare ray-sphere intersection layouts.",
    )
    parser.add_argument("--test-count", type=int, default=1000)
    args = parser.parse_args(argv)
    if args.test_count < 1:
        parser.error("--test-count must be at least 1")

    print(f"Classic (ns): {classic_test(args.test_count).nanoseconds_per_test}")
    print(f"Structure of Arrays (ns): {soa_test(args.test_count).nanoseconds_per_test}")
    print(f"SIMDx4 (ns): {wide_test(args.test_count, 4).nanoseconds_per_test}")
    print(f"SIMDx8 (ns): {wide_test(args.test_count, 8).nanoseconds_per_test}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())