import math

import numpy as np
import pytest

from cachebench.sphere import (
    ELEMENT_COUNT,
    F32_MAX,
    SetOfVector3,
    classic_test,
    main,
    ray_sphere_intersect,
    ray_sphere_intersect_soa,
    ray_sphere_intersect_wide,
    soa_test,
    wide_test,
)

# (ray origin, unit direction, sphere centre, squared radius)
CASES = [
    ((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 5.0), 1.0),
    ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 4.0),
    ((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 5.0), 1.0),
    ((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 5.0), 1.0),
    ((1.0, -2.0, 0.5), (0.6, 0.8, 0.0), (4.0, 2.0, 0.5), 2.25),
]


def _on_sphere(origin, direction, centre, r_sq, t):
    point = [o + t * d for o, d in zip(origin, direction)]
    return sum((p - c) ** 2 for p, c in zip(point, centre))


def test_hit_from_outside_lies_on_sphere():
    origin, direction, centre, r_sq = CASES[0]
    t = ray_sphere_intersect(origin, direction, centre, r_sq)
    assert 0.0 < t < F32_MAX
    assert _on_sphere(origin, direction, centre, r_sq, t) == pytest.approx(r_sq)


def test_hit_from_inside_is_the_exit_point():
    origin, direction, centre, r_sq = CASES[1]
    t = ray_sphere_intersect(origin, direction, centre, r_sq)
    assert t > 0.0
    assert _on_sphere(origin, direction, centre, r_sq, t) == pytest.approx(r_sq)


def test_miss_and_sphere_behind_report_max():
    assert ray_sphere_intersect(*CASES[2]) == F32_MAX
    assert ray_sphere_intersect(*CASES[3]) == F32_MAX


def test_nearer_hit_is_returned():
    origin, direction, centre, r_sq = CASES[4]
    t = ray_sphere_intersect(origin, direction, centre, r_sq)
    assert _on_sphere(origin, direction, centre, r_sq, t) == pytest.approx(r_sq)
    far = _on_sphere(origin, direction, centre, r_sq, t + 0.01)
    assert far < r_sq


def test_vector_length_is_checked():
    with pytest.raises(ValueError):
        ray_sphere_intersect((0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 5.0), 1.0)


def _sets(cases):
    count = len(cases)
    ray_o, ray_d, sphere_o = (SetOfVector3(0.0, 0.0, 0.0, count) for _ in range(3))
    for index, (origin, direction, centre, _) in enumerate(cases):
        for target, values in ((ray_o, origin), (ray_d, direction), (sphere_o, centre)):
            target.x[index], target.y[index], target.z[index] = values
    return ray_o, ray_d, sphere_o, [case[3] for case in cases]


def test_soa_agrees_with_scalar():
    ray_o, ray_d, sphere_o, radii = _sets(CASES)
    out = ray_sphere_intersect_soa(ray_o, ray_d, sphere_o, radii)
    expected = [ray_sphere_intersect(*case) for case in CASES]
    assert out.tolist() == pytest.approx(expected, rel=1e-5)


def test_soa_rejects_mismatched_lengths():
    ray_o, ray_d, sphere_o, radii = _sets(CASES)
    with pytest.raises(ValueError):
        ray_sphere_intersect_soa(ray_o, ray_d, sphere_o, radii[:-1])


def test_wide_agrees_with_scalar():
    lanes = CASES[:4]
    centres = np.array([case[2] for case in lanes]).T
    origins = np.array([case[0] for case in lanes]).T
    directions = np.array([case[1] for case in lanes]).T
    radii = [case[3] for case in lanes]
    out = ray_sphere_intersect_wide(centres, radii, origins, directions)
    expected = [ray_sphere_intersect(*case) for case in lanes]
    assert out.tolist() == pytest.approx(expected, rel=1e-5)


def test_wide_rejects_bad_shape():
    with pytest.raises(ValueError):
        ray_sphere_intersect_wide(np.zeros((3, 4)), np.ones(4), np.zeros((3, 3)), np.zeros((3, 4)))


def test_set_of_vector3_fills_components():
    vectors = SetOfVector3(1.0, 2.0, 3.0, 5)
    assert len(vectors) == 5
    assert vectors.stacked()[:, 0].tolist() == [1.0, 2.0, 3.0]


def test_benchmarks_agree_on_results():
    expected = ray_sphere_intersect((1.0, 2.0, 3.0), (1.0, 2.0, 3.0), (1.0, 2.0, 3.0), 1.0)
    for timing in (classic_test(1), soa_test(1), wide_test(1, 4), wide_test(1, 8)):
        assert len(timing.results) == ELEMENT_COUNT
        assert timing.nanoseconds_per_test >= 0.0
        assert all(math.isclose(value, expected) for value in timing.results)


def test_benchmarks_reject_zero_tests():
    with pytest.raises(ValueError):
        classic_test(0)
    with pytest.raises(ValueError):
        wide_test(1, 0)


def test_main_prints_all_timings(capsys):
    assert main(["--test-count", "1"]) == 0
    out = capsys.readouterr().out
    for label in ("Classic (ns):", "Structure of Arrays (ns):", "SIMDx4 (ns):", "SIMDx8 (ns):"):
        assert label in out