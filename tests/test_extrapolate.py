import numpy as np

from fluid2d.extrapolate import FaceEstimate, extrapolate_velocity, propagate, seed_velocity
from fluid2d.grid import StaggeredVectorGrid
from fluid2d.markers import AIR, LIQUID, SOLID, MarkerGrid

from conftest import random_vector_grid


def pocket_markers(size=16, lo=6, hi=9):
    """A block of liquid in the middle of a solid-filled domain."""
    return MarkerGrid.from_function(
        size, size, lambda x, y: LIQUID if lo <= x < hi and lo <= y < hi else SOLID)


def liquid_adjacent(markers):
    """Masks of u and v faces with a liquid cell on at least one side."""
    liquid = markers.liquid_mask()
    u = np.zeros((markers.height, markers.width + 1), dtype=bool)
    u[:, 1:] |= liquid
    u[:, :-1] |= liquid
    v = np.zeros((markers.height + 1, markers.width), dtype=bool)
    v[1:, :] |= liquid
    v[:-1, :] |= liquid
    return u, v


def test_no_unknown_left_next_to_liquid_after_ten_passes():
    markers = pocket_markers()
    src = random_vector_grid(16, 16, seed=1)
    est_u, est_v = seed_velocity(src, markers)
    assert est_u.unknown_count > 0

    est_u = propagate(est_u, 10)
    est_v = propagate(est_v, 10)

    near_u, near_v = liquid_adjacent(markers)
    assert np.all(est_u.known[near_u])
    assert np.all(est_v.known[near_v])


def test_fully_liquid_tank_resolves_everything():
    markers = MarkerGrid(10, 10)
    dst = StaggeredVectorGrid(10, 10)
    unresolved = extrapolate_velocity(random_vector_grid(10, 10, seed=2), markers, dst)
    assert unresolved == 0


def test_faces_out_of_reach_fall_back_to_zero():
    markers = pocket_markers(size=30, lo=2, hi=4)
    src = random_vector_grid(30, 30, seed=3)
    dst = StaggeredVectorGrid(30, 30)
    dst.u.data[:] = 7.0

    unresolved = extrapolate_velocity(src, markers, dst)

    assert unresolved > 0
    assert np.all(np.isfinite(dst.u.data))
    assert np.all(np.isfinite(dst.v.data))
    # Far corner is more than ten faces from the pocket
    assert dst.u.data[25, 25] == 0.0


def test_liquid_faces_are_copied_and_walls_are_no_slip():
    markers = MarkerGrid(8, 8)
    src = random_vector_grid(8, 8, seed=4)
    dst = StaggeredVectorGrid(8, 8)
    extrapolate_velocity(src, markers, dst)
    np.testing.assert_array_equal(dst.u.data[2:-2, 2:-2], src.u.data[2:-2, 2:-2])
    assert np.all(dst.u.data[:, 1] == 0.0)
    assert np.all(dst.v.data[-2, :] == 0.0)


def test_air_faces_take_the_average_of_known_neighbours():
    markers = MarkerGrid.from_function(8, 8, lambda x, y: AIR if y < 4 else LIQUID)
    src = StaggeredVectorGrid(8, 8)
    src.u.data[:] = 2.0
    est_u, _ = seed_velocity(src, markers)
    # Row 3 is air-air in u, row 4 is liquid
    assert not est_u.known[3, 3]
    est_u = propagate(est_u, 1)
    assert est_u.known[3, 3]
    assert est_u.values[3, 3] == 2.0
    assert not est_u.known[2, 3]


def test_unknown_neighbours_do_not_count():
    values = np.zeros((7, 7))
    known = np.zeros((7, 7), dtype=bool)
    values[3, 2], known[3, 2] = 1.0, True
    values[3, 4], known[3, 4] = 3.0, True

    result = propagate(FaceEstimate(values, known), 1)

    assert result.values[3, 3] == 2.0
    assert result.values[2, 2] == 1.0
    assert not result.known[1, 1]
    # The input estimate is untouched
    assert not known[3, 3]


def test_values_spread_one_face_per_pass():
    values = np.zeros((9, 9))
    known = np.zeros((9, 9), dtype=bool)
    values[4, 4], known[4, 4] = 4.0, True

    one = propagate(FaceEstimate(values, known), 1)
    assert one.known.sum() == 5
    assert not one.known[3, 3]

    two = propagate(FaceEstimate(values, known), 2)
    assert two.known[3, 3] and two.values[3, 3] == 4.0
    assert not two.known[2, 3]
    assert not two.known[1, 4]


def test_zero_passes_leaves_unknowns_as_zero():
    markers = pocket_markers()
    dst = StaggeredVectorGrid(16, 16)
    unresolved = extrapolate_velocity(random_vector_grid(16, 16, seed=5), markers, dst, passes=0)
    est_u, est_v = seed_velocity(random_vector_grid(16, 16, seed=5), markers)
    assert unresolved == est_u.unknown_count + est_v.unknown_count
    assert np.all(np.isfinite(dst.u.data))
