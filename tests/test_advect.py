import numpy as np
import pytest

from fluid2d.advect import advect_scalar, advect_velocity
from fluid2d.grid import ScalarGrid, StaggeredVectorGrid
from fluid2d.markers import AIR, AIR_AIR, LIQUID, SOLID, SOLID_FACE, MarkerGrid

from conftest import random_vector_grid


def test_zero_velocity_keeps_liquid_faces_and_zeroes_wall_faces(markers_8x8):
    src = random_vector_grid(8, 8, seed=1)
    dst = StaggeredVectorGrid(8, 8)
    advect_velocity(dst, src, StaggeredVectorGrid(8, 8), markers_8x8, dt=0.1)

    # Liquid-liquid faces read back their own value exactly
    np.testing.assert_array_equal(dst.u.data[1:-1, 2:-2], src.u.data[1:-1, 2:-2])
    np.testing.assert_array_equal(dst.v.data[2:-2, 1:-1], src.v.data[2:-2, 1:-1])
    # Faces touching the solid border carry nothing
    assert np.all(dst.u.data[:, :2] == 0.0)
    assert np.all(dst.u.data[:, -2:] == 0.0)
    assert np.all(dst.v.data[:2, :] == 0.0)
    assert np.all(dst.u.data[0, :] == 0.0)


def test_air_and_solid_faces_are_zeroed():
    markers = MarkerGrid.from_function(
        8, 8, lambda x, y: AIR if y < 4 else (SOLID if x == 3 and y == 5 else LIQUID))
    src = random_vector_grid(8, 8, seed=2)
    dst = StaggeredVectorGrid(8, 8)
    velocity = random_vector_grid(8, 8, seed=3, scale=0.5)
    advect_velocity(dst, src, velocity, markers, dt=0.1)

    dead_u = np.isin(markers.u_interfaces(), (SOLID_FACE, AIR_AIR))
    dead_v = np.isin(markers.v_interfaces(), (SOLID_FACE, AIR_AIR))
    assert dead_u.any() and dead_v.any()
    assert np.all(dst.u.data[dead_u] == 0.0)
    assert np.all(dst.v.data[dead_v] == 0.0)
    # The air/liquid surface still moves
    assert np.any(dst.v.data[4, 1:-1] != 0.0)


def test_self_advection_may_alias_source_and_velocity(markers_8x8):
    src = random_vector_grid(8, 8, seed=4, scale=0.2)
    expected = StaggeredVectorGrid(8, 8)
    copy = StaggeredVectorGrid(8, 8)
    copy.copy_from(src)
    advect_velocity(expected, copy, src, markers_8x8, dt=0.1)

    dst = StaggeredVectorGrid(8, 8)
    advect_velocity(dst, src, src, markers_8x8, dt=0.1)
    np.testing.assert_array_equal(dst.u.data, expected.u.data)
    np.testing.assert_array_equal(dst.v.data, expected.v.data)


def test_scalar_advection_shifts_a_ramp_by_dt(markers_8x8):
    velocity = StaggeredVectorGrid(8, 8)
    velocity.u.data[:] = 1.0
    src = ScalarGrid(8, 8)
    src.data[:] = np.arange(8.0)
    dst = ScalarGrid(8, 8)

    advect_scalar(dst, src, velocity, markers_8x8, dt=0.25)

    expected = np.arange(8.0)[1:-1] - 0.25
    np.testing.assert_allclose(dst.data[1:-1, 1:-1], np.broadcast_to(expected, (6, 6)))
    assert np.all(dst.data[0, :] == 0.0)
    assert np.all(dst.data[:, -1] == 0.0)


def test_scalar_advection_keeps_dye_out_of_solids():
    markers = MarkerGrid.from_function(6, 6, lambda x, y: SOLID if (x, y) == (2, 2) else LIQUID)
    src = ScalarGrid(6, 6, data=np.ones((6, 6)))
    dst = ScalarGrid(6, 6)
    advect_scalar(dst, src, StaggeredVectorGrid(6, 6), markers, dt=0.1)
    assert dst.data[2, 2] == 0.0
    assert dst.data[3, 3] == 1.0


def test_advection_rejects_mismatched_grids(markers_8x8):
    with pytest.raises(ValueError):
        advect_velocity(StaggeredVectorGrid(8, 8), StaggeredVectorGrid(7, 8),
                        StaggeredVectorGrid(8, 8), markers_8x8, dt=0.1)
    with pytest.raises(ValueError):
        advect_scalar(ScalarGrid(8, 8), ScalarGrid(8, 8),
                      StaggeredVectorGrid(8, 8), MarkerGrid(6, 6), dt=0.1)
