import itertools

import numpy as np
import pytest

from fluid2d.markers import (AIR, AIR_AIR, AIR_LIQUID, LIQUID, LIQUID_LIQUID, SOLID,
                             SOLID_FACE, MarkerGrid, classify_pair)

CODES = (SOLID, LIQUID, AIR)


def expected_interface(a, b):
    if SOLID in (a, b):
        return SOLID_FACE
    if a == AIR and b == AIR:
        return AIR_AIR
    if {a, b} == {AIR, LIQUID}:
        return AIR_LIQUID
    return LIQUID_LIQUID


@pytest.mark.parametrize("a,b", list(itertools.product(CODES, CODES)))
def test_vertical_face_classification_table(a, b):
    markers = MarkerGrid(4, 3)
    markers.data[1, 1] = a
    markers.data[1, 2] = b
    # u face between cells (1, 1) and (1, 2)
    assert markers.classify_interface(2, 1.5) == expected_interface(a, b)


@pytest.mark.parametrize("a,b", list(itertools.product(CODES, CODES)))
def test_horizontal_face_classification_table(a, b):
    markers = MarkerGrid(3, 4)
    markers.data[1, 1] = a
    markers.data[2, 1] = b
    # v face between cells (1, 1) and (2, 1)
    assert markers.classify_interface(1.5, 2) == expected_interface(a, b)


def test_classification_codes_are_exhaustive():
    results = {classify_pair(a, b) for a, b in itertools.product(CODES, CODES)}
    assert results == {SOLID_FACE, LIQUID_LIQUID, AIR_AIR, AIR_LIQUID}


def test_non_face_coordinates_are_rejected():
    markers = MarkerGrid(4, 4)
    with pytest.raises(ValueError):
        markers.classify_interface(1.5, 1.5)
    with pytest.raises(ValueError):
        markers.classify_interface(1, 2)


def test_default_markers_have_solid_border_and_liquid_interior():
    markers = MarkerGrid(5, 4)
    assert np.all(markers.data[0, :] == SOLID)
    assert np.all(markers.data[-1, :] == SOLID)
    assert np.all(markers.data[:, 0] == SOLID)
    assert np.all(markers.data[:, -1] == SOLID)
    assert np.all(markers.data[1:-1, 1:-1] == LIQUID)
    assert markers.counts() == {"solid": 14, "liquid": 6, "air": 0}


def test_seal_walls_off_a_grid_of_air():
    markers = MarkerGrid(5, 4, data=np.full((4, 5), AIR, dtype=np.int8))
    markers.seal()
    assert np.all(markers.data[[0, -1], :] == SOLID)
    assert np.all(markers.data[:, [0, -1]] == SOLID)
    assert np.all(markers.data[1:-1, 1:-1] == AIR)


def test_from_function_fills_interior_only():
    markers = MarkerGrid.from_function(6, 6, lambda x, y: AIR if y < 3 else LIQUID)
    assert np.all(markers.data[1:3, 1:-1] == AIR)
    assert np.all(markers.data[3:-1, 1:-1] == LIQUID)
    assert np.all(markers.data[0, :] == SOLID)


def test_from_function_rejects_unknown_codes():
    with pytest.raises(ValueError):
        MarkerGrid.from_function(4, 4, lambda x, y: 7)


def test_face_arrays_agree_with_scalar_classification():
    rng = np.random.default_rng(11)
    markers = MarkerGrid(7, 6)
    markers.data[1:-1, 1:-1] = rng.integers(0, 3, size=(4, 5))

    u_codes = markers.u_interfaces()
    assert u_codes.shape == (6, 8)
    for i in range(markers.height):
        for j in range(markers.width + 1):
            assert u_codes[i, j] == markers.classify_interface(j, i + 0.5)

    v_codes = markers.v_interfaces()
    assert v_codes.shape == (7, 7)
    for i in range(markers.height + 1):
        for j in range(markers.width):
            assert v_codes[i, j] == markers.classify_interface(j + 0.5, i)


def test_faces_on_the_outer_edge_are_solid():
    markers = MarkerGrid(4, 4)
    markers.data[:] = LIQUID
    assert markers.classify_interface(0, 1.5) == SOLID_FACE
    assert markers.classify_interface(4, 1.5) == SOLID_FACE
    assert markers.classify_interface(1.5, 0) == SOLID_FACE
    assert markers.classify_interface(1.5, 2) == LIQUID_LIQUID
