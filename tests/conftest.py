import numpy as np
import pytest

from fluid2d.grid import ScalarGrid, StaggeredVectorGrid
from fluid2d.markers import MarkerGrid


class FixedSequence:
    """Deterministic stand-in for numpy.random.Generator.random()."""

    def __init__(self, values):
        self.values = np.asarray(values, dtype=np.float64)
        self.pos = 0

    def random(self, size=None):
        n = 1 if size is None else int(np.prod(size))
        idx = (self.pos + np.arange(n)) % len(self.values)
        self.pos += n
        out = self.values[idx]
        if size is None:
            return float(out[0])
        return out.reshape(size)


@pytest.fixture
def fixed_sequence():
    return FixedSequence


@pytest.fixture
def constant_rng():
    # Uniform noise has zero curl, so the noise pass adds nothing
    return FixedSequence([0.5])


def random_vector_grid(width, height, seed=0, scale=1.0):
    rng = np.random.default_rng(seed)
    field = StaggeredVectorGrid(width, height)
    field.u.data[:] = scale * (rng.random(field.u.shape) - 0.5)
    field.v.data[:] = scale * (rng.random(field.v.shape) - 0.5)
    return field


def random_scalar_grid(width, height, seed=0):
    rng = np.random.default_rng(seed)
    return ScalarGrid(width, height, data=rng.random((height, width)))


@pytest.fixture
def markers_8x8():
    return MarkerGrid(8, 8)
