"""
grid.py - MAC (Marker-and-Cell) Staggered Grid
================================================
The storage layer every other module reads and writes.

Layout on a W x H domain (row i, column j, y grows downward):
  - Scalars (pressure, divergence, dye) live at CELL CENTERS  -> shape (H, W)
    cell (i, j) sits at continuous coordinate (x=j+0.5, y=i+0.5)
  - Velocity `u` lives on VERTICAL FACES                     -> shape (H, W+1)
    u[i, j] sits at (x=j, y=i+0.5), between cells j-1 and j
  - Velocity `v` lives on HORIZONTAL FACES                   -> shape (H+1, W)
    v[i, j] sits at (x=j+0.5, y=i), between cells i-1 and i

Two separate types instead of one recursive "field of fields":
  ScalarGrid           one array + bilinear sampling + boundary policy
  StaggeredVectorGrid  a ScalarGrid per component, staggered sampling
"""

from typing import Optional, Tuple, Union

import numpy as np

Coord = Union[float, np.ndarray]


def _bilerp(data: np.ndarray, x: Coord, y: Coord):
    """
    Bilinear interpolation of a cell-centred array at continuous coordinates.

    Node (i, j) of `data` is at (j+0.5, i+0.5). Queries outside the
    half-cell-inset box [0.5, w-0.5] x [0.5, h-0.5] return 0.

    Works on scalars or on numpy arrays of query positions (any shape).
    """
    h, w = data.shape
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)

    inside = (x >= 0.5) & (x <= w - 0.5) & (y >= 0.5) & (y <= h - 0.5)

    # Park outside queries on a valid node so the gathers stay in range
    xs = np.where(inside, x, 0.5)
    ys = np.where(inside, y, 0.5)

    # Lower corner of the 4-cell block
    c0 = np.floor(xs - 0.5).astype(np.intp)
    r0 = np.floor(ys - 0.5).astype(np.intp)

    # Upper corner, clamped: on the last row/column its weight is exactly 0
    c1 = np.minimum(c0 + 1, w - 1)
    r1 = np.minimum(r0 + 1, h - 1)

    kx = xs - c0 - 0.5
    ky = ys - r0 - 0.5

    top = (1.0 - kx) * data[r0, c0] + kx * data[r0, c1]
    btm = (1.0 - kx) * data[r1, c0] + kx * data[r1, c1]
    result = np.where(inside, (1.0 - ky) * top + ky * btm, 0.0)

    if result.ndim == 0:
        return float(result)
    return result


def require_same_shape(a, b, what: str = "grids"):
    """Raise ValueError unless two grids share width and height."""
    if (a.width, a.height) != (b.width, b.height):
        raise ValueError(
            f"Mismatched {what}: {a.width}x{a.height} vs {b.width}x{b.height}"
        )


class ScalarGrid:
    """
    Rectangular array of floats, one value per cell.

    Also used as the storage for each velocity component, in which case the
    "cells" are the faces of the parent grid.
    """

    dtype = np.float64

    def __init__(self, width: int, height: int, data: Optional[np.ndarray] = None):
        self.width = width
        self.height = height
        if data is None:
            data = np.zeros((height, width), dtype=self.dtype)
        elif data.shape != (height, width):
            raise ValueError(
                f"Data shape {data.shape} does not match grid {width}x{height}"
            )
        self.data = data

    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    def sample(self, x: Coord, y: Coord):
        """Bilinear sample at continuous (x, y); zero outside the inset box."""
        return _bilerp(self.data, x, y)

    def centers(self) -> Tuple[np.ndarray, np.ndarray]:
        """(x, y) coordinate arrays of every cell centre, each shaped like data."""
        ys, xs = np.mgrid[0:self.height, 0:self.width].astype(np.float64)
        return xs + 0.5, ys + 0.5

    def update_boundary(self, k: float):
        """
        Boundary policy: every border value becomes k x its nearest interior
        neighbour. k=0 clamps to zero, k=1 mirrors (Neumann).

        Rows go first, so the corners end up k x the already-updated row.
        """
        d = self.data
        d[0, :] = k * d[1, :]
        d[-1, :] = k * d[-2, :]
        d[:, 0] = k * d[:, 1]
        d[:, -1] = k * d[:, -2]

    def fill_zero(self):
        self.data[:] = 0

    def copy_from(self, other: "ScalarGrid"):
        require_same_shape(self, other)
        np.copyto(self.data, other.data)

    def add(self, other: "ScalarGrid"):
        require_same_shape(self, other)
        self.data += other.data

    def subtract(self, other: "ScalarGrid"):
        require_same_shape(self, other)
        self.data -= other.data

    def scale(self, factor: float):
        self.data *= factor

    def read_only(self) -> "ScalarGrid":
        """A view sharing this grid's memory that rejects writes."""
        view = self.data.view()
        view.flags.writeable = False
        return type(self)(self.width, self.height, data=view)

    def __repr__(self):
        return (
            f"{type(self).__name__}({self.width}x{self.height}, "
            f"min={self.data.min():.4g}, max={self.data.max():.4g})"
        )


class StaggeredVectorGrid:
    """
    2D vector field on the MAC layout.

    `u` is (width+1) x height, `v` is width x (height+1). The component
    sizes are always derived from width/height here.
    """

    def __init__(self, width: int, height: int,
                 u: Optional[ScalarGrid] = None, v: Optional[ScalarGrid] = None):
        self.width = width
        self.height = height
        self.u = u if u is not None else ScalarGrid(width + 1, height)
        self.v = v if v is not None else ScalarGrid(width, height + 1)

    def sample(self, x: Coord, y: Coord):
        """
        Staggered sample at continuous (x, y), returns (vx, vy).

        Each component is interpolated in its own index space: u node (i, j)
        is at (j, i+0.5), so u is read at (x+0.5, y); v node (i, j) is at
        (j+0.5, i), so v is read at (x, y+0.5). On the first/last row of u
        (first/last column of v) the cross-axis weight is zero and this is a
        plain linear interpolation along that edge.
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        inside = (x >= 0.5) & (x <= self.width - 0.5) & (y >= 0.5) & (y <= self.height - 0.5)

        vx = np.where(inside, _bilerp(self.u.data, x + 0.5, y), 0.0)
        vy = np.where(inside, _bilerp(self.v.data, x, y + 0.5), 0.0)

        if vx.ndim == 0:
            return float(vx), float(vy)
        return vx, vy

    def u_positions(self) -> Tuple[np.ndarray, np.ndarray]:
        """(x, y) of every u face, each shaped (H, W+1)."""
        ys, xs = np.mgrid[0:self.height, 0:self.width + 1].astype(np.float64)
        return xs, ys + 0.5

    def v_positions(self) -> Tuple[np.ndarray, np.ndarray]:
        """(x, y) of every v face, each shaped (H+1, W)."""
        ys, xs = np.mgrid[0:self.height + 1, 0:self.width].astype(np.float64)
        return xs + 0.5, ys

    def update_boundary(self, k: float):
        """
        Boundary policy for a staggered field.

        The outer ring of each component lies outside the simulated interior
        and is zeroed outright. The first/last interior faces normal to each
        wall (u columns 1 and W-1, v rows 1 and H-1) then become k x their
        inner neighbour. k=0 is the no-slip wall.
        """
        self.u.update_boundary(0)
        self.v.update_boundary(0)

        u = self.u.data
        v = self.v.data
        v[1, 1:-1] = k * v[2, 1:-1]
        v[-2, 1:-1] = k * v[-3, 1:-1]
        u[1:-1, 1] = k * u[1:-1, 2]
        u[1:-1, -2] = k * u[1:-1, -3]

    def fill_zero(self):
        self.u.fill_zero()
        self.v.fill_zero()

    def copy_from(self, other: "StaggeredVectorGrid"):
        require_same_shape(self, other, "vector grids")
        self.u.copy_from(other.u)
        self.v.copy_from(other.v)

    def add(self, other: "StaggeredVectorGrid"):
        require_same_shape(self, other, "vector grids")
        self.u.add(other.u)
        self.v.add(other.v)

    def subtract(self, other: "StaggeredVectorGrid"):
        require_same_shape(self, other, "vector grids")
        self.u.subtract(other.u)
        self.v.subtract(other.v)

    def scale(self, factor: float):
        self.u.scale(factor)
        self.v.scale(factor)

    def read_only(self) -> "StaggeredVectorGrid":
        return StaggeredVectorGrid(self.width, self.height,
                                   u=self.u.read_only(), v=self.v.read_only())

    def get_velocity_at_center(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Average the staggered faces onto cell centres.
        Returns (uc, vc), each shaped (H, W).
        """
        uc = 0.5 * (self.u.data[:, :-1] + self.u.data[:, 1:])
        vc = 0.5 * (self.v.data[:-1, :] + self.v.data[1:, :])
        return uc, vc

    def max_magnitude(self) -> float:
        uc, vc = self.get_velocity_at_center()
        return float(np.sqrt(uc * uc + vc * vc).max())

    def __repr__(self):
        return f"StaggeredVectorGrid({self.width}x{self.height}, max_magnitude={self.max_magnitude():.4g})"
