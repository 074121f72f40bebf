"""
operators.py - Finite-Difference Operators on the MAC Grid
===========================================================
  divergence  vector -> scalar   net outflow of each cell
  gradient    scalar -> vector   difference across each face
  curl        vector -> scalar   rotation at each interior cell

Divergence and gradient are discrete adjoints of each other:
div(grad p) is exactly the 5-point Laplacian of p. The pressure solver
depends on that, so the neighbour offsets here must not change.

Also here: `normalize` and `cross`, the two helpers vorticity confinement
needs to turn a curl field into a force.

Everything is vectorised with array slicing, no Python loops over cells.
All functions write into an explicit destination and only read their inputs.
"""

import numpy as np

from .grid import ScalarGrid, StaggeredVectorGrid, require_same_shape


def divergence(velocity: StaggeredVectorGrid, out: ScalarGrid) -> ScalarGrid:
    """
    div = (east_u - west_u) + (south_v - north_v), for every cell.
    """
    require_same_shape(velocity, out)
    u = velocity.u.data
    v = velocity.v.data
    out.data[:] = (u[:, 1:] - u[:, :-1]) + (v[1:, :] - v[:-1, :])
    return out


def gradient(field: ScalarGrid, out: StaggeredVectorGrid) -> StaggeredVectorGrid:
    """
    u face = right cell - left cell, v face = bottom cell - top cell.

    Only faces with a cell on both sides get a value; the outer columns of
    u and the outer rows of v are zero.
    """
    require_same_shape(field, out)
    p = field.data
    out.fill_zero()
    out.u.data[:, 1:-1] = p[:, 1:] - p[:, :-1]
    out.v.data[1:-1, :] = p[1:, :] - p[:-1, :]
    return out


def curl(velocity: StaggeredVectorGrid, out: ScalarGrid) -> ScalarGrid:
    """
    Scalar curl dv/dx - du/dy on interior cells, border left at zero.

    Each derivative is a central difference over two cells, averaged over
    the two faces that straddle the cell:
      dv/dx = ((v[i, j+1] - v[i, j-1]) + (v[i+1, j+1] - v[i+1, j-1])) / 4
      du/dy = ((u[i+1, j] - u[i-1, j]) + (u[i+1, j+1] - u[i-1, j+1])) / 4
    """
    require_same_shape(velocity, out)
    u = velocity.u.data
    v = velocity.v.data

    out.fill_zero()
    dvdx = ((v[1:-2, 2:] - v[1:-2, :-2]) + (v[2:-1, 2:] - v[2:-1, :-2])) * 0.25
    dudy = ((u[2:, 1:-2] - u[:-2, 1:-2]) + (u[2:, 2:-1] - u[:-2, 2:-1])) * 0.25
    out.data[1:-1, 1:-1] = dvdx - dudy
    return out


def normalize(field: StaggeredVectorGrid) -> StaggeredVectorGrid:
    """
    Scale every face so the vector sampled there has unit length.

    Magnitudes are taken from the field as it is on entry, for both
    components. Zero-magnitude faces become 0 instead of inf/NaN.
    """
    xs, ys = field.u_positions()
    ux, uy = field.sample(xs, ys)
    u_mag = np.hypot(ux, uy)

    xs, ys = field.v_positions()
    vx, vy = field.sample(xs, ys)
    v_mag = np.hypot(vx, vy)

    u = field.u.data
    v = field.v.data
    u[:] = np.divide(u, u_mag, out=np.zeros_like(u), where=u_mag != 0)
    v[:] = np.divide(v, v_mag, out=np.zeros_like(v), where=v_mag != 0)
    return field


def cross(direction: StaggeredVectorGrid, magnitude: ScalarGrid,
          out: StaggeredVectorGrid) -> StaggeredVectorGrid:
    """
    2D cross product of an in-plane direction with an out-of-plane scalar:
      out = (dir.y * w, -dir.x * w)
    evaluated on interior faces, everything else zero.
    """
    require_same_shape(direction, out, "vector grids")
    require_same_shape(magnitude, out)
    out.fill_zero()

    xs, ys = out.u_positions()
    xs, ys = xs[1:-1, 1:-1], ys[1:-1, 1:-1]
    _, dir_y = direction.sample(xs, ys)
    out.u.data[1:-1, 1:-1] = dir_y * magnitude.sample(xs, ys)

    xs, ys = out.v_positions()
    xs, ys = xs[1:-1, 1:-1], ys[1:-1, 1:-1]
    dir_x, _ = direction.sample(xs, ys)
    out.v.data[1:-1, 1:-1] = -dir_x * magnitude.sample(xs, ys)
    return out
