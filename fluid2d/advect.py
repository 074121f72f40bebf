"""
advect.py - Semi-Lagrangian Advection
======================================
This is what makes the fluid actually flow.

The algorithm (per face or cell):
  1. Take the sample's own position (x, y).
  2. Trace BACKWARD along the velocity field by one timestep:
       x0 = x - dt * vel.x,  y0 = y - dt * vel.y
     -> "Where did the stuff at this point come FROM?"
  3. Sample the source field at (x0, y0) with bilinear interpolation.
  4. That sampled value becomes the new value.

Velocity faces are only advected where the face touches liquid
(LIQUID_LIQUID or AIR_LIQUID); faces between solids or between two air
cells carry no flow and are zeroed.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np

from .grid import ScalarGrid, StaggeredVectorGrid, require_same_shape
from .markers import FLOWING_FACES, MarkerGrid


def _backtrace(velocity: StaggeredVectorGrid, x: np.ndarray, y: np.ndarray, dt: float):
    vx, vy = velocity.sample(x, y)
    return x - dt * vx, y - dt * vy


def advect_velocity(dst: StaggeredVectorGrid, src: StaggeredVectorGrid,
                    velocity: StaggeredVectorGrid, markers: MarkerGrid, dt: float):
    """
    Advect a staggered field `src` through `velocity` into `dst`.

    Each component is traced from its own face positions and read back in
    its own index space (u at (x0+0.5, y0), v at (x0, y0+0.5)), so a node
    that does not move reads back its own stored value.

    `src` and `velocity` may be the same grid (self-advection); `dst` must
    not alias either of them.

    Modifies: dst.u, dst.v (every entry is overwritten)
    """
    require_same_shape(dst, src, "vector grids")
    require_same_shape(dst, velocity, "vector grids")
    require_same_shape(dst, markers)

    # ── u faces: interior rows, columns 1..W-1 ────────────────────────────
    xs, ys = dst.u_positions()
    live_u = np.isin(markers.u_interfaces(), FLOWING_FACES)
    live_u[0, :] = live_u[-1, :] = False
    x0, y0 = _backtrace(velocity, xs, ys, dt)
    dst.u.data[:] = np.where(live_u, src.u.sample(x0 + 0.5, y0), 0.0)

    # ── v faces: rows 1..H-1, interior columns ────────────────────────────
    xs, ys = dst.v_positions()
    live_v = np.isin(markers.v_interfaces(), FLOWING_FACES)
    live_v[:, 0] = live_v[:, -1] = False
    x0, y0 = _backtrace(velocity, xs, ys, dt)
    dst.v.data[:] = np.where(live_v, src.v.sample(x0, y0 + 0.5), 0.0)


def advect_scalar(dst: ScalarGrid, src: ScalarGrid,
                  velocity: StaggeredVectorGrid, markers: MarkerGrid, dt: float):
    """
    Advect a cell-centred quantity (dye concentration) through `velocity`.

    Interior cells are traced from their centres. The border and any solid
    cell end up at zero.

    Modifies: dst.data (every entry is overwritten)
    """
    require_same_shape(dst, src)
    require_same_shape(dst, velocity)
    require_same_shape(dst, markers)

    live = ~markers.solid_mask()
    live[0, :] = live[-1, :] = False
    live[:, 0] = live[:, -1] = False

    xs, ys = dst.centers()
    x0, y0 = _backtrace(velocity, xs, ys, dt)
    dst.data[:] = np.where(live, src.sample(x0, y0), 0.0)
