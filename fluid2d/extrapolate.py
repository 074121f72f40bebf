"""
extrapolate.py - Velocity Extrapolation
========================================
Faces that do not touch liquid (solid or air-air faces) have no meaningful
velocity. Some consumers, e.g. something advecting particles just outside
the liquid, still need a sensible value there. Extrapolation fills those
faces from their liquid neighbours:

  seed:      liquid-adjacent faces are Known (copied from the source),
             solid / air-air faces are Unknown
  propagate: an Unknown face with Known axis neighbours becomes the average
             of those neighbours; repeat for a fixed number of passes
  resolve:   anything still Unknown falls back to 0, then no-slip walls

Known/Unknown is carried as an explicit boolean mask next to the values,
never as a NaN inside the values.

Not part of the main step; call it when a consumer needs it.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .grid import StaggeredVectorGrid, require_same_shape
from .markers import AIR_AIR, SOLID_FACE, MarkerGrid

logger = logging.getLogger(__name__)

EXTRAPOLATION_PASSES = 10


@dataclass
class FaceEstimate:
    """Values of one face component plus which of them are Known."""
    values: np.ndarray
    known: np.ndarray

    @classmethod
    def seed(cls, source: np.ndarray, interfaces: np.ndarray) -> "FaceEstimate":
        """
        Interior faces between solids or between air cells start Unknown,
        the rest copy `source`. The outer ring is Known zero.
        """
        values = np.zeros_like(source)
        known = np.ones(source.shape, dtype=bool)

        inner = np.s_[1:-1, 1:-1]
        unknown = np.isin(interfaces[inner], (SOLID_FACE, AIR_AIR))
        values[inner] = np.where(unknown, 0.0, source[inner])
        known[inner] = ~unknown
        return cls(values, known)

    def copy(self) -> "FaceEstimate":
        return FaceEstimate(self.values.copy(), self.known.copy())

    @property
    def unknown_count(self) -> int:
        return int((~self.known).sum())


def propagate(estimate: FaceEstimate, passes: int = EXTRAPOLATION_PASSES) -> FaceEstimate:
    """
    Run `passes` rounds of neighbour averaging over the interior faces.

    Each round reads only the previous round, so a Known value spreads at
    most one face per pass. Unknown neighbours contribute nothing and are not
    counted; a face with no Known neighbour stays Unknown.
    """
    current = estimate.copy()
    inner = np.s_[1:-1, 1:-1]
    for _ in range(passes):
        vals = np.where(current.known, current.values, 0.0)
        k = current.known.astype(np.int32)

        total = vals[:-2, 1:-1] + vals[2:, 1:-1] + vals[1:-1, :-2] + vals[1:-1, 2:]
        count = k[:-2, 1:-1] + k[2:, 1:-1] + k[1:-1, :-2] + k[1:-1, 2:]

        fill = ~current.known[inner] & (count > 0)
        if not fill.any():
            break

        nxt = current.copy()
        nxt.values[inner] = np.where(fill, total / np.maximum(count, 1), current.values[inner])
        nxt.known[inner] = current.known[inner] | fill
        current = nxt
    return current


def seed_velocity(src: StaggeredVectorGrid,
                  markers: MarkerGrid) -> Tuple[FaceEstimate, FaceEstimate]:
    """Seed estimates for the u and v components of `src`."""
    require_same_shape(src, markers)
    return (FaceEstimate.seed(src.u.data, markers.u_interfaces()),
            FaceEstimate.seed(src.v.data, markers.v_interfaces()))


def extrapolate_velocity(src: StaggeredVectorGrid, markers: MarkerGrid,
                         dst: StaggeredVectorGrid,
                         passes: int = EXTRAPOLATION_PASSES) -> int:
    """
    Extrapolate `src` into `dst` past the liquid region.

    Args:
        src     : Velocity to extrapolate (not modified)
        markers : Cell types deciding which faces are Known
        dst     : Output field, fully overwritten
        passes  : Propagation rounds

    Returns:
        Number of faces left Unknown after all passes (written as 0)
    """
    require_same_shape(src, dst, "vector grids")
    est_u, est_v = seed_velocity(src, markers)
    est_u = propagate(est_u, passes)
    est_v = propagate(est_v, passes)

    dst.u.data[:] = np.where(est_u.known, est_u.values, 0.0)
    dst.v.data[:] = np.where(est_v.known, est_v.values, 0.0)
    dst.update_boundary(0)

    unresolved = est_u.unknown_count + est_v.unknown_count
    if unresolved:
        logger.debug("extrapolation left %d faces unresolved after %d passes; set to 0",
                     unresolved, passes)
    return unresolved
