"""
forces.py - External Forces and Dye Injection
==============================================
The hooks an outside collaborator (pointer input, scripted emitters) uses to
push the fluid around and to drop dye into it.

Both work on interior cells whose centre index lies strictly inside a
circle of `radius` cells around (x, y). A hit cell gets the force added to
its west u face and its north v face.
"""

from dataclasses import dataclass

import numpy as np

from .grid import ScalarGrid, StaggeredVectorGrid

DEFAULT_FORCE_RADIUS = 5.0


@dataclass(frozen=True)
class Impulse:
    """A queued push: force (fx, fy) around cell (x, y)."""
    x: float
    y: float
    fx: float
    fy: float
    radius: float = DEFAULT_FORCE_RADIUS


def _blast_mask(width: int, height: int, x: float, y: float, radius: float) -> np.ndarray:
    """Interior cells (i, j) with (x - j)^2 + (y - i)^2 < radius^2."""
    i, j = np.mgrid[0:height, 0:width]
    mask = (x - j) ** 2 + (y - i) ** 2 < radius * radius
    mask[0, :] = mask[-1, :] = False
    mask[:, 0] = mask[:, -1] = False
    return mask


def apply_impulse(velocity: StaggeredVectorGrid, impulse: Impulse):
    """
    Add a localized force impulse (user drag, fan, explosion).
    No falloff: every hit cell gets the full force.

    Modifies: velocity.u, velocity.v (in-place)
    """
    mask = _blast_mask(velocity.width, velocity.height,
                       impulse.x, impulse.y, impulse.radius)
    velocity.u.data[:, :-1][mask] += impulse.fx
    velocity.v.data[:-1, :][mask] += impulse.fy


def inject_concentration(concentration: ScalarGrid, x: float, y: float,
                         amount: float = 1.0, radius: float = DEFAULT_FORCE_RADIUS):
    """
    Set the dye concentration of every hit cell to `amount`.

    Modifies: concentration (in-place)
    """
    mask = _blast_mask(concentration.width, concentration.height, x, y, radius)
    concentration.data[mask] = amount
