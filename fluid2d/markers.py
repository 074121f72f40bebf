"""
markers.py - Cell Types and Face Classification
================================================
The marker grid says what every cell IS:
  SOLID  (0)  walls, nothing flows in or out
  LIQUID (1)  simulated fluid
  AIR    (2)  empty space, pressure pinned to 0 (free surface)

Most operators care about FACES, not cells, so each face is classified
from the two cells it separates:
  SOLID_FACE    (0)  either side is solid
  LIQUID_LIQUID (1)  both sides liquid
  AIR_AIR       (2)  both sides air
  AIR_LIQUID    (3)  one of each

Advection only moves LIQUID_LIQUID / AIR_LIQUID faces; the rest are zeroed.
"""

import math
from typing import Callable, Optional

import numpy as np

from .grid import ScalarGrid

# ── Cell codes ────────────────────────────────────────────────────────────────
SOLID = 0
LIQUID = 1
AIR = 2

# ── Interface codes ───────────────────────────────────────────────────────────
SOLID_FACE = 0
LIQUID_LIQUID = 1
AIR_AIR = 2
AIR_LIQUID = 3

# Faces whose velocity is actually simulated
FLOWING_FACES = (LIQUID_LIQUID, AIR_LIQUID)


def classify_pair(a, b):
    """
    Interface code for the face between cells of type `a` and `b`.
    Accepts ints or equally-shaped numpy arrays.
    """
    a = np.asarray(a)
    b = np.asarray(b)
    solid = (a == SOLID) | (b == SOLID)
    air_air = (a == AIR) & (b == AIR)
    air_liquid = ((a == AIR) & (b == LIQUID)) | ((a == LIQUID) & (b == AIR))
    codes = np.select([solid, air_air, air_liquid],
                      [SOLID_FACE, AIR_AIR, AIR_LIQUID],
                      default=LIQUID_LIQUID)
    if codes.ndim == 0:
        return int(codes)
    return codes.astype(np.int8)


class MarkerGrid(ScalarGrid):
    """Per-cell domain type over the same layout as scalar data."""

    dtype = np.int8

    def __init__(self, width: int, height: int, data: Optional[np.ndarray] = None):
        super().__init__(width, height, data=data)
        if data is None:
            self.data[:] = LIQUID
            self.seal()

    @classmethod
    def from_function(cls, width: int, height: int,
                      init: Callable[[int, int], int]) -> "MarkerGrid":
        """
        Build a marker grid by asking `init(x, y)` for every interior cell.
        The border is always solid.
        """
        markers = cls(width, height)
        for i in range(1, height - 1):
            for j in range(1, width - 1):
                code = init(j, i)
                if code not in (SOLID, LIQUID, AIR):
                    raise ValueError(f"Invalid marker code {code!r} at cell ({j}, {i})")
                markers.data[i, j] = code
        return markers

    def seal(self):
        """Mark the outer ring of cells as solid walls."""
        self.data[0, :] = self.data[-1, :] = SOLID
        self.data[:, 0] = self.data[:, -1] = SOLID

    def cell(self, i: int, j: int) -> int:
        """Code of cell (row i, col j); anything off-grid counts as solid."""
        if 0 <= i < self.height and 0 <= j < self.width:
            return int(self.data[i, j])
        return SOLID

    def classify_interface(self, x: float, y: float) -> int:
        """
        Interface code at a half-integer face coordinate.

        A fractional y means a vertical face (a u sample) between the cells
        left and right of x; a fractional x means a horizontal face (a v
        sample) between the cells above and below y.
        """
        frac_x = x - math.floor(x) != 0
        frac_y = y - math.floor(y) != 0
        if frac_x == frac_y:
            raise ValueError(f"({x}, {y}) is not a cell face")

        i = math.floor(y)
        j = math.floor(x)
        if frac_y:
            return classify_pair(self.cell(i, j - 1), self.cell(i, j))
        return classify_pair(self.cell(i - 1, j), self.cell(i, j))

    def u_interfaces(self) -> np.ndarray:
        """Interface code of every u face, shape (H, W+1). Outer columns are solid."""
        out = np.full((self.height, self.width + 1), SOLID_FACE, dtype=np.int8)
        out[:, 1:-1] = classify_pair(self.data[:, :-1], self.data[:, 1:])
        return out

    def v_interfaces(self) -> np.ndarray:
        """Interface code of every v face, shape (H+1, W). Outer rows are solid."""
        out = np.full((self.height + 1, self.width), SOLID_FACE, dtype=np.int8)
        out[1:-1, :] = classify_pair(self.data[:-1, :], self.data[1:, :])
        return out

    def air_mask(self) -> np.ndarray:
        return self.data == AIR

    def liquid_mask(self) -> np.ndarray:
        return self.data == LIQUID

    def solid_mask(self) -> np.ndarray:
        return self.data == SOLID

    def counts(self) -> dict:
        return {
            "solid": int(self.solid_mask().sum()),
            "liquid": int(self.liquid_mask().sum()),
            "air": int(self.air_mask().sum()),
        }
