"""
fluid2d/ - 2D MAC-Grid Fluid Simulation
========================================
Exports the main interfaces a renderer or input layer needs.

Renderer imports:  FluidSimulation, FieldId  -> get_field()
Input layer:       FluidSimulation           -> apply_force(), inject_concentration()
Numerics:          the grid types and operator modules can be used on their own
"""

from .grid import ScalarGrid, StaggeredVectorGrid
from .markers import AIR, LIQUID, SOLID, MarkerGrid
from .simulation import FieldId, FluidSimulation, GenerationPair

__all__ = [
    "ScalarGrid", "StaggeredVectorGrid", "MarkerGrid",
    "SOLID", "LIQUID", "AIR",
    "FluidSimulation", "FieldId", "GenerationPair",
]
