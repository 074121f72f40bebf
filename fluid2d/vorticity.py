"""
vorticity.py - Vorticity Confinement and Curl Noise
====================================================
Semi-Lagrangian advection smears small swirls out of existence. Vorticity
confinement puts some of that rotation back:

  1. w = curl(velocity)                  how much each cell spins
  2. N = grad(w) / |grad(w)|             direction towards stronger spin
  3. F = N x w                           push perpendicular to N
  4. velocity += strength * F

Curl noise runs the exact same pipeline on a random vector field instead of
the velocity, which injects small-scale turbulence. The random numbers come
from an injected source so runs can be made deterministic.
"""

from dataclasses import dataclass
from typing import Protocol

from .grid import ScalarGrid, StaggeredVectorGrid, require_same_shape
from .operators import cross, curl, gradient, normalize

# Turbulence strength, kept below the deterministic (dt-scaled) pass
NOISE_STRENGTH = 0.05


class RandomSource(Protocol):
    """Anything that yields floats in [0, 1), e.g. numpy.random.Generator."""

    def random(self, size=None): ...


@dataclass
class ConfinementWorkspace:
    """Scratch buffers for one confinement pass, allocated once by the owner."""
    vorticity: ScalarGrid
    direction: StaggeredVectorGrid
    force: StaggeredVectorGrid
    noise: StaggeredVectorGrid

    @classmethod
    def allocate(cls, width: int, height: int) -> "ConfinementWorkspace":
        return cls(
            vorticity=ScalarGrid(width, height),
            direction=StaggeredVectorGrid(width, height),
            force=StaggeredVectorGrid(width, height),
            noise=StaggeredVectorGrid(width, height),
        )

    def fill_zero(self):
        self.vorticity.fill_zero()
        self.direction.fill_zero()
        self.force.fill_zero()
        self.noise.fill_zero()


def confinement_force(source: StaggeredVectorGrid, workspace: ConfinementWorkspace,
                      strength: float) -> StaggeredVectorGrid:
    """
    Compute the confinement force of `source` into workspace.force.

    Leaves the curl of `source` in workspace.vorticity and the normalised
    curl gradient in workspace.direction.
    """
    require_same_shape(source, workspace.force, "vector grids")
    curl(source, workspace.vorticity)
    gradient(workspace.vorticity, workspace.direction)
    normalize(workspace.direction)
    cross(workspace.direction, workspace.vorticity, workspace.force)
    workspace.force.scale(strength)
    return workspace.force


def confine(source: StaggeredVectorGrid, target: StaggeredVectorGrid,
            workspace: ConfinementWorkspace, strength: float):
    """
    Add the confinement force derived from `source` to `target`.

    For the regular pass source and target are the same velocity field.

    Modifies: target (in-place)
    """
    require_same_shape(source, target, "vector grids")
    target.add(confinement_force(source, workspace, strength))


def fill_noise(noise: StaggeredVectorGrid, rng: RandomSource) -> StaggeredVectorGrid:
    """Overwrite both components with fresh draws in [0, 1): u first, then v."""
    noise.u.data[:] = rng.random(noise.u.shape)
    noise.v.data[:] = rng.random(noise.v.shape)
    return noise


def curl_noise(target: StaggeredVectorGrid, workspace: ConfinementWorkspace,
               rng: RandomSource, strength: float = NOISE_STRENGTH):
    """
    Inject turbulence: a confinement pass driven by a random vector field.

    Modifies: target (in-place), workspace.noise
    """
    fill_noise(workspace.noise, rng)
    confine(workspace.noise, target, workspace, strength)

