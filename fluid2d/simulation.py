"""
simulation.py - Master Physics Loop
====================================
One call to `step()` advances the fluid by dt.

Physics pipeline per tick:
  1. Advect velocity through itself
  2. Apply queued external impulses
  3. Enforce no-slip walls
  4. Project velocity (enforce incompressibility)
  5. Vorticity confinement, then curl noise
  6. Advect dye concentration through the new velocity
  7. Flip generations

Every evolving quantity lives in a GenerationPair: stages read `current`
and write `next`, and nothing is read while it is being written. The flip
at the end makes `next` the new `current`.
"""

import logging
import time
from enum import Enum
from typing import Callable, Generic, List, Optional, TypeVar

import numpy as np

from .advect import advect_scalar, advect_velocity
from .extrapolate import extrapolate_velocity
from .forces import DEFAULT_FORCE_RADIUS, Impulse, apply_impulse, inject_concentration
from .grid import ScalarGrid, StaggeredVectorGrid
from .markers import MarkerGrid
from .solver import JACOBI_ITERATIONS, ProjectionWorkspace, project
from .vorticity import (NOISE_STRENGTH, ConfinementWorkspace, RandomSource,
                        confine, curl_noise)

logger = logging.getLogger(__name__)

DEFAULT_DT = 0.1

T = TypeVar("T")


class FieldId(Enum):
    """Fields the renderer may look at."""
    CONCENTRATION = "concentration"
    VELOCITY = "velocity"
    DIVERGENCE = "divergence"
    PRESSURE = "pressure"
    PRESSURE_GRADIENT = "pressure_gradient"


class GenerationPair(Generic[T]):
    """Front/back buffers of one quantity."""

    def __init__(self, current: T, nxt: T):
        self.current = current
        self.next = nxt
        self.generation = 0

    def flip(self):
        self.current, self.next = self.next, self.current
        self.generation += 1

    def __iter__(self):
        yield self.current
        yield self.next


class FluidSimulation:
    """
    The complete 2D fluid simulation.

    Usage:
        sim = FluidSimulation(64, 64, rng=np.random.default_rng(0))
        sim.inject_concentration(32, 32)
        sim.apply_force(32, 32, 0.0, -2.0)
        for frame in range(100):
            sim.step()
            dye = sim.get_field(FieldId.CONCENTRATION)   # hand to a renderer
    """

    def __init__(self, width: int, height: int, dt: float = DEFAULT_DT,
                 solver_iterations: int = JACOBI_ITERATIONS,
                 noise_strength: float = NOISE_STRENGTH,
                 rng: Optional[RandomSource] = None,
                 marker_init: Optional[Callable[[int, int], int]] = None):
        """
        Args:
            width, height     : Grid resolution in cells (at least 3 each)
            dt                : Default timestep for step()
            solver_iterations : Jacobi sweeps per projection
            noise_strength    : Curl-noise scale (0 disables the noise pass)
            rng               : Random source for curl noise; a fresh
                                numpy Generator if omitted
            marker_init       : marker_init(x, y) -> SOLID/LIQUID/AIR for each
                                interior cell; all liquid if omitted
        """
        if width < 3 or height < 3:
            raise ValueError(f"Grid must be at least 3x3 cells, got {width}x{height}")
        if solver_iterations < 0:
            raise ValueError(f"solver_iterations must be >= 0, got {solver_iterations}")

        self.width = width
        self.height = height
        self.dt = dt
        self.solver_iterations = solver_iterations
        self.noise_strength = noise_strength
        self.rng = rng if rng is not None else np.random.default_rng()

        # ── Double-buffered state ──────────────────────────────────────────
        self.velocity = GenerationPair(StaggeredVectorGrid(width, height),
                                       StaggeredVectorGrid(width, height))
        self.concentration = GenerationPair(ScalarGrid(width, height),
                                            ScalarGrid(width, height))
        if marker_init is None:
            self.markers = GenerationPair(MarkerGrid(width, height), MarkerGrid(width, height))
        else:
            self.markers = GenerationPair(MarkerGrid.from_function(width, height, marker_init),
                                          MarkerGrid.from_function(width, height, marker_init))

        # ── Scratch buffers ────────────────────────────────────────────────
        self.projection = ProjectionWorkspace.allocate(width, height)
        self.confinement = ConfinementWorkspace.allocate(width, height)
        self.extrapolated = StaggeredVectorGrid(width, height)

        for vel in self.velocity:
            vel.update_boundary(0)

        self.frame = 0
        self.perf_log: List[dict] = []
        self._impulses: List[Impulse] = []

        logger.info("FluidSimulation %dx%d ready (dt=%g, %d Jacobi iterations, markers %s)",
                    width, height, dt, solver_iterations, self.markers.current.counts())

    # ── External inputs ────────────────────────────────────────────────────
    def apply_force(self, cell_x: float, cell_y: float, force_x: float, force_y: float,
                    radius: float = DEFAULT_FORCE_RADIUS):
        """Queue an impulse; it is added right after the next velocity advection."""
        self._impulses.append(Impulse(cell_x, cell_y, force_x, force_y, radius))

    def inject_concentration(self, cell_x: float, cell_y: float, amount: float = 1.0,
                             radius: float = DEFAULT_FORCE_RADIUS):
        """Set dye concentration around a cell in the current generation."""
        inject_concentration(self.concentration.current, cell_x, cell_y, amount, radius)

    # ── Stepping ───────────────────────────────────────────────────────────
    def step(self, dt: Optional[float] = None) -> dict:
        """
        Advance the simulation by one tick.

        Returns a metrics dict (timings per stage, divergence before/after
        projection, total dye) that is also appended to perf_log.
        """
        dt = self.dt if dt is None else dt
        t_total_start = time.perf_counter()

        vel_src, vel_dst = self.velocity.current, self.velocity.next
        conc_src, conc_dst = self.concentration.current, self.concentration.next
        markers, markers_dst = self.markers.current, self.markers.next

        # ── Step 1: Self-advection ─────────────────────────────────────────
        t0 = time.perf_counter()
        advect_velocity(vel_dst, vel_src, vel_src, markers, dt)
        t_advect_vel = (time.perf_counter() - t0) * 1000

        # ── Step 2 + 3: Forces, then no-slip walls ─────────────────────────
        t0 = time.perf_counter()
        impulses, self._impulses = self._impulses, []
        for impulse in impulses:
            apply_impulse(vel_dst, impulse)
        vel_dst.update_boundary(0)
        t_forces = (time.perf_counter() - t0) * 1000

        # ── Step 4: Projection ─────────────────────────────────────────────
        proj_metrics = project(vel_dst, markers, self.projection, self.solver_iterations)

        # ── Step 5: Vorticity confinement + curl noise ─────────────────────
        t0 = time.perf_counter()
        confine(vel_dst, vel_dst, self.confinement, dt)
        t_confine = (time.perf_counter() - t0) * 1000

        t0 = time.perf_counter()
        if self.noise_strength:
            curl_noise(vel_dst, self.confinement, self.rng, self.noise_strength)
        t_noise = (time.perf_counter() - t0) * 1000

        # ── Step 6: Dye follows the new velocity ───────────────────────────
        t0 = time.perf_counter()
        advect_scalar(conc_dst, conc_src, vel_dst, markers, dt)
        t_advect_conc = (time.perf_counter() - t0) * 1000

        # ── Step 7: Markers carry over, then flip ──────────────────────────
        markers_dst.copy_from(markers)
        self.velocity.flip()
        self.concentration.flip()
        self.markers.flip()

        self.frame += 1
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics = {
            "frame": self.frame,
            "dt": dt,
            "total_ms": t_total,
            "fps": 1000.0 / t_total if t_total > 0 else 0,
            "advect_vel_ms": t_advect_vel,
            "forces_ms": t_forces,
            "project_ms": proj_metrics["time_ms"],
            "confine_ms": t_confine,
            "noise_ms": t_noise,
            "advect_conc_ms": t_advect_conc,
            "impulses": len(impulses),
            "divergence_before_max": proj_metrics["divergence_before_max"],
            "divergence_after_max": proj_metrics["divergence_after_max"],
            "divergence_after_mean": proj_metrics["divergence_after_mean"],
            "concentration_total": float(self.concentration.current.data.sum()),
        }
        self.perf_log.append(metrics)
        logger.debug("frame %d: %.1fms, div %.3g -> %.3g", self.frame, t_total,
                     metrics["divergence_before_max"], metrics["divergence_after_max"])
        return metrics

    # ── Read-only views for renderers ──────────────────────────────────────
    def get_field(self, field_id: FieldId):
        """
        A read-only view of one field. Writes through it raise ValueError.

        DIVERGENCE is the divergence the last projection started from.
        """
        if field_id is FieldId.CONCENTRATION:
            return self.concentration.current.read_only()
        if field_id is FieldId.VELOCITY:
            return self.velocity.current.read_only()
        if field_id is FieldId.DIVERGENCE:
            return self.projection.divergence.read_only()
        if field_id is FieldId.PRESSURE:
            return self.projection.pressure.read_only()
        if field_id is FieldId.PRESSURE_GRADIENT:
            return self.projection.gradient.read_only()
        raise ValueError(f"Unknown field: {field_id!r}")

    def extrapolate_velocity(self) -> StaggeredVectorGrid:
        """Extrapolate the current velocity past the liquid; read-only result."""
        extrapolate_velocity(self.velocity.current, self.markers.current, self.extrapolated)
        return self.extrapolated.read_only()

    def reset(self):
        """Zero every evolving and scratch field. Markers are kept."""
        for vel in self.velocity:
            vel.fill_zero()
        for conc in self.concentration:
            conc.fill_zero()
        self.projection.fill_zero()
        self.confinement.fill_zero()
        self.extrapolated.fill_zero()
        self._impulses.clear()
        self.frame = 0
        self.perf_log.clear()
        logger.info("FluidSimulation reset")

    def print_status(self):
        """Pretty-print current simulation state."""
        div = self.projection.divergence.data
        p = self.projection.pressure.data
        conc = self.concentration.current.data
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  Grid: {self.width}x{self.height}")
        print(f"  Dye       : max={conc.max():.4f}, total={conc.sum():.2f}")
        print(f"  Velocity  : max={self.velocity.current.max_magnitude():.4f}")
        print(f"  Divergence: max={np.abs(div).max():.6f} (before projection)")
        print(f"  Pressure  : max={p.max():.4f}, min={p.min():.4f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/frame ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")

    def __repr__(self):
        return (f"FluidSimulation({self.width}x{self.height}, frame={self.frame}, "
                f"dt={self.dt})")
