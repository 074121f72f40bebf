"""
main.py - Headless Runner
==========================
Drives the simulation without a display. Rendering lives elsewhere; this
is for checking stability and timing from a terminal.

Usage:
    python main.py                        # Headless run with stats (default)
    python main.py --mode benchmark       # Per-stage timing breakdown
    python main.py --size 128 --frames 200 --seed 7 --verbose
"""

import argparse
import logging

import numpy as np

from fluid2d import FluidSimulation
from fluid2d.logging_config import setup_logging


def _stir(sim: FluidSimulation, frame: int):
    """A dye source near the bottom, pushed upward with a slow sideways sweep."""
    cx = sim.width / 2 + 0.25 * sim.width * np.sin(frame * 0.05)
    cy = sim.height * 0.8
    sim.inject_concentration(cx, cy, amount=1.0, radius=3.0)
    sim.apply_force(cx, cy, 0.0, -1.5, radius=3.0)


def run_headless(size: int = 64, frames: int = 100, seed: int = 0):
    """Run simulation without display, printing stats every 10 frames."""
    print(f"\nHeadless simulation | {size}x{size} | {frames} frames")
    print(f"{'─'*60}")

    sim = FluidSimulation(size, size, rng=np.random.default_rng(seed))
    total_times = []

    for f in range(frames):
        _stir(sim, f)
        metrics = sim.step()
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            print(f"  Frame {f:03d} | {metrics['total_ms']:6.1f}ms "
                  f"({metrics['fps']:.1f} FPS) | "
                  f"div {metrics['divergence_before_max']:.4f} -> "
                  f"{metrics['divergence_after_max']:.6f} | "
                  f"dye={metrics['concentration_total']:.1f}")

    print(f"\n{'─'*60}")
    print(f"  Average: {np.mean(total_times):.1f}ms/frame ({1000/np.mean(total_times):.1f} FPS)")
    print(f"  Min:     {np.min(total_times):.1f}ms")
    print(f"  Max:     {np.max(total_times):.1f}ms")
    sim.print_status()


def run_benchmark(size: int = 64, frames: int = 50, seed: int = 0):
    """Per-stage timing of the step pipeline."""
    print(f"\n{'='*60}")
    print(f"  STEP BENCHMARK | {size}x{size} | {frames} frames")
    print(f"{'='*60}")

    sim = FluidSimulation(size, size, rng=np.random.default_rng(seed))

    # Warm up
    for f in range(5):
        _stir(sim, f)
        sim.step()

    logs = []
    for f in range(frames):
        _stir(sim, f)
        logs.append(sim.step())

    keys = ["advect_vel_ms", "forces_ms", "project_ms", "confine_ms",
            "noise_ms", "advect_conc_ms", "total_ms"]

    print(f"\n{'Step':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.2f}ms {np.min(vals):>7.2f}ms {np.max(vals):>7.2f}ms")

    total_vals = [m["total_ms"] for m in logs]
    print(f"\n{'─'*50}")
    print(f"  FPS (physics only): {1000/np.mean(total_vals):.1f}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="2D MAC-grid fluid simulation")
    parser.add_argument(
        "--mode", choices=["headless", "benchmark"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--size",   type=int, default=64,  help="Grid width and height (default: 64)")
    parser.add_argument("--frames", type=int, default=100, help="Number of frames")
    parser.add_argument("--seed",   type=int, default=0,   help="Curl-noise seed")
    parser.add_argument("--verbose", action="store_true", help="Log every step")

    args = parser.parse_args()
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.mode == "headless":
        run_headless(size=args.size, frames=args.frames, seed=args.seed)
    elif args.mode == "benchmark":
        run_benchmark(size=args.size, frames=args.frames, seed=args.seed)
