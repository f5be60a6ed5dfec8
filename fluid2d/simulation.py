"""
simulation.py — Master Physics Loop
====================================
This is the complete simulation step that ties everything together.
One call to `step()` advances the fluid by dt.

Physics pipeline per frame:
  1. Advect density (and velocity, by itself)
  2. Diffuse density (and velocity, when viscosity > 0)
  3. Apply the constant body force (gravity, wind)
  4. Project velocity (enforce incompressibility)

Point injection (add_density / add_velocity / add_source / apply_forces)
can happen at any time between steps; it accumulates until the next step.

The simulation has no clock: time only exists as the `dt` handed to step().
Calls into one instance must come from a single owner, in sequence.
"""

import time
from collections import deque

import numpy as np
from .grid import FluidGrid
from .advect import advect_density, advect_velocity
from .diffuse import diffuse_density, diffuse_velocity, DEFAULT_ITERATIONS, ORDER_RED_BLACK, ORDERINGS
from .forces import apply_forces, apply_source
from .solver import project


# Per-frame metrics kept for print_status and benchmarks
PERF_LOG_FRAMES = 1000


class FluidSimulation:
    """
    The complete 2D fluid simulation.

    Usage:
        sim = FluidSimulation(64, 64)
        sim.add_density(32, 32, 100.0)
        for frame in range(100):
            sim.step(dt=0.1, diffusion=0.0001)
            d = sim.density_at(32, 32)      # Hand to renderer
    """

    def __init__(self, width: int, height: int,
                 viscosity: float = 0.0,
                 body_force: tuple = (0.0, 0.0),
                 iterations: int = DEFAULT_ITERATIONS,
                 ordering: str = ORDER_RED_BLACK,
                 self_advect: bool = True):
        """
        Args:
            width, height : Grid resolution in cells (positive integers)
            viscosity     : Default fluid thickness used by step()
                            (0 = inviscid, skips velocity diffusion)
            body_force    : (fx, fy) applied to every cell each step (e.g. gravity)
            iterations    : Gauss-Seidel sweeps for diffusion and pressure
            ordering      : "red-black" (vectorized) or "sequential"
            self_advect   : Also advect velocity through itself each step

        Raises:
            ValueError for invalid dimensions or an unknown ordering.
        """
        if ordering not in ORDERINGS:
            raise ValueError(f"Unknown ordering: {ordering}. Use one of {ORDERINGS}.")

        self.grid = FluidGrid(width, height)
        self.viscosity = viscosity
        self.body_force = tuple(body_force)
        self.iterations = iterations
        self.ordering = ordering
        self.self_advect = self_advect
        self.frame = 0
        self.perf_log = deque(maxlen=PERF_LOG_FRAMES)   # most recent frames only

    # ── Read-only accessors ────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self.grid.width

    @property
    def height(self) -> int:
        return self.grid.height

    def density_at(self, x, y) -> float:
        """Density at (x, y); 0.0 outside the grid. Never raises."""
        return self.grid.density_at(x, y)

    def velocity_at(self, x, y) -> tuple:
        return self.grid.velocity_at(x, y)

    def snapshot(self) -> dict:
        """Copies of the current fields plus the frame number."""
        state = self.grid.snapshot()
        state["frame"] = self.frame
        return state

    # ── Injection ──────────────────────────────────────────────────────────

    def add_density(self, x, y, amount: float):
        """Add density at one cell. Out-of-range coordinates are ignored."""
        self.grid.add_density(x, y, amount)

    def add_velocity(self, x, y, dx: float, dy: float):
        """Add a velocity impulse at one cell. Out-of-range coordinates are ignored."""
        self.grid.add_velocity(x, y, dx, dy)

    def apply_forces(self, fx: float, fy: float, dt: float):
        """Uniform body force over the whole grid: v += f * dt."""
        apply_forces(self.grid, fx, fy, dt)

    def add_source(self, x, y, amount: float, dx: float = 0.0, dy: float = 0.0):
        """
        Localized source with a push: density and a velocity impulse at the
        same cell. Not the same thing as apply_forces.
        """
        apply_source(self.grid, x, y, amount, dx, dy)

    def reset(self):
        """Back to an all-zero state. Dimensions and settings are kept."""
        self.grid.reset()
        self.frame = 0
        self.perf_log.clear()
        print(f"[Simulation] Reset {self.width}x{self.height} grid")

    # ── Stepping ───────────────────────────────────────────────────────────

    def step(self, dt: float, diffusion: float, viscosity: float = None) -> dict:
        """
        Advance simulation by one timestep.

        Returns performance metrics dict for benchmarking.

        Args:
            dt        : Timestep (small positive)
            diffusion : Density diffusion coefficient, in [0, 1]
            viscosity : Velocity diffusion coefficient, in [0, 1].
                        None = use the value given at construction.
        """
        if viscosity is None:
            viscosity = self.viscosity

        t_total_start = time.perf_counter()
        g = self.grid

        # ── Step 1: Advect ─────────────────────────────────────────────────
        t0 = time.perf_counter()
        advect_density(g, dt)
        if self.self_advect:
            advect_velocity(g, dt)
        t_advect = (time.perf_counter() - t0) * 1000

        # ── Step 2: Diffuse ────────────────────────────────────────────────
        t0 = time.perf_counter()
        diffuse_density(g, dt, diffusion, self.iterations, self.ordering)
        diffuse_velocity(g, dt, viscosity, self.iterations, self.ordering)
        t_diffuse = (time.perf_counter() - t0) * 1000

        # ── Step 3: Body force ─────────────────────────────────────────────
        t0 = time.perf_counter()
        fx, fy = self.body_force
        apply_forces(g, fx, fy, dt)
        t_forces = (time.perf_counter() - t0) * 1000

        # ── Step 4: Project ────────────────────────────────────────────────
        t0 = time.perf_counter()
        proj_metrics = project(g, self.iterations, self.ordering)
        t_project = (time.perf_counter() - t0) * 1000

        # ── Frame bookkeeping ──────────────────────────────────────────────
        self.frame += 1
        t_total = (time.perf_counter() - t_total_start) * 1000

        metrics = {
            "frame"           : self.frame,
            "total_ms"        : t_total,
            "fps"             : 1000.0 / t_total if t_total > 0 else 0,
            "advect_ms"       : t_advect,
            "diffuse_ms"      : t_diffuse,
            "forces_ms"       : t_forces,
            "project_ms"      : t_project,
            "divergence_max"  : proj_metrics["divergence_after_max"],
            "divergence_mean" : proj_metrics["divergence_after_mean"],
            "density_total"   : float(g.density.sum()),
        }
        self.perf_log.append(metrics)
        return metrics

    def print_status(self):
        """Pretty-print current simulation state."""
        g = self.grid
        div = np.abs(g.compute_divergence())
        print(f"\n{'='*50}")
        print(f"  Frame: {self.frame}  |  Grid: {self.width}x{self.height}  |  {self.ordering}")
        print(f"  Density   : max={g.density.max():.4f}, total={g.density.sum():.2f}")
        print(f"  Velocity  : max_x={np.abs(g.velocity_x).max():.4f}, "
              f"max_y={np.abs(g.velocity_y).max():.4f}")
        print(f"  Divergence: max={div.max():.6f}, mean={div.mean():.8f}")
        if self.perf_log:
            last = self.perf_log[-1]
            print(f"  Perf      : {last['total_ms']:.1f}ms/frame ({last['fps']:.1f} FPS)")
        print(f"{'='*50}")


def create(width: int, height: int, **kwargs) -> FluidSimulation:
    """Zero-initialized simulation of width × height cells."""
    return FluidSimulation(width, height, **kwargs)
