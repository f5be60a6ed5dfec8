"""
forces.py — External Forces (Gravity, Wind, Pushed Sources)
============================================================
Applies body forces and sources to the fields.

Two entry points, deliberately kept apart:
  - apply_forces : a UNIFORM body force over the whole domain
                   (gravity, constant wind)
  - apply_source : a LOCALIZED source with a push — density injected at one
                   cell together with a velocity impulse at the same cell

Everything here accumulates. Nothing is clamped: callers that want bounded
magnitudes must clamp before calling.
"""

from .grid import FluidGrid


def apply_forces(grid: FluidGrid, fx: float, fy: float, dt: float):
    """
    Apply a uniform body force to every cell.

      vx += fx * dt
      vy += fy * dt

    Args:
        fx, fy : Force components (grid cells / s²)
        dt     : Timestep

    Modifies: grid.velocity_x, grid.velocity_y (in-place)
    """
    if fx:
        grid.velocity_x += fx * dt
    if fy:
        grid.velocity_y += fy * dt


def apply_source(grid: FluidGrid, x: int, y: int, amount: float,
                 dx: float = 0.0, dy: float = 0.0):
    """
    Inject density and a velocity push at a single cell
    (e.g. a nozzle, or a click-and-drag in the UI).

    Args:
        x, y   : Cell indices
        amount : Density to add
        dx, dy : Velocity impulse to add at the same cell

    Out-of-range coordinates are ignored, like the point injectors.
    """
    grid.add_density(x, y, amount)
    grid.add_velocity(x, y, dx, dy)
