"""
advect.py — Semi-Lagrangian Advection
======================================
This is what makes fluid look like it's *actually flowing*.

The algorithm (per cell):
  1. Look at the current cell center (x, y).
  2. Trace BACKWARD along the velocity field by one timestep (dt).
     → "Where did the stuff in this cell come FROM?"
  3. Clamp that position to the grid (clamp-to-edge, open boundary).
  4. Sample the previous field there with bilinear interpolation
     (it'll land between grid cells).
  5. Write the sample into the back buffer, then swap it in.

Step 5 matters: every cell reads the SAME snapshot of the old field.
Writing into the field being read would smear values along the sweep.

Velocities are in grid cells per unit time: a cell with vx = 2 and
dt = 0.5 pulls its value from exactly one cell to the left.

Key reference: Jos Stam, "Stable Fluids" (SIGGRAPH 1999)
"""

import numpy as np
from .grid import FluidGrid


def bilinear_sample(field: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """
    Bilinear interpolation of a 2D (height, width) field at arbitrary positions.

    Positions are clamped to [0, width-1] × [0, height-1]. On the last
    column/row the missing neighbour is the edge sample itself, so the
    boundary behaves as clamp (not wrap, not reflect).

    Args:
        field : 2D array to sample from
        x, y  : Query positions (same shape, can be fractional)

    Returns:
        Interpolated values, same shape as x/y
    """
    h, w = field.shape

    x = np.clip(x, 0, w - 1)
    y = np.clip(y, 0, h - 1)

    # Lower corner, always a valid index (NaN positions included)
    x0 = np.clip(np.floor(x).astype(np.int32), 0, w - 1)
    y0 = np.clip(np.floor(y).astype(np.int32), 0, h - 1)
    x1 = np.minimum(x0 + 1, w - 1)
    y1 = np.minimum(y0 + 1, h - 1)

    # Fractional weights, kept in float32
    sx = x - x0.astype(np.float32)
    sy = y - y0.astype(np.float32)

    d00 = field[y0, x0]
    d10 = field[y0, x1]
    d01 = field[y1, x0]
    d11 = field[y1, x1]

    # Lerp along X on both rows, then along Y
    d0 = d00 * (1 - sx) + d10 * sx
    d1 = d01 * (1 - sx) + d11 * sx
    return d0 * (1 - sy) + d1 * sy


def _back_trace(grid: FluidGrid, dt: float) -> tuple:
    """Source positions x - vx*dt, y - vy*dt for every cell."""
    vx = grid.view(grid.velocity_x)
    vy = grid.view(grid.velocity_y)
    return grid.cell_x - vx * dt, grid.cell_y - vy * dt


def advect_density(grid: FluidGrid, dt: float):
    """
    Advect the density field through the current velocity field.

    Modifies: grid.density (via back buffer + swap)
    """
    x_src, y_src = _back_trace(grid, dt)
    out = grid.density_back()
    out[...] = bilinear_sample(grid.view(grid.density), x_src, y_src)
    grid.swap_density()


def advect_velocity(grid: FluidGrid, dt: float):
    """
    Advect the velocity field through itself (self-advection).

    Both components are traced from the same positions and sampled from
    the same pre-advection snapshot, so vx and vy stay consistent.

    Modifies: grid.velocity_x, grid.velocity_y (via back buffers + swap)
    """
    x_src, y_src = _back_trace(grid, dt)
    out_x, out_y = grid.velocity_back()
    out_x[...] = bilinear_sample(grid.view(grid.velocity_x), x_src, y_src)
    out_y[...] = bilinear_sample(grid.view(grid.velocity_y), x_src, y_src)
    grid.swap_velocity()
