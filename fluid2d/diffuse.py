"""
diffuse.py — Diffusion via Gauss-Seidel Relaxation
===================================================
Diffusion makes fluids spread out over time.
  - High diffusion  → density spreads fast (ink in warm water)
  - Low diffusion   → density stays tight
  - High viscosity  → thick fluid (honey)
  - Low viscosity   → thin fluid (air, water)

The math: We need to solve the implicit heat equation:
  (I - a·∇²) x_new = x_old

where a = dt * rate * (width-2) * (height-2)

Implicit diffusion is unconditionally stable — large dt or a large
coefficient smooths more, it never blows up.

We don't solve it exactly. A fixed 20 relaxation sweeps per step:
  x[i,j] = (x_old[i,j] + a * (sum of 4 neighbours)) / (1 + 4a)

The same relaxation kernel is reused by the pressure solve (solver.py),
with a = 1 and divisor 4.

Sweep ordering
--------------
  "sequential" : classic in-place Gauss-Seidel, row by row, left to right.
                 Bit-reproducible, but a pure Python loop — slow.
  "red-black"  : colour the cells like a checkerboard, update all red
                 cells (vectorized), then all black cells. Each colour only
                 reads the other colour, so a sweep is two NumPy ops.

Both are Gauss-Seidel iterations for the same linear system and converge
to the same fixed point; they differ only in the intermediate iterates.
"""

from functools import lru_cache

import numpy as np
from .grid import FluidGrid, pin_boundary, extend_boundary


ORDER_RED_BLACK  = "red-black"
ORDER_SEQUENTIAL = "sequential"
ORDERINGS = (ORDER_RED_BLACK, ORDER_SEQUENTIAL)

DEFAULT_ITERATIONS = 20


@lru_cache(maxsize=32)
def _checkerboard(shape: tuple) -> tuple:
    """(red, black) boolean masks over the interior of a field of `shape`."""
    h, w = shape
    jj, ii = np.mgrid[1:h - 1, 1:w - 1]
    red = (ii + jj) % 2 == 0
    red.setflags(write=False)
    black = ~red
    black.setflags(write=False)
    return red, black


def _sweep_red_black(x: np.ndarray, b: np.ndarray, a: float, c: float):
    interior = x[1:-1, 1:-1]
    for mask in _checkerboard(x.shape):
        neighbors = (
            x[1:-1, :-2] +   # left
            x[1:-1, 2:]  +   # right
            x[:-2, 1:-1] +   # up
            x[2:,  1:-1]     # down
        )
        updated = (b[1:-1, 1:-1] + a * neighbors) / c
        interior[mask] = updated[mask]


def _sweep_sequential(x: np.ndarray, b: np.ndarray, a: float, c: float):
    h, w = x.shape
    for j in range(1, h - 1):
        for i in range(1, w - 1):
            x[j, i] = (b[j, i] + a * (x[j, i - 1] + x[j, i + 1] +
                                      x[j - 1, i] + x[j + 1, i])) / c


def relax(
    x: np.ndarray,
    b: np.ndarray,
    a: float,
    c: float,
    boundary,
    iterations: int = DEFAULT_ITERATIONS,
    ordering: str = ORDER_RED_BLACK,
) -> np.ndarray:
    """
    Gauss-Seidel solver for the 5-point system
      x[i,j] = (b[i,j] + a * sum_of_4_neighbours) / c

    Only interior cells are solved for; `boundary(x)` is applied after
    every sweep so the next sweep never reads stale border values.

    Args:
        x          : 2D field, refined IN PLACE (also the initial guess)
        b          : Right-hand side, same shape, must not alias x
        a          : Neighbour weight
        c          : Divisor
        boundary   : Callable fixing up the border of x (pin or extend)
        iterations : Number of sweeps
        ordering   : "red-black" (vectorized) or "sequential"

    Returns:
        x (the same array)
    """
    if ordering == ORDER_RED_BLACK:
        sweep = _sweep_red_black
    elif ordering == ORDER_SEQUENTIAL:
        sweep = _sweep_sequential
    else:
        raise ValueError(f"Unknown ordering: {ordering}. Use one of {ORDERINGS}.")

    for _ in range(iterations):
        sweep(x, b, a, c)
        boundary(x)
    return x


def diffusion_coefficient(grid: FluidGrid, dt: float, rate: float) -> float:
    """a = dt * rate * (width-2) * (height-2)"""
    return dt * rate * (grid.width - 2) * (grid.height - 2)


def diffuse_density(grid: FluidGrid, dt: float, diffusion: float,
                    iterations: int = DEFAULT_ITERATIONS,
                    ordering: str = ORDER_RED_BLACK):
    """
    Apply diffusion to the density field.

    The border is pinned to zero after every sweep (absorbing wall), so
    after this call the density border is exactly 0.0 — even when
    `diffusion` is 0 and the interior is left untouched.

    Modifies: grid.density (in-place)
    """
    if not grid.has_interior:
        grid.set_density_boundary()
        return

    a = diffusion_coefficient(grid, dt, diffusion)
    x = grid.view(grid.density)

    # Back buffer doubles as the x_old snapshot
    x_old = grid.density_back()
    x_old[...] = x

    relax(x, x_old, a, 1.0 + 4.0 * a, pin_boundary, iterations, ordering)
    pin_boundary(x)


def diffuse_velocity(grid: FluidGrid, dt: float, viscosity: float,
                     iterations: int = DEFAULT_ITERATIONS,
                     ordering: str = ORDER_RED_BLACK):
    """
    Apply viscous diffusion to both velocity components.

    Velocity borders copy the interior (same policy as projection).

    Modifies: grid.velocity_x, grid.velocity_y (in-place)
    """
    if viscosity == 0.0 or not grid.has_interior:
        return  # Skip for inviscid fluids

    a = diffusion_coefficient(grid, dt, viscosity)
    old_x, old_y = grid.velocity_back()
    for field, old in ((grid.velocity_x, old_x), (grid.velocity_y, old_y)):
        x = grid.view(field)
        old[...] = x
        relax(x, old, a, 1.0 + 4.0 * a, extend_boundary, iterations, ordering)
