"""
grid.py — Flat Row-Major Field Store
=====================================
The foundation of the entire simulation.

Layout:
  - Density `d`, velocity `vx` and `vy` all live at CELL CENTERS
  - Each field is ONE contiguous float32 array of length width*height
  - Cell (x, y) lives at flat offset  x + y*width  (row-major)

The physics stages never copy the fields to work on them: they take a
(height, width) view of the same buffer, so `view[y, x]` and
`flat[x + y*width]` are the same number.

Boundary policies used by the stages:
  - Density: border pinned to 0 (absorbing wall)
  - Velocity, pressure, divergence: border copies the nearest interior cell
"""

import numpy as np


# Largest cell count whose flat offsets still fit a signed 32-bit index.
MAX_CELLS = np.iinfo(np.int32).max


def pin_boundary(x: np.ndarray):
    """Set every border cell of a 2D field to zero."""
    x[0, :] = 0.0
    x[-1, :] = 0.0
    x[:, 0] = 0.0
    x[:, -1] = 0.0


def extend_boundary(x: np.ndarray):
    """
    Copy the nearest interior cell onto every border cell (Neumann BC).
    Corners end up with their diagonal interior neighbour.
    """
    x[0, :] = x[1, :]
    x[-1, :] = x[-2, :]
    x[:, 0] = x[:, 1]
    x[:, -1] = x[:, -2]


class FluidGrid:
    """
    W×H grid storing all simulation state.
    This is the single source of truth passed between all physics steps.
    """

    def __init__(self, width: int, height: int):
        """
        Args:
            width  : Number of cells along X (columns)
            height : Number of cells along Y (rows)

        Raises:
            ValueError if either dimension is not a positive integer, or the
            grid is too large to index.
        """
        for name, value in (("width", width), ("height", height)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if int(width) * int(height) > MAX_CELLS:
            raise ValueError(f"Grid {width}x{height} exceeds {MAX_CELLS} cells")

        self._width = int(width)
        self._height = int(height)
        size = self._width * self._height

        # ── Fields (cell-centered) ─────────────────────────────────────────
        self.density    = np.zeros(size, dtype=np.float32)
        self.velocity_x = np.zeros(size, dtype=np.float32)
        self.velocity_y = np.zeros(size, dtype=np.float32)

        # Back buffers: advection writes here, then ownership is swapped
        self._density_back    = np.zeros_like(self.density)
        self._velocity_x_back = np.zeros_like(self.velocity_x)
        self._velocity_y_back = np.zeros_like(self.velocity_y)

        # Cell-center coordinates, used for back-tracing
        ys, xs = np.mgrid[0:self._height, 0:self._width]
        self.cell_x = xs.astype(np.float32)
        self.cell_y = ys.astype(np.float32)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def shape(self) -> tuple:
        """(height, width) — the shape of every 2D view."""
        return self._height, self._width

    @property
    def has_interior(self) -> bool:
        """Diffusion and projection need a one-cell margin on every side."""
        return self._width >= 3 and self._height >= 3

    def view(self, field: np.ndarray) -> np.ndarray:
        """2D (height, width) view sharing memory with a flat field."""
        return field.reshape(self._height, self._width)

    def index(self, x, y):
        """
        Flat offset of cell (x, y), or None when the coordinate is not a
        valid integer cell. Never raises.
        """
        if isinstance(x, bool) or isinstance(y, bool):
            return None
        if not isinstance(x, (int, np.integer)) or not isinstance(y, (int, np.integer)):
            return None
        if 0 <= x < self._width and 0 <= y < self._height:
            return int(x) + int(y) * self._width
        return None

    def density_at(self, x, y) -> float:
        """Density at (x, y); 0.0 for any coordinate outside the grid."""
        idx = self.index(x, y)
        if idx is None:
            return 0.0
        return float(self.density[idx])

    def velocity_at(self, x, y) -> tuple:
        """(vx, vy) at (x, y); (0.0, 0.0) outside the grid."""
        idx = self.index(x, y)
        if idx is None:
            return 0.0, 0.0
        return float(self.velocity_x[idx]), float(self.velocity_y[idx])

    def add_density(self, x, y, amount: float):
        """
        Inject density at cell (x, y). Accumulates, no clamping.
        Out-of-range coordinates are ignored.
        """
        idx = self.index(x, y)
        if idx is None:
            return
        self.density[idx] += amount

    def add_velocity(self, x, y, dx: float, dy: float):
        """
        Add a velocity impulse (dx, dy) at cell (x, y).
        Out-of-range coordinates are ignored.
        """
        idx = self.index(x, y)
        if idx is None:
            return
        self.velocity_x[idx] += dx
        self.velocity_y[idx] += dy

    # ── Double buffering ──────────────────────────────────────────────────

    def density_back(self) -> np.ndarray:
        """2D view of the density back buffer (scratch, overwritten by the writer)."""
        return self.view(self._density_back)

    def velocity_back(self) -> tuple:
        return self.view(self._velocity_x_back), self.view(self._velocity_y_back)

    def swap_density(self):
        """Make the back buffer the live density field."""
        self.density, self._density_back = self._density_back, self.density

    def swap_velocity(self):
        self.velocity_x, self._velocity_x_back = self._velocity_x_back, self.velocity_x
        self.velocity_y, self._velocity_y_back = self._velocity_y_back, self.velocity_y

    # ── Boundary conditions ───────────────────────────────────────────────

    def set_density_boundary(self):
        """Absorbing wall: border density is exactly zero."""
        pin_boundary(self.view(self.density))

    def set_velocity_boundary(self):
        """
        Border velocity copies the adjacent interior cell, component-wise,
        so flow does not pile up at the domain edge.
        """
        if not self.has_interior:
            return
        extend_boundary(self.view(self.velocity_x))
        extend_boundary(self.view(self.velocity_y))

    # ── Diagnostics ───────────────────────────────────────────────────────

    def compute_divergence(self) -> np.ndarray:
        """
        Discrete divergence used by the pressure solve, with h = 1/width:
          div = -0.5 * (vx[right] - vx[left] + vy[down] - vy[up]) / width

        Returns: (height, width) array, zero on the border.
        """
        div = np.zeros(self.shape, dtype=np.float32)
        if not self.has_interior:
            return div
        vx = self.view(self.velocity_x)
        vy = self.view(self.velocity_y)
        div[1:-1, 1:-1] = -0.5 * (
            vx[1:-1, 2:] - vx[1:-1, :-2] +
            vy[2:, 1:-1] - vy[:-2, 1:-1]
        ) / self._width
        return div

    def snapshot(self) -> dict:
        """
        Copy of the current state as 2D arrays. Safe to hand to a renderer
        or to save; mutating it never touches the live fields.
        """
        return {
            "density":    self.view(self.density).copy(),
            "velocity_x": self.view(self.velocity_x).copy(),
            "velocity_y": self.view(self.velocity_y).copy(),
        }

    def reset(self):
        """Zero out all fields."""
        for arr in [self.density, self.velocity_x, self.velocity_y,
                    self._density_back, self._velocity_x_back, self._velocity_y_back]:
            arr[:] = 0.0

    def __repr__(self):
        max_div = float(np.abs(self.compute_divergence()).max())
        speed = np.hypot(self.velocity_x, self.velocity_y)
        return (
            f"FluidGrid(width={self._width}, height={self._height})\n"
            f"  density  : max={self.density.max():.4f}, sum={self.density.sum():.2f}\n"
            f"  velocity : max_magnitude={speed.max():.4f}\n"
            f"  divergence: max={max_div:.6f} (target: ~0)"
        )
