"""
fluid2d/ — 2D Stable Fluids Package
====================================
Exports the main interfaces.

Renderers import: FluidSimulation → density_at(), width, height
Drivers import:   SimulationDriver, Msg → send(), process_pending()
"""

from .grid import FluidGrid
from .simulation import FluidSimulation, create
from .driver import SimulationDriver, Msg
from .diffuse import ORDER_RED_BLACK, ORDER_SEQUENTIAL

__all__ = [
    "FluidGrid", "FluidSimulation", "create",
    "SimulationDriver", "Msg",
    "ORDER_RED_BLACK", "ORDER_SEQUENTIAL",
]
