"""
driver.py — Command Queue Driver
=================================
The simulation itself is purely reactive. Something else has to decide
WHEN a step happens and translate user input into grid coordinates.

That "something" is modelled here as a message queue feeding one consumer:
  - Producers (UI callbacks, timers, other threads) call `send()`.
    queue.Queue makes that safe from any thread.
  - The consumer calls `process_pending()` on ONE thread. Only that call
    ever touches the FluidSimulation, so the solver never sees
    concurrent access.

Pointer input arrives in canvas pixels; each grid cell is SCALE×SCALE
pixels on screen.
"""

import queue
from enum import Enum

from .simulation import FluidSimulation


SIM_W = 256
SIM_H = 144
SCALE = 4

CLICK_DENSITY     = 1000.0
DEFAULT_VISCOSITY = 0.1
DEFAULT_DIFFUSION = 0.1
DEFAULT_SPEED     = 50      # ticks per second, once the slider is moved
START_INTERVAL_MS = 100     # timer period right after Start
DEFAULT_DT        = 0.1

SPEED_MIN, SPEED_MAX = 1, 100


class Msg(Enum):
    START         = "start"
    PAUSE         = "pause"
    RESET         = "reset"
    STEP          = "step"
    TICK          = "tick"
    SET_VISCOSITY = "set_viscosity"
    SET_DIFFUSION = "set_diffusion"
    SET_SPEED     = "set_speed"
    ADD_DENSITY   = "add_density"


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


class SimulationDriver:
    """
    Owns one FluidSimulation and the knobs a UI exposes for it.

    Usage:
        driver = SimulationDriver()
        driver.send(Msg.ADD_DENSITY, 512, 288)   # canvas pixels
        driver.send(Msg.START)
        driver.send(Msg.TICK)
        driver.process_pending()
    """

    def __init__(self, width: int = SIM_W, height: int = SIM_H, scale: int = SCALE,
                 dt: float = DEFAULT_DT):
        self.width = width
        self.height = height
        self.scale = scale
        self.dt = dt

        self.simulation = FluidSimulation(width, height)
        self.running = False
        self.viscosity = DEFAULT_VISCOSITY
        self.diffusion = DEFAULT_DIFFUSION
        self.speed = DEFAULT_SPEED
        self.interval_ms = START_INTERVAL_MS
        self.last_metrics = None

        self._queue = queue.Queue()

    def send(self, msg: Msg, *payload):
        """Enqueue a command. Safe to call from any thread."""
        if not isinstance(msg, Msg):
            raise ValueError(f"Unknown message: {msg!r}")
        self._queue.put((msg, payload))

    def process_pending(self) -> int:
        """
        Drain the queue, handling commands in arrival order.
        Must be called from the consumer thread only.

        Returns: number of commands handled
        """
        handled = 0
        while True:
            try:
                msg, payload = self._queue.get_nowait()
            except queue.Empty:
                return handled
            self._handle(msg, payload)
            handled += 1

    def pixel_to_cell(self, px: float, py: float) -> tuple:
        """Canvas pixel → grid cell (may be outside the grid)."""
        return int(px) // self.scale, int(py) // self.scale

    def _advance(self):
        self.last_metrics = self.simulation.step(
            self.dt, self.diffusion, viscosity=self.viscosity
        )

    def _handle(self, msg: Msg, payload: tuple):
        if msg is Msg.START:
            self.running = True
            self.interval_ms = START_INTERVAL_MS
            print(f"[Driver] Running, one tick every {self.interval_ms}ms")
        elif msg is Msg.PAUSE:
            self.running = False
            print("[Driver] Paused")
        elif msg is Msg.RESET:
            self.simulation = FluidSimulation(self.width, self.height)
            self.last_metrics = None
        elif msg is Msg.STEP:
            self._advance()
        elif msg is Msg.TICK:
            if self.running:
                self._advance()
        elif msg is Msg.SET_VISCOSITY:
            self.viscosity = _clamp(float(payload[0]), 0.0, 1.0)
        elif msg is Msg.SET_DIFFUSION:
            self.diffusion = _clamp(float(payload[0]), 0.0, 1.0)
        elif msg is Msg.SET_SPEED:
            self.speed = int(_clamp(int(payload[0]), SPEED_MIN, SPEED_MAX))
            # Only a running timer picks up the new speed
            if self.running:
                self.interval_ms = 1000 // self.speed
        elif msg is Msg.ADD_DENSITY:
            x, y = self.pixel_to_cell(*payload)
            self.simulation.add_density(x, y, CLICK_DENSITY)
