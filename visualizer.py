"""
visualizer.py — Live Density Viewer
====================================
Renders the 2D density field as blue ink on a white canvas and wires the
controls (Start / Pause / Reset / Step, viscosity / diffusion / speed
sliders, click-to-inject) to a SimulationDriver.

Every control only enqueues a message; the animation timer drains the
queue on the GUI thread, then reads the density back for drawing.

Uses matplotlib FuncAnimation for real-time updates.
"""

import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from matplotlib.widgets import Button, Slider

from fluid2d import Msg, SimulationDriver


INK_RGB = (0.0, 0.0, 1.0)


def density_to_rgba(density: np.ndarray) -> np.ndarray:
    """
    Map densities to RGBA: pure blue, alpha = density clamped to [0, 1].
    Cells with no (or negative) density are fully transparent.

    Args:
        density : (height, width) array

    Returns:
        (height, width, 4) float32 array
    """
    rgba = np.zeros(density.shape + (4,), dtype=np.float32)
    rgba[..., :3] = INK_RGB
    rgba[..., 3] = np.clip(np.nan_to_num(density, nan=0.0), 0.0, 1.0)
    return rgba


def read_density(simulation) -> np.ndarray:
    """
    Query every cell through density_at, the way the renderer is allowed
    to read the solver.
    """
    w, h = simulation.width, simulation.height
    out = np.empty((h, w), dtype=np.float32)
    for y in range(h):
        for x in range(w):
            out[y, x] = simulation.density_at(x, y)
    return out


class FluidVisualizer:
    """
    Real-time viewer of a driven fluid simulation.

    Usage (standalone):
        from fluid2d import SimulationDriver
        from visualizer import FluidVisualizer

        viz = FluidVisualizer(SimulationDriver())
        viz.run()  # Opens live window
    """

    def __init__(self, driver: SimulationDriver):
        """
        Args:
            driver : SimulationDriver owning the simulation
        """
        self.driver = driver
        self.anim = None
        self._setup_figure()

    def _setup_figure(self):
        """Canvas on top, buttons and sliders underneath."""
        d = self.driver
        canvas_w, canvas_h = d.width * d.scale, d.height * d.scale

        self.fig = plt.figure(figsize=(10, 7))
        self.ax = self.fig.add_axes([0.05, 0.3, 0.9, 0.65])
        self.ax.set_xticks([])
        self.ax.set_yticks([])
        self.ax.set_facecolor('#ffffff')

        # Extent in canvas pixels: click coordinates arrive as pixels
        self.img = self.ax.imshow(
            np.zeros((d.height, d.width, 4), dtype=np.float32),
            extent=(0, canvas_w, canvas_h, 0),
            interpolation='nearest',
            aspect='equal',
        )
        self.title_text = self.ax.set_title("Frame 0 | paused", fontsize=9, fontfamily='monospace')

        self.buttons = []
        for i, (label, msg) in enumerate([("Start", Msg.START), ("Pause", Msg.PAUSE),
                                          ("Reset", Msg.RESET), ("Step", Msg.STEP)]):
            button = Button(self.fig.add_axes([0.05 + i * 0.12, 0.2, 0.1, 0.05]), label)
            button.on_clicked(lambda _event, m=msg: self.driver.send(m))
            self.buttons.append(button)

        self.viscosity_slider = Slider(self.fig.add_axes([0.2, 0.13, 0.6, 0.03]),
                                       "Viscosity", 0.0, 1.0, valinit=d.viscosity, valstep=0.01)
        self.viscosity_slider.on_changed(lambda v: self.driver.send(Msg.SET_VISCOSITY, v))

        self.diffusion_slider = Slider(self.fig.add_axes([0.2, 0.08, 0.6, 0.03]),
                                       "Diffusion", 0.0, 1.0, valinit=d.diffusion, valstep=0.01)
        self.diffusion_slider.on_changed(lambda v: self.driver.send(Msg.SET_DIFFUSION, v))

        self.speed_slider = Slider(self.fig.add_axes([0.2, 0.03, 0.6, 0.03]),
                                   "Speed", 1, 100, valinit=d.speed, valstep=1)
        self.speed_slider.on_changed(self._on_speed)

        self.fig.canvas.mpl_connect('button_press_event', self._on_click)

    def _on_click(self, event):
        """Mouse down on the canvas → inject density under the cursor."""
        if event.inaxes is not self.ax or event.xdata is None or event.ydata is None:
            return
        self.driver.send(Msg.ADD_DENSITY, event.xdata, event.ydata)

    def _on_speed(self, value):
        self.driver.send(Msg.SET_SPEED, value)

    def update(self, frame_num):
        """Called by FuncAnimation each frame. Ticks the driver and redraws."""
        self.driver.send(Msg.TICK)
        self.driver.process_pending()
        if self.anim is not None and self.anim.event_source is not None:
            self.anim.event_source.interval = self.driver.interval_ms

        self.img.set_data(density_to_rgba(read_density(self.driver.simulation)))

        sim = self.driver.simulation
        state = "running" if self.driver.running else "paused"
        status = f"Frame {sim.frame} | {state}"
        if self.driver.last_metrics is not None:
            m = self.driver.last_metrics
            status += f" | {m['total_ms']:.1f}ms | div_max={m['divergence_max']:.5f}"
        self.title_text.set_text(status)

        return [self.img, self.title_text]

    def run(self, frames: int = None):
        """
        Start the live animation window.

        Args:
            frames : Total frames to render (None = infinite)
        """
        self.anim = animation.FuncAnimation(
            self.fig,
            self.update,
            frames=frames,
            interval=self.driver.interval_ms,
            blit=False,
            cache_frame_data=False,
        )
        plt.show()

    def save_gif(self, path: str = "fluid_sim.gif", fps: int = 10, frames: int = 100):
        """Save animation as a GIF (for reports and demos)."""
        print(f"Rendering {frames} frames to {path}...")
        self.anim = animation.FuncAnimation(
            self.fig, self.update, frames=frames, interval=100, blit=False
        )
        writer = animation.PillowWriter(fps=fps)
        self.anim.save(path, writer=writer)
        print(f"Saved: {path}")
