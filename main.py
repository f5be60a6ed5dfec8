"""
main.py — Master Entry Point
=============================
Top-level script that runs everything.

Usage:
    python main.py --mode live        # Interactive window (click to add ink)
    python main.py                    # Headless run, prints stats
    python main.py --mode benchmark   # Per-stage timing breakdown
    python main.py --mode gif         # Render a short GIF
"""

import argparse
import numpy as np


def _seed_demo(sim, push: float = 20.0):
    """Ink blob in the middle of the grid with a sideways push."""
    cx, cy = sim.width // 2, sim.height // 2
    for dy in range(-2, 3):
        for dx in range(-2, 3):
            sim.add_source(cx + dx, cy + dy, 5.0, push, 0.0)


def run_live(width: int, height: int, dt: float):
    """Live interactive visualization."""
    from fluid2d import SimulationDriver
    from visualizer import FluidVisualizer

    print(f"Starting live simulation ({width}x{height})...")
    print("Click the canvas to add ink, press Start to run. Close the window to exit.\n")

    viz = FluidVisualizer(SimulationDriver(width, height, dt=dt))
    viz.run()


def run_gif(width: int, height: int, dt: float, frames: int, path: str = "fluid_sim.gif"):
    """Render a headless animation of the demo blob to a GIF."""
    import matplotlib
    matplotlib.use("Agg")
    from fluid2d import SimulationDriver, Msg
    from visualizer import FluidVisualizer

    driver = SimulationDriver(width, height, dt=dt)
    _seed_demo(driver.simulation)
    driver.send(Msg.START)
    viz = FluidVisualizer(driver)
    viz.save_gif(path, frames=frames)


def run_headless(width: int, height: int, frames: int, dt: float,
                 diffusion: float, viscosity: float):
    """Run simulation without display — prints stats every 10 frames."""
    from fluid2d import FluidSimulation

    print(f"\nHeadless simulation | {width}x{height} | {frames} frames")
    print(f"{'─'*60}")

    sim = FluidSimulation(width, height, viscosity=viscosity)
    total_times = []

    for f in range(frames):
        _seed_demo(sim)
        metrics = sim.step(dt, diffusion)
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            print(f"  Frame {f:03d} | {metrics['total_ms']:6.1f}ms "
                  f"({metrics['fps']:.1f} FPS) | "
                  f"div_max={metrics['divergence_max']:.5f} | "
                  f"density={metrics['density_total']:.1f}")

    print(f"\n{'─'*60}")
    print(f"  Average: {np.mean(total_times):.1f}ms/frame ({1000/np.mean(total_times):.1f} FPS)")
    print(f"  Min:     {np.min(total_times):.1f}ms")
    print(f"  Max:     {np.max(total_times):.1f}ms")
    sim.print_status()


def run_benchmark(width: int, height: int, frames: int, dt: float,
                  diffusion: float, viscosity: float):
    """
    Detailed performance breakdown.
    Shows how long each physics stage takes.
    """
    from fluid2d import FluidSimulation

    print(f"\n{'='*60}")
    print(f"  PHYSICS BENCHMARK | {width}x{height} | {frames} frames")
    print(f"{'='*60}")

    sim = FluidSimulation(width, height, viscosity=viscosity)

    # Warm up
    for _ in range(5):
        _seed_demo(sim)
        sim.step(dt, diffusion)

    logs = []
    for _ in range(frames):
        _seed_demo(sim)
        logs.append(sim.step(dt, diffusion))

    keys = ["advect_ms", "diffuse_ms", "forces_ms", "project_ms", "total_ms"]

    print(f"\n{'Stage':<20} {'Mean':>8} {'Min':>8} {'Max':>8}")
    print(f"{'─'*50}")
    for k in keys:
        vals = [m[k] for m in logs]
        print(f"  {k:<18} {np.mean(vals):>7.1f}ms {np.min(vals):>7.1f}ms {np.max(vals):>7.1f}ms")

    total_vals = [m["total_ms"] for m in logs]
    print(f"\n{'─'*50}")
    print(f"  FPS (physics only): {1000/np.mean(total_vals):.1f}")


if __name__ == "__main__":
    from fluid2d.driver import SIM_W, SIM_H, DEFAULT_DT, DEFAULT_DIFFUSION, DEFAULT_VISCOSITY

    parser = argparse.ArgumentParser(description="2D Stable Fluids Simulation")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark", "gif"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--width",     type=int,   default=SIM_W, help=f"Grid width (default: {SIM_W})")
    parser.add_argument("--height",    type=int,   default=SIM_H, help=f"Grid height (default: {SIM_H})")
    parser.add_argument("--frames",    type=int,   default=100,   help="Number of frames")
    parser.add_argument("--dt",        type=float, default=DEFAULT_DT,        help="Timestep")
    parser.add_argument("--diffusion", type=float, default=DEFAULT_DIFFUSION, help="Density diffusion [0, 1]")
    parser.add_argument("--viscosity", type=float, default=DEFAULT_VISCOSITY, help="Viscosity [0, 1]")

    args = parser.parse_args()

    if args.mode == "live":
        run_live(args.width, args.height, args.dt)
    elif args.mode == "headless":
        run_headless(args.width, args.height, args.frames, args.dt, args.diffusion, args.viscosity)
    elif args.mode == "benchmark":
        run_benchmark(args.width, args.height, args.frames, args.dt, args.diffusion, args.viscosity)
    elif args.mode == "gif":
        run_gif(args.width, args.height, args.dt, args.frames)
