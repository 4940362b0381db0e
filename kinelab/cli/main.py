"""Main CLI entry point for Kinelab."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from kinelab.analysis.compare import compute_differences
from kinelab.analysis.moments import detect_moments, detect_swing_extremes
from kinelab.config import SimulationConfig
from kinelab.errors import UnsupportedMotionModelError
from kinelab.models.params import Params, PendulumParams, create_params
from kinelab.physics.metrics import metrics_for
from kinelab.replay.timeline import TimelineBuilder
from kinelab.world.scheduler import DualWorldScheduler
from kinelab.world.world import World

app = typer.Typer(
    name="kinelab",
    help="Kinelab - projectile and pendulum simulation with deterministic replay",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Load .env overrides and configure logging."""
    load_dotenv()
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def _build_params(model: str, **values: Any) -> Params:
    try:
        return create_params(model, **{k: v for k, v in values.items() if v is not None})
    except UnsupportedMotionModelError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def simulate(
    model: str = typer.Option("projectile", "--model", "-m", help="Motion model (projectile, pendulum)"),
    v0: Optional[float] = typer.Option(None, "--v0", help="Launch speed, m/s"),
    angle: Optional[float] = typer.Option(None, "--angle", help="Launch angle, degrees"),
    gravity: Optional[float] = typer.Option(None, "--gravity", "-g", help="Gravity, m/s^2"),
    drag: Optional[float] = typer.Option(None, "--drag", help="Quadratic drag coefficient"),
    height: Optional[float] = typer.Option(None, "--height", help="Launch height, m"),
    length: Optional[float] = typer.Option(None, "--length", help="Pendulum length, m"),
    damping: Optional[float] = typer.Option(None, "--damping", help="Pendulum damping, 1/s"),
    amplitude: Optional[float] = typer.Option(None, "--amplitude", help="Release angle, degrees"),
    max_steps: int = typer.Option(1200, "--max-steps", "-n", help="Step budget for the live run"),
):
    """
    Run a live world headlessly at the fixed 1/60 s tick.

    Projectiles stop on landing; pendulums run for the whole step budget.
    """
    params = _build_params(
        model, v0=v0, angle=angle, gravity=gravity, drag=drag, height=height,
        length=length, damping=damping, amplitude=amplitude,
    )
    world = World(params, config=SimulationConfig.from_env())
    snapshot = world.run(max_steps=max_steps)

    table = Table(title=f"{params.motion.value.title()} run", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Steps", str(world.steps))
    table.add_row("Time", f"{snapshot.t:.3f} s")
    table.add_row("Position", f"({snapshot.x:.3f}, {snapshot.y:.3f}) m")
    table.add_row("Landed", str(snapshot.landed))
    for name, value in vars(metrics_for(params)).items():
        if value is not None:
            table.add_row(name.replace("_", " ").title(), f"{value:.3f}")
    console.print(table)

    if isinstance(params, PendulumParams):
        moments = detect_swing_extremes(world.archive or snapshot.history)
    else:
        moments = detect_moments(snapshot.history)
    _display_moments(moments)


@app.command()
def compare(
    v0: float = typer.Option(50.0, "--v0", help="Shared launch speed, m/s"),
    angle: float = typer.Option(45.0, "--angle", help="Shared launch angle, degrees"),
    gravity_a: float = typer.Option(9.81, "--gravity-a", help="World A gravity"),
    gravity_b: float = typer.Option(1.62, "--gravity-b", help="World B gravity"),
    drag_a: float = typer.Option(0.0, "--drag-a", help="World A drag"),
    drag_b: float = typer.Option(0.0, "--drag-b", help="World B drag"),
    max_ticks: int = typer.Option(6000, "--max-ticks", "-n", help="Tick budget"),
):
    """
    Run two projectile worlds in lockstep and compare them.

    Example:
        kinelab compare --gravity-a 9.81 --gravity-b 1.62
    """
    params_a = _build_params("projectile", v0=v0, angle=angle, gravity=gravity_a, drag=drag_a, label="A")
    params_b = _build_params("projectile", v0=v0, angle=angle, gravity=gravity_b, drag=drag_b, label="B")

    scheduler = DualWorldScheduler(params_a, params_b, config=SimulationConfig.from_env())
    snapshot = scheduler.run(max_ticks=max_ticks)
    diff = compute_differences(snapshot.a.history, snapshot.b.history)

    table = Table(title="World comparison")
    table.add_column("Metric", style="cyan")
    table.add_column("A", justify="right")
    table.add_column("B", justify="right")
    table.add_column("B vs A", justify="right")
    table.add_row("Range (m)", f"{diff.a.range:.2f}", f"{diff.b.range:.2f}", f"{diff.range_diff:+.1f}%")
    table.add_row("Max height (m)", f"{diff.a.max_height:.2f}", f"{diff.b.max_height:.2f}", f"{diff.height_diff:+.1f}%")
    table.add_row("Flight time (s)", f"{diff.a.flight_time:.2f}", f"{diff.b.flight_time:.2f}", f"{diff.time_diff:+.1f}%")
    table.add_row("Impact speed (m/s)", f"{diff.a.impact_speed:.2f}", f"{diff.b.impact_speed:.2f}", f"{diff.impact_diff:+.1f}%")
    console.print(table)

    if not scheduler.settled:
        console.print(f"[yellow]Tick budget of {max_ticks} reached before both worlds landed[/yellow]")


@app.command()
def timeline(
    model: str = typer.Option("projectile", "--model", "-m", help="Motion model (projectile, pendulum)"),
    v0: Optional[float] = typer.Option(None, "--v0"),
    angle: Optional[float] = typer.Option(None, "--angle"),
    gravity: Optional[float] = typer.Option(None, "--gravity", "-g"),
    drag: Optional[float] = typer.Option(None, "--drag"),
    height: Optional[float] = typer.Option(None, "--height"),
    length: Optional[float] = typer.Option(None, "--length"),
    damping: Optional[float] = typer.Option(None, "--damping"),
    amplitude: Optional[float] = typer.Option(None, "--amplitude"),
    fps: float = typer.Option(30.0, "--fps", help="Output frame rate"),
    frames: Optional[int] = typer.Option(None, "--frames", "-f", help="Last frame index (required for pendulums)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the trajectory as JSON"),
):
    """Build a deterministic frame-indexed trajectory for replay or export."""
    params = _build_params(
        model, v0=v0, angle=angle, gravity=gravity, drag=drag, height=height,
        length=length, damping=damping, amplitude=amplitude,
    )

    try:
        trajectory = TimelineBuilder(SimulationConfig.from_env()).build(params, fps=fps, duration_frames=frames)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    apex = trajectory.state_at_frame(trajectory.apex_frame)
    lines = [
        f"Frames: {len(trajectory)} at {trajectory.fps:g} fps ({trajectory.total_time:.2f} s)",
        f"Apex: frame {trajectory.apex_frame} at ({apex.x:.2f}, {apex.y:.2f}) m",
    ]
    if trajectory.landing_frame is not None:
        landing = trajectory.state_at_frame(trajectory.landing_frame)
        lines.append(f"Landing: frame {trajectory.landing_frame} at x = {landing.x:.2f} m")
    lines.append(f"Extents: {trajectory.max_x:.2f} x {trajectory.max_y:.2f} m")
    if trajectory.ghost:
        lines.append("[dim]Drag-free ghost trajectory included[/dim]")
    console.print(Panel("\n".join(lines), title="Trajectory", border_style="blue"))

    if output:
        output.write_text(trajectory.model_dump_json(indent=2))
        console.print(f"\n[green]Trajectory saved to {output}[/green]")


def _display_moments(moments):
    """Display detected moments as a tree."""
    if not moments:
        console.print("[dim]No key moments detected[/dim]")
        return

    tree = Tree("Key moments")
    for moment in moments[:20]:
        node = tree.add(f"[{moment.time:.3f}s] [cyan]{moment.type.value}[/cyan]")
        node.add(moment.description)
    if len(moments) > 20:
        tree.add(f"[dim]... and {len(moments) - 20} more moments[/dim]")
    console.print(tree)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h"),
    port: int = typer.Option(8000, "--port", "-p"),
    reload: bool = typer.Option(False, "--reload", "-r"),
):
    """
    Start the API server.
    """
    import uvicorn

    console.print(f"[green]Starting server at http://{host}:{port}[/green]")

    uvicorn.run(
        "kinelab.api.app:app",
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def version():
    """Show version information."""
    from kinelab import __version__

    console.print(f"Kinelab v{__version__}")


if __name__ == "__main__":
    app()
