import asyncio

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mediakeeper.config.environment import Environment
from mediakeeper.config.limits import LifecycleLimits
from mediakeeper.config.logging_config import get_logger
from mediakeeper.config.settings import SETTINGS_FILE, get_system_file_path, load_settings, save_settings
from mediakeeper.media.lifecycle_manager import MediaLifecycleManager
from mediakeeper.media.memory_probe import ProcessMemoryProbe, format_bytes
from mediakeeper.media.simulated import SimulatedVideoElement

console = Console()
log = get_logger(__name__)


@click.group()
def cli():
    """mediakeeper CLI - inspect and exercise the media lifecycle manager."""
    pass


@cli.command("serve")
@click.option("--host", default="127.0.0.1", help="Host address to serve on.")
@click.option("--port", default=8000, help="Port to serve on.", type=int)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging (DEBUG level) for detailed output.",
)
def serve(host: str, port: int, verbose: bool = False):
    """Serve the media memory debug API."""
    from mediakeeper.api.server import create_app, run_uvicorn_server

    if verbose:
        from mediakeeper.config.logging_config import configure_logging

        configure_logging(level="DEBUG")
        console.print("[cyan]Verbose logging enabled (DEBUG level)[/]")

    run_uvicorn_server(app=create_app(), host=host, port=port)


def _resource_table(manager: MediaLifecycleManager, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Source")
    table.add_column("State")
    table.add_column("Loops", justify="right")
    table.add_column("Idle (s)", justify="right")
    table.add_column("Footprint", justify="right")

    now = manager.now()
    for entry in manager.all_stats():
        table.add_row(
            entry.identity,
            entry.handle.src or "-",
            "paused" if entry.handle.paused else "playing",
            str(entry.loop_count),
            f"{entry.idle_for(now):.2f}",
            format_bytes(entry.footprint_bytes),
        )
    return table


async def _simulate(count: int, loops: int, limits: LifecycleLimits) -> None:
    async with MediaLifecycleManager(limits=limits, probe=ProcessMemoryProbe()) as manager:
        elements = []
        for i in range(count):
            element = SimulatedVideoElement(f"clip-{i}.mp4", width=1920, height=1080, duration=12.0)
            elements.append(element)
            manager.register(element, identity=f"clip-{i}")
            await element.play()
            # distinct activity timestamps so eviction order is visible
            await asyncio.sleep(0.01)

        evicted = [str(e.src) for e in elements if manager.get_stats(e) is None]
        console.print(
            f"Registered {count} clips, cap {manager.max_active}, evicted: {', '.join(evicted) or 'none'}"
        )

        for element in elements:
            if manager.get_stats(element) is None:
                continue
            for _ in range(loops):
                element.complete_loop()

        console.print(_resource_table(manager, f"After {loops} loops"))
        await asyncio.sleep(limits.reload_delay + 0.05)
        console.print(_resource_table(manager, "After reload delay"))


@cli.command("simulate")
@click.option("--count", default=4, type=int, help="Number of simulated clips to register.")
@click.option("--loops", default=10, type=int, help="Loops to complete on each tracked clip.")
@click.option("--cap", default=None, type=int, help="Override the maximum of active resources.")
def simulate(count: int, loops: int, cap: int | None = None):
    """Drive the lifecycle manager with simulated video elements."""
    limits = LifecycleLimits.from_environment()
    if cap is not None:
        try:
            limits = LifecycleLimits(**{**limits.model_dump(), "max_active_resources": cap})
        except ValidationError as e:
            raise click.BadParameter(str(e), param_hint="--cap") from e
    asyncio.run(_simulate(count, loops, limits))


@cli.command("stats")
@click.option(
    "--save",
    is_flag=True,
    help="Write the effective limits to settings.yaml so later runs pick them up.",
)
def stats(save: bool = False):
    """Show configured limits and current process memory."""
    limits = LifecycleLimits.from_environment()
    manager = MediaLifecycleManager(limits=limits, probe=ProcessMemoryProbe())

    table = Table(title="Lifecycle limits")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in limits.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)

    settings_path = get_system_file_path(SETTINGS_FILE)
    if save:
        settings = load_settings()
        settings.update(limits.to_settings())
        save_settings(settings)
        Environment.reset()
        log.info(f"Saved media limits to {settings_path}")
        console.print(f"[green]Saved limits to {settings_path}[/]")
    elif Environment.has_settings():
        console.print(f"Settings file: {settings_path}")
    else:
        console.print("Settings file: none (defaults and environment only)")

    snapshot = manager.memory_snapshot()
    if snapshot is None:
        console.print(Panel("Memory introspection unavailable", title="Memory"))
    else:
        console.print(
            Panel(
                f"Used: {snapshot['used']} MB\nTotal: {snapshot['total']} MB\nLimit: {snapshot['limit']} MB",
                title="Memory",
            )
        )


if __name__ == "__main__":
    cli()
