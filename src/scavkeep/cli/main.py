"""scavkeep CLI - keep a ScavengerMine session alive.

Opens the mining page in a browser and runs the heartbeat watchdog.
"""

import asyncio
import os
from typing import Annotated

import click
import typer
from rich.panel import Panel
from rich.table import Table

import scavkeep
from scavkeep import console as sk_console
from scavkeep.backends import get_backend, list_backends
from scavkeep.config import ScavkeepSettings, get_settings
from scavkeep.exceptions import ScavkeepError
from scavkeep.keepalive import observe, watch_page
from scavkeep.keepalive.observation import Observation
from scavkeep.logging import configure_logging, get_logger

# Configure logging early using env vars directly; get_settings() creates
# directories as a side effect. The -v/-vv and --log-format flags in
# main_callback() may reconfigure later.
configure_logging(
    level=os.environ.get("SCAVKEEP_LOG_LEVEL", "INFO"),
    json_output=os.environ.get("SCAVKEEP_LOG_FORMAT", "console") == "json",
)

LOG = get_logger(__name__)

app = typer.Typer(
    name="scavkeep",
    help="""
    ⛏ scavkeep - keep a ScavengerMine session alive

    Every few minutes, checks the mining page and starts a session when it
    is stopped, or reloads the page when the Start button is gone.

    \b
    Quick start:
      scavkeep run             Open the page and keep it alive
      scavkeep observe         Show what the page currently shows
      scavkeep config          Show current configuration
    """,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = sk_console.out_console

BackendOption = Annotated[
    str | None,
    typer.Option(
        "--backend",
        "-b",
        click_type=click.Choice(list_backends()),
        help="Page backend (default from SCAVKEEP_BACKEND)",
    ),
]
UrlOption = Annotated[
    str | None,
    typer.Option("--url", help="Page URL (default from SCAVKEEP_PAGE_URL)"),
]
HeadlessOption = Annotated[
    bool | None,
    typer.Option("--headless/--no-headless", help="Run the browser without a window"),
]


def _effective_settings(
    backend: str | None,
    url: str | None,
    headless: bool | None,
) -> ScavkeepSettings:
    """Apply command-line overrides on top of the loaded settings."""
    overrides: dict[str, object] = {}
    if backend is not None:
        overrides["backend"] = backend
    if url is not None:
        overrides["page_url"] = url
    if headless is not None:
        overrides["headless"] = headless
    settings = get_settings()
    return settings.model_copy(update=overrides) if overrides else settings


@app.callback(invoke_without_command=True)
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v for info, -vv for debug)",
        ),
    ] = 0,
    log_format: Annotated[
        str | None,
        typer.Option(
            "--log-format",
            click_type=click.Choice(["console", "json"]),
            help="Log output format: console (human-readable) or json (structured)",
        ),
    ] = None,
) -> None:
    """scavkeep - keep a ScavengerMine session alive."""
    settings = get_settings()
    json_output = (log_format or settings.log_format) == "json"

    if verbose >= 2:
        configure_logging(level="DEBUG", json_output=json_output)
    elif verbose >= 1:
        configure_logging(level="INFO", json_output=json_output)
    elif log_format is not None:
        configure_logging(level=settings.log_level, json_output=json_output)


@app.command("version")
def version() -> None:
    """Show scavkeep version and installation info."""
    settings = get_settings()
    console.print(
        Panel(
            f"[bold cyan]scavkeep[/bold cyan] v{scavkeep.__version__}\n\n"
            f"[dim]Config:[/dim]  {settings.config_dir}\n"
            f"[dim]Backend:[/dim] {settings.backend}",
            title="ScavengerMine heartbeat",
            border_style="cyan",
        )
    )


@app.command("config")
def show_config() -> None:
    """Show current configuration."""
    settings = get_settings()

    table = Table(title="⚙ scavkeep configuration", show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Page URL", settings.page_url)
    table.add_row("Backend", settings.backend)
    table.add_row("Headless", "yes" if settings.headless else "no")
    table.add_row("Stealth", "yes" if settings.use_stealth else "no")
    table.add_row("Profile dir", str(settings.profile_dir))
    table.add_row("Heartbeat interval", f"{settings.heartbeat_interval:g}s")
    table.add_row("Boot grace", f"{settings.boot_grace:g}s")
    table.add_row(
        "Start confirmation",
        f"{settings.start_wait_loops} × {settings.start_wait_step:g}s",
    )
    table.add_row("Reload guard", f"{settings.reload_guard:g}s")
    table.add_row("Log level", settings.log_level)

    console.print(table)


def _observation_panel(observation: Observation, url: str) -> Panel:
    if observation.session_active:
        status = "[green]● session running[/green]"
    elif observation.next_challenge_ready:
        status = "[yellow]◎ next challenge ready[/yellow]"
    elif observation.solving:
        status = "[cyan]◐ finding a solution[/cyan]"
    else:
        status = "[red]○ session stopped[/red]"

    info = f"""
{status}

[dim]Page:[/dim]            {url}
[dim]Next challenge:[/dim]  {observation.next_challenge_in or "-"}
[dim]Time left:[/dim]       {observation.time_left or "-"}"""
    return Panel(info.strip(), title="⛏ Page status", border_style="cyan")


async def _observe_once(settings: ScavkeepSettings) -> Observation:
    page = get_backend(settings.backend, **settings.get_backend_options())
    async with page:
        await page.navigate(settings.page_url)
        await asyncio.sleep(settings.boot_grace)
        return await observe(page)


@app.command("observe")
def observe_command(
    backend: BackendOption = None,
    url: UrlOption = None,
    headless: HeadlessOption = None,
) -> None:
    """Load the page once and show what the heartbeat would see."""
    settings = _effective_settings(backend, url, headless)
    try:
        observation = asyncio.run(_observe_once(settings))
    except ScavkeepError as exc:
        sk_console.error(str(exc))
        raise typer.Exit(1) from None

    console.print(_observation_panel(observation, settings.page_url))


@app.command("run")
def run_command(
    backend: BackendOption = None,
    url: UrlOption = None,
    headless: HeadlessOption = None,
    once: Annotated[
        bool,
        typer.Option("--once", help="Run a single heartbeat and exit"),
    ] = False,
) -> None:
    """Open the page and keep the mining session alive."""
    settings = _effective_settings(backend, url, headless)
    sk_console.info(
        f"Heartbeat every {settings.heartbeat_interval / 60:g} min on {settings.page_url}"
    )

    try:
        state = asyncio.run(watch_page(settings, max_ticks=1 if once else None))
    except ScavkeepError as exc:
        sk_console.error(str(exc))
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        sk_console.info("Stopped")
        return

    outcome = state.last_outcome.value if state.last_outcome else "none"
    sk_console.success(
        f"{state.ticks} heartbeat(s), {state.reloads} reload(s), last: {outcome}"
    )


if __name__ == "__main__":
    app()
