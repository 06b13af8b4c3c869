"""Main CLI entry point for vendor-update.

This module defines the Typer application and main commands.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import structlog
import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__

if TYPE_CHECKING:
    from vendor_update import ConfigManager, RunSummary, SystemConfig, UpdateProvider

# Create the main Typer app
app = typer.Typer(
    name="vendor-update",
    help="Vendor update orchestrator - install driver updates in phases and decide on reboot.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Create consoles for rich output
console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-C",
        help="Path to the configuration file.",
    ),
]
ProviderOption = Annotated[
    str | None,
    typer.Option(
        "--provider",
        "-p",
        help="Update provider to use (overrides the configuration).",
    ),
]


def configure_logging(log_level: str) -> None:
    """Configure structlog diagnostics on stderr with the specified level.

    The audit log is written by the LogSink; this only controls developer
    diagnostics.

    Args:
        log_level: Log level string (debug, info, warning, error).
    """
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    level = level_map.get(log_level.lower(), logging.WARNING)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]vendor-update[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Vendor-Update: phased driver update orchestrator.

    Installs unattended updates, then interactive ones when a local user is
    present, and finally restarts, prompts or exits.
    """


def _get_config_manager(config_path: Path | None = None) -> ConfigManager:
    """Get the configuration manager."""
    from vendor_update import ConfigManager

    return ConfigManager(config_path=config_path)


def _load_config(config_manager: ConfigManager) -> SystemConfig:
    """Load the configuration, exiting with an error if it is invalid."""
    from vendor_update import ConfigError

    try:
        return config_manager.load()
    except ConfigError as e:
        err_console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _get_provider(config_manager: ConfigManager, name: str | None) -> UpdateProvider:
    """Instantiate the selected provider with its configured options.

    Raises:
        typer.Exit: If the provider is unknown or its options are invalid.
    """
    from vendor_update import ConfigError
    from vendor_update_providers import default_registry

    provider_name = name or config_manager.get_config().global_config.provider
    options = config_manager.get_provider_options(provider_name)

    try:
        return default_registry().create(provider_name, options)
    except ConfigError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _confirm(question: str) -> bool:
    """Ask a yes/no question on the console until answered."""
    from vendor_update import ask_yes_no

    return ask_yes_no(
        question,
        read_input=console.input,
        on_invalid=lambda _text: console.print("[yellow]Please answer y or n.[/yellow]"),
    )


@app.command()
def run(
    provider: ProviderOption = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="List updates without installing them or restarting.",
        ),
    ] = False,
    config_file: ConfigOption = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            "-l",
            help="Diagnostics level on stderr (debug, info, warning, error).",
        ),
    ] = None,
) -> None:
    """Install pending updates and decide on reboot.

    Unattended updates are installed first. Interactive updates follow only
    when a local user is logged in. Without a local user the machine is
    restarted once installation is complete.
    """
    from vendor_update import FatalError

    config_manager = _get_config_manager(config_file)
    config = _load_config(config_manager)
    configure_logging(log_level or config.global_config.diagnostics_level)

    update_provider = _get_provider(config_manager, provider)
    dry_run = dry_run or config.global_config.dry_run

    try:
        summary = asyncio.run(_run_updates(config, update_provider, dry_run))
    except FatalError as e:
        err_console.print(f"[bold red]Fatal:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e

    console.print()
    _print_summary(summary)


async def _run_updates(
    config: SystemConfig,
    provider: UpdateProvider,
    dry_run: bool,
) -> RunSummary:
    """Run the orchestrator asynchronously."""
    from vendor_update import LogSink, PhaseOrchestrator, SessionClassifier, SystemRebooter

    sink = LogSink(config.log, console=console, error_console=err_console)
    sink.initialize()

    orchestrator = PhaseOrchestrator(
        provider,
        sink,
        SessionClassifier(),
        SystemRebooter(config.reboot.command),
        confirm=_confirm,
        prerequisite=config.prerequisite,
        require_admin=config.global_config.require_admin,
        dry_run=dry_run,
    )
    return await orchestrator.run()


def _print_summary(summary: RunSummary) -> None:
    """Print run summary."""
    from vendor_update import InstallOutcome

    table = Table(title="Update Summary", show_header=True)
    table.add_column("Update", style="cyan")
    table.add_column("Phase")
    table.add_column("Reboot", justify="center")
    table.add_column("Status", style="bold")

    for phase in summary.phases:
        for record in phase.records:
            status_style = {
                InstallOutcome.INSTALLED: "[green]✓ Installed[/green]",
                InstallOutcome.FAILED: "[red]✗ Failed[/red]",
                InstallOutcome.PENDING: "[yellow]⊘ Not installed[/yellow]",
            }[record.install_outcome]
            table.add_row(
                record.title,
                phase.phase.value,
                "yes" if record.requires_reboot else "no",
                status_style,
            )

    console.print(table)

    console.print()
    console.print(f"[green]Installed:[/green] {summary.installed_count}")
    console.print(f"[red]Failed:[/red] {summary.failed_count}")
    for phase in summary.phases:
        if phase.skipped:
            console.print(f"[yellow]Skipped:[/yellow] {phase.phase.value} phase (no local user)")
        elif phase.enumeration_failed:
            console.print(f"[red]Not listed:[/red] {phase.phase.value} phase")
    if summary.reboot_action is not None:
        console.print(f"[bold]Reboot decision:[/bold] {summary.reboot_action.value}")


@app.command()
def check(
    provider: ProviderOption = None,
    config_file: ConfigOption = None,
) -> None:
    """List pending updates without installing them."""
    from vendor_update import ProviderError

    config_manager = _get_config_manager(config_file)
    _load_config(config_manager)
    update_provider = _get_provider(config_manager, provider)

    console.print(f"[bold]Checking for updates ({update_provider.name})...[/bold]")
    console.print()

    try:
        records = asyncio.run(update_provider.list_updates())
    except ProviderError as e:
        err_console.print(f"[red]Unable to list updates: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    if not records:
        console.print("[dim]No updates available.[/dim]")
        return

    table = Table(title="Available Updates", show_header=True)
    table.add_column("Update", style="cyan")
    table.add_column("Category")
    table.add_column("Phase")
    table.add_column("Reboot", justify="center")

    for record in records:
        table.add_row(
            record.title,
            record.category or "",
            record.phase.value,
            "yes" if record.requires_reboot else "no",
        )

    console.print(table)


@app.command()
def status(config_file: ConfigOption = None) -> None:
    """Show session, privilege and log status."""
    from vendor_update import SessionClassifier, is_admin, resolve_log_path

    config_manager = _get_config_manager(config_file)
    config = _load_config(config_manager)

    def yes_no(value: bool) -> str:
        return "[green]✓[/green]" if value else "[red]✗[/red]"

    table = Table(title="Status", show_header=True)
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    table.add_row("Interactive session", yes_no(SessionClassifier().is_interactive_session()))
    table.add_row("Administrator", yes_no(is_admin()))
    table.add_row("Provider", config.global_config.provider)
    table.add_row("Log file", str(resolve_log_path(config.log)))
    table.add_row("Configuration", str(config_manager.config_path))

    console.print(table)


@app.command()
def logs(
    lines: Annotated[
        int,
        typer.Option(
            "--lines",
            "-n",
            help="Number of lines to show.",
        ),
    ] = 20,
    config_file: ConfigOption = None,
) -> None:
    """Show the end of the audit log."""
    from vendor_update import LogSink

    config = _load_config(_get_config_manager(config_file))
    sink = LogSink(config.log, console=console)

    tail = sink.tail(lines)
    if not tail:
        console.print(f"[dim]No log entries yet ({sink.path}).[/dim]")
        return

    for line in tail:
        style = "red" if "] [ERROR] " in line else None
        console.print(line, style=style, markup=False, highlight=False)


# Create providers subcommand group
providers_app = typer.Typer(
    name="providers",
    help="Inspect update providers.",
    no_args_is_help=True,
)
app.add_typer(providers_app, name="providers")


@providers_app.command("list")
def providers_list() -> None:
    """List available providers."""
    from vendor_update_providers import default_registry

    table = Table(title="Available Providers", show_header=True)
    table.add_column("Provider", style="cyan")
    table.add_column("Description")

    for metadata in default_registry().describe():
        table.add_row(metadata.name, metadata.description or metadata.name)

    console.print(table)


# Create config subcommand group
config_app = typer.Typer(
    name="config",
    help="Manage configuration.",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show(config_file: ConfigOption = None) -> None:
    """Show current configuration."""
    config_manager = _get_config_manager(config_file)
    config = _load_config(config_manager)

    console.print(f"[bold]Configuration File:[/bold] {config_manager.config_path}")
    console.print()

    yaml_str = yaml.safe_dump(
        config_manager.serialize(config), default_flow_style=False, sort_keys=False
    )
    console.print(yaml_str, markup=False, highlight=False)


@config_app.command("init")
def config_init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing configuration.",
        ),
    ] = False,
    config_file: ConfigOption = None,
) -> None:
    """Initialize configuration file."""
    config_manager = _get_config_manager(config_file)

    if config_manager.init_config(force=force):
        console.print(f"[green]Configuration initialized: {config_manager.config_path}[/green]")
    else:
        console.print(
            f"[yellow]Configuration already exists: {config_manager.config_path}[/yellow]"
        )
        console.print("Use --force to overwrite.")


@config_app.command("path")
def config_path() -> None:
    """Show configuration file path."""
    config_manager = _get_config_manager()
    console.print(str(config_manager.config_path), markup=False, highlight=False)


if __name__ == "__main__":
    app()
