"""perfsnap CLI - Main entry point."""

import logging
import signal
import threading
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from perfsnap import __version__

console = Console()
logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
_CONSOLE_HANDLER = "perfsnap-console"

EXIT_ENVIRONMENT = 1
EXIT_ABORTED = 2
EXIT_INTERRUPTED = 130

_STATUS_STYLES = {
    "success": "green",
    "failed": "red",
    "skipped": "yellow",
    "placeholder": "yellow",
    "cancelled": "magenta",
}


def _setup_logging(verbose: bool) -> None:
    """Configure the root logger with a single console handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if any(h.get_name() == _CONSOLE_HANDLER for h in root_logger.handlers):
        return

    handler = logging.StreamHandler()
    handler.set_name(_CONSOLE_HANDLER)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def _install_signal_handlers(cancel_event: threading.Event) -> dict:
    """Route SIGINT/SIGTERM to the cancel event; return previous handlers."""

    def handler(signum, frame):
        logger.warning(
            f"Received {signal.Signals(signum).name}, finishing current task early"
        )
        cancel_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, handler)
    return previous


def _restore_signal_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def _print_results(result) -> None:
    table = Table(title="Collection Tasks")
    table.add_column("Task", style="cyan")
    table.add_column("Status")
    table.add_column("Artifact")
    table.add_column("Duration")
    table.add_column("Note")

    for task in result.tasks:
        style = _STATUS_STYLES.get(task.status, "white")
        table.add_row(
            task.name,
            f"[{style}]{task.status}[/{style}]",
            Path(task.report or task.artifact).name,
            f"{task.duration_s:.0f}s",
            task.error[:60],
        )

    console.print(table)
    inventory_ok = sum(1 for item in result.inventory if item.ok)
    console.print(f"  Inventory snapshots: {inventory_ok}/{len(result.inventory)}")


def _print_archive(result) -> None:
    if result is None:
        return
    if result.archive_path:
        console.print(f"\n[bold green]Archive:[/bold green] {result.archive_path}")
    elif result.archive_error:
        console.print(f"\n[bold red]Archive failed:[/bold red] {result.archive_error}")


@click.command()
@click.version_option(version=__version__, prog_name="perfsnap")
@click.argument("duration", type=click.IntRange(min=1), required=False)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file",
)
@click.option("--work-dir", default=None, help="Working directory for artifacts")
@click.option("--output-dir", default=None, help="Directory for the final archive")
@click.option("--target-process", default=None, help="Process to profile separately")
@click.option(
    "--fail-fast/--keep-going",
    default=None,
    help="Stop at the first failed task instead of collecting the rest",
)
@click.option("--no-install", is_flag=True, help="Do not install perf if missing")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(
    duration,
    config_path,
    work_dir,
    output_dir,
    target_process,
    fail_fast,
    no_install,
    verbose,
):
    """perfsnap - collect perf diagnostics into a single archive.

    DURATION is the sampling window in seconds for each collection task
    (default 60). Must be run as root.
    """
    from perfsnap.config.loader import ConfigError, load_config
    from perfsnap.host.packages import (
        PackageInstallError,
        UnsupportedDistributionError,
        ensure_package,
    )
    from perfsnap.host.privileges import PrivilegeError, check_privileges
    from perfsnap.runners.session import CollectionSession

    _setup_logging(verbose)

    overrides = {
        "duration_s": duration,
        "work_dir": work_dir,
        "output_dir": output_dir,
        "target_process": target_process,
    }
    if fail_fast is not None:
        overrides["failure_policy"] = "abort" if fail_fast else "continue"
    try:
        config = load_config(config_path, overrides)
    except ConfigError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(EXIT_ENVIRONMENT)

    try:
        check_privileges()
    except PrivilegeError as e:
        console.print(f"[red]{e}. Exiting diagnostics.[/red]")
        raise SystemExit(EXIT_ENVIRONMENT)

    if config.auto_install and not no_install:
        try:
            ensure_package(config.install_package)
        except (UnsupportedDistributionError, PackageInstallError) as e:
            console.print(f"[red]{e}[/red]")
            raise SystemExit(EXIT_ENVIRONMENT)

    console.print("[bold]perfsnap collection[/bold]")
    console.print(f"  Duration:  {config.duration_s}s per task")
    console.print(f"  Work dir:  {config.work_dir}")
    console.print(f"  Target:    {config.target_process}")
    console.print()

    cancel_event = threading.Event()
    session = CollectionSession(config, cancel_event=cancel_event)
    previous = _install_signal_handlers(cancel_event)
    try:
        result = session.run()
    except Exception as e:
        console.print(f"[red]Collection failed: {e}[/red]")
        _print_archive(session.result)
        raise SystemExit(EXIT_ENVIRONMENT) from e
    finally:
        _restore_signal_handlers(previous)

    _print_results(result)
    if result.status == "aborted":
        console.print(f"[red]Collection aborted: {result.error}[/red]")
    _print_archive(result)

    if result.status == "aborted":
        raise SystemExit(EXIT_ABORTED)
    if result.status == "interrupted":
        raise SystemExit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    cli()
