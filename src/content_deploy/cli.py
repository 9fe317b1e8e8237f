"""Command-line interface for content deploy."""

from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .config import DeployConfig, load_config
from .constants import DEFAULT_DESTINATION
from .core.diff_generator import DiffGenerator
from .core.exporter import Exporter
from .core.importer import Importer
from .dump.storage import DumpStorage
from .observability import configure_logging
from .store.factory import load_store
from .store.protocol import EntityStore

app = typer.Typer(
    name="content-deploy",
    help="Content Deploy - Export, diff and import content records as YAML dumps",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)

_STATUS_STYLES = {"added": "green", "deleted": "red", "changed": "yellow"}


def _bootstrap(
    config_file: Path | None, log_level: str | None
) -> tuple[DeployConfig, EntityStore]:
    """
    Load configuration, configure logging and open the live store.

    Args:
        config_file: Optional YAML configuration file
        log_level: Level overriding the configured one

    Returns:
        Tuple of (configuration, live store)
    """
    config = load_config(config_file)
    configure_logging(
        level=log_level or config.logging.level,
        json_logs=config.logging.format == "json",
        log_file=config.logging.file,
    )
    return config, load_store(config.store)


@app.command()
def export(
    destination: str = typer.Argument(DEFAULT_DESTINATION, help="Destination directory name"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log verbosity: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR",
    ),
) -> None:
    """
    Export the configured records to a content directory.

    Examples:
        content-deploy export
        content-deploy export staging -c deploy.yaml
    """
    try:
        config, store = _bootstrap(config_file, log_level)
        exporter = Exporter.create(destination, store, config)

        console.print(
            Panel.fit(
                f"[bold blue]Content Export[/bold blue]\n\n"
                f"Destination: [cyan]{destination}[/cyan] ({exporter.storage.base_path})\n"
                f"Exports: {len(config.exports)}",
                border_style="blue",
            )
        )

        result = exporter.export()

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[bold red]ERROR:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]OK:[/green] {result.get_summary()}")


@app.command()
def diff(
    source: str = typer.Argument(DEFAULT_DESTINATION, help="Source directory name"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    summary: bool = typer.Option(False, "--summary", help="List changed names without diffs"),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log verbosity: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR",
    ),
) -> None:
    """
    Show differences between the live store and a content directory.

    Examples:
        content-deploy diff
        content-deploy diff staging --summary
    """
    try:
        config, store = _bootstrap(config_file, log_level)
        storage = DumpStorage.create(source, config)
        diffs = DiffGenerator(store, storage, config.stream_wrappers).diff()
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[bold red]ERROR:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    if not diffs:
        console.print("[green]No differences.[/green]")
        return

    table = Table(title=f"Changes in '{source}'")
    table.add_column("Dependency name", style="cyan")
    table.add_column("Status")
    for dependency_name, content_diff in diffs.items():
        style = _STATUS_STYLES[content_diff.status]
        table.add_row(dependency_name, f"[{style}]{content_diff.status}[/{style}]")
    console.print(table)

    if summary:
        return

    for dependency_name, content_diff in diffs.items():
        console.print(f"\n[bold]{dependency_name}[/bold]")
        console.print(Syntax("\n".join(content_diff.unified()), "diff", theme="ansi_dark"))


@app.command("import")
def import_(
    source: str = typer.Argument(..., help="Source directory name"),
    names: list[str] | None = typer.Argument(None, help="Dependency names to import"),
    import_all: bool = typer.Option(False, "--all", help="Import every dump of the source"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log verbosity: TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR",
    ),
) -> None:
    """
    Import dumps from a content directory into the live store.

    Dependencies of the selected dumps are imported first when they are
    staged in the same directory, otherwise they must already exist.

    Examples:
        content-deploy import sync --all
        content-deploy import sync node:article:5f0c8a52-...
    """
    if not names and not import_all:
        console.print("[red]ERROR:[/red] Name at least one dependency name, or pass --all")
        raise typer.Exit(code=1)

    try:
        config, store = _bootstrap(config_file, log_level)
        storage = DumpStorage.create(source, config)
        dependency_names = sorted(storage.list_all()) if import_all else list(names or [])

        importer = Importer(source, dependency_names, store, storage, config.stream_wrappers)
        result = importer.import_dumps()
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"\n[bold red]ERROR:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    table = Table(title=f"Import from '{source}'")
    table.add_column("Result", style="cyan")
    table.add_column("Count", justify="right")
    for outcome, count in result.as_dict().items():
        table.add_row(outcome, str(count))
    table.add_row("total", str(result.total), style="bold")
    console.print(table)

    for dependency_name in result.skipped:
        console.print(f"[yellow]WARNING:[/yellow] No dump for {dependency_name}")

    console.print(f"[green]OK:[/green] {result.get_summary()}")


if __name__ == "__main__":
    app()
