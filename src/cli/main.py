"""bommap command line.

Commands:
- ``generate``: discover versions, extract snapshots, emit JSON for the UI.
- ``versions``: list the release versions a repository publishes for a BOM.
- ``compare``: offline diff of two snapshotted versions.
- ``doctor``: environment diagnostics.
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from adapters.config_loader import load_bom_config
from adapters.http_client import build_async_client
from adapters.manifest_exporter import ManifestExporter
from adapters.maven_repository import MavenRepository
from adapters.snapshot_store import SnapshotStore
from cli import doctor
from cli.ui_components import (
    build_comparison_panel,
    build_comparison_table,
    build_extraction_table,
    build_versions_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.bom_config import BomDefinition
from core.domain.errors import BomMapError, ConfigError, VersionNotFoundError
from core.services.bom_pipeline import (
    BomComparator,
    ExtractionRequest,
    PipelineHooks,
    generate as run_generate,
    parse_bom_key,
)
from core.services.diff_engine import filter_result, render_diff
from core.services.version_locator import discover_versions

app = typer.Typer(no_args_is_help=True, help="Track and diff the artifacts pinned by Maven BOMs.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

logger = logging.getLogger("bommap")


class OutputFormat(str, Enum):
    TABLE = "table"
    DIFF = "diff"
    JSON = "json"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx registra cada request en INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _version_callback(value: bool) -> None:
    if not value:
        return
    try:
        current = package_version("bommap")
    except PackageNotFoundError:
        current = "unknown"
    _console.print(f"bommap {current}")
    raise typer.Exit()


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    show_version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
) -> None:
    settings = AppSettings()
    configure_logging(log_level or settings.log_level)


@app.command(name="generate")
def generate_cmd(
    config: Path = typer.Option(Path("config.yaml"), "--config", "-c", help="Configuration file path."),
    bom: str | None = typer.Option(None, "--bom", "-b", help="Process only this BOM (artifactId)."),
    force: bool = typer.Option(False, "--force", "-f", help="Ignore cached snapshots and re-resolve."),
    concurrency: int | None = typer.Option(None, "--concurrency", min=1, help="Parallel resolutions."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output directory for JSON data."),
    banner: bool = typer.Option(True, "--banner/--no-banner", help="Show the welcome banner."),
) -> None:
    """Generate BOM data from a Maven repository."""

    settings = AppSettings()
    try:
        bom_config = load_bom_config(config, settings)
    except ConfigError as exc:
        _err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    logger.info("Loaded configuration from: %s", config)

    boms = bom_config.select(bom)
    if not boms:
        _err_console.print("[red]No BOMs to process. Check your filter or configuration.[/red]")
        raise typer.Exit(code=1)

    if banner:
        print_banner(_console)

    bom_settings = bom_config.settings
    request = ExtractionRequest(
        boms=boms,
        force=force or not bom_settings.cache_enabled,
        max_concurrency=concurrency or settings.max_concurrency,
        max_retries=settings.http_max_retries,
    )
    store = SnapshotStore(bom_settings.snapshot_directory)
    exporter = ManifestExporter(output or bom_settings.output_directory)

    progress = Progress(
        TextColumn("[bold cyan]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=_console,
        transient=True,
    )
    tasks: dict[str, int] = {}

    def on_versions(item: BomDefinition, count: int) -> None:
        tasks[item.key] = progress.add_task(item.artifact_id, total=count)

    def on_version_done(item: BomDefinition, _version: str, _status: str) -> None:
        progress.advance(tasks[item.key])

    hooks = PipelineHooks(versions_found=on_versions, version_done=on_version_done)

    async def _run():
        async with build_async_client(settings) as client:
            return await run_generate(
                settings=bom_settings,
                request=request,
                client=client,
                store=store,
                exporter=exporter,
                hooks=hooks,
            )

    with progress:
        result = asyncio.run(_run())

    _console.print(build_extraction_table(result.report))
    for message in result.report.warnings:
        _console.print(f"[yellow]![/yellow] {message}")
    _console.print(f"[green]JSON generated:[/green] {result.manifest_path.resolve()}")


@app.command(name="versions")
def versions_cmd(
    bom_key: str = typer.Argument(..., help="groupId:artifactId"),
    repository: str | None = typer.Option(None, "--repository", "-r", help="Repository base URL."),
) -> None:
    """List release versions published for a BOM (oldest first)."""

    settings = AppSettings()
    try:
        group_id, artifact_id = parse_bom_key(bom_key)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    async def _run() -> list[str]:
        async with build_async_client(settings) as client:
            repo = MavenRepository(
                repository or settings.maven_repository,
                client,
                max_retries=settings.http_max_retries,
            )
            return await discover_versions(repo, group_id, artifact_id)

    try:
        found = asyncio.run(_run())
    except BomMapError as exc:
        _err_console.print(f"[red]Version discovery failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    _console.print(build_versions_table(bom_key, found))


@app.command(name="compare")
def compare_cmd(
    bom_key: str = typer.Argument(..., help="groupId:artifactId"),
    from_version: str = typer.Argument(..., help="Base version."),
    to_version: str = typer.Argument(..., help="Target version."),
    snapshots: Path | None = typer.Option(None, "--snapshots", "-s", help="Snapshot directory."),
    output_format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", help="table, diff or json."),
    filter_text: str | None = typer.Option(None, "--filter", help="Only artifacts containing this text."),
    show_unchanged: bool = typer.Option(False, "--show-unchanged", help="Include unchanged artifacts."),
) -> None:
    """Compare two snapshotted versions of a BOM (no network access)."""

    settings = AppSettings()
    comparator = BomComparator(SnapshotStore(snapshots or settings.snapshot_directory))
    try:
        result = comparator.compare(bom_key, from_version, to_version)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except VersionNotFoundError as exc:
        _err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    except BomMapError as exc:
        _err_console.print(f"[red]Cannot read snapshots:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    result = filter_result(result, filter_text)

    if output_format is OutputFormat.JSON:
        payload = result.model_dump(mode="json", by_alias=True)
        _console.print_json(json.dumps(payload, ensure_ascii=False))
    elif output_format is OutputFormat.DIFF:
        _console.print(render_diff(result, bom_key, include_unchanged=show_unchanged), markup=False, highlight=False)
    else:
        _console.print(build_comparison_panel(bom_key, result))
        _console.print(build_comparison_table(result, show_unchanged=show_unchanged))


def run() -> None:
    app()
