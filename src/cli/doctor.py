"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.config_loader import load_bom_config
from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import ConfigError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.head(url)
        return response.status_code < 500, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


def _check_writable(directory: Path) -> tuple[bool, str]:
    """Create the directory if needed and write a throwaway file into it."""

    try:
        directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=directory, prefix=".doctor-", delete=True):
            pass
        return True, str(directory.resolve())
    except OSError as exc:
        return False, str(exc)


@app.command()
def run(
    config: Path = typer.Option(Path("config.yaml"), "--config", "-c", help="Configuration file path."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="bommap Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    snapshot_dir = settings.snapshot_directory
    output_dir = settings.output_directory
    repositories = {"default": settings.maven_repository}

    try:
        bom_config = load_bom_config(config, settings)
        table.add_row("Config", "OK", f"{config} ({len(bom_config.boms)} BOMs)")
        snapshot_dir = bom_config.settings.snapshot_directory
        output_dir = bom_config.settings.output_directory
        repositories = {"default": bom_config.settings.maven_repository}
        for bom in bom_config.boms:
            url = bom_config.settings.repository_for(bom)
            repositories.setdefault(url, url)
    except ConfigError as exc:
        table.add_row("Config", "FAIL", str(exc))

    table.add_row(
        "HTTP timeouts",
        "OK",
        f"connect={settings.http_connect_timeout_seconds}s read={settings.http_read_timeout_seconds}s "
        f"retries={settings.http_max_retries}",
    )
    table.add_row("Concurrency", "OK", str(settings.max_concurrency))

    ok_all_http = True
    for url in sorted(set(repositories.values())):
        ok_http, detail_http = asyncio.run(_check_http(url, settings))
        ok_all_http = ok_all_http and ok_http
        table.add_row("Repository", "OK" if ok_http else "FAIL", f"{url} -> {detail_http}")

    for label, directory in (("Snapshot dir", snapshot_dir), ("Output dir", output_dir)):
        ok_dir, detail_dir = _check_writable(directory)
        table.add_row(label, "OK" if ok_dir else "FAIL", detail_dir)

    _console.print(table)

    if not ok_all_http:
        _console.print(
            "\n[yellow]Note:[/yellow] `compare` keeps working offline once snapshots exist; "
            "only `generate` and `versions` need the repository."
        )
