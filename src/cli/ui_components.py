"""Componentes de UI para CLI (Rich).

Tablas y paneles reutilizables por los comandos; aquí no hay lógica de
negocio, solo presentación de modelos del dominio.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import ComparisonResult
from core.services.bom_pipeline import ExtractionReport
from core.services.diff_engine import summarize


def print_banner(console: Console) -> None:
    title = Text("bommap", style="bold cyan")
    subtitle = Text("Maven BOM versions • Snapshots • Diffs", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_extraction_table(report: ExtractionReport) -> Table:
    """Resumen por BOM de un `generate`."""

    table = Table(title="Extraction summary")
    table.add_column("BOM", style="cyan", no_wrap=True)
    table.add_column("Versions", justify="right")
    table.add_column("Extracted", justify="right", style="green")
    table.add_column("Cached", justify="right", style="dim")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Notes", style="yellow")

    for extraction in report.extractions:
        note = ""
        if extraction.discovery_failed:
            note = f"discovery failed: {extraction.discovery_error}"
        elif not extraction.versions:
            note = "no versions found"
        table.add_row(
            extraction.bom.key,
            str(len(extraction.versions)),
            str(len(extraction.extracted)),
            str(len(extraction.cached)),
            str(len(extraction.failures)),
            note,
        )
    return table


def build_versions_table(bom_key: str, versions: list[str]) -> Table:
    table = Table(title=f"{bom_key} ({len(versions)} releases)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Version", style="white")
    for index, version in enumerate(versions, start=1):
        table.add_row(str(index), version)
    return table


def build_comparison_table(result: ComparisonResult, *, show_unchanged: bool = False) -> Table:
    table = Table(title=f"{result.from_version} → {result.to_version}")
    table.add_column("Status", no_wrap=True)
    table.add_column("Artifact", style="white")
    table.add_column(result.from_version, style="red")
    table.add_column(result.to_version, style="green")

    rows: list[tuple[str, str, str, str, str]] = []
    for a in result.added:
        rows.append((a.key, "[green]added[/green]", a.key, "", a.version))
    for a in result.removed:
        rows.append((a.key, "[red]removed[/red]", a.key, a.version, ""))
    for u in result.updated:
        rows.append((u.key, "[yellow]updated[/yellow]", u.key, u.from_version, u.to_version))
    if show_unchanged:
        for a in result.unchanged:
            rows.append((a.key, "[dim]unchanged[/dim]", a.key, a.version, a.version))

    for _, status, key, before, after in sorted(rows):
        table.add_row(status, key, before, after)
    return table


def build_comparison_panel(bom_key: str, result: ComparisonResult) -> Panel:
    counts = summarize(result)
    body = Text()
    body.append(f"+{counts['added']} added  ", style="green")
    body.append(f"-{counts['removed']} removed  ", style="red")
    body.append(f"~{counts['updated']} updated  ", style="yellow")
    body.append(f"={counts['unchanged']} unchanged", style="dim")
    if not result.has_changes:
        body.append("\nNo changes between the selected versions.", style="bold")
    return Panel(body, title=Text(bom_key, style="bold cyan"), border_style="cyan")
