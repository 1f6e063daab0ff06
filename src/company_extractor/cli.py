"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from company_extractor.clients.credentials import EnvCredentialProvider
from company_extractor.clients.llm_client import LLMClient
from company_extractor.config import load_config
from company_extractor.errors import PersistenceError
from company_extractor.export.tabular import export_filename, to_csv, to_tsv
from company_extractor.models.batch import BatchRequest, SyncStatus
from company_extractor.models.company import CompanyRecord
from company_extractor.models.fields import (
    AVAILABLE_FIELDS,
    EMAIL_FIELD_IDS,
    OutputMode,
    fields_for_mode,
    label_for,
)
from company_extractor.pipeline.company_researcher import CompanyResearcher
from company_extractor.pipeline.orchestrator import BatchOrchestrator
from company_extractor.storage.mirror import PersistenceMirror, build_mirror
from company_extractor.utils.logging_setup import init_logging

app = typer.Typer(
    name="company-extractor",
    help="AI company data extractor with web-grounded research",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

MODES: dict[str, OutputMode] = {
    "full": OutputMode.FULL_DETAILS,
    "emails": OutputMode.ONLY_EMAILS,
    "custom": OutputMode.CUSTOM,
}

SYNC_LABELS = {
    SyncStatus.IDLE: "Cloud sync ready",
    SyncStatus.SYNCING: "Syncing...",
    SyncStatus.SUCCESS: "All data synced",
    SyncStatus.ERROR: "Sync error",
}


def _read_inputs(file: Path | None) -> str:
    if file is not None:
        if not file.exists():
            err_console.print(f"[red]Input file not found: {file}[/red]")
            raise typer.Exit(1)
        return file.read_text(encoding="utf-8")
    if sys.stdin.isatty():
        err_console.print("[red]Pass an input file or pipe company names on stdin.[/red]")
        raise typer.Exit(1)
    return sys.stdin.read()


def _results_table(records: list[CompanyRecord], field_ids: list[str]) -> Table:
    table = Table(title=f"Extraction Results ({len(records)} companies)")
    table.add_column("#", justify="right", style="dim")
    for fid in field_ids:
        table.add_column(label_for(fid))
    for i, record in enumerate(records, 1):
        table.add_row(str(i), *(record.get(fid) for fid in field_ids))
    return table


@app.command()
def extract(
    file: Path = typer.Argument(None, help="File with one company name or URL per line (default: stdin)"),
    mode: str = typer.Option("full", "--mode", "-m", help="Output mode: full | emails | custom"),
    field: list[str] = typer.Option(None, "--field", "-f", help="Field id for custom mode (repeatable)"),
    csv_path: Path = typer.Option(None, "--csv", help="Write results to this CSV file (use '-' for an auto name)"),
    tsv: bool = typer.Option(False, "--tsv", help="Print tab-separated data rows for pasting"),
    no_sync: bool = typer.Option(False, "--no-sync", help="Do not mirror results to the database"),
    api_key: str = typer.Option(None, "--api-key", help="Personal API key (overrides ANTHROPIC_API_KEY)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Research companies and extract the selected fields."""
    config = load_config()
    init_logging("DEBUG" if verbose else config.logging.level, console=err_console)

    if mode not in MODES:
        err_console.print(f"[red]Unknown mode {mode!r}; choose from {', '.join(MODES)}[/red]")
        raise typer.Exit(2)
    output_mode = OutputMode.CUSTOM if field else MODES[mode]

    try:
        field_ids = fields_for_mode(output_mode, field)
        request = BatchRequest.from_text(_read_inputs(file), field_ids)
    except ValidationError as e:
        err_console.print(f"[red]{e.errors()[0]['msg']}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    credentials = EnvCredentialProvider(personal_key=api_key)
    if not credentials.has_credential():
        err_console.print("[red]No API key. Set ANTHROPIC_API_KEY or pass --api-key.[/red]")
        raise typer.Exit(1)

    llm = LLMClient(
        api_key=credentials.api_key,
        timeout=config.llm.timeout,
        max_attempts=config.llm.max_attempts,
        backoff_base=config.llm.backoff_base,
        jitter=config.llm.jitter,
    )
    researcher = CompanyResearcher(
        llm,
        model=config.llm.model,
        max_tokens=config.llm.max_tokens,
        max_searches=config.llm.max_searches,
    )

    mirror = PersistenceMirror()
    if not no_sync:
        try:
            mirror = build_mirror(config.mirror)
        except PersistenceError as e:
            err_console.print(f"[yellow]Mirror disabled: {e}[/yellow]")

    orchestrator = BatchOrchestrator(researcher, mirror, chunk_size=config.batch.chunk_size)

    sync_state = {"status": SyncStatus.IDLE}
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=err_console,
    ) as progress:
        task = progress.add_task(f"Researching {len(request.inputs)} companies...", total=None)

        def on_partial_result(records: list[CompanyRecord]) -> None:
            progress.update(task, description=f"{len(records)}/{len(request.inputs)} companies extracted")

        def on_sync_status(status: SyncStatus) -> None:
            sync_state["status"] = status

        outcome = asyncio.run(
            orchestrator.run(
                request.inputs,
                request.field_ids,
                on_partial_result=on_partial_result,
                on_sync_status=on_sync_status,
            )
        )

    if outcome.records:
        console.print(_results_table(outcome.records, request.field_ids))
    if mirror.configured:
        color = "red" if outcome.sync_failures else "green"
        err_console.print(f"[{color}]{SYNC_LABELS[sync_state['status']]}[/{color}]")

    if csv_path is not None and outcome.records:
        if str(csv_path) == "-":
            csv_path = Path(export_filename())
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        csv_path.write_text(to_csv(outcome.records, request.field_ids), encoding="utf-8")
        err_console.print(f"[green]CSV saved: {csv_path}[/green]")

    if tsv and outcome.records:
        typer.echo(to_tsv(outcome.records, request.field_ids))

    failure = outcome.failure
    if failure is not None:
        body = failure.message
        if failure.is_quota:
            body += (
                "\n\nThe shared API key has reached its request limit. "
                "Re-run with --api-key to use your own key."
            )
        elif failure.needs_reauth:
            body += "\n\nSet a different ANTHROPIC_API_KEY or pass --api-key."
        err_console.print(Panel(body, title="Extraction Error", border_style="red"))
        raise typer.Exit(1)

    err_console.print(f"[dim]Done in {outcome.elapsed_seconds:.1f}s[/dim]")


@app.command()
def fields() -> None:
    """List the extractable fields and the output-mode presets."""
    table = Table(title="Available fields")
    table.add_column("id", style="bold")
    table.add_column("label")
    for f in AVAILABLE_FIELDS:
        table.add_row(f.id, f.label)
    console.print(table)
    console.print("\n[bold]Modes[/bold]")
    console.print("  full    all fields")
    console.print(f"  emails  {', '.join(EMAIL_FIELD_IDS)}")
    console.print("  custom  fields given with --field")


if __name__ == "__main__":
    app()
