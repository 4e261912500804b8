"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from resume_revisions.artifacts.normalizer import normalize_and_dedupe
from resume_revisions.changelog.persistence import ChangeLogPersistenceAdapter
from resume_revisions.changelog.summary import build_aggregated_summary
from resume_revisions.clients.rescore_client import RescoreClient
from resume_revisions.config import AppConfig, load_config
from resume_revisions.errors import RevisionError
from resume_revisions.models.changelog import AggregatedSummary, ChangeLogEntry
from resume_revisions.models.document import DocumentState, JobContext, MatchResult
from resume_revisions.models.suggestion import ImprovementSuggestion
from resume_revisions.pipeline.gate import ConcurrencyGate
from resume_revisions.pipeline.lifecycle import SuggestionLifecycleManager
from resume_revisions.stores.http_store import HTTPChangeLogStore
from resume_revisions.stores.sqlite_store import SQLiteChangeLogStore

app = typer.Typer(
    name="resume-revisions",
    help="Review, apply and audit AI resume improvements",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _read_json(path: Path):
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1)


def _load_entries(data) -> list[ChangeLogEntry]:
    if isinstance(data, dict):
        data = data.get("changeLog") or data.get("change_log") or data.get("entries") or []
    return [ChangeLogEntry.model_validate(item) for item in data]


def _make_store(config: AppConfig):
    if config.changelog.backend == "http":
        return HTTPChangeLogStore(
            config.changelog.base_url,
            endpoint=config.changelog.endpoint,
            timeout=config.changelog.timeout,
            max_retries=config.changelog.max_retries,
        )
    return SQLiteChangeLogStore(config.changelog.resolved_db_path)


def _print_summary(summary: AggregatedSummary) -> None:
    totals = summary.totals
    console.print(Panel(
        f"Entries: {totals.entries} | Categories: {totals.categories} | "
        f"Added: [green]{totals.added_items}[/green] | Removed: [red]{totals.removed_items}[/red]",
        title="Change Log Summary",
    ))

    if summary.highlights:
        table = Table(title="Highlights")
        table.add_column("Highlight", style="bold")
        table.add_column("Items")
        table.add_column("Count", justify="right")
        for h in summary.highlights:
            table.add_row(h.label, ", ".join(h.items[:6]) + (" ..." if h.count > 6 else ""), str(h.count))
        console.print(table)

    for category in summary.categories:
        if not category.reasons:
            continue
        lines = "\n".join(f"  - {r}" for r in category.reasons[:4])
        more = f"\n  [dim]+{len(category.reasons) - 4} more[/dim]" if len(category.reasons) > 4 else ""
        console.print(f"[bold]{category.label}[/bold] [dim]{category.description}[/dim]\n{lines}{more}")

    if summary.sections_touched:
        touched = ", ".join(f"{t.section} ({t.count})" for t in summary.sections_touched)
        console.print(f"\n[dim]Sections touched: {touched}[/dim]")
    console.print(f"\n[cyan]{summary.interview_prep}[/cyan]")


@app.command()
def summary(
    log: Path = typer.Argument(help="Change log JSON file (list of entries)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Summarise the accepted improvements in a change log."""
    _setup_logging(verbose)
    config = load_config()
    entries = _load_entries(_read_json(log))
    _print_summary(
        build_aggregated_summary(entries, max_interview_skills=config.summary.max_interview_skills)
    )


@app.command()
def artifacts(
    file: Path = typer.Argument(help="Document generation response (JSON)"),
    keep_missing: bool = typer.Option(False, "--keep-missing", help="Keep entries without a URL"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Normalize and de-duplicate generated document descriptors."""
    _setup_logging(verbose)
    data = _read_json(file)
    if isinstance(data, dict) and "outputFiles" in data:
        data = data["outputFiles"]
    result = normalize_and_dedupe(data, keep_missing=keep_missing)
    if not result:
        console.print("[yellow]No usable artifacts found.[/yellow]")
        return

    table = Table(title=f"Artifacts ({len(result)})")
    table.add_column("Type", style="bold")
    table.add_column("URL")
    table.add_column("Priority", justify="right")
    table.add_column("Expires")
    for artifact in result:
        url = artifact.url or "[red]missing_url[/red]"
        table.add_row(artifact.type, url, artifact.priority.name.lower(), artifact.expires_at or "-")
    console.print(table)


@app.command()
def history(
    job_id: str = typer.Argument(None, help="Job id (omit to list jobs)"),
) -> None:
    """Show change-log history from the local store."""
    config = load_config()
    store = SQLiteChangeLogStore(config.changelog.resolved_db_path)

    if not job_id:
        jobs = store.list_jobs()
        if not jobs:
            console.print("[yellow]No change logs stored yet.[/yellow]")
            return
        table = Table(title="Jobs")
        table.add_column("Job")
        table.add_column("Entries", justify="right")
        table.add_column("Reverted", justify="right")
        table.add_column("Last updated")
        for job in jobs:
            table.add_row(job["job_id"], str(job["total"]), str(job["reverted"]), job["last_updated"])
        console.print(table)
        return

    entries = store.load_sync(job_id)
    if not entries:
        console.print(f"[yellow]No entries for job {job_id}.[/yellow]")
        return
    table = Table(title=f"Change log: {job_id}")
    table.add_column("Id")
    table.add_column("Title")
    table.add_column("Change")
    table.add_column("Score delta", justify="right")
    table.add_column("Status")
    for entry in entries:
        delta = "-" if entry.score_delta is None else f"{entry.score_delta:+g}"
        status = "[red]reverted[/red]" if entry.reverted else "[green]active[/green]"
        table.add_row(entry.id, entry.title, entry.label.value, delta, status)
    console.print(table)


@app.command()
def purge(
    days: int = typer.Option(None, "--days", help="Delete entries older than N days"),
) -> None:
    """Delete old change-log records from the local store."""
    config = load_config()
    store = SQLiteChangeLogStore(config.changelog.resolved_db_path)
    removed = store.purge_older_than(days or config.changelog.retention_days)
    console.print(f"[green]Removed {removed} record(s).[/green]")


@app.command()
def apply(
    suggestions_file: Path = typer.Argument(help="Improvement suggestions (JSON)"),
    job_id: str = typer.Option(..., "--job-id", help="Job id the suggestions belong to"),
    resume: Path = typer.Option(..., "--resume", help="Current resume text file"),
    jd: Path = typer.Option(None, "--jd", help="Job description text file"),
    only: list[str] = typer.Option(None, "--only", help="Accept only these suggestion ids"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the updated resume text here"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Accept suggestions, rescore each one and record the change log."""
    _setup_logging(verbose)
    if not resume.exists():
        console.print(f"[red]Resume file not found: {resume}[/red]")
        raise typer.Exit(1)

    data = _read_json(suggestions_file)
    raw_suggestions = data.get("suggestions", []) if isinstance(data, dict) else data
    meta = data if isinstance(data, dict) else {}
    suggestions = [ImprovementSuggestion.model_validate(s) for s in raw_suggestions]

    config = load_config()
    job = JobContext(
        job_id=job_id,
        job_description=jd.read_text(encoding="utf-8") if jd and jd.exists() else "",
        job_skills=list(meta.get("jobSkills") or []),
    )
    document = DocumentState(
        text=resume.read_text(encoding="utf-8"),
        match=MatchResult.model_validate(meta.get("match") or {}),
        skills=list(meta.get("skills") or []),
    )
    rescorer = RescoreClient(
        config.rescore.base_url,
        endpoint=config.rescore.endpoint,
        timeout=config.rescore.timeout,
    )
    store = _make_store(config)
    manager = SuggestionLifecycleManager(
        suggestions,
        document,
        gate=ConcurrencyGate(rescorer, job),
        persistence=ChangeLogPersistenceAdapter(store, job_id),
        max_interview_skills=config.summary.max_interview_skills,
    )

    async def _run():
        try:
            await manager.load_change_log()
            if only:
                for suggestion_id in only:
                    await manager.accept(suggestion_id)
            else:
                await manager.accept_all()
        finally:
            await rescorer.aclose()
            if hasattr(store, "aclose"):
                await store.aclose()

    try:
        with console.status("Applying improvements..."):
            asyncio.run(_run())
    except RevisionError as e:
        console.print(f"[red]{e.phase} failed for {e.suggestion_id or '-'}: {e.message}[/red]")
        if e.retryable:
            console.print("[yellow]This can be retried.[/yellow]")
        raise typer.Exit(1)

    for s in manager.suggestions:
        if s.rescore_error:
            console.print(f"[yellow]{s.id}: applied, but score refresh failed ({s.rescore_error})[/yellow]")
        elif s.score_delta is not None:
            console.print(f"[green]{s.id}: {s.title} ({s.score_delta:+g} pts)[/green]")

    if output:
        output.write_text(manager.document.text, encoding="utf-8")
        console.print(f"[green]Updated resume written to {output}[/green]")

    _print_summary(manager.summary())


if __name__ == "__main__":
    app()
