"""Rich-based display functions for Gmail Labeler."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import LabelerConfig
from .models import RunSummary

console = Console()

_STATUS_COLORS = {"ok": "green", "skipped": "yellow", "busy": "yellow", "error": "red"}


def _status_color(status: str) -> str:
    return _STATUS_COLORS.get(status, "white")


def display_run_summary(summary: RunSummary) -> None:
    """Show every labeled message, grouped by mailbox, then per-mailbox status."""
    table = Table(title="Labeled Messages")
    table.add_column("Mailbox")
    table.add_column("Subject")
    table.add_column("Category")

    for report in summary.reports.values():
        for entry in report.processed:
            table.add_row(report.address, escape(entry.subject), f"[cyan]{escape(entry.category)}[/cyan]")

    if table.row_count:
        console.print(table)

    lines = []
    for report in summary.reports.values():
        color = _status_color(report.status)
        line = f"[{color}]{report.status:<8}[/{color}] {report.address}  ({len(report.processed)} labeled)"
        if report.error:
            line += f"  [dim]{escape(report.error)}[/dim]"
        lines.append(line)

    if not lines:
        lines.append("[yellow]No mailboxes registered. Run 'gmail-labeler auth' first.[/yellow]")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"Run Summary - {summary.labeled_count} messages labeled",
        )
    )


def display_history(entries: list[dict]) -> None:
    """Display recent runs, newest first."""
    if not entries:
        console.print("[dim]No runs recorded yet.[/dim]")
        return

    table = Table(title="Run History")
    table.add_column("Date")
    table.add_column("Trigger")
    table.add_column("Labeled", justify="right")
    table.add_column("Mailboxes")

    for entry in reversed(entries):
        statuses = []
        for mb in entry.get("mailboxes", []):
            color = _status_color(mb.get("status", ""))
            statuses.append(f"[{color}]{mb.get('address', '?')}[/{color}]")
        table.add_row(
            entry.get("date", ""),
            entry.get("trigger", ""),
            str(entry.get("labeled", 0)),
            ", ".join(statuses) or "[dim]none[/dim]",
        )

    console.print(table)


def display_config(config: LabelerConfig) -> None:
    lines = ["[bold]Categories:[/bold]"]
    for name in config.categories:
        lines.append(f"  - {name}")
    lines.append(f"[bold]Fallback:[/bold] {config.fallback_category}")
    lines.append(f"[bold]Batch size:[/bold] {config.batch_size}")
    lines.append(f"[bold]Body excerpt:[/bold] {config.body_char_limit} chars")
    if config.poll_interval_minutes is not None:
        lines.append(f"[bold]Poll interval:[/bold] {config.poll_interval_minutes} min")
    else:
        lines.append(f"[bold]Schedule:[/bold] {', '.join(config.schedule)}")
    lines.append(f"[bold]Model:[/bold] {config.openai_model}")
    lines.append(f"[bold]Request timeout:[/bold] {config.request_timeout}s")
    lines.append(f"[bold]Workers:[/bold] {config.max_workers}")
    console.print(Panel("\n".join(lines), title="Configuration"))
