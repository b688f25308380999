"""CLI entry point for Gmail Labeler."""

from __future__ import annotations

from pathlib import Path

import click
from openai import OpenAIError

from .auth import TokenStore, authorize_mailbox
from .classifier import OpenAIClassifier
from .config import LabelerConfig, load_config
from .constants import HISTORY_LIMIT
from .display import console, display_config, display_history, display_run_summary
from .errors import ConfigError
from .logging_setup import configure_logging
from .models import RunSummary
from .orchestrator import TenantOrchestrator
from .registry import MailboxRegistry
from .run_log import load_run_log
from .scheduler import build_scheduler


def _build_orchestrator(config: LabelerConfig, registry: MailboxRegistry) -> TenantOrchestrator:
    try:
        classifier = OpenAIClassifier.from_config(config)
    except OpenAIError as e:
        raise click.ClickException(f"Cannot create the OpenAI client: {e}") from e
    return TenantOrchestrator(config, TokenStore(), registry, classifier)


@click.group()
@click.version_option(version="0.1.0", prog_name="gmail-labeler")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to config.json (default ~/.gmail-labeler/config.json).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """Gmail Labeler - classify unread mail and label it by category."""
    configure_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.option(
    "-m",
    "--mailbox",
    "mailboxes",
    multiple=True,
    help="Only process this mailbox (repeatable). Default: all registered mailboxes.",
)
@click.pass_obj
def run(config: LabelerConfig, mailboxes: tuple[str, ...]) -> None:
    """Label unread messages now and print a summary."""
    registry = MailboxRegistry()
    targets = list(mailboxes) or registry.load()
    if not targets:
        display_run_summary(RunSummary())
        return

    orchestrator = _build_orchestrator(config, registry)
    summary = orchestrator.run_all(targets, trigger="manual")
    display_run_summary(summary)


@cli.command()
@click.option("--run-now", is_flag=True, help="Run once immediately before waiting for the schedule.")
@click.pass_obj
def schedule(config: LabelerConfig, run_now: bool) -> None:
    """Run the labeler on the configured schedule until interrupted."""
    orchestrator = _build_orchestrator(config, MailboxRegistry())
    scheduler = build_scheduler(orchestrator, config)

    if run_now:
        display_run_summary(orchestrator.run_all(trigger="manual"))

    console.print("[dim]Scheduler started. Press Ctrl+C to stop.[/dim]")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        console.print("[dim]Scheduler stopped.[/dim]")


@cli.command()
@click.pass_obj
def auth(config: LabelerConfig) -> None:
    """Authorize a Gmail account and subscribe it to labeling."""
    try:
        address = authorize_mailbox(TokenStore(), timeout=config.request_timeout)
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e

    if MailboxRegistry().add(address):
        console.print(f"[green]Connected and subscribed: {address}[/green]")
    else:
        console.print(f"[green]Token refreshed for {address} (already subscribed).[/green]")


@cli.group(name="mailboxes")
def mailboxes_group() -> None:
    """Manage subscribed mailboxes."""


@mailboxes_group.command(name="list")
def mailboxes_list() -> None:
    """List subscribed mailboxes."""
    addresses = MailboxRegistry().load()
    if not addresses:
        console.print("[dim]No mailboxes registered.[/dim]")
        return

    tokens = TokenStore()
    for address in addresses:
        state = "[green]token[/green]" if tokens.exists(address) else "[red]no token[/red]"
        console.print(f"{address}  {state}")


@mailboxes_group.command(name="remove")
@click.argument("address")
@click.option("--forget-token", is_flag=True, help="Also delete the stored OAuth token.")
def mailboxes_remove(address: str, forget_token: bool) -> None:
    """Unsubscribe a mailbox."""
    if not MailboxRegistry().remove(address):
        raise click.ClickException(f"{address} is not registered.")
    if forget_token:
        TokenStore().delete(address)
    console.print(f"[green]Removed {address}.[/green]")


@cli.command()
@click.option("-n", "--limit", default=HISTORY_LIMIT, type=int, help="Number of runs to show.")
def history(limit: int) -> None:
    """Show recent runs."""
    entries = load_run_log()
    display_history(entries[-limit:] if limit > 0 else [])


@cli.command(name="config")
@click.pass_obj
def config_cmd(config: LabelerConfig) -> None:
    """Show the effective configuration."""
    display_config(config)
