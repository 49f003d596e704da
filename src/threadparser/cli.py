"""Command-line interface for the thread parser.

Provides commands for parsing threads, managing stored conversations,
running the background worker, and validating configuration.

Usage:
    python -m threadparser parse thread.txt --subject "Re: Project Update"
    python -m threadparser import thread.txt --subject "Re: Hi" --sender bob@example.com
    python -m threadparser process 42 --notify
    python -m threadparser show 42
    python -m threadparser worker
    python -m threadparser validate-config
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from threadparser.config import validate_config_file
from threadparser.core.logging import configure_from_config, configure_logging

if TYPE_CHECKING:
    from apscheduler.schedulers.asyncio import AsyncIOScheduler

    from threadparser.config import ConfigChange
    from threadparser.config_schema import AppConfig, WorkerConfig
    from threadparser.db.store import DatabaseStore
    from threadparser.engine.worker import ConversationWorker
    from threadparser.parser.thread import ThreadParser

console = Console()


@dataclass(frozen=True, slots=True)
class CLIDeps:
    """Shared dependencies initialized by _init_cli_deps()."""

    config: AppConfig
    store: DatabaseStore
    parser: ThreadParser
    worker: ConversationWorker


def _load_cli_config(config_path: Path | None) -> AppConfig:
    """Load config for a CLI command.

    An explicit --config must load cleanly. Without one, a missing default
    file means built-in defaults. Prints the error and exits on failure.
    """
    from threadparser.config import get_config, get_config_path
    from threadparser.config_schema import AppConfig
    from threadparser.core.errors import ConfigLoadError, ConfigValidationError

    try:
        if config_path is not None:
            return get_config(config_path)
        if not get_config_path().exists():
            return AppConfig()
        return get_config()
    except (ConfigLoadError, ConfigValidationError) as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(1)


async def _init_cli_deps(config_path: Path | None) -> CLIDeps:
    """Initialize shared CLI dependencies.

    Loads config, initializes the database, parser, notifier and worker.
    """
    from threadparser.core.errors import DatabaseError
    from threadparser.db.store import DatabaseStore
    from threadparser.engine.worker import ConversationWorker

    config = _load_cli_config(config_path)

    store = DatabaseStore(Path(config.database.path))
    try:
        await store.initialize()
    except DatabaseError as e:
        console.print(f"[red]Database error:[/red] {e}")
        sys.exit(1)

    worker = ConversationWorker.from_config(store, config)
    return CLIDeps(config=config, store=store, parser=worker.parser, worker=worker)


config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file (default: config/config.yaml)",
)


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """Thread parser - split flattened email threads into messages."""
    log_level = "DEBUG" if debug else "WARNING"
    configure_logging(log_level=log_level, json_output=False)


@cli.command("validate-config")
@config_option
def validate_config(config_path: Path | None) -> None:
    """Validate the configuration file.

    Checks that config.yaml exists and passes Pydantic schema validation.
    """
    if config_path:
        console.print(f"Validating config: [cyan]{config_path}[/cyan]")
    else:
        console.print("Validating config: [cyan]config/config.yaml[/cyan]")

    is_valid, message = validate_config_file(config_path)

    if is_valid:
        console.print(f"\n[green]✓[/green] {message}")
        sys.exit(0)
    else:
        console.print(f"\n[red]✗[/red] {message}")
        sys.exit(1)


@cli.command("parse")
@click.argument("thread_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--subject", "-s", default="", help="Thread subject to normalize")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@config_option
def parse(thread_file: Path, subject: str, as_json: bool, config_path: Path | None) -> None:
    """Parse a plain-text thread file without storing it."""
    from threadparser.parser.thread import ThreadParser

    config = _load_cli_config(config_path)
    parser = ThreadParser.from_config(config.parser)

    text = thread_file.read_text(encoding="utf-8", errors="replace")
    parsed = parser.parse(text, subject)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "subject": parsed.subject,
                    "messages": [asdict(message) for message in parsed.messages],
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    _print_messages(parsed.subject, parsed.messages)


@cli.command("import")
@click.argument("thread_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--subject", "-s", required=True, help="Subject line as received")
@click.option("--sender", required=True, help="Submitting address as received")
@click.option("--process/--no-process", "process_now", default=False, help="Parse immediately")
@config_option
def import_thread(
    thread_file: Path,
    subject: str,
    sender: str,
    process_now: bool,
    config_path: Path | None,
) -> None:
    """Store a thread file as a new conversation."""
    asyncio.run(_import_thread(thread_file, subject, sender, process_now, config_path))


async def _import_thread(
    thread_file: Path,
    subject: str,
    sender: str,
    process_now: bool,
    config_path: Path | None,
) -> None:
    deps = await _init_cli_deps(config_path)
    text = thread_file.read_text(encoding="utf-8", errors="replace")
    conversation_id = await deps.store.create_conversation(subject, sender, text)
    console.print(f"Stored conversation [cyan]{conversation_id}[/cyan]")

    if process_now:
        result = await deps.worker.process(conversation_id, notify=deps.config.worker.notify)
        console.print(f"Parsed {result.message_count} messages")


@cli.command("process")
@click.argument("conversation_id", type=int)
@click.option("--notify/--no-notify", default=False, help="Send a 'conversation ready' notification")
@config_option
def process(conversation_id: int, notify: bool, config_path: Path | None) -> None:
    """Parse one stored conversation and save its messages."""
    asyncio.run(_process(conversation_id, notify, config_path))


async def _process(conversation_id: int, notify: bool, config_path: Path | None) -> None:
    from threadparser.core.errors import ThreadParserError

    deps = await _init_cli_deps(config_path)
    try:
        result = await deps.worker.process(conversation_id, notify=notify)
    except ThreadParserError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    console.print(
        f"Conversation [cyan]{result.conversation_id}[/cyan]: "
        f"{result.message_count} messages, expires {result.expires_at:%Y-%m-%d %H:%M} UTC"
    )
    if result.notified:
        console.print("[green]Notification sent[/green]")


@cli.command("show")
@click.argument("conversation_id", type=int)
@config_option
def show(conversation_id: int, config_path: Path | None) -> None:
    """Show a stored conversation's parsed messages."""
    asyncio.run(_show(conversation_id, config_path))


async def _show(conversation_id: int, config_path: Path | None) -> None:
    deps = await _init_cli_deps(config_path)
    conversation = await deps.store.get_conversation(conversation_id)
    if conversation is None:
        console.print(f"[red]Conversation {conversation_id} not found[/red]")
        sys.exit(1)
    if not conversation.parsed:
        console.print(
            f"[yellow]Conversation {conversation_id} has not been parsed yet.[/yellow] "
            f"Run: threadparser process {conversation_id}"
        )
        return

    messages = await deps.store.get_messages(conversation_id)
    _print_messages(conversation.subject or "", messages)


@cli.command("purge-expired")
@config_option
def purge_expired(config_path: Path | None) -> None:
    """Delete conversations past their expiry."""
    asyncio.run(_purge_expired(config_path))


async def _purge_expired(config_path: Path | None) -> None:
    deps = await _init_cli_deps(config_path)
    deleted = await deps.worker.purge_expired()
    console.print(f"Deleted {deleted} expired conversations")


@cli.command("worker")
@click.option("--once", is_flag=True, help="Run a single batch and exit")
@config_option
def worker(once: bool, config_path: Path | None) -> None:
    """Parse pending conversations on a schedule.

    Runs every worker.interval_seconds until interrupted. Edits to the
    config file (header fields, timeouts, delivery, batch settings) apply
    from the next run; a new database.path needs a restart.
    """
    if once:
        asyncio.run(_run_worker_once(config_path))
    else:
        asyncio.run(_run_worker_continuous(config_path))


async def _run_worker_once(config_path: Path | None) -> None:
    deps = await _init_cli_deps(config_path)
    result = await deps.worker.process_pending(
        limit=deps.config.worker.batch_size,
        notify=deps.config.worker.notify,
    )
    console.print(
        f"Processed {result.processed}, failed {result.failed}, "
        f"messages saved {result.messages_saved} ({result.duration_ms}ms)"
    )


def _apply_config_change(
    worker: ConversationWorker,
    scheduler: AsyncIOScheduler,
    change: ConfigChange,
) -> WorkerConfig:
    """Carry a reloaded config into a running worker.

    Returns:
        The worker settings to use from the next batch on
    """
    worker.apply_config_change(change)
    if change.touches("logging"):
        configure_from_config(change.current.logging)

    interval = change.current.worker.interval_seconds
    if interval != change.previous.worker.interval_seconds:
        scheduler.reschedule_job("parse_pending", trigger="interval", seconds=interval)
        console.print(f"Worker interval changed to {interval} seconds")
    return change.current.worker


async def _run_worker_continuous(config_path: Path | None) -> None:
    """Run the worker with APScheduler until SIGINT/SIGTERM."""
    import signal

    from apscheduler.schedulers.asyncio import AsyncIOScheduler

    from threadparser.config import reload_config_if_changed

    deps = await _init_cli_deps(config_path)
    configure_from_config(deps.config.logging)

    settings = deps.config.worker

    async def run_batch():
        nonlocal settings
        change = reload_config_if_changed()
        if change is not None:
            settings = _apply_config_change(deps.worker, scheduler, change)
        result = await deps.worker.process_pending(
            limit=settings.batch_size,
            notify=settings.notify,
        )
        await deps.worker.purge_expired()
        console.print(
            f"[dim]Run {result.run_id[:8]}...[/dim] "
            f"processed={result.processed} failed={result.failed} ({result.duration_ms}ms)"
        )

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_batch,
        "interval",
        seconds=deps.config.worker.interval_seconds,
        id="parse_pending",
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()

    console.print(
        f"Worker running every {deps.config.worker.interval_seconds} seconds. "
        "Press Ctrl+C to stop."
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, stop_event.set)
    loop.add_signal_handler(signal.SIGTERM, stop_event.set)
    await stop_event.wait()

    scheduler.shutdown(wait=False)


def _print_messages(subject: str, messages) -> None:
    """Render messages (oldest first) as a rich table."""
    from threadparser.display import pretty_date

    console.print(f"[bold]Subject:[/bold] {subject or '(none)'}")
    if not messages:
        console.print("[yellow]No messages found[/yellow]")
        return

    table = Table(show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Sent")
    table.add_column("Sender")
    table.add_column("Body")
    for index, message in enumerate(messages, start=1):
        table.add_row(str(index), pretty_date(message.sent), message.sender, message.body)
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
