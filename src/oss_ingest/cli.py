"""
Command-line interface for the OSS ingestion pipeline.

Commands:
- run: Poll the queue and ingest notified objects
- check-config: Validate and display the effective configuration
- decode: Decode a notification body and list its objects

Example:
    $ oss-ingest --help
    $ oss-ingest --config config/local.toml check-config
    $ oss-ingest --config config/local.toml run --output records.jsonl
"""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from oss_ingest import __version__
from oss_ingest.config import Settings, get_settings, load_settings
from oss_ingest.errors import ConfigurationError, DecodeError, StorageError
from oss_ingest.models import SchedulerStats
from oss_ingest.utils.logging import get_logger, setup_logging

console = Console()
err_console = Console(stderr=True)


@click.group()
@click.version_option(version=__version__, prog_name="oss-ingest")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """OSS ingestion pipeline CLI.

    Consume OSS object notifications from an MNS queue and turn the
    referenced log objects into records.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


def _load(ctx: click.Context) -> Settings:
    """Load settings for a command and configure logging from them.

    Logs go to stderr so that records written to stdout stay parseable.
    """
    if "settings" in ctx.obj:
        return ctx.obj["settings"]

    config_path = ctx.obj.get("config_path")
    try:
        settings = load_settings(config_path) if config_path else get_settings()
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        ctx.exit(2)

    log_level = "DEBUG" if ctx.obj.get("verbose") else settings.logging.level
    setup_logging(
        level=log_level,
        format=settings.logging.format,
        include_timestamp=settings.logging.include_timestamp,
        include_location=settings.logging.include_location,
        stream=sys.stderr,
    )

    ctx.obj["settings"] = settings
    return settings


@main.command("run")
@click.option(
    "--drain",
    is_flag=True,
    help="Exit once the queue returns no message",
)
@click.option(
    "--output",
    "-o",
    default="-",
    show_default=True,
    help="JSON lines output file ('-' for stdout)",
)
@click.option(
    "--include-metadata",
    is_flag=True,
    help="Include the @metadata namespace in output records",
)
@click.pass_context
def run(ctx: click.Context, drain: bool, output: str, include_metadata: bool) -> None:
    """Run the ingestion loop.

    Stops on SIGINT/SIGTERM after the current object; an interrupted
    notification is left on the queue for redelivery.
    """
    settings = _load(ctx)
    logger = get_logger(__name__)

    from oss_ingest.ingest import build_scheduler
    from oss_ingest.sinks import JSONLinesSink

    sink = JSONLinesSink(sys.stdout if output == "-" else output, include_metadata=include_metadata)

    try:
        scheduler = build_scheduler(settings, sink)
    except (ConfigurationError, StorageError) as e:
        sink.close()
        err_console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)

    def _handle_signal(signum: int, _frame: Any) -> None:
        logger.info("signal_received", signal=signal.Signals(signum).name)
        scheduler.stop()

    previous = {
        signum: signal.signal(signum, _handle_signal)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }

    err_console.print("[bold]OSS Ingest[/bold]")
    err_console.print(f"Bucket: [cyan]{settings.bucket}[/cyan]")
    err_console.print(f"Queue: [cyan]{settings.mns_settings.queue}[/cyan]")

    try:
        stats = scheduler.run(drain=drain)
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
        scheduler.queue.close()
        sink.close()

    err_console.print(_stats_table(stats))


def _stats_table(stats: SchedulerStats) -> Table:
    table = Table(title="Ingestion Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Notifications received", f"{stats.notifications_received:,}")
    table.add_row("Notifications acknowledged", f"{stats.notifications_acknowledged:,}")
    table.add_row("Left for redelivery", f"{stats.notifications_left_for_redelivery:,}")
    table.add_row("Undecodable messages", f"{stats.message_errors:,}")
    table.add_row("Receive errors", f"{stats.receive_errors:,}")
    table.add_row("", "")
    table.add_row("Objects processed", f"[green]{stats.objects_processed:,}[/green]")
    table.add_row("Objects failed", f"[red]{stats.objects_failed:,}[/red]")
    for reason, count in sorted(stats.objects_skipped.items(), key=lambda item: item[0].value):
        table.add_row(f"Skipped ({reason.value})", f"{count:,}")
    table.add_row("Records emitted", f"{stats.records_emitted:,}")
    table.add_row("", "")
    table.add_row("Duration", f"{stats.elapsed_seconds:.1f}s")
    return table


@main.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Validate the configuration and show the effective values."""
    settings = _load(ctx)

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for name, value in _flatten(settings.masked()):
        table.add_row(name, "" if value is None else str(value))

    console.print(table)
    console.print("[green]✓[/green] Configuration is valid")


def _flatten(data: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    rows: list[tuple[str, Any]] = []
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            rows.extend(_flatten(value, prefix=f"{name}."))
        else:
            rows.append((name, value))
    return rows


@main.command("decode")
@click.argument("body_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--bucket",
    "-b",
    help="Bucket name for descriptors (default: configured bucket)",
)
@click.pass_context
def decode(ctx: click.Context, body_file: Path, bucket: str | None) -> None:
    """Decode a notification body and list the objects it references."""
    from oss_ingest.ingest import ObjectFilter, decode_notification

    object_filter = ObjectFilter()
    if bucket is None:
        settings = _load(ctx)
        bucket = settings.bucket
        object_filter = ObjectFilter(settings.prefix, settings.exclude_pattern)

    try:
        descriptors = decode_notification(body_file.read_bytes(), bucket)
    except DecodeError as e:
        err_console.print(f"[red]Decode error:[/red] {e}")
        ctx.exit(1)

    table = Table(title=f"Notification ({len(descriptors)} objects)")
    table.add_column("Event", style="cyan")
    table.add_column("Key")
    table.add_column("Size", justify="right")
    table.add_column("Action")

    for descriptor in descriptors:
        reason = object_filter.skip_reason(descriptor)
        action = "[green]process[/green]" if reason is None else f"[yellow]skip ({reason.value})[/yellow]"
        table.add_row(descriptor.event_name, descriptor.key, f"{descriptor.size:,}", action)

    console.print(table)


if __name__ == "__main__":
    main()
