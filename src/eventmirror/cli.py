import asyncio
import json
import logging
import time
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from eventmirror.core.config import SyncConfig
from eventmirror.core.errors import EventMirrorError
from eventmirror.core.models import LogRecord
from eventmirror.decoding.registry import build_registry
from eventmirror.decoding.signatures import EventSignature
from eventmirror.dispatch.service import DispatchService, DispatchStats

console = Console()


def _stats_table(stats: DispatchStats) -> Table:
    table = Table(title="dispatch", show_header=True, header_style="bold")
    table.add_column("outcome")
    table.add_column("records", justify="right")
    table.add_row("[green]applied[/]", str(stats.applied))
    table.add_row("duplicate", str(stats.duplicate))
    table.add_row("unknown", str(stats.unknown))
    table.add_row("unhandled", str(stats.unhandled))
    table.add_row("[red]malformed[/]", str(stats.malformed))
    table.add_row("[red]stale[/]", str(stats.stale))
    table.add_row("[yellow]deferred[/]", str(len(stats.deferred)))
    return table


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def cli(log_level: str) -> None:
    """eventmirror: mirror marketplace contract events into a local database."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@cli.command("registry")
@click.option("--handled-only/--all", default=False, show_default=True, help="Only list events bound to a handler")
def registry_cmd(handled_only: bool) -> None:
    """List every registered event with its identifier and handler."""
    try:
        registry = build_registry()
    except EventMirrorError as e:
        raise click.ClickException(str(e)) from e

    entries = registry.handled() if handled_only else list(registry.values())
    table = Table(show_header=True, header_style="bold")
    table.add_column("event")
    table.add_column("generation")
    table.add_column("handler")
    table.add_column("source")
    table.add_column("identifier", no_wrap=True)
    for entry in sorted(entries, key=lambda e: (e.name, e.signature)):
        table.add_row(
            entry.signature,
            entry.generation.value,
            entry.handler.value if entry.handler else "[dim]-[/]",
            entry.source,
            entry.identifier,
        )
    console.print(table)
    console.print(f"[bold]{len(entries)}[/] entries")


@cli.command("interest-set")
@click.option("--handled-only/--all", default=False, show_default=True)
def interest_set_cmd(handled_only: bool) -> None:
    """Print the topic0 identifiers a log filter should subscribe to."""
    try:
        registry = build_registry()
    except EventMirrorError as e:
        raise click.ClickException(str(e)) from e
    for identifier in registry.interest_set(handled_only=handled_only):
        click.echo(identifier)


@cli.command("hash")
@click.argument("signature")
def hash_cmd(signature: str) -> None:
    """Print the identifier of a canonical event signature, e.g. 'Transfer(address,address,uint256)'."""
    try:
        sig = EventSignature.parse(signature)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="SIGNATURE") from e
    click.echo(sig.identifier)


@cli.command("ingest")
@click.option("--db", "db_path", type=click.Path(dir_okay=False), default=":memory:", show_default=True)
@click.option("--concurrency", type=int, default=16, show_default=True, help="Max partitions applied in parallel")
@click.argument("logs_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def ingest_cmd(db_path: str, concurrency: int, logs_path: Path) -> None:
    """Dispatch raw eth_getLogs objects read from a JSONL file."""
    from eventmirror.core.config import DispatchConfig
    from eventmirror.storage.state import DuckDBStateStore

    records: list[LogRecord] = []
    with logs_path.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(LogRecord.from_rpc(json.loads(line)))
            except (ValueError, KeyError) as e:
                raise click.ClickException(f"{logs_path}:{lineno}: not a log object ({e})") from e

    t0 = time.time()
    try:
        registry = build_registry()
        with DuckDBStateStore(db_path) as store:
            service = DispatchService(registry, store, DispatchConfig(concurrency=concurrency))
            stats = asyncio.run(service.run(records))
    except EventMirrorError as e:
        raise click.ClickException(str(e)) from e

    console.print(_stats_table(stats))
    console.print(f"[bold]done[/]: {len(records)} logs • {time.time() - t0:.2f}s")


@cli.command("sync")
@click.option("--rpc", required=True, help="RPC endpoint URL")
@click.option("--db", "db_path", type=click.Path(dir_okay=False), required=True)
@click.option("--from-block", type=int, required=True)
@click.option("--to-block", type=int, help="Defaults to the chain head")
@click.option("--address", "addresses", multiple=True, help="Emitter address; repeat to OR (default: any)")
@click.option("--step", type=int, default=1_000, show_default=True, help="Blocks per request")
@click.option("--concurrency", type=int, default=16, show_default=True, help="Max partitions applied in parallel")
@click.option("--handled-only/--all", default=True, show_default=True, help="Fetch only events bound to a handler")
def sync_cmd(
    rpc: str,
    db_path: str,
    from_block: int,
    to_block: int | None,
    addresses: tuple[str, ...],
    step: int,
    concurrency: int,
    handled_only: bool,
) -> None:
    """Fetch interest-set logs over a block range and apply them to the database."""
    from eventmirror.clients.rpc import RPC
    from eventmirror.core.use_cases.sync import sync_block_range
    from eventmirror.storage.state import DuckDBStateStore

    async def run() -> None:
        source = RPC(rpc)
        try:
            head = to_block if to_block is not None else await source.latest_block()
            config = SyncConfig(
                rpc_url=rpc,
                from_block=from_block,
                to_block=head,
                addresses=tuple(a.lower() for a in addresses),
                step=step,
                concurrency=concurrency,
                db_path=db_path,
                handled_only=handled_only,
            )
            registry = build_registry()
            with DuckDBStateStore(config.db_path) as store:
                service = DispatchService(registry, store, config.dispatch)
                with console.status(f"syncing {config.from_block:,}-{config.to_block:,}"):
                    result = await sync_block_range(source, service, registry, config)
        finally:
            await source.aclose()

        console.print(_stats_table(result.stats))
        console.print(f"[bold]done[/]: {result.logs} logs in {result.chunks} chunk(s)")
        if not result.complete:
            console.print(f"[yellow]incomplete[/]: resume with --from-block {result.resume_from}")

    try:
        asyncio.run(run())
    except (EventMirrorError, httpx.HTTPError) as e:
        raise click.ClickException(str(e)) from e


if __name__ == "__main__":
    cli()
