"""
This module defines the command-line interface (CLI) for querylog.

It uses the `click` library for commands and `rich` for output. Commands
operate on the storage backend from the loaded configuration, the same one
the HTTP server uses.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .config import get_config
from .query_history import QueryHistory, QueryLogError
from .server.state import build_query_history

T = TypeVar("T")

# Initialize Rich console for pretty output
console = Console()


def _run(operation: Callable[[QueryHistory], Awaitable[T]]) -> T:
    """Open the configured history, run one operation against it and close it again."""

    config = get_config()
    if config.storage.type.lower() == "memory":
        console.print("[yellow]Warning: memory storage is discarded when this command exits; set QUERYLOG_STORAGE_TYPE=duckdb to keep history[/yellow]")

    async def runner() -> T:
        history = build_query_history(config)
        await history.initialize()
        try:
            return await operation(history)
        finally:
            await history.close()

    try:
        return asyncio.run(runner())
    except QueryLogError as e:
        console.print(f"[red]{e.code}: {e}[/red]")
        raise SystemExit(1) from e


def _parse_metrics(raw: str) -> Any:
    """Treat the metrics argument as JSON when it parses, otherwise as plain text."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _format_metrics(metrics: Any) -> str:
    return escape(metrics if isinstance(metrics, str) else json.dumps(metrics))


@click.group()
@click.version_option()
def main() -> None:
    """querylog - per-user query history."""
    pass


@main.command()
@click.option("--host", default=None, help="Host to bind server")
@click.option("--port", default=None, type=int, help="Port to bind server")
@click.option("--reload", "reload_", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload_: bool) -> None:
    """Start querylog HTTP server."""
    import uvicorn

    config = get_config()
    host = host or config.server_host
    port = port or config.server_port

    console.print(f"[green]Starting querylog server at http://{host}:{port}[/green]")
    console.print(f"[dim]• Storage: {config.storage.type} ({config.storage.resolved_path() if config.storage.type == 'duckdb' else 'in memory'})[/dim]")
    console.print(f"[dim]• API documentation available at http://{host}:{port}/docs[/dim]")
    console.print("[dim]Press Ctrl+C to stop the server[/dim]\n")

    try:
        uvicorn.run("querylog.server.app:app", host=host, port=port, reload=reload_, log_level="info")
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")


@main.group()
def history() -> None:
    """Manage per-user query history."""
    pass


@history.command("add")
@click.argument("username")
@click.argument("query_string")
@click.argument("metrics")
def history_add(username: str, query_string: str, metrics: str) -> None:
    """Record a run of QUERY_STRING for USERNAME with METRICS (JSON or text)."""

    async def add(history: QueryHistory) -> Any:
        await history.find_or_create_user(username)
        return await history.append_instance(username, query_string, _parse_metrics(metrics))

    instance = _run(add)
    console.print(f"[green]Recorded instance {instance.instance_id} at {instance.timestamp}[/green]")


@history.command("list")
@click.argument("username")
@click.option("--verbose", "-v", is_flag=True, help="Show full query text")
def history_list(username: str, verbose: bool) -> None:
    """List distinct queries recorded for USERNAME."""
    summaries = _run(lambda history: history.list_queries(username))

    if not summaries:
        console.print("[yellow]No results found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Query", no_wrap=not verbose)
    table.add_column("Runs", justify="right")
    table.add_column("Last run", style="dim")

    for summary in summaries:
        query_text = summary.query_string
        if not verbose and len(query_text) > 50:
            query_text = query_text[:50] + "..."
        table.add_row(summary.id, escape(query_text), str(summary.counter), summary.timestamp or "-")

    console.print(table)


@history.command("show")
@click.argument("username")
@click.argument("query_id")
def history_show(username: str, query_id: str) -> None:
    """Show every recorded run of one query."""
    entry = _run(lambda history: history.get_query(username, query_id))

    if entry is None:
        console.print(f"[yellow]Query {query_id} not found[/yellow]")
        return

    console.print(Panel(Syntax(entry.query_string, "sql", theme="monokai", word_wrap=True), title=f"Query {entry.id}"))

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Instance ID", style="dim")
    table.add_column("Timestamp")
    table.add_column("Metrics")

    for position, instance in enumerate(entry.instances, start=1):
        table.add_row(str(position), instance.instance_id, instance.timestamp, _format_metrics(instance.output_metrics))

    console.print(table)


@history.command("instance")
@click.argument("username")
@click.argument("query_id")
@click.argument("instance_id")
def history_instance(username: str, query_id: str, instance_id: str) -> None:
    """Show a single recorded run."""
    detail = _run(lambda history: history.get_instance(username, query_id, instance_id))

    if detail is None:
        console.print(f"[yellow]Instance {instance_id} not found[/yellow]")
        return

    console.print(Panel(Syntax(detail.query_string, "sql", theme="monokai", word_wrap=True), title=detail.timestamp))
    console.print(_format_metrics(detail.output_metrics))


@history.command("delete-instance")
@click.argument("username")
@click.argument("query_id")
@click.argument("instance_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def history_delete_instance(username: str, query_id: str, instance_id: str, yes: bool) -> None:
    """Delete a single recorded run."""
    if not yes and not click.confirm(f"Delete instance {instance_id}?"):
        return

    deleted = _run(lambda history: history.delete_instance(username, query_id, instance_id))
    if deleted:
        console.print(f"[green]Deleted instance {instance_id}[/green]")
    else:
        console.print(f"[yellow]Instance {instance_id} not found, nothing deleted[/yellow]")


@main.group()
def metrics() -> None:
    """Manage standalone raw metrics records."""
    pass


@metrics.command("add")
@click.argument("payload")
def metrics_add(payload: str) -> None:
    """Store PAYLOAD (JSON or text) as a raw metrics record."""
    metrics_id = _run(lambda history: history.record_metrics(_parse_metrics(payload)))
    console.print(f"[green]Stored metrics record {metrics_id}[/green]")


@metrics.command("delete")
@click.argument("metrics_id")
def metrics_delete(metrics_id: str) -> None:
    """Delete the raw metrics record METRICS_ID."""
    _run(lambda history: history.delete_metrics_record(metrics_id))
    console.print(f"[green]Deleted metrics record {metrics_id}[/green]")


@main.group()
def config() -> None:
    """Inspect querylog configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Show the effective configuration."""
    console.print(Syntax(json.dumps(get_config().to_dict(), indent=2), "json", theme="monokai"))


if __name__ == "__main__":
    main()
