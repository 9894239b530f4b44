"""
DataSculpt CLI

Command-line interface for DataSculpt.

Usage:
    datasculpt ask "Show total sales by brand" --type mysql
    datasculpt generate "monthly revenue trend" --type postgresql
    datasculpt execute "SELECT 1" --type mysql
    datasculpt serve --port 3001
    datasculpt sources list
    datasculpt sources add --name Sales --type mysql --host db --database lux --username app
    datasculpt sources activate <id>
    datasculpt sources remove <id>
    datasculpt sources test <id>
    datasculpt sources schema <id> --output schema.yaml
"""

import asyncio
import json
import logging
import sys
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from datasculpt import __version__
from datasculpt.config import get_settings
from datasculpt.connectors.base import ConnectorError
from datasculpt.connectors.factory import config_from_url, introspect_connection
from datasculpt.models.datasource import DEFAULT_PORTS, ConnectionConfigPayload, DataSource
from datasculpt.models.errors import ExecutionFailure, SafetyRejection
from datasculpt.pipeline.orchestrator import (
    AnalyticsPipeline,
    build_pipeline,
    create_provider,
    create_registry,
)
from datasculpt.schema import SchemaDescriptor
from datasculpt.sources.registry import DataSourceRegistry

console = Console()

KIND_CHOICE = click.Choice(["postgresql", "mysql"], case_sensitive=False)
MAX_TABLE_ROWS = 50


def configure_cli_logging() -> None:
    logging.disable(logging.CRITICAL)
    for logger_name in ("datasculpt", "httpx", "openai", "anthropic", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


# ============================================================================
# Helper Functions
# ============================================================================


def create_registry_from_config() -> DataSourceRegistry:
    """Registry from settings (REGISTRY_PATH, DATABASE_*_URL defaults)."""
    return create_registry(get_settings())


def create_pipeline_from_config(registry: DataSourceRegistry) -> AnalyticsPipeline:
    """Pipeline from settings; generation uses fallbacks when no provider is configured."""
    settings = get_settings()
    return build_pipeline(settings, registry, create_provider(settings))


def format_rows(rows: list[dict[str, Any]], title: str | None = None) -> None:
    """Render rows as a table (first MAX_TABLE_ROWS only)."""
    if not rows:
        console.print("[yellow]No rows returned[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold cyan")
    columns = list(rows[0].keys())
    for column in columns:
        table.add_column(str(column))
    for row in rows[:MAX_TABLE_ROWS]:
        table.add_row(*[str(row.get(column, "")) for column in columns])
    console.print(table)
    if len(rows) > MAX_TABLE_ROWS:
        console.print(f"[dim]... {len(rows) - MAX_TABLE_ROWS} more rows[/dim]")


def format_sql(sql: str, subtitle: str | None = None) -> None:
    console.print(Panel(sql, title="SQL", subtitle=subtitle, border_style="cyan", highlight=True))


def _source_table(sources: list[DataSource]) -> Table:
    table = Table(title="Data Sources", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type", style="green")
    table.add_column("Location")
    table.add_column("Status")
    table.add_column("Active", justify="center")
    for source in sources:
        config = source.config
        status_style = {"connected": "green", "error": "red"}.get(source.status, "yellow")
        table.add_row(
            config.id,
            config.name,
            config.kind,
            f"{config.host}:{config.port}/{config.database}",
            f"[{status_style}]{source.status}[/{status_style}]",
            "✓" if source.is_active else "",
        )
    return table


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    sys.exit(1)


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="DataSculpt")
def cli():
    """DataSculpt - natural language analytics over PostgreSQL and MySQL."""
    configure_cli_logging()


@cli.command()
@click.argument("question")
@click.option("--type", "-t", "kind", type=KIND_CHOICE, default="mysql", show_default=True)
@click.option("--show-data", is_flag=True, help="Print the raw rows as well as the series.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def ask(question: str, kind: str, show_data: bool, as_json: bool):
    """Ask a question: generate SQL, run it read-only and shape the result."""

    async def run_ask():
        registry = create_registry_from_config()
        pipeline = create_pipeline_from_config(registry)
        with console.status("[cyan]Processing question...[/cyan]", spinner="dots"):
            return await pipeline.ask(question, kind.lower())

    try:
        result = asyncio.run(run_ask())
    except SafetyRejection as e:
        _fail(f"Rejected ({e.classification.value}): {e.reason}")
    except ExecutionFailure as e:
        _fail(f"{e.message}: {e.details}")
    except ValueError as e:
        _fail(f"Error: {e}")

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
        return

    query = result.query
    source = "fallback template" if result.used_fallback_query else f"confidence {query.confidence:.2f}"
    format_sql(query.sql, subtitle=source)
    if query.explanation:
        console.print(f"[dim]{query.explanation}[/dim]")
    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")

    console.print(Panel(result.summary, title="[bold green]Answer[/bold green]"))
    series_title = f"Series ({result.chart_type})"
    if result.used_fallback_series:
        series_title += " - sample data, query returned no rows"
    format_rows(result.series, title=series_title)
    if show_data:
        format_rows(result.data, title=f"Rows ({result.total})")


@cli.command()
@click.argument("question")
@click.option("--type", "-t", "kind", type=KIND_CHOICE, default="mysql", show_default=True)
def generate(question: str, kind: str):
    """Generate SQL for a question without running it."""

    async def run_generate():
        registry = create_registry_from_config()
        pipeline = create_pipeline_from_config(registry)
        return await pipeline.generator.run(question, kind.lower())

    try:
        result = asyncio.run(run_generate())
    except ValueError as e:
        _fail(f"Error: {e}")

    query = result.query
    format_sql(query.sql, subtitle=f"{query.suggested_visualization} chart")
    console.print(f"Explanation: {query.explanation or '-'}")
    console.print(f"Confidence: {query.confidence:.2f}")
    if result.used_fallback:
        console.print("[yellow]Model unavailable or unusable; used a fallback template[/yellow]")
    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")


@cli.command()
@click.argument("sql")
@click.option("--type", "-t", "kind", type=KIND_CHOICE, default="postgresql", show_default=True)
def execute(sql: str, kind: str):
    """Run a read-only SQL statement against the active (or default) source."""

    async def run_execute():
        registry = create_registry_from_config()
        pipeline = create_pipeline_from_config(registry)
        return await pipeline.gate.execute(sql, kind=kind.lower())

    try:
        result = asyncio.run(run_execute())
    except SafetyRejection as e:
        _fail(f"Rejected ({e.classification.value}): {e.reason}")
    except ExecutionFailure as e:
        _fail(f"{e.message}: {e.details}")

    format_rows(result.rows, title=f"{result.row_count} rows in {result.execution_time_ms:.1f}ms")


@cli.command()
@click.option("--host", default=None, help="Bind host (default: API_HOST).")
@click.option("--port", default=None, type=int, help="Bind port (default: API_PORT).")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    bind_host = host or settings.api_host
    bind_port = port or settings.api_port
    console.print(f"[green]Serving DataSculpt API on http://{bind_host}:{bind_port}[/green]")
    uvicorn.run(
        "datasculpt.api.main:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=settings.logging.level.lower(),
    )


# ============================================================================
# Data Sources
# ============================================================================


@cli.group(name="sources")
def sources():
    """Manage registered data sources."""


@sources.command(name="list")
def list_sources():
    """List registered data sources."""
    registry = create_registry_from_config()
    items = registry.list()
    if not items:
        console.print("[yellow]No data sources registered[/yellow]")
        defaults = ", ".join(sorted(registry.defaults)) or "none"
        console.print(f"Environment defaults: {defaults}")
        return
    console.print(_source_table(items))


@sources.command(name="add")
@click.option("--name", required=True, help="User-friendly name.")
@click.option("--url", default=None, help="Connection URL (replaces the individual options).")
@click.option("--type", "kind", type=KIND_CHOICE, default=None)
@click.option("--host", default=None)
@click.option("--port", default=None, type=int)
@click.option("--database", default=None)
@click.option("--username", default=None)
@click.option("--password", default="", help="Prompted for when omitted with --prompt-password.")
@click.option("--prompt-password", is_flag=True, help="Read the password interactively.")
def add_source(
    name: str,
    url: str | None,
    kind: str | None,
    host: str | None,
    port: int | None,
    database: str | None,
    username: str | None,
    password: str,
    prompt_password: bool,
):
    """Register a data source and probe it."""
    if prompt_password:
        password = click.prompt("Password", hide_input=True, default="", show_default=False)

    try:
        if url:
            config = config_from_url(url, name=name)
        else:
            if not kind:
                _fail("Either --url or --type is required")
            payload = ConnectionConfigPayload(
                type=kind,
                host=host,
                port=port or DEFAULT_PORTS[kind.lower()],
                database=database,
                username=username,
                password=password,
            )
            config = payload.to_config(kind.lower(), name=name)
    except ValueError as e:
        _fail(f"Invalid data source: {e}")

    registry = create_registry_from_config()
    try:
        with console.status("[cyan]Probing connection...[/cyan]", spinner="dots"):
            source = asyncio.run(registry.add(config))
    except ValueError as e:
        _fail(f"Error: {e}")

    if source.status == "connected":
        console.print(f"[green]✓ Registered {config.name} ({source.id})[/green]")
    else:
        console.print(
            f"[yellow]Registered {config.name} ({source.id}) but the connection test failed[/yellow]"
        )
    if source.is_active:
        console.print("Active data source")


@sources.command(name="activate")
@click.argument("source_id")
def activate_source(source_id: str):
    """Make a data source the active one."""
    registry = create_registry_from_config()
    try:
        source = registry.activate(source_id)
    except KeyError:
        _fail(f"Data source not found: {source_id}")
    console.print(f"[green]✓ {source.config.name} is now active[/green]")


@sources.command(name="remove")
@click.argument("source_id")
@click.option("--yes", is_flag=True, help="Skip confirmation.")
def remove_source(source_id: str, yes: bool):
    """Remove a data source."""
    registry = create_registry_from_config()
    try:
        source = registry.get(source_id)
    except KeyError:
        _fail(f"Data source not found: {source_id}")
    if not yes and not click.confirm(f"Remove {source.config.name}?", default=False):
        console.print("Aborted.")
        return

    registry.remove(source_id)
    console.print(f"[green]✓ Removed {source.config.name}[/green]")
    active = registry.get_active()
    if active is not None:
        console.print(f"Active data source: {active.config.name}")


@sources.command(name="test")
@click.argument("source_id")
def test_source(source_id: str):
    """Re-probe a data source and record its status."""
    registry = create_registry_from_config()
    try:
        with console.status("[cyan]Probing connection...[/cyan]", spinner="dots"):
            source = asyncio.run(registry.refresh(source_id))
    except KeyError:
        _fail(f"Data source not found: {source_id}")

    if source.status == "connected":
        console.print(f"[green]✓ {source.config.name} is reachable[/green]")
    else:
        _fail(f"{source.config.name} is unreachable")


@sources.command(name="schema")
@click.argument("source_id")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the descriptor as YAML (usable as SCHEMA_PATH).",
)
def schema_source(source_id: str, output: str | None):
    """Introspect the tables of a data source."""
    registry = create_registry_from_config()
    try:
        config = registry.get(source_id).config
    except KeyError:
        _fail(f"Data source not found: {source_id}")

    database = get_settings().database
    try:
        with console.status("[cyan]Reading schema...[/cyan]", spinner="dots"):
            tables = asyncio.run(
                introspect_connection(
                    config,
                    connect_timeout=database.connect_timeout,
                    timeout=database.statement_timeout,
                )
            )
    except ConnectorError as e:
        _fail(f"Introspection failed: {e}")

    descriptor = SchemaDescriptor.from_tables(
        tables, name=config.database, business_name=config.name
    )
    if output:
        descriptor.to_yaml(output)
        console.print(f"[green]✓ Wrote {len(tables)} tables to {output}[/green]")
        return
    console.print(descriptor.render())


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
