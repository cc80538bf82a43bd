#!/usr/bin/env python3
"""CLI tool for trackhook operations."""

import asyncio
import json
import sys

import click
from rich.console import Console
from rich.table import Table

from .config import AppConfig
from .definitions import (
    AddTag,
    Argument,
    ChangeTasks,
    ConfigurationError,
    EventKind,
    Status,
    Title,
)
from .models import parse_hook

console = Console()


def _load(config_path: str) -> AppConfig:
    try:
        return AppConfig.load(config_path)
    except ConfigurationError as e:
        console.print(f"❌ {len(e.errors)} configuration error(s) in {config_path}:", style="red")
        for error in e.errors:
            console.print(f"  • {error}", style="red")
        sys.exit(1)
    except (OSError, ValueError) as e:
        console.print(f"❌ Failed to load configuration: {e}", style="red")
        sys.exit(1)


def _describe_update(update) -> str:
    if isinstance(update, Status):
        return f"status → {update.state}"
    if isinstance(update, AddTag):
        return f"add-tag {update.tag.title}"
    if isinstance(update, Title):
        return f"title → {update.text}"
    return repr(update)


@click.group()
@click.option("--config", default="config.yml", help="Configuration file path")
@click.pass_context
def cli(ctx, config):
    """trackhook: drive issue tracker updates from GitLab events."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


@cli.command()
@click.pass_context
def validate(ctx):
    """Validate the configuration file."""
    config = _load(ctx.obj["config_path"])
    definitions = config.definitions
    console.print(
        f"✅ Configuration is valid: {len(definitions.operations)} operation(s), "
        f"{len(definitions.tags)} tag(s), {len(definitions.router)} route(s)"
    )


@cli.command()
@click.pass_context
def routes(ctx):
    """Show which operations run for each event."""
    config = _load(ctx.obj["config_path"])

    table = Table(title="Event Routes")
    table.add_column("Event", style="cyan")
    table.add_column("Bucket", style="green")
    table.add_column("Operation", style="yellow")
    table.add_column("Filter", style="magenta")
    table.add_column("Updates", style="white")

    for kind, bucket, operations in config.definitions.router.routes():
        for operation in operations:
            filters = updates = ""
            if isinstance(operation, ChangeTasks):
                filters = ", ".join(
                    f"{param.kind.value}={param.value}"
                    for param in (f.to_search_param() for f in operation.filter)
                ) or "None"
                updates = ", ".join(_describe_update(u) for u in operation.update) or "None"
            table.add_row(kind.value, bucket, operation.name, filters, updates)

    console.print(table)


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.pass_context
def serve(ctx, host, port):
    """Start the GitLab webhook server."""
    config = _load(ctx.obj["config_path"])
    host = host or config.webhook.host
    port = port or config.webhook.port

    try:
        import uvicorn

        from .server import create_app

        console.print("🚀 Starting trackhook webhook server...")
        console.print(f"📡 Host: {host}")
        console.print(f"🔌 Port: {port}")
        console.print(f"🪝 Endpoint: {config.webhook.endpoint}")

        uvicorn.run(create_app(config), host=host, port=port, log_level="info")

    except KeyboardInterrupt:
        console.print("⏹️  Server stopped by user")


@cli.command()
@click.argument("kind", type=click.Choice([k.value for k in EventKind]))
@click.argument("bucket")
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def trigger(ctx, kind, bucket, payload_file):
    """Run the operations routed to KIND/BUCKET with a webhook payload file."""
    config = _load(ctx.obj["config_path"])

    from .service import WebhookService

    try:
        with open(payload_file, "r", encoding="utf-8") as fh:
            hook = parse_hook(json.load(fh))
        service = WebhookService(config)
        results = asyncio.run(service.process_event(EventKind(kind), bucket, Argument.from_hook(hook)))
    except Exception as e:
        console.print(f"❌ Error running operations: {e}", style="red")
        sys.exit(1)

    if not results:
        console.print(f"ℹ️  No operations configured for {kind}/{bucket}")
        return

    table = Table(title=f"Results for {kind}/{bucket}")
    table.add_column("Operation", style="cyan")
    table.add_column("Gate", style="green")
    table.add_column("Issues", style="yellow")
    table.add_column("Errors", style="red")
    for result in results:
        errors = [result.error] if result.error else []
        errors += [f"{issue.key}: {issue.error}" for issue in result.issues if issue.error]
        table.add_row(
            result.name,
            "✅" if result.gate_passed else "❌",
            str(len(result.issues)),
            "\n".join(errors) or "-",
        )
    console.print(table)


if __name__ == "__main__":
    cli()
