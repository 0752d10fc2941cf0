"""hookgate CLI: serve the webhook and inspect its event catalog."""

from __future__ import annotations

from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from hookgate.catalog import (
    OPENAPI_URL,
    CatalogError,
    api_version,
    extract_webhook_events,
    fetch_openapi,
    load_api_version,
    load_catalog,
    save_api_info,
    save_catalog,
)
from hookgate.config import get_config
from hookgate.topology import resolve_topology

app = typer.Typer(
    name="hookgate",
    help="Webhook ingress filter and event router",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


@app.command()
def serve(
    host: str = typer.Option("", "--host", help="Bind host (default from config)"),
    port: int = typer.Option(0, "--port", "-p", help="Bind port (default from config)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Start the webhook server."""
    import uvicorn

    config = get_config()
    console.print(Panel(f"Starting hookgate on /{config.trigger.path}", border_style="blue"))
    uvicorn.run(
        "hookgate.main:app",
        host=host or config.host,
        port=port or config.port,
        reload=reload,
    )


@app.command()
def version() -> None:
    """Show hookgate version."""
    from hookgate import __version__

    console.print(f"hookgate v{__version__}")


@app.command()
def events(
    catalog_path: str = typer.Option("", "--catalog", help="Catalog file (default: bundled)"),
) -> None:
    """List the events a trigger can subscribe to."""
    source = catalog_path or get_config().catalog_path
    try:
        catalog = load_catalog(source)
        built_on = load_api_version(source)
    except (OSError, CatalogError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    title = f"Webhook Events (built on API version {built_on})" if built_on else "Webhook Events"
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Value")
    for option in catalog:
        table.add_row(option.name, option.value)

    console.print()
    console.print(table)
    console.print()


@app.command()
def topology(
    events_csv: str = typer.Option("", "--events", "-e", help="Comma-separated events (default from config)"),
) -> None:
    """Show the output channels a subscription resolves to."""
    if events_csv:
        subscription = [item.strip() for item in events_csv.split(",") if item.strip()]
    else:
        subscription = get_config().trigger.events

    resolved = resolve_topology(subscription)
    table = Table(title=f"Outputs for {subscription or '[]'}")
    table.add_column("#", style="dim")
    table.add_column("Token", style="cyan")
    table.add_column("Label")
    for channel in resolved.channels:
        table.add_row(str(channel.index), channel.token, channel.label)

    console.print()
    console.print(table)
    console.print()


@app.command()
def catalog(
    openapi_path: str = typer.Option("openapi.json", "--openapi", help="Local OpenAPI document (downloaded if missing)"),
    url: str = typer.Option(OPENAPI_URL, "--url", help="Where to download the OpenAPI document from"),
    output: str = typer.Option("webhook-events.json", "--output", "-o", help="Catalog file to write"),
    deprecated: bool = typer.Option(False, "--deprecated", help="Keep only deprecated events"),
    include_all: bool = typer.Option(False, "--all", help="Keep deprecated and current events"),
) -> None:
    """Regenerate the event catalog from the WAHA OpenAPI document."""
    try:
        doc = fetch_openapi(openapi_path, url)
        options = extract_webhook_events(doc, deprecated=deprecated, get_all=include_all)
        written = save_catalog(options, Path(output))
        version_label = api_version(doc)
        save_api_info(version_label, written.parent)
    except httpx.HTTPError as e:
        console.print(f"[red]Error:[/red] Cannot download {url}: {e}")
        raise typer.Exit(1)
    except (OSError, CatalogError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Wrote {len(options)} events to {written} (API v{version_label})")


def main() -> None:
    """Entrypoint."""
    app()


if __name__ == "__main__":
    main()
