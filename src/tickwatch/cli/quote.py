"""CLI commands for one-off quotes and inspecting configuration."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

console = Console()


def quote(
    symbol: Annotated[str, typer.Argument(help="Ticker symbol, e.g. AAPL")],
) -> None:
    """Fetch the latest price once."""
    from tickwatch.config.loader import ConfigurationError, get_settings, resolve_api_key
    from tickwatch.quotes.alpha_vantage import AlphaVantageClient
    from tickwatch.quotes.base import FetchError

    try:
        settings = get_settings()
        api_key = resolve_api_key(settings.alpha_vantage)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    with AlphaVantageClient(settings.alpha_vantage, api_key) as client:
        try:
            sample = client.fetch(symbol.strip().upper())
        except FetchError as e:
            typer.echo(f"[{e.kind.value}] {e.detail}", err=True)
            raise typer.Exit(1)

    typer.echo(f"{symbol.upper()} {sample.price:,.4f} @ {sample.observed_at.isoformat()}")


def show_config() -> None:
    """Show the effective settings (API key masked)."""
    from tickwatch.config.loader import ConfigurationError, get_settings, resolve_api_key

    settings = get_settings()
    try:
        key = resolve_api_key(settings.alpha_vantage)
        key_display = f"{key[:2]}{'*' * max(len(key) - 2, 0)}"
    except ConfigurationError:
        key_display = "[red]missing[/red]"

    table = Table(title="tickwatch settings", show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")

    av = settings.alpha_vantage
    poller = settings.poller
    rows = [
        ("api key", key_display),
        ("api key file", str(av.api_key_file)),
        ("base url", av.base_url),
        ("function", av.function),
        ("calls per minute", str(av.calls_per_minute)),
        ("timeouts (connect/read)", f"{av.connect_timeout:g}s / {av.read_timeout:g}s"),
        ("symbol", poller.symbol),
        ("interval", f"{poller.interval_seconds:g}s"),
        ("max samples", str(poller.max_samples)),
        ("log level", f"{settings.log_level} ({settings.log_format})"),
    ]
    for name, value in rows:
        table.add_row(name, value)

    console.print(table)
