"""CLI command that polls a quote and prints samples as they arrive."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from typing_extensions import Annotated

from tickwatch.quotes.base import FetchError, RateLimited, Sample
from tickwatch.storage.sample_buffer import SampleBuffer

console = Console()


def _history_table(symbol: str, buffer: SampleBuffer) -> Table:
    table = Table(title=f"{symbol} history ({len(buffer)}/{buffer.capacity})", header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Observed at (UTC)")
    table.add_column("Price", justify="right")
    for i, sample in enumerate(buffer.snapshot(), start=1):
        table.add_row(str(i), sample.observed_at.strftime("%Y-%m-%d %H:%M:%S"), f"{sample.price:,.4f}")
    return table


def watch(
    symbol: Annotated[
        Optional[str], typer.Option("--symbol", "-s", help="Ticker symbol, e.g. AAPL")
    ] = None,
    interval: Annotated[
        Optional[float], typer.Option("--interval", "-i", help="Seconds between polls (>= 1)")
    ] = None,
    max_samples: Annotated[
        Optional[int], typer.Option("--max-samples", "-n", help="Samples kept in history")
    ] = None,
    count: Annotated[
        Optional[int], typer.Option("--count", "-c", help="Stop after this many ticks")
    ] = None,
) -> None:
    """Poll a quote at a fixed rate and print each sample."""
    from tickwatch.config.loader import ConfigurationError, get_settings, load_poller_config
    from tickwatch.polling.dispatch import QueueDispatcher
    from tickwatch.polling.poller import Poller
    from tickwatch.quotes.alpha_vantage import AlphaVantageClient

    try:
        settings = get_settings()
        config = load_poller_config(settings, symbol=symbol, interval=interval, max_samples=max_samples)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)

    buffer = SampleBuffer(config.max_samples)
    dispatcher = QueueDispatcher()
    delivered = 0

    def on_sample(sample: Sample) -> None:
        nonlocal delivered
        delivered += 1
        console.print(
            f"[green]{sample.observed_at:%H:%M:%S}[/green]  {config.symbol}  "
            f"[bold]{sample.price:,.4f}[/bold]  ({len(buffer)}/{buffer.capacity})"
        )

    def on_error(error: FetchError) -> None:
        nonlocal delivered
        delivered += 1
        style = "yellow" if isinstance(error, RateLimited) else "red"
        console.print(f"[{style}]{error.kind.value}[/{style}]  {error.detail}")

    typer.echo(
        f"Polling {config.symbol} every {config.poll_interval_seconds:g}s "
        f"(keeping {config.max_samples} samples). Ctrl-C to stop."
    )

    with AlphaVantageClient(settings.alpha_vantage, config.api_key) as client:
        poller = Poller(
            client,
            buffer,
            config.symbol,
            dispatcher=dispatcher,
            stop_timeout=config.stop_timeout,
        )
        poller.start(config.poll_interval_seconds, on_sample, on_error)
        try:
            dispatcher.run_until(lambda: count is not None and delivered >= count)
        except KeyboardInterrupt:
            typer.echo("Stopping...")
        finally:
            poller.stop()
            dispatcher.drain()

    console.print(_history_table(config.symbol, buffer))
