"""Root CLI application."""

from __future__ import annotations

import typer

from tickwatch.cli.quote import quote, show_config
from tickwatch.cli.watch import watch

app = typer.Typer(
    name="tickwatch",
    help="Poll a stock quote at a fixed rate and keep a bounded price history.",
    no_args_is_help=True,
)

app.command("watch", help="Poll a quote and print samples as they arrive")(watch)
app.command("quote", help="Fetch one quote")(quote)
app.command("config", help="Show effective settings")(show_config)


def main() -> None:
    from tickwatch.config.loader import ConfigurationError, get_settings
    from tickwatch.utils.logging import setup_logging

    try:
        settings = get_settings()
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)
    setup_logging(settings.log_level, settings.log_format)
    app()
