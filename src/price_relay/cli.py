"""Click-based CLI for price-relay.

Thin wrapper around the router. Every lookup goes through the same command
grammar a chat bridge would use, so the CLI answers exactly like the bot.
"""

from __future__ import annotations

import asyncio
import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine from synchronous Click code."""
    return asyncio.run(coro)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load_config(ctx: click.Context):
    """Load config lazily, caching on first call."""
    if "config" not in ctx.obj:
        from price_relay.core import ConfigError, load_config

        try:
            ctx.obj["config"] = load_config(config_path=ctx.obj.get("config_path"))
        except ConfigError as e:
            raise click.ClickException(f"Invalid configuration: {e}") from e
    return ctx.obj["config"]


async def _answer(config, text: str, load_index: bool) -> str | None:
    """Build a router, route ``text`` through it, and tear it down."""
    from price_relay.router import QueryRouter

    router = QueryRouter(config)
    try:
        if load_index:
            with console.status("Loading store indexes..."):
                await router.startup(wait=True)
        return await router.ask(text)
    finally:
        await router.close()


def _emit(response: str | None) -> None:
    if response is None:
        console.print("[yellow]Nothing to answer: the text did not match a command.[/yellow]")
        raise SystemExit(1)
    click.echo(response)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    envvar="PRICE_RELAY_CONFIG",
    default=None,
    help="Path to price-relay.yml config file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.version_option(package_name="price-relay")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """price-relay: game prices from several stores at once."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["console"] = console
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# ask
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("source", type=str)
@click.argument("text", nargs=-1, required=True)
@click.option(
    "--no-index",
    is_flag=True,
    default=False,
    help="Skip loading pre-loaded store indexes (those stores will miss).",
)
@click.pass_context
def ask(ctx: click.Context, source: str, text: tuple[str, ...], no_index: bool) -> None:
    """Look TEXT up in a single SOURCE store."""
    config = _load_config(ctx)
    known = [str(s) for s in config.sources.active]
    if source.lower() not in known:
        raise click.UsageError(
            f"Unknown or disabled source '{source}'. Choose from: {', '.join(known)}"
        )
    line = f"{config.bot.command_prefix}{source.lower()} {' '.join(text)}"
    _emit(_run_async(_answer(config, line, load_index=not no_index)))


# ---------------------------------------------------------------------------
# query
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("text", nargs=-1, required=True)
@click.option(
    "--no-index",
    is_flag=True,
    default=False,
    help="Skip loading pre-loaded store indexes (those stores will miss).",
)
@click.pass_context
def query(ctx: click.Context, text: tuple[str, ...], no_index: bool) -> None:
    """Look TEXT up in every enabled store and merge the answers."""
    config = _load_config(ctx)
    line = f"{config.bot.name} {' '.join(text)}"
    _emit(_run_async(_answer(config, line, load_index=not no_index)))


# ---------------------------------------------------------------------------
# sources
# ---------------------------------------------------------------------------


@cli.command()
@click.pass_context
def sources(ctx: click.Context) -> None:
    """List enabled stores in priority order."""
    config = _load_config(ctx)

    table = Table(title="price-relay sources")
    table.add_column("#", justify="right")
    table.add_column("Command", style="bold")
    table.add_column("Store")

    for i, source_id in enumerate(config.sources.active, start=1):
        table.add_row(
            str(i),
            f"{config.bot.command_prefix}{source_id}",
            source_id.display_name,
        )

    Console().print(table)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", type=str, default=None, help="Bind address (default: api.host).")
@click.option("--port", "-p", type=int, default=None, help="Port number (default: api.port).")
@click.option("--reload", is_flag=True, default=False, help="Auto-reload on code changes.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Start the chat webhook server."""
    import uvicorn

    config = _load_config(ctx)
    host = host or config.api.host
    port = port or config.api.port

    console.print(f"Starting price-relay webhook on [bold]{host}:{port}[/bold]")
    console.print(f"API docs: http://{host}:{port}/docs")

    uvicorn.run(
        "price_relay.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
