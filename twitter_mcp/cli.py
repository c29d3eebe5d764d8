import asyncio
import logging
import os
from typing import Any, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from twitter_mcp.config import ConfigError, load_config

load_dotenv()
app = typer.Typer(help="MCP server exposing read-only X/Twitter tools over HTTP.")
console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )
    # httpx logs every request at INFO, including the full query string
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _parse_args(pairs: list[str]) -> dict[str, Any]:
    arguments: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got '{pair}'", param_hint="--arg")
        arguments[key.strip()] = _coerce(value)
    return arguments


def _coerce(value: str) -> Any:
    try:
        return int(value)
    except ValueError:
        return value


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port (default: PORT or 3000)"),
):
    """Start the HTTP server with POST /mcp and GET /health."""
    try:
        config = load_config()
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(1)

    _configure_logging(config.log_level)

    import uvicorn
    from twitter_mcp.api.server import create_app

    bind_host = host or config.host
    bind_port = port or config.port
    logging.getLogger(__name__).info("MCP server listening on %s:%s", bind_host, bind_port)
    uvicorn.run(create_app(config), host=bind_host, port=bind_port, log_config=None)


@app.command()
def tools():
    """List the tool catalogue and each tool's arguments."""
    from twitter_mcp.agent.tools import TOOLS

    table = Table(title="MCP tools")
    table.add_column("Tool", style="cyan")
    table.add_column("Description")
    table.add_column("Arguments", style="dim")
    for entry in TOOLS.values():
        schema = entry.input_schema()
        required = set(schema.get("required", []))
        args = []
        for name, prop in schema.get("properties", {}).items():
            bounds = [f"{k}={prop[k]}" for k in ("default", "minimum", "maximum") if k in prop]
            label = name if name in required else f"[{name}]"
            args.append(f"{label} {' '.join(bounds)}".strip())
        table.add_row(entry.name, entry.description, "\n".join(args) or "-")
    console.print(table)


@app.command()
def call(
    tool: str = typer.Argument(help="Tool name, e.g. search_tweets"),
    arg: Optional[list[str]] = typer.Option(None, "--arg", "-a", help="Tool argument as key=value (repeatable)"),
):
    """Run one tool against the X API and print its content."""
    try:
        # No inbound HTTP here, so the shared secret is not needed.
        config = load_config({**os.environ, "MCP_ALLOW_UNAUTHENTICATED": "true"})
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(1)

    _configure_logging(config.log_level)
    arguments = _parse_args(arg or [])

    from twitter_mcp.agent.tools import call_tool
    from twitter_mcp.platforms.x.client import XClient

    async def _run():
        async with XClient(
            config.bearer_token,
            base_url=config.api_base_url,
            max_text_length=config.max_text_length,
            timeout=config.request_timeout,
        ) as client:
            return await call_tool(client, tool, arguments)

    with console.status(f"[bold green]Calling {tool}..."):
        content = asyncio.run(_run())
    for block in content:
        console.print(block.text, markup=False, highlight=False)


if __name__ == "__main__":
    app()
