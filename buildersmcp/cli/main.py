"""
Builders MCP CLI.

Run `buildersmcp serve` to start the MCP server, or use `health`,
`docs-tools`, and `call` to inspect the tools without serving. With no
command it serves, same as `serve`.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from buildersmcp import __version__
from buildersmcp.analytics import ToolCallTracker
from buildersmcp.server.app import BuildersServer, run_server
from buildersmcp.server.host import ToolHost
from buildersmcp.validation.config import BuildersConfig, Config, ConfigError

console = Console()
# stdout carries the MCP stream in stdio mode, so logs go to stderr.
err_console = Console(stderr=True)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _offline_server(config: BuildersConfig) -> BuildersServer:
    """A server with an in-process host only (no FastMCP), for one-shot commands."""
    tracker = ToolCallTracker(
        server_name=config.analytics.server_name,
        distinct_id=config.analytics.distinct_id,
        transport="cli",
        enabled=config.analytics.enabled,
    )
    return BuildersServer(config, host=ToolHost(wrappers=[tracker.wrap]), tracker=tracker)


async def _with_server(config: BuildersConfig, fn):
    server = _offline_server(config)
    try:
        return await fn(server)
    finally:
        await server.aclose()


def _parse_arg(pair: str) -> Tuple[str, Any]:
    if "=" not in pair:
        raise click.BadParameter(f"expected key=value, got {pair!r}")
    key, raw = pair.split("=", 1)
    try:
        value = json.loads(raw)
    except ValueError:
        value = raw
    return key.strip(), value


@click.group(invoke_without_command=True)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def cli(ctx: click.Context, version: bool, log_level: Optional[str]) -> None:
    """SODAX Builders MCP server: live API data and SDK docs as MCP tools."""
    if version:
        console.print(f"buildersmcp {__version__}")
        ctx.exit(0)

    try:
        config = Config.load().merged
    except ConfigError as e:
        err_console.print(f"[red]{e}[/red]")
        ctx.exit(2)

    _configure_logging(log_level or config.logging.level)
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@cli.command()
@click.option("--transport", "-t", type=click.Choice(["stdio", "http"]), default=None, help="Transport to serve on")
@click.option("--host", default=None, help="Bind address (http only)")
@click.option("--port", "-p", type=int, default=None, help="Port (http only)")
@click.pass_obj
def serve(config: BuildersConfig, transport: Optional[str], host: Optional[str], port: Optional[int]) -> None:
    """Start the MCP server."""
    if host:
        config.server.host = host
    if port:
        config.server.port = port
    if transport:
        config.server.transport = transport
    run_server(config, transport)


@cli.command()
@click.pass_obj
def health(config: BuildersConfig) -> None:
    """Check the SDK docs proxy connection."""

    async def check(server: BuildersServer) -> Dict[str, Any]:
        return await server.health()

    report = asyncio.run(_with_server(config, check))
    docs = report["sdkDocsProxy"]
    if docs["healthy"]:
        console.print(f"  [green]✓[/green] {config.docs.label} MCP reachable: {docs['toolCount']} tools")
    else:
        console.print(f"  [yellow]✗[/yellow] {config.docs.label} MCP degraded: 0 tools")
        console.print(f"    [dim]Source: {config.docs.url}[/dim]")
        sys.exit(1)


@cli.command("docs-tools")
@click.pass_obj
def docs_tools(config: BuildersConfig) -> None:
    """List the tools proxied from the SDK docs MCP."""

    async def fetch(server: BuildersServer):
        return await server.docs_cache.get_tools()

    tools = asyncio.run(_with_server(config, fetch))
    if not tools:
        console.print("[dim]No SDK docs tools available. The docs MCP may be unreachable.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Parameters", style="dim")

    for tool in tools:
        params = ", ".join(f"{p.name}{'*' if p.required else ''}: {p.kind.value}" for p in tool.params())
        table.add_row(f"{config.docs.prefix}_{tool.name}", tool.description.split("\n")[0][:80], params or "(none)")

    console.print(table)
    console.print("[dim]* required[/dim]")


@cli.command()
@click.argument("name")
@click.option("--arg", "-a", "pairs", multiple=True, help="Tool argument as key=value (value parsed as JSON if possible)")
@click.option("--json-args", default=None, help="Tool arguments as a JSON object")
@click.pass_obj
def call(config: BuildersConfig, name: str, pairs: Tuple[str, ...], json_args: Optional[str]) -> None:
    """Invoke a tool in-process and print its output."""
    arguments: Dict[str, Any] = {}
    if json_args:
        try:
            arguments.update(json.loads(json_args))
        except ValueError as e:
            raise click.BadParameter(f"invalid JSON: {e}", param_hint="--json-args")
    arguments.update(_parse_arg(pair) for pair in pairs)

    async def invoke(server: BuildersServer):
        await server.setup(warm=False)
        return await server.host.call(name, arguments)

    result = asyncio.run(_with_server(config, invoke))
    style = "red" if result.is_error else "blue"
    console.print(Panel(result.text, title=name, border_style=style))
    if result.is_error:
        sys.exit(1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
