"""Thin CLI wrapper for stitch_mcp.

This module provides the command-line interface using Typer.
The MCP server logic lives in the mcp_server package; logs go to
stderr because stdout carries the stdio transport.
"""

import asyncio
import json
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from stitch_mcp import __version__
from stitch_mcp.config import Settings, get_settings, print_settings_json
from stitch_mcp.errors import CredentialError

app = typer.Typer(
    name="stitch-mcp",
    help="Stitch MCP - expose Google Stitch design generation to MCP clients",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("stitch_mcp")


def configure_logging(level: str) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
        ],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"stitch-mcp version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Stitch MCP - expose Google Stitch design generation to MCP clients."""


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        typer.echo(print_settings_json(settings))
    else:
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Remote:[/bold]")
        console.print(f"  API URL:             {settings.api_url}")
        console.print(f"  Image directory:     {settings.image_dir}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log level:           {settings.log_level}")
        console.print(f"  Max walk depth:      {settings.max_walk_depth}")
        console.print(f"  CLI output cap:      {settings.cli_max_output} bytes")
        console.print()
        console.print("[bold]Timeouts (seconds):[/bold]")
        console.print(f"  Request timeout:     {settings.request_timeout:g}")
        console.print(f"  Download timeout:    {settings.download_timeout:g}")
        console.print(f"  CLI timeout:         {settings.cli_timeout:g}")


@app.command()
def check(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Verify that a project and gcloud credentials are available."""
    from stitch_mcp.credentials import CredentialProvider

    settings = get_settings()
    configure_logging(settings.log_level)
    provider = CredentialProvider(settings)

    async def _check() -> str:
        project_id = await provider.resolve_project_id()
        await provider.resolve_access_token()
        return project_id

    try:
        project_id = asyncio.run(_check())
    except CredentialError as e:
        if json_output:
            typer.echo(
                json.dumps(
                    {"ok": False, "error": {"code": e.code, "message": str(e)}},
                    indent=2,
                )
            )
        else:
            console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        typer.echo(json.dumps({"ok": True, "project_id": project_id}, indent=2))
    else:
        console.print(f"[green]Project:[/green] {project_id}")
        console.print("[green]Auth verified[/green]")


@app.command()
def tools(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List the tools the server advertises (remote and local)."""
    from mcp_server.handlers import list_tools
    from stitch_mcp.session import create_session

    settings = get_settings()
    configure_logging(settings.log_level)

    async def _list() -> list:
        session = await create_session(settings, verify_auth=False)
        return await list_tools(session)

    try:
        tool_list = asyncio.run(_list())
    except CredentialError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from None

    if json_output:
        output = [t.model_dump(mode="json", exclude_none=True) for t in tool_list]
        typer.echo(json.dumps(output, indent=2))
    else:
        console.print(f"[bold]Found {len(tool_list)} tool(s):[/bold]")
        console.print()
        for t in tool_list:
            console.print(f"  [green]{t.name}[/green]")
            if t.description:
                console.print(f"    {t.description}")
            console.print()


async def _serve(settings: Settings) -> None:
    from mcp_server.server import run_stdio
    from stitch_mcp.session import create_session

    session = await create_session(settings)
    await run_stdio(session)


@app.command()
def serve() -> None:
    """Run the MCP server on stdio.

    Startup fails with exit code 1 when no project or credentials
    can be resolved.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        asyncio.run(_serve(settings))
    except CredentialError as e:
        logger.error("Fatal Startup Error: %s", e)
        raise typer.Exit(code=1) from None


if __name__ == "__main__":
    app()
