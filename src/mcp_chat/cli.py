"""CLI interface for mcp-chat."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import Iterator
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from mcp_chat._version import __version__
from mcp_chat.exceptions import McpChatError
from mcp_chat.models.events import (
    CancelledEvent,
    ErrorEvent,
    TextEvent,
    ToolErrorEvent,
    ToolResultEvent,
    ToolStartEvent,
)
from mcp_chat.models.server import ServerStatus
from mcp_chat.orchestrator import QueryEvent
from mcp_chat.session import ChatSession
from mcp_chat.settings import AppSettings, load_settings
from mcp_chat.tools.pool import ConnectionPool

app = typer.Typer(
    name="mcp-chat",
    help="Chat with Claude using tools from MCP servers.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

# Tool results longer than this are shortened in the transcript.
_RESULT_PREVIEW_CHARS = 200

_PROMPT = "\n[bold cyan]You> [/bold cyan]"

CHAT_HELP = """\
Type a message to chat.
  /new           start a new session
  /model <id>    switch model
  /models        list models
  /servers       list connected servers
  /exit          quit
Press Ctrl-C while a response is streaming to stop it."""


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


def _load(ctx: typer.Context) -> AppSettings:
    path: Path | None = ctx.obj.get("settings_path") if ctx.obj else None
    try:
        return load_settings(path)
    except McpChatError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
    settings_path: Path | None = typer.Option(  # noqa: B008
        None, "--settings", "-s", help="Path to server-settings.json"
    ),
    log_level: str = typer.Option("warning", "--log-level", "-l", help="Logging level"),
) -> None:
    if version:
        console.print(f"mcp-chat {__version__}")
        raise typer.Exit()
    _configure_logging(log_level)
    ctx.obj = {"settings_path": settings_path}


@app.command()
def info() -> None:
    """Show information about the mcp-chat installation."""
    table = Table(title="mcp-chat info")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Version", __version__)
    table.add_row("Python", sys.version.split()[0])

    for dep_name in ["anthropic", "mcp", "pydantic"]:
        try:
            mod = __import__(dep_name)
            ver = getattr(mod, "__version__", "installed")
            table.add_row(dep_name, str(ver))
        except ImportError:
            table.add_row(dep_name, "[red]not installed[/red]")

    console.print(table)


def _servers_table(statuses: list[ServerStatus]) -> Table:
    table = Table(title="Connected servers")
    table.add_column("Server", style="cyan")
    table.add_column("Tools", style="green")
    for status in statuses:
        table.add_row(status.name, ", ".join(status.tools) or "[dim]none[/dim]")
    return table


async def _connect_servers(settings: AppSettings) -> list[ServerStatus]:
    async with ConnectionPool() as pool:
        return await pool.connect_all(settings.mcp_servers)


@app.command()
def servers(ctx: typer.Context) -> None:
    """Connect to every configured server and list its tools."""
    settings = _load(ctx)
    if not settings.mcp_servers:
        console.print("[yellow]No servers configured.[/yellow]")
        return
    statuses = asyncio.run(_connect_servers(settings))
    console.print(_servers_table(statuses))
    failed = sorted(set(settings.mcp_servers) - {status.name for status in statuses})
    if failed:
        console.print(f"[red]Failed to connect: {', '.join(failed)}[/red]")


async def _list_models(settings: AppSettings) -> None:
    from mcp_chat.providers.anthropic import AnthropicProvider

    provider = AnthropicProvider(api_key=settings.api_key)
    try:
        await provider.initialize()
        current = provider.get_current_model()
        table = Table(title="Available models")
        table.add_column("", style="green")
        table.add_column("Id", style="cyan")
        table.add_column("Name")
        for model in provider.get_available_models():
            table.add_row("*" if model.id == current else "", model.id, model.name)
        console.print(table)
    finally:
        await provider.cleanup()


@app.command()
def models(ctx: typer.Context) -> None:
    """List the models available to the configured API key."""
    settings = _load(ctx)
    if not settings.api_key:
        console.print("[red]Error: modelProvider.apiKey is not set[/red]")
        raise typer.Exit(code=1)
    asyncio.run(_list_models(settings))


def render_event(event: QueryEvent) -> None:
    """Print one query event to the transcript."""
    if isinstance(event, TextEvent):
        console.out(event.content, end="", highlight=False)
    elif isinstance(event, ToolStartEvent):
        call = f"Calling tool {event.tool_name} with {event.args}"
        console.print(f"\n[magenta]{escape(f'[{call}]')}[/magenta]", highlight=False)
    elif isinstance(event, ToolResultEvent):
        preview = event.result[:_RESULT_PREVIEW_CHARS]
        if len(event.result) > _RESULT_PREVIEW_CHARS:
            preview += "..."
        console.print(
            f"[green]{escape(event.tool_name)} ->[/green] {escape(preview)}", highlight=False
        )
    elif isinstance(event, ToolErrorEvent):
        console.print(
            f"[red]{escape(event.tool_name)} failed: {escape(event.error)}[/red]", highlight=False
        )
    elif isinstance(event, ErrorEvent):
        console.print(f"[red]{escape(event.content.strip())}[/red]", highlight=False)
    elif isinstance(event, CancelledEvent):
        console.print("\n[yellow]\\[stopped][/yellow]")


@contextlib.contextmanager
def _stop_on_interrupt(session: ChatSession) -> Iterator[None]:
    """Route Ctrl-C to ``session.stop_query`` while a reply streams.

    The SIGINT handler in place before entry is restored on exit.
    """
    loop = asyncio.get_running_loop()
    previous = signal.getsignal(signal.SIGINT)
    try:
        loop.add_signal_handler(signal.SIGINT, session.stop_query)
    except NotImplementedError:
        yield
        return
    try:
        yield
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        if previous is not None:
            signal.signal(signal.SIGINT, previous)


async def _run_query(session: ChatSession, text: str) -> None:
    with _stop_on_interrupt(session):
        async for event in session.start_query(text):
            render_event(event)
        console.print()


async def _handle_command(session: ChatSession, line: str) -> bool:
    """Run a slash command. Returns ``False`` when the chat should end."""
    command, _, argument = line.partition(" ")
    argument = argument.strip()
    if command == "/exit":
        return False
    if command == "/new":
        session.new_session()
        console.print("[dim]Started a new session.[/dim]")
    elif command == "/model":
        try:
            if argument:
                session.set_model(argument)
            console.print(f"Current model: {session.get_current_model()}")
        except McpChatError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")
    elif command == "/models":
        for model in session.get_available_models():
            console.print(f"  {model.id}  [dim]{model.name}[/dim]")
    elif command == "/servers":
        console.print(_servers_table(session.get_connected_servers()))
    else:
        console.print(CHAT_HELP)
    return True


async def _chat(settings: AppSettings) -> None:
    async with ChatSession(settings) as session:
        statuses = await session.initialize()
        console.print(_servers_table(statuses))
        console.print(f"[dim]Model: {session.get_current_model()}[/dim]")
        console.print(CHAT_HELP)
        while True:
            try:
                line = (await asyncio.to_thread(console.input, _PROMPT)).strip()
            except (EOFError, KeyboardInterrupt):
                break
            if not line:
                continue
            if line.startswith("/"):
                if not await _handle_command(session, line):
                    break
                continue
            await _run_query(session, line)


@app.command()
def chat(ctx: typer.Context) -> None:
    """Start an interactive chat session."""
    settings = _load(ctx)
    try:
        asyncio.run(_chat(settings))
    except McpChatError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    app()
