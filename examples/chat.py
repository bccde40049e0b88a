#!/usr/bin/env python3
"""One-shot query through a memory tool server.

Starts the reference memory server, asks the model a question that needs a
tool, and prints every query event as it arrives.

Requirements:
    pip install mcp-chat
    npm (for ``npx @modelcontextprotocol/server-memory``)
    export ANTHROPIC_API_KEY=sk-ant-...
"""

from __future__ import annotations

import asyncio
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from mcp_chat import (
    AppSettings,
    ChatSession,
    ErrorEvent,
    TextEvent,
    ToolErrorEvent,
    ToolResultEvent,
    ToolStartEvent,
    load_settings,
)

console = Console()

QUESTION = "Remember that my favourite colour is teal, then tell me what you stored."


def _settings() -> AppSettings:
    settings = load_settings(create_default=False)
    if not settings.mcp_servers:
        settings = AppSettings.model_validate(
            {
                "modelProvider": {"apiKey": settings.api_key},
                "mcpServers": {
                    "memory": {
                        "command": "npx",
                        "args": ["-y", "@modelcontextprotocol/server-memory"],
                        "env": {"MEMORY_FILE_PATH": "./data/memory.json"},
                    }
                },
            }
        )
    return settings


async def main() -> int:
    async with ChatSession(_settings()) as session:
        statuses = await session.initialize()
        for status in statuses:
            console.print(f"[cyan]{status.name}[/cyan]: {', '.join(status.tools)}")
        console.print(f"[dim]Model: {session.get_current_model()}[/dim]\n")

        async for event in session.start_query(QUESTION):
            if isinstance(event, TextEvent):
                console.out(event.content, end="")
            elif isinstance(event, ToolStartEvent):
                console.print(f"\n[magenta]-> {event.tool_name} {escape(event.args)}[/magenta]")
            elif isinstance(event, ToolResultEvent):
                console.print(f"[green]<- {escape(event.result[:200])}[/green]")
            elif isinstance(event, ToolErrorEvent):
                console.print(f"[red]<- {event.tool_name} failed: {escape(event.error)}[/red]")
            elif isinstance(event, ErrorEvent):
                console.print(f"[red]{escape(event.content.strip())}[/red]")
                return 1
        console.print()
    return 0


if __name__ == "__main__":
    load_dotenv()
    sys.exit(asyncio.run(main()))
