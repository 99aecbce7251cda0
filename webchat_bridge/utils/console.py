"""
Rich console utilities for dual-mode CLI output.

Provides readable terminal output for humans and structured JSON for agents.
All output functions automatically adapt based on the global output_mode setting.

This module provides:
- OutputMode: Class to manage output format (text/json)
- Context managers: spinner()
- Output functions: success(), error(), warning(), info()
- Display functions: print_reply(), print_tabs_table(), print_history_table()

Human Mode (--format text):
    - Rich spinner while the browser tab is generating
    - Panels and tables
    - ANSI colors and Unicode symbols

Agent Mode (--format json):
    - Structured JSON output to stdout
    - No ANSI codes or spinners

Examples:
    >>> from webchat_bridge.utils.console import output_mode, spinner, success
    >>> output_mode.format = "text"
    >>> with spinner("Waiting for claude..."):
    ...     message = await bridge.complete(model, conversation)
    >>> success("Reply received")
"""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table


class OutputMode:
    """
    Output mode configuration for dual-mode CLI.

    Attributes:
        format: Output format - "text" (human) or "json" (agent)
        _json_buffer: Internal buffer for JSON output in agent mode

    Examples:
        >>> mode = OutputMode()
        >>> mode.is_human()
        True
        >>> mode.format = "json"
        >>> mode.is_agent()
        True
    """

    def __init__(self, format_type: str = "text"):
        if format_type not in ["text", "json"]:
            raise ValueError(f"Invalid format: {format_type}. Must be 'text' or 'json'")

        self.format = format_type
        self._json_buffer: dict[str, Any] = {}

    def is_human(self) -> bool:
        return self.format == "text"

    def is_agent(self) -> bool:
        return self.format == "json"

    def add_json(self, key: str, value: Any) -> None:
        """
        Add key-value pair to JSON buffer.

        Used in agent mode to accumulate structured data
        before final output via flush_json().
        """
        self._json_buffer[key] = value

    def flush_json(self) -> None:
        """
        Output buffered JSON to stdout and clear buffer.

        Only outputs in agent mode. In human mode, this is a no-op.
        """
        if self.is_agent() and self._json_buffer:
            json.dump(self._json_buffer, sys.stdout, indent=2)
            sys.stdout.write("\n")
            sys.stdout.flush()
            self._json_buffer.clear()


# Global output mode instance (set by CLI flags)
output_mode = OutputMode()

# Global Rich console instances for human mode
console = Console()  # stdout
console_err = Console(stderr=True)  # stderr


@contextmanager
def spinner(message: str):
    """
    Context manager for showing a spinner during operations.

    Displays a Rich spinner with message in human mode, silent otherwise.
    """
    if output_mode.is_human():
        with console.status(f"[bold blue]{message}", spinner="dots") as status:
            yield status
    else:
        yield None


def success(message: str) -> None:
    """Print a success message (green checkmark) or buffer it as JSON."""
    if output_mode.is_human():
        console.print(f"[green]✓[/green] {message}")
    elif output_mode.is_agent():
        output_mode.add_json("status", "success")
        output_mode.add_json("message", message)


def error(message: str) -> None:
    """Print an error message to stderr (red X) or buffer it as JSON."""
    if output_mode.is_human():
        console_err.print(f"[red]✗[/red] {message}", style="red")
    elif output_mode.is_agent():
        output_mode.add_json("status", "error")
        output_mode.add_json("error", message)


def warning(message: str) -> None:
    """Print a warning message (yellow) or buffer it as JSON."""
    if output_mode.is_human():
        console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")
    elif output_mode.is_agent():
        output_mode.add_json("warning", message)


def info(message: str) -> None:
    """Print an info message in human mode. Silent for agents."""
    if output_mode.is_human():
        console.print(f"[blue]ℹ[/blue] {message}")


def print_reply(text: str, model: str, platform: str | None = None) -> None:
    """
    Print a scraped reply.

    Human mode: Rich panel titled with the detected model
    Agent mode: Buffer reply fields as JSON
    """
    if output_mode.is_agent():
        output_mode.add_json("reply", text)
        output_mode.add_json("model", model)
        if platform:
            output_mode.add_json("platform", platform)
        return

    title = f"[bold cyan]{model}[/bold cyan]"
    if platform:
        title += f" [dim]({platform})[/dim]"
    console.print(Panel(text, title=title, border_style="cyan", box=box.ROUNDED))


def print_tabs_table(tabs: list[dict]) -> None:
    """
    Print the open browser tabs with their detected platform.

    Expected dict keys in tabs:
    - index (int): Position in the browser's page list
    - title (str): Page title
    - url (str): Page URL
    - platform (str): Detected platform id
    - selected (bool): Whether the bridge would operate on this tab
    """
    if output_mode.is_agent():
        output_mode.add_json("tabs", tabs)
        return

    table = Table(title="Open Tabs", box=box.ROUNDED)

    table.add_column("#", justify="right", style="dim")
    table.add_column("Platform", style="magenta")
    table.add_column("Title", style="cyan", overflow="fold")
    table.add_column("URL", overflow="fold")
    table.add_column("Selected", justify="center")

    for tab in tabs:
        selected = "[green]✓[/green]" if tab.get("selected") else ""
        table.add_row(
            str(tab.get("index", "")),
            tab.get("platform", ""),
            tab.get("title", ""),
            tab.get("url", ""),
            selected,
        )

    console.print(table)


def print_history_table(turns: list[dict]) -> None:
    """
    Print recent turns from the turn log.

    Expected dict keys: created_at, provider, model, prompt, response.
    Long prompts and responses are shortened to keep rows on one line.
    """
    if output_mode.is_agent():
        output_mode.add_json("turns", turns)
        return

    table = Table(title="Recent Turns", box=box.ROUNDED)

    table.add_column("When", style="dim", no_wrap=True)
    table.add_column("Model", style="magenta")
    table.add_column("Prompt", style="cyan")
    table.add_column("Response")

    for turn in turns:
        table.add_row(
            turn.get("created_at", ""),
            turn.get("model") or "",
            _shorten(turn.get("prompt", "")),
            _shorten(turn.get("response", "")),
        )

    console.print(table)


def _shorten(text: str, limit: int = 60) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"
