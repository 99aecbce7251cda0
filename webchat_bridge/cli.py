"""
CLI entrypoint for webchat-bridge.

Provides a dual-mode command-line interface with:
- Human-friendly output: Rich spinners, panels, tables, colored text
- Agent-friendly output: Structured JSON for AI automation

Commands:
    ask: Send a prompt through the focused chat tab and print the reply
    tabs: List open tabs and the platform detected on each
    check: Probe the remote debugging endpoint
    history: Show recent turns from the turn log

Exit codes:
    0: Success
    1: Configuration error (invalid settings file, bad URL, bad regex)
    2: Turn log error (cannot create/read SQLite)
    3: Bridge error (browser unreachable, input missing, timeout, ...)

Examples:
    # Start Chrome with remote debugging, open a chat tab, then:
    webchat-bridge check
    webchat-bridge ask "Summarize the plot of Hamlet in two sentences"

    # Agent-friendly JSON output (no spinners, no colors)
    webchat-bridge ask "hello" --format json

    # Record turns and review them later
    webchat-bridge ask "hello" --turn-log
    webchat-bridge history --limit 5
"""

import asyncio
from pathlib import Path

import typer
from rich.traceback import install as install_rich_traceback

from webchat_bridge.bridge.channel import list_targets, probe_endpoint
from webchat_bridge.bridge.models import Conversation, Message, ModelInfo
from webchat_bridge.bridge.stream import BrowserBridge
from webchat_bridge.config.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_MODEL_ID
from webchat_bridge.config.loader import (
    load_settings_file,
    resolve_settings,
    resolve_turn_log_settings,
)
from webchat_bridge.config.schema import BridgeSettings, TurnLogSettings
from webchat_bridge.exceptions import (
    BridgeError,
    ConfigFileNotFoundError,
    ConfigurationError,
    TurnLogError,
)
from webchat_bridge.storage.turn_log import TurnLog, TurnRecord
from webchat_bridge.utils.console import (
    error,
    info,
    output_mode,
    print_history_table,
    print_reply,
    print_tabs_table,
    spinner,
    success,
    warning,
)
from webchat_bridge.utils.logging import setup_logging

# Install Rich tracebacks for better error messages
install_rich_traceback(show_locals=False)

# Exit codes
EXIT_SUCCESS = 0  # Reply received / command succeeded
EXIT_CONFIG_ERROR = 1  # Settings validation failed
EXIT_TURN_LOG_ERROR = 2  # Turn log unreadable or unwritable
EXIT_BRIDGE_ERROR = 3  # Bridge round trip ended in an error event

# Create Typer app
app = typer.Typer(
    name="webchat-bridge",
    help="Relay prompts to the chat tab open in your browser",
    add_completion=False,
)


def _set_output(format: str, verbose: bool) -> None:
    if format not in ("text", "json"):
        error(f"Invalid format: {format}. Must be 'text' or 'json'")
        raise typer.Exit(EXIT_CONFIG_ERROR)
    output_mode.format = format
    setup_logging(verbose=verbose)


def _load_settings(
    config: Path | None,
    cdp_url: str | None = None,
    url_regex: str | None = None,
    timeout: float | None = None,
    turn_log: bool | None = None,
) -> tuple[BridgeSettings, TurnLogSettings]:
    """
    Resolve settings: CLI flags > settings file > environment > defaults.

    Exits with EXIT_CONFIG_ERROR on any configuration error.
    """
    bridge_options: dict = {}
    turn_log_options: dict = {}

    try:
        if config is not None:
            settings_file = load_settings_file(config)
            bridge_options.update(settings_file.bridge)
            if settings_file.turn_log is not None:
                turn_log_options.update(
                    settings_file.turn_log.model_dump(exclude_unset=True)
                )

        flags = {"cdp_url": cdp_url, "url_regex": url_regex, "timeout_seconds": timeout}
        bridge_options.update({k: v for k, v in flags.items() if v is not None})
        if turn_log is not None:
            turn_log_options["enabled"] = turn_log

        return (
            resolve_settings(bridge_options),
            resolve_turn_log_settings(turn_log_options),
        )

    except ConfigFileNotFoundError as e:
        error(f"Settings file not found: {e}")
        output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except ConfigurationError as e:
        error(f"Configuration validation failed: {e}")
        output_mode.flush_json()
        raise typer.Exit(EXIT_CONFIG_ERROR)


# Options shared by the commands that talk to the browser
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to YAML settings file",
    dir_okay=False,
)
CDP_URL_OPTION = typer.Option(
    None,
    "--cdp-url",
    help="Remote debugging endpoint (default: $WEBCHAT_BRIDGE_CDP_URL or http://127.0.0.1:9222)",
)
URL_REGEX_OPTION = typer.Option(
    None,
    "--url-regex",
    help="Pattern for picking a tab when none holds focus",
)
TIMEOUT_OPTION = typer.Option(
    None,
    "--timeout",
    "-t",
    help="Seconds to wait for the reply to start, and again for it to finish",
)
FORMAT_OPTION = typer.Option(
    "text",
    "--format",
    "-f",
    help="Output format: 'text' (human-friendly) or 'json' (machine-readable)",
)
VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Enable debug logging",
)


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Prompt to send to the chat tab"),
    model: str = typer.Option(
        DEFAULT_MODEL_ID,
        "--model",
        "-m",
        help="Model id reported when the page shows no model label",
    ),
    session_id: str | None = typer.Option(
        None, "--session-id", help="Session identifier stored with the turn"
    ),
    session_key: str | None = typer.Option(
        None, "--session-key", help="Session routing key stored with the turn"
    ),
    turn_log: bool | None = typer.Option(
        None,
        "--turn-log/--no-turn-log",
        help="Record the turn in the local turn log",
    ),
    config: Path | None = CONFIG_OPTION,
    cdp_url: str | None = CDP_URL_OPTION,
    url_regex: str | None = URL_REGEX_OPTION,
    timeout: float | None = TIMEOUT_OPTION,
    format: str = FORMAT_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Send a prompt through the focused chat tab and print the reply.

    The tab is chosen in this order: the tab with input focus, the first tab
    matching --url-regex, the first open tab.

    Exit codes:
      0: Reply received
      1: Configuration error
      3: Bridge error (the reason is printed)

    Examples:
      webchat-bridge ask "What is the capital of Australia?"
      webchat-bridge ask "hello" --timeout 300 --format json
    """
    _set_output(format, verbose)
    settings, turn_log_settings = _load_settings(
        config, cdp_url, url_regex, timeout, turn_log
    )

    bridge = BrowserBridge(settings)
    model_info = ModelInfo(id=model)
    conversation = Conversation(messages=[Message(role="user", content=prompt)])

    with spinner("Waiting for the chat tab to reply..."):
        message = asyncio.run(bridge.complete(model_info, conversation))

    if message.stop_reason == "error":
        error(message.text)
        output_mode.add_json("model", message.model)
        output_mode.flush_json()
        raise typer.Exit(EXIT_BRIDGE_ERROR)

    print_reply(message.text, message.model)

    turn = TurnRecord(
        prompt=prompt,
        response=message.text,
        session_id=session_id,
        session_key=session_key,
        provider=message.provider,
        model=message.model,
        metadata={"api": message.api, "cdp_url": settings.cdp_url},
    )
    try:
        if asyncio.run(TurnLog(turn_log_settings).record(turn)):
            info(f"Turn recorded in {turn_log_settings.db_path}")
            output_mode.add_json("turn_id", turn.id)
    except TurnLogError as e:
        warning(f"Reply received but not recorded: {e}")

    output_mode.flush_json()
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def tabs(
    config: Path | None = CONFIG_OPTION,
    cdp_url: str | None = CDP_URL_OPTION,
    url_regex: str | None = URL_REGEX_OPTION,
    format: str = FORMAT_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    List open tabs and the chat platform detected on each.

    The tab marked as selected is the one `ask` would send to right now.
    Nothing is typed or clicked.
    """
    _set_output(format, verbose)
    settings, _ = _load_settings(config, cdp_url, url_regex)

    try:
        with spinner("Inspecting open tabs..."):
            tab_list = asyncio.run(BrowserBridge(settings).inspect_tabs())
    except BridgeError as e:
        error(str(e))
        output_mode.flush_json()
        raise typer.Exit(EXIT_BRIDGE_ERROR)

    print_tabs_table(tab_list)
    output_mode.flush_json()
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def check(
    config: Path | None = CONFIG_OPTION,
    cdp_url: str | None = CDP_URL_OPTION,
    format: str = FORMAT_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """
    Check that a browser answers on the remote debugging endpoint.

    Does not attach to any tab and never launches a browser.
    """
    _set_output(format, verbose)
    settings, _ = _load_settings(config, cdp_url)

    version_info = asyncio.run(probe_endpoint(settings.cdp_url))
    if version_info is None:
        error(
            f"No browser answering at {settings.cdp_url}. "
            "Start Chrome with --remote-debugging-port=9222."
        )
        output_mode.flush_json()
        raise typer.Exit(EXIT_BRIDGE_ERROR)

    targets = asyncio.run(list_targets(settings.cdp_url))
    page_count = sum(1 for target in targets if target.get("type") == "page")
    browser = version_info.get("Browser", "unknown browser")

    success(f"{browser} reachable at {settings.cdp_url} ({page_count} open pages)")
    output_mode.add_json("browser", browser)
    output_mode.add_json("protocol_version", version_info.get("Protocol-Version"))
    output_mode.add_json("pages", page_count)
    output_mode.flush_json()
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def history(
    limit: int = typer.Option(
        DEFAULT_HISTORY_LIMIT, "--limit", "-n", min=1, help="Number of turns to show"
    ),
    session_id: str | None = typer.Option(
        None, "--session-id", help="Only show turns of this session"
    ),
    db: Path | None = typer.Option(
        None, "--db", help="Turn log database (default: settings or ~/.webchat-bridge)"
    ),
    config: Path | None = CONFIG_OPTION,
    format: str = FORMAT_OPTION,
    verbose: bool = VERBOSE_OPTION,
):
    """Show recent turns from the turn log, newest first."""
    _set_output(format, verbose)
    _, turn_log_settings = _load_settings(config)
    if db is not None:
        turn_log_settings = turn_log_settings.model_copy(
            update={"db_path": db.expanduser()}
        )

    try:
        turns = TurnLog(turn_log_settings).recent(limit=limit, session_id=session_id)
    except TurnLogError as e:
        error(str(e))
        output_mode.flush_json()
        raise typer.Exit(EXIT_TURN_LOG_ERROR)

    if not turns:
        info(f"No turns recorded in {turn_log_settings.db_path}")
    print_history_table(turns)
    output_mode.flush_json()
    raise typer.Exit(EXIT_SUCCESS)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    webchat-bridge - Use the chat tab in your browser as a model API.

    Exit codes:
      0: Success
      1: Configuration error
      2: Turn log error
      3: Bridge error

    Use 'webchat-bridge COMMAND --help' for detailed command documentation.
    """
    if version:
        from rich.console import Console

        console = Console()
        console.print(f"[bold cyan]webchat-bridge[/bold cyan] version {_read_version()}")
        raise typer.Exit(EXIT_SUCCESS)

    if ctx.invoked_subcommand is None:
        from rich.console import Console

        console = Console()
        console.print("[yellow]Use --help to see available commands[/yellow]")
        console.print()
        console.print("Commands:")
        console.print("  ask      Send a prompt through the focused chat tab")
        console.print("  tabs     List open tabs and their detected platform")
        console.print("  check    Probe the remote debugging endpoint")
        console.print("  history  Show recent turns from the turn log")


def _read_version() -> str:
    """Read version from package metadata (pyproject.toml)."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("webchat-bridge")
    except PackageNotFoundError:
        return "0.1.0"


if __name__ == "__main__":
    app()
