"""
Custom exceptions for webchat-bridge.

This module provides a hierarchy of exceptions that enable type-safe error
handling throughout the application. All exceptions inherit from the base
WebchatBridgeError for consistent catching.

Exception Hierarchy:
    WebchatBridgeError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   └── ConfigValidationError
    ├── TurnLogError
    └── BridgeError
        ├── EmptyPromptError
        ├── RunAbortedError
        ├── ChannelConnectError
        ├── NoOpenPagesError
        ├── NoSelectablePageError
        ├── InputNotFoundError
        ├── BridgeTimeoutError
        │   ├── ResponseStartTimeoutError
        │   └── CompletionTimeoutError
        ├── EmptyResponseError
        └── UnknownFailureError

BridgeError subclasses never reach the caller of BrowserBridge.stream():
they are converted into a single terminal "error" stream event there.

Usage:
    from webchat_bridge.exceptions import InputNotFoundError

    try:
        await inject_prompt(page, strategy.input, prompt, timeout_seconds)
    except InputNotFoundError as e:
        logger.warning(f"Input control missing: {e}")
"""


class WebchatBridgeError(Exception):
    """
    Base exception for all webchat-bridge errors.

    Enables catching all application-specific errors with a single except clause.
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(WebchatBridgeError):
    """
    Base class for configuration-related errors.

    Should be caught by the CLI and result in exit code 1.
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """
    Settings file does not exist at the specified path.

    Example:
        raise ConfigFileNotFoundError("Settings file not found: bridge.yaml")
    """

    pass


class ConfigValidationError(ConfigurationError):
    """
    Settings are invalid (bad YAML, bad URL, uncompilable regex, bad timeout).

    Example:
        raise ConfigValidationError("  - timeout_seconds: must be positive")
    """

    pass


# ============================================================================
# Turn Log Errors
# ============================================================================


class TurnLogError(WebchatBridgeError):
    """
    The local turn log could not be created or written.

    Example:
        raise TurnLogError("Turn log schema version 3 is newer than expected 1")
    """

    pass


# ============================================================================
# Bridge Errors
# ============================================================================


class BridgeError(WebchatBridgeError):
    """
    Base class for failures of one bridge round trip.

    The message is human-readable: it becomes the text of the synthetic
    assistant message in the terminal error event.
    """

    pass


class EmptyPromptError(BridgeError):
    """The most recent user turn carries no text. Raised before any browser I/O."""

    pass


class RunAbortedError(BridgeError):
    """The abort signal was set before the browser channel was opened."""

    pass


class ChannelConnectError(BridgeError):
    """
    The CDP endpoint could not be reached.

    Example:
        raise ChannelConnectError(
            "Cannot connect to browser at http://127.0.0.1:9222: connection refused"
        )
    """

    pass


class NoOpenPagesError(BridgeError):
    """The connected browser has no open pages in any context."""

    pass


class NoSelectablePageError(BridgeError):
    """Pages were listed but every one of them closed before it could be chosen."""

    pass


class InputNotFoundError(BridgeError):
    """No input locator rule matched a visible element."""

    pass


class BridgeTimeoutError(BridgeError):
    """
    Base class for the two completion-detection timeouts.

    Attributes:
        timeout_seconds: float - Bound that was exceeded
    """

    def __init__(self, message: str, timeout_seconds: float | None = None):
        super().__init__(message)
        self.timeout_seconds = timeout_seconds


class ResponseStartTimeoutError(BridgeTimeoutError):
    """No new response block appeared after the prompt was submitted."""

    pass


class CompletionTimeoutError(BridgeTimeoutError):
    """The platform's busy indicator never cleared."""

    pass


class EmptyResponseError(BridgeError):
    """Generation finished but no response block held any text."""

    pass


class UnknownFailureError(BridgeError):
    """
    Wraps any other exception raised inside the pipeline.

    The original exception is chained as __cause__.
    """

    pass
