"""
UTC timestamp utilities for webchat-bridge.

All timestamps MUST be in UTC with explicit timezone markers.

This module provides:
- utc_now(): Current time as timezone-aware datetime
- utc_timestamp(): ISO 8601 timestamp string with 'Z' suffix
- epoch_millis(): Milliseconds since the Unix epoch (assistant message stamps)
- parse_timestamp(): Parse ISO 8601 string to datetime

Examples:
    >>> from webchat_bridge.utils.time import utc_timestamp, epoch_millis
    >>> utc_timestamp()
    '2025-11-02T08:30:45Z'
    >>> epoch_millis()
    1762072245000
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return current time in UTC with timezone info.

    Returns:
        datetime: Current UTC time with tzinfo=timezone.utc

    Note:
        NEVER use datetime.now() without timezone parameter.
        NEVER use datetime.utcnow() (deprecated, returns naive datetime).
    """
    return datetime.now(UTC)


def utc_timestamp() -> str:
    """
    Return ISO 8601 timestamp string with 'Z' suffix.

    Format: YYYY-MM-DDTHH:MM:SSZ

    Used for turn log rows and structured log entries.
    """
    return utc_now().strftime("%Y-%m-%dT%H:%M:%SZ")


def epoch_millis(dt: datetime | None = None) -> int:
    """
    Return milliseconds since the Unix epoch.

    Assistant messages are stamped this way so they line up with the
    timestamps streaming model APIs put on their own messages.

    Args:
        dt: Optional timezone-aware datetime. If None, uses utc_now().

    Raises:
        ValueError: If dt is naive (missing timezone)

    Example:
        >>> from datetime import datetime, timezone
        >>> epoch_millis(datetime(2025, 11, 2, 8, 30, 45, tzinfo=timezone.utc))
        1762072245000
    """
    if dt is None:
        dt = utc_now()

    if dt.tzinfo is None:
        raise ValueError(
            "Datetime must be timezone-aware (use timezone.utc). "
            "Got naive datetime. Use utc_now() or ensure dt has tzinfo set."
        )

    return int(dt.timestamp() * 1000)


def parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse ISO 8601 timestamp string to timezone-aware datetime.

    Expects format: YYYY-MM-DDTHH:MM:SSZ (with 'Z' suffix for UTC)

    Raises:
        ValueError: If timestamp doesn't end with 'Z' or has invalid format

    Examples:
        >>> parse_timestamp('2025-11-02T08:30:45Z').year
        2025
        >>> parse_timestamp('2025-11-02T08:30:45')
        Traceback (most recent call last):
        ...
        ValueError: Timestamp must end with 'Z' (UTC): 2025-11-02T08:30:45
    """
    if not timestamp_str.endswith("Z"):
        raise ValueError(f"Timestamp must end with 'Z' (UTC): {timestamp_str}")

    try:
        return datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid ISO 8601 timestamp format: {timestamp_str}") from e
