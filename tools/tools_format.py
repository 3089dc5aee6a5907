"""Text helpers shared by the tool handlers."""

from datetime import datetime, timezone


def format_list(items: list) -> str:
    return "".join(f" - {item}\n" for item in items)


def rfc3339(ts: datetime) -> str:
    """UTC, second precision, trailing Z.  Naive values are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
