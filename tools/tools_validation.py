"""Tool argument normalization — runs before any broker call.

Agents send loosely typed JSON: numbers as floats or strings, tokens in
any case.  Everything here either returns a clean value or raises a
ValidationError subclass with a message the agent can act on.
"""

import math
import re
from datetime import datetime
from typing import Any, Tuple

from core.config import MAX_ORDERBOOK_DEPTH, MIN_ORDERBOOK_DEPTH
from data.broker_errors import InvalidTimeRange, UnknownInterval, ValidationError
from data.models import CandleGranularity


# =============================================================================
# PARAM SANITIZATION
# =============================================================================

def _safe_float(val: Any, name: str) -> float:
    """Extract a finite float from a number or numeric string."""
    if isinstance(val, bool):
        raise ValidationError(f"{name} must be a number, got {val!r}")
    if isinstance(val, (int, float)):
        num = float(val)
    elif isinstance(val, str):
        try:
            num = float(val.strip())
        except ValueError:
            raise ValidationError(f"{name} must be a number, got {val!r}") from None
    else:
        raise ValidationError(f"{name} must be a number, got {type(val).__name__}")
    if not math.isfinite(num):
        raise ValidationError(f"{name} must be a finite number, got {val!r}")
    return num


def _safe_int(val: Any, name: str) -> int:
    """Truncate toward zero."""
    return int(_safe_float(val, name))


def require_str(params: dict, name: str) -> str:
    value = params.get(name)
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} required")
    return str(value).strip()


def require_number(params: dict, name: str) -> Any:
    value = params.get(name)
    if value is None:
        raise ValidationError(f"{name} required")
    return value


# =============================================================================
# PER-ARGUMENT RULES
# =============================================================================

def normalize_lots(value: Any) -> int:
    """Lot count, truncated toward zero.  Sign is left for the backend to judge."""
    return _safe_int(value, "lots")


def clamp_depth(value: Any) -> int:
    """Order book depth truncated and clamped to [1, 50]."""
    depth = _safe_int(value, "depth")
    return max(MIN_ORDERBOOK_DEPTH, min(MAX_ORDERBOOK_DEPTH, depth))


_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_timestamp(value: Any, name: str) -> datetime:
    """RFC 3339 timestamp: full date, 'T', seconds, optional fraction, Z or offset."""
    text = str(value or "").strip()
    if not text:
        raise InvalidTimeRange(f"Invalid '{name}': empty timestamp")
    m = _RFC3339.match(text)
    if not m:
        raise InvalidTimeRange(
            f"Invalid '{name}' format: {text!r} (expected RFC3339, e.g. 2024-01-01T00:00:00Z)"
        )
    date, clock, frac, offset = m.groups()
    # fromisoformat on 3.10 takes exactly 3 or 6 fractional digits
    if frac:
        clock += "." + frac[:6].ljust(6, "0")
    offset = "+00:00" if offset in ("Z", "z") else offset
    try:
        return datetime.fromisoformat(f"{date}T{clock}{offset}")
    except ValueError:
        raise InvalidTimeRange(f"Invalid '{name}': {text!r} is not a valid date/time") from None


def parse_time_range(start: Any, end: Any) -> Tuple[datetime, datetime]:
    """Both endpoints parsed; ``to`` must be strictly after ``from``."""
    ts_from = parse_timestamp(start, "from")
    ts_to = parse_timestamp(end, "to")
    if not ts_to > ts_from:
        raise InvalidTimeRange("Parameter 'to' must be later than 'from'")
    return ts_from, ts_to


_INTERVALS = {
    "1m": CandleGranularity.ONE_MINUTE,
    "1min": CandleGranularity.ONE_MINUTE,
    "5m": CandleGranularity.FIVE_MINUTES,
    "5min": CandleGranularity.FIVE_MINUTES,
    "15m": CandleGranularity.FIFTEEN_MINUTES,
    "15min": CandleGranularity.FIFTEEN_MINUTES,
    "1h": CandleGranularity.ONE_HOUR,
    "60m": CandleGranularity.ONE_HOUR,
    "1d": CandleGranularity.ONE_DAY,
    "1day": CandleGranularity.ONE_DAY,
    "day": CandleGranularity.ONE_DAY,
    "d": CandleGranularity.ONE_DAY,
}
ALLOWED_INTERVALS = "1m,5m,15m,1h,1d"


def parse_interval(token: Any) -> CandleGranularity:
    """Case-insensitive, trimmed lookup over the fixed interval table."""
    key = str(token or "").strip().lower()
    granularity = _INTERVALS.get(key)
    if granularity is None:
        raise UnknownInterval(f"Unknown interval {token!r}. Allowed: {ALLOWED_INTERVALS}")
    return granularity
