"""
Decimal Codec — exact fixed-point <-> text conversion.

The broker API carries every price and quantity as two integers:
``units`` (whole part, int64) and ``nano`` (fraction in 1e-9, int32).
Both parts share a sign.  Floats never enter the picture.

Usage:
    from data.decimal_codec import encode, decode

    encode(5, 250000000)     # "5.250000000"
    encode(0, -1)            # "-0.000000001"
    decode("-5.250000000")   # (-5, -250000000)
"""

from dataclasses import dataclass
from typing import Any, Tuple

NANO_DIGITS = 9
NANO_SCALE = 10 ** NANO_DIGITS


def encode(units: int, nanos: int) -> str:
    """Render ``units``/``nanos`` as ``<sign><|units|>.<9-digit |nanos|>``.

    Zero units with a negative fraction still prints the leading minus.
    """
    negative = units < 0 or (units == 0 and nanos < 0)
    sign = "-" if negative else ""
    return f"{sign}{abs(units)}.{abs(nanos):0{NANO_DIGITS}d}"


def decode(text: str) -> Tuple[int, int]:
    """Parse the canonical form back into ``(units, nanos)``.

    Accepts up to nine fractional digits (shorter fractions are right-padded).
    The sign is applied to both parts.
    """
    raw = (text or "").strip()
    if not raw:
        raise ValueError("empty decimal string")

    negative = raw.startswith("-")
    body = raw[1:] if raw[0] in "+-" else raw
    whole, _, frac = body.partition(".")
    if not whole.isdigit() or (frac and not frac.isdigit()):
        raise ValueError(f"not a decimal: {text!r}")
    if len(frac) > NANO_DIGITS:
        raise ValueError(f"more than {NANO_DIGITS} fractional digits: {text!r}")

    units = int(whole)
    nanos = int(frac.ljust(NANO_DIGITS, "0")) if frac else 0
    if negative:
        return -units, -nanos
    return units, nanos


@dataclass(frozen=True)
class FixedPoint:
    """Two-field fixed-point value (Quotation-shaped)."""
    units: int = 0
    nanos: int = 0

    @classmethod
    def from_quotation(cls, quotation: Any) -> "FixedPoint":
        """Build from any object exposing ``units``/``nano`` (SDK Quotation, MoneyValue)."""
        if quotation is None:
            return cls()
        return cls(int(getattr(quotation, "units", 0) or 0),
                   int(getattr(quotation, "nano", 0) or 0))

    def __str__(self) -> str:
        return encode(self.units, self.nanos)


def money_to_str(amount: FixedPoint, currency: str = "") -> str:
    """Render a monetary amount as ``<decimal> <currency>``."""
    currency = (currency or "").strip()
    return f"{amount} {currency}" if currency else str(amount)
