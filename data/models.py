"""
Domain models shared by the gateway, resolvers and tool handlers.

These are plain dataclasses.  The SDK adapter (execution/tinvest_gateway.py)
converts broker protobuf objects into them so nothing above the adapter
depends on tinkoff.invest types.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from data.decimal_codec import FixedPoint


# ============================================================
# ENUMS
# ============================================================

class InstrumentKind(str, Enum):
    """Instrument kinds the search tools filter on."""
    SHARE = "share"
    BOND = "bond"
    ETF = "etf"
    OTHER = "other"


class AccountStatus(str, Enum):
    OPEN = "open"
    NEW = "new"
    CLOSED = "closed"
    UNSPECIFIED = "unspecified"


class CandleGranularity(str, Enum):
    """Fixed set of candle intervals exposed by the candles tool."""
    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    ONE_HOUR = "1h"
    ONE_DAY = "1d"


# ============================================================
# INSTRUMENTS / ACCOUNTS
# ============================================================

@dataclass(frozen=True)
class InstrumentRef:
    """Search hit: canonical key (FIGI) plus display fields."""
    key: str
    ticker: str
    name: str
    kind: InstrumentKind = InstrumentKind.OTHER

    def label(self) -> str:
        return f"{self.name} ({self.ticker}), FIGI {self.key}"


@dataclass(frozen=True)
class Account:
    """Operating account.  ``status`` is None when the id came from configuration."""
    id: str
    status: Optional[AccountStatus] = None


# ============================================================
# PORTFOLIO / ORDERS
# ============================================================

@dataclass
class Position:
    figi: str
    instrument_type: str
    quantity: FixedPoint
    quantity_lots: FixedPoint
    current_price: Optional[FixedPoint] = None
    currency: str = ""


@dataclass
class OrderReceipt:
    """Backend acknowledgement of a submitted order."""
    order_id: str
    status: str = ""
    lots_requested: int = 0
    lots_executed: int = 0


# ============================================================
# MARKET DATA
# ============================================================

@dataclass
class LastPrice:
    figi: str
    price: FixedPoint
    time: Optional[datetime] = None


@dataclass
class BookLevel:
    price: FixedPoint
    quantity: int


@dataclass
class OrderBook:
    figi: str
    depth: int
    bids: List[BookLevel] = field(default_factory=list)
    asks: List[BookLevel] = field(default_factory=list)


@dataclass
class Candle:
    time: datetime
    open: FixedPoint
    high: FixedPoint
    low: FixedPoint
    close: FixedPoint
    volume: int
    is_complete: bool = True


@dataclass
class TradingStatus:
    figi: str
    status: str
    market_order_available: bool = False
    limit_order_available: bool = False
    api_trade_available: bool = False
