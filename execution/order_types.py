"""
Order Types - direction/kind enums and the order intent built per buy/sell call.

Usage:
    from execution.order_types import OrderDirection, new_market_intent

    intent = new_market_intent(figi, OrderDirection.BUY, lots=3, account_id=acc)
    gateway.post_market_order(intent)

Each intent gets a fresh idempotency token; intents are never persisted.
"""

import uuid
from dataclasses import dataclass
from enum import Enum


class OrderDirection(str, Enum):
    """Signed order side."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def verb(self) -> str:
        return "buy" if self is OrderDirection.BUY else "sell"


class OrderKind(str, Enum):
    """Only market orders are exposed as tools."""

    MARKET = "MARKET"


@dataclass(frozen=True)
class OrderIntent:
    instrument_key: str
    direction: OrderDirection
    lots: int
    account_id: str
    idempotency_token: str
    kind: OrderKind = OrderKind.MARKET


def new_idempotency_token() -> str:
    return str(uuid.uuid4())


def new_market_intent(instrument_key: str, direction: OrderDirection, lots: int,
                      account_id: str) -> OrderIntent:
    """Build a market order intent with a freshly generated idempotency token."""
    return OrderIntent(
        instrument_key=instrument_key,
        direction=direction,
        lots=lots,
        account_id=account_id,
        idempotency_token=new_idempotency_token(),
    )
