"""
Broker Gateway — the collaborator boundary the bridge talks to.

Separates the tool layer from the broker SDK.  Every method is blocking
(the SDK client is synchronous); tool handlers push calls onto a worker
thread.  Methods raise BackendFailure on transport/broker errors and
return domain models from data.models.

Connection happens ONCE at startup, inside Session.open().
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable

from data.broker_errors import ConfigurationError
from data.models import (
    Account,
    CandleGranularity,
    Candle,
    InstrumentRef,
    LastPrice,
    OrderBook,
    OrderReceipt,
    Position,
    TradingStatus,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class BrokerGateway(Protocol):
    """Instrument search, accounts, orders, portfolio and market data."""

    @property
    def configured_account_id(self) -> Optional[str]:
        """Account id embedded in the client's own configuration, if any."""
        ...

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def find_instruments(self, query: str) -> List[InstrumentRef]: ...

    def get_accounts(self) -> List[Account]: ...

    def post_market_order(self, intent) -> OrderReceipt: ...

    def get_portfolio(self, account_id: str) -> List[Position]: ...

    def get_last_prices(self, figis: List[str]) -> List[LastPrice]: ...

    def get_order_book(self, figi: str, depth: int) -> OrderBook: ...

    def get_candles(self, figi: str, start: datetime, end: datetime,
                    granularity: CandleGranularity) -> List[Candle]: ...

    def get_trading_status(self, figi: str) -> TradingStatus: ...


# =========================================================================
# GATEWAY FACTORY
# =========================================================================

def create_gateway(settings, adapter: str = "tinvest") -> BrokerGateway:
    """
    Create and connect a broker gateway.

    The explicit account id (if configured) is handed to the client up front
    so the SDK never has to go looking for one on its own.
    """
    if adapter == "tinvest":
        from execution.tinvest_gateway import TInvestGateway
        gateway = TInvestGateway(
            token=settings.token,
            endpoint=settings.endpoint,
            app_name=settings.app_name,
            account_id=settings.account_id,
        )
        gateway.connect()
        logger.info(f"Connected to broker via {adapter} gateway ({settings.endpoint})")
        return gateway
    raise ConfigurationError(f"Unknown broker adapter: '{adapter}'")
