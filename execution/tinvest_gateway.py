"""
T-Invest Gateway — adapter implementing BrokerGateway over tinkoff.invest.

Wraps the synchronous SDK ``Client`` and adds:
  - one gRPC channel for the whole process (opened in connect(), released in close())
  - RequestError -> BackendFailure translation at every call
  - protobuf -> data.models conversion, so callers never see SDK types

This is the ONLY file that imports the SDK client.  Everything above it
goes through create_gateway().
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from tinkoff.invest import Client, OrderType
from tinkoff.invest.exceptions import RequestError

from data.broker_errors import BackendFailure
from data.decimal_codec import FixedPoint
from data.models import (
    Account,
    BookLevel,
    Candle,
    CandleGranularity,
    InstrumentRef,
    LastPrice,
    OrderBook,
    OrderReceipt,
    Position,
    TradingStatus,
)
from execution.order_types import OrderIntent
from execution.tinvest_utils import (
    enum_name,
    is_sandbox_endpoint,
    resolve_endpoint,
    to_account_status,
    to_candle_interval,
    to_instrument_kind,
    to_order_direction,
)

logger = logging.getLogger(__name__)


def _failure_from(error: RequestError) -> BackendFailure:
    code = enum_name(error.code) if error.code is not None else "UNKNOWN"
    message = error.details or code
    return BackendFailure(code, message)


# =====================================================================
# CONVERTERS — SDK message -> domain model
# =====================================================================

def instrument_from_sdk(item: Any) -> InstrumentRef:
    return InstrumentRef(
        key=item.figi,
        ticker=item.ticker,
        name=item.name,
        kind=to_instrument_kind(item.instrument_kind),
    )


def account_from_sdk(item: Any) -> Account:
    return Account(id=item.id, status=to_account_status(item.status))


def position_from_sdk(item: Any) -> Position:
    current = getattr(item, "current_price", None)
    return Position(
        figi=item.figi,
        instrument_type=item.instrument_type,
        quantity=FixedPoint.from_quotation(item.quantity),
        quantity_lots=FixedPoint.from_quotation(item.quantity_lots),
        current_price=FixedPoint.from_quotation(current) if current is not None else None,
        currency=(getattr(current, "currency", "") or "") if current is not None else "",
    )


def candle_from_sdk(item: Any) -> Candle:
    return Candle(
        time=item.time,
        open=FixedPoint.from_quotation(item.open),
        high=FixedPoint.from_quotation(item.high),
        low=FixedPoint.from_quotation(item.low),
        close=FixedPoint.from_quotation(item.close),
        volume=int(item.volume),
        is_complete=bool(getattr(item, "is_complete", True)),
    )


def book_levels_from_sdk(levels: Any) -> List[BookLevel]:
    return [BookLevel(FixedPoint.from_quotation(lv.price), int(lv.quantity)) for lv in levels]


class TInvestGateway:
    """
    Broker gateway for T-Invest via the official Python SDK.

    ``account_id`` passed at construction lands in the client configuration
    (account source 2).  On sandbox endpoints with no configured account,
    connect() adopts (or opens) a sandbox account instead.
    """

    def __init__(self, token: str, endpoint: Optional[str] = None,
                 app_name: Optional[str] = None, account_id: Optional[str] = None):
        self._token = token
        self.endpoint = resolve_endpoint(endpoint)
        self.app_name = app_name
        self.sandbox = is_sandbox_endpoint(self.endpoint)
        self._account_id = (account_id or "").strip() or None
        self._client: Optional[Client] = None
        self._services = None

    # =====================================================================
    # CONNECTION
    # =====================================================================

    def connect(self) -> None:
        """Open the gRPC channel.  Called once, at bootstrap."""
        self._client = Client(self._token, target=self.endpoint, app_name=self.app_name)
        self._services = self._client.__enter__()
        try:
            logger.info(f"T-Invest client ready: endpoint={self.endpoint}, app={self.app_name}, "
                        f"sandbox={self.sandbox}")
            if self.sandbox and not self._account_id:
                self._account_id = self._sandbox_account_id()
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        """Release the channel.  Safe to call more than once."""
        client, self._client, self._services = self._client, None, None
        if client is not None:
            client.__exit__(None, None, None)
            logger.info("T-Invest client closed")

    @property
    def configured_account_id(self) -> Optional[str]:
        return self._account_id

    @property
    def is_connected(self) -> bool:
        return self._services is not None

    @property
    def services(self):
        if not self.is_connected:
            raise BackendFailure("UNAVAILABLE", "T-Invest client is not connected")
        return self._services

    def _call(self, fn: Callable, **kwargs) -> Any:
        try:
            return fn(**kwargs)
        except RequestError as e:
            raise _failure_from(e) from e

    def _sandbox_account_id(self) -> str:
        sandbox = self.services.sandbox
        accounts = self._call(sandbox.get_sandbox_accounts).accounts
        if accounts:
            logger.info(f"Using existing sandbox account {accounts[0].id}")
            return accounts[0].id
        opened = self._call(sandbox.open_sandbox_account)
        logger.info(f"Opened sandbox account {opened.account_id}")
        return opened.account_id

    # =====================================================================
    # INSTRUMENTS / ACCOUNTS
    # =====================================================================

    def find_instruments(self, query: str) -> List[InstrumentRef]:
        resp = self._call(self.services.instruments.find_instrument, query=query)
        return [instrument_from_sdk(it) for it in resp.instruments]

    def get_accounts(self) -> List[Account]:
        resp = self._call(self.services.users.get_accounts)
        return [account_from_sdk(acc) for acc in resp.accounts]

    # =====================================================================
    # ORDERS / PORTFOLIO
    # =====================================================================

    def post_market_order(self, intent: OrderIntent) -> OrderReceipt:
        resp = self._call(
            self.services.orders.post_order,
            instrument_id=intent.instrument_key,
            quantity=intent.lots,
            direction=to_order_direction(intent.direction),
            account_id=intent.account_id,
            order_type=OrderType.ORDER_TYPE_MARKET,
            order_id=intent.idempotency_token,
        )
        return OrderReceipt(
            order_id=resp.order_id,
            status=enum_name(resp.execution_report_status),
            lots_requested=int(resp.lots_requested),
            lots_executed=int(resp.lots_executed),
        )

    def get_portfolio(self, account_id: str) -> List[Position]:
        resp = self._call(self.services.operations.get_portfolio, account_id=account_id)
        return [position_from_sdk(pos) for pos in resp.positions]

    # =====================================================================
    # MARKET DATA
    # =====================================================================

    def get_last_prices(self, figis: List[str]) -> List[LastPrice]:
        resp = self._call(self.services.market_data.get_last_prices, instrument_id=list(figis))
        return [LastPrice(lp.figi, FixedPoint.from_quotation(lp.price), lp.time)
                for lp in resp.last_prices]

    def get_order_book(self, figi: str, depth: int) -> OrderBook:
        resp = self._call(self.services.market_data.get_order_book,
                          instrument_id=figi, depth=depth)
        return OrderBook(
            figi=figi,
            depth=int(resp.depth) or depth,
            bids=book_levels_from_sdk(resp.bids),
            asks=book_levels_from_sdk(resp.asks),
        )

    def get_candles(self, figi: str, start: datetime, end: datetime,
                    granularity: CandleGranularity) -> List[Candle]:
        resp = self._call(
            self.services.market_data.get_candles,
            instrument_id=figi,
            from_=start,
            to=end,
            interval=to_candle_interval(granularity),
        )
        return [candle_from_sdk(c) for c in resp.candles]

    def get_trading_status(self, figi: str) -> TradingStatus:
        resp = self._call(self.services.market_data.get_trading_status, instrument_id=figi)
        return TradingStatus(
            figi=figi,
            status=enum_name(resp.trading_status),
            market_order_available=bool(resp.market_order_available_flag),
            limit_order_available=bool(resp.limit_order_available_flag),
            api_trade_available=bool(resp.api_trade_available_flag),
        )
