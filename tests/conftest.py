from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from core.session import Session
from data.broker_errors import BackendFailure
from data.decimal_codec import FixedPoint
from data.models import (
    Account,
    AccountStatus,
    BookLevel,
    Candle,
    InstrumentKind,
    InstrumentRef,
    LastPrice,
    OrderBook,
    OrderReceipt,
    Position,
    TradingStatus,
)
from tools.tools_executor import ToolExecutor

SBER = InstrumentRef("BBG004730N88", "SBER", "Sberbank", InstrumentKind.SHARE)
SBER_BOND = InstrumentRef("RU000A0JX0J2", "SU26219RMFS4", "OFZ 26219", InstrumentKind.BOND)
TMOS = InstrumentRef("BBG333333333", "TMOS", "T-Capital MOEX", InstrumentKind.ETF)


class FakeGateway:
    """In-memory BrokerGateway.  Records calls; ``fail`` maps method -> BackendFailure."""

    def __init__(self, instruments=None, accounts=None, configured_account_id=None):
        self.instruments = list(instruments if instruments is not None else [SBER, SBER_BOND, TMOS])
        self.accounts = list(accounts or [])
        self._configured = configured_account_id
        self.fail: dict[str, BackendFailure] = {}
        self.calls: list[tuple] = []
        self.closed = 0
        self.positions: list[Position] = []
        self.candles: list[Candle] = []
        self.book = OrderBook("BBG004730N88", 50)
        self.last_prices = [LastPrice("BBG004730N88", FixedPoint(301, 500000000),
                                      datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc))]

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail:
            raise self.fail[name]

    @property
    def configured_account_id(self):
        return self._configured

    def connect(self):
        self._record("connect")

    def close(self):
        self.closed += 1

    def find_instruments(self, query):
        self._record("find_instruments", query)
        return [it for it in self.instruments
                if query.lower() in (it.ticker + " " + it.name + " " + it.key).lower()]

    def get_accounts(self):
        self._record("get_accounts")
        return list(self.accounts)

    def post_market_order(self, intent):
        self._record("post_market_order", intent)
        return OrderReceipt(order_id="ord-1", status="EXECUTION_REPORT_STATUS_FILL",
                            lots_requested=intent.lots, lots_executed=intent.lots)

    def get_portfolio(self, account_id):
        self._record("get_portfolio", account_id)
        return list(self.positions)

    def get_last_prices(self, figis):
        self._record("get_last_prices", figis)
        return list(self.last_prices)

    def get_order_book(self, figi, depth):
        self._record("get_order_book", figi, depth)
        return self.book

    def get_candles(self, figi, start, end, granularity):
        self._record("get_candles", figi, start, end, granularity)
        return list(self.candles)

    def get_trading_status(self, figi):
        self._record("get_trading_status", figi)
        return TradingStatus(figi, "SECURITY_TRADING_STATUS_NORMAL_TRADING",
                             market_order_available=True, limit_order_available=True,
                             api_trade_available=True)


def make_candles(count: int) -> list[Candle]:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        Candle(start + timedelta(minutes=i), FixedPoint(100, 0), FixedPoint(101, 500000000),
               FixedPoint(99, 0), FixedPoint(100, 250000000), 10 + i)
        for i in range(count)
    ]


def make_levels(count: int) -> list[BookLevel]:
    return [BookLevel(FixedPoint(100 + i, 0), i + 1) for i in range(count)]


@pytest.fixture
def gateway():
    return FakeGateway(accounts=[Account("acc-1", AccountStatus.OPEN)])


@pytest.fixture
def session(gateway):
    return Session(gateway, Account("acc-1", AccountStatus.OPEN))


@pytest.fixture
def executor(session):
    return ToolExecutor(session)
