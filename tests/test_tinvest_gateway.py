from datetime import datetime, timezone
from types import SimpleNamespace

import grpc
import pytest
from tinkoff.invest import (
    AccountStatus as SdkAccountStatus,
    CandleInterval,
    InstrumentType,
    MoneyValue,
    OrderDirection as SdkOrderDirection,
    OrderType,
    Quotation,
)
from tinkoff.invest.exceptions import RequestError

from data.broker_errors import BackendFailure
from data.models import AccountStatus, CandleGranularity, InstrumentKind
from execution.order_types import OrderDirection, new_market_intent
from execution.tinvest_gateway import TInvestGateway, instrument_from_sdk, position_from_sdk
from execution.tinvest_utils import (
    PRODUCTION_ENDPOINT,
    SANDBOX_ENDPOINT,
    is_sandbox_endpoint,
    resolve_endpoint,
    to_account_status,
    to_candle_interval,
)


def _connected(**services) -> TInvestGateway:
    gw = TInvestGateway(token="t.x", endpoint=PRODUCTION_ENDPOINT, app_name="test")
    gw._services = SimpleNamespace(**services)
    return gw


def test_endpoint_defaults_to_production():
    assert resolve_endpoint(None) == PRODUCTION_ENDPOINT
    assert resolve_endpoint("  ") == PRODUCTION_ENDPOINT
    assert is_sandbox_endpoint("sandbox-invest-public-api.tinkoff.ru:443")
    assert not is_sandbox_endpoint(PRODUCTION_ENDPOINT)


def test_enum_mappings():
    assert to_account_status(SdkAccountStatus.ACCOUNT_STATUS_OPEN) is AccountStatus.OPEN
    assert to_account_status(SdkAccountStatus.ACCOUNT_STATUS_UNSPECIFIED) is AccountStatus.UNSPECIFIED
    assert to_candle_interval(CandleGranularity.ONE_HOUR) == CandleInterval.CANDLE_INTERVAL_HOUR


def test_instrument_conversion():
    item = SimpleNamespace(figi="BBG004730N88", ticker="SBER", name="Sberbank",
                           instrument_kind=InstrumentType.INSTRUMENT_TYPE_SHARE)
    ref = instrument_from_sdk(item)
    assert ref.key == "BBG004730N88"
    assert ref.kind is InstrumentKind.SHARE


def test_position_conversion_keeps_exact_decimals():
    item = SimpleNamespace(figi="F", instrument_type="bond",
                           quantity=Quotation(units=0, nano=-1),
                           quantity_lots=Quotation(units=3, nano=0),
                           current_price=MoneyValue(currency="rub", units=1012, nano=340000000))
    pos = position_from_sdk(item)
    assert str(pos.quantity) == "-0.000000001"
    assert str(pos.current_price) == "1012.340000000"
    assert pos.currency == "rub"


def test_not_connected_is_unavailable():
    gw = TInvestGateway(token="t.x")
    assert not gw.is_connected
    with pytest.raises(BackendFailure) as exc:
        gw.get_accounts()
    assert exc.value.code == "UNAVAILABLE"


def test_request_error_translated():
    def get_portfolio(**kwargs):
        raise RequestError(grpc.StatusCode.NOT_FOUND, "account not found", None)

    gw = _connected(operations=SimpleNamespace(get_portfolio=get_portfolio))
    with pytest.raises(BackendFailure) as exc:
        gw.get_portfolio("acc-1")
    assert exc.value.code == "NOT_FOUND"
    assert exc.value.message == "account not found"


def test_market_order_request_shape():
    captured = {}

    def post_order(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(order_id="o-1", execution_report_status="NEW",
                               lots_requested=2, lots_executed=0)

    gw = _connected(orders=SimpleNamespace(post_order=post_order))
    intent = new_market_intent("BBG004730N88", OrderDirection.SELL, 2, "acc-1")
    receipt = gw.post_market_order(intent)

    assert receipt.order_id == "o-1"
    assert captured["instrument_id"] == "BBG004730N88"
    assert captured["quantity"] == 2
    assert captured["direction"] == SdkOrderDirection.ORDER_DIRECTION_SELL
    assert captured["order_type"] == OrderType.ORDER_TYPE_MARKET
    assert captured["account_id"] == "acc-1"
    assert captured["order_id"] == intent.idempotency_token


def test_candles_request_uses_mapped_interval():
    captured = {}
    when = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def get_candles(**kwargs):
        captured.update(kwargs)
        return SimpleNamespace(candles=[SimpleNamespace(
            time=when, open=Quotation(units=1, nano=0), high=Quotation(units=2, nano=0),
            low=Quotation(units=0, nano=500000000), close=Quotation(units=1, nano=500000000),
            volume=7, is_complete=True)])

    gw = _connected(market_data=SimpleNamespace(get_candles=get_candles))
    candles = gw.get_candles("F", when, when, CandleGranularity.FIVE_MINUTES)
    assert captured["interval"] == CandleInterval.CANDLE_INTERVAL_5_MIN
    assert captured["from_"] == when
    assert str(candles[0].low) == "0.500000000"
    assert candles[0].volume == 7


def test_close_without_connect_is_noop():
    gw = TInvestGateway(token="t.x")
    gw.close()
    gw.close()
    assert gw.configured_account_id is None


# =============================================================================
# CONNECT / SANDBOX ACCOUNT ADOPTION
# =============================================================================

class _FakeClient:
    """Stands in for tinkoff.invest.Client; __enter__ hands out ``services``."""

    def __init__(self, services):
        self.services = services
        self.exited = 0

    def __call__(self, token, target=None, app_name=None):
        self.target = target
        return self

    def __enter__(self):
        return self.services

    def __exit__(self, *exc):
        self.exited += 1


class _Sandbox:
    def __init__(self, account_ids=(), fail=None):
        self.account_ids = list(account_ids)
        self.fail = fail
        self.opened = 0

    def get_sandbox_accounts(self):
        if self.fail:
            raise self.fail
        return SimpleNamespace(accounts=[SimpleNamespace(id=i) for i in self.account_ids])

    def open_sandbox_account(self):
        self.opened += 1
        return SimpleNamespace(account_id="sb-new")


def _patch_client(monkeypatch, services) -> _FakeClient:
    client = _FakeClient(services)
    monkeypatch.setattr("execution.tinvest_gateway.Client", client)
    return client


def test_sandbox_adopts_existing_account(monkeypatch):
    sandbox = _Sandbox(["sb-1", "sb-2"])
    client = _patch_client(monkeypatch, SimpleNamespace(sandbox=sandbox))
    gw = TInvestGateway(token="t.x", endpoint=SANDBOX_ENDPOINT)
    gw.connect()
    assert gw.is_connected
    assert client.target == SANDBOX_ENDPOINT
    assert gw.configured_account_id == "sb-1"
    assert sandbox.opened == 0


def test_sandbox_opens_account_when_none_exist(monkeypatch):
    sandbox = _Sandbox([])
    _patch_client(monkeypatch, SimpleNamespace(sandbox=sandbox))
    gw = TInvestGateway(token="t.x", endpoint=SANDBOX_ENDPOINT)
    gw.connect()
    assert gw.configured_account_id == "sb-new"
    assert sandbox.opened == 1


def test_sandbox_keeps_explicit_account(monkeypatch):
    sandbox = _Sandbox(["sb-1"])
    _patch_client(monkeypatch, SimpleNamespace(sandbox=sandbox))
    gw = TInvestGateway(token="t.x", endpoint=SANDBOX_ENDPOINT, account_id="mine")
    gw.connect()
    assert gw.configured_account_id == "mine"
    assert sandbox.opened == 0


def test_production_never_touches_sandbox_service(monkeypatch):
    class _NoSandbox:
        @property
        def sandbox(self):
            raise AssertionError("sandbox service used on production endpoint")

    client = _patch_client(monkeypatch, _NoSandbox())
    gw = TInvestGateway(token="t.x", endpoint=PRODUCTION_ENDPOINT)
    gw.connect()
    assert gw.is_connected
    assert gw.configured_account_id is None
    gw.close()
    assert client.exited == 1


def test_failing_sandbox_call_closes_client(monkeypatch):
    failure = RequestError(grpc.StatusCode.UNAUTHENTICATED, "token rejected", None)
    client = _patch_client(monkeypatch, SimpleNamespace(sandbox=_Sandbox(fail=failure)))
    gw = TInvestGateway(token="t.x", endpoint=SANDBOX_ENDPOINT)
    with pytest.raises(BackendFailure) as exc:
        gw.connect()
    assert exc.value.code == "UNAUTHENTICATED"
    assert client.exited == 1
    assert not gw.is_connected


def test_unexpected_connect_error_closes_client(monkeypatch):
    sandbox = _Sandbox()
    sandbox.get_sandbox_accounts = lambda: SimpleNamespace()  # no ``accounts`` field
    client = _patch_client(monkeypatch, SimpleNamespace(sandbox=sandbox))
    gw = TInvestGateway(token="t.x", endpoint=SANDBOX_ENDPOINT)
    with pytest.raises(AttributeError):
        gw.connect()
    assert client.exited == 1
    assert not gw.is_connected
