"""T-Invest endpoint resolution and SDK enum mappings.

TINKOFF_ENDPOINT picks the gRPC target.  Default is production.
- invest-public-api.tinkoff.ru          = production
- sandbox-invest-public-api.tinkoff.ru  = sandbox

Make sure the endpoint matches the token type: a production token against
the sandbox (or the reverse) answers every account call with NOT_FOUND.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from tinkoff.invest import (
    AccountStatus as SdkAccountStatus,
    CandleInterval,
    InstrumentType,
    OrderDirection as SdkOrderDirection,
)
from tinkoff.invest.constants import INVEST_GRPC_API, INVEST_GRPC_API_SANDBOX

from data.models import AccountStatus, CandleGranularity, InstrumentKind
from execution.order_types import OrderDirection

logger = logging.getLogger(__name__)

PRODUCTION_ENDPOINT = INVEST_GRPC_API
SANDBOX_ENDPOINT = INVEST_GRPC_API_SANDBOX
DEFAULT_ENDPOINT = PRODUCTION_ENDPOINT


def resolve_endpoint(raw: Optional[str]) -> str:
    """Trimmed endpoint, or the production target when unset."""
    endpoint = (raw or "").strip()
    return endpoint or DEFAULT_ENDPOINT


def is_sandbox_endpoint(endpoint: str) -> bool:
    return "sandbox" in (endpoint or "").lower()


_INSTRUMENT_KINDS: Dict[InstrumentType, InstrumentKind] = {
    InstrumentType.INSTRUMENT_TYPE_SHARE: InstrumentKind.SHARE,
    InstrumentType.INSTRUMENT_TYPE_BOND: InstrumentKind.BOND,
    InstrumentType.INSTRUMENT_TYPE_ETF: InstrumentKind.ETF,
}

_ACCOUNT_STATUSES: Dict[SdkAccountStatus, AccountStatus] = {
    SdkAccountStatus.ACCOUNT_STATUS_OPEN: AccountStatus.OPEN,
    SdkAccountStatus.ACCOUNT_STATUS_NEW: AccountStatus.NEW,
    SdkAccountStatus.ACCOUNT_STATUS_CLOSED: AccountStatus.CLOSED,
}

_CANDLE_INTERVALS: Dict[CandleGranularity, CandleInterval] = {
    CandleGranularity.ONE_MINUTE: CandleInterval.CANDLE_INTERVAL_1_MIN,
    CandleGranularity.FIVE_MINUTES: CandleInterval.CANDLE_INTERVAL_5_MIN,
    CandleGranularity.FIFTEEN_MINUTES: CandleInterval.CANDLE_INTERVAL_15_MIN,
    CandleGranularity.ONE_HOUR: CandleInterval.CANDLE_INTERVAL_HOUR,
    CandleGranularity.ONE_DAY: CandleInterval.CANDLE_INTERVAL_DAY,
}

_ORDER_DIRECTIONS: Dict[OrderDirection, SdkOrderDirection] = {
    OrderDirection.BUY: SdkOrderDirection.ORDER_DIRECTION_BUY,
    OrderDirection.SELL: SdkOrderDirection.ORDER_DIRECTION_SELL,
}


def to_instrument_kind(instrument_kind) -> InstrumentKind:
    return _INSTRUMENT_KINDS.get(instrument_kind, InstrumentKind.OTHER)


def to_account_status(status) -> AccountStatus:
    return _ACCOUNT_STATUSES.get(status, AccountStatus.UNSPECIFIED)


def to_candle_interval(granularity: CandleGranularity) -> CandleInterval:
    return _CANDLE_INTERVALS[granularity]


def to_order_direction(direction: OrderDirection) -> SdkOrderDirection:
    return _ORDER_DIRECTIONS[direction]


def enum_name(value) -> str:
    """Protobuf enum -> its symbolic name (falls back to str())."""
    return getattr(value, "name", None) or str(value)
