# execution/__init__.py
"""
Execution layer: the T-Invest SDK adapter.

This package contains:
- TInvest gateway (tinvest_gateway, tinvest_utils)
- Order direction/kind enums and the order intent (order_types)

Only this package imports tinkoff.invest.  The SDK-backed gateway is
loaded lazily by data.broker_gateway.create_gateway().
"""

from execution.order_types import OrderDirection, OrderIntent, OrderKind, new_market_intent

__all__ = [
    'OrderDirection',
    'OrderIntent',
    'OrderKind',
    'new_market_intent',
]
