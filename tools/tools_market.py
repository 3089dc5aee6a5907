"""Market data tool handlers: last price, order book, candles, trading status.

Every handler resolves the query to an instrument first (one search),
then makes exactly one market-data call keyed by the instrument FIGI.
"""

import logging
from datetime import datetime

from core.config import CANDLE_ROW_LIMIT
from tools.tools_format import rfc3339
from tools.tools_validation import (
    clamp_depth,
    parse_interval,
    parse_time_range,
    require_number,
    require_str,
)

logger = logging.getLogger(__name__)


def _ladder(levels, depth: int) -> list:
    return [f"  #{i + 1} {lv.price} × {lv.quantity}" for i, lv in enumerate(levels[:depth])]


def render_candles(inst, token: str, start: datetime, end: datetime, candles: list,
                   limit: int = CANDLE_ROW_LIMIT) -> str:
    """Header + at most ``limit`` rows + a ``+N more`` trailer when truncated."""
    out = [f"Candles {inst.label()}, {token.strip().upper()}, "
           f"{rfc3339(start)} → {rfc3339(end)}, total: {len(candles)}"]
    for c in candles[:limit]:
        out.append(f" - {rfc3339(c.time)}  O:{c.open} H:{c.high} L:{c.low} C:{c.close} V:{c.volume}")
    if len(candles) > limit:
        out.append(f"+{len(candles) - limit} more")
    return "\n".join(out)


async def handle_last_price(executor, params: dict) -> str:
    query = require_str(params, "query")
    inst = await executor.resolve_instrument(query)
    prices = await executor.backend("Last price request", executor.gateway.get_last_prices,
                                    [inst.key])
    if not prices:
        return "No last price data"
    lp = prices[0]
    when = rfc3339(lp.time) if lp.time else "n/a"
    return f"{inst.name} ({inst.ticker}), FIGI {inst.key} — last price: {lp.price}, time: {when}"


async def handle_orderbook(executor, params: dict) -> str:
    query = require_str(params, "query")
    depth = clamp_depth(require_number(params, "depth"))
    inst = await executor.resolve_instrument(query)
    book = await executor.backend("Order book request", executor.gateway.get_order_book,
                                  inst.key, depth)

    lines = [f"Order book {inst.label()}, depth {depth}", "BIDS (buy):"]
    lines.extend(_ladder(book.bids, depth))
    lines.append("ASKS (sell):")
    lines.extend(_ladder(book.asks, depth))
    return "\n".join(lines)


async def handle_candles(executor, params: dict) -> str:
    query = require_str(params, "query")
    token = require_str(params, "interval")
    start, end = parse_time_range(params.get("from"), params.get("to"))
    granularity = parse_interval(token)

    inst = await executor.resolve_instrument(query)
    candles = await executor.backend("Candles request", executor.gateway.get_candles,
                                     inst.key, start, end, granularity)
    if not candles:
        return "No candles found for the given period"
    return render_candles(inst, token, start, end, candles)


async def handle_trading_status(executor, params: dict) -> str:
    query = require_str(params, "query")
    inst = await executor.resolve_instrument(query)
    st = await executor.backend("Trading status request", executor.gateway.get_trading_status,
                                inst.key)

    def yn(flag: bool) -> str:
        return "yes" if flag else "no"

    return (f"Trading status for {inst.label()}: {st.status}\n"
            f"Market orders: {yn(st.market_order_available)}, "
            f"limit orders: {yn(st.limit_order_available)}, "
            f"API trading: {yn(st.api_trade_available)}")


HANDLERS = {
    "last_price": handle_last_price,
    "orderbook": handle_orderbook,
    "candles": handle_candles,
    "trading_status": handle_trading_status,
}
