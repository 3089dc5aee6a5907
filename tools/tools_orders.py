"""Market order tool handlers (buy / sell).

Both sides share one path: validate lots, resolve the instrument, check
the operating account, submit ONE market order with a fresh idempotency
token.  Submission is live and irreversible; nothing here retries.

Lot counts are only truncated, not range-checked: the backend rejects
non-positive quantities itself.
"""

import logging

from data.broker_errors import AccountUnresolved
from execution.order_types import OrderDirection, new_market_intent
from tools.tools_validation import normalize_lots, require_number, require_str

logger = logging.getLogger(__name__)


async def _run_order(executor, params: dict, direction: OrderDirection) -> str:
    ticker = require_str(params, "ticker")
    lots = normalize_lots(require_number(params, "lots"))
    operation = f"Market {direction.verb}"

    inst = await executor.resolve_instrument(ticker)

    if not executor.account_id:
        raise AccountUnresolved(operation)

    intent = new_market_intent(inst.key, direction, lots, executor.account_id)
    logger.info(f"Submitting {direction.value} {lots} lots {inst.ticker} ({inst.key}), "
                f"order_id={intent.idempotency_token}")
    receipt = await executor.backend(f"{operation} {inst.ticker}",
                                     executor.gateway.post_market_order, intent)

    text = f"Market {direction.verb} order submitted: {lots} lots of {inst.name} ({inst.ticker})"
    if receipt is not None and receipt.order_id:
        text += f"\nOrder id: {receipt.order_id}"
        if receipt.status:
            text += f", status: {receipt.status}"
        text += f"\nExecuted {receipt.lots_executed} of {receipt.lots_requested} lots"
    return text


async def handle_buy(executor, params: dict) -> str:
    return await _run_order(executor, params, OrderDirection.BUY)


async def handle_sell(executor, params: dict) -> str:
    return await _run_order(executor, params, OrderDirection.SELL)


HANDLERS = {
    "buy": handle_buy,
    "sell": handle_sell,
}
