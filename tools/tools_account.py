"""Account state tool handlers."""

import logging

from data.broker_errors import AccountUnresolved
from data.decimal_codec import money_to_str
from tools.tools_format import format_list

logger = logging.getLogger(__name__)


def _position_line(pos) -> str:
    line = (f"FIGI {pos.figi}: {pos.quantity} pcs, {pos.quantity_lots} lots, "
            f"type={pos.instrument_type}")
    if pos.current_price is not None:
        line += f", price={money_to_str(pos.current_price, pos.currency)}"
    return line


async def handle_portfolio(executor, params: dict) -> str:
    operation = "Portfolio request"
    if not executor.account_id:
        raise AccountUnresolved(operation)
    positions = await executor.backend(operation, executor.gateway.get_portfolio,
                                       executor.account_id)
    if not positions:
        return "Portfolio is empty"
    return "Current portfolio:\n" + format_list([_position_line(p) for p in positions])


HANDLERS = {
    "portfolio": handle_portfolio,
}
