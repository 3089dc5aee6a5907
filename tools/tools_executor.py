"""
Tool Execution Layer

Routes a tool name + raw argument map to its handler, runs blocking broker
calls on worker threads, and turns every failure into a classified,
textual ToolResult.  No retries: one attempt per network-bound step.

AVAILABLE TOOLS:

=== SEARCH ===
search_stocks: {query} -> shares matching query
search_bonds:  {query} -> bonds matching query
search_funds:  {query} -> funds/ETFs matching query

=== ORDERS (live, irreversible) ===
buy:  {ticker, lots} -> market buy of <lots> lots of the first search hit
sell: {ticker, lots} -> market sell of <lots> lots of the first search hit

=== ACCOUNT ===
portfolio: {} -> positions with quantity, lots, type

=== MARKET DATA ===
last_price:     {query} -> latest trade price + timestamp
orderbook:      {query, depth} -> bid/ask ladders, depth clamped to 1..50
candles:        {query, from, to, interval} -> OHLCV rows (RFC3339 range, 1m/5m/15m/1h/1d), max 50 rows
trading_status: {query} -> current trading-session status
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from data.broker_errors import BackendError, BackendFailure, BridgeError, ValidationError, classify_failure
from data.instrument_resolver import resolve
from data.models import InstrumentRef

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Structured result from tool execution."""
    action: str
    text: str
    success: bool
    error: Optional[str] = None  # BridgeError.category when success is False

    def __str__(self) -> str:
        return self.text


# Build unified handler registry from submodules
from tools.tools_instruments import HANDLERS as _INSTRUMENTS
from tools.tools_orders import HANDLERS as _ORDERS
from tools.tools_account import HANDLERS as _ACCOUNT
from tools.tools_market import HANDLERS as _MARKET

_REGISTRY: dict[str, Any] = {}
_REGISTRY.update(_INSTRUMENTS)
_REGISTRY.update(_ORDERS)
_REGISTRY.update(_ACCOUNT)
_REGISTRY.update(_MARKET)

# Submit live orders; everything else is read-only
_ORDER_ACTIONS = {"buy", "sell"}


def get_valid_actions() -> list[str]:
    """Return sorted list of all valid action names from the tool registry."""
    return sorted(_REGISTRY.keys())


class ToolExecutor:
    """Dispatches tool calls against one Session (shared, read-only)."""

    def __init__(self, session):
        self.session = session

    @property
    def gateway(self):
        return self.session.gateway

    @property
    def account_id(self) -> Optional[str]:
        return self.session.account_id

    async def backend(self, operation: str, fn: Callable, *args) -> Any:
        """Run one blocking broker call off the event loop; classify failures."""
        try:
            return await asyncio.to_thread(fn, *args)
        except BackendFailure as failure:
            raise classify_failure(failure, operation) from failure

    async def resolve_instrument(self, query: str) -> InstrumentRef:
        """First search hit for ``query``, or NotFound."""
        return await asyncio.to_thread(resolve, self.gateway, query)

    async def execute(self, action: str, params: Optional[dict] = None) -> ToolResult:
        """Execute a tool and return structured ToolResult."""
        params = params or {}
        handler = _REGISTRY.get(action)
        if handler is None:
            err = ValidationError(f"Unknown action: {action}. Valid: {', '.join(get_valid_actions())}")
            return ToolResult(action=action, text=str(err), success=False, error=err.category)

        if action in _ORDER_ACTIONS:
            logger.info(f"Tool call: {action} {params}")
        else:
            logger.info(f"Tool call: {action}")

        try:
            text = await handler(self, params)
            return ToolResult(action=action, text=text, success=True)
        except BridgeError as e:
            logger.warning(f"Tool {action} failed [{e.category}]: {e}")
            return ToolResult(action=action, text=str(e), success=False, error=e.category)
        except Exception as e:
            logger.error(f"Tool error: {action} - {e}", exc_info=True)
            err = BackendError(action, str(e))
            return ToolResult(action=action, text=str(err), success=False, error=err.category)
