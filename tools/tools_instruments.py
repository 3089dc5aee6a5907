"""Instrument search tool handlers — one per instrument kind.

Search is client-side filtered: the backend returns every kind matching
the query and we keep the one the tool asked for.  No hits is a normal,
successful answer.
"""

import logging

from data.instrument_resolver import resolve_by_kind
from data.models import InstrumentKind
from tools.tools_format import format_list
from tools.tools_validation import require_str

logger = logging.getLogger(__name__)


# kind -> (plural label used in messages, operation name for errors)
_KIND_LABELS = {
    InstrumentKind.SHARE: ("shares", "Share search"),
    InstrumentKind.BOND: ("bonds", "Bond search"),
    InstrumentKind.ETF: ("funds", "Fund search"),
}


async def _search(executor, params: dict, kind: InstrumentKind) -> str:
    query = require_str(params, "query")
    label, operation = _KIND_LABELS[kind]
    found = await executor.backend(operation, resolve_by_kind, executor.gateway, query, kind)
    if not found:
        return f"No {label} found for query"
    lines = [f"{it.name} ({it.ticker}) – FIGI: {it.key}" for it in found]
    return f"Found {label}:\n" + format_list(lines)


async def handle_search_stocks(executor, params: dict) -> str:
    return await _search(executor, params, InstrumentKind.SHARE)


async def handle_search_bonds(executor, params: dict) -> str:
    return await _search(executor, params, InstrumentKind.BOND)


async def handle_search_funds(executor, params: dict) -> str:
    return await _search(executor, params, InstrumentKind.ETF)


HANDLERS = {
    "search_stocks": handle_search_stocks,
    "search_bonds": handle_search_bonds,
    "search_funds": handle_search_funds,
}
