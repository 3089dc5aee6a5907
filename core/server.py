"""
MCP tool server — exposes the ToolExecutor as named, schema-validated tools.

Each tool here only declares its argument schema and forwards to
ToolExecutor.execute().  Failed results are raised as ToolError so the
client sees an error result; the server keeps running.
"""

import logging
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from core.config import DEFAULT_HOST, DEFAULT_PORT, SERVER_NAME

logger = logging.getLogger(__name__)

Query = Annotated[str, Field(description="Ticker, part of the name, or FIGI of the instrument")]


def build_server(executor) -> FastMCP:
    """Register every tool against ``executor``."""
    mcp = FastMCP(SERVER_NAME)

    async def call(action: str, **params) -> str:
        result = await executor.execute(action, params)
        if not result.success:
            raise ToolError(result.text)
        return result.text

    @mcp.tool(name="search_stocks", description="Search shares by ticker or name")
    async def search_stocks(
        query: Annotated[str, Field(description="Part of the ticker or name of the share")],
    ) -> str:
        return await call("search_stocks", query=query)

    @mcp.tool(name="search_bonds", description="Search bonds by ticker or name")
    async def search_bonds(
        query: Annotated[str, Field(description="Part of the ticker or name of the bond")],
    ) -> str:
        return await call("search_bonds", query=query)

    @mcp.tool(name="search_funds", description="Search funds/ETFs by ticker or name")
    async def search_funds(
        query: Annotated[str, Field(description="Part of the ticker or name of the fund (ETF)")],
    ) -> str:
        return await call("search_funds", query=query)

    @mcp.tool(name="buy", description="Buy an instrument (market order)")
    async def buy(
        ticker: Annotated[str, Field(description="Ticker or part of the name to look the instrument up")],
        lots: Annotated[float, Field(description="Number of lots")],
    ) -> str:
        return await call("buy", ticker=ticker, lots=lots)

    @mcp.tool(name="sell", description="Sell an instrument (market order)")
    async def sell(
        ticker: Annotated[str, Field(description="Ticker or part of the name to look the instrument up")],
        lots: Annotated[float, Field(description="Number of lots")],
    ) -> str:
        return await call("sell", ticker=ticker, lots=lots)

    @mcp.tool(name="portfolio", description="Current portfolio (positions and balances)")
    async def portfolio() -> str:
        return await call("portfolio")

    @mcp.tool(name="last_price", description="Last trade price of an instrument")
    async def last_price(query: Query) -> str:
        return await call("last_price", query=query)

    @mcp.tool(name="orderbook", description="Order book for an instrument")
    async def orderbook(
        query: Query,
        depth: Annotated[float, Field(description="Order book depth (1-50)")],
    ) -> str:
        return await call("orderbook", query=query, depth=depth)

    @mcp.tool(name="candles", description="Historical candles for an instrument over a period")
    async def candles(
        query: Query,
        from_: Annotated[str, Field(alias="from",
                                    description="Period start (RFC3339), e.g. 2024-01-01T00:00:00Z")],
        to: Annotated[str, Field(description="Period end (RFC3339), e.g. 2024-01-31T23:59:59Z")],
        interval: Annotated[str, Field(description="Interval: 1m,5m,15m,1h,1d")],
    ) -> str:
        params = {"query": query, "from": from_, "to": to, "interval": interval}
        return await call("candles", **params)

    @mcp.tool(name="trading_status", description="Trading status of an instrument")
    async def trading_status(query: Query) -> str:
        return await call("trading_status", query=query)

    return mcp


def run_server(mcp: FastMCP, transport: str, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Serve until interrupted.  stdio and network transports are exclusive."""
    if transport == "stdio":
        logger.info("MCP server running in CLI mode (stdio)")
        mcp.run(transport="stdio")
        return
    logger.info(f"MCP {transport} server listening on http://{host}:{port}")
    mcp.run(transport=transport, host=host, port=port)
