"""
Core Configuration — all settings consolidated here + .env

TINKOFF_TOKEN       required; blank/absent aborts startup
TINKOFF_ENDPOINT    gRPC target (default: production)
APP_NAME            app identifier sent with every request
TINKOFF_ACCOUNT_ID  explicit operating account (skips auto-resolution)

Read ONCE at startup.  Nothing reads the environment after bootstrap.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from data.broker_errors import ConfigurationError

logger = logging.getLogger(__name__)

# ── Defaults ────────────────────────────────────────────────────
DEFAULT_APP_NAME = "tinvest-mcp"
SERVER_NAME = "Tinkoff Investments MCP"
SERVER_VERSION = "1.0.0"

# ── Transport ───────────────────────────────────────────────────
TRANSPORTS = ("stdio", "sse", "http")
DEFAULT_TRANSPORT = "sse"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8100

# ── Rendering limits ────────────────────────────────────────────
CANDLE_ROW_LIMIT = 50
MIN_ORDERBOOK_DEPTH = 1
MAX_ORDERBOOK_DEPTH = 50


@dataclass(frozen=True)
class Settings:
    token: str
    endpoint: str
    app_name: str = DEFAULT_APP_NAME
    account_id: Optional[str] = None

    @property
    def sandbox(self) -> bool:
        return "sandbox" in self.endpoint.lower()


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment (after load_dotenv()).

    Raises ConfigurationError when the token is missing or blank.
    """
    from execution.tinvest_utils import resolve_endpoint

    env = os.environ if environ is None else environ

    token = (env.get("TINKOFF_TOKEN") or "").strip()
    if not token:
        raise ConfigurationError("Environment variable TINKOFF_TOKEN is not set")

    endpoint = resolve_endpoint(env.get("TINKOFF_ENDPOINT"))
    app_name = (env.get("APP_NAME") or "").strip() or DEFAULT_APP_NAME
    account_id = (env.get("TINKOFF_ACCOUNT_ID") or "").strip() or None
    if account_id:
        logger.info(f"AccountID from environment: {account_id}")

    return Settings(token=token, endpoint=endpoint, app_name=app_name, account_id=account_id)
