"""
Session — the one authenticated broker session per process.

Built once, synchronously, before the tool server starts:
  1. connect the gateway (one gRPC channel)
  2. resolve the operating account (fallback chain, see data.account_resolver)

After open() returns, the gateway handle and account are read-only shared
state; concurrent tool calls need no locking.  close() releases the
gateway exactly once, including when bootstrap fails after connecting.
"""

import logging
from typing import Callable, Optional

from data.account_resolver import resolve_account
from data.broker_gateway import create_gateway
from data.models import Account

logger = logging.getLogger(__name__)


class Session:

    def __init__(self, gateway, account: Account):
        self._gateway = gateway
        self._account = account
        self._closed = False

    @classmethod
    def open(cls, settings, gateway_factory: Callable = create_gateway) -> "Session":
        """Connect and resolve the account.  Raises NoAccountResolved (fatal)."""
        gateway = gateway_factory(settings)
        try:
            account = resolve_account(gateway, settings.account_id)
        except BaseException:
            logger.error("Session bootstrap failed; releasing broker connection")
            gateway.close()
            raise
        logger.info(f"Using endpoint: {settings.endpoint} (sandbox={settings.sandbox}), "
                    f"app: {settings.app_name}")
        logger.info(f"Selected AccountID: {account.id}")
        return cls(gateway, account)

    @property
    def gateway(self):
        return self._gateway

    @property
    def account(self) -> Account:
        return self._account

    @property
    def account_id(self) -> Optional[str]:
        return self._account.id if self._account else None

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._gateway.close()
        logger.info("Session closed")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
