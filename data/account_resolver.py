"""
Account resolution — runs once, at session bootstrap.

Ordered fallback chain, first present value wins:
  1. explicit account id from configuration (TINKOFF_ACCOUNT_ID), used as-is
  2. account id already embedded in the broker client's configuration
  3. first OPEN account from the accounts listing, in listing order

The explicit id is resolved before the client is built so the SDK never
walks its stricter empty-account code path.
"""

import logging
from typing import Callable, Iterable, Optional, Tuple

from data.broker_errors import BackendFailure, NoAccountResolved
from data.models import Account, AccountStatus

logger = logging.getLogger(__name__)

Attempt = Tuple[str, Callable[[], Optional[Account]]]


def _clean(account_id: Optional[str]) -> Optional[str]:
    account_id = (account_id or "").strip()
    return account_id or None


def from_explicit(account_id: Optional[str]) -> Optional[Account]:
    cleaned = _clean(account_id)
    return Account(cleaned) if cleaned else None


def from_client_config(gateway) -> Optional[Account]:
    cleaned = _clean(getattr(gateway, "configured_account_id", None))
    return Account(cleaned) if cleaned else None


def first_open_account(gateway) -> Optional[Account]:
    try:
        accounts = gateway.get_accounts()
    except BackendFailure as e:
        raise NoAccountResolved(f"Failed to list accounts: {e.message}") from e
    return next((acc for acc in accounts if acc.status == AccountStatus.OPEN), None)


def find_first(attempts: Iterable[Attempt]) -> Optional[Tuple[str, Account]]:
    """Run attempts in order, stopping at the first that yields an account."""
    for source, attempt in attempts:
        account = attempt()
        if account is not None:
            return source, account
    return None


def resolve_account(gateway, explicit_account_id: Optional[str] = None) -> Account:
    """Resolve the operating account or raise NoAccountResolved."""
    attempts = (
        ("configuration", lambda: from_explicit(explicit_account_id)),
        ("client config", lambda: from_client_config(gateway)),
        ("accounts listing", lambda: first_open_account(gateway)),
    )
    hit = find_first(attempts)
    if hit is None:
        raise NoAccountResolved("No account resolved: no OPEN account found")
    source, account = hit
    logger.info(f"AccountID {account.id} resolved from {source}")
    return account
