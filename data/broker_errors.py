"""
Broker error taxonomy and failure classifier.

Fatal (abort startup):
  - ConfigurationError   missing/blank token
  - NoAccountResolved    account fallback chain came up empty

Per-call (returned as a failed tool result, never raised out of the server):
  - ValidationError      bad tool arguments (InvalidTimeRange, UnknownInterval)
  - NotFound             instrument/account absent
  - AccountUnresolved    portfolio/order call with no operating account
  - BackendNotFound      backend answered NOT_FOUND (usually account/endpoint mismatch)
  - BackendError         any other collaborator failure, message kept verbatim

Nothing here retries.  Retry policy belongs to the transport.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

NOT_FOUND_CODE = "NOT_FOUND"


# =========================================================================
# RAW COLLABORATOR FAILURE
# =========================================================================

class BackendFailure(Exception):
    """Generic {code, message} failure raised by gateway methods.

    ``code`` is the transport status name (e.g. ``NOT_FOUND``, ``INVALID_ARGUMENT``).
    """
    def __init__(self, code: str, message: str):
        self.code = (code or "UNKNOWN").upper()
        self.message = message or self.code
        super().__init__(f"{self.code}: {self.message}")


# =========================================================================
# TAXONOMY
# =========================================================================

class BridgeError(Exception):
    """Base for every classified error.  ``category`` is stable for callers."""
    category = "BridgeError"


class ConfigurationError(BridgeError):
    category = "ConfigurationError"


class NoAccountResolved(BridgeError):
    category = "NoAccountResolved"


class ValidationError(BridgeError):
    category = "ValidationError"


class InvalidTimeRange(ValidationError):
    category = "InvalidTimeRange"


class UnknownInterval(ValidationError):
    category = "UnknownInterval"


class NotFound(BridgeError):
    category = "NotFound"


class AccountUnresolved(BridgeError):
    category = "AccountUnresolved"

    def __init__(self, operation: str):
        super().__init__(
            f"{operation} failed: no operating account. Set TINKOFF_ACCOUNT_ID "
            f"or open an account and restart the server."
        )


class BackendNotFound(BridgeError):
    category = "BackendNotFound"

    def __init__(self, operation: str, message: str):
        super().__init__(
            f"{operation} failed: resource not found (NOT_FOUND: {message}). "
            f"Check that the account id is correct, that the endpoint matches the "
            f"token environment (sandbox vs production), and the token's access scope."
        )


class BackendError(BridgeError):
    category = "BackendError"

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")


# =========================================================================
# CLASSIFIER
# =========================================================================

def classify_failure(failure: BackendFailure, operation: str) -> BridgeError:
    """Map a collaborator failure to a user-facing error for ``operation``."""
    if failure.code == NOT_FOUND_CODE:
        logger.warning(f"{operation}: backend NOT_FOUND ({failure.message})")
        return BackendNotFound(operation, failure.message)
    logger.warning(f"{operation}: backend failure {failure.code} ({failure.message})")
    return BackendError(operation, failure.message)
