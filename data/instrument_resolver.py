"""Instrument resolution — free-text query to a canonical instrument."""

import logging
from typing import List

from data.broker_errors import BackendFailure, NotFound
from data.models import InstrumentKind, InstrumentRef

logger = logging.getLogger(__name__)


def resolve(gateway, query: str) -> InstrumentRef:
    """Return the first search hit for ``query``.

    Zero hits and a failing search both raise NotFound; callers only need
    "could not resolve".  No ranking: the backend's ordering decides.
    """
    try:
        found = gateway.find_instruments(query)
    except BackendFailure as e:
        logger.warning(f"Instrument search failed for {query!r}: {e}")
        raise NotFound(f"Instrument {query!r} not found (search failed: {e.message})") from e
    if not found:
        raise NotFound(f"Instrument {query!r} not found")
    return found[0]


def resolve_by_kind(gateway, query: str, kind: InstrumentKind) -> List[InstrumentRef]:
    """Search and keep only ``kind``, preserving backend order.

    An empty list is a normal outcome.  Search failures propagate as
    BackendFailure for the caller to classify.
    """
    return [it for it in gateway.find_instruments(query) if it.kind == kind]
