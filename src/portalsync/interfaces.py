"""Narrow interfaces to collaborators that live outside this package."""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from portalsync.models import Caller
from portalsync.store import MetadataStore

logger = logging.getLogger(__name__)


class Authorizer(Protocol):
    """Decides whether a non-admin caller may see a scope's files."""

    def is_authorized(self, caller: Caller, access_rules: Sequence[str]) -> bool: ...


class ActivitySink(Protocol):
    """Fire-and-forget audit trail."""

    def record(self, event_type: str, description: str, actor_id: Optional[str]) -> None: ...


class AdminOnlyAuthorizer:
    """Fallback oracle: nobody but admins (who bypass the oracle anyway)."""

    def is_authorized(self, caller: Caller, access_rules: Sequence[str]) -> bool:
        return False


class StoreActivitySink:
    """Write activities to the metadata store; failures are logged, never raised."""

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    def record(self, event_type: str, description: str, actor_id: Optional[str]) -> None:
        try:
            self._store.add_activity(event_type, description, actor_id)
        except Exception:
            logger.exception("Failed to record activity %s", event_type)
