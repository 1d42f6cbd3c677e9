"""Result models for reconciliation passes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional


OperationStatus = Literal["success"]
SkipReason = Literal["not_syncable", "debounced", "not_connected", "in_progress"]


@dataclass(slots=True)
class OperationResult:
    """
    Result for a single applied ReconcileOperation.

    Only applied operations are reported; a failing one is raised instead.
    """

    op_id: str
    seq: int
    action: str
    status: OperationStatus

    entity_id: Optional[str] = None
    remote_id: Optional[str] = None


@dataclass(slots=True)
class SyncResult:
    """
    Outcome of Reconciler.trigger_sync.

    synced=False with a reason is the "skipped" signal, not an error.
    """

    synced: bool
    reason: Optional[SkipReason] = None
    changed: bool = False

    plan_id: Optional[str] = None
    results: list[OperationResult] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @classmethod
    def skipped(cls, reason: SkipReason) -> SyncResult:
        return cls(synced=False, reason=reason)
