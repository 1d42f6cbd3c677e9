"""ReconcilePlan model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .actions import Action
from .operation import ReconcileOperation


@dataclass(slots=True)
class ReconcilePlan:
    """The ledger mutations needed to make one scope match its Drive folder."""

    plan_id: str
    scope_id: Optional[str]
    created_at: datetime
    operations: list[ReconcileOperation]
    apply_order: list[str]

    def is_empty(self) -> bool:
        return not self.operations

    def ordered(self) -> list[ReconcileOperation]:
        by_id = {op.op_id: op for op in self.operations}
        return [by_id[op_id] for op_id in self.apply_order]

    def summary(self) -> dict[str, int]:
        counts = {action.value: 0 for action in Action}
        for op in self.operations:
            counts[op.action.value] += 1
        return counts
