"""Apply ordering rules for ReconcilePlan operations."""

from __future__ import annotations

from .actions import Action
from .operation import ReconcileOperation

_ACTION_RANK: dict[Action, int] = {
    Action.ADD: 0,
    Action.DELETE: 1,
    Action.RENAME: 2,
}


def build_apply_order(operations: list[ReconcileOperation]) -> list[str]:
    """
    Build apply_order from operations.

    Rules:
        - Additions first, then deletions, then renames.
        - Within one action, seq ascending.
    """
    ops = sorted(operations, key=lambda op: (_ACTION_RANK[op.action], op.seq))
    return [op.op_id for op in ops]
