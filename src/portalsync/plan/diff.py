"""Pure diff between a Drive folder listing and the local ledger."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from portalsync.models import RemoteFile
from portalsync.store import FileEntity
from portalsync.util.ids import new_op_id, new_plan_id
from portalsync.util.time import now_utc

from .actions import Action
from .operation import ReconcileOperation
from .ordering import build_apply_order
from .reconcile_plan import ReconcilePlan


def build_reconcile_plan(
    scope_id: Optional[str],
    remote_files: Iterable[RemoteFile],
    local_entities: Iterable[FileEntity],
    *,
    created_at: Optional[datetime] = None,
) -> ReconcilePlan:
    """
    Classify every difference between remote and local by remote id.

    Rules:
        - remote id unknown locally: ADD
        - local remote id missing from the listing: DELETE
        - same remote id, remote name != original_name: RENAME

    Remote entries keep listing order; local entities keep the given order.
    Duplicate remote ids in the listing are collapsed to the first one.
    """
    remote_by_id: dict[str, RemoteFile] = {}
    for rf in remote_files:
        if rf.remote_id and rf.remote_id not in remote_by_id:
            remote_by_id[rf.remote_id] = rf

    local_by_remote_id: dict[str, FileEntity] = {}
    for entity in local_entities:
        local_by_remote_id.setdefault(entity.remote_id, entity)

    operations: list[ReconcileOperation] = []

    def _add(op: ReconcileOperation) -> None:
        op.validate_required_fields()
        operations.append(op)

    for remote_id, rf in remote_by_id.items():
        entity = local_by_remote_id.get(remote_id)
        if entity is None:
            _add(
                ReconcileOperation(
                    op_id=new_op_id(),
                    seq=len(operations),
                    action=Action.ADD,
                    remote_id=remote_id,
                    remote_file=rf,
                    name=rf.name,
                )
            )
        elif rf.name != entity.original_name:
            _add(
                ReconcileOperation(
                    op_id=new_op_id(),
                    seq=len(operations),
                    action=Action.RENAME,
                    remote_id=remote_id,
                    entity_id=entity.id,
                    name=rf.name,
                    note=f"was {entity.original_name!r}",
                )
            )

    for remote_id, entity in local_by_remote_id.items():
        if remote_id not in remote_by_id:
            _add(
                ReconcileOperation(
                    op_id=new_op_id(),
                    seq=len(operations),
                    action=Action.DELETE,
                    remote_id=remote_id,
                    entity_id=entity.id,
                    name=entity.name,
                )
            )

    return ReconcilePlan(
        plan_id=new_plan_id(),
        scope_id=scope_id,
        created_at=created_at or now_utc(),
        operations=operations,
        apply_order=build_apply_order(operations),
    )
