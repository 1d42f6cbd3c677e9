"""Reconcile operation model (explicit fields; no args dict)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from portalsync.models import RemoteFile

from .actions import Action


@dataclass(slots=True)
class ReconcileOperation:
    """
    A single ledger mutation within a ReconcilePlan.

    ADD carries the remote listing entry; DELETE and RENAME target an
    existing FileEntity by id.
    """

    op_id: str
    seq: int
    action: Action

    remote_id: Optional[str] = None
    remote_file: Optional[RemoteFile] = None
    entity_id: Optional[str] = None
    name: Optional[str] = None
    note: Optional[str] = None

    def validate_required_fields(self) -> None:
        """Validate required fields according to action. Raises ValueError."""
        if self.action is Action.ADD:
            _require(self.remote_file, "remote_file")
            _require(self.remote_id, "remote_id")
            return

        if self.action is Action.DELETE:
            _require(self.entity_id, "entity_id")
            return

        if self.action is Action.RENAME:
            _require(self.entity_id, "entity_id")
            _require(self.name, "name")
            return

        raise ValueError(f"Unsupported action: {self.action}")


def _require(value: object, field_name: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"Missing required field: {field_name}")
