"""Reconcile actions for portalsync."""

from __future__ import annotations

from enum import Enum


class Action(str, Enum):
    """Ledger mutations a reconcile pass can apply."""

    ADD = "ADD"
    DELETE = "DELETE"
    RENAME = "RENAME"
