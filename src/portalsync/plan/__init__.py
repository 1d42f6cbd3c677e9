"""Public plan exports for portalsync."""

from __future__ import annotations

from .actions import Action
from .diff import build_reconcile_plan
from .operation import ReconcileOperation
from .ordering import build_apply_order
from .reconcile_plan import ReconcilePlan

__all__ = [
    "Action",
    "ReconcileOperation",
    "ReconcilePlan",
    "build_apply_order",
    "build_reconcile_plan",
]
