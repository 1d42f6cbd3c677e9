from __future__ import annotations

import secrets
import uuid


def new_uuid() -> str:
    """Generate a UUID4 string."""
    return str(uuid.uuid4())


def new_plan_id() -> str:
    """Generate a new ReconcilePlan ID."""
    return new_uuid()


def new_op_id() -> str:
    """Generate a new ReconcileOperation ID."""
    return new_uuid()


def new_entity_id() -> str:
    """Generate a primary key for a FileEntity / Project / Activity row."""
    return uuid.uuid4().hex


def new_group_id() -> str:
    """Generate a version-chain group id (24 hex chars)."""
    return secrets.token_hex(12)
