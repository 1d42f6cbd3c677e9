"""Public store exports for portalsync."""

from __future__ import annotations

from .metadata_store import MetadataStore, scope_clause
from .tables import (
    CREDENTIAL_ROW_ID,
    Activity,
    Base,
    CredentialRecord,
    FileEntity,
    Project,
)

__all__ = [
    "MetadataStore",
    "scope_clause",
    "Base",
    "CredentialRecord",
    "Project",
    "FileEntity",
    "Activity",
    "CREDENTIAL_ROW_ID",
]
