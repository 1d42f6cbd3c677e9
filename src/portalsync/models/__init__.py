"""Public model exports for portalsync."""

from __future__ import annotations

from .handles import (
    Caller,
    ConnectionStatus,
    DownloadResponse,
    TokenGrant,
    UploadHandle,
    VersionGroup,
)
from .remote_file import RemoteFile
from .results import OperationResult, OperationStatus, SkipReason, SyncResult

__all__ = [
    "RemoteFile",
    "OperationStatus",
    "SkipReason",
    "OperationResult",
    "SyncResult",
    "Caller",
    "UploadHandle",
    "TokenGrant",
    "ConnectionStatus",
    "VersionGroup",
    "DownloadResponse",
]
