"""Remote storage client exports for portalsync."""

from __future__ import annotations

from .download_stream import DownloadStream
from .drive_controller import (
    DriveStorageClient,
    build_authorized_session,
    build_drive_service,
)

__all__ = [
    "DriveStorageClient",
    "DownloadStream",
    "build_drive_service",
    "build_authorized_session",
]
