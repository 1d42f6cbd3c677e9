"""Upload broker exports for portalsync."""

from __future__ import annotations

from .upload_broker import FILE_UPLOADED, UploadBroker

__all__ = ["UploadBroker", "FILE_UPLOADED"]
