"""Data model for entries of a remote Drive folder listing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class RemoteFile:
    """
    One object as the backend reports it.

    Notes:
        - remote_id is the Drive file id; it is what links a listing entry to
          a local FileEntity.
        - size is None for objects without binary content (Google apps types).
    """

    remote_id: str
    name: str
    mime_type: str

    size: Optional[int] = None
    created_time: Optional[datetime] = None
