"""Download pass-through and zip export of a project's current files."""

from __future__ import annotations

import io
import logging
import re
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import quote

import requests

from portalsync.config import PortalSettings
from portalsync.controller import DownloadStream
from portalsync.errors import ExportTooLargeError, InvalidArgumentError, PortalSyncError
from portalsync.models import DownloadResponse
from portalsync.store import FileEntity

logger = logging.getLogger(__name__)

ZIP_CONTENT_TYPE = "application/zip"

CATEGORY_FOLDERS = {
    "RENDER": "Renders",
    "DRAWING": "Drawings",
    "OTHER": "Other",
}

_UNSAFE_ARCHIVE_CHARS = re.compile(r"[^a-zA-Z0-9_\- ]")


class Downloader(Protocol):
    def download(self, remote_id: str) -> DownloadStream: ...


@dataclass(slots=True)
class ZipExport:
    """A finished archive plus what went into it."""

    file_name: str
    data: bytes
    included: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def content_type(self) -> str:
        return ZIP_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def disposition(self) -> str:
        return content_disposition(self.file_name)


def content_disposition(file_name: str, inline: bool = False) -> str:
    """Build a Content-Disposition value; non-ASCII names get an RFC 5987 filename*."""
    kind = "inline" if inline else "attachment"
    fallback = file_name.encode("ascii", "replace").decode("ascii").replace('"', "'")
    value = f'{kind}; filename="{fallback}"'
    if fallback != file_name:
        value += f"; filename*=UTF-8''{quote(file_name, safe='')}"
    return value


def build_download_response(
    entity: FileEntity,
    stream: DownloadStream,
    *,
    inline: bool = False,
) -> DownloadResponse:
    """Wrap an open stream with the headers the client needs."""
    size = stream.size if stream.size is not None else (entity.size or None)
    return DownloadResponse(
        stream=stream,
        content_type=entity.content_type or stream.content_type,
        size=size,
        disposition=content_disposition(entity.original_name, inline),
        file_name=entity.original_name,
    )


def archive_name(project_name: str) -> str:
    safe = _UNSAFE_ARCHIVE_CHARS.sub("", project_name).strip()
    return f"{safe or 'project'}_files.zip"


def build_zip_export(
    project_name: str,
    files: Iterable[FileEntity],
    downloader: Downloader,
    settings: Optional[PortalSettings] = None,
) -> ZipExport:
    """
    Download every file and pack it under its category folder.

    Files that fail to download are skipped and logged. The export is
    refused before any download when the file count or the recorded sizes
    exceed the ceiling, and aborted if the streamed bytes exceed it.

    Raises:
        InvalidArgumentError: if there is nothing to export.
        ExportTooLargeError: if the ceiling is exceeded.
    """
    settings = settings or PortalSettings()
    files = list(files)
    if not files:
        raise InvalidArgumentError("No current files to download")

    if len(files) > settings.export_max_files:
        raise ExportTooLargeError(
            "Too many files to export",
            details={"files": len(files), "limit": settings.export_max_files},
        )
    declared = sum(f.size or 0 for f in files)
    if declared > settings.export_max_bytes:
        raise ExportTooLargeError(
            "Files too large to export",
            details={"bytes": declared, "limit": settings.export_max_bytes},
        )

    export = ZipExport(file_name=archive_name(project_name), data=b"")
    buffer = io.BytesIO()
    used_names: set[str] = set()
    total = 0

    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for f in files:
            try:
                with downloader.download(f.remote_id) as stream:
                    data = b"".join(stream.iter_chunks())
            except (PortalSyncError, OSError, requests.RequestException) as exc:
                logger.warning("Skipping %s in export: %s", f.id, exc)
                export.skipped.append(f.id)
                continue

            total += len(data)
            if total > settings.export_max_bytes:
                raise ExportTooLargeError(
                    "Files too large to export",
                    details={"bytes": total, "limit": settings.export_max_bytes},
                )

            folder = CATEGORY_FOLDERS.get(f.category, "Other")
            zf.writestr(_unique_name(f"{folder}/{f.original_name}", used_names), data)
            export.included.append(f.id)

    export.data = buffer.getvalue()
    logger.info(
        "Exported %d files (%d skipped) as %s",
        len(export.included),
        len(export.skipped),
        export.file_name,
    )
    return export


def _unique_name(path: str, used: set[str]) -> str:
    candidate = path
    n = 1
    while candidate.lower() in used:
        stem, dot, ext = path.rpartition(".")
        if not dot or "/" in ext:
            candidate = f"{path} ({n})"
        else:
            candidate = f"{stem} ({n}).{ext}"
        n += 1
    used.add(candidate.lower())
    return candidate
