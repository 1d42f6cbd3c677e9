from __future__ import annotations

FOLDER_MIME: str = "application/vnd.google-apps.folder"
DEFAULT_CONTENT_TYPE: str = "application/octet-stream"


def is_folder(mime_type: str) -> bool:
    return mime_type == FOLDER_MIME


def is_google_app(mime_type: str) -> bool:
    """
    Returns True if the MIME type is a Google 'apps' type.

    Google apps types (Docs, Sheets, ...) have no binary content and cannot be
    fetched with alt=media.
    """
    return mime_type.startswith("application/vnd.google-apps.")


def normalize_content_type(content_type: str | None) -> str:
    """Return content_type, or the generic binary type when empty."""
    if not content_type or not content_type.strip():
        return DEFAULT_CONTENT_TYPE
    return content_type.strip()
