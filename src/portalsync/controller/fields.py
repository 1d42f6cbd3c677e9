"""Field definitions and endpoints for Google Drive API calls."""

from __future__ import annotations

FILE_FIELDS: str = (
    "id,"
    "name,"
    "mimeType,"
    "size,"
    "createdTime"
)

LIST_FIELDS: str = f"nextPageToken,files({FILE_FIELDS})"

FOLDER_LOOKUP_FIELDS: str = "files(id)"

# Returned to the browser once it finishes PUTting to the session URI.
UPLOAD_RESULT_FIELDS: str = "id,name,size"

PAGE_SIZE: int = 1000

DRIVE_FILES_URL: str = "https://www.googleapis.com/drive/v3/files"
DRIVE_UPLOAD_URL: str = "https://www.googleapis.com/upload/drive/v3/files"
