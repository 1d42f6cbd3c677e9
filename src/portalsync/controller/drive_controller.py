"""Google Drive API controller: the remote storage client."""

from __future__ import annotations

import io
import json
import logging
from typing import Any, Callable, Optional, Protocol, TypeVar

import requests

from portalsync.errors import (
    ApiError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    PortalSyncError,
    RemoteNotFoundError,
    UploadSessionFailedError,
    map_http_error,
)
from portalsync.models import RemoteFile
from portalsync.util.locks import KeyedLocks
from portalsync.util.mime import FOLDER_MIME
from portalsync.util.time import parse_rfc3339

from .download_stream import DownloadStream
from .fields import (
    DRIVE_FILES_URL,
    DRIVE_UPLOAD_URL,
    FILE_FIELDS,
    FOLDER_LOOKUP_FIELDS,
    LIST_FIELDS,
    PAGE_SIZE,
    UPLOAD_RESULT_FIELDS,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


class TokenSource(Protocol):
    def get_valid_token(self) -> str: ...


ServiceFactory = Callable[[str], Any]
SessionFactory = Callable[[str], Any]


def build_drive_service(access_token: str) -> Any:
    """Build a Drive v3 resource bound to a bare access token."""
    from google.oauth2.credentials import Credentials
    from googleapiclient.discovery import build

    return build("drive", "v3", credentials=Credentials(token=access_token), cache_discovery=False)


def build_authorized_session(access_token: str) -> Any:
    """Build a requests session that sends the access token."""
    from google.auth.transport.requests import AuthorizedSession
    from google.oauth2.credentials import Credentials

    return AuthorizedSession(Credentials(token=access_token))


class DriveStorageClient:
    """
    Stateless wrapper over the Drive API.

    Notes:
        - Every call fetches a token from the token source first, so expiry is
          handled transparently by TokenManager.
        - No automatic retries; errors carry status_code and operation so the
          caller can decide.
        - `supports_all_drives` is applied to all requests consistently.
    """

    def __init__(
        self,
        token_source: TokenSource,
        *,
        service_factory: Optional[ServiceFactory] = None,
        session_factory: Optional[SessionFactory] = None,
        supports_all_drives: bool = True,
        chunk_size: int = 1024 * 1024,
        timeout: float = 60.0,
    ) -> None:
        self._tokens = token_source
        self._service_factory = service_factory or build_drive_service
        self._session_factory = session_factory or build_authorized_session
        self._supports_all_drives = supports_all_drives
        self._chunk_size = chunk_size
        self._timeout = timeout
        self._folder_locks = KeyedLocks()

    # ----------------------------
    # Public API
    # ----------------------------
    def find_or_create_container(self, name: str, parent_id: Optional[str] = None) -> str:
        """
        Return the id of the folder `name` under `parent_id` (My Drive root if None).

        Creation is serialised per (parent, name) within this process only;
        two processes racing can still create duplicates.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("container name must be a non-empty string")

        parent = parent_id or "root"
        with self._folder_locks.hold((parent, name)):
            service = self._service()
            q = (
                f"name='{_escape_query(name)}'"
                f" and mimeType='{FOLDER_MIME}'"
                f" and '{_escape_query(parent)}' in parents"
                " and trashed=false"
            )
            req = service.files().list(
                q=q,
                fields=FOLDER_LOOKUP_FIELDS,
                pageSize=1,
                **self._common_list_kwargs(),
            )
            data = self._execute(req.execute, "find_folder")
            files = data.get("files") or []
            if files:
                return files[0]["id"]

            body: dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME}
            if parent_id:
                body["parents"] = [parent_id]
            req = service.files().create(
                body=body,
                fields="id",
                **self._common_write_kwargs(),
            )
            data = self._execute(req.execute, "create_folder")
            logger.info("Created Drive folder %r under %s", name, parent)
            return data["id"]

    def upload_small(
        self,
        container_id: str,
        name: str,
        content_type: str,
        data: bytes,
    ) -> RemoteFile:
        """Server-mediated multipart upload for small payloads (logos, thumbnails)."""
        try:
            from googleapiclient.http import MediaIoBaseUpload
        except Exception as exc:  # pragma: no cover
            raise ApiError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=content_type, resumable=False)
        body = {"name": name, "parents": [container_id]}

        req = self._service().files().create(
            body=body,
            media_body=media,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        result = self._execute(req.execute, "upload_small")
        return _file_dict_to_remote_file(result)

    def create_resumable_session(
        self,
        container_id: str,
        name: str,
        content_type: str,
        *,
        origin: Optional[str] = None,
    ) -> str:
        """
        Open a resumable upload session and return its URI.

        The caller PUTs the bytes there directly. `origin` is forwarded so
        Drive answers the browser's cross-origin PUT.
        """
        params = {"uploadType": "resumable", "fields": UPLOAD_RESULT_FIELDS}
        params.update(self._common_query_params())
        headers = {
            "Content-Type": "application/json; charset=UTF-8",
            "X-Upload-Content-Type": content_type,
        }
        if origin:
            headers["Origin"] = origin

        session = self._session()
        try:
            resp = session.post(
                DRIVE_UPLOAD_URL,
                params=params,
                headers=headers,
                data=json.dumps({"name": name, "parents": [container_id]}),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(
                "Network error",
                details={"operation": "create_resumable_session"},
                cause=exc,
            ) from exc
        finally:
            session.close()

        if not resp.ok:
            info = _response_to_info(resp, "create_resumable_session")
            raise UploadSessionFailedError(
                info.message or f"Failed to create upload session: HTTP {info.status_code}",
                details={
                    "status_code": info.status_code,
                    "reason": info.reason,
                    "operation": info.operation,
                },
            )

        upload_uri = resp.headers.get("Location")
        if not upload_uri:
            raise UploadSessionFailedError(
                "No upload URI returned from Drive",
                details={"status_code": resp.status_code, "operation": "create_resumable_session"},
            )
        return upload_uri

    def download(self, remote_id: str) -> DownloadStream:
        """Open a streaming download. Close the returned stream when done."""
        params = {"alt": "media"}
        params.update(self._common_query_params())

        session = self._session()
        try:
            resp = session.get(
                f"{DRIVE_FILES_URL}/{remote_id}",
                params=params,
                stream=True,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            session.close()
            raise NetworkError(
                "Network error",
                details={"operation": "download", "remote_id": remote_id},
                cause=exc,
            ) from exc

        if not resp.ok:
            info = _response_to_info(resp, "download", remote_id=remote_id)
            resp.close()
            session.close()
            raise map_http_error(info)

        return DownloadStream(resp, chunk_size=self._chunk_size, on_close=session.close)

    def delete(self, remote_id: str) -> None:
        """Delete permanently. An already-missing object counts as deleted."""
        req = self._service().files().delete(
            fileId=remote_id,
            **self._common_write_kwargs(),
        )
        try:
            self._execute(req.execute, "delete")
        except RemoteNotFoundError:
            logger.debug("Drive object %s already gone", remote_id)

    def list_container(self, container_id: str) -> list[RemoteFile]:
        """
        List the files (not sub-folders) directly inside a folder.

        Paginates until exhausted and returns the full list.
        """
        q = (
            f"'{_escape_query(container_id)}' in parents"
            " and trashed=false"
            f" and mimeType!='{FOLDER_MIME}'"
        )
        service = self._service()
        all_files: list[RemoteFile] = []
        page_token: Optional[str] = None

        while True:
            req = service.files().list(
                q=q,
                fields=LIST_FIELDS,
                pageSize=PAGE_SIZE,
                pageToken=page_token,
                **self._common_list_kwargs(),
            )
            data = self._execute(req.execute, "list_container")
            for f in data.get("files", []):
                all_files.append(_file_dict_to_remote_file(f))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return all_files

    # ----------------------------
    # Internals
    # ----------------------------
    def _service(self) -> Any:
        return self._service_factory(self._tokens.get_valid_token())

    def _session(self) -> Any:
        return self._session_factory(self._tokens.get_valid_token())

    def _common_query_params(self) -> dict[str, str]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": "true"}

    def _common_list_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True, "includeItemsFromAllDrives": True}

    def _common_write_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True}

    def _execute(self, func: Callable[[], T], operation: str) -> T:
        try:
            return func()
        except Exception as exc:
            raise self._map_exception(exc, operation) from exc

    def _map_exception(self, exc: Exception, operation: str) -> Exception:
        try:
            from googleapiclient.errors import HttpError
        except Exception:  # pragma: no cover
            HttpError = None  # type: ignore[assignment]

        if isinstance(exc, PortalSyncError):
            return exc

        if HttpError is not None and isinstance(exc, HttpError):
            info = _http_error_to_info(exc, operation)
            return map_http_error(info, cause=exc)

        if isinstance(exc, (OSError, TimeoutError, requests.RequestException)):
            return NetworkError("Network error", details={"operation": operation}, cause=exc)

        return ApiError("Drive API error", details={"operation": operation}, cause=exc)


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _file_dict_to_remote_file(data: dict[str, Any]) -> RemoteFile:
    file_id = data.get("id")
    name = data.get("name", "")
    mime_type = data.get("mimeType", "")

    created_time = None
    if isinstance(data.get("createdTime"), str):
        try:
            created_time = parse_rfc3339(data["createdTime"])
        except ValueError:
            created_time = None

    size = None
    if isinstance(data.get("size"), str) and data["size"].isdigit():
        size = int(data["size"])
    elif isinstance(data.get("size"), int):
        size = data["size"]

    return RemoteFile(
        remote_id=file_id if isinstance(file_id, str) else "",
        name=name if isinstance(name, str) else "",
        mime_type=mime_type if isinstance(mime_type, str) else "",
        size=size,
        created_time=created_time,
    )


def _parse_error_payload(raw: Any) -> tuple[Optional[str], Optional[str], dict[str, Any]]:
    """Pull (message, reason, details) out of a Google JSON error body."""
    message = None
    reason = None
    details: dict[str, Any] = {}

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None, None, details
    if not isinstance(raw, str) or not raw:
        return None, None, details

    try:
        payload = json.loads(raw)
    except ValueError:
        return None, None, details
    if not isinstance(payload, dict):
        return None, None, details

    err = payload.get("error")
    if not isinstance(err, dict):
        return None, None, details

    message = err.get("message") or None
    errors = err.get("errors") or []
    if errors and isinstance(errors, list) and isinstance(errors[0], dict):
        details["domain"] = errors[0].get("domain")
        details["reason_detail"] = errors[0].get("reason")
        if isinstance(errors[0].get("reason"), str):
            reason = errors[0]["reason"]

    return message, reason, details


def _http_error_to_info(exc: Any, operation: str) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message, body_reason, details = _parse_error_payload(getattr(exc, "content", None))
    if body_reason:
        reason = body_reason

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        operation=operation,
        details=details or None,
    )


def _response_to_info(resp: Any, operation: str, **extra: Any) -> HttpErrorInfo:
    status_code = getattr(resp, "status_code", 0)
    reason = getattr(resp, "reason", None)

    try:
        body = resp.text
    except Exception:
        body = None
    message, body_reason, details = _parse_error_payload(body)
    if body_reason:
        reason = body_reason
    details.update(extra)

    return HttpErrorInfo(
        status_code=status_code if isinstance(status_code, int) else 0,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        operation=operation,
        details=details or None,
    )
