import json
import unittest
from datetime import datetime, timezone
from unittest.mock import Mock

from portalsync.controller.drive_controller import (
    DriveStorageClient,
    _escape_query,
    _file_dict_to_remote_file,
)
from portalsync.controller.fields import FILE_FIELDS
from portalsync.errors import (
    NetworkError,
    QuotaExceededError,
    RateLimitError,
    RemoteNotFoundError,
    UploadSessionFailedError,
)
from portalsync.util.mime import FOLDER_MIME


class _Tokens:
    def __init__(self) -> None:
        self.calls = 0

    def get_valid_token(self) -> str:
        self.calls += 1
        return "token"


def _http_error(status: int, reason: str = "", body: dict | None = None):
    from googleapiclient.errors import HttpError

    resp = Mock()
    resp.status = status
    resp.reason = reason
    return HttpError(resp=resp, content=json.dumps(body or {}).encode("utf-8"))


class TestDriveControllerHelpers(unittest.TestCase):
    def test_file_dict_to_remote_file_parses_fields(self) -> None:
        data = {
            "id": "F1",
            "name": "design.png",
            "mimeType": "image/png",
            "createdTime": "2025-01-01T00:00:00Z",
            "size": "123",
        }
        info = _file_dict_to_remote_file(data)
        self.assertEqual(info.remote_id, "F1")
        self.assertEqual(info.name, "design.png")
        self.assertEqual(info.size, 123)
        self.assertEqual(info.created_time, datetime(2025, 1, 1, tzinfo=timezone.utc))

    def test_listing_requests_only_mapped_fields(self) -> None:
        self.assertEqual(FILE_FIELDS.split(","), ["id", "name", "mimeType", "size", "createdTime"])

    def test_file_dict_without_size(self) -> None:
        info = _file_dict_to_remote_file({"id": "F1", "name": "doc", "mimeType": "x"})
        self.assertIsNone(info.size)
        self.assertIsNone(info.created_time)

    def test_escape_query(self) -> None:
        self.assertEqual(_escape_query("O'Brien"), "O\\'Brien")
        self.assertEqual(_escape_query("a\\b"), "a\\\\b")


class TestDriveControllerMocked(unittest.TestCase):
    def setUp(self) -> None:
        self.tokens = _Tokens()
        self.service = Mock()
        self.files_resource = Mock()
        self.service.files.return_value = self.files_resource
        self.session = Mock()
        self.client = DriveStorageClient(
            self.tokens,
            service_factory=lambda token: self.service,
            session_factory=lambda token: self.session,
        )

    def _list_pages(self, *pages):
        requests = []
        for files, token in pages:
            req = Mock()
            req.execute.return_value = {"files": files, "nextPageToken": token}
            requests.append(req)
        self.files_resource.list.side_effect = requests
        return requests

    def test_find_existing_container(self) -> None:
        self._list_pages(([{"id": "FOLDER1"}], None))

        folder_id = self.client.find_or_create_container("Villa O'Hara", "ROOT")

        self.assertEqual(folder_id, "FOLDER1")
        self.files_resource.create.assert_not_called()
        q = self.files_resource.list.call_args.kwargs["q"]
        self.assertIn("name='Villa O\\'Hara'", q)
        self.assertIn(f"mimeType='{FOLDER_MIME}'", q)
        self.assertIn("'ROOT' in parents", q)
        self.assertIn("trashed=false", q)

    def test_create_container_under_root_when_absent(self) -> None:
        self._list_pages(([], None))
        create_req = Mock()
        create_req.execute.return_value = {"id": "NEW"}
        self.files_resource.create.return_value = create_req

        folder_id = self.client.find_or_create_container("Client Delivery Portal")

        self.assertEqual(folder_id, "NEW")
        self.assertIn("'root' in parents", self.files_resource.list.call_args.kwargs["q"])
        body = self.files_resource.create.call_args.kwargs["body"]
        self.assertEqual(body, {"name": "Client Delivery Portal", "mimeType": FOLDER_MIME})

    def test_list_container_paginates_and_excludes_folders(self) -> None:
        self._list_pages(
            ([{"id": "F1", "name": "a.png", "mimeType": "image/png"}], "T2"),
            ([{"id": "F2", "name": "b.pdf", "mimeType": "application/pdf"}], None),
        )

        files = self.client.list_container("P1")

        self.assertEqual([f.remote_id for f in files], ["F1", "F2"])
        calls = self.files_resource.list.call_args_list
        self.assertEqual(len(calls), 2)
        self.assertIsNone(calls[0].kwargs["pageToken"])
        self.assertEqual(calls[1].kwargs["pageToken"], "T2")
        self.assertEqual(calls[0].kwargs["pageSize"], 1000)
        self.assertIn(f"mimeType!='{FOLDER_MIME}'", calls[0].kwargs["q"])
        self.assertTrue(calls[0].kwargs["supportsAllDrives"])
        self.assertTrue(calls[0].kwargs["includeItemsFromAllDrives"])

    def test_every_call_fetches_a_token(self) -> None:
        self._list_pages(([], None))
        self.client.list_container("P1")
        self.assertEqual(self.tokens.calls, 1)

    def test_delete_is_idempotent(self) -> None:
        req = Mock()
        req.execute.side_effect = _http_error(404, "Not Found")
        self.files_resource.delete.return_value = req

        self.client.delete("GONE")

        self.files_resource.delete.assert_called_once()
        self.assertEqual(self.files_resource.delete.call_args.kwargs["fileId"], "GONE")

    def test_maps_http_errors(self) -> None:
        req = Mock()
        req.execute.side_effect = _http_error(
            429,
            "Too Many Requests",
            {"error": {"message": "rate limited", "errors": [{"reason": "rateLimitExceeded"}]}},
        )
        self.files_resource.list.return_value = req

        with self.assertRaises(RateLimitError) as ctx:
            self.client.list_container("P1")

        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.details["operation"], "list_container")
        # No retries.
        self.assertEqual(req.execute.call_count, 1)

    def test_maps_403_quota(self) -> None:
        req = Mock()
        req.execute.side_effect = _http_error(
            403,
            "Forbidden",
            {"error": {"message": "full", "errors": [{"reason": "storageQuotaExceeded"}]}},
        )
        self.files_resource.create.return_value = req

        with self.assertRaises(QuotaExceededError):
            self.client.upload_small("ASSETS", "logo.png", "image/png", b"png")

    def test_maps_transport_errors(self) -> None:
        req = Mock()
        req.execute.side_effect = OSError("connection reset")
        self.files_resource.list.return_value = req

        with self.assertRaises(NetworkError):
            self.client.list_container("P1")

    def test_upload_small_is_multipart(self) -> None:
        req = Mock()
        req.execute.return_value = {"id": "L1", "name": "logo.png", "mimeType": "image/png", "size": "3"}
        self.files_resource.create.return_value = req

        result = self.client.upload_small("ASSETS", "logo.png", "image/png", b"png")

        self.assertEqual(result.remote_id, "L1")
        kwargs = self.files_resource.create.call_args.kwargs
        self.assertEqual(kwargs["body"], {"name": "logo.png", "parents": ["ASSETS"]})
        self.assertFalse(kwargs["media_body"].resumable())

    def test_resumable_session_returns_location(self) -> None:
        resp = Mock(ok=True, status_code=200, headers={"Location": "https://upload.example/s1"})
        self.session.post.return_value = resp

        uri = self.client.create_resumable_session(
            "P1", "design.png", "image/png", origin="https://portal.example"
        )

        self.assertEqual(uri, "https://upload.example/s1")
        kwargs = self.session.post.call_args.kwargs
        self.assertEqual(kwargs["params"]["uploadType"], "resumable")
        self.assertEqual(kwargs["headers"]["X-Upload-Content-Type"], "image/png")
        self.assertEqual(kwargs["headers"]["Origin"], "https://portal.example")
        self.assertEqual(json.loads(kwargs["data"]), {"name": "design.png", "parents": ["P1"]})
        self.session.close.assert_called_once()

    def test_resumable_session_failure(self) -> None:
        resp = Mock(ok=False, status_code=403, reason="Forbidden", text="{}", headers={})
        self.session.post.return_value = resp

        with self.assertRaises(UploadSessionFailedError) as ctx:
            self.client.create_resumable_session("P1", "design.png", "image/png")
        self.assertEqual(ctx.exception.status_code, 403)

    def test_resumable_session_missing_location(self) -> None:
        self.session.post.return_value = Mock(ok=True, status_code=200, headers={})

        with self.assertRaises(UploadSessionFailedError):
            self.client.create_resumable_session("P1", "design.png", "image/png")

    def test_download_streams_and_releases_session(self) -> None:
        resp = Mock(ok=True, headers={"Content-Type": "image/png", "Content-Length": "6"})
        resp.iter_content.return_value = iter([b"abc", b"", b"def"])
        self.session.get.return_value = resp

        with self.client.download("F1") as stream:
            self.assertEqual(stream.content_type, "image/png")
            self.assertEqual(stream.size, 6)
            self.assertEqual(b"".join(stream.iter_chunks()), b"abcdef")

        kwargs = self.session.get.call_args.kwargs
        self.assertTrue(kwargs["stream"])
        self.assertEqual(kwargs["params"]["alt"], "media")
        resp.close.assert_called_once()
        self.session.close.assert_called_once()

    def test_download_404(self) -> None:
        resp = Mock(ok=False, status_code=404, reason="Not Found", text="{}")
        self.session.get.return_value = resp

        with self.assertRaises(RemoteNotFoundError):
            self.client.download("MISSING")
        resp.close.assert_called_once()
        self.session.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
