import unittest
from unittest.mock import Mock

from portalsync.broker import FILE_UPLOADED, UploadBroker
from portalsync.config import PortalSettings
from portalsync.errors import EntityNotFoundError, InvalidArgumentError, ScopeNotSyncableError
from portalsync.ledger import VersionLedger
from portalsync.models import RemoteFile
from portalsync.store import MetadataStore


class _Storage:
    def __init__(self) -> None:
        self.folders: dict[tuple, str] = {}
        self.sessions: list[tuple] = []
        self.small_uploads: list[tuple] = []
        self.listing: list[RemoteFile] = []

    def find_or_create_container(self, name, parent_id=None):
        key = (parent_id, name)
        if key not in self.folders:
            self.folders[key] = f"folder-{len(self.folders) + 1}"
        return self.folders[key]

    def create_resumable_session(self, container_id, name, content_type, *, origin=None):
        self.sessions.append((container_id, name, content_type, origin))
        return f"https://upload.example/{container_id}/{name}"

    def upload_small(self, container_id, name, content_type, data):
        self.small_uploads.append((container_id, name, content_type, data))
        return RemoteFile(remote_id="asset-1", name=name, mime_type=content_type, size=len(data))

    def list_container(self, container_id):
        return list(self.listing)


class TestUploadBroker(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MetadataStore()
        self.store.create_all()
        self.storage = _Storage()
        self.ledger = VersionLedger(self.store)
        self.activities = Mock()
        self.settings = PortalSettings(small_upload_limit=8)
        self.broker = UploadBroker(
            self.store, self.storage, self.ledger, self.activities, self.settings
        )
        self.project = self.store.add_project("Villa", remote_folder_id="PF")

    def test_handle_for_project_uses_its_folder(self) -> None:
        handle = self.broker.request_upload_handle(
            self.project.id, "design.png", "image/png", origin="https://portal.example"
        )

        self.assertEqual(handle.container_id, "PF")
        self.assertEqual(handle.session_uri, "https://upload.example/PF/design.png")
        self.assertEqual(handle.scope_id, self.project.id)
        self.assertEqual(self.storage.sessions, [("PF", "design.png", "image/png", "https://portal.example")])

    def test_handle_for_general_pool(self) -> None:
        handle = self.broker.request_upload_handle(None, "notes.txt", None)

        root = self.storage.folders[(None, "Client Delivery Portal")]
        self.assertEqual(handle.container_id, self.storage.folders[(root, "_General Files")])
        self.assertEqual(handle.content_type, "application/octet-stream")

    def test_handle_rejections(self) -> None:
        bare = self.store.add_project("Bare")

        with self.assertRaises(ScopeNotSyncableError):
            self.broker.request_upload_handle(bare.id, "a.png", "image/png")
        with self.assertRaises(EntityNotFoundError):
            self.broker.request_upload_handle("missing", "a.png", "image/png")
        with self.assertRaises(InvalidArgumentError):
            self.broker.request_upload_handle(self.project.id, "", "image/png")
        self.assertEqual(self.storage.sessions, [])

    def test_confirm_registers_and_records_activity(self) -> None:
        entity = self.broker.confirm_upload(
            self.project.id,
            "R1",
            "design.png",
            "image/png",
            1234,
            "u1",
            category="RENDER",
            display_name="Front view",
        )

        self.assertEqual(entity.version, 1)
        self.assertEqual(entity.category, "RENDER")
        self.assertEqual(entity.display_name, "Front view")
        self.assertEqual(entity.uploaded_by_id, "u1")
        self.activities.record.assert_called_once_with(
            FILE_UPLOADED,
            'Uploaded file "design.png" to project "Villa"',
            "u1",
        )

    def test_repeat_confirm_is_a_no_op(self) -> None:
        first = self.broker.confirm_upload(self.project.id, "R1", "a.png", "image/png", 1, "u1")
        second = self.broker.confirm_upload(self.project.id, "R1", "a.png", "image/png", 1, "u1")

        self.assertEqual(first.id, second.id)
        self.assertEqual(self.store.count_files(self.project.id), 1)
        self.assertEqual(self.activities.record.call_count, 1)

    def test_confirm_recovers_missing_remote_id(self) -> None:
        self.broker.confirm_upload(self.project.id, "R1", "a.png", "image/png", 1, "u1")
        self.storage.listing = [
            RemoteFile(remote_id="R1", name="a.png", mime_type="image/png", size=1),
            RemoteFile(remote_id="R2", name="a.png", mime_type="image/png", size=77),
        ]

        entity = self.broker.confirm_upload(self.project.id, None, "a.png", "image/png", None, "u1")

        self.assertEqual(entity.remote_id, "R2")
        self.assertEqual(entity.size, 77)
        self.assertEqual(entity.version, 2)

    def test_confirm_without_remote_id_and_no_match(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            self.broker.confirm_upload(self.project.id, None, "a.png", "image/png", 1, "u1")

    def test_provision_scope_is_idempotent(self) -> None:
        fresh = self.store.add_project("Fresh")

        first = self.broker.provision_scope(fresh.id)
        second = self.broker.provision_scope(fresh.id)

        root = self.storage.folders[(None, "Client Delivery Portal")]
        self.assertEqual(first.remote_folder_id, self.storage.folders[(root, "Fresh")])
        self.assertEqual(
            first.assets_folder_id,
            self.storage.folders[(first.remote_folder_id, "_assets")],
        )
        self.assertEqual(first.remote_folder_id, second.remote_folder_id)
        self.assertEqual(len(self.storage.folders), 3)

    def test_upload_asset_provisions_and_enforces_limit(self) -> None:
        result = self.broker.upload_asset(self.project.id, "logo.png", "image/png", b"1234")

        self.assertEqual(result.remote_id, "asset-1")
        assets = self.store.get_project(self.project.id).assets_folder_id
        self.assertEqual(self.storage.small_uploads[0][0], assets)

        with self.assertRaises(InvalidArgumentError):
            self.broker.upload_asset(self.project.id, "big.png", "image/png", b"123456789")


if __name__ == "__main__":
    unittest.main()
