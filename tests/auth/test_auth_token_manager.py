import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from portalsync.auth import TokenManager
from portalsync.errors import AuthRefreshFailedError, NotConnectedError
from portalsync.models import TokenGrant
from portalsync.store import MetadataStore

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestTokenManager(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MetadataStore()
        self.store.create_all()
        self.oauth = Mock()
        self.manager = TokenManager(self.store, self.oauth, clock=lambda: NOW)

    def _connect(self, expires_at: datetime) -> None:
        self.store.upsert_credential(
            access_token="old-at",
            refresh_token="rt",
            expires_at=expires_at,
            email="owner@example.com",
        )

    def test_not_connected(self) -> None:
        with self.assertRaises(NotConnectedError):
            self.manager.get_valid_token()
        self.assertFalse(self.manager.is_connected())
        self.assertFalse(self.manager.status().connected)

    def test_fresh_token_is_returned_without_refresh(self) -> None:
        self._connect(NOW + timedelta(minutes=30))

        self.assertEqual(self.manager.get_valid_token(), "old-at")
        self.oauth.refresh.assert_not_called()

    def test_token_near_expiry_is_refreshed_and_persisted(self) -> None:
        self._connect(NOW + timedelta(minutes=4))
        new_expiry = NOW + timedelta(hours=1)
        self.oauth.refresh.return_value = TokenGrant(access_token="new-at", expires_at=new_expiry)

        self.assertEqual(self.manager.get_valid_token(), "new-at")
        self.oauth.refresh.assert_called_once_with("rt")

        record = self.store.get_credential()
        self.assertEqual(record.access_token, "new-at")
        self.assertEqual(record.expires_at, new_expiry)
        self.assertEqual(record.refresh_token, "rt")

    def test_failed_refresh_leaves_record_untouched(self) -> None:
        old_expiry = NOW - timedelta(minutes=1)
        self._connect(old_expiry)
        self.oauth.refresh.side_effect = AuthRefreshFailedError("invalid_grant")

        with self.assertRaises(AuthRefreshFailedError):
            self.manager.get_valid_token()

        record = self.store.get_credential()
        self.assertEqual(record.access_token, "old-at")
        self.assertEqual(record.expires_at, old_expiry)

    def test_unexpected_refresh_error_is_wrapped(self) -> None:
        self._connect(NOW)
        self.oauth.refresh.side_effect = OSError("connection reset")

        with self.assertRaises(AuthRefreshFailedError):
            self.manager.get_valid_token()
        self.assertEqual(self.store.get_credential().access_token, "old-at")

    def test_connect_and_disconnect(self) -> None:
        self.oauth.exchange_code.return_value = TokenGrant(
            access_token="at",
            expires_at=NOW + timedelta(hours=1),
            refresh_token="rt",
            email="owner@example.com",
        )

        status = self.manager.connect("code")
        self.assertTrue(status.connected)
        self.assertEqual(status.email, "owner@example.com")
        self.assertEqual(self.manager.get_valid_token(), "at")

        self.manager.disconnect()
        self.assertFalse(self.manager.is_connected())
        # Already disconnected is fine.
        self.manager.disconnect()


if __name__ == "__main__":
    unittest.main()
