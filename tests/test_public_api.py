import unittest

import portalsync


class TestPublicApi(unittest.TestCase):
    def test_top_level_exports_exist(self) -> None:
        self.assertTrue(hasattr(portalsync, "PortalSyncManager"))
        self.assertTrue(hasattr(portalsync, "PortalSettings"))
        self.assertTrue(hasattr(portalsync, "AuthInfo"))
        self.assertTrue(hasattr(portalsync, "TokenManager"))
        self.assertTrue(hasattr(portalsync, "DriveStorageClient"))

        self.assertTrue(hasattr(portalsync, "Action"))
        self.assertTrue(hasattr(portalsync, "ReconcilePlan"))
        self.assertTrue(hasattr(portalsync, "FileEntity"))
        self.assertTrue(hasattr(portalsync, "SyncResult"))

        self.assertTrue(hasattr(portalsync, "PortalSyncError"))
        self.assertTrue(hasattr(portalsync, "ScopeNotSyncableError"))

    def test___all___is_defined(self) -> None:
        self.assertTrue(hasattr(portalsync, "__all__"))
        self.assertIn("PortalSyncManager", portalsync.__all__)
        self.assertIn("PortalSyncError", portalsync.__all__)
        for name in portalsync.__all__:
            self.assertTrue(hasattr(portalsync, name), name)


if __name__ == "__main__":
    unittest.main()
