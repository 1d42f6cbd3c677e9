import unittest
from datetime import timedelta

from portalsync.config import PortalSettings


class TestPortalSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = PortalSettings()
        self.assertEqual(settings.root_folder_name, "Client Delivery Portal")
        self.assertEqual(settings.general_folder_name, "_General Files")
        self.assertEqual(settings.assets_folder_name, "_assets")
        self.assertEqual(settings.sync_debounce, timedelta(seconds=30))
        self.assertEqual(settings.refresh_margin, timedelta(minutes=5))

    def test_validation(self) -> None:
        with self.assertRaises(ValueError):
            PortalSettings(root_folder_name=" ")
        with self.assertRaises(ValueError):
            PortalSettings(sync_debounce=timedelta(seconds=-1))
        with self.assertRaises(ValueError):
            PortalSettings(export_max_files=0)

    def test_from_env_overrides(self) -> None:
        settings = PortalSettings.from_env(
            {
                "PORTALSYNC_ROOT_FOLDER": "Deliveries",
                "PORTALSYNC_SYNC_DEBOUNCE_SECONDS": "5",
                "PORTALSYNC_EXPORT_MAX_FILES": "10",
            }
        )
        self.assertEqual(settings.root_folder_name, "Deliveries")
        self.assertEqual(settings.sync_debounce, timedelta(seconds=5))
        self.assertEqual(settings.export_max_files, 10)
        self.assertEqual(settings.general_folder_name, "_General Files")

    def test_from_env_rejects_non_numeric(self) -> None:
        with self.assertRaises(ValueError):
            PortalSettings.from_env({"PORTALSYNC_SYNC_DEBOUNCE_SECONDS": "soon"})


if __name__ == "__main__":
    unittest.main()
