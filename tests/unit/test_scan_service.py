"""Tests for the scan service."""

import unittest
from pathlib import Path

from ssh_kim.file_manager import FileManager
from ssh_kim.key_classifier import KeyType
from ssh_kim.models import RecordCandidate
from ssh_kim.services.scan_service import ScanService
from tests.test_utility import TestDataHelper, TestUtilities


class TestCommonLocations(unittest.TestCase):
    """Test cases for well-known key directories."""

    def test_posix(self):
        locations = ScanService.common_locations(home="/home/user", platform="linux", environ={})

        self.assertEqual(locations, [
            Path("/home/user/.ssh"),
            Path("/home/user/ssh"),
            Path("/home/user/Documents/ssh"),
        ])

    def test_windows_adds_app_directories(self):
        locations = ScanService.common_locations(
            home="C:/Users/user",
            platform="win32",
            environ={"APPDATA": "C:/AppData/Roaming", "LOCALAPPDATA": "C:/AppData/Local"}
        )

        self.assertIn(Path("C:/AppData/Roaming") / "PuTTY", locations)
        self.assertIn(Path("C:/AppData/Local") / "ssh", locations)
        self.assertEqual(len(locations), 5)

    def test_windows_without_environment(self):
        locations = ScanService.common_locations(home="C:/Users/user", platform="win32", environ={})
        self.assertEqual(len(locations), 3)


class TestScan(unittest.TestCase):
    """Test cases for scanning directories."""

    def setUp(self):
        self.temp_dir = TestUtilities.create_temp_dir()
        self.service = ScanService(FileManager())
        self.ssh_dir = Path(self.temp_dir) / ".ssh"
        self.ssh_dir.mkdir()

    def tearDown(self):
        TestUtilities.cleanup_temp_dir(self.temp_dir)

    def test_scan_finds_public_keys(self):
        (self.ssh_dir / "id_rsa.pub").write_text(TestDataHelper.RSA_KEY + "\n", encoding="utf-8")
        (self.ssh_dir / "id_ed25519.pub").write_text(TestDataHelper.ED25519_KEY, encoding="utf-8")
        (self.ssh_dir / "id_rsa").write_text(TestDataHelper.RSA_PRIVATE_KEY, encoding="utf-8")
        (self.ssh_dir / "blank.pub").write_text("", encoding="utf-8")

        found = self.service.scan([self.ssh_dir, Path(self.temp_dir) / "missing"])

        self.assertEqual([k.name for k in found], ["id_ed25519.pub", "id_rsa.pub"])
        self.assertEqual(found[1].key_type, KeyType.RSA)
        self.assertEqual(found[1].material, TestDataHelper.RSA_KEY)
        self.assertEqual(found[1].path, self.ssh_dir / "id_rsa.pub")

    def test_scanned_key_conversions(self):
        (self.ssh_dir / "id_rsa.pub").write_text(TestDataHelper.RSA_KEY, encoding="utf-8")

        (found,) = self.service.scan([self.ssh_dir])

        self.assertEqual(found.to_candidate(), RecordCandidate("id_rsa.pub", TestDataHelper.RSA_KEY))
        summary = found.to_dict()
        self.assertEqual(summary["key_type"], "RSA")
        self.assertEqual(summary["key_preview"], TestDataHelper.RSA_KEY[:50])
        self.assertEqual(summary["path"], str(self.ssh_dir / "id_rsa.pub"))

    def test_scan_nothing(self):
        self.assertEqual(self.service.scan([Path(self.temp_dir) / "missing"]), [])


if __name__ == "__main__":
    unittest.main()
