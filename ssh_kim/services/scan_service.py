"""Scan service for discovering public keys in well-known directories."""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional

from ssh_kim.constants import Constants
from ssh_kim.exceptions import FileOperationError
from ssh_kim.file_manager import FileManager
from ssh_kim.key_classifier import KeyType, classify
from ssh_kim.models import RecordCandidate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScannedKey:
    """Public key file found on disk."""

    name: str
    path: Path
    material: str
    key_type: KeyType

    def to_candidate(self) -> RecordCandidate:
        return RecordCandidate(name=self.name, material=self.material)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": str(self.path),
            "key_type": self.key_type.value,
            "key_preview": self.material[:Constants.KEY_PREVIEW_LENGTH()],
        }


class ScanService:
    """Service for scanning directories for ``*.pub`` files."""

    def __init__(self, file_manager: FileManager):
        self._file_manager = file_manager

    @staticmethod
    def common_locations(
        *,
        home: Optional[str] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> list[Path]:
        """List directories where SSH keys usually live.

        Args:
            home: Home directory (default: current user's)
            platform: Platform name (default: sys.platform)
            environ: Environment mapping (default: os.environ)

        Returns:
            Candidate directories, existing or not
        """
        home_dir = Path(home or os.path.expanduser("~"))
        platform = platform or sys.platform
        environ = os.environ if environ is None else environ

        locations = [
            home_dir / ".ssh",
            home_dir / "ssh",
            home_dir / "Documents" / "ssh",
        ]

        if platform == "win32":
            if environ.get("APPDATA"):
                locations.append(Path(environ["APPDATA"]) / "PuTTY")
            if environ.get("LOCALAPPDATA"):
                locations.append(Path(environ["LOCALAPPDATA"]) / "ssh")

        return locations

    def scan(self, locations: Optional[Iterable[Path]] = None) -> list[ScannedKey]:
        """Collect readable ``*.pub`` files from the given directories.

        Missing directories and unreadable files are skipped.

        Args:
            locations: Directories to scan (default: common_locations())

        Returns:
            Found keys, per location in file name order
        """
        if locations is None:
            locations = self.common_locations()

        found = []
        for location in locations:
            location = Path(location)
            if not location.is_dir():
                continue

            for file_path in sorted(location.glob("*" + Constants.PUBLIC_KEY_SUFFIX())):
                try:
                    content = self._file_manager.read_text(file_path)
                except FileOperationError:
                    logger.debug(f"Skipping unreadable key file {file_path}")
                    continue
                if content is None or not content.strip():
                    continue

                material = content.strip()
                found.append(ScannedKey(
                    name=file_path.name,
                    path=file_path,
                    material=material,
                    key_type=classify(material),
                ))

        logger.debug("Scan finished", extra={
            "count": len(found),
            "event": "keys_scanned"
        })
        return found
