"""Transfer service for export files and import payloads."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from ssh_kim.constants import Constants
from ssh_kim.crypto_utils import CryptoUtils
from ssh_kim.exceptions import (
    DecryptionError,
    FileOperationError,
    ValidationError,
)
from ssh_kim.file_manager import FileManager
from ssh_kim.models import ExportDocument, RecordCandidate

logger = logging.getLogger(__name__)


class TransferService:
    """Service for writing export files and reading import sources."""

    def __init__(self, file_manager: FileManager):
        """Initialize the transfer service.

        Args:
            file_manager: File manager instance
        """
        self._file_manager = file_manager

    def write_export(
        self,
        document: ExportDocument,
        output_path: str,
        *,
        password: Optional[str] = None
    ) -> Path:
        """Write an export document, optionally sealed with a password.

        Args:
            document: Export snapshot to write
            output_path: Destination file
            password: One-off password for an encrypted export (optional)

        Returns:
            Path written

        Raises:
            ValidationError: If output_path is empty
            FileOperationError: If the write fails
        """
        if not output_path or not str(output_path).strip():
            raise ValidationError("Export file path cannot be empty")

        output_path = Path(output_path)
        content = json.dumps(document.to_dict(), indent=2, ensure_ascii=False)
        if password:
            content = CryptoUtils.encrypt_text(
                content,
                CryptoUtils.derive_key_from_password(password)
            )

        self._file_manager.write_text_atomic(output_path, content)

        logger.info("Keys exported", extra={
            "path": str(output_path),
            "count": document.total_count,
            "encrypted": bool(password),
            "event": "keys_exported"
        })
        return output_path

    def read_import_file(
        self,
        file_path: str,
        *,
        password: Optional[str] = None
    ) -> list[RecordCandidate]:
        """Read import candidates from an export file or a record file.

        Accepts an export document (``{"keys": [...]}``), a single
        record-shaped object, or a bare array of records.

        Args:
            file_path: File to read
            password: Password the file was exported with (optional)

        Returns:
            Candidates in file order

        Raises:
            FileOperationError: If the file is missing or unreadable
            DecryptionError: If the password is wrong
            ValidationError: If the content is not a recognised payload
        """
        content = self._file_manager.read_text(Path(file_path))
        if content is None:
            raise FileOperationError(f"Import file not found: {file_path}")

        if password:
            content = CryptoUtils.decrypt_text(
                content,
                CryptoUtils.derive_key_from_password(password)
            )

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            if password:
                raise DecryptionError(f"Import file could not be parsed (wrong password?): {e}") from e
            raise ValidationError(f"Import file is not valid JSON: {e}") from e

        return self.parse_import_payload(data)

    @staticmethod
    def parse_import_payload(data: Any) -> list[RecordCandidate]:
        """Turn a decoded import payload into candidates.

        Raises:
            ValidationError: If the payload shape is not recognised
        """
        if isinstance(data, dict) and "keys" in data:
            entries = data["keys"]
            if not isinstance(entries, list):
                raise ValidationError("Import payload 'keys' must be a list")
        elif isinstance(data, dict):
            entries = [data]
        elif isinstance(data, list):
            entries = data
        else:
            raise ValidationError("Import payload must be an object or a list")

        candidates = []
        for position, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValidationError(f"Import entry {position + 1} must be an object")
            candidates.append(RecordCandidate.from_dict(entry))
        return candidates

    def read_public_key_directory(self, directory: str) -> list[RecordCandidate]:
        """Read every ``*.pub`` file in a directory as a candidate.

        Unreadable files are skipped.

        Args:
            directory: Directory to read

        Returns:
            Candidates named after their files, sorted by file name

        Raises:
            FileOperationError: If directory does not exist
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileOperationError(f"Directory not found: {directory}")

        candidates = []
        for file_path in sorted(directory.glob("*" + Constants.PUBLIC_KEY_SUFFIX())):
            try:
                content = self._file_manager.read_text(file_path)
            except FileOperationError as e:
                logger.warning(f"Skipped {file_path.name}: {e}")
                continue
            if content is None or not content.strip():
                logger.warning(f"Skipped {file_path.name}: file is empty")
                continue
            candidates.append(RecordCandidate(name=file_path.name, material=content.strip()))

        return candidates
