"""File management utilities with atomic writes."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from ssh_kim.exceptions import FileOperationError


class FileManager:
    """Reads and atomically writes the store, config and export files."""

    def write_text_atomic(
        self,
        file_path: Path,
        content: str
    ) -> None:
        """Write text atomically using a temporary file in the same directory.

        The target is replaced with os.replace, so readers see either the
        old content or the new content, never a partial write.

        Args:
            file_path: Path to the target file
            content: Text to write

        Raises:
            FileOperationError: If write operation fails
        """
        file_path = Path(file_path)
        temp_file = file_path.with_name(file_path.name + ".temp")

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)

            with temp_file.open("w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())

            self._set_secure_permissions(temp_file)
            os.replace(temp_file, file_path)

        except Exception as e:
            if temp_file.exists():
                temp_file.unlink()
            raise FileOperationError(f"Failed to write file {file_path}: {e}") from e

    def read_text(self, file_path: Path) -> Optional[str]:
        """Read text from file.

        Args:
            file_path: Path to the file to read

        Returns:
            File content, or None if file doesn't exist

        Raises:
            FileOperationError: If read operation fails
        """
        file_path = Path(file_path)
        if not file_path.exists():
            return None

        try:
            with file_path.open(encoding="utf-8") as f:
                return f.read()
        except Exception as e:
            raise FileOperationError(f"Failed to read file {file_path}: {e}") from e

    def read_bytes(self, file_path: Path) -> Optional[bytes]:
        """Read raw bytes from file, or None if it doesn't exist.

        Raises:
            FileOperationError: If read operation fails
        """
        file_path = Path(file_path)
        if not file_path.exists():
            return None

        try:
            return file_path.read_bytes()
        except Exception as e:
            raise FileOperationError(f"Failed to read file {file_path}: {e}") from e

    def write_json_atomic(
        self,
        file_path: Path,
        data: Any
    ) -> None:
        """Write JSON data atomically.

        Raises:
            FileOperationError: If write operation fails
        """
        self.write_text_atomic(
            file_path,
            json.dumps(data, indent=2, ensure_ascii=False)
        )

    def read_json(self, file_path: Path) -> Optional[Any]:
        """Read JSON data from file.

        Returns:
            Parsed JSON, or None if file doesn't exist

        Raises:
            FileOperationError: If the file cannot be read or parsed
        """
        content = self.read_text(file_path)
        if content is None:
            return None

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise FileOperationError(f"Failed to parse JSON file {file_path}: {e}") from e

    def cleanup_temp_file(self, file_path: Path) -> None:
        """Remove a temporary file left behind by an interrupted write."""
        temp_file = Path(file_path).with_name(Path(file_path).name + ".temp")
        try:
            if temp_file.exists():
                temp_file.unlink()
        except OSError:
            # Ignore cleanup errors
            pass

    def _set_secure_permissions(self, file_path: Path) -> None:
        """Set secure file permissions (owner read/write only).

        Args:
            file_path: Path to the file to secure
        """
        try:
            os.chmod(file_path, 0o600)
        except OSError:
            # Permission bits are advisory on some platforms
            pass
