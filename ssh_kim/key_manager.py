"""SSH key manager facade over the record store and its services."""

from pathlib import Path
from typing import Any, Iterable, Optional

from ssh_kim.config import KeyStoreConfig
from ssh_kim.exceptions import FileOperationError, ValidationError
from ssh_kim.file_manager import FileManager
from ssh_kim.models import DuplicateRule, ExportDocument, ImportResult, KeyRecord
from ssh_kim.services import RecordStore, ScanService, ScannedKey, TransferService
from ssh_kim.services.record_store import ALL, UNSET


class SSHKeyManager:
    """Encrypted SSH key manager using the service layer."""

    @classmethod
    def from_config_dir(
        cls,
        config_dir: Optional[str] = None,
        *,
        store_path: Optional[str] = None,
        allow_empty_on_error: bool = False
    ) -> "SSHKeyManager":
        """Create a manager from the configuration stored in a directory.

        Args:
            config_dir: Configuration directory (default: platform config dir)
            store_path: One-off store path override, not persisted (optional)
            allow_empty_on_error: Treat an undecryptable store as empty

        Returns:
            SSHKeyManager instance

        Raises:
            ConfigurationError: If the configuration file is malformed
        """
        config = KeyStoreConfig.from_directory(config_dir)
        if store_path:
            config.path_override = store_path
        return cls(config, allow_empty_on_error=allow_empty_on_error)

    def __init__(
        self,
        config: KeyStoreConfig,
        *,
        duplicate_rule: DuplicateRule = DuplicateRule.NAME_OR_MATERIAL_EQUALS,
        machine_id: Optional[str] = None,
        allow_empty_on_error: bool = False
    ) -> None:
        """Initialize the key manager.

        Args:
            config: Store configuration
            duplicate_rule: Duplicate rule applied to imports
            machine_id: Machine identity override (optional)
            allow_empty_on_error: Treat an undecryptable store as empty.
                Later saves overwrite the unreadable file.
        """
        self._config = config
        self._allow_empty_on_error = allow_empty_on_error
        self._file_manager = FileManager()

        self._store = RecordStore(
            config,
            file_manager=self._file_manager,
            duplicate_rule=duplicate_rule,
            machine_id=machine_id
        )
        self._transfer_service = TransferService(self._file_manager)
        self._scan_service = ScanService(self._file_manager)

    def _load(self) -> list[KeyRecord]:
        return self._store.load(allow_empty_on_error=self._allow_empty_on_error)

    def list_keys(
        self,
        *,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        key_type: Optional[str] = None
    ) -> list[KeyRecord]:
        """List keys, optionally filtered.

        Args:
            search: Substring matched against name, tag and type (optional)
            tag: Exact tag filter (optional)
            key_type: Exact key type filter (optional)

        Returns:
            Matching records
        """
        self._load()
        return self._store.search(text=search, tag=tag, key_type=key_type)

    def get_key(self, key_id: str) -> KeyRecord:
        """Get a key by ID.

        Raises:
            KeyNotFoundError: If key not found
        """
        self._load()
        return self._store.get(key_id)

    def add_key(
        self,
        *,
        name: str,
        content: Optional[str] = None,
        file_path: Optional[str] = None,
        tag: Optional[str] = None
    ) -> KeyRecord:
        """Add a key from literal content or from a key file.

        Raises:
            ValidationError: If neither or both sources are given, or fields are invalid
            FileOperationError: If the key file cannot be read
        """
        if content is not None and file_path is not None:
            raise ValidationError("Specify either key content or a key file, not both")

        if file_path is not None:
            content = self._file_manager.read_text(Path(file_path))
            if content is None:
                raise FileOperationError(f"Key file not found: {file_path}")

        if content is None:
            raise ValidationError("Either key content or a key file is required")

        self._load()
        return self._store.add(name=name, material=content, tag=tag)

    def edit_key(
        self,
        key_id: str,
        *,
        name: Optional[str] = None,
        tag: Any = UNSET,
        content: Optional[str] = None,
        reclassify: bool = False
    ) -> KeyRecord:
        """Edit a key.

        Raises:
            KeyNotFoundError: If key not found
            ValidationError: If a provided field is invalid
        """
        self._load()
        return self._store.edit(
            key_id,
            name=name,
            tag=tag,
            material=content,
            reclassify=reclassify
        )

    def delete_key(self, key_id: str) -> KeyRecord:
        """Delete a key.

        Raises:
            KeyNotFoundError: If key not found
        """
        self._load()
        return self._store.delete(key_id)

    def scan_keys(self, path: Optional[str] = None) -> list[ScannedKey]:
        """Scan common locations, or a single directory, for public keys."""
        locations = [Path(path)] if path else None
        return self._scan_service.scan(locations)

    def import_from_file(
        self,
        file_path: str,
        *,
        password: Optional[str] = None
    ) -> ImportResult:
        """Import keys from an export or record file.

        Args:
            file_path: File to import
            password: Password the file was exported with (optional)
        """
        candidates = self._transfer_service.read_import_file(file_path, password=password)
        self._load()
        return self._store.import_merge(candidates)

    def import_from_directory(self, directory: str) -> ImportResult:
        """Import every ``*.pub`` file in a directory."""
        candidates = self._transfer_service.read_public_key_directory(directory)
        self._load()
        return self._store.import_merge(candidates)

    def import_from_scan(self, path: Optional[str] = None) -> ImportResult:
        """Import every key found by a scan."""
        candidates = [found.to_candidate() for found in self.scan_keys(path)]
        self._load()
        return self._store.import_merge(candidates)

    def export_keys(
        self,
        output_path: str,
        *,
        ids: Optional[Iterable[str]] = None,
        password: Optional[str] = None
    ) -> ExportDocument:
        """Export keys to a file.

        Args:
            output_path: Destination file
            ids: Key IDs to export (default: all)
            password: One-off password for an encrypted export (optional)

        Returns:
            The exported document

        Raises:
            KeyNotFoundError: If any requested ID is absent
        """
        self._load()
        document = self._store.export_subset(ALL if ids is None else ids)
        self._transfer_service.write_export(document, output_path, password=password)
        return document

    def show_config(self) -> dict[str, Any]:
        """Describe the effective configuration without revealing secrets."""
        return {
            "keys_file_path": str(self._config.get_file_path()),
            "custom_path_set": self._config.has_custom_path,
            "default_ssh_dir": self._config.default_ssh_dir,
            "encryption_mode": "password" if self._store.uses_password else "machine",
            "config_file": str(self._config.config_path) if self._config.config_path else None,
        }

    def set_file_path(self, path: str) -> None:
        """Persist a custom store path."""
        self._config.set_file_path(path)

    def set_password(self, password: str, *, migrate: bool = False) -> None:
        """Switch to password mode.

        Args:
            password: New encryption password
            migrate: Re-encrypt the existing store under the new key. Without
                it, a store written under the previous key becomes unreadable.
        """
        if migrate:
            self._store.rekey(password)
        else:
            self._config.set_password(password)

    def clear_password(self, *, migrate: bool = False) -> None:
        """Switch to machine-identity mode."""
        if migrate:
            self._store.rekey(None)
        else:
            self._config.clear_password()

    def reset_config(self) -> None:
        """Reset store path and password to defaults."""
        self._config.reset()

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def config(self) -> KeyStoreConfig:
        return self._config

    @property
    def key_count(self) -> int:
        """Get the number of stored keys."""
        return len(self._load())
