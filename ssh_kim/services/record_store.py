"""Encrypted record store: cached collection of SSH key records on disk."""

import dataclasses
import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from ssh_kim.config import KeyStoreConfig
from ssh_kim.crypto_utils import CryptoUtils
from ssh_kim.exceptions import (
    DecryptionError,
    FileOperationError,
    KeyNotFoundError,
    ValidationError,
)
from ssh_kim.file_manager import FileManager
from ssh_kim.key_classifier import KeyType, classify
from ssh_kim.models import (
    DuplicateRule,
    ExportDocument,
    ImportResult,
    KeyRecord,
    RecordCandidate,
)
from ssh_kim.validation_utils import (
    normalize_tag,
    validate_key_material,
    validate_key_name,
)

logger = logging.getLogger(__name__)

ALL = "all"


class _Unset:
    """Marker for "argument not given" where None is a meaningful value."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_timestamp(previous: datetime) -> datetime:
    """Current time, bumped past ``previous`` on coarse clocks."""
    now = _utcnow()
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


class RecordStore:
    """Owns the key collection, its encrypted file and a read-through cache.

    Not safe for concurrent use. Two processes sharing a store file race and
    the last save wins.
    """

    def __init__(
        self,
        config: KeyStoreConfig,
        *,
        file_manager: Optional[FileManager] = None,
        duplicate_rule: DuplicateRule = DuplicateRule.NAME_OR_MATERIAL_EQUALS,
        machine_id: Optional[str] = None
    ) -> None:
        """Initialize the record store.

        Args:
            config: Configuration supplying the store path and password
            file_manager: File manager instance (optional)
            duplicate_rule: Predicate used by import_merge
            machine_id: Machine identity override (default: host name)
        """
        self._config = config
        self._file_manager = file_manager or FileManager()
        self._duplicate_rule = duplicate_rule
        self._machine_id = machine_id
        self._cache: Optional[list[KeyRecord]] = None
        self._active_key = self._derive_active_key()
        self._config.add_listener(self._on_config_changed)

    @property
    def config(self) -> KeyStoreConfig:
        return self._config

    @property
    def file_path(self) -> Path:
        """Path of the encrypted store file."""
        return self._config.get_file_path()

    @property
    def uses_password(self) -> bool:
        """True when the active key is password-derived."""
        return self._config.get_stored_password() is not None

    @property
    def active_key(self) -> bytes:
        return self._active_key

    @property
    def duplicate_rule(self) -> DuplicateRule:
        return self._duplicate_rule

    @property
    def is_cached(self) -> bool:
        return self._cache is not None

    def _derive_active_key(self) -> bytes:
        password = self._config.get_stored_password()
        if password:
            return CryptoUtils.derive_key_from_password(password)
        return CryptoUtils.derive_key_from_machine_identity(self._machine_id)

    def _on_config_changed(self, setting: str) -> None:
        if setting == "encryption_password":
            self.refresh_key()
        elif setting == "keys_file_path":
            self.invalidate_cache()

    def refresh_key(self) -> None:
        """Recompute the active key from the current configuration."""
        self._active_key = self._derive_active_key()
        logger.info("Encryption key refreshed", extra={
            "mode": "password" if self.uses_password else "machine",
            "event": "encryption_key_refreshed"
        })

    def invalidate_cache(self) -> None:
        """Drop the cached collection so the next load reads the file."""
        self._cache = None

    def load(self, *, allow_empty_on_error: bool = False) -> list[KeyRecord]:
        """Load the collection, from cache when present.

        Args:
            allow_empty_on_error: Treat an undecryptable store as empty.
                The next save then overwrites the unreadable file, so
                callers must only pass True after explicit confirmation.

        Returns:
            Copy of the cached collection in insertion order

        Raises:
            DecryptionError: If the file is malformed or sealed with another key
            FileOperationError: If the file cannot be read
        """
        if self._cache is not None:
            return list(self._cache)

        file_path = self.file_path
        self._file_manager.cleanup_temp_file(file_path)
        raw = self._file_manager.read_bytes(file_path)
        if raw is None:
            self._cache = []
            return []

        try:
            records = self._deserialize(raw)
        except DecryptionError as e:
            if not allow_empty_on_error:
                logger.error("Failed to decrypt key store", extra={
                    "path": str(file_path),
                    "event": "store_decrypt_failed"
                })
                raise
            logger.warning(f"Discarding unreadable key store contents: {e}", extra={
                "path": str(file_path),
                "event": "store_discarded"
            })
            self._cache = []
            return []

        self._cache = records
        logger.debug("Key store loaded", extra={
            "path": str(file_path),
            "count": len(records),
            "event": "store_loaded"
        })
        return list(records)

    def _deserialize(self, raw: bytes) -> list[KeyRecord]:
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError(f"Malformed envelope: not text: {e}") from e

        plaintext = CryptoUtils.decrypt_text(content, self._active_key)

        # Garbage from a wrong key that slipped past the padding check
        # surfaces here, so parse failures are reported as decryption errors
        try:
            data = json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise DecryptionError(f"Key store could not be parsed (wrong key or password?): {e}") from e

        if not isinstance(data, list):
            raise DecryptionError("Key store could not be parsed (wrong key or password?): expected a list")

        try:
            return [KeyRecord.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecryptionError(f"Key store could not be parsed (wrong key or password?): {e}") from e

    def save(self, records: Sequence[KeyRecord]) -> None:
        """Encrypt and atomically write the full collection, then cache it.

        The cache is replaced only after the write succeeds.

        Args:
            records: Complete desired collection

        Raises:
            EncryptionError: If encryption fails
            FileOperationError: If the write fails
        """
        records = list(records)
        payload = json.dumps(
            [record.to_dict() for record in records],
            indent=2,
            ensure_ascii=False
        )
        envelope_text = CryptoUtils.encrypt_text(payload, self._active_key)
        self._file_manager.write_text_atomic(self.file_path, envelope_text)
        self._cache = records

        logger.debug("Key store saved", extra={
            "path": str(self.file_path),
            "count": len(records),
            "event": "store_saved"
        })

    @staticmethod
    def _index_of(records: Sequence[KeyRecord], key_id: str) -> int:
        for index, record in enumerate(records):
            if record.id == key_id:
                return index
        raise KeyNotFoundError(f"Key with ID '{key_id}' not found")

    @staticmethod
    def _generate_id(existing_ids: set[str]) -> str:
        key_id = str(uuid.uuid4())
        while key_id in existing_ids:
            key_id = str(uuid.uuid4())
        return key_id

    def get(self, key_id: str) -> KeyRecord:
        """Get a record by ID.

        Raises:
            KeyNotFoundError: If no record has this ID
        """
        records = self.load()
        return records[self._index_of(records, key_id)]

    def add(
        self,
        *,
        name: str,
        material: str,
        tag: Optional[str] = None
    ) -> KeyRecord:
        """Add a new record.

        Args:
            name: Display name
            material: Raw key text
            tag: Optional tag

        Returns:
            The stored record

        Raises:
            ValidationError: If name or material is missing
        """
        validate_key_name(name)
        validate_key_material(material)
        tag = normalize_tag(tag)

        records = self.load()
        now = _utcnow()
        material = material.strip()
        record = KeyRecord(
            id=self._generate_id({r.id for r in records}),
            name=name.strip(),
            tag=tag,
            material=material,
            key_type=classify(material),
            created=now,
            last_modified=now,
        )

        self.save(records + [record])

        logger.info("Key added", extra={
            "key_id": record.id,
            "key_type": record.key_type.value,
            "event": "key_added"
        })
        return record

    def edit(
        self,
        key_id: str,
        *,
        name: Optional[str] = None,
        tag: Union[Optional[str], _Unset] = UNSET,
        material: Optional[str] = None,
        reclassify: bool = False
    ) -> KeyRecord:
        """Overwrite fields of an existing record.

        The stored key type is kept even when material changes unless
        ``reclassify`` is True.

        Args:
            key_id: ID of the record to edit
            name: New name (optional)
            tag: New tag; None or blank clears it (optional)
            material: New key text (optional)
            reclassify: Recompute key type from the resulting material

        Returns:
            The updated record

        Raises:
            KeyNotFoundError: If no record has this ID
            ValidationError: If a provided field is invalid
        """
        records = self.load()
        index = self._index_of(records, key_id)
        current = records[index]

        changes = {}
        if name is not None:
            validate_key_name(name)
            changes["name"] = name.strip()
        if not isinstance(tag, _Unset):
            changes["tag"] = normalize_tag(tag)
        if material is not None:
            validate_key_material(material)
            changes["material"] = material.strip()
        if reclassify:
            changes["key_type"] = classify(changes.get("material", current.material))

        updated = dataclasses.replace(
            current,
            last_modified=_next_timestamp(current.last_modified),
            **changes
        )
        records[index] = updated
        self.save(records)

        logger.info("Key updated", extra={
            "key_id": key_id,
            "fields": sorted(changes),
            "event": "key_updated"
        })
        return updated

    def delete(self, key_id: str) -> KeyRecord:
        """Delete a record.

        Returns:
            The removed record

        Raises:
            KeyNotFoundError: If no record has this ID
        """
        records = self.load()
        removed = records.pop(self._index_of(records, key_id))
        self.save(records)

        logger.info("Key deleted", extra={
            "key_id": key_id,
            "event": "key_deleted"
        })
        return removed

    def import_merge(self, candidates: Iterable[RecordCandidate]) -> ImportResult:
        """Append non-duplicate candidates and commit them with one save.

        Each candidate is checked against the loaded collection plus the
        candidates already accepted in this batch.

        Args:
            candidates: Incoming records

        Returns:
            (imported_count, duplicate_count)

        Raises:
            ValidationError: If any candidate lacks a name or key text;
                nothing is imported in that case
        """
        candidates = list(candidates)
        for position, candidate in enumerate(candidates):
            try:
                validate_key_name(candidate.name)
                validate_key_material(candidate.material)
                normalize_tag(candidate.tag)
            except ValidationError as e:
                raise ValidationError(f"Import entry {position + 1} is invalid: {e}") from e

        records = self.load()
        existing_ids = {r.id for r in records}
        imported_count = 0
        duplicate_count = 0

        for candidate in candidates:
            if any(self._duplicate_rule.matches(existing, candidate) for existing in records):
                duplicate_count += 1
                continue

            now = _utcnow()
            material = candidate.material.strip()
            record = KeyRecord(
                id=self._generate_id(existing_ids),
                name=candidate.name.strip(),
                tag=normalize_tag(candidate.tag),
                material=material,
                key_type=classify(material),
                created=now,
                last_modified=now,
            )
            existing_ids.add(record.id)
            records.append(record)
            imported_count += 1

        if imported_count:
            self.save(records)

        logger.info("Keys imported", extra={
            "imported": imported_count,
            "duplicates": duplicate_count,
            "rule": self._duplicate_rule.value,
            "event": "keys_imported"
        })
        return ImportResult(imported_count, duplicate_count)

    def export_subset(self, ids: Union[Iterable[str], str] = ALL) -> ExportDocument:
        """Snapshot records into an export document.

        Args:
            ids: Record IDs to export, or "all"

        Returns:
            Immutable ExportDocument unaffected by later store changes

        Raises:
            KeyNotFoundError: If any requested ID is absent
        """
        records = self.load()

        if isinstance(ids, str) and ids == ALL:
            selected = records
        else:
            wanted = list(dict.fromkeys([ids] if isinstance(ids, str) else ids))
            by_id = {record.id: record for record in records}
            missing = [key_id for key_id in wanted if key_id not in by_id]
            if missing:
                raise KeyNotFoundError(f"Keys not found: {', '.join(missing)}")
            selected = [record for record in records if record.id in set(wanted)]

        return ExportDocument(exported_at=_utcnow(), records=tuple(selected))

    def search(
        self,
        *,
        text: Optional[str] = None,
        tag: Optional[str] = None,
        key_type: Optional[str] = None
    ) -> list[KeyRecord]:
        """Filter records, case-insensitively.

        Args:
            text: Substring matched against name, tag and key type
            tag: Exact tag
            key_type: Exact key type name

        Returns:
            Matching records in insertion order
        """
        results = self.load()

        if text:
            term = text.lower()
            results = [
                r for r in results
                if term in r.name.lower()
                or (r.tag is not None and term in r.tag.lower())
                or term in r.key_type.value.lower()
            ]

        if tag:
            results = [r for r in results if r.tag is not None and r.tag.lower() == tag.lower()]

        if key_type:
            wanted_type = KeyType.from_value(key_type)
            if wanted_type is KeyType.UNKNOWN and key_type.strip().lower() != KeyType.UNKNOWN.value.lower():
                raise ValidationError(f"Unknown key type: {key_type}")
            results = [r for r in results if r.key_type is wanted_type]

        return results

    def rekey(self, new_password: Optional[str]) -> None:
        """Re-encrypt the store under a new password or the machine key.

        Args:
            new_password: New password, or None for machine identity

        Raises:
            DecryptionError: If the store cannot be read with the current key
            ValidationError: If the new password is too short
        """
        records = self.load()
        previous_password = self._config.get_stored_password()

        if new_password is None:
            self._config.clear_password()
        else:
            self._config.set_password(new_password)

        try:
            self.save(records)
        except Exception:
            # Restore directly; the old password may predate the length policy
            self._config.encryption_password = previous_password
            self.refresh_key()
            try:
                self._config.save()
            except FileOperationError as restore_error:
                logger.error(f"Failed to restore previous configuration: {restore_error}", extra={
                    "event": "store_rekey_restore_failed"
                })
            raise

        logger.info("Key store re-encrypted", extra={
            "count": len(records),
            "mode": "password" if self.uses_password else "machine",
            "event": "store_rekeyed"
        })
