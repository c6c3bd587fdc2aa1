"""Data models for the SSH key manager."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple, Optional

from ssh_kim.key_classifier import KeyType


def _parse_datetime(value: Any) -> datetime:
    """Parse a stored timestamp, accepting a trailing "Z" and naive values."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class KeyRecord:
    """One stored SSH key."""

    id: str
    name: str
    tag: Optional[str]
    material: str
    key_type: KeyType
    created: datetime
    last_modified: datetime

    def __post_init__(self) -> None:
        """Validate fields after initialization."""
        if not self.id:
            raise ValueError("id cannot be empty")
        if not self.name:
            raise ValueError("name cannot be empty")
        if not self.material:
            raise ValueError("material cannot be empty")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the stored dictionary shape."""
        return {
            "id": self.id,
            "name": self.name,
            "tag": self.tag,
            "key": self.material,
            "key_type": self.key_type.value,
            "created": self.created.isoformat(),
            "last_modified": self.last_modified.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KeyRecord":
        """Create KeyRecord from the stored dictionary shape."""
        return cls(
            id=data["id"],
            name=data["name"],
            tag=data.get("tag") or None,
            material=data["key"],
            key_type=KeyType.from_value(data.get("key_type")),
            created=_parse_datetime(data["created"]),
            last_modified=_parse_datetime(data["last_modified"]),
        )


@dataclass(frozen=True)
class RecordCandidate:
    """Incoming record offered for import."""

    name: Optional[str]
    material: Optional[str]
    tag: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecordCandidate":
        """Create a candidate from a record-shaped dictionary."""
        return cls(
            name=data.get("name"),
            material=data.get("key"),
            tag=data.get("tag") or None,
        )


@dataclass(frozen=True)
class ExportDocument:
    """Point-in-time snapshot of exported records."""

    exported_at: datetime
    records: tuple[KeyRecord, ...] = field(default_factory=tuple)

    @property
    def total_count(self) -> int:
        """Number of exported records."""
        return len(self.records)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the export file shape."""
        return {
            "exported_at": self.exported_at.isoformat(),
            "total_keys": self.total_count,
            "keys": [record.to_dict() for record in self.records],
        }


class ImportResult(NamedTuple):
    """Outcome of an import merge."""

    imported_count: int
    duplicate_count: int


class DuplicateRule(Enum):
    """Predicate deciding whether an import candidate already exists."""

    NAME_OR_MATERIAL_EQUALS = "name_or_material"
    MATERIAL_EQUALS = "material"
    NAME_EQUALS = "name"

    def matches(self, existing: KeyRecord, candidate: RecordCandidate) -> bool:
        """Check a candidate against one existing record.

        Args:
            existing: Record already in the collection
            candidate: Incoming record

        Returns:
            True if the candidate counts as a duplicate of existing
        """
        # Stored values are trimmed
        same_material = existing.material == (candidate.material or "").strip()
        same_name = existing.name == (candidate.name or "").strip()

        if self is DuplicateRule.MATERIAL_EQUALS:
            return same_material
        if self is DuplicateRule.NAME_EQUALS:
            return same_name
        return same_material or same_name
