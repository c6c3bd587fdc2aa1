"""SSH Key Manager - encrypted storage for SSH key records.

This package keeps SSH keys in a single AES-256-CBC encrypted file, keyed
either by a stored password or by the machine's identity, with import,
export and discovery of public key files.
"""

from importlib.metadata import PackageNotFoundError, version

from ssh_kim.config import KeyStoreConfig
from ssh_kim.exceptions import (
    ConfigurationError,
    DecryptionError,
    EncryptionError,
    FileOperationError,
    KeyManagerError,
    KeyNotFoundError,
    ValidationError,
)
from ssh_kim.key_classifier import KeyType, classify
from ssh_kim.key_manager import SSHKeyManager
from ssh_kim.models import DuplicateRule, ExportDocument, ImportResult, KeyRecord, RecordCandidate
from ssh_kim.services.record_store import RecordStore

try:
    __version__ = version("ssh-kim")
except PackageNotFoundError:
    # Running from a source checkout that was never installed
    __version__ = "unknown"

__all__ = [
    "ConfigurationError",
    "DecryptionError",
    "DuplicateRule",
    "EncryptionError",
    "ExportDocument",
    "FileOperationError",
    "ImportResult",
    "KeyManagerError",
    "KeyNotFoundError",
    "KeyRecord",
    "KeyStoreConfig",
    "KeyType",
    "RecordCandidate",
    "RecordStore",
    "SSHKeyManager",
    "ValidationError",
    "classify",
]
