"""Configuration management for the SSH key manager."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from ssh_kim.constants import Constants
from ssh_kim.exceptions import ConfigurationError, FileOperationError, ValidationError
from ssh_kim.file_manager import FileManager
from ssh_kim.validation_utils import validate_encryption_password

logger = logging.getLogger(__name__)

ConfigListener = Callable[[str], None]


def default_config_dir() -> str:
    """Compute a platform-appropriate configuration directory."""
    # Environment override for tests/CI or advanced users
    env_dir = os.getenv(Constants.CONFIG_DIR_ENV())
    if env_dir:
        return env_dir

    # Windows: use %APPDATA%\ssh-kim
    appdata = os.getenv("APPDATA")
    if appdata:
        return os.path.join(appdata, Constants.APP_DIR_NAME())

    # POSIX: ~/.config/ssh-kim
    home = os.path.expanduser("~")
    if home:
        return os.path.join(home, ".config", Constants.APP_DIR_NAME())

    return os.path.join(os.getcwd(), "." + Constants.APP_DIR_NAME())


def default_ssh_dir() -> str:
    """Get the default SSH directory for the current user."""
    return os.path.join(os.path.expanduser("~"), ".ssh")


@dataclass
class KeyStoreConfig:
    """Settings consumed by the record store.

    Mutators persist the change when ``config_path`` is set and notify
    registered listeners with the name of the changed setting.
    """

    keys_file_path: Optional[str] = None
    encryption_password: Optional[str] = field(default=None, repr=False)
    default_ssh_dir: str = field(default_factory=default_ssh_dir)
    config_path: Optional[Path] = field(default=None, compare=False)
    # One-off store path for this process; never written by save()
    path_override: Optional[str] = field(default=None, compare=False)
    _listeners: list[ConfigListener] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.keys_file_path is not None and not isinstance(self.keys_file_path, str):
            raise ValueError("keys_file_path must be a string")
        if self.encryption_password is not None and not isinstance(self.encryption_password, str):
            raise ValueError("encryption_password must be a string")

        # Blank values mean "not set"
        if not self.keys_file_path:
            self.keys_file_path = None
        if not self.encryption_password:
            self.encryption_password = None
        if self.config_path is not None:
            self.config_path = Path(self.config_path)

    def get_file_path(self) -> Path:
        """Get the encrypted store path: one-off override, custom path or the default."""
        if self.path_override:
            return Path(self.path_override)
        if self.keys_file_path:
            return Path(self.keys_file_path)
        return Path.cwd() / Constants.DEFAULT_DATA_DIR_NAME() / Constants.STORE_FILENAME()

    def get_stored_password(self) -> Optional[str]:
        """Get the stored encryption password, or None for machine mode."""
        return self.encryption_password

    @property
    def has_custom_path(self) -> bool:
        return self.keys_file_path is not None or self.path_override is not None

    def add_listener(self, listener: ConfigListener) -> None:
        """Register a callback invoked with the changed setting name."""
        self._listeners.append(listener)

    def remove_listener(self, listener: ConfigListener) -> None:
        """Unregister a previously added callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, setting: str) -> None:
        for listener in list(self._listeners):
            listener(setting)

    def set_file_path(self, path: str) -> None:
        """Set a custom store path.

        Raises:
            ValidationError: If path is empty
            FileOperationError: If the configuration cannot be saved
        """
        if path is None or not str(path).strip():
            raise ValidationError("Keys file path cannot be empty")

        self.keys_file_path = str(path)
        self.path_override = None
        self.save()
        logger.info("Custom keys file path set", extra={"event": "config_path_set"})
        self._notify("keys_file_path")

    def set_password(self, password: str) -> None:
        """Store an encryption password, switching to password mode.

        Raises:
            ValidationError: If password is too short
            FileOperationError: If the configuration cannot be saved
        """
        validate_encryption_password(password)
        self.encryption_password = password
        self.save()
        logger.info("Encryption password set", extra={"event": "config_password_set"})
        self._notify("encryption_password")

    def clear_password(self) -> None:
        """Remove the stored password, switching to machine mode."""
        self.encryption_password = None
        self.save()
        logger.info("Encryption password cleared", extra={"event": "config_password_cleared"})
        self._notify("encryption_password")

    def reset(self) -> None:
        """Reset the store path and password to defaults."""
        self.keys_file_path = None
        self.path_override = None
        self.encryption_password = None
        self.save()
        logger.info("Configuration reset", extra={"event": "config_reset"})
        self._notify("keys_file_path")
        self._notify("encryption_password")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted dictionary shape."""
        return {
            "keys_file_path": self.keys_file_path,
            "encryption_password": self.encryption_password,
            "default_ssh_dir": self.default_ssh_dir,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        config_path: Optional[Path] = None
    ) -> "KeyStoreConfig":
        """Create KeyStoreConfig from a persisted dictionary."""
        return cls(
            keys_file_path=data.get("keys_file_path"),
            encryption_password=data.get("encryption_password"),
            default_ssh_dir=data.get("default_ssh_dir") or default_ssh_dir(),
            config_path=config_path,
        )

    @classmethod
    def load(
        cls,
        config_path: Path,
        *,
        file_manager: Optional[FileManager] = None
    ) -> "KeyStoreConfig":
        """Load configuration from a JSON file, defaults if it doesn't exist.

        Raises:
            ConfigurationError: If the file is not a valid configuration
        """
        file_manager = file_manager or FileManager()
        config_path = Path(config_path)

        try:
            data = file_manager.read_json(config_path)
        except FileOperationError as e:
            raise ConfigurationError(f"Failed to read configuration {config_path}: {e}") from e

        if data is None:
            return cls(config_path=config_path)

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration {config_path} must contain a JSON object")

        try:
            return cls.from_dict(data, config_path=config_path)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration {config_path}: {e}") from e

    @classmethod
    def from_directory(cls, config_dir: Optional[str] = None) -> "KeyStoreConfig":
        """Load configuration from ``config.json`` in a directory."""
        config_dir = config_dir or default_config_dir()
        return cls.load(Path(config_dir) / Constants.CONFIG_FILENAME())

    def save(self) -> None:
        """Persist the configuration if it is backed by a file.

        Raises:
            FileOperationError: If the write fails
        """
        if self.config_path is None:
            return
        FileManager().write_json_atomic(self.config_path, self.to_dict())
