"""Custom exceptions for the SSH key manager."""


class KeyManagerError(Exception):
    """Base exception for all key manager errors."""


class KeyNotFoundError(KeyManagerError):
    """Raised when a requested key record is not found."""


class ValidationError(KeyManagerError):
    """Raised when data validation fails."""


class FileOperationError(KeyManagerError):
    """Raised when file operations fail."""


class EncryptionError(KeyManagerError):
    """Raised when encryption fails."""


class DecryptionError(KeyManagerError):
    """Raised when an envelope is malformed or was sealed with another key."""


class ConfigurationError(KeyManagerError):
    """Raised when the configuration file cannot be parsed."""
