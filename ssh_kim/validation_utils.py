"""Validation utilities for the key manager package."""

from typing import Optional

from ssh_kim.constants import Constants
from ssh_kim.exceptions import ValidationError


def validate_encryption_password(password: str) -> None:
    """Validate an encryption password before it is stored.

    Args:
        password: Password to validate

    Raises:
        ValidationError: If password is missing or too short
    """
    if password is None:
        raise ValidationError("Encryption password cannot be None")

    if not isinstance(password, str):
        raise ValidationError("Encryption password must be a string")

    if len(password) < Constants.MIN_PASSWORD_LENGTH():
        raise ValidationError(
            f"Encryption password must be at least {Constants.MIN_PASSWORD_LENGTH()} characters long"
        )


def validate_key_name(name: str) -> None:
    """Validate key name requirements.

    Args:
        name: Key name to validate

    Raises:
        ValidationError: If name doesn't meet requirements
    """
    if name is None:
        raise ValidationError("Key name cannot be None")

    if not isinstance(name, str):
        raise ValidationError("Key name must be a string")

    if name == "":
        raise ValidationError("Key name cannot be empty")

    if name.strip() == "":
        raise ValidationError("Key name cannot contain only whitespace")

    if len(name) > Constants.MAX_NAME_LENGTH():
        raise ValidationError(
            f"Key name is too long (maximum {Constants.MAX_NAME_LENGTH()} characters)"
        )

    if '\x00' in name:
        raise ValidationError("Key name cannot contain null bytes")


def validate_key_material(material: str) -> None:
    """Validate raw key text.

    Only presence is checked; the text is never parsed as an SSH key.

    Args:
        material: Raw key text

    Raises:
        ValidationError: If material is missing or blank
    """
    if material is None:
        raise ValidationError("Key content cannot be None")

    if not isinstance(material, str):
        raise ValidationError("Key content must be a string")

    if material.strip() == "":
        raise ValidationError("Key content is required")


def normalize_tag(tag: Optional[str]) -> Optional[str]:
    """Trim a tag, mapping blank values to None."""
    if tag is None:
        return None
    if not isinstance(tag, str):
        raise ValidationError("Tag must be a string")
    tag = tag.strip()
    return tag or None
