"""Key type detection from raw key text."""

from enum import Enum


class KeyType(str, Enum):
    """Algorithm families recognised in stored key material."""

    RSA = "RSA"
    DSA = "DSA"
    ECDSA = "ECDSA"
    ED25519 = "Ed25519"
    UNKNOWN = "Unknown"

    @classmethod
    def from_value(cls, value: object) -> "KeyType":
        """Parse a stored key type name, case-insensitively.

        Args:
            value: Key type name such as "rsa" or "Ed25519"

        Returns:
            Matching KeyType, or KeyType.UNKNOWN if nothing matches
        """
        if isinstance(value, KeyType):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN

        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return cls.UNKNOWN


# Checked in order, first match wins
_KEY_TYPE_MARKERS: tuple[tuple[str, KeyType], ...] = (
    ("ssh-rsa", KeyType.RSA),
    ("ssh-dss", KeyType.DSA),
    ("ecdsa-sha2", KeyType.ECDSA),
    ("ssh-ed25519", KeyType.ED25519),
)


def classify(material: str) -> KeyType:
    """Classify raw key text into a known algorithm family.

    The material is never validated as a real SSH key; only the algorithm
    marker is looked for.

    Args:
        material: Raw key text

    Returns:
        Detected KeyType, KeyType.UNKNOWN when no marker is present
    """
    if not isinstance(material, str):
        return KeyType.UNKNOWN

    for marker, key_type in _KEY_TYPE_MARKERS:
        if marker in material:
            return key_type
    return KeyType.UNKNOWN
