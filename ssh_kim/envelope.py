"""Envelope format for encrypted payloads: ``hex(iv):hex(ciphertext)``."""

from dataclasses import dataclass

from ssh_kim.constants import Constants
from ssh_kim.exceptions import DecryptionError


@dataclass(frozen=True)
class Envelope:
    """Initialization vector and ciphertext pair written to disk."""

    init_vector: bytes
    ciphertext: bytes

    def serialize(self) -> str:
        """Serialize to the two-field delimited string."""
        return (
            self.init_vector.hex()
            + Constants.ENVELOPE_SEPARATOR()
            + self.ciphertext.hex()
        )

    @classmethod
    def parse(cls, text: str) -> "Envelope":
        """Parse a serialized envelope.

        Args:
            text: Envelope string as produced by serialize()

        Returns:
            Envelope instance

        Raises:
            DecryptionError: If the envelope is malformed
        """
        if not isinstance(text, str):
            raise DecryptionError("Envelope must be a string")

        fields = text.strip().split(Constants.ENVELOPE_SEPARATOR())
        if len(fields) != 2:
            raise DecryptionError(
                f"Malformed envelope: expected 2 fields, found {len(fields)}"
            )

        iv_hex, ciphertext_hex = fields
        try:
            init_vector = bytes.fromhex(iv_hex)
        except ValueError as e:
            raise DecryptionError(f"Malformed envelope: initialization vector is not hex: {e}") from e

        try:
            ciphertext = bytes.fromhex(ciphertext_hex)
        except ValueError as e:
            raise DecryptionError(f"Malformed envelope: ciphertext is not hex: {e}") from e

        if len(init_vector) != Constants.IV_SIZE_BYTES():
            raise DecryptionError(
                f"Malformed envelope: initialization vector must be {Constants.IV_SIZE_BYTES()} bytes"
            )

        block_size_bytes = Constants.BLOCK_SIZE_BITS() // 8
        if not ciphertext or len(ciphertext) % block_size_bytes != 0:
            raise DecryptionError(
                f"Malformed envelope: ciphertext must be a non-empty multiple of {block_size_bytes} bytes"
            )

        return cls(init_vector=init_vector, ciphertext=ciphertext)
