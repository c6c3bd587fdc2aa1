"""Cryptographic utilities for the SSH key manager."""

import secrets
import socket
import subprocess
import sys

from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ssh_kim.constants import Constants
from ssh_kim.envelope import Envelope
from ssh_kim.exceptions import DecryptionError
from ssh_kim.exceptions import EncryptionError
from ssh_kim.exceptions import ValidationError


class CryptoUtils:
    """Key derivation and envelope encryption for the record store."""

    @staticmethod
    def _sha256(data: bytes) -> bytes:
        digest = hashes.Hash(hashes.SHA256())
        digest.update(data)
        return digest.finalize()

    @classmethod
    def derive_key_from_password(cls, password: str) -> bytes:
        """Derive a key from a user password.

        The password is concatenated with a password-specific context string
        before hashing, so it can never produce the machine-derived key.

        Args:
            password: Password to derive key from

        Returns:
            Derived 32-byte key

        Raises:
            ValidationError: If password is not a non-empty string
        """
        if not password or not isinstance(password, str):
            raise ValidationError("Password must be a non-empty string")

        material = password + Constants.PASSWORD_KEY_CONTEXT()
        return cls._sha256(material.encode("utf-8"))

    @classmethod
    def derive_key_from_machine_identity(cls, machine_id: Optional[str] = None) -> bytes:
        """Derive a key from the machine identity.

        Args:
            machine_id: Machine identifier (default: get_machine_id())

        Returns:
            Derived 32-byte key

        Raises:
            ValidationError: If machine_id is given but empty
        """
        if machine_id is None:
            machine_id = cls.get_machine_id()

        if not machine_id or not isinstance(machine_id, str):
            raise ValidationError("Machine identity must be a non-empty string")

        material = machine_id + Constants.MACHINE_KEY_CONTEXT()
        return cls._sha256(material.encode("utf-8"))

    @staticmethod
    def get_machine_id() -> str:
        """Get a stable identifier for this machine.

        Returns:
            Host name, the macOS computer name, or a fixed fallback
        """
        hostname = socket.gethostname()
        if hostname and hostname != "localhost":
            return hostname

        if sys.platform == "darwin":
            try:
                result = subprocess.run(
                    ["scutil", "--get", "ComputerName"],
                    capture_output=True,
                    text=True,
                    check=True,
                )
                computer_name = result.stdout.strip()
                if computer_name:
                    return computer_name
            except (OSError, subprocess.CalledProcessError):
                pass

        return Constants.UNKNOWN_MACHINE_ID()

    @classmethod
    def generate_iv(cls) -> bytes:
        """Generate a random initialization vector.

        Returns:
            Random 16-byte IV
        """
        return secrets.token_bytes(Constants.IV_SIZE_BYTES())

    @classmethod
    def _validate_key(cls, key: bytes) -> None:
        if not isinstance(key, bytes) or len(key) != Constants.KEY_SIZE_BYTES():
            raise ValidationError(f"Key must be exactly {Constants.KEY_SIZE_BYTES()} bytes")

    @classmethod
    def encrypt(cls, plaintext: bytes, key: bytes) -> Envelope:
        """Encrypt data with AES-256-CBC under a fresh IV.

        The envelope carries no integrity tag.

        Args:
            plaintext: Data to encrypt
            key: Encryption key (32 bytes)

        Returns:
            Envelope holding the IV and ciphertext

        Raises:
            EncryptionError: If encryption fails
            ValidationError: If key size is invalid
        """
        cls._validate_key(key)

        try:
            init_vector = cls.generate_iv()
            padder = padding.PKCS7(Constants.BLOCK_SIZE_BITS()).padder()
            padded = padder.update(plaintext) + padder.finalize()
            encryptor = Cipher(algorithms.AES(key), modes.CBC(init_vector)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except Exception as e:
            raise EncryptionError(f"Encryption failed: {e}") from e

        return Envelope(init_vector=init_vector, ciphertext=ciphertext)

    @classmethod
    def decrypt(cls, envelope: Envelope, key: bytes) -> bytes:
        """Decrypt an envelope.

        A wrong key usually fails the padding check. When it does not, the
        returned bytes are garbage and callers must treat a later parse
        failure as a wrong-key condition.

        Args:
            envelope: Envelope to decrypt
            key: Decryption key (32 bytes)

        Returns:
            Decrypted data as bytes

        Raises:
            DecryptionError: If decryption fails
            ValidationError: If key size is invalid
        """
        cls._validate_key(key)

        try:
            decryptor = Cipher(
                algorithms.AES(key),
                modes.CBC(envelope.init_vector),
            ).decryptor()
            padded = decryptor.update(envelope.ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(Constants.BLOCK_SIZE_BITS()).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except Exception as e:
            raise DecryptionError(f"Decryption failed (wrong key or corrupt data): {e}") from e

    @classmethod
    def encrypt_text(cls, text: str, key: bytes) -> str:
        """Encrypt a UTF-8 string into a serialized envelope."""
        return cls.encrypt(text.encode("utf-8"), key).serialize()

    @classmethod
    def decrypt_text(cls, envelope_text: str, key: bytes) -> str:
        """Decrypt a serialized envelope into a UTF-8 string.

        Raises:
            DecryptionError: If the envelope is malformed, the key is wrong,
                or the plaintext is not valid UTF-8
        """
        plaintext = cls.decrypt(Envelope.parse(envelope_text), key)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionError(f"Decrypted data is not valid text (wrong key?): {e}") from e
