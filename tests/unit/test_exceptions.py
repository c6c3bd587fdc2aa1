"""Tests for the exceptions module."""

import pickle
import unittest

from ssh_kim.exceptions import (
    ConfigurationError,
    DecryptionError,
    EncryptionError,
    FileOperationError,
    KeyManagerError,
    KeyNotFoundError,
    ValidationError,
)


class TestExceptions(unittest.TestCase):
    """Test cases for the exceptions module."""

    def test_key_manager_error(self):
        """Test KeyManagerError exception."""
        error = KeyManagerError("Test error message")

        self.assertIsInstance(error, Exception)
        self.assertEqual(str(error), "Test error message")

    def test_subclasses(self):
        """Test every error derives from KeyManagerError."""
        for error_type in [
            KeyNotFoundError,
            ValidationError,
            FileOperationError,
            EncryptionError,
            DecryptionError,
            ConfigurationError,
        ]:
            with self.subTest(error_type=error_type.__name__):
                error = error_type("failed")
                self.assertIsInstance(error, KeyManagerError)
                self.assertEqual(str(error), "failed")

    def test_not_found_is_not_validation(self):
        """Test the CLI can tell missing keys from bad input."""
        self.assertNotIsInstance(KeyNotFoundError("x"), ValidationError)

    def test_exception_chaining(self):
        """Test low-level errors are kept as the cause."""
        try:
            try:
                raise ValueError("bad hex")
            except ValueError as e:
                raise DecryptionError("Malformed envelope") from e
        except DecryptionError as error:
            self.assertIsInstance(error.__cause__, ValueError)

    def test_pickle(self):
        error = pickle.loads(pickle.dumps(KeyNotFoundError("Key with ID 'x' not found")))
        self.assertEqual(str(error), "Key with ID 'x' not found")


if __name__ == "__main__":
    unittest.main()
