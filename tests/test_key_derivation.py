import hashlib
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

os.environ.setdefault("CRYPTEX_HOME", tempfile.mkdtemp(prefix="cryptex-test-"))

from cryptography.exceptions import UnsupportedAlgorithm

from cryptex.core.errors import ProviderError
from cryptex.crypto.key_derivation import derive_key


class DeriveKeyTests(unittest.TestCase):
    ITERATIONS = 1000

    def test_deterministic_256_bit_key(self):
        salt = os.urandom(16)
        first = derive_key("hunter2", salt, self.ITERATIONS)
        second = derive_key("hunter2", salt, self.ITERATIONS)
        self.assertEqual(first, second)
        self.assertEqual(len(first), 32)

    def test_matches_pbkdf2_hmac_sha256(self):
        salt = bytes(range(16))
        expected = hashlib.pbkdf2_hmac("sha256", "pässword".encode("utf-8"), salt, self.ITERATIONS, 32)
        self.assertEqual(derive_key("pässword", salt, self.ITERATIONS), expected)

    def test_default_iteration_count(self):
        salt = bytes(16)
        expected = hashlib.pbkdf2_hmac("sha256", b"pw", salt, 600_000, 32)
        self.assertEqual(derive_key("pw", salt), expected)

    def test_salt_changes_key(self):
        self.assertNotEqual(
            derive_key("pw", bytes(16), self.ITERATIONS),
            derive_key("pw", b"\x01" + bytes(15), self.ITERATIONS),
        )

    def test_str_and_bytes_passwords_agree(self):
        salt = os.urandom(16)
        self.assertEqual(
            derive_key("secret", salt, self.ITERATIONS),
            derive_key(b"secret", salt, self.ITERATIONS),
        )

    def test_rejects_bad_inputs(self):
        with self.assertRaises(ValueError):
            derive_key("pw", bytes(8), self.ITERATIONS)
        with self.assertRaises(ValueError):
            derive_key("pw", bytes(16), 0)
        with self.assertRaises(TypeError):
            derive_key(1234, bytes(16), self.ITERATIONS)

    def test_missing_backend_raises_provider_error(self):
        with patch(
            "cryptex.crypto.key_derivation.PBKDF2HMAC",
            side_effect=UnsupportedAlgorithm("no pbkdf2"),
        ):
            with self.assertRaises(ProviderError):
                derive_key("pw", bytes(16), self.ITERATIONS)


if __name__ == "__main__":
    unittest.main()
