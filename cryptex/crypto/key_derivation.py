from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from cryptex.core.settings import AES_KEY_SIZE, SALT_SIZE, PBKDF2_ITERATIONS
from cryptex.core.errors import ProviderError
from cryptex.core.logging_config import key_logger, error_logger


def coerce_password(password) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    if isinstance(password, (bytes, bytearray, memoryview)):
        return bytes(password)
    raise TypeError(f"Unsupported password type: {type(password)!r}")


def derive_key(password, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    """
    Derive the 256-bit AES key for one container.

    PBKDF2-HMAC-SHA256 over the UTF-8 password. The same (password, salt,
    iterations) always gives the same key; a fresh salt is drawn for every
    encryption so keys are never shared between files.
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes, got {len(salt)}")
    if iterations < 1:
        raise ValueError("iterations must be positive")

    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=AES_KEY_SIZE,
            salt=bytes(salt),
            iterations=iterations,
        )
        key = kdf.derive(coerce_password(password))
    except UnsupportedAlgorithm as e:
        error_logger.error(f"PBKDF2-HMAC-SHA256 unavailable: {e}")
        raise ProviderError("PBKDF2-HMAC-SHA256 is not available") from e

    key_logger.info(f"Derived key | iterations={iterations}")
    return key
