"""Exception hierarchy for cryptex containers."""


class CryptexError(Exception):
    """Base class for every failure raised by the container pipeline."""


class ProviderError(CryptexError):
    """The cryptographic backend cannot provide a required primitive."""


class AuthenticationFailure(CryptexError):
    """An AEAD tag did not verify.

    The message is fixed so a wrong password cannot be told apart from
    tampered or truncated data.
    """

    MESSAGE = "Wrong password or corrupted file"

    def __init__(self, message: str = MESSAGE):
        super().__init__(message)


class CorruptContainer(CryptexError):
    """The container or carrier framing is structurally invalid."""


class DecompressionFailure(CryptexError):
    """Decryption succeeded but the compressed stream is invalid."""


class NonceExhausted(CryptexError):
    """A nonce index would wrap the 96-bit counter space."""
