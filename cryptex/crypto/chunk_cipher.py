from concurrent.futures import ThreadPoolExecutor

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from cryptex.core.settings import AES_KEY_SIZE, NONCE_SIZE
from cryptex.core.errors import AuthenticationFailure, ProviderError
from cryptex.crypto.nonce import derive_iv


def _aesgcm(key: bytes) -> AESGCM:
    if len(key) != AES_KEY_SIZE:
        raise ValueError(f"key must be {AES_KEY_SIZE} bytes")
    try:
        return AESGCM(key)
    except UnsupportedAlgorithm as e:
        raise ProviderError("AES-256-GCM is not available") from e


def encrypt_chunk(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    """Return ciphertext || 16-byte tag."""
    if len(iv) != NONCE_SIZE:
        raise ValueError(f"iv must be {NONCE_SIZE} bytes")
    return _aesgcm(key).encrypt(iv, bytes(plaintext), None)


def decrypt_chunk(blob: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Verify and decrypt ciphertext || tag.

    Nothing is returned unless the tag verifies; any mismatch becomes
    AuthenticationFailure.
    """
    if len(iv) != NONCE_SIZE:
        raise ValueError(f"iv must be {NONCE_SIZE} bytes")
    try:
        return _aesgcm(key).decrypt(iv, bytes(blob), None)
    except InvalidTag:
        raise AuthenticationFailure() from None


def process_chunks(fn, key: bytes, base_nonce: bytes, blocks, workers: int = 1, on_progress=None) -> list:
    """
    Apply encrypt_chunk/decrypt_chunk to data blocks 1..N.

    Nonces are assigned sequentially up front; the AEAD work may then run on
    a thread pool. Results always come back in index order, and on_progress
    receives the completed percentage after each block.
    """
    jobs = [(block, derive_iv(base_nonce, index)) for index, block in enumerate(blocks, start=1)]
    total = len(jobs)
    results = []

    def _report():
        if on_progress is not None:
            on_progress(len(results) * 100 // total if total else 100)

    if workers <= 1 or total <= 1:
        for block, iv in jobs:
            results.append(fn(block, key, iv))
            _report()
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for out in pool.map(lambda job: fn(job[0], key, job[1]), jobs):
                results.append(out)
                _report()

    if total == 0:
        _report()

    return results
