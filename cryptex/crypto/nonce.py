from cryptex.core.settings import NONCE_SIZE
from cryptex.core.errors import NonceExhausted


def derive_iv(base_nonce: bytes, index: int) -> bytes:
    """
    Return ``base_nonce + index`` as a 96-bit big-endian counter.

    The addition is done byte by byte from the last byte leftwards, each
    byte wrapping modulo 256. Index 0 is the metadata block, data chunks use
    1..N. An index that would carry out of the leftmost byte raises
    NonceExhausted instead of wrapping around to an already used nonce.
    """
    if len(base_nonce) != NONCE_SIZE:
        raise ValueError(f"base nonce must be {NONCE_SIZE} bytes, got {len(base_nonce)}")
    if index < 0:
        raise ValueError("nonce index must be non-negative")

    iv = bytearray(base_nonce)
    carry = index
    pos = NONCE_SIZE - 1

    while carry and pos >= 0:
        total = iv[pos] + (carry & 0xFF)
        iv[pos] = total & 0xFF
        carry = (carry >> 8) + (total >> 8)
        pos -= 1

    if carry:
        raise NonceExhausted(f"nonce index {index} exhausts the 96-bit counter")

    return bytes(iv)
