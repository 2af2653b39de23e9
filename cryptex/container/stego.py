import struct

from cryptex.core.settings import STEGO_MAGIC, STEGO_FOOTER_SIZE, PNG_SIGNATURE
from cryptex.core.errors import CorruptContainer
from cryptex.core.logging_config import stego_logger

_PAYLOAD_LEN = struct.Struct("<I")


def is_wrapped(blob: bytes) -> bool:
    return len(blob) >= STEGO_FOOTER_SIZE and bytes(blob[-len(STEGO_MAGIC):]) == STEGO_MAGIC


def wrap_in_image(payload: bytes, carrier: bytes) -> bytes:
    """
    Append a container to a carrier image.

    Layout: carrier || payload || uint32-LE len(payload) || b"CRYPTEXV".
    Image viewers stop at the carrier's own end marker and ignore the tail.
    """
    if len(payload) > 0xFFFFFFFF:
        raise ValueError("payload too large for a 32-bit length footer")

    if carrier and bytes(carrier[:len(PNG_SIGNATURE)]) != PNG_SIGNATURE:
        stego_logger.warning("Carrier does not look like a PNG image, wrapping anyway")

    out = bytearray(carrier)
    out += payload
    out += _PAYLOAD_LEN.pack(len(payload))
    out += STEGO_MAGIC

    stego_logger.info(f"Wrapped payload | carrier={len(carrier)}B | payload={len(payload)}B")
    return bytes(out)


def unwrap_from_image(blob: bytes) -> bytes:
    """
    Recover the payload appended by wrap_in_image.

    A blob without the magic footer is returned unchanged so plain
    containers pass straight through.
    """
    total = len(blob)
    if total < STEGO_FOOTER_SIZE:
        raise CorruptContainer("File too small to be a wrapped container")

    if not is_wrapped(blob):
        return bytes(blob)

    (payload_len,) = _PAYLOAD_LEN.unpack_from(blob, total - STEGO_FOOTER_SIZE)
    payload_start = total - STEGO_FOOTER_SIZE - payload_len
    if payload_start < 0:
        raise CorruptContainer("Invalid or corrupted wrapping")

    stego_logger.info(f"Unwrapped payload | payload={payload_len}B | carrier={payload_start}B")
    return bytes(blob[payload_start:payload_start + payload_len])
