"""
Binary container layout (all integers little-endian):

    [16B salt] [12B base nonce] [4B metaLen] [metaLen B: metadata ct || tag]
    [(CHUNK_SIZE + 16) B: chunk ct || tag] x N      (last chunk may be shorter)

The metadata block is the compact JSON record {"name", "type", "c"}
encrypted under derive_iv(base_nonce, 0). Data chunks use indices 1..N.
"""

import json
import struct
from dataclasses import dataclass, field
from typing import List

from cryptex.core.settings import (
    SALT_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    HEADER_SIZE,
    CHUNK_SIZE,
)
from cryptex.core.errors import AuthenticationFailure, CorruptContainer

_META_LEN = struct.Struct("<I")

ENCRYPTED_CHUNK_SIZE = CHUNK_SIZE + TAG_SIZE


# ============================================================
# METADATA RECORD
# ============================================================
@dataclass(frozen=True)
class Metadata:
    name: str
    type: str
    compressed: bool

    def to_bytes(self) -> bytes:
        record = {"name": self.name, "type": self.type, "c": self.compressed}
        return json.dumps(record, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Metadata":
        """
        Parse a decrypted metadata record.

        A record that authenticated but does not parse is reported as an
        authentication failure, same as a bad tag.
        """
        try:
            record = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            raise AuthenticationFailure() from None

        if not isinstance(record, dict):
            raise AuthenticationFailure()

        name = record.get("name")
        mime = record.get("type")
        compressed = record.get("c")

        if not isinstance(name, str) or not isinstance(mime, str) or not isinstance(compressed, bool):
            raise AuthenticationFailure()

        return cls(name=name, type=mime, compressed=compressed)


# ============================================================
# CONTAINER
# ============================================================
@dataclass
class Container:
    salt: bytes
    base_nonce: bytes
    metadata: bytes                           # encrypted metadata || tag
    chunks: List[bytes] = field(default_factory=list)

    def to_bytes(self) -> bytes:
        if len(self.salt) != SALT_SIZE:
            raise ValueError(f"salt must be {SALT_SIZE} bytes")
        if len(self.base_nonce) != NONCE_SIZE:
            raise ValueError(f"base nonce must be {NONCE_SIZE} bytes")

        out = bytearray()
        out += self.salt
        out += self.base_nonce
        out += _META_LEN.pack(len(self.metadata))
        out += self.metadata
        for chunk in self.chunks:
            out += chunk
        return bytes(out)

    @classmethod
    def from_bytes(cls, blob: bytes) -> "Container":
        """
        Split a serialized container into its parts.

        Only framing is checked here; tags are verified by the caller.
        Every declared length is compared against the bytes actually present.
        """
        mv = memoryview(blob)
        total = len(mv)

        if total < HEADER_SIZE:
            raise CorruptContainer(
                f"Unexpected end of data: {total} bytes, header needs {HEADER_SIZE}"
            )

        salt = bytes(mv[:SALT_SIZE])
        base_nonce = bytes(mv[SALT_SIZE:SALT_SIZE + NONCE_SIZE])
        (meta_len,) = _META_LEN.unpack_from(mv, SALT_SIZE + NONCE_SIZE)

        offset = HEADER_SIZE
        if meta_len > total - offset:
            raise CorruptContainer(
                f"Declared metadata length {meta_len} exceeds remaining {total - offset} bytes"
            )
        if meta_len < TAG_SIZE:
            raise CorruptContainer(f"Metadata block too short: {meta_len} bytes")

        metadata = bytes(mv[offset:offset + meta_len])
        offset += meta_len

        chunks = []
        while offset < total:
            end = min(offset + ENCRYPTED_CHUNK_SIZE, total)
            if end - offset <= TAG_SIZE:
                raise CorruptContainer(
                    f"Truncated chunk {len(chunks) + 1}: {end - offset} bytes"
                )
            chunks.append(bytes(mv[offset:end]))
            offset = end

        return cls(salt=salt, base_nonce=base_nonce, metadata=metadata, chunks=chunks)


def split_chunks(data: bytes, chunk_size: int = CHUNK_SIZE):
    """Yield successive plaintext chunks; empty input yields nothing."""
    mv = memoryview(data)
    for start in range(0, len(mv), chunk_size):
        yield bytes(mv[start:start + chunk_size])
