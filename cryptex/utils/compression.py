import gzip
import zlib

from cryptex.core.errors import DecompressionFailure

# already-compressed archive/document formats
INCOMPRESSIBLE_TYPES = frozenset({
    "application/zip",
    "application/x-zip-compressed",
    "application/gzip",
    "application/x-gzip",
    "application/vnd.rar",
    "application/x-rar-compressed",
    "application/x-7z-compressed",
    "application/vnd.android.package-archive",
    "application/pdf",
})

MEDIA_PREFIXES = ("image/", "video/", "audio/")

# text based vector formats stay compressible
COMPRESSIBLE_MEDIA = frozenset({
    "image/svg+xml",
})


def should_compress(mime_type) -> bool:
    """
    Decide once, at encryption time, whether content is gzip-compressed.

    Unknown or empty types are compressed. The answer is stored in the
    container metadata and decryption only ever trusts that stored flag.
    """
    if not mime_type:
        return True

    mime = mime_type.split(";", 1)[0].strip().lower()

    if mime in COMPRESSIBLE_MEDIA:
        return True
    if mime in INCOMPRESSIBLE_TYPES:
        return False
    if mime.startswith(MEDIA_PREFIXES):
        return False
    return True


def compress(data: bytes) -> bytes:
    # mtime=0 keeps the output deterministic for identical input
    return gzip.compress(bytes(data), mtime=0)


def decompress(data: bytes) -> bytes:
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise DecompressionFailure(f"Invalid compressed stream: {e}") from e
