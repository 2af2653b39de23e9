import os
import glob
import time
from pathlib import Path

from cryptex.core.settings import (
    SALT_SIZE,
    NONCE_SIZE,
    METADATA_INDEX,
    PBKDF2_ITERATIONS,
    DEFAULT_WORKERS,
    CONTAINER_SUFFIX,
)
from cryptex.core.errors import CryptexError
from cryptex.core.logging_config import encryption_logger, error_logger
from cryptex.crypto.key_derivation import derive_key
from cryptex.crypto.nonce import derive_iv
from cryptex.crypto.chunk_cipher import encrypt_chunk, process_chunks
from cryptex.container.codec import Container, Metadata, split_chunks
from cryptex.container.stego import wrap_in_image
from cryptex.utils.compression import should_compress, compress
from cryptex.utils.file_utils import ensure_dir, guess_mime, container_name


# ============================================================
# CORE – BYTES IN, CONTAINER OUT
# ============================================================
def encrypt_file(
    content: bytes,
    name: str,
    mime_type: str,
    password,
    on_progress=None,
    *,
    carrier: bytes = None,
    workers: int = DEFAULT_WORKERS,
    iterations: int = PBKDF2_ITERATIONS,
) -> bytes:
    """
    Encrypt one file into a serialized container.

    Args:
        content: Original file bytes
        name: Original file name, stored in the encrypted metadata
        mime_type: Original MIME type; also decides compression
        password: Password text (str or bytes)
        on_progress: Optional callable receiving a percentage after each chunk
        carrier: Optional carrier image; when given the container is appended to it
        workers: Threads used for per-chunk AES-GCM
        iterations: PBKDF2 iteration count

    A fresh salt and base nonce are drawn on every call, so no key or
    (key, nonce) pair is ever shared between two containers.
    """
    start = time.perf_counter()
    encryption_logger.info(f"START encrypt | file={name} | size={len(content)}")

    try:
        salt = os.urandom(SALT_SIZE)
        base_nonce = os.urandom(NONCE_SIZE)
        key = derive_key(password, salt, iterations)

        # empty input stays a metadata-only container
        compressed = bool(content) and should_compress(mime_type)
        data = compress(content) if compressed else bytes(content)

        metadata = Metadata(name=name, type=mime_type or "", compressed=compressed)
        encrypted_meta = encrypt_chunk(
            metadata.to_bytes(), key, derive_iv(base_nonce, METADATA_INDEX)
        )

        chunks = process_chunks(
            encrypt_chunk,
            key,
            base_nonce,
            split_chunks(data),
            workers=workers,
            on_progress=on_progress,
        )

        blob = Container(
            salt=salt,
            base_nonce=base_nonce,
            metadata=encrypted_meta,
            chunks=chunks,
        ).to_bytes()

        if carrier is not None:
            blob = wrap_in_image(blob, carrier)

    except Exception as e:
        error_logger.error(f"FAIL encrypt | {name} | {type(e).__name__}: {e}", exc_info=True)
        raise

    elapsed = time.perf_counter() - start
    encryption_logger.info(
        f"SUCCESS | {name} | compressed={compressed} | chunks={len(chunks)} "
        f"| wrapped={carrier is not None} | {len(blob)} bytes | {elapsed:.2f}s"
    )
    return blob


# ============================================================
# FILESYSTEM HELPERS
# ============================================================
def encrypt_path(
    input_path,
    output_dir,
    password,
    carrier_path=None,
    *,
    workers: int = DEFAULT_WORKERS,
    iterations: int = PBKDF2_ITERATIONS,
) -> Path:
    """
    Encrypt a file on disk.

    Writes output_dir/<name>.ctx, or output_dir/<name>.png when a carrier
    image is given. Nothing is written if encryption fails.
    """
    source = Path(input_path)
    if not source.is_file():
        raise FileNotFoundError(f"Input file not found: {source}")

    carrier = Path(carrier_path).read_bytes() if carrier_path else None

    blob = encrypt_file(
        source.read_bytes(),
        source.name,
        guess_mime(source),
        password,
        carrier=carrier,
        workers=workers,
        iterations=iterations,
    )

    ensure_dir(output_dir)
    output_path = Path(output_dir) / container_name(source, wrapped=carrier is not None)
    output_path.write_bytes(blob)
    return output_path


def encrypt_all_in_folder(
    input_folder,
    output_dir,
    password,
    carrier_path=None,
    *,
    workers: int = DEFAULT_WORKERS,
    iterations: int = PBKDF2_ITERATIONS,
):
    """Encrypt all files in a folder tree, one file at a time.

    Subfolders are recreated under output_dir.
    Returns (success_count, failed_count).
    """
    ensure_dir(output_dir)

    files = [
        f for f in glob.glob(os.path.join(input_folder, "**/*"), recursive=True)
        if os.path.isfile(f) and not f.endswith(CONTAINER_SUFFIX)
    ]

    encryption_logger.info(f"Found {len(files)} files to encrypt")

    success_count = 0
    failed_count = 0

    for file_path in sorted(files):
        # mirror the subfolder so equal names in different folders do not collide
        relative_dir = os.path.relpath(os.path.dirname(file_path), input_folder)
        try:
            encrypt_path(
                file_path,
                Path(output_dir) / relative_dir,
                password,
                carrier_path,
                workers=workers,
                iterations=iterations,
            )
            success_count += 1
        except (CryptexError, OSError) as e:
            error_logger.error(f"Failed to encrypt {file_path}: {e}")
            failed_count += 1

    encryption_logger.info(f"Batch completed: {success_count} success, {failed_count} failed")
    return success_count, failed_count
