import time
from dataclasses import dataclass
from pathlib import Path

from cryptex.core.settings import METADATA_INDEX, PBKDF2_ITERATIONS, DEFAULT_WORKERS, CARRIER_SUFFIX
from cryptex.core.errors import CryptexError, AuthenticationFailure
from cryptex.core.logging_config import decryption_logger, error_logger
from cryptex.crypto.key_derivation import derive_key
from cryptex.crypto.nonce import derive_iv
from cryptex.crypto.chunk_cipher import decrypt_chunk, process_chunks
from cryptex.container.codec import Container, Metadata
from cryptex.container.stego import is_wrapped, unwrap_from_image
from cryptex.utils.compression import decompress
from cryptex.utils.file_utils import ensure_dir, safe_name, is_container_file


@dataclass
class DecryptedFile:
    name: str
    type: str
    content: bytes


# ============================================================
# CORE – CONTAINER IN, FILE OUT
# ============================================================
def decrypt_file(
    container: bytes,
    password,
    on_progress=None,
    *,
    workers: int = DEFAULT_WORKERS,
    iterations: int = PBKDF2_ITERATIONS,
) -> DecryptedFile:
    """
    Decrypt a serialized container.

    Raises:
        CorruptContainer: header or framing is invalid
        AuthenticationFailure: wrong password, tampered or truncated data,
            or metadata that does not parse
        DecompressionFailure: the stored compression flag is set but the
            decrypted stream is not valid gzip

    Compression is undone only when the flag stored in the metadata says so.
    No plaintext is returned unless every block authenticates.
    """
    start = time.perf_counter()

    try:
        parsed = Container.from_bytes(container)
        key = derive_key(password, parsed.salt, iterations)

        raw_meta = decrypt_chunk(
            parsed.metadata, key, derive_iv(parsed.base_nonce, METADATA_INDEX)
        )
        metadata = Metadata.from_bytes(raw_meta)

        decryption_logger.info(
            f"START decrypt | file={metadata.name} | chunks={len(parsed.chunks)}"
        )

        parts = process_chunks(
            decrypt_chunk,
            key,
            parsed.base_nonce,
            parsed.chunks,
            workers=workers,
            on_progress=on_progress,
        )
        data = b"".join(parts)

        if metadata.compressed:
            data = decompress(data)

    except AuthenticationFailure:
        error_logger.error("FAIL decrypt | authentication failed")
        raise
    except CryptexError as e:
        error_logger.error(f"FAIL decrypt | {type(e).__name__}: {e}")
        raise

    elapsed = time.perf_counter() - start
    decryption_logger.info(
        f"Decrypted {metadata.name} | {len(data)} bytes | time={elapsed:.2f}s"
    )
    return DecryptedFile(name=metadata.name, type=metadata.type, content=data)


# ============================================================
# FILESYSTEM HELPERS
# ============================================================
def decrypt_path(
    input_path,
    output_dir,
    password,
    *,
    workers: int = DEFAULT_WORKERS,
    iterations: int = PBKDF2_ITERATIONS,
) -> Path:
    """Decrypt a .ctx file or a wrapped carrier image into output_dir.

    The output keeps the stored original name, reduced to a base name.
    """
    enc_file = Path(input_path)
    payload = unwrap_from_image(enc_file.read_bytes())

    result = decrypt_file(payload, password, workers=workers, iterations=iterations)

    ensure_dir(output_dir)
    output_path = Path(output_dir) / safe_name(result.name)
    output_path.write_bytes(result.content)
    return output_path


def decrypt_all_in_folder(
    input_folder,
    output_dir,
    password,
    *,
    workers: int = DEFAULT_WORKERS,
    iterations: int = PBKDF2_ITERATIONS,
):
    """Decrypt every container in a folder tree.

    Subfolders are recreated under output_dir. A container whose stored name
    would overwrite a file written earlier in the same batch counts as failed.
    Returns (success_count, failed_count).
    """
    ensure_dir(output_dir)
    input_root = Path(input_folder)

    success_count = 0
    failed_count = 0
    written = set()

    for enc_file in sorted(input_root.rglob("*")):
        if not enc_file.is_file() or not is_container_file(enc_file):
            continue

        # plain images that share the carrier suffix
        if enc_file.suffix.lower() == CARRIER_SUFFIX and not is_wrapped(enc_file.read_bytes()):
            decryption_logger.info(f"Skipped unwrapped image {enc_file.name}")
            continue

        target_dir = Path(output_dir) / enc_file.parent.relative_to(input_root)

        try:
            payload = unwrap_from_image(enc_file.read_bytes())
            result = decrypt_file(payload, password, workers=workers, iterations=iterations)
        except (CryptexError, OSError) as e:
            error_logger.error(f"Failed decrypting {enc_file.name}: {type(e).__name__}")
            failed_count += 1
            continue

        output_path = target_dir / safe_name(result.name)
        if output_path in written:
            error_logger.error(f"Failed decrypting {enc_file.name}: {output_path.name} already written")
            failed_count += 1
            continue

        try:
            ensure_dir(target_dir)
            output_path.write_bytes(result.content)
        except OSError as e:
            error_logger.error(f"Failed writing {output_path}: {e}")
            failed_count += 1
            continue

        written.add(output_path)
        success_count += 1

    decryption_logger.info(f"Batch completed: {success_count} success, {failed_count} failed")
    return success_count, failed_count
