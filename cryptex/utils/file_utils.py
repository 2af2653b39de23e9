import mimetypes
from pathlib import Path

from cryptex.core.settings import CONTAINER_SUFFIX, CARRIER_SUFFIX, DEFAULT_MIME


def ensure_dir(path):
    Path(path).mkdir(parents=True, exist_ok=True)


def guess_mime(path) -> str:
    mime, _ = mimetypes.guess_type(str(path))
    return mime or DEFAULT_MIME


def safe_name(name: str, fallback: str = "decrypted.bin") -> str:
    """Strip directories so a stored name cannot escape the output folder."""
    cleaned = Path(name.replace("\\", "/")).name
    if cleaned in ("", ".", ".."):
        return fallback
    return cleaned


def container_name(source, wrapped: bool = False) -> str:
    """'a.txt' → 'a.txt.ctx' (or 'a.txt.png' when wrapped in a carrier)"""
    suffix = CARRIER_SUFFIX if wrapped else CONTAINER_SUFFIX
    return f"{Path(source).name}{suffix}"


def is_container_file(path) -> bool:
    return Path(path).suffix.lower() in (CONTAINER_SUFFIX, CARRIER_SUFFIX)
