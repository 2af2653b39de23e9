import os
import sys
from pathlib import Path

# ============================================================
# RUNTIME MODE
# ============================================================

def is_frozen() -> bool:
    """
    True when running as PyInstaller-built executable.
    """
    return getattr(sys, "frozen", False)


# ============================================================
# BASE DIRECTORIES (ENV / BUILT APP / SOURCE CHECKOUT / INSTALLED)
# ============================================================

SOURCE_ROOT = Path(__file__).resolve().parent.parent.parent


def is_source_checkout(root: Path = SOURCE_ROOT) -> bool:
    """
    True when running from the project tree rather than an installed copy.
    """
    return (root / "pyproject.toml").is_file() and (root / "cryptex").is_dir()


def resolve_app_home(environ=None, frozen=None, root: Path = SOURCE_ROOT) -> Path:
    """
    Priority:
        1. $CRYPTEX_HOME
        2. ~/.cryptex for built executables and installed packages
        3. project root of a source checkout
    """
    environ = os.environ if environ is None else environ
    frozen = is_frozen() if frozen is None else frozen

    if environ.get("CRYPTEX_HOME"):
        return Path(environ["CRYPTEX_HOME"]).expanduser()

    if frozen or not is_source_checkout(root):
        return Path.home() / ".cryptex"

    return root


APP_HOME = resolve_app_home()

DATA_DIR = APP_HOME / "data"
LOG_DIR  = APP_HOME / "logs"

CONFIG_FILE = Path(os.environ.get("CRYPTEX_CONFIG", APP_HOME / "config.json"))


# ============================================================
# INIT REQUIRED DIRECTORIES
# ============================================================

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOG_DIR.mkdir(parents=True, exist_ok=True)

(DATA_DIR / "encrypted").mkdir(exist_ok=True)
(DATA_DIR / "decrypted").mkdir(exist_ok=True)

(LOG_DIR / "system").mkdir(exist_ok=True)
(LOG_DIR / "crypto").mkdir(exist_ok=True)
(LOG_DIR / "error").mkdir(exist_ok=True)


# ============================================================
# CONTAINER FORMAT PARAMETERS
# (changing any of these breaks existing containers)
# ============================================================

# AES-GCM
AES_KEY_SIZE = 32        # 256-bit
NONCE_SIZE   = 12        # 96-bit
TAG_SIZE     = 16        # 128-bit
SALT_SIZE    = 16

# header = salt + base nonce + metaLen
META_LEN_SIZE = 4
HEADER_SIZE   = SALT_SIZE + NONCE_SIZE + META_LEN_SIZE

# plaintext bytes per data chunk
CHUNK_SIZE = 1024 * 1024   # 1MB

# PBKDF2-HMAC-SHA256. The count is not stored in the container.
PBKDF2_ITERATIONS        = 600_000
LEGACY_PBKDF2_ITERATIONS = 100_000

# nonce index 0 belongs to the metadata block
METADATA_INDEX = 0


# ============================================================
# CARRIER WRAPPING
# ============================================================

STEGO_MAGIC       = b"CRYPTEXV"
STEGO_LENGTH_SIZE = 4
STEGO_FOOTER_SIZE = STEGO_LENGTH_SIZE + len(STEGO_MAGIC)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


# ============================================================
# FILES / RUNTIME
# ============================================================

CONTAINER_SUFFIX = ".ctx"
CARRIER_SUFFIX   = ".png"
DEFAULT_MIME     = "application/octet-stream"

DEFAULT_WORKERS  = 1


# ============================================================
# SELF-TEST
# ============================================================

if __name__ == "__main__":
    print("Frozen   :", is_frozen())
    print("APP_HOME :", APP_HOME)
    print("DATA_DIR :", DATA_DIR)
    print("LOG_DIR  :", LOG_DIR)
    print("CONFIG   :", CONFIG_FILE)
