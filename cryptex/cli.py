import os
import sys
import argparse
import getpass
from pathlib import Path

from cryptex.core.settings import DATA_DIR, PBKDF2_ITERATIONS, LEGACY_PBKDF2_ITERATIONS
from cryptex.core.errors import CryptexError
from cryptex.core.config_manager import load_config
from cryptex.core.logging_config import system_logger
from cryptex.crypto.encryption import encrypt_path, encrypt_all_in_folder
from cryptex.crypto.decryption import decrypt_path, decrypt_all_in_folder
from cryptex.container.stego import wrap_in_image, unwrap_from_image


def _read_password(confirm: bool) -> str:
    password = os.environ.get("CRYPTEX_PASSWORD")
    if password:
        return password

    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Confirm password: ") != password:
        raise SystemExit("Passwords do not match.")
    if not password:
        raise SystemExit("Password must not be empty.")
    return password


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value!r}")
    return number


def _config_workers(config: dict) -> int:
    value = config.get("workers") or 1
    try:
        return _positive_int(str(value))
    except argparse.ArgumentTypeError as e:
        raise ValueError(f"config.json: workers {e}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cryptex",
        description="Password-based file encryption with optional image camouflage",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encrypt", help="Encrypt a file (or a folder with --all)")
    enc.add_argument("input", help="File, or folder with --all")
    enc.add_argument("-o", "--output", help="Output directory")
    enc.add_argument("--carrier", help="PNG image to hide the container in")
    enc.add_argument("--all", action="store_true", help="Encrypt every file in the folder")
    enc.add_argument("--workers", type=_positive_int, help="Threads for chunk encryption")

    dec = sub.add_parser("decrypt", help="Decrypt a container (or a folder with --all)")
    dec.add_argument("input", help="Container / carrier image, or folder with --all")
    dec.add_argument("-o", "--output", help="Output directory")
    dec.add_argument("--all", action="store_true", help="Decrypt every container in the folder")
    dec.add_argument("--workers", type=_positive_int, help="Threads for chunk decryption")
    dec.add_argument(
        "--iterations",
        type=_positive_int,
        default=PBKDF2_ITERATIONS,
        help=(
            f"PBKDF2 iterations the container was made with "
            f"(default {PBKDF2_ITERATIONS}, legacy containers {LEGACY_PBKDF2_ITERATIONS})"
        ),
    )

    wrap = sub.add_parser("wrap", help="Append an existing container to a carrier image")
    wrap.add_argument("container")
    wrap.add_argument("carrier")
    wrap.add_argument("-o", "--output", required=True)

    unwrap = sub.add_parser("unwrap", help="Extract a container from a carrier image")
    unwrap.add_argument("image")
    unwrap.add_argument("-o", "--output", required=True)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
        if args.command == "wrap":
            blob = wrap_in_image(Path(args.container).read_bytes(), Path(args.carrier).read_bytes())
            Path(args.output).write_bytes(blob)
            print(f"✔ Wrapped → {args.output}")
            return 0

        if args.command == "unwrap":
            Path(args.output).write_bytes(unwrap_from_image(Path(args.image).read_bytes()))
            print(f"✔ Unwrapped → {args.output}")
            return 0

        workers = args.workers or _config_workers(config)
        default_out = config.get("output_dir") or ""

        if args.command == "encrypt":
            output = Path(args.output or default_out or DATA_DIR / "encrypted")
            carrier = args.carrier or config.get("carrier_image") or None
            password = _read_password(confirm=True)

            if args.all:
                ok, failed = encrypt_all_in_folder(args.input, output, password, carrier, workers=workers)
                print(f"✔ Encrypted {ok} files, {failed} failed")
                return 0 if failed == 0 else 1

            out_path = encrypt_path(args.input, output, password, carrier, workers=workers)
            print(f"✔ Encrypted → {out_path}")
            return 0

        output = Path(args.output or default_out or DATA_DIR / "decrypted")
        password = _read_password(confirm=False)

        if args.all:
            ok, failed = decrypt_all_in_folder(
                args.input, output, password, workers=workers, iterations=args.iterations
            )
            print(f"✔ Decrypted {ok} files, {failed} failed")
            return 0 if failed == 0 else 1

        out_path = decrypt_path(args.input, output, password, workers=workers, iterations=args.iterations)
        print(f"✔ Decrypted → {out_path}")
        return 0

    except (CryptexError, OSError, ValueError) as e:
        system_logger.error(f"{args.command} failed: {type(e).__name__}: {e}")
        print(f"✖ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
