import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

os.environ.setdefault("CRYPTEX_HOME", tempfile.mkdtemp(prefix="cryptex-test-"))

from cryptex.core import config_manager, settings
from cryptex.core.errors import AuthenticationFailure
from cryptex.crypto.encryption import encrypt_path, encrypt_all_in_folder
from cryptex.crypto.decryption import decrypt_path, decrypt_all_in_folder

FAST = 1000
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class PathHelperTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)
        self.source = self.tmp_path / "report.txt"
        self.source.write_text("quarterly numbers\n" * 50, encoding="utf-8")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_encrypt_then_decrypt_path(self):
        out = encrypt_path(self.source, self.tmp_path / "enc", "pw", iterations=FAST)
        self.assertEqual(out.name, "report.txt.ctx")

        restored = decrypt_path(out, self.tmp_path / "dec", "pw", iterations=FAST)
        self.assertEqual(restored, self.tmp_path / "dec" / "report.txt")
        self.assertEqual(restored.read_bytes(), self.source.read_bytes())

    def test_carrier_output_is_png(self):
        carrier = self.tmp_path / "cat.png"
        carrier.write_bytes(PNG)

        out = encrypt_path(self.source, self.tmp_path / "enc", "pw", carrier, iterations=FAST)
        self.assertEqual(out.name, "report.txt.png")
        self.assertTrue(out.read_bytes().startswith(PNG))

        restored = decrypt_path(out, self.tmp_path / "dec", "pw", iterations=FAST)
        self.assertEqual(restored.read_bytes(), self.source.read_bytes())

    def test_failed_decrypt_writes_nothing(self):
        out = encrypt_path(self.source, self.tmp_path / "enc", "pw", iterations=FAST)
        with self.assertRaises(AuthenticationFailure):
            decrypt_path(out, self.tmp_path / "dec", "wrong", iterations=FAST)
        self.assertFalse((self.tmp_path / "dec" / "report.txt").exists())

    def test_missing_input(self):
        with self.assertRaises(FileNotFoundError):
            encrypt_path(self.tmp_path / "nope.txt", self.tmp_path, "pw", iterations=FAST)


class FolderBatchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)
        self.original = self.tmp_path / "original"
        self.original.mkdir()
        self.files = {
            "a.txt": b"alpha" * 100,
            "b.bin": os.urandom(500),
            "c.json": b'{"k": 1}',
        }
        for name, data in self.files.items():
            (self.original / name).write_bytes(data)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_round_trip_folder(self):
        enc_dir = self.tmp_path / "encrypted"
        dec_dir = self.tmp_path / "decrypted"

        self.assertEqual(encrypt_all_in_folder(self.original, enc_dir, "pw", iterations=FAST), (3, 0))
        (enc_dir / "holiday.png").write_bytes(PNG)

        self.assertEqual(decrypt_all_in_folder(enc_dir, dec_dir, "pw", iterations=FAST), (3, 0))
        for name, data in self.files.items():
            self.assertEqual((dec_dir / name).read_bytes(), data)

    def test_failures_do_not_stop_batch(self):
        enc_dir = self.tmp_path / "encrypted"
        encrypt_all_in_folder(self.original, enc_dir, "pw", iterations=FAST)
        (enc_dir / "broken.ctx").write_bytes(b"\x00" * 10)

        ok, failed = decrypt_all_in_folder(enc_dir, self.tmp_path / "dec", "pw", iterations=FAST)
        self.assertEqual((ok, failed), (3, 1))

    def test_same_name_in_subfolders_kept_apart(self):
        (self.original / "sub").mkdir()
        (self.original / "a.txt").write_bytes(b"top")
        (self.original / "sub" / "a.txt").write_bytes(b"nested")
        enc_dir = self.tmp_path / "encrypted"
        dec_dir = self.tmp_path / "decrypted"

        self.assertEqual(encrypt_all_in_folder(self.original, enc_dir, "pw", iterations=FAST), (4, 0))
        self.assertTrue((enc_dir / "a.txt.ctx").exists())
        self.assertTrue((enc_dir / "sub" / "a.txt.ctx").exists())

        self.assertEqual(decrypt_all_in_folder(enc_dir, dec_dir, "pw", iterations=FAST), (4, 0))
        self.assertEqual((dec_dir / "a.txt").read_bytes(), b"top")
        self.assertEqual((dec_dir / "sub" / "a.txt").read_bytes(), b"nested")

    def test_duplicate_stored_name_is_not_overwritten(self):
        enc_dir = self.tmp_path / "encrypted"
        dec_dir = self.tmp_path / "decrypted"
        source = self.original / "a.txt"
        first = encrypt_path(source, enc_dir, "pw", iterations=FAST)
        first.rename(enc_dir / "first.ctx")
        source.write_bytes(b"second version")
        encrypt_path(source, enc_dir, "pw", iterations=FAST).rename(enc_dir / "second.ctx")

        self.assertEqual(decrypt_all_in_folder(enc_dir, dec_dir, "pw", iterations=FAST), (1, 1))
        self.assertEqual((dec_dir / "a.txt").read_bytes(), self.files["a.txt"])

    def test_wrong_password_fails_every_file(self):
        enc_dir = self.tmp_path / "encrypted"
        encrypt_all_in_folder(self.original, enc_dir, "pw", iterations=FAST)
        self.assertEqual(decrypt_all_in_folder(enc_dir, self.tmp_path / "dec", "nope", iterations=FAST), (0, 3))


class AppHomeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_env_override_wins(self):
        home = settings.resolve_app_home({"CRYPTEX_HOME": str(self.tmp_path)}, frozen=True, root=self.tmp_path)
        self.assertEqual(home, self.tmp_path)

    def test_installed_copy_uses_user_home(self):
        site_packages = self.tmp_path / "site-packages"
        (site_packages / "cryptex").mkdir(parents=True)
        home = settings.resolve_app_home({}, frozen=False, root=site_packages)
        self.assertEqual(home, Path.home() / ".cryptex")

    def test_source_checkout_uses_project_root(self):
        (self.tmp_path / "cryptex").mkdir()
        (self.tmp_path / "pyproject.toml").write_text("[project]\n", encoding="utf-8")
        self.assertEqual(settings.resolve_app_home({}, frozen=False, root=self.tmp_path), self.tmp_path)
        self.assertEqual(settings.resolve_app_home({}, frozen=True, root=self.tmp_path), Path.home() / ".cryptex")


class ConfigManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.config_file = Path(self.tmpdir.name) / "config.json"
        self.patcher = patch.object(config_manager, "CONFIG_FILE", self.config_file)
        self.patcher.start()

    def tearDown(self) -> None:
        self.patcher.stop()
        self.tmpdir.cleanup()

    def test_creates_defaults(self):
        self.assertEqual(config_manager.load_config(), config_manager.DEFAULT_CONFIG)
        self.assertTrue(self.config_file.exists())

    def test_update_persists_and_fills_missing(self):
        self.config_file.write_text(json.dumps({"workers": 4}), encoding="utf-8")
        config = config_manager.load_config()
        self.assertEqual(config["workers"], 4)
        self.assertEqual(config["carrier_image"], "")

        config_manager.update_config({"output_dir": "/tmp/out"})
        stored = json.loads(self.config_file.read_text(encoding="utf-8"))
        self.assertEqual(stored["output_dir"], "/tmp/out")
        self.assertEqual(stored["workers"], 4)


if __name__ == "__main__":
    unittest.main()
