import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from hap.credentials import ClientConfig, new_client_config, new_key_file, split_addr
from hap.errors import AuthError
from hap.models import SSHCredentials


class TestSplitAddr(unittest.TestCase):
    def test_host_and_port(self):
        self.assertEqual(split_addr("example.com:2222"), ("example.com", 2222))

    def test_default_port(self):
        self.assertEqual(split_addr("example.com"), ("example.com", 22))

    def test_ipv6(self):
        self.assertEqual(split_addr("[::1]:22"), ("::1", 22))


class TestClientConfig(unittest.TestCase):
    def test_identity_preferred(self):
        with TemporaryDirectory() as tmp:
            key = Path(tmp) / "id_ed25519"
            key.write_text("KEY", encoding="utf-8")
            creds = SSHCredentials(addr="h:22", username="u", identity=str(key), password="pw")
            config = new_client_config(creds)

        self.assertEqual(config.key_filename, str(key.resolve()))
        self.assertIsNone(config.password)
        self.assertEqual(
            config.connect_kwargs(),
            {"hostname": "h", "port": 22, "username": "u", "key_filename": str(key.resolve())},
        )

    def test_password(self):
        config = new_client_config(SSHCredentials(addr="h:2200", username="u", password="pw"))
        self.assertEqual(config, ClientConfig(hostname="h", port=2200, username="u", password="pw"))
        self.assertEqual(config.connect_kwargs()["password"], "pw")
        self.assertNotIn("pw", repr(config))

    def test_nothing_to_authenticate_with(self):
        with self.assertRaises(AuthError):
            new_client_config(SSHCredentials(addr="h:22", username="u"))

    def test_missing_identity_file(self):
        with self.assertRaises(AuthError):
            new_client_config(SSHCredentials(addr="h:22", username="u", identity="/no/such/key"))


class TestKeyFile(unittest.TestCase):
    def test_expands_home(self):
        with TemporaryDirectory() as tmp:
            (Path(tmp) / ".ssh").mkdir()
            key = Path(tmp) / ".ssh" / "id_rsa"
            key.write_text("KEY", encoding="utf-8")
            with patch.dict("os.environ", {"HOME": tmp}):
                self.assertEqual(new_key_file("~/.ssh/id_rsa"), str(key.resolve()))

    def test_empty_identity(self):
        with self.assertRaises(AuthError):
            new_key_file("")


if __name__ == "__main__":
    unittest.main()
