import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from typer.testing import CliRunner

from hap import cli
from hap.errors import AlreadyHappenedError, ExecutionError

HAPFILE = """
builds:
  app:
    cmds: ["make"]
hosts:
  web1:
    addr: 10.0.0.1
    username: deploy
    password: secret
    build: [app]
  web2:
    addr: 10.0.0.2:2222
    username: deploy
    password: secret
"""


class TestCli(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.tmp = TemporaryDirectory()
        self.hapfile = Path(self.tmp.name) / "Hapfile.yaml"
        self.hapfile.write_text(HAPFILE, encoding="utf-8")

    def tearDown(self):
        self.tmp.cleanup()

    def invoke(self, *args):
        return self.runner.invoke(cli.app, ["--hapfile", str(self.hapfile), *args])

    def test_hosts(self):
        result = self.invoke("hosts")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("web1\t10.0.0.1", result.output)
        self.assertIn("web2\t10.0.0.2:2222", result.output)

    def test_build_one_host(self):
        with patch.object(cli.Remote, "build", autospec=True) as build:
            result = self.invoke("build", "web1")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual([c.args[0].host.name for c in build.call_args_list], ["web1"])

    def test_deploy_all_hosts_in_order(self):
        calls = []
        with (
            patch.object(cli.Remote, "initialize", autospec=True, side_effect=lambda r: calls.append(("init", r.host.name))),
            patch.object(cli.Remote, "push", autospec=True, side_effect=lambda r: calls.append(("push", r.host.name))),
            patch.object(cli.Remote, "build", autospec=True, side_effect=lambda r: calls.append(("build", r.host.name))),
        ):
            result = self.invoke("deploy", "--all")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            calls,
            [
                ("init", "web1"), ("push", "web1"), ("build", "web1"),
                ("init", "web2"), ("push", "web2"), ("build", "web2"),
            ],
        )

    def test_already_happened_is_informational(self):
        err = AlreadyHappenedError("web1", "Already completed. Commit again?", exit_status=2)
        with patch.object(cli.Remote, "build", autospec=True, side_effect=err):
            result = self.invoke("build", "web1")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Already completed", result.output)

    def test_failure_exits_nonzero_but_continues(self):
        seen = []

        def build(remote):
            seen.append(remote.host.name)
            if remote.host.name == "web1":
                raise ExecutionError("web1", "Process exited with status 1", exit_status=1)

        with patch.object(cli.Remote, "build", autospec=True, side_effect=build):
            result = self.invoke("build", "--all")
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(seen, ["web1", "web2"])

    def test_exec_passes_commands(self):
        with patch.object(cli.Remote, "execute", autospec=True) as execute:
            result = self.invoke("exec", "web2", "uptime", "df -h")
        self.assertEqual(result.exit_code, 0, result.output)
        execute.assert_called_once()
        self.assertEqual(execute.call_args.args[1], ["uptime", "df -h"])

    def test_unknown_host(self):
        result = self.invoke("build", "nope")
        self.assertEqual(result.exit_code, 1)

    def test_host_required(self):
        result = self.invoke("build")
        self.assertEqual(result.exit_code, 2)


if __name__ == "__main__":
    unittest.main()
