"""End-to-end tests for the Typer CLI."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from bb_cli.cli import app, main
from bb_cli.config import load_config
from bb_cli.models import HostType


class CliTestCase(unittest.TestCase):
    origin: str | None = None

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.config_dir = Path(self._tmp.name)
        self.env = {"BB_CONFIG_DIR": str(self.config_dir), "BB_REPO": None, "BB_HOST": None, "BB_TOKEN": None}
        self.runner = CliRunner()

        reader = MagicMock()
        reader.get_origin_url.return_value = self.origin
        patches = [
            patch("bb_cli.cli.GitRemoteReader", return_value=reader),
            patch("bb_cli.cli.current_branch", return_value="feature/x"),
        ]
        for patcher in patches:
            patcher.start()
            self.addCleanup(patcher.stop)

    def invoke(self, *args: str):
        return self.runner.invoke(app, list(args), env=self.env)


class ContextCommandTests(CliTestCase):
    origin = "ssh://git@git.example.com:7999/PROJ/service.git"

    def test_explicit_repo_json(self) -> None:
        result = self.invoke("--repo", "ws/repo", "context", "--json")
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["host"], "bitbucket.org")
        self.assertEqual(data["host_type"], "cloud")
        self.assertEqual(data["full_name"], "ws/repo")
        self.assertIsNone(data["current_branch"])

    def test_repo_from_environment(self) -> None:
        self.env.update({"BB_REPO": "PROJ/app", "BB_HOST": "git.example.com"})
        result = self.invoke("context", "--json")
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["host_type"], "server")
        self.assertEqual(data["api_url"], "https://git.example.com/rest/api/1.0/projects/PROJ/repos/app")

    def test_origin_remote(self) -> None:
        result = self.invoke("context", "--json")
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual((data["host"], data["owner"], data["repo_slug"]), ("git.example.com", "PROJ", "service"))
        self.assertEqual(data["current_branch"], "feature/x")

    def test_table_output(self) -> None:
        result = self.invoke("-R", "ws/repo", "context")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Workspace", result.output)
        self.assertIn("Bitbucket Cloud", result.output)

    def test_malformed_repo(self) -> None:
        result = self.invoke("--repo", "only-one-segment", "context")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("WORKSPACE/REPO or PROJECT/REPO", result.output)


class NoOriginTests(CliTestCase):
    origin = None

    def test_no_context(self) -> None:
        result = self.invoke("context")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("--repo", result.output)


class BadOriginTests(CliTestCase):
    origin = "/srv/git/repo.git"

    def test_unparseable_origin(self) -> None:
        result = self.invoke("context")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("/srv/git/repo.git", result.output)
        self.assertIn("--repo", result.output)


class BrowseCommandTests(CliTestCase):
    origin = "git@bitbucket.org:ws/repo.git"

    def test_print_url(self) -> None:
        result = self.invoke("browse", "--prs", "--print")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.strip(), "https://bitbucket.org/ws/repo/pull-requests")

    def test_opens_browser(self) -> None:
        with patch("bb_cli.cli.typer.launch") as launch:
            result = self.invoke("browse")
        self.assertEqual(result.exit_code, 0, result.output)
        launch.assert_called_once_with("https://bitbucket.org/ws/repo")

    def test_conflicting_targets(self) -> None:
        result = self.invoke("browse", "--prs", "--wiki", "--print")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Specify only one", result.output)

    def test_server_only_limitations(self) -> None:
        result = self.invoke("-R", "PROJ/app", "--host", "git.example.com", "browse", "--wiki", "--print")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("not available on Bitbucket Server", result.output)


class ApiCommandTests(CliTestCase):
    origin = "git@bitbucket.org:ws/repo.git"

    def test_get_pretty_prints_json(self) -> None:
        response = MagicMock()
        response.status_code = 200
        response.text = '{"name": "repo"}'
        response.json.return_value = {"name": "repo"}
        with patch("bb_cli.cli.ApiClient") as client_cls:
            client_cls.return_value.request.return_value = response
            result = self.invoke("api", "/repositories/{workspace}/{repo}", "-F", "a=1")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(json.loads(result.output), {"name": "repo"})
        client_cls.return_value.request.assert_called_once_with(
            "GET",
            "/repositories/{workspace}/{repo}",
            body={"a": 1},
            headers={},
        )


class ConfigCommandTests(CliTestCase):
    def test_set_and_get(self) -> None:
        result = self.invoke("config", "set", "editor", "nano")
        self.assertEqual(result.exit_code, 0, result.output)
        result = self.invoke("config", "get", "editor")
        self.assertEqual(result.output.strip(), "nano")

    def test_unknown_key(self) -> None:
        result = self.invoke("config", "set", "colour", "always")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown configuration key", result.output)

    def test_set_host_overrides_detection(self) -> None:
        result = self.invoke("config", "set-host", "https://Code.Example.com/", "--type", "cloud")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(load_config(self.config_dir / "config.toml").host_type_override("code.example.com"), HostType.CLOUD)

        result = self.invoke("-R", "ws/repo", "--host", "code.example.com", "context", "--json")
        self.assertEqual(json.loads(result.output)["host_type"], "cloud")

    def test_list_json(self) -> None:
        result = self.invoke("config", "list", "--json")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(json.loads(result.output)["core"]["git_protocol"], "https")

    def test_broken_config_file(self) -> None:
        (self.config_dir / "config.toml").write_text("[core\n", encoding="utf-8")
        result = self.invoke("config", "get", "editor")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unable to read configuration file", result.output)


class AliasCommandTests(CliTestCase):
    def test_set_list_delete(self) -> None:
        result = self.invoke("alias", "set", "prs", "browse --prs")
        self.assertEqual(result.exit_code, 0, result.output)
        result = self.invoke("alias", "list", "--json")
        self.assertEqual(json.loads(result.output), {"prs": {"expansion": "browse --prs", "shell": False}})
        result = self.invoke("alias", "delete", "prs", "--yes")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(load_config(self.config_dir / "config.toml").aliases, {})

    def test_cycle_rejected(self) -> None:
        self.invoke("alias", "set", "a", "b")
        result = self.invoke("alias", "set", "b", "a")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("circular", result.output)

    def test_reserved_name(self) -> None:
        result = self.invoke("alias", "set", "browse", "context")
        self.assertEqual(result.exit_code, 1)

    def test_delete_without_tty_requires_yes(self) -> None:
        self.invoke("alias", "set", "prs", "browse --prs")
        result = self.invoke("alias", "delete", "prs")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("--yes", result.output)

    def test_main_expands_alias(self) -> None:
        self.invoke("alias", "set", "prs", "browse --prs")
        with patch.dict("os.environ", {"BB_CONFIG_DIR": str(self.config_dir)}), patch("bb_cli.cli.app") as cli_app:
            main(["prs", "--print"])
        cli_app.assert_called_once_with(args=["browse", "--prs", "--print"], prog_name="bb")

    def test_main_runs_shell_alias(self) -> None:
        self.invoke("alias", "set", "--shell", "hello", "echo hi")
        completed = MagicMock(returncode=3)
        with patch.dict("os.environ", {"BB_CONFIG_DIR": str(self.config_dir)}), patch(
            "bb_cli.cli.subprocess.run", return_value=completed
        ) as run:
            with self.assertRaises(SystemExit) as caught:
                main(["hello"])
        self.assertEqual(caught.exception.code, 3)
        run.assert_called_once_with(["sh", "-c", "echo hi", "hello"], check=False)

    def test_main_command_alias_starting_with_sh_stays_in_bb(self) -> None:
        self.invoke("alias", "set", "runsh", "sh -c 'echo hi'")
        with patch.dict("os.environ", {"BB_CONFIG_DIR": str(self.config_dir)}), patch(
            "bb_cli.cli.app"
        ) as cli_app, patch("bb_cli.cli.subprocess.run") as run:
            main(["runsh"])
        run.assert_not_called()
        cli_app.assert_called_once_with(args=["sh", "-c", "echo hi"], prog_name="bb")

    def test_main_expands_alias_after_global_options(self) -> None:
        self.invoke("alias", "set", "prs", "browse --prs")
        with patch.dict("os.environ", {"BB_CONFIG_DIR": str(self.config_dir)}), patch("bb_cli.cli.app") as cli_app:
            main(["-R", "ws/repo", "prs", "--print"])
        cli_app.assert_called_once_with(args=["-R", "ws/repo", "browse", "--prs", "--print"], prog_name="bb")

    def test_main_skips_flag_and_inline_options(self) -> None:
        self.invoke("alias", "set", "prs", "browse --prs")
        with patch.dict("os.environ", {"BB_CONFIG_DIR": str(self.config_dir)}), patch("bb_cli.cli.app") as cli_app:
            main(["--repo=ws/repo", "-v", "--host", "bitbucket.example.com", "prs"])
        cli_app.assert_called_once_with(
            args=["--repo=ws/repo", "-v", "--host", "bitbucket.example.com", "browse", "--prs"],
            prog_name="bb",
        )

    def test_main_leaves_option_values_alone(self) -> None:
        self.invoke("alias", "set", "prs", "browse --prs")
        with patch.dict("os.environ", {"BB_CONFIG_DIR": str(self.config_dir)}), patch("bb_cli.cli.app") as cli_app:
            main(["-R", "prs", "context"])
        cli_app.assert_called_once_with(args=["-R", "prs", "context"], prog_name="bb")

    def test_main_runs_shell_alias_after_global_options(self) -> None:
        self.invoke("alias", "set", "--shell", "hello", "echo hi")
        completed = MagicMock(returncode=0)
        with patch.dict("os.environ", {"BB_CONFIG_DIR": str(self.config_dir)}), patch(
            "bb_cli.cli.subprocess.run", return_value=completed
        ) as run:
            with self.assertRaises(SystemExit):
                main(["-v", "hello", "there"])
        run.assert_called_once_with(["sh", "-c", "echo hi", "hello", "there"], check=False)


class VersionTests(CliTestCase):
    def test_version(self) -> None:
        result = self.invoke("--version")
        self.assertEqual(result.exit_code, 0)
        self.assertTrue(result.output.startswith("bb "))


class CompletionTests(CliTestCase):
    def test_help_offers_shell_completion(self) -> None:
        result = self.invoke("--help")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--install-completion", result.output)
        self.assertIn("--show-completion", result.output)


if __name__ == "__main__":
    unittest.main()
