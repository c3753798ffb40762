"""
Tests for CLI commands — site lifecycle, apply, config check, history.
"""

import json
import textwrap
from pathlib import Path

from click.testing import CliRunner

from vhostctl.main import cli


def _invoke(config_file: Path, executor, *args: str):
    runner = CliRunner()
    return runner.invoke(cli, ["--config", str(config_file), *args], obj={"executor": executor})


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "virtual hosts" in result.output
        assert "site" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestSiteCommands:
    def test_add_list_show_remove(self, config_file, executor, doc_root):
        result = _invoke(config_file, executor, "site", "add", "demo.test", "--path", doc_root)
        assert result.exit_code == 0, result.output
        assert "demo.test: added" in result.output

        result = _invoke(config_file, executor, "site", "list")
        assert result.exit_code == 0
        assert "demo.test" in result.output
        assert "PHP 8.1" in result.output

        result = _invoke(config_file, executor, "site", "show", "demo.test")
        assert result.exit_code == 0
        assert "In sync" in result.output

        result = _invoke(config_file, executor, "site", "remove", "demo.test")
        assert result.exit_code == 0, result.output

        result = _invoke(config_file, executor, "site", "list", "--json")
        assert json.loads(result.output) == []

    def test_add_invalid_domain(self, config_file, executor, doc_root):
        result = _invoke(config_file, executor, "site", "add", "bad_domain", "--path", doc_root)
        assert result.exit_code == 1
        assert "Invalid domain" in result.output

    def test_add_failure_prints_transcript(self, config_file, executor, doc_root):
        executor.set_failure("nginx -t", output="nginx: [emerg] broken")
        result = _invoke(config_file, executor, "site", "add", "demo.test", "--path", doc_root)
        assert result.exit_code == 1
        assert "[emerg] broken" in result.output
        assert "test_config" in result.output
        assert "not undone" in result.output

    def test_verbose_prints_transcript(self, config_file, executor, doc_root):
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["--config", str(config_file), "-v", "site", "add", "demo.test", "--path", doc_root],
            obj={"executor": executor},
        )
        assert result.exit_code == 0, result.output
        assert "== Preflight ==" in result.output

    def test_add_json(self, config_file, executor, doc_root):
        result = _invoke(config_file, executor, "site", "add", "demo.test", "--path", doc_root, "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["report"]["steps"][0]["name"] == "preflight"

    def test_add_no_apply(self, config_file, executor, doc_root):
        result = _invoke(
            config_file, executor, "site", "add", "demo.test", "--path", doc_root, "--no-apply"
        )
        assert result.exit_code == 0
        assert "not applied" in result.output
        assert executor.call_count == 0

    def test_update_disable(self, config_file, executor, doc_root):
        _invoke(config_file, executor, "site", "add", "demo.test", "--path", doc_root)
        result = _invoke(config_file, executor, "site", "update", "demo.test", "--disable")
        assert result.exit_code == 0, result.output

        result = _invoke(config_file, executor, "site", "show", "demo.test", "--json")
        data = json.loads(result.output)
        assert data["site"]["enabled"] is False
        assert data["vhost"]["enabled_exists"] is False

    def test_remove_unknown(self, config_file, executor):
        result = _invoke(config_file, executor, "site", "remove", "ghost.test")
        assert result.exit_code == 1
        assert "ghost.test" in result.output


class TestApplyCommand:
    def test_apply(self, config_file, executor, doc_root):
        _invoke(config_file, executor, "site", "add", "demo.test", "--path", doc_root, "--no-apply")
        result = _invoke(config_file, executor, "apply", "demo.test")
        assert result.exit_code == 0, result.output
        assert "demo.test: applied" in result.output

    def test_apply_disabled_execution(self, config_file, executor, doc_root):
        _invoke(config_file, executor, "site", "add", "demo.test", "--path", doc_root, "--no-apply")
        executor.set_available(False)
        result = _invoke(config_file, executor, "apply", "demo.test")
        assert result.exit_code == 1
        assert "disabled" in result.output


class TestConfigCheck:
    def test_valid(self, config_file, executor):
        result = _invoke(config_file, executor, "config", "check")
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_invalid(self, tmp_path: Path):
        config = tmp_path / "vhostctl.yml"
        config.write_text(textwrap.dedent("""\
            command_timeout: -1
        """))
        result = CliRunner().invoke(cli, ["--config", str(config), "config", "check"])
        assert result.exit_code == 1
        assert "Configuration errors" in result.output

    def test_json(self, config_file, executor):
        result = _invoke(config_file, executor, "config", "check", "--json")
        assert result.exit_code == 0
        assert json.loads(result.output)["valid"] is True


class TestHistory:
    def test_empty(self, config_file, executor):
        result = _invoke(config_file, executor, "history")
        assert result.exit_code == 0
        assert "No runs recorded" in result.output

    def test_lists_runs(self, config_file, executor, doc_root):
        _invoke(config_file, executor, "site", "add", "demo.test", "--path", doc_root)
        executor.set_failure("nginx -t")
        _invoke(config_file, executor, "apply", "demo.test")

        result = _invoke(config_file, executor, "history", "--json")
        entries = json.loads(result.output)
        assert [e["status"] for e in entries] == ["ok", "failed"]

        result = _invoke(config_file, executor, "history", "-n", "1")
        assert "failed" in result.output
        assert "test_config" in result.output
