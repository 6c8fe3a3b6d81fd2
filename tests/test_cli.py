"""Tests for the vault-loader command line."""

import logging

import pytest
from click.testing import CliRunner
from vault_loader.logging_setup import JsonlHandler
from vault_loader.main import cli


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Isolated HOME and CWD with a small vault."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    vault = work / "vault"
    (vault / "lib").mkdir(parents=True)
    (vault / "lib" / "util.py").write_text("module.exports = {'value': 42}", encoding="utf-8")
    (vault / "app").mkdir()
    (vault / "app" / "main.py").write_text(
        "util = await require('util')\nmodule.exports = {'double': util['value'] * 2}", encoding="utf-8"
    )
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    yield {"vault": vault, "log": tmp_path / "log.jsonl"}

    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, JsonlHandler)]:
        root.removeHandler(handler)


def _invoke(env, *args):
    runner = CliRunner()
    return runner.invoke(cli, ["--log-file", str(env["log"]), *args], catch_exceptions=False)


class TestResolveCommand:
    def test_relative(self, env):
        result = _invoke(env, "resolve", "./a", "--source", "dir/file.py")

        assert result.exit_code == 0
        assert "dir/a" in result.output

    def test_bare_with_search_paths(self, env):
        result = _invoke(env, "resolve", "x", "-p", "lib", "-p", "vendor")

        assert result.exit_code == 0
        lines = [line.strip() for line in result.output.splitlines() if line.strip()]
        assert lines == ["1. x", "2. lib/x", "3. vendor/x"]


class TestLoadOrderCommands:
    def test_add_and_list(self, env):
        assert _invoke(env, "load-order", "add", "lib").exit_code == 0
        assert _invoke(env, "load-order", "add", "app", "extra.py").exit_code == 0

        result = _invoke(env, "load-order", "list")

        assert result.exit_code == 0
        assert "lib" in result.output
        assert "app, extra.py" in result.output

    def test_list_empty(self, env):
        result = _invoke(env, "load-order", "list")

        assert "No load order configured" in result.output

    def test_clear(self, env):
        _invoke(env, "load-order", "add", "lib")

        assert _invoke(env, "load-order", "clear").exit_code == 0
        assert "No load order configured" in _invoke(env, "load-order", "list").output


class TestReloadAndRequire:
    def test_reload_reports_loaded_files(self, env):
        _invoke(env, "load-order", "add", "lib")
        _invoke(env, "load-order", "add", "app")

        result = _invoke(env, "--root", str(env["vault"]), "reload")

        assert result.exit_code == 0
        assert "lib/util.py" in result.output
        assert "app/main.py" in result.output

    def test_reload_with_failure_exits_nonzero(self, env):
        (env["vault"] / "lib" / "bad.py").write_text("1 / 0", encoding="utf-8")
        _invoke(env, "load-order", "add", "lib")

        result = _invoke(env, "--root", str(env["vault"]), "reload")

        assert result.exit_code == 1
        assert "failed" in result.output

    def test_reload_nothing_configured(self, env):
        result = _invoke(env, "--root", str(env["vault"]), "reload")

        assert result.exit_code == 0
        assert "Nothing to load" in result.output

    def test_require_prints_exports(self, env):
        _invoke(env, "load-order", "add", "lib")

        result = _invoke(env, "--root", str(env["vault"]), "require", "/app/main")

        assert result.exit_code == 0
        assert '"double": 84' in result.output

    def test_require_missing_module(self, env):
        result = _invoke(env, "--root", str(env["vault"]), "require", "no/such/module")

        assert result.exit_code == 1
        assert "cannot find module" in result.output

    def test_set_root_is_used_by_later_commands(self, env):
        _invoke(env, "set-root", str(env["vault"]))
        _invoke(env, "load-order", "add", "lib")

        result = _invoke(env, "require", "/lib/util", "--no-reload")

        assert result.exit_code == 0
        assert '"value": 42' in result.output

    def test_log_file_written(self, env):
        _invoke(env, "load-order", "add", "lib")
        _invoke(env, "--root", str(env["vault"]), "reload")

        assert env["log"].exists()
        assert "loader:reload" in env["log"].read_text()
