import logging
import signal

import pytest
import toml
from click.testing import CliRunner

from globwatch import cli
from globwatch.dispatcher import CommandDispatcher
from globwatch.events import ChangeKind


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GLOBWATCH_CONFIG_DIR", raising=False)
    yield
    # The CLI attaches handlers bound to the runner's streams.
    logging.getLogger("globwatch").handlers = []


@pytest.fixture
def captured(monkeypatch):
    """Replace the dispatch loop with one that records its configuration and stops."""
    seen = {}

    def fake_run(self, stop_event=None):
        seen["config"] = self.config
        stop_event.set()

    monkeypatch.setattr(CommandDispatcher, "run", fake_run)
    return seen


@pytest.fixture
def temp_config(tmp_path):
    config_data = {
        "watch": {
            "command": "echo %path",
            "dir": str(tmp_path),
            "include": ["**/*.txt"],
            "exclude": "**/skip/**",
        },
        "logging": {"level": "DEBUG", "log_dir": str(tmp_path / "logs")},
    }
    config_file = tmp_path / "globwatch.toml"
    with open(config_file, "w") as f:
        toml.dump(config_data, f)
    return str(config_file)


def test_without_command_shows_help():
    runner = CliRunner()
    result = runner.invoke(cli.main, [])
    assert result.exit_code == 1
    assert "Usage" in result.output


def test_missing_directory_is_invalid(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["echo %path", "-d", str(tmp_path / "missing")])
    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_invalid_pattern_is_invalid(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["echo %path", "-d", str(tmp_path), "-i", "src/[abc"])
    assert result.exit_code == 1


def test_missing_config_file_is_invalid(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["-c", str(tmp_path / "nope.toml"), "echo %path"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_options_reach_the_dispatcher(tmp_path, captured):
    runner = CliRunner()
    result = runner.invoke(cli.main, [
        '"minify %path"', "-d", str(tmp_path), "-i", "**/*.css|**/*.js",
        "-x", "**/vendor/**", "-e", "cm", "-ic", "-w", str(tmp_path),
    ])
    assert result.exit_code == 0, result.output

    cfg = captured["config"]
    assert cfg.command == "minify %path"
    assert cfg.include_patterns == ("**/*.css", "**/*.js")
    assert cfg.exclude_patterns == ("**/vendor/**",)
    assert cfg.watched_kinds == frozenset([ChangeKind.CREATED, ChangeKind.MODIFIED])
    assert cfg.ignore_case is True
    assert cfg.working_directory == str(tmp_path)

    assert "Watching" in result.output
    assert "**/*.css" in result.output
    assert "Except" in result.output
    assert "Ignore Case" in result.output
    assert "Stopping by request..." in result.output


def test_command_tokens_are_joined(tmp_path, captured):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["-d", str(tmp_path), "echo", "%path"])
    assert result.exit_code == 0, result.output
    assert captured["config"].command == "echo %path"


def test_config_file_settings(temp_config, tmp_path, captured):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--config", temp_config])
    assert result.exit_code == 0, result.output

    cfg = captured["config"]
    assert cfg.command == "echo %path"
    assert cfg.include_patterns == ("**/*.txt",)
    assert cfg.exclude_patterns == ("**/skip/**",)
    assert (tmp_path / "logs" / "globwatch.log").exists()


def test_command_line_overrides_config_file(temp_config, captured):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--config", temp_config, "-i", "**/*.md", "cat %path"])
    assert result.exit_code == 0, result.output
    assert captured["config"].command == "cat %path"
    assert captured["config"].include_patterns == ("**/*.md",)


def test_unexpected_error_exit_code(tmp_path, monkeypatch):
    def broken_run(self, stop_event=None):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(CommandDispatcher, "run", broken_run)
    runner = CliRunner()
    result = runner.invoke(cli.main, ["echo %path", "-d", str(tmp_path)])
    assert result.exit_code == 2
    assert "Unexpected error" in result.output
    assert "disk on fire" in result.output


def test_signal_handlers_are_restored(tmp_path, captured):
    before = signal.getsignal(signal.SIGINT)
    runner = CliRunner()
    runner.invoke(cli.main, ["echo %path", "-d", str(tmp_path)])
    assert signal.getsignal(signal.SIGINT) is before


def test_unbalanced_quote_is_invalid(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli.main, ["-d", str(tmp_path), "echo it's %path"])
    assert result.exit_code == 1
    assert "Invalid command arguments" in result.output
