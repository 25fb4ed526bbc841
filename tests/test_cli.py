import io
import json

import pytest

from slothgen.cli import LOGGER_TYPE_JSON, RootConfig, build_logger, main, run
from slothgen.log import NOOP
from slothgen.model import VERSION


def test_version_command_prints_version():
    stdout, stderr = io.StringIO(), io.StringIO()
    run(["--no-log", "version"], stdout, stderr)
    assert stdout.getvalue() == VERSION
    assert stderr.getvalue() == ""


def test_main_returns_zero_on_success(capsys):
    assert main(["--no-log", "version"]) == 0
    assert capsys.readouterr().out == VERSION


def test_main_reports_unknown_command(capsys):
    assert main(["nope"]) == 1
    assert capsys.readouterr().err.startswith("error: invalid command configuration")


def test_run_requires_a_command():
    with pytest.raises(ValueError, match="invalid command configuration"):
        run([], io.StringIO(), io.StringIO())


def test_invalid_logger_flag_fails():
    with pytest.raises(ValueError, match="invalid command configuration"):
        run(["--logger", "xml", "version"], io.StringIO(), io.StringIO())


def test_no_log_gives_noop_logger():
    assert build_logger(RootConfig(no_log=True)) is NOOP


def test_json_logger_writes_json_to_stderr():
    stderr = io.StringIO()
    logger = build_logger(RootConfig(logger_type=LOGGER_TYPE_JSON, stderr=stderr))
    logger.info("hello %s", "world")
    entry = json.loads(stderr.getvalue().splitlines()[0])
    assert entry["level"] == "info"
    assert entry["msg"] == f"hello world version={VERSION}"


def test_debug_flag_enables_debug_messages():
    stderr = io.StringIO()
    build_logger(RootConfig(debug=True, no_color=True, stderr=stderr))
    assert "Debug level is enabled" in stderr.getvalue()


def test_debug_messages_hidden_by_default():
    stderr = io.StringIO()
    logger = build_logger(RootConfig(no_color=True, stderr=stderr))
    logger.debug("hidden")
    assert stderr.getvalue() == ""


def test_logger_env_var_is_used(monkeypatch):
    monkeypatch.setenv("SLOTH_LOGGER", "json")
    monkeypatch.setenv("SLOTH_DEBUG", "true")
    stdout, stderr = io.StringIO(), io.StringIO()
    run(["version"], stdout, stderr)
    entry = json.loads(stderr.getvalue().splitlines()[0])
    assert entry["msg"].startswith("Debug level is enabled")
    assert stdout.getvalue() == VERSION


def test_unknown_logger_type_in_config_fails():
    with pytest.raises(ValueError, match="unknown logger type"):
        build_logger(RootConfig(logger_type="xml"))