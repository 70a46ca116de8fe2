import io
import json

import pytest

from slothgen.cli import RootConfig, build_parser, get_logger, main, run
from slothgen.log import NOOP, VERSION


def test_version_command_prints_version():
    out, err = io.StringIO(), io.StringIO()
    run(["--no-log", "version"], stdout=out, stderr=err)
    assert out.getvalue() == VERSION


def test_version_default_is_dev():
    out, err = io.StringIO(), io.StringIO()
    run(["--no-log", "version"], stdout=out, stderr=err)
    assert out.getvalue() == "dev"


def test_unknown_command_is_invalid_configuration():
    with pytest.raises(ValueError, match="invalid command configuration"):
        run(["nope"], stdout=io.StringIO(), stderr=io.StringIO())


def test_missing_command_is_invalid_configuration():
    with pytest.raises(ValueError, match="invalid command configuration"):
        run([], stdout=io.StringIO(), stderr=io.StringIO())


def test_main_reports_errors(capsys):
    assert main(["nope"]) == 1
    assert capsys.readouterr().err.startswith("error: invalid command configuration")


def test_main_success(capsys):
    assert main(["--no-log", "version"]) == 0
    assert capsys.readouterr().out == VERSION


def test_parser_defaults():
    ns = build_parser().parse_args(["version"])
    assert (ns.debug, ns.no_log, ns.no_color, ns.logger) == (False, False, False, "default")


def test_parser_env_defaults(monkeypatch):
    monkeypatch.setenv("SLOTH_NO_LOG", "true")
    monkeypatch.setenv("SLOTH_LOGGER", "json")
    ns = build_parser().parse_args(["version"])
    assert ns.no_log is True
    assert ns.logger == "json"


def test_invalid_logger_type_from_env(monkeypatch):
    monkeypatch.setenv("SLOTH_LOGGER", "xml")
    with pytest.raises(ValueError, match="invalid command configuration"):
        run(["version"], stdout=io.StringIO(), stderr=io.StringIO())


def test_get_logger_no_log_returns_noop():
    assert get_logger(RootConfig(no_log=True)) is NOOP


def test_get_logger_json_debug_output():
    err = io.StringIO()
    logger = get_logger(RootConfig(debug=True, logger_type="json", stderr=err))
    logger.info("hello")
    lines = [json.loads(line) for line in err.getvalue().splitlines()]
    assert lines[0]["msg"] == "Debug level is enabled"
    assert lines[0]["level"] == "debug"
    assert lines[1]["msg"] == "hello"
    assert all(line["version"] == VERSION for line in lines)


def test_get_logger_hides_debug_by_default():
    err = io.StringIO()
    logger = get_logger(RootConfig(no_color=True, stderr=err))
    logger.debug("hidden")
    logger.info("shown")
    text = err.getvalue()
    assert "hidden" not in text
    assert "shown" in text
    assert "\x1b[" not in text