"""Command line entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, TextIO

from slothgen.log import NOOP, VERSION, Logger, StdLogger

LOGGER_TYPE_DEFAULT = "default"
LOGGER_TYPE_JSON = "json"
_LOGGER_TYPES = (LOGGER_TYPE_DEFAULT, LOGGER_TYPE_JSON)

_ENV_PREFIX = "SLOTH_"
_TRUE_VALUES = {"1", "t", "true"}
_LEVEL_COLORS = {"DEBUG": 37, "INFO": 36, "WARNING": 33, "ERROR": 31, "CRITICAL": 31}


@dataclass
class RootConfig:
    """Global flags and I/O shared by every command."""

    debug: bool = False
    no_log: bool = False
    no_color: bool = False
    logger_type: str = LOGGER_TYPE_DEFAULT
    stdin: Optional[TextIO] = None
    stdout: Optional[TextIO] = None
    stderr: Optional[TextIO] = None
    logger: Logger = field(default=NOOP)


class _UsageError(ValueError):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise _UsageError(message)


def _env(name: str) -> Optional[str]:
    return os.environ.get(_ENV_PREFIX + name.upper().replace("-", "_"))


def _env_flag(name: str) -> bool:
    value = _env(name)
    return value is not None and value.strip().lower() in _TRUE_VALUES


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; flag defaults may come from ``SLOTH_*`` environment variables."""
    parser = _Parser(prog="sloth", description="Easy SLO generator.")
    parser.add_argument("--debug", action="store_true", default=_env_flag("debug"), help="Enable debug mode.")
    parser.add_argument("--no-log", action="store_true", default=_env_flag("no-log"), help="Disable logger.")
    parser.add_argument(
        "--no-color", action="store_true", default=_env_flag("no-color"), help="Disable logger color."
    )
    parser.add_argument(
        "--logger",
        choices=_LOGGER_TYPES,
        default=_env("logger") or LOGGER_TYPE_DEFAULT,
        help="Selects the logger type.",
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)
    commands.add_parser("version", help="Shows version.")
    return parser


class _TextFormatter(logging.Formatter):
    def __init__(self, color: bool) -> None:
        super().__init__()
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname[:4]
        if self._color:
            level = f"\x1b[{_LEVEL_COLORS.get(record.levelname, 37)}m{level}\x1b[0m"
        when = self.formatTime(record, "%Y-%m-%dT%H:%M:%S")
        return f"{level}[{when}] {record.getMessage()}"


def get_logger(config: RootConfig) -> Logger:
    """Return the application logger for ``config``; it writes to the configured stderr."""
    if config.no_log:
        return NOOP

    base = logging.Logger("sloth")
    base.propagate = False
    base.setLevel(logging.DEBUG if config.debug else logging.INFO)
    handler = logging.StreamHandler(config.stderr or sys.stderr)
    json_format = config.logger_type == LOGGER_TYPE_JSON
    handler.setFormatter(
        logging.Formatter("%(message)s") if json_format else _TextFormatter(color=not config.no_color)
    )
    base.addHandler(handler)

    logger = StdLogger(base, json_format=json_format).with_values({"version": VERSION})
    logger.debug("Debug level is enabled")
    return logger


def _run_version(config: RootConfig) -> None:
    out = config.stdout or sys.stdout
    out.write(VERSION)


_COMMANDS: dict[str, Callable[[RootConfig], None]] = {
    "version": _run_version,
}


def run(
    args: Optional[Sequence[str]] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> None:
    """Parse ``args`` (without the program name) and run the selected command."""
    parser = build_parser()
    try:
        ns = parser.parse_args(list(args) if args is not None else [])
    except _UsageError as err:
        raise ValueError(f"invalid command configuration: {err}") from err
    if ns.logger not in _LOGGER_TYPES:
        raise ValueError(f"invalid command configuration: invalid logger type {ns.logger!r}")

    config = RootConfig(
        debug=ns.debug,
        no_log=ns.no_log,
        no_color=ns.no_color,
        logger_type=ns.logger,
        stdin=sys.stdin,
        stdout=stdout or sys.stdout,
        stderr=stderr or sys.stderr,
    )
    config.logger = get_logger(config)

    try:
        _COMMANDS[ns.command](config)
    except Exception as err:
        raise RuntimeError(f"{ns.command!r} command failed: {err}") from err


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line and return the process exit code."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        run(argv, sys.stdout, sys.stderr)
    except Exception as err:
        sys.stderr.write(f"error: {err}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())