"""Command line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Sequence, TextIO

from slothgen.log import NOOP, Logger, StdLogger
from slothgen.model import VERSION

LOGGER_TYPE_DEFAULT = "default"
LOGGER_TYPE_JSON = "json"
LOGGER_TYPES = (LOGGER_TYPE_DEFAULT, LOGGER_TYPE_JSON)

_ENV_PREFIX = "SLOTH_"
_TRUE_VALUES = frozenset({"1", "t", "true"})


@dataclass
class RootConfig:
    """Global flags and instances shared by all the commands."""

    debug: bool = False
    no_log: bool = False
    no_color: bool = False
    logger_type: str = LOGGER_TYPE_DEFAULT
    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)
    logger: Logger = NOOP


class _TextFormatter(logging.Formatter):
    _COLORS = {
        logging.DEBUG: "37",
        logging.INFO: "36",
        logging.WARNING: "33",
        logging.ERROR: "31",
    }

    def __init__(self, color: bool):
        super().__init__()
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname[:4]
        if self._color:
            level = f"\x1b[{self._COLORS.get(record.levelno, '0')}m{level}\x1b[0m"
        moment = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        return f"{level}[{moment}] {record.getMessage()}"


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "level": record.levelname.lower(),
                "msg": record.getMessage(),
                "time": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            }
        )


def build_logger(config: RootConfig) -> Logger:
    """Create the application logger; it writes to ``config.stderr``."""
    if config.no_log:
        return NOOP

    if config.logger_type == LOGGER_TYPE_DEFAULT:
        formatter: logging.Formatter = _TextFormatter(color=not config.no_color)
    elif config.logger_type == LOGGER_TYPE_JSON:
        formatter = _JSONFormatter()
    else:
        raise ValueError(f"unknown logger type: {config.logger_type!r}")

    base = logging.Logger("sloth", logging.DEBUG if config.debug else logging.INFO)
    base.propagate = False
    handler = logging.StreamHandler(config.stderr)
    handler.setFormatter(formatter)
    base.addHandler(handler)

    logger = StdLogger(base).with_values({"version": VERSION})
    logger.debug("Debug level is enabled")
    return logger


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise ValueError(message)


def _env(name: str) -> str | None:
    return os.environ.get(_ENV_PREFIX + name)


def _env_bool(name: str) -> bool:
    return (_env(name) or "").strip().lower() in _TRUE_VALUES


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="sloth", description="Easy SLO generator.")
    parser.add_argument("--debug", action="store_true", default=_env_bool("DEBUG"), help="Enable debug mode.")
    parser.add_argument("--no-log", action="store_true", default=_env_bool("NO_LOG"), help="Disable logger.")
    parser.add_argument(
        "--no-color", action="store_true", default=_env_bool("NO_COLOR"), help="Disable logger color."
    )
    parser.add_argument(
        "--logger",
        choices=LOGGER_TYPES,
        default=_env("LOGGER") or LOGGER_TYPE_DEFAULT,
        help="Selects the logger type.",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("version", help="Shows version.")
    return parser


def _version(config: RootConfig) -> None:
    config.stdout.write(VERSION)


_COMMANDS: dict[str, Callable[[RootConfig], None]] = {
    "version": _version,
}


def run(
    argv: Sequence[str] | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> None:
    """Parse ``argv`` (without the program name) and run the selected command."""
    try:
        args = _build_parser().parse_args(list(argv) if argv is not None else sys.argv[1:])
        if args.logger not in LOGGER_TYPES:
            raise ValueError(f"invalid logger type {args.logger!r}")
    except ValueError as err:
        raise ValueError(f"invalid command configuration: {err}") from err

    config = RootConfig(
        debug=args.debug,
        no_log=args.no_log,
        no_color=args.no_color,
        logger_type=args.logger,
        stdin=sys.stdin,
        stdout=stdout if stdout is not None else sys.stdout,
        stderr=stderr if stderr is not None else sys.stderr,
    )
    config.logger = build_logger(config)

    try:
        _COMMANDS[args.command](config)
    except Exception as err:
        raise RuntimeError(f"{args.command!r} command failed: {err}") from err


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the process exit code."""
    try:
        run(argv, sys.stdout, sys.stderr)
    except (ValueError, RuntimeError) as err:
        sys.stderr.write(f"error: {err}")
        return 1
    return 0