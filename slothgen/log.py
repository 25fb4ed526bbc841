"""Structured logging with key/value fields carried on loggers and contexts."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

_LOG_VALUES_KEY = object()

Context = Mapping[Any, Any]


def ctx_with_values(parent: Context | None, values: Mapping[str, Any]) -> dict[Any, Any]:
    """Return a copy of ``parent`` whose log values are merged with ``values``."""
    merged = {**values_from_ctx(parent), **values}
    ctx = dict(parent or {})
    ctx[_LOG_VALUES_KEY] = merged
    return ctx


def values_from_ctx(ctx: Context | None) -> dict[str, Any]:
    """Return the log values stored on ``ctx`` (empty when there are none)."""
    if not ctx:
        return {}
    values = ctx.get(_LOG_VALUES_KEY)
    if not isinstance(values, Mapping):
        return {}
    return dict(values)


class Logger(ABC):
    """Logger interface used across the package."""

    @abstractmethod
    def info(self, fmt: str, *args: Any) -> None:
        """Log an informational message."""

    @abstractmethod
    def warning(self, fmt: str, *args: Any) -> None:
        """Log a warning message."""

    @abstractmethod
    def error(self, fmt: str, *args: Any) -> None:
        """Log an error message."""

    @abstractmethod
    def debug(self, fmt: str, *args: Any) -> None:
        """Log a debug message."""

    @abstractmethod
    def with_values(self, values: Mapping[str, Any]) -> "Logger":
        """Return a logger that adds ``values`` to every message."""

    @abstractmethod
    def with_ctx_values(self, ctx: Context | None) -> "Logger":
        """Return a logger that adds the values stored on ``ctx``."""

    @abstractmethod
    def set_values_on_ctx(self, parent: Context | None, values: Mapping[str, Any]) -> Context | None:
        """Return a context carrying ``values`` for later loggers."""


class NoopLogger(Logger):
    """Logger that discards everything."""

    def info(self, fmt: str, *args: Any) -> None:
        """Discard the message."""

    def warning(self, fmt: str, *args: Any) -> None:
        """Discard the message."""

    def error(self, fmt: str, *args: Any) -> None:
        """Discard the message."""

    def debug(self, fmt: str, *args: Any) -> None:
        """Discard the message."""

    def with_values(self, values: Mapping[str, Any]) -> Logger:
        return self

    def with_ctx_values(self, ctx: Context | None) -> Logger:
        return self

    def set_values_on_ctx(self, parent: Context | None, values: Mapping[str, Any]) -> Context | None:
        return parent


NOOP = NoopLogger()


class StdLogger(Logger):
    """Logger backed by the standard ``logging`` module, appending ``key=value`` fields."""

    def __init__(self, logger: logging.Logger | None = None, values: Mapping[str, Any] | None = None):
        self._logger = logger if logger is not None else logging.getLogger("slothgen")
        self._values = dict(values or {})

    def _log(self, level: int, fmt: str, args: tuple[Any, ...]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        message = fmt % args if args else fmt
        if self._values:
            fields = " ".join(f"{key}={value}" for key, value in sorted(self._values.items()))
            message = f"{message} {fields}"
        self._logger.log(level, message)

    def info(self, fmt: str, *args: Any) -> None:
        self._log(logging.INFO, fmt, args)

    def warning(self, fmt: str, *args: Any) -> None:
        self._log(logging.WARNING, fmt, args)

    def error(self, fmt: str, *args: Any) -> None:
        self._log(logging.ERROR, fmt, args)

    def debug(self, fmt: str, *args: Any) -> None:
        self._log(logging.DEBUG, fmt, args)

    def with_values(self, values: Mapping[str, Any]) -> Logger:
        return StdLogger(self._logger, {**self._values, **values})

    def with_ctx_values(self, ctx: Context | None) -> Logger:
        return self.with_values(values_from_ctx(ctx))

    def set_values_on_ctx(self, parent: Context | None, values: Mapping[str, Any]) -> Context | None:
        return ctx_with_values(parent, values)