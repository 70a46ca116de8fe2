"""Structured logging abstraction with context-carried key/value fields."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

VERSION = "dev"

_CTX_KEY = "internal-log"

Context = Mapping[str, Any]


def ctx_with_values(parent: Context | None, kv: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``parent`` whose log values are merged with ``kv``."""
    parent = parent or {}
    merged = {**values_from_ctx(parent), **kv}
    new_ctx = dict(parent)
    new_ctx[_CTX_KEY] = merged
    return new_ctx


def values_from_ctx(ctx: Context | None) -> dict[str, Any]:
    """Return the log values stored in ``ctx`` (empty when there are none)."""
    if not ctx:
        return {}
    values = ctx.get(_CTX_KEY)
    if not isinstance(values, Mapping):
        return {}
    return dict(values)


class Logger(ABC):
    """Logger interface used across the package."""

    @abstractmethod
    def _log(self, level: int, msg: str, args: tuple[Any, ...]) -> None:
        """Emit one message at ``level``."""

    @abstractmethod
    def with_values(self, values: Mapping[str, Any]) -> Logger:
        """Return a logger that adds ``values`` to every message."""

    def info(self, msg: str, *args: Any) -> None:
        self._log(logging.INFO, msg, args)

    def warning(self, msg: str, *args: Any) -> None:
        self._log(logging.WARNING, msg, args)

    def error(self, msg: str, *args: Any) -> None:
        self._log(logging.ERROR, msg, args)

    def debug(self, msg: str, *args: Any) -> None:
        self._log(logging.DEBUG, msg, args)

    def with_ctx_values(self, ctx: Context | None) -> Logger:
        """Return a logger carrying the values stored in ``ctx``."""
        return self.with_values(values_from_ctx(ctx))

    def set_values_on_ctx(self, parent: Context | None, values: Mapping[str, Any]) -> dict[str, Any]:
        """Return a context with ``values`` stored for later loggers."""
        return ctx_with_values(parent, values)


class NoopLogger(Logger):
    """Logger that discards everything."""

    def _log(self, level: int, msg: str, args: tuple[Any, ...]) -> None:
        return None

    def with_values(self, values: Mapping[str, Any]) -> Logger:
        return self

    def with_ctx_values(self, ctx: Context | None) -> Logger:
        return self

    def set_values_on_ctx(self, parent: Context | None, values: Mapping[str, Any]) -> Any:
        return parent


NOOP = NoopLogger()


def _render_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() or ch in '"=' for ch in text):
        return json.dumps(text)
    return text


class StdLogger(Logger):
    """Logger backed by a :mod:`logging` logger, rendering fields as text or JSON."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        values: Mapping[str, Any] | None = None,
        json_format: bool = False,
    ) -> None:
        self._logger = logger if logger is not None else logging.getLogger("slothgen")
        self._values = dict(values or {})
        self._json = json_format

    def _log(self, level: int, msg: str, args: tuple[Any, ...]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        text = msg % args if args else msg
        if self._json:
            record = {**self._values, "level": logging.getLevelName(level).lower(), "msg": text}
            line = json.dumps(record, default=str, sort_keys=True)
        else:
            fields = " ".join(f"{k}={_render_value(v)}" for k, v in sorted(self._values.items()))
            line = f"{text} {fields}" if fields else text
        self._logger.log(level, "%s", line)

    def with_values(self, values: Mapping[str, Any]) -> Logger:
        return StdLogger(self._logger, {**self._values, **values}, self._json)