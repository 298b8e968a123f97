"""Thin logging wrapper shared by transports, the executor and the streams."""

from __future__ import annotations

import logging
from typing import Any, Literal

LogLevel = Literal["trace", "debug", "info", "warn", "error"]

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

DEFAULT_LOGGER_NAME = "shipwire"

# Ordered from most to least verbose
LEVELS: dict[LogLevel, int] = {
    "trace": TRACE_LEVEL,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class BoundLogger:
    """Filters records below ``level`` and forwards the rest.

    The target is normally a ``logging.Logger``. Any object with a ``log``
    method, or with per-level methods (``warning`` stands in for ``warn``),
    is accepted as well.
    """

    def __init__(self, logger: Any | None = None, *, level: LogLevel = "info") -> None:
        self._logger = logger or _default_logger()
        self._level = level

    @property
    def level(self) -> LogLevel:
        return self._level

    def enabled_for(self, level: LogLevel) -> bool:
        return LEVELS[level] >= LEVELS[self._level]

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("trace", msg, args, kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("debug", msg, args, kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("info", msg, args, kwargs)

    def warn(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("warn", msg, args, kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("error", msg, args, kwargs)

    def child(self, name: str) -> "BoundLogger":
        """Logger for one component, e.g. ``shipwire.executor``."""
        target = self._logger
        if isinstance(target, logging.Logger):
            target = target.getChild(name)
        return BoundLogger(target, level=self._level)

    def _emit(self, level: LogLevel, msg: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        if not self.enabled_for(level):
            return
        log = getattr(self._logger, "log", None)
        try:
            if callable(log):
                log(LEVELS[level], msg, *args, **kwargs)
                return
            method = getattr(self._logger, level, None)
            if method is None and level == "warn":
                method = getattr(self._logger, "warning", None)
            if callable(method):
                method(msg, *args, **kwargs)
        except Exception:
            # A broken handler must not fail the request or stream that logged
            pass


def _default_logger() -> logging.Logger:
    logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(TRACE_LEVEL)
    return logger


def create_logger(*, logger: Any | None = None, level: LogLevel = "info") -> BoundLogger:
    if isinstance(logger, BoundLogger):
        return logger
    return BoundLogger(logger, level=level)


__all__ = ["BoundLogger", "LEVELS", "LogLevel", "TRACE_LEVEL", "create_logger"]
