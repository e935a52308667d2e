# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Diagnostic log channel backed by the standard :mod:`logging` module."""

from __future__ import annotations

import json
import logging
import time
import traceback
from functools import cache
from typing import Any, Final

LOGGER_NAME: Final[str] = "phpsab"


def describe_exception(error: BaseException) -> str:
    """Return the message, traceback and causal chain of ``error``.

    Args:
        error: Exception to describe.

    Returns:
        str: Multi-line description suitable for the log channel.
    """

    lines = [f"{type(error).__name__}: {error}"]
    if error.__traceback__ is not None:
        lines.append("".join(traceback.format_tb(error.__traceback__)).rstrip())
    cause = error.__cause__ or error.__context__
    seen: set[int] = {id(error)}
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        lines.append(f"Caused by {type(cause).__name__}: {cause}")
        cause = cause.__cause__ or cause.__context__
    return "\n".join(line for line in lines if line)


class OutputChannel:
    """Named log channel with a debug switch and run timers."""

    def __init__(self, name: str = LOGGER_NAME) -> None:
        self._logger = logging.getLogger(name)
        self._timers: dict[str, float] = {}
        self._debug = False

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def debug_enabled(self) -> bool:
        return self._debug

    def set_debug_mode(self, enabled: bool) -> None:
        """Toggle debug output; info and debug records are dropped when disabled."""

        self._debug = enabled
        self._logger.setLevel(logging.DEBUG if enabled else logging.WARNING)

    def debug(self, message: str, data: Any | None = None) -> None:
        self._logger.debug(self._with_data(message, data))

    def info(self, message: str, data: Any | None = None) -> None:
        self._logger.info(self._with_data(message, data))

    def warn(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str, error: BaseException | str | None = None) -> None:
        """Log ``message`` followed by the details of ``error`` when given."""

        if error is None:
            self._logger.error(message)
        elif isinstance(error, str):
            self._logger.error("%s\n%s", message, error)
        else:
            self._logger.error("%s\n%s", message, describe_exception(error))

    def start_timer(self, key: str) -> None:
        self._timers[key] = time.monotonic()
        self.info(f"{key} running")

    def end_timer(self, key: str) -> float:
        """Log and return the seconds elapsed since :meth:`start_timer`."""

        started = self._timers.pop(key, None)
        if started is None:
            return 0.0
        elapsed = time.monotonic() - started
        self.info(f"{key} ran for {elapsed:.3f} seconds")
        return elapsed

    @staticmethod
    def _with_data(message: str, data: Any | None) -> str:
        if data is None:
            return message
        try:
            rendered = json.dumps(data, indent=2, default=str)
        except (TypeError, ValueError):
            rendered = repr(data)
        return f"{message}\n{rendered}"


@cache
def get_output_channel() -> OutputChannel:
    """Return the process-wide output channel."""

    return OutputChannel()


__all__ = ["LOGGER_NAME", "OutputChannel", "describe_exception", "get_output_channel"]
