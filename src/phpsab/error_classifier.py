# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Map OS spawn failures, exit codes and stderr text onto user-facing messages."""

from __future__ import annotations

import errno
import os
import re
from dataclasses import dataclass
from typing import Final

from .arguments import ToolMode
from .output import describe_exception

TOOL_LABELS: Final[dict[ToolMode, str]] = {ToolMode.FIXER: "FIXER", ToolMode.SNIFFER: "SNIFFER"}

_PHP: Final[str] = r"[\"']?php[\"']?"
_SEPARATOR: Final[str] = r"[:\s]*"
_NOT_FOUND_PHRASES: Final[tuple[str, ...]] = (
    r"is\s+not\s+recognized",
    r"command\s+not\s+found",
    r"cannot\s+be\s+found",
    r"unknown\s+command",
)
PHP_NOT_FOUND_PATTERN: Final[re.Pattern[str]] = re.compile(
    rf"({_PHP}{_SEPARATOR})?({'|'.join(_NOT_FOUND_PHRASES)})({_SEPARATOR}{_PHP})?",
    re.IGNORECASE,
)

FIXER_EXIT_MESSAGES: Final[dict[int, str]] = {
    3: "FIXER: A general script execution error occurred.",
    16: "FIXER: Configuration error of the application.",
    32: "FIXER: Configuration error of a Fixer.",
    64: "FIXER: Exception raised within the application.",
    255: "FIXER: A Fatal execution error occurred.",
}

TIMEOUT_MESSAGE: Final[str] = "process timed out"
UNKNOWN_MESSAGE: Final[str] = "unknown error occurred"


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    """Short user-facing message paired with the full log detail."""

    message: str
    log_detail: str


def is_php_not_found(stderr: str) -> bool:
    """Return ``True`` when ``stderr`` says the PHP interpreter is not on ``PATH``.

    The check only fires when the output mentions ``php`` at all, so a
    missing tool executable is not mistaken for a missing interpreter.
    """

    if not stderr or "php" not in stderr.lower():
        return False
    return any(match.group(1) or match.group(3) for match in PHP_NOT_FOUND_PATTERN.finditer(stderr))


def php_not_found_message(tool: ToolMode) -> str:
    return (
        f"{TOOL_LABELS[tool]}: Unable to find the PHP executable. Please check that PHP is installed and "
        "on your system PATH, or correct the PHP path used by your environment."
    )


def _is_timeout(error: BaseException) -> bool:
    if isinstance(error, TimeoutError):
        return True
    return isinstance(error, OSError) and error.errno == errno.ETIMEDOUT


def _is_missing_path(error: BaseException) -> bool:
    if isinstance(error, FileNotFoundError):
        return True
    return isinstance(error, OSError) and error.errno == errno.ENOENT


def describe_os_error(error: BaseException) -> str:
    """Return the system description of ``error``'s code, or a generic fallback."""

    code = error.errno if isinstance(error, OSError) else None
    if isinstance(code, int):
        description = os.strerror(code)
        if description and not description.startswith("Unknown error"):
            return description
    return UNKNOWN_MESSAGE


def classify(error: BaseException, tool: ToolMode) -> ClassifiedError:
    """Classify a spawn failure for ``tool``.

    Args:
        error: Exception reported instead of an exit status.
        tool: Tool that failed to run.

    Returns:
        ClassifiedError: User-facing message plus the raw message, traceback
        and causal chain for the log channel.
    """

    label = TOOL_LABELS[tool]
    if _is_timeout(error):
        message = f"{label}: {TIMEOUT_MESSAGE}."
    elif _is_missing_path(error):
        missing = getattr(error, "filename", None) or ""
        suffix = f": {missing}" if missing else ""
        message = f"{label}: path not found{suffix}. Check the executable path setting."
    else:
        message = f"{label}: {describe_os_error(error)}."
    return ClassifiedError(message=message, log_detail=describe_exception(error))


def fixer_exit_message(exit_code: int, stdout: str = "") -> str:
    """Return the message for a failing fixer exit status, with ``stdout`` appended."""

    message = FIXER_EXIT_MESSAGES.get(exit_code, f"FIXER: An unknown error occurred (exit code {exit_code}).")
    if stdout:
        message = f"{message}\n{stdout}"
    return message


__all__ = [
    "FIXER_EXIT_MESSAGES",
    "PHP_NOT_FOUND_PATTERN",
    "TIMEOUT_MESSAGE",
    "TOOL_LABELS",
    "UNKNOWN_MESSAGE",
    "ClassifiedError",
    "classify",
    "describe_os_error",
    "fixer_exit_message",
    "is_php_not_found",
    "php_not_found_message",
]
