# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception taxonomy shared by the resolvers and the execution engine."""

from __future__ import annotations


class PhpsabError(RuntimeError):
    """Base class for every error raised by :mod:`phpsab`."""


class ConfigurationError(PhpsabError):
    """Raised when a configured value is rejected before any process starts."""


class ConfigError(ConfigurationError):
    """Raised when a configuration file cannot be read or merged."""


class ResolutionFailure(PhpsabError):
    """An executable or standard could not be located.

    Resolvers never raise this themselves; it records why a feature was
    disabled so the reason can be logged or shown by a host.
    """

    def __init__(self, message: str, *, tool: str | None = None) -> None:
        super().__init__(message)
        self.tool = tool


class ToolEnvironmentError(PhpsabError):
    """The runtime or the tool executable is missing, or the spawn timed out."""

    def __init__(self, message: str, *, log_detail: str = "") -> None:
        super().__init__(message)
        self.log_detail = log_detail


class ToolExecutionError(PhpsabError):
    """The external tool reported a failing exit status."""

    def __init__(self, message: str, *, exit_code: int | None = None, output: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class ReportParseError(PhpsabError):
    """The sniffer report on stdout was not a valid JSON report."""

    def __init__(self, message: str, *, stdout: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr

    def describe(self) -> str:
        """Return the message followed by the raw streams for diagnosis."""

        parts = [part for part in (self.stdout, self.stderr) if part]
        parts.append(str(self))
        return "\n".join(parts)


__all__ = [
    "ConfigError",
    "ConfigurationError",
    "PhpsabError",
    "ReportParseError",
    "ResolutionFailure",
    "ToolEnvironmentError",
    "ToolExecutionError",
]
