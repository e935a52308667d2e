# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Closed set of results produced by a fixer invocation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from .errors import ToolEnvironmentError, ToolExecutionError


@dataclass(frozen=True, slots=True)
class Fixed:
    """All fixable issues were fixed; ``content`` replaces the document."""

    content: str


@dataclass(frozen=True, slots=True)
class NoChange:
    """Nothing to fix, or the tool returned the input unchanged."""

    message: str = "No fixable errors were found."


@dataclass(frozen=True, slots=True)
class PartialFailure:
    """Some issues were fixed, others remain."""

    content: str
    detail: str = "FIXER failed to fix some of the fixable errors."


@dataclass(frozen=True, slots=True)
class ToolError:
    """The fixer exited with a failing status."""

    message: str
    exit_code: int | None = None


@dataclass(frozen=True, slots=True)
class EnvironmentFailure:
    """The runtime or the executable is missing, or the spawn failed."""

    message: str
    log_detail: str = ""


ClassifiedOutcome: TypeAlias = Fixed | NoChange | PartialFailure | ToolError | EnvironmentFailure


def outcome_content(outcome: ClassifiedOutcome) -> str | None:
    """Return the replacement content carried by ``outcome``, if any."""

    if isinstance(outcome, (Fixed, PartialFailure)):
        return outcome.content
    return None


def is_failure(outcome: ClassifiedOutcome) -> bool:
    """Return ``True`` for outcomes that must be surfaced as errors."""

    return isinstance(outcome, (ToolError, EnvironmentFailure))


def raise_for_failure(outcome: ClassifiedOutcome) -> None:
    """Raise the exception matching a failure ``outcome``; other outcomes pass.

    Raises:
        ToolExecutionError: For :class:`ToolError` outcomes.
        ToolEnvironmentError: For :class:`EnvironmentFailure` outcomes.
    """

    if isinstance(outcome, ToolError):
        raise ToolExecutionError(outcome.message, exit_code=outcome.exit_code)
    if isinstance(outcome, EnvironmentFailure):
        raise ToolEnvironmentError(outcome.message, log_detail=outcome.log_detail)


__all__ = [
    "ClassifiedOutcome",
    "EnvironmentFailure",
    "Fixed",
    "NoChange",
    "PartialFailure",
    "ToolError",
    "is_failure",
    "outcome_content",
    "raise_for_failure",
]
