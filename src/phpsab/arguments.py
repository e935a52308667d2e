# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Build and validate the command-line arguments passed to phpcs and phpcbf."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Final

from .interfaces import Notifier
from .output import OutputChannel, get_output_channel


class ToolMode(str, Enum):
    """Which tool an argument vector is built for."""

    FIXER = "fixer"
    SNIFFER = "sniffer"


REPORT_ARGUMENT: Final[str] = "--report=json"
QUIET_ARGUMENT: Final[str] = "-q"
STDIN_ARGUMENT: Final[str] = "-"
INTERNAL_KEYS: Final[frozenset[str]] = frozenset({"--standard", "--stdin-path", "--report", "-q", "-"})
ALLOWED_FLAGS: Final[tuple[str, ...]] = ("--ignore-annotations",)

_SEVERITY_VALUE: Final[re.Pattern[str]] = re.compile(r"^(0|[1-9]|10)$")
_IGNORE_VALUE: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z0-9.*/_\\,-]+$")
_FILTER_PATH_VALUE: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z0-9._/\\: -]+$")
_FILTER_NAMES: Final[frozenset[str]] = frozenset({"GitStaged", "GitModified"})

REJECTION_WARNING: Final[str] = (
    "Some additional arguments were removed due to validation failure "
    "or they tried to overwrite internally-added arguments."
)


def _filter_value_error(value: str) -> str | None:
    if value in _FILTER_NAMES or _FILTER_PATH_VALUE.fullmatch(value):
        return None
    return f"Invalid argument value: \"{value}\". This must be either 'GitStaged', 'GitModified', or a valid file path."


def _ignore_value_error(value: str) -> str | None:
    if _IGNORE_VALUE.fullmatch(value):
        return None
    return f'Invalid argument value: "{value}". This must be a comma-separated list of glob patterns.'


def _severity_value_error(value: str) -> str | None:
    if _SEVERITY_VALUE.fullmatch(value):
        return None
    return f'Invalid argument value: "{value}". This must be 0-10.'


VALUE_VALIDATORS: Final = {
    "--filter": _filter_value_error,
    "--ignore": _ignore_value_error,
    "--severity": _severity_value_error,
    "--error-severity": _severity_value_error,
    "--warning-severity": _severity_value_error,
}


def argument_key(argument: str) -> str:
    """Return the key part of ``--key=value`` arguments, or the flag itself."""

    return argument.split("=", 1)[0] if "=" in argument else argument


def argument_error(argument: str) -> str | None:
    """Return why ``argument`` is rejected, or ``None`` when it may run.

    Args:
        argument: A single user-supplied extra argument.

    Returns:
        str | None: Human-readable rejection reason.
    """

    key = argument_key(argument)
    if key in INTERNAL_KEYS:
        return f'Argument "{argument}" overrides an internally-added argument.'
    if not argument.startswith("-"):
        return f'Invalid argument: "{argument}"'
    if "=" not in argument:
        return None if argument in ALLOWED_FLAGS else f'Invalid flag argument: "{argument}"'
    validator = VALUE_VALIDATORS.get(key)
    if validator is None:
        return f'Invalid argument: "{argument}"'
    return validator(argument.split("=", 1)[1])


@dataclass(frozen=True, slots=True)
class ArgumentValidation:
    """Extra arguments split into those that may run and those dropped."""

    supplied: tuple[str, ...]
    accepted: tuple[str, ...]
    rejected: tuple[str, ...]
    errors: tuple[str, ...]

    @property
    def has_rejections(self) -> bool:
        return bool(self.rejected)

    def running_with(self) -> str:
        if self.accepted:
            return f'Running with the filtered arguments: "{", ".join(self.accepted)}".'
        return "Running without additional arguments."

    def user_message(self) -> str:
        """Return the single aggregated warning listing what was dropped."""

        removed = ", ".join(f'"{argument}"' for argument in self.rejected)
        return f"{REJECTION_WARNING} Removed: {removed}. {self.running_with()}"

    def log_message(self) -> str:
        lines = [
            REJECTION_WARNING,
            f'The supplied arguments were: "{", ".join(self.supplied)}".',
            self.running_with(),
        ]
        if self.errors:
            lines.append("Errors:")
            lines.extend(f"- {error}" for error in self.errors)
        return "\n".join(lines)


def validate_extra_arguments(arguments: Sequence[str]) -> ArgumentValidation:
    """Split ``arguments`` into accepted and rejected entries."""

    accepted: list[str] = []
    rejected: list[str] = []
    errors: list[str] = []
    for argument in arguments:
        error = argument_error(argument)
        if error is None:
            accepted.append(argument)
        else:
            rejected.append(argument)
            errors.append(error)
    return ArgumentValidation(
        supplied=tuple(arguments),
        accepted=tuple(accepted),
        rejected=tuple(rejected),
        errors=tuple(errors),
    )


def build_args(
    file_path: str,
    standard: str,
    extra_arguments: Sequence[str],
    mode: ToolMode,
) -> list[str]:
    """Return the argument vector for one tool invocation.

    ``extra_arguments`` must already be validated; see :func:`prepare_args`.
    The stdin marker is always the final argument.
    """

    args: list[str] = []
    if mode is ToolMode.SNIFFER:
        args.append(REPORT_ARGUMENT)
    args.append(QUIET_ARGUMENT)
    if standard:
        args.append(f"--standard={standard}")
    args.append(f"--stdin-path={file_path}")
    args.extend(extra_arguments)
    args.append(STDIN_ARGUMENT)
    return args


def prepare_args(
    file_path: str,
    standard: str,
    extra_arguments: Sequence[str],
    mode: ToolMode,
    *,
    notifier: Notifier | None = None,
    channel: OutputChannel | None = None,
) -> list[str]:
    """Validate ``extra_arguments`` and build the argument vector.

    Rejected arguments are dropped; one warning is logged and shown through
    ``notifier`` when any were removed.

    Args:
        file_path: Path reported to the tool through ``--stdin-path``.
        standard: Resolved standard, empty for the tool default.
        extra_arguments: User-supplied arguments from the configuration.
        mode: Tool the vector is built for.
        notifier: Optional user-facing notifier for the rejection warning.
        channel: Log channel; defaults to the shared channel.

    Returns:
        list[str]: Arguments to pass after the executable.
    """

    validation = validate_extra_arguments(extra_arguments)
    if validation.has_rejections:
        (channel or get_output_channel()).warn(validation.log_message())
        if notifier is not None:
            notifier.warn(validation.user_message())
    return build_args(file_path, standard, validation.accepted, mode)


__all__ = [
    "ALLOWED_FLAGS",
    "INTERNAL_KEYS",
    "REJECTION_WARNING",
    "ArgumentValidation",
    "ToolMode",
    "argument_error",
    "argument_key",
    "build_args",
    "prepare_args",
    "validate_extra_arguments",
]
