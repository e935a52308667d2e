# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""OS-dependent constants used when resolving and invoking executables."""

from __future__ import annotations

import re
import sys
from typing import Final

WINDOWS_EXECUTABLE_SUFFIX: Final[str] = ".bat"
_DRIVE_PREFIX: Final[re.Pattern[str]] = re.compile(r"^/([a-zA-Z])/")


def is_windows() -> bool:
    """Return ``True`` when running on the Windows family of platforms."""

    return sys.platform.startswith("win")


def executable_suffix() -> str:
    """Return the suffix appended to tool names (``.bat`` on Windows)."""

    return WINDOWS_EXECUTABLE_SUFFIX if is_windows() else ""


def path_separator() -> str:
    """Return the directory separator for the current platform."""

    return "\\" if is_windows() else "/"


def env_path_separator() -> str:
    """Return the separator used between entries of ``PATH``."""

    return ";" if is_windows() else ":"


def cross_path(raw: str) -> str:
    """Translate a unix-style path into the current platform's form.

    On Windows a leading ``/c/`` drive marker becomes ``c:\\`` and every
    forward slash becomes a backslash. Elsewhere a leading drive marker is
    dropped so ``/c/tools/phpcs`` resolves to ``/tools/phpcs``.

    Args:
        raw: Path as written in the configuration.

    Returns:
        str: Platform-specific path.
    """

    if is_windows():
        match = _DRIVE_PREFIX.match(raw)
        if match:
            drive = match.group(1).lower()
            raw = f"{drive}:\\{raw[match.end():]}"
        return raw.replace("/", "\\")
    return _DRIVE_PREFIX.sub("/", raw, count=1)


def with_executable_suffix(name: str) -> str:
    """Return ``name`` with the platform executable suffix when it has no extension."""

    suffix = executable_suffix()
    basename = re.split(r"[\\/]", name)[-1]
    if not suffix or not basename or "." in basename:
        return name
    return f"{name}{suffix}"


__all__ = [
    "WINDOWS_EXECUTABLE_SUFFIX",
    "cross_path",
    "env_path_separator",
    "executable_suffix",
    "is_windows",
    "path_separator",
    "with_executable_suffix",
]
