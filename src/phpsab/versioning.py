# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers for capturing and comparing PHP_CodeSniffer versions."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Final

from packaging.version import InvalidVersion, Version

from .process_utils import RunResult, run_shell_command

MINIMUM_CODESNIFFER_VERSION: Final[str] = "3.0.0"
VERSION_TIMEOUT: Final[float] = 10.0


class VersionResolver:
    """Capture and compare tool versions using standardized semantics."""

    VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)+)")

    def __init__(self, runner: Callable[..., RunResult] = run_shell_command) -> None:
        self._runner = runner

    def capture(self, executable: str) -> str | None:
        """Return the normalized version reported by ``executable --version``."""

        if not executable:
            return None
        result = self._runner(executable, ["--version"], input_text="", timeout=VERSION_TIMEOUT)
        if result.exit_code is None:
            return None
        output = result.stdout.strip() or result.stderr.strip()
        if not output:
            return None
        return self.normalize(output.splitlines()[0].strip())

    def normalize(self, raw: str | None) -> str | None:
        if not raw:
            return None
        match = self.VERSION_PATTERN.search(raw)
        candidate = match.group(1) if match else raw.strip()
        try:
            Version(candidate)
        except InvalidVersion:
            return None
        return candidate

    def is_compatible(self, actual: str | None, expected: str | None = MINIMUM_CODESNIFFER_VERSION) -> bool:
        if expected is None:
            return True
        if actual is None:
            return False
        try:
            return Version(actual) >= Version(expected)
        except InvalidVersion:
            return False


__all__ = ["MINIMUM_CODESNIFFER_VERSION", "VersionResolver"]
