# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Test doubles shared across the suite."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from phpsab.config import Settings
from phpsab.config_loader import SettingsLoadResult

posix_only = pytest.mark.skipif(os.name == "nt", reason="uses POSIX shell scripts")


@dataclass
class RecordingNotifier:
    """Notifier capturing every user-facing message."""

    infos: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)


class StaticLoader:
    """Loader returning a prepared settings snapshot."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.loads = 0

    def load(self, *, generation: int = 0) -> SettingsLoadResult:
        self.loads += 1
        return SettingsLoadResult(settings=self.settings.model_copy(update={"generation": generation}))

    def with_roots(self, roots: Sequence[Path]) -> StaticLoader:
        return self

    def load_fragment(self, root: Path | None) -> tuple[dict[str, object], list[str]]:
        return {}, []


__all__ = ["RecordingNotifier", "StaticLoader", "posix_only"]
