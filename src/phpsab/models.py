# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the phpsab package."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

PHP_LANGUAGE_ID: Final[str] = "php"
PHP_SUFFIXES: Final[frozenset[str]] = frozenset({".php", ".inc", ".phtml", ".module"})
SNIFFER_SOURCE: Final[str] = "phpcs"

Position = tuple[int, int]


class Severity(str, Enum):
    """Severity levels understood by the diagnostic collection."""

    ERROR = "error"
    WARNING = "warning"


class Diagnostic(BaseModel):
    """Zero-based point diagnostic produced from one sniffer report message."""

    model_config = ConfigDict(frozen=True)

    range_start: Position
    range_end: Position
    severity: Severity
    message: str
    source: str = SNIFFER_SOURCE
    fixable: bool = False
    code: str | None = None


class ReportMessage(BaseModel):
    """Single message entry inside the sniffer JSON report."""

    model_config = ConfigDict(extra="ignore")

    message: str
    line: int = 1
    column: int = 1
    source: str = ""
    type: str = "WARNING"
    severity: int | str = 5
    fixable: bool = False

    @property
    def is_error(self) -> bool:
        """Return ``True`` when the report marks this message as an error."""

        if self.type.upper() == "ERROR":
            return True
        return isinstance(self.severity, str) and self.severity.upper() == "ERROR"


class ReportFile(BaseModel):
    """Per-file section of the sniffer report."""

    model_config = ConfigDict(extra="ignore")

    errors: int = 0
    warnings: int = 0
    messages: list[ReportMessage] = Field(default_factory=list)


class SnifferReport(BaseModel):
    """Top-level ``--report=json`` payload."""

    model_config = ConfigDict(extra="ignore")

    files: dict[str, ReportFile]


def language_for(path: Path) -> str:
    """Return the language identifier inferred from ``path``'s suffix."""

    return PHP_LANGUAGE_ID if path.suffix.lower() in PHP_SUFFIXES else "plaintext"


@dataclass(frozen=True, slots=True)
class TextDocument:
    """Snapshot of an editor buffer handed to the fixer or the sniffer."""

    path: Path
    text: str
    language_id: str = PHP_LANGUAGE_ID
    version: int = 0

    @classmethod
    def from_path(cls, path: Path, *, text: str | None = None) -> TextDocument:
        """Build a document for ``path`` reading its content unless ``text`` is given."""

        content = path.read_text(encoding="utf-8") if text is None else text
        return cls(path=path, text=content, language_id=language_for(path))

    @property
    def key(self) -> str:
        """Stable identity used to key diagnostics, timers and runs."""

        return os.path.normcase(os.path.abspath(self.path))

    @property
    def file_name(self) -> str:
        return str(self.path)

    def full_range(self) -> tuple[Position, Position]:
        """Return the range spanning the entire document."""

        lines = self.text.split("\n")
        return (0, 0), (len(lines) - 1, len(lines[-1]))


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replacement of a document range with ``new_text``."""

    range_start: Position
    range_end: Position
    new_text: str

    def apply(self, document: TextDocument) -> str:
        """Return the text of ``document`` with this edit applied."""

        if (self.range_start, self.range_end) == document.full_range():
            return self.new_text
        lines = document.text.split("\n")
        offsets = [0]
        for line in lines:
            offsets.append(offsets[-1] + len(line) + 1)
        start = offsets[self.range_start[0]] + self.range_start[1]
        end = offsets[self.range_end[0]] + self.range_end[1]
        return document.text[:start] + self.new_text + document.text[end:]


__all__ = [
    "PHP_LANGUAGE_ID",
    "PHP_SUFFIXES",
    "SNIFFER_SOURCE",
    "Diagnostic",
    "Position",
    "ReportFile",
    "ReportMessage",
    "Severity",
    "SnifferReport",
    "TextDocument",
    "TextEdit",
    "language_for",
]
