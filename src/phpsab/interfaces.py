# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Host collaborator interfaces consumed by the fixer and the sniffer."""

# pylint: disable=too-few-public-methods -- Protocol definitions intentionally expose minimal method surfaces.

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from .models import TextDocument


@runtime_checkable
class Notifier(Protocol):
    """Render short user-facing messages."""

    def info(self, message: str) -> None:
        """Show an informational message."""

        raise NotImplementedError

    def warn(self, message: str) -> None:
        """Show a warning message."""

        raise NotImplementedError

    def error(self, message: str) -> None:
        """Show an error message."""

        raise NotImplementedError


@runtime_checkable
class Workspace(Protocol):
    """Expose the project roots and the currently open documents."""

    def roots(self) -> Sequence[Path]:
        """Return the workspace folders in declaration order."""

        raise NotImplementedError

    def open_documents(self) -> Sequence[TextDocument]:
        """Return the documents currently open in the host."""

        raise NotImplementedError


@dataclass(slots=True)
class StaticWorkspace:
    """:class:`Workspace` over a fixed set of roots and documents."""

    folders: list[Path] = field(default_factory=list)
    documents: list[TextDocument] = field(default_factory=list)

    def roots(self) -> Sequence[Path]:
        return tuple(self.folders)

    def open_documents(self) -> Sequence[TextDocument]:
        return tuple(self.documents)


__all__ = ["Notifier", "StaticWorkspace", "Workspace"]
