# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Validate the configured coding standard and discover ruleset files."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Final, Literal

from ..errors import ConfigurationError
from ..output import OutputChannel, get_output_channel

if TYPE_CHECKING:
    from ..config import ResourceConfig

StandardKind = Literal["name", "ruleset", "path"]

_BARE_NAME: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]+$")
_RULESET_FILE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_.-]+\.xml(?:\.dist)?$")
_SAFE_PATH: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_.~/\\: -]+$")


def classify_standard(value: str) -> StandardKind | None:
    """Return the grammar ``value`` belongs to, or ``None`` when it is unsafe.

    Args:
        value: A single standard (no commas).

    Returns:
        StandardKind | None: ``"name"`` for bare names such as ``PSR12``,
        ``"ruleset"`` for ruleset file names, ``"path"`` for path-like values.
    """

    if not value or value.startswith("-"):
        return None
    if _BARE_NAME.fullmatch(value):
        return "name"
    if _RULESET_FILE.fullmatch(value):
        return "ruleset"
    if _SAFE_PATH.fullmatch(value):
        return "path"
    return None


def validate_standard(configured: str | None) -> str:
    """Return ``configured`` normalised, raising when any entry is unsafe.

    Args:
        configured: Configured standard; may list several, comma-separated.

    Returns:
        str: The configured value, ``""`` when unset.

    Raises:
        ConfigurationError: If an entry does not match any accepted grammar.
    """

    if not configured:
        return ""
    for entry in configured.split(","):
        if classify_standard(entry.strip()) is None:
            raise ConfigurationError(
                f'Invalid coding standard "{entry.strip()}". Use a standard name (letters, digits, "-" or "_"), '
                "a ruleset file name or a path made of safe characters.",
            )
    return configured


def is_bare_standard(configured: str) -> bool:
    """Return ``True`` when every comma-separated entry is a bare standard name."""

    entries = [entry.strip() for entry in configured.split(",")]
    return bool(configured) and all(classify_standard(entry) == "name" for entry in entries)


def search_directories(document_path: Path, project_root: Path) -> list[Path]:
    """Return the directories from the document's folder up to the root, root last."""

    root = Path(os.path.abspath(project_root))
    current = Path(os.path.abspath(document_path)).parent
    directories: list[Path] = []
    while True:
        directories.append(current)
        if current == root or current.parent == current:
            break
        current = current.parent
    if directories[-1] != root:
        directories.append(root)
    return directories


def _is_usable_ruleset(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK | os.W_OK)


class StandardsResolver:
    """Resolve the standard passed to the tools for one document.

    Results are cached per resolver; the owning settings store replaces the
    resolver whenever settings are reloaded.
    """

    def __init__(self, *, channel: OutputChannel | None = None) -> None:
        self._channel = channel or get_output_channel()
        self._cache: dict[tuple[ResourceConfig, Path], str] = {}

    def resolve(self, document_path: Path, resource: ResourceConfig) -> str:
        """Return the standard for ``document_path``.

        Args:
            document_path: Path of the document being processed.
            resource: Settings snapshot of the document's project root.

        Returns:
            str: Ruleset path, configured value, or ``""`` for the tool default.

        Raises:
            ConfigurationError: If the configured standard is syntactically invalid.
        """

        configured = validate_standard(resource.standard)
        if not resource.auto_ruleset_search or resource.project_root is None:
            return configured
        if not resource.contains(document_path) or is_bare_standard(configured):
            return configured

        directory = Path(os.path.abspath(document_path)).parent
        key = (resource, directory)
        if key in self._cache:
            return self._cache[key]

        directories = search_directories(document_path, resource.project_root)
        self._channel.info("Standards search paths:", [str(entry) for entry in directories])
        resolved = configured
        for candidate_dir in directories:
            found = next(
                (
                    candidate_dir / name
                    for name in resource.allowed_auto_rulesets
                    if _is_usable_ruleset(candidate_dir / name)
                ),
                None,
            )
            if found is not None:
                resolved = str(found)
                break
        self._cache[key] = resolved
        return resolved

    def clear(self) -> None:
        self._cache.clear()


__all__ = [
    "StandardKind",
    "StandardsResolver",
    "classify_standard",
    "is_bare_standard",
    "search_directories",
    "validate_standard",
]
