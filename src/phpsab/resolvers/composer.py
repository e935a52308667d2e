# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Locate project-local PHP_CodeSniffer executables installed by Composer."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from ..output import OutputChannel, get_output_channel

DEFAULT_MANIFEST: Final[str] = "composer.json"
CODESNIFFER_PACKAGE: Final[str] = "squizlabs/php_codesniffer"
_LOCK_SECTIONS: Final[tuple[str, ...]] = ("packages", "packages-dev")


def locate_manifest(project_root: Path, manifest_path: str) -> Path | None:
    """Return the manifest location for ``project_root``.

    Absolute manifest paths are returned unchanged. Relative paths are
    joined to the project root and must resolve to an existing file; a
    relative path naming a directory looks for ``composer.json`` inside it.

    Args:
        project_root: Root directory of the project.
        manifest_path: Configured manifest path, absolute or relative.

    Returns:
        Path | None: Real path of the manifest, or ``None`` when missing.
    """

    configured = Path(manifest_path or DEFAULT_MANIFEST)
    if configured.is_absolute():
        return configured
    candidate = project_root / configured
    if candidate.is_dir():
        candidate = candidate / DEFAULT_MANIFEST
    try:
        return candidate.resolve(strict=True)
    except (OSError, RuntimeError):
        return None


def read_json_document(path: Path) -> Mapping[str, Any] | None:
    """Return the JSON object stored at ``path`` or ``None`` when unusable."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    return payload if isinstance(payload, Mapping) else None


def vendor_executable_path(manifest: Path, config: Mapping[str, Any], executable_file: str) -> Path:
    """Return where Composer installs ``executable_file`` for ``manifest``.

    ``config.bin-dir`` wins over ``config.vendor-dir``; the default is
    ``vendor/bin`` beside the manifest.
    """

    base = manifest.parent
    settings = config.get("config")
    if isinstance(settings, Mapping):
        bin_dir = settings.get("bin-dir")
        if isinstance(bin_dir, str) and bin_dir:
            return base / bin_dir / executable_file
        vendor_dir = settings.get("vendor-dir")
        if isinstance(vendor_dir, str) and vendor_dir:
            return base / vendor_dir / "bin" / executable_file
    return base / "vendor" / "bin" / executable_file


def lock_declares_package(lock: Mapping[str, Any], package: str = CODESNIFFER_PACKAGE) -> bool:
    """Return ``True`` when ``package`` appears in the lock file's package lists."""

    for section in _LOCK_SECTIONS:
        entries = lock.get(section)
        if not isinstance(entries, list):
            continue
        if any(isinstance(entry, Mapping) and entry.get("name") == package for entry in entries):
            return True
    return False


def is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def resolve_composer_executable(
    project_root: Path,
    manifest_path: str,
    executable_file: str,
    *,
    channel: OutputChannel | None = None,
) -> str:
    """Return the project-local executable path, or ``""`` when not usable.

    Args:
        project_root: Root directory of the project.
        manifest_path: Configured manifest path.
        executable_file: Platform-specific executable file name.
        channel: Log channel receiving the reasons for a miss.

    Returns:
        str: Absolute path of the executable, or an empty string.
    """

    log = channel or get_output_channel()
    manifest = locate_manifest(project_root, manifest_path)
    if manifest is None:
        log.debug(
            "Unable to locate the composer.json file.",
            {"executable": executable_file, "root": str(project_root), "manifest": manifest_path},
        )
        return ""

    config = read_json_document(manifest)
    if config is None:
        log.debug(f"Ignoring unreadable manifest {manifest}.")
        return ""

    lock_path = manifest.with_suffix(".lock")
    if lock_path.exists():
        lock = read_json_document(lock_path)
        if lock is None or not lock_declares_package(lock):
            log.debug(f"{CODESNIFFER_PACKAGE} is not listed in {lock_path}; ignoring the vendor directory.")
            return ""

    candidate = vendor_executable_path(manifest, config, executable_file)
    if not is_executable(candidate):
        try:
            relative = os.path.relpath(candidate, project_root)
        except ValueError:
            relative = str(candidate)
        log.debug(f'{executable_file} was not found in {relative}. You may need to run "composer install".')
        return ""
    return str(candidate.absolute())


__all__ = [
    "CODESNIFFER_PACKAGE",
    "DEFAULT_MANIFEST",
    "is_executable",
    "locate_manifest",
    "lock_declares_package",
    "read_json_document",
    "resolve_composer_executable",
    "vendor_executable_path",
]
