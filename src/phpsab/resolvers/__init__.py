# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Public exports for executable and standard resolution."""

from __future__ import annotations

from .composer import CODESNIFFER_PACKAGE, DEFAULT_MANIFEST, resolve_composer_executable
from .executable import (
    ResolvedExecutable,
    ResolverOptions,
    ResolverStrategy,
    build_strategies,
    executable_exists,
    resolve_executable,
    resolve_executable_path,
    run_strategies,
)
from .standards import StandardsResolver, classify_standard, validate_standard

__all__ = [
    "CODESNIFFER_PACKAGE",
    "DEFAULT_MANIFEST",
    "ResolvedExecutable",
    "ResolverOptions",
    "ResolverStrategy",
    "StandardsResolver",
    "build_strategies",
    "classify_standard",
    "executable_exists",
    "resolve_composer_executable",
    "resolve_executable",
    "resolve_executable_path",
    "run_strategies",
    "validate_standard",
]
