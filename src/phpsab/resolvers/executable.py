# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve tool executables from configuration, Composer, then ``PATH``."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ..output import OutputChannel, get_output_channel
from ..platform import cross_path, env_path_separator, with_executable_suffix
from .composer import DEFAULT_MANIFEST, is_executable, resolve_composer_executable

ResolutionSource = Literal["explicit", "composer", "global"]


@dataclass(frozen=True, slots=True)
class ResolverOptions:
    """Immutable input to executable resolution.

    ``project_root=None`` means there is no project context, which disables
    the Composer lookup.
    """

    project_root: Path | None
    manifest_path: str = DEFAULT_MANIFEST


@dataclass(frozen=True, slots=True)
class ResolverStrategy:
    """One tagged attempt in the resolution chain."""

    source: ResolutionSource
    resolve: Callable[[], str]


@dataclass(frozen=True, slots=True)
class ResolvedExecutable:
    """Outcome of a resolution; ``path`` is empty when nothing was found."""

    path: str
    source: ResolutionSource | None = None

    @property
    def found(self) -> bool:
        return bool(self.path)


def explicit_strategy(configured: str) -> ResolverStrategy:
    """Return the strategy normalising an explicitly configured path."""

    def _resolve() -> str:
        if not configured:
            return ""
        return with_executable_suffix(cross_path(configured))

    return ResolverStrategy(source="explicit", resolve=_resolve)


def composer_strategy(
    project_root: Path,
    manifest_path: str,
    executable_file: str,
    *,
    channel: OutputChannel | None = None,
) -> ResolverStrategy:
    """Return the strategy looking in the project's Composer bin directory."""

    return ResolverStrategy(
        source="composer",
        resolve=lambda: resolve_composer_executable(
            project_root,
            manifest_path,
            executable_file,
            channel=channel,
        ),
    )


def global_strategy(executable_file: str, *, env: Mapping[str, str] | None = None) -> ResolverStrategy:
    """Return the strategy scanning ``PATH`` in declared order."""

    def _resolve() -> str:
        environ = os.environ if env is None else env
        for directory in environ.get("PATH", "").split(env_path_separator()):
            if not directory:
                continue
            candidate = Path(directory) / executable_file
            if is_executable(candidate):
                return str(candidate)
        return ""

    return ResolverStrategy(source="global", resolve=_resolve)


def run_strategies(strategies: Iterable[ResolverStrategy]) -> ResolvedExecutable:
    """Evaluate ``strategies`` in order; the first non-empty path wins."""

    for strategy in strategies:
        resolved = strategy.resolve()
        if resolved:
            return ResolvedExecutable(path=resolved, source=strategy.source)
    return ResolvedExecutable(path="")


def build_strategies(
    options: ResolverOptions,
    tool_name: str,
    *,
    explicit_path: str = "",
    env: Mapping[str, str] | None = None,
    channel: OutputChannel | None = None,
) -> list[ResolverStrategy]:
    """Return the ordered resolution chain for ``tool_name``."""

    executable_file = with_executable_suffix(tool_name)
    strategies = [explicit_strategy(explicit_path)]
    if options.project_root is not None:
        strategies.append(
            composer_strategy(options.project_root, options.manifest_path, executable_file, channel=channel),
        )
    strategies.append(global_strategy(executable_file, env=env))
    return strategies


def resolve_executable(
    options: ResolverOptions,
    tool_name: str,
    *,
    explicit_path: str = "",
    env: Mapping[str, str] | None = None,
    channel: OutputChannel | None = None,
) -> ResolvedExecutable:
    """Resolve ``tool_name`` and report which source produced the path."""

    log = channel or get_output_channel()
    resolved = run_strategies(
        build_strategies(options, tool_name, explicit_path=explicit_path, env=env, channel=log),
    )
    if resolved.found:
        log.debug(f"Resolved {tool_name} from {resolved.source}: {resolved.path}")
    else:
        log.debug(f"Unable to resolve {tool_name}.")
    return resolved


def resolve_executable_path(
    options: ResolverOptions,
    tool_name: str,
    *,
    explicit_path: str = "",
    env: Mapping[str, str] | None = None,
) -> str:
    """Return the path of ``tool_name`` or ``""`` when no source yields one."""

    return resolve_executable(options, tool_name, explicit_path=explicit_path, env=env).path


def executable_exists(path: str) -> bool:
    """Return ``True`` when ``path`` names an executable file."""

    return bool(path) and is_executable(Path(path))


__all__ = [
    "ResolutionSource",
    "ResolvedExecutable",
    "ResolverOptions",
    "ResolverStrategy",
    "build_strategies",
    "composer_strategy",
    "executable_exists",
    "explicit_strategy",
    "global_strategy",
    "resolve_executable",
    "resolve_executable_path",
    "run_strategies",
]
