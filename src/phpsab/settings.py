# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Owned settings snapshot with an explicit reload operation."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from .config import ResourceConfig, Settings
from .config_loader import SettingsLoader, SettingsLoadResult
from .interfaces import Notifier
from .output import OutputChannel, get_output_channel
from .resolvers.standards import StandardsResolver


class SettingsStore:
    """Hold the current :class:`Settings` and the caches derived from them.

    Every :meth:`reload` bumps :attr:`generation` and replaces the standards
    resolver wholesale, so cached lookups never outlive the settings they were
    computed from. Running operations keep the snapshot they captured.
    """

    def __init__(
        self,
        loader: SettingsLoader,
        *,
        notifier: Notifier | None = None,
        channel: OutputChannel | None = None,
    ) -> None:
        self._loader = loader
        self._notifier = notifier
        self._channel = channel or get_output_channel()
        self._generation = 0
        self._result: SettingsLoadResult | None = None
        self._standards = StandardsResolver(channel=self._channel)

    @property
    def loader(self) -> SettingsLoader:
        return self._loader

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def settings(self) -> Settings:
        """Return the current snapshot, loading it on first access."""

        result = self._result if self._result is not None else self._load()
        return result.settings

    @property
    def last_result(self) -> SettingsLoadResult | None:
        return self._result

    @property
    def standards(self) -> StandardsResolver:
        return self._standards

    def reload(self) -> Settings:
        """Load a fresh snapshot and drop every per-generation cache.

        Raises:
            ConfigError: If a configuration file cannot be parsed.
        """

        return self._load().settings

    def _load(self, loader: SettingsLoader | None = None) -> SettingsLoadResult:
        loader = loader or self._loader
        generation = self._generation + 1
        result = loader.load(generation=generation)
        self._loader = loader
        self._generation = generation
        self._result = result
        self._standards = StandardsResolver(channel=self._channel)
        self._channel.set_debug_mode(result.settings.debug)
        if self._notifier is not None:
            for warning in result.warnings:
                self._notifier.warn(warning)
        return result

    def set_roots(self, roots: Sequence[Path]) -> Settings:
        """Switch to a new set of workspace folders and reload.

        The new roots are kept only when their configuration loads.
        """

        return self._load(self._loader.with_roots(roots)).settings

    def resource_for(self, path: Path) -> ResourceConfig:
        return self.settings.resource_for(path)

    def resolve_standard(self, path: Path, resource: ResourceConfig) -> str:
        """Return the standard for ``path`` using the current generation's cache."""

        return self._standards.resolve(path, resource)


__all__ = ["SettingsStore"]
