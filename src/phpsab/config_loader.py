# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Load layered phpsab settings from defaults, user and project TOML files."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Final, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import (
    DEPRECATED_KEYS,
    FIXER_TOOL,
    GLOBAL_KEYS,
    RESOURCE_KEYS,
    SNIFFER_TOOL,
    ResourceConfig,
    Settings,
)
from .errors import ConfigError, ResolutionFailure
from .output import OutputChannel, get_output_channel
from .resolvers.executable import executable_exists, resolve_executable

USER_CONFIG_NAME: Final[str] = ".phpsab.toml"
PROJECT_CONFIG_NAME: Final[str] = ".phpsab.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "phpsab"


@runtime_checkable
class ConfigSource(Protocol):
    """Provide one layer of raw configuration data."""

    name: str

    def load(self) -> Mapping[str, Any]:
        """Return the configuration fragment held by this source."""

        raise NotImplementedError

    def describe(self) -> str:
        """Return a human-readable description of the source."""

        raise NotImplementedError


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class DefaultConfigSource:
    """Return the built-in defaults as a configuration fragment."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        resource = ResourceConfig().model_dump(mode="json", exclude={"project_root"})
        settings = Settings().model_dump(mode="json", include=set(GLOBAL_KEYS))
        return {**resource, **settings}

    def describe(self) -> str:
        return "Built-in defaults"


class TomlConfigSource:
    """Load configuration data from a TOML document."""

    def __init__(self, path: Path, *, name: str | None = None) -> None:
        self._path = path
        self.name = name or str(path)

    def _read(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            with self._path.open("rb") as handle:
                return tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Failed to parse {self._path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Unable to read {self._path}: {exc}") from exc

    def load(self) -> Mapping[str, Any]:
        return self._read()

    def describe(self) -> str:
        return f"TOML configuration at {self.name}"


class PyProjectConfigSource(TomlConfigSource):
    """Read configuration from ``[tool.phpsab]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        tool_section = self._read().get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return dict(section)

    def describe(self) -> str:
        return f"pyproject.toml ({self.name})"


class SettingsLoadResult(BaseModel):
    """Loaded settings together with the warnings and disabled features."""

    model_config = ConfigDict(frozen=True)

    settings: Settings
    warnings: tuple[str, ...] = ()
    failures: tuple[str, ...] = Field(default=(), description="Reasons features were disabled.")


class SettingsLoader:
    """Build :class:`Settings` snapshots for a set of project roots."""

    def __init__(
        self,
        roots: Sequence[Path] = (),
        *,
        user_config: Path | None = None,
        env: Mapping[str, str] | None = None,
        channel: OutputChannel | None = None,
    ) -> None:
        """Initialise the loader.

        Args:
            roots: Workspace folders in declaration order.
            user_config: Optional user-level file; defaults to ``~/.phpsab.toml``.
            env: Environment used for ``PATH`` lookups; defaults to ``os.environ``.
            channel: Log channel for resolution details.
        """

        self._roots = tuple(Path(os.path.abspath(root)) for root in roots)
        self._user_config = user_config if user_config is not None else Path.home() / USER_CONFIG_NAME
        self._env = env
        self._channel = channel or get_output_channel()

    @property
    def roots(self) -> tuple[Path, ...]:
        return self._roots

    def with_roots(self, roots: Sequence[Path]) -> SettingsLoader:
        """Return a loader sharing this one's user file and environment for ``roots``."""

        return SettingsLoader(roots, user_config=self._user_config, env=self._env, channel=self._channel)

    def sources_for(self, root: Path | None) -> list[ConfigSource]:
        """Return the configuration layers for ``root`` in precedence order."""

        sources: list[ConfigSource] = [
            DefaultConfigSource(),
            TomlConfigSource(self._user_config, name=str(self._user_config)),
        ]
        if root is not None:
            pyproject = root / "pyproject.toml"
            if pyproject.exists():
                sources.append(PyProjectConfigSource(pyproject))
            project_file = root / PROJECT_CONFIG_NAME
            sources.append(TomlConfigSource(project_file, name=str(project_file)))
        return sources

    def load_fragment(self, root: Path | None) -> tuple[dict[str, Any], list[str]]:
        """Return the merged raw configuration for ``root`` and its warnings.

        Raises:
            ConfigError: If a TOML document cannot be parsed.
        """

        merged: dict[str, Any] = {}
        for source in self.sources_for(root):
            merged = _deep_merge(merged, source.load())

        warnings: list[str] = []
        for deprecated, replacement in DEPRECATED_KEYS.items():
            if deprecated in merged:
                merged.pop(deprecated)
                warnings.append(
                    f"The setting {deprecated} is deprecated. "
                    f"Please reset this setting, and use {replacement} instead.",
                )
        for unknown in sorted(set(merged) - RESOURCE_KEYS - GLOBAL_KEYS):
            merged.pop(unknown)
            warnings.append(f"Ignoring unknown setting '{unknown}'.")
        return merged, warnings

    def load(self, *, generation: int = 0) -> SettingsLoadResult:
        """Load, resolve and validate settings for every root.

        Args:
            generation: Counter stamped onto the resulting snapshot.

        Returns:
            SettingsLoadResult: Settings plus collected warnings and the reasons
            any feature was disabled.

        Raises:
            ConfigError: If a file cannot be parsed or holds invalid values.
        """

        warnings: list[str] = []
        failures: list[ResolutionFailure] = []
        resources: list[ResourceConfig] = []
        global_fragment: dict[str, Any] | None = None
        for root in self._roots:
            fragment, fragment_warnings = self.load_fragment(root)
            warnings.extend(fragment_warnings)
            if global_fragment is None:
                global_fragment = fragment
            resource = self._build_resource(fragment, root)
            resources.append(self._validate(self._resolve(resource), failures))

        fallback_fragment, fallback_warnings = self.load_fragment(None)
        if global_fragment is None:
            global_fragment = fallback_fragment
            warnings.extend(fallback_warnings)
        fallback = self._validate(self._resolve(self._build_resource(fallback_fragment, None)), failures)

        try:
            settings = Settings(
                resources=tuple(resources),
                fallback=fallback,
                generation=generation,
                **{key: value for key, value in global_fragment.items() if key in GLOBAL_KEYS},
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid phpsab settings: {exc}") from exc

        for warning in dict.fromkeys(warnings):
            self._channel.warn(warning)
        self._channel.debug("CONFIGURATION", settings.model_dump(mode="json"))
        return SettingsLoadResult(
            settings=settings,
            warnings=tuple(dict.fromkeys(warnings)),
            failures=tuple(str(failure) for failure in failures),
        )

    @staticmethod
    def _build_resource(fragment: Mapping[str, Any], root: Path | None) -> ResourceConfig:
        values = {key: value for key, value in fragment.items() if key in RESOURCE_KEYS}
        try:
            return ResourceConfig(project_root=root, **values)
        except ValidationError as exc:
            location = str(root) if root is not None else "user settings"
            raise ConfigError(f"Invalid phpsab settings for {location}: {exc}") from exc

    def _resolve(self, resource: ResourceConfig) -> ResourceConfig:
        options = resource.resolver_options()
        fixer = resolve_executable(
            options,
            FIXER_TOOL,
            explicit_path=resource.fixer_executable_path,
            env=self._env,
            channel=self._channel,
        )
        sniffer = resolve_executable(
            options,
            SNIFFER_TOOL,
            explicit_path=resource.sniffer_executable_path,
            env=self._env,
            channel=self._channel,
        )
        return resource.model_copy(
            update={"fixer_executable_path": fixer.path, "sniffer_executable_path": sniffer.path},
        )

    def _validate(self, resource: ResourceConfig, failures: list[ResolutionFailure]) -> ResourceConfig:
        location = str(resource.project_root) if resource.project_root is not None else "files outside the workspace"
        checks = (
            ("sniffer_enable", SNIFFER_TOOL, resource.sniffer_enable, resource.sniffer_executable_path),
            ("fixer_enable", FIXER_TOOL, resource.fixer_enable, resource.fixer_executable_path),
        )
        updates: dict[str, bool] = {}
        for flag, tool, enabled, path in checks:
            if not enabled or executable_exists(path):
                continue
            failure = ResolutionFailure(f"The {tool} executable was not found for {location}", tool=tool)
            self._channel.info(str(failure))
            failures.append(failure)
            updates[flag] = False
        return resource.model_copy(update=updates) if updates else resource


__all__ = [
    "ConfigSource",
    "DefaultConfigSource",
    "PyProjectConfigSource",
    "SettingsLoadResult",
    "SettingsLoader",
    "TomlConfigSource",
]
