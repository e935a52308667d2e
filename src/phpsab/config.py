# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for the fixer and sniffer integrations."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from .resolvers.composer import DEFAULT_MANIFEST
from .resolvers.executable import ResolverOptions

FIXER_TOOL: Final[str] = "phpcbf"
SNIFFER_TOOL: Final[str] = "phpcs"
DEFAULT_RULESETS: Final[tuple[str, ...]] = (".phpcs.xml", "phpcs.xml", "phpcs.dist.xml", "ruleset.xml")


class SnifferMode(str, Enum):
    """Event that triggers a sniffer run."""

    ON_SAVE = "onSave"
    ON_TYPE = "onType"


class ResourceConfig(BaseModel):
    """Settings bundle for one project root.

    Instances are frozen; a configuration change produces new instances and
    every operation keeps the snapshot it started with.
    """

    model_config = ConfigDict(frozen=True)

    project_root: Path | None = None
    fixer_enable: bool = True
    fixer_arguments: tuple[str, ...] = ()
    fixer_executable_path: str = ""
    sniffer_enable: bool = True
    sniffer_arguments: tuple[str, ...] = ()
    sniffer_executable_path: str = ""
    composer_json_path: str = DEFAULT_MANIFEST
    standard: str | None = ""
    auto_ruleset_search: bool = True
    allowed_auto_rulesets: tuple[str, ...] = DEFAULT_RULESETS

    def resolver_options(self) -> ResolverOptions:
        """Return the executable resolver input for this root."""

        return ResolverOptions(project_root=self.project_root, manifest_path=self.composer_json_path)

    def contains(self, path: Path) -> bool:
        """Return ``True`` when ``path`` lives under this project root."""

        if self.project_root is None:
            return False
        root = os.path.normcase(os.path.abspath(self.project_root))
        candidate = os.path.normcase(os.path.abspath(path))
        try:
            return os.path.commonpath([root, candidate]) == root
        except ValueError:
            return False


class Settings(BaseModel):
    """Complete settings snapshot produced by one load."""

    model_config = ConfigDict(frozen=True)

    resources: tuple[ResourceConfig, ...] = ()
    fallback: ResourceConfig = Field(default_factory=ResourceConfig)
    sniffer_mode: SnifferMode = SnifferMode.ON_SAVE
    sniffer_type_delay: int = Field(default=250, ge=0)
    sniffer_show_sources: bool = False
    sniffer_show_fixable: bool = False
    fixer_timeout: float = Field(default=30.0, gt=0)
    debug: bool = False
    generation: int = 0

    def resource_for(self, path: Path) -> ResourceConfig:
        """Return the settings of the deepest root containing ``path``.

        Documents outside every root get :attr:`fallback`, whose
        ``project_root`` is ``None``.
        """

        matches = [resource for resource in self.resources if resource.contains(path)]
        if not matches:
            return self.fallback
        return max(matches, key=lambda resource: len(str(resource.project_root)))


RESOURCE_KEYS: Final[frozenset[str]] = frozenset(ResourceConfig.model_fields) - {"project_root"}
GLOBAL_KEYS: Final[frozenset[str]] = frozenset(Settings.model_fields) - {"resources", "fallback", "generation"}
DEPRECATED_KEYS: Final[dict[str, str]] = {
    "executable_path_cs": "sniffer_executable_path",
    "executable_path_cbf": "fixer_executable_path",
}


__all__ = [
    "DEFAULT_RULESETS",
    "DEPRECATED_KEYS",
    "FIXER_TOOL",
    "GLOBAL_KEYS",
    "RESOURCE_KEYS",
    "SNIFFER_TOOL",
    "ResourceConfig",
    "Settings",
    "SnifferMode",
]
