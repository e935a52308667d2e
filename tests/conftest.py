# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import stat
from collections.abc import Callable
from pathlib import Path

import pytest
from support import RecordingNotifier, StaticLoader

from phpsab.config import ResourceConfig, Settings
from phpsab.output import get_output_channel
from phpsab.settings import SettingsStore


@pytest.fixture(autouse=True)
def _reset_debug_mode() -> None:
    get_output_channel().set_debug_mode(False)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_store() -> Callable[..., SettingsStore]:
    """Return a factory building a store around one project root.

    Keyword overrides naming a :class:`Settings` field apply globally; the
    rest configure the root's :class:`ResourceConfig`.
    """

    def _factory(
        root: Path | None,
        *,
        notifier: RecordingNotifier | None = None,
        **overrides: object,
    ) -> SettingsStore:
        global_keys = {key: overrides.pop(key) for key in list(overrides) if key in Settings.model_fields}
        resource_values: dict[str, object] = {
            "fixer_executable_path": "/opt/php/phpcbf",
            "sniffer_executable_path": "/opt/php/phpcs",
            "auto_ruleset_search": False,
        }
        resource_values.update(overrides)
        resources = (ResourceConfig(project_root=root, **resource_values),) if root is not None else ()
        settings = Settings(resources=resources, **global_keys)
        return SettingsStore(StaticLoader(settings), notifier=notifier)  # type: ignore[arg-type]

    return _factory


@pytest.fixture
def write_script() -> Callable[[Path, str], Path]:
    """Return a helper writing an executable POSIX shell script."""

    def _write(path: Path, body: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body.strip() + "\n", encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write
