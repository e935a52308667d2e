# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (logging, errors, settings loading)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console

from ..config_loader import SettingsLoader
from ..console import get_console_registry
from ..errors import ConfigError
from ..logging import fail as core_fail
from ..logging import info as core_info
from ..logging import ok as core_ok
from ..logging import warn as core_warn
from ..models import TextDocument
from ..output import LOGGER_NAME, get_output_channel
from ..settings import SettingsStore


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around the console helpers; also usable as a notifier."""

    console: Console
    use_emoji: bool

    def fail(self, message: str) -> None:
        core_fail(message, use_emoji=self.use_emoji)

    def error(self, message: str) -> None:
        self.fail(message)

    def warn(self, message: str) -> None:
        core_warn(message, use_emoji=self.use_emoji)

    def ok(self, message: str) -> None:
        core_ok(message, use_emoji=self.use_emoji)

    def info(self, message: str) -> None:
        core_info(message, use_emoji=self.use_emoji)

    def echo(self, message: str) -> None:
        """Write ``message`` to stdout unchanged."""

        typer.echo(message, nl=False)


def build_cli_logger(*, emoji: bool = True, no_color: bool = False) -> CLILogger:
    console = get_console_registry().get(color=not no_color, emoji=emoji)
    return CLILogger(console=console, use_emoji=emoji)


def configure_debug_logging(debug: bool, *, no_color: bool = False) -> None:
    """Route the ``phpsab`` log channel to the stderr console when ``debug`` is set."""

    if not debug:
        return
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(get_console_registry().log_handler(color=not no_color))
    get_output_channel().set_debug_mode(True)


def load_store(
    root: Path,
    *,
    logger: CLILogger,
    user_config: Path | None = None,
    debug: bool = False,
) -> SettingsStore:
    """Load settings for ``root`` and raise ``CLIError`` on failure.

    Args:
        root: Project root directory holding the configuration files.
        logger: CLI logger used for warnings and failures.
        user_config: Optional user-level configuration override.
        debug: Force debug output regardless of the configured ``debug`` key.

    Returns:
        SettingsStore: Store holding the loaded snapshot.

    Raises:
        CLIError: If loading fails because the configuration is invalid.
    """

    store = SettingsStore(SettingsLoader([root], user_config=user_config), notifier=logger)
    try:
        store.reload()
    except ConfigError as exc:
        raise CLIError(f"Configuration invalid: {exc}") from exc
    if debug:
        get_output_channel().set_debug_mode(True)
    return store


def read_document(path: Path) -> TextDocument:
    """Return a document snapshot for ``path`` or raise ``CLIError``."""

    try:
        return TextDocument.from_path(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise CLIError(f"Unable to read {path}: {exc}") from exc


__all__ = [
    "CLIError",
    "CLILogger",
    "build_cli_logger",
    "configure_debug_logging",
    "load_store",
    "read_document",
]
