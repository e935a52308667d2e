# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``phpsab fix``: run phpcbf over one file."""

from __future__ import annotations

import difflib
from pathlib import Path

import typer

from ..errors import ConfigurationError, ToolEnvironmentError, ToolExecutionError
from ..fixer import FIXER_DISABLED_MESSAGE, Fixer
from ..outcomes import Fixed, NoChange, PartialFailure, raise_for_failure
from .shared import CLIError, build_cli_logger, configure_debug_logging, load_store, read_document


def render_diff(path: Path, original: str, fixed: str) -> str:
    """Return a unified diff between ``original`` and ``fixed``."""

    return "".join(
        difflib.unified_diff(
            original.splitlines(keepends=True),
            fixed.splitlines(keepends=True),
            fromfile=f"a/{path.name}",
            tofile=f"b/{path.name}",
        ),
    )


def fix_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="PHP file to fix."),
    root: Path = typer.Option(Path.cwd(), "--root", "-r", help="Project root."),
    write: bool = typer.Option(
        False,
        "--write/--diff",
        help="Write the fixed content back to FILE instead of printing a unified diff.",
    ),
    user_config: Path | None = typer.Option(None, "--user-config", help="User-level settings file."),
    debug: bool = typer.Option(False, "--debug", help="Print the phpsab log channel to stderr."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji in console output."),
) -> None:
    """Fix FILE with phpcbf and show or apply the result."""

    logger = build_cli_logger(emoji=not no_emoji)
    configure_debug_logging(debug)
    try:
        store = load_store(root, logger=logger, user_config=user_config, debug=debug)
        document = read_document(file)
        if not store.resource_for(document.path).fixer_enable:
            raise CLIError(FIXER_DISABLED_MESSAGE)
        fixer = Fixer(store, notifier=logger)
        try:
            outcome = fixer.format(document)
        except ConfigurationError as exc:
            raise CLIError(str(exc)) from exc
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc

    try:
        raise_for_failure(outcome)
    except (ToolExecutionError, ToolEnvironmentError) as exc:
        raise typer.Exit(code=1) from exc
    if isinstance(outcome, NoChange):
        logger.ok(outcome.message)
        return
    if not isinstance(outcome, (Fixed, PartialFailure)):
        return

    if isinstance(outcome, PartialFailure):
        logger.warn(outcome.detail)
    if write:
        file.write_text(outcome.content, encoding="utf-8")
        logger.ok(f"Fixed {file}")
    else:
        logger.echo(render_diff(file, document.text, outcome.content))


__all__ = ["fix_command", "render_diff"]
