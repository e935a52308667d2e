# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``phpsab sniff``: run phpcs over files and render the diagnostics."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

import typer
from rich import box
from rich.table import Table

from ..models import Diagnostic, Severity, TextDocument
from ..settings import SettingsStore
from ..sniffer import Sniffer
from .shared import CLIError, CLILogger, build_cli_logger, configure_debug_logging, load_store, read_document


async def sniff_documents(
    store: SettingsStore,
    documents: Sequence[TextDocument],
    *,
    notifier: CLILogger | None = None,
) -> dict[str, list[Diagnostic]]:
    """Validate ``documents`` concurrently and return diagnostics per document key."""

    sniffer = Sniffer(store, notifier=notifier)
    sniffer.refresh(documents)
    await sniffer.join()
    return {document.key: sniffer.collection.get(document.key) for document in documents}


def build_table(documents: Sequence[TextDocument], results: dict[str, list[Diagnostic]]) -> Table:
    table = Table(title="phpcs", box=box.SIMPLE, expand=True)
    table.add_column("File", style="bold")
    table.add_column("Line", justify="right")
    table.add_column("Col", justify="right")
    table.add_column("Severity")
    table.add_column("Message", overflow="fold")
    table.add_column("Source")
    for document in documents:
        for diagnostic in results.get(document.key, []):
            style = "red" if diagnostic.severity is Severity.ERROR else "yellow"
            line, column = diagnostic.range_start
            table.add_row(
                document.file_name,
                str(line + 1),
                str(column + 1),
                f"[{style}]{diagnostic.severity.value}[/]",
                diagnostic.message,
                diagnostic.code or "-",
            )
    return table


def sniff_command(
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="PHP files to check."),
    root: Path = typer.Option(Path.cwd(), "--root", "-r", help="Project root."),
    user_config: Path | None = typer.Option(None, "--user-config", help="User-level settings file."),
    debug: bool = typer.Option(False, "--debug", help="Print the phpsab log channel to stderr."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji in console output."),
) -> None:
    """Check FILES with phpcs; exit 1 when any error is reported."""

    logger = build_cli_logger(emoji=not no_emoji)
    configure_debug_logging(debug)
    try:
        store = load_store(root, logger=logger, user_config=user_config, debug=debug)
        documents = [read_document(path) for path in files]
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc

    if not any(store.resource_for(document.path).sniffer_enable for document in documents):
        logger.fail("The sniffer is disabled or phpcs was not found.")
        raise typer.Exit(code=1)

    results = asyncio.run(sniff_documents(store, documents, notifier=logger))
    diagnostics = [diagnostic for entries in results.values() for diagnostic in entries]
    if not diagnostics:
        logger.ok("No issues found.")
        return
    logger.console.print(build_table(documents, results))
    errors = sum(1 for diagnostic in diagnostics if diagnostic.severity is Severity.ERROR)
    warnings = len(diagnostics) - errors
    summary = f"{errors} error(s), {warnings} warning(s)"
    if errors:
        logger.fail(summary)
        raise typer.Exit(code=1)
    logger.warn(summary)


__all__ = ["build_table", "sniff_command", "sniff_documents"]
