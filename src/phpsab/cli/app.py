# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring the phpsab commands."""

from __future__ import annotations

from .doctor import doctor_command
from .fix import fix_command
from .sniff import sniff_command
from .typer_ext import create_typer

app = create_typer(
    name="phpsab",
    help="Run PHP_CodeSniffer (phpcs) and its fixer (phpcbf) the way an editor integration does.",
    no_args_is_help=True,
    add_completion=False,
)
app.command("fix", help="Fix a PHP file with phpcbf.")(fix_command)
app.command("sniff", help="Check PHP files with phpcs.")(sniff_command)
app.command("doctor", help="Show the resolved executables, versions and standard.")(doctor_command)


def main() -> None:
    app()


__all__ = ["app", "main"]
