# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``phpsab doctor``: report resolved executables, versions and the standard."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.rule import Rule
from rich.table import Table

from ..config import FIXER_TOOL, SNIFFER_TOOL, ResourceConfig
from ..errors import ConfigurationError
from ..resolvers.executable import ResolvedExecutable, executable_exists, resolve_executable
from ..settings import SettingsStore
from ..versioning import MINIMUM_CODESNIFFER_VERSION, VersionResolver
from .shared import CLIError, build_cli_logger, configure_debug_logging, load_store

SAMPLE_DOCUMENT = "__phpsab_sample__.php"


@dataclass(slots=True)
class ToolReport:
    """Doctor findings for one executable."""

    tool: str
    enabled: bool
    resolved: ResolvedExecutable
    version: str | None
    status: str
    notes: str

    @property
    def healthy(self) -> bool:
        return self.status in {"ok", "outdated", "unknown"}


def inspect_tool(
    store: SettingsStore,
    resource: ResourceConfig,
    tool: str,
    *,
    versions: VersionResolver | None = None,
) -> ToolReport:
    """Resolve ``tool`` for ``resource`` and capture its version."""

    fragment, _ = store.loader.load_fragment(resource.project_root)
    configured = fragment.get(f"{'fixer' if tool == FIXER_TOOL else 'sniffer'}_executable_path", "")
    resolved = resolve_executable(
        resource.resolver_options(),
        tool,
        explicit_path=configured if isinstance(configured, str) else "",
    )
    enabled = resource.fixer_enable if tool == FIXER_TOOL else resource.sniffer_enable
    if not executable_exists(resolved.path):
        return ToolReport(tool, enabled, resolved, None, "missing", f"{tool} was not found")

    resolver = versions or VersionResolver()
    version = resolver.capture(resolved.path)
    if version is None:
        return ToolReport(tool, enabled, resolved, None, "unknown", "unable to read the version")
    if not resolver.is_compatible(version, MINIMUM_CODESNIFFER_VERSION):
        notes = f"version {version} is older than the supported minimum {MINIMUM_CODESNIFFER_VERSION}"
        return ToolReport(tool, enabled, resolved, version, "outdated", notes)
    return ToolReport(tool, enabled, resolved, version, "ok", "")


def run_doctor(
    store: SettingsStore,
    root: Path,
    *,
    console: Console,
    versions: VersionResolver | None = None,
) -> int:
    """Render the doctor report and return an exit status (0 healthy, 1 otherwise)."""

    console.print(Rule("[bold cyan]phpsab Doctor[/bold cyan]"))
    sample = root / SAMPLE_DOCUMENT
    resource = store.resource_for(sample)

    reports = [inspect_tool(store, resource, tool, versions=versions) for tool in (SNIFFER_TOOL, FIXER_TOOL)]
    tool_table = Table(title="Executables", box=box.SIMPLE, expand=True)
    tool_table.add_column("Tool", style="bold")
    tool_table.add_column("Enabled")
    tool_table.add_column("Source")
    tool_table.add_column("Path", overflow="fold")
    tool_table.add_column("Version")
    tool_table.add_column("Status")
    tool_table.add_column("Notes", overflow="fold")
    for report in reports:
        style = {"ok": "green", "outdated": "yellow", "unknown": "yellow"}.get(report.status, "red")
        tool_table.add_row(
            report.tool,
            "yes" if report.enabled else "no",
            report.resolved.source or "-",
            report.resolved.path or "-",
            report.version or "-",
            f"[{style}]{report.status}[/]",
            report.notes or "-",
        )
    console.print(tool_table)

    unhealthy = not all(report.healthy for report in reports)
    try:
        standard = store.resolve_standard(sample, resource) or "(tool default)"
        standard_style = "green"
    except ConfigurationError as exc:
        standard = str(exc)
        standard_style = "red"
        unhealthy = True
    console.print(Panel(f"[{standard_style}]{standard}[/]", title="Standard (project root)"))

    result = store.last_result
    if result is not None and result.warnings:
        console.print(Panel(Pretty(list(result.warnings)), title="Configuration Warnings", border_style="yellow"))

    overall_style = "red" if unhealthy else "green"
    console.print(Panel(f"[{overall_style}]Doctor completed[/]", border_style=overall_style))
    return 1 if unhealthy else 0


def doctor_command(
    root: Path = typer.Option(Path.cwd(), "--root", "-r", help="Project root."),
    user_config: Path | None = typer.Option(None, "--user-config", help="User-level settings file."),
    debug: bool = typer.Option(False, "--debug", help="Print the phpsab log channel to stderr."),
    no_emoji: bool = typer.Option(False, "--no-emoji", help="Disable emoji in console output."),
) -> None:
    """Show which phpcs/phpcbf would run for the project, and their versions."""

    logger = build_cli_logger(emoji=not no_emoji)
    configure_debug_logging(debug)
    try:
        store = load_store(root, logger=logger, user_config=user_config, debug=debug)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    raise typer.Exit(code=run_doctor(store, root, console=logger.console))


__all__ = ["ToolReport", "doctor_command", "inspect_tool", "run_doctor"]
