# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Asynchronous, cancelable phpcs integration publishing diagnostics."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import Final, Protocol

from pydantic import ValidationError

from .arguments import ToolMode, prepare_args
from .config import ResourceConfig, Settings, SnifferMode
from .error_classifier import ClassifiedError, classify, is_php_not_found, php_not_found_message
from .errors import ConfigError, ConfigurationError, ReportParseError
from .interfaces import Notifier, Workspace
from .models import PHP_LANGUAGE_ID, Diagnostic, ReportMessage, Severity, SnifferReport, TextDocument
from .output import OutputChannel, get_output_channel
from .process_utils import RunResult, run_shell_command_async
from .settings import SettingsStore

FIXABLE_MARKER: Final[str] = " [fixable]"
KILLED_MESSAGE: Final[str] = (
    "SNIFFER: The process was terminated because the document could not be written to its standard input."
)


class AsyncRunner(Protocol):
    """Coroutine function running a tool; see :func:`run_shell_command_async`."""

    def __call__(
        self,
        command_path: str,
        args: Sequence[str],
        *,
        input_text: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> Awaitable[RunResult]:
        """Start the command and return an awaitable for its result."""

        raise NotImplementedError


class RunState(str, Enum):
    """Per-document scheduling state."""

    IDLE = "idle"
    PENDING = "pending"
    RUNNING = "running"


class CancellationToken:
    """Cooperative cancellation flag owned by one sniffer run."""

    __slots__ = ("_cancelled", "_disposed")

    def __init__(self) -> None:
        self._cancelled = False
        self._disposed = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def disposed(self) -> bool:
        return self._disposed

    def cancel(self) -> None:
        self._cancelled = True

    def dispose(self) -> None:
        self._disposed = True


class DiagnosticCollection:
    """Ordered diagnostic lists keyed by document identity."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Diagnostic, ...]] = {}

    def set(self, key: str, diagnostics: Sequence[Diagnostic]) -> None:
        """Replace the diagnostics of ``key`` in one step."""

        self._entries[key] = tuple(diagnostics)

    def get(self, key: str) -> list[Diagnostic]:
        return list(self._entries.get(key, ()))

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[tuple[str, list[Diagnostic]]]:
        for key, diagnostics in list(self._entries.items()):
            yield key, list(diagnostics)

    def __len__(self) -> int:
        return len(self._entries)


def to_diagnostic(item: ReportMessage, *, show_sources: bool, show_fixable: bool) -> Diagnostic:
    """Convert a one-based report message into a zero-based point diagnostic."""

    line = max(item.line - 1, 0)
    column = max(item.column - 1, 0)
    text = item.message
    if show_fixable and item.fixable:
        text += FIXABLE_MARKER
    if show_sources and item.source:
        text += f"\n({item.source})"
    return Diagnostic(
        range_start=(line, column),
        range_end=(line, column),
        severity=Severity.ERROR if item.is_error else Severity.WARNING,
        message=text,
        fixable=item.fixable,
        code=item.source or None,
    )


def parse_report(
    stdout: str,
    stderr: str = "",
    *,
    show_sources: bool = False,
    show_fixable: bool = False,
) -> list[Diagnostic]:
    """Parse a ``--report=json`` payload into diagnostics in report order.

    Raises:
        ReportParseError: If ``stdout`` is not a valid report.
    """

    try:
        report = SnifferReport.model_validate_json(stdout)
    except ValidationError as exc:
        raise ReportParseError(f"Unable to parse the sniffer report: {exc}", stdout=stdout, stderr=stderr) from exc
    return [
        to_diagnostic(item, show_sources=show_sources, show_fixable=show_fixable)
        for file_report in report.files.values()
        for item in file_report.messages
    ]


def classify_sniffer_result(result: RunResult) -> ClassifiedError | None:
    """Return the error for a run that produced no usable report, else ``None``."""

    if result.killed:
        detail = str(result.spawn_error) if result.spawn_error is not None else result.stderr
        return ClassifiedError(message=KILLED_MESSAGE, log_detail=detail)
    if is_php_not_found(result.stderr):
        return ClassifiedError(message=php_not_found_message(ToolMode.SNIFFER), log_detail=result.stderr)
    if result.exit_code is None and result.spawn_error is not None:
        return classify(result.spawn_error, ToolMode.SNIFFER)
    if not result.stdout.strip():
        message = "SNIFFER: The sniffer produced no report"
        if result.exit_code is not None:
            message += f" (exit code {result.exit_code})"
        message += "."
        if result.stderr.strip():
            message += f"\n{result.stderr.strip()}"
        return ClassifiedError(message=message, log_detail=result.stderr)
    return None


class Sniffer:
    """Validate documents with phpcs, keeping one live run per document.

    All public methods must be called from the event loop thread; runs are
    scheduled as tasks on the running loop.
    """

    def __init__(
        self,
        store: SettingsStore,
        *,
        collection: DiagnosticCollection | None = None,
        notifier: Notifier | None = None,
        workspace: Workspace | None = None,
        runner: AsyncRunner | Callable[..., Awaitable[RunResult]] = run_shell_command_async,
        channel: OutputChannel | None = None,
    ) -> None:
        self._store = store
        self._collection = collection if collection is not None else DiagnosticCollection()
        self._notifier = notifier
        self._workspace = workspace
        self._runner = runner
        self._channel = channel or get_output_channel()
        self._tokens: dict[str, CancellationToken] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def collection(self) -> DiagnosticCollection:
        return self._collection

    def state(self, document: TextDocument) -> RunState:
        key = document.key
        if key in self._timers:
            return RunState.PENDING
        if key in self._tokens:
            return RunState.RUNNING
        return RunState.IDLE

    def validate(self, document: TextDocument) -> asyncio.Task[None] | None:
        """Start a run for ``document``, superseding any run already in flight.

        Returns immediately; diagnostics are published when the run finishes.

        Args:
            document: Snapshot of the document to validate.

        Returns:
            asyncio.Task[None] | None: The scheduled run, or ``None`` when the
            document is not PHP or the sniffer is disabled for its root.
        """

        loop = asyncio.get_running_loop()
        key = document.key
        self._cancel_timer(key)
        self._cancel_run(key)
        settings = self._store.settings
        resource = settings.resource_for(document.path)
        if document.language_id != PHP_LANGUAGE_ID or not resource.sniffer_enable:
            return None

        token = CancellationToken()
        self._tokens[key] = token

        task = loop.create_task(self._run(document, settings, resource, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def on_did_open(self, document: TextDocument) -> asyncio.Task[None] | None:
        return self.validate(document)

    def on_did_save(self, document: TextDocument) -> asyncio.Task[None] | None:
        if self._store.settings.sniffer_mode is not SnifferMode.ON_SAVE:
            return None
        return self.validate(document)

    def on_did_change(self, document: TextDocument) -> None:
        """Debounce a change event; only the last change after the delay runs."""

        settings = self._store.settings
        if settings.sniffer_mode is not SnifferMode.ON_TYPE:
            return
        key = document.key
        self._cancel_timer(key)
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(settings.sniffer_type_delay / 1000, self._fire, document)

    def on_did_close(self, document: TextDocument) -> None:
        key = document.key
        self._cancel_timer(key)
        self._cancel_run(key)
        self._collection.delete(key)

    def refresh(self, documents: Sequence[TextDocument] | None = None) -> list[asyncio.Task[None]]:
        """Cancel every run, clear every diagnostic and validate the open documents again."""

        for key in list(self._timers):
            self._cancel_timer(key)
        for key in list(self._tokens):
            self._cancel_run(key)
        self._collection.clear()
        if documents is None:
            documents = self._workspace.open_documents() if self._workspace is not None else ()
        tasks = [self.validate(document) for document in documents]
        return [task for task in tasks if task is not None]

    def on_config_change(self) -> list[asyncio.Task[None]]:
        """Reload settings and refresh; a broken configuration keeps the old one."""

        try:
            self._store.reload()
        except ConfigError as exc:
            self._surface(ClassifiedError(message=str(exc), log_detail=""))
            return []
        return self.refresh()

    def on_workspace_folders_changed(self, roots: Sequence[Path]) -> list[asyncio.Task[None]]:
        try:
            self._store.set_roots(roots)
        except ConfigError as exc:
            self._surface(ClassifiedError(message=str(exc), log_detail=""))
            return []
        return self.refresh()

    async def join(self) -> None:
        """Wait until every scheduled run has finished."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def dispose(self) -> None:
        """Cancel timers and runs, then clear every diagnostic."""

        for key in list(self._timers):
            self._cancel_timer(key)
        for key in list(self._tokens):
            self._cancel_run(key)
        for task in list(self._tasks):
            task.cancel()
        self._collection.clear()

    def _fire(self, document: TextDocument) -> None:
        self._timers.pop(document.key, None)
        self.validate(document)

    def _cancel_timer(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _cancel_run(self, key: str) -> None:
        token = self._tokens.pop(key, None)
        if token is not None:
            token.cancel()
            token.dispose()

    async def _run(
        self,
        document: TextDocument,
        settings: Settings,
        resource: ResourceConfig,
        token: CancellationToken,
    ) -> None:
        timer_key = f"Sniffer ({document.file_name}, run {id(token):x})"
        self._channel.start_timer(timer_key)
        try:
            await self._execute(document, settings, resource, token)
        finally:
            self._channel.end_timer(timer_key)
            token.dispose()
            if self._tokens.get(document.key) is token:
                del self._tokens[document.key]

    async def _execute(
        self,
        document: TextDocument,
        settings: Settings,
        resource: ResourceConfig,
        token: CancellationToken,
    ) -> None:
        key = document.key
        try:
            standard = self._store.resolve_standard(document.path, resource)
        except ConfigurationError as exc:
            self._surface(ClassifiedError(message=str(exc), log_detail=""))
            return
        args = prepare_args(
            document.file_name,
            standard,
            resource.sniffer_arguments,
            ToolMode.SNIFFER,
            notifier=self._notifier,
            channel=self._channel,
        )
        command_path = resource.sniffer_executable_path
        self._channel.info(f"SNIFFER COMMAND: {command_path} {' '.join(args)}")
        result = await self._runner(command_path, args, input_text=document.text, cwd=resource.project_root)

        if token.is_cancelled:
            self._channel.debug(f"Discarding the result of a superseded run for {document.file_name}.")
            return
        failure = classify_sniffer_result(result)
        if failure is not None:
            self._surface(failure)
            return
        try:
            diagnostics = parse_report(
                result.stdout,
                result.stderr,
                show_sources=settings.sniffer_show_sources,
                show_fixable=settings.sniffer_show_fixable,
            )
        except ReportParseError as exc:
            if key not in self._timers:
                self._collection.delete(key)
            self._surface(ClassifiedError(message=exc.describe(), log_detail=str(exc.__cause__ or "")))
            return
        self._collection.set(key, diagnostics)

    def _surface(self, failure: ClassifiedError) -> None:
        self._channel.error(failure.message, failure.log_detail or None)
        if self._notifier is not None:
            self._notifier.error(failure.message)


__all__ = [
    "AsyncRunner",
    "CancellationToken",
    "DiagnosticCollection",
    "RunState",
    "Sniffer",
    "classify_sniffer_result",
    "parse_report",
    "to_diagnostic",
]
