# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Synchronous phpcbf integration producing classified outcomes and edits."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Final, Protocol

from .arguments import ToolMode, prepare_args
from .error_classifier import classify, fixer_exit_message, is_php_not_found, php_not_found_message
from .errors import ConfigurationError
from .interfaces import Notifier
from .models import PHP_LANGUAGE_ID, TextDocument, TextEdit
from .outcomes import (
    ClassifiedOutcome,
    EnvironmentFailure,
    Fixed,
    NoChange,
    PartialFailure,
    ToolError,
    outcome_content,
)
from .output import OutputChannel, get_output_channel
from .process_utils import RunResult, run_shell_command
from .settings import SettingsStore

FIXER_DISABLED_MESSAGE: Final[str] = "Fixer is disabled for this workspace or phpcbf was not found."
FIXED_MESSAGE: Final[str] = "All fixable errors were fixed correctly."
GENERAL_EXECUTION_ERROR: Final[str] = "FIXER: A general execution error occurred."
TIMER_KEY: Final[str] = "Fixer"


class SyncRunner(Protocol):
    """Callable running a tool synchronously; see :func:`run_shell_command`."""

    def __call__(
        self,
        command_path: str,
        args: Sequence[str],
        *,
        input_text: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> RunResult:
        """Run the command and return its captured result."""

        raise NotImplementedError


def classify_fixer_result(result: RunResult, original: str) -> ClassifiedOutcome:
    """Map a fixer run onto exactly one :data:`ClassifiedOutcome`.

    A "PHP not found" message on stderr wins over every exit status.

    Args:
        result: Captured process result.
        original: Document text that was written to stdin.

    Returns:
        ClassifiedOutcome: Outcome for the invocation.
    """

    if is_php_not_found(result.stderr):
        return EnvironmentFailure(php_not_found_message(ToolMode.FIXER), log_detail=result.stderr)
    if result.exit_code is None:
        if result.spawn_error is None:
            return EnvironmentFailure(GENERAL_EXECUTION_ERROR, log_detail=result.stderr)
        classified = classify(result.spawn_error, ToolMode.FIXER)
        return EnvironmentFailure(classified.message, log_detail=classified.log_detail)
    if result.exit_code == 0:
        return NoChange()
    if result.exit_code in (1, 2):
        content = result.stdout
        if not content or content == original:
            return NoChange()
        return Fixed(content) if result.exit_code == 1 else PartialFailure(content)
    return ToolError(fixer_exit_message(result.exit_code, result.stdout.strip()), exit_code=result.exit_code)


class Fixer:
    """Run phpcbf over a document snapshot."""

    def __init__(
        self,
        store: SettingsStore,
        *,
        notifier: Notifier | None = None,
        runner: SyncRunner | Callable[..., RunResult] = run_shell_command,
        channel: OutputChannel | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._runner = runner
        self._channel = channel or get_output_channel()

    def format(self, document: TextDocument) -> ClassifiedOutcome:
        """Run the fixer for ``document`` and classify the result.

        The document itself is never modified; callers apply the content of
        :class:`Fixed` or :class:`PartialFailure` outcomes.

        Args:
            document: Snapshot of the document to fix.

        Returns:
            ClassifiedOutcome: Result of the invocation.

        Raises:
            ConfigurationError: If the configured standard is invalid. No
                process is started in that case.
        """

        settings = self._store.settings
        resource = settings.resource_for(document.path)
        if document.language_id != PHP_LANGUAGE_ID:
            return NoChange(f"{document.file_name} is not a PHP document.")
        if not resource.fixer_enable:
            self._channel.info(FIXER_DISABLED_MESSAGE)
            if settings.debug and self._notifier is not None:
                self._notifier.info(FIXER_DISABLED_MESSAGE)
            return NoChange(FIXER_DISABLED_MESSAGE)

        standard = self._store.resolve_standard(document.path, resource)
        args = prepare_args(
            document.file_name,
            standard,
            resource.fixer_arguments,
            ToolMode.FIXER,
            notifier=self._notifier,
            channel=self._channel,
        )
        command_path = resource.fixer_executable_path
        self._channel.info(f"FIXER COMMAND: {command_path} {' '.join(args)}")
        self._channel.start_timer(TIMER_KEY)
        try:
            result = self._runner(
                command_path,
                args,
                input_text=document.text,
                cwd=resource.project_root,
                timeout=settings.fixer_timeout,
            )
        finally:
            self._channel.end_timer(TIMER_KEY)
        outcome = classify_fixer_result(result, document.text)
        self._report(outcome, debug=settings.debug)
        return outcome

    def provide_edits(self, document: TextDocument) -> list[TextEdit]:
        """Return the full-document edit for ``document``, or no edit.

        Errors are shown through the notifier instead of being raised.
        """

        try:
            outcome = self.format(document)
        except ConfigurationError as exc:
            self._channel.error("Fixer configuration rejected.", exc)
            if self._notifier is not None:
                self._notifier.error(str(exc))
            return []
        content = outcome_content(outcome)
        if content is None or content == document.text:
            return []
        start, end = document.full_range()
        return [TextEdit(range_start=start, range_end=end, new_text=content)]

    def _report(self, outcome: ClassifiedOutcome, *, debug: bool) -> None:
        if isinstance(outcome, (ToolError, EnvironmentFailure)):
            detail = outcome.log_detail if isinstance(outcome, EnvironmentFailure) else None
            self._channel.error(outcome.message, detail or None)
            if self._notifier is not None:
                self._notifier.error(outcome.message)
            return
        if isinstance(outcome, Fixed):
            message = FIXED_MESSAGE
        elif isinstance(outcome, PartialFailure):
            message = outcome.detail
        else:
            message = outcome.message
        self._channel.info(message)
        if debug and self._notifier is not None:
            self._notifier.info(message)


__all__ = [
    "FIXED_MESSAGE",
    "FIXER_DISABLED_MESSAGE",
    "Fixer",
    "SyncRunner",
    "classify_fixer_result",
]
