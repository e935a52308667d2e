# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import errno
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from support import RecordingNotifier

from phpsab.errors import ConfigurationError, ToolEnvironmentError, ToolExecutionError
from phpsab.fixer import FIXER_DISABLED_MESSAGE, Fixer, classify_fixer_result
from phpsab.models import TextDocument
from phpsab.outcomes import (
    EnvironmentFailure,
    Fixed,
    NoChange,
    PartialFailure,
    ToolError,
    is_failure,
    outcome_content,
    raise_for_failure,
)
from phpsab.process_utils import RunResult
from phpsab.settings import SettingsStore

ORIGINAL = "<?php\necho   'hi' ;\n"
FIXED = "<?php\necho 'hi';\n"


class FakeRunner:
    """Synchronous runner returning a canned result and recording the call."""

    def __init__(self, result: RunResult) -> None:
        self.result = result
        self.calls: list[dict[str, Any]] = []

    def __call__(self, command_path: str, args: list[str], **kwargs: Any) -> RunResult:
        self.calls.append({"command_path": command_path, "args": list(args), **kwargs})
        return self.result


def _document(root: Path, text: str = ORIGINAL) -> TextDocument:
    return TextDocument(path=root / "src" / "index.php", text=text)


@pytest.mark.parametrize(
    ("result", "expected"),
    [
        (RunResult(exit_code=0, stdout=""), NoChange()),
        (RunResult(exit_code=1, stdout=FIXED), Fixed(FIXED)),
        (RunResult(exit_code=2, stdout=FIXED), PartialFailure(FIXED)),
        (RunResult(exit_code=1, stdout=ORIGINAL), NoChange()),
        (RunResult(exit_code=1, stdout=""), NoChange()),
    ],
)
def test_exit_status_classification(result: RunResult, expected: object) -> None:
    assert classify_fixer_result(result, ORIGINAL) == expected


def test_output_differing_only_in_whitespace_counts_as_a_change() -> None:
    outcome = classify_fixer_result(RunResult(exit_code=1, stdout=ORIGINAL + "\n"), ORIGINAL)

    assert outcome == Fixed(ORIGINAL + "\n")


def test_failing_exit_status_includes_stdout() -> None:
    outcome = classify_fixer_result(RunResult(exit_code=3, stdout="ERROR: Referenced sniff missing\n"), ORIGINAL)

    assert isinstance(outcome, ToolError)
    assert outcome.exit_code == 3
    assert outcome.message == "FIXER: A general script execution error occurred.\nERROR: Referenced sniff missing"


def test_php_not_found_wins_over_exit_status() -> None:
    result = RunResult(exit_code=1, stdout=FIXED, stderr="/usr/bin/env: 'php': No such file\nphp: command not found")

    outcome = classify_fixer_result(result, ORIGINAL)

    assert isinstance(outcome, EnvironmentFailure)
    assert outcome.message.startswith("FIXER: Unable to find the PHP executable.")


def test_spawn_error_is_classified() -> None:
    missing = FileNotFoundError(errno.ENOENT, "No such file or directory", "/opt/php/phpcbf")

    outcome = classify_fixer_result(RunResult(exit_code=None, spawn_error=missing), ORIGINAL)

    assert outcome == EnvironmentFailure(
        "FIXER: path not found: /opt/php/phpcbf. Check the executable path setting.",
        log_detail=outcome.log_detail,
    )


def test_timeout_is_classified() -> None:
    result = RunResult(exit_code=None, spawn_error=TimeoutError(errno.ETIMEDOUT, "timed out"), killed=True)

    outcome = classify_fixer_result(result, ORIGINAL)

    assert isinstance(outcome, EnvironmentFailure)
    assert outcome.message == "FIXER: process timed out."


def test_format_runs_phpcbf_with_document_on_stdin(
    tmp_path: Path,
    make_store: Callable[..., SettingsStore],
) -> None:
    store = make_store(tmp_path, standard="PSR12", fixer_timeout=12.5)
    runner = FakeRunner(RunResult(exit_code=1, stdout=FIXED))
    document = _document(tmp_path)

    outcome = Fixer(store, runner=runner).format(document)

    assert outcome == Fixed(FIXED)
    [call] = runner.calls
    assert call["command_path"] == "/opt/php/phpcbf"
    assert call["args"] == ["-q", "--standard=PSR12", f"--stdin-path={document.path}", "-"]
    assert call["input_text"] == ORIGINAL
    assert call["cwd"] == tmp_path
    assert call["timeout"] == 12.5


def test_format_leaves_the_document_untouched(
    tmp_path: Path,
    make_store: Callable[..., SettingsStore],
) -> None:
    document = _document(tmp_path)
    fixer = Fixer(make_store(tmp_path), runner=FakeRunner(RunResult(exit_code=1, stdout=FIXED)))

    fixer.format(document)

    assert document.text == ORIGINAL


def test_disabled_fixer_does_not_spawn(
    tmp_path: Path,
    make_store: Callable[..., SettingsStore],
    notifier: RecordingNotifier,
) -> None:
    runner = FakeRunner(RunResult(exit_code=1, stdout=FIXED))
    store = make_store(tmp_path, notifier=notifier, fixer_enable=False, debug=True)

    outcome = Fixer(store, notifier=notifier, runner=runner).format(_document(tmp_path))

    assert outcome == NoChange(FIXER_DISABLED_MESSAGE)
    assert runner.calls == []
    assert notifier.infos == [FIXER_DISABLED_MESSAGE]


def test_non_php_documents_are_ignored(tmp_path: Path, make_store: Callable[..., SettingsStore]) -> None:
    runner = FakeRunner(RunResult(exit_code=1, stdout=FIXED))
    document = TextDocument(path=tmp_path / "notes.txt", text="hello", language_id="plaintext")

    outcome = Fixer(make_store(tmp_path), runner=runner).format(document)

    assert isinstance(outcome, NoChange)
    assert runner.calls == []


def test_invalid_standard_raises_before_spawning(tmp_path: Path, make_store: Callable[..., SettingsStore]) -> None:
    runner = FakeRunner(RunResult(exit_code=0))
    fixer = Fixer(make_store(tmp_path, standard="PSR12;id"), runner=runner)

    with pytest.raises(ConfigurationError):
        fixer.format(_document(tmp_path))
    assert runner.calls == []


def test_rejected_arguments_are_dropped_with_one_warning(
    tmp_path: Path,
    make_store: Callable[..., SettingsStore],
    notifier: RecordingNotifier,
) -> None:
    runner = FakeRunner(RunResult(exit_code=0))
    store = make_store(tmp_path, fixer_arguments=("--standard=Evil", "--ignore-annotations"))

    Fixer(store, notifier=notifier, runner=runner).format(_document(tmp_path))

    assert runner.calls[0]["args"][-2:] == ["--ignore-annotations", "-"]
    assert "--standard=Evil" not in runner.calls[0]["args"]
    assert len(notifier.warnings) == 1


def test_errors_are_surfaced_through_the_notifier(
    tmp_path: Path,
    make_store: Callable[..., SettingsStore],
    notifier: RecordingNotifier,
) -> None:
    runner = FakeRunner(RunResult(exit_code=16, stdout=""))

    outcome = Fixer(make_store(tmp_path), notifier=notifier, runner=runner).format(_document(tmp_path))

    assert isinstance(outcome, ToolError)
    assert notifier.errors == ["FIXER: Configuration error of the application."]


def test_provide_edits_returns_full_document_replacement(
    tmp_path: Path,
    make_store: Callable[..., SettingsStore],
) -> None:
    document = _document(tmp_path)
    fixer = Fixer(make_store(tmp_path), runner=FakeRunner(RunResult(exit_code=2, stdout=FIXED)))

    [edit] = fixer.provide_edits(document)

    assert edit.range_start == (0, 0)
    assert edit.range_end == document.full_range()[1]
    assert edit.apply(document) == FIXED


def test_provide_edits_is_empty_for_no_change_and_errors(
    tmp_path: Path,
    make_store: Callable[..., SettingsStore],
    notifier: RecordingNotifier,
) -> None:
    document = _document(tmp_path)
    store = make_store(tmp_path)

    assert Fixer(store, runner=FakeRunner(RunResult(exit_code=0))).provide_edits(document) == []
    assert Fixer(store, notifier=notifier, runner=FakeRunner(RunResult(exit_code=255))).provide_edits(document) == []
    assert notifier.errors == ["FIXER: A Fatal execution error occurred."]


def test_provide_edits_reports_configuration_errors(
    tmp_path: Path,
    make_store: Callable[..., SettingsStore],
    notifier: RecordingNotifier,
) -> None:
    fixer = Fixer(make_store(tmp_path, standard="-PSR12"), notifier=notifier, runner=FakeRunner(RunResult(0)))

    assert fixer.provide_edits(_document(tmp_path)) == []
    assert len(notifier.errors) == 1
    assert "Invalid coding standard" in notifier.errors[0]


def test_fixing_fixed_output_is_a_no_change(tmp_path: Path, make_store: Callable[..., SettingsStore]) -> None:
    runner = FakeRunner(RunResult(exit_code=1, stdout=FIXED))
    fixer = Fixer(make_store(tmp_path), runner=runner)

    first = fixer.format(_document(tmp_path))
    second = fixer.format(_document(tmp_path, text=FIXED))

    assert first == Fixed(FIXED)
    assert second == NoChange()


def test_failure_outcomes_raise_matching_errors() -> None:
    with pytest.raises(ToolExecutionError) as tool_error:
        raise_for_failure(ToolError("FIXER: A Fatal execution error occurred.", exit_code=255))
    with pytest.raises(ToolEnvironmentError) as environment_error:
        raise_for_failure(EnvironmentFailure("FIXER: process timed out.", log_detail="TimeoutError"))

    assert tool_error.value.exit_code == 255
    assert environment_error.value.log_detail == "TimeoutError"
    raise_for_failure(PartialFailure(FIXED))
    assert is_failure(ToolError("x")) and not is_failure(NoChange())
    assert outcome_content(PartialFailure(FIXED)) == FIXED
    assert outcome_content(NoChange()) is None
