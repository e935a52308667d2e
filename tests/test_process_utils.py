# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from pathlib import Path

import pytest
from support import posix_only

from phpsab import process_utils
from phpsab.process_utils import (
    construct_command_string,
    missing_command_error,
    quote_arg,
    run_shell_command,
    run_shell_command_async,
)

ScriptWriter = Callable[[Path, str], Path]


def test_quote_arg_posix() -> None:
    assert quote_arg("plain", windows=False) == "'plain'"
    assert quote_arg("it's", windows=False) == "'it'\"'\"'s'"
    assert quote_arg("$(id) `id`", windows=False) == "'$(id) `id`'"


def test_quote_arg_windows() -> None:
    assert quote_arg("C:\\tools\\phpcs.bat", windows=True) == '"C:\\tools\\phpcs.bat"'
    assert quote_arg('say "hi"', windows=True) == '"say ""hi"""'


def test_command_string_quotes_executable_and_arguments() -> None:
    command = construct_command_string("/opt/my tools/phpcs", ["-q", "--stdin-path=/a b.php", "-"], windows=False)

    assert command == "'/opt/my tools/phpcs' '-q' '--stdin-path=/a b.php' '-'"


def test_missing_command_error_only_for_absent_paths(tmp_path: Path) -> None:
    present = tmp_path / "phpcs"
    present.write_text("", encoding="utf-8")

    error = missing_command_error(127, str(tmp_path / "absent"))

    assert isinstance(error, FileNotFoundError)
    assert error.filename == str(tmp_path / "absent")
    assert missing_command_error(127, str(present)) is None
    assert missing_command_error(0, str(tmp_path / "absent")) is None


@posix_only
def test_stdin_is_delivered_and_exit_code_kept(tmp_path: Path, write_script: ScriptWriter) -> None:
    script = write_script(tmp_path / "upper", "tr a-z A-Z\necho 'to stderr' >&2\nexit 2")

    result = run_shell_command(str(script), [], input_text="<?php echo 1;\n")

    assert result.exit_code == 2
    assert result.stdout == "<?PHP ECHO 1;\n"
    assert result.stderr == "to stderr\n"
    assert result.spawn_error is None
    assert not result.killed


@posix_only
def test_arguments_reach_the_tool_unchanged(tmp_path: Path, write_script: ScriptWriter) -> None:
    script = write_script(tmp_path / "args", "cat > /dev/null\nprintf '%s\\n' \"$@\"")

    result = run_shell_command(
        str(script),
        ["--stdin-path=/tmp/a b.php", "it's", "$(id)", "-"],
        input_text="",
    )

    assert result.stdout.splitlines() == ["--stdin-path=/tmp/a b.php", "it's", "$(id)", "-"]


@posix_only
def test_working_directory_is_applied(tmp_path: Path, write_script: ScriptWriter) -> None:
    script = write_script(tmp_path / "where", "cat > /dev/null\npwd")
    project = tmp_path / "project"
    project.mkdir()

    result = run_shell_command(str(script), [], input_text="", cwd=project)

    assert Path(result.stdout.strip()).resolve() == project.resolve()


@posix_only
def test_missing_executable_reports_enoent(tmp_path: Path) -> None:
    missing = tmp_path / "nope" / "phpcbf"

    result = run_shell_command(str(missing), ["-"], input_text="")

    assert result.exit_code is None
    assert isinstance(result.spawn_error, FileNotFoundError)
    assert result.spawn_error.filename == str(missing)


@posix_only
def test_timeout_kills_the_process_tree(tmp_path: Path, write_script: ScriptWriter) -> None:
    script = write_script(tmp_path / "slow", "cat > /dev/null\nsleep 30")

    started = time.monotonic()
    result = run_shell_command(str(script), [], input_text="", timeout=0.3)

    assert time.monotonic() - started < 10
    assert result.exit_code is None
    assert result.killed
    assert isinstance(result.spawn_error, TimeoutError)


@posix_only
def test_async_run_streams_output(tmp_path: Path, write_script: ScriptWriter) -> None:
    script = write_script(tmp_path / "echo", "cat\necho done >&2\nexit 1")

    result = asyncio.run(run_shell_command_async(str(script), ["-"], input_text="x" * 200_000))

    assert result.exit_code == 1
    assert len(result.stdout) == 200_000
    assert result.stderr == "done\n"
    assert not result.killed


@posix_only
def test_async_missing_executable_reports_enoent(tmp_path: Path) -> None:
    result = asyncio.run(run_shell_command_async(str(tmp_path / "phpcs"), [], input_text=""))

    assert result.exit_code is None
    assert isinstance(result.spawn_error, FileNotFoundError)


@posix_only
def test_async_cancellation_kills_the_process(tmp_path: Path, write_script: ScriptWriter) -> None:
    marker = tmp_path / "finished"
    script = write_script(tmp_path / "slow", f"cat > /dev/null\nsleep 2\ntouch '{marker}'")

    async def _scenario() -> None:
        task = asyncio.create_task(run_shell_command_async(str(script), [], input_text=""))
        await asyncio.sleep(0.3)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_scenario())
    time.sleep(2.5)

    assert not marker.exists()


@posix_only
def test_lone_surrogates_pass_through_the_tool(tmp_path: Path, write_script: ScriptWriter) -> None:
    script = write_script(tmp_path / "echo", "cat")
    text = "<?php // \udcff broken buffer\n"

    result = run_shell_command(str(script), [], input_text=text)

    assert result.exit_code == 0
    assert result.stdout == text
    assert result.spawn_error is None


@posix_only
def test_async_lone_surrogates_pass_through_the_tool(tmp_path: Path, write_script: ScriptWriter) -> None:
    script = write_script(tmp_path / "echo", "cat")
    text = "<?php // \ud800 broken buffer\n"

    result = asyncio.run(run_shell_command_async(str(script), [], input_text=text))

    assert result.exit_code == 0
    assert result.stdout == text


@posix_only
def test_async_errors_kill_the_process(
    tmp_path: Path,
    write_script: ScriptWriter,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    marker = tmp_path / "finished"
    script = write_script(tmp_path / "slow", f"cat > /dev/null\nsleep 2\ntouch '{marker}'")

    async def _failing_drain(stream: asyncio.StreamReader | None) -> str:
        raise RuntimeError("reader failed")

    monkeypatch.setattr(process_utils, "_drain", _failing_drain)

    with pytest.raises(RuntimeError, match="reader failed"):
        asyncio.run(run_shell_command_async(str(script), [], input_text=""))
    time.sleep(2.5)

    assert not marker.exists()
