# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shell-mediated execution of phpcs and phpcbf with stdin content."""

from __future__ import annotations

import asyncio
import contextlib
import errno
import os
import signal

# Bandit: subprocess usage is intentional; commands are built from resolved
# executables and validated arguments, each quoted for the platform shell.
import subprocess  # nosec B404
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .platform import is_windows

ENCODING: Final[str] = "utf-8"
# Lone surrogates in editor buffers travel through the tool unchanged.
ENCODE_ERRORS: Final[str] = "surrogatepass"
POSIX_COMMAND_NOT_FOUND: Final[int] = 127


@dataclass(frozen=True, slots=True)
class RunResult:
    """Captured outcome of one tool process.

    ``exit_code`` is ``None`` when the process never produced an exit status;
    ``spawn_error`` then carries the OS-level reason.
    """

    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    spawn_error: OSError | None = None
    killed: bool = False


def quote_arg(value: str, *, windows: bool | None = None) -> str:
    """Quote ``value`` for the platform shell.

    Windows wraps in double quotes (embedded quotes doubled); elsewhere the
    value is wrapped in single quotes with embedded single quotes escaped.
    """

    if is_windows() if windows is None else windows:
        return '"' + value.replace('"', '""') + '"'
    return "'" + value.replace("'", "'\"'\"'") + "'"


def quote_args(args: Sequence[str], *, windows: bool | None = None) -> list[str]:
    return [quote_arg(arg, windows=windows) for arg in args]


def construct_command_string(command_path: str, args: Sequence[str], *, windows: bool | None = None) -> str:
    """Join the quoted executable and arguments into one shell command line."""

    return " ".join([quote_arg(command_path, windows=windows), *quote_args(args, windows=windows)])


def missing_command_error(exit_code: int | None, command_path: str) -> OSError | None:
    """Return an ``ENOENT`` error when the shell could not find ``command_path``.

    Shells report a missing command through an exit status (``1`` from
    ``cmd.exe``, ``127`` from POSIX shells) instead of a spawn error.
    """

    expected = 1 if is_windows() else POSIX_COMMAND_NOT_FOUND
    if exit_code != expected:
        return None
    if command_path and os.path.exists(command_path):
        return None
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), command_path)


def _decode(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        return value.decode(ENCODING, errors=ENCODE_ERRORS)
    except UnicodeDecodeError:
        return value.decode(ENCODING, errors="replace")


def _encode(text: str) -> bytes:
    return text.encode(ENCODING, errors=ENCODE_ERRORS)


def _finalise(command_path: str, exit_code: int | None, stdout: str, stderr: str) -> RunResult:
    missing = missing_command_error(exit_code, command_path)
    if missing is not None:
        return RunResult(exit_code=None, stdout=stdout, stderr=stderr, spawn_error=missing)
    return RunResult(exit_code=exit_code, stdout=stdout, stderr=stderr)


def _kill_tree(process: subprocess.Popen[bytes] | asyncio.subprocess.Process) -> None:
    """Kill ``process`` and, on POSIX, every process in its session."""

    with contextlib.suppress(ProcessLookupError, PermissionError):
        if is_windows():
            process.kill()
        else:
            os.killpg(process.pid, signal.SIGKILL)


def run_shell_command(
    command_path: str,
    args: Sequence[str],
    *,
    input_text: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> RunResult:
    """Run ``command_path`` synchronously, feeding ``input_text`` on stdin.

    Args:
        command_path: Resolved executable path.
        args: Argument vector from :mod:`phpsab.arguments`.
        input_text: Document content written to stdin as UTF-8.
        cwd: Working directory, usually the project root.
        env: Environment override; the current environment is inherited by default.
        timeout: Seconds to wait before the process is killed.

    Returns:
        RunResult: Exit status and captured streams. OS failures are returned
        in ``spawn_error`` rather than raised.
    """

    payload = _encode(input_text)
    command = construct_command_string(command_path, args)
    try:
        # Bandit: shell mediation is required for .bat shims; every token is quoted.
        process = subprocess.Popen(  # nosec B602
            command,
            shell=True,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            start_new_session=not is_windows(),
        )
    except OSError as exc:
        return RunResult(exit_code=None, spawn_error=exc)

    with process:
        try:
            stdout, stderr = process.communicate(input=payload, timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_tree(process)
            stdout, stderr = process.communicate()
            return RunResult(
                exit_code=None,
                stdout=_decode(stdout),
                stderr=_decode(stderr),
                spawn_error=TimeoutError(errno.ETIMEDOUT, f"Command timed out after {timeout:.1f}s"),
                killed=True,
            )
    return _finalise(command_path, process.returncode, _decode(stdout), _decode(stderr))


async def _drain(stream: asyncio.StreamReader | None) -> str:
    if stream is None:
        return ""
    chunks: list[bytes] = []
    while chunk := await stream.read(65536):
        chunks.append(chunk)
    return _decode(b"".join(chunks))


async def run_shell_command_async(
    command_path: str,
    args: Sequence[str],
    *,
    input_text: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> RunResult:
    """Run ``command_path`` on the event loop, streaming stdout and stderr.

    The process is killed when stdin cannot be written or when the run is
    interrupted, for instance by cancelling the awaiting task. A process
    killed because of stdin yields a result with ``killed`` set; a process
    that merely closed stdin early and exited on its own is reported normally.
    """

    payload = _encode(input_text)
    command = construct_command_string(command_path, args)
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            start_new_session=not is_windows(),
        )
    except OSError as exc:
        return RunResult(exit_code=None, spawn_error=exc)

    readers = asyncio.gather(_drain(process.stdout), _drain(process.stderr))
    stdin_error: OSError | None = None
    finished = False
    try:
        try:
            if process.stdin is None:
                raise BrokenPipeError(errno.EPIPE, "stdin is not available")
            process.stdin.write(payload)
            await process.stdin.drain()
            process.stdin.close()
        except (BrokenPipeError, ConnectionResetError) as exc:
            stdin_error = exc
            _kill_tree(process)
        stdout, stderr = await readers
        exit_code = await process.wait()
        finished = True
    finally:
        if not finished:
            _kill_tree(process)
            readers.cancel()

    if stdin_error is not None and (is_windows() or exit_code < 0):
        return RunResult(exit_code=None, stdout=stdout, stderr=stderr, spawn_error=stdin_error, killed=True)
    return _finalise(command_path, exit_code, stdout, stderr)


__all__ = [
    "RunResult",
    "construct_command_string",
    "missing_command_error",
    "quote_arg",
    "quote_args",
    "run_shell_command",
    "run_shell_command_async",
]
