# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Consoles for phpsab's report output and its diagnostic log stream.

Reports (status lines, diagnostic tables, diffs) are written to stdout. The
``phpsab`` log channel is written to stderr, so ``phpsab fix`` output piped
into another program never carries log records.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from functools import cache
from typing import Final, TextIO

from rich.console import Console
from rich.logging import RichHandler

NO_COLOR_ENV: Final[str] = "NO_COLOR"


def detect_tty(stream: TextIO | None = None) -> bool:
    """Return ``True`` when ``stream`` (stdout by default) is a terminal."""

    target = sys.stdout if stream is None else stream
    try:
        return target.isatty()
    except (AttributeError, ValueError):
        return False


def color_allowed(env: Mapping[str, str] | None = None) -> bool:
    """Return ``False`` when ``NO_COLOR`` is set to a non-empty value."""

    environ = os.environ if env is None else env
    return not environ.get(NO_COLOR_ENV)


@dataclass(frozen=True, slots=True)
class ConsoleProfile:
    """Effective output settings of one console."""

    color: bool
    emoji: bool
    stderr: bool
    tty: bool


class ConsoleRegistry:
    """Hand out one :class:`Console` per :class:`ConsoleProfile`."""

    def __init__(self) -> None:
        self._consoles: dict[ConsoleProfile, Console] = {}

    def profile(self, *, color: bool, emoji: bool, stderr: bool = False) -> ConsoleProfile:
        """Combine the requested preferences with the state of the target stream.

        Colour is enabled only when it is requested, the stream is a terminal
        and ``NO_COLOR`` is unset.
        """

        tty = detect_tty(sys.stderr if stderr else sys.stdout)
        return ConsoleProfile(color=color and tty and color_allowed(), emoji=emoji, stderr=stderr, tty=tty)

    def get(self, *, color: bool, emoji: bool, stderr: bool = False) -> Console:
        profile = self.profile(color=color, emoji=emoji, stderr=stderr)
        console = self._consoles.get(profile)
        if console is None:
            console = Console(
                stderr=profile.stderr,
                color_system="auto" if profile.color else None,
                force_terminal=profile.tty,
                no_color=not profile.color,
                emoji=profile.emoji,
                soft_wrap=True,
            )
            self._consoles[profile] = console
        return console

    def log_handler(self, *, color: bool = True) -> logging.Handler:
        """Return a handler rendering ``phpsab`` log records on the stderr console.

        Record messages are printed literally; file names and square brackets
        in tool output are never read as markup.
        """

        return RichHandler(
            console=self.get(color=color, emoji=False, stderr=True),
            show_time=False,
            show_path=False,
            markup=False,
        )


@cache
def get_console_registry() -> ConsoleRegistry:
    """Return the process-wide :class:`ConsoleRegistry`."""

    return ConsoleRegistry()


__all__ = [
    "NO_COLOR_ENV",
    "ConsoleProfile",
    "ConsoleRegistry",
    "color_allowed",
    "detect_tty",
    "get_console_registry",
]
