# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces keep the kernel independent of the real clipboard,
subprocess spawning, and history persistence, so each can be replaced
in tests.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from .executor import CapturedResult, TTYResult


class ClipboardWriter(Protocol):
    """Protocol for writing text to the system clipboard."""

    def copy(self, text: str) -> None:
        """Copy text to the clipboard.

        Raises:
            ClipboardError: if no clipboard mechanism is available.
        """
        ...


class Executor(Protocol):
    """Protocol for command execution."""

    def run_tty(self, argv: Sequence[str]) -> TTYResult:
        """Run with inherited stdin/stdout/stderr and wait for exit."""
        ...

    def run_captured(self, command: Sequence[str] | str) -> CapturedResult:
        """Run with stdout+stderr captured together (stdin inherited)."""
        ...


class HistoryLog(Protocol):
    """Protocol for the command history store."""

    def add(self, command: str) -> None:
        ...

    def entries(self) -> list[str]:
        ...

    def save(self) -> None:
        ...
