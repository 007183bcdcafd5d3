# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Subprocess-backed executor implementation for Void.

This module provides:
- run_tty(): pass-through execution, the child inherits the terminal
- run_captured(): buffered execution with stdout+stderr combined
  (used by the environment-sync protocol)

Both wait for the child to exit; there is no timeout, a stuck child
blocks the session exactly like it would block the native shell.
"""

from __future__ import annotations

import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TTYResult:
    """Result from TTY/passthrough execution (no output capture).

    ``error`` is set when the process could not be spawned at all.
    """

    exit_code: int
    started_at: str
    duration_ms: int
    error: str | None = None


@dataclass(frozen=True)
class CapturedResult:
    exit_code: int
    output: str
    started_at: str
    duration_ms: int
    error: str | None = None


class SubprocessExecutor:
    """Subprocess implementation of Executor protocol."""

    def run_tty(self, argv: Sequence[str]) -> TTYResult:
        """Run a command with full terminal control (no output capture).

        The command inherits stdin/stdout/stderr from the parent process,
        so pagers and interactive programs behave as in the native shell.

        Args:
            argv: executable followed by its arguments

        Returns:
            TTYResult (exit_code, started_at, duration_ms, error)
        """
        started_at = datetime.now().isoformat()
        start_ts = time.time()

        try:
            proc = subprocess.run(
                list(argv),
                stdin=None,  # inherit from parent
                stdout=None,  # inherit from parent
                stderr=None,  # inherit from parent
            )
        except OSError as e:
            duration_ms = int((time.time() - start_ts) * 1000)
            return TTYResult(
                exit_code=1,
                started_at=started_at,
                duration_ms=duration_ms,
                error=str(e),
            )

        duration_ms = int((time.time() - start_ts) * 1000)
        return TTYResult(
            exit_code=proc.returncode,
            started_at=started_at,
            duration_ms=duration_ms,
        )

    def run_captured(self, command: Sequence[str] | str) -> CapturedResult:
        """Run a command and buffer its combined stdout/stderr.

        Args:
            command: argv list, or a pre-built command line string
                (passed verbatim to the OS on Windows)

        Returns:
            CapturedResult (exit_code, output, started_at, duration_ms,
                error)
        """
        started_at = datetime.now().isoformat()
        start_ts = time.time()

        args = command if isinstance(command, str) else list(command)
        try:
            proc = subprocess.run(
                args,
                stdin=None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            duration_ms = int((time.time() - start_ts) * 1000)
            return CapturedResult(
                exit_code=1,
                output="",
                started_at=started_at,
                duration_ms=duration_ms,
                error=str(e),
            )

        duration_ms = int((time.time() - start_ts) * 1000)
        return CapturedResult(
            exit_code=proc.returncode,
            output=proc.stdout or "",
            started_at=started_at,
            duration_ms=duration_ms,
        )
