# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
``void bench <command> [args...]``: run one command, buffer its output and
print it framed with the exit status and wall-clock duration.
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable, Sequence

from .config import ANSI_COLORS
from .executor import CapturedResult
from .interfaces import Executor

BENCH_USAGE = "usage: void bench <command> [args...]"
SEPARATOR_WIDTH = 50


def _paint(color: str, text: str) -> str:
    return f"{ANSI_COLORS[color]}{text}{ANSI_COLORS['reset']}"


def bench_argv(args: Sequence[str]) -> list[str]:
    """Command line for the child; Windows routes through ``cmd /C``."""
    if os.name == "nt":
        return ["cmd", "/C", " ".join(args)]
    return list(args)


def format_duration(seconds: float) -> str:
    if seconds < 0.001:
        return f"{int(seconds * 1_000_000)}us"
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.2f}s"


def render_report(command: str, result: CapturedResult, seconds: float) -> str:
    separator = _paint("dim", "  " + "-" * SEPARATOR_WIDTH)
    lines = [
        "",
        separator,
        _paint("dim", "  [ ") + _paint("green", command) + _paint("dim", " ]"),
        separator,
    ]

    for line in result.output.rstrip("\n").split("\n"):
        if line.strip():
            lines.append("  " + line.rstrip("\r"))
    if result.error:
        lines.append("  " + _paint("red", f"error: {result.error}"))

    lines.append(separator)
    duration = _paint("dim", " ~ ") + _paint("cyan", format_duration(seconds))
    if result.exit_code == 0:
        lines.append("  " + _paint("green", "[ OK ]") + duration)
    else:
        lines.append(
            "  " + _paint("red", f"[ FAILED {result.exit_code} ]") + duration
        )
    lines.append(separator)
    lines.append("")
    return "\n".join(lines) + "\n"


def run_bench(
    args: list[str],
    executor: Executor,
    output_fn: Callable[[str], None],
    error_fn: Callable[[str], None],
) -> int:
    if not args:
        error_fn(BENCH_USAGE + "\n")
        return 1

    start = time.perf_counter()
    result = executor.run_captured(bench_argv(args))
    seconds = time.perf_counter() - start

    output_fn(render_report(" ".join(args), result, seconds))
    return result.exit_code
