"""
Tests for void_cli.bench (``void bench <command>``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import pytest

from void_cli.bench import (
    BENCH_USAGE,
    bench_argv,
    format_duration,
    render_report,
    run_bench,
)
from void_cli.executor import CapturedResult


@dataclass
class FakeExecutor:
    result: CapturedResult
    commands: list = field(default_factory=list)

    def run_tty(self, argv):  # pragma: no cover - not used
        raise AssertionError("bench never runs attached to the terminal")

    def run_captured(self, command):
        self.commands.append(command)
        return self.result


class Sink:
    def __init__(self) -> None:
        self.out: list[str] = []
        self.err: list[str] = []


def _run(args, result):
    sink = Sink()
    executor = FakeExecutor(result)
    code = run_bench(args, executor, sink.out.append, sink.err.append)
    return code, executor, sink


@pytest.mark.parametrize(
    "seconds, expected",
    [(0.0005, "500us"), (0.0125, "12.5ms"), (2.5, "2.50s")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.skipif(os.name == "nt", reason="POSIX runs the argv directly")
def test_bench_argv_posix():
    assert bench_argv(["ls", "-la"]) == ["ls", "-la"]


def test_usage_without_command():
    code, executor, sink = _run([], CapturedResult(0, "", "t", 0))
    assert code == 1
    assert sink.err == [BENCH_USAGE + "\n"]
    assert executor.commands == []


def test_success_report():
    code, executor, sink = _run(
        ["echo", "hi"], CapturedResult(0, "hi\n\n", "t", 3)
    )

    assert code == 0
    assert len(executor.commands) == 1
    report = "".join(sink.out)
    assert "echo hi" in report
    assert "  hi\n" in report
    assert "[ OK ]" in report


def test_failure_reports_exit_code():
    code, _executor, sink = _run(["false"], CapturedResult(2, "", "t", 1))

    assert code == 2
    assert "[ FAILED 2 ]" in "".join(sink.out)


def test_spawn_error_is_shown():
    result = CapturedResult(1, "", "t", 0, error="No such file")
    report = render_report("nope", result, 0.01)
    assert "error: No such file" in report
    assert "[ FAILED 1 ]" in report
