"""
Tests for void_cli.envsync (activation detection, set-dump parsing,
environment diffing and the subshell round trip).
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from void_cli import envsync
from void_cli.envsync import (
    ENV_SYNC_MARKER,
    ActivationRule,
    apply_environment,
    diff_environment,
    is_activation_command,
    is_cmd_shell,
    needs_env_sync,
    parse_set_output,
    pop_exit_code,
    run_with_env_sync,
    split_output,
    wrap_command,
)
from void_cli.executor import CapturedResult


@dataclass
class FakeExecutor:
    """Returns a canned CapturedResult and records every command."""

    result: CapturedResult
    commands: list = field(default_factory=list)

    def run_captured(self, command):
        self.commands.append(command)
        return self.result

    def run_tty(self, argv):  # pragma: no cover - unused here
        raise AssertionError("run_tty must not be called")


def _captured(output: str, exit_code: int = 0, error: str | None = None):
    return CapturedResult(
        exit_code=exit_code,
        output=output,
        started_at="2025-01-01T00:00:00",
        duration_ms=1,
        error=error,
    )


# ----------------------------------------------------------------
# Applicability
# ----------------------------------------------------------------


@pytest.mark.parametrize(
    "exe,expected",
    [
        ("cmd", True),
        ("cmd.exe", True),
        ("CMD.EXE", True),
        (r"C:\Windows\System32\cmd.exe", True),
        ("bash", False),
        ("powershell.exe", False),
    ],
)
def test_is_cmd_shell(exe, expected):
    assert is_cmd_shell(exe) is expected


@pytest.mark.parametrize(
    "line",
    [
        r".venv\Scripts\activate",
        r".venv\Scripts\activate.bat",
        "venv/Scripts/activate",
        "conda activate base",
        "conda deactivate",
        "deactivate",
        "DEACTIVATE",
        r"call .venv\Scripts\activate",
        "call deactivate.bat",
        "  conda activate ml  ",
    ],
)
def test_activation_commands_detected(line):
    assert is_activation_command(line) is True


@pytest.mark.parametrize(
    "line",
    ["", "dir", "conda list", "echo activate-later", "call build.bat", "deactivated"],
)
def test_non_activation_commands(line):
    assert is_activation_command(line) is False


def test_custom_rule_table():
    """Rules are data: a caller-supplied table replaces the defaults."""
    rules = [ActivationRule("prefix", "workon ")]
    assert is_activation_command("workon proj", rules=rules) is True
    assert is_activation_command("conda activate x", rules=rules) is False


def test_needs_env_sync_requires_cmd_shell():
    assert needs_env_sync("cmd.exe", "conda activate base") is True
    assert needs_env_sync("bash", "conda activate base") is False
    assert needs_env_sync("cmd.exe", "dir") is False


# ----------------------------------------------------------------
# Wrapping + parsing
# ----------------------------------------------------------------


def test_wrap_command():
    assert wrap_command("deactivate") == (
        'deactivate & set "__VOID_EXIT_CODE=!ERRORLEVEL!" '
        "& echo __VOID_ENV_SYNC_BEGIN__ & set"
    )


def test_marker_split_and_exit_code_removal():
    """Pre-marker text is kept; the dump is parsed and the code popped."""
    output = "hello\r\n__M__\r\nA=1\r\nB=two\r\n__EXIT__=3\r\n"

    pre, block, found = split_output(output, "__M__")
    assert found is True
    assert pre == "hello\r\n"

    snapshot = parse_set_output(block)
    assert pop_exit_code(snapshot, "__EXIT__") == 3
    assert snapshot == {"A": "1", "B": "two"}


def test_split_without_marker():
    pre, block, found = split_output("just output\n")
    assert (pre, block, found) == ("just output\n", "", False)


def test_parse_set_output_discards_invalid_lines():
    block = "=C:=C:\\\nNOEQUALS\n=x\nPATH=a=b\n\nEMPTY=\n"
    assert parse_set_output(block) == {"PATH": "a=b", "EMPTY": ""}


def test_pop_exit_code_case_insensitive_and_default():
    snapshot = {"__void_exit_code": "7", "X": "1"}
    assert pop_exit_code(snapshot) == 7
    assert snapshot == {"X": "1"}

    snapshot = {"__VOID_EXIT_CODE": "!ERRORLEVEL!"}
    assert pop_exit_code(snapshot) == 0
    assert snapshot == {}

    assert pop_exit_code({}) == 0


# ----------------------------------------------------------------
# Diff + apply
# ----------------------------------------------------------------


def test_diff_environment_example():
    current = {"PATH": "A", "VIRTUAL_ENV": "X", "KEEP": "1"}
    snapshot = {"PATH": "B", "KEEP": "1", "CONDA_DEFAULT_ENV": "base"}

    to_set, to_unset = diff_environment(current, snapshot, case_insensitive=False)

    assert to_set == {"CONDA_DEFAULT_ENV": "base", "PATH": "B"}
    assert list(to_set) == ["CONDA_DEFAULT_ENV", "PATH"]
    assert to_unset == ["VIRTUAL_ENV"]


def test_diff_case_insensitive_keys():
    """On Windows semantics, Path and PATH are the same variable."""
    current = {"Path": "A", "Old": "1"}
    snapshot = {"PATH": "A", "OLD": "1"}

    to_set, to_unset = diff_environment(current, snapshot, case_insensitive=True)

    # spelling changed, so the key is re-assigned; nothing is removed
    assert to_set == {"OLD": "1", "PATH": "A"}
    assert to_unset == []


def test_diff_case_sensitive_keys():
    current = {"Path": "A"}
    snapshot = {"PATH": "A"}

    to_set, to_unset = diff_environment(current, snapshot, case_insensitive=False)

    assert to_set == {"PATH": "A"}
    assert to_unset == ["Path"]


def test_diff_identical_is_empty():
    env = {"A": "1", "B": "2"}
    assert diff_environment(env, dict(env), case_insensitive=False) == ({}, [])


def test_apply_environment_sets_then_unsets():
    environ = {"PATH": "A", "VIRTUAL_ENV": "X", "KEEP": "1"}
    snapshot = {"PATH": "B", "KEEP": "1", "CONDA_DEFAULT_ENV": "base"}

    apply_environment(snapshot, environ=environ, case_insensitive=False)

    assert environ == snapshot


# ----------------------------------------------------------------
# Round trip through the executor
# ----------------------------------------------------------------


def test_run_with_env_sync_applies_snapshot(monkeypatch):
    applied = {}

    def fake_apply(snapshot, environ=None, case_insensitive=None):
        applied.update(snapshot)
        return dict(snapshot), []

    monkeypatch.setattr(envsync, "apply_environment", fake_apply)
    executor = FakeExecutor(
        _captured(
            f"activated\r\n{ENV_SYNC_MARKER}\r\n"
            "VIRTUAL_ENV=C:\\proj\\.venv\r\n__VOID_EXIT_CODE=0\r\n"
        )
    )

    outcome = run_with_env_sync(executor, "cmd.exe", r".venv\Scripts\activate")

    assert outcome.synced is True
    assert outcome.exit_code == 0
    assert outcome.output == "activated\r\n"
    assert applied == {"VIRTUAL_ENV": "C:\\proj\\.venv"}

    command = executor.commands[0]
    text = command if isinstance(command, str) else " ".join(command)
    assert "/V:ON" in text
    assert ENV_SYNC_MARKER in text


def test_run_with_env_sync_reports_captured_exit_code(monkeypatch):
    monkeypatch.setattr(
        envsync, "apply_environment", lambda snapshot, **_kw: ({}, [])
    )
    executor = FakeExecutor(
        _captured(f"{ENV_SYNC_MARKER}\r\n__VOID_EXIT_CODE=2\r\n")
    )

    outcome = run_with_env_sync(executor, "cmd.exe", "conda activate nope")
    assert outcome.exit_code == 2
    assert outcome.synced is True


def test_run_with_env_sync_missing_marker_is_noop(monkeypatch):
    def boom(*_a, **_kw):
        raise AssertionError("environment must not be touched")

    monkeypatch.setattr(envsync, "apply_environment", boom)
    executor = FakeExecutor(_captured("no marker here\r\n"))

    outcome = run_with_env_sync(executor, "cmd.exe", "deactivate")
    assert outcome.exit_code == 0
    assert outcome.synced is False
    assert outcome.output == "no marker here\r\n"


def test_run_with_env_sync_subshell_failure(monkeypatch):
    def boom(*_a, **_kw):
        raise AssertionError("environment must not be touched")

    monkeypatch.setattr(envsync, "apply_environment", boom)
    executor = FakeExecutor(_captured("oops\r\n", exit_code=9))

    outcome = run_with_env_sync(executor, "cmd.exe", "deactivate")
    assert outcome.exit_code == 9
    assert outcome.synced is False
    assert outcome.output == "oops\r\n"


def test_run_with_env_sync_spawn_error():
    executor = FakeExecutor(_captured("", exit_code=1, error="not found"))

    outcome = run_with_env_sync(executor, "cmd.exe", "deactivate")
    assert outcome.exit_code == 1
    assert outcome.spawn_error == "not found"
    assert outcome.synced is False
