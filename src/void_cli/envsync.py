# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Environment synchronization for activation commands.

Activation scripts (``.venv\\Scripts\\activate``, ``conda activate``,
``deactivate``) change the environment of the cmd.exe child, which the
parent never sees. To replay the change we wrap the command so the child
dumps its environment after a marker line:

    <command> & set "__VOID_EXIT_CODE=!ERRORLEVEL!" & echo <marker> & set

The output before the marker is the command's own output. The block after
it is the ``set`` dump, which is parsed, diffed against ``os.environ`` and
applied to this process.
"""

from __future__ import annotations

import ntpath
import os
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass

ENV_SYNC_MARKER = "__VOID_ENV_SYNC_BEGIN__"
EXIT_CODE_VAR = "__VOID_EXIT_CODE"

CMD_EXECUTABLES = {"cmd", "cmd.exe"}


@dataclass(frozen=True)
class ActivationRule:
    """One activation heuristic, matched against the lowercased line.

    kind:
        "contains" - pattern appears anywhere in the line
        "prefix"   - line starts with pattern
        "exact"    - line equals pattern
    """

    kind: str
    pattern: str

    def matches(self, line: str) -> bool:
        if self.kind == "contains":
            return self.pattern in line
        if self.kind == "prefix":
            return line.startswith(self.pattern)
        if self.kind == "exact":
            return line == self.pattern
        return False


ACTIVATION_RULES: list[ActivationRule] = [
    ActivationRule("contains", "activate.bat"),
    ActivationRule("contains", "\\scripts\\activate"),
    ActivationRule("contains", "/scripts/activate"),
    ActivationRule("prefix", "conda activate "),
    ActivationRule("prefix", "conda deactivate"),
    ActivationRule("exact", "deactivate"),
    ActivationRule("prefix", "deactivate "),
]

# Applied to the target of ``call <target>``.
CALL_TARGET_RULES: list[ActivationRule] = [
    ActivationRule("contains", "activate"),
    ActivationRule("prefix", "deactivate"),
]


def is_cmd_shell(executable: str) -> bool:
    """True when the configured shell is the Windows console interpreter."""
    base = ntpath.basename(executable.strip()).lower()
    return base in CMD_EXECUTABLES


def is_activation_command(
    line: str,
    rules: list[ActivationRule] | None = None,
    call_rules: list[ActivationRule] | None = None,
) -> bool:
    lower = line.strip().lower()
    if not lower:
        return False

    rules = ACTIVATION_RULES if rules is None else rules
    if any(rule.matches(lower) for rule in rules):
        return True

    if lower.startswith("call "):
        target = lower[len("call "):].strip()
        call_rules = CALL_TARGET_RULES if call_rules is None else call_rules
        return any(rule.matches(target) for rule in call_rules)

    return False


def needs_env_sync(executable: str, line: str) -> bool:
    return is_cmd_shell(executable) and is_activation_command(line)


# -----------------------
# Protocol
# -----------------------


def wrap_command(line: str, marker: str = ENV_SYNC_MARKER) -> str:
    return (
        f'{line} & set "{EXIT_CODE_VAR}=!ERRORLEVEL!" '
        f"& echo {marker} & set"
    )


def split_output(
    output: str, marker: str = ENV_SYNC_MARKER
) -> tuple[str, str, bool]:
    """Split captured output on the first marker occurrence.

    Returns:
        (pre-marker output, environment block, marker found)
    """
    idx = output.find(marker)
    if idx == -1:
        return output, "", False
    pre = output[:idx]
    post = output[idx + len(marker):].lstrip("\r\n")
    return pre, post, True


def _valid_key(key: str) -> bool:
    return bool(key) and not key.startswith("=")


def parse_set_output(block: str) -> dict[str, str]:
    """Parse a ``set`` dump (``KEY=VALUE`` per line) into a snapshot."""
    env: dict[str, str] = {}
    for line in block.split("\n"):
        line = line.rstrip("\r")
        if not line:
            continue
        idx = line.find("=")
        if idx <= 0:
            continue
        key = line[:idx].strip()
        if not _valid_key(key):
            continue
        env[key] = line[idx + 1:]
    return env


def pop_exit_code(snapshot: dict[str, str], key: str = EXIT_CODE_VAR) -> int:
    """Remove the synthetic exit-code variable and return its value.

    The key is matched case-insensitively; unparsable values yield 0.
    """
    code = 0
    for existing in [k for k in snapshot if k.lower() == key.lower()]:
        value = snapshot.pop(existing)
        try:
            code = int(value.strip())
        except ValueError:
            code = 0
    return code


# -----------------------
# Diff + apply
# -----------------------


def _normalize(
    env: Mapping[str, str], case_insensitive: bool
) -> dict[str, tuple[str, str]]:
    out: dict[str, tuple[str, str]] = {}
    for key, value in env.items():
        key = key.strip()
        if not _valid_key(key):
            continue
        norm = key.upper() if case_insensitive else key
        out[norm] = (key, value)
    return out


def diff_environment(
    current: Mapping[str, str],
    snapshot: Mapping[str, str],
    case_insensitive: bool | None = None,
) -> tuple[dict[str, str], list[str]]:
    """Compute the assignments and removals that turn current into snapshot.

    Keys compare case-insensitively on Windows and case-sensitively
    elsewhere, unless ``case_insensitive`` is given explicitly.

    Returns:
        (variables to set, sorted by key; variables to unset, sorted)
    """
    if case_insensitive is None:
        case_insensitive = os.name == "nt"

    cur = _normalize(current, case_insensitive)
    nxt = _normalize(snapshot, case_insensitive)

    to_set: dict[str, str] = {}
    for norm, (key, value) in sorted(nxt.items()):
        existing = cur.get(norm)
        if existing is None or existing != (key, value):
            to_set[key] = value

    to_unset = sorted(key for norm, (key, _v) in cur.items() if norm not in nxt)
    return to_set, to_unset


def apply_environment(
    snapshot: Mapping[str, str],
    environ: MutableMapping[str, str] | None = None,
    case_insensitive: bool | None = None,
) -> tuple[dict[str, str], list[str]]:
    """Replay a snapshot onto the live environment (set, then unset)."""
    target = os.environ if environ is None else environ
    to_set, to_unset = diff_environment(
        dict(target), snapshot, case_insensitive=case_insensitive
    )
    for key, value in to_set.items():
        target[key] = value
    for key in to_unset:
        target.pop(key, None)
    return to_set, to_unset


@dataclass(frozen=True)
class EnvSyncOutcome:
    """What happened when an activation command ran in the subshell."""

    exit_code: int
    output: str
    synced: bool
    spawn_error: str | None = None


def run_with_env_sync(executor, executable: str, line: str) -> EnvSyncOutcome:
    """Run ``line`` through cmd.exe and replay its environment changes.

    The pre-marker output is returned for the caller to echo. When the
    subshell fails or the marker is missing, nothing is applied.
    """
    wrapped = wrap_command(line)
    if os.name == "nt":
        # cmd.exe parses its own command line; keep the quotes verbatim.
        command: list[str] | str = f"{executable} /V:ON /C {wrapped}"
    else:
        command = [executable, "/V:ON", "/C", wrapped]

    result = executor.run_captured(command)
    pre, block, found = split_output(result.output)

    if result.error is not None:
        return EnvSyncOutcome(1, pre, False, spawn_error=result.error)
    if result.exit_code != 0:
        return EnvSyncOutcome(result.exit_code, pre, False)
    if not found:
        return EnvSyncOutcome(0, pre, False)

    snapshot = parse_set_output(block)
    exit_code = pop_exit_code(snapshot)
    apply_environment(snapshot)
    return EnvSyncOutcome(exit_code, pre, True)
