"""
Tests for void_cli.completion (engine + prompt_toolkit completers).
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from prompt_toolkit.document import Document

from void_cli.completion import (
    BUILTIN_COMMANDS,
    MAX_COMPLETIONS,
    CompletionEngine,
    VoidCompleter,
    path_executables,
)


def _engine(executables: set[str] | None = None) -> CompletionEngine:
    found = executables or set()
    return CompletionEngine(executables=lambda: set(found))


# ----------------------------------------------------------------
# CompletionEngine
# ----------------------------------------------------------------


def test_builtins_are_candidates():
    engine = _engine()
    assert engine.complete("do") == ["docker"]
    assert set(BUILTIN_COMMANDS) <= engine.candidates()


def test_history_first_tokens_are_candidates():
    engine = _engine()
    history = ["kubectl get pods", "  ", "make test"]
    assert engine.complete("ku", history) == ["kubectl"]
    assert engine.complete("ma", history) == ["make"]


def test_prefix_match_is_case_insensitive_and_sorted():
    engine = _engine({"Gradle", "gcc", "gzip"})
    assert engine.complete("G") == ["Gradle", "gcc", "git", "go", "gzip"]


def test_results_are_capped():
    engine = _engine({f"tool{i:02d}" for i in range(40)})
    matches = engine.complete("tool")
    assert len(matches) == MAX_COMPLETIONS
    assert matches[0] == "tool00"


def test_executables_cached_per_path(monkeypatch):
    calls: list[int] = []

    def scan() -> set[str]:
        calls.append(1)
        return {"tool"}

    engine = CompletionEngine(executables=scan)
    monkeypatch.setenv("PATH", "/a")
    engine.complete("t")
    engine.complete("t")
    assert len(calls) == 1

    monkeypatch.setenv("PATH", "/b")
    engine.complete("t")
    assert len(calls) == 2


@pytest.mark.skipif(os.name == "nt", reason="POSIX executable bits")
def test_path_executables_scans_path(tmp_path: Path, monkeypatch):
    exe = tmp_path / "mytool"
    exe.write_text("#!/bin/sh\n", encoding="utf-8")
    exe.chmod(0o755)
    (tmp_path / "data.txt").write_text("x", encoding="utf-8")
    monkeypatch.setenv("PATH", str(tmp_path))

    assert path_executables() == {"mytool"}


# ----------------------------------------------------------------
# VoidCompleter
# ----------------------------------------------------------------


def _texts(completer: VoidCompleter, text: str) -> list[str]:
    doc = Document(text, cursor_position=len(text))
    return [c.text for c in completer.get_completions(doc, None)]


def test_first_token_completes_aliases_then_commands():
    completer = VoidCompleter(
        _engine({"gsutil"}),
        aliases=lambda: {"gs": "git status"},
        history=lambda: [],
    )
    assert _texts(completer, "gs") == ["gs", "gsutil"]


def test_alias_not_repeated_as_command():
    completer = VoidCompleter(
        _engine({"gs"}),
        aliases=lambda: {"gs": "git status"},
        history=lambda: [],
    )
    assert _texts(completer, "gs") == ["gs"]


def test_empty_line_has_no_completions():
    completer = VoidCompleter(_engine(), aliases=dict, history=list)
    assert _texts(completer, "") == []


def test_arguments_complete_paths(tmp_path: Path, monkeypatch):
    (tmp_path / "src").mkdir()
    (tmp_path / "setup.cfg").write_text("", encoding="utf-8")
    (tmp_path / "other").write_text("", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    completer = VoidCompleter(_engine(), aliases=dict, history=list)

    assert _texts(completer, "cat s") == ["setup.cfg", "src/"]
    assert sorted(_texts(completer, "cat ")) == ["other", "setup.cfg", "src/"]
