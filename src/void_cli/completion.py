# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Command completion.

- CompletionEngine: candidate list used by ``void complete <prefix>``
  (builtin verbs + first tokens from history + executables on PATH)
- VoidCompleter: prompt_toolkit completer for the interactive UI
  (aliases + engine candidates on the first token, paths afterwards)
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable

from prompt_toolkit.completion import Completer, Completion

BUILTIN_COMMANDS = [
    "cd", "dir", "copy", "del", "exit", "git", "go", "npm", "docker", "python",
]
MAX_COMPLETIONS = 20


def path_executables() -> set[str]:
    """Executable names found on PATH (extension stripped on Windows)."""
    exes: set[str] = set()
    for directory in os.environ.get("PATH", "").split(os.pathsep):
        if not directory:
            continue
        try:
            names = os.listdir(directory)
        except OSError:
            continue
        for name in names:
            full = os.path.join(directory, name)
            if os.path.isfile(full) and os.access(full, os.X_OK):
                if os.name == "nt":
                    name = os.path.splitext(name)[0]
                exes.add(name)
    return exes


class CompletionEngine:
    """Prefix completion over builtins, history, and PATH."""

    def __init__(
        self,
        builtins: list[str] | None = None,
        executables: Callable[[], set[str]] = path_executables,
    ) -> None:
        self.builtins = list(BUILTIN_COMMANDS if builtins is None else builtins)
        self._executables = executables
        self._cache: set[str] | None = None
        self._cache_path: str | None = None

    def _load_executables(self) -> set[str]:
        path_val = os.environ.get("PATH", "")
        if self._cache is not None and self._cache_path == path_val:
            return self._cache
        self._cache = self._executables()
        self._cache_path = path_val
        return self._cache

    def candidates(self, history: Iterable[str] = ()) -> set[str]:
        names = set(self.builtins)
        for entry in history:
            fields = entry.split()
            if fields:
                names.add(fields[0])
        names.update(self._load_executables())
        return names

    def complete(self, prefix: str, history: Iterable[str] = ()) -> list[str]:
        lowered = prefix.lower()
        matches = sorted(
            c for c in self.candidates(history) if c.lower().startswith(lowered)
        )
        return matches[:MAX_COMPLETIONS]


# ----------------------------
# prompt_toolkit completers
# ----------------------------


class PathCompleter(Completer):
    """Filesystem path completion for arguments after the first token."""

    def _current_arg_token(self, full_text: str) -> str | None:
        stripped = full_text.lstrip()
        if " " not in stripped:
            return None
        if stripped.endswith(" "):
            return ""
        return stripped.split()[-1]

    def _list_dir(self, directory: str) -> list[str]:
        try:
            return sorted(os.listdir(directory))
        except OSError:
            return []

    def get_completions(self, document, complete_event) -> Iterable[Completion]:
        token = self._current_arg_token(document.text_before_cursor or "")
        if token is None:
            return

        expanded = os.path.expanduser(token)
        if token == "":
            base_dir = "."
            prefix = ""
            insert_prefix = ""
        elif expanded.endswith(("/", os.sep)):
            base_dir = expanded
            prefix = ""
            insert_prefix = token
        else:
            base_dir = os.path.dirname(expanded) or "."
            prefix = os.path.basename(expanded)
            insert_prefix = os.path.dirname(token)
            if insert_prefix and not insert_prefix.endswith("/"):
                insert_prefix += "/"

        for name in self._list_dir(base_dir):
            if not name.startswith(prefix):
                continue
            is_dir = os.path.isdir(os.path.join(base_dir, name))
            yield Completion(
                f"{insert_prefix}{name}" + ("/" if is_dir else ""),
                start_position=-len(token),
                display_meta="dir" if is_dir else "file",
            )


class VoidCompleter(Completer):
    """First token: aliases then commands. Later tokens: paths."""

    def __init__(
        self,
        engine: CompletionEngine,
        aliases: Callable[[], dict[str, str]],
        history: Callable[[], list[str]],
    ) -> None:
        self.engine = engine
        self._aliases = aliases
        self._history = history
        self._path = PathCompleter()

    def get_completions(self, document, complete_event) -> Iterable[Completion]:
        before = (document.text_before_cursor or "").lstrip()

        # Past the first token: complete paths.
        if " " in before:
            yield from self._path.get_completions(document, complete_event)
            return

        token = before
        if not token:
            return

        aliases = self._aliases()
        for name in sorted(aliases):
            if name.startswith(token):
                yield Completion(
                    name,
                    start_position=-len(token),
                    display_meta=aliases[name],
                )

        for name in self.engine.complete(token, self._history()):
            if name in aliases:
                continue
            yield Completion(
                name, start_position=-len(token), display_meta="cmd"
            )
