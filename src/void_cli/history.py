# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
File-backed command history for Void.

The history file is plain text, one command per line. Entries are unique
and kept in insertion order; once the store grows past ``max_size`` the
oldest entry is evicted.
"""

from __future__ import annotations

from pathlib import Path


class HistoryStore:
    """Deduplicated, bounded command log."""

    def __init__(self, path: Path | str, max_size: int):
        """Initialize store and load any existing history file.

        Args:
            path: History file location (parent directory is created)
            max_size: Maximum number of entries kept
        """
        self.path = Path(path)
        self.max_size = max_size
        self._entries: list[str] = []
        self._seen: set[str] = set()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.load()

    def load(self) -> None:
        """Replace in-memory entries with the file contents.

        A missing file leaves the store empty; undecodable bytes become
        U+FFFD.
        """
        try:
            text = self.path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return

        self._entries = []
        self._seen = set()
        for line in text.splitlines():
            line = line.strip()
            if line:
                self.add(line)

    def add(self, command: str) -> None:
        if not command or command in self._seen:
            return
        self._entries.append(command)
        self._seen.add(command)
        if len(self._entries) > self.max_size:
            oldest = self._entries.pop(0)
            self._seen.discard(oldest)

    def entries(self) -> list[str]:
        """Return a snapshot of all entries, oldest first."""
        return list(self._entries)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            for line in self._entries:
                f.write(line + "\n")

    def __len__(self) -> int:
        return len(self._entries)
