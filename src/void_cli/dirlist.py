# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
``dir`` built-in: a decorated directory listing.

Directories come first, then files, each sorted case-insensitively.
Native switches (``dir /w``, ``dir -la``) are left to the wrapped shell.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .utils import human_bytes

FILE_ICONS: dict[str, str] = {
    ".py": "🐍",
    ".go": "🐹",
    ".js": "🟨",
    ".ts": "🟨",
    ".md": "📝",
    ".toml": "⚙️",
    ".ini": "⚙️",
    ".yaml": "⚙️",
    ".yml": "⚙️",
    ".json": "🧩",
    ".exe": "⚡",
    ".bat": "⚡",
    ".cmd": "⚡",
    ".sh": "⚡",
}
DIR_ICON = "📁"
DEFAULT_FILE_ICON = "📄"

# "/" is a path root on POSIX, but a switch prefix for cmd.exe.
NATIVE_SWITCH_PREFIXES = ("/", "-") if os.name == "nt" else ("-",)


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    is_dir: bool
    mod_time: str
    size: int

    @property
    def icon(self) -> str:
        return file_icon(self.name, self.is_dir)


def file_icon(name: str, is_dir: bool) -> str:
    if is_dir:
        return DIR_ICON
    return FILE_ICONS.get(os.path.splitext(name)[1].lower(), DEFAULT_FILE_ICON)


def list_directory(target: str) -> tuple[Path, list[DirectoryEntry]]:
    """Read and sort a directory (dirs first, then case-insensitive name).

    Raises:
        OSError: if the directory cannot be read
    """
    abs_path = Path(target).expanduser().resolve()
    rows: list[DirectoryEntry] = []
    with os.scandir(abs_path) as it:
        for entry in it:
            try:
                info = entry.stat()
            except OSError:
                info = entry.stat(follow_symlinks=False)
            rows.append(
                DirectoryEntry(
                    name=entry.name,
                    is_dir=entry.is_dir(),
                    mod_time=datetime.fromtimestamp(info.st_mtime).strftime(
                        "%Y-%m-%d %H:%M"
                    ),
                    size=info.st_size,
                )
            )
    rows.sort(key=lambda r: (not r.is_dir, r.name.lower()))
    return abs_path, rows


def render_directory(target: str) -> str:
    abs_path, rows = list_directory(target)

    lines = [f"📂 {abs_path}", ""]
    dir_count = 0
    file_count = 0
    total_bytes = 0
    for row in rows:
        if row.is_dir:
            display = row.name + os.sep
            size_text = "<DIR>"
            dir_count += 1
        else:
            display = row.name
            size_text = human_bytes(row.size)
            file_count += 1
            total_bytes += row.size
        lines.append(f"{row.icon}  {row.mod_time}  {size_text:>8}  {display}")

    lines.append("")
    lines.append(
        f"{dir_count} folder(s), {file_count} file(s), "
        f"{human_bytes(total_bytes)} total"
    )
    return "\n".join(lines) + "\n"


def run_dir_builtin(
    line: str,
    output_fn: Callable[[str], None],
    error_fn: Callable[[str], None],
) -> tuple[bool, int]:
    """Handle ``dir [path]``.

    Returns:
        (handled, exit_code). ``handled`` is False when the line is not a
        ``dir`` invocation this built-in understands.
    """
    fields = line.split()
    if not fields or fields[0].lower() != "dir":
        return False, 0
    if len(fields) > 2:
        error_fn("usage: dir [path]\n")
        return True, 1
    if len(fields) == 2 and fields[1].startswith(NATIVE_SWITCH_PREFIXES):
        # Let shell-native switches (/w, /p, -la...) keep working.
        return False, 0

    target = fields[1] if len(fields) == 2 else "."
    try:
        output_fn(render_directory(target))
    except OSError as e:
        error_fn(f"dir: {e}\n")
        return True, 1
    return True, 0
