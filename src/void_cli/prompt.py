# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Prompt rendering.

``render()`` turns a list of segment names, a fallback symbol, a palette
and a PromptContext into a styled prompt string:

    <badge> <badge> ...
    | <symbol>

Each badge is ``" text "`` wrapped in 24-bit ANSI colors, followed by a
powerline arrow whose foreground is the badge background and whose
background is the next badge's background.

Supported segments: user, path, time, exit_code.
"""

from __future__ import annotations

import getpass
import ntpath
import os
import posixpath
import random
import re
import socket
import subprocess
from dataclasses import dataclass
from datetime import datetime

from .utils import env_bool, env_flag

SEGMENT_SEPARATOR = ""
SEGMENT_SEPARATOR_ASCII = ""
PROMPT_LINE_PREFIX = "| "
ICON_LABEL_GAP = "  "
RESET = "\x1b[0m"

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")

# Zero-width markers for line editors that measure the prompt width.
NON_PRINTING_MARKERS: dict[str, tuple[str, str]] = {
    "bash": ("\\[", "\\]"),
    "zsh": ("%{", "%}"),
}

USER_ICON = "(-<)"
DRIVE_ICON = ""
FOLDER_ICON = ""
TIME_ICON = "⌛"
ERROR_ICON = ""

MAX_PATH_BREADCRUMBS = 20
DEFAULT_GRADIENT_STEPS = 20

DEFAULT_PATH_COLORS = [
    "#3b82f6", "#22c55e", "#a855f7", "#f59e0b", "#06b6d4",
    "#ef4444", "#84cc16", "#ec4899", "#6366f1", "#14b8a6",
    "#f97316", "#8b5cf6", "#10b981", "#eab308", "#0ea5e9",
    "#d946ef", "#65a30d", "#fb7185", "#2563eb", "#16a34a",
]

# Characters that show up when UTF-8 glyph bytes are decoded as
# Windows-1252 (e.g. "ðŸ’»" instead of an emoji).
MOJIBAKE_CHARS = frozenset(
    "ÃÂâðŸï¸"
    "‘¤€™œšž"
)


@dataclass(frozen=True)
class PromptContext:
    last_exit_code: int = 0
    working_directory: str = ""


@dataclass(frozen=True)
class Segment:
    text: str
    fg: str = ""
    bg: str = ""


# ----------------------------
# Collaborators (replaceable in tests)
# ----------------------------


def now() -> datetime:
    return datetime.now()


def current_directory() -> str:
    """Return the working directory, or "" when it no longer exists."""
    try:
        return os.getcwd()
    except OSError:
        return ""


def detect_git_branch(directory: str) -> str | None:
    try:
        proc = subprocess.run(
            ["git", "-C", directory, "rev-parse", "--abbrev-ref", "HEAD"],
            capture_output=True,
            text=True,
        )
    except OSError:
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip()


def detect_git_dirty(directory: str) -> bool:
    try:
        proc = subprocess.run(
            ["git", "-C", directory, "status", "--porcelain"],
            capture_output=True,
            text=True,
        )
    except OSError:
        return False
    if proc.returncode != 0:
        return False
    return bool(proc.stdout.strip())


def current_username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def current_hostname() -> str:
    try:
        return socket.gethostname()
    except OSError:
        return ""


# ----------------------------
# Capability detection
# ----------------------------


def supports_unicode() -> bool:
    override = env_flag("VOID_PROMPT_UNICODE")
    return True if override is None else override


def is_vscode_terminal() -> bool:
    return os.getenv("TERM_PROGRAM", "").strip().lower() == "vscode"


def is_likely_mojibake(icon: str) -> bool:
    s = icon.strip()
    for ch in s:
        code = ord(ch)
        if code < 0x20 or 0x7F <= code <= 0x9F:
            return True
        if ch in MOJIBAKE_CHARS:
            return True
    return False


def prompt_icon(icon: str) -> str:
    if not supports_unicode():
        return ""
    if is_vscode_terminal():
        if env_bool("VOID_VSCODE_EMPTY_ICONS") or is_likely_mojibake(icon):
            return ""
    return icon


def label_with_icon(icon: str, label: str) -> str:
    if not icon:
        return label
    if not label:
        return icon
    return icon + ICON_LABEL_GAP + label


# ----------------------------
# ANSI helpers
# ----------------------------


def ansi_rgb(prefix: str, color: str) -> str:
    """Return a true-color escape for ``#rrggbb`` or "" when invalid."""
    if not color.startswith("#") or len(color) != 7:
        return ""
    try:
        r = int(color[1:3], 16)
        g = int(color[3:5], 16)
        b = int(color[5:7], 16)
    except ValueError:
        return ""
    return f"\x1b[{prefix};2;{r};{g};{b}m"


def ansi_seq(fg: str, bg: str) -> str:
    return ansi_rgb("38", fg) + ansi_rgb("48", bg)


def new_segment(name: str, text: str, palette: dict[str, str]) -> Segment:
    fg = palette.get(f"{name}_fg", "")
    if name == "user":
        fg = "#ffffff"
    return Segment(text=text, fg=fg, bg=palette.get(f"{name}_bg", ""))


def render_with_arrows(segments: list[Segment], unicode_ok: bool) -> str:
    separator = SEGMENT_SEPARATOR if unicode_ok else SEGMENT_SEPARATOR_ASCII
    out: list[str] = []
    for i, segment in enumerate(segments):
        next_bg = segments[i + 1].bg if i + 1 < len(segments) else ""

        text = f" {segment.text} " if segment.bg else segment.text
        start = ansi_seq(segment.fg, segment.bg)
        if start:
            out.append(start + text + RESET)
        else:
            out.append(text)

        if segment.bg:
            arrow = ansi_seq(segment.bg, next_bg)
            if arrow:
                out.append(arrow + separator + RESET)
            else:
                out.append(separator)
        elif i + 1 < len(segments):
            out.append(" ")
    out.append(" ")
    return "".join(out)


# ----------------------------
# user segment
# ----------------------------


def parse_virtualenv_prompt(raw: str) -> str:
    """``(venv) `` -> ``venv``; anything else is returned trimmed."""
    trimmed = raw.strip()
    if not trimmed:
        return ""
    if trimmed.startswith("("):
        end = trimmed.find(")")
        if end > 1:
            label = trimmed[1:end].strip()
            if label:
                return label
    return trimmed


def active_env_label() -> str:
    label = os.getenv("VOID_ACTIVE_LABEL", "").strip()
    if label:
        return label

    label = parse_virtualenv_prompt(os.getenv("VIRTUAL_ENV_PROMPT", ""))
    if label:
        return label

    label = os.getenv("CONDA_DEFAULT_ENV", "").strip()
    if label:
        return label

    venv = os.getenv("VIRTUAL_ENV", "").strip()
    if venv:
        base = os.path.basename(os.path.normpath(venv)).strip()
        if base and base not in {".", os.sep}:
            return base
    return ""


def git_branch_label(directory: str) -> str:
    directory = directory.strip() or current_directory()
    if not directory:
        return ""
    branch = (detect_git_branch(directory) or "").strip()
    if not branch or branch.upper() == "HEAD":
        return ""
    return branch


def system_identity_label() -> str:
    username = current_username().strip()
    if not username:
        username = os.getenv("USERNAME", "").strip()
    if not username:
        username = os.getenv("USER", "").strip()
    host = current_hostname().strip()

    if username:
        if "\\" in username or "@" in username:
            return username.upper()
        if host:
            return f"{host}\\{username}".upper()
        return username.upper()
    return host.upper()


def user_label(directory: str) -> str:
    env_label = active_env_label()
    branch = git_branch_label(directory)

    if branch:
        if detect_git_dirty(directory.strip() or current_directory()):
            branch = f"{branch} [.]"
        if env_label:
            return f"{env_label.upper()} | {branch}"
        return branch
    if env_label:
        return env_label.upper()
    return system_identity_label()


# ----------------------------
# path segment
# ----------------------------


def _pathmod():
    return ntpath if os.name == "nt" else posixpath


def path_breadcrumbs(working_directory: str) -> list[str]:
    """Split a directory into root/volume crumb + one crumb per component.

    At most MAX_PATH_BREADCRUMBS crumbs are returned.
    """
    folder = prompt_icon(FOLDER_ICON)
    drive = prompt_icon(DRIVE_ICON)
    pathmod = _pathmod()
    root_fallback = folder or pathmod.sep

    if not working_directory:
        return [root_fallback]

    clean = pathmod.normpath(working_directory)
    volume, remainder = pathmod.splitdrive(clean)
    parts = [p for p in remainder.replace("\\", "/").split("/") if p]

    crumbs: list[str] = []
    if volume:
        crumbs.append(label_with_icon(drive, volume))
    elif clean.startswith(("/", "\\")):
        crumbs.append(folder or ("\\" if os.name == "nt" else "/"))

    for part in parts:
        if len(crumbs) >= MAX_PATH_BREADCRUMBS:
            break
        crumbs.append(label_with_icon(folder, part))

    return crumbs or [root_fallback]


def path_gradient(palette: dict[str, str]) -> list[str]:
    """Background colors for path crumbs.

    Explicit ``path_bg_1``..``path_bg_20`` entries win, in order. Otherwise
    the 20 default colors are shuffled, with a valid ``path_bg`` taking the
    place of one of them.
    """
    explicit = [
        palette[f"path_bg_{i}"]
        for i in range(1, DEFAULT_GRADIENT_STEPS + 1)
        if palette.get(f"path_bg_{i}")
    ]
    if explicit:
        return explicit

    base = palette.get("path_bg", "").strip()
    if not ansi_rgb("48", base):
        base = ""

    colors: list[str] = []
    if base:
        colors.append(base.lower())
    for color in DEFAULT_PATH_COLORS:
        if len(colors) == DEFAULT_GRADIENT_STEPS:
            break
        if color.lower() in colors:
            continue
        colors.append(color)

    random.shuffle(colors)
    return colors


def path_segments(working_directory: str, palette: dict[str, str]) -> list[Segment]:
    colors = path_gradient(palette)
    segments = []
    for i, crumb in enumerate(path_breadcrumbs(working_directory)):
        base = new_segment("path", crumb, palette)
        segments.append(Segment(base.text, base.fg, colors[i % len(colors)]))
    return segments


# ----------------------------
# time / exit_code
# ----------------------------


def format_clock(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def exit_code_label(code: int) -> str:
    return f"{code} {'error' if code == 1 else 'errors'}"


# ----------------------------
# Render
# ----------------------------


def render(
    segments: list[str],
    symbol: str,
    palette: dict[str, str],
    ctx: PromptContext,
) -> str:
    unicode_ok = supports_unicode()
    working_directory = ctx.working_directory or current_directory()

    rendered: list[Segment] = []
    for name in segments:
        if name == "user":
            label = user_label(working_directory)
            if label:
                rendered.append(new_segment(
                    "user", label_with_icon(prompt_icon(USER_ICON), label), palette
                ))
        elif name == "path":
            rendered.extend(path_segments(working_directory, palette))
        elif name == "time":
            rendered.append(new_segment(
                "time",
                label_with_icon(prompt_icon(TIME_ICON), format_clock(now())),
                palette,
            ))
        elif name == "exit_code":
            if ctx.last_exit_code != 0:
                rendered.append(new_segment(
                    "exit_code",
                    label_with_icon(
                        prompt_icon(ERROR_ICON),
                        exit_code_label(ctx.last_exit_code),
                    ),
                    palette,
                ))

    symbol = symbol or ">"
    if not unicode_ok and not symbol.isascii():
        symbol = ">"
    symbol_segment = new_segment("symbol", symbol, palette)

    if not rendered:
        return render_with_arrows([symbol_segment], unicode_ok)

    badges = render_with_arrows(rendered, unicode_ok).rstrip(" ")
    prompt_symbol = render_with_arrows([symbol_segment], unicode_ok).lstrip(" ")
    return badges + "\n" + PROMPT_LINE_PREFIX + prompt_symbol


def guard_escapes(text: str, shell: str) -> str:
    """Wrap each ANSI escape in the shell's non-printing markers.

    Unknown shells get the text back unchanged.
    """
    markers = NON_PRINTING_MARKERS.get(shell.strip().lower())
    if markers is None:
        return text
    start, end = markers
    return ANSI_ESCAPE_RE.sub(lambda m: f"{start}{m.group(0)}{end}", text)
