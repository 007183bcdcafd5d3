# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Configuration model and filesystem discovery for Void.

Handles:
- Config model (shell, prompt, history, palette, alias)
- Config file resolution (--config, VOID_CONFIG, ~/.void, %APPDATA%)
- Simplified ``[section]`` / ``key = value`` decoding + validation
- Data root resolution (VOID_DATA_HOME, ~/.void)
- ANSI coloring constants for user-facing messages
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path

# -----------------------
# UI constants
# -----------------------

ANSI_COLORS: dict[str, str] = {
    "cyan": "\033[38;5;69;1m",
    "pink": "\033[38;5;169;1m",
    "yellow": "\033[38;5;226;1m",
    "reset": "\033[0m",
    "dim": "\033[2m",
    "green": "\033[32m",
    "red": "\033[31m",
}

DEFAULT_SEGMENTS = ["user", "path", "time"]
DEFAULT_HISTORY_PATH = "~/.void/history"
DEFAULT_HISTORY_MAX_SIZE = 5000


class ConfigError(ValueError):
    """Raised when a config file cannot be decoded or fails validation."""


# -----------------------
# Config model
# -----------------------


def default_shell() -> str:
    return "cmd.exe" if os.name == "nt" else "sh"


@dataclass
class ShellConfig:
    executable: str = field(default_factory=default_shell)
    args: list[str] = field(default_factory=list)


@dataclass
class PromptConfig:
    symbol: str = ">"
    segments: list[str] = field(
        default_factory=lambda: list(DEFAULT_SEGMENTS)
    )


@dataclass
class HistoryConfig:
    path: str = DEFAULT_HISTORY_PATH
    max_size: int = DEFAULT_HISTORY_MAX_SIZE


@dataclass
class VoidConfig:
    """Session configuration (one value, replaced whole on reload)."""

    preset: str = ""
    palette: dict[str, str] = field(default_factory=dict)
    shell: ShellConfig = field(default_factory=ShellConfig)
    prompt: PromptConfig = field(default_factory=PromptConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    alias: dict[str, str] = field(default_factory=dict)

    def copy(self) -> VoidConfig:
        return copy.deepcopy(self)


# -----------------------
# Data root
# -----------------------


def get_data_root() -> Path:
    """Get the data root directory for Void.

    Resolution order:
    1. VOID_DATA_HOME environment variable (if set)
    2. ~/.void (default)
    """
    void_data_home = os.getenv("VOID_DATA_HOME")
    if void_data_home:
        return Path(void_data_home)
    return Path.home() / ".void"


def expand_home(path: str) -> str:
    """Expand a leading ``~/`` to the user's home directory."""
    if path.startswith("~/"):
        return str(Path.home() / path[2:])
    return path


# -----------------------
# Resolution + loading
# -----------------------


def config_candidates(from_flag: str = "") -> list[Path]:
    """Candidate config paths, highest priority first."""
    candidates: list[Path] = []
    if from_flag:
        candidates.append(Path(from_flag))

    env_path = os.getenv("VOID_CONFIG")
    if env_path:
        candidates.append(Path(env_path))

    candidates.append(Path.home() / ".void" / "config.toml")

    app_data = os.getenv("APPDATA")
    if app_data:
        candidates.append(Path(app_data) / "Void" / "config.toml")
    return candidates


def resolve_config_path(from_flag: str = "") -> Path | None:
    for candidate in config_candidates(from_flag):
        if candidate.exists():
            return candidate
    return None


def load_config(from_flag: str = "") -> tuple[VoidConfig, Path | None]:
    """Load the effective configuration.

    Returns:
        (config, source path or None when running on defaults)

    Raises:
        ConfigError: malformed file, invalid numeric field, or a value
            that fails validation.
    """
    cfg = VoidConfig()
    path = resolve_config_path(from_flag)
    if path is not None:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"decode config: {e}") from e
        decode_config(text, cfg)

    cfg.history.path = expand_home(cfg.history.path)
    validate_config(cfg)
    return cfg, path


def validate_config(cfg: VoidConfig) -> None:
    if not cfg.shell.executable.strip():
        raise ConfigError("shell.executable cannot be empty")
    if cfg.history.max_size <= 0:
        raise ConfigError("history.max_size must be greater than zero")
    if not cfg.history.path:
        raise ConfigError("history.path cannot be empty")


# -----------------------
# Simplified TOML decoding
# -----------------------


def parse_array(value: str) -> list[str]:
    """Parse ``[a, "b", c]`` into a list of strings."""
    inner = value.strip().strip("[]").strip()
    if not inner:
        return []
    return [part.strip().strip('"') for part in inner.split(",")]


def decode_config(text: str, cfg: VoidConfig) -> VoidConfig:
    """Decode the simplified config format into ``cfg`` (in place).

    Only ``[section]`` headers, ``key = value`` pairs, ``#`` comments and
    bracketed arrays are understood; anything else is skipped.
    """
    section = ""
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("[") and line.endswith("]"):
            section = line.strip("[]").strip()
            continue
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        is_array = value.startswith("[")
        if not is_array:
            value = value.strip('"')

        if section == "":
            if key == "preset":
                cfg.preset = value
        elif section == "shell":
            if key == "executable":
                cfg.shell.executable = value
            elif key == "args":
                cfg.shell.args = parse_array(value)
        elif section == "prompt":
            if key == "symbol":
                cfg.prompt.symbol = value
            elif key == "segments":
                cfg.prompt.segments = parse_array(value)
        elif section == "history":
            if key == "path":
                cfg.history.path = value
            elif key == "max_size":
                try:
                    cfg.history.max_size = int(value)
                except ValueError as e:
                    raise ConfigError(
                        f"invalid history.max_size: {value!r}"
                    ) from e
        elif section == "palette":
            cfg.palette[key] = value
        elif section == "alias":
            cfg.alias[key] = value

    return cfg
