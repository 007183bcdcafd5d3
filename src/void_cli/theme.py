# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Theme presets.

A preset is a YAML file under ``presets/`` with optional ``prompt``
(``symbol``, ``segments``) and ``palette`` mappings. Presets are looked up
through an ordered resolver chain:

1. ``./presets/<file>`` (working directory)
2. ``<executable dir>/presets/<file>``
3. packaged ``void_cli.presets`` resources
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any

import yaml

from .config import VoidConfig

PRESET_FILES: dict[str, str] = {
    "minimal": "minimal.yaml",
    "cyberpunk": "cyberpunk.yaml",
    "hacker": "hacker.yaml",
}


class PresetError(ValueError):
    """Raised when a preset is unknown, missing, or malformed."""


def executable_path() -> str:
    return sys.argv[0] if sys.argv and sys.argv[0] else sys.executable


# -----------------------
# Resolver chain
# -----------------------

PresetResolver = Callable[[str], Path | None]


def _from_working_dir(filename: str) -> Path | None:
    candidate = Path("presets") / filename
    return candidate if candidate.is_file() else None


def _from_executable_dir(filename: str) -> Path | None:
    exe = executable_path().strip()
    if not exe:
        return None
    candidate = Path(exe).resolve().parent / "presets" / filename
    return candidate if candidate.is_file() else None


def _from_package(filename: str) -> Path | None:
    candidate = Path(
        importlib_resources.files("void_cli.presets")
    ) / filename  # type: ignore[arg-type]
    return candidate if candidate.is_file() else None


PRESET_RESOLVERS: list[PresetResolver] = [
    _from_working_dir,
    _from_executable_dir,
    _from_package,
]


def resolve_preset_path(
    filename: str, resolvers: list[PresetResolver] | None = None
) -> Path:
    """Return the first existing preset file from the resolver chain."""
    for resolver in resolvers if resolvers is not None else PRESET_RESOLVERS:
        found = resolver(filename)
        if found is not None:
            return found
    raise PresetError(f"preset file {filename!r} not found")


def load_preset(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise PresetError(f"cannot read preset {path}: {e}") from e

    if not isinstance(data, dict):
        raise PresetError(f"preset {path} must load to a mapping")
    return data


def apply_preset(cfg: VoidConfig) -> VoidConfig:
    """Merge the configured preset into a copy of ``cfg``.

    Preset values override prompt symbol/segments and palette keys, but a
    preset never removes existing palette entries.
    """
    merged = cfg.copy()
    if not cfg.preset:
        return merged

    filename = PRESET_FILES.get(cfg.preset)
    if filename is None:
        raise PresetError(f"unknown preset: {cfg.preset}")

    data = load_preset(resolve_preset_path(filename))

    prompt_cfg = data.get("prompt") or {}
    if isinstance(prompt_cfg, dict):
        symbol = prompt_cfg.get("symbol")
        if isinstance(symbol, str) and symbol:
            merged.prompt.symbol = symbol
        segments = prompt_cfg.get("segments")
        if isinstance(segments, list) and segments:
            merged.prompt.segments = [str(s) for s in segments]

    palette = data.get("palette") or {}
    if isinstance(palette, dict):
        for key, value in palette.items():
            if isinstance(value, str):
                merged.palette[str(key)] = value

    return merged
