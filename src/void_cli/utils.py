# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Utility functions for Void.
"""

from __future__ import annotations

import os

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def expand_alias(line: str, aliases: dict[str, str]) -> str:
    """Expand the first token of ``line`` using the alias table.

    Only the first whitespace-delimited token is matched, and its first
    occurrence in the line is replaced. Alias values are not expanded
    again.

    Args:
        line: Raw command line
        aliases: Mapping of alias name to replacement text

    Returns:
        The expanded (and trimmed) line, or ``line`` unchanged when the
        first token is not an alias
    """
    fields = line.split()
    if not fields:
        return line

    replacement = aliases.get(fields[0])
    if replacement is None:
        return line
    return line.replace(fields[0], replacement, 1).strip()


def human_bytes(size: int) -> str:
    """Format a byte count with base-1024 units and one decimal.

    Examples: ``512 B``, ``1.5 KiB``, ``2.0 MiB``.
    """
    unit = 1024
    if size < unit:
        return f"{size} B"

    div = unit
    exp = 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}iB"


def env_flag(name: str) -> bool | None:
    """Read a boolean override from the environment.

    Returns True/False for recognised values and None when the variable
    is unset or holds anything else.
    """
    value = os.getenv(name, "").strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


def env_bool(name: str) -> bool:
    return env_flag(name) is True
