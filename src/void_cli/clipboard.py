# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""Clipboard writer backed by pyperclip."""

from __future__ import annotations

import pyperclip


class ClipboardError(RuntimeError):
    """Raised when text cannot be placed on the clipboard."""


class PyperclipClipboard:
    """pyperclip implementation of the ClipboardWriter protocol."""

    def copy(self, text: str) -> None:
        if not text.strip():
            raise ClipboardError("empty text")
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(str(e) or "clipboard unavailable") from e
