# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

from __future__ import annotations

from typing import TYPE_CHECKING

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import print_formatted_text
from prompt_toolkit.styles import Style

from .completion import VoidCompleter

if TYPE_CHECKING:
    from .kernel import Kernel  # pragma: no cover


# ----------------------------
# Theme / Style
# ----------------------------


def _default_style_dict() -> dict[str, str]:
    return {
        # completion menu
        "completion-menu": "bg:#111111 #d0d0d0",
        "completion-menu.completion": "bg:#111111 #d0d0d0",
        "completion-menu.completion.current": "bg:#303030 #ffffff bold",
        "completion-menu.meta.completion": "bg:#111111 #808080",
        "completion-menu.meta.completion.current": "bg:#303030 #a0a0a0",
        "scrollbar.background": "bg:#202020",
        "scrollbar.button": "bg:#505050",
        "bottom-toolbar": "bg:#0b0b0b #d0d0d0",
        # alias expansion line
        "void.aliasbar.label": "bg:#0b0b0b #a0a0a0",
        "void.aliasbar.value": "bg:#0b0b0b #d0d0d0",
    }


def _build_style(kernel: Kernel | None) -> Style:
    base = _default_style_dict()
    if kernel is not None:
        # The alias preview picks up the symbol color of the active preset.
        fg = kernel.config.palette.get("symbol_fg", "")
        if fg.startswith("#") and len(fg) == 7:
            base["void.aliasbar.value"] = f"bg:#0b0b0b {fg}"
    return Style.from_dict(base)


# ----------------------------
# PromptSession UI
# ----------------------------


class PromptToolkitUI:
    """
    Terminal-friendly line editor for the interactive shell:
      - Keeps normal terminal scrollback + drag-select copy.
      - Completion menu: aliases and commands on the first token,
        filesystem paths afterwards.
      - Bottom toolbar previews the alias expansion of the first token.
      - Up/Down walks the persisted history.
      - Ctrl+L clears the screen.
    """

    def __init__(self, kernel: Kernel | None = None) -> None:
        self.kernel = kernel
        self.session: PromptSession[str] | None = None
        self._completer: VoidCompleter | None = None
        self._style = _build_style(kernel)

        # Track whether we ended on a newline (to prevent prompt mangling)
        self._needs_newline_before_prompt = False

    # ---------- toolbar rendering ----------

    def _build_aliasbar_tokens(self) -> list[tuple[str, str]]:
        if self.session is None or self.kernel is None:
            return []

        s = (self.session.default_buffer.text or "").lstrip()
        if not s:
            return []

        # Preview the FIRST token, even while typing arguments.
        first = s.split(maxsplit=1)[0]
        expanded = self.kernel.expand_alias(first)
        if not expanded:
            return []

        return [
            ("class:void.aliasbar.label", "  "),
            ("class:void.aliasbar.value", f"{first} → {expanded}"),
            ("class:void.aliasbar.label", "  "),
        ]

    def _bottom_toolbar(self):
        tokens = self._build_aliasbar_tokens()
        return tokens if tokens else ""

    # ---------- session ----------

    def _seed_history(self) -> InMemoryHistory:
        history = InMemoryHistory()
        if self.kernel is not None:
            for entry in self.kernel.history.entries():
                history.append_string(entry)
        return history

    def _ensure_session(self) -> None:
        if self.session is not None:
            return

        key_bindings = self.build_key_bindings()
        if self.kernel is not None:
            kernel = self.kernel
            self._completer = VoidCompleter(
                kernel.completion,
                aliases=lambda: kernel.config.alias,
                history=kernel.history.entries,
            )

        self.session = PromptSession(
            key_bindings=key_bindings,
            completer=self._completer,
            complete_while_typing=False,
            style=self._style,
            bottom_toolbar=self._bottom_toolbar,
            history=self._seed_history(),
        )

    # ---------- public API ----------

    def read(self, prompt: str) -> str:
        self._ensure_session()
        assert self.session is not None

        if self._needs_newline_before_prompt:
            print_formatted_text(ANSI("\n"), style=self._style, end="")
            self._needs_newline_before_prompt = False

        with patch_stdout():
            # prompt contains ANSI from kernel.prompt(), so preserve it
            return self.session.prompt(ANSI(prompt))

    def write(self, text: str) -> None:
        """Write EXACTLY what we receive (no extra newline).

        Track prompt safety.
        """
        if not text:
            return
        print_formatted_text(ANSI(text), style=self._style, end="")
        self._needs_newline_before_prompt = not text.endswith("\n")

    # ---------- keybindings ----------

    def build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("c-l")
        def _(event):
            event.app.renderer.clear()
            event.app.invalidate()

        return kb
