# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Void CLI entry point and REPL loop.

Design:
- CLI owns process startup: config + preset loading, subcommands.
- Kernel is the session engine (config+history+executor+clipboard injected).
- UI is terminal-friendly PromptSession (keeps scrollback + copy/select).

Subcommands (run and exit, no REPL):
- ``void prompt [--config P] [--last-exit-code N] [--workdir DIR] [--shell S]``
- ``void init <powershell|pwsh|bash|zsh|cmd>``
- ``void cp <err|error>`` / ``void copy-error``
- ``void bench <command> [args...]`` (alias ``b``)
"""

from __future__ import annotations

import argparse
import ctypes
import os
import sys
from collections.abc import Callable
from pathlib import Path

from .bench import run_bench
from .clipboard import ClipboardError, PyperclipClipboard
from .config import ConfigError, VoidConfig, load_config
from .executor import SubprocessExecutor
from .history import HistoryStore
from .integration import init_script
from .interfaces import ClipboardWriter
from .kernel import Kernel, write_crash_log
from .prompt import PromptContext, guard_escapes, render
from .theme import PresetError, apply_preset
from .ui import PromptToolkitUI
from .utils import env_bool

COPY_USAGE = "usage: void cp <err|error>"
INIT_USAGE = "usage: void init <powershell|bash|zsh|cmd>"
UTF8_CODE_PAGE = 65001


def _load_merged_config(config_path: str) -> tuple[VoidConfig, Path | None] | None:
    """Load config + preset, reporting failures on stderr."""
    try:
        cfg, path = load_config(config_path)
    except ConfigError as e:
        print(f"void: failed to load config: {e}", file=sys.stderr)
        return None
    try:
        merged = apply_preset(cfg)
    except PresetError as e:
        print(f"void: failed to apply theme preset: {e}", file=sys.stderr)
        return None
    return merged, path


def build_kernel(cfg: VoidConfig, source: str = "") -> Kernel:
    """Explicit wiring: history + executor + clipboard injected into kernel."""
    history = HistoryStore(cfg.history.path, cfg.history.max_size)
    return Kernel(
        config=cfg,
        config_source=source,
        history=history,
        executor=SubprocessExecutor(),
        clipboard=PyperclipClipboard(),
    )


def run_repl(
    kernel: Kernel,
    ui: PromptToolkitUI | None = None,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> None:
    """Run the interactive Void loop until ``exit`` or end-of-input."""

    def emit_newline() -> None:
        if ui is not None:
            ui.write("\n")
        else:
            output_fn("")

    while kernel.running:
        try:
            prompt = kernel.prompt()
            if ui is not None:
                line = ui.read(prompt)
            else:
                line = input_fn(prompt)
        except KeyboardInterrupt:
            # Abandon the current line and redraw the prompt.
            emit_newline()
            continue
        except EOFError:
            emit_newline()
            kernel.shutdown()
            break

        line = (line or "").strip()
        if not line:
            continue

        try:
            kernel.handle_line(line)
        except KeyboardInterrupt:
            emit_newline()
            kernel.last_exit_code = 130
        except Exception as e:
            # Unhandled exception - write crash log, keep the session alive
            write_crash_log(e, raw_command=line)
            kernel.report_error(
                f"void: unhandled exception: {type(e).__name__}: {e}"
            )
            kernel.last_exit_code = 1


# ----------------------------
# Subcommands
# ----------------------------


def _parse_or_none(
    parser: argparse.ArgumentParser, args: list[str]
) -> argparse.Namespace | int:
    try:
        return parser.parse_args(args)
    except SystemExit as e:
        # --help exits 0, bad flags exit non-zero
        return 0 if not e.code else 1


def run_prompt(args: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="void prompt", description="Render one Void prompt and exit."
    )
    parser.add_argument("--config", default="", help="Path to config file")
    parser.add_argument(
        "--last-exit-code", type=int, default=0,
        help="Previous command exit code",
    )
    parser.add_argument("--workdir", default="", help="Working directory")
    parser.add_argument(
        "--shell", default="",
        help="Wrap escapes in this shell's non-printing markers (bash, zsh)",
    )
    ns = _parse_or_none(parser, args)
    if isinstance(ns, int):
        return ns

    loaded = _load_merged_config(ns.config)
    if loaded is None:
        return 1
    cfg, _path = loaded

    out = render(
        cfg.prompt.segments,
        cfg.prompt.symbol,
        cfg.palette,
        PromptContext(
            last_exit_code=ns.last_exit_code,
            working_directory=ns.workdir,
        ),
    )
    sys.stdout.write(guard_escapes(out, ns.shell))
    sys.stdout.flush()
    return 0


def run_init(args: list[str]) -> int:
    if len(args) != 1:
        print(INIT_USAGE, file=sys.stderr)
        return 1
    try:
        snippet = init_script(args[0])
    except ValueError as e:
        print(f"void: {e}", file=sys.stderr)
        return 1
    print(snippet)
    return 0


def captured_shell_error() -> str:
    """Error text exported by the shell integration, or ""."""
    message = os.getenv("VOID_LAST_ERROR", "").strip()
    if message:
        return message
    code = os.getenv("VOID_LAST_EXIT_CODE", "").strip()
    if code and code != "0":
        return f"last command exited with code {code}"
    return ""


def run_copy(args: list[str], clipboard: ClipboardWriter | None = None) -> int:
    if not args or args[0].strip().lower() not in {"err", "error"}:
        print(COPY_USAGE, file=sys.stderr)
        return 1

    message = captured_shell_error()
    if not message:
        print(
            "void: no captured error found in this shell session",
            file=sys.stderr,
        )
        print(
            "hint: run `void init <shell>` and reload your shell profile",
            file=sys.stderr,
        )
        return 1

    writer = clipboard if clipboard is not None else PyperclipClipboard()
    try:
        writer.copy(message)
    except ClipboardError as e:
        print(f"void: cp error failed: {e}", file=sys.stderr)
        return 1
    print("copied last error to clipboard")
    return 0


def run_bench_command(args: list[str]) -> int:
    return run_bench(
        args,
        SubprocessExecutor(),
        output_fn=sys.stdout.write,
        error_fn=sys.stderr.write,
    )


def enable_utf8_console() -> None:
    """Switch the Windows console code pages to UTF-8 for prompt glyphs."""
    if os.name != "nt":
        return
    kernel32 = ctypes.windll.kernel32
    kernel32.SetConsoleOutputCP(UTF8_CODE_PAGE)
    kernel32.SetConsoleCP(UTF8_CODE_PAGE)


def run_interactive(args: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="void", description="Void interactive shell."
    )
    parser.add_argument("--config", default="", help="Path to config file")
    ns = _parse_or_none(parser, args)
    if isinstance(ns, int):
        return ns

    loaded = _load_merged_config(ns.config)
    if loaded is None:
        return 1
    cfg, path = loaded

    try:
        kernel = build_kernel(cfg, str(path) if path else ns.config)
    except OSError as e:
        print(f"void: failed to initialize shell: {e}", file=sys.stderr)
        return 1

    # If user explicitly disables prompt_toolkit UI:
    if env_bool("VOID_LEGACY_UI"):
        run_repl(kernel)
        return 0

    # Default: PromptToolkitUI (keeps terminal scrollback/copy/select)
    ui = PromptToolkitUI(kernel)
    kernel.output_fn = ui.write
    run_repl(kernel, ui=ui)
    return 0


SUBCOMMANDS: dict[str, Callable[[list[str]], int]] = {
    "prompt": run_prompt,
    "init": run_init,
    "cp": run_copy,
    "copy-error": lambda _args: run_copy(["error"]),
    "bench": run_bench_command,
    "b": run_bench_command,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ``void`` command."""
    enable_utf8_console()
    args = list(sys.argv[1:] if argv is None else argv)
    if args and args[0] in SUBCOMMANDS:
        return SUBCOMMANDS[args[0]](args[1:])
    return run_interactive(args)
