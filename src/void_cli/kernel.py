# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Void kernel.

Session engine of the interactive shell:
- line routing (exit, ``void`` meta-commands, ``cd``, everything else)
- alias expansion + history recording
- built-ins (``dir``), environment-synced activation commands, and
  pass-through execution through the configured shell
- last exit code / last error bookkeeping for the prompt and copy-error

Important boundary:
- Kernel does not parse config files or find presets; reload goes through
  ``load_session_config``.
- Kernel never prints directly; text goes through output_fn / error_fn.
  Pass-through commands write straight to the inherited terminal.
"""

from __future__ import annotations

import os
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from . import config as cfg_module
from .clipboard import ClipboardError
from .completion import CompletionEngine
from .config import ConfigError, VoidConfig
from .dirlist import run_dir_builtin
from .envsync import needs_env_sync, run_with_env_sync
from .interfaces import ClipboardWriter, Executor, HistoryLog
from .prompt import PromptContext, current_directory, render
from .theme import PresetError, apply_preset
from .utils import expand_alias

META_PREFIX = "void"
EXIT_COMMAND = "exit"
CD_COMMAND = "cd"

COPY_ERROR_HINT = (
    "hint: run `void cp err` (or `void copy-error`) to copy the last error"
)
META_USAGE = "void commands: complete, history, reload, copy-error, cp err"


def write_crash_log(error: Exception, raw_command: str = "") -> None:
    """Write an entry to the crash log.

    Logs unhandled exceptions raised while handling a command line.
    Only creates the log directory when actually needed.
    Appends to crash.log (never overwrites).
    """
    try:
        logs_dir = cfg_module.get_data_root() / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)

        try:
            cwd = os.getcwd()
        except OSError:
            cwd = ""

        lines = [
            datetime.now().isoformat(),
            f"cwd={cwd}",
        ]
        if raw_command:
            lines.append(f"raw={raw_command}")
        lines.append(f"error={type(error).__name__}: {error}")
        lines.append("traceback:")
        lines.append(
            "".join(
                traceback.format_exception(
                    type(error), error, error.__traceback__
                )
            )
        )
        lines.append("----")

        with (logs_dir / "crash.log").open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    except Exception:
        # If we can't write the crash log, fail silently
        # (we're already in an error state)
        pass


def load_session_config(source: str = "") -> tuple[VoidConfig, Path | None]:
    """Load config and merge its preset.

    Raises:
        ConfigError, PresetError
    """
    cfg, path = cfg_module.load_config(source)
    return apply_preset(cfg), path


def _write_stdout(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _write_stderr(text: str) -> None:
    sys.stderr.write(text)
    sys.stderr.flush()


@dataclass
class Kernel:
    """Void session engine."""

    config: VoidConfig
    history: HistoryLog
    executor: Executor
    clipboard: ClipboardWriter
    config_source: str = ""
    completion: CompletionEngine = field(default_factory=CompletionEngine)

    last_exit_code: int = 0
    last_error: str = ""
    running: bool = True
    prev_cwd: str | None = None

    output_fn: Callable[[str], None] = _write_stdout
    error_fn: Callable[[str], None] = _write_stderr

    config_loader: Callable[[str], tuple[VoidConfig, Path | None]] = (
        load_session_config
    )

    # -----------------------
    # UI helper hooks
    # -----------------------

    def prompt(self) -> str:
        """Render the prompt for the current session state."""
        ctx = PromptContext(
            last_exit_code=self.last_exit_code,
            working_directory=current_directory(),
        )
        return render(
            self.config.prompt.segments,
            self.config.prompt.symbol,
            self.config.palette,
            ctx,
        )

    def expand_alias(self, token: str) -> str | None:
        """Used by the UI bottom toolbar to preview expansion."""
        return self.config.alias.get(token.strip()) if token else None

    # -----------------------
    # Command handling
    # -----------------------

    def handle_line(self, line: str) -> int:
        """Handle one input line and return its exit code.

        ``last_exit_code`` is updated for every path except empty input and
        ``exit``.
        """
        stripped = line.strip()
        if not stripped:
            return self.last_exit_code

        if stripped == EXIT_COMMAND:
            return self.shutdown()

        if stripped == META_PREFIX or stripped.startswith(META_PREFIX + " "):
            code = self.run_meta(stripped)
        elif stripped == CD_COMMAND or stripped.startswith(CD_COMMAND + " "):
            code = self.change_directory(stripped[len(CD_COMMAND):].strip())
        else:
            expanded = expand_alias(stripped, self.config.alias)
            self.history.add(expanded)
            code = self.run_command(expanded)

        self.last_exit_code = code
        return code

    def shutdown(self) -> int:
        """Persist history and stop the session."""
        self.running = False
        try:
            self.history.save()
        except OSError as e:
            self.report_error(f"void: save history: {e}")
            return 1
        return 0

    # -----------------------
    # Meta-commands
    # -----------------------

    def run_meta(self, line: str) -> int:
        fields = line.split()
        if len(fields) < 2:
            self.report_error(META_USAGE)
            return 1

        sub = fields[1]
        if sub == "history":
            for entry in self.history.entries():
                self.output_fn(entry + "\n")
            return 0

        if sub == "complete":
            if len(fields) < 3:
                self.report_error("usage: void complete <prefix>")
                return 1
            for match in self.completion.complete(
                fields[2], self.history.entries()
            ):
                self.output_fn(match + "\n")
            return 0

        if sub == "reload":
            return self.reload()

        if sub == "copy-error":
            return self.copy_last_error("copy-error")

        if sub == "cp":
            if len(fields) >= 3 and fields[2].lower() in {"err", "error"}:
                return self.copy_last_error("cp err")
            self.report_error("usage: void cp err")
            return 1

        self.report_error("unknown void command")
        return 1

    def reload(self) -> int:
        """Reload config + preset; keep the old config on failure."""
        try:
            cfg, _path = self.config_loader(self.config_source)
        except (ConfigError, PresetError) as e:
            self.report_error(f"reload failed: {e}")
            return 1

        self.config = cfg
        self.output_fn("configuration reloaded\n")
        return 0

    def copy_last_error(self, command_name: str) -> int:
        if not self.last_error.strip():
            self.report_error("no error message captured yet")
            return 1
        try:
            self.clipboard.copy(self.last_error)
        except ClipboardError as e:
            self.report_error(f"{command_name} failed: {e}")
            return 1
        self.output_fn("copied last error to clipboard\n")
        return 0

    # -----------------------
    # Builtins (cd)
    # -----------------------

    def change_directory(self, arg: str) -> int:
        """Change the process working directory.

        ``cd`` alone goes home, ``cd -`` toggles to the previous directory.
        """
        if os.name == "nt" and arg.lower().startswith("/d "):
            arg = arg[3:].strip()

        if not arg:
            target = os.path.expanduser("~")
        elif arg == "-":
            if self.prev_cwd is None:
                self.report_error("cd: no previous directory")
                return 1
            target = self.prev_cwd
        else:
            target = os.path.expanduser(arg)

        try:
            previous = os.getcwd()
        except OSError:
            previous = None

        try:
            os.chdir(target)
        except OSError as e:
            self.report_error(f"cd: {e}")
            return 1

        self.prev_cwd = previous
        return 0

    # -----------------------
    # Execution
    # -----------------------

    def run_command(self, line: str) -> int:
        handled, code = run_dir_builtin(line, self.output_fn, self.error_fn)
        if handled:
            return self._finish(line, code)

        shell = self.config.shell
        if needs_env_sync(shell.executable, line):
            return self._run_env_sync(line)

        result = self.executor.run_tty([shell.executable, *shell.args, line])
        if result.error is not None:
            self.report_error(f"void: run command: {result.error}")
            return 1
        return self._finish(line, result.exit_code)

    def _run_env_sync(self, line: str) -> int:
        outcome = run_with_env_sync(
            self.executor, self.config.shell.executable, line
        )
        if outcome.output:
            self.output_fn(outcome.output)
        if outcome.spawn_error is not None:
            self.report_error(f"void: run command: {outcome.spawn_error}")
            return 1
        return self._finish(line, outcome.exit_code)

    def _finish(self, line: str, exit_code: int) -> int:
        if exit_code != 0:
            self.record_error(
                f'command "{line}" exited with code {exit_code}'
            )
            self.print_copy_error_hint()
        else:
            self.last_error = ""
        return exit_code

    # -----------------------
    # Error bookkeeping
    # -----------------------

    def record_error(self, message: str) -> None:
        self.last_error = message.strip()

    def print_copy_error_hint(self) -> None:
        if not self.last_error.strip():
            return
        dim = cfg_module.ANSI_COLORS["dim"]
        reset = cfg_module.ANSI_COLORS["reset"]
        self.error_fn(f"{dim}{COPY_ERROR_HINT}{reset}\n")

    def report_error(self, message: str) -> None:
        self.record_error(message)
        if not self.last_error:
            return
        red = cfg_module.ANSI_COLORS["red"]
        reset = cfg_module.ANSI_COLORS["reset"]
        self.error_fn(f"{red}{self.last_error}{reset}\n")
        self.print_copy_error_hint()
