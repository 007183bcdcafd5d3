# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Shell-integration snippets printed by ``void init <shell>``.

Each snippet re-invokes ``void prompt`` before every prompt draw and keeps
``VOID_LAST_EXIT_CODE`` exported so ``void cp err`` works from that shell.
"""

from __future__ import annotations

SUPPORTED_SHELLS = ("powershell", "bash", "zsh", "cmd")

POWERSHELL_SCRIPT = """\
$global:__void_last_exit = 0
function prompt {
    $code = $global:LASTEXITCODE
    if ($null -eq $code) { $code = 0 }
    $global:__void_last_exit = $code
    $env:VOID_LAST_EXIT_CODE = "$code"
    void prompt --last-exit-code $code --workdir "$PWD"
}"""

BASH_SCRIPT = """\
__void_prompt() {
  local code="$?"
  export VOID_LAST_EXIT_CODE="$code"
  PS1="$(void prompt --last-exit-code "$code" --workdir "$PWD" --shell bash)"
}
PROMPT_COMMAND=__void_prompt"""

ZSH_SCRIPT = """\
function precmd() {
  local code="$?"
  export VOID_LAST_EXIT_CODE="$code"
  PROMPT="$(void prompt --last-exit-code "$code" --workdir "$PWD" --shell zsh)"
}"""

CMD_SCRIPT = """\
:: CMD does not expose a native pre-prompt hook for running external programs.
:: This fallback keeps path + time visible in plain CMD.
PROMPT $P $T $G """

_SCRIPTS = {
    "powershell": POWERSHELL_SCRIPT,
    "pwsh": POWERSHELL_SCRIPT,
    "bash": BASH_SCRIPT,
    "zsh": ZSH_SCRIPT,
    "cmd": CMD_SCRIPT,
    "cmd.exe": CMD_SCRIPT,
}


def init_script(shell: str) -> str:
    """Return the setup snippet for ``shell``.

    Raises:
        ValueError: unsupported shell name
    """
    key = shell.strip().lower()
    try:
        return _SCRIPTS[key]
    except KeyError:
        raise ValueError(
            f"unsupported shell {shell!r} "
            f"(supported: {', '.join(SUPPORTED_SHELLS)})"
        ) from None
