# Void — Native Shell Front-End with Themed Prompt
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Void core package.

A themed interactive front-end for the native shell: prompt rendering,
aliases, history and completion live here, command execution is
delegated to the configured shell.
"""
from .kernel import Kernel as Kernel  # noqa: F401 (re-export)
