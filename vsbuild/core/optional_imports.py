# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/core/optional_imports.py
"""
Centralized optional imports, so call sites don't each carry an import guard.
"""

from __future__ import annotations

# Rich library (console formatting)
try:
    from rich.console import Console

    RICH_AVAILABLE = True
except Exception:
    Console = None  # type: ignore
    RICH_AVAILABLE = False
