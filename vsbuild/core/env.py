# SPDX-License-Identifier: LGPL-3.0-or-later
# vsbuild/core/env.py
"""
Build environment variables and `${VAR}` / `$VAR` expansion.

Unknown variables are left in place so an unexpanded reference stays
visible in console output. `$$` is an escaped dollar sign.
"""
from __future__ import annotations

import os
import re
from typing import Dict, Iterable, Mapping, Optional, Tuple

_VAR_RE = re.compile(r"\$\$|\$\{([A-Za-z0-9_.]+)\}|\$([A-Za-z0-9_]+)")


def expand_vars(text: Optional[str], variables: Mapping[str, str]) -> Optional[str]:
    if not text or "$" not in text:
        return text

    def _sub(m: "re.Match[str]") -> str:
        if m.group(0) == "$$":
            return "$"
        key = m.group(1) or m.group(2)
        value = variables.get(key)
        return m.group(0) if value is None else str(value)

    return _VAR_RE.sub(_sub, text)


class EnvVars(dict):
    """Environment of one build run."""

    @classmethod
    def from_os(cls) -> "EnvVars":
        return cls(os.environ)

    def override_all(self, overrides: Optional[Mapping[str, str]]) -> "EnvVars":
        if overrides:
            for k, v in overrides.items():
                if v is None:
                    self.pop(str(k), None)
                else:
                    self[str(k)] = str(v)
        return self

    def expand(self, text: Optional[str]) -> Optional[str]:
        return expand_vars(text, self)


def parse_assignments(items: Iterable[str]) -> Dict[str, str]:
    """
    Parse `KEY=VALUE` strings (CLI -e / -D). Empty VALUE is allowed.
    """
    out: Dict[str, str] = {}
    for raw in items or ():
        key, value = _split_assignment(raw)
        out[key] = value
    return out


def _split_assignment(raw: str) -> Tuple[str, str]:
    if "=" not in raw:
        raise ValueError(f"expected KEY=VALUE, got {raw!r}")
    key, value = raw.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError(f"empty variable name in {raw!r}")
    return key, value
