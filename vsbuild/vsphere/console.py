# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/vsphere/console.py
"""Build console output (what the person watching a build run sees)."""
from __future__ import annotations

import sys
import threading
from typing import List, Optional, TextIO

VSPHERE_LOG_PREFIX = "[vSphere] "

BUILD_STEP_START = 'Performing vSphere build step: "{0}"'
USING_SERVER_CONFIG = "Using vSphere server configuration: {0}"


class TaskListener:
    """
    Line-oriented sink for one build run's console.

    Writes go to `stream` (stdout by default). With `capture=True` lines are
    also kept in `lines`.
    """

    def __init__(self, stream: Optional[TextIO] = None, *, capture: bool = False) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()
        self.capture = capture
        self.lines: List[str] = []

    @property
    def logger(self) -> TextIO:
        return self._stream

    def println(self, line: str = "") -> None:
        with self._lock:
            self._stream.write(line + "\n")
            self._stream.flush()
            if self.capture:
                self.lines.append(line)

    def error(self, msg: str) -> None:
        self.println(f"ERROR: {msg}")


class VSphereLogger:
    @staticmethod
    def vs_logger(listener: TaskListener, msg: str) -> None:
        listener.println(VSPHERE_LOG_PREFIX + (msg or ""))
