# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/steps/connection_check.py
from __future__ import annotations

from typing import Any, List

from ..core.exceptions import DelegatedActionError
from ..vsphere.console import VSphereLogger
from .base import BuildContext, BuildStep, register_step


@register_step("connection_check")
class ConnectionCheck(BuildStep):
    """Report what the connected server is; optionally list its datacenters."""

    display_name = "Check vSphere Connection"

    def __init__(self, list_datacenters: bool = False, require_datacenter: str = "") -> None:
        super().__init__()
        self.list_datacenters = bool(list_datacenters)
        self.require_datacenter = (require_datacenter or "").strip()

    def _datacenter_names(self, content: Any) -> List[str]:
        root = getattr(content, "rootFolder", None)
        names = []
        for child in getattr(root, "childEntity", None) or []:
            # Datacenters are the root folder children that own a vmFolder.
            if getattr(child, "vmFolder", None) is not None:
                names.append(str(child.name))
        return names

    def perform(self, ctx: BuildContext) -> None:
        ctx.check_interrupted()
        content = self.vsphere.content()
        about = getattr(content, "about", None)
        VSphereLogger.vs_logger(
            ctx.listener,
            f"Connected to {getattr(about, 'fullName', 'unknown')} (API {getattr(about, 'apiVersion', '?')})",
        )

        if not (self.list_datacenters or self.require_datacenter):
            return

        ctx.check_interrupted()
        dcs = self._datacenter_names(content)
        if self.list_datacenters:
            VSphereLogger.vs_logger(ctx.listener, f"Datacenters: {', '.join(dcs) or '(none)'}")
        if self.require_datacenter and self.require_datacenter not in dcs:
            raise DelegatedActionError(msg=f"Datacenter not found: {self.require_datacenter}")
