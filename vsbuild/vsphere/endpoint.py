# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/vsphere/endpoint.py
"""
Registered vSphere servers and references to them.

A build step names its server either literally ("vc-east", possibly with
`${VAR}` tokens) or with the selectable placeholder `${VSPHERE_CLOUD_NAME}`,
which defers the choice to the build environment.
"""
from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Union

from ..core.exceptions import ConfigurationError
from ..core.utils import U

SELECTABLE_SERVER_NAME = "${VSPHERE_CLOUD_NAME}"


def stable_hash(*parts: Any) -> int:
    """
    Deterministic signed 32-bit hash. Unlike hash(), it is identical
    across interpreter runs, so it can be stored with a job.
    """
    h = hashlib.sha256("\x1f".join(str(p) for p in parts).encode("utf-8")).digest()
    return int.from_bytes(h[:4], "big", signed=True)


@dataclass(frozen=True)
class EndpointConfig:
    """
    One registered vSphere/vCenter server.

    `hash` covers the connection target only (host, port, user), so renaming
    the server or rotating its password keeps the same identity.
    """

    name: str
    host: str
    user: str = ""
    password: Optional[str] = field(default=None, repr=False)
    password_env: Optional[str] = None
    port: int = 443
    insecure: bool = False
    timeout: Optional[float] = None

    @property
    def hash(self) -> int:
        return stable_hash(self.host.strip().lower(), int(self.port), self.user.strip())

    def renamed(self, new_name: str) -> "EndpointConfig":
        return replace(self, name=new_name)

    def resolve_password(self) -> str:
        if self.password:
            return self.password
        if self.password_env:
            pw = os.environ.get(self.password_env)
            if pw:
                return pw
            raise ConfigurationError(
                msg=f"Password env var {self.password_env} is not set for vSphere server {self.name!r}",
            ).with_context(server=self.name)
        raise ConfigurationError(msg=f"No password configured for vSphere server {self.name!r}").with_context(
            server=self.name
        )

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "EndpointConfig":
        name = str(d.get("name") or d.get("vs_description") or "").strip()
        host = str(d.get("host") or d.get("vs_host") or "").strip()
        if not name:
            raise ConfigurationError(msg="vSphere server entry is missing 'name'").with_context(host=host or None)
        if not host:
            raise ConfigurationError(msg=f"vSphere server {name!r} is missing 'host'").with_context(server=name)
        try:
            port = int(d.get("port") or 443)
            timeout = float(d["timeout"]) if d.get("timeout") is not None else None
        except (TypeError, ValueError) as e:
            raise ConfigurationError(msg=f"vSphere server {name!r} has invalid port/timeout: {e}", cause=e)
        return cls(
            name=name,
            host=host,
            user=str(d.get("user") or "").strip(),
            password=d.get("password") or None,
            password_env=d.get("password_env") or None,
            port=port,
            insecure=U.boolish(d.get("insecure", False)),
            timeout=timeout,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "host": self.host,
            "user": self.user,
            "port": self.port,
            "insecure": self.insecure,
            "hash": self.hash,
        }
        if self.password_env:
            d["password_env"] = self.password_env
        if self.timeout is not None:
            d["timeout"] = self.timeout
        return d


@dataclass(frozen=True)
class LiteralName:
    """A server named in the job, possibly containing `${VAR}` tokens."""

    name: str

    @property
    def text(self) -> str:
        return self.name


@dataclass(frozen=True)
class FromEnvironment:
    """Use whatever server the build environment selects."""

    @property
    def text(self) -> str:
        return SELECTABLE_SERVER_NAME


EndpointReference = Union[LiteralName, FromEnvironment]


def parse_reference(text: Optional[str]) -> EndpointReference:
    if text is None:
        raise ConfigurationError(msg="No vSphere server name given")
    if text == SELECTABLE_SERVER_NAME:
        return FromEnvironment()
    return LiteralName(text)
