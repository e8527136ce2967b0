# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/vsphere/registry.py
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..core.exceptions import ConfigurationError, ResolutionError
from .endpoint import SELECTABLE_SERVER_NAME, EndpointConfig

logger = logging.getLogger("vsbuild.vsphere.registry")


class EndpointRegistry:
    """
    The set of vSphere servers known to this process.

    Passed explicitly to whatever needs it. Lookups and reconfiguration may
    run from different build threads; every call holds the registry lock.
    """

    def __init__(self, endpoints: Iterable[EndpointConfig] = ()) -> None:
        self._lock = threading.RLock()
        self._by_name: Dict[str, EndpointConfig] = {}
        for ep in endpoints:
            self.register(ep)

    @classmethod
    def from_config(cls, conf: Mapping[str, Any]) -> "EndpointRegistry":
        clouds = conf.get("clouds") or []
        if not isinstance(clouds, list):
            raise ConfigurationError(msg=f"'clouds' must be a list, got {type(clouds).__name__}")
        reg = cls()
        for entry in clouds:
            if not isinstance(entry, Mapping):
                raise ConfigurationError(msg=f"'clouds' entries must be mappings, got {type(entry).__name__}")
            reg.register(EndpointConfig.from_dict(entry))
        logger.debug("Registered %d vSphere server(s): %s", len(reg), reg.names())
        return reg

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._by_name

    # Mutation

    def register(self, endpoint: EndpointConfig) -> None:
        if endpoint.name == SELECTABLE_SERVER_NAME:
            raise ConfigurationError(msg=f"{SELECTABLE_SERVER_NAME} is reserved and cannot name a server")
        with self._lock:
            if endpoint.name in self._by_name:
                raise ConfigurationError(msg=f"Duplicate vSphere server name: {endpoint.name!r}")
            self._check_hash_free(endpoint)
            self._by_name[endpoint.name] = endpoint

    def replace(self, endpoint: EndpointConfig) -> None:
        with self._lock:
            self._check_hash_free(endpoint)
            self._by_name[endpoint.name] = endpoint

    def _check_hash_free(self, endpoint: EndpointConfig) -> None:
        # a hash must name exactly one server or hash lookups become ambiguous
        for other in self._by_name.values():
            if other.name != endpoint.name and other.hash == endpoint.hash:
                raise ConfigurationError(
                    msg=(
                        f"vSphere server {endpoint.name!r} points at the same host, port and user as "
                        f"{other.name!r}; register it once and reference that name"
                    )
                ).with_context(server=endpoint.name, existing=other.name, server_hash=endpoint.hash)

    def remove(self, name: str) -> Optional[EndpointConfig]:
        with self._lock:
            return self._by_name.pop(name, None)

    def rename(self, old: str, new: str) -> EndpointConfig:
        with self._lock:
            ep = self._by_name.get(old)
            if ep is None:
                raise ResolutionError(msg=f"vSphere server not found: {old!r}")
            if new != old and new in self._by_name:
                raise ConfigurationError(msg=f"Duplicate vSphere server name: {new!r}")
            renamed = ep.renamed(new)
            del self._by_name[old]
            self._by_name[new] = renamed
            return renamed

    # Lookup

    def names(self) -> List[str]:
        with self._lock:
            return list(self._by_name)

    def get_by_name(self, name: Optional[str]) -> Optional[EndpointConfig]:
        if name is None:
            return None
        with self._lock:
            return self._by_name.get(name)

    def get_by_hash(self, token: int) -> Optional[EndpointConfig]:
        with self._lock:
            for ep in self._by_name.values():
                if ep.hash == token:
                    return ep
        return None

    def require_by_name(self, name: Optional[str]) -> EndpointConfig:
        ep = self.get_by_name(name)
        if ep is None:
            raise ResolutionError(msg=f"vSphere server not found: {name!r}").with_context(server=name)
        return ep

    def require_by_hash(self, token: int) -> EndpointConfig:
        ep = self.get_by_hash(token)
        if ep is None:
            raise ResolutionError(
                msg=f"vSphere server configuration has changed or was removed (hash {token})"
            ).with_context(server_hash=token)
        return ep


def server_name_choices(registry: EndpointRegistry) -> List[str]:
    """
    Server names offered when configuring a job, plus the selectable
    placeholder when any server exists. Never raises.
    """
    try:
        names = registry.names()
    except Exception as e:
        logger.warning("Could not list vSphere servers: %s", e, exc_info=True)
        return []
    if names:
        names.append(SELECTABLE_SERVER_NAME)
    return names
