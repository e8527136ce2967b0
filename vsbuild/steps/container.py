# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/steps/container.py
from __future__ import annotations

import copy
import logging
from typing import Optional

from ..core.exceptions import AbortError, ConfigurationError
from ..vsphere.connection import ConnectionFactory, VSphereConnection, default_connection_factory
from ..vsphere.console import BUILD_STEP_START, USING_SERVER_CONFIG, TaskListener, VSphereLogger
from ..vsphere.endpoint import EndpointConfig, EndpointReference, FromEnvironment, parse_reference
from ..vsphere.registry import EndpointRegistry
from .base import BuildContext, BuildStep


class VSphereBuildStepContainer:
    """
    Runs one build step against a registered vSphere server.

    A literal server name is resolved to the server's stable hash when the
    container is created, and the hash is what finds the server at run time,
    so renaming the server does not break the job. With the selectable
    placeholder the server is looked up by the expanded name on every run.
    """

    def __init__(
        self,
        build_step: BuildStep,
        server_name: str,
        *,
        registry: EndpointRegistry,
        connection_factory: Optional[ConnectionFactory] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.logger = logger or logging.getLogger("vsbuild.steps.container")
        self._build_step = build_step
        self._server_name = server_name
        self._reference: EndpointReference = parse_reference(server_name)
        self._registry = registry
        self._connection_factory = connection_factory or default_connection_factory(self.logger)

        self._server_hash: Optional[int] = None
        if not isinstance(self._reference, FromEnvironment):
            ep = registry.get_by_name(server_name)
            if ep is None:
                raise ConfigurationError(msg=f"vSphere server not found: {server_name!r}").with_context(
                    server=server_name
                )
            self._server_hash = ep.hash

    @property
    def server_name(self) -> str:
        return self._server_name

    @property
    def server_hash(self) -> Optional[int]:
        return self._server_hash

    @property
    def reference(self) -> EndpointReference:
        return self._reference

    @property
    def build_step(self) -> BuildStep:
        return self._build_step

    def _resolve(self, expanded_server_name: Optional[str]) -> EndpointConfig:
        if self._server_hash is not None:
            return self._registry.require_by_hash(self._server_hash)
        return self._registry.require_by_name(expanded_server_name)

    def _start_logs(self, listener: TaskListener, server_name: Optional[str]) -> None:
        VSphereLogger.vs_logger(listener, "")
        VSphereLogger.vs_logger(listener, BUILD_STEP_START.format(self._build_step.display_name))
        VSphereLogger.vs_logger(listener, USING_SERVER_CONFIG.format(server_name))

    def perform(self, ctx: BuildContext) -> None:
        """
        Resolve the server, connect, and run the build step on that connection.

        Each call works on its own shallow copy of the build step, so runs that
        overlap never see each other's connection. Any ``Exception`` is re-raised
        as ``AbortError`` carrying only its message. ``KeyboardInterrupt`` and
        ``SystemExit`` pass through unchanged. The connection is released
        exactly once in every case where it was opened.
        """
        vsphere: Optional[VSphereConnection] = None
        try:
            expanded_server_name = ctx.expand(self._server_name)
            self._start_logs(ctx.listener, expanded_server_name)

            endpoint = self._resolve(expanded_server_name)
            self.logger.debug(
                "Resolved vSphere server %r -> %s (hash %s)", expanded_server_name, endpoint.name, endpoint.hash
            )
            vsphere = self._connection_factory(endpoint)

            step = copy.copy(self._build_step)
            step.set_vsphere(vsphere)
            step.perform(ctx)
        except Exception as e:
            self.logger.debug("vSphere build step %r failed", self._build_step.display_name, exc_info=True)
            raise AbortError(msg=str(e) or type(e).__name__, cause=e) from None
        finally:
            if vsphere is not None:
                vsphere.disconnect()
