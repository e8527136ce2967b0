# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/vsphere/connection.py
from __future__ import annotations

"""
vSphere / vCenter session handed to build steps.
"""

import logging
import socket
import ssl
import threading
from typing import Any, Callable, Optional

try:
    from pyVim.connect import Disconnect, SmartConnect  # type: ignore

    PYVMOMI_AVAILABLE = True
except Exception:  # pragma: no cover
    SmartConnect = None  # type: ignore
    Disconnect = None  # type: ignore
    PYVMOMI_AVAILABLE = False

from ..core.exceptions import EndpointConnectionError, VSphereError, wrap_vsphere
from .endpoint import EndpointConfig

# socket.setdefaulttimeout is process-wide
_timeout_lock = threading.Lock()


class VSphereConnection:
    """
    One pyVmomi session to a vSphere server.

    disconnect() is safe to call more than once; only the first call talks
    to the server.
    """

    def __init__(
        self,
        logger: logging.Logger,
        host: str,
        user: str,
        password: str,
        *,
        port: int = 443,
        insecure: bool = False,
        timeout: Optional[float] = None,
        name: Optional[str] = None,
    ) -> None:
        self.logger = logger
        self.host = (host or "").strip()
        self.user = (user or "").strip()
        self.password = password or ""
        self.port = int(port)
        self.insecure = bool(insecure)
        self.timeout = timeout
        self.name = name or self.host

        self.si: Any = None
        self.disconnect_count = 0

    @classmethod
    def from_endpoint(cls, logger: logging.Logger, endpoint: EndpointConfig) -> "VSphereConnection":
        return cls(
            logger,
            endpoint.host,
            endpoint.user,
            endpoint.resolve_password(),
            port=endpoint.port,
            insecure=endpoint.insecure,
            timeout=endpoint.timeout,
            name=endpoint.name,
        )

    # Context managers

    def __enter__(self) -> "VSphereConnection":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.disconnect()
        return False

    def __repr__(self) -> str:
        return f"VSphereConnection(name={self.name!r}, host={self.host!r}, port={self.port}, connected={self.is_connected})"

    # Connection

    @property
    def is_connected(self) -> bool:
        return self.si is not None

    @property
    def service_instance(self) -> Any:
        if self.si is None:
            raise VSphereError(msg="Not connected").with_context(server=self.name)
        return self.si

    def _ssl_context(self) -> ssl.SSLContext:
        """
        insecure=True disables certificate and hostname verification, for
        servers with self-signed certificates.
        """
        if self.insecure:
            self.logger.warning("TLS certificate verification is DISABLED for %s:%s", self.host, self.port)
            ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            return ctx
        return ssl.create_default_context()

    def _smart_connect(self, ctx: ssl.SSLContext) -> Any:
        return SmartConnect(  # type: ignore[misc]
            host=self.host,
            user=self.user,
            pwd=self.password,
            port=self.port,
            sslContext=ctx,
        )

    def connect(self) -> None:
        if self.si is not None:
            return
        if not PYVMOMI_AVAILABLE:
            raise EndpointConnectionError(msg="pyvmomi not installed. Install: pip install pyvmomi")
        ctx = self._ssl_context()
        self.logger.debug("Connecting to vSphere %s (%s:%s as %s)", self.name, self.host, self.port, self.user)
        try:
            if self.timeout is not None:
                with _timeout_lock:
                    old_timeout = socket.getdefaulttimeout()
                    socket.setdefaulttimeout(self.timeout)
                    try:
                        self.si = self._smart_connect(ctx)
                    finally:
                        socket.setdefaulttimeout(old_timeout)
            else:
                self.si = self._smart_connect(ctx)
        except Exception as e:
            self.si = None
            raise EndpointConnectionError(
                msg=f"Failed to connect to vSphere {self.host}:{self.port}: {e}",
                cause=e,
            ).with_context(server=self.name)
        self.logger.info("Connected to vSphere: %s:%s", self.host, self.port)

    def disconnect(self) -> None:
        if self.si is None:
            return
        si, self.si = self.si, None
        self.disconnect_count += 1
        try:
            Disconnect(si)  # type: ignore[misc]
            self.logger.debug("Disconnected from vSphere: %s:%s", self.host, self.port)
        except Exception as e:
            self.logger.error("Error during disconnect from %s: %s", self.host, e)

    def content(self) -> Any:
        try:
            return self.service_instance.RetrieveContent()
        except VSphereError:
            raise
        except Exception as e:
            raise wrap_vsphere(f"Failed to retrieve content: {e}", e, server=self.name)


ConnectionFactory = Callable[[EndpointConfig], VSphereConnection]


def default_connection_factory(logger: Optional[logging.Logger] = None) -> ConnectionFactory:
    lg = logger or logging.getLogger("vsbuild.vsphere")

    def _open(endpoint: EndpointConfig) -> VSphereConnection:
        conn = VSphereConnection.from_endpoint(lg, endpoint)
        conn.connect()
        return conn

    return _open
