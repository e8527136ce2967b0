# SPDX-License-Identifier: LGPL-3.0-or-later
# vsbuild/vsphere/__init__.py
"""
vSphere server registry and sessions.

- endpoint: registered server configs and references to them
- registry: lookup by name / stable hash
- connection: pyVmomi session lifecycle
- console: build console output
"""
from .connection import VSphereConnection, default_connection_factory
from .console import TaskListener, VSphereLogger
from .endpoint import SELECTABLE_SERVER_NAME, EndpointConfig, FromEnvironment, LiteralName, parse_reference
from .registry import EndpointRegistry, server_name_choices

__all__ = [
    "SELECTABLE_SERVER_NAME",
    "EndpointConfig",
    "EndpointRegistry",
    "FromEnvironment",
    "LiteralName",
    "TaskListener",
    "VSphereConnection",
    "VSphereLogger",
    "default_connection_factory",
    "parse_reference",
    "server_name_choices",
]
