# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/__init__.py
"""
vsbuild - run build steps against registered vSphere servers

Usage as a library:

    from vsbuild import EndpointRegistry, EndpointConfig, VSphereBuildStepContainer, BuildContext
    from vsbuild.steps import ConnectionCheck

    registry = EndpointRegistry([EndpointConfig(name="vc-east", host="vc-east.example.com", ...)])
    container = VSphereBuildStepContainer(ConnectionCheck(), "vc-east", registry=registry)
    container.perform(BuildContext())
"""

__version__ = "0.1.0"

from .steps import BuildContext, BuildStep, VSphereBuildStepContainer
from .vsphere import SELECTABLE_SERVER_NAME, EndpointConfig, EndpointRegistry, VSphereConnection

__all__ = [
    "__version__",
    "SELECTABLE_SERVER_NAME",
    "BuildContext",
    "BuildStep",
    "EndpointConfig",
    "EndpointRegistry",
    "VSphereBuildStepContainer",
    "VSphereConnection",
]
