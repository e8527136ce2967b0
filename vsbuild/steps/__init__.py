# SPDX-License-Identifier: LGPL-3.0-or-later
# vsbuild/steps/__init__.py
"""
Build steps and the container that runs them against a vSphere server.
"""
from .base import BuildContext, BuildStep, build_step_from_config, register_step, registered_steps
from .connection_check import ConnectionCheck
from .container import VSphereBuildStepContainer

__all__ = [
    "BuildContext",
    "BuildStep",
    "ConnectionCheck",
    "VSphereBuildStepContainer",
    "build_step_from_config",
    "register_step",
    "registered_steps",
]
