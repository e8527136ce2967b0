# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/steps/base.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from ..core.env import EnvVars
from ..core.exceptions import BuildInterrupted, ConfigurationError, VSphereError
from ..vsphere.connection import VSphereConnection
from ..vsphere.console import TaskListener


@dataclass
class BuildContext:
    """
    Everything a build step gets from the run executing it.

    `build_variables` is only set for matrix (multi-configuration) runs; its
    axis values take precedence over `env`.
    """

    env: EnvVars = field(default_factory=EnvVars)
    listener: TaskListener = field(default_factory=TaskListener)
    build_variables: Optional[Mapping[str, str]] = None
    interrupted: threading.Event = field(default_factory=threading.Event)

    def effective_env(self) -> EnvVars:
        env = EnvVars(self.env)
        if self.build_variables is not None:
            env.override_all(self.build_variables)
        return env

    def expand(self, text: Optional[str]) -> Optional[str]:
        return self.effective_env().expand(text)

    def check_interrupted(self) -> None:
        if self.interrupted.is_set():
            raise BuildInterrupted(code=130, msg="Build interrupted")


class BuildStep:
    """
    A unit of work that runs against an open vSphere connection.

    The container injects the connection with set_vsphere() right before
    calling perform(), on a shallow copy made for that run. Per-run state
    belongs on the copy; anything shared must be safe across threads.
    """

    display_name = "vSphere build step"

    def __init__(self) -> None:
        self._vsphere: Optional[VSphereConnection] = None

    def set_vsphere(self, vsphere: Optional[VSphereConnection]) -> None:
        self._vsphere = vsphere

    @property
    def vsphere(self) -> VSphereConnection:
        if self._vsphere is None:
            raise VSphereError(msg=f"{self.display_name}: no vSphere connection has been set")
        return self._vsphere

    def perform(self, ctx: BuildContext) -> None:
        raise NotImplementedError


_STEP_TYPES: Dict[str, Type[BuildStep]] = {}


def register_step(type_name: str) -> Callable[[Type[BuildStep]], Type[BuildStep]]:
    def decorator(cls: Type[BuildStep]) -> Type[BuildStep]:
        existing = _STEP_TYPES.get(type_name)
        if existing is not None and existing is not cls:
            raise ConfigurationError(msg=f"Build step type {type_name!r} already registered by {existing.__name__}")
        _STEP_TYPES[type_name] = cls
        return cls

    return decorator


def registered_steps() -> List[str]:
    return sorted(_STEP_TYPES)


def step_class(type_name: str) -> Type[BuildStep]:
    try:
        return _STEP_TYPES[type_name]
    except KeyError:
        raise ConfigurationError(
            msg=f"Unknown build step type {type_name!r} (known: {', '.join(registered_steps()) or 'none'})"
        ) from None


def build_step_from_config(step_conf: Any) -> BuildStep:
    """
    `step_conf` is a step type name or a mapping `{type: ..., <params>}`; the
    params become constructor keyword arguments.
    """
    if isinstance(step_conf, str):
        step_conf = {"type": step_conf}
    if not isinstance(step_conf, Mapping) or not step_conf.get("type"):
        raise ConfigurationError(msg="Build step must be a type name or a mapping with a 'type' key")
    params = {k: v for k, v in step_conf.items() if k != "type"}
    cls = step_class(str(step_conf["type"]))
    try:
        return cls(**params)
    except TypeError as e:
        raise ConfigurationError(msg=f"Invalid parameters for build step {step_conf['type']!r}: {e}", cause=e)
