# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/cli/runner.py
from __future__ import annotations

import argparse
import logging
import signal
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

from ..core.env import EnvVars, parse_assignments
from ..core.exceptions import ConfigurationError
from ..core.logger import Log
from ..core.optional_imports import Console
from ..steps.base import BuildContext, build_step_from_config, registered_steps
from ..steps.container import VSphereBuildStepContainer
from ..vsphere.connection import ConnectionFactory
from ..vsphere.console import TaskListener
from ..vsphere.registry import EndpointRegistry, server_name_choices


def _assignments(value: Any, what: str) -> Dict[str, str]:
    if not value:
        return {}
    if isinstance(value, Mapping):
        return {str(k): str(v) for k, v in value.items()}
    try:
        return parse_assignments(value)
    except ValueError as e:
        raise ConfigurationError(code=2, msg=f"Invalid {what}: {e}", cause=e)


def _print_list(title: str, items: Any) -> None:
    if Console is not None:
        console = Console()
        console.print(f"[bold]{title}[/bold]")
        for it in items:
            console.print(f"  • {it}", markup=False)
    else:
        print(title)
        for it in items:
            print(f"  - {it}")


class JobRunner:
    """
    Turns parsed CLI args plus the merged config into one container run.
    """

    def __init__(
        self,
        logger: logging.Logger,
        args: argparse.Namespace,
        conf: Dict[str, Any],
        *,
        connection_factory: Optional[ConnectionFactory] = None,
        listener: Optional[TaskListener] = None,
        base_env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.logger = logger
        self.args = args
        self.conf = conf or {}
        self.connection_factory = connection_factory
        self.listener = listener or TaskListener()
        self.base_env = base_env
        self.interrupted = threading.Event()

    def _job(self) -> Dict[str, Any]:
        job = self.conf.get("job") or {}
        if not isinstance(job, dict):
            raise ConfigurationError(code=2, msg=f"'job' must be a mapping, got {type(job).__name__}")
        return job

    def _step_spec(self) -> Any:
        job_step = self._job().get("step")
        cli_step = getattr(self.args, "step", None)
        if isinstance(job_step, dict) and (cli_step is None or cli_step == job_step.get("type")):
            return job_step
        if cli_step:
            return cli_step
        raise ConfigurationError(code=2, msg="No build step given (use --step or job.step in config)")

    def build_env(self) -> EnvVars:
        env = EnvVars.from_os() if self.base_env is None else EnvVars(self.base_env)
        env.override_all(_assignments(self._job().get("env"), "job.env"))
        env.override_all(_assignments(getattr(self.args, "env", None), "--env"))
        return env

    def build_variables(self) -> Optional[Dict[str, str]]:
        variables = _assignments(self._job().get("variables"), "job.variables")
        variables.update(_assignments(getattr(self.args, "variables", None), "--var"))
        return variables or None

    @contextmanager
    def _sigterm_interrupts(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def _on_term(signum: int, _frame: Any) -> None:
            self.logger.warning("Received signal %s; interrupting build step", signum)
            self.interrupted.set()

        previous = signal.signal(signal.SIGTERM, _on_term)
        try:
            yield
        finally:
            signal.signal(signal.SIGTERM, previous)

    def run(self) -> int:
        if getattr(self.args, "list_steps", False):
            _print_list("Build step types:", registered_steps())
            return 0

        registry = EndpointRegistry.from_config(self.conf)

        if getattr(self.args, "list_servers", False):
            _print_list("vSphere servers:", server_name_choices(registry))
            return 0

        server = getattr(self.args, "server", None)
        if not server:
            raise ConfigurationError(code=2, msg="No vSphere server given (use --server or job.server in config)")

        step = build_step_from_config(self._step_spec())
        container = VSphereBuildStepContainer(
            step,
            server,
            registry=registry,
            connection_factory=self.connection_factory,
            logger=self.logger,
        )
        ctx = BuildContext(
            env=self.build_env(),
            listener=self.listener,
            build_variables=self.build_variables(),
            interrupted=self.interrupted,
        )

        log = Log.bind(self.logger, server=server, step=step.display_name)
        Log.step(log, "Running build step")
        try:
            with self._sigterm_interrupts():
                container.perform(ctx)
        except Exception as e:
            Log.fail(log, "Build step failed")
            self.listener.error(str(e))
            self.listener.println("Finished: FAILURE")
            raise
        Log.ok(log, "Build step finished")
        self.listener.println("Finished: SUCCESS")
        return 0
