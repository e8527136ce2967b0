# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/cli/argument_parser.py
from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config.config_loader import Config
from ..core.logger import Log, c
from ..core.utils import U

_EPILOG = """\
Examples:
  # run the step configured under `job:` in job.yaml
  vsbuild --config clouds.yaml --config job.yaml

  # pick the server from the environment
  vsbuild --config clouds.yaml --server '${VSPHERE_CLOUD_NAME}' \\
          --step connection_check -e VSPHERE_CLOUD_NAME=vc-west

  # matrix axis override
  vsbuild --config clouds.yaml --server 'vc-${REGION}' --step connection_check -D REGION=east

  # what can a job point at?
  vsbuild --config clouds.yaml --list-servers
"""


class HelpFormatter(argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter):
    pass


def build_parser() -> argparse.ArgumentParser:
    from .. import __version__

    p = argparse.ArgumentParser(
        prog="vsbuild",
        description=c("vsbuild: run a build step against a registered vSphere server", "green", ["bold"]),
        formatter_class=HelpFormatter,
        epilog=_EPILOG,
    )

    g = p.add_argument_group("Config / logging")
    g.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file (repeatable; later overrides earlier).",
    )
    g.add_argument("--dump-config", action="store_true", help="Print merged config and exit.")
    g.add_argument("--version", action="version", version=__version__)
    g.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -vv debug, -vvv trace")
    g.add_argument("-q", "--quiet", action="count", default=0, help="Less output: -q warnings, -qq errors")
    g.add_argument("--log-file", dest="log_file", default=None, help="Write logs to file.")
    g.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit NDJSON logs on stderr.")

    j = p.add_argument_group("Job")
    j.add_argument("--list-servers", dest="list_servers", action="store_true", help="List selectable servers and exit.")
    j.add_argument(
        "--server",
        default=None,
        help="Registered server name, or ${VSPHERE_CLOUD_NAME} to take it from the build environment.",
    )
    j.add_argument("--step", default=None, help="Build step type (see --list-steps).")
    j.add_argument("--list-steps", dest="list_steps", action="store_true", help="List build step types and exit.")
    j.add_argument(
        "-e",
        "--env",
        dest="env",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Build environment variable (repeatable).",
    )
    j.add_argument(
        "-D",
        "--var",
        dest="variables",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Matrix axis value; overrides --env for name expansion (repeatable).",
    )
    return p


def _build_preparser() -> argparse.ArgumentParser:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", action="append", default=[])
    pre.add_argument("-v", "--verbose", action="count", default=0)
    pre.add_argument("-q", "--quiet", action="count", default=0)
    pre.add_argument("--log-file", dest="log_file", default=None)
    pre.add_argument("--json-logs", dest="json_logs", action="store_true")
    pre.add_argument("--dump-config", action="store_true")
    return pre


def _job_defaults(conf: Dict[str, Any]) -> Dict[str, Any]:
    job = conf.get("job") or {}
    if not isinstance(job, dict):
        return {}
    out: Dict[str, Any] = {}
    if job.get("server") is not None:
        out["server"] = str(job["server"])
    step = job.get("step")
    if isinstance(step, str):
        out["step"] = step
    elif isinstance(step, dict) and step.get("type"):
        out["step"] = str(step["type"])
    return out


def parse_args_with_config(
    argv: Optional[Sequence[str]] = None,
    logger: Any = None,
) -> Tuple[argparse.Namespace, Dict[str, Any], Any]:
    """
    Phase 0: parse only the flags needed to locate config and set up logging
    Phase 1: load and merge config files
    Phase 2: apply config (and its `job:` section) as parser defaults
    Phase 3: full parse; the command line wins
    """
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    parser = build_parser()
    args0, _rest = _build_preparser().parse_known_args(argv)

    if logger is None:
        logger = Log.setup(
            getattr(args0, "verbose", 0),
            getattr(args0, "log_file", None),
            quiet=getattr(args0, "quiet", 0),
            json_logs=getattr(args0, "json_logs", False),
        )

    cfgs = getattr(args0, "config", None) or []
    conf: Dict[str, Any] = Config.load_many(logger, Config.expand_configs(logger, cfgs)) if cfgs else {}

    if getattr(args0, "dump_config", False):
        print(U.json_dump(conf))
        raise SystemExit(0)

    Config.apply_as_defaults(logger, parser, conf)
    job_defaults = _job_defaults(conf)
    if job_defaults:
        parser.set_defaults(**job_defaults)

    args = parser.parse_args(argv)
    return args, conf, logger
