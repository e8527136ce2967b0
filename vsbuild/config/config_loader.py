# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/config/config_loader.py
from __future__ import annotations

import argparse
import glob
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

try:
    import yaml  # type: ignore

    YAML_AVAILABLE = True
except Exception:  # pragma: no cover
    yaml = None  # type: ignore
    YAML_AVAILABLE = False

from ..core.utils import U


def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


class Config:
    """
    YAML/JSON config files, merged left to right (later files win).

    Layout:

        clouds:
          - name: vc-east
            host: vcenter-east.example.com
            user: administrator@vsphere.local
            password_env: VC_EAST_PASSWORD
            insecure: true
        job:
          server: ${VSPHERE_CLOUD_NAME}
          step: {type: connection_check}
          env: {VSPHERE_CLOUD_NAME: vc-east}
          variables: {}
    """

    @staticmethod
    def expand_configs(logger: logging.Logger, cfgs: Sequence[str]) -> List[Path]:
        out: List[Path] = []
        for raw in cfgs:
            pattern = str(Path(raw).expanduser())
            matches = sorted(glob.glob(pattern)) if glob.has_magic(pattern) else [pattern]
            if not matches:
                U.die(logger, f"Config glob matched nothing: {raw}", 2)
            for m in matches:
                p = Path(m)
                if not p.is_file():
                    U.die(logger, f"Config file not found: {p}", 2)
                out.append(p)
        return out

    @staticmethod
    def load_one(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        raw = path.read_text(encoding="utf-8")
        sfx = path.suffix.lower()
        if sfx == ".json":
            try:
                data = json.loads(raw) if raw.strip() else {}
            except ValueError as e:
                U.die(logger, f"Failed to parse config {path}: {e}", 2)
        else:
            if not YAML_AVAILABLE:
                U.die(logger, f"PyYAML is required to read {path}. Install with: pip install PyYAML", 2)
            try:
                data = yaml.safe_load(raw)
            except yaml.YAMLError as e:
                U.die(logger, f"Failed to parse config {path}: {e}", 2)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            U.die(logger, f"Config {path} must contain a mapping at top level, got {type(data).__name__}", 2)
        logger.debug("Loaded config %s (%d keys)", path, len(data))
        return data

    @staticmethod
    def load_many(logger: logging.Logger, paths: Sequence[Path]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in paths:
            merged = _deep_merge(merged, Config.load_one(logger, Path(p)))
        return merged

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        """
        Top-level config keys that match a parser dest become defaults, so the
        command line still overrides them.
        """
        dests = {a.dest for a in parser._actions}
        defaults = {k: v for k, v in conf.items() if k in dests}
        if defaults:
            logger.debug("Config defaults applied: %s", sorted(defaults))
            parser.set_defaults(**defaults)
