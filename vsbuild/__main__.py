# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# vsbuild/__main__.py
from __future__ import annotations

import sys
import traceback
from typing import Any, Optional

from .cli.argument_parser import parse_args_with_config
from .cli.runner import JobRunner
from .core.exceptions import ConfigurationError, Fatal, VsBuildError, format_exception_for_cli


def _print_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


def _safe_log(logger: Any, level: str, msg: str) -> None:
    if logger is None:
        _print_stderr(msg)
        return
    fn = getattr(logger, level, None)
    if callable(fn):
        fn(msg)
    else:
        _print_stderr(msg)


def _log_error(logger: Any, e: VsBuildError, *, verbose: int, json_logs: bool) -> None:
    msg = format_exception_for_cli(e, verbose=verbose)
    if logger is not None and json_logs:
        logger.error(msg, extra={"ctx": {"error": e.to_dict(include_cause=verbose >= 2)}})
    else:
        _safe_log(logger, "error", msg)


def main(argv: Optional[list] = None) -> None:
    logger: Any = None

    # Phase 1: parse (Fatal can happen here; the config loader already logged it)
    try:
        args, conf, logger = parse_args_with_config(argv)
    except Fatal as e:
        if logger is None:
            _print_stderr(f"💥 ERROR    {e}")
        raise SystemExit(getattr(e, "code", 1))
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        raise SystemExit(130)

    verbose = int(getattr(args, "verbose", 0) or 0)
    json_logs = bool(getattr(args, "json_logs", False))

    # Phase 2: run the job
    try:
        rc = JobRunner(logger, args, conf).run()
    except ConfigurationError as e:
        _log_error(logger, e, verbose=verbose, json_logs=json_logs)
        rc = 2
    except VsBuildError as e:
        _log_error(logger, e, verbose=verbose, json_logs=json_logs)
        rc = e.code or 1
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        rc = 130
    except Exception as e:
        _safe_log(logger, "error", f"💥 UNHANDLED {type(e).__name__}: {e}")
        _safe_log(logger, "debug", traceback.format_exc())
        rc = 1

    raise SystemExit(rc)


if __name__ == "__main__":
    main()
