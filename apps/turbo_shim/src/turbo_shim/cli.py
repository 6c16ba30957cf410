#!/usr/bin/env python
from __future__ import annotations

import json
import os
import sys
from typing import Any

from repo_inference import RepoState, VersionGateError

from turbo_shim.args import ShimArgs, ShimArgsError
from turbo_shim.config import ShimConfig
from turbo_shim.dispatch import DelegationError, run


def _enable_console_backslashreplace(stream: Any) -> None:
    reconfigure = getattr(stream, "reconfigure", None)
    if not callable(reconfigure):
        return
    try:
        if str(getattr(stream, "errors", "")).lower() == "backslashreplace":
            return
        reconfigure(errors="backslashreplace")
    except Exception:
        return


def _configure_console_output() -> None:
    _enable_console_backslashreplace(sys.stdout)
    _enable_console_backslashreplace(sys.stderr)


def report_engine(repo_state: RepoState | None, shim_args: ShimArgs) -> int:
    """
    Stand-in for the turbo execution engine: report what would run.
    """

    payload = {
        "repo_state": repo_state.to_dict() if repo_state is not None else None,
        "args": list(shim_args.remaining_turbo_args),
        "forwarded_args": list(shim_args.forwarded_args),
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def main(argv: list[str] | None = None) -> int:
    _configure_console_output()
    raw_argv = sys.argv[1:] if argv is None else argv

    try:
        shim_args = ShimArgs.parse(raw_argv)
        config = ShimConfig.from_env(os.environ)
        return run(shim_args, config, engine=report_engine)
    except (ShimArgsError, VersionGateError, DelegationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
