from __future__ import annotations

import os
import subprocess
import sys
import threading
from pathlib import Path
from typing import Callable

from repo_inference import InferenceError, RepoMode, RepoState, infer_repo_state
from repo_inference.versions import supports_skip_infer

from turbo_shim.args import FORWARD_SEPARATOR, SINGLE_PACKAGE_FLAG, SKIP_INFER_FLAG, ShimArgs
from turbo_shim.config import ShimConfig

TURBO_BIN_NAME = "turbo"

# Exit code reported when the delegated process has no exit status of its own
# (for example it was killed by a signal).
UNKNOWN_EXIT_CODE = 2

Engine = Callable[["RepoState | None", ShimArgs], int]
UpdateCheck = Callable[[], object]


class DelegationError(RuntimeError):
    pass


def _eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


def _is_windows_platform(*, force_windows: bool | None = None) -> bool:
    if force_windows is not None:
        return force_windows
    return os.name == "nt"


def local_turbo_path(repo_root: Path, *, force_windows: bool | None = None) -> Path:
    name = TURBO_BIN_NAME
    if _is_windows_platform(force_windows=force_windows):
        name = f"{name}.cmd"
    return repo_root / "node_modules" / ".bin" / name


def _canonicalize(path: Path) -> Path:
    try:
        return path.resolve(strict=True)
    except OSError as e:
        raise DelegationError(f"Failed to resolve {path}: {e}") from e


def should_run_current_turbo(local_turbo: Path, current_exe: Path) -> bool:
    """
    True when there is no local turbo, or when the local turbo is this process.
    """

    # Existence is checked first: canonicalizing a missing path fails.
    if not local_turbo.exists():
        return True
    return _canonicalize(local_turbo) == current_exe.resolve()


def build_local_argv(repo_state: RepoState, shim_args: ShimArgs) -> list[str]:
    raw_args: list[str] = [SKIP_INFER_FLAG] if supports_skip_infer(repo_state.root) else []

    raw_args.extend(shim_args.remaining_turbo_args)
    if repo_state.mode is RepoMode.SINGLE_PACKAGE and not shim_args.has_single_package_flag():
        raw_args.append(SINGLE_PACKAGE_FLAG)

    raw_args.append(FORWARD_SEPARATOR)
    raw_args.extend(shim_args.forwarded_args)
    return raw_args


def spawn_local_turbo(local_turbo: Path, argv: list[str], *, cwd: Path) -> int:
    """
    Run the local turbo with inherited stdio and wait for it.

    Returns the child's exit code, or `UNKNOWN_EXIT_CODE` when it was terminated by a
    signal.
    """

    try:
        with subprocess.Popen([str(local_turbo), *argv], cwd=str(cwd)) as proc:
            returncode = proc.wait()
    except OSError as e:
        raise DelegationError(f"Failed to execute turbo at {local_turbo}: {e}") from e

    if returncode < 0:
        return UNKNOWN_EXIT_CODE
    return returncode


def run_correct_turbo(
    repo_state: RepoState,
    shim_args: ShimArgs,
    config: ShimConfig,
    *,
    engine: Engine,
    force_windows: bool | None = None,
) -> int:
    """
    Run the turbo that owns `repo_state`.

    If the repository has no local turbo, or this process is the local turbo, the
    current engine runs in-process. Otherwise the local turbo is spawned with the
    inference result passed along as flags.
    """

    candidate = local_turbo_path(repo_state.root, force_windows=force_windows)
    if should_run_current_turbo(candidate, config.current_exe):
        return engine(repo_state, shim_args)

    canonical_local_turbo = _canonicalize(candidate)
    argv = build_local_argv(repo_state, shim_args)
    cwd = _canonicalize(repo_state.root)

    if not shim_args.has_json_flags():
        print(f"Running local turbo binary in {canonical_local_turbo}\n", flush=True)
    return spawn_local_turbo(canonical_local_turbo, argv, cwd=cwd)


def _run_update_check(update_check: UpdateCheck) -> None:
    try:
        update_check()
    except Exception:  # noqa: BLE001
        return


def start_update_check(update_check: UpdateCheck) -> threading.Thread:
    thread = threading.Thread(
        target=_run_update_check,
        args=(update_check,),
        name="turbo-shim-update-check",
        daemon=True,
    )
    thread.start()
    return thread


def _infer_or_none(shim_args: ShimArgs) -> RepoState | None:
    try:
        return infer_repo_state(shim_args.cwd)
    except InferenceError as e:
        # Global commands (login, logout, link, unlink) still work without a repo.
        _eprint(f"Repository inference failed: {e}")
        _eprint("Running command as global turbo")
        return None


def run(
    shim_args: ShimArgs,
    config: ShimConfig,
    *,
    engine: Engine,
    update_check: UpdateCheck | None = None,
    force_windows: bool | None = None,
) -> int:
    """
    Dispatch one invocation and return its exit code.

    `update_check` is a hook for embedders that ship an update notifier; the
    `turbo-shim` console entrypoint passes none. When given, it runs in a daemon
    thread unless pure-output flags are present, and its outcome is discarded.
    """

    if update_check is not None and not shim_args.has_json_flags():
        start_update_check(update_check)

    # A parent turbo already did inference and passed the result along as flags.
    if shim_args.skip_infer:
        return engine(None, shim_args)

    if config.delegation_disabled:
        return engine(_infer_or_none(shim_args), shim_args)

    repo_state = _infer_or_none(shim_args)
    if repo_state is None:
        return engine(None, shim_args)
    return run_correct_turbo(
        repo_state, shim_args, config, engine=engine, force_windows=force_windows
    )
