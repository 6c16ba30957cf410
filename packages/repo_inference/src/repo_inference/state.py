from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from repo_inference.workspaces import (
    DEFAULT_PACKAGE_MANAGERS,
    PACKAGE_JSON,
    PackageManager,
    WorkspaceProbe,
    get_workspace_globs,
    is_workspace_root,
)

TURBO_JSON = "turbo.json"


class InferenceError(RuntimeError):
    pass


class RepoMode(str, Enum):
    SINGLE_PACKAGE = "single_package"
    MULTI_PACKAGE = "multi_package"


@dataclass(frozen=True)
class RepoState:
    root: Path
    mode: RepoMode

    def to_dict(self) -> dict[str, Any]:
        return {"root": str(self.root), "mode": self.mode.value}


def _ancestors(start: Path) -> Iterator[Path]:
    yield start
    yield from start.parents


def _ancestors_containing(start: Path, filename: str) -> Iterator[Path]:
    return (path for path in _ancestors(start) if (path / filename).exists())


def infer_repo_state(
    current_dir: Path,
    *,
    probe: WorkspaceProbe = get_workspace_globs,
    package_managers: tuple[PackageManager, ...] = DEFAULT_PACKAGE_MANAGERS,
) -> RepoState:
    """
    Infer the repository root and mode for `current_dir`.

    The closest ancestor holding `turbo.json` wins outright; only that directory is
    checked for workspaces. Without one, the closest `package.json` ancestor that
    declares workspaces is the multi-package root, falling back to the closest
    `package.json` ancestor in single-package mode.

    Raises
    ------
    InferenceError
        When no ancestor holds `turbo.json` or `package.json`.
    """

    # Symlinks are not followed: a linked directory belongs to the repo holding the link.
    start = current_dir.absolute()

    marker_root = next(_ancestors_containing(start, TURBO_JSON), None)
    if marker_root is not None:
        is_workspace = is_workspace_root(
            marker_root, probe=probe, package_managers=package_managers
        )
        mode = RepoMode.MULTI_PACKAGE if is_workspace else RepoMode.SINGLE_PACKAGE
        return RepoState(root=marker_root, mode=mode)

    first_package_json_dir: Path | None = None
    for candidate in _ancestors_containing(start, PACKAGE_JSON):
        if first_package_json_dir is None:
            first_package_json_dir = candidate
        if is_workspace_root(candidate, probe=probe, package_managers=package_managers):
            return RepoState(root=candidate, mode=RepoMode.MULTI_PACKAGE)

    if first_package_json_dir is None:
        raise InferenceError(f"Unable to find `{TURBO_JSON}` or `{PACKAGE_JSON}` in current path")
    return RepoState(root=first_package_json_dir, mode=RepoMode.SINGLE_PACKAGE)
