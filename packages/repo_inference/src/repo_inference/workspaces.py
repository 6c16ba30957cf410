from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import yaml

PACKAGE_JSON = "package.json"
PNPM_WORKSPACE_YAML = "pnpm-workspace.yaml"


class PackageManager(str, Enum):
    PNPM = "pnpm"
    NPM = "npm"


DEFAULT_PACKAGE_MANAGERS: tuple[PackageManager, ...] = (PackageManager.PNPM, PackageManager.NPM)

WorkspaceProbe = Callable[[Path, PackageManager], "list[str] | None"]


def _string_globs(raw: Any) -> list[str] | None:
    if not isinstance(raw, list):
        return None
    return [item for item in raw if isinstance(item, str)]


def _pnpm_workspace_globs(root: Path) -> list[str] | None:
    try:
        data = yaml.safe_load((root / PNPM_WORKSPACE_YAML).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError):
        return None
    if not isinstance(data, dict):
        return None
    return _string_globs(data.get("packages"))


def _npm_workspace_globs(root: Path) -> list[str] | None:
    try:
        data = json.loads((root / PACKAGE_JSON).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    workspaces = data.get("workspaces")
    # Yarn classic allows `{"packages": [...], "nohoist": [...]}`.
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    return _string_globs(workspaces)


def get_workspace_globs(root: Path, package_manager: PackageManager) -> list[str] | None:
    """
    Return the workspace member globs declared at `root`, or None.

    None means `root` is not a workspace root for `package_manager`: the manifest is
    missing, unreadable, malformed, or does not declare workspaces. An empty list is a
    declaration with no members and still counts as a workspace root.
    """

    if package_manager is PackageManager.PNPM:
        return _pnpm_workspace_globs(root)
    if package_manager is PackageManager.NPM:
        return _npm_workspace_globs(root)
    raise ValueError(f"Unsupported package manager: {package_manager!r}")


def is_workspace_root(
    root: Path,
    *,
    probe: WorkspaceProbe = get_workspace_globs,
    package_managers: tuple[PackageManager, ...] = DEFAULT_PACKAGE_MANAGERS,
) -> bool:
    return any(probe(root, pm) is not None for pm in package_managers)
