from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from repo_inference import InferenceError, PackageManager, RepoMode, RepoState, infer_repo_state


def _write_json(path: Path, obj: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2) + "\n", encoding="utf-8")


def _mkdir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def test_turbo_json_without_workspaces_is_single_package(tmp_path: Path) -> None:
    (tmp_path / "turbo.json").write_text("{}\n", encoding="utf-8")
    cwd = _mkdir(tmp_path / "sub" / "dir")

    state = infer_repo_state(cwd)

    assert state == RepoState(root=tmp_path, mode=RepoMode.SINGLE_PACKAGE)


def test_turbo_json_with_pnpm_workspace_is_multi_package(tmp_path: Path) -> None:
    (tmp_path / "turbo.json").write_text("{}\n", encoding="utf-8")
    (tmp_path / "pnpm-workspace.yaml").write_text("packages:\n  - apps/*\n", encoding="utf-8")
    cwd = _mkdir(tmp_path / "sub" / "dir")

    state = infer_repo_state(cwd)

    assert state == RepoState(root=tmp_path, mode=RepoMode.MULTI_PACKAGE)


def test_turbo_json_with_npm_workspaces_is_multi_package(tmp_path: Path) -> None:
    (tmp_path / "turbo.json").write_text("{}\n", encoding="utf-8")
    _write_json(tmp_path / "package.json", {"name": "root", "workspaces": ["packages/*"]})

    state = infer_repo_state(tmp_path)

    assert state == RepoState(root=tmp_path, mode=RepoMode.MULTI_PACKAGE)


def test_turbo_json_root_ignores_closer_workspaces(tmp_path: Path) -> None:
    (tmp_path / "turbo.json").write_text("{}\n", encoding="utf-8")
    nested = tmp_path / "pkgs" / "a"
    _write_json(nested / "package.json", {"name": "a", "workspaces": ["*"]})
    cwd = _mkdir(nested / "sub")

    state = infer_repo_state(cwd)

    assert state == RepoState(root=tmp_path, mode=RepoMode.SINGLE_PACKAGE)


def test_closest_turbo_json_wins(tmp_path: Path) -> None:
    (tmp_path / "turbo.json").write_text("{}\n", encoding="utf-8")
    nested = _mkdir(tmp_path / "apps" / "web")
    (nested / "turbo.json").write_text("{}\n", encoding="utf-8")

    state = infer_repo_state(nested)

    assert state.root == nested


def test_closest_workspace_package_json_wins_over_fallback(tmp_path: Path) -> None:
    _write_json(tmp_path / "package.json", {"name": "root"})
    nested = tmp_path / "pkgs" / "a"
    _write_json(nested / "package.json", {"name": "a", "workspaces": ["libs/*"]})
    cwd = _mkdir(nested / "sub")

    state = infer_repo_state(cwd)

    assert state == RepoState(root=nested, mode=RepoMode.MULTI_PACKAGE)


def test_farther_workspace_preempts_closer_single_package(tmp_path: Path) -> None:
    _write_json(tmp_path / "package.json", {"name": "root", "workspaces": ["pkgs/*"]})
    nested = tmp_path / "pkgs" / "a"
    _write_json(nested / "package.json", {"name": "a"})
    cwd = _mkdir(nested / "src")

    state = infer_repo_state(cwd)

    assert state == RepoState(root=tmp_path, mode=RepoMode.MULTI_PACKAGE)


def test_without_workspaces_closest_package_json_is_single_package(tmp_path: Path) -> None:
    _write_json(tmp_path / "package.json", {"name": "root"})
    nested = tmp_path / "pkgs" / "a"
    _write_json(nested / "package.json", {"name": "a"})
    cwd = _mkdir(nested / "src")

    state = infer_repo_state(cwd)

    assert state == RepoState(root=nested, mode=RepoMode.SINGLE_PACKAGE)


def test_no_marker_or_package_json_raises(tmp_path: Path) -> None:
    cwd = _mkdir(tmp_path / "empty" / "dir")

    with pytest.raises(InferenceError, match="Unable to find `turbo.json` or `package.json`"):
        infer_repo_state(cwd)


def test_probe_is_consulted_per_package_manager(tmp_path: Path) -> None:
    (tmp_path / "turbo.json").write_text("{}\n", encoding="utf-8")
    calls: list[tuple[Path, PackageManager]] = []

    def _probe(root: Path, package_manager: PackageManager) -> list[str] | None:
        calls.append((root, package_manager))
        return ["apps/*"] if package_manager is PackageManager.NPM else None

    state = infer_repo_state(tmp_path, probe=_probe)

    assert state.mode is RepoMode.MULTI_PACKAGE
    assert calls == [(tmp_path, PackageManager.PNPM), (tmp_path, PackageManager.NPM)]


def test_inference_is_repeatable(tmp_path: Path) -> None:
    _write_json(tmp_path / "package.json", {"name": "root", "workspaces": ["pkgs/*"]})
    cwd = _mkdir(tmp_path / "pkgs" / "a")

    assert infer_repo_state(cwd) == infer_repo_state(cwd)


def test_repo_state_to_dict(tmp_path: Path) -> None:
    state = RepoState(root=tmp_path, mode=RepoMode.MULTI_PACKAGE)
    assert state.to_dict() == {"root": str(tmp_path), "mode": "multi_package"}


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlinked_cwd_walks_link_ancestors(tmp_path: Path) -> None:
    repo = _mkdir(tmp_path / "repo")
    (repo / "turbo.json").write_text("{}\n", encoding="utf-8")
    target = _mkdir(tmp_path / "elsewhere" / "pkg")
    link = repo / "linked"
    try:
        link.symlink_to(target, target_is_directory=True)
    except OSError:
        pytest.skip("cannot create symlinks here")

    state = infer_repo_state(link)

    assert state == RepoState(root=repo, mode=RepoMode.SINGLE_PACKAGE)
