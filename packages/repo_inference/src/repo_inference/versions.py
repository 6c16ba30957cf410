from __future__ import annotations

import json
import re
from pathlib import Path

import semver

TURBO_PACKAGE_NAME = "turbo"

# First release line whose CLI understands `--skip-infer`.
SUPPORTS_SKIP_INFER_SEMVER = ">=1.7.0-canary.0"

_COMPARATOR_RE = re.compile(r"^\s*(>=|<=|==|!=|>|<|=)\s*(\S+)\s*$")


class VersionGateError(ValueError):
    pass


def _parse_comparators(requirement: str) -> list[tuple[str, semver.Version]]:
    out: list[tuple[str, semver.Version]] = []
    for raw in requirement.split(","):
        match = _COMPARATOR_RE.match(raw)
        if match is None:
            raise ValueError(f"Invalid version requirement: {requirement!r}")
        op = match.group(1)
        if op == "=":
            op = "=="
        out.append((op, semver.Version.parse(match.group(2))))
    return out


def _release_triple(version: semver.Version) -> tuple[int, int, int]:
    return (version.major, version.minor, version.patch)


def satisfies_requirement(version: semver.Version, requirement: str) -> bool:
    """
    Test `version` against a comma-separated list of comparators.

    Every comparator needs an explicit operator (`>=`, `<=`, `>`, `<`, `=`, `==`, `!=`);
    bare versions are rejected with ValueError rather than guessed at.

    Ordering follows semver precedence, so `1.7.0-canary.0 < 1.7.0`. A pre-release
    version only matches when some comparator names a pre-release of the same
    `major.minor.patch`; `1.8.0-canary.1` does not satisfy `>=1.7.0-canary.0`.
    """

    comparators = _parse_comparators(requirement)
    if not all(version.match(f"{op}{target}") for op, target in comparators):
        return False
    if not version.prerelease:
        return True
    return any(
        target.prerelease and _release_triple(target) == _release_triple(version)
        for _op, target in comparators
    )


def read_installed_version(package_json_path: Path) -> semver.Version:
    try:
        text = package_json_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise VersionGateError(f"Failed to read {package_json_path}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise VersionGateError(f"Failed to parse {package_json_path}: {e}") from e
    if not isinstance(data, dict):
        raise VersionGateError(f"Expected a JSON object in {package_json_path}")

    raw_version = data.get("version")
    if not isinstance(raw_version, str):
        raise VersionGateError(f"Missing/invalid `version` in {package_json_path}")
    try:
        return semver.Version.parse(raw_version)
    except ValueError as e:
        raise VersionGateError(
            f"Invalid semantic version {raw_version!r} in {package_json_path}"
        ) from e


def installed_package_json(repo_root: Path, package_name: str = TURBO_PACKAGE_NAME) -> Path:
    return repo_root / "node_modules" / package_name / "package.json"


def supports_skip_infer(repo_root: Path) -> bool:
    version = read_installed_version(installed_package_json(repo_root))
    return satisfies_requirement(version, SUPPORTS_SKIP_INFER_SEMVER)
