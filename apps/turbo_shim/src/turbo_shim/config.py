from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

# Legacy override that points at a specific turbo binary. It is incompatible with
# running the repository's local turbo, so when set we never delegate.
TURBO_BINARY_PATH_ENV = "TURBO_BINARY_PATH"


def _locate_entrypoint(argv0: str) -> Path:
    candidate = Path(argv0)
    if candidate.parent == Path(".") and not candidate.exists():
        found = shutil.which(argv0)
        if found:
            return Path(found)
    return candidate


@dataclass(frozen=True)
class ShimConfig:
    current_exe: Path
    binary_path_override: str | None = None

    @property
    def delegation_disabled(self) -> bool:
        return self.binary_path_override is not None

    @classmethod
    def from_env(cls, env: Mapping[str, str], *, argv0: str | None = None) -> ShimConfig:
        raw_argv0 = argv0 if argv0 is not None else sys.argv[0]
        return cls(
            current_exe=_locate_entrypoint(raw_argv0),
            binary_path_override=env.get(TURBO_BINARY_PATH_ENV),
        )
