from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

SKIP_INFER_FLAG = "--skip-infer"
CWD_FLAG = "--cwd"
FORWARD_SEPARATOR = "--"
SINGLE_PACKAGE_FLAG = "--single-package"

# Flags whose stdout must stay directly parseable, so nothing else (update notices,
# delegation banners) may be printed alongside it.
TURBO_PURE_OUTPUT_ARGS: frozenset[str] = frozenset(
    {
        "--json",
        "--dry",
        "--dry-run",
        "--dry=json",
        "--graph",
        "--dry-run=json",
    }
)


class ShimArgsError(ValueError):
    pass


@dataclass(frozen=True)
class ShimArgs:
    cwd: Path
    skip_infer: bool = False
    remaining_turbo_args: list[str] = field(default_factory=list)
    forwarded_args: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, argv: Sequence[str], *, cwd: Path | None = None) -> ShimArgs:
        """
        Split raw process arguments (program name excluded).

        `cwd` is the fallback working directory when no `--cwd` flag is given; it
        defaults to the process working directory.
        """

        found_cwd_flag = False
        cwd_override: Path | None = None
        skip_infer = False
        remaining_turbo_args: list[str] = []
        forwarded_args: list[str] = []
        is_forwarded_args = False

        for arg in argv:
            if is_forwarded_args:
                forwarded_args.append(arg)
            elif arg == SKIP_INFER_FLAG:
                skip_infer = True
            elif arg == FORWARD_SEPARATOR:
                is_forwarded_args = True
            elif found_cwd_flag:
                cwd_override = Path(arg)
                found_cwd_flag = False
            elif arg == CWD_FLAG:
                if cwd_override is not None:
                    raise ShimArgsError(f"cannot have multiple `{CWD_FLAG}` flags in command")
                found_cwd_flag = True
            else:
                remaining_turbo_args.append(arg)

        if found_cwd_flag:
            raise ShimArgsError(f"No value assigned to `{CWD_FLAG}` argument")

        if cwd_override is None:
            cwd_override = cwd if cwd is not None else Path.cwd()
        return cls(
            cwd=cwd_override,
            skip_infer=skip_infer,
            remaining_turbo_args=remaining_turbo_args,
            forwarded_args=forwarded_args,
        )

    def has_json_flags(self) -> bool:
        return any(arg in TURBO_PURE_OUTPUT_ARGS for arg in self.remaining_turbo_args)

    def has_single_package_flag(self) -> bool:
        return SINGLE_PACKAGE_FLAG in self.remaining_turbo_args
