from turbo_shim.args import ShimArgs, ShimArgsError
from turbo_shim.config import ShimConfig
from turbo_shim.dispatch import DelegationError, run

__all__ = [
    "DelegationError",
    "ShimArgs",
    "ShimArgsError",
    "ShimConfig",
    "run",
]
