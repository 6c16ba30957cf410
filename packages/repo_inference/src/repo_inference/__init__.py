from repo_inference.state import InferenceError, RepoMode, RepoState, infer_repo_state
from repo_inference.versions import VersionGateError, supports_skip_infer
from repo_inference.workspaces import PackageManager, get_workspace_globs

__all__ = [
    "InferenceError",
    "PackageManager",
    "RepoMode",
    "RepoState",
    "VersionGateError",
    "get_workspace_globs",
    "infer_repo_state",
    "supports_skip_infer",
]
