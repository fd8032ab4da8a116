from __future__ import annotations

from ..core.git_runner import GitRunnerConfig, SafeGitRunner
from ..core.security import resolve_root


_DEFAULT_CFG = GitRunnerConfig(timeout_s=3.0, max_output_bytes=4_000_000)


def make_runner(root: str = ".", config: GitRunnerConfig | None = None) -> SafeGitRunner:
    return SafeGitRunner(root=resolve_root(root), config=config or _DEFAULT_CFG)
