from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class PorcelainEntry:
    kind: str
    xy: str
    path: str
    orig_path: str | None = None
    score: str | None = None


@dataclass
class Status:
    """
    Status of a git working tree, filled in while decoding porcelain v2.

    Paths in `untracked` and `ignored` are kept exactly as git printed them;
    escapes such as \\t, \\n and \\\\ are not undone.
    """
    num_added: int = 0
    num_deleted: int = 0
    num_updated: int = 0
    num_renamed: int = 0
    num_copied: int = 0
    num_conflicts: int = 0
    num_untracked: int = 0
    num_ignored: int = 0

    commit_sha1: str = ""  # empty in initial state
    local_branch: str = ""
    remote_branch: str = ""
    ahead_count: int = 0
    behind_count: int = 0

    is_initial: bool = False
    is_detached: bool = False

    untracked: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)
    changes: list[PorcelainEntry] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.changes or self.untracked)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["is_clean"] = self.is_clean
        return d


@dataclass(frozen=True)
class GitRunResult:
    argv: list[str]
    root: str
    stdout: bytes
    stderr: str
    exit_code: int
    duration_ms: int
    timed_out: bool
    output_truncated: bool

    def to_dict(self) -> dict[str, Any]:
        # raw stdout is NUL-delimited; report its size only
        return {
            "argv": self.argv,
            "root": self.root,
            "stdout_bytes": len(self.stdout),
            "stderr": self.stderr,
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
            "timed_out": self.timed_out,
            "output_truncated": self.output_truncated,
        }
