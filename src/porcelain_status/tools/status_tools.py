from __future__ import annotations

import io
import logging
from typing import Any

from .common import make_runner
from ..core.git_runner import GitRunnerConfig, require_ok
from ..core.models import GitRunResult, Status
from ..core.parsers import parse_status, parse_status_bytes

logger = logging.getLogger(__name__)

STATUS_ARGS = ("status", "-uall", "--porcelain=2", "--branch", "-z")


def _run_status(root: str, config: GitRunnerConfig | None) -> tuple[Status, GitRunResult]:
    r = make_runner(root, config)
    res = require_ok(r.run(STATUS_ARGS), "git status")
    return parse_status(io.BytesIO(res.stdout)), res


def read_status(root: str = ".", config: GitRunnerConfig | None = None) -> Status:
    """
    Status of the working tree at `root`.
    """
    st, _ = _run_status(root, config)
    return st


def git_status(root: str = ".", max_entries: int = 200) -> dict[str, Any]:
    """
    Branch tracking state, counts and changed paths. Counts always cover the
    whole tree; the path lists are capped at max_entries.
    """
    st, res = _run_status(root, None)
    return _payload(st, max_entries) | {"git": res.to_dict()}


def parse_porcelain(output: str, max_entries: int = 200) -> dict[str, Any]:
    """
    Parse porcelain v2 output (NUL-delimited) that the caller already has.
    """
    st = parse_status_bytes(output.encode("utf-8", errors="surrogateescape"))
    return _payload(st, max_entries)


def _payload(st: Status, max_entries: int) -> dict[str, Any]:
    limit = max(1, int(max_entries))
    d = st.to_dict()
    truncated = False
    for key in ("changes", "untracked", "ignored"):
        if len(d[key]) > limit:
            d[key] = d[key][:limit]
            truncated = True
    if truncated:
        logger.info("status lists capped at %d entries", limit)
    return {"status": d, "truncated": truncated}
