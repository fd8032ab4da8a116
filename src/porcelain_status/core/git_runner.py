from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .errors import GitExecutionError, GitPolicyError
from .models import GitRunResult
from .security import resolve_root

logger = logging.getLogger(__name__)


def _kill_process_tree_windows(pid: int) -> None:
    """
    Kill a process tree on Windows (git may spawn helper processes such as
    fsmonitor daemons or credential managers).
    """
    subprocess.run(
        ["taskkill", "/PID", str(pid), "/T", "/F"],
        capture_output=True,
        text=True,
    )


def _kill_process_group_posix(p: subprocess.Popen) -> None:
    """
    Kill entire process group on POSIX when start_new_session=True.
    Falls back to p.kill() if the group is already gone.
    """
    try:
        os.killpg(p.pid, signal.SIGKILL)
    except OSError:
        try:
            p.kill()
        except OSError:
            logger.debug("git process %d already exited", p.pid)


def _kill(p: subprocess.Popen) -> None:
    if os.name == "nt":
        _kill_process_tree_windows(p.pid)
    else:
        _kill_process_group_posix(p)


def require_ok(res: GitRunResult, context: str) -> GitRunResult:
    if res.timed_out:
        raise GitExecutionError(f"{context} timed out after {res.duration_ms} ms")
    if res.exit_code != 0:
        raise GitExecutionError(f"{context} failed: {res.stderr.strip()}")
    if res.output_truncated:
        raise GitExecutionError(f"{context} produced more than the allowed output")
    return res


@dataclass(frozen=True)
class GitRunnerConfig:
    """
    Runner configuration.
    """
    timeout_s: float = 3.0
    max_output_bytes: int = 4_000_000

    # Only commands that read the working tree may run.
    read_only_allowlist: tuple[str, ...] = (
        "status",
    )


class SafeGitRunner:
    """
    Local-only git runner:
      - No shell
      - Enforces cwd=root
      - Timeout (hard)
      - Kills stuck process trees (Windows) / process groups (POSIX)
      - Output ceiling on raw stdout
      - Standardized result: stdout bytes/stderr/exit_code/duration_ms (+ flags)
    """

    def __init__(self, root: str | Path, config: GitRunnerConfig | None = None) -> None:
        self.root = resolve_root(root)
        self.config = config or GitRunnerConfig()

    def run(
        self,
        args: Iterable[str],
        *,
        env: dict[str, str] | None = None,
    ) -> GitRunResult:
        args_list = list(args)
        self._validate_args(args_list)

        argv = ["git", *args_list]
        merged_env = self._build_env(env)

        start = time.perf_counter()
        stdout, stderr, exit_code, timed_out = self._run_process(
            argv=argv,
            cwd=self.root,
            env=merged_env,
            timeout_s=self.config.timeout_s,
        )
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.debug("%s exited %d in %d ms", argv, exit_code, duration_ms)

        output_truncated = len(stdout) > self.config.max_output_bytes
        if output_truncated:
            stdout = stdout[: self.config.max_output_bytes]

        return GitRunResult(
            argv=argv,
            root=str(self.root),
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=duration_ms,
            timed_out=timed_out,
            output_truncated=output_truncated,
        )

    def _validate_args(self, args_list: list[str]) -> None:
        if not args_list:
            raise GitPolicyError("Empty git args are not allowed.")

        subcmd = args_list[0].strip().lower()
        if subcmd not in self.config.read_only_allowlist:
            raise GitPolicyError(
                f"Blocked git subcommand: '{subcmd}'. "
                f"Allowed: {', '.join(self.config.read_only_allowlist)}"
            )

    def _build_env(self, extra_env: dict[str, str] | None) -> dict[str, str]:
        """
        Build a controlled environment that prevents interactive hangs and
        keeps git output in the C locale.
        """
        merged_env = dict(os.environ)
        merged_env.update(
            {
                "GIT_TERMINAL_PROMPT": "0",
                "GIT_PAGER": "cat",
                "LC_ALL": "C",
                "GIT_OPTIONAL_LOCKS": "0",
            }
        )

        if extra_env:
            merged_env.update(extra_env)

        return merged_env

    def _run_process(
        self,
        *,
        argv: list[str],
        cwd: Path,
        env: dict[str, str],
        timeout_s: float,
    ) -> tuple[bytes, str, int, bool]:
        """
        Run a command using Popen + communicate(timeout).
        Returns: (stdout, stderr, exit_code, timed_out)
        """
        popen_kwargs: dict = {}
        if os.name != "nt":
            popen_kwargs["start_new_session"] = True

        try:
            p = subprocess.Popen(
                argv,
                cwd=str(cwd),
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                shell=False,
                **popen_kwargs,
            )
        except FileNotFoundError as e:
            raise GitExecutionError("git executable not found in PATH.") from e
        except OSError as e:
            raise GitExecutionError(f"Failed to spawn git: {type(e).__name__}: {e}") from e

        try:
            out, err = p.communicate(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            logger.warning("%s timed out after %.1fs, killing it", argv, timeout_s)
            try:
                _kill(p)
            finally:
                try:
                    out, err = p.communicate(timeout=0.5)
                except subprocess.TimeoutExpired:
                    out, err = (b"", b"")
            return out or b"", _decode_stderr(err), 124, True
        except Exception as e:
            _kill(p)
            raise GitExecutionError(f"Failed while running git: {type(e).__name__}: {e}") from e

        return out or b"", _decode_stderr(err), int(p.returncode or 0), False


def _decode_stderr(err: bytes | None) -> str:
    return (err or b"").decode("utf-8", errors="replace")
