from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest

import porcelain_status.core.git_runner as gr
from porcelain_status.core.errors import GitExecutionError, GitPolicyError, InvalidRootError
from porcelain_status.core.git_runner import SafeGitRunner, GitRunnerConfig
from porcelain_status.tools import read_status


def test_git_runner_with_nonexistent_repo(tmp_path: Path):
    fake = tmp_path / "nope"
    with pytest.raises(InvalidRootError):
        SafeGitRunner(fake)


def test_git_runner_with_file_instead_of_repo(tmp_path: Path):
    f = tmp_path / "file.txt"
    f.write_text("x", encoding="utf-8")
    with pytest.raises(InvalidRootError):
        SafeGitRunner(f)


def test_git_binary_not_found_raises_gitexecutionerror(tmp_git_repo: Path):
    runner = SafeGitRunner(tmp_git_repo)

    with patch("subprocess.Popen", side_effect=FileNotFoundError("git not found")):
        with pytest.raises(GitExecutionError):
            runner.run(["status"])


def test_git_command_timeout_handling(tmp_git_repo: Path, monkeypatch):
    class FakePopen:
        def __init__(self, *args, **kwargs):
            self.pid = 12345
            self.returncode = None
            self._calls = 0

        def communicate(self, timeout=None):
            self._calls += 1
            if self._calls == 1:
                raise subprocess.TimeoutExpired(cmd="git status", timeout=timeout)
            return (b"", b"")

    killed = []
    monkeypatch.setattr(subprocess, "Popen", FakePopen)
    monkeypatch.setattr(gr, "_kill", lambda p: killed.append(p.pid))

    config = GitRunnerConfig(timeout_s=0.001)
    runner = SafeGitRunner(tmp_git_repo, config=config)

    res = runner.run(["status"])
    assert res.timed_out is True
    assert res.exit_code == 124
    assert killed == [12345]


def test_read_status_raises_on_timeout(tmp_git_repo: Path, monkeypatch):
    class FakePopen:
        def __init__(self, *args, **kwargs):
            self.pid = 12345
            self.returncode = None

        def communicate(self, timeout=None):
            raise subprocess.TimeoutExpired(cmd="git status", timeout=timeout)

    monkeypatch.setattr(subprocess, "Popen", FakePopen)
    monkeypatch.setattr(gr, "_kill", lambda p: None)

    with pytest.raises(GitExecutionError, match="timed out"):
        read_status(str(tmp_git_repo))


def test_git_runner_handles_subprocess_exception(tmp_git_repo: Path, monkeypatch):
    runner = SafeGitRunner(tmp_git_repo)
    monkeypatch.setattr(gr, "_kill", lambda p: None)

    def mock_communicate(*args, **kwargs):
        raise RuntimeError("Unexpected error")

    with patch("subprocess.Popen") as popen:
        proc = MagicMock()
        proc.communicate = mock_communicate
        proc.pid = 12345
        popen.return_value = proc

        with pytest.raises(GitExecutionError):
            runner.run(["status"])


def test_git_runner_empty_args_rejected(tmp_git_repo: Path):
    runner = SafeGitRunner(tmp_git_repo)
    with pytest.raises(GitPolicyError):
        runner.run([])


@pytest.mark.parametrize("args", [["commit", "-m", "x"], ["push"], ["add", "-A"], ["reset", "--hard"]])
def test_git_runner_blocks_non_status_commands(tmp_git_repo: Path, args):
    runner = SafeGitRunner(tmp_git_repo)
    with pytest.raises(GitPolicyError):
        runner.run(args)


def test_git_runner_argv_is_recorded(tmp_git_repo: Path):
    runner = SafeGitRunner(tmp_git_repo)
    res = runner.run(["status", "--porcelain=2", "-z"])
    assert res.argv == ["git", "status", "--porcelain=2", "-z"]
    assert isinstance(res.stdout, bytes)
    assert res.to_dict()["stdout_bytes"] == len(res.stdout)


def test_read_status_outside_repo_fails(tmp_path: Path):
    plain = tmp_path / "plain"
    plain.mkdir()
    with patch.dict("os.environ", {"GIT_CEILING_DIRECTORIES": str(tmp_path)}):
        with pytest.raises(GitExecutionError, match="git status failed"):
            read_status(str(plain))


def test_read_status_refuses_truncated_output(tmp_git_repo: Path):
    config = GitRunnerConfig(max_output_bytes=10)
    with pytest.raises(GitExecutionError, match="more than the allowed output"):
        read_status(str(tmp_git_repo), config=config)


def test_error_types_inheritance():
    from porcelain_status.core.errors import (
        EntryFormatError,
        FramingError,
        HeaderFieldError,
        PorcelainParseError,
        PorcelainStatusError,
        StreamReadError,
    )
    for cls in (FramingError, HeaderFieldError, EntryFormatError, StreamReadError):
        assert issubclass(cls, PorcelainParseError)
    for cls in (PorcelainParseError, InvalidRootError, GitPolicyError, GitExecutionError):
        assert issubclass(cls, PorcelainStatusError)


def test_git_runner_allows_only_status(tmp_git_repo: Path):
    runner = SafeGitRunner(tmp_git_repo)
    assert runner.config.read_only_allowlist == ("status",)
    with pytest.raises(GitPolicyError):
        runner.run(["rev-parse", "HEAD"])
