"""Helpers for tests that drive a real git binary against local repositories."""

import itertools
import os
import subprocess
from pathlib import Path
from typing import List

from syncreeper.platform import get_git_executable, is_windows

GIT_ENV = dict(
    os.environ,
    GIT_AUTHOR_NAME="Test User",
    GIT_AUTHOR_EMAIL="test@example.com",
    GIT_COMMITTER_NAME="Test User",
    GIT_COMMITTER_EMAIL="test@example.com",
    GIT_CONFIG_NOSYSTEM="1",
    GIT_TERMINAL_PROMPT="0",
)

_change_counter = itertools.count()


def run_git(args: List[str], cwd: Path) -> str:
    """Run a git command and return its stripped stdout."""
    result = subprocess.run(
        [get_git_executable(), *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
        env=GIT_ENV,
        shell=is_windows()
    )
    return result.stdout.strip()


def create_upstream_repository(temp_dir: Path, full_name: str = "acme/api") -> tuple[Path, Path]:
    """
    Create a bare "remote" repository with one commit on main.

    Returns:
        Tuple of (bare_repo_dir, work_dir); push to the bare repository by
        committing in work_dir and calling push_commits
    """
    bare_dir = temp_dir / "remote" / f"{full_name}.git"
    bare_dir.mkdir(parents=True)
    run_git(["init", "--bare", "--initial-branch=main"], bare_dir)

    work_dir = temp_dir / "upstream_work" / full_name
    work_dir.parent.mkdir(parents=True, exist_ok=True)
    run_git(["clone", str(bare_dir), str(work_dir)], temp_dir)
    run_git(["checkout", "-B", "main"], work_dir)

    (work_dir / "README.md").write_text(f"# {full_name}\n")
    (work_dir / ".gitignore").write_text("# build output\ndist/\n!dist/keep.txt\n")
    run_git(["add", "."], work_dir)
    run_git(["commit", "-m", "Initial commit"], work_dir)
    run_git(["push", "origin", "main"], work_dir)

    return bare_dir, work_dir


def push_commits(work_dir: Path, count: int) -> str:
    """Add count commits upstream and return the new tip sha."""
    for _ in range(count):
        i = next(_change_counter)
        (work_dir / f"change_{i}.txt").write_text(f"change {i}\n")
        run_git(["add", "."], work_dir)
        run_git(["commit", "-m", f"Change {i}"], work_dir)
    run_git(["push", "origin", "main"], work_dir)
    return run_git(["rev-parse", "HEAD"], work_dir)


def head_sha(repo_dir: Path) -> str:
    return run_git(["rev-parse", "HEAD"], repo_dir)
