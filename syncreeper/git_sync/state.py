"""Working tree state detection for local clones."""

from typing import Tuple

from git import Repo

from .repository_info import WorkingTreeStatus


def count_local_changes(repo: Repo) -> Tuple[int, int]:
    """
    Count tracked paths with unstaged and staged changes.

    Parses `git status --porcelain=v2`. Ordinary ("1") and rename/copy ("2")
    entries carry an "XY" field where X is the index status and Y the working
    tree status, "." meaning unchanged. Unmerged ("u") entries count as
    modified. Untracked and ignored entries are not counted.

    Returns:
        Tuple of (modified_count, staged_count)
    """
    output = repo.git.status('--porcelain=v2', '--untracked-files=no')

    modified = 0
    staged = 0
    for line in output.splitlines():
        kind = line[:2]
        if kind in ('1 ', '2 '):
            index_status, tree_status = line[2], line[3]
            if index_status != '.':
                staged += 1
            if tree_status != '.':
                modified += 1
        elif kind == 'u ':
            modified += 1

    return modified, staged


def count_ahead_behind(repo: Repo, branch: str) -> Tuple[int, int]:
    """
    Count commits HEAD has that origin/<branch> lacks, and vice versa.

    Returns:
        Tuple of (ahead_count, behind_count)
    """
    output = repo.git.rev_list('--left-right', '--count', f'HEAD...origin/{branch}')
    ahead, behind = output.split()
    return int(ahead), int(behind)


def get_working_tree_status(repo: Repo, branch: str) -> WorkingTreeStatus:
    """Compute the working tree status of a clone against origin/<branch>."""
    modified, staged = count_local_changes(repo)
    ahead, behind = count_ahead_behind(repo, branch)
    return WorkingTreeStatus(
        modified_count=modified,
        staged_count=staged,
        ahead_count=ahead,
        behind_count=behind
    )
