"""Branch utilities for repository synchronization using GitPython."""

import logging
from typing import Optional

from git import Repo, GitCommandError


def check_remote_branch_exists(repo: Repo, branch_name: str) -> bool:
    """Check if a remote-tracking ref origin/<branch_name> exists locally."""
    try:
        repo.git.rev_parse('--verify', '--quiet', f'refs/remotes/origin/{branch_name}')
        return True
    except GitCommandError:
        return False


def get_current_local_branch(repo: Repo) -> Optional[str]:
    """Get the checked-out branch name, or None when detached or unresolvable."""
    logger = logging.getLogger('syncreeper.git_sync.branch_utils')

    try:
        branch = repo.git.rev_parse('--abbrev-ref', 'HEAD').strip()
    except GitCommandError as e:
        logger.debug(f"Error getting current local branch: {e.status}")
        return None

    if not branch or branch == 'HEAD':
        return None
    return branch


def resolve_target_branch(repo: Repo, default_branch: str) -> str:
    """
    Pick the branch whose remote-tracking ref the clone is compared against.

    Prefers the repository's default branch. If origin/<default_branch> is
    missing, falls back to the locally checked-out branch; if that cannot be
    determined either, the default branch guess is returned unchanged and the
    caller's subsequent git commands report the failure.
    """
    logger = logging.getLogger('syncreeper.git_sync.branch_utils')

    if check_remote_branch_exists(repo, default_branch):
        return default_branch

    current = get_current_local_branch(repo)
    if current:
        logger.debug(f"origin/{default_branch} not found, using checked-out branch '{current}'")
        return current

    return default_branch
