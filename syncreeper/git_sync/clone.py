"""Repository cloning for repository synchronization using GitPython."""

import logging
from pathlib import Path

from git import Repo

from .error_types import categorize_error
from .remote_utils import NON_INTERACTIVE_GIT_ENV, restore_plain_remote
from .repository_info import RemoteRepository, SyncAction
from .utils import SyncResult, create_sync_result, get_authenticated_url, redact_credential


def clone_repository(repo_info: RemoteRepository, local_path: Path, credential: str) -> SyncResult:
    """
    Make a shallow, single-branch clone of a remote repository.

    This function performs the following operations:
    1. Ensures the parent (owner) directory exists
    2. Clones from the credentialed URL with depth 1
    3. Rewrites origin to the plain clone URL before returning

    A partially created directory is left in place on failure; the next
    cycle retries the clone as long as no .git directory was created.

    Args:
        repo_info: Repository to clone
        local_path: Target directory, <repos_root>/<owner>/<repo>
        credential: Token embedded in the URL for the clone only

    Returns:
        SyncResult with action CLONED or ERROR
    """
    logger = logging.getLogger('syncreeper.git_sync.clone')
    repo = None

    try:
        local_path.parent.mkdir(parents=True, exist_ok=True)

        auth_url = get_authenticated_url(repo_info.clone_url, credential)
        logger.debug(f"Cloning {repo_info.full_name} into {local_path}")

        repo = Repo.clone_from(
            auth_url,
            local_path,
            depth=1,
            single_branch=True,
            env=NON_INTERACTIVE_GIT_ENV
        )

        # Never leave the token in .git/config
        repo.remote('origin').set_url(repo_info.clone_url)

        try:
            branch = repo.active_branch.name
        except TypeError:
            branch = None

        return create_sync_result(
            repository=repo_info.full_name,
            action=SyncAction.CLONED,
            message="Cloned successfully",
            branch_used=branch
        )

    except Exception as e:
        if repo is not None:
            restore_plain_remote(repo, repo_info.clone_url)

        error_msg = redact_credential(str(e), credential)
        logger.debug(f"Clone of {repo_info.full_name} failed: {error_msg}")
        return create_sync_result(
            repository=repo_info.full_name,
            action=SyncAction.ERROR,
            message=f"Clone failed: {error_msg}",
            error_code="CLONE_FAILED",
            error_category=categorize_error(error_msg).value
        )
