"""Repository reconciliation: clone, fast-forward, skip or report an error."""

import logging
from pathlib import Path
from typing import List

from git import Repo

from .branch_utils import resolve_target_branch
from .clone import clone_repository
from .error_types import categorize_error
from .remote_utils import authenticated_remote, fetch_origin, restore_plain_remote
from .repository_info import RemoteRepository, SyncAction
from .state import get_working_tree_status
from .utils import SyncResult, create_sync_result, get_repo_local_path, redact_credential


def update_repository(repo_info: RemoteRepository, local_path: Path, credential: str) -> SyncResult:
    """
    Bring an existing clone up to date without touching local work.

    The credentialed URL is only configured for the duration of the fetch.
    A clone with modified or staged tracked files, or with local commits
    not on the remote, is skipped. A clean clone that is behind is
    hard-reset to origin/<branch>.

    Args:
        repo_info: Repository to update
        local_path: Existing clone directory
        credential: Token embedded in the URL for the fetch only

    Returns:
        SyncResult with action UPDATED, UNCHANGED, SKIPPED or ERROR
    """
    logger = logging.getLogger('syncreeper.git_sync.repository_sync')
    repo = None

    try:
        repo = Repo(local_path)

        with authenticated_remote(repo, repo_info.clone_url, credential):
            fetch_origin(repo)

        target_branch = resolve_target_branch(repo, repo_info.default_branch)
        status = get_working_tree_status(repo, target_branch)
        logger.debug(
            f"{repo_info.full_name} on {target_branch}: {status.modified_count} modified, "
            f"{status.staged_count} staged, {status.ahead_count} ahead, {status.behind_count} behind"
        )

        if status.is_dirty:
            return create_sync_result(
                repository=repo_info.full_name,
                action=SyncAction.SKIPPED,
                message=f"Local changes present ({status.describe_dirty()}), not updating",
                branch_used=target_branch
            )

        if status.behind_count > 0:
            repo.head.reset(f'origin/{target_branch}', index=True, working_tree=True)
            return create_sync_result(
                repository=repo_info.full_name,
                action=SyncAction.UPDATED,
                message=f"Updated to latest (was {status.behind_count} commits behind)",
                branch_used=target_branch
            )

        return create_sync_result(
            repository=repo_info.full_name,
            action=SyncAction.UNCHANGED,
            message="Already up to date",
            branch_used=target_branch
        )

    except Exception as e:
        if repo is not None:
            restore_plain_remote(repo, repo_info.clone_url)

        error_msg = redact_credential(str(e), credential)
        logger.debug(f"Update of {repo_info.full_name} failed: {error_msg}")
        return create_sync_result(
            repository=repo_info.full_name,
            action=SyncAction.ERROR,
            message=f"Update failed: {error_msg}",
            error_code="UPDATE_FAILED",
            error_category=categorize_error(error_msg).value
        )


def reconcile(repo_info: RemoteRepository, repos_root: Path, credential: str) -> SyncResult:
    """
    Clone or update one repository. Never raises.

    Presence of a .git directory at <repos_root>/<owner>/<repo> is the only
    signal used to choose between the clone and update paths.
    """
    local_path = get_repo_local_path(repos_root, repo_info.full_name)

    try:
        has_clone = (local_path / ".git").exists()
    except OSError as e:
        return create_sync_result(
            repository=repo_info.full_name,
            action=SyncAction.ERROR,
            message=f"Cannot inspect {local_path}: {e}",
            error_code="LOCAL_PATH_UNREADABLE",
            error_category=categorize_error(str(e)).value
        )

    if has_clone:
        return update_repository(repo_info, local_path, credential)
    return clone_repository(repo_info, local_path, credential)


def reconcile_all(repositories: List[RemoteRepository], repos_root: Path, credential: str) -> List[SyncResult]:
    """
    Reconcile every repository strictly one at a time, in input order.

    Git processes are never run concurrently against the tree, and log
    lines stay grouped per repository.

    Returns:
        One SyncResult per repository, in the same order
    """
    logger = logging.getLogger('syncreeper.git_sync')
    results = []

    for repo_info in repositories:
        logger.info(f"Syncing: {repo_info.full_name}...")
        result = reconcile(repo_info, repos_root, credential)
        results.append(result)
        logger.info(f"  {result.action.value}: {result.message}")

    return results
