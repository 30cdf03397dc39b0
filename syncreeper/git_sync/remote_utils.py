"""Remote URL handling for repository synchronization."""

import logging
from contextlib import contextmanager
from typing import Iterator

from git import Repo, Remote

from .utils import get_authenticated_url

# Unattended runs must fail instead of waiting on a credential prompt
NON_INTERACTIVE_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


def get_origin_url(repo: Repo) -> str:
    """Return the URL currently configured for the origin remote."""
    return repo.remote('origin').url


def set_origin_url(repo: Repo, url: str) -> None:
    """Point the origin remote at url."""
    repo.remote('origin').set_url(url)


def restore_plain_remote(repo: Repo, clone_url: str) -> bool:
    """
    Best-effort reset of origin to the credential-free clone URL.

    Failures are logged and swallowed so they never mask the error that
    triggered the restoration.

    Returns:
        True if the URL was restored, False otherwise
    """
    logger = logging.getLogger('syncreeper.git_sync.remote_utils')
    try:
        set_origin_url(repo, clone_url)
        return True
    except Exception as e:
        logger.warning(f"Failed to restore plain origin URL for {repo.working_dir}: {type(e).__name__}")
        return False


@contextmanager
def authenticated_remote(repo: Repo, clone_url: str, credential: str) -> Iterator[Remote]:
    """
    Temporarily point origin at the authenticated clone URL.

    Origin is reset to clone_url on every exit path. If the body raised, a
    failing restoration is swallowed and the body's exception propagates;
    if the body succeeded, a failing restoration is raised.
    """
    origin = repo.remote('origin')
    origin.set_url(get_authenticated_url(clone_url, credential))
    try:
        yield origin
    except BaseException:
        restore_plain_remote(repo, clone_url)
        raise
    origin.set_url(clone_url)


def fetch_origin(repo: Repo) -> None:
    """
    Fetch origin with its configured refspec.

    No --depth is passed: on a shallow clone git downloads only the commits
    above the existing shallow boundary, so history is not deepened and the
    new tip stays connected to the local HEAD.
    """
    logger = logging.getLogger('syncreeper.git_sync.remote_utils')
    with repo.git.custom_environment(**NON_INTERACTIVE_GIT_ENV):
        repo.git.fetch('origin')
    logger.debug(f"Fetched origin for {repo.working_dir}")
