"""Utility classes and functions for repository synchronization."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

from .repository_info import SyncAction

REDACTED = "***"


@dataclass
class SyncResult:
    """Result of reconciling a single repository."""
    repository: str
    action: SyncAction
    message: str
    error_code: Optional[str] = None
    error_category: Optional[str] = None
    branch_used: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.action is SyncAction.ERROR


def create_sync_result(
    repository: str,
    action: SyncAction,
    message: str,
    error_code: Optional[str] = None,
    error_category: Optional[str] = None,
    branch_used: Optional[str] = None
) -> SyncResult:
    """
    Helper function to create SyncResult instances.

    Args:
        repository: Full name (owner/repo) of the repository
        action: What the reconciler did
        message: Descriptive message about the outcome
        error_code: Optional error code for failed operations
        error_category: Optional category of a failure (see error_types)
        branch_used: Optional branch name the clone was compared against

    Returns:
        SyncResult instance with all fields populated
    """
    return SyncResult(
        repository=repository,
        action=action,
        message=message,
        error_code=error_code,
        error_category=error_category,
        branch_used=branch_used
    )


def get_repo_local_path(repos_root: Path, full_name: str) -> Path:
    """Local clone location, organised as <repos_root>/<owner>/<repo>."""
    return Path(repos_root) / full_name


def get_authenticated_url(clone_url: str, credential: str) -> str:
    """
    Embed a credential as the userinfo of an HTTP(S) clone URL.

    https://github.com/user/repo.git -> https://<credential>@github.com/user/repo.git

    Any userinfo already present is replaced. URLs that are not http(s)
    (local paths, file://, scp-style) are returned unchanged.
    """
    parts = urlsplit(clone_url)
    if parts.scheme not in ("http", "https") or not credential:
        return clone_url

    host = parts.netloc.rsplit("@", 1)[-1]
    netloc = f"{quote(credential, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def redact_credential(text: str, credential: str) -> str:
    """Remove every occurrence of the credential (raw or URL-quoted) from text."""
    if not credential or not text:
        return text
    for form in {credential, quote(credential, safe='')}:
        text = text.replace(form, REDACTED)
    return text
