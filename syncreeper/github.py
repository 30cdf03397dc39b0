"""GitHub API client for listing the repositories to mirror."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import DEFAULT_GITHUB_API_URL
from .errors import InventoryError
from .git_sync.repository_info import RemoteRepository

PER_PAGE = 100


def _build_headers(token: str) -> Dict[str, str]:
    return {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": "2022-11-28",
    }


def _to_repository(data: Dict[str, Any]) -> RemoteRepository:
    return RemoteRepository(
        full_name=data["full_name"],
        clone_url=data["clone_url"],
        default_branch=data.get("default_branch") or "main",
        is_private=bool(data.get("private", False)),
        is_archived=bool(data.get("archived", False)),
    )


def fetch_repositories(
    token: str,
    username: str,
    api_url: str = DEFAULT_GITHUB_API_URL,
    timeout: float = 30.0,
    client: Optional[httpx.Client] = None,
) -> List[RemoteRepository]:
    """
    Fetch every non-archived repository the token can see.

    Lists /user/repos for all visibilities and for owned, collaborator and
    organisation-member affiliations, following Link pagination. Fine-grained
    tokens only see the repositories they were granted.

    Args:
        token: GitHub token used as a bearer credential
        username: Account the run is for (used for logging)
        api_url: GitHub REST API base URL
        timeout: Per-request timeout in seconds
        client: Optional preconfigured httpx client (the caller keeps ownership)

    Returns:
        Repositories in API order, archived ones removed

    Raises:
        InventoryError: On a non-success response, transport failure or malformed payload
    """
    logger = logging.getLogger('syncreeper.github')
    logger.info(f"Fetching repositories for user: {username}")

    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=timeout)

    repositories = []
    archived_count = 0
    private_count = 0

    url: Optional[str] = f"{api_url.rstrip('/')}/user/repos"
    params: Optional[Dict[str, Any]] = {
        "visibility": "all",
        "affiliation": "owner,collaborator,organization_member",
        "per_page": PER_PAGE,
        "sort": "updated",
    }

    try:
        while url:
            response = client.get(url, headers=_build_headers(token), params=params)
            response.raise_for_status()

            for data in response.json():
                repo = _to_repository(data)
                if repo.is_archived:
                    archived_count += 1
                    logger.info(f"  Skipping archived: {repo.full_name}")
                    continue
                if repo.is_private:
                    private_count += 1
                repositories.append(repo)

            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

    except httpx.HTTPStatusError as e:
        raise InventoryError(
            f"GitHub API returned {e.response.status_code} for {e.request.url.path}",
            status_code=e.response.status_code
        ) from e
    except httpx.HTTPError as e:
        raise InventoryError(f"GitHub API request failed: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise InventoryError(f"Unexpected GitHub API response: {e}") from e
    finally:
        if owns_client:
            client.close()

    logger.info(
        f"Found {len(repositories)} non-archived repositories "
        f"({private_count} private, {archived_count} archived skipped)"
    )
    return repositories
