"""Error categorisation for repository synchronization failures."""

from enum import Enum
from typing import Dict


class ErrorCategory(Enum):
    """Categories of git failures, reported alongside an error result."""
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    REPOSITORY_ACCESS = "repository_access"
    BRANCH_DETECTION = "branch_detection"
    REPOSITORY_CORRUPTION = "repository_corruption"
    FILESYSTEM = "filesystem"
    UNKNOWN = "unknown"


def build_error_patterns() -> Dict[str, ErrorCategory]:
    """Build mapping of error message patterns to categories (checked in order)."""
    return {
        # Network errors
        "connection refused": ErrorCategory.NETWORK,
        "failed to connect": ErrorCategory.NETWORK,
        "couldn't connect": ErrorCategory.NETWORK,
        "network is unreachable": ErrorCategory.NETWORK,
        "could not resolve host": ErrorCategory.NETWORK,
        "connection timed out": ErrorCategory.NETWORK,
        "timed out": ErrorCategory.NETWORK,
        "no route to host": ErrorCategory.NETWORK,
        "temporary failure in name resolution": ErrorCategory.NETWORK,

        # Authentication errors
        "authentication failed": ErrorCategory.AUTHENTICATION,
        "could not read username": ErrorCategory.AUTHENTICATION,
        "invalid username or password": ErrorCategory.AUTHENTICATION,
        "permission denied": ErrorCategory.AUTHENTICATION,
        "403": ErrorCategory.AUTHENTICATION,
        "401": ErrorCategory.AUTHENTICATION,

        # Repository access errors
        "repository not found": ErrorCategory.REPOSITORY_ACCESS,
        "does not appear to be a git repository": ErrorCategory.REPOSITORY_ACCESS,
        "could not read from remote repository": ErrorCategory.REPOSITORY_ACCESS,
        "already exists and is not an empty directory": ErrorCategory.FILESYSTEM,
        "no space left on device": ErrorCategory.FILESYSTEM,

        # Branch detection errors
        "unknown revision": ErrorCategory.BRANCH_DETECTION,
        "ambiguous argument": ErrorCategory.BRANCH_DETECTION,
        "couldn't find remote ref": ErrorCategory.BRANCH_DETECTION,

        # Repository corruption
        "not a git repository": ErrorCategory.REPOSITORY_CORRUPTION,
        "corrupt": ErrorCategory.REPOSITORY_CORRUPTION,
        "bad object": ErrorCategory.REPOSITORY_CORRUPTION,
        "invalid object": ErrorCategory.REPOSITORY_CORRUPTION,
    }


_ERROR_PATTERNS = build_error_patterns()


def categorize_error(error_message: str) -> ErrorCategory:
    """
    Categorize a git failure based on its message.

    Args:
        error_message: The error message to categorize

    Returns:
        ErrorCategory enum value
    """
    if not error_message:
        return ErrorCategory.UNKNOWN

    error_lower = error_message.lower()
    for pattern, category in _ERROR_PATTERNS.items():
        if pattern in error_lower:
            return category

    return ErrorCategory.UNKNOWN
