"""Platform helpers for SyncReeper."""

import platform
import shutil
from pathlib import Path
from typing import Optional, Union


def is_windows() -> bool:
    """Check if running on Windows."""
    return platform.system().lower() == "windows"


def normalize_path(path: Union[str, Path]) -> Path:
    """
    Normalize a path for the current platform.

    Args:
        path: Path to normalize

    Returns:
        Normalized Path object
    """
    if isinstance(path, str):
        path = Path(path)

    # Expand user home directory (~) first, then resolve to absolute path
    return path.expanduser().resolve()


def get_git_executable() -> str:
    """Get the Git executable name for the current platform."""
    return "git.exe" if is_windows() else "git"


def validate_git_availability() -> tuple[bool, Optional[str]]:
    """
    Validate that Git is available on PATH.

    Returns:
        Tuple of (is_available, error_message)
    """
    git_executable = get_git_executable()
    if shutil.which(git_executable) is None:
        return False, f"Git executable '{git_executable}' not found on PATH"
    return True, None
