"""Repository information and state data structures."""

from dataclasses import dataclass
from enum import Enum


class SyncAction(Enum):
    """Outcome of reconciling one repository."""
    CLONED = "cloned"        # No local clone existed; a shallow clone was made
    UPDATED = "updated"      # Clean clone was behind and has been hard-reset
    UNCHANGED = "unchanged"  # Clean clone already at the remote tip
    SKIPPED = "skipped"      # Local work present; clone left untouched
    ERROR = "error"          # Clone or update failed


@dataclass(frozen=True)
class RemoteRepository:
    """A repository reported by the inventory client."""
    full_name: str
    clone_url: str
    default_branch: str = "main"
    is_private: bool = False
    is_archived: bool = False


@dataclass
class WorkingTreeStatus:
    """Snapshot of a local clone relative to its remote-tracking branch."""
    modified_count: int = 0
    staged_count: int = 0
    ahead_count: int = 0
    behind_count: int = 0

    @property
    def is_dirty(self) -> bool:
        """Untracked files are not counted: they survive a hard reset."""
        return self.modified_count > 0 or self.staged_count > 0 or self.ahead_count > 0

    def describe_dirty(self) -> str:
        """Human-readable list of the dirtiness signals that fired."""
        reasons = []
        if self.modified_count > 0:
            reasons.append(f"{self.modified_count} modified file(s)")
        if self.staged_count > 0:
            reasons.append(f"{self.staged_count} staged file(s)")
        if self.ahead_count > 0:
            reasons.append(f"{self.ahead_count} local commit(s) ahead")
        return ", ".join(reasons)
