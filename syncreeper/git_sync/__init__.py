"""Repository reconciliation for SyncReeper."""

from .repository_info import RemoteRepository, SyncAction, WorkingTreeStatus
from .utils import SyncResult, create_sync_result
from .repository_sync import reconcile, reconcile_all

__all__ = [
    'RemoteRepository',
    'SyncAction',
    'WorkingTreeStatus',
    'SyncResult',
    'create_sync_result',
    'reconcile',
    'reconcile_all'
]
