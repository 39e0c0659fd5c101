"""
Client-side session state for the recordhub dashboard
"""

from recordhub.client.api import ApiClient
from recordhub.client.dashboard import DashboardSession
from recordhub.client.optimistic import MutationIntent, MutationKind, OptimisticCollection
from recordhub.client.sync import SyncCoordinator, SyncState, SyncStatus

__all__ = [
    "ApiClient",
    "DashboardSession",
    "MutationIntent",
    "MutationKind",
    "OptimisticCollection",
    "SyncCoordinator",
    "SyncState",
    "SyncStatus",
]
