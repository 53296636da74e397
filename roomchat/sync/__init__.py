"""Synchronization endpoint and maintenance sweeper."""

from .service import PollSnapshot, SyncService
from .sweeper import MaintenanceState, Sweeper, SweepReport

__all__ = [
    "MaintenanceState",
    "PollSnapshot",
    "Sweeper",
    "SweepReport",
    "SyncService",
]
