"""
Scheduler for sync jobs.
"""
from yieldlens.services.scheduler.scheduler_service import SyncScheduler

__all__ = ["SyncScheduler"]
