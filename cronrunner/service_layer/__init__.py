"""
Service layer for business logic.

This package contains the service layer which implements business
logic and orchestrates between the domain and repository layers.
"""

from .scheduler_service import (
    RunReport,
    RunStatus,
    SchedulerService,
    SchedulerState,
    describeStore,
)

__all__ = [
    "RunReport",
    "RunStatus",
    "SchedulerService",
    "SchedulerState",
    "describeStore",
]
