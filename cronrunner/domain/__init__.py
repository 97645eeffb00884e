"""
Domain models for cronrunner.

This package contains pure domain logic with no storage coupling.
"""

from .job import JobDefinition, RunRecord, Schedule

__all__ = ["JobDefinition", "RunRecord", "Schedule"]
