"""
Repository layer for run record persistence.

This package contains the repository pattern implementation for
storing and retrieving run records from persistent storage.
"""

from .interface import RunRepository, RunStore, StoreCorruptError
from .json_repository import JsonRunRepository

__all__ = ["JsonRunRepository", "RunRepository", "RunStore", "StoreCorruptError"]
