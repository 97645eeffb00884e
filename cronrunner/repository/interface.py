"""
Repository interface for run record persistence.

This module defines the abstract interface that all store implementations
must follow, together with the merge step shared by all of them.
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from cronrunner.domain import RunRecord, Schedule

RunStore = Dict[str, RunRecord]


class StoreCorruptError(Exception):
    """The persisted store cannot be read back."""


class RunRepository(ABC):
    """
    Abstract repository for run records.

    The whole store is read and written at once; callers are expected to hold
    the processing flag between load() and save().
    """

    @abstractmethod
    def load(self) -> RunStore:
        """
        Read the persisted store.

        Returns:
            Mapping of job name to RunRecord, empty on the very first run

        Raises:
            StoreCorruptError: If the persisted document cannot be parsed
        """

    @abstractmethod
    def save(self, store: RunStore) -> None:
        """
        Replace the persisted store with `store`.

        Args:
            store: Every record to keep, including jobs no longer scheduled
        """

    @staticmethod
    def merge(schedule: Schedule, store: RunStore) -> List[str]:
        """
        Add a never-run record for each scheduled job missing from `store`.

        Existing records are left alone; they only change when their job runs.

        Returns:
            Names of the records that were added
        """
        added = []
        for job in schedule:
            if job.name not in store:
                store[job.name] = RunRecord.fromDefinition(job)
                added.append(job.name)
        return added
