"""
Pure domain model for scheduled jobs.

JobDefinition is what the configuration says a job is for this invocation,
RunRecord is what the store remembers about it across invocations. Neither
knows how it is persisted; see the repository layer for that.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

Command = Union[str, List[str]]


@dataclass(frozen=True)
class JobDefinition:
    """A job as configured for the current invocation."""

    name: str
    interval: str
    command: Command
    extraParams: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mapping so a Schedule cannot be changed mid-run
        object.__setattr__(
            self, "extraParams", MappingProxyType(dict(self.extraParams or {})))

    def commandStr(self) -> str:
        if isinstance(self.command, (list, tuple)):
            return " ".join(str(part) for part in self.command)
        return str(self.command)


@dataclass
class RunRecord:  # pylint: disable=too-many-instance-attributes
    """
    Persisted state of a job: its definition as last known plus the outcome
    of its last run.
    """

    name: str
    interval: str
    command: Command
    extraParams: Dict[str, Any] = field(default_factory=dict)
    lastRun: Optional[datetime] = None
    lastResult: str = ""

    # Unrecognized keys found in the store, written back untouched
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def fromDefinition(cls, job: JobDefinition) -> RunRecord:
        """A record for a job that never ran."""
        return cls(
            name=job.name,
            interval=job.interval,
            command=_copyCommand(job.command),
            extraParams=dict(job.extraParams),
        )

    def refresh(self, job: JobDefinition) -> None:
        """Take over the definition fields of `job`, keeping the run history."""
        self.name = job.name
        self.interval = job.interval
        self.command = _copyCommand(job.command)
        self.extraParams = dict(job.extraParams)

    def neverRun(self) -> bool:
        return self.lastRun is None


def _copyCommand(command: Command) -> Command:
    if isinstance(command, (list, tuple)):
        return list(command)
    return command


class Schedule:
    """
    Ordered, read-only collection of the jobs configured for one invocation.
    """

    def __init__(self, jobs=()):
        ordered: Dict[str, JobDefinition] = {}
        for job in jobs:
            if job.name in ordered:
                raise ValueError("Duplicate job name {!r}".format(job.name))
            ordered[job.name] = job
        self._jobs: Tuple[JobDefinition, ...] = tuple(ordered.values())
        self._byName = MappingProxyType(ordered)

    def __iter__(self) -> Iterator[JobDefinition]:
        return iter(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, name) -> bool:
        return name in self._byName

    def __getitem__(self, name) -> JobDefinition:
        return self._byName[name]

    def names(self) -> List[str]:
        return [job.name for job in self._jobs]

    def __repr__(self) -> str:
        return "Schedule({!r})".format(self.names())
