"""
Business logic for one scheduler invocation.

This module contains the SchedulerService class which takes the processing
flag, brings the run store up to date with the schedule, dispatches every job
that is due and writes the store back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
from typing import Callable, List, Optional, Tuple

from cronrunner.domain import JobDefinition, RunRecord, Schedule
from cronrunner.domain.interval import IntervalError, isDue, nextRunTime
from cronrunner.repository import RunRepository, RunStore, StoreCorruptError
from cronrunner.utils import (
    LockState,
    ProcessingFlag,
    flaggedSection,
    hr,
    localNow,
    sprint,
)

LOG = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Invocation lifecycle states."""

    IDLE = "idle"
    LOCK_PENDING = "lock pending"  # Checking the processing flag
    ABORTED = "aborted"  # Another invocation holds the flag
    RUNNING = "running"  # Evaluating and dispatching jobs
    SAVING = "saving"  # Writing the store back


class RunStatus(Enum):
    OK = "ok"
    LOCKED = "locked"
    FATAL = "fatal"


@dataclass
class RunReport:
    """What happened during one invocation."""

    status: RunStatus = RunStatus.OK
    ran: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)


class SchedulerService:
    """
    Runs the due jobs of a Schedule against a run store.

    The service holds no state between invocations; everything it needs to
    know about previous runs comes from the repository.
    """

    def __init__(
        self,
        schedule: Schedule,
        repo: RunRepository,
        flag: ProcessingFlag,
        dispatcher,
        clock: Callable[[], datetime] = localNow,
    ):
        """
        Initialize service.

        Args:
            schedule: Jobs configured for this invocation
            repo: Run store
            flag: Processing flag guarding the whole invocation
            dispatcher: Object with dispatch(name, command, extraParams) -> str
            clock: Returns the current, timezone-aware time
        """
        self.schedule = schedule
        self.repo = repo
        self.flag = flag
        self.dispatcher = dispatcher
        self.clock = clock
        self.state = SchedulerState.IDLE

    def run(self) -> RunReport:
        """
        Execute one invocation.

        Returns:
            RunReport; status is LOCKED when another invocation holds the flag
            and FATAL when the store could not be read

        Raises:
            OSError: If the store or the flag cannot be accessed
        """
        report = RunReport()
        self.state = SchedulerState.LOCK_PENDING
        try:
            with flaggedSection(self.flag) as lockState:
                if lockState is LockState.ALREADY_RUNNING:
                    self.state = SchedulerState.ABORTED
                    sprint("Scheduler already running! Exiting.")
                    report.status = RunStatus.LOCKED
                    return report
                self.state = SchedulerState.RUNNING
                try:
                    store = self._loadStore(report)
                except StoreCorruptError as error:
                    LOG.error("store is corrupt: %s", error)
                    sprint("Error:", error)
                    report.status = RunStatus.FATAL
                    report.errors.append(str(error))
                    return report
                self._runJobs(store, report)
                self.state = SchedulerState.SAVING
                self.repo.save(store)
        finally:
            if self.state is not SchedulerState.ABORTED:
                self.state = SchedulerState.IDLE
        return report

    def _loadStore(self, report: RunReport) -> RunStore:
        sprint("Reading from:", getattr(self.repo, "path", self.repo))
        store = self.repo.load()
        report.added = self.repo.merge(self.schedule, store)
        if report.added:
            LOG.debug("new records: %r", report.added)
        return store

    def _runJobs(self, store: RunStore, report: RunReport) -> None:
        for job in self.schedule:
            record = store[job.name]
            try:
                due = isDue(record.lastRun, job.interval, self.clock())
            except IntervalError as error:
                LOG.warning("skip %s: %s", job.name, error)
                hr()
                sprint("Invalid interval for {}, skipping: {}".format(job.name, error))
                hr()
                report.errors.append(str(error))
                continue

            if not due:
                hr()
                sprint("Not time to run {}, skipping.".format(job.name))
                hr()
                report.skipped.append(job.name)
                continue

            hr()
            sprint("Running {}".format(job.name))
            hr()
            if self.runJob(job, record):
                report.ran.append(job.name)
            else:
                report.failed.append(job.name)

    def runJob(self, job: JobDefinition, record: RunRecord) -> bool:
        """
        Dispatch `job` and record the outcome in `record`.

        A failing dispatch is recorded like any other result and the run time
        still advances, so a broken job is retried on its next interval rather
        than on every invocation.

        Returns:
            False if the dispatch raised
        """
        record.refresh(job)
        ok = True
        try:
            result = self.dispatcher.dispatch(job.name, job.command, job.extraParams)
        except Exception as err:  # pylint: disable=broad-except
            LOG.info("dispatch of %s failed", job.name, exc_info=True)
            sprint("Dispatch error for {}: {}".format(job.name, err))
            result = "error: {}".format(err)
            ok = False
        record.lastResult = result
        record.lastRun = self.clock()
        LOG.debug("%s finished at %s", job.name, record.lastRun)
        return ok


def describeStore(store: RunStore, now: datetime) -> List[Tuple[str, Optional[datetime],
                                                                Optional[datetime], str]]:
    """
    Summarize `store` as (name, lastRun, nextRun, lastResult) rows; nextRun is
    None when the interval cannot be parsed.
    """
    rows = []
    for name, record in store.items():
        try:
            nextRun = nextRunTime(record.lastRun, record.interval, now.tzinfo)
        except IntervalError:
            nextRun = None
        rows.append((name, record.lastRun, nextRun, record.lastResult))
    return rows
