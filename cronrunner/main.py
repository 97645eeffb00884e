#!/usr/bin/env python
import argparse
import os
import sys

import dateutil.tz

import cronrunner.logging

from .argparse import addArgumentParserBaseFlags
from .binutils import binDescriptionWithStandardFooter
from .compat import version
from .config import Config, ConfigError
from .plugins import Dispatchers
from .repository import JsonRunRepository, StoreCorruptError
from .service_layer import RunStatus, SchedulerService, describeStore
from .utils import DATETIME_FMT, ProcessingFlag, localNow, sprint

_DEBUG_LOG_FILE_NAME = "cronrunner-debug.log"
LOG = cronrunner.logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_LOCKED = getattr(os, "EX_TEMPFAIL", 75)

DESC = binDescriptionWithStandardFooter("""
cronrun - Run the scheduled jobs that are due

Call this from a timer as often as the most frequent job needs, for example
every minute from crontab:

    * * * * * cronrun

Each job runs when its interval has elapsed since its last run. Intervals are
either ISO-8601 durations (PT15M, P1DT4H) or relative phrases evaluated from
the last run (next day 5:00, tomorrow at 09:00, +2 hours, next monday noon).

Exit status: 0 when the jobs were processed, %d when another invocation is
still running, 1 on a fatal error (corrupt store, I/O or configuration error).

Examples:
    # Run the configured jobs
    $ cronrun

    # Also schedule an extra job for this invocation only
    $ cronrun --job Newsletter PT15M "./bin/newsletter --send"

    # Show what the store knows about every job
    $ cronrun --list
""" % EXIT_LOCKED)


class ExitCode(Exception):
    def __init__(self, rc):
        super(ExitCode, self).__init__(self, rc)
        self.rc = rc


def parseArgs(args=None):
    if args is None:
        prog = sys.argv[0]
        args = sys.argv[1:]
    else:
        prog = None

    op = argparse.ArgumentParser(
        prog=os.path.basename(prog) if prog else "cronrun",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=DESC)

    addArgumentParserBaseFlags(op, _DEBUG_LOG_FILE_NAME)

    op.add_argument(
        "-j",
        "--job",
        dest="jobs",
        nargs=3,
        metavar=("NAME", "INTERVAL", "COMMAND"),
        action="append",
        help="Schedule an extra job for this invocation only (a job with the "
        "same name in the rc file takes precedence)")
    op.add_argument("-l", "--list", action="store_true",
                    help="List stored jobs with their last and next run, "
                    "without running anything")
    op.add_argument("--version", action="store_true",
                    help="Show the version and exit")

    options = op.parse_args(args)
    return options


def fmtTime(value, tz):
    if value is None:
        return "never"
    return value.astimezone(tz).strftime(DATETIME_FMT)


def listStore(repo, verbose=None):
    now = localNow()
    tz = dateutil.tz.tzlocal()
    rows = describeStore(repo.load(), now)
    if not rows:
        sprint("No jobs in", repo.path)
        return
    for name, lastRun, nextRun, lastResult in rows:
        if nextRun is None:
            due = "invalid interval"
        elif lastRun is None or nextRun <= now:
            due = "due now"
        else:
            due = fmtTime(nextRun, tz)
        result = lastResult.splitlines()[0] if lastResult else "-"
        sprint("{}: last run {}, next run {}, last result {}".format(
            name, fmtTime(lastRun, tz), due, result))
        if verbose and lastResult:
            for line in lastResult.splitlines()[1:]:
                sprint("    " + line)


def runScheduler(options, config):
    schedule, jobErrors = config.buildSchedule(options.jobs)
    for error in jobErrors:
        sprint("Skipping", error)
    service = SchedulerService(
        schedule,
        JsonRunRepository(config.storeFilePath),
        ProcessingFlag(config.processingFlagPath, config.processingTimeout),
        Dispatchers(),
    )
    report = service.run()
    LOG.debug("report %s", report)
    if report.status is RunStatus.LOCKED:
        raise ExitCode(EXIT_LOCKED)
    if report.status is RunStatus.FATAL:
        raise ExitCode(EXIT_FATAL)


def impl_main(args=None):
    options = parseArgs(args)
    if options.version:
        print(f"Version {version()}")
        return
    config = Config(options)

    cronrunner.logging.setup(
        config.logDir,
        _DEBUG_LOG_FILE_NAME,
        debug=options.debug)
    LOG.debug("starting with args %s", options)
    LOG.debug("python: %s", sys.version)

    if options.list:
        listStore(JsonRunRepository(config.storeFilePath), config.verbose)
        return
    runScheduler(options, config)


def main(args=None):
    try:
        impl_main(args=args)
    except ExitCode as exitCode:
        sys.exit(exitCode.rc)
    except (ConfigError, StoreCorruptError) as error:
        print("Error:", error, file=sys.stderr)
        sys.exit(EXIT_FATAL)
    except OSError as error:
        LOG.error("I/O error", exc_info=True)
        print("Error:", error, file=sys.stderr)
        sys.exit(EXIT_FATAL)
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
