from contextlib import contextmanager
import datetime
import enum
import errno
import logging
import os
import time

import chardet
import dateutil.tz

DATETIME_FMT = "%a %b %e, %Y %X %Z"
SPACER_EACH = "----------------------------------------"
SPACER = SPACER_EACH + SPACER_EACH

LOG = logging.getLogger(__name__)


def strForEach(value):
    try:
        return str(value)
    except (UnicodeDecodeError, UnicodeEncodeError):
        LOG.debug("%r", value, exc_info=1)
        return '{!r}'.format(value)


def sprint(*args, **kwargs):
    """sprint: "safe" print - ignore IOError"""
    try:
        print(*list(map(strForEach, args)), **kwargs)
    except IOError:
        LOG.debug("sprint ignore IOError", exc_info=1)
    except (UnicodeEncodeError, UnicodeDecodeError):
        print('codec error', repr(args))
        LOG.debug("%r", args, exc_info=1)
    except BaseException:
        LOG.debug("sprint caught error", exc_info=1)
        raise


def hr():
    sprint(SPACER)


def localNow():
    return datetime.datetime.now(dateutil.tz.tzlocal()).replace(microsecond=0)


def dateTimeFromJson(dtJson):
    if dtJson is None:
        return None
    args = list(dtJson)
    args.append(dateutil.tz.tzutc())
    return datetime.datetime(*args)


def autoDecode(byteArray):
    detected = chardet.detect(byteArray)
    encoding = detected['encoding']
    if encoding is None or detected['confidence'] < 0.5:  # very arbitrary
        encoding = 'utf-8'
    return byteArray.decode(encoding, errors='replace')


def tail(text, lines):
    return "\n".join(text.splitlines()[-lines:])


class LockState(enum.Enum):
    ACQUIRED = "acquired"
    ALREADY_RUNNING = "already running"


class ProcessingFlag(object):
    """
    Marker file telling other invocations that the scheduler is busy.

    A marker younger than `timeout` seconds means another invocation owns the
    store. An older one is assumed to be left behind by a crashed run and is
    replaced. There is no PID liveness check: a legitimate run that outlives
    the timeout can overlap with the next one.

    Deleting the stale marker and re-creating it is not one atomic step. The
    exclusive create makes sure only one of two racing invocations wins the
    creation, but a process that read a fresh mtime just before another one
    replaced a stale marker can still be misled.
    """

    def __init__(self, filename, timeout=600, clock=time.time):
        self._filename = filename
        self._timeout = timeout
        self._clock = clock
        self._held = False

    def age(self):
        """Seconds since the marker was last modified, or None if absent."""
        try:
            mtime = os.stat(self._filename).st_mtime
        except FileNotFoundError:
            return None
        return self._clock() - mtime

    def isHeld(self):
        return self._held

    def acquire(self):
        age = self.age()
        if age is not None:
            if age < self._timeout:
                LOG.debug("flag %s is %.1fs old, timeout %ss",
                          self._filename, age, self._timeout)
                return LockState.ALREADY_RUNNING
            LOG.info("removing stale flag %s (%.1fs old)", self._filename, age)
            self._remove()
        try:
            fd = os.open(self._filename, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            LOG.debug("lost the race creating %s", self._filename)
            return LockState.ALREADY_RUNNING
        os.close(fd)
        self._held = True
        LOG.debug("created flag %s", self._filename)
        return LockState.ACQUIRED

    def release(self):
        self._remove()
        self._held = False
        LOG.debug("released flag %s", self._filename)

    def _remove(self):
        try:
            os.unlink(self._filename)
        except OSError as err:
            if err.errno != errno.ENOENT:
                raise


@contextmanager
def flaggedSection(flag):
    """
    Yield the LockState of `flag`; the flag is released on exit only when this
    section acquired it.
    """
    state = flag.acquire()
    try:
        yield state
    except BaseException:
        LOG.debug("flaggedSection exception", exc_info=1)
        raise
    finally:
        if state is LockState.ACQUIRED:
            flag.release()
