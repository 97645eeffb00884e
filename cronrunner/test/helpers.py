from contextlib import contextmanager
from datetime import datetime, timedelta
from io import StringIO
import os
import sys

from dateutil.tz import tzutc


def resetEnv():
    if 'CRONRUNNER_STORE_PATH' in os.environ:
        del os.environ['CRONRUNNER_STORE_PATH']


@contextmanager
def capturedOutput():
    ''' Used to capture stdout or stderr.
    eg.
    with capturedOutput() as (out, err):
        print("foo")

    self.assertEqual(out.getvalue(), "foo")
    '''
    newOut, newErr = StringIO(), StringIO()
    oldOut, oldErr = sys.stdout, sys.stderr
    try:
        sys.stdout, sys.stderr = newOut, newErr
        yield sys.stdout, sys.stderr
    finally:
        sys.stdout, sys.stderr = oldOut, oldErr


def utc(*args):
    return datetime(*args, tzinfo=tzutc())


class FakeClock(object):
    """Returns `now`, which tests move around by hand."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeDispatcher(object):
    def __init__(self, results=None, onDispatch=None):
        self.calls = []
        self.results = results or {}
        self.onDispatch = onDispatch

    def dispatch(self, name, command, extraParams):
        self.calls.append((name, command, dict(extraParams)))
        if self.onDispatch:
            self.onDispatch(name)
        result = self.results.get(name, "rc=0")
        if isinstance(result, Exception):
            raise result
        return result
