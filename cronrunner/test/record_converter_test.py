from datetime import datetime

from dateutil.tz import gettz, tzlocal, tzoffset
import pytest

from cronrunner.adapters import RecordFormatError, record_from_dict, record_to_dict
from cronrunner.adapters.record_converter import datetime_from_json
from cronrunner.domain import RunRecord

from .helpers import utc


@pytest.mark.parametrize(("value", "expected"), [
    (None, None),
    ("", None),
    ("2024-01-01T12:00:00+00:00", utc(2024, 1, 1, 12, 0)),
    ("2024-01-01T13:00:00+01:00", utc(2024, 1, 1, 12, 0)),
    ("2024-01-01 12:00:00", datetime(2024, 1, 1, 12, 0, tzinfo=tzlocal())),
    ({"date": "2024-01-01 12:00:00.000000", "timezone_type": 3,
      "timezone": "UTC"}, utc(2024, 1, 1, 12, 0)),
    ({"date": "2024-01-01 13:00:00.000000", "timezone_type": 1,
      "timezone": "+01:00"}, utc(2024, 1, 1, 12, 0)),
    ([2024, 1, 1, 12, 0, 0, 0], utc(2024, 1, 1, 12, 0)),
])
def testLegacyLastRun(value, expected):
    assert datetime_from_json(value) == expected


@pytest.mark.skipif(gettz("Europe/Berlin") is None, reason="no tz database")
def testPhpNamedZone():
    value = {"date": "2024-07-01 12:00:00.000000", "timezone_type": 3,
             "timezone": "Europe/Berlin"}
    parsed = datetime_from_json(value)
    assert parsed.tzinfo == gettz("Europe/Berlin")
    assert parsed == utc(2024, 7, 1, 10, 0)


@pytest.mark.parametrize("value", [
    42, True, {"when": "now"}, [2024, 1], "xyzzy", [2024, 13, 1, 0, 0, 0, 0],
])
def testUnsupportedLastRun(value):
    with pytest.raises(RecordFormatError):
        datetime_from_json(value, "Job")


def testNaiveStringBecomesAware():
    parsed = datetime_from_json("2024-01-01 12:00:00")
    assert parsed.tzinfo is not None


def testRecordFromPhpStore():
    record = record_from_dict("CleanUp", {
        "name": "CleanUp",
        "interval": "next day 5:00",
        "command": "CleanUp",
        "extraParams": [],
        "lastRun": "2024-01-01 05:00:00",
        "lastResult": 0,
    })
    assert record.extraParams == {}
    assert record.lastResult == "0"
    assert record.lastRun.hour == 5


def testRecordMissingFields():
    record = record_from_dict("Partial", {"lastRun": None})
    assert record.name == "Partial"
    assert record.interval == ""
    assert record.lastResult == ""


def testRecordToDictKeepsExtra():
    record = RunRecord("Job", "PT1M", ["a", "b"], {"k": "v"},
                       lastRun=datetime(2024, 1, 1, 12, 0, tzinfo=tzoffset(None, -18000)),
                       lastResult="rc=0", extra={"owner": "ops", "name": "ignored"})
    assert record_to_dict(record) == {
        "name": "Job",
        "interval": "PT1M",
        "command": ["a", "b"],
        "extraParams": {"k": "v"},
        "lastRun": "2024-01-01T12:00:00-05:00",
        "lastResult": "rc=0",
        "owner": "ops",
    }
