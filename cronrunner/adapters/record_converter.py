"""
Converters between RunRecord and its JSON representation.

The store has been written by different tools over time, so `lastRun` shows up
in several shapes. They are all turned into one optional, timezone-aware
datetime here and nowhere else.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from dateutil import parser
from dateutil.tz import gettz, tzlocal

from cronrunner.domain import RunRecord
from cronrunner.utils import dateTimeFromJson

FIELDS = ("name", "interval", "command", "extraParams", "lastRun", "lastResult")


class RecordFormatError(ValueError):
    pass


def datetime_to_json(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _parseString(value: str) -> datetime:
    parsed = parser.parse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tzlocal())
    return parsed


def _parsePhpDateTime(value: Dict[str, Any]) -> datetime:
    # {"date": "2024-01-01 12:00:00.000000", "timezone_type": 3,
    #  "timezone": "Europe/Berlin"}
    date = value["date"]
    zone = value.get("timezone")
    if not zone:
        return _parseString(date)
    if zone[0] in "+-":
        # timezone_type 1 stores an offset such as "+01:00"
        return parser.parse("{} {}".format(date, zone))
    tz = gettz(zone)
    if tz is None:
        raise ValueError("unknown timezone {!r}".format(zone))
    return parser.parse(date).replace(tzinfo=tz)


def datetime_from_json(value: Any, name: str = "?") -> Optional[datetime]:
    """Normalize any known `lastRun` shape into an aware datetime or None."""
    try:
        if value is None or value == "":
            return None
        if isinstance(value, str):
            return _parseString(value)
        if isinstance(value, dict) and "date" in value:
            return _parsePhpDateTime(value)
        if isinstance(value, list) and len(value) == 7:
            return dateTimeFromJson(value)
    except (ValueError, TypeError, OverflowError) as error:
        raise RecordFormatError(
            "Job {!r} has an unreadable lastRun {!r}: {}".format(
                name, value, error)) from error
    raise RecordFormatError(
        "Job {!r} has an unsupported lastRun {!r}".format(name, value))


def record_to_dict(record: RunRecord) -> Dict[str, Any]:
    data = {
        "name": record.name,
        "interval": record.interval,
        "command": record.command,
        "extraParams": record.extraParams,
        "lastRun": datetime_to_json(record.lastRun),
        "lastResult": record.lastResult,
    }
    for key, value in record.extra.items():
        data.setdefault(key, value)
    return data


def record_from_dict(key: str, data: Any) -> RunRecord:
    """
    Build a RunRecord from the stored value under `key`.

    Missing definition fields are tolerated (a later run refreshes them from
    the configuration); a value that is not an object is not.
    """
    if not isinstance(data, dict):
        raise RecordFormatError(
            "Job {!r} is stored as {}, expected an object".format(
                key, type(data).__name__))
    extraParams = data.get("extraParams")
    if extraParams is None or extraParams == []:
        # an empty PHP array encodes as []
        extraParams = {}
    lastResult = data.get("lastResult")
    if lastResult is None:
        lastResult = ""
    elif not isinstance(lastResult, str):
        lastResult = str(lastResult)
    return RunRecord(
        name=data.get("name", key),
        interval=data.get("interval", ""),
        command=data.get("command", ""),
        extraParams=extraParams,
        lastRun=datetime_from_json(data.get("lastRun"), key),
        lastResult=lastResult,
        extra={k: v for k, v in data.items() if k not in FIELDS},
    )
