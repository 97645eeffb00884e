"""
Next-run computation for job intervals.

Two grammars are accepted:

* ISO-8601 durations, recognised by their leading ``P``: ``PT15M``,
  ``P10DT4H``, ``P1Y2M``, ``PT0.5S``.
* Relative phrases in the style of PHP's ``strtotime``, anchored at the last
  run: ``next day 5:00``, ``tomorrow at 09:00``, ``+2 hours``,
  ``next monday noon``, ``3 days ago``.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
import re
from typing import Optional

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta
from dateutil.tz import tzlocal

from ..config import ConfigError

# Anchor used for jobs that never ran
NEVER_RUN = datetime(1969, 1, 1, 0, 0, 0)

_DURATION_RE = re.compile(
    r"^P(?!$)"
    r"(?:(?P<years>\d+)Y)?"
    r"(?:(?P<months>\d+)M)?"
    r"(?:(?P<weeks>\d+)W)?"
    r"(?:(?P<days>\d+)D)?"
    r"(?:T(?=\d)"
    r"(?:(?P<hours>\d+)H)?"
    r"(?:(?P<minutes>\d+)M)?"
    r"(?:(?P<seconds>\d+(?:[.,]\d+)?)S)?"
    r")?$"
)

_TIME_RE = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2})(?::(?P<second>\d{2}))?)?"
    r"(?P<meridian>am|pm|a\.m\.|p\.m\.)?$"
)

_NUMBER_RE = re.compile(r"^(?P<sign>[+-]?)(?P<count>\d+)$")

_UNITS = {
    "sec": ("seconds", 1),
    "second": ("seconds", 1),
    "min": ("minutes", 1),
    "minute": ("minutes", 1),
    "hour": ("hours", 1),
    "day": ("days", 1),
    "week": ("weeks", 1),
    "fortnight": ("weeks", 2),
    "month": ("months", 1),
    "year": ("years", 1),
}

_WEEKDAYS = {
    "monday": MO, "mon": MO,
    "tuesday": TU, "tue": TU, "tues": TU,
    "wednesday": WE, "wed": WE,
    "thursday": TH, "thu": TH, "thur": TH, "thurs": TH,
    "friday": FR, "fri": FR,
    "saturday": SA, "sat": SA,
    "sunday": SU, "sun": SU,
}

_RELATIVE_WORDS = {
    "next": 1,
    "last": -1,
    "previous": -1,
    "this": 0,
}


class IntervalError(ConfigError):
    pass


def isDuration(interval: str) -> bool:
    return interval.startswith("P")


def parseDuration(interval: str) -> relativedelta:
    match = _DURATION_RE.match(interval)
    if not match:
        raise IntervalError("Invalid duration {!r}".format(interval))
    parts = {k: v for k, v in match.groupdict().items() if v is not None}
    if not parts:
        raise IntervalError("Invalid duration {!r}".format(interval))
    kwargs = {}
    for unit, value in parts.items():
        if unit == "seconds":
            seconds = float(value.replace(",", "."))
            kwargs[unit] = int(seconds) if seconds.is_integer() else seconds
        else:
            kwargs[unit] = int(value)
    return relativedelta(**kwargs)


def _unitName(word):
    if word in _UNITS:
        return word
    if word.endswith("s") and word[:-1] in _UNITS:
        return word[:-1]
    return None


def _parseTime(word):
    match = _TIME_RE.match(word)
    if not match:
        return None
    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    second = int(match.group("second") or 0)
    meridian = match.group("meridian")
    if meridian:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12
        if meridian.startswith("p"):
            hour += 12
    elif match.group("minute") is None:
        # A bare number is a count, not a time
        return None
    if hour > 23 or minute > 59 or second > 59:
        return None
    return hour, minute, second


class _Phrase(object):
    """Accumulates the effect of each token of a relative phrase."""

    def __init__(self):
        self.offsets = {}
        self.weekday = None
        self.clock = None
        self.resetTime = False

    def add(self, unit, count):
        self.offsets[unit] = self.offsets.get(unit, 0) + count

    def apply(self, anchor):
        result = anchor + relativedelta(**self.offsets)
        if self.weekday is not None:
            result = result + self.weekday
        if self.clock is not None:
            hour, minute, second = self.clock
            result = result.replace(
                hour=hour, minute=minute, second=second, microsecond=0)
        elif self.resetTime:
            result = result.replace(hour=0, minute=0, second=0, microsecond=0)
        return result


def _weekdayMove(weekday, relative):
    # strtotime semantics: "monday" may be today, "next monday" is after today
    if relative is None or relative == 0:
        return relativedelta(weekday=weekday(+1))
    if relative > 0:
        return relativedelta(days=+1, weekday=weekday(+relative))
    return relativedelta(days=-1, weekday=weekday(relative))


def parsePhrase(interval: str) -> _Phrase:
    # pylint: disable=too-many-branches
    words = [w for w in re.split(r"[\s,]+", interval.strip().lower()) if w]
    if not words:
        raise IntervalError("Empty interval")
    phrase = _Phrase()
    negate = False
    idx = 0

    def fail(word):
        return IntervalError(
            "Cannot parse interval {!r} near {!r}".format(interval, word))

    while idx < len(words):
        word = words[idx]
        nextWord = words[idx + 1] if idx + 1 < len(words) else None
        if word in ("at", "now"):
            idx += 1
        elif word == "ago":
            negate = True
            idx += 1
        elif word in ("today", "midnight"):
            phrase.resetTime = True
            idx += 1
        elif word == "noon":
            phrase.clock = (12, 0, 0)
            idx += 1
        elif word in ("tomorrow", "yesterday"):
            phrase.add("days", 1 if word == "tomorrow" else -1)
            phrase.resetTime = True
            idx += 1
        elif word in _WEEKDAYS:
            phrase.weekday = _weekdayMove(_WEEKDAYS[word], None)
            phrase.resetTime = True
            idx += 1
        elif word in _RELATIVE_WORDS or _NUMBER_RE.match(word):
            if word in _RELATIVE_WORDS:
                count = _RELATIVE_WORDS[word]
            else:
                count = int(word)
            if nextWord is None:
                raise fail(word)
            if nextWord in _WEEKDAYS and word in _RELATIVE_WORDS:
                phrase.weekday = _weekdayMove(_WEEKDAYS[nextWord], count)
                phrase.resetTime = True
            else:
                unit = _unitName(nextWord)
                if unit is None:
                    raise fail(nextWord)
                name, factor = _UNITS[unit]
                phrase.add(name, count * factor)
            idx += 2
        else:
            clock = _parseTime(word)
            if clock is None:
                raise fail(word)
            phrase.clock = clock
            idx += 1

    if negate:
        phrase.offsets = {k: -v for k, v in phrase.offsets.items()}
    return phrase


def validate(interval: str) -> None:
    """Raise IntervalError if `interval` cannot be evaluated."""
    if not isinstance(interval, str) or not interval.strip():
        raise IntervalError("Interval must be a non-empty string")
    if isDuration(interval):
        parseDuration(interval)
    else:
        parsePhrase(interval)


def nextRunTime(lastRun: Optional[datetime], interval: str,
                tz: Optional[tzinfo] = None) -> datetime:
    """
    Return the instant at which a job last run at `lastRun` is due again.

    Relative phrases are evaluated in the timezone of `lastRun`. When the job
    never ran, the anchor is NEVER_RUN in `tz` (local time by default).
    """
    validate(interval)
    if lastRun is None:
        anchor = NEVER_RUN.replace(tzinfo=tz or tzlocal())
    else:
        anchor = lastRun
    try:
        if isDuration(interval):
            return anchor + parseDuration(interval)
        return parsePhrase(interval).apply(anchor)
    except (ValueError, OverflowError) as error:
        raise IntervalError(
            "Interval {!r} from {} is out of range: {}".format(
                interval, anchor.isoformat(), error)) from error


def isDue(lastRun: Optional[datetime], interval: str, now: datetime) -> bool:
    if lastRun is None:
        validate(interval)
        return True
    return nextRunTime(lastRun, interval, now.tzinfo) <= now
