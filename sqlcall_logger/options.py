"""Configuration of the call logger: field names, formats, levels and id generation."""

from __future__ import annotations

import os
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Callable, Protocol, Union, runtime_checkable

from .levels import Level

_NS_PER_SECOND = 1_000_000_000
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DurationUnit(IntEnum):
    """Unit in which the time spent on a driver call is reported."""

    NANOSECOND = 0
    MICROSECOND = 1
    MILLISECOND = 2


_NS_PER_UNIT = {
    DurationUnit.NANOSECOND: 1,
    DurationUnit.MICROSECOND: 1_000,
    DurationUnit.MILLISECOND: 1_000_000,
}


def format_duration(unit: int, duration_ns: int) -> float:
    """Express ``duration_ns`` nanoseconds in ``unit``; unknown units give nanoseconds."""
    return float(duration_ns) / _NS_PER_UNIT.get(unit, 1)


class TimeFormat(IntEnum):
    """Format of timestamps placed in log entries."""

    UNIX = 0
    UNIX_NANO = 1
    RFC3339 = 2
    RFC3339_NANO = 3


Moment = Union[int, datetime]


def _to_nanoseconds(moment: Moment) -> int:
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.astimezone()
        delta = moment - _EPOCH
        return (delta.days * 86_400 + delta.seconds) * _NS_PER_SECOND + delta.microseconds * 1_000
    return int(moment)


def _rfc3339(ns: int, with_fraction: bool) -> str:
    seconds, fraction = divmod(ns, _NS_PER_SECOND)
    local = datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone()
    text = local.strftime("%Y-%m-%dT%H:%M:%S")
    if with_fraction and fraction:
        text += "." + f"{fraction:09d}".rstrip("0")
    offset = local.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def format_time(time_format: int, moment: Moment) -> int | str:
    """Format ``moment`` (nanoseconds since the epoch or a datetime) as configured.

    Unknown formats fall back to a Unix timestamp in seconds.
    """
    ns = _to_nanoseconds(moment)
    if time_format == TimeFormat.UNIX_NANO:
        return ns
    if time_format == TimeFormat.RFC3339:
        return _rfc3339(ns, with_fraction=False)
    if time_format == TimeFormat.RFC3339_NANO:
        return _rfc3339(ns, with_fraction=True)
    return ns // _NS_PER_SECOND


@runtime_checkable
class UIDGenerator(Protocol):
    """Produces ids that tie together log entries of one connection, statement or transaction."""

    def unique_id(self) -> str:
        """Return a new id; an empty string means no id is logged."""


_UID_LEN = 16
_UID_CHARLIST = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_"


class DefaultUIDGenerator:
    """Generates 16-character ids from a fast PRNG seeded with system randomness."""

    def __init__(self) -> None:
        self._random = random.Random(int.from_bytes(os.urandom(16), "little"))
        self._lock = threading.Lock()

    def unique_id(self) -> str:
        with self._lock:
            raw = self._random.randbytes(_UID_LEN)
        return "".join(_UID_CHARLIST[byte & 62] for byte in raw)


class NullUID:
    """Id generator that disables ids in log output."""

    def unique_id(self) -> str:
        return ""


@dataclass
class Options:
    """All settings that shape what the call logger emits."""

    error_fieldname: str = "error"
    duration_fieldname: str = "duration"
    time_fieldname: str = "time"
    start_time_fieldname: str = "start"
    sql_query_fieldname: str = "query"
    sql_args_fieldname: str = "args"
    stmt_id_fieldname: str = "stmt_id"
    conn_id_fieldname: str = "conn_id"
    tx_id_fieldname: str = "tx_id"
    sql_query_as_msg: bool = False
    log_args: bool = True
    log_driver_err_skip: bool = False
    wrap_result: bool = True
    minimum_log_level: Level = Level.DEBUG
    duration_unit: DurationUnit = DurationUnit.MILLISECOND
    time_format: TimeFormat = TimeFormat.UNIX
    uid_generator: UIDGenerator = field(default_factory=DefaultUIDGenerator)
    include_start_time: bool = False
    preparer_level: Level = Level.INFO
    queryer_level: Level = Level.INFO
    execer_level: Level = Level.INFO
    redaction_triggers: list[str] | None = None
    redacted_value: str = "[REDACTED]"

    def apply(self, *args: "Option") -> "Options":
        """Apply each option in order and return ``self``."""
        for option in args:
            option(self)
        return self


Option = Callable[[Options], None]


def _setter(attribute: str, value: object) -> Option:
    def option(opts: Options) -> None:
        setattr(opts, attribute, value)

    return option


def with_uid_generator(gen: UIDGenerator) -> Option:
    """Use ``gen`` for ids; pass ``NullUID()`` to leave ids out."""
    return _setter("uid_generator", gen)


def with_error_fieldname(name: str) -> Option:
    return _setter("error_fieldname", name)


def with_duration_fieldname(name: str) -> Option:
    return _setter("duration_fieldname", name)


def with_time_fieldname(name: str) -> Option:
    return _setter("time_fieldname", name)


def with_sql_query_fieldname(name: str) -> Option:
    return _setter("sql_query_fieldname", name)


def with_sql_args_fieldname(name: str) -> Option:
    return _setter("sql_args_fieldname", name)


def with_minimum_level(level: int) -> Option:
    """Set the lowest level logged; values outside the known levels are ignored."""

    def option(opts: Options) -> None:
        if level > Level.ERROR or level < Level.TRACE:
            return
        opts.minimum_log_level = Level(level)

    return option


def with_log_arguments(flag: bool) -> Option:
    return _setter("log_args", flag)


def with_log_driver_error_skip(flag: bool) -> Option:
    return _setter("log_driver_err_skip", flag)


def with_duration_unit(unit: DurationUnit) -> Option:
    return _setter("duration_unit", unit)


def with_time_format(time_format: int) -> Option:
    """Set the timestamp format; unknown formats are ignored."""

    def option(opts: Options) -> None:
        if time_format < TimeFormat.UNIX or time_format > TimeFormat.RFC3339_NANO:
            return
        opts.time_format = TimeFormat(time_format)

    return option


def with_sql_query_as_message(flag: bool) -> Option:
    return _setter("sql_query_as_msg", flag)


def with_connection_id_fieldname(name: str) -> Option:
    return _setter("conn_id_fieldname", name)


def with_statement_id_fieldname(name: str) -> Option:
    return _setter("stmt_id_fieldname", name)


def with_transaction_id_fieldname(name: str) -> Option:
    return _setter("tx_id_fieldname", name)


def with_wrap_result(flag: bool) -> Option:
    return _setter("wrap_result", flag)


def with_include_start_time(flag: bool) -> Option:
    return _setter("include_start_time", flag)


def with_start_time_fieldname(name: str) -> Option:
    return _setter("start_time_fieldname", name)


def with_preparer_level(level: Level) -> Option:
    return _setter("preparer_level", level)


def with_queryer_level(level: Level) -> Option:
    return _setter("queryer_level", level)


def with_execer_level(level: Level) -> Option:
    return _setter("execer_level", level)


def with_redaction_triggers(triggers: list[str]) -> Option:
    """Redact arguments of queries containing any of ``triggers``."""
    copied = list(triggers)

    def option(opts: Options) -> None:
        opts.redaction_triggers = copied

    return option


def with_redacted_value(value: str) -> Option:
    return _setter("redacted_value", value)