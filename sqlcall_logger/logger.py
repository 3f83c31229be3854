"""Core logging of database calls: building the data map and handing it to a backend."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Protocol, Sequence, runtime_checkable

from .levels import Level
from .options import Options, format_duration, format_time

DataFunc = Callable[[], "tuple[str, Any]"]

MAX_ARG_VALUE_LEN = 64


@runtime_checkable
class Logger(Protocol):
    """Backend that receives every log entry."""

    def log(self, ctx: Any, level: Level, msg: str, data: dict[str, Any]) -> None:
        """Write one entry."""


class SkipError(Exception):
    """Raised by a driver that does not implement an optional operation."""

    def __init__(self, message: str = "driver: skip fast-path; continue as if unimplemented") -> None:
        super().__init__(message)


@dataclass
class NamedValue:
    """A query argument with its optional name and position."""

    name: str = ""
    ordinal: int = 0
    value: Any = None


def _truncated(raw: bytes) -> str:
    head = raw[:MAX_ARG_VALUE_LEN].decode("utf-8", errors="replace")
    return f"{head} ({len(raw) - MAX_ARG_VALUE_LEN} bytes truncated)"


def parse_args(args: Iterable[Any]) -> list[Any]:
    """Return loggable argument values, shortening long strings and byte strings."""
    parsed = []
    for value in args:
        if isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
            if len(raw) < MAX_ARG_VALUE_LEN:
                value = raw.decode("utf-8", errors="replace")
            else:
                value = _truncated(raw)
        elif isinstance(value, str):
            raw = value.encode("utf-8")
            if len(raw) > MAX_ARG_VALUE_LEN:
                value = _truncated(raw)
        parsed.append(value)
    return parsed


def named_values_to_values(args: Iterable[NamedValue]) -> list[Any]:
    """Strip names and ordinals, keeping only argument values for logging."""
    return [named.value for named in args]


@dataclass
class CallLogger:
    """Builds log entries for driver calls and forwards them to a backend."""

    logger: Logger
    options: Options = field(default_factory=Options)

    def with_uid(self, key: str, value: str) -> DataFunc:
        """Data for an id; an empty id is left out of the entry."""
        return lambda: (key, value or None)

    def with_query(self, query: str) -> DataFunc:
        return lambda: (self.options.sql_query_fieldname, query)

    def with_args(self, args: Sequence[Any]) -> DataFunc:
        def data() -> tuple[str, Any]:
            key = self.options.sql_args_fieldname
            if not self.options.log_args:
                return key, None
            return self.with_key_args(key, args)()

        return data

    def with_key_args(self, key: str, args: Sequence[Any]) -> DataFunc:
        def data() -> tuple[str, Any]:
            if not args:
                return key, None
            return key, parse_args(args)

        return data

    def log(
        self,
        ctx: Any,
        level: Level,
        msg: str,
        start: int,
        error: BaseException | None,
        *args: DataFunc,
    ) -> None:
        """Log one call that began at ``start`` (nanoseconds since the epoch)."""
        opts = self.options
        if level < opts.minimum_log_level:
            return
        if not opts.log_driver_err_skip and isinstance(error, SkipError):
            return

        now = time.time_ns()
        data: dict[str, Any] = {
            opts.time_fieldname: format_time(opts.time_format, now),
            opts.duration_fieldname: format_duration(opts.duration_unit, max(0, now - start)),
        }
        if opts.include_start_time:
            data[opts.start_time_fieldname] = format_time(opts.time_format, start)
        if level == Level.ERROR and error is not None:
            data[opts.error_fieldname] = str(error)

        redact_args = False
        for data_func in args:
            key, value = data_func()
            if key == opts.sql_args_fieldname and not opts.log_args:
                continue
            if value is None:
                continue
            if key == opts.sql_query_fieldname:
                if isinstance(value, str) and any(
                    trigger in value for trigger in opts.redaction_triggers or ()
                ):
                    redact_args = True
                if opts.sql_query_as_msg:
                    msg = value
                    continue
            data[key] = value

        if redact_args:
            data.pop(opts.sql_args_fieldname, None)
            if opts.log_args:
                data[opts.sql_args_fieldname] = opts.redacted_value

        self.logger.log(ctx, level, msg, data)