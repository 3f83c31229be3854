"""Wrapper around a prepared driver statement that logs its use."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Sequence

from .levels import Level
from .logger import CallLogger, DataFunc, NamedValue, SkipError, named_values_to_values
from .result import Result
from .rows import Rows

_VALUE_TYPES = (bool, int, float, bytes, str, datetime)
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _is_value(value: Any) -> bool:
    return value is None or isinstance(value, _VALUE_TYPES)


def default_parameter_converter(value: Any) -> Any:
    """Convert ``value`` to one a driver accepts, or raise ``TypeError``/``ValueError``."""
    if isinstance(value, int) and not isinstance(value, bool):
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"integer {value} does not fit in 64 bits")
        return value
    if _is_value(value):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    valuer = getattr(value, "value", None)
    if callable(valuer):
        converted = valuer()
        if not _is_value(converted):
            raise TypeError(
                f"non-value type {type(converted).__name__} returned from value()"
            )
        return converted
    raise TypeError(f"unsupported type {type(value).__name__}")


@dataclass
class Statement:
    """Prepared statement whose calls are logged with its connection and statement ids."""

    driver_stmt: Any
    sql: str
    logger: CallLogger
    stmt_id: str = ""
    conn_id: str = ""

    def close(self) -> None:
        """Close the statement."""
        self._logged(None, Level.DEBUG, "StmtClose", self.driver_stmt.close, self._log_data())

    def num_input(self) -> int:
        """Return the number of placeholders, as the driver reports it."""
        return self.driver_stmt.num_input()

    def exec(self, args: Sequence[Any]) -> Any:
        """Execute the statement with positional ``args``."""
        data = [*self._log_data(), self.logger.with_args(args)]
        res = self._logged(
            None, self.logger.options.execer_level, "StmtExec",
            lambda: self.driver_stmt.exec(args), data,
        )
        return self._result(res, args)

    def query(self, args: Sequence[Any]) -> Any:
        """Run the statement as a query with positional ``args``."""
        data = [*self._log_data(), self.logger.with_args(args)]
        res = self._logged(
            None, self.logger.options.queryer_level, "StmtQuery",
            lambda: self.driver_stmt.query(args), data,
        )
        return self._rows(res, args)

    def exec_context(self, ctx: Any, args: Sequence[NamedValue]) -> Any:
        """Execute with named values; ``SkipError`` if the driver lacks this call."""
        method = self._optional("exec_context")
        log_args = named_values_to_values(args)
        data = [*self._log_data(), self.logger.with_args(log_args)]
        res = self._logged(
            ctx, self.logger.options.execer_level, "StmtExecContext",
            lambda: method(ctx, args), data,
        )
        return self._result(res, log_args)

    def query_context(self, ctx: Any, args: Sequence[NamedValue]) -> Any:
        """Query with named values; ``SkipError`` if the driver lacks this call."""
        method = self._optional("query_context")
        log_args = named_values_to_values(args)
        data = [*self._log_data(), self.logger.with_args(log_args)]
        res = self._logged(
            ctx, self.logger.options.queryer_level, "StmtQueryContext",
            lambda: method(ctx, args), data,
        )
        return self._rows(res, log_args)

    def check_named_value(self, named_value: NamedValue) -> None:
        """Let the driver check ``named_value``; ``SkipError`` if it cannot."""
        method = self._optional("check_named_value")
        self._logged(
            None, Level.TRACE, "StmtCheckNamedValue",
            lambda: method(named_value), self._log_data(),
        )

    def column_converter(self, index: int) -> Callable[[Any], Any]:
        """Return the driver's converter for a column, or the default converter."""
        method = getattr(self.driver_stmt, "column_converter", None)
        if callable(method):
            return method(index)
        return default_parameter_converter

    def _optional(self, name: str) -> Callable[..., Any]:
        method = getattr(self.driver_stmt, name, None)
        if not callable(method):
            raise SkipError()
        return method

    def _logged(
        self, ctx: Any, level: Level, msg: str, call: Callable[[], Any], data: list[DataFunc]
    ) -> Any:
        start = time.time_ns()
        try:
            value = call()
        except Exception as exc:
            self.logger.log(ctx, Level.ERROR, msg, start, exc, *data)
            raise
        self.logger.log(ctx, level, msg, start, None, *data)
        return value

    def _rows(self, res: Any, args: Sequence[Any]) -> Any:
        if not self.logger.options.wrap_result:
            return res
        return Rows(res, self.logger, conn_id=self.conn_id, stmt_id=self.stmt_id,
                    query=self.sql, args=args)

    def _result(self, res: Any, args: Sequence[Any]) -> Any:
        if not self.logger.options.wrap_result:
            return res
        return Result(res, self.logger, conn_id=self.conn_id, stmt_id=self.stmt_id,
                      query=self.sql, args=args)

    def _log_data(self) -> list[DataFunc]:
        opts = self.logger.options
        return [
            self.logger.with_uid(opts.conn_id_fieldname, self.conn_id),
            self.logger.with_uid(opts.stmt_id_fieldname, self.stmt_id),
            self.logger.with_query(self.sql),
        ]