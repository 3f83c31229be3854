"""Wrapper around driver rows that logs iteration and closing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .logger import CallLogger, DataFunc
from .result import _logged_call, _scoped_log_data


@dataclass
class Rows:
    """Rows returned by a query; ``next`` and ``next_result_set`` raise ``EOFError`` at the end."""

    driver_rows: Any
    logger: CallLogger
    conn_id: str = ""
    stmt_id: str = ""
    query: str = ""
    args: Sequence[Any] = ()

    def columns(self) -> list[str]:
        """Return the column names."""
        return self.driver_rows.columns()

    def close(self) -> None:
        """Close the rows."""
        self._logged("RowsClose", self.driver_rows.close, self._log_data())

    def next(self, dest: list[Any]) -> None:
        """Fill ``dest`` with the next row."""
        data = self._log_data()
        # Row values are only logged when query arguments are.
        if self.logger.options.log_args:
            data.append(self.logger.with_key_args("rows_dest", dest))
        self._logged("RowsNext", lambda: self.driver_rows.next(dest), data)

    def has_next_result_set(self) -> bool:
        """Tell whether another result set follows; False if the driver has none."""
        method = getattr(self.driver_rows, "has_next_result_set", None)
        return bool(method()) if callable(method) else False

    def next_result_set(self) -> None:
        """Advance to the next result set; ``EOFError`` when there is none."""
        method = getattr(self.driver_rows, "next_result_set", None)
        if not callable(method):
            raise EOFError
        self._logged("RowsNextResultSet", method, self._log_data())

    def column_type_scan_type(self, index: int) -> Any:
        """Return the type suited to scan the column into."""
        return self._optional("column_type_scan_type", index, list[str])

    def column_type_database_type_name(self, index: int) -> str:
        """Return the database type name of the column, or an empty string."""
        return self._optional("column_type_database_type_name", index, "")

    def column_type_length(self, index: int) -> int | None:
        """Return the column length, or None when unknown."""
        return self._optional("column_type_length", index, None)

    def column_type_nullable(self, index: int) -> bool | None:
        """Return whether the column may be null, or None when unknown."""
        return self._optional("column_type_nullable", index, None)

    def column_type_precision_scale(self, index: int) -> tuple[int, int] | None:
        """Return the column's (precision, scale), or None when unknown."""
        return self._optional("column_type_precision_scale", index, None)

    def _optional(self, name: str, index: int, default: Any) -> Any:
        method = getattr(self.driver_rows, name, None)
        return method(index) if callable(method) else default

    def _logged(self, msg: str, call: Callable[[], Any], data: list[DataFunc]) -> None:
        _logged_call(self.logger, msg, call, data, quiet=(EOFError,))

    def _log_data(self) -> list[DataFunc]:
        return _scoped_log_data(self.logger, self.conn_id, self.stmt_id, self.query, self.args)