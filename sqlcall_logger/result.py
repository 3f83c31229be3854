"""Wrapper around a driver result that logs access to its counters."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

from .levels import Level
from .logger import CallLogger, DataFunc

T = TypeVar("T")


def _logged_call(
    logger: CallLogger,
    msg: str,
    call: Callable[[], T],
    data: Sequence[DataFunc],
    success_level: Level = Level.TRACE,
    quiet: tuple[type[BaseException], ...] = (),
) -> T:
    """Run ``call`` and log it; ``quiet`` exceptions are logged at ``success_level``."""
    start = time.time_ns()
    try:
        value = call()
    except quiet as exc:
        logger.log(None, success_level, msg, start, exc, *data)
        raise
    except Exception as exc:
        logger.log(None, Level.ERROR, msg, start, exc, *data)
        raise
    logger.log(None, success_level, msg, start, None, *data)
    return value


def _scoped_log_data(
    logger: CallLogger, conn_id: str, stmt_id: str, query: str, args: Sequence[Any]
) -> list[DataFunc]:
    """Log data shared by results and rows: ids, query and arguments."""
    opts = logger.options
    return [
        logger.with_uid(opts.conn_id_fieldname, conn_id),
        logger.with_uid(opts.stmt_id_fieldname, stmt_id),
        logger.with_query(query),
        logger.with_args(args),
    ]


@dataclass
class Result:
    """Result of an executed statement whose counter lookups are logged."""

    driver_result: Any
    logger: CallLogger
    conn_id: str = ""
    stmt_id: str = ""
    query: str = ""
    args: Sequence[Any] = ()

    def last_insert_id(self) -> int:
        """Return the id generated by the database for the inserted row."""
        return self._logged("ResultLastInsertId", self.driver_result.last_insert_id)

    def rows_affected(self) -> int:
        """Return how many rows the statement changed."""
        return self._logged("ResultRowsAffected", self.driver_result.rows_affected)

    def _logged(self, msg: str, call: Callable[[], int]) -> int:
        data = _scoped_log_data(self.logger, self.conn_id, self.stmt_id, self.query, self.args)
        return _logged_call(self.logger, msg, call, data)