import pytest

from sqlcall_logger.levels import Level
from sqlcall_logger.logger import CallLogger
from sqlcall_logger.options import Options
from sqlcall_logger.rows import Rows

BAD_CONN = "driver: bad connection"
TRACE = {"minimum_log_level": Level.TRACE}


class Sink(list):
    def log(self, ctx, level, msg, data):
        self.append((level, msg, data))


class FakeRows:
    def __init__(self, next_error=None, close_error=None):
        self.next_error = next_error
        self.close_error = close_error

    def columns(self):
        return ["a", "b"]

    def close(self):
        if self.close_error:
            raise self.close_error

    def next(self, dest):
        if self.next_error:
            raise self.next_error


class FakeMultiRows(FakeRows):
    def __init__(self, has_next=True, next_set_error=None):
        super().__init__()
        self.has_next = has_next
        self.next_set_error = next_set_error

    def has_next_result_set(self):
        return self.has_next

    def next_result_set(self):
        if self.next_set_error:
            raise self.next_set_error


class FakeTypedRows(FakeRows):
    def column_type_scan_type(self, index):
        return int

    def column_type_database_type_name(self, index):
        return "BIGINT"

    def column_type_length(self, index):
        return 20

    def column_type_nullable(self, index):
        return True

    def column_type_precision_scale(self, index):
        return (10, 2)


def make_rows(driver_rows, **option_values):
    sink = Sink()
    call_logger = CallLogger(sink, Options(**option_values))
    gen = call_logger.options.uid_generator
    rows = Rows(driver_rows, call_logger, conn_id=gen.unique_id(),
                stmt_id=gen.unique_id(), query="SELECT 1")
    return rows, sink


def last_scoped_entry(rows, sink, msg, level):
    got_level, got_msg, data = sink[-1]
    assert (got_level, got_msg) == (level, msg)
    assert data["conn_id"] == rows.conn_id
    assert data["stmt_id"] == rows.stmt_id
    assert data["query"] == "SELECT 1"
    return data


def test_columns():
    rows, _ = make_rows(FakeRows())
    assert rows.columns() == ["a", "b"]


@pytest.mark.parametrize(
    "driver_rows, method, msg",
    [
        (FakeRows(close_error=ConnectionError(BAD_CONN)), "close", "RowsClose"),
        (FakeMultiRows(next_set_error=ConnectionError(BAD_CONN)), "next_result_set", "RowsNextResultSet"),
    ],
)
def test_driver_error_is_logged(driver_rows, method, msg):
    rows, sink = make_rows(driver_rows)
    with pytest.raises(ConnectionError):
        getattr(rows, method)()
    assert last_scoped_entry(rows, sink, msg, Level.ERROR)["error"] == BAD_CONN


def test_close_success_is_below_minimum_level():
    rows, sink = make_rows(FakeRows())
    rows.close()
    assert sink == []


@pytest.mark.parametrize(
    "driver_rows, method",
    [(FakeRows(next_error=EOFError()), "next"), (FakeMultiRows(next_set_error=EOFError()), "next_result_set")],
)
def test_eof_is_passed_through_unlogged(driver_rows, method):
    rows, sink = make_rows(driver_rows)
    with pytest.raises(EOFError):
        getattr(rows, method)(*([[1]] if method == "next" else []))
    assert sink == []


@pytest.mark.parametrize("log_args", [True, False])
@pytest.mark.parametrize(
    "error, level, options",
    [(ConnectionError(BAD_CONN), Level.ERROR, {}), (None, Level.TRACE, TRACE)],
)
def test_next_logs_dest_only_with_args(log_args, error, level, options):
    rows, sink = make_rows(FakeRows(next_error=error), log_args=log_args, **options)
    if error is None:
        rows.next([1])
    else:
        with pytest.raises(ConnectionError):
            rows.next([1])

    data = last_scoped_entry(rows, sink, "RowsNext", level)
    if log_args:
        assert data["rows_dest"] == [1]
    else:
        assert "rows_dest" not in data


def test_next_logs_values_filled_by_driver():
    class FillingRows(FakeRows):
        def next(self, dest):
            dest[0] = "filled"

    rows, sink = make_rows(FillingRows(), **TRACE)
    dest = [None]
    rows.next(dest)
    assert dest == ["filled"]
    assert sink[-1][2]["rows_dest"] == ["filled"]


@pytest.mark.parametrize("driver_rows, expected", [(FakeRows(), False), (FakeMultiRows(has_next=True), True)])
def test_has_next_result_set(driver_rows, expected):
    rows, _ = make_rows(driver_rows)
    assert rows.has_next_result_set() is expected


def test_next_result_set_without_support():
    rows, _ = make_rows(FakeRows())
    with pytest.raises(EOFError):
        rows.next_result_set()


def test_next_result_set_success():
    rows, sink = make_rows(FakeMultiRows(), **TRACE)
    rows.next_result_set()
    assert "error" not in last_scoped_entry(rows, sink, "RowsNextResultSet", Level.TRACE)


@pytest.mark.parametrize(
    "driver_rows, expected",
    [
        (FakeRows(), (list[str], "", None, None, None)),
        (FakeTypedRows(), (int, "BIGINT", 20, True, (10, 2))),
    ],
)
def test_column_types(driver_rows, expected):
    rows, _ = make_rows(driver_rows)
    got = (
        rows.column_type_scan_type(0),
        rows.column_type_database_type_name(0),
        rows.column_type_length(0),
        rows.column_type_nullable(0),
        rows.column_type_precision_scale(0),
    )
    assert got == expected