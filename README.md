# sqlcall-logger

Structured logging for database driver calls. A prepared statement from your
driver is wrapped so that each call on it, and on the rows and results it
returns, is timed and handed to a logger you supply as a context, a level, a
message and a dictionary of fields.

The package has no runtime dependencies.

## Modules

- `sqlcall_logger.levels`: `Level` (`TRACE < DEBUG < INFO < ERROR`) and
  `level_name`, which also names values outside the enum.
- `sqlcall_logger.options`: `Options`, the `with_*` option functions,
  `DurationUnit`, `TimeFormat`, `format_duration`, `format_time`, and the id
  generators `DefaultUIDGenerator` and `NullUID`.
- `sqlcall_logger.logger`: `CallLogger`, which builds and filters log entries;
  the `Logger` protocol for backends; `SkipError`, `NamedValue`, `parse_args`
  and `named_values_to_values`.
- `sqlcall_logger.statement`: `Statement` and `default_parameter_converter`.
- `sqlcall_logger.rows`: `Rows`.
- `sqlcall_logger.result`: `Result`.

## Usage

A backend is any object with a `log(ctx, level, msg, data)` method.

```python
import json

from sqlcall_logger.levels import Level
from sqlcall_logger.logger import CallLogger, NamedValue
from sqlcall_logger.options import (
    Options,
    TimeFormat,
    with_minimum_level,
    with_redaction_triggers,
    with_time_format,
)
from sqlcall_logger.statement import Statement


class PrintBackend:
    def log(self, ctx, level, msg, data):
        print(json.dumps({"level": str(level), "message": msg, "data": data}))


options = Options().apply(
    with_minimum_level(Level.TRACE),
    with_time_format(TimeFormat.RFC3339),
    with_redaction_triggers(["password"]),
)
call_logger = CallLogger(PrintBackend(), options)
ids = options.uid_generator

stmt = Statement(
    driver_stmt,                       # your driver's prepared statement
    "SELECT * FROM users WHERE id = ?",
    call_logger,
    stmt_id=ids.unique_id(),
    conn_id=ids.unique_id(),
)

rows = stmt.query([42])
row = [None] * len(rows.columns())
try:
    while True:
        rows.next(row)
except EOFError:
    pass
rows.close()
stmt.close()
```

### What the wrapped objects expect from the driver

- Statement: `close()`, `num_input()`, `exec(args)`, `query(args)`; optionally
  `exec_context(ctx, args)`, `query_context(ctx, args)`,
  `check_named_value(named_value)` and `column_converter(index)`. When one of
  the first three optional methods is missing, the matching `Statement` method
  raises `SkipError`. Without `column_converter`, `default_parameter_converter`
  is returned.
- Rows: `columns()`, `close()`, `next(dest)`, which raises `EOFError` at the
  end; optionally `has_next_result_set()`, `next_result_set()` and the
  `column_type_*` methods. Missing optional methods give defaults: `False`,
  `EOFError`, `list[str]`, `""` or `None`.
- Result: `last_insert_id()` and `rows_affected()`.

With `with_wrap_result(False)`, `Statement.exec`/`query` and their `_context`
forms return the driver's own objects instead of `Result` and `Rows`.

## Log entries

Messages are named after the call: `StmtClose`, `StmtExec`, `StmtQuery`,
`StmtExecContext`, `StmtQueryContext`, `StmtCheckNamedValue`, `RowsClose`,
`RowsNext`, `RowsNextResultSet`, `ResultLastInsertId`, `ResultRowsAffected`.
Fields, with their default names:

| field      | contents                                                |
|------------|---------------------------------------------------------|
| `time`     | time of the entry (Unix seconds by default)             |
| `duration` | time spent in the driver call (milliseconds by default) |
| `start`    | start of the call, only with `with_include_start_time`  |
| `query`    | the SQL text                                            |
| `args`     | the arguments, shortened as described below             |
| `conn_id`  | the connection id given to the wrapper                  |
| `stmt_id`  | the statement id given to the wrapper                   |
| `rows_dest`| the row values filled by `Rows.next`                    |
| `error`    | the exception text, on entries at the `ERROR` level     |

Empty ids and empty argument lists are left out. `rows_dest` is only logged
while arguments are logged.

Levels: `StmtClose` is `DEBUG`; executions and queries use the execer and
queryer levels (`INFO` by default); value checks, rows and results are
`TRACE`. A call that raises is logged at `ERROR` and the exception is
re-raised, except that `EOFError` from rows is logged at `TRACE`. Entries below
the minimum level, `DEBUG` by default, are dropped. `CallLogger.log` also drops
entries whose error is a `SkipError` unless `with_log_driver_error_skip(True)`
is set.

String arguments longer than 64 bytes of UTF-8, and byte strings of 64 bytes or
more, are cut to their first 64 bytes followed by
`(N bytes truncated)`; shorter byte strings are decoded to text.

## Options

Each option is a function passed to `Options.apply`:

- Field names: `with_error_fieldname`, `with_duration_fieldname`,
  `with_time_fieldname`, `with_start_time_fieldname`,
  `with_sql_query_fieldname`, `with_sql_args_fieldname`,
  `with_connection_id_fieldname`, `with_statement_id_fieldname`,
  `with_transaction_id_fieldname`
- Behaviour: `with_minimum_level` (values outside the levels are ignored),
  `with_log_arguments`, `with_log_driver_error_skip`,
  `with_sql_query_as_message` (the query becomes the message and is left out of
  the fields), `with_wrap_result`, `with_include_start_time`
- Formats: `with_duration_unit` (`DurationUnit.NANOSECOND`, `MICROSECOND`,
  `MILLISECOND`) and `with_time_format` (`TimeFormat.UNIX`, `UNIX_NANO`,
  `RFC3339`, `RFC3339_NANO`, in local time; unknown values are ignored)
- Levels per kind of call: `with_preparer_level`, `with_queryer_level`,
  `with_execer_level`
- Ids: `with_uid_generator`. The default generator makes random
  16-character ids; `NullUID()` returns empty ids.
- Redaction: `with_redaction_triggers` and `with_redacted_value`. When a
  logged query contains one of the trigger strings, its `args` field is
  replaced by the redacted value, `[REDACTED]` by default.

## What this package does not do

It does not open databases or wrap connections, connectors or transactions:
you create the driver statement and choose the connection and statement ids
yourself. It ships no ready-made logging backends; supply your own object with
a `log` method. There is no command-line program.

## Development

```
pip install -e .[test]
pytest
```