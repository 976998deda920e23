"""Statement execution: prepare -> bind -> step loop -> finalize.

These are plain functions over an Engine and a raw connection handle. They
are what the connection's worker thread runs; nothing here is safe to call
for the same handle from two threads at once.

The prepared statement is held by the ``prepared`` context manager, so it is
finalized exactly once on every exit path: success, bind failure, step
failure or a column-type failure mid-row.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Sequence

from smite.domain.values import ResultSet, Row, to_python, to_value
from smite.infrastructure.logging import get_logger
from smite.ports.outbound.engine import (
    RESULT_OK,
    ConnectionHandle,
    Engine,
    StatementHandle,
    StepResult,
)

logger = get_logger(__name__)


@contextmanager
def prepared(engine: Engine, db: ConnectionHandle, sql: str) -> Iterator[StatementHandle]:
    """Prepare the first statement in sql and finalize it on exit.

    Trailing statements are not executed; a warning is logged when any
    non-whitespace text follows the first statement.

    Raises:
        PrepareError: If the engine rejected the statement. Nothing is
            left to finalize in that case.
    """
    statement, tail = engine.prepare_statement(db, sql)
    if tail:
        logger.warning("trailing_sql_ignored", sql=sql, ignored=tail)
    try:
        yield statement
    finally:
        code = engine.finalize_statement(statement)
        if code != RESULT_OK:
            # finalize repeats the last step error; the step already raised it
            logger.debug("finalize_failed", code=code)


def bind_arguments(
    engine: Engine,
    db: ConnectionHandle,
    statement: StatementHandle,
    arguments: Sequence[object],
) -> None:
    """Bind arguments to parameters 1..n, stopping at the first failure.

    Raises:
        BindTypeError: If an argument is outside the value domain. No engine
            call is made for that argument.
        BindError: If the engine rejected a bind.
    """
    for position, argument in enumerate(arguments, start=1):
        engine.bind_parameter(db, statement, to_value(argument, position), position)


def read_row(engine: Engine, statement: StatementHandle) -> Row:
    """Read every column of the current row.

    A later column with the same name as an earlier one replaces it.

    Raises:
        ColumnTypeError: If a column holds an unsupported type.
    """
    row: Row = {}
    for index in range(engine.column_count(statement)):
        name = engine.column_name(statement, index)
        row[name] = to_python(engine.read_column(statement, index))
    return row


def collect_rows(engine: Engine, db: ConnectionHandle, statement: StatementHandle) -> ResultSet:
    """Step the statement to completion and return all rows.

    Raises:
        StepError: If a step fails. Rows read so far are discarded.
        ColumnTypeError: If a produced column has an unsupported type.
    """
    rows: ResultSet = []
    while engine.step(db, statement) is StepResult.ROW:
        rows.append(read_row(engine, statement))
    return rows


def run_statement(
    engine: Engine,
    db: ConnectionHandle,
    sql: str,
    arguments: Sequence[object] = (),
) -> ResultSet:
    """Run one statement end to end and return its fully materialized rows.

    Args:
        engine: The engine adapter.
        db: Open connection handle, used only by the calling thread.
        sql: Statement text; only the first statement is run.
        arguments: Positional parameter values, bound to ?1..?n in order.

    Returns:
        Rows in engine order. Either the complete result or an exception,
        never a partial result.
    """
    with prepared(engine, db, sql) as statement:
        bind_arguments(engine, db, statement, arguments)
        return collect_rows(engine, db, statement)
