"""Engine port for the embedded SQL engine.

This outbound port is the contract between the connection wrapper and the
native engine. Implementations are stateless translators: they call the
engine's C-shaped interface and convert its integer result codes into
return values or typed smite errors.

The port exposes the statement lifecycle piece by piece:
    open_connection -> prepare_statement -> bind_parameter* ->
    step* (column_count / column_name / read_column per row) ->
    finalize_statement -> close_connection

Handles are opaque integers (native pointers). None of the methods are
thread-safe with respect to a single connection handle; callers must
confine every call for one handle to one thread at a time.
"""

from __future__ import annotations

from abc import abstractmethod
from enum import Enum
from typing import NewType, Protocol

from smite.domain.values import Value

ConnectionHandle = NewType("ConnectionHandle", int)
"""Opaque native connection handle. Owned by exactly one Connection."""

StatementHandle = NewType("StatementHandle", int)
"""Opaque native prepared-statement handle. 0 means "no statement"."""

NO_STATEMENT = StatementHandle(0)

RESULT_OK = 0
"""Result code returned by finalize_statement/close_connection on success."""


class StepResult(Enum):
    """Successful outcomes of a single step."""

    ROW = "row"
    DONE = "done"


class Engine(Protocol):
    """Protocol for the native engine adapter."""

    @abstractmethod
    def library_version(self) -> str:
        """Return the version string reported by the native library."""
        ...

    @abstractmethod
    def open_connection(self, path: str) -> ConnectionHandle:
        """Open (creating if missing) the database at path, read-write.

        The engine's own full-mutex mode is requested as well; it does not
        replace the caller's thread confinement.

        Args:
            path: Filesystem path or ":memory:".

        Returns:
            A live connection handle.

        Raises:
            OpenError: If the engine did not report success or returned no
                handle. Any partially opened handle is closed first.
        """
        ...

    @abstractmethod
    def set_busy_timeout(self, db: ConnectionHandle, timeout_ms: int) -> None:
        """Make the engine retry for up to timeout_ms when the file is locked."""
        ...

    @abstractmethod
    def close_connection(self, db: ConnectionHandle) -> int:
        """Release the connection. Must be called at most once per handle.

        Returns:
            The engine's result code (informational).
        """
        ...

    @abstractmethod
    def prepare_statement(self, db: ConnectionHandle, sql: str) -> tuple[StatementHandle, str]:
        """Compile the first statement in sql.

        Only the first statement is compiled; anything after it is returned
        untouched and never executed.

        Returns:
            (statement handle, unused remainder of sql with surrounding
            whitespace stripped).

        Raises:
            PrepareError: If compilation failed or sql held no statement.
        """
        ...

    @abstractmethod
    def bind_parameter(
        self,
        db: ConnectionHandle,
        statement: StatementHandle,
        value: Value,
        index: int,
    ) -> None:
        """Bind value to the 1-based parameter index.

        Text is bound with a transient (engine-copied) lifetime.

        Raises:
            BindError: If the engine rejected the bind.
        """
        ...

    @abstractmethod
    def step(self, db: ConnectionHandle, statement: StatementHandle) -> StepResult:
        """Advance the statement by one step.

        Raises:
            StepError: If the engine reported anything but a row or completion.
        """
        ...

    @abstractmethod
    def column_count(self, statement: StatementHandle) -> int:
        """Return the number of result columns."""
        ...

    @abstractmethod
    def column_name(self, statement: StatementHandle, index: int) -> str:
        """Return the name of the 0-based result column."""
        ...

    @abstractmethod
    def read_column(self, statement: StatementHandle, index: int) -> Value:
        """Read the 0-based column of the current row.

        Raises:
            ColumnTypeError: If the column's runtime type is not TEXT,
                FLOAT, INTEGER or NULL.
        """
        ...

    @abstractmethod
    def finalize_statement(self, statement: StatementHandle) -> int:
        """Release the prepared statement. Safe to call with NO_STATEMENT.

        Returns:
            The engine's result code (informational; it repeats the last
            step error, if any).
        """
        ...
