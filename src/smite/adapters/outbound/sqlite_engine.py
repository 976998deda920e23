"""SQLite implementation of the Engine port.

This adapter is a stateless translation layer over the native library:
every method performs one (or a few) C calls and turns the result code
into a return value or a typed smite error. It keeps no per-connection
state; the caller owns the handles and the thread they are used on.

Error messages combine sqlite3_errstr(code) with sqlite3_errmsg(db), read
immediately after the failing call while the connection's error state is
still current.
"""

from __future__ import annotations

import ctypes
from ctypes import byref, c_void_p
from pathlib import Path

from smite.adapters.outbound import native
from smite.adapters.outbound.native import (
    SQLITE_DONE,
    SQLITE_FLOAT,
    SQLITE_INTEGER,
    SQLITE_NULL,
    SQLITE_OK,
    SQLITE_OPEN_CREATE,
    SQLITE_OPEN_FULLMUTEX,
    SQLITE_OPEN_READWRITE,
    SQLITE_ROW,
    SQLITE_TEXT,
    SQLITE_TRANSIENT,
)
from smite.domain.errors import BindError, ColumnTypeError, OpenError, PrepareError, StepError
from smite.domain.values import NULL, Integer, Null, Real, Text, Value
from smite.ports.outbound.engine import (
    NO_STATEMENT,
    ConnectionHandle,
    StatementHandle,
    StepResult,
)

OPEN_FLAGS = SQLITE_OPEN_READWRITE | SQLITE_OPEN_CREATE | SQLITE_OPEN_FULLMUTEX


class SQLiteEngine:
    """Engine adapter backed by the system SQLite library.

    Attributes:
        lib: The declared ctypes library handle.
    """

    def __init__(
        self,
        lib: ctypes.CDLL | None = None,
        library_path: str | Path | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            lib: An already declared library (mainly for tests).
            library_path: Explicit library to load when lib is None.

        Raises:
            EngineLoadError: If the library cannot be loaded.
        """
        if lib is None:
            lib = native.load_library(str(library_path) if library_path is not None else None)
        self.lib = lib

    def library_version(self) -> str:
        return self.lib.sqlite3_libversion().decode("ascii")

    def describe(self, code: int, db: ConnectionHandle | None = None) -> str:
        """Human-readable description of a result code, for display only."""
        text = self.lib.sqlite3_errstr(code)
        description = text.decode("utf-8", errors="replace") if text else f"code {code}"
        if db:
            detail = self.lib.sqlite3_errmsg(db)
            if detail:
                detail_text = detail.decode("utf-8", errors="replace")
                if detail_text != description:
                    description = f"{description} ({detail_text})"
        return description

    # --- Connection ------------------------------------------------------------

    def open_connection(self, path: str) -> ConnectionHandle:
        raw = c_void_p()
        code = self.lib.sqlite3_open_v2(path.encode("utf-8"), byref(raw), OPEN_FLAGS, None)
        if code != SQLITE_OK or not raw.value:
            message = self.describe(code, ConnectionHandle(raw.value or 0))
            # A handle may be allocated even when the open fails
            self.lib.sqlite3_close(raw)
            raise OpenError(code, path, message=message)
        return ConnectionHandle(raw.value)

    def set_busy_timeout(self, db: ConnectionHandle, timeout_ms: int) -> None:
        self.lib.sqlite3_busy_timeout(db, timeout_ms)

    def close_connection(self, db: ConnectionHandle) -> int:
        return self.lib.sqlite3_close(db)

    # --- Statement lifecycle -----------------------------------------------------

    def prepare_statement(self, db: ConnectionHandle, sql: str) -> tuple[StatementHandle, str]:
        encoded = sql.encode("utf-8")
        buffer = ctypes.create_string_buffer(encoded)
        raw = c_void_p()
        tail = c_void_p()
        # nByte includes the NUL terminator so the engine can skip a copy
        code = self.lib.sqlite3_prepare_v2(db, buffer, len(encoded) + 1, byref(raw), byref(tail))
        if code != SQLITE_OK or not raw.value:
            message = self.describe(code, db) if code != SQLITE_OK else "no statement in SQL text"
            self.lib.sqlite3_finalize(raw)
            raise PrepareError(code, sql, message=message)

        remainder = ""
        if tail.value:
            offset = tail.value - ctypes.addressof(buffer)
            remainder = encoded[offset:].decode("utf-8", errors="replace").strip()
        return StatementHandle(raw.value), remainder

    def bind_parameter(
        self,
        db: ConnectionHandle,
        statement: StatementHandle,
        value: Value,
        index: int,
    ) -> None:
        if isinstance(value, Text):
            data = value.value.encode("utf-8")
            code = self.lib.sqlite3_bind_text(statement, index, data, len(data), SQLITE_TRANSIENT)
        elif isinstance(value, Real):
            code = self.lib.sqlite3_bind_double(statement, index, value.value)
        elif isinstance(value, Integer):
            code = self.lib.sqlite3_bind_int64(statement, index, value.value)
        elif isinstance(value, Null):
            code = self.lib.sqlite3_bind_null(statement, index)
        else:
            raise TypeError(f"Not a smite value: {value!r}")

        if code != SQLITE_OK:
            raise BindError(code, index, message=self.describe(code, db))

    def step(self, db: ConnectionHandle, statement: StatementHandle) -> StepResult:
        code = self.lib.sqlite3_step(statement)
        if code == SQLITE_ROW:
            return StepResult.ROW
        if code == SQLITE_DONE:
            return StepResult.DONE
        raise StepError(code, message=self.describe(code, db))

    def column_count(self, statement: StatementHandle) -> int:
        return self.lib.sqlite3_column_count(statement)

    def column_name(self, statement: StatementHandle, index: int) -> str:
        name = self.lib.sqlite3_column_name(statement, index)
        return name.decode("utf-8", errors="replace") if name else ""

    def read_column(self, statement: StatementHandle, index: int) -> Value:
        kind = self.lib.sqlite3_column_type(statement, index)
        if kind == SQLITE_TEXT:
            # column_text must come before column_bytes
            pointer = self.lib.sqlite3_column_text(statement, index)
            size = self.lib.sqlite3_column_bytes(statement, index)
            if not pointer:
                return Text("")
            return Text(ctypes.string_at(pointer, size).decode("utf-8", errors="replace"))
        if kind == SQLITE_FLOAT:
            return Real(self.lib.sqlite3_column_double(statement, index))
        if kind == SQLITE_INTEGER:
            return Integer(self.lib.sqlite3_column_int64(statement, index))
        if kind == SQLITE_NULL:
            return NULL
        raise ColumnTypeError(index, message=f"unsupported column type {kind}")

    def finalize_statement(self, statement: StatementHandle) -> int:
        if statement == NO_STATEMENT:
            return SQLITE_OK
        return self.lib.sqlite3_finalize(statement)
