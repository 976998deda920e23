"""Typed failures raised by smite.

Every engine failure is surfaced as one of the classes below, carrying the
engine's raw result code where one exists. Callers branch on the class and
its structured fields; the attached message (engine description of the
code, plus the connection's error text when available) is for display only
and takes no part in equality.

Hierarchy:
    SmiteError
    ├── OpenError(code, path)
    ├── PrepareError(code, sql)
    ├── BindError(code, index)
    ├── BindTypeError(index)
    ├── StepError(code)
    ├── ColumnTypeError(index)
    └── ConnectionClosedError(path)
"""

from __future__ import annotations

from typing import Any, ClassVar


class SmiteError(Exception):
    """Base class for all smite failures.

    Subclasses declare their structured fields in ``_fields``. Two errors are
    equal when they have the same class and the same field values.
    """

    _fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, *values: Any, message: str = "") -> None:
        if len(values) != len(self._fields):
            raise TypeError(
                f"{type(self).__name__} expects {len(self._fields)} fields, got {len(values)}"
            )
        for name, value in zip(self._fields, values):
            setattr(self, name, value)
        self.message = message
        super().__init__(*values)

    def _key(self) -> tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self._fields)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self._key()))

    def __repr__(self) -> str:
        pairs = ", ".join(f"{name}={value!r}" for name, value in zip(self._fields, self._key()))
        return f"{type(self).__name__}({pairs})"

    def __str__(self) -> str:
        if self.message:
            return f"{self!r}: {self.message}"
        return repr(self)


class OpenError(SmiteError):
    """The database at ``path`` could not be opened."""

    _fields = ("code", "path")
    code: int
    path: str


class PrepareError(SmiteError):
    """The engine rejected the statement text."""

    _fields = ("code", "sql")
    code: int
    sql: str


class BindError(SmiteError):
    """The engine rejected a well-typed value at parameter ``index`` (1-based)."""

    _fields = ("code", "index")
    code: int
    index: int


class BindTypeError(SmiteError):
    """The argument at parameter ``index`` (1-based) is outside the value domain."""

    _fields = ("index",)
    index: int


class StepError(SmiteError):
    """The engine failed while advancing the statement."""

    _fields = ("code",)
    code: int


class ColumnTypeError(SmiteError):
    """Column ``index`` (0-based) holds an unsupported storage type, e.g. BLOB."""

    _fields = ("index",)
    index: int


class ConnectionClosedError(SmiteError):
    """The connection to ``path`` was used after it was closed."""

    _fields = ("path",)
    path: str
