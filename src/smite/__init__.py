"""
Smite - thread-safe embedding layer for SQLite.

Opens a SQLite database, runs every statement for a connection on a single
worker thread, converts between Python values and SQLite column types, and
raises typed errors carrying SQLite's result codes.

    >>> import smite
    >>> with smite.open(":memory:") as db:
    ...     db.execute("select 1 as one, 'a' as letter")
    [{'one': 1, 'letter': 'a'}]
"""

__version__ = "0.1.0"

from smite.adapters.outbound.native import EngineLoadError
from smite.application.connection import Connection, open
from smite.domain.errors import (
    BindError,
    BindTypeError,
    ColumnTypeError,
    ConnectionClosedError,
    OpenError,
    PrepareError,
    SmiteError,
    StepError,
)
from smite.domain.values import NULL, Integer, Null, Real, Text, Value

__all__ = [
    "__version__",
    "open",
    "Connection",
    "Text",
    "Real",
    "Integer",
    "Null",
    "NULL",
    "Value",
    "SmiteError",
    "OpenError",
    "PrepareError",
    "BindError",
    "BindTypeError",
    "StepError",
    "ColumnTypeError",
    "ConnectionClosedError",
    "EngineLoadError",
]
