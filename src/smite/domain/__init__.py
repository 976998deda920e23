"""Domain layer: the value domain and the error taxonomy.

Exports:
    Values:
        - Text, Real, Integer, Null, NULL: the closed tagged union
        - Value, SQLValue, Row, ResultSet: type aliases
        - to_value, to_python: conversions at the API boundary

    Errors:
        - SmiteError and its subclasses
"""

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
from smite.domain.values import (
    NULL,
    Integer,
    Null,
    Real,
    ResultSet,
    Row,
    SQLValue,
    Text,
    Value,
    to_python,
    to_value,
)

__all__ = [
    # Values
    "Text",
    "Real",
    "Integer",
    "Null",
    "NULL",
    "Value",
    "SQLValue",
    "Row",
    "ResultSet",
    "to_value",
    "to_python",
    # Errors
    "SmiteError",
    "OpenError",
    "PrepareError",
    "BindError",
    "BindTypeError",
    "StepError",
    "ColumnTypeError",
    "ConnectionClosedError",
]
