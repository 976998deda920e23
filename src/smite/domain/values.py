"""Value domain shared by bound parameters and produced columns.

The engine understands exactly four storage kinds here: TEXT, REAL,
INTEGER and NULL. They are modelled as a closed tagged union of frozen
value objects so that conversion code can dispatch exhaustively instead of
guessing at arbitrary host objects.

Conversions:
    - to_value(): host object -> Value (parameter binding direction)
    - to_python(): Value -> plain Python object (result row direction)

Booleans (including numpy boolean scalars) are accepted on the way in as
Integer(0/1); there is no boolean tag, so they come back out as ints.

Value objects passed in directly are re-checked before binding, since a
Text or Real can be constructed around any payload.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Union

from smite.domain.errors import BindTypeError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass(frozen=True, slots=True)
class Text:
    """A TEXT value, bound and read as UTF-8."""

    value: str


@dataclass(frozen=True, slots=True)
class Real:
    """A REAL value (IEEE 754 double)."""

    value: float


@dataclass(frozen=True, slots=True)
class Integer:
    """An INTEGER value (signed 64-bit)."""

    value: int

    def __post_init__(self) -> None:
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise ValueError(f"Integer out of 64-bit range: {self.value}")


@dataclass(frozen=True, slots=True)
class Null:
    """The SQL NULL marker."""

    def __repr__(self) -> str:
        return "NULL"


NULL = Null()

Value = Union[Text, Real, Integer, Null]
"""Closed union of everything the engine adapter binds or produces."""

SQLValue = Union[str, float, int, None]
"""Plain Python counterpart of Value, as found in result rows."""

Row = dict[str, SQLValue]
"""One result row: column name -> value, in column declaration order."""

ResultSet = list[Row]
"""Fully materialized rows of one statement, in engine order."""

_VALUE_TYPES = (Text, Real, Integer, Null)


def _encodes(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _is_boolean(obj: object) -> bool:
    if isinstance(obj, bool):
        return True
    # numpy.bool_ is not registered with the numbers ABCs
    dtype = getattr(obj, "dtype", None)
    return getattr(dtype, "kind", None) == "b" and getattr(obj, "shape", None) == ()


def _checked(value: Value, index: int) -> Value:
    """Return value if its payload is inside the value domain."""
    payload = getattr(value, "value", None)
    if isinstance(value, Text):
        if isinstance(payload, str) and _encodes(payload):
            return value
    elif isinstance(value, Real):
        if isinstance(payload, numbers.Real) and not isinstance(payload, bool):
            return value if type(payload) is float else Real(float(payload))
    elif isinstance(value, Integer):
        if isinstance(payload, numbers.Integral):
            return value if type(payload) is int else Integer(int(payload))
    else:
        return value
    raise BindTypeError(index)


def to_value(obj: object, index: int) -> Value:
    """Convert a host object into a Value for binding at ``index``.

    Args:
        obj: The argument as supplied by the caller.
        index: 1-based parameter position, reported on rejection.

    Returns:
        The tagged value to bind.

    Raises:
        BindTypeError: If obj is outside the supported value domain.
    """
    if isinstance(obj, _VALUE_TYPES):
        return _checked(obj, index)
    if obj is None:
        return NULL
    # bool is Integral too, but handled first so the coercion is explicit
    if _is_boolean(obj):
        return Integer(1 if obj else 0)
    if isinstance(obj, str):
        if not _encodes(obj):
            raise BindTypeError(index)
        return Text(obj)
    if isinstance(obj, numbers.Integral):
        number = int(obj)
        if not INT64_MIN <= number <= INT64_MAX:
            raise BindTypeError(index)
        return Integer(number)
    if isinstance(obj, numbers.Real):
        return Real(float(obj))
    raise BindTypeError(index)


def to_python(value: Value) -> SQLValue:
    """Unwrap a Value into the plain Python object placed in result rows."""
    if isinstance(value, Null):
        return None
    if isinstance(value, (Text, Real, Integer)):
        return value.value
    raise TypeError(f"Not a smite value: {value!r}")
