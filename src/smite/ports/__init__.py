"""Ports layer - interface definitions following Hexagonal Architecture.

Outbound ports describe what smite needs from the outside world (the
native engine). Adapters implement them.
"""

from smite.ports.outbound import (
    NO_STATEMENT,
    RESULT_OK,
    ConnectionHandle,
    Engine,
    StatementHandle,
    StepResult,
)

__all__ = [
    "Engine",
    "ConnectionHandle",
    "StatementHandle",
    "StepResult",
    "NO_STATEMENT",
    "RESULT_OK",
]
