"""Outbound ports - interfaces for external dependencies.

The only external dependency is the embedded SQL engine itself.
"""

from smite.ports.outbound.engine import (
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
