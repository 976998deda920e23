"""Application layer for smite.

Exports:
    Connection:
        - Connection: Thread-safe connection wrapper
        - open: Convenience constructor
    Execution:
        - SerialContext: Single-worker owner of a native handle
        - run_statement: prepare -> bind -> step loop -> finalize
"""

from smite.application.connection import Connection, open
from smite.application.serial_context import SerialContext
from smite.application.statement import run_statement

__all__ = [
    "Connection",
    "open",
    "SerialContext",
    "run_statement",
]
