"""Pytest configuration and fixtures for smite tests."""

from __future__ import annotations

import tempfile
import threading
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from smite import Connection
from smite.domain.errors import BindError, ColumnTypeError, OpenError, PrepareError, StepError
from smite.domain.values import Value
from smite.infrastructure.config import EngineConfig, ObservabilityConfig, SmiteConfig
from smite.infrastructure.metrics import MetricsRegistry
from smite.ports.outbound.engine import (
    NO_STATEMENT,
    RESULT_OK,
    ConnectionHandle,
    StatementHandle,
    StepResult,
)


class FakeEngine:
    """Scripted Engine double.

    Every statement yields ``rows`` (lists of Values, or bytes to simulate a
    BLOB column) under ``columns``. Failures are injected through the
    constructor. Each call is recorded with the id of the thread it ran on.
    """

    def __init__(
        self,
        columns: list[str] | None = None,
        rows: list[list[Value | bytes]] | None = None,
        open_code: int | None = None,
        prepare_code: int | None = None,
        bind_code_at: int | None = None,
        step_code_after: int | None = None,
        tail: str = "",
    ) -> None:
        self.columns = columns or []
        self.rows = rows or []
        self.open_code = open_code
        self.prepare_code = prepare_code
        self.bind_code_at = bind_code_at
        self.step_code_after = step_code_after
        self.tail = tail

        self.calls: list[tuple] = []
        self.threads: list[tuple[str, int]] = []
        self.bound: list[tuple[int, Value]] = []
        self.open_handles: set[int] = set()
        self.live_statements: set[int] = set()
        self._next_handle = 100
        self._cursor: dict[int, int] = {}
        self._lock = threading.Lock()

    def _record(self, name: str, *args: object) -> None:
        with self._lock:
            self.calls.append((name, *args))
            self.threads.append((name, threading.get_ident()))

    def _handle(self) -> int:
        with self._lock:
            self._next_handle += 1
            return self._next_handle

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def library_version(self) -> str:
        return "fake-3.0"

    def open_connection(self, path: str) -> ConnectionHandle:
        self._record("open", path)
        if self.open_code is not None:
            raise OpenError(self.open_code, path)
        handle = self._handle()
        self.open_handles.add(handle)
        return ConnectionHandle(handle)

    def set_busy_timeout(self, db: ConnectionHandle, timeout_ms: int) -> None:
        self._record("busy_timeout", timeout_ms)

    def close_connection(self, db: ConnectionHandle) -> int:
        self._record("close", db)
        self.open_handles.discard(db)
        return RESULT_OK

    def prepare_statement(self, db: ConnectionHandle, sql: str) -> tuple[StatementHandle, str]:
        self._record("prepare", sql)
        if self.prepare_code is not None:
            raise PrepareError(self.prepare_code, sql)
        handle = self._handle()
        self.live_statements.add(handle)
        self._cursor[handle] = -1
        return StatementHandle(handle), self.tail

    def bind_parameter(
        self, db: ConnectionHandle, statement: StatementHandle, value: Value, index: int
    ) -> None:
        self._record("bind", index)
        if self.bind_code_at == index:
            raise BindError(25, index)
        self.bound.append((index, value))

    def step(self, db: ConnectionHandle, statement: StatementHandle) -> StepResult:
        self._record("step")
        position = self._cursor[statement] + 1
        if self.step_code_after is not None and position >= self.step_code_after:
            raise StepError(19)
        if position >= len(self.rows):
            return StepResult.DONE
        self._cursor[statement] = position
        return StepResult.ROW

    def column_count(self, statement: StatementHandle) -> int:
        return len(self.columns)

    def column_name(self, statement: StatementHandle, index: int) -> str:
        return self.columns[index]

    def read_column(self, statement: StatementHandle, index: int) -> Value:
        self._record("read", index)
        value = self.rows[self._cursor[statement]][index]
        if isinstance(value, bytes):
            raise ColumnTypeError(index)
        return value

    def finalize_statement(self, statement: StatementHandle) -> int:
        self._record("finalize", statement)
        if statement != NO_STATEMENT:
            self.live_statements.discard(statement)
        return RESULT_OK


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def test_config() -> SmiteConfig:
    """Provide a configuration that does not depend on the environment."""
    return SmiteConfig(
        engine=EngineConfig(),
        observability=ObservabilityConfig(metrics_enabled=False),
    )


@pytest.fixture
def fake_engine() -> FakeEngine:
    """Provide a scripted engine with no rows."""
    return FakeEngine()


@pytest.fixture
def make_engine() -> type[FakeEngine]:
    """Provide the scripted engine class for tests that need custom scripts."""
    return FakeEngine


@pytest.fixture
def memory_db(test_config: SmiteConfig) -> Generator[Connection, None, None]:
    """Provide an open in-memory database backed by the real engine."""
    with Connection(":memory:", config=test_config) as db:
        yield db


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
