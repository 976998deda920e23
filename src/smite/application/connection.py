"""Connection - the public entry point of smite.

A Connection owns one native database handle and the serial execution
context that is the only place the handle is ever used. It can be shared
freely between threads: statements submitted from several threads run one
after another in submission order and never interleave inside the engine.

Usage:
    import smite

    with smite.open(":memory:") as db:
        db.execute("CREATE TABLE users (id INTEGER, name TEXT)")
        db.execute("INSERT INTO users VALUES (?, ?)", [1, "Alice"])
        rows = db.execute("SELECT * FROM users")  # [{"id": 1, "name": "Alice"}]

Disposal:
    Leaving the ``with`` block (or calling close()) closes the handle after
    all previously submitted statements have finished. As a safety net the
    same close runs when the Connection is garbage collected or at
    interpreter exit, whichever happens first; it never runs twice.
"""

from __future__ import annotations

import os
import time
import weakref
from typing import TYPE_CHECKING, Sequence

from smite.adapters.outbound.sqlite_engine import SQLiteEngine
from smite.application.serial_context import SerialContext
from smite.application.statement import run_statement
from smite.domain.errors import OpenError, SmiteError
from smite.domain.values import ResultSet
from smite.infrastructure.config import SmiteConfig, get_config
from smite.infrastructure.logging import get_logger
from smite.infrastructure.metrics import MetricsRegistry, get_metrics
from smite.infrastructure.tracing import trace_span
from smite.ports.outbound.engine import RESULT_OK, Engine

if TYPE_CHECKING:
    from types import TracebackType

logger = get_logger(__name__)


def _dispose(context: SerialContext, path: str, metrics: MetricsRegistry | None) -> None:
    """Close a connection's context. Registered with weakref.finalize."""
    code = context.close()
    if code is None:
        return
    if metrics is not None:
        metrics.connections_open.dec()
    if code != RESULT_OK:
        logger.warning("close_failed", path=path, code=code)
    else:
        logger.debug("connection_closed", path=path)


class Connection:
    """Thread-safe connection to one SQLite database.

    Attributes:
        path: The path the connection was opened with.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        engine: Engine | None = None,
        config: SmiteConfig | None = None,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """Open the database at path, creating it if it does not exist.

        Args:
            path: Filesystem path, or ":memory:" for a private in-memory
                database.
            engine: Engine adapter to use (defaults to the system SQLite).
            config: Configuration (defaults to the environment-driven one).
            metrics: Metrics registry. Defaults to the global registry when
                metrics are enabled in config, otherwise none.

        Raises:
            OpenError: If the engine could not open the database.
            EngineLoadError: If no SQLite library could be loaded.
        """
        config = config or get_config()
        self._path = os.fspath(path)
        if engine is None:
            engine = SQLiteEngine(library_path=config.engine.library_path)
        self._engine = engine
        if metrics is None and config.observability.metrics_enabled:
            metrics = get_metrics()
        self._metrics = metrics
        self._log = logger.bind(path=self._path)

        # Calls made before the serial context exists; nothing else can see
        # the handle yet.
        try:
            db = engine.open_connection(self._path)
        except OpenError as e:
            self._log.warning("connection_open_failed", code=e.code, error=e.message)
            raise
        if config.engine.busy_timeout_ms:
            engine.set_busy_timeout(db, config.engine.busy_timeout_ms)
        library_version = engine.library_version()

        self._context = SerialContext(engine, db, self._path)
        self._finalizer = weakref.finalize(self, _dispose, self._context, self._path, metrics)

        if metrics is not None:
            metrics.connections_open.inc()
            metrics.info.info({"library_version": library_version})
        self._log.debug("connection_opened", library_version=library_version)

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._context.closed

    def execute(self, sql: str, arguments: Sequence[object] = ()) -> ResultSet:
        """Run one SQL statement and return all of its rows.

        Only the first statement in sql runs; any text after it is ignored
        (and logged as a warning). Use one call per statement, including for
        BEGIN/COMMIT.

        Args:
            sql: The statement text. Use ``?`` or ``?NNN`` placeholders.
            arguments: Positional parameter values. Accepted kinds: str,
                float (and other non-integral reals), int (and other
                integrals, within 64 bits), bool or a numpy boolean scalar
                (bound as 0/1), None, or the Text/Real/Integer/Null value
                types, whose payloads are checked the same way.

        Returns:
            List of rows, each a dict of column name to str, float, int or
            None, in the order the engine produced them.

        Raises:
            PrepareError: If the engine rejected the statement.
            BindTypeError: If an argument is outside the value domain.
            BindError: If the engine rejected an argument.
            StepError: If execution failed; no partial rows are returned.
            ColumnTypeError: If a column holds an unsupported type (BLOB).
            ConnectionClosedError: If the connection was closed.
        """
        snapshot = tuple(arguments)
        start = time.perf_counter()
        with trace_span("smite.execute", {"db.system": "sqlite", "db.name": self._path}):
            try:
                rows = self._context.call(run_statement, sql, snapshot)
            except SmiteError as e:
                self._record(type(e).__name__, start)
                self._log.debug("statement_failed", sql=sql, error=repr(e), detail=e.message)
                raise
        self._record("ok", start, len(rows))
        return rows

    def close(self) -> None:
        """Close the connection after all pending statements have run.

        Safe to call more than once and from any thread other than the
        connection's own worker.
        """
        self._finalizer()

    def _record(self, status: str, start: float, row_count: int = 0) -> None:
        if self._metrics is None:
            return
        self._metrics.statements_total.labels(status=status).inc()
        self._metrics.statement_latency_seconds.observe(time.perf_counter() - start)
        if row_count:
            self._metrics.rows_returned_total.inc(row_count)

    def __enter__(self) -> Connection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"Connection({self._path!r}, {state})"


def open(
    path: str | os.PathLike[str],
    *,
    engine: Engine | None = None,
    config: SmiteConfig | None = None,
    metrics: MetricsRegistry | None = None,
) -> Connection:
    """Open a Connection to the database at path. See Connection."""
    return Connection(path, engine=engine, config=config, metrics=metrics)
