"""Serial execution context confining a native handle to one thread.

A SerialContext owns one connection handle and a single-worker
ThreadPoolExecutor. Every engine call for that handle is submitted to the
worker, so calls run one at a time in FIFO submission order no matter how
many threads share the connection. The handle never leaves this object.

Closing is scheduled onto the same queue, so it runs only after every
previously submitted call has finished. A small lock covers submission and
the closed flag so nothing can be queued behind the close.

Thread Safety:
    call() may be used from any thread except the worker itself (it would
    wait on its own queue). close() may be used from any thread; on the
    worker, which is where a garbage-collected connection can be
    finalized, it closes the handle inline.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

from smite.domain.errors import ConnectionClosedError
from smite.ports.outbound.engine import ConnectionHandle, Engine

T = TypeVar("T")


def _mark_worker(local: threading.local) -> None:
    local.is_worker = True


class SerialContext:
    """Actor-style owner of one native connection handle."""

    def __init__(self, engine: Engine, db: ConnectionHandle, path: str) -> None:
        """Start the worker for an already opened handle.

        Args:
            engine: The engine adapter the handle belongs to.
            db: The open handle; ownership passes to this context.
            path: Database path, used to label the worker thread.
        """
        self._engine = engine
        self._db = db
        self._path = path
        self._lock = threading.Lock()
        self._closed = False
        self._local = threading.local()
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=f"sqlite://{path}",
            initializer=_mark_worker,
            initargs=(self._local,),
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def call(self, fn: Callable[..., T], *args: Any) -> T:
        """Run ``fn(engine, db, *args)`` on the worker and wait for it.

        Exceptions raised by fn propagate to the caller unchanged.

        Raises:
            ConnectionClosedError: If the context is closed.
        """
        with self._lock:
            if self._closed:
                raise ConnectionClosedError(self._path, message="connection is closed")
            try:
                future = self._executor.submit(fn, self._engine, self._db, *args)
            except RuntimeError as e:
                # the interpreter is shutting down and has stopped the worker
                raise ConnectionClosedError(self._path, message=str(e)) from e
        return future.result()

    def close(self) -> int | None:
        """Close the handle on the worker, then stop the worker.

        Idempotent: only the first call does anything.

        Returns:
            The engine's close result code, or None if already closed.
        """
        with self._lock:
            if self._closed:
                return None
            self._closed = True
            if getattr(self._local, "is_worker", False):
                # nothing else can be queued, and the running call is this one
                self._executor.shutdown(wait=False)
                return self._engine.close_connection(self._db)
            try:
                future = self._executor.submit(self._engine.close_connection, self._db)
            except RuntimeError:
                # interpreter shutdown already joined the worker, so no other
                # thread can be using the handle
                return self._engine.close_connection(self._db)
        try:
            return future.result()
        finally:
            self._executor.shutdown(wait=True)
