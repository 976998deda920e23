"""End-to-end tests for Connection against the real SQLite library."""

from __future__ import annotations

import subprocess
import sys
import threading

import pytest

import smite
from smite import (
    BindTypeError,
    ColumnTypeError,
    Connection,
    ConnectionClosedError,
    Integer,
    OpenError,
    PrepareError,
    Real,
    StepError,
    Text,
)


@pytest.mark.integration
class TestExecute:
    """Statement results."""

    def test_create_insert_select(self, memory_db) -> None:
        assert memory_db.execute("create table users (id integer, name text)") == []
        assert memory_db.execute("insert into users values (?, ?)", [1, "Alice"]) == []
        assert memory_db.execute("select * from users") == [{"id": 1, "name": "Alice"}]

    def test_round_trip_each_kind(self, memory_db) -> None:
        memory_db.execute("create table t (a, b, c, d, e)")
        memory_db.execute("insert into t values (?, ?, ?, ?, ?)", ["text", 2.5, 42, None, True])
        rows = memory_db.execute("select a, b, c, d, e from t")
        assert rows == [{"a": "text", "b": 2.5, "c": 42, "d": None, "e": 1}]
        assert type(rows[0]["e"]) is int

    def test_value_objects_as_arguments(self, memory_db) -> None:
        assert memory_db.execute("select ? as x, ? as y", [Text("a"), Integer(3)]) == [
            {"x": "a", "y": 3}
        ]

    def test_unicode_and_nul_round_trip(self, memory_db) -> None:
        value = "naïve 日本 \x00 end"
        assert memory_db.execute("select ? as v", [value]) == [{"v": value}]

    def test_int64_extremes(self, memory_db) -> None:
        rows = memory_db.execute("select ? as lo, ? as hi", [-(2**63), 2**63 - 1])
        assert rows == [{"lo": -(2**63), "hi": 2**63 - 1}]

    def test_union_order_and_engine_column_name(self, memory_db) -> None:
        assert memory_db.execute("select 1 union select 2") == [{"1": 1}, {"1": 2}]

    def test_duplicate_column_names_last_wins(self, memory_db) -> None:
        assert memory_db.execute("select 1 as v, 'x' as v") == [{"v": "x"}]

    def test_column_order_preserved(self, memory_db) -> None:
        row = memory_db.execute("select 3 as c, 1 as a, 2 as b")[0]
        assert list(row) == ["c", "a", "b"]

    def test_only_first_statement_runs(self, memory_db) -> None:
        memory_db.execute("create table t (x)")
        memory_db.execute("insert into t values (1); insert into t values (2)")
        assert memory_db.execute("select x from t") == [{"x": 1}]

    def test_explicit_transaction(self, memory_db) -> None:
        memory_db.execute("create table t (x)")
        memory_db.execute("begin")
        memory_db.execute("insert into t values (1)")
        memory_db.execute("rollback")
        assert memory_db.execute("select count(*) as n from t") == [{"n": 0}]


@pytest.mark.integration
class TestFailures:
    """Typed errors and atomic results."""

    def test_prepare_error(self, memory_db) -> None:
        with pytest.raises(PrepareError) as exc_info:
            memory_db.execute("selec 1")
        assert exc_info.value == PrepareError(1, "selec 1")

    def test_prepare_error_takes_precedence(self, memory_db) -> None:
        with pytest.raises(PrepareError):
            memory_db.execute("selec ?", [object()])

    def test_bad_argument_inserts_nothing(self, memory_db) -> None:
        memory_db.execute("create table t (a, b, c)")
        with pytest.raises(BindTypeError) as exc_info:
            memory_db.execute("insert into t values (?, ?, ?)", [1, [2], 3])
        assert exc_info.value == BindTypeError(2)
        assert memory_db.execute("select * from t") == []

    @pytest.mark.parametrize("value", [Text("\ud800"), Real("abc")])
    def test_malformed_value_object_rejected(self, memory_db, value) -> None:
        with pytest.raises(BindTypeError) as exc_info:
            memory_db.execute("select ? as v", [value])
        assert exc_info.value == BindTypeError(1)
        assert memory_db.execute("select 1 as x") == [{"x": 1}]

    def test_integer_overflow_rejected(self, memory_db) -> None:
        with pytest.raises(BindTypeError) as exc_info:
            memory_db.execute("select ?", [2**63])
        assert exc_info.value == BindTypeError(1)

    def test_unique_violation(self, memory_db) -> None:
        memory_db.execute("create table t (id integer unique)")
        memory_db.execute("insert into t values (1)")
        with pytest.raises(StepError) as exc_info:
            memory_db.execute("insert into t values (1)")
        assert exc_info.value == StepError(19)
        assert memory_db.execute("select id from t") == [{"id": 1}]

    def test_step_error_returns_no_partial_rows(self, memory_db) -> None:
        memory_db.execute("create table t (id integer)")
        for n in range(3):
            memory_db.execute("insert into t values (?)", [n])
        # abs() of the minimum integer overflows on the last row
        memory_db.execute("insert into t values (?)", [-(2**63)])
        with pytest.raises(StepError):
            memory_db.execute("select abs(id) as a from t order by rowid")

    def test_blob_column(self, memory_db) -> None:
        with pytest.raises(ColumnTypeError) as exc_info:
            memory_db.execute("select 1 as a, x'00ff' as b")
        assert exc_info.value == ColumnTypeError(1)

    def test_connection_usable_after_errors(self, memory_db) -> None:
        with pytest.raises(PrepareError):
            memory_db.execute("selec 1")
        with pytest.raises(ColumnTypeError):
            memory_db.execute("select x'00'")
        assert memory_db.execute("select 1 as x") == [{"x": 1}]


@pytest.mark.integration
class TestConnectionLifecycle:
    """Opening, isolation, persistence and closing."""

    def test_open_missing_directory(self, temp_dir, test_config) -> None:
        path = str(temp_dir / "missing" / "x.db")
        with pytest.raises(OpenError) as exc_info:
            smite.open(path, config=test_config)
        assert exc_info.value.code == 14
        assert exc_info.value.path == path

    def test_memory_databases_are_isolated(self, test_config) -> None:
        with smite.open(":memory:", config=test_config) as a, smite.open(
            ":memory:", config=test_config
        ) as b:
            a.execute("create table t (x)")
            a.execute("insert into t values (1)")
            with pytest.raises(PrepareError):
                b.execute("select x from t")

    def test_file_database_persists(self, temp_dir, test_config) -> None:
        path = temp_dir / "data.db"
        with smite.open(path, config=test_config) as db:
            db.execute("create table t (x text)")
            db.execute("insert into t values (?)", ["kept"])
        assert path.exists()
        with smite.open(path, config=test_config) as db:
            assert db.execute("select x from t") == [{"x": "kept"}]

    def test_execute_after_close(self, test_config) -> None:
        db = Connection(":memory:", config=test_config)
        db.close()
        db.close()
        with pytest.raises(ConnectionClosedError):
            db.execute("select 1")
        names = [thread.name for thread in threading.enumerate()]
        assert not any(name.startswith("sqlite://:memory:") for name in names)

    def test_close_after_threaded_statements(self, test_config) -> None:
        db = Connection(":memory:", config=test_config)
        db.execute("create table t (x)")
        results: list[object] = []

        def insert() -> None:
            try:
                db.execute("insert into t values (1)")
                results.append("ok")
            except ConnectionClosedError:
                results.append("closed")

        threads = [threading.Thread(target=insert) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        db.close()
        assert results.count("ok") == 10

    def test_unclosed_connection_disposed_at_exit(self) -> None:
        script = (
            "import smite\n"
            "from smite.infrastructure import setup_logging\n"
            "setup_logging(level='DEBUG', log_format='json')\n"
            "db = smite.open(':memory:')\n"
            "db.execute('create table t (x)')\n"
            "db.execute('insert into t values (?)', [1])\n"
        )
        result = subprocess.run(
            [sys.executable, "-c", script],
            capture_output=True,
            text=True,
            timeout=60,
        )
        assert result.returncode == 0, result.stderr
        assert '"connection_closed"' in result.stderr
        assert '"close_failed"' not in result.stderr
        assert "Traceback" not in result.stderr


@pytest.mark.integration
class TestConcurrency:
    """Many threads sharing one connection."""

    def test_concurrent_readers_see_whole_table(self, memory_db) -> None:
        memory_db.execute("create table t (n integer)")
        memory_db.execute("begin")
        for n in range(200):
            memory_db.execute("insert into t values (?)", [n])
        memory_db.execute("commit")

        expected = [{"n": n} for n in range(200)]
        results: list[list[dict]] = []
        lock = threading.Lock()

        def read() -> None:
            for _ in range(5):
                rows = memory_db.execute("select n from t order by n")
                with lock:
                    results.append(rows)

        threads = [threading.Thread(target=read) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 40
        assert all(rows == expected for rows in results)

    def test_concurrent_writers(self, memory_db) -> None:
        memory_db.execute("create table t (n integer)")

        def write(base: int) -> None:
            for i in range(25):
                memory_db.execute("insert into t values (?)", [base + i])

        threads = [threading.Thread(target=write, args=(k * 100,)) for k in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        rows = memory_db.execute("select count(*) as c from t")
        assert rows == [{"c": 100}]
