"""Tests for the database gateway helpers (no PostgreSQL required)."""
import time
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from idm.core import database
from idm.core.database import Database, DeadlineExceeded, QueryContext, Transaction, run_in_transaction
from idm.core.errors import AlreadyExistsError, InternalError


class FakeResult:
    def __init__(self, value=None):
        self.value = value

    def scalar_one(self):
        return self.value


class FakeConnection:
    def __init__(self):
        self.statements = []
        self.committed = False
        self.closed = False

    def execute(self, statement, params=None):
        self.statements.append((str(statement), params))
        return FakeResult(1)

    def commit(self):
        self.committed = True

    def begin(self):
        return FakeTransaction()

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class FakeTransaction:
    def __init__(self, active=True):
        self.is_active = active
        self.commits = 0
        self.rollbacks = 0

    def commit(self):
        self.commits += 1
        self.is_active = False

    def rollback(self):
        self.rollbacks += 1
        self.is_active = False


class FakeEngine:
    def __init__(self):
        self.connections = []
        self.disposed = False

    def connect(self):
        connection = FakeConnection()
        self.connections.append(connection)
        return connection

    def dispose(self):
        self.disposed = True


class TestQueryContext:
    def test_background_has_no_deadline(self):
        ctx = QueryContext.background()
        assert ctx.remaining_ms() is None
        ctx.check()

    def test_with_timeout_sets_remaining_budget(self):
        ctx = QueryContext.with_timeout(30, request_id="req-1")
        assert 29000 < ctx.remaining_ms() <= 30000
        assert ctx.request_id == "req-1"

    def test_expired_context_raises(self):
        ctx = QueryContext(request_id="req-2", deadline=time.monotonic() - 1)
        with pytest.raises(DeadlineExceeded, match="req-2"):
            ctx.check()


class TestEngineUrl:
    @pytest.mark.parametrize(
        "dsn, expected",
        [
            ("postgres://u:p@db:5432/idm", "postgresql+psycopg2://u:p@db:5432/idm"),
            ("postgresql://u:p@db/idm", "postgresql+psycopg2://u:p@db/idm"),
            ("postgresql+psycopg2://u@db/idm", "postgresql+psycopg2://u@db/idm"),
        ],
    )
    def test_urls_normalised(self, dsn, expected):
        assert database.engine_url(dsn) == (expected, {})

    def test_keyword_dsn_passed_to_driver(self):
        url, connect_args = database.engine_url("host=localhost dbname=idm user=idm")
        assert url == "postgresql+psycopg2://"
        assert connect_args == {"dsn": "host=localhost dbname=idm user=idm"}


class TestDatabase:
    def test_connect_maps_pool_settings(self):
        db = Database.connect("postgres://u:p@localhost/idm", max_open_conns=20, max_idle_conns=5, conn_max_lifetime=60)
        try:
            pool = db.engine.pool
            assert pool.size() == 5
            assert pool._max_overflow == 15
            assert pool._recycle == 60
            assert pool._pre_ping is True
        finally:
            db.dispose()

    def test_connection_without_deadline_commits(self):
        engine = FakeEngine()
        with Database(engine).connection(QueryContext.background()) as conn:
            conn.execute("SELECT 1")

        connection = engine.connections[0]
        assert connection.statements == [("SELECT 1", None)]
        assert connection.committed
        assert connection.closed

    def test_connection_applies_statement_timeout(self):
        engine = FakeEngine()
        with Database(engine).connection(QueryContext.with_timeout(5)):
            pass

        statement, params = engine.connections[0].statements[0]
        assert "set_config('statement_timeout'" in statement
        assert params["timeout"].endswith("ms")
        assert 0 < int(params["timeout"][:-2]) <= 5000

    def test_connection_not_committed_on_error(self):
        engine = FakeEngine()
        with pytest.raises(RuntimeError):
            with Database(engine).connection(QueryContext.background()):
                raise RuntimeError("boom")

        assert not engine.connections[0].committed
        assert engine.connections[0].closed

    def test_expired_context_never_borrows_connection(self):
        engine = FakeEngine()
        expired = QueryContext(deadline=time.monotonic() - 1)
        with pytest.raises(DeadlineExceeded):
            with Database(engine).connection(expired):
                pass
        with pytest.raises(DeadlineExceeded):
            Database(engine).begin(expired)
        assert engine.connections == []

    def test_begin_returns_caller_owned_transaction(self):
        engine = FakeEngine()
        tx = Database(engine).begin(QueryContext.background())

        assert isinstance(tx, Transaction)
        assert tx.is_active
        tx.commit()
        tx.close()
        assert engine.connections[0].closed

    def test_ping_runs_select_one(self):
        engine = FakeEngine()
        Database(engine).ping()
        assert engine.connections[0].statements[-1][0] == "SELECT 1"

    def test_dispose_releases_pool(self):
        engine = FakeEngine()
        Database(engine).dispose()
        assert engine.disposed


class TestTransaction:
    def test_rollback_after_commit_is_noop(self):
        inner = FakeTransaction()
        tx = Transaction(FakeConnection(), inner)
        tx.commit()
        tx.rollback()
        assert (inner.commits, inner.rollbacks) == (1, 0)

    def test_rollback_active_transaction(self):
        inner = FakeTransaction()
        Transaction(FakeConnection(), inner).rollback()
        assert inner.rollbacks == 1


def integrity_error(pgcode):
    return IntegrityError("INSERT ...", {}, SimpleNamespace(pgcode=pgcode))


class TestConstraintClassification:
    def test_unique_violation(self):
        exc = integrity_error("23505")
        assert database.is_unique_violation(exc)
        assert not database.is_foreign_key_violation(exc)

    def test_foreign_key_violation(self):
        exc = integrity_error("23503")
        assert database.is_foreign_key_violation(exc)
        assert not database.is_unique_violation(exc)

    def test_error_without_driver_code(self):
        assert database.sqlstate(RuntimeError("x")) is None


class RecordingTx:
    def __init__(self, commit_error=None, rollback_error=None):
        self.commit_error = commit_error
        self.rollback_error = rollback_error
        self.events = []

    def commit(self):
        self.events.append("commit")
        if self.commit_error:
            raise self.commit_error

    def rollback(self):
        self.events.append("rollback")
        if self.rollback_error:
            raise self.rollback_error

    def close(self):
        self.events.append("close")


class TestRunInTransaction:
    def test_commits_and_returns_result(self):
        tx = RecordingTx()

        result = run_in_transaction(lambda: tx, lambda t: 7, "error creating role")

        assert result == 7
        assert tx.events == ["commit", "close"]

    def test_work_error_rolls_back_and_propagates(self):
        tx = RecordingTx()

        def work(t):
            raise AlreadyExistsError("role with name Admin already exists")

        with pytest.raises(AlreadyExistsError):
            run_in_transaction(lambda: tx, work, "error creating role")
        assert tx.events == ["rollback", "close"]

    def test_begin_failure_is_internal(self):
        def begin():
            raise OperationalError("connect", {}, Exception("refused"))

        with pytest.raises(InternalError, match="error creating role: error creating transaction"):
            run_in_transaction(begin, lambda t: 1, "error creating role")

    def test_deadline_at_begin_is_internal(self):
        def begin():
            raise DeadlineExceeded("request deadline exceeded")

        with pytest.raises(InternalError) as exc:
            run_in_transaction(begin, lambda t: 1, "error creating employee")
        assert isinstance(exc.value.__cause__, DeadlineExceeded)

    def test_commit_failure_rolls_back(self):
        tx = RecordingTx(commit_error=SQLAlchemyError("commit lost"))

        with pytest.raises(InternalError, match="commit failed"):
            run_in_transaction(lambda: tx, lambda t: 1, "error creating employee")
        assert tx.events == ["commit", "rollback", "close"]

    def test_rollback_failure_keeps_original_error(self, caplog):
        tx = RecordingTx(rollback_error=SQLAlchemyError("connection gone"))

        def work(t):
            raise AlreadyExistsError("duplicate")

        with pytest.raises(AlreadyExistsError):
            run_in_transaction(lambda: tx, work, "error creating employee")
        assert "Failed to rollback transaction" in caplog.text
        assert tx.events[-1] == "close"


def test_services_share_the_store_error_classes():
    from idm.core.employees import service as employee_service
    from idm.core.roles import service as role_service

    assert employee_service.STORE_ERRORS is database.STORE_ERRORS
    assert role_service.STORE_ERRORS is database.STORE_ERRORS
    assert not hasattr(role_service, "EmployeeService")
