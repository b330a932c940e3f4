"""Shared pytest fixtures: an in-memory stand-in for a pyodbc connection to dbo.Events."""
import logging

import pytest

from entra_sql import sql_conn
from entra_sql.driver_logging import DRIVER_LOGGER

REQUIRED_ENV = {
    "AZURE_SQL_SERVER": "sample-server.database.windows.net",
    "AZURE_SQL_DATABASE": "sampledb",
    "AZURE_SQL_USER": "alice@contoso.onmicrosoft.com",
    "AZURE_SQL_PASSWORD": "s3cret;pass}word",
}
OPTIONAL_ENV = (
    "EVENT_NAME",
    "JDBC_TRACE",
    "JDBC_TRACE_LEVEL",
    "JDBC_TRACE_CONFIG",
    "JDBC_TRACE_FILE",
    "DB_ODBC_DRIVER",
)


class FakeDatabase:
    """Holds dbo.Events across connections, like a real server would."""

    def __init__(self):
        self.table_exists = False
        self.create_count = 0
        self.rows = []
        self.executed = []
        self.fail_on = None


class FakeCursor:
    def __init__(self, db):
        self.db = db
        self.rowcount = -1
        self.closed = False
        self._result = []

    def execute(self, sql, params=None):
        self.db.executed.append((sql, params))
        if self.db.fail_on and self.db.fail_on in sql:
            raise FakeDbError("42000", f"[42000] simulated failure in: {sql}")
        if sql.startswith("IF OBJECT_ID"):
            if not self.db.table_exists:
                self.db.table_exists = True
                self.db.create_count += 1
            self.rowcount = -1
        elif sql.startswith("INSERT INTO dbo.Events"):
            if not self.db.table_exists:
                raise FakeDbError("42S02", "Invalid object name 'dbo.Events'.")
            self.db.rows.append(params[0])
            self.rowcount = 1
        elif sql.startswith("SELECT COUNT(*) FROM dbo.Events"):
            self._result = [(len(self.db.rows),)]
        else:
            raise FakeDbError("42000", f"unsupported statement: {sql}")
        return self

    def fetchone(self):
        return self._result.pop(0) if self._result else None

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, db):
        self.db = db
        self.closed = False
        self.cursors = []

    def cursor(self):
        cur = FakeCursor(self.db)
        self.cursors.append(cur)
        return cur

    def close(self):
        self.closed = True


class FakeDbError(Exception):
    pass


class FakePyodbc:
    Error = FakeDbError

    def __init__(self, db, drivers=None, connect_error=None):
        self.db = db
        self._drivers = drivers if drivers is not None else ["ODBC Driver 18 for SQL Server"]
        self.connect_error = connect_error
        self.calls = []
        self.connections = []

    def drivers(self):
        return list(self._drivers)

    def connect(self, conn_str, **kwargs):
        self.calls.append((conn_str, kwargs))
        if self.connect_error is not None:
            raise self.connect_error
        conn = FakeConnection(self.db)
        self.connections.append(conn)
        return conn


@pytest.fixture(name="fake_db")
def fake_db_fixture():
    return FakeDatabase()


@pytest.fixture(name="fake_pyodbc")
def fake_pyodbc_fixture(monkeypatch, fake_db):
    fake = FakePyodbc(fake_db)
    monkeypatch.setattr(sql_conn, "pyodbc", fake)
    monkeypatch.setattr(sql_conn, "HAS_PYODBC", True)
    return fake


@pytest.fixture(name="azure_env")
def azure_env_fixture(monkeypatch):
    for key in OPTIONAL_ENV:
        monkeypatch.delenv(key, raising=False)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


@pytest.fixture(autouse=True)
def restore_driver_logger():
    """Undo level/handler/propagation changes made to the driver and root loggers."""
    loggers = [logging.getLogger(DRIVER_LOGGER), logging.getLogger()]
    saved = [(log, log.level, list(log.handlers), log.propagate, log.disabled) for log in loggers]
    yield
    for log, level, handlers, propagate, disabled in saved:
        log.setLevel(level)
        log.handlers[:] = handlers
        log.propagate = propagate
        log.disabled = disabled
