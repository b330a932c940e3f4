# events_db.py
# The three statements the sample runs against dbo.Events.
# Each function opens and closes its own cursor; the caller owns the connection.
import logging

from entra_sql.driver_logging import DRIVER_LOGGER, TRACE

logger = logging.getLogger(DRIVER_LOGGER)

ENSURE_TABLE_SQL = (
    "IF OBJECT_ID(N'dbo.Events', N'U') IS NULL BEGIN "
    "CREATE TABLE dbo.Events ("
    "Id INT IDENTITY(1,1) PRIMARY KEY, "
    "Name NVARCHAR(200) NOT NULL, "
    "CreatedAt DATETIME2 NOT NULL DEFAULT SYSUTCDATETIME()"
    ") END"
)
INSERT_EVENT_SQL = "INSERT INTO dbo.Events (Name) VALUES (?)"
COUNT_EVENTS_SQL = "SELECT COUNT(*) FROM dbo.Events"


def ensure_events_table(conn):
    """Create dbo.Events if it does not exist yet. Safe to run every time."""
    cur = conn.cursor()
    try:
        logger.log(TRACE, "execute: %s", ENSURE_TABLE_SQL)
        cur.execute(ENSURE_TABLE_SQL)
    finally:
        cur.close()


def insert_event(conn, name: str) -> int:
    """Insert one row with name bound as the only parameter. Returns the affected row count."""
    cur = conn.cursor()
    try:
        logger.log(TRACE, "execute: %s (1 parameter)", INSERT_EVENT_SQL)
        cur.execute(INSERT_EVENT_SQL, (name,))
        return cur.rowcount
    finally:
        cur.close()


def count_events(conn) -> int:
    cur = conn.cursor()
    try:
        logger.log(TRACE, "execute: %s", COUNT_EVENTS_SQL)
        cur.execute(COUNT_EVENTS_SQL)
        row = cur.fetchone()
        if row is None or len(row) != 1:
            raise RuntimeError(f"unexpected result for row count: {row!r}")
        return int(row[0])
    finally:
        cur.close()


def run_sequence(conn, event_name: str, out=print) -> int:
    """Ensure the table, insert event_name and return the total row count."""
    ensure_events_table(conn)
    rows = insert_event(conn, event_name)
    out(f"Inserted rows: {rows}")
    return count_events(conn)
