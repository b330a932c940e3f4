#!/usr/bin/env python3
"""
entra_password_sample.py

Connects to Azure SQL with Microsoft Entra password authentication
(Authentication=ActiveDirectoryPassword), then:
  - creates dbo.Events if it is missing
  - inserts one row named EVENT_NAME
  - prints the row count

Required env vars: AZURE_SQL_SERVER, AZURE_SQL_DATABASE, AZURE_SQL_USER, AZURE_SQL_PASSWORD
Optional: EVENT_NAME, JDBC_TRACE, JDBC_TRACE_LEVEL, JDBC_TRACE_CONFIG, JDBC_TRACE_FILE, DB_ODBC_DRIVER

Exit codes: 0 ok, 1 database error, 2 missing configuration.

Usage:
  python entra_password_sample.py
  python entra_password_sample.py --list-drivers
  python entra_password_sample.py --show-conn-str
"""
import argparse
import logging
import sys
import traceback

from entra_sql import events_db, sql_conn
from entra_sql.driver_logging import DriverLogging
from entra_sql.sql_config import load_settings

EXIT_OK = 0
EXIT_DB_ERROR = 1

logger = logging.getLogger(__name__)


def report_error(exc: BaseException) -> None:
    """Print the error and a traceback for it and every chained cause."""
    print(f"SQL error: {exc}", file=sys.stderr)
    seen = set()
    current = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        traceback.print_exception(type(current), current, current.__traceback__, chain=False)
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None


def run(settings) -> int:
    attrs_before = None
    if settings.trace_enabled:
        driver_logging = DriverLogging.from_settings(settings)
        print(f"Driver tracing enabled (level={driver_logging.level_name})")
        driver_logging.configure()
        attrs_before = driver_logging.connect_attrs()

    print("Connecting to Azure SQL with Entra Password auth...")
    conn = None
    try:
        conn = sql_conn.connect(settings, attrs_before=attrs_before)
        print("Connected.")
        count = events_db.run_sequence(conn, settings.event_name)
        print(f"Rows in dbo.Events: {count}")
        return EXIT_OK
    except Exception as e:
        report_error(e)
        return EXIT_DB_ERROR
    finally:
        if conn is not None:
            try:
                conn.close()
            except Exception as e:
                logger.warning("Closing the connection failed: %s", e)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Azure SQL Entra password authentication sample.")
    parser.add_argument("--list-drivers", action="store_true", help="Print installed ODBC drivers and exit.")
    parser.add_argument("--show-conn-str", action="store_true", help="Print the connection string (no credentials) and exit.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    if args.list_drivers:
        if not sql_conn.HAS_PYODBC:
            print("pyodbc not installed in this environment", file=sys.stderr)
            return EXIT_DB_ERROR
        print("pyodbc drivers:", sql_conn.installed_drivers())
        return EXIT_OK

    settings = load_settings()

    if args.show_conn_str:
        driver = sql_conn.choose_driver(settings.odbc_driver)
        print(sql_conn.build_conn_str(settings.server, settings.database, driver))
        return EXIT_OK

    return run(settings)


def main_cli():
    sys.exit(main())


if __name__ == "__main__":
    main_cli()
