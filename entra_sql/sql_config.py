# sql_config.py
# Reads the Azure SQL connection settings for the Entra password sample from
# environment variables. Required values abort the process with exit code 2.
import os
import sys
from dataclasses import dataclass, field
from typing import Mapping, Optional

EXIT_CONFIG_ERROR = 2

DEFAULT_EVENT_NAME = "HelloFromJava"
DEFAULT_TRACE_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    server: str
    database: str
    username: str
    password: str = field(repr=False)
    event_name: str = DEFAULT_EVENT_NAME
    trace_enabled: bool = False
    trace_level: str = DEFAULT_TRACE_LEVEL
    trace_config: Optional[str] = None
    trace_file: Optional[str] = None
    odbc_driver: Optional[str] = None


def require_env(key: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Return a required variable, or print a diagnostic and exit with code 2."""
    env = os.environ if environ is None else environ
    value = env.get(key)
    if not value:
        print(f"Missing required environment variable: {key}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Required: AZURE_SQL_SERVER, AZURE_SQL_DATABASE, AZURE_SQL_USER, AZURE_SQL_PASSWORD.
    Optional: EVENT_NAME, JDBC_TRACE, JDBC_TRACE_LEVEL, JDBC_TRACE_CONFIG,
    JDBC_TRACE_FILE, DB_ODBC_DRIVER.
    """
    env = os.environ if environ is None else environ

    server = require_env("AZURE_SQL_SERVER", env)
    database = require_env("AZURE_SQL_DATABASE", env)
    username = require_env("AZURE_SQL_USER", env)
    password = require_env("AZURE_SQL_PASSWORD", env)

    event_name = env.get("EVENT_NAME", DEFAULT_EVENT_NAME)
    trace_enabled = env.get("JDBC_TRACE", "false").strip().lower() == "true"
    trace_level = env.get("JDBC_TRACE_LEVEL", DEFAULT_TRACE_LEVEL).strip().upper()

    return Settings(
        server=server,
        database=database,
        username=username,
        password=password,
        event_name=event_name,
        trace_enabled=trace_enabled,
        trace_level=trace_level or DEFAULT_TRACE_LEVEL,
        trace_config=env.get("JDBC_TRACE_CONFIG") or None,
        trace_file=env.get("JDBC_TRACE_FILE") or None,
        odbc_driver=env.get("DB_ODBC_DRIVER") or None,
    )
