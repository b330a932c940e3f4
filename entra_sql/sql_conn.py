import logging
from typing import Dict, Optional

from entra_sql.driver_logging import DRIVER_LOGGER

try:
    import pyodbc
    HAS_PYODBC = True
except Exception:
    pyodbc = None
    HAS_PYODBC = False

logger = logging.getLogger(DRIVER_LOGGER)

SQL_PORT = 1433
LOGIN_TIMEOUT = 30
AUTH_MODE = "ActiveDirectoryPassword"
HOST_NAME_IN_CERTIFICATE = "*.database.windows.net"

# Entra authentication needs msodbcsql 17 or newer
PREFERRED_DRIVERS = ["ODBC Driver 18 for SQL Server", "ODBC Driver 17 for SQL Server"]


def escape_odbc_value(val: str) -> str:
    """Escape an ODBC value by wrapping in braces and doubling '}' if it contains special chars."""
    if val is None:
        return ""
    if any(c in val for c in [';', '{', '}']):
        val_escaped = val.replace('}', '}}')
        return "{" + val_escaped + "}"
    return val


def installed_drivers():
    if not HAS_PYODBC:
        return []
    return pyodbc.drivers()


def choose_driver(preferred: Optional[str] = None) -> str:
    if preferred:
        return preferred
    installed = installed_drivers()
    for p in PREFERRED_DRIVERS:
        if p in installed:
            return p
    return PREFERRED_DRIVERS[0]


def normalize_server(server: str) -> str:
    # Azure SQL wants tcp:<host>,1433 unless the caller already gave a protocol or port
    if server.lower().startswith("tcp:") or "," in server:
        return server
    return f"tcp:{server},{SQL_PORT}"


def build_conn_str(server: str, database: str, driver: Optional[str] = None) -> str:
    """
    Connection string for Entra password auth. Username and password are not
    part of it; connect() passes them separately so this string is safe to print.
    """
    driver = driver or PREFERRED_DRIVERS[0]
    return (
        f"DRIVER={{{driver}}};"
        f"SERVER={escape_odbc_value(normalize_server(server))};"
        f"DATABASE={escape_odbc_value(database)};"
        "Encrypt=yes;TrustServerCertificate=no;"
        f"HostNameInCertificate={HOST_NAME_IN_CERTIFICATE};"
        f"Connection Timeout={LOGIN_TIMEOUT};"
        f"Authentication={AUTH_MODE};"
    )


def connect(settings, attrs_before: Optional[Dict[int, object]] = None):
    """
    Open a single autocommit pyodbc connection for settings.
    Raises RuntimeError when pyodbc is not installed; driver errors propagate.
    """
    if not HAS_PYODBC:
        raise RuntimeError("pyodbc not installed in this environment")

    driver = choose_driver(settings.odbc_driver)
    conn_str = build_conn_str(settings.server, settings.database, driver)
    logger.debug("Connecting: %s", conn_str)

    kwargs = {}
    if attrs_before:
        logger.debug("Connection attributes before connect: %s", sorted(attrs_before))
        kwargs["attrs_before"] = attrs_before

    conn = pyodbc.connect(
        conn_str,
        autocommit=True,
        timeout=LOGIN_TIMEOUT,
        uid=escape_odbc_value(settings.username),
        pwd=escape_odbc_value(settings.password),
        **kwargs,
    )
    logger.debug("Connected with driver %s", driver)
    return conn
