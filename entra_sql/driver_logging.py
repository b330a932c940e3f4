"""
driver_logging.py

Optional diagnostic logging for the ODBC layer.

Everything the sample logs about the connection and the statements it runs goes
through the `entra_sql.odbc` logger (DRIVER_LOGGER). When JDBC_TRACE=true the
entry script builds one DriverLogging object from the settings and calls
configure() on it. DriverLogging picks its adapters up front:

  - ConsoleLoggerAdapter: level + a single stderr handler on the driver logger,
    no propagation to the root logger (each record is printed once)
  - FileConfigAdapter: logging.config.fileConfig() from the bundled logging.ini
    or a user supplied INI path (JDBC_TRACE_CONFIG)
  - OdbcTraceAdapter: native ODBC driver-manager tracing to JDBC_TRACE_FILE,
    passed to pyodbc.connect() as attrs_before
  - NullAdapter: nothing to do

Configuring logging is best effort. Errors are printed to stderr and the run
goes on to connect.
"""
import logging
import logging.config
import os
import sys
from typing import Dict, List, Optional, Tuple

DRIVER_LOGGER = "entra_sql.odbc"

TRACE = 5
OFF = logging.CRITICAL + 10
logging.addLevelName(TRACE, "TRACE")

# Canonical level names; WARN is accepted as an alias of WARNING.
LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "OFF": OFF,
}
LEVEL_ALIASES = {"WARN": "WARNING"}
DEFAULT_LEVEL = "INFO"

BUNDLED_CONFIG = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logging.ini")

# ODBC connection attributes (sql.h / sqlext.h)
SQL_ATTR_TRACE = 104
SQL_ATTR_TRACEFILE = 105
SQL_OPT_TRACE_ON = 1

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def parse_level(name: Optional[str]) -> Tuple[str, int]:
    """Resolve a level name case-insensitively. Unknown or empty names give INFO."""
    key = (name or "").strip().upper()
    key = LEVEL_ALIASES.get(key, key)
    if key not in LEVELS:
        key = DEFAULT_LEVEL
    return key, LEVELS[key]


class LoggingAdapter:
    """Capability set every logging backend offers. The defaults do nothing."""

    name = "null"

    def set_level(self, level: int) -> None:
        pass

    def attach_handler(self, handler: logging.Handler) -> None:
        pass

    def connect_attrs(self) -> Dict[int, object]:
        return {}


class NullAdapter(LoggingAdapter):
    pass


class ConsoleLoggerAdapter(LoggingAdapter):
    name = "console"

    def __init__(self, logger_name: str = DRIVER_LOGGER):
        self.logger = logging.getLogger(logger_name)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)

    def attach_handler(self, handler: logging.Handler) -> None:
        for existing in list(self.logger.handlers):
            self.logger.removeHandler(existing)
        self.logger.addHandler(handler)
        self.logger.propagate = False


class FileConfigAdapter(LoggingAdapter):
    name = "file"

    def __init__(self, path: str, logger_name: str = DRIVER_LOGGER):
        self.path = path
        self.logger_name = logger_name

    def set_level(self, level: int) -> None:
        if not os.path.exists(self.path):
            raise FileNotFoundError(f"logging config not found: {self.path}")
        logging.config.fileConfig(self.path, disable_existing_loggers=False)
        # the requested level wins over whatever the INI file says
        log = logging.getLogger(self.logger_name)
        log.setLevel(level)
        log.propagate = False


class OdbcTraceAdapter(LoggingAdapter):
    """Turns on ODBC driver-manager tracing for the connection at TRACE level."""

    name = "odbc-trace"

    def __init__(self, trace_file: str):
        self.trace_file = trace_file
        self.enabled = False

    def set_level(self, level: int) -> None:
        self.enabled = level <= TRACE
        if not self.enabled:
            print(
                f"Native ODBC tracing to {self.trace_file} needs JDBC_TRACE_LEVEL=TRACE; skipped",
                file=sys.stderr,
            )

    def connect_attrs(self) -> Dict[int, object]:
        if not self.enabled:
            return {}
        return {SQL_ATTR_TRACEFILE: self.trace_file, SQL_ATTR_TRACE: SQL_OPT_TRACE_ON}


class DriverLogging:
    """Driver logging setup, built once at start-up and applied with configure()."""

    def __init__(self, level_name: Optional[str], adapters: Optional[List[LoggingAdapter]] = None):
        self.level_name, self.level = parse_level(level_name)
        self.adapters = adapters if adapters else [NullAdapter()]
        self.configured = False

    @classmethod
    def from_settings(cls, settings) -> "DriverLogging":
        if not settings.trace_enabled:
            return cls(settings.trace_level, [NullAdapter()])

        adapters: List[LoggingAdapter] = []
        if settings.trace_config:
            path = BUNDLED_CONFIG if settings.trace_config.lower() == "bundled" else settings.trace_config
            adapters.append(FileConfigAdapter(path))
        else:
            adapters.append(ConsoleLoggerAdapter())
        if settings.trace_file:
            adapters.append(OdbcTraceAdapter(settings.trace_file))
        return cls(settings.trace_level, adapters)

    def make_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(self.level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        return handler

    def configure(self) -> bool:
        """Apply every adapter. Returns False if any of them failed; never raises."""
        ok = True
        handler = self.make_handler()
        for adapter in self.adapters:
            try:
                adapter.set_level(self.level)
                adapter.attach_handler(handler)
            except Exception as e:
                ok = False
                print(f"Could not configure driver logging ({adapter.name}): {e}", file=sys.stderr)
        self.configured = True
        return ok

    def connect_attrs(self) -> Dict[int, object]:
        attrs: Dict[int, object] = {}
        for adapter in self.adapters:
            try:
                attrs.update(adapter.connect_attrs())
            except Exception as e:
                print(f"Could not configure driver logging ({adapter.name}): {e}", file=sys.stderr)
        return attrs
