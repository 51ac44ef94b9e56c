"""Database engine and connection management."""

import re
import time
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from ..core.errors import ConfigError, DatabaseError
from ..core.logger import get_logger

logger = get_logger(__name__)

DRIVER_MYSQL = "mysql"
DRIVER_SQLITE = "sqlite"
DRIVER_INTERNAL = "internal"

DRIVERS = (DRIVER_MYSQL, DRIVER_SQLITE, DRIVER_INTERNAL)

CONNECT_RETRIES = 12
CONNECT_RETRY_INTERVAL = 5.0

# user:password@tcp(host:port)/database?options
_GO_DSN = re.compile(
    r"^(?P<user>[^:@/]*)(?::(?P<password>[^@]*))?@"
    r"(?:(?P<protocol>\w+)\((?P<address>[^)]*)\))?"
    r"/(?P<database>[^?]*)(?:\?(?P<query>.*))?$"
)

# Go driver options that have no meaning for PyMySQL
_IGNORED_DSN_OPTIONS = {"parseTime", "loc", "timeout", "readTimeout", "writeTimeout"}


def database_url(driver: str, dsn: Union[str, Path]) -> str:
    """Turn a driver name and data source name into an SQLAlchemy URL."""
    dsn = str(dsn)

    if "://" in dsn:
        return dsn

    if driver in (DRIVER_SQLITE, DRIVER_INTERNAL):
        if not dsn:
            raise ConfigError("SQLite database file name is empty")
        return f"sqlite:///{dsn}"

    if driver == DRIVER_MYSQL:
        return mysql_url(dsn).render_as_string(hide_password=False)

    raise ConfigError(f"Unsupported database driver: {driver}")


def mysql_url(dsn: str) -> URL:
    """Convert a MySQL DSN in Go driver format to an SQLAlchemy URL."""
    match = _GO_DSN.match(dsn)
    if not match:
        raise ConfigError(f"Invalid MySQL data source name: {dsn}")

    host, port = "localhost", None
    address = match.group("address")
    if address:
        host, _, port_str = address.partition(":")
        host = host or "localhost"
        if port_str:
            try:
                port = int(port_str)
            except ValueError:
                raise ConfigError(f"Invalid port in data source name: {port_str}") from None

    query = {}
    for option in (match.group("query") or "").split("&"):
        key, _, value = option.partition("=")
        if key and key not in _IGNORED_DSN_OPTIONS:
            query[key] = value

    return URL.create(
        "mysql+pymysql",
        username=match.group("user") or None,
        password=match.group("password") or None,
        host=host,
        port=port,
        database=match.group("database") or None,
        query=query,
    )


def create_database_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine without connecting yet."""
    try:
        parsed = make_url(url)
    except ArgumentError as e:
        raise ConfigError(f"Invalid database URL: {e}") from e

    engine_kwargs = {
        "echo": echo,
        "pool_pre_ping": True,
    }

    if parsed.get_backend_name() == "sqlite":
        if parsed.database:
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": 30,
        }

    engine = create_engine(parsed, **engine_kwargs)

    if parsed.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _set_sqlite_pragma)

    return engine


def connect_database(
    url: str,
    echo: bool = False,
    retries: int = CONNECT_RETRIES,
    retry_interval: float = CONNECT_RETRY_INTERVAL,
) -> Engine:
    """Open a database and check that it answers queries.

    Servers that are still starting up get ``retries`` more attempts.
    SQLite files are never retried.
    """
    engine = create_database_engine(url, echo=echo)
    attempts = 1 if engine.dialect.name == "sqlite" else 1 + max(retries, 0)
    last_error: Optional[Exception] = None

    for attempt in range(1, attempts + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info(f"Connected to {engine.dialect.name} database")
            return engine
        except SQLAlchemyError as e:
            last_error = e
            if attempt < attempts:
                logger.debug(f"Database connection attempt {attempt} failed: {e}")
                time.sleep(retry_interval)

    engine.dispose()
    raise DatabaseError(f"Could not connect to database: {last_error}") from last_error


def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Set SQLite pragmas for better concurrency."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
