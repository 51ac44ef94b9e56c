"""Configuration management for the photo server.

``Config`` wraps the raw ``Params`` and applies defaults and bounds. It also
owns the in-memory cache and the database engine, both created on first use.
"""

import logging
import os
import tempfile
import threading
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.engine import Engine

from .. import mutex, thumb
from ..database.engine import (
    DRIVER_INTERNAL, DRIVER_SQLITE, DRIVERS, connect_database, database_url,
)
from ..thumb import ResampleFilter
from .cache import ExpiringCache
from .errors import ConfigError, DatabaseError
from .logger import get_logger, init_logging, set_level, setup_logging
from .params import Params, load_params
from .settings import Settings

logger = get_logger(__name__)

DEFAULT_URL = "http://localhost:2342/"
DEFAULT_ADMIN_PASSWORD = "photoserver"
DEFAULT_HTTP_HOST = "0.0.0.0"
DEFAULT_HTTP_PORT = 2342
DEFAULT_MYSQL_DSN = "root:photoserver@tcp(localhost:4000)/photoserver?parseTime=true"

CACHE_EXPIRATION = timedelta(hours=336)
CACHE_CLEANUP_INTERVAL = timedelta(minutes=30)

DEFAULT_WAKEUP_INTERVAL = timedelta(minutes=5)

THUMB_QUALITY_MIN, THUMB_QUALITY_MAX = 25, 100
THUMB_SIZE_MIN, THUMB_SIZE_MAX = 720, 3840

HTTP_MODES = ("debug", "release", "test")
GEOCODING_APIS = ("places", "osm")

# Log level names accepted in addition to the ones known to logging
_LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "critical": logging.CRITICAL,
}


class Config:
    """Parameters, cache and database connection of the running server."""

    def __init__(self, params: Optional[Params] = None):
        self.params = params or Params()

        init_logging(self.params.debug)

        if self.params.log_filename:
            setup_logging(self.log_level(), log_file=self.params.log_filename)

        self._cache: Optional[ExpiringCache] = None
        self._db: Optional[Engine] = None
        self._db_lock = threading.Lock()
        self._settings = Settings()

        self._init_settings()

    @classmethod
    def from_options(cls, config_file: Optional[Path] = None, **flags: Any) -> "Config":
        """Load parameters from flags, environment and config file."""
        return cls(load_params(config_file, **flags))

    def _init_settings(self) -> None:
        settings_file = self.settings_file()

        if settings_file.exists():
            try:
                self._settings.load(settings_file)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load settings from {settings_file}: {e}")

        self._settings.propagate()

    def propagate(self) -> None:
        """Push derived values into the logger, thumbnail and settings modules."""
        set_level(self.log_level())

        thumb.configure(
            quality=self.thumb_quality(),
            pre_render=self.thumb_size(),
            max_render=self.thumb_limit(),
            filter=self.thumb_filter(),
        )

        self._settings.propagate()

    def init(self) -> None:
        """Propagate settings and connect to the database."""
        self.propagate()
        self.connect_to_database()

    # Site information

    def name(self) -> str:
        """Application name."""
        return self.params.name

    def url(self) -> str:
        """Public server URL (default is "http://localhost:2342/")."""
        if not self.params.url:
            return DEFAULT_URL
        return self.params.url

    def title(self) -> str:
        """Site title, the application name if empty."""
        if not self.params.title:
            return self.name()
        return self.params.title

    def subtitle(self) -> str:
        return self.params.subtitle

    def description(self) -> str:
        return self.params.description

    def author(self) -> str:
        return self.params.author

    def twitter(self) -> str:
        return self.params.twitter

    def version(self) -> str:
        return self.params.version

    def copyright(self) -> str:
        return self.params.copyright

    # Feature flags

    def debug(self) -> bool:
        return self.params.debug

    def public(self) -> bool:
        """True if no authentication is required."""
        return self.params.public

    def experimental(self) -> bool:
        return self.params.experimental

    def read_only(self) -> bool:
        """True if the originals directory must not be modified."""
        return self.params.read_only

    def detect_nsfw(self) -> bool:
        """True if photos that may be offensive should be flagged."""
        return self.params.detect_nsfw

    def upload_nsfw(self) -> bool:
        """True if photos that may be offensive can be uploaded."""
        return self.params.upload_nsfw

    def admin_password(self) -> str:
        if not self.params.admin_password:
            return DEFAULT_ADMIN_PASSWORD
        return self.params.admin_password

    def webdav_password(self) -> str:
        return self.params.webdav_password

    def log_level(self) -> int:
        """Log level as a logging constant, DEBUG in debug mode."""
        if self.debug():
            return logging.DEBUG

        return _LOG_LEVELS.get(self.params.log_level.strip().lower(), logging.INFO)

    # Cache and database

    def cache(self) -> ExpiringCache:
        """In-memory cache, created on first use."""
        if self._cache is None:
            self._cache = ExpiringCache(CACHE_EXPIRATION, CACHE_CLEANUP_INTERVAL)
        return self._cache

    def database_driver(self) -> str:
        driver = self.params.database_driver.strip().lower()
        if driver not in DRIVERS:
            return DRIVER_INTERNAL
        return driver

    def database_dsn(self) -> str:
        """Data source name, an SQLite file in the config path by default."""
        if self.params.database_dsn:
            return self.params.database_dsn

        if self.database_driver() in (DRIVER_SQLITE, DRIVER_INTERNAL):
            return str(self.config_path() / "index.db")

        return DEFAULT_MYSQL_DSN

    def database_url(self) -> str:
        return database_url(self.database_driver(), self.database_dsn())

    def db(self) -> Engine:
        """Database engine, connected on first use."""
        if self._db is None:
            self.connect_to_database()
        return self._db

    def connect_to_database(self) -> None:
        with self._db_lock:
            if self._db is not None:
                return

            with mutex.db:
                self._db = connect_database(self.database_url(), echo=False)

    def close_db(self) -> None:
        """Close all database connections."""
        with self._db_lock:
            if self._db is None:
                return

            try:
                self._db.dispose()
            except Exception as e:
                raise DatabaseError(f"Failed to close database: {e}") from e
            finally:
                self._db = None

    def shutdown(self) -> None:
        """Stop background jobs and release resources."""
        mutex.worker.cancel()
        mutex.share.cancel()
        mutex.sync.cancel()

        try:
            self.close_db()
        except DatabaseError as e:
            logger.error(f"Could not close database connection: {e}")
        else:
            logger.info("Closed database connection")

        if self._cache is not None:
            self._cache.close()

    # Background workers

    def workers(self) -> int:
        """Number of workers, e.g. for rendering thumbnails."""
        num_cpu = os.cpu_count() or 1

        if 0 < self.params.workers <= num_cpu:
            return self.params.workers

        if num_cpu > 1:
            return num_cpu - 1

        return 1

    def wakeup_interval(self) -> timedelta:
        """Background worker wakeup interval."""
        if self.params.wakeup_interval <= 0:
            return DEFAULT_WAKEUP_INTERVAL
        return timedelta(seconds=self.params.wakeup_interval)

    # Thumbnails

    def thumb_quality(self) -> int:
        """Thumbnail JPEG quality (25-100)."""
        return _clamp(self.params.thumb_quality, THUMB_QUALITY_MIN, THUMB_QUALITY_MAX)

    def thumb_size(self) -> int:
        """Pre-rendered thumbnail size limit in pixels (720-3840)."""
        return _clamp(self.params.thumb_size, THUMB_SIZE_MIN, THUMB_SIZE_MAX)

    def thumb_limit(self) -> int:
        """On-demand thumbnail size limit in pixels (720-3840)."""
        return _clamp(self.params.thumb_limit, THUMB_SIZE_MIN, THUMB_SIZE_MAX)

    def thumb_filter(self) -> ResampleFilter:
        """Thumbnail resample filter (blackman, lanczos, cubic or linear)."""
        try:
            return ResampleFilter(self.params.thumb_filter.strip().lower())
        except ValueError:
            return ResampleFilter.CUBIC

    def geocoding_api(self) -> str:
        """Preferred geocoding API (osm or places), empty for none."""
        if self.params.geocoding_api in GEOCODING_APIS:
            return self.params.geocoding_api
        return ""

    # Web server

    def http_host(self) -> str:
        return self.params.http_host or DEFAULT_HTTP_HOST

    def http_port(self) -> int:
        if self.params.http_port <= 0:
            return DEFAULT_HTTP_PORT
        return self.params.http_port

    def http_mode(self) -> str:
        """Server mode: debug, release or test."""
        mode = self.params.http_mode.strip().lower()
        if mode in HTTP_MODES:
            return mode
        return "debug" if self.debug() else "release"

    # Paths

    def assets_path(self) -> Path:
        if self.params.assets_path:
            return Path(self.params.assets_path).expanduser()
        return Path.home() / ".local" / "share" / "photo-server"

    def config_path(self) -> Path:
        if self.params.config_path:
            return Path(self.params.config_path).expanduser()
        return self.assets_path() / "config"

    def cache_path(self) -> Path:
        if self.params.cache_path:
            return Path(self.params.cache_path).expanduser()
        return self.assets_path() / "cache"

    def resources_path(self) -> Path:
        if self.params.resources_path:
            return Path(self.params.resources_path).expanduser()
        return self.assets_path() / "resources"

    def originals_path(self) -> Path:
        if self.params.originals_path:
            return Path(self.params.originals_path).expanduser()
        return self.assets_path() / "photos" / "originals"

    def import_path(self) -> Path:
        if self.params.import_path:
            return Path(self.params.import_path).expanduser()
        return self.assets_path() / "photos" / "import"

    def temp_path(self) -> Path:
        if self.params.temp_path:
            return Path(self.params.temp_path).expanduser()
        return Path(tempfile.gettempdir()) / "photo-server"

    def thumb_path(self) -> Path:
        return self.cache_path() / "thumbnails"

    def settings_file(self) -> Path:
        return self.config_path() / "settings.yml"

    def create_directories(self) -> None:
        """Create all storage directories that don't exist yet."""
        directories = [
            self.config_path(), self.cache_path(), self.thumb_path(), self.temp_path(),
            self.import_path(),
        ]

        if not self.read_only():
            directories.append(self.originals_path())

        for directory in directories:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigError(f"Could not create directory {directory}: {e}") from e

    # Settings

    def settings(self) -> Settings:
        return self._settings

    def client_config(self) -> Dict[str, Any]:
        """Values the web interface needs. Never includes passwords."""
        return {
            "name": self.name(),
            "url": self.url(),
            "title": self.title(),
            "subtitle": self.subtitle(),
            "description": self.description(),
            "author": self.author(),
            "twitter": self.twitter(),
            "version": self.version(),
            "copyright": self.copyright(),
            "debug": self.debug(),
            "readonly": self.read_only(),
            "uploadNSFW": self.upload_nsfw(),
            "public": self.public(),
            "experimental": self.experimental(),
            "thumbnails": [
                {"name": t.name, "width": t.width, "height": t.height}
                for t in thumb.THUMBNAILS
            ],
            "settings": self._settings.model_dump(),
        }


def _clamp(value: int, lower: int, upper: int) -> int:
    if value > upper:
        return upper
    if value < lower:
        return lower
    return value


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_options()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
