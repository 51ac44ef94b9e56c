"""Raw configuration parameters from flags, environment and config files."""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import toml
import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .. import __version__
from .errors import ConfigError

ENV_PREFIX = "PHOTO_SERVER_"


class Params(BaseSettings):
    """User supplied values, stored as given.

    Defaults and bounds are applied by the accessors of ``Config``.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
    )

    # Site information
    name: str = Field(default="Photo Server", description="Application name")
    version: str = Field(default=__version__, description="Application version")
    copyright: str = Field(default="", description="Application copyright")
    url: str = Field(default="", description="Public server URL")
    title: str = Field(default="", description="Site title")
    subtitle: str = Field(default="", description="Site subtitle")
    description: str = Field(default="", description="Site description")
    author: str = Field(default="", description="Site author / copyright holder")
    twitter: str = Field(default="", description="Twitter handle for sharing")

    # Feature flags
    debug: bool = Field(default=False, description="Enable debug mode")
    public: bool = Field(default=False, description="Disable password authentication")
    experimental: bool = Field(default=False, description="Enable experimental features")
    read_only: bool = Field(default=False, description="Don't modify originals directory")
    detect_nsfw: bool = Field(default=False, description="Flag photos that may be offensive")
    upload_nsfw: bool = Field(default=True, description="Allow uploads that may be offensive")

    # Credentials
    admin_password: str = Field(default="", description="Admin password")
    webdav_password: str = Field(default="", description="WebDAV password")

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_filename: Optional[Path] = Field(default=None, description="Optional log file")

    # Storage
    config_file: Optional[Path] = Field(default=None, description="YAML or TOML config file")
    config_path: Optional[Path] = Field(default=None, description="Config directory")
    assets_path: Optional[Path] = Field(default=None, description="Assets directory")
    cache_path: Optional[Path] = Field(default=None, description="Cache directory")
    resources_path: Optional[Path] = Field(default=None, description="Resources directory")
    originals_path: Optional[Path] = Field(default=None, description="Originals directory")
    import_path: Optional[Path] = Field(default=None, description="Import directory")
    temp_path: Optional[Path] = Field(default=None, description="Temporary files directory")

    # Database
    database_driver: str = Field(default="internal", description="Database driver (internal, sqlite, mysql)")
    database_dsn: str = Field(default="", description="Database data source name")

    # Web server
    http_host: str = Field(default="", description="HTTP server host")
    http_port: int = Field(default=2342, description="HTTP server port")
    http_mode: str = Field(default="", description="HTTP server mode (debug, release, test)")

    # Background workers
    workers: int = Field(default=0, description="Number of workers, 0 for automatic")
    wakeup_interval: int = Field(default=0, description="Background worker wakeup interval in seconds")

    # Thumbnails
    thumb_quality: int = Field(default=90, description="Thumbnail JPEG quality (25-100)")
    thumb_size: int = Field(default=2048, description="Pre-rendered thumbnail size limit (720-3840)")
    thumb_limit: int = Field(default=3840, description="On-demand thumbnail size limit (720-3840)")
    thumb_filter: str = Field(default="lanczos", description="Resample filter (blackman, lanczos, cubic, linear)")

    geocoding_api: str = Field(default="osm", description="Geocoding API (none, osm, places)")


def load_config_file(config_file: Union[str, Path]) -> Dict[str, Any]:
    """Read parameter values from a YAML or TOML file."""
    path = Path(config_file)

    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        if path.suffix.lower() in ['.yaml', '.yml']:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        elif path.suffix.lower() == '.toml':
            data = toml.load(path)
        else:
            raise ConfigError(f"Unsupported config file format: {path.suffix}")
    except (yaml.YAMLError, toml.TomlDecodeError) as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    # Accept both "thumb-quality" and "thumb_quality"
    return {str(key).replace("-", "_").lower(): value for key, value in data.items()}


def load_params(config_file: Optional[Union[str, Path]] = None, **flags: Any) -> Params:
    """Build parameters from flags, environment variables and a config file.

    Flags win over environment variables, which win over the config file.
    Flags passed as ``None`` count as unset.
    """
    flag_values = {key: value for key, value in flags.items() if value is not None}

    # Parameters from defaults and the environment only
    try:
        env_params = Params()
    except ValueError as e:
        raise ConfigError(f"Invalid environment variable: {e}") from e

    if config_file is None:
        config_file = env_params.config_file

    file_values: Dict[str, Any] = {}
    if config_file:
        fields = Params.model_fields
        file_values = {
            key: value for key, value in load_config_file(config_file).items()
            if key in fields and key not in env_params.model_fields_set
        }
        file_values["config_file"] = Path(config_file)

    try:
        return Params(**{**file_values, **flag_values})
    except ValueError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
