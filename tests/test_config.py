"""Tests for the configuration facade."""

import logging
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

import pytest

from photo_server import mutex, thumb
from photo_server.core.cache import ExpiringCache
from photo_server.core.config import (
    Config, get_config, reset_config, set_config,
)
from photo_server.core.errors import ConfigError
from photo_server.core.params import Params
from photo_server.core.settings import Settings
from photo_server.thumb import ResampleFilter
from photo_server.thumb import options as thumb_options


def make_config(**values) -> Config:
    return Config(Params(**values))


class TestSiteInformation:
    """Accessors with simple defaults."""

    def test_url_default(self):
        assert make_config().url() == "http://localhost:2342/"
        assert make_config(url="https://photos.example.com/").url() == "https://photos.example.com/"

    def test_title_defaults_to_name(self):
        config = make_config(name="My Photos")

        assert config.title() == "My Photos"
        assert make_config(name="My Photos", title="Holidays").title() == "Holidays"

    def test_raw_values(self):
        config = make_config(
            subtitle="Browse your life",
            description="Family archive",
            author="Jane",
            twitter="@jane",
            copyright="(c) Jane",
            version="1.2.3",
        )

        assert config.subtitle() == "Browse your life"
        assert config.description() == "Family archive"
        assert config.author() == "Jane"
        assert config.twitter() == "@jane"
        assert config.copyright() == "(c) Jane"
        assert config.version() == "1.2.3"

    def test_flags(self):
        config = make_config(
            public=True, experimental=True, read_only=True, detect_nsfw=True, upload_nsfw=False
        )

        assert config.public() is True
        assert config.experimental() is True
        assert config.read_only() is True
        assert config.detect_nsfw() is True
        assert config.upload_nsfw() is False
        assert config.debug() is False

    def test_admin_password_default(self):
        assert make_config().admin_password() == "photoserver"
        assert make_config(admin_password="secret").admin_password() == "secret"

    def test_webdav_password(self):
        assert make_config().webdav_password() == ""
        assert make_config(webdav_password="dav").webdav_password() == "dav"


class TestLogLevel:
    """Log level parsing."""

    @pytest.mark.parametrize("name,level", [
        ("trace", logging.DEBUG),
        ("debug", logging.DEBUG),
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("WARNING", logging.WARNING),
        ("error", logging.ERROR),
        ("fatal", logging.CRITICAL),
        ("panic", logging.CRITICAL),
        ("loud", logging.INFO),
        ("", logging.INFO),
    ])
    def test_parse(self, name, level):
        assert make_config(log_level=name).log_level() == level

    def test_debug_overrides_level(self):
        assert make_config(debug=True, log_level="error").log_level() == logging.DEBUG


class TestWorkers:
    """Worker count and wakeup interval."""

    @pytest.mark.parametrize("requested,cpus,expected", [
        (2, 8, 2),
        (8, 8, 8),
        (9, 8, 7),
        (0, 8, 7),
        (-1, 4, 3),
        (0, 1, 1),
        (3, 1, 1),
    ])
    def test_workers(self, requested, cpus, expected):
        config = make_config(workers=requested)

        with patch('photo_server.core.config.os.cpu_count', return_value=cpus):
            assert config.workers() == expected

    def test_workers_unknown_cpu_count(self):
        with patch('photo_server.core.config.os.cpu_count', return_value=None):
            assert make_config().workers() == 1

    def test_wakeup_interval(self):
        assert make_config().wakeup_interval() == timedelta(minutes=5)
        assert make_config(wakeup_interval=-10).wakeup_interval() == timedelta(minutes=5)
        assert make_config(wakeup_interval=90).wakeup_interval() == timedelta(seconds=90)


class TestThumbnailSettings:
    """Thumbnail bounds and filter."""

    @pytest.mark.parametrize("value,expected", [
        (10, 25), (25, 25), (80, 80), (100, 100), (120, 100),
    ])
    def test_thumb_quality(self, value, expected):
        assert make_config(thumb_quality=value).thumb_quality() == expected

    @pytest.mark.parametrize("value,expected", [
        (100, 720), (720, 720), (2048, 2048), (3840, 3840), (8000, 3840),
    ])
    def test_thumb_size_and_limit(self, value, expected):
        config = make_config(thumb_size=value, thumb_limit=value)

        assert config.thumb_size() == expected
        assert config.thumb_limit() == expected

    @pytest.mark.parametrize("value,expected", [
        ("blackman", ResampleFilter.BLACKMAN),
        ("Lanczos", ResampleFilter.LANCZOS),
        ("cubic", ResampleFilter.CUBIC),
        ("LINEAR", ResampleFilter.LINEAR),
        ("nearest", ResampleFilter.CUBIC),
        ("", ResampleFilter.CUBIC),
    ])
    def test_thumb_filter(self, value, expected):
        assert make_config(thumb_filter=value).thumb_filter() == expected

    @pytest.mark.parametrize("value,expected", [
        ("places", "places"), ("osm", "osm"), ("none", ""), ("google", ""), ("", ""),
    ])
    def test_geocoding_api(self, value, expected):
        assert make_config(geocoding_api=value).geocoding_api() == expected

    def test_propagate_updates_thumb_module(self):
        config = make_config(thumb_quality=5, thumb_size=1000, thumb_limit=9999, thumb_filter="linear")
        config.propagate()

        assert thumb_options.jpeg_quality == 25
        assert thumb_options.pre_render_size == 1000
        assert thumb_options.max_render_size == 3840
        assert thumb_options.resample_filter == ResampleFilter.LINEAR

    def test_propagate_sets_log_level(self):
        make_config(log_level="error").propagate()
        assert logging.getLogger("photo_server").level == logging.ERROR

        make_config(log_level="info").propagate()
        assert logging.getLogger("photo_server").level == logging.INFO


class TestServerSettings:
    """HTTP and database settings."""

    def test_http_defaults(self):
        config = make_config(http_port=0)

        assert config.http_host() == "0.0.0.0"
        assert config.http_port() == 2342
        assert config.http_mode() == "release"
        assert make_config(debug=True).http_mode() == "debug"
        assert make_config(http_mode="test").http_mode() == "test"

    def test_database_driver(self):
        assert make_config().database_driver() == "internal"
        assert make_config(database_driver="MySQL").database_driver() == "mysql"
        assert make_config(database_driver="oracle").database_driver() == "internal"

    def test_database_dsn_defaults(self, temp_dir):
        config = make_config(config_path=temp_dir, database_driver="sqlite")

        assert config.database_dsn() == str(temp_dir / "index.db")
        assert config.database_url() == f"sqlite:///{temp_dir / 'index.db'}"
        assert "tcp(localhost:4000)" in make_config(database_driver="mysql").database_dsn()

    def test_mysql_dsn_converted(self):
        config = make_config(
            database_driver="mysql",
            database_dsn="root:secret@tcp(db:4001)/photos?parseTime=true",
        )

        assert config.database_url() == "mysql+pymysql://root:secret@db:4001/photos"


class TestPaths:
    """Storage paths derived from the assets path."""

    def test_defaults_below_assets_path(self, temp_dir):
        config = make_config(assets_path=temp_dir)

        assert config.assets_path() == temp_dir
        assert config.config_path() == temp_dir / "config"
        assert config.cache_path() == temp_dir / "cache"
        assert config.resources_path() == temp_dir / "resources"
        assert config.originals_path() == temp_dir / "photos" / "originals"
        assert config.import_path() == temp_dir / "photos" / "import"
        assert config.thumb_path() == temp_dir / "cache" / "thumbnails"
        assert config.settings_file() == temp_dir / "config" / "settings.yml"

    def test_explicit_paths(self, temp_dir):
        config = make_config(
            assets_path=temp_dir,
            cache_path=temp_dir / "c",
            originals_path=temp_dir / "o",
            temp_path=temp_dir / "t",
        )

        assert config.cache_path() == temp_dir / "c"
        assert config.thumb_path() == temp_dir / "c" / "thumbnails"
        assert config.originals_path() == temp_dir / "o"
        assert config.temp_path() == temp_dir / "t"

    def test_create_directories(self, test_config):
        test_config.create_directories()

        assert test_config.config_path().is_dir()
        assert test_config.thumb_path().is_dir()
        assert test_config.originals_path().is_dir()

    def test_create_directories_read_only(self, temp_dir):
        config = make_config(assets_path=temp_dir, read_only=True)
        config.create_directories()

        assert config.cache_path().is_dir()
        assert not config.originals_path().exists()

    def test_create_directories_failure(self, temp_dir):
        blocker = temp_dir / "file"
        blocker.write_text("x")
        config = make_config(assets_path=blocker)

        with pytest.raises(ConfigError):
            config.create_directories()


class TestCacheAndDatabase:
    """Lazily created resources."""

    def test_cache_created_once(self, test_config):
        cache = test_config.cache()

        assert isinstance(cache, ExpiringCache)
        assert test_config.cache() is cache
        assert cache.default_ttl == timedelta(hours=336).total_seconds()
        assert cache.cleanup_interval == timedelta(minutes=30).total_seconds()

    @pytest.mark.database
    def test_db_connects_lazily(self, test_config):
        assert test_config._db is None

        engine = test_config.db()

        assert engine is test_config.db()
        assert engine.dialect.name == "sqlite"
        assert Path(test_config.database_dsn()).exists()

    @pytest.mark.database
    def test_close_db(self, test_config):
        test_config.db()
        test_config.close_db()

        assert test_config._db is None
        # Closing twice is harmless
        test_config.close_db()

    @pytest.mark.database
    def test_init_propagates_and_connects(self, temp_dir):
        config = make_config(assets_path=temp_dir, database_driver="sqlite", thumb_quality=70)
        config.init()

        assert thumb_options.jpeg_quality == 70
        assert config._db is not None
        config.shutdown()

    def test_shutdown_cancels_jobs(self, test_config):
        mutex.worker.start()
        test_config.cache()

        test_config.shutdown()

        assert mutex.worker.canceled() is True
        assert mutex.share.canceled() is False


class TestSettingsIntegration:
    """UI settings loaded by the config."""

    def test_settings_loaded_from_file(self, temp_dir):
        Settings(theme="dark", language="de").save(temp_dir / "config" / "settings.yml")

        config = make_config(assets_path=temp_dir)

        assert config.settings().theme == "dark"
        assert config.settings().language == "de"

    def test_broken_settings_file_uses_defaults(self, temp_dir):
        settings_file = temp_dir / "config" / "settings.yml"
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text("- not\n- a mapping\n")

        config = make_config(assets_path=temp_dir)

        assert config.settings().theme == "default"
        assert config.settings().language == "en"

    def test_unparsable_settings_file_uses_defaults(self, temp_dir):
        settings_file = temp_dir / "config" / "settings.yml"
        settings_file.parent.mkdir(parents=True)
        settings_file.write_text("theme: [unclosed\n")

        config = make_config(assets_path=temp_dir)

        assert config.settings().theme == "default"
        assert config.settings().language == "en"


class TestClientConfig:
    """Values sent to the browser."""

    def test_client_config(self, test_config):
        values = test_config.client_config()

        assert values["name"] == "Photo Server"
        assert values["uploadNSFW"] is True
        assert values["settings"] == {"theme": "default", "language": "en"}
        assert {"name": "tile_100", "width": 100, "height": 100} in values["thumbnails"]
        assert len(values["thumbnails"]) == len(thumb.THUMBNAILS)

    def test_no_passwords(self):
        values = make_config(admin_password="secret", webdav_password="dav").client_config()

        assert "secret" not in str(values)
        assert not any("password" in key.lower() for key in values)


class TestGlobalConfig:
    """Process-wide instance."""

    def test_get_config_is_singleton(self):
        reset_config()

        assert get_config() is get_config()

    def test_set_config(self, test_config):
        set_config(test_config)

        assert get_config() is test_config

        reset_config()
        assert get_config() is not test_config
