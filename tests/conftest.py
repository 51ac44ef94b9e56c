"""Pytest configuration and fixtures."""

import os
import shutil
import tempfile
from pathlib import Path

import pytest
from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from photo_server import mutex, thumb
from photo_server.core.config import Config, reset_config
from photo_server.core.logger import init_logging
from photo_server.core.params import ENV_PREFIX, Params
from photo_server.thumb import options as thumb_options


@pytest.fixture(scope="session", autouse=True)
def console_logging():
    """Attach the log handler before any test swaps sys.stdout."""
    init_logging()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove PHOTO_SERVER_* variables so they don't leak into tests."""
    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_globals():
    """Restore module level state changed by Config.propagate() and jobs."""
    saved = (
        thumb_options.jpeg_quality,
        thumb_options.pre_render_size,
        thumb_options.max_render_size,
        thumb_options.resample_filter,
    )
    yield
    thumb.configure(*saved)
    for busy in (mutex.worker, mutex.share, mutex.sync):
        busy.stop()
    reset_config()


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_params(temp_dir):
    """Parameters with all storage inside the temporary directory."""
    return Params(
        assets_path=temp_dir / "assets",
        originals_path=temp_dir / "originals",
        database_driver="sqlite",
        workers=1,
    )


@pytest.fixture
def test_config(test_params):
    """Create test configuration."""
    config = Config(test_params)
    yield config
    config.shutdown()


@pytest.fixture
def sample_jpeg(temp_dir):
    """JPEG file with camera, date and exposure EXIF tags."""
    path = temp_dir / "IMG_0001.jpg"

    exif = Image.Exif()
    exif[0x010F] = "Canon"                      # Make
    exif[0x0110] = "EOS R5"                     # Model
    exif[0x0112] = 1                            # Orientation
    exif[0x013B] = "Jane Doe"                   # Artist
    exif[0x8298] = "(c) Jane Doe"               # Copyright
    exif[0x010E] = "Sunset at the beach"        # ImageDescription
    exif[0x9003] = "2023:06:15 14:30:00"        # DateTimeOriginal
    exif[0x9011] = "+02:00"                     # OffsetTimeOriginal
    exif[0x829A] = IFDRational(1, 125)          # ExposureTime
    exif[0x829D] = IFDRational(28, 10)          # FNumber
    exif[0x920A] = IFDRational(50, 1)           # FocalLength
    exif[0x8827] = 200                          # ISOSpeedRatings
    exif[0x9209] = 1                            # Flash fired

    Image.new("RGB", (640, 480), (200, 120, 40)).save(path, "JPEG", exif=exif)
    return path


@pytest.fixture
def originals(test_config):
    """Originals directory with two small images and one non-image."""
    path = test_config.originals_path()
    path.mkdir(parents=True, exist_ok=True)

    Image.new("RGB", (800, 600), (10, 20, 30)).save(path / "a.jpg", "JPEG")
    (path / "album").mkdir()
    Image.new("RGBA", (600, 900), (10, 200, 30, 128)).save(path / "album" / "b.png", "PNG")
    (path / "notes.txt").write_text("not an image")

    return path


# Markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "database: mark test as requiring database"
    )
