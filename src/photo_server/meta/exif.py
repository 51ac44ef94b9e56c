"""EXIF metadata extraction."""

import math
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import GPSTAGS, TAGS

from ..core.logger import get_logger
from .data import Data, MetaDataError

logger = get_logger(__name__)

EXIF_IFD = 0x8769
GPS_IFD = 0x8825

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"

_OFFSET_PATTERN = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

# Raw tags not worth keeping in Data.all
_SKIP_TAGS = {"MakerNote", "PrintImageMatching", "ComponentsConfiguration"}


def from_exif(file_path: Union[str, Path]) -> Data:
    """Read image metadata from the EXIF header of a file."""
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    try:
        with Image.open(path) as img:
            exifdata = img.getexif()
            size = img.size

            if not exifdata:
                raise MetaDataError(f"No EXIF data found in {path}")

            tags = _named_tags(exifdata)
            gps = _gps_tags(exifdata)
    except (UnidentifiedImageError, OSError) as e:
        raise MetaDataError(f"Can't read EXIF data from {path}: {e}") from e

    data = Data()
    data.all = {key: _stringify(value) for key, value in tags.items() if key not in _SKIP_TAGS}

    data.unique_id = _text(tags.get("ImageUniqueID"))
    data.title = _xp_text(tags.get("XPTitle"))
    data.subject = _xp_text(tags.get("XPSubject"))
    data.keywords = _xp_text(tags.get("XPKeywords"))
    data.comment = _xp_text(tags.get("XPComment")) or _user_comment(tags.get("UserComment"))
    data.artist = _text(tags.get("Artist")) or _xp_text(tags.get("XPAuthor"))
    data.description = _text(tags.get("ImageDescription"))
    data.copyright = _text(tags.get("Copyright"))

    data.camera_make = _text(tags.get("Make"))
    data.camera_model = _text(tags.get("Model"))
    data.camera_owner = _text(tags.get("CameraOwnerName"))
    data.camera_serial = _text(tags.get("BodySerialNumber"))
    data.lens_make = _text(tags.get("LensMake"))
    data.lens_model = _text(tags.get("LensModel"))

    if "Flash" in tags:
        data.flash = bool(int(tags["Flash"]) & 0x01)

    data.focal_length = int(round(_float(tags.get("FocalLength"))))
    data.exposure = _exposure(tags.get("ExposureTime"))
    data.aperture = _float(tags.get("ApertureValue"))
    data.f_number = _float(tags.get("FNumber"))
    data.iso = _int(tags.get("ISOSpeedRatings"))

    _apply_timestamps(data, tags)
    _apply_gps(data, gps)

    data.width = _int(tags.get("ExifImageWidth")) or size[0]
    data.height = _int(tags.get("ExifImageHeight")) or size[1]
    data.orientation = _int(tags.get("Orientation")) or 1

    return data


def _named_tags(exifdata) -> Dict[str, Any]:
    """Merge the main and Exif IFDs into a name -> value dict."""
    tags: Dict[str, Any] = {}

    for tag_id, value in exifdata.items():
        tags[str(TAGS.get(tag_id, tag_id))] = value

    try:
        for tag_id, value in exifdata.get_ifd(EXIF_IFD).items():
            tags[str(TAGS.get(tag_id, tag_id))] = value
    except KeyError:
        pass

    return tags


def _gps_tags(exifdata) -> Dict[str, Any]:
    try:
        gps_info = exifdata.get_ifd(GPS_IFD)
    except KeyError:
        return {}

    return {str(GPSTAGS.get(tag_id, tag_id)): value for tag_id, value in gps_info.items()}


def _apply_timestamps(data: Data, tags: Dict[str, Any]) -> None:
    """Set taken_at (UTC), taken_at_local and time_zone."""
    for date_field, offset_field in (
        ("DateTimeOriginal", "OffsetTimeOriginal"),
        ("DateTimeDigitized", "OffsetTimeDigitized"),
        ("DateTime", "OffsetTime"),
    ):
        value = _text(tags.get(date_field))
        if not value or value.startswith("0000"):
            continue

        try:
            local = datetime.strptime(value[:19], EXIF_DATE_FORMAT)
        except ValueError as e:
            logger.warning(f"Failed to parse {date_field} '{value}': {e}")
            continue

        data.taken_at_local = local
        offset = _parse_offset(_text(tags.get(offset_field)))

        if offset is None:
            data.taken_at = local.replace(tzinfo=timezone.utc)
        else:
            data.time_zone = _text(tags.get(offset_field))
            data.taken_at = local.replace(tzinfo=timezone(offset)).astimezone(timezone.utc)
        return


def _parse_offset(value: str) -> Optional[timedelta]:
    match = _OFFSET_PATTERN.match(value or "")
    if not match:
        return None

    sign, hours, minutes = match.groups()
    offset = timedelta(hours=int(hours), minutes=int(minutes))
    return -offset if sign == "-" else offset


def _apply_gps(data: Data, gps: Dict[str, Any]) -> None:
    try:
        if "GPSLatitude" in gps and "GPSLongitude" in gps:
            data.lat = _dms_to_decimal(gps["GPSLatitude"], _text(gps.get("GPSLatitudeRef")))
            data.lng = _dms_to_decimal(gps["GPSLongitude"], _text(gps.get("GPSLongitudeRef")))

        if "GPSAltitude" in gps:
            altitude = _float(gps["GPSAltitude"])
            # Altitude reference 1 means below sea level
            if _int(gps.get("GPSAltitudeRef")) == 1:
                altitude = -altitude
            data.altitude = int(round(altitude))
    except (TypeError, ValueError) as e:
        logger.warning(f"Failed to parse GPS coordinates: {e}")


def _dms_to_decimal(dms, ref: str) -> float:
    """Convert degrees, minutes, seconds to decimal degrees."""
    degrees, minutes, seconds = (_float(v) for v in dms)
    decimal = degrees + minutes / 60 + seconds / 3600

    if ref in ['S', 'W']:
        decimal = -decimal

    return decimal


def _exposure(value) -> str:
    """Format an exposure time like a camera display does, e.g. "1/125"."""
    seconds = _float(value)
    if seconds <= 0:
        return ""
    if seconds < 1:
        return f"1/{int(round(1 / seconds))}"
    if seconds == int(seconds):
        return str(int(seconds))
    return f"{seconds:g}"


def _user_comment(value) -> str:
    """Decode a UserComment, which starts with an 8 byte charset header."""
    if isinstance(value, bytes):
        header, body = value[:8], value[8:]
        if header.startswith(b"UNICODE"):
            return body.decode("utf-16", errors="ignore").strip("\x00 ")
        if header.startswith(b"ASCII") or header == b"\x00" * 8:
            return body.decode("ascii", errors="ignore").strip("\x00 ")
    return _text(value)


def _xp_text(value) -> str:
    """Decode Windows XP* tags, stored as UTF-16LE bytes."""
    if value is None:
        return ""
    if isinstance(value, (tuple, list)):
        value = bytes(value)
    if isinstance(value, bytes):
        return value.decode("utf-16-le", errors="ignore").strip("\x00 ")
    return str(value).strip()


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    return str(value).strip("\x00 ").strip()


def _float(value) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (tuple, list)):
        value = value[0] if value else 0
    try:
        result = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return 0.0
    return 0.0 if math.isnan(result) or math.isinf(result) else result


def _int(value) -> int:
    return int(_float(value))


def _stringify(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="ignore").strip("\x00")
    return str(value)
