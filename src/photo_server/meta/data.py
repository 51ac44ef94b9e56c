"""Image metadata record."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


class MetaDataError(ValueError):
    """Metadata could not be read from a file."""


@dataclass
class Data:
    """Metadata of a single image."""

    unique_id: str = ""
    taken_at: Optional[datetime] = None
    taken_at_local: Optional[datetime] = None
    time_zone: str = ""
    title: str = ""
    subject: str = ""
    keywords: str = ""
    comment: str = ""
    artist: str = ""
    description: str = ""
    copyright: str = ""
    camera_make: str = ""
    camera_model: str = ""
    camera_owner: str = ""
    camera_serial: str = ""
    lens_make: str = ""
    lens_model: str = ""
    flash: bool = False
    focal_length: int = 0
    exposure: str = ""
    aperture: float = 0.0
    f_number: float = 0.0
    iso: int = 0
    lat: float = 0.0
    lng: float = 0.0
    altitude: int = 0
    width: int = 0
    height: int = 0
    orientation: int = 1
    all: Dict[str, str] = field(default_factory=dict)

    def has_location(self) -> bool:
        return self.lat != 0.0 or self.lng != 0.0

    def portrait(self) -> bool:
        """True if the image is taller than wide once orientation is applied."""
        # Orientations 5-8 swap width and height
        if self.orientation in (5, 6, 7, 8):
            return self.width > self.height
        return self.height > self.width
