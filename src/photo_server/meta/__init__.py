"""Image metadata."""

from .data import Data, MetaDataError
from .exif import from_exif

__all__ = [
    'Data',
    'MetaDataError',
    'from_exif',
]
