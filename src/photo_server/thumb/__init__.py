"""Thumbnail types and rendering."""

from .options import ResampleFilter, ResampleOption, configure
from .render import create, filename, from_file, from_type
from .types import THUMBNAILS, TYPES, Thumbnail, ThumbType

__all__ = [
    'ResampleFilter',
    'ResampleOption',
    'configure',
    'create',
    'filename',
    'from_file',
    'from_type',
    'THUMBNAILS',
    'TYPES',
    'Thumbnail',
    'ThumbType',
]
