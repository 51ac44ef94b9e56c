"""Utility modules."""

from .file_utils import FileUtils, calculate_file_hash

__all__ = [
    'FileUtils',
    'calculate_file_hash',
]
