"""File system utilities."""

import hashlib
from pathlib import Path
from typing import Iterator, Union

from ..core.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_IMAGE_FORMATS = {
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.tiff', '.tif', '.webp',
}


class FileUtils:
    """File system operations and utilities."""

    @staticmethod
    def calculate_file_hash(file_path: Union[str, Path], algorithm: str = 'sha1') -> str:
        """Calculate hash of file contents."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        hash_func = hashlib.new(algorithm.lower())

        with path.open('rb') as f:
            for chunk in iter(lambda: f.read(65536), b""):
                hash_func.update(chunk)

        return hash_func.hexdigest()

    @staticmethod
    def is_supported_image(file_path: Union[str, Path]) -> bool:
        """Check if file is an image format thumbnails can be rendered from."""
        return Path(file_path).suffix.lower() in SUPPORTED_IMAGE_FORMATS

    @staticmethod
    def find_images(root: Union[str, Path]) -> Iterator[Path]:
        """Yield supported images below a directory, skipping hidden entries."""
        root_path = Path(root)

        if not root_path.is_dir():
            logger.warning(f"Not a directory: {root_path}")
            return

        for path in sorted(root_path.rglob("*")):
            relative = path.relative_to(root_path)
            if any(part.startswith('.') for part in relative.parts):
                continue
            if path.is_file() and FileUtils.is_supported_image(path):
                yield path


calculate_file_hash = FileUtils.calculate_file_hash
