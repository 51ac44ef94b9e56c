"""Thumbnail file naming and rendering."""

from pathlib import Path
from typing import Tuple, Union

from PIL import Image, ImageOps

from ..core.logger import get_logger
from . import options as thumb_options
from .options import ResampleOption
from .types import TYPES

logger = get_logger(__name__)

_METHODS = (
    ResampleOption.FIT,
    ResampleOption.FILL_CENTER,
    ResampleOption.FILL_TOP_LEFT,
    ResampleOption.FILL_BOTTOM_RIGHT,
    ResampleOption.RESIZE,
)

_CENTERING = {
    ResampleOption.FILL_CENTER: (0.5, 0.5),
    ResampleOption.FILL_TOP_LEFT: (0.0, 0.0),
    ResampleOption.FILL_BOTTOM_RIGHT: (1.0, 1.0),
}


def resample_options(*opts: ResampleOption) -> Tuple[ResampleOption, int, str]:
    """Split options into (method, Pillow filter, file extension)."""
    method = ResampleOption.FIT
    resample = thumb_options.resample_filter.pillow()
    ext = "jpg"

    for opt in opts:
        if opt in _METHODS:
            method = opt
        elif opt == ResampleOption.NEAREST_NEIGHBOR:
            resample = Image.Resampling.NEAREST
        elif opt == ResampleOption.PNG:
            ext = "png"

    return method, resample, ext


def filename(
    file_hash: str,
    thumb_path: Union[str, Path],
    width: int,
    height: int,
    *opts: ResampleOption,
) -> Path:
    """Cache file name of a thumbnail.

    Thumbnails are spread over three directory levels taken from the first
    characters of the file hash.
    """
    if width < 0 or width > thumb_options.max_render_size:
        raise ValueError(f"Thumbnail width exceeds limit ({width})")
    if height < 0 or height > thumb_options.max_render_size:
        raise ValueError(f"Thumbnail height exceeds limit ({height})")
    if not file_hash or len(file_hash) < 4:
        raise ValueError(f"File hash is empty or too short ({file_hash!r})")
    if not thumb_path:
        raise ValueError("Thumbnail path is empty")

    method, _, ext = resample_options(*opts)
    folder = Path(thumb_path) / file_hash[0] / file_hash[1] / file_hash[2]

    return folder / f"{file_hash}_{width}x{height}_{method.value}.{ext}"


def create(img: Image.Image, width: int, height: int, *opts: ResampleOption) -> Image.Image:
    """Return a resized copy of an image."""
    method, resample, _ = resample_options(*opts)

    if method == ResampleOption.FIT:
        result = img.copy()
        result.thumbnail((width, height), resample)
        return result

    if method == ResampleOption.RESIZE:
        return img.resize((width, height), resample)

    return ImageOps.fit(img, (width, height), method=resample, centering=_CENTERING[method])


def from_file(
    image_path: Union[str, Path],
    file_hash: str,
    thumb_path: Union[str, Path],
    width: int,
    height: int,
    *opts: ResampleOption,
) -> Path:
    """Render a thumbnail of an image file, reusing an existing one."""
    path = Path(image_path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    output_path = filename(file_hash, thumb_path, width, height, *opts)

    if output_path.exists():
        return output_path

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with Image.open(path) as img:
        # Apply EXIF orientation
        img = ImageOps.exif_transpose(img)

        if img.mode not in ('RGB', 'L'):
            img = _flatten(img)

        thumbnail = create(img, width, height, *opts)

        if output_path.suffix == ".png":
            thumbnail.save(output_path, 'PNG')
        else:
            thumbnail.save(output_path, 'JPEG', quality=thumb_options.jpeg_quality, optimize=True)

    logger.debug(f"Created thumbnail: {output_path}")
    return output_path


def from_type(
    image_path: Union[str, Path],
    file_hash: str,
    thumb_path: Union[str, Path],
    type_name: str,
) -> Path:
    """Render a named thumbnail type."""
    try:
        thumb_type = TYPES[type_name]
    except KeyError:
        raise ValueError(f"Unknown thumbnail type: {type_name}") from None

    return from_file(
        image_path, file_hash, thumb_path, thumb_type.width, thumb_type.height, *thumb_type.options
    )


def _flatten(img: Image.Image) -> Image.Image:
    """Convert to RGB, painting transparency on white."""
    if img.mode == 'P':
        img = img.convert('RGBA')

    if img.mode in ('RGBA', 'LA'):
        background = Image.new('RGB', img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background

    return img.convert('RGB')
