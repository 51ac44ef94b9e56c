"""Named thumbnail types."""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from . import options as thumb_options
from .options import ResampleOption


@dataclass(frozen=True)
class ThumbType:
    """Size and rendering options of a named thumbnail.

    ``source`` names a larger type the thumbnail can be derived from, an empty
    string means it is rendered from the original.
    """

    source: str
    width: int
    height: int
    public: bool
    options: Tuple[ResampleOption, ...] = field(default_factory=tuple)

    def exceeds_limit(self) -> bool:
        """True if the type is larger than on-demand rendering allows."""
        return self.width > thumb_options.max_render_size or self.height > thumb_options.max_render_size

    def skip_pre_render(self) -> bool:
        """True if the type is not rendered ahead of time."""
        return self.width > thumb_options.pre_render_size or self.height > thumb_options.pre_render_size


@dataclass(frozen=True)
class Thumbnail:
    """Public thumbnail type as reported to clients."""

    name: str
    width: int
    height: int


_FILL_CENTER = (ResampleOption.FILL_CENTER, ResampleOption.DEFAULT)
_FIT = (ResampleOption.FIT, ResampleOption.DEFAULT)

TYPES: Dict[str, ThumbType] = {
    "tile_50": ThumbType("tile_500", 50, 50, False, _FILL_CENTER),
    "tile_100": ThumbType("tile_500", 100, 100, True, _FILL_CENTER),
    "tile_224": ThumbType("tile_500", 224, 224, False, _FILL_CENTER),
    "tile_500": ThumbType("", 500, 500, True, _FILL_CENTER),
    "colors": ThumbType(
        "fit_720", 3, 3, False,
        (ResampleOption.RESIZE, ResampleOption.NEAREST_NEIGHBOR, ResampleOption.PNG),
    ),
    "left_224": ThumbType("fit_720", 224, 224, False, (ResampleOption.FILL_TOP_LEFT, ResampleOption.DEFAULT)),
    "right_224": ThumbType("fit_720", 224, 224, False, (ResampleOption.FILL_BOTTOM_RIGHT, ResampleOption.DEFAULT)),
    "fit_720": ThumbType("", 720, 720, True, _FIT),
    "fit_1280": ThumbType("fit_2048", 1280, 1280, True, _FIT),
    "fit_1920": ThumbType("fit_2048", 1920, 1920, True, _FIT),
    "fit_2048": ThumbType("", 2048, 2048, True, _FIT),
    "fit_2560": ThumbType("", 2560, 2560, True, _FIT),
    "fit_3840": ThumbType("", 3840, 3840, True, _FIT),
}


def public_thumbnails() -> List[Thumbnail]:
    """Public thumbnail types, smallest first."""
    thumbnails = [
        Thumbnail(name=name, width=t.width, height=t.height)
        for name, t in TYPES.items() if t.public
    ]
    return sorted(thumbnails, key=lambda t: (t.width, t.height, t.name))


THUMBNAILS: List[Thumbnail] = public_thumbnails()
