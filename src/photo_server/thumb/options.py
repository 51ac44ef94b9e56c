"""Resampling filters, rendering options and process-wide thumbnail parameters."""

from enum import Enum

from PIL import Image


class ResampleFilter(str, Enum):
    """Interpolation filter used when scaling images down."""

    BLACKMAN = "blackman"
    LANCZOS = "lanczos"
    CUBIC = "cubic"
    LINEAR = "linear"

    def pillow(self) -> int:
        """Matching Pillow resampling constant.

        Pillow has no Blackman window; Hamming is the closest windowed filter.
        """
        return {
            ResampleFilter.BLACKMAN: Image.Resampling.HAMMING,
            ResampleFilter.LANCZOS: Image.Resampling.LANCZOS,
            ResampleFilter.CUBIC: Image.Resampling.BICUBIC,
            ResampleFilter.LINEAR: Image.Resampling.BILINEAR,
        }[self]


class ResampleOption(str, Enum):
    """How a thumbnail is cut from its source image."""

    FILL_CENTER = "center"
    FILL_TOP_LEFT = "left"
    FILL_BOTTOM_RIGHT = "right"
    FIT = "fit"
    RESIZE = "resize"
    NEAREST_NEIGHBOR = "nearest"
    DEFAULT = "default"
    PNG = "png"


# Set by Config.propagate()
jpeg_quality: int = 95
pre_render_size: int = 3840
max_render_size: int = 3840
resample_filter: ResampleFilter = ResampleFilter.LANCZOS


def configure(
    quality: int = None,
    pre_render: int = None,
    max_render: int = None,
    filter: ResampleFilter = None,
) -> None:
    """Update the rendering parameters used by all thumbnail functions."""
    global jpeg_quality, pre_render_size, max_render_size, resample_filter

    if quality is not None:
        jpeg_quality = quality
    if pre_render is not None:
        pre_render_size = pre_render
    if max_render is not None:
        max_render_size = max_render
    if filter is not None:
        resample_filter = ResampleFilter(filter)
