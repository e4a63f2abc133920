from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from numbers import Real

from .errors import EncodingError, InvalidInput, UnsupportedMethod


class ThresholdMethod(str, Enum):
    BINARY = "binary"
    OTSU_APPROX = "otsu"
    ADAPTIVE_APPROX = "adaptive"

    @classmethod
    def parse(cls, value: ThresholdMethod | str) -> ThresholdMethod:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedMethod(f"unsupported thresholding method: {value!r}") from None


class ImageFormat(str, Enum):
    """Output container; the value doubles as the file extension."""

    PNG = "png"
    JPEG = "jpg"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        return "image/jpeg" if self is ImageFormat.JPEG else f"image/{self.value}"

    @classmethod
    def parse(cls, value: ImageFormat | str) -> ImageFormat:
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower().lstrip(".")
        if name == "jpeg":
            name = "jpg"
        try:
            return cls(name)
        except ValueError:
            raise EncodingError(f"unsupported image format: {value!r}") from None


def clamp_threshold(value) -> int:
    """Clamp a threshold to the 8-bit range [0, 255]."""
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise InvalidInput(f"threshold must be a finite number, got {value!r}")
    return min(255, max(0, int(value)))


@dataclass
class ProcessingParams:
    """Centralized defaults for thresholding and export.

    Extend as needed; the CLI binds its defaults to these values.
    """

    # thresholding
    threshold: int = 127
    method: str = "binary"
    adaptive_scale: float = 0.8  # AdaptiveApprox cutoff = threshold * scale

    # export
    output_format: str = "png"
    jpeg_quality: int = 92
    webp_quality: int = 92
    download_stem: str = "thresholded-image"


# A single shared default instance for simple use-cases
default_params = ProcessingParams()


@dataclass(frozen=True)
class ThresholdConfig:
    """What the caller asks the engine to do.

    ``threshold`` is clamped to [0, 255] on construction and ``method`` is
    normalised to a :class:`ThresholdMethod`. ``preserve_border`` only matters
    for the adaptive method: when set, the one-pixel image border is copied
    through untouched.
    """

    method: ThresholdMethod = ThresholdMethod.BINARY
    threshold: int = default_params.threshold
    preserve_border: bool = True

    def __post_init__(self):
        object.__setattr__(self, "method", ThresholdMethod.parse(self.method))
        object.__setattr__(self, "threshold", clamp_threshold(self.threshold))

    @classmethod
    def from_params(cls, params: ProcessingParams = default_params, preserve_border: bool = True) -> ThresholdConfig:
        return cls(method=params.method, threshold=params.threshold, preserve_border=preserve_border)
