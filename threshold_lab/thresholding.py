"""Global thresholding of RGB(A) pixel buffers into black/white images.

Three methods are offered, all driven by the per-pixel intensity
``(R + G + B) / 3``:

* ``binary``   - fixed cutoff taken from the config.
* ``otsu``     - cutoff is the mean intensity of the whole image. This is a
  cheap stand-in for Otsu's method, not the variance-maximising search.
* ``adaptive`` - cutoff is ``threshold * adaptive_scale`` (0.8 by default) for
  every pixel. Despite the name nothing varies locally; the one-pixel border
  is left as it was.

The input buffer is only read. Results are written into a fresh array.
"""

from __future__ import annotations

import logging

import cv2
import numpy as np

from .buffers import PixelBuffer
from .config import ProcessingParams, ThresholdConfig, ThresholdMethod, clamp_threshold, default_params
from .errors import InvalidInput, UnsupportedMethod

logger = logging.getLogger(__name__)


def validate_buffer(buffer: PixelBuffer) -> None:
    """Raise :class:`InvalidInput` unless ``buffer`` is a non-empty RGB/RGBA uint8 image."""
    if not isinstance(buffer, PixelBuffer):
        raise InvalidInput(f"expected PixelBuffer, got {type(buffer).__name__}")
    pixels = buffer.pixels
    if not isinstance(pixels, np.ndarray):
        raise InvalidInput("pixel data must be a numpy array")
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise InvalidInput(f"expected (H, W, 3) or (H, W, 4) pixels, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise InvalidInput(f"expected uint8 pixels, got {pixels.dtype}")
    if buffer.width < 1 or buffer.height < 1:
        raise InvalidInput(f"image must be at least 1x1, got {buffer.width}x{buffer.height}")


def to_intensity(pixels: np.ndarray) -> np.ndarray:
    """Mean of the R, G and B channels as float64, shape (H, W). Alpha is ignored."""
    return pixels[..., :3].sum(axis=2, dtype=np.float64) / 3.0


def binarize(pixels: np.ndarray, cutoff: float) -> np.ndarray:
    """Map each pixel to 255 if its intensity is strictly above ``cutoff``, else 0.

    Args:
        pixels (numpy.ndarray): RGB or RGBA pixels, shape (H, W, C)
        cutoff (float): intensity cutoff, may be fractional

    Returns:
        numpy.ndarray: uint8 mask of shape (H, W) holding only 0 and 255
    """
    intensity = to_intensity(pixels)
    _, binary = cv2.threshold(intensity, float(cutoff), 255, cv2.THRESH_BINARY)
    return binary.astype(np.uint8)


def effective_threshold(
    buffer: PixelBuffer,
    config: ThresholdConfig,
    params: ProcessingParams = default_params,
) -> float:
    """Scalar cutoff the configured method compares intensities against."""
    method = ThresholdMethod.parse(config.method)
    threshold = clamp_threshold(config.threshold)
    if method is ThresholdMethod.BINARY:
        return float(threshold)
    if method is ThresholdMethod.OTSU_APPROX:
        validate_buffer(buffer)
        return float(to_intensity(buffer.pixels).mean())
    if method is ThresholdMethod.ADAPTIVE_APPROX:
        return threshold * params.adaptive_scale
    raise UnsupportedMethod(f"unsupported thresholding method: {method!r}")


def apply_threshold(
    buffer: PixelBuffer,
    config: ThresholdConfig,
    params: ProcessingParams = default_params,
) -> PixelBuffer:
    """Threshold ``buffer`` into a black/white image.

    Colour channels of every processed pixel become 0 or 255. Alpha, when
    present, is copied unchanged. For the adaptive method with
    ``preserve_border`` set, the outermost row/column on each side keeps
    its input colour; images without interior pixels (width or height
    below 3) come back as an unchanged copy.

    Args:
        buffer (PixelBuffer): decoded RGB/RGBA image, never modified
        config (ThresholdConfig): method, threshold and border handling
        params (ProcessingParams): supplies the adaptive scale factor

    Returns:
        PixelBuffer: new buffer of the same shape

    Raises:
        InvalidInput: empty or malformed buffer
        UnsupportedMethod: method outside the supported set
    """
    validate_buffer(buffer)
    method = ThresholdMethod.parse(config.method)
    cutoff = effective_threshold(buffer, config, params)
    src = buffer.pixels
    out = src.copy()
    logger.debug("thresholding %dx%d image: method=%s cutoff=%.3f",
                 buffer.width, buffer.height, method.value, cutoff)

    if method is ThresholdMethod.ADAPTIVE_APPROX and config.preserve_border:
        if buffer.width < 3 or buffer.height < 3:
            logger.debug("image has no interior pixels, returning it unchanged")
            return PixelBuffer(out)
        out[1:-1, 1:-1, :3] = binarize(src[1:-1, 1:-1], cutoff)[..., np.newaxis]
    else:
        out[..., :3] = binarize(src, cutoff)[..., np.newaxis]
    return PixelBuffer(out)
