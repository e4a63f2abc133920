from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from .buffers import EncodedImage, PixelBuffer
from .config import ImageFormat, ProcessingParams, default_params
from .errors import DecodeError, EncodingError

logger = logging.getLogger(__name__)


def _to_uint8(arr: np.ndarray) -> np.ndarray:
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype == np.uint16:
        return (arr >> 8).astype(np.uint8)
    arr = arr.astype(np.float32)
    if arr.max() <= 1.0:
        arr = arr * 255.0
    return np.clip(arr, 0, 255).astype(np.uint8)


def decode_image(data: bytes) -> PixelBuffer:
    """Decode PNG/JPEG/WebP/... bytes into a read-only RGB(A) buffer.

    - Grayscale becomes RGB, grayscale+alpha becomes RGBA
    - 16-bit and float samples are reduced to uint8
    """
    if not data:
        raise DecodeError("no image data")
    raw = np.frombuffer(bytes(data), dtype=np.uint8)
    try:
        img = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeError(f"failed to decode image: {e}") from e
    if img is None or img.size == 0:
        raise DecodeError("unrecognised or corrupt image data")

    img = _to_uint8(img)
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    elif img.shape[2] == 2:
        gray, alpha = img[..., 0], img[..., 1]
        img = np.dstack([gray, gray, gray, alpha])
    elif img.shape[2] == 3:
        img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    elif img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    else:
        raise DecodeError(f"unsupported channel count: {img.shape[2]}")

    img = np.ascontiguousarray(img)
    img.flags.writeable = False
    logger.debug("decoded %dx%d image with %d channels", img.shape[1], img.shape[0], img.shape[2])
    return PixelBuffer(img)


def load_image(path: str | Path) -> PixelBuffer:
    """Read and decode an image file, supporting non-ASCII paths."""
    try:
        data = np.fromfile(str(path), dtype=np.uint8)
    except OSError as e:
        raise DecodeError(f"cannot read {path}: {e}") from e
    return decode_image(data.tobytes())


def encode_image(
    buffer: PixelBuffer,
    fmt: ImageFormat | str = default_params.output_format,
    params: ProcessingParams = default_params,
) -> EncodedImage:
    """Encode an RGB(A) buffer as PNG, JPEG or WebP.

    JPEG cannot carry alpha, so the alpha channel is dropped for it.
    """
    fmt = ImageFormat.parse(fmt)
    pixels = getattr(buffer, "pixels", None)
    if (
        not isinstance(buffer, PixelBuffer)
        or not isinstance(pixels, np.ndarray)
        or pixels.dtype != np.uint8
        or pixels.ndim != 3
        or pixels.shape[2] not in (3, 4)
        or pixels.size == 0
    ):
        raise EncodingError("malformed pixel buffer")

    if buffer.has_alpha and fmt is not ImageFormat.JPEG:
        bgr = cv2.cvtColor(pixels, cv2.COLOR_RGBA2BGRA)
    elif buffer.has_alpha:
        bgr = cv2.cvtColor(pixels, cv2.COLOR_RGBA2BGR)
    else:
        bgr = cv2.cvtColor(pixels, cv2.COLOR_RGB2BGR)

    if fmt is ImageFormat.JPEG:
        flags = [cv2.IMWRITE_JPEG_QUALITY, int(params.jpeg_quality)]
    elif fmt is ImageFormat.WEBP:
        flags = [cv2.IMWRITE_WEBP_QUALITY, int(params.webp_quality)]
    else:
        flags = []

    try:
        ok, encoded = cv2.imencode(f".{fmt.value}", bgr, flags)
    except cv2.error as e:
        raise EncodingError(f"failed to encode {fmt.value}: {e}") from e
    if not ok:
        raise EncodingError(f"encoder rejected {fmt.value} output")
    logger.debug("encoded %s: %d bytes", fmt.value, encoded.size)
    return EncodedImage(encoded.tobytes(), fmt, params.download_stem)


def download_name(fmt: ImageFormat | str, params: ProcessingParams = default_params) -> str:
    """File name offered for the processed image, e.g. ``thresholded-image.png``."""
    return f"{params.download_stem}.{ImageFormat.parse(fmt).value}"


def save_image_any_path(path: str | Path, encoded: EncodedImage) -> bool:
    """Write encoded bytes to path supporting non-ASCII characters."""
    try:
        np.frombuffer(encoded.data, dtype=np.uint8).tofile(str(path))
        return True
    except OSError:
        logger.debug("failed to write %s", path, exc_info=True)
        return False

