from __future__ import annotations

import logging

from .buffers import EncodedImage
from .config import ImageFormat, ProcessingParams, ThresholdConfig, default_params
from .thresholding import apply_threshold
from .utils import decode_image, encode_image

logger = logging.getLogger(__name__)


def process_image(
    data: bytes,
    config: ThresholdConfig,
    fmt: ImageFormat | str = default_params.output_format,
    params: ProcessingParams = default_params,
) -> EncodedImage:
    """Decode uploaded bytes, threshold them and encode the result.

    Errors from each stage (DecodeError, InvalidInput, UnsupportedMethod,
    EncodingError) propagate unchanged.
    """
    fmt = ImageFormat.parse(fmt)
    buffer = decode_image(data)
    processed = apply_threshold(buffer, config, params)
    encoded = encode_image(processed, fmt, params)
    logger.debug("processed image -> %s (%d bytes)", encoded.filename, len(encoded))
    return encoded
