"""Error types raised by the thresholding engine and the image codecs."""


class ThresholdError(ValueError):
    """Base class for every error this package raises on bad input."""


class InvalidInput(ThresholdError):
    """Pixel buffer is empty, has non-positive dimensions or a bad layout."""


class UnsupportedMethod(ThresholdError):
    """Thresholding method outside binary/otsu/adaptive."""


class DecodeError(ThresholdError):
    """Image bytes could not be decoded into a pixel buffer."""


class EncodingError(ThresholdError):
    """Pixel buffer could not be encoded into the requested format."""
