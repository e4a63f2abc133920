from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .config import ImageFormat, default_params


@dataclass(frozen=True)
class PixelBuffer:
    """
    Decoded raster: pixels of shape (H, W, 3) or (H, W, 4), dtype uint8,
    RGB(A) channel order. No codec logic in here.
    """
    pixels: np.ndarray

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0]) if self.pixels.ndim >= 1 else 0

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1]) if self.pixels.ndim >= 2 else 0

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2]) if self.pixels.ndim == 3 else 1

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4


@dataclass(frozen=True)
class EncodedImage:
    """Encoded bytes ready to be written under ``filename``."""
    data: bytes
    format: ImageFormat
    stem: str = default_params.download_stem

    @property
    def extension(self) -> str:
        return self.format.value

    @property
    def mime_type(self) -> str:
        return self.format.mime_type

    @property
    def filename(self) -> str:
        return f"{self.stem}.{self.extension}"

    def __len__(self) -> int:
        return len(self.data)
