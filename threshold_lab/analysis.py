"""
Intensity statistics of a pixel buffer: histogram, mean and the true Otsu
threshold, for comparing against the cutoffs the thresholding methods use.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from skimage.filters import threshold_otsu

from .buffers import PixelBuffer
from .thresholding import to_intensity, validate_buffer


@dataclass(frozen=True)
class IntensityStats:
    mean: float             # cutoff used by the "otsu" method
    otsu: float             # variance-maximising threshold (reference only)
    histogram: np.ndarray   # 256 bins over rounded intensity
    intensity: np.ndarray

    def white_fraction(self, cutoff: float) -> float:
        """Share of pixels a binary pass at ``cutoff`` would turn white."""
        return float(np.count_nonzero(self.intensity > cutoff)) / self.intensity.size


def intensity_histogram(intensity: np.ndarray) -> np.ndarray:
    levels = np.clip(np.rint(intensity), 0, 255).astype(np.uint8)
    return np.bincount(levels.ravel(), minlength=256)


def intensity_stats(buffer: PixelBuffer) -> IntensityStats:
    """Compute intensity statistics of an RGB(A) buffer.

    Args:
        buffer (PixelBuffer): decoded image

    Returns:
        IntensityStats: mean, true Otsu threshold and 256-bin histogram
    """
    validate_buffer(buffer)
    intensity = to_intensity(buffer.pixels)
    mean = float(intensity.mean())
    # threshold_otsu needs at least two distinct values
    if np.ptp(intensity) == 0:
        otsu = mean
    else:
        otsu = float(threshold_otsu(intensity))
    return IntensityStats(mean, otsu, intensity_histogram(intensity), intensity)
