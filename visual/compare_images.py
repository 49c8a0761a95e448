"""
Image Comparison Module
Compares PNG screenshots using OpenCV and NumPy and generates visual diffs.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import cv2
import numpy as np
from PIL import Image

from core.errors import ImageDecodeError

logger = logging.getLogger(__name__)

# Per-channel and brightness tolerances (0-255)
DEFAULT_TOLERANCE = {
    'red': 16, 'green': 16, 'blue': 16, 'alpha': 16,
    'min_brightness': 16, 'max_brightness': 240,
}
ANTIALIASING_TOLERANCE = {
    'red': 32, 'green': 32, 'blue': 32, 'alpha': 32,
    'min_brightness': 64, 'max_brightness': 96,
}

MISMATCH_COLOR = (255, 0, 255)
DIFF_FADE = 0.1


@dataclass
class DiffResult:
    """Outcome of one comparison. The diff image is built on demand."""
    mismatch_percentage: float
    _base: np.ndarray
    _mismatch_mask: np.ndarray
    _diff_image: Optional[Image.Image] = None

    def get_diff_image(self) -> Image.Image:
        """Return an RGB image with differing pixels highlighted."""
        if self._diff_image is None:
            # Fade the candidate towards white so highlights stand out
            faded = 255.0 - (255.0 - self._base) * DIFF_FADE
            canvas = np.repeat(faded[:, :, None], 3, axis=2).astype(np.uint8)
            canvas[self._mismatch_mask] = MISMATCH_COLOR
            self._diff_image = Image.fromarray(canvas)
        return self._diff_image


class ImageComparator:
    def __init__(self, tolerance: Optional[Dict[str, int]] = None,
                 antialiasing_tolerance: Optional[Dict[str, int]] = None):
        self.tolerance = dict(tolerance or DEFAULT_TOLERANCE)
        self.antialiasing_tolerance = dict(antialiasing_tolerance or ANTIALIASING_TOLERANCE)

    def decode(self, data: bytes) -> np.ndarray:
        """Decode PNG (or any OpenCV-readable) bytes into an RGBA uint8 array."""
        if not data:
            raise ImageDecodeError("Image data is empty")
        try:
            image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        except cv2.error as e:
            raise ImageDecodeError(f"Could not decode image: {e}") from e
        if image is None:
            raise ImageDecodeError("Could not decode image data")

        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)
        if image.ndim == 2:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
        if image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)

    def compare(self, candidate: bytes, reference: bytes,
                ignore_antialiasing: bool = True) -> DiffResult:
        """
        Compare a candidate image against a reference.

        Args:
            candidate: Encoded candidate image bytes
            reference: Encoded reference image bytes
            ignore_antialiasing: Use the looser tolerance and skip pixels
                that look like anti-aliased edges in either image

        Returns:
            DiffResult with the mismatch percentage rounded to two decimals

        Raises:
            ImageDecodeError: If either input can't be decoded
        """
        first = self.decode(candidate)
        second = self.decode(reference)
        tolerance = self.antialiasing_tolerance if ignore_antialiasing else self.tolerance

        height = max(first.shape[0], second.shape[0])
        width = max(first.shape[1], second.shape[1])
        overlap = np.zeros((height, width), dtype=bool)
        overlap[:min(first.shape[0], second.shape[0]), :min(first.shape[1], second.shape[1])] = True

        a = self._pad(first, height, width).astype(np.int16)
        b = self._pad(second, height, width).astype(np.int16)

        limits = np.array([tolerance['red'], tolerance['green'],
                           tolerance['blue'], tolerance['alpha']], dtype=np.int16)
        similar = np.all(np.abs(a - b) <= limits, axis=2)

        brightness_a = self._brightness(a)
        brightness_b = self._brightness(b)
        mismatch = ~similar
        if ignore_antialiasing:
            antialiased = (self._antialiased(brightness_a, tolerance['max_brightness'])
                           | self._antialiased(brightness_b, tolerance['max_brightness']))
            close = np.abs(brightness_a - brightness_b) < tolerance['min_brightness']
            mismatch &= ~(antialiased & close)
        # Pixels outside the shared area always count as different
        mismatch |= ~overlap

        total = height * width
        percentage = round(float(mismatch.sum()) / total * 100, 2) if total else 0.0
        logger.debug(f"Compared {first.shape[1]}x{first.shape[0]} against "
                     f"{second.shape[1]}x{second.shape[0]}: {percentage}% mismatch")

        return DiffResult(
            mismatch_percentage=percentage,
            _base=brightness_a,
            _mismatch_mask=mismatch,
        )

    @staticmethod
    def _pad(image: np.ndarray, height: int, width: int) -> np.ndarray:
        if image.shape[:2] == (height, width):
            return image
        padded = np.zeros((height, width, 4), dtype=image.dtype)
        padded[:image.shape[0], :image.shape[1]] = image
        return padded

    @staticmethod
    def _brightness(image: np.ndarray) -> np.ndarray:
        return 0.3 * image[:, :, 0] + 0.59 * image[:, :, 1] + 0.11 * image[:, :, 2]

    @staticmethod
    def _antialiased(brightness: np.ndarray, max_brightness: int) -> np.ndarray:
        """Mark pixels with more than one high-contrast neighbour."""
        height, width = brightness.shape
        padded = np.pad(brightness, 1, mode='edge')
        high_contrast = np.zeros((height, width), dtype=np.int8)
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dy == 0 and dx == 0:
                    continue
                neighbour = padded[1 + dy:1 + dy + height, 1 + dx:1 + dx + width]
                high_contrast += np.abs(brightness - neighbour) > max_brightness
        return high_contrast > 1
