"""Grayscale conversion and detection variants."""

import dataclasses
import logging
from typing import List, Tuple

import cv2
import numpy as np

log = logging.getLogger(__name__)

Variant = Tuple[str, np.ndarray]


@dataclasses.dataclass(frozen=True)
class PrepareOptions:
    max_dimension: int = 2000
    adaptive_min_side: int = 100
    adaptive_max_pixels: int = 10_000_000


def downscale(rgb: np.ndarray, max_dimension: int) -> np.ndarray:
    """Shrinks the image so its longer side is at most ``max_dimension``."""
    height, width = rgb.shape[:2]
    longest = max(width, height)
    if max_dimension <= 0 or longest <= max_dimension:
        return rgb
    scale = max_dimension / longest
    new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
    log.debug("Resizing large image (%dx%d) by %.2fx", width, height, scale)
    return cv2.resize(rgb, new_size, interpolation=cv2.INTER_AREA)


def to_grayscale(rgb: np.ndarray, max_dimension: int = 2000) -> np.ndarray:
    working = downscale(rgb, max_dimension)
    if working.ndim == 2:
        return np.ascontiguousarray(working)
    return cv2.cvtColor(working, cv2.COLOR_RGB2GRAY)


def enhance_contrast(gray: np.ndarray) -> np.ndarray:
    """Stretches intensities to the full 0-255 range."""
    lo = int(gray.min())
    hi = int(gray.max())
    log.debug("Contrast stretch: min=%d, max=%d", lo, hi)
    if lo >= hi:
        return gray.copy()
    stretched = (gray.astype(np.float32) - lo) * (255.0 / (hi - lo))
    return np.clip(stretched, 0, 255).astype(np.uint8)


def otsu_binarization(gray: np.ndarray) -> np.ndarray:
    level, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    log.debug("Otsu threshold level: %s", level)
    return binary


def invert(gray: np.ndarray) -> np.ndarray:
    """For light codes on dark backgrounds."""
    return 255 - gray


def adaptive_block_size(width: int, height: int) -> int:
    radius = min(max(min(width, height) // 50, 5), 50)
    return 2 * radius + 1


def adaptive_threshold(gray: np.ndarray) -> np.ndarray:
    height, width = gray.shape[:2]
    block_size = adaptive_block_size(width, height)
    log.debug("Using adaptive threshold with block size: %d", block_size)
    return cv2.adaptiveThreshold(
        gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, block_size, 2
    )


def generate_variants(gray: np.ndarray, options: PrepareOptions = PrepareOptions()) -> List[Variant]:
    """Builds the ordered list of images handed to the detector.

    The plain grayscale image always comes first so clean inputs are found
    without touching the more expensive renditions.
    """
    enhanced = enhance_contrast(gray)
    variants: List[Variant] = [
        ("original", gray),
        ("contrast_enhanced", enhanced),
        ("otsu", otsu_binarization(enhanced)),
        ("inverted", invert(enhanced)),
    ]

    height, width = gray.shape[:2]
    pixel_count = width * height
    if (width > options.adaptive_min_side and height > options.adaptive_min_side
            and pixel_count < options.adaptive_max_pixels):
        variants.append(("adaptive", adaptive_threshold(enhanced)))
    elif pixel_count >= options.adaptive_max_pixels:
        log.debug("Skipping adaptive threshold for large image (%dx%d = %d pixels)",
                  width, height, pixel_count)
    return variants
