"""Image loading: PyTurboJPEG for JPEG data, Pillow for everything else."""

import logging
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from qrbench.errors import LoadFailure

log = logging.getLogger(__name__)

# Attempt to import PyTurboJPEG

try:
    from turbojpeg import TurboJPEG, TJPF_RGB
except ImportError:
    jpeg_decoder = None
    TURBO_AVAILABLE = False
    log.info("PyTurboJPEG not found. Falling back to Pillow for JPEG decoding.")
else:
    try:
        jpeg_decoder = TurboJPEG()
    except Exception:
        jpeg_decoder = None
        TURBO_AVAILABLE = False
        log.info("PyTurboJPEG initialization failed. Falling back to Pillow.", exc_info=True)
    else:
        TURBO_AVAILABLE = True
        log.info("PyTurboJPEG is available. Using it for JPEG decoding.")


def is_jpeg(data: bytes) -> bool:
    return data.startswith(b"\xFF\xD8\xFF")


def decode_jpeg_rgb(jpeg_bytes: bytes) -> Optional[np.ndarray]:
    """Decodes JPEG bytes with PyTurboJPEG, returning None if unavailable or failed."""
    if not (TURBO_AVAILABLE and jpeg_decoder):
        return None
    try:
        # No TJFLAG_FASTDCT: proper YCbCr->RGB conversion
        return jpeg_decoder.decode(jpeg_bytes, pixel_format=TJPF_RGB, flags=0)
    except Exception as e:
        log.debug("PyTurboJPEG failed to decode image: %s. Trying Pillow.", e)
        return None


def decode_pillow_rgb(data: bytes) -> np.ndarray:
    """Decodes any Pillow-supported format into an RGB array.

    Multi-frame images (GIF, TIFF) contribute their first frame only.
    """
    with Image.open(BytesIO(data)) as img:
        img.seek(0)
        return np.array(img.convert("RGB"))


def decode_image(data: bytes) -> np.ndarray:
    """Decodes encoded image bytes into an H x W x 3 uint8 array."""
    if is_jpeg(data):
        decoded = decode_jpeg_rgb(data)
        if decoded is not None:
            return decoded
    return decode_pillow_rgb(data)


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Reads and decodes an image file.

    Raises:
        LoadFailure: the file could not be read or is not a decodable image.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise LoadFailure(f"Failed to read file: {path}: {e}") from e

    try:
        pixels = decode_image(data)
    except Exception as e:  # noqa: BLE001 - Pillow raises a wide range of types for corrupt data
        raise LoadFailure(f"Failed to decode image: {path}: {e}") from e

    if pixels.size == 0:
        raise LoadFailure(f"Failed to decode image: {path}: empty pixel buffer")
    log.debug("Loaded %s (%dx%d)", path, pixels.shape[1], pixels.shape[0])
    return pixels
