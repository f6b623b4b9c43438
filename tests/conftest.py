import logging
import os
import tempfile

# Keep config and log files out of the user's home; must run before qrbench is imported
os.environ["QRBENCH_HOME"] = tempfile.mkdtemp(prefix="qrbench-test-")

import cv2
import numpy as np
import pytest
from PIL import Image

from qrbench.models import FileResult
from qrbench.timer import Stage, StageTiming


def make_qr_array(text: str, scale: int = 8, border: int = 4) -> np.ndarray:
    """Renders ``text`` as a clean black-on-white QR code."""
    encoder = cv2.QRCodeEncoder.create()
    qr = encoder.encode(text)
    qr = cv2.copyMakeBorder(qr, border, border, border, border, cv2.BORDER_CONSTANT, value=255)
    return cv2.resize(qr, None, fx=scale, fy=scale, interpolation=cv2.INTER_NEAREST)


def make_timings(*ms):
    return tuple(StageTiming(stage, value / 1000.0) for stage, value in zip(Stage, ms))


def make_success(path="img.png", qr_count=0, ms=(1.0, 2.0, 3.0, 4.0), payloads=(), engines=()):
    return FileResult.succeeded(
        path, make_timings(*ms), qr_count=qr_count, payloads=payloads, engines=engines
    )


def make_failure(path="bad.png", error="Failed to decode image: bad.png: truncated"):
    return FileResult.failed(path, error)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drops handlers bound to a test's captured stderr."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_qrbench_handler", False):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def blank_png(tmp_path):
    path = tmp_path / "blank.png"
    Image.new("RGB", (1, 1), "white").save(path)
    return path


@pytest.fixture
def qr_png(tmp_path):
    path = tmp_path / "test_qr.png"
    Image.fromarray(make_qr_array("TEST")).save(path)
    return path


@pytest.fixture
def corrupt_png(tmp_path):
    """A real PNG cut off halfway through its pixel data."""
    full = tmp_path / "full.png"
    arr = np.random.randint(0, 255, (64, 64, 3), dtype=np.uint8)
    Image.fromarray(arr).save(full)
    data = full.read_bytes()
    full.unlink()
    path = tmp_path / "corrupt.png"
    path.write_bytes(data[: len(data) // 2])
    return path
