"""OpenCV QR detection engines."""

import logging
import threading
from typing import Iterable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from qrbench import timer
from qrbench.models import EngineResult, Grid

log = logging.getLogger(__name__)

# cv2.QRCodeDetector gives no reliable results on images this small
MIN_SIDE = 21

# Both share the GraphicalCodeDetector detect/detectMulti/decode API
ENGINES = {
    "opencv": cv2.QRCodeDetector,
    "aruco": cv2.QRCodeDetectorAruco,
}
DEFAULT_ENGINE = "opencv"

VariantHit = Tuple[str, np.ndarray, List[Grid]]


class QrBackend:
    """Wraps one OpenCV QR detector class, one detector instance per thread."""

    def __init__(self, engine: str = DEFAULT_ENGINE):
        if engine not in ENGINES:
            raise ValueError(
                f"Unknown detection engine '{engine}' (available: {', '.join(sorted(ENGINES))})"
            )
        self.engine = engine
        self._factory = ENGINES[engine]
        self._local = threading.local()

    @property
    def detector(self):
        detector = getattr(self._local, "detector", None)
        if detector is None:
            detector = self._factory()
            self._local.detector = detector
        return detector

    def detect(self, image: np.ndarray, variant: str = "original") -> List[Grid]:
        """Locates QR symbols, trying multi-code detection before single-code."""
        height, width = image.shape[:2]
        if width < MIN_SIDE or height < MIN_SIDE:
            return []

        found, points = self.detector.detectMulti(image)
        if not found or points is None:
            found, points = self.detector.detect(image)
            if not found or points is None:
                return []
        corners = np.asarray(points, dtype=np.float32).reshape(-1, 4, 2)
        return [Grid(corners=quad, variant=variant) for quad in corners]

    def decode(self, image: np.ndarray, grid: Grid) -> Optional[str]:
        """Returns the payload text, or None when the grid does not decode."""
        data, _ = self.detector.decode(image, grid.corners.reshape(1, 4, 2))
        return data or None

    def find_grids(self, variants: Sequence[Tuple[str, np.ndarray]]) -> List[VariantHit]:
        """Returns every variant that yields grids, in variant order, with its grids."""
        hits: List[VariantHit] = []
        for name, image in variants:
            grids = self.detect(image, name)
            log.debug("%s variant %s: %d grids", self.engine, name, len(grids))
            if grids:
                hits.append((name, image, grids))
        return hits


def build_engines(names: Iterable[str]) -> List[QrBackend]:
    """Raises ValueError for an unknown engine name."""
    return [QrBackend(name.strip().lower()) for name in names if name.strip()]


def run_engine(backend: QrBackend, variants: Sequence[Tuple[str, np.ndarray]]) -> EngineResult:
    """Runs one engine over every variant and collects the distinct payloads it decodes.

    An OpenCV error ends this engine's run and is recorded on the result;
    it does not fail the file.
    """
    handle = timer.start()
    payloads: List[str] = []
    error = None
    try:
        for name, image in variants:
            for grid in backend.detect(image, name):
                data = backend.decode(image, grid)
                if data is not None and data not in payloads:
                    payloads.append(data)
    except cv2.error as e:
        log.debug("Engine %s failed: %s", backend.engine, e)
        error = f"{backend.engine} failed: {e}"
    duration = timer.stop(handle)
    log.debug("Engine %s found %d codes in %.2fms", backend.engine, len(payloads), duration * 1000.0)
    return EngineResult(engine=backend.engine, payloads=tuple(payloads), duration=duration, error=error)
