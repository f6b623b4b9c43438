"""Runs the four timed detection stages over one image file.

Loading the file is a prerequisite rather than a measured stage: its
duration is kept on the result as ``load_duration`` but never counted in
the total. Each stage is a plain function from one buffer to the next,
dispatched from the ``stages`` table in order.

When comparison engines are configured, each one is run over the prepared
variants after the stages finish. Those runs are reported per engine and
are not part of the total either.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from qrbench import timer
from qrbench.errors import DetectionFailure, FileProcessingError
from qrbench.imaging.detector import QrBackend, VariantHit, run_engine
from qrbench.imaging.loader import load_image
from qrbench.imaging.preprocess import PrepareOptions, Variant, generate_variants, to_grayscale
from qrbench.models import EngineResult, FileResult, ImageCandidate
from qrbench.timer import Stage, StageTiming

log = logging.getLogger(__name__)

Decoded = Tuple[int, Tuple[str, ...]]


class ImagePipeline:
    def __init__(
        self,
        backend: Optional[QrBackend] = None,
        options: PrepareOptions = PrepareOptions(),
        engines: Sequence[QrBackend] = (),
    ):
        self.backend = backend or QrBackend()
        self.options = options
        self.engines = tuple(engines)
        self.stages = (
            (Stage.GRAYSCALE, self.grayscale),
            (Stage.PREPARE, self.prepare),
            (Stage.DETECT_GRIDS, self.detect_grids),
            (Stage.DECODE, self.decode),
        )

    def grayscale(self, rgb: np.ndarray) -> np.ndarray:
        return to_grayscale(rgb, self.options.max_dimension)

    def prepare(self, gray: np.ndarray) -> List[Variant]:
        return generate_variants(gray, self.options)

    def detect_grids(self, variants: Sequence[Variant]) -> List[VariantHit]:
        try:
            return self.backend.find_grids(variants)
        except cv2.error as e:
            raise DetectionFailure(f"QR detection failed: {e}") from e

    def decode(self, hits: Sequence[VariantHit]) -> Decoded:
        """Decodes variant by variant, stopping at the first one where any grid decodes.

        Grids that fail to decode are left out of the count. Every attempt,
        successful or not, is part of this stage's time.
        """
        for name, image, grids in hits:
            decoded = 0
            payloads: List[str] = []
            for i, grid in enumerate(grids):
                try:
                    data = self.backend.decode(image, grid)
                except cv2.error as e:
                    raise DetectionFailure(f"QR decoding failed: {e}") from e
                if data is None:
                    log.debug("Grid %d (%s) decode failed", i, name)
                    continue
                decoded += 1
                if data not in payloads:
                    payloads.append(data)
            log.debug("Variant %s: decoded %d/%d grids", name, decoded, len(grids))
            if decoded:
                return decoded, tuple(payloads)
        return 0, ()

    def run_stages(
        self,
        rgb: np.ndarray,
        timings: List[StageTiming],
        outputs: Optional[Dict[Stage, object]] = None,
    ) -> Decoded:
        """Runs each stage in order, appending its timing as it completes.

        Each stage's output is also stored in ``outputs`` when given.
        """
        value = rgb
        for stage, fn in self.stages:
            value, timing = timer.measure(stage, fn, value)
            timings.append(timing)
            if outputs is not None:
                outputs[stage] = value
            log.debug("%s took %.3fms", stage.label, timing.ms)
        return value

    def compare_engines(self, variants: Sequence[Variant]) -> List[EngineResult]:
        return [run_engine(engine, variants) for engine in self.engines]

    def process(self, candidate: ImageCandidate) -> FileResult:
        """Produces exactly one result for the candidate; never raises for per-file errors."""
        path = candidate.path
        log.debug("Scanning file: %s", path)

        handle = timer.start()
        try:
            rgb = load_image(path)
        except FileProcessingError as e:
            log.warning("Failed to load %s: %s", path, e)
            return FileResult.failed(path, str(e), load_duration=timer.stop(handle))
        load_duration = timer.stop(handle)

        timings: List[StageTiming] = []
        outputs: Dict[Stage, object] = {}
        try:
            qr_count, payloads = self.run_stages(rgb, timings, outputs)
            engines = self.compare_engines(outputs[Stage.PREPARE]) if self.engines else []
        except FileProcessingError as e:
            log.warning("Failed to scan %s: %s", path, e)
            return FileResult.failed(path, str(e), timings=timings, load_duration=load_duration)
        except Exception as e:
            log.exception("Unexpected error scanning %s", path)
            return FileResult.failed(
                path, f"Unexpected error: {e}", timings=timings, load_duration=load_duration
            )

        result = FileResult.succeeded(
            path,
            timings,
            qr_count=qr_count,
            payloads=payloads,
            load_duration=load_duration,
            engines=engines,
        )
        log.debug("Found %d QR codes in %s in %.2fms", qr_count, path, result.total * 1000.0)
        return result
