"""Detailed detection diagnostics for a single image (``--analyze``).

Unlike the timed pipeline, which stops at the first variant that yields
grids, the analyzer runs detection and decoding on every variant so the
user can see which preprocessing helps and where decoding breaks down.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import cv2

from qrbench.imaging.detector import MIN_SIDE, QrBackend
from qrbench.imaging.loader import load_image
from qrbench.imaging.preprocess import PrepareOptions, generate_variants, to_grayscale
from qrbench.models import AnalysisReport, GridDecode, VariantAnalysis

log = logging.getLogger(__name__)

NO_PATTERN_ADVICE = (
    "No QR finder pattern was detected. Check that the image contains a QR code, "
    "that it is fully visible and not cropped, and try increasing contrast."
)
SMALL_IMAGE_ADVICE = (
    "The image is very small. Upscale it or capture the code at a higher resolution "
    "so each module spans several pixels."
)
DECODE_FAILED_ADVICE = (
    "QR codes were located but none decoded. The symbol may be damaged, blurred or "
    "skewed; try a sharper source, better lighting, or a more frontal angle."
)
PARTIAL_ADVICE = (
    "Only some preprocessing variants decoded the code. Low contrast or uneven lighting "
    "is likely; images like this depend on binarization to be read."
)


class QrAnalyzer:
    def __init__(self, backend: Optional[QrBackend] = None, options: PrepareOptions = PrepareOptions()):
        self.backend = backend or QrBackend()
        self.options = options

    def analyze_file(self, path: Union[str, Path]) -> AnalysisReport:
        """Raises LoadFailure if the file cannot be loaded."""
        rgb = load_image(path)
        height, width = rgb.shape[:2]

        gray = to_grayscale(rgb, self.options.max_dimension)
        variants = generate_variants(gray, self.options)

        report = AnalysisReport(
            file_path=str(path),
            image_size=(width, height),
            variants_tested=len(variants),
        )
        for name, image in variants:
            analysis = self.analyze_variant(name, image)
            report.variant_analyses.append(analysis)
            if analysis.success:
                report.overall_success = True

        report.recommendations = self.generate_recommendations(
            report.variant_analyses, min(gray.shape[:2])
        )
        return report

    def analyze_variant(self, name: str, image) -> VariantAnalysis:
        analysis = VariantAnalysis(variant=name)
        try:
            grids = self.backend.detect(image, name)
        except cv2.error as e:
            log.debug("Detection raised on variant %s: %s", name, e)
            analysis.summary = f"Detection error: {e}"
            return analysis

        analysis.grids_detected = len(grids)
        for i, grid in enumerate(grids):
            try:
                content = self.backend.decode(image, grid)
            except cv2.error as e:
                analysis.decode_results.append(GridDecode(i, False, error_detail=f"Decoder error: {e}"))
                continue
            if content is None:
                analysis.decode_results.append(GridDecode(
                    i, False,
                    error_detail="Grid located but payload could not be decoded "
                                 "(format or error-correction failure)",
                ))
            else:
                analysis.decode_results.append(GridDecode(i, True, content=content))

        decoded = sum(1 for d in analysis.decode_results if d.decode_success)
        analysis.success = decoded > 0
        if not grids:
            analysis.summary = "No grids detected"
        else:
            analysis.summary = f"Decoded {decoded}/{len(grids)} grids"
        return analysis

    def generate_recommendations(self, analyses: List[VariantAnalysis], min_side: int) -> List[str]:
        recommendations = []
        total_grids = sum(a.grids_detected for a in analyses)
        successes = sum(1 for a in analyses if a.success)

        if min_side < MIN_SIDE * 5 and successes == 0:
            recommendations.append(SMALL_IMAGE_ADVICE)
        if total_grids == 0:
            recommendations.append(NO_PATTERN_ADVICE)
            return recommendations
        if successes == 0:
            recommendations.append(DECODE_FAILED_ADVICE)
        elif successes < len(analyses) and not analyses[0].success:
            recommendations.append(PARTIAL_ADVICE)
        return recommendations
