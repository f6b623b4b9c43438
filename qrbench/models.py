"""Core data types and enumerations for qrbench."""

import dataclasses
import enum
from pathlib import Path
from typing import Optional, Tuple

from qrbench.timer import Stage, StageTiming


class Status(enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclasses.dataclass(frozen=True)
class ImageCandidate:
    """An image file selected for processing."""
    path: Path
    format_hint: str = ""  # normalized extension, no dot


@dataclasses.dataclass(frozen=True)
class EngineResult:
    """What one detection engine found in a file when run over every variant."""
    engine: str
    payloads: Tuple[str, ...] = ()
    duration: float = 0.0  # seconds
    error: Optional[str] = None

    @property
    def qr_count(self) -> int:
        return len(self.payloads)

    @property
    def ms(self) -> float:
        return self.duration * 1000.0


@dataclasses.dataclass(frozen=True)
class FileResult:
    """The outcome of running the pipeline on one file."""
    path: str
    status: Status
    qr_count: int = 0
    timings: Tuple[StageTiming, ...] = ()
    error: Optional[str] = None
    payloads: Tuple[str, ...] = ()
    load_duration: Optional[float] = None  # seconds, never part of total
    engines: Tuple[EngineResult, ...] = ()  # side-by-side comparison, never part of total

    def __post_init__(self):
        if self.qr_count < 0:
            raise ValueError(f"qr_count must be non-negative, got {self.qr_count}")
        if len(self.timings) > len(Stage):
            raise ValueError(f"At most {len(Stage)} stage timings allowed, got {len(self.timings)}")
        if self.status is Status.SUCCESS:
            if not self.timings:
                raise ValueError("A successful result must carry stage timings")
            if self.error is not None:
                raise ValueError("A successful result cannot carry an error")
        elif not self.error:
            raise ValueError("A failed result must carry an error message")

    @classmethod
    def succeeded(cls, path, timings, qr_count=0, payloads=(), load_duration=None, engines=()) -> "FileResult":
        return cls(
            path=str(path),
            status=Status.SUCCESS,
            qr_count=qr_count,
            timings=tuple(timings),
            payloads=tuple(payloads),
            load_duration=load_duration,
            engines=tuple(engines),
        )

    @classmethod
    def failed(cls, path, error: str, timings=(), load_duration=None) -> "FileResult":
        return cls(
            path=str(path),
            status=Status.FAILED,
            timings=tuple(timings),
            error=error,
            load_duration=load_duration,
        )

    @property
    def success(self) -> bool:
        return self.status is Status.SUCCESS

    @property
    def total(self) -> float:
        """Sum of the recorded stage durations, in seconds."""
        return sum(t.duration for t in self.timings)

    def timing_for(self, stage: Stage) -> Optional[StageTiming]:
        for timing in self.timings:
            if timing.stage is stage:
                return timing
        return None


@dataclasses.dataclass(frozen=True)
class Grid:
    """A located QR symbol: four corner points in the variant it was found in."""
    corners: object  # np.ndarray, shape (4, 2), float32
    variant: str


@dataclasses.dataclass(frozen=True)
class GridDecode:
    """Per-grid decode outcome, used by analyze mode."""
    grid_index: int
    decode_success: bool
    content: Optional[str] = None
    error_detail: str = ""


@dataclasses.dataclass
class VariantAnalysis:
    variant: str
    grids_detected: int = 0
    decode_results: list = dataclasses.field(default_factory=list)
    success: bool = False
    summary: str = ""


@dataclasses.dataclass
class AnalysisReport:
    """Detailed detection diagnostics for a single image."""
    file_path: str
    image_size: Tuple[int, int]
    variants_tested: int = 0
    variant_analyses: list = dataclasses.field(default_factory=list)
    overall_success: bool = False
    recommendations: list = dataclasses.field(default_factory=list)
