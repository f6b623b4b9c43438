"""Monotonic stage timing."""

import dataclasses
import enum
import time
from typing import Any, Callable, Tuple


class Stage(enum.Enum):
    """The four measured phases, in execution order."""
    GRAYSCALE = ("Grayscale", "grayscale_ms")
    PREPARE = ("Prepare", "prepare_ms")
    DETECT_GRIDS = ("Detect", "detect_ms")
    DECODE = ("Decode", "decode_ms")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def json_key(self) -> str:
        return self.value[1]


@dataclasses.dataclass(frozen=True)
class TimerHandle:
    """Opaque start instant returned by start()."""
    started: float


@dataclasses.dataclass(frozen=True)
class StageTiming:
    stage: Stage
    duration: float  # seconds

    @property
    def ms(self) -> float:
        return self.duration * 1000.0


def start() -> TimerHandle:
    return TimerHandle(time.perf_counter())


def stop(handle: TimerHandle) -> float:
    """Returns seconds elapsed since ``handle`` was started."""
    return max(0.0, time.perf_counter() - handle.started)


def measure(stage: Stage, fn: Callable[[Any], Any], value: Any) -> Tuple[Any, StageTiming]:
    """Runs ``fn(value)`` and times it as ``stage``."""
    handle = start()
    output = fn(value)
    return output, StageTiming(stage, stop(handle))
