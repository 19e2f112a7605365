from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import numpy as np


class RunState(str, Enum):
    IDLE = "idle"
    DECODING = "decoding"
    MERGING = "merging"
    ENCODING = "encoding"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ClipInput:
    """One entry of a run request: a display name and the compressed bytes."""
    display_name: str
    raw_bytes: bytes


@dataclass(frozen=True)
class PcmBuffer:
    """Decoded audio, shaped (frames, channels)."""
    samples: np.ndarray
    sample_rate: int
    backend: str = "unknown"
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.samples.ndim != 2:
            raise ValueError("PCM samples must be a 2D (frames, channels) array.")
        if int(self.sample_rate) <= 0:
            raise ValueError("Sample rate must be positive.")

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        return self.frame_count / float(self.sample_rate)

    def channel(self, index: int) -> np.ndarray:
        return self.samples[:, index]


@dataclass(frozen=True)
class StereoBuffer(PcmBuffer):
    """PcmBuffer with exactly two channels (left, right)."""

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.samples.shape[1] != 2:
            raise ValueError(
                f"Stereo buffer needs 2 channels, got {self.samples.shape[1]}."
            )

    @property
    def left(self) -> np.ndarray:
        return self.samples[:, 0]

    @property
    def right(self) -> np.ndarray:
        return self.samples[:, 1]


@dataclass(frozen=True)
class MergedBuffer(StereoBuffer):
    """Concatenated stereo buffer with the start frame of every source clip."""
    clip_offsets: tuple[int, ...] = ()

    def clip_start_seconds(self) -> list[float]:
        fs = float(self.sample_rate)
        return [offset / fs for offset in self.clip_offsets]


@dataclass(frozen=True)
class ClipRecord:
    display_name: str
    start_seconds: float
    duration_seconds: float
    was_upmixed: bool
    sample_rate: int = 0
    source_channels: int = 0
    frame_count: int = 0


@dataclass(frozen=True)
class GlueResult:
    """Artifacts and diagnostics of a successful run."""
    wav_bytes: bytes
    timestamps_text: str
    clips: tuple[ClipRecord, ...]
    sample_rate: int
    frame_count: int
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def upmixed(self) -> list[str]:
        return [c.display_name for c in self.clips if c.was_upmixed]

    @property
    def duration(self) -> float:
        return self.frame_count / float(self.sample_rate)

    def upmix_note(self) -> str | None:
        names = self.upmixed
        if not names:
            return None
        return (
            "Note: The following tracks were mono and upmixed to stereo: "
            + ", ".join(names)
        )
