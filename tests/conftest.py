from __future__ import annotations

import io
import sys
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mp3glue.types import ClipInput, PcmBuffer  # noqa: E402


def make_pcm(samples, fs: int = 44100, backend: str = "test") -> PcmBuffer:
    """Build a PcmBuffer from a 1D (mono) or 2D (frames, channels) array."""
    x = np.asarray(samples, dtype=np.float32)
    if x.ndim == 1:
        x = x[:, None]
    return PcmBuffer(samples=x, sample_rate=fs, backend=backend)


def silent_pcm(duration_s: float, fs: int = 44100, channels: int = 1) -> PcmBuffer:
    n = int(round(duration_s * fs))
    return PcmBuffer(samples=np.zeros((n, channels), dtype=np.float32), sample_rate=fs)


def encode_clip_bytes(samples, fs: int = 44100, fmt: str = "FLAC") -> bytes:
    """Encode samples in memory with soundfile."""
    import soundfile as sf

    buf = io.BytesIO()
    sf.write(buf, np.asarray(samples, dtype=np.float64), fs, format=fmt, subtype="PCM_16")
    return buf.getvalue()


class FakeDecoder:
    """ClipDecoder returning prepared buffers keyed by the raw bytes."""

    def __init__(self, buffers: dict[bytes, PcmBuffer], failing: set[bytes] | None = None):
        self.buffers = buffers
        self.failing = failing or set()
        self.calls: list[bytes] = []

    def decode(self, raw: bytes) -> PcmBuffer:
        self.calls.append(raw)
        if raw in self.failing:
            raise ValueError("corrupt frame header")
        return self.buffers[raw]


def fake_clips(buffers: list[tuple[str, PcmBuffer]]) -> tuple[list[ClipInput], FakeDecoder]:
    clips = []
    table = {}
    for i, (name, pcm) in enumerate(buffers):
        key = f"clip-{i}".encode("ascii")
        clips.append(ClipInput(display_name=name, raw_bytes=key))
        table[key] = pcm
    return clips, FakeDecoder(table)
