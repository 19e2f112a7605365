"""Decoder adapter: compressed bytes in, float PCM out."""
from __future__ import annotations
import io
import json
import logging
import shutil
import subprocess
import warnings as py_warnings
from typing import Protocol, Sequence
import numpy as np
from mp3glue.errors import DecodeError
from mp3glue.types import PcmBuffer

logger = logging.getLogger(__name__)

DECODE_BACKENDS = ("soundfile", "ffmpeg")


class ClipDecoder(Protocol):
    def decode(self, raw: bytes) -> PcmBuffer:
        ...


def _decode_soundfile(raw: bytes) -> tuple[np.ndarray, int, list[str]]:
    """Decode using soundfile (libsndfile)."""
    try:
        import soundfile as sf
    except Exception as exc:
        raise RuntimeError("soundfile backend not available.") from exc

    with py_warnings.catch_warnings(record=True) as w:
        py_warnings.simplefilter("always")
        data, fs = sf.read(io.BytesIO(raw), always_2d=True, dtype="float32")
    warn_list = [str(wi.message) for wi in w]
    return data, int(fs), warn_list


def _pipe_through(tool: str, args: list[str], raw: bytes) -> tuple[bytes, list[str]]:
    """Run an ffmpeg-family tool with the clip on stdin; return stdout and stderr lines."""
    exe = shutil.which(tool)
    if not exe:
        raise RuntimeError(f"{tool} not found for ffmpeg backend.")
    proc = subprocess.run([exe, *args], input=raw, capture_output=True, check=False)
    lines = [
        line for line in proc.stderr.decode("utf-8", errors="replace").splitlines()
        if line.strip()
    ]
    if proc.returncode != 0:
        detail = lines[-1] if lines else f"exit code {proc.returncode}"
        raise ValueError(f"{tool} failed: {detail}")
    return proc.stdout, lines


def _probe_layout(raw: bytes) -> tuple[int, int]:
    """(sample_rate, channels) of the first audio stream."""
    out, _ = _pipe_through("ffprobe", [
        "-v", "error",
        "-select_streams", "a:0",
        "-show_entries", "stream=sample_rate,channels",
        "-of", "json",
        "pipe:0",
    ], raw)
    streams = json.loads(out.decode("utf-8")).get("streams", [])
    if not streams:
        raise ValueError("ffprobe reported no audio streams.")
    return int(streams[0]["sample_rate"]), int(streams[0]["channels"])


def _decode_ffmpeg(raw: bytes) -> tuple[np.ndarray, int, list[str]]:
    """Decode with ffmpeg to interleaved float32, reshaped by the probed layout."""
    fs, ch = _probe_layout(raw)
    out, warn_list = _pipe_through("ffmpeg", [
        "-v", "warning",
        "-i", "pipe:0",
        "-vn",
        "-f", "f32le",
        "-acodec", "pcm_f32le",
        "pipe:1",
    ], raw)
    if ch <= 0:
        return np.zeros((0, 0), dtype=np.float32), fs, warn_list
    data = np.frombuffer(out, dtype="<f4")
    frames = data.size // ch
    if frames * ch != data.size:
        warn_list.append("ffmpeg: trimmed partial frame at end of stream.")
    return data[:frames * ch].reshape(frames, ch).astype(np.float32), fs, warn_list


_BACKEND_FUNCS = {
    "soundfile": _decode_soundfile,
    "ffmpeg": _decode_ffmpeg,
}


def decode_audio_bytes(
    raw: bytes,
    *,
    backends: Sequence[str] = DECODE_BACKENDS
) -> PcmBuffer:
    """
    Decode one compressed clip into a float32 PcmBuffer.

    Backends are tried in order; soundfile handles WAV, FLAC, OGG and (with
    libsndfile >= 1.1) MP3, ffmpeg covers everything else when installed.
    Raises DecodeError carrying every backend failure when none succeeds.
    """
    if not raw:
        raise DecodeError("Clip is empty.")
    failures: list[str] = []
    last_exc: Exception | None = None
    warnings_list: list[str] = []
    for backend in backends:
        func = _BACKEND_FUNCS.get(backend)
        if func is None:
            raise ValueError(f"Unknown decode backend: {backend}")
        try:
            data, fs, warn_list = func(raw)
        except Exception as exc:
            failures.append(f"{backend}: {exc}")
            last_exc = exc
            logger.debug("Backend %s failed: %s", backend, exc)
            continue
        if failures:
            logger.warning("Decoded with %s after: %s", backend, "; ".join(failures))
        warnings_list.extend(failures)
        warnings_list.extend(warn_list)
        try:
            return PcmBuffer(
                samples=np.asarray(data, dtype=np.float32),
                sample_rate=int(fs),
                backend=backend,
                warnings=tuple(warnings_list),
            )
        except ValueError as exc:
            raise DecodeError(f"{backend} returned invalid audio: {exc}") from exc
    raise DecodeError("Could not decode audio (" + "; ".join(failures) + ").") from last_exc


class AudioDecoder:
    """Default ClipDecoder backed by soundfile with an ffmpeg fallback."""

    def __init__(self, backends: Sequence[str] = DECODE_BACKENDS) -> None:
        unknown = [b for b in backends if b not in _BACKEND_FUNCS]
        if unknown:
            raise ValueError(f"Unknown decode backends: {', '.join(unknown)}")
        if not backends:
            raise ValueError("At least one decode backend is required.")
        self.backends = tuple(backends)

    def decode(self, raw: bytes) -> PcmBuffer:
        return decode_audio_bytes(raw, backends=self.backends)
