"""Canonical 16-bit stereo PCM WAV encoding and header parsing."""
from __future__ import annotations

import struct
from dataclasses import dataclass

import numpy as np

from mp3glue.errors import WavFormatError
from mp3glue.types import StereoBuffer

WAV_MIME_TYPE = "audio/wav"
HEADER_SIZE = 44
CHANNELS = 2
BITS_PER_SAMPLE = 16
BLOCK_ALIGN = CHANNELS * (BITS_PER_SAMPLE // 8)
MAX_DATA_BYTES = 0xFFFFFFFF - 36

# RIFF header, fmt chunk (PCM), data chunk header; all little-endian.
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True)
class WavHeader:
    riff_size: int
    format_tag: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    @property
    def frame_count(self) -> int:
        return self.data_size // self.block_align if self.block_align else 0

    def as_dict(self) -> dict:
        return {
            "riff_size": self.riff_size,
            "format_tag": self.format_tag,
            "channels": self.channels,
            "sample_rate": self.sample_rate,
            "byte_rate": self.byte_rate,
            "block_align": self.block_align,
            "bits_per_sample": self.bits_per_sample,
            "data_size": self.data_size,
            "frame_count": self.frame_count,
        }


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """
    Convert float samples to int16 with an asymmetric scale.

    Values are clamped to [-1, 1]; negatives scale by 32768 and positives by
    32767 so both -1.0 and 1.0 land exactly on the int16 limits. Rounding is
    half-up, NaN becomes silence.
    """
    x = np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0)
    x = np.clip(x, -1.0, 1.0)
    scaled = np.where(x < 0, x * 32768.0, x * 32767.0)
    return np.floor(scaled + 0.5).astype(np.int16)


def build_wav_header(sample_rate: int, data_size: int) -> bytes:
    """Build the 44-byte header for 16-bit stereo PCM."""
    if data_size > MAX_DATA_BYTES:
        raise WavFormatError(
            f"PCM data of {data_size} bytes exceeds the RIFF 32-bit size limit."
        )
    fs = int(sample_rate)
    return _HEADER.pack(
        b"RIFF", 36 + data_size, b"WAVE",
        b"fmt ", 16, 1, CHANNELS, fs, fs * BLOCK_ALIGN, BLOCK_ALIGN, BITS_PER_SAMPLE,
        b"data", data_size,
    )


def encode_wav(buf: StereoBuffer) -> bytes:
    """Serialize a stereo buffer to WAV bytes, samples interleaved left/right."""
    pcm = float_to_pcm16(buf.samples)
    data = np.ascontiguousarray(pcm, dtype="<i2").tobytes()
    return build_wav_header(buf.sample_rate, len(data)) + data


def read_wav_header(data: bytes) -> WavHeader:
    """Parse the canonical 44-byte header written by ``encode_wav``."""
    if len(data) < HEADER_SIZE:
        raise WavFormatError(f"WAV data too short: {len(data)} bytes.")
    (riff, riff_size, wave, fmt, fmt_size, format_tag, channels, fs,
     byte_rate, block_align, bits, data_tag, data_size) = _HEADER.unpack_from(data, 0)
    if riff != b"RIFF" or wave != b"WAVE":
        raise WavFormatError("Missing RIFF/WAVE signature.")
    if fmt != b"fmt " or fmt_size != 16:
        raise WavFormatError("Expected a 16-byte fmt chunk at offset 12.")
    if data_tag != b"data":
        raise WavFormatError("Expected data chunk at offset 36.")
    return WavHeader(
        riff_size=riff_size,
        format_tag=format_tag,
        channels=channels,
        sample_rate=fs,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits,
        data_size=data_size,
    )


def decode_wav_pcm16(data: bytes) -> tuple[WavHeader, np.ndarray]:
    """Return the header and int16 samples shaped (frames, channels)."""
    header = read_wav_header(data)
    if header.format_tag != 1 or header.bits_per_sample != 16:
        raise WavFormatError("Only 16-bit PCM WAV is supported.")
    if header.channels <= 0:
        raise WavFormatError("WAV header reports no channels.")
    payload = data[HEADER_SIZE:HEADER_SIZE + header.data_size]
    if len(payload) != header.data_size:
        raise WavFormatError(
            f"Truncated data chunk: {len(payload)} of {header.data_size} bytes."
        )
    frame_bytes = header.channels * 2
    if header.data_size % frame_bytes:
        raise WavFormatError(
            f"Data chunk of {header.data_size} bytes is not a whole number of "
            f"{frame_bytes}-byte frames."
        )
    pcm = np.frombuffer(payload, dtype="<i2").astype(np.int16)
    return header, pcm.reshape(-1, header.channels)
