from __future__ import annotations
import hashlib
import json
import platform
from datetime import datetime, timezone

import numpy as np

from mp3glue.types import GlueResult
from mp3glue.version import __version__


def _round(x: float, ndigits: int = 3) -> float:
    """Round a float to millisecond precision."""
    return round(float(x), ndigits)


def build_engine_meta() -> dict:
    """Engine metadata for the run report."""
    try:
        import soundfile as sf
        libsndfile = str(sf.__libsndfile_version__)
    except Exception:
        libsndfile = "unknown"
    return {
        "name": "mp3glue",
        "version": __version__,
        "build": {
            "platform": platform.platform(),
            "python": platform.python_version(),
            "deps": [
                {"name": "numpy", "version": np.__version__},
                {"name": "libsndfile", "version": libsndfile},
            ]
        }
    }


def build_run_report(
    result: GlueResult,
    *,
    wav_path: str | None = None,
    timestamps_path: str | None = None,
    created_utc: str | None = None
) -> dict:
    """
    Build a JSON-serializable summary of a finished run.

    Args:
        result: Successful pipeline result
        wav_path: Where the WAV was written, if anywhere
        timestamps_path: Where the timestamp listing was written
        created_utc: Override for the creation timestamp

    Returns:
        Report dictionary with per-clip records and the WAV SHA-256
    """
    if created_utc is None:
        created_utc = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    clips = [
        {
            "index": i,
            "name": c.display_name,
            "start_s": _round(c.start_seconds),
            "duration_s": _round(c.duration_seconds),
            "frames": int(c.frame_count),
            "sample_rate_hz": int(c.sample_rate),
            "source_channels": int(c.source_channels),
            "upmixed": bool(c.was_upmixed),
        }
        for i, c in enumerate(result.clips)
    ]
    return {
        "schema_version": "1.0",
        "created_utc": created_utc,
        "engine": build_engine_meta(),
        "output": {
            "wav_path": wav_path,
            "timestamps_path": timestamps_path,
            "mime_type": "audio/wav",
            "wav_bytes": len(result.wav_bytes),
            "wav_sha256": hashlib.sha256(result.wav_bytes).hexdigest(),
            "sample_rate_hz": int(result.sample_rate),
            "channels": 2,
            "frames": int(result.frame_count),
            "duration_s": _round(result.duration),
        },
        "clips": clips,
        "upmixed": result.upmixed,
        "warnings": list(result.warnings),
    }


def dumps_report(report: dict) -> str:
    return json.dumps(report, indent=2, ensure_ascii=False)
