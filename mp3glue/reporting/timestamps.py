"""Chapter timestamp listing."""
from __future__ import annotations

import re
from typing import Sequence

from mp3glue.io.files import dotted_ext
from mp3glue.types import ClipRecord

DEFAULT_STRIP_EXTS = (
    ".mp3", ".wav", ".flac", ".ogg", ".oga", ".opus",
    ".m4a", ".aac", ".aif", ".aiff",
)

# Track number, optional separator, surrounding spaces: "03 - ", "7_", "12."
_TRACK_PREFIX = re.compile(r"^\d+\s*[-_.]?\s*")


def format_clock(seconds: float) -> str:
    """Render seconds as MM:SS; minutes are not wrapped into hours."""
    total = max(0.0, float(seconds))
    minutes = int(total // 60)
    secs = int(total % 60)
    return f"{minutes:02d}:{secs:02d}"


def clean_display_name(
    name: str,
    *,
    strip_extensions: Sequence[str] = DEFAULT_STRIP_EXTS
) -> str:
    """Drop a leading track number and a known audio extension."""
    cleaned = _TRACK_PREFIX.sub("", name, count=1)
    lower = cleaned.lower()
    for raw_ext in strip_extensions:
        if not raw_ext.strip():
            continue
        ext = dotted_ext(raw_ext)
        if lower.endswith(ext):
            return cleaned[:len(cleaned) - len(ext)]
    return cleaned


def format_timestamp_line(
    clip: ClipRecord,
    *,
    strip_extensions: Sequence[str] = DEFAULT_STRIP_EXTS
) -> str:
    name = clean_display_name(clip.display_name, strip_extensions=strip_extensions)
    return f"{format_clock(clip.start_seconds)} - {name}"


def format_timestamps(
    clips: Sequence[ClipRecord],
    *,
    strip_extensions: Sequence[str] = DEFAULT_STRIP_EXTS
) -> str:
    """One line per clip, newline-joined, no header and no trailing newline."""
    return "\n".join(
        format_timestamp_line(c, strip_extensions=strip_extensions) for c in clips
    )
