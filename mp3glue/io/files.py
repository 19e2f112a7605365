"""Input collection: turn paths on disk into an ordered run request."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence

from mp3glue.types import ClipInput

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_EXTS = (".mp3",)


def dotted_ext(ext: str) -> str:
    """Lower-case extension with a leading dot: "MP3" -> ".mp3"."""
    e = ext.strip().lower()
    return e if e.startswith(".") else "." + e


def _name_key(p: Path) -> tuple[str, str]:
    return (p.name.casefold(), p.name)


def _iter_dir(folder: Path, exts: set[str], recursive: bool) -> list[Path]:
    """Files under a folder matching the extensions, ordered by name."""
    files: Iterable[Path]
    files = folder.rglob("*") if recursive else folder.glob("*")
    out = [p for p in files if p.is_file() and p.suffix.lower() in exts]
    return sorted(out, key=_name_key)


def collect_audio_paths(
    paths: Sequence[str | Path],
    *,
    extensions: Sequence[str] = DEFAULT_AUDIO_EXTS,
    recursive: bool = True,
    sort: bool = False
) -> list[Path]:
    """
    Expand the given paths into an ordered list of audio files.

    Files named explicitly keep their position and are not filtered.
    Directories are replaced in place by their matching files sorted by
    name. With ``sort`` the whole list is ordered by file name.
    """
    exts = {dotted_ext(e) for e in extensions if e.strip()}
    out: list[Path] = []
    for raw in paths:
        p = Path(raw)
        if p.is_dir():
            found = _iter_dir(p, exts, recursive)
            if not found:
                logger.warning("No %s files found in %s", "/".join(sorted(exts)), p)
            out.extend(found)
        elif p.is_file():
            out.append(p)
        else:
            raise FileNotFoundError(str(p))
    if sort:
        out.sort(key=_name_key)
    return out


def load_clip_inputs(paths: Sequence[Path]) -> list[ClipInput]:
    """Read each file fully into a ClipInput named after the file."""
    clips = []
    for p in paths:
        clips.append(ClipInput(display_name=p.name, raw_bytes=p.read_bytes()))
        logger.debug("Read %s (%d bytes)", p, len(clips[-1].raw_bytes))
    return clips
