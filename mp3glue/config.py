"""Run configuration: defaults, JSON file, environment overrides."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from mp3glue.dsp.channels import CHANNEL_POLICIES
from mp3glue.dsp.concat import SAMPLE_RATE_POLICIES
from mp3glue.errors import ConfigError
from mp3glue.io.decode import DECODE_BACKENDS
from mp3glue.io.files import DEFAULT_AUDIO_EXTS, dotted_ext
from mp3glue.reporting.timestamps import DEFAULT_STRIP_EXTS

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TUPLE_FIELDS = ("decode_backends", "audio_extensions", "strip_extensions")


@dataclass(frozen=True)
class GlueConfig:
    workers: int = 1
    channel_policy: str = "first_two"
    sample_rate_policy: str = "propagate"
    decode_backends: tuple[str, ...] = DECODE_BACKENDS
    audio_extensions: tuple[str, ...] = DEFAULT_AUDIO_EXTS
    strip_extensions: tuple[str, ...] = DEFAULT_STRIP_EXTS
    wav_name: str = "mp3-glue.wav"
    timestamps_name: str = "timestamps.txt"
    log_level: str = "WARNING"


def validate_config_dict(j: Mapping[str, Any]) -> None:
    """Validate a config mapping, reporting every problem at once."""
    errors: list[str] = []

    def err(msg: str) -> None:
        errors.append(msg)

    known = {f.name for f in fields(GlueConfig)}
    for k in j:
        if k not in known:
            err(f"unknown key: {k}")

    if "workers" in j:
        w = j["workers"]
        if isinstance(w, bool) or not isinstance(w, int) or w < 1:
            err("workers must be an integer >= 1.")
    if "channel_policy" in j and j["channel_policy"] not in CHANNEL_POLICIES:
        err(f"channel_policy must be one of {', '.join(CHANNEL_POLICIES)}.")
    if "sample_rate_policy" in j and j["sample_rate_policy"] not in SAMPLE_RATE_POLICIES:
        err(f"sample_rate_policy must be one of {', '.join(SAMPLE_RATE_POLICIES)}.")

    for key in _TUPLE_FIELDS:
        if key not in j:
            continue
        v = j[key]
        if not isinstance(v, (list, tuple)) or not all(isinstance(x, str) for x in v):
            err(f"{key} must be a list of strings.")
        elif key == "decode_backends":
            if not v:
                err("decode_backends must not be empty.")
            for b in v:
                if b not in DECODE_BACKENDS:
                    err(f"decode_backends: unknown backend {b}.")

    for key in ("wav_name", "timestamps_name"):
        if key in j and (not isinstance(j[key], str) or not j[key].strip()):
            err(f"{key} must be a non-empty string.")
    if "log_level" in j and str(j["log_level"]).upper() not in LOG_LEVELS:
        err(f"log_level must be one of {', '.join(LOG_LEVELS)}.")

    if errors:
        raise ConfigError("; ".join(errors))


def config_from_dict(j: Mapping[str, Any], base: GlueConfig | None = None) -> GlueConfig:
    validate_config_dict(j)
    values: dict[str, Any] = dict(j)
    for key in _TUPLE_FIELDS:
        if key in values:
            values[key] = tuple(values[key])
    for key in ("audio_extensions", "strip_extensions"):
        if key in values:
            values[key] = tuple(dotted_ext(e) for e in values[key] if e.strip())
    if "log_level" in values:
        values["log_level"] = str(values["log_level"]).upper()
    return replace(base or GlueConfig(), **values)


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    workers = environ.get("MP3GLUE_WORKERS")
    if workers:
        try:
            out["workers"] = int(workers)
        except ValueError as exc:
            raise ConfigError(f"MP3GLUE_WORKERS must be an integer, got {workers!r}.") from exc
    level = environ.get("MP3GLUE_LOG_LEVEL")
    if level:
        out["log_level"] = level
    backends = environ.get("MP3GLUE_DECODE_BACKENDS")
    if backends:
        out["decode_backends"] = [b.strip() for b in backends.split(",") if b.strip()]
    return out


def load_config(
    path: str | None = None,
    *,
    environ: Mapping[str, str] | None = None
) -> GlueConfig:
    """
    Build the effective config.

    Args:
        path: Optional JSON config file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        GlueConfig with file values applied, then MP3GLUE_* overrides
    """
    cfg = GlueConfig()
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                j = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid config JSON in {path}: {exc}") from exc
        if not isinstance(j, dict):
            raise ConfigError(f"Config {path} must contain a JSON object.")
        cfg = config_from_dict(j, cfg)
        logger.debug("Loaded config from %s", path)
    overrides = _env_overrides(os.environ if environ is None else environ)
    if overrides:
        cfg = config_from_dict(overrides, cfg)
    return cfg
