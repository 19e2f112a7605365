from __future__ import annotations

import json

import pytest

from mp3glue.config import GlueConfig, config_from_dict, load_config, validate_config_dict
from mp3glue.errors import ConfigError


def test_defaults_without_file():
    cfg = load_config(None, environ={})
    assert cfg == GlueConfig()
    assert cfg.wav_name == "mp3-glue.wav"
    assert cfg.timestamps_name == "timestamps.txt"
    assert cfg.audio_extensions == (".mp3",)


def test_load_from_file_and_env(tmp_path):
    path = tmp_path / "glue.json"
    path.write_text(json.dumps({
        "workers": 2,
        "sample_rate_policy": "strict",
        "audio_extensions": [".mp3", ".flac"],
        "log_level": "info",
    }), encoding="utf-8")
    cfg = load_config(str(path), environ={"MP3GLUE_WORKERS": "6"})
    assert cfg.workers == 6
    assert cfg.sample_rate_policy == "strict"
    assert cfg.audio_extensions == (".mp3", ".flac")
    assert cfg.log_level == "INFO"


def test_env_backends_override():
    cfg = load_config(None, environ={"MP3GLUE_DECODE_BACKENDS": "ffmpeg, soundfile"})
    assert cfg.decode_backends == ("ffmpeg", "soundfile")


def test_validation_collects_all_errors():
    with pytest.raises(ConfigError) as info:
        validate_config_dict({
            "workers": 0,
            "channel_policy": "mix",
            "decode_backends": ["vlc"],
            "colour": "blue",
        })
    msg = str(info.value)
    assert "workers" in msg
    assert "channel_policy" in msg
    assert "vlc" in msg
    assert "unknown key: colour" in msg


def test_bad_env_workers():
    with pytest.raises(ConfigError):
        load_config(None, environ={"MP3GLUE_WORKERS": "many"})


def test_invalid_json(tmp_path):
    path = tmp_path / "glue.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path), environ={})


def test_config_from_dict_keeps_base():
    base = GlueConfig(workers=3)
    cfg = config_from_dict({"wav_name": "mix.wav"}, base)
    assert cfg.workers == 3
    assert cfg.wav_name == "mix.wav"


def test_extension_lists_are_dotted_and_lowercased():
    cfg = config_from_dict({
        "strip_extensions": ["mp3", ".FLAC", " "],
        "audio_extensions": ["MP3"],
    })
    assert cfg.strip_extensions == (".mp3", ".flac")
    assert cfg.audio_extensions == (".mp3",)
