"""
mp3glue - Audio Clip Concatenation Tool

Decodes an ordered list of compressed clips, joins them into one stereo
16-bit WAV and writes a chapter timestamp listing alongside it.
"""
from mp3glue.version import __version__
from mp3glue.types import (
    RunState,
    ClipInput,
    PcmBuffer,
    StereoBuffer,
    MergedBuffer,
    ClipRecord,
    GlueResult,
)
from mp3glue.errors import (
    GlueError,
    EmptyInputError,
    DecodeError,
    UnsupportedChannelLayoutError,
    SampleRateMismatchError,
    WavFormatError,
    ConfigError,
    PipelineError,
)
from mp3glue.pipeline import PipelineRun, combine_clips

__all__ = [
    "__version__",
    "RunState",
    "ClipInput",
    "PcmBuffer",
    "StereoBuffer",
    "MergedBuffer",
    "ClipRecord",
    "GlueResult",
    "GlueError",
    "EmptyInputError",
    "DecodeError",
    "UnsupportedChannelLayoutError",
    "SampleRateMismatchError",
    "WavFormatError",
    "ConfigError",
    "PipelineError",
    "PipelineRun",
    "combine_clips",
]
