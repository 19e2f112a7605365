"""Error taxonomy for the glue pipeline."""
from __future__ import annotations

from mp3glue.types import RunState


class GlueError(Exception):
    """Base error; optionally tagged with the pipeline stage and clip."""

    def __init__(
        self,
        message: str,
        *,
        stage: RunState | None = None,
        clip_name: str | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.clip_name = clip_name

    def __str__(self) -> str:
        parts = []
        if self.stage is not None:
            parts.append(f"[{self.stage.value}]")
        if self.clip_name:
            parts.append(f"{self.clip_name}:")
        parts.append(self.message)
        return " ".join(parts)


class EmptyInputError(GlueError):
    def __init__(self, message: str = "No audio to compile.", **kwargs) -> None:
        super().__init__(message, **kwargs)


class DecodeError(GlueError):
    pass


class UnsupportedChannelLayoutError(GlueError):
    pass


class SampleRateMismatchError(GlueError):
    pass


class WavFormatError(GlueError):
    pass


class ConfigError(GlueError):
    pass


class PipelineError(GlueError):
    """Unexpected failure inside a stage."""
