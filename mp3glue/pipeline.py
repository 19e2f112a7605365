"""Run orchestration: decode, normalize, concatenate, encode."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from fractions import Fraction
from typing import Callable, Iterator, Sequence

from mp3glue.config import GlueConfig
from mp3glue.dsp.channels import to_stereo
from mp3glue.dsp.concat import concatenate
from mp3glue.errors import DecodeError, EmptyInputError, GlueError, PipelineError
from mp3glue.io.decode import AudioDecoder, ClipDecoder
from mp3glue.io.wav import encode_wav
from mp3glue.reporting.timestamps import format_timestamps
from mp3glue.types import (
    ClipInput,
    ClipRecord,
    GlueResult,
    PcmBuffer,
    RunState,
    StereoBuffer,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[RunState], None]

_TRANSITIONS = {
    RunState.IDLE: {RunState.DECODING, RunState.FAILED},
    RunState.DECODING: {RunState.MERGING, RunState.FAILED},
    RunState.MERGING: {RunState.ENCODING, RunState.FAILED},
    RunState.ENCODING: {RunState.READY, RunState.FAILED},
    RunState.READY: set(),
    RunState.FAILED: set(),
}


def _decode_one(decoder: ClipDecoder, clip: ClipInput) -> PcmBuffer:
    try:
        return decoder.decode(clip.raw_bytes)
    except DecodeError as exc:
        exc.clip_name = clip.display_name
        exc.stage = RunState.DECODING
        raise
    except Exception as exc:
        raise DecodeError(
            f"Could not decode audio: {exc}",
            stage=RunState.DECODING,
            clip_name=clip.display_name,
        ) from exc


class PipelineRun:
    """
    One glue run over an ordered list of clips.

    Each instance owns its buffers end to end and can be executed once.
    ``state`` follows Idle -> Decoding -> Merging -> Encoding -> Ready, or
    ends in Failed as soon as any stage raises; no partial artifacts are
    returned in that case.
    """

    def __init__(
        self,
        clips: Sequence[ClipInput],
        *,
        config: GlueConfig | None = None,
        decoder: ClipDecoder | None = None,
        progress: ProgressCallback | None = None
    ) -> None:
        self.clips = tuple(clips)
        self.config = config or GlueConfig()
        self.decoder = decoder or AudioDecoder(self.config.decode_backends)
        self.progress = progress
        self.state = RunState.IDLE
        self.history: list[RunState] = [RunState.IDLE]
        self.error: GlueError | None = None

    def _enter(self, state: RunState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)
        logger.info("Run state: %s", state.value)
        if self.progress is not None:
            self.progress(state)

    def _fail(self, exc: GlueError) -> GlueError:
        if exc.stage is None:
            exc.stage = self.state
        self.error = exc
        self._enter(RunState.FAILED)
        return exc

    def _decoded(self) -> Iterator[PcmBuffer]:
        """Decoded buffers in input order, decoding in parallel when configured."""
        workers = min(max(1, int(self.config.workers)), len(self.clips))
        if workers == 1:
            for clip in self.clips:
                yield _decode_one(self.decoder, clip)
            return
        with ThreadPoolExecutor(max_workers=workers) as ex:
            yield from ex.map(lambda c: _decode_one(self.decoder, c), self.clips)

    def _decode_all(self) -> tuple[list[StereoBuffer], list[ClipRecord], list[str]]:
        buffers: list[StereoBuffer] = []
        records: list[ClipRecord] = []
        warnings: list[str] = []
        # exact running total in seconds; frames / rate per clip
        cumulative = Fraction(0)
        decoded = self._decoded()
        try:
            for clip in self.clips:
                current = clip.display_name
                try:
                    pcm = next(decoded)
                    stereo = to_stereo(pcm, policy=self.config.channel_policy)
                except GlueError as exc:
                    if exc.clip_name is None:
                        exc.clip_name = current
                    raise
                logger.debug(
                    "Decoded %s: %d Hz, %d ch, %d frames via %s",
                    current, pcm.sample_rate, pcm.channels, pcm.frame_count, pcm.backend
                )
                records.append(ClipRecord(
                    display_name=current,
                    start_seconds=float(cumulative),
                    duration_seconds=pcm.duration,
                    was_upmixed=pcm.channels == 1,
                    sample_rate=pcm.sample_rate,
                    source_channels=pcm.channels,
                    frame_count=pcm.frame_count,
                ))
                warnings.extend(f"{current}: {w}" for w in stereo.warnings)
                cumulative += Fraction(pcm.frame_count, pcm.sample_rate)
                buffers.append(stereo)
        finally:
            decoded.close()
        return buffers, records, warnings

    def execute(self) -> GlueResult:
        """Run every stage; raises a GlueError subclass on failure."""
        if self.state is not RunState.IDLE:
            raise RuntimeError("A PipelineRun can only be executed once.")
        if not self.clips:
            raise self._fail(EmptyInputError(stage=RunState.IDLE))

        try:
            self._enter(RunState.DECODING)
            logger.info("Decoding %d clips", len(self.clips))
            buffers, records, warnings = self._decode_all()

            self._enter(RunState.MERGING)
            fs = buffers[0].sample_rate
            for rec in records:
                if rec.sample_rate != fs:
                    warnings.append(
                        f"{rec.display_name}: sample rate {rec.sample_rate} Hz "
                        f"differs from output rate {fs} Hz; clip not resampled."
                    )
            merged = concatenate(buffers, sample_rate_policy=self.config.sample_rate_policy)
            del buffers

            self._enter(RunState.ENCODING)
            wav_bytes = encode_wav(merged)
            timestamps = format_timestamps(
                records, strip_extensions=self.config.strip_extensions
            )
        except GlueError as exc:
            raise self._fail(exc)
        except Exception as exc:
            stage = self.state
            raise self._fail(PipelineError(f"Unexpected error: {exc}", stage=stage)) from exc

        result = GlueResult(
            wav_bytes=wav_bytes,
            timestamps_text=timestamps,
            clips=tuple(records),
            sample_rate=merged.sample_rate,
            frame_count=merged.frame_count,
            warnings=tuple(warnings),
        )
        self._enter(RunState.READY)
        logger.info(
            "Compiled %d clips: %d frames at %d Hz (%.2f s)",
            len(records), result.frame_count, result.sample_rate, result.duration
        )
        return result


def combine_clips(
    clips: Sequence[ClipInput],
    *,
    config: GlueConfig | None = None,
    decoder: ClipDecoder | None = None,
    progress: ProgressCallback | None = None
) -> GlueResult:
    """Glue clips into one WAV plus a timestamp listing."""
    return PipelineRun(clips, config=config, decoder=decoder, progress=progress).execute()
