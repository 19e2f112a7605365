"""Sample-accurate concatenation of stereo buffers."""
from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from mp3glue.errors import EmptyInputError, SampleRateMismatchError
from mp3glue.types import MergedBuffer, StereoBuffer

logger = logging.getLogger(__name__)

SAMPLE_RATE_POLICIES = ("propagate", "strict")


def sample_rate_mismatches(buffers: Sequence[StereoBuffer]) -> list[tuple[int, int]]:
    """Return (index, rate) for every buffer whose rate differs from the first."""
    if not buffers:
        return []
    fs = int(buffers[0].sample_rate)
    return [
        (i, int(b.sample_rate))
        for i, b in enumerate(buffers)
        if int(b.sample_rate) != fs
    ]


def concatenate(
    buffers: Sequence[StereoBuffer],
    *,
    sample_rate_policy: str = "propagate"
) -> MergedBuffer:
    """
    Join stereo buffers end to end in the given order.

    The output rate is the first buffer's rate. Under ``propagate`` other
    rates are copied as-is (the result plays those clips at the wrong speed);
    under ``strict`` any mismatch raises SampleRateMismatchError.
    """
    if sample_rate_policy not in SAMPLE_RATE_POLICIES:
        raise ValueError(f"Unknown sample rate policy: {sample_rate_policy}")
    if len(buffers) == 0:
        raise EmptyInputError()

    fs = int(buffers[0].sample_rate)
    mismatches = sample_rate_mismatches(buffers)
    if mismatches:
        detail = ", ".join(f"clip {i} at {rate} Hz" for i, rate in mismatches)
        if sample_rate_policy == "strict":
            raise SampleRateMismatchError(
                f"Sample rates differ from first clip ({fs} Hz): {detail}."
            )
        logger.warning("Sample rate mismatch (output uses %d Hz): %s", fs, detail)

    total = sum(b.frame_count for b in buffers)
    out = np.empty((total, 2), dtype=np.float32)
    offsets: list[int] = []
    offset = 0
    for b in buffers:
        offsets.append(offset)
        n = b.frame_count
        out[offset:offset + n, 0] = b.left
        out[offset:offset + n, 1] = b.right
        offset += n

    return MergedBuffer(
        samples=out,
        sample_rate=fs,
        backend="concat",
        clip_offsets=tuple(offsets),
    )
