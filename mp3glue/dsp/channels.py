"""Channel normalization to stereo."""
from __future__ import annotations

import logging

import numpy as np

from mp3glue.errors import UnsupportedChannelLayoutError
from mp3glue.types import PcmBuffer, StereoBuffer

logger = logging.getLogger(__name__)

CHANNEL_POLICIES = ("first_two", "strict")


def to_stereo(buf: PcmBuffer, *, policy: str = "first_two") -> StereoBuffer:
    """
    Map a decoded buffer onto exactly two channels.

    Stereo passes through without copying, mono is duplicated into left and
    right. Wider layouts keep channels 0 and 1 under the ``first_two`` policy
    and are rejected under ``strict``. Frame count and sample rate never change.
    """
    if policy not in CHANNEL_POLICIES:
        raise ValueError(f"Unknown channel policy: {policy}")
    ch = buf.channels
    if ch == 0:
        raise UnsupportedChannelLayoutError("Decoded audio has no channels.")

    warnings = buf.warnings
    if ch == 1:
        mono = buf.samples[:, 0]
        samples = np.column_stack((mono, mono))
    elif ch == 2:
        if isinstance(buf, StereoBuffer):
            return buf
        samples = buf.samples
    else:
        if policy == "strict":
            raise UnsupportedChannelLayoutError(
                f"{ch}-channel audio is not supported; expected mono or stereo."
            )
        msg = f"{buf.backend}: kept channels 0-1 of {ch}, dropped {ch - 2}."
        logger.warning(msg)
        samples = buf.samples[:, :2]
        warnings = warnings + (msg,)

    return StereoBuffer(
        samples=samples,
        sample_rate=buf.sample_rate,
        backend=buf.backend,
        warnings=warnings,
    )
