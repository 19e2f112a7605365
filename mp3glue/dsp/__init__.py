"""Buffer-level DSP for mp3glue."""

from mp3glue.dsp.channels import to_stereo
from mp3glue.dsp.concat import concatenate

__all__ = [
    "to_stereo",
    "concatenate",
]
