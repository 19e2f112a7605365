#!/usr/bin/env python
"""
Synthesize demo clips for trying out mp3glue.

Writes numbered tone clips (mono and stereo, FLAC and WAV) so a folder
can be fed straight to ``mp3glue combine --ext .flac --ext .wav``.
"""
from __future__ import annotations
import argparse
from pathlib import Path

import numpy as np
import soundfile as sf


def gen_sine(freq_hz: float, duration_s: float, fs: int, amp: float = 0.5) -> np.ndarray:
    """Generate a sine wave."""
    t = np.arange(int(duration_s * fs)) / fs
    return amp * np.sin(2.0 * np.pi * freq_hz * t)


def gen_stereo_beat(f_left: float, f_right: float, duration_s: float, fs: int) -> np.ndarray:
    """Different tone per channel so left/right mixups are audible."""
    return np.column_stack((
        gen_sine(f_left, duration_s, fs),
        gen_sine(f_right, duration_s, fs),
    ))


def main():
    parser = argparse.ArgumentParser(description="Write demo clips for mp3glue")
    parser.add_argument("--out-dir", default="demo_clips", help="Output folder")
    parser.add_argument("--fs", type=int, default=44100, help="Sample rate")
    args = parser.parse_args()

    out = Path(args.out_dir)
    out.mkdir(parents=True, exist_ok=True)
    fs = args.fs

    clips = [
        ("01 - Intro.flac", gen_sine(440.0, 2.0, fs)),
        ("02 - Stereo Beat.wav", gen_stereo_beat(330.0, 335.0, 3.5, fs)),
        ("03_Outro.flac", gen_sine(220.0, 1.25, fs)),
    ]
    for name, samples in clips:
        path = out / name
        sf.write(path, samples, fs)
        print(f"Wrote {path}")


if __name__ == "__main__":
    main()
