from __future__ import annotations

import numpy as np
import pytest

from mp3glue.dsp.channels import to_stereo
from mp3glue.errors import UnsupportedChannelLayoutError
from mp3glue.types import PcmBuffer, StereoBuffer
from tests.conftest import make_pcm


def test_mono_is_duplicated_to_both_channels():
    mono = make_pcm([0.1, -0.2, 0.3, 1.0])
    out = to_stereo(mono)
    assert isinstance(out, StereoBuffer)
    assert out.channels == 2
    assert np.array_equal(out.left, mono.channel(0))
    assert np.array_equal(out.right, mono.channel(0))
    assert out.frame_count == mono.frame_count
    assert out.sample_rate == mono.sample_rate


@pytest.mark.parametrize("n", [0, 1, 7])
def test_mono_upmix_any_length(n):
    mono = make_pcm(np.linspace(-1.0, 1.0, n))
    out = to_stereo(mono)
    assert out.samples.shape == (n, 2)
    assert np.array_equal(out.left, out.right)


def test_stereo_passes_through_without_copy():
    stereo = make_pcm([[0.1, 0.9], [-0.5, 0.25]])
    out = to_stereo(stereo)
    assert out.samples is stereo.samples
    assert np.array_equal(out.left, np.array([0.1, -0.5], dtype=np.float32))
    assert np.array_equal(out.right, np.array([0.9, 0.25], dtype=np.float32))


def test_normalizing_stereo_is_idempotent():
    once = to_stereo(make_pcm([[0.1, 0.2], [0.3, 0.4]]))
    twice = to_stereo(once)
    assert twice is once


def test_wide_layout_keeps_first_two_channels():
    x = np.arange(12, dtype=np.float32).reshape(4, 3) / 12.0
    out = to_stereo(make_pcm(x))
    assert np.array_equal(out.samples, x[:, :2])
    assert any("dropped 1" in w for w in out.warnings)


def test_wide_layout_rejected_under_strict_policy():
    x = np.zeros((4, 6), dtype=np.float32)
    with pytest.raises(UnsupportedChannelLayoutError):
        to_stereo(make_pcm(x), policy="strict")


def test_zero_channels_rejected():
    buf = PcmBuffer(samples=np.zeros((10, 0), dtype=np.float32), sample_rate=8000)
    with pytest.raises(UnsupportedChannelLayoutError):
        to_stereo(buf)


def test_unknown_policy():
    with pytest.raises(ValueError):
        to_stereo(make_pcm([0.0]), policy="downmix")
