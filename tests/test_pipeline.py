from __future__ import annotations

import numpy as np
import pytest

from mp3glue.config import GlueConfig
from mp3glue.errors import (
    DecodeError,
    EmptyInputError,
    PipelineError,
    SampleRateMismatchError,
    UnsupportedChannelLayoutError,
)
from mp3glue.io.wav import HEADER_SIZE, decode_wav_pcm16
from mp3glue.pipeline import PipelineRun, combine_clips
from mp3glue.types import ClipInput, RunState
from tests.conftest import encode_clip_bytes, fake_clips, make_pcm, silent_pcm


def test_three_mono_clips_scenario():
    clips, decoder = fake_clips([
        ("01 - First.mp3", silent_pcm(2.0)),
        ("02 - Second.mp3", silent_pcm(3.5)),
        ("03 - Third.mp3", silent_pcm(1.25)),
    ])
    result = combine_clips(clips, decoder=decoder)
    assert result.frame_count == 297675
    assert result.sample_rate == 44100
    assert len(result.wav_bytes) == HEADER_SIZE + 4 * 297675
    assert result.timestamps_text.splitlines() == [
        "00:00 - First",
        "00:02 - Second",
        "00:05 - Third",
    ]
    assert result.upmixed == ["01 - First.mp3", "02 - Second.mp3", "03 - Third.mp3"]
    assert [c.start_seconds for c in result.clips] == pytest.approx([0.0, 2.0, 5.5])
    assert result.upmix_note().endswith("01 - First.mp3, 02 - Second.mp3, 03 - Third.mp3")


def test_states_progress_through_each_stage():
    clips, decoder = fake_clips([("a.mp3", make_pcm([[0.1, 0.2]]))])
    seen = []
    run = PipelineRun(clips, decoder=decoder, progress=seen.append)
    result = run.execute()
    assert seen == [RunState.DECODING, RunState.MERGING, RunState.ENCODING, RunState.READY]
    assert run.state is RunState.READY
    assert run.history[0] is RunState.IDLE
    assert result.upmix_note() is None
    with pytest.raises(RuntimeError):
        run.execute()


def test_audio_order_matches_input_order():
    clips, decoder = fake_clips([
        ("a", make_pcm([0.5, 0.5])),
        ("b", make_pcm([[-0.5, 0.25]])),
    ])
    result = combine_clips(clips, decoder=decoder)
    _, pcm = decode_wav_pcm16(result.wav_bytes)
    assert pcm.tolist() == [[16384, 16384], [16384, 16384], [-16384, 8192]]


def test_empty_input_never_reaches_encoding():
    seen = []
    run = PipelineRun([], decoder=object(), progress=seen.append)
    with pytest.raises(EmptyInputError) as info:
        run.execute()
    assert run.state is RunState.FAILED
    assert seen == [RunState.FAILED]
    assert info.value.stage is RunState.IDLE


def test_decode_failure_names_clip_and_aborts():
    clips, decoder = fake_clips([
        ("good.mp3", make_pcm([0.0])),
        ("broken.mp3", make_pcm([0.0])),
        ("later.mp3", make_pcm([0.0])),
    ])
    decoder.failing.add(clips[1].raw_bytes)
    run = PipelineRun(clips, decoder=decoder)
    with pytest.raises(DecodeError) as info:
        run.execute()
    err = info.value
    assert err.clip_name == "broken.mp3"
    assert err.stage is RunState.DECODING
    assert "broken.mp3" in str(err)
    assert isinstance(err.__cause__, ValueError)
    assert run.state is RunState.FAILED
    assert run.error is err
    assert clips[2].raw_bytes not in decoder.calls


def test_parallel_decode_keeps_input_order():
    buffers = [(f"{i:02d}.mp3", make_pcm([i / 10.0] * (i + 1))) for i in range(6)]
    clips, decoder = fake_clips(buffers)
    serial = combine_clips(clips, decoder=decoder)
    parallel = combine_clips(clips, decoder=decoder, config=GlueConfig(workers=4))
    assert parallel.wav_bytes == serial.wav_bytes
    assert parallel.timestamps_text == serial.timestamps_text


def test_parallel_decode_reports_first_failing_clip():
    clips, decoder = fake_clips([(f"{i}.mp3", make_pcm([0.0])) for i in range(5)])
    decoder.failing.update({clips[1].raw_bytes, clips[3].raw_bytes})
    with pytest.raises(DecodeError) as info:
        combine_clips(clips, decoder=decoder, config=GlueConfig(workers=3))
    assert info.value.clip_name == "1.mp3"


def test_sample_rate_mismatch_is_flagged():
    clips, decoder = fake_clips([
        ("a.mp3", make_pcm([0.0] * 4, fs=44100)),
        ("b.mp3", make_pcm([0.0] * 4, fs=48000)),
    ])
    result = combine_clips(clips, decoder=decoder)
    assert result.sample_rate == 44100
    assert any("b.mp3" in w and "48000" in w for w in result.warnings)

    strict = GlueConfig(sample_rate_policy="strict")
    run = PipelineRun(clips, decoder=decoder, config=strict)
    with pytest.raises(SampleRateMismatchError) as info:
        run.execute()
    assert info.value.stage is RunState.MERGING


def test_wide_layout_policy():
    wide = make_pcm(np.zeros((3, 4)))
    clips, decoder = fake_clips([("surround.mp3", wide)])
    result = combine_clips(clips, decoder=decoder)
    assert result.frame_count == 3
    assert any(w.startswith("surround.mp3:") for w in result.warnings)

    with pytest.raises(UnsupportedChannelLayoutError) as info:
        combine_clips(clips, decoder=decoder, config=GlueConfig(channel_policy="strict"))
    assert info.value.clip_name == "surround.mp3"


def test_unexpected_error_is_wrapped():
    class Exploding:
        def decode(self, raw):
            return make_pcm([0.0])

    clips = [ClipInput("a.mp3", b"a")]
    run = PipelineRun(clips, decoder=Exploding(), config=GlueConfig(channel_policy="bogus"))
    with pytest.raises(PipelineError) as info:
        run.execute()
    assert info.value.stage is RunState.DECODING
    assert run.state is RunState.FAILED


def test_real_decoder_round_trip():
    fs = 16000
    mono = np.full(800, 0.5)
    stereo = np.column_stack((np.full(400, 0.25), np.full(400, -0.25)))
    clips = [
        ClipInput("01 - Mono.flac", encode_clip_bytes(mono, fs=fs)),
        ClipInput("02 - Stereo.flac", encode_clip_bytes(stereo, fs=fs)),
    ]
    result = combine_clips(clips, config=GlueConfig(decode_backends=("soundfile",)))
    assert result.frame_count == 1200
    assert result.upmixed == ["01 - Mono.flac"]
    assert result.timestamps_text == "00:00 - Mono\n00:00 - Stereo"
    header, pcm = decode_wav_pcm16(result.wav_bytes)
    assert header.sample_rate == fs
    assert np.all(np.abs(pcm[:800, 0] - 16384) <= 2)
    assert np.array_equal(pcm[:800, 0], pcm[:800, 1])
    assert np.all(pcm[800:, 1] < 0)


def test_start_times_do_not_drift_below_whole_seconds():
    clips, decoder = fake_clips([(f"c{i}", silent_pcm(0.1)) for i in range(11)])
    result = combine_clips(clips, decoder=decoder)
    assert result.clips[10].start_seconds == 1.0
    assert result.timestamps_text.splitlines()[10] == "00:01 - c10"


def test_start_times_exact_for_thirds_of_a_second():
    clips, decoder = fake_clips([(f"t{i}", silent_pcm(1 / 3)) for i in range(4)])
    result = combine_clips(clips, decoder=decoder)
    assert result.clips[3].start_seconds == 1.0
    assert result.timestamps_text.splitlines()[3] == "00:01 - t3"
