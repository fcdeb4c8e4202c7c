"""
Tests for decoding, sample-rate conformance and atomic output writing
"""

import numpy as np
import pytest
import soundfile as sf

from dj_transition.core.errors import DecodeFailure, EncodeFailure, UnsupportedChannelLayout
from dj_transition.core.models import Track
from dj_transition.utils import audio_io
from dj_transition.utils.audio_io import (conform_sample_rate, load_track, read_pcm,
                                          write_transition)
from tests.conftest import create_tone_frames


def test_write_produces_stereo_16bit_wav(tmp_path):
    output = tmp_path / "transition.wav"
    frames = create_tone_frames(440.0, 0.5)

    write_transition(output, frames, 44100)

    info = sf.info(str(output))
    assert info.channels == 2
    assert info.samplerate == 44100
    assert info.subtype == "PCM_16"
    assert info.frames == len(frames)

    data, _ = sf.read(str(output))
    np.testing.assert_allclose(data, frames, atol=1 / 32768 + 1e-9)


def test_write_clips_out_of_range_frames(tmp_path):
    output = tmp_path / "loud.wav"
    write_transition(output, np.full((100, 2), 1.5), 44100)

    data, _ = sf.read(str(output))
    assert np.max(data) <= 1.0


def test_write_leaves_no_temporary_files(tmp_path):
    write_transition(tmp_path / "out.wav", np.zeros((10, 2)), 44100)
    assert [p.name for p in tmp_path.iterdir()] == ["out.wav"]


def test_failed_write_leaves_nothing_behind(tmp_path, monkeypatch):
    def broken_write(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(audio_io.sf, "write", broken_write)

    with pytest.raises(EncodeFailure):
        write_transition(tmp_path / "out.wav", np.zeros((10, 2)), 44100)
    assert list(tmp_path.iterdir()) == []


def test_failed_write_keeps_existing_output(tmp_path, monkeypatch):
    output = tmp_path / "out.wav"
    output.write_bytes(b"previous")

    def broken_write(*args, **kwargs):
        raise OSError("read-only")

    monkeypatch.setattr(audio_io.sf, "write", broken_write)

    with pytest.raises(EncodeFailure):
        write_transition(output, np.zeros((10, 2)), 44100)
    assert output.read_bytes() == b"previous"


def test_write_to_missing_directory(tmp_path):
    with pytest.raises(EncodeFailure):
        write_transition(tmp_path / "missing" / "out.wav", np.zeros((10, 2)), 44100)


def test_write_rejects_mono_frames(tmp_path):
    with pytest.raises(EncodeFailure):
        write_transition(tmp_path / "out.wav", np.zeros(10), 44100)


def test_read_mono_file(tmp_path):
    path = tmp_path / "mono.wav"
    sf.write(str(path), np.linspace(-0.5, 0.5, 1000), 22050, subtype="PCM_16")

    source = read_pcm(path)

    assert source.channels == 1
    assert source.sample_rate == 22050
    assert source.sample_width == 16
    assert source.samples.dtype == np.int16
    assert source.name == "mono.wav"


def test_read_24bit_file_as_32bit_pcm(tmp_path):
    path = tmp_path / "wide.wav"
    sf.write(str(path), create_tone_frames(440.0, 0.1), 44100, subtype="PCM_24")

    source = read_pcm(path)
    assert source.sample_width == 32
    assert source.samples.dtype == np.int32


def test_missing_file(tmp_path):
    with pytest.raises(DecodeFailure) as exc_info:
        read_pcm(tmp_path / "nope.wav")
    assert exc_info.value.track == "nope.wav"


def test_garbage_file(tmp_path):
    path = tmp_path / "garbage.wav"
    path.write_bytes(b"this is not audio" * 10)

    with pytest.raises(DecodeFailure):
        read_pcm(path)


def test_multichannel_file_is_rejected(tmp_path):
    path = tmp_path / "surround.wav"
    sf.write(str(path), np.zeros((1000, 3)), 44100, subtype="PCM_16")

    with pytest.raises(UnsupportedChannelLayout):
        load_track(path)


def test_load_track_conforms_to_output_rate(tmp_path):
    path = tmp_path / "low.wav"
    sf.write(str(path), create_tone_frames(440.0, 1.0, sr=22050), 22050, subtype="PCM_16")

    track = load_track(path)

    assert track.sample_rate == 44100
    assert abs(len(track) - 44100) <= 2
    assert track.frames.shape[1] == 2
    assert track.name == "low.wav"


def test_conform_keeps_matching_rate():
    track = Track(frames=np.zeros((100, 2)), sample_rate=44100)
    assert conform_sample_rate(track, 44100) is track


@pytest.mark.parametrize("subtype", ["FLOAT", "DOUBLE"])
def test_float_wav_keeps_its_level(tmp_path, subtype):
    path = tmp_path / "float.wav"
    frames = create_tone_frames(440.0, 1.0)
    sf.write(str(path), frames, 44100, subtype=subtype)

    source = read_pcm(path)
    assert source.sample_width == 32
    assert source.samples.dtype == np.int32

    track = load_track(path)
    assert np.max(np.abs(track.frames)) == pytest.approx(0.5, abs=1e-3)
    np.testing.assert_allclose(track.frames, frames, atol=1e-6)


def test_float_wav_over_full_scale_is_clipped(tmp_path):
    path = tmp_path / "hot.wav"
    sf.write(str(path), np.array([[0.5, -0.5], [1.5, -1.5], [0.25, 0.0]]), 44100, subtype="FLOAT")

    frames = load_track(path).frames

    np.testing.assert_allclose(frames[:, 0], [0.5, 1.0, 0.25], atol=1e-6)
    np.testing.assert_allclose(frames[:, 1], [-0.5, -1.0, 0.0], atol=1e-6)
