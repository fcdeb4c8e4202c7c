"""
Tests for the windowed-sinc tempo-ratio resampler
"""

import numpy as np
import pytest

from dj_transition.core.errors import ChunkTooShort, ResampleRangeError
from dj_transition.core.models import TempoRatioSchedule
from dj_transition.core.resampler import TempoRatioResampler
from tests.conftest import create_tone_frames


@pytest.fixture
def resampler():
    return TempoRatioResampler()


@pytest.mark.parametrize("ratio", [0.5, 0.8333, 1.0, 1.1, 2.0])
@pytest.mark.parametrize("length", [1000, 4411])
def test_constant_ratio_length(resampler, ratio, length):
    frames = create_tone_frames(440.0, 1.0)[:length]
    output = resampler.resample(frames, ratio)

    assert abs(len(output) - round(length * ratio)) <= 1
    assert output.shape[1] == 2


def test_unity_ratio_is_identity(resampler):
    frames = create_tone_frames(440.0, 0.1)
    np.testing.assert_array_equal(resampler.resample(frames, 1.0), frames)
    assert resampler.group_delay == 0


def test_round_trip_preserves_signal(resampler):
    frames = create_tone_frames(440.0, 0.5)
    ratio = 1.25

    restored = resampler.resample(resampler.resample(frames, ratio), 1 / ratio)

    assert abs(len(restored) - len(frames)) <= 2
    n = min(len(restored), len(frames))
    # Kernel edges read zero padding, compare the interior
    interior = slice(200, n - 200)
    error = restored[interior] - frames[interior]
    assert np.sqrt(np.mean(error ** 2)) < 0.05


def test_upsampled_tone_keeps_its_shape(resampler):
    sr = 44100
    frames = create_tone_frames(1000.0, 0.2, sr=sr)
    output = resampler.resample(frames, 2.0)

    # Output sample k sits at input time k / (2 * sr)
    t = np.arange(len(output)) / (2 * sr)
    expected = 0.5 * np.sin(2 * np.pi * 1000.0 * t)
    np.testing.assert_allclose(output[100:-100, 0], expected[100:-100], atol=0.01)


def test_downsampling_suppresses_aliases(resampler):
    # 15 kHz is above the Nyquist frequency left after halving the rate
    frames = create_tone_frames(15000.0, 0.2)
    output = resampler.resample(frames, 0.5)

    input_rms = np.sqrt(np.mean(frames[:, 0] ** 2))
    output_rms = np.sqrt(np.mean(output[100:-100, 0] ** 2))
    assert output_rms < 0.05 * input_rms


def test_channels_stay_independent(resampler):
    frames = np.zeros((500, 2))
    frames[:, 0] = 0.5
    output = resampler.resample(frames, 0.9)

    np.testing.assert_array_equal(output[:, 1], 0.0)
    assert np.all(output[50:-50, 0] > 0.45)


def test_mono_input(resampler):
    output = resampler.resample(np.ones(400), 1.5)
    assert output.ndim == 1
    assert len(output) == 600


@pytest.mark.parametrize("ratio", [0.25, 2.5, float("nan"), float("inf")])
def test_ratio_out_of_range(resampler, ratio):
    with pytest.raises(ResampleRangeError):
        resampler.resample(np.zeros((1000, 2)), ratio)


def test_input_shorter_than_kernel(resampler):
    with pytest.raises(ChunkTooShort):
        resampler.resample(np.zeros((resampler.min_input_length - 1, 2)), 1.2)


def test_scheduled_output_length_and_consumption(resampler):
    frames = create_tone_frames(220.0, 1.0)
    schedule = TempoRatioSchedule(initial_ratio=0.8, length=20000)

    output, end_position = resampler.resample_scheduled(frames, schedule, block_size=512)

    assert output.shape == (20000, 2)
    assert end_position == pytest.approx(schedule.input_span(512))
    assert end_position > 20000


def test_scheduled_unity_ratio_reads_verbatim(resampler):
    frames = create_tone_frames(220.0, 0.5)
    schedule = TempoRatioSchedule(initial_ratio=1.0, length=5000)

    output, end_position = resampler.resample_scheduled(frames, schedule, block_size=1024)

    np.testing.assert_array_equal(output, frames[:5000])
    assert end_position == 5000.0


def test_scheduled_block_size_floor(resampler):
    schedule = TempoRatioSchedule(initial_ratio=0.9, length=100)
    with pytest.raises(ChunkTooShort):
        resampler.resample_scheduled(np.zeros((1000, 2)), schedule, block_size=1)


def test_scheduled_ratio_outside_resampler_range():
    narrow = TempoRatioResampler(min_ratio=0.9, max_ratio=1.1)
    schedule = TempoRatioSchedule(initial_ratio=0.5, length=2048)

    with pytest.raises(ResampleRangeError):
        narrow.resample_scheduled(np.zeros((10000, 2)), schedule, block_size=256)


def test_scheduled_ramp_reads_tone_at_block_positions(resampler):
    sr, freq, block_size = 44100, 220.0, 256
    frames = create_tone_frames(freq, 1.0, sr=sr)
    schedule = TempoRatioSchedule(initial_ratio=0.8, length=20000)

    output, _ = resampler.resample_scheduled(frames, schedule, block_size=block_size)

    # Each block reads from where the previous one stopped, stepping 1/ratio per frame
    positions = []
    position = 0.0
    for start, stop, ratio in schedule.blocks(block_size):
        positions.append(position + np.arange(stop - start) / ratio)
        position += (stop - start) / ratio
    positions = np.concatenate(positions)

    expected_left = 0.5 * np.sin(2 * np.pi * freq * positions / sr)
    expected_right = 0.5 * np.cos(2 * np.pi * freq * positions / sr)
    # Skip the frames whose kernel reaches before the first input sample
    np.testing.assert_allclose(output[64:, 0], expected_left[64:], atol=1e-2)
    np.testing.assert_allclose(output[64:, 1], expected_right[64:], atol=1e-2)
