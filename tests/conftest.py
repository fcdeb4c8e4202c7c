"""
Shared fixtures: synthetic tracks for testing the transition pipeline
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Make the src/ layout importable without installing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dj_transition.core.models import Track  # noqa: E402


def create_click_frames(bpm: float, duration_seconds: float, sr: int = 44100,
                        amplitude: float = 0.8) -> np.ndarray:
    """Stereo click track with one short decaying tone burst exactly on every beat"""
    total_samples = int(duration_seconds * sr)
    audio = np.zeros(total_samples)

    click_samples = int(0.01 * sr)
    t = np.arange(click_samples) / sr
    click = np.sin(2 * np.pi * 1000 * t) * np.exp(-t * 400)

    beat = 0
    while True:
        start = int(round(beat * 60.0 / bpm * sr))
        if start >= total_samples:
            break
        end = min(start + click_samples, total_samples)
        audio[start:end] += click[:end - start]
        beat += 1

    audio *= amplitude
    return np.column_stack([audio, audio])


def create_tone_frames(freq: float, duration_seconds: float, sr: int = 44100,
                       amplitude: float = 0.5) -> np.ndarray:
    """Stereo sine, right channel a quarter period behind the left"""
    t = np.arange(int(duration_seconds * sr)) / sr
    left = amplitude * np.sin(2 * np.pi * freq * t)
    right = amplitude * np.cos(2 * np.pi * freq * t)
    return np.column_stack([left, right])


@pytest.fixture
def click_track():
    def _make(bpm=120.0, duration_seconds=30.0, sr=44100, amplitude=0.8, name="clicks"):
        return Track(frames=create_click_frames(bpm, duration_seconds, sr, amplitude),
                     sample_rate=sr, name=name)
    return _make


@pytest.fixture
def noise_track():
    def _make(n_samples, sr=8000, seed=0, amplitude=0.5, name="noise"):
        rng = np.random.default_rng(seed)
        frames = amplitude * rng.uniform(-1.0, 1.0, size=(n_samples, 2))
        return Track(frames=frames, sample_rate=sr, name=name)
    return _make
