#!/usr/bin/env python3
"""
Data models for DJ Transition Generator
"""

import math
import numpy as np
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple
from dj_transition.core.config import AudioConstants, CrossfadeCurve
from dj_transition.core.errors import StreamFinalized, TempoUndetected
from dj_transition.utils.audio_processing import AudioProcessor, TempoProcessor


@dataclass(frozen=True, eq=False)
class PcmSource:
    """Decoded, uncompressed linear PCM as handed over by the decoder"""
    sample_rate: int
    channels: int
    samples: np.ndarray
    sample_width: int = 16
    name: str = "track"


@dataclass(frozen=True, eq=False)
class Track:
    """Immutable stereo frame sequence, amplitudes in [-1.0, 1.0]"""
    frames: np.ndarray
    sample_rate: int
    name: str = "track"

    def __post_init__(self):
        """Post-initialization validation and setup"""
        frames = np.asarray(self.frames, dtype=np.float64)
        if frames.ndim != 2 or frames.shape[1] != 2:
            raise ValueError(f"Track frames must have shape (n, 2), got {frames.shape}")
        if len(frames) == 0:
            raise ValueError("Audio data cannot be empty")
        if self.sample_rate <= 0:
            raise ValueError("Sample rate must be positive")

        if frames is self.frames and frames.flags.writeable:
            frames = frames.copy()
        frames.flags.writeable = False
        object.__setattr__(self, 'frames', frames)

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def duration(self) -> float:
        """Duration in seconds"""
        return len(self.frames) / self.sample_rate

    @property
    def mono(self) -> np.ndarray:
        return AudioProcessor.downmix_to_mono(self.frames)


@dataclass(frozen=True)
class TempoEstimate:
    """Tempo of one track; bpm 0.0 means no tempo was found"""
    bpm: float
    confidence: float = 0.0
    onset_count: int = 0

    @classmethod
    def undetected(cls, onset_count: int = 0) -> 'TempoEstimate':
        return cls(bpm=0.0, confidence=0.0, onset_count=onset_count)

    @property
    def detected(self) -> bool:
        return self.bpm > 0.0

    def require(self, track_name: Optional[str] = None) -> float:
        """Return the BPM, or raise TempoUndetected"""
        if not self.detected:
            raise TempoUndetected("No periodic onsets found", track=track_name)
        return self.bpm


@dataclass(frozen=True)
class TempoRatioSchedule:
    """
    Resample ratio per crossfade-relative output index, ramping linearly
    from the (clamped) initial ratio to exactly 1.0 at the last index.
    """
    initial_ratio: float
    length: int
    min_ratio: float = AudioConstants.MIN_RATIO
    max_ratio: float = AudioConstants.MAX_RATIO

    def __post_init__(self):
        if self.length < 1:
            raise ValueError("Schedule length must be at least one sample")
        clamped = TempoProcessor.clamp_ratio(self.initial_ratio, self.min_ratio, self.max_ratio)
        object.__setattr__(self, 'initial_ratio', clamped)

    def __len__(self) -> int:
        return self.length

    def __call__(self, index: float) -> float:
        if not 0 <= index <= self.length - 1:
            raise IndexError(f"Schedule index {index} outside 0..{self.length - 1}")
        if index == self.length - 1:
            return 1.0
        progress = index / (self.length - 1)
        return self.initial_ratio + (1.0 - self.initial_ratio) * progress

    def ratios(self) -> np.ndarray:
        """Per-sample ratio curve"""
        if self.length == 1:
            return np.ones(1)
        return np.linspace(self.initial_ratio, 1.0, self.length)

    def blocks(self, block_size: int) -> Iterator[Tuple[int, int, float]]:
        """Yield (start, stop, ratio) sub-blocks, ratio sampled at the block midpoint"""
        for start in range(0, self.length, block_size):
            stop = min(start + block_size, self.length)
            yield start, stop, self((start + stop - 1) / 2)

    def input_span(self, block_size: int) -> float:
        """Input frames consumed when the schedule is resampled block by block"""
        return sum((stop - start) / ratio for start, stop, ratio in self.blocks(block_size))


@dataclass(frozen=True, eq=False)
class CrossfadeEnvelope:
    """Paired fade-out / fade-in gains over a crossfade window"""
    length: int
    curve: CrossfadeCurve = CrossfadeCurve.EQUAL_POWER
    fade_out: np.ndarray = field(init=False, repr=False)
    fade_in: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        fade_out, fade_in = AudioProcessor.create_fade_curves(self.length, self.curve)
        fade_out.flags.writeable = False
        fade_in.flags.writeable = False
        object.__setattr__(self, 'fade_out', fade_out)
        object.__setattr__(self, 'fade_in', fade_in)

    def __len__(self) -> int:
        return self.length

    def __call__(self, index: int) -> Tuple[float, float]:
        return float(self.fade_out[index]), float(self.fade_in[index])

    def blend(self, anchor: np.ndarray, follower: np.ndarray, start: int = 0) -> np.ndarray:
        """Blend frames covering envelope indices [start, start + len(anchor))"""
        stop = start + len(anchor)
        return AudioProcessor.apply_crossfade(anchor, follower,
                                              self.fade_out[start:stop], self.fade_in[start:stop])


class OutputStream:
    """Output frames collected in program order, finalized exactly once"""

    def __init__(self, sample_rate: int):
        self.sample_rate = sample_rate
        self._chunks: List[np.ndarray] = []
        self._length = 0
        self._finalized = False

    def __len__(self) -> int:
        return self._length

    @property
    def finalized(self) -> bool:
        return self._finalized

    def append(self, frames: np.ndarray):
        if self._finalized:
            raise StreamFinalized("Output stream already finalized; no further frames accepted")
        if frames.ndim != 2 or frames.shape[1] != 2:
            raise ValueError(f"Output frames must have shape (n, 2), got {frames.shape}")
        self._chunks.append(frames)
        self._length += len(frames)

    def finalize(self) -> np.ndarray:
        if self._finalized:
            raise StreamFinalized("Output stream already finalized")
        self._finalized = True
        if not self._chunks:
            return np.zeros((0, 2))
        audio = np.concatenate(self._chunks, axis=0)
        self._chunks = []
        return audio


@dataclass
class TransitionResult:
    """Result of a transition generation operation"""
    frames: np.ndarray
    sample_rate: int
    fade_samples: int
    fade_start: int
    fade_end: int
    initial_ratio: float
    tempo_matched: bool
    anchor_tempo: TempoEstimate
    follower_tempo: TempoEstimate

    @property
    def duration(self) -> float:
        """Duration in seconds"""
        return len(self.frames) / self.sample_rate

    @property
    def duration_minutes(self) -> float:
        """Duration in minutes"""
        return self.duration / 60.0

    @property
    def file_size_mb(self) -> float:
        """Estimated file size in MB (16-bit stereo WAV)"""
        return (len(self.frames) * 2 * 2) / (1024 * 1024)


def fade_length(fade_seconds: float, sample_rate: int) -> int:
    """Fade duration in samples"""
    return max(1, int(math.floor(fade_seconds * sample_rate + 0.5)))
