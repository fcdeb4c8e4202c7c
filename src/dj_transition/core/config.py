#!/usr/bin/env python3
"""
Configuration and constants for DJ Transition Generator
Centralized configuration to follow DRY principles
"""

from dataclasses import dataclass
from typing import Optional
from enum import Enum


class CrossfadeCurve(Enum):
    """Crossfade envelope shapes"""
    EQUAL_POWER = "equal-power"
    LINEAR = "linear"


class AudioConstants:
    """Audio processing constants"""
    OUTPUT_SAMPLE_RATE = 44100
    OUTPUT_SUBTYPE = 'PCM_16'
    DEFAULT_N_FFT = 2048
    DEFAULT_HOP_LENGTH = 512

    # Beat detection
    MIN_BPM = 60.0
    MAX_BPM = 200.0
    MIN_ONSET_INTERVAL = 0.3  # seconds, refractory period between onsets
    ONSET_TOP_DB = 80.0
    PERIODIC_TOLERANCE = 0.1  # fraction of a beat period

    # Resampling
    MIN_RATIO = 0.5
    MAX_RATIO = 2.0
    SINC_HALF_WIDTH = 16
    MIN_BLOCK_SIZE = 32
    DEFAULT_BLOCK_SIZE = 1024

    # Crossfade
    DEFAULT_FADE_SECONDS = 5.0


class FileConstants:
    """File handling constants"""
    DEFAULT_OUTPUT_NAME = 'transition.wav'
    TEMP_PREFIX = '.dj_transition_'


@dataclass
class TransitionSettings:
    """Transition configuration settings"""
    fade_seconds: float = AudioConstants.DEFAULT_FADE_SECONDS
    curve: CrossfadeCurve = CrossfadeCurve.EQUAL_POWER
    block_size: int = AudioConstants.DEFAULT_BLOCK_SIZE
    tempo_matching: bool = True
    min_ratio: float = AudioConstants.MIN_RATIO
    max_ratio: float = AudioConstants.MAX_RATIO

    # Manual tempo overrides skip analysis for that track
    anchor_bpm: Optional[float] = None
    follower_bpm: Optional[float] = None

    def validate(self):
        """Validate transition settings"""
        if self.fade_seconds <= 0.0:
            raise ValueError("Fade duration must be positive")
        if self.block_size < AudioConstants.MIN_BLOCK_SIZE:
            raise ValueError(f"Block size must be at least {AudioConstants.MIN_BLOCK_SIZE} samples")
        if not 0.0 < self.min_ratio <= 1.0 <= self.max_ratio:
            raise ValueError("Ratio bounds must satisfy 0 < min_ratio <= 1.0 <= max_ratio")
        for label, bpm in (("Anchor", self.anchor_bpm), ("Follower", self.follower_bpm)):
            if bpm is not None and not AudioConstants.MIN_BPM <= bpm <= AudioConstants.MAX_BPM:
                raise ValueError(f"{label} BPM {bpm} outside valid range "
                                 f"{AudioConstants.MIN_BPM}-{AudioConstants.MAX_BPM}")


@dataclass
class AnalysisSettings:
    """Tempo analysis settings"""
    n_fft: int = AudioConstants.DEFAULT_N_FFT
    hop_length: int = AudioConstants.DEFAULT_HOP_LENGTH
    min_onset_interval: float = AudioConstants.MIN_ONSET_INTERVAL
    min_bpm: float = AudioConstants.MIN_BPM
    max_bpm: float = AudioConstants.MAX_BPM

    def validate(self):
        """Validate analysis settings"""
        if self.hop_length <= 0 or self.n_fft < self.hop_length:
            raise ValueError("FFT size must be at least the hop length")
        if self.min_onset_interval <= 0.0:
            raise ValueError("Minimum onset interval must be positive")
        if not 0.0 < self.min_bpm < self.max_bpm:
            raise ValueError("BPM range must satisfy 0 < min_bpm < max_bpm")


@dataclass
class TransitionConfiguration:
    """Complete transition generation configuration"""
    transition: TransitionSettings = None
    analysis: AnalysisSettings = None
    output_sample_rate: int = AudioConstants.OUTPUT_SAMPLE_RATE
    parallel_analysis: bool = True

    def __post_init__(self):
        if self.transition is None:
            self.transition = TransitionSettings()
        if self.analysis is None:
            self.analysis = AnalysisSettings()

    def validate(self):
        """Validate complete configuration"""
        self.transition.validate()
        self.analysis.validate()

        if self.output_sample_rate <= 0:
            raise ValueError("Output sample rate must be positive")
