#!/usr/bin/env python3
"""
Common audio processing utilities
Shared by the data model and the transition engine
"""

import numpy as np
from typing import Tuple, Optional, Union
from dj_transition.core.config import AudioConstants, CrossfadeCurve
from dj_transition.core.errors import TempoUndetected


class AudioProcessor:
    """Common audio processing operations"""

    @staticmethod
    def downmix_to_mono(frames: np.ndarray) -> np.ndarray:
        """Average the channels of a (n, channels) frame array"""
        if frames.ndim == 1:
            return frames.astype(np.float64)
        return frames.mean(axis=1, dtype=np.float64)

    @staticmethod
    def clip(audio: np.ndarray, limit: float = 1.0) -> np.ndarray:
        """Clip to the valid amplitude range"""
        return np.clip(audio, -limit, limit)

    @staticmethod
    def create_fade_curves(length: int,
                           curve_type: Union[CrossfadeCurve, str] = CrossfadeCurve.EQUAL_POWER
                           ) -> Tuple[np.ndarray, np.ndarray]:
        """Create crossfade curves running from full anchor to full follower"""
        curve_type = CrossfadeCurve(curve_type)
        if curve_type == CrossfadeCurve.EQUAL_POWER:
            fade_out = np.cos(np.linspace(0, np.pi/2, length))
            fade_in = np.sin(np.linspace(0, np.pi/2, length))
        elif curve_type == CrossfadeCurve.LINEAR:
            fade_out = np.linspace(1, 0, length)
            fade_in = np.linspace(0, 1, length)
        else:
            raise ValueError(f"Unknown curve type: {curve_type}")

        return fade_out, fade_in

    @staticmethod
    def apply_crossfade(track1: np.ndarray, track2: np.ndarray,
                        fade_out: Optional[np.ndarray] = None,
                        fade_in: Optional[np.ndarray] = None) -> np.ndarray:
        """Apply crossfade between two equally long segments, clipped to [-1, 1]"""
        if len(track1) != len(track2):
            raise ValueError(f"Crossfade segments differ in length: {len(track1)} vs {len(track2)}")

        if fade_out is None or fade_in is None:
            fade_out, fade_in = AudioProcessor.create_fade_curves(len(track1))

        if track1.ndim == 2:
            fade_out = fade_out[:, np.newaxis]
            fade_in = fade_in[:, np.newaxis]

        return AudioProcessor.clip(track1 * fade_out + track2 * fade_in)


class TempoProcessor:
    """Tempo and rhythm processing utilities"""

    @staticmethod
    def calculate_resample_ratio(source_bpm: float, target_bpm: float) -> float:
        """
        Ratio (output rate / input rate) that brings source_bpm to target_bpm.
        A faster source needs more output samples per input sample.
        This is the reciprocal of the playback speed factor target_bpm / source_bpm.
        """
        if source_bpm <= 0 or target_bpm <= 0:
            raise TempoUndetected(
                f"Cannot match tempo {source_bpm:.1f} BPM to {target_bpm:.1f} BPM")
        return source_bpm / target_bpm

    @staticmethod
    def clamp_ratio(ratio: float,
                    min_ratio: float = AudioConstants.MIN_RATIO,
                    max_ratio: float = AudioConstants.MAX_RATIO) -> float:
        """Clamp a resample ratio to the supported range"""
        return float(min(max(ratio, min_ratio), max_ratio))
