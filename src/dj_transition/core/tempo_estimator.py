#!/usr/bin/env python3
"""
Tempo analysis for DJ Transition Generator
"""

import librosa
import numpy as np
from typing import Optional
from scipy.signal import find_peaks
from dj_transition.core.config import AnalysisSettings, AudioConstants
from dj_transition.core.models import TempoEstimate, Track


class TempoEstimator:
    """Estimates BPM from onset counts, refined by onset-envelope periodicity"""

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or AnalysisSettings()
        self.settings.validate()

    @staticmethod
    def manual(bpm: float) -> TempoEstimate:
        """Estimate for a tempo given by the user instead of analysis"""
        return TempoEstimate(bpm=float(bpm), confidence=1.0, onset_count=0)

    def estimate(self, track: Track) -> TempoEstimate:
        """Estimate the tempo of a track; bpm 0.0 when no periodic onsets exist"""
        print(f"Analyzing tempo: {track.name}")

        mono = track.mono
        if len(mono) < self.settings.n_fft or not np.any(mono):
            print(f"  Warning: {track.name} is silent or too short for tempo analysis")
            return TempoEstimate.undetected()

        onset_env = self.onset_strength(mono, track.sample_rate)
        onsets = self.pick_onsets(onset_env, track.sample_rate)
        if len(onsets) < 2:
            print(f"  Warning: only {len(onsets)} onset(s) found, tempo undetected")
            return TempoEstimate.undetected(onset_count=len(onsets))

        # Coarse tempo straight from the onset count
        coarse_bpm = 60.0 * len(onsets) / track.duration

        periodic_bpm = self._periodic_bpm(onset_env, track.sample_rate)
        if periodic_bpm is None:
            bpm = coarse_bpm
        else:
            bpm = self._resolve_octave(coarse_bpm, periodic_bpm)

        if not self.settings.min_bpm <= bpm <= self.settings.max_bpm:
            print(f"  Warning: {bpm:.1f} BPM outside valid range "
                  f"{self.settings.min_bpm:.0f}-{self.settings.max_bpm:.0f}, tempo undetected")
            return TempoEstimate.undetected(onset_count=len(onsets))

        confidence = self._periodicity_confidence(onsets, bpm, track.sample_rate)
        print(f"  BPM: {bpm:.2f} (onsets: {len(onsets)}, coarse: {coarse_bpm:.1f}, "
              f"confidence: {confidence:.2f})")

        return TempoEstimate(bpm=float(bpm), confidence=confidence, onset_count=len(onsets))

    def onset_strength(self, mono: np.ndarray, sr: int) -> np.ndarray:
        """Spectral-flux onset envelope, independent of overall amplitude"""
        S = np.abs(librosa.stft(mono, n_fft=self.settings.n_fft, hop_length=self.settings.hop_length))
        peak = np.max(S)
        if peak <= 0:
            return np.zeros(S.shape[1])

        S_db = librosa.amplitude_to_db(S / peak, ref=1.0, top_db=AudioConstants.ONSET_TOP_DB)
        return librosa.onset.onset_strength(
            S=S_db,
            sr=sr,
            n_fft=self.settings.n_fft,
            hop_length=self.settings.hop_length
        )

    def pick_onsets(self, onset_env: np.ndarray, sr: int) -> np.ndarray:
        """Onset frames, at most one per refractory period"""
        if not np.any(onset_env > 0):
            return np.array([], dtype=int)

        threshold = np.mean(onset_env) + 0.5 * np.std(onset_env)
        min_distance = max(1, int(np.ceil(self.settings.min_onset_interval * sr / self.settings.hop_length)))

        peaks, _ = find_peaks(onset_env, height=threshold, distance=min_distance)
        return peaks

    def _periodic_bpm(self, onset_env: np.ndarray, sr: int) -> Optional[float]:
        """Tempo of the strongest onset-envelope autocorrelation lag in the BPM range"""
        frames_per_second = sr / self.settings.hop_length
        min_lag = max(1, int(np.floor(60.0 * frames_per_second / self.settings.max_bpm)))
        max_lag = int(np.ceil(60.0 * frames_per_second / self.settings.min_bpm))

        envelope = onset_env - np.mean(onset_env)
        autocorr = librosa.autocorrelate(envelope, max_size=max_lag + 2)
        max_lag = min(max_lag, len(autocorr) - 2)
        if max_lag < min_lag:
            return None

        lag = min_lag + int(np.argmax(autocorr[min_lag:max_lag + 1]))
        if autocorr[lag] <= 0:
            return None

        # Parabolic interpolation around the peak for sub-frame resolution
        before, peak, after = autocorr[lag - 1], autocorr[lag], autocorr[lag + 1]
        denom = before - 2 * peak + after
        offset = 0.0
        if denom < 0:
            offset = float(np.clip(0.5 * (before - after) / denom, -0.5, 0.5))

        return 60.0 * frames_per_second / (lag + offset)

    def _resolve_octave(self, coarse_bpm: float, periodic_bpm: float) -> float:
        """Pick the half/same/double periodic tempo closest to the onset-count tempo"""
        candidates = [periodic_bpm * factor for factor in (0.5, 1.0, 2.0)
                      if self.settings.min_bpm <= periodic_bpm * factor <= self.settings.max_bpm]
        if not candidates:
            return periodic_bpm
        return min(candidates, key=lambda bpm: abs(np.log(bpm / coarse_bpm)))

    def _periodicity_confidence(self, onsets: np.ndarray, bpm: float, sr: int) -> float:
        """Share of inter-onset intervals landing on a whole number of beats"""
        intervals = np.diff(onsets) * self.settings.hop_length / sr
        beats = intervals / (60.0 / bpm)
        nearest = np.round(beats)
        periodic = (nearest >= 1) & (np.abs(beats - nearest) <= AudioConstants.PERIODIC_TOLERANCE)
        return float(np.mean(periodic))
