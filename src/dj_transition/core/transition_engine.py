#!/usr/bin/env python3
"""
Transition engine: tempo-ramped, beatmatched crossfade between two tracks
"""

import numpy as np
from enum import Enum
from typing import Optional, Tuple
from dj_transition.core.config import TransitionSettings
from dj_transition.core.errors import (FadeWindowExceedsTrack, SampleRateMismatch,
                                       StreamFinalized, TempoUndetected)
from dj_transition.core.models import (CrossfadeEnvelope, OutputStream, TempoEstimate,
                                       TempoRatioSchedule, Track, TransitionResult, fade_length)
from dj_transition.core.resampler import TempoRatioResampler
from dj_transition.core.tempo_estimator import TempoEstimator
from dj_transition.utils.audio_processing import TempoProcessor

# Tolerance when turning the fractional end of the fade input into a frame index
POSITION_EPSILON = 1e-9


class TransitionState(Enum):
    """Processing phases, entered in order"""
    PRE_FADE = "pre-fade"
    FADING = "fading"
    POST_FADE = "post-fade"
    DONE = "done"


class TransitionEngine:
    """
    Mixes the follower into the tail of the anchor.

    The anchor plays unmodified until the fade window. Inside the window the
    follower is resampled so its tempo starts at the anchor's and relaxes to
    its own native tempo by the end of the window, while the envelope moves
    the mix from anchor to follower. The rest of the follower then plays
    unmodified.
    """

    def __init__(self, anchor: Track, follower: Track,
                 settings: Optional[TransitionSettings] = None,
                 resampler: Optional[TempoRatioResampler] = None):
        self.settings = settings or TransitionSettings()
        self.settings.validate()
        self.anchor = anchor
        self.follower = follower
        self.resampler = resampler or TempoRatioResampler(
            min_ratio=self.settings.min_ratio,
            max_ratio=self.settings.max_ratio
        )
        self.state = TransitionState.PRE_FADE

        # Sizing errors surface before any DSP work
        self.fade_samples = self._validate_tracks()

    @property
    def sample_rate(self) -> int:
        return self.anchor.sample_rate

    def _validate_tracks(self) -> int:
        """Check both tracks can host the fade window; returns its length in samples"""
        if self.anchor.sample_rate != self.follower.sample_rate:
            raise SampleRateMismatch(
                f"{self.follower.sample_rate} Hz does not match anchor at {self.anchor.sample_rate} Hz",
                track=self.follower.name)

        fade_samples = fade_length(self.settings.fade_seconds, self.sample_rate)
        for track in (self.anchor, self.follower):
            if len(track) <= fade_samples:
                raise FadeWindowExceedsTrack(
                    f"Fade of {fade_samples} samples ({self.settings.fade_seconds:.2f}s) "
                    f"does not fit a track of {len(track)} samples ({track.duration:.2f}s)",
                    track=track.name)

        self.resampler.check_block_size(self.settings.block_size)
        self.resampler.check_input(self.follower.frames)
        return fade_samples

    def _initial_ratio(self, anchor_tempo: TempoEstimate,
                       follower_tempo: TempoEstimate) -> Tuple[float, bool]:
        """Ratio that brings the follower to the anchor's tempo, or 1.0 without tempo data"""
        if not self.settings.tempo_matching:
            print("  Tempo matching disabled, using envelope-only crossfade")
            return 1.0, False

        try:
            anchor_bpm = anchor_tempo.require(self.anchor.name)
            follower_bpm = follower_tempo.require(self.follower.name)
        except TempoUndetected as e:
            print(f"  Warning: {e}")
            print("  Falling back to envelope-only crossfade (ratio 1.0)")
            return 1.0, False

        ratio = TempoProcessor.calculate_resample_ratio(follower_bpm, anchor_bpm)
        print(f"  Tempo match: {follower_bpm:.1f} BPM -> {anchor_bpm:.1f} BPM (ratio: {ratio:.4f})")
        return ratio, True

    def plan(self, anchor_tempo: TempoEstimate,
             follower_tempo: TempoEstimate) -> Tuple[TempoRatioSchedule, bool]:
        """Build the ratio schedule and make sure the follower can feed it"""
        ratio, tempo_matched = self._initial_ratio(anchor_tempo, follower_tempo)
        schedule = TempoRatioSchedule(
            initial_ratio=ratio,
            length=self.fade_samples,
            min_ratio=self.settings.min_ratio,
            max_ratio=self.settings.max_ratio
        )
        if schedule.initial_ratio != ratio:
            print(f"  Warning: ratio {ratio:.4f} clamped to {schedule.initial_ratio:.4f}")

        span = schedule.input_span(self.settings.block_size)
        if span > len(self.follower):
            raise FadeWindowExceedsTrack(
                f"Tempo-ramped fade needs {int(np.ceil(span))} input samples, "
                f"track has {len(self.follower)}",
                track=self.follower.name)

        return schedule, tempo_matched

    def _estimate(self, track: Track, override: Optional[float]) -> TempoEstimate:
        if override is not None:
            print(f"Using manual tempo for {track.name}: {override:.1f} BPM")
            return TempoEstimator.manual(override)
        return TempoEstimator().estimate(track)

    def render(self, anchor_tempo: Optional[TempoEstimate] = None,
               follower_tempo: Optional[TempoEstimate] = None) -> TransitionResult:
        """Run the transition once and return the finished frames"""
        if self.state == TransitionState.DONE:
            raise StreamFinalized("Transition already rendered")

        if anchor_tempo is None:
            anchor_tempo = self._estimate(self.anchor, self.settings.anchor_bpm)
        if follower_tempo is None:
            follower_tempo = self._estimate(self.follower, self.settings.follower_bpm)

        print(f"Creating transition: {self.anchor.name} -> {self.follower.name}")
        schedule, tempo_matched = self.plan(anchor_tempo, follower_tempo)
        envelope = CrossfadeEnvelope(self.fade_samples, self.settings.curve)
        stream = OutputStream(self.sample_rate)
        fade_start = len(self.anchor) - self.fade_samples

        self.state = TransitionState.PRE_FADE
        stream.append(self.anchor.frames[:fade_start])

        self.state = TransitionState.FADING
        print(f"  Crossfading {self.fade_samples / self.sample_rate:.2f}s "
              f"({self.settings.curve.value}, {self.settings.block_size}-sample blocks)")
        follower_fade, position = self.resampler.resample_scheduled(
            self.follower.frames, schedule, self.settings.block_size)
        stream.append(envelope.blend(self.anchor.frames[fade_start:], follower_fade))

        self.state = TransitionState.POST_FADE
        resume = int(np.ceil(position - POSITION_EPSILON))
        stream.append(self.follower.frames[resume:])

        frames = stream.finalize()
        self.state = TransitionState.DONE

        print(f"  Transition complete: {len(frames) / self.sample_rate:.1f}s "
              f"(follower resumes at sample {resume})")

        return TransitionResult(
            frames=frames,
            sample_rate=self.sample_rate,
            fade_samples=self.fade_samples,
            fade_start=fade_start,
            fade_end=fade_start + self.fade_samples,
            initial_ratio=schedule.initial_ratio,
            tempo_matched=tempo_matched,
            anchor_tempo=anchor_tempo,
            follower_tempo=follower_tempo
        )


def create_transition(anchor: Track, follower: Track,
                      settings: Optional[TransitionSettings] = None,
                      anchor_tempo: Optional[TempoEstimate] = None,
                      follower_tempo: Optional[TempoEstimate] = None) -> TransitionResult:
    """Convenience wrapper: validate, estimate missing tempos and render"""
    engine = TransitionEngine(anchor, follower, settings)
    return engine.render(anchor_tempo, follower_tempo)
