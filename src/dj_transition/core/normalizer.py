#!/usr/bin/env python3
"""
Frame normalization: decoded integer PCM -> canonical stereo float Track
"""

import numpy as np
from dj_transition.core.errors import EmptyTrack, UnsupportedChannelLayout
from dj_transition.core.models import PcmSource, Track

SUPPORTED_SAMPLE_WIDTHS = (8, 16, 24, 32)


def normalize(source: PcmSource) -> Track:
    """
    Convert a decoded PCM source into a stereo Track.

    Mono input is duplicated into both channels. Signed samples are divided
    by 2**(bits-1); 8-bit samples are unsigned and re-centered on 128 first.
    """
    if source.channels not in (1, 2):
        raise UnsupportedChannelLayout(
            f"{source.channels} channels; only mono and stereo are supported", track=source.name)

    samples = np.asarray(source.samples)
    if samples.size == 0:
        raise EmptyTrack("No samples decoded", track=source.name)
    if not np.issubdtype(samples.dtype, np.integer):
        raise EmptyTrack(f"Malformed sample stream: expected integer PCM, got {samples.dtype}",
                         track=source.name)
    if source.sample_width not in SUPPORTED_SAMPLE_WIDTHS:
        raise EmptyTrack(f"Malformed sample stream: unsupported sample width {source.sample_width}",
                         track=source.name)

    frames = _deinterleave(samples, source.channels, source.name)

    if source.sample_width == 8:
        scaled = (frames.astype(np.float64) - 128.0) / 128.0
    else:
        scaled = frames.astype(np.float64) / float(2 ** (source.sample_width - 1))
    scaled = np.clip(scaled, -1.0, 1.0)

    if source.channels == 1:
        scaled = np.repeat(scaled, 2, axis=1)

    return Track(frames=scaled, sample_rate=source.sample_rate, name=source.name)


def _deinterleave(samples: np.ndarray, channels: int, name: str) -> np.ndarray:
    """Reshape interleaved or (n, channels) samples to (n, channels)"""
    if samples.ndim == 1:
        if len(samples) % channels != 0:
            raise EmptyTrack(f"Malformed sample stream: {len(samples)} samples "
                             f"do not divide into {channels} channels", track=name)
        return samples.reshape(-1, channels)

    if samples.ndim == 2:
        if samples.shape[1] != channels:
            if samples.shape[1] > 2:
                raise UnsupportedChannelLayout(
                    f"{samples.shape[1]} channels; only mono and stereo are supported", track=name)
            raise EmptyTrack(f"Malformed sample stream: shape {samples.shape} "
                             f"disagrees with {channels} channels", track=name)
        return samples

    raise EmptyTrack(f"Malformed sample stream: {samples.ndim}-D sample array", track=name)
