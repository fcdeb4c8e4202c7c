#!/usr/bin/env python3
"""
Error kinds raised by the transition pipeline
"""

from typing import Optional


class TransitionError(Exception):
    """Base class for every pipeline failure"""
    kind = "TransitionError"

    def __init__(self, message: str, track: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.track = track

    def __str__(self) -> str:
        if self.track:
            return f"{self.kind} [{self.track}]: {self.message}"
        return f"{self.kind}: {self.message}"


class DecodeFailure(TransitionError):
    kind = "DecodeFailure"


class EmptyTrack(TransitionError):
    kind = "EmptyTrack"


class UnsupportedChannelLayout(TransitionError):
    kind = "UnsupportedChannelLayout"


class TempoUndetected(TransitionError):
    """No tempo could be estimated; callers fall back to an untouched tempo"""
    kind = "TempoUndetected"


class FadeWindowExceedsTrack(TransitionError):
    kind = "FadeWindowExceedsTrack"


class SampleRateMismatch(TransitionError):
    kind = "SampleRateMismatch"


class ResampleRangeError(TransitionError):
    kind = "ResampleRangeError"


class ChunkTooShort(TransitionError):
    kind = "ChunkTooShort"


class StreamFinalized(TransitionError):
    kind = "StreamFinalized"


class EncodeFailure(TransitionError):
    kind = "EncodeFailure"
