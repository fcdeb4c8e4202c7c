#!/usr/bin/env python3
"""
Audio file I/O: decoding to PCM, sample-rate conformance and atomic WAV output
"""

import os
import tempfile
import librosa
import numpy as np
import soundfile as sf
from pathlib import Path
from typing import Union
from dj_transition.core.config import AudioConstants, FileConstants
from dj_transition.core.errors import DecodeFailure, EncodeFailure
from dj_transition.core.models import PcmSource, Track
from dj_transition.core.normalizer import normalize

# Subtypes that fit in 16-bit integers without losing resolution
SIXTEEN_BIT_SUBTYPES = ('PCM_16', 'PCM_U8', 'PCM_S8')
# Floating-point subtypes that libsndfile does not rescale when read as integers
FLOAT_SUBTYPES = ('FLOAT', 'DOUBLE')
INT32_FULL_SCALE = 2 ** 31 - 1


def read_pcm(filepath: Union[str, Path]) -> PcmSource:
    """Decode an audio file into integer PCM frames"""
    filepath = Path(filepath)
    name = filepath.name
    if not filepath.exists():
        raise DecodeFailure(f"File not found: {filepath}", track=name)

    try:
        info = sf.info(str(filepath))
        if info.subtype in FLOAT_SUBTYPES:
            audio, sample_rate = sf.read(str(filepath), dtype='float64', always_2d=True)
            samples = np.round(np.clip(audio, -1.0, 1.0) * INT32_FULL_SCALE).astype(np.int32)
            sample_width = 32
        elif info.subtype in SIXTEEN_BIT_SUBTYPES:
            samples, sample_rate = sf.read(str(filepath), dtype='int16', always_2d=True)
            sample_width = 16
        else:
            samples, sample_rate = sf.read(str(filepath), dtype='int32', always_2d=True)
            sample_width = 32
    except (RuntimeError, OSError, ValueError) as e:
        raise DecodeFailure(f"Could not decode {filepath}: {e}", track=name) from e

    return PcmSource(
        sample_rate=int(sample_rate),
        channels=int(samples.shape[1]),
        samples=samples,
        sample_width=sample_width,
        name=name
    )


def conform_sample_rate(track: Track, target_rate: int = AudioConstants.OUTPUT_SAMPLE_RATE) -> Track:
    """Resample a track to the output rate when it differs"""
    if track.sample_rate == target_rate:
        return track

    print(f"  Resampling {track.name}: {track.sample_rate} Hz -> {target_rate} Hz")
    # librosa expects channels first
    resampled = librosa.resample(
        np.ascontiguousarray(track.frames.T),
        orig_sr=track.sample_rate,
        target_sr=target_rate,
        res_type='soxr_hq'
    )
    return Track(frames=np.clip(resampled.T, -1.0, 1.0), sample_rate=target_rate, name=track.name)


def load_track(filepath: Union[str, Path],
               target_rate: int = AudioConstants.OUTPUT_SAMPLE_RATE) -> Track:
    """Decode, normalize to stereo float frames and conform to the output rate"""
    print(f"Loading: {os.path.basename(str(filepath))}")
    track = normalize(read_pcm(filepath))
    track = conform_sample_rate(track, target_rate)
    print(f"  {track.duration:.1f}s at {track.sample_rate} Hz")
    return track


def write_transition(filepath: Union[str, Path], frames: np.ndarray,
                     sample_rate: int = AudioConstants.OUTPUT_SAMPLE_RATE):
    """
    Write interleaved stereo 16-bit PCM WAV.

    The file is written next to the target under a temporary name and only
    renamed into place once complete, so a failed write never leaves a
    partial file at the target path.
    """
    filepath = Path(filepath)
    frames = np.asarray(frames, dtype=np.float64)
    if frames.ndim != 2 or frames.shape[1] != 2:
        raise EncodeFailure(f"Expected stereo frames of shape (n, 2), got {frames.shape}",
                            track=filepath.name)

    directory = filepath.parent if str(filepath.parent) else Path('.')
    try:
        fd, temp_path = tempfile.mkstemp(suffix='.wav', prefix=FileConstants.TEMP_PREFIX,
                                         dir=str(directory))
    except OSError as e:
        raise EncodeFailure(f"Cannot create output in {directory}: {e}", track=filepath.name) from e

    try:
        os.close(fd)
        sf.write(temp_path, np.clip(frames, -1.0, 1.0), sample_rate,
                 subtype=AudioConstants.OUTPUT_SUBTYPE, format='WAV')
        os.replace(temp_path, filepath)
    except (RuntimeError, OSError, ValueError) as e:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise EncodeFailure(f"Could not write {filepath}: {e}", track=filepath.name) from e
